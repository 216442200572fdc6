from __future__ import annotations

import os
from pathlib import Path

import pytest

from tests.catalog_fixture_harness import create_catalog_fixture_db


def _is_valid_sqlite_db(path: str) -> bool:
    try:
        if not path:
            return False
        if not os.path.isfile(path):
            return False
        with open(path, "rb") as f:
            header = f.read(16)
        return header.startswith(b"SQLite format 3")
    except OSError:
        return False


@pytest.fixture
def royale_test_db_path(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    env_db_path = os.getenv("ROYALE_ENGINE_DB_PATH", "")
    if _is_valid_sqlite_db(env_db_path):
        # Catalog tests that set their own fixture DB keep it.
        yield Path(env_db_path)
        return

    db_path = create_catalog_fixture_db(tmp_path)
    monkeypatch.setenv("ROYALE_ENGINE_DB_PATH", str(db_path))
    yield db_path


@pytest.fixture(autouse=True)
def _use_royale_test_db_path(royale_test_db_path: Path) -> None:
    _ = royale_test_db_path

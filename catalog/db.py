import os
import sqlite3
from pathlib import Path
from typing import Any, Dict, List

REPO_ROOT = Path(__file__).resolve().parents[1]
DEFAULT_DB_RELATIVE_PATH = Path("data") / "royale.sqlite"
DB_PATH = (REPO_ROOT / DEFAULT_DB_RELATIVE_PATH).resolve()
DB_PATH_ENV_VAR = "ROYALE_ENGINE_DB_PATH"


class CatalogNotFoundError(RuntimeError):
    code = "CATALOG_DB_NOT_FOUND"

    def __init__(self, db_path: Path | str | None):
        self.db_path = str(db_path) if db_path is not None else None
        super().__init__(
            "Royale catalog database file not found at "
            f"'{self.db_path}'. Set {DB_PATH_ENV_VAR} or run scripts/build_catalog_db_v1.py."
        )

    def to_unknown(self) -> Dict[str, Any]:
        return {
            "code": self.code,
            "db_path": self.db_path,
            "message": "Card catalog is not available. Build it from data/cards_v1.json first.",
        }


def resolve_db_path() -> Path:
    env_db_path = os.getenv(DB_PATH_ENV_VAR)
    if isinstance(env_db_path, str) and env_db_path.strip() != "":
        candidate = Path(env_db_path.strip()).expanduser()
        if not candidate.is_absolute():
            candidate = (REPO_ROOT / candidate).resolve()
    else:
        candidate = DB_PATH

    if not candidate.is_file():
        raise CatalogNotFoundError(candidate)
    return candidate


def connect() -> sqlite3.Connection:
    con = sqlite3.connect(str(resolve_db_path()))
    con.row_factory = sqlite3.Row
    return con


def list_card_rows(con: sqlite3.Connection) -> List[Dict[str, Any]]:
    rows = con.execute(
        "SELECT id, name, category, rarity, elixir, attack_locality, targets_air, attack_speed, "
        "evolution_available, release_date "
        "FROM cards ORDER BY id ASC"
    ).fetchall()
    out: List[Dict[str, Any]] = []
    for row in rows:
        card = dict(row)
        # SQLite has no boolean type; NULL keeps the not-applicable state.
        if card.get("targets_air") is not None:
            card["targets_air"] = bool(card["targets_air"])
        card["evolution_available"] = bool(card.get("evolution_available"))
        out.append(card)
    return out

from __future__ import annotations

import json
import sqlite3
import tempfile
import unittest
from pathlib import Path

from catalog.provider import SqliteCatalogProvider
from scripts.build_catalog_db_v1 import SCHEMA_SQL_REL, SEED_JSON_REL, write_catalog_db
from tests.catalog_fixture_harness import REPO_ROOT, set_catalog_fixture_env


class BuildCatalogDbTests(unittest.TestCase):
    def test_seed_json_builds_a_loadable_catalog(self) -> None:
        with tempfile.TemporaryDirectory() as tmp_dir:
            db_path = Path(tmp_dir) / "royale.sqlite"

            summary = write_catalog_db(db_path, REPO_ROOT / SEED_JSON_REL, REPO_ROOT / SCHEMA_SQL_REL)

            self.assertEqual(summary["catalog_version"], "cards_v1")
            self.assertEqual(summary["cards_written"], 111)
            self.assertEqual(summary["rows_skipped"], 0)

            with set_catalog_fixture_env(db_path):
                catalog = SqliteCatalogProvider().get_catalog()

            con = sqlite3.connect(str(db_path))
            try:
                meta = con.execute("SELECT catalog_version, card_count, source_sha256 FROM catalog_meta").fetchall()
            finally:
                con.close()

        self.assertEqual(len(catalog), 111)
        self.assertEqual(len(catalog.playable()), 108)
        self.assertEqual(meta[0][0], "cards_v1")
        self.assertEqual(meta[0][1], 111)
        self.assertEqual(len(meta[0][2]), 64)

    def test_rebuild_replaces_rows_and_skips_bad_ones(self) -> None:
        with tempfile.TemporaryDirectory() as tmp_dir:
            seed_path = Path(tmp_dir) / "cards.json"
            seed_path.write_text(
                json.dumps(
                    {
                        "catalog_version": "cards_test",
                        "cards": [
                            {"id": 1, "name": "Knight", "category": "Troop", "rarity": "Common", "elixir": 3,
                             "attack_locality": "melee", "targets_air": False, "attack_speed": "medium",
                             "evolution_available": True, "release_date": "2016-01-04"},
                            {"id": 2, "name": "Arrows", "category": "Spell", "rarity": "Common", "elixir": 3,
                             "release_date": "2016-01-04"},
                            {"id": 3, "name": "Broken", "category": "Troop", "rarity": "Common", "elixir": -1,
                             "release_date": "2016-01-04"},
                        ],
                    }
                ),
                encoding="utf-8",
            )
            db_path = Path(tmp_dir) / "royale.sqlite"

            write_catalog_db(db_path, REPO_ROOT / SEED_JSON_REL, REPO_ROOT / SCHEMA_SQL_REL)
            summary = write_catalog_db(
                db_path, seed_path, REPO_ROOT / SCHEMA_SQL_REL, expected_version="cards_test"
            )

            con = sqlite3.connect(str(db_path))
            try:
                rows = con.execute("SELECT id, targets_air FROM cards ORDER BY id").fetchall()
                versions = con.execute("SELECT catalog_version FROM catalog_meta").fetchall()
            finally:
                con.close()

        self.assertEqual(summary["cards_written"], 2)
        self.assertEqual(summary["rows_skipped"], 1)
        self.assertEqual(rows, [(1, 0), (2, None)])
        self.assertEqual(versions, [("cards_test",)])

    def test_seed_with_another_catalog_version_is_rejected(self) -> None:
        with tempfile.TemporaryDirectory() as tmp_dir:
            seed_path = Path(tmp_dir) / "cards.json"
            seed_path.write_text(json.dumps({"catalog_version": "cards_v0", "cards": []}), encoding="utf-8")
            db_path = Path(tmp_dir) / "royale.sqlite"

            with self.assertRaises(ValueError) as ctx:
                write_catalog_db(db_path, seed_path, REPO_ROOT / SCHEMA_SQL_REL)

            self.assertFalse(db_path.exists())

        self.assertIn("cards_v1", str(ctx.exception))


if __name__ == "__main__":
    unittest.main()

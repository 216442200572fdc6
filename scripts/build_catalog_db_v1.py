import argparse
import json
import logging
import sqlite3
import sys
from pathlib import Path
from typing import Any, Dict, List, Tuple


def _repo_root() -> Path:
    return Path(__file__).resolve().parents[1]


REPO_ROOT = _repo_root()
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from api.puzzles.constants import CATALOG_VERSION
from api.puzzles.utils import sha256_hex
from catalog.db import DB_PATH
from catalog.entities import Entity, entities_from_rows


SEED_JSON_REL = Path("data/cards_v1.json")
SCHEMA_SQL_REL = Path("schemas/schema.sql")

logger = logging.getLogger("build_catalog_db_v1")


def _load_seed(path: Path, expected_version: str) -> Tuple[str, List[Dict[str, Any]], str]:
    text = path.read_text(encoding="utf-8")
    obj = json.loads(text)
    if not isinstance(obj, dict):
        raise ValueError(f"{path} must hold an object with a 'cards' list")
    catalog_version = obj.get("catalog_version")
    if not isinstance(catalog_version, str) or catalog_version == "":
        raise ValueError(f"{path} missing catalog_version")
    if catalog_version != expected_version:
        raise ValueError(f"{path} holds catalog_version {catalog_version!r}, expected {expected_version!r}")
    cards = obj.get("cards") if isinstance(obj.get("cards"), list) else []
    return catalog_version, [c for c in cards if isinstance(c, dict)], sha256_hex(text)


def _entity_row(entity: Entity) -> Tuple[Any, ...]:
    return (
        entity.id,
        entity.name,
        entity.category,
        entity.rarity,
        entity.elixir,
        entity.attack_locality,
        None if entity.targets_air is None else int(entity.targets_air),
        entity.attack_speed,
        int(entity.evolution_available),
        entity.release_date.isoformat(),
    )


def write_catalog_db(
    db_path: Path,
    seed_path: Path,
    schema_path: Path,
    expected_version: str = CATALOG_VERSION,
) -> Dict[str, Any]:
    catalog_version, raw_cards, source_sha256 = _load_seed(seed_path, expected_version)
    entities, unknowns = entities_from_rows(raw_cards)
    for unknown in unknowns:
        logger.warning("skipping seed row %s (%s): %s", unknown.get("row_id"), unknown.get("name"), unknown.get("code"))

    db_path.parent.mkdir(parents=True, exist_ok=True)
    con = sqlite3.connect(str(db_path))
    try:
        con.executescript(schema_path.read_text(encoding="utf-8"))
        con.execute("DELETE FROM cards")
        con.execute("DELETE FROM catalog_meta")
        con.executemany(
            """
            INSERT INTO cards (
              id,
              name,
              category,
              rarity,
              elixir,
              attack_locality,
              targets_air,
              attack_speed,
              evolution_available,
              release_date
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            [_entity_row(e) for e in entities],
        )
        con.execute(
            "INSERT INTO catalog_meta (catalog_version, source, card_count, source_sha256) VALUES (?, ?, ?, ?)",
            (catalog_version, seed_path.name, len(entities), source_sha256),
        )
        con.commit()
    finally:
        con.close()

    return {
        "catalog_version": catalog_version,
        "db_path": str(db_path),
        "cards_written": len(entities),
        "rows_skipped": len(unknowns),
    }


def main() -> int:
    ap = argparse.ArgumentParser(description="Build the SQLite card catalog from the seed JSON")
    ap.add_argument("--seed", default=str(REPO_ROOT / SEED_JSON_REL), help="Seed catalog JSON path.")
    ap.add_argument("--db", default=str(DB_PATH), help="Output SQLite path. Defaults to data/royale.sqlite.")
    ap.add_argument("--verbose", action="store_true", help="Log skipped rows and progress.")
    args = ap.parse_args()

    logging.basicConfig(level=logging.INFO if args.verbose else logging.WARNING, format="%(levelname)s %(message)s")

    summary = write_catalog_db(
        db_path=Path(args.db).expanduser().resolve(),
        seed_path=Path(args.seed).expanduser().resolve(),
        schema_path=REPO_ROOT / SCHEMA_SQL_REL,
    )
    print(json.dumps(summary, indent=2, sort_keys=True))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())

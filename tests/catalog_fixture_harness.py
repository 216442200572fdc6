from __future__ import annotations

import os
import sqlite3
from contextlib import contextmanager
from datetime import date
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional

from catalog.entities import Entity
from catalog.provider import EntityCatalog, JsonCatalogProvider

REPO_ROOT = Path(__file__).resolve().parents[1]

_NEXT_ID = [1000]


def make_entity(
    name: str,
    category: str = "Troop",
    rarity: str = "Common",
    elixir: int = 3,
    attack_locality: Optional[str] = "melee",
    targets_air: Optional[bool] = False,
    attack_speed: Optional[str] = "medium",
    evolution_available: bool = False,
    release_date: date = date(2016, 1, 4),
    entity_id: Optional[int] = None,
) -> Entity:
    if entity_id is None:
        _NEXT_ID[0] += 1
        entity_id = _NEXT_ID[0]
    if category == "Spell":
        attack_locality = None
        targets_air = None
        attack_speed = None
    return Entity(
        id=entity_id,
        name=name,
        category=category,
        rarity=rarity,
        elixir=elixir,
        attack_locality=attack_locality,
        targets_air=targets_air,
        attack_speed=attack_speed,
        evolution_available=evolution_available,
        release_date=release_date,
    )


def scenario_a_catalog() -> EntityCatalog:
    """Five Common 3-elixir Troops and one Epic 5-elixir Spell."""
    troops = [make_entity(f"Common Troop {i}", entity_id=i) for i in range(1, 6)]
    spell = make_entity("Epic Spell", category="Spell", rarity="Epic", elixir=5, entity_id=6)
    return EntityCatalog(troops + [spell])


def scenario_b_cards() -> List[Entity]:
    """Common Troops where exactly one costs 2 elixir; index 0 is the impostor Spell."""
    return [
        make_entity("Impostor Spell", category="Spell", rarity="Epic", elixir=5, entity_id=20),
        make_entity("Cheap Troop", elixir=2, entity_id=21),
        make_entity("Troop A", elixir=3, entity_id=22),
        make_entity("Troop B", elixir=3, entity_id=23),
        make_entity("Troop C", elixir=3, entity_id=24),
    ]


def seed_catalog() -> EntityCatalog:
    return JsonCatalogProvider(REPO_ROOT / "data" / "cards_v1.json").get_catalog()


FIXTURE_CARD_ROWS: List[Dict[str, Any]] = [
    {"id": 1, "name": "Knight", "category": "Troop", "rarity": "Common", "elixir": 3, "attack_locality": "melee",
     "targets_air": 0, "attack_speed": "medium", "evolution_available": 1, "release_date": "2016-01-04"},
    {"id": 2, "name": "Archers", "category": "Troop", "rarity": "Common", "elixir": 3, "attack_locality": "ranged",
     "targets_air": 1, "attack_speed": "medium", "evolution_available": 1, "release_date": "2016-01-04"},
    {"id": 3, "name": "Minions", "category": "Troop", "rarity": "Common", "elixir": 3, "attack_locality": "ranged",
     "targets_air": 1, "attack_speed": "fast", "evolution_available": 0, "release_date": "2016-01-04"},
    {"id": 4, "name": "Skeleton Barrel", "category": "Troop", "rarity": "Common", "elixir": 3,
     "attack_locality": "melee", "targets_air": 0, "attack_speed": "fast", "evolution_available": 0,
     "release_date": "2019-09-02"},
    {"id": 5, "name": "Goblin Gang", "category": "Troop", "rarity": "Common", "elixir": 3, "attack_locality": "melee",
     "targets_air": 0, "attack_speed": "fast", "evolution_available": 0, "release_date": "2016-09-01"},
    {"id": 6, "name": "Fireball", "category": "Spell", "rarity": "Rare", "elixir": 4, "attack_locality": None,
     "targets_air": None, "attack_speed": None, "evolution_available": 0, "release_date": "2016-01-04"},
    {"id": 7, "name": "Zap", "category": "Spell", "rarity": "Common", "elixir": 2, "attack_locality": None,
     "targets_air": None, "attack_speed": None, "evolution_available": 1, "release_date": "2016-01-04"},
    {"id": 8, "name": "Cannon", "category": "Building", "rarity": "Common", "elixir": 3, "attack_locality": "ranged",
     "targets_air": 0, "attack_speed": "medium", "evolution_available": 1, "release_date": "2016-01-04"},
    {"id": 9, "name": "Evolved Knight", "category": "Evolution", "rarity": "Common", "elixir": 3,
     "attack_locality": "melee", "targets_air": 0, "attack_speed": "medium", "evolution_available": 0,
     "release_date": "2023-07-03"},
]


def create_catalog_fixture_db(tmp_dir: Path, rows: Optional[List[Dict[str, Any]]] = None) -> Path:
    tmp_dir.mkdir(parents=True, exist_ok=True)
    db_path = (tmp_dir / "royale_fixture.sqlite").resolve()
    card_rows = FIXTURE_CARD_ROWS if rows is None else rows

    con = sqlite3.connect(str(db_path))
    try:
        con.executescript((REPO_ROOT / "schemas" / "schema.sql").read_text(encoding="utf-8"))
        con.executemany(
            """
            INSERT INTO cards (
              id, name, category, rarity, elixir, attack_locality,
              targets_air, attack_speed, evolution_available, release_date
            ) VALUES (
              :id, :name, :category, :rarity, :elixir, :attack_locality,
              :targets_air, :attack_speed, :evolution_available, :release_date
            )
            """,
            card_rows,
        )
        con.commit()
    finally:
        con.close()

    return db_path


@contextmanager
def set_catalog_fixture_env(db_path: Path) -> Iterator[None]:
    previous = os.environ.get("ROYALE_ENGINE_DB_PATH")
    os.environ["ROYALE_ENGINE_DB_PATH"] = str(db_path.resolve())
    try:
        yield
    finally:
        if previous is None:
            os.environ.pop("ROYALE_ENGINE_DB_PATH", None)
        else:
            os.environ["ROYALE_ENGINE_DB_PATH"] = previous

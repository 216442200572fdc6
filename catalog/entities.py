from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Any, Dict, List, Mapping, Optional, Tuple

CATEGORY_TROOP = "Troop"
CATEGORY_SPELL = "Spell"
CATEGORY_BUILDING = "Building"
CATEGORY_CHAMPION = "Champion"
CATEGORY_TOWER_TROOP = "Tower Troop"
CATEGORY_EVOLUTION = "Evolution"
CATEGORY_HERO = "Hero"

CATEGORIES = (
    CATEGORY_TROOP,
    CATEGORY_SPELL,
    CATEGORY_BUILDING,
    CATEGORY_CHAMPION,
    CATEGORY_TOWER_TROOP,
    CATEGORY_EVOLUTION,
    CATEGORY_HERO,
)

# Ordered from least to most rare.
RARITY_ORDER = ("Common", "Rare", "Epic", "Legendary", "Champion", "Heroic")

ATTACK_LOCALITIES = ("melee", "ranged")

# Ordered from fastest to slowest.
ATTACK_SPEED_ORDER = ("very-fast", "fast", "medium", "slow", "very-slow")

# Evolution rows duplicate a base card and are never dealt into a puzzle.
NON_PLAYABLE_CATEGORIES = frozenset({CATEGORY_EVOLUTION})


@dataclass(frozen=True)
class Entity:
    id: int
    name: str
    category: str
    rarity: str
    elixir: int
    attack_locality: Optional[str]
    targets_air: Optional[bool]
    attack_speed: Optional[str]
    evolution_available: bool
    release_date: date

    @property
    def release_year(self) -> int:
        return self.release_date.year

    @property
    def is_playable(self) -> bool:
        return self.category not in NON_PLAYABLE_CATEGORIES

    def to_payload(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "category": self.category,
            "rarity": self.rarity,
            "elixir": self.elixir,
            "attack_locality": self.attack_locality,
            "targets_air": self.targets_air,
            "attack_speed": self.attack_speed,
            "evolution_available": self.evolution_available,
            "release_date": self.release_date.isoformat(),
        }


def _coerce_int(value: Any) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return int(value)
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str) and value.strip().lstrip("-").isdigit():
        return int(value.strip())
    return None


def _coerce_tristate(value: Any) -> bool | None:
    if value is None:
        return None
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        if value == 1:
            return True
        if value == 0:
            return False
        return None
    if isinstance(value, str):
        token = value.strip().lower()
        if token in {"true", "yes", "1"}:
            return True
        if token in {"false", "no", "0"}:
            return False
    return None


def _coerce_date(value: Any) -> date | None:
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        return None
    token = value.strip()[:10]
    try:
        return date.fromisoformat(token)
    except ValueError:
        return None


def _nonempty_str(value: Any) -> str:
    if isinstance(value, str):
        token = value.strip()
        if token != "":
            return token
    return ""


def entity_from_row(row: Mapping[str, Any]) -> Tuple[Entity | None, str | None]:
    """Build an Entity from a DB or JSON row.

    Returns ``(entity, None)`` on success and ``(None, reason_code)`` when the
    row cannot form a valid entity. Optional combat attributes that hold an
    unknown token are read as not-applicable rather than rejecting the row.
    """
    entity_id = _coerce_int(row.get("id"))
    if entity_id is None:
        return None, "MISSING_ID"

    name = _nonempty_str(row.get("name"))
    if name == "":
        return None, "MISSING_NAME"

    category = _nonempty_str(row.get("category") or row.get("type"))
    if category not in CATEGORIES:
        return None, "UNKNOWN_CATEGORY"

    rarity = _nonempty_str(row.get("rarity"))
    if rarity not in RARITY_ORDER:
        return None, "UNKNOWN_RARITY"

    elixir = _coerce_int(row.get("elixir"))
    if elixir is None or elixir < 1:
        return None, "INVALID_ELIXIR"

    release_date = _coerce_date(row.get("release_date"))
    if release_date is None:
        return None, "INVALID_RELEASE_DATE"

    attack_locality = _nonempty_str(row.get("attack_locality") or row.get("attackType")).lower()
    attack_speed = _nonempty_str(row.get("attack_speed") or row.get("attackSpeed")).lower()
    targets_air_raw = row.get("targets_air") if "targets_air" in row else row.get("targetAir")

    return (
        Entity(
            id=entity_id,
            name=name,
            category=category,
            rarity=rarity,
            elixir=elixir,
            attack_locality=attack_locality if attack_locality in ATTACK_LOCALITIES else None,
            targets_air=_coerce_tristate(targets_air_raw),
            attack_speed=attack_speed if attack_speed in ATTACK_SPEED_ORDER else None,
            evolution_available=_coerce_tristate(row.get("evolution_available")) is True,
            release_date=release_date,
        ),
        None,
    )


def entities_from_rows(rows: List[Mapping[str, Any]]) -> Tuple[List[Entity], List[Dict[str, Any]]]:
    entities: List[Entity] = []
    unknowns: List[Dict[str, Any]] = []
    seen_ids: set[int] = set()
    for row in rows:
        entity, reason = entity_from_row(row)
        if entity is None:
            unknowns.append({"code": reason, "row_id": row.get("id"), "name": row.get("name")})
            continue
        if entity.id in seen_ids:
            unknowns.append({"code": "DUPLICATE_ID", "row_id": entity.id, "name": entity.name})
            continue
        seen_ids.add(entity.id)
        entities.append(entity)
    entities.sort(key=lambda e: e.id)
    return entities, unknowns

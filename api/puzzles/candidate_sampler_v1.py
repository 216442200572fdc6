from __future__ import annotations

import random
from typing import Any, Callable, Dict, Hashable, Iterable, List, Sequence, Tuple, TypeVar

from api.puzzles.constants import (
    DIM_ATTACK_LOCALITY,
    DIM_CATEGORY,
    DIM_ELIXIR,
    DIM_RARITY,
    DIM_RELEASE_YEAR,
    DIM_TARGETS_AIR,
)
from catalog.entities import Entity

T = TypeVar("T")

_DIMENSION_READERS: Dict[str, Callable[[Entity], Hashable]] = {
    DIM_CATEGORY: lambda e: e.category,
    DIM_RARITY: lambda e: e.rarity,
    DIM_ELIXIR: lambda e: e.elixir,
    DIM_RELEASE_YEAR: lambda e: e.release_year,
    DIM_ATTACK_LOCALITY: lambda e: e.attack_locality,
    DIM_TARGETS_AIR: lambda e: e.targets_air,
}


def dimension_value(entity: Entity, dimension: str) -> Hashable:
    reader = _DIMENSION_READERS.get(dimension)
    if reader is None:
        raise ValueError(f"unknown impostor dimension: {dimension!r}")
    return reader(entity)


def group_by_dimension(entities: Iterable[Entity], dimension: str) -> Dict[Hashable, List[Entity]]:
    """Group entities by their value on ``dimension``; not-applicable values are dropped."""
    groups: Dict[Hashable, List[Entity]] = {}
    for entity in entities:
        value = dimension_value(entity, dimension)
        if value is None:
            continue
        groups.setdefault(value, []).append(entity)
    return groups


def shuffled(items: Sequence[T], rng: random.Random) -> List[T]:
    out = list(items)
    rng.shuffle(out)
    return out


def sample_entities(pool: Sequence[Entity], count: int, rng: random.Random) -> List[Entity]:
    if count > len(pool):
        raise ValueError(f"cannot sample {count} entities from a pool of {len(pool)}")
    return rng.sample(list(pool), count)


def pick_one(pool: Sequence[T], rng: random.Random) -> T:
    if not pool:
        raise ValueError("cannot pick from an empty pool")
    return pool[rng.randrange(len(pool))]


def pick_value_pair(
    groups: Dict[Hashable, List[Entity]],
    majority_size: int,
    rng: random.Random,
) -> Tuple[Hashable, Hashable] | None:
    """Draw (majority value, impostor value) from a dimension's value domain.

    Only values whose pool can seat the whole majority are drawn as the
    majority value; any other non-empty value may supply the impostor.
    Returns ``None`` when the domain cannot produce a split at all.
    """
    values = sorted(groups.keys(), key=lambda v: (str(type(v)), str(v)))
    majority_values = [v for v in values if len(groups[v]) >= majority_size]
    if not majority_values:
        return None
    majority_value = pick_one(majority_values, rng)
    impostor_values = [v for v in values if v != majority_value and groups[v]]
    if not impostor_values:
        return None
    return majority_value, pick_one(impostor_values, rng)


def can_split(groups: Dict[Hashable, List[Entity]], majority_size: int) -> bool:
    if len(groups) < 2:
        return False
    return any(len(pool) >= majority_size for pool in groups.values())


def splice_at_random(
    majority: Sequence[Entity],
    impostor: Entity,
    rng: random.Random,
) -> Tuple[List[Entity], int]:
    # Any of the len(majority) + 1 slots, uniformly.
    impostor_index = rng.randrange(len(majority) + 1)
    cards = list(majority)
    cards.insert(impostor_index, impostor)
    return cards, impostor_index


def draw_lineup(
    groups: Dict[Hashable, List[Entity]],
    majority_size: int,
    rng: random.Random,
) -> Dict[str, Any] | None:
    pair = pick_value_pair(groups, majority_size, rng)
    if pair is None:
        return None
    majority_value, impostor_value = pair
    majority = sample_entities(groups[majority_value], majority_size, rng)
    impostor = pick_one(groups[impostor_value], rng)
    cards, impostor_index = splice_at_random(majority, impostor, rng)
    return {
        "majority_value": majority_value,
        "impostor_value": impostor_value,
        "majority": majority,
        "impostor": impostor,
        "cards": cards,
        "impostor_index": impostor_index,
    }

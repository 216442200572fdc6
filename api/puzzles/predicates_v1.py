from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
from typing import Any, Dict, Iterable, List, Sequence, Tuple

from api.puzzles.constants import (
    ATTACK_SPEED_LABELS,
    DIM_ATTACK_LOCALITY,
    DIM_ATTACK_SPEED,
    DIM_CATEGORY,
    DIM_ELIXIR,
    DIM_ELIXIR_RANGE,
    DIM_EVOLUTION,
    DIM_RARITY,
    DIM_TARGETS_AIR,
    GUESSER_CATEGORIES,
    GUESSER_ELIXIR_COSTS,
    GUESSER_ELIXIR_RANGES,
    GUESSER_RARITIES,
    PREDICATE_LIBRARY_VERSION,
)
from catalog.entities import ATTACK_LOCALITIES, ATTACK_SPEED_ORDER, Entity

VERSION = PREDICATE_LIBRARY_VERSION


@dataclass(frozen=True)
class Predicate:
    dimension: str
    value: Any
    label: str

    @property
    def predicate_id(self) -> str:
        if self.dimension == DIM_ELIXIR_RANGE:
            low, high = self.value
            return f"{self.dimension}:{low}-{high}"
        return f"{self.dimension}:{self.value}"

    def matches(self, entity: Entity) -> bool:
        if self.dimension == DIM_RARITY:
            return entity.rarity == self.value
        if self.dimension == DIM_CATEGORY:
            return entity.category == self.value
        if self.dimension == DIM_ELIXIR:
            return entity.elixir == self.value
        if self.dimension == DIM_ELIXIR_RANGE:
            low, high = self.value
            return low <= entity.elixir <= high
        if self.dimension == DIM_ATTACK_LOCALITY:
            return entity.attack_locality == self.value
        if self.dimension == DIM_TARGETS_AIR:
            # Not-applicable (None) never satisfies either air predicate.
            return entity.targets_air is self.value
        if self.dimension == DIM_ATTACK_SPEED:
            return entity.attack_speed == self.value
        if self.dimension == DIM_EVOLUTION:
            return entity.evolution_available is self.value
        return False

    def to_payload(self) -> Dict[str, Any]:
        value = list(self.value) if isinstance(self.value, tuple) else self.value
        return {
            "id": self.predicate_id,
            "dimension": self.dimension,
            "value": value,
            "label": self.label,
        }


def _attack_locality_label(locality: str) -> str:
    return "Melee attack" if locality == "melee" else "Ranged attack"


@lru_cache(maxsize=1)
def _predicate_table() -> Tuple[Predicate, ...]:
    out: List[Predicate] = []

    for rarity in GUESSER_RARITIES:
        out.append(Predicate(DIM_RARITY, rarity, f"{rarity} rarity"))

    for category in GUESSER_CATEGORIES:
        out.append(Predicate(DIM_CATEGORY, category, category))

    for elixir in GUESSER_ELIXIR_COSTS:
        out.append(Predicate(DIM_ELIXIR, elixir, f"{elixir} Elixir"))

    for low, high, label in GUESSER_ELIXIR_RANGES:
        out.append(Predicate(DIM_ELIXIR_RANGE, (low, high), label))

    for locality in ATTACK_LOCALITIES:
        out.append(Predicate(DIM_ATTACK_LOCALITY, locality, _attack_locality_label(locality)))

    out.append(Predicate(DIM_TARGETS_AIR, True, "Can target air"))
    out.append(Predicate(DIM_TARGETS_AIR, False, "Cannot target air"))

    for speed in ATTACK_SPEED_ORDER:
        out.append(Predicate(DIM_ATTACK_SPEED, speed, ATTACK_SPEED_LABELS[speed]))

    out.append(Predicate(DIM_EVOLUTION, True, "Has Evolution"))
    out.append(Predicate(DIM_EVOLUTION, False, "No Evolution"))

    return tuple(out)


def all_predicates() -> List[Predicate]:
    """Every atomic condition the guesser can draw from, in a fixed order."""
    return list(_predicate_table())


def predicates_by_dimension() -> Dict[str, List[Predicate]]:
    out: Dict[str, List[Predicate]] = {}
    for predicate in _predicate_table():
        out.setdefault(predicate.dimension, []).append(predicate)
    return out


def find_predicate(predicate_id: str) -> Predicate | None:
    for predicate in _predicate_table():
        if predicate.predicate_id == predicate_id:
            return predicate
    return None


def matches_all(entity: Entity, predicates: Sequence[Predicate]) -> bool:
    return all(p.matches(entity) for p in predicates)


def filter_matching(entities: Iterable[Entity], predicates: Sequence[Predicate]) -> List[Entity]:
    return [e for e in entities if matches_all(e, predicates)]

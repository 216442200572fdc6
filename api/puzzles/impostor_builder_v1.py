from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from time import perf_counter
from typing import Any, Dict, Hashable, List, Optional, Tuple

from api.puzzles.ambiguity_v1 import has_no_ambiguity
from api.puzzles.candidate_sampler_v1 import (
    can_split,
    dimension_value,
    draw_lineup,
    group_by_dimension,
    pick_one,
    sample_entities,
    shuffled,
    splice_at_random,
)
from api.puzzles.constants import (
    DIM_ATTACK_LOCALITY,
    DIM_CATEGORY,
    DIM_ELIXIR,
    DIM_RARITY,
    DIM_RELEASE_YEAR,
    DIM_TARGETS_AIR,
    FALLBACK_CONDITION,
    FALLBACK_IMPOSTOR_CATEGORY,
    FALLBACK_MAJORITY_CATEGORY,
    IMPOSTOR_ATTEMPTS_PER_DIMENSION,
    IMPOSTOR_DIMENSIONS,
    IMPOSTOR_SIMILAR_DIMENSION_FAMILY,
    difficulty_card_count,
)
from api.puzzles.utils import resolve_rng, round3, write_dev_metrics
from catalog.entities import Entity
from catalog.provider import EntityCatalog

VERSION = "impostor_builder_v1"

logger = logging.getLogger(__name__)

_CATEGORY_PLURALS = {
    "Troop": "Troops",
    "Spell": "Spells",
    "Building": "Buildings",
    "Champion": "Champions",
    "Tower Troop": "Tower Troops",
    "Hero": "Heroes",
}


class ImpostorFallbackUnavailableError(RuntimeError):
    code = "IMPOSTOR_FALLBACK_UNAVAILABLE"

    def __init__(self, card_count: int, majority_available: int, impostor_available: int):
        self.card_count = int(card_count)
        self.majority_available = int(majority_available)
        self.impostor_available = int(impostor_available)
        super().__init__(
            f"{self.code}: fallback needs {self.card_count - 1} {FALLBACK_MAJORITY_CATEGORY} "
            f"and 1 {FALLBACK_IMPOSTOR_CATEGORY}, catalog has {self.majority_available} "
            f"and {self.impostor_available}"
        )

    def to_unknown(self) -> Dict[str, Any]:
        return {
            "code": self.code,
            "card_count": self.card_count,
            "majority_available": self.majority_available,
            "impostor_available": self.impostor_available,
            "message": "No impostor round could be generated and the catalog cannot seat the fallback split.",
        }


@dataclass(frozen=True)
class ImpostorRound:
    cards: Tuple[Entity, ...]
    impostor_index: int
    dimension: str
    majority_value: Any
    impostor_value: Any
    condition: str
    is_fallback: bool = False

    @property
    def impostor(self) -> Entity:
        return self.cards[self.impostor_index]

    @property
    def majority(self) -> Tuple[Entity, ...]:
        return tuple(c for i, c in enumerate(self.cards) if i != self.impostor_index)

    def is_correct(self, index: int) -> bool:
        return index == self.impostor_index

    def to_payload(self) -> Dict[str, Any]:
        return {
            "version": VERSION,
            "dimension": self.dimension,
            "condition": self.condition,
            "cards": [c.to_payload() for c in self.cards],
            "impostor_index": self.impostor_index,
        }


def condition_text(dimension: str, value: Any) -> str:
    if dimension == DIM_CATEGORY:
        return f"All others are {_CATEGORY_PLURALS.get(value, f'{value}s')}"
    if dimension == DIM_RARITY:
        return f"All others are {value}"
    if dimension == DIM_ELIXIR:
        return f"All others cost {value} elixir"
    if dimension == DIM_RELEASE_YEAR:
        return f"All others were released in {value}"
    if dimension == DIM_ATTACK_LOCALITY:
        return f"All others are {value}"
    if dimension == DIM_TARGETS_AIR:
        return "All others can target air" if value else "All others cannot target air"
    raise ValueError(f"unknown impostor dimension: {dimension!r}")


def dimension_order(last_dimension: Optional[str], rng: random.Random) -> List[str]:
    """Candidate dimensions for the next round, best first.

    The previous dimension (and the whole category/rarity family when the
    previous round used one of them) goes to the back in canonical order so
    it is only tried once everything else has failed.
    """
    if last_dimension is not None and last_dimension not in IMPOSTOR_DIMENSIONS:
        raise ValueError(f"unknown impostor dimension: {last_dimension!r}")

    excluded: set[str] = set()
    if last_dimension is not None:
        excluded.add(last_dimension)
        if last_dimension in IMPOSTOR_SIMILAR_DIMENSION_FAMILY:
            excluded |= IMPOSTOR_SIMILAR_DIMENSION_FAMILY

    preferred = [d for d in IMPOSTOR_DIMENSIONS if d not in excluded]
    deferred = [d for d in IMPOSTOR_DIMENSIONS if d in excluded]
    return shuffled(preferred, rng) + deferred


def try_dimension(
    pool: Tuple[Entity, ...],
    dimension: str,
    card_count: int,
    rng: random.Random,
    max_attempts: int = IMPOSTOR_ATTEMPTS_PER_DIMENSION,
) -> Tuple[ImpostorRound | None, int]:
    """Search one dimension. Returns the accepted round (or None) and attempts spent."""
    majority_size = card_count - 1
    groups = group_by_dimension(pool, dimension)
    if not can_split(groups, majority_size):
        return None, 0

    for attempt in range(1, max_attempts + 1):
        lineup = draw_lineup(groups, majority_size, rng)
        if lineup is None:
            return None, attempt
        if not has_no_ambiguity(lineup["cards"], lineup["impostor_index"]):
            continue
        return (
            ImpostorRound(
                cards=tuple(lineup["cards"]),
                impostor_index=lineup["impostor_index"],
                dimension=dimension,
                majority_value=lineup["majority_value"],
                impostor_value=lineup["impostor_value"],
                condition=condition_text(dimension, lineup["majority_value"]),
            ),
            attempt,
        )
    return None, max_attempts


def build_fallback_round(pool: Tuple[Entity, ...], card_count: int, rng: random.Random) -> ImpostorRound:
    # The fallback split skips the ambiguity check.
    troops = [e for e in pool if e.category == FALLBACK_MAJORITY_CATEGORY]
    spells = [e for e in pool if e.category == FALLBACK_IMPOSTOR_CATEGORY]
    if len(troops) < card_count - 1 or not spells:
        raise ImpostorFallbackUnavailableError(card_count, len(troops), len(spells))

    majority = sample_entities(troops, card_count - 1, rng)
    impostor = pick_one(spells, rng)
    cards, impostor_index = splice_at_random(majority, impostor, rng)
    return ImpostorRound(
        cards=tuple(cards),
        impostor_index=impostor_index,
        dimension=DIM_CATEGORY,
        majority_value=FALLBACK_MAJORITY_CATEGORY,
        impostor_value=FALLBACK_IMPOSTOR_CATEGORY,
        condition=FALLBACK_CONDITION,
        is_fallback=True,
    )


def build_impostor_round(
    catalog: EntityCatalog,
    difficulty: str,
    last_dimension: Optional[str] = None,
    rng: Optional[random.Random] = None,
    attempts_per_dimension: int = IMPOSTOR_ATTEMPTS_PER_DIMENSION,
    dev_metrics_out: Optional[Dict[str, Any]] = None,
) -> ImpostorRound:
    rng = resolve_rng(rng)
    started = perf_counter()
    card_count = difficulty_card_count(difficulty)
    pool = catalog.playable()

    attempts_by_dimension: Dict[str, int] = {}
    for dimension in dimension_order(last_dimension, rng):
        round_, spent = try_dimension(pool, dimension, card_count, rng, attempts_per_dimension)
        attempts_by_dimension[dimension] = spent
        if round_ is not None:
            logger.debug(
                "impostor round accepted on %s after %d attempts (%s)",
                dimension,
                spent,
                round_.condition,
            )
            write_dev_metrics(
                dev_metrics_out,
                {
                    "attempts_by_dimension": attempts_by_dimension,
                    "fallback_used": False,
                    "elapsed_ms": round3((perf_counter() - started) * 1000.0),
                },
            )
            return round_

    logger.warning(
        "impostor search exhausted every dimension for %s difficulty; using %s/%s fallback",
        difficulty,
        FALLBACK_MAJORITY_CATEGORY,
        FALLBACK_IMPOSTOR_CATEGORY,
    )
    round_ = build_fallback_round(pool, card_count, rng)
    write_dev_metrics(
        dev_metrics_out,
        {
            "attempts_by_dimension": attempts_by_dimension,
            "fallback_used": True,
            "elapsed_ms": round3((perf_counter() - started) * 1000.0),
        },
    )
    return round_


def lineup_split_holds(round_: ImpostorRound) -> bool:
    """True when every majority card carries the anchor value and the impostor does not."""
    anchor: Hashable = round_.majority_value
    if any(dimension_value(c, round_.dimension) != anchor for c in round_.majority):
        return False
    return dimension_value(round_.impostor, round_.dimension) != anchor

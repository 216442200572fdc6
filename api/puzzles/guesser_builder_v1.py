from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from time import perf_counter
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

from api.puzzles.candidate_sampler_v1 import shuffled
from api.puzzles.compatibility_v1 import are_compatible
from api.puzzles.constants import (
    GUESSER_MAX_ATTEMPTS,
    GUESSER_MAX_MATCHES,
    GUESSER_MIN_MATCHES,
    GUESSER_PREDICATE_COUNT,
)
from api.puzzles.predicates_v1 import Predicate, all_predicates, filter_matching
from api.puzzles.utils import puzzle_fingerprint, resolve_rng, round3, write_dev_metrics
from catalog.entities import Entity
from catalog.provider import EntityCatalog

VERSION = "guesser_builder_v1"

STATUS_OK = "OK"
STATUS_GENERATION_FAILED = "GENERATION_FAILED"

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GuesserPuzzle:
    predicates: Tuple[Predicate, ...]
    matches: Tuple[Entity, ...]

    status = STATUS_OK

    @property
    def ok(self) -> bool:
        return True

    @property
    def match_ids(self) -> Tuple[int, ...]:
        return tuple(e.id for e in self.matches)

    def is_match(self, entity: Entity) -> bool:
        return entity.id in self.match_ids

    @property
    def puzzle_id(self) -> str:
        return puzzle_fingerprint(
            {
                "predicates": [p.predicate_id for p in self.predicates],
                "matches": list(self.match_ids),
            }
        )

    def to_payload(self) -> Dict[str, Any]:
        return {
            "status": self.status,
            "version": VERSION,
            "puzzle_id": self.puzzle_id,
            "conditions": [p.to_payload() for p in self.predicates],
            "condition_labels": [p.label for p in self.predicates],
            "match_count": len(self.matches),
            "matches": [e.to_payload() for e in self.matches],
        }


@dataclass(frozen=True)
class GenerationFailure:
    code: str
    attempts: int
    message: str

    status = STATUS_GENERATION_FAILED

    @property
    def ok(self) -> bool:
        return False

    def to_unknown(self) -> Dict[str, Any]:
        return {
            "code": self.code,
            "attempts": self.attempts,
            "message": self.message,
        }

    def to_payload(self) -> Dict[str, Any]:
        return {
            "status": self.status,
            "version": VERSION,
            "failure": self.to_unknown(),
        }


GuesserResult = Union[GuesserPuzzle, GenerationFailure]


def _greedy_selection(
    ordered: Sequence[Predicate],
    pool: Sequence[Entity],
    wanted: int,
) -> List[Predicate]:
    selected: List[Predicate] = []
    for predicate in ordered:
        if len(selected) >= wanted:
            break
        trial = selected + [predicate]
        if not are_compatible(trial):
            continue
        # Keep only predicates that leave at least one card standing.
        if not filter_matching(pool, trial):
            continue
        selected.append(predicate)
    return selected


def build_guesser_puzzle(
    catalog: EntityCatalog,
    rng: Optional[random.Random] = None,
    max_attempts: int = GUESSER_MAX_ATTEMPTS,
    dev_metrics_out: Optional[Dict[str, Any]] = None,
) -> GuesserResult:
    rng = resolve_rng(rng)
    started = perf_counter()
    pool = catalog.playable()
    predicates = all_predicates()
    out_of_range = 0
    short_selection = 0

    for attempt in range(1, max_attempts + 1):
        selected = _greedy_selection(shuffled(predicates, rng), pool, GUESSER_PREDICATE_COUNT)
        if len(selected) != GUESSER_PREDICATE_COUNT:
            short_selection += 1
            continue

        matches = filter_matching(pool, selected)
        if not (GUESSER_MIN_MATCHES <= len(matches) <= GUESSER_MAX_MATCHES):
            out_of_range += 1
            continue

        logger.debug(
            "guesser puzzle accepted after %d attempts: %s (%d matches)",
            attempt,
            ", ".join(p.predicate_id for p in selected),
            len(matches),
        )
        write_dev_metrics(
            dev_metrics_out,
            {
                "attempts": attempt,
                "short_selection_rejects": short_selection,
                "match_count_rejects": out_of_range,
                "elapsed_ms": round3((perf_counter() - started) * 1000.0),
            },
        )
        return GuesserPuzzle(predicates=tuple(selected), matches=tuple(matches))

    logger.warning("guesser generation exhausted %d attempts", max_attempts)
    write_dev_metrics(
        dev_metrics_out,
        {
            "attempts": max_attempts,
            "short_selection_rejects": short_selection,
            "match_count_rejects": out_of_range,
            "elapsed_ms": round3((perf_counter() - started) * 1000.0),
        },
    )
    return GenerationFailure(
        code="GUESSER_GENERATION_EXHAUSTED",
        attempts=max_attempts,
        message=(
            f"No predicate triple matched between {GUESSER_MIN_MATCHES} and "
            f"{GUESSER_MAX_MATCHES} cards within {max_attempts} attempts."
        ),
    )

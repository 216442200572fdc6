from __future__ import annotations

import random
from typing import Any, Dict, List, Optional

from api.puzzles.constants import GUESSER_MAX_WRONG_GUESSES
from api.puzzles.guesser_builder_v1 import GuesserPuzzle, GuesserResult, build_guesser_puzzle
from api.puzzles.round_report_v1 import (
    GAME_ROYALE_GUESSER,
    OUTCOME_GAVE_UP,
    OUTCOME_LOST,
    OUTCOME_WON,
    RoundReporter,
    build_round_metadata,
    report_round,
)
from api.puzzles.utils import resolve_rng
from catalog.entities import Entity
from catalog.provider import SUGGEST_DEFAULT_LIMIT, EntityCatalog

VERSION = "guesser_session_v1"

GUESS_CORRECT = "correct"
GUESS_WRONG = "wrong"
GUESS_ALREADY_GUESSED = "already_guessed"
GUESS_GAME_OVER = "game_over"

STATE_IN_PROGRESS = "in_progress"


class GuesserSession:
    """One Royale Guesser puzzle and the player's guesses against it."""

    def __init__(
        self,
        puzzle: GuesserPuzzle,
        catalog: EntityCatalog,
        reporter: Optional[RoundReporter] = None,
        max_wrong_guesses: int = GUESSER_MAX_WRONG_GUESSES,
    ):
        self.puzzle = puzzle
        self.catalog = catalog
        self.reporter = reporter
        self.max_wrong_guesses = max_wrong_guesses
        self.found: List[Entity] = []
        self.wrong: List[Entity] = []
        self.gave_up = False
        self._reported = False

    @property
    def won(self) -> bool:
        return len(self.puzzle.matches) > 0 and len(self.found) == len(self.puzzle.matches)

    @property
    def game_over(self) -> bool:
        return self.won or self.gave_up or len(self.wrong) >= self.max_wrong_guesses

    @property
    def state(self) -> str:
        if self.won:
            return OUTCOME_WON
        if self.gave_up:
            return OUTCOME_GAVE_UP
        if len(self.wrong) >= self.max_wrong_guesses:
            return OUTCOME_LOST
        return STATE_IN_PROGRESS

    @property
    def wrong_guesses_left(self) -> int:
        return max(0, self.max_wrong_guesses - len(self.wrong))

    def guessed_ids(self) -> set[int]:
        return {e.id for e in self.found} | {e.id for e in self.wrong}

    def remaining(self) -> List[Entity]:
        found_ids = {e.id for e in self.found}
        return [e for e in self.puzzle.matches if e.id not in found_ids]

    def guess(self, entity: Entity) -> str:
        if self.game_over:
            return GUESS_GAME_OVER
        if entity.id in self.guessed_ids():
            return GUESS_ALREADY_GUESSED

        if self.puzzle.is_match(entity):
            self.found.append(entity)
            outcome = GUESS_CORRECT
        else:
            self.wrong.append(entity)
            outcome = GUESS_WRONG

        if self.game_over:
            self._report()
        return outcome

    def give_up(self) -> None:
        if self.game_over:
            return
        self.gave_up = True
        self._report()

    def suggest(self, query: str, limit: int = SUGGEST_DEFAULT_LIMIT) -> List[Entity]:
        return self.catalog.suggest(query, limit=limit, exclude_ids=self.guessed_ids())

    def to_payload(self, reveal: bool = False) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "version": VERSION,
            "state": self.state,
            "conditions": [p.to_payload() for p in self.puzzle.predicates],
            "match_count": len(self.puzzle.matches),
            "found": [e.to_payload() for e in self.found],
            "wrong": [e.to_payload() for e in self.wrong],
            "wrong_guesses_left": self.wrong_guesses_left,
        }
        if reveal or self.game_over:
            payload["remaining"] = [e.to_payload() for e in self.remaining()]
        return payload

    def _report(self) -> None:
        if self._reported:
            return
        self._reported = True
        metadata = build_round_metadata(
            GAME_ROYALE_GUESSER,
            conditions=[p.predicate_id for p in self.puzzle.predicates],
            match_count=len(self.puzzle.matches),
            found_count=len(self.found),
            wrong_count=len(self.wrong),
        )
        report_round(self.reporter, self.state, metadata)


class GuesserGame:
    """Host-side holder that swaps in a new puzzle only when generation succeeds.

    A failed generation leaves the current session (possibly a finished one)
    in place; the failure is still returned so callers can surface it.
    """

    def __init__(
        self,
        catalog: EntityCatalog,
        rng: Optional[random.Random] = None,
        reporter: Optional[RoundReporter] = None,
    ):
        self.catalog = catalog
        self.rng = resolve_rng(rng)
        self.reporter = reporter
        self.session: Optional[GuesserSession] = None

    def new_puzzle(self) -> GuesserResult:
        result = build_guesser_puzzle(self.catalog, rng=self.rng)
        if isinstance(result, GuesserPuzzle):
            self.session = GuesserSession(result, self.catalog, reporter=self.reporter)
        return result

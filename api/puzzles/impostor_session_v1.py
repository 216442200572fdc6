from __future__ import annotations

import random
from typing import Any, Dict, Optional

from api.puzzles.constants import (
    IMPOSTOR_CORRECT_BONUS,
    IMPOSTOR_TIME_POINTS,
    difficulty_card_count,
    difficulty_time_limit,
)
from api.puzzles.impostor_builder_v1 import ImpostorRound, build_impostor_round
from api.puzzles.round_report_v1 import (
    GAME_IMPOSTOR,
    OUTCOME_LOST,
    RoundReporter,
    build_round_metadata,
    compute_impostor_xp,
    report_round,
)
from api.puzzles.utils import resolve_rng
from catalog.provider import EntityCatalog

VERSION = "impostor_session_v1"

# Selecting this index means the round timer ran out.
TIMEOUT_INDEX = -1


class ImpostorGameOverError(RuntimeError):
    code = "IMPOSTOR_GAME_OVER"

    def __init__(self) -> None:
        super().__init__(f"{self.code}: the game has ended; start a new session")

    def to_unknown(self) -> Dict[str, Any]:
        return {"code": self.code, "message": "No further rounds are dealt after a wrong pick."}


def score_correct_pick(time_left: int, time_limit: int) -> int:
    clamped = min(max(int(time_left), 0), int(time_limit))
    return (IMPOSTOR_TIME_POINTS * clamped) // int(time_limit) + IMPOSTOR_CORRECT_BONUS


class ImpostorSession:
    def __init__(
        self,
        catalog: EntityCatalog,
        difficulty: str,
        rng: Optional[random.Random] = None,
        reporter: Optional[RoundReporter] = None,
    ):
        # Validates the difficulty up front.
        difficulty_card_count(difficulty)
        self.catalog = catalog
        self.difficulty = difficulty
        self.time_limit = difficulty_time_limit(difficulty)
        self.rng = resolve_rng(rng)
        self.reporter = reporter
        self.score = 0
        self.streak = 0
        self.rounds_played = 0
        self.game_over = False
        self.current: Optional[ImpostorRound] = None
        self.last_dimension: Optional[str] = None

    def next_round(self) -> ImpostorRound:
        if self.game_over:
            raise ImpostorGameOverError()
        round_ = build_impostor_round(
            self.catalog,
            self.difficulty,
            last_dimension=self.last_dimension,
            rng=self.rng,
        )
        self.current = round_
        self.last_dimension = round_.dimension
        return round_

    def select(self, index: int, time_left: int = 0) -> Dict[str, Any]:
        if self.game_over:
            raise ImpostorGameOverError()
        if self.current is None:
            raise RuntimeError("no round has been dealt yet; call next_round() first")

        round_ = self.current
        self.current = None
        self.rounds_played += 1

        if index != TIMEOUT_INDEX and round_.is_correct(index):
            points = score_correct_pick(time_left, self.time_limit)
            self.score += points
            self.streak += 1
            return {
                "correct": True,
                "points": points,
                "score": self.score,
                "streak": self.streak,
                "impostor_index": round_.impostor_index,
            }

        self.game_over = True
        self._report(round_)
        return {
            "correct": False,
            "points": 0,
            "score": self.score,
            "streak": self.streak,
            "impostor_index": round_.impostor_index,
            "timed_out": index == TIMEOUT_INDEX,
        }

    def _report(self, final_round: ImpostorRound) -> None:
        metadata = build_round_metadata(
            GAME_IMPOSTOR,
            difficulty=self.difficulty,
            streak=self.streak,
            score=self.score,
            rounds_played=self.rounds_played,
            final_dimension=final_round.dimension,
            xp_grant=compute_impostor_xp(self.streak),
        )
        report_round(self.reporter, OUTCOME_LOST, metadata)

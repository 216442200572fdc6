from __future__ import annotations

from typing import Any, Callable, Dict, Optional

from api.puzzles.constants import ENGINE_VERSION, XP_VALUES

VERSION = "round_report_v1"

GAME_IMPOSTOR = "impostor"
GAME_ROYALE_GUESSER = "royale_guesser"

OUTCOME_WON = "won"
OUTCOME_LOST = "lost"
OUTCOME_GAVE_UP = "gave_up"

# Host-side progress tracker: reporter(outcome, metadata).
RoundReporter = Callable[[str, Dict[str, Any]], None]


def compute_impostor_xp(streak: int) -> Optional[Dict[str, Any]]:
    if isinstance(streak, bool) or not isinstance(streak, int) or streak <= 0:
        return None
    values = XP_VALUES[GAME_IMPOSTOR]
    amount = values["correct"] * streak
    if streak >= 10:
        amount += values["streak10"]
    elif streak >= 5:
        amount += values["streak5"]
    elif streak >= 3:
        amount += values["streak3"]
    return {"kind": "game:impostor:streak", "amount": amount}


def build_round_metadata(game_id: str, **fields: Any) -> Dict[str, Any]:
    metadata: Dict[str, Any] = {
        "game_id": game_id,
        "engine_version": ENGINE_VERSION,
        "report_version": VERSION,
    }
    for key in sorted(fields):
        metadata[key] = fields[key]
    return metadata


def report_round(reporter: Optional[RoundReporter], outcome: str, metadata: Dict[str, Any]) -> None:
    if reporter is None:
        return
    reporter(outcome, metadata)

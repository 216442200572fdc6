"""Ambiguity check for impostor lineups.

A lineup is ambiguous when some non-impostor card stands alone among the other
non-impostor cards on a visible attribute. Such a card reads as a second valid
"different one", so the round is rejected.
"""
from __future__ import annotations

from collections import Counter
from typing import Callable, Dict, Hashable, List, Sequence, Tuple

from api.puzzles.constants import AMBIGUITY_RULES_VERSION
from catalog.entities import Entity

VERSION = AMBIGUITY_RULES_VERSION

ATTR_CATEGORY = "category"
ATTR_RARITY = "rarity"
ATTR_ELIXIR = "elixir"

# Checked in this order for every non-impostor card.
_VISIBLE_ATTRIBUTES: Tuple[Tuple[str, Callable[[Entity], Hashable]], ...] = (
    (ATTR_CATEGORY, lambda e: e.category),
    (ATTR_RARITY, lambda e: e.rarity),
    (ATTR_ELIXIR, lambda e: e.elixir),
)


def _majority_cards(cards: Sequence[Entity], impostor_index: int) -> List[Tuple[int, Entity]]:
    if impostor_index < 0 or impostor_index >= len(cards):
        raise IndexError(f"impostor_index {impostor_index} outside lineup of {len(cards)}")
    return [(i, card) for i, card in enumerate(cards) if i != impostor_index]


def _attribute_counts(majority: Sequence[Tuple[int, Entity]]) -> Dict[str, Counter]:
    return {
        name: Counter(read(card) for _, card in majority)
        for name, read in _VISIBLE_ATTRIBUTES
    }


def find_ambiguous_cards(cards: Sequence[Entity], impostor_index: int) -> List[Tuple[int, str]]:
    """Return ``(lineup index, attribute)`` for every unique-looking non-impostor card."""
    majority = _majority_cards(cards, impostor_index)
    counts = _attribute_counts(majority)
    out: List[Tuple[int, str]] = []
    for index, card in majority:
        for name, read in _VISIBLE_ATTRIBUTES:
            # The card itself is in the count; a sibling makes it at least 2.
            if counts[name][read(card)] < 2:
                out.append((index, name))
    return out


def has_no_ambiguity(cards: Sequence[Entity], impostor_index: int) -> bool:
    majority = _majority_cards(cards, impostor_index)
    counts = _attribute_counts(majority)
    for _, card in majority:
        for name, read in _VISIBLE_ATTRIBUTES:
            if counts[name][read(card)] < 2:
                return False
    return True

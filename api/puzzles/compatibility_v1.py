from __future__ import annotations

from typing import Any, Dict, List, Sequence

from api.puzzles.constants import (
    COMPATIBILITY_RULES_VERSION,
    DIM_ATTACK_LOCALITY,
    DIM_ATTACK_SPEED,
    DIM_CATEGORY,
    DIM_ELIXIR,
    DIM_ELIXIR_RANGE,
    DIM_TARGETS_AIR,
)
from api.puzzles.predicates_v1 import Predicate

VERSION = COMPATIBILITY_RULES_VERSION

# Exact cost and cost band are two views of one attribute.
_EXCLUSIVE_DIMENSION_PAIRS = frozenset({frozenset({DIM_ELIXIR, DIM_ELIXIR_RANGE})})

# Spells carry no combat attributes.
_SPELL_EXCLUDED_DIMENSIONS = frozenset({DIM_ATTACK_LOCALITY, DIM_ATTACK_SPEED, DIM_TARGETS_AIR})

VIOLATION_DUPLICATE_DIMENSION = "DUPLICATE_DIMENSION"
VIOLATION_EXCLUSIVE_DIMENSIONS = "EXCLUSIVE_DIMENSIONS"
VIOLATION_SPELL_COMBAT_ATTRIBUTE = "SPELL_COMBAT_ATTRIBUTE"


def _is_spell_predicate(predicate: Predicate) -> bool:
    return predicate.dimension == DIM_CATEGORY and predicate.value == "Spell"


def compatibility_violations(selected: Sequence[Predicate]) -> List[Dict[str, Any]]:
    violations: List[Dict[str, Any]] = []
    dimensions = [p.dimension for p in selected]

    for i in range(len(dimensions)):
        for j in range(i + 1, len(dimensions)):
            if dimensions[i] == dimensions[j]:
                violations.append(
                    {
                        "code": VIOLATION_DUPLICATE_DIMENSION,
                        "predicates": [selected[i].predicate_id, selected[j].predicate_id],
                    }
                )
            elif frozenset({dimensions[i], dimensions[j]}) in _EXCLUSIVE_DIMENSION_PAIRS:
                violations.append(
                    {
                        "code": VIOLATION_EXCLUSIVE_DIMENSIONS,
                        "predicates": [selected[i].predicate_id, selected[j].predicate_id],
                    }
                )

    spell_ids = [p.predicate_id for p in selected if _is_spell_predicate(p)]
    if spell_ids:
        for predicate in selected:
            if predicate.dimension in _SPELL_EXCLUDED_DIMENSIONS:
                violations.append(
                    {
                        "code": VIOLATION_SPELL_COMBAT_ATTRIBUTE,
                        "predicates": [spell_ids[0], predicate.predicate_id],
                    }
                )

    return violations


def are_compatible(selected: Sequence[Predicate]) -> bool:
    return len(compatibility_violations(selected)) == 0

from typing import Any, Dict

# --- Versions (core) ---
ENGINE_VERSION = "0.3.0"
CATALOG_VERSION = "cards_v1"
PREDICATE_LIBRARY_VERSION = "predicate_library_v1"
COMPATIBILITY_RULES_VERSION = "compatibility_rules_v1"
AMBIGUITY_RULES_VERSION = "ambiguity_rules_v1"

# --- Dimensions (guesser predicates) ---
DIM_RARITY = "rarity"
DIM_CATEGORY = "category"
DIM_ELIXIR = "elixir"
DIM_ELIXIR_RANGE = "elixir_range"
DIM_ATTACK_LOCALITY = "attack_locality"
DIM_TARGETS_AIR = "targets_air"
DIM_ATTACK_SPEED = "attack_speed"
DIM_EVOLUTION = "evolution"

# --- Dimensions (impostor rounds) ---
DIM_RELEASE_YEAR = "release_year"

IMPOSTOR_DIMENSIONS = (
    DIM_CATEGORY,
    DIM_RARITY,
    DIM_ELIXIR,
    DIM_RELEASE_YEAR,
    DIM_ATTACK_LOCALITY,
    DIM_TARGETS_AIR,
)

# Category and rarity rounds read alike to players; never serve them back to back.
IMPOSTOR_SIMILAR_DIMENSION_FAMILY = frozenset({DIM_CATEGORY, DIM_RARITY})

# --- Predicate domains ---
GUESSER_RARITIES = ("Common", "Rare", "Epic", "Legendary", "Champion")
GUESSER_CATEGORIES = ("Troop", "Spell", "Building", "Champion")
GUESSER_ELIXIR_COSTS = (1, 2, 3, 4, 5, 6, 7, 8, 9, 10)
GUESSER_ELIXIR_RANGES = (
    (1, 3, "1-3 Elixir"),
    (4, 6, "4-6 Elixir"),
    (7, 10, "7+ Elixir"),
)
ATTACK_SPEED_LABELS = {
    "very-fast": "Very Fast attack",
    "fast": "Fast attack",
    "medium": "Medium attack",
    "slow": "Slow attack",
    "very-slow": "Very Slow attack",
}

# --- Search budgets ---
GUESSER_MAX_ATTEMPTS = 500
GUESSER_PREDICATE_COUNT = 3
GUESSER_MIN_MATCHES = 1
GUESSER_MAX_MATCHES = 10
IMPOSTOR_ATTEMPTS_PER_DIMENSION = 20

# --- Difficulty ---
DIFFICULTY_EASY = "easy"
DIFFICULTY_MEDIUM = "medium"
DIFFICULTY_HARD = "hard"

DIFFICULTY_CONFIG: Dict[str, Dict[str, int]] = {
    DIFFICULTY_EASY: {"card_count": 4, "time_limit": 30},
    DIFFICULTY_MEDIUM: {"card_count": 5, "time_limit": 20},
    DIFFICULTY_HARD: {"card_count": 6, "time_limit": 15},
}

# --- Impostor fallback ---
FALLBACK_MAJORITY_CATEGORY = "Troop"
FALLBACK_IMPOSTOR_CATEGORY = "Spell"
FALLBACK_CONDITION = "All others are Troops."

# --- Sessions ---
GUESSER_MAX_WRONG_GUESSES = 5
IMPOSTOR_CORRECT_BONUS = 50
IMPOSTOR_TIME_POINTS = 100

# --- Progress reporting ---
XP_VALUES: Dict[str, Dict[str, int]] = {
    "impostor": {
        "correct": 30,
        "streak3": 50,
        "streak5": 100,
        "streak10": 200,
    },
}

DEV_METRICS_ENV_VAR = "ROYALE_ENGINE_DEV_METRICS"


class UnknownDifficultyError(ValueError):
    code = "UNKNOWN_DIFFICULTY"

    def __init__(self, difficulty: Any):
        self.difficulty = difficulty
        super().__init__(
            f"{self.code}: {difficulty!r} is not one of {', '.join(sorted(DIFFICULTY_CONFIG))}"
        )

    def to_unknown(self) -> Dict[str, Any]:
        return {
            "code": self.code,
            "difficulty": str(self.difficulty),
            "allowed": sorted(DIFFICULTY_CONFIG),
        }


def difficulty_card_count(difficulty: str) -> int:
    config = DIFFICULTY_CONFIG.get(difficulty)
    if config is None:
        raise UnknownDifficultyError(difficulty)
    return int(config["card_count"])


def difficulty_time_limit(difficulty: str) -> int:
    config = DIFFICULTY_CONFIG.get(difficulty)
    if config is None:
        raise UnknownDifficultyError(difficulty)
    return int(config["time_limit"])

from __future__ import annotations

import random
import unittest

from api.puzzles.candidate_sampler_v1 import (
    can_split,
    dimension_value,
    draw_lineup,
    group_by_dimension,
    pick_value_pair,
    sample_entities,
    splice_at_random,
)
from tests.catalog_fixture_harness import make_entity, scenario_a_catalog


class GroupingTests(unittest.TestCase):
    def test_not_applicable_values_are_dropped(self) -> None:
        catalog = scenario_a_catalog()
        groups = group_by_dimension(catalog.playable(), "targets_air")

        self.assertEqual(list(groups), [False])
        self.assertEqual(len(groups[False]), 5)

    def test_release_year_groups_by_year(self) -> None:
        catalog = scenario_a_catalog()

        self.assertEqual(dimension_value(catalog.get(1), "release_year"), 2016)

    def test_unknown_dimension_raises(self) -> None:
        with self.assertRaises(ValueError):
            dimension_value(make_entity("Knight"), "elixir_range")

    def test_can_split_needs_two_values_and_a_majority_pool(self) -> None:
        groups = group_by_dimension(scenario_a_catalog().playable(), "rarity")

        self.assertTrue(can_split(groups, 5))
        self.assertFalse(can_split(groups, 6))
        self.assertFalse(can_split({"Common": groups["Common"]}, 3))


class DrawingTests(unittest.TestCase):
    def test_majority_value_is_drawn_from_pools_large_enough(self) -> None:
        groups = {
            "Common": [make_entity(f"Common {i}") for i in range(5)],
            "Epic": [make_entity("Epic", rarity="Epic")],
            "Rare": [make_entity(f"Rare {i}", rarity="Rare") for i in range(2)],
        }
        for seed in range(25):
            majority_value, impostor_value = pick_value_pair(groups, 4, random.Random(seed))
            self.assertEqual(majority_value, "Common")
            self.assertIn(impostor_value, {"Epic", "Rare"})

    def test_no_pair_when_no_pool_can_seat_the_majority(self) -> None:
        groups = {"Common": [make_entity("Common")], "Epic": [make_entity("Epic", rarity="Epic")]}

        self.assertIsNone(pick_value_pair(groups, 3, random.Random(1)))

    def test_splice_reaches_every_slot(self) -> None:
        majority = [make_entity(f"Troop {i}") for i in range(3)]
        impostor = make_entity("Spell", category="Spell")
        rng = random.Random(7)

        seen = set()
        for _ in range(200):
            cards, index = splice_at_random(majority, impostor, rng)
            self.assertIs(cards[index], impostor)
            self.assertEqual([c for c in cards if c is not impostor], majority)
            seen.add(index)
        self.assertEqual(seen, {0, 1, 2, 3})

    def test_sampling_is_without_replacement(self) -> None:
        pool = [make_entity(f"Troop {i}") for i in range(5)]

        drawn = sample_entities(pool, 5, random.Random(3))
        self.assertEqual(len({e.id for e in drawn}), 5)
        with self.assertRaises(ValueError):
            sample_entities(pool, 6, random.Random(3))

    def test_draw_lineup_is_repeatable_for_a_seed(self) -> None:
        groups = group_by_dimension(scenario_a_catalog().playable(), "category")

        first = draw_lineup(groups, 3, random.Random(42))
        second = draw_lineup(groups, 3, random.Random(42))

        self.assertEqual([c.id for c in first["cards"]], [c.id for c in second["cards"]])
        self.assertEqual(first["impostor_index"], second["impostor_index"])
        self.assertEqual(first["majority_value"], "Troop")
        self.assertEqual(first["cards"][first["impostor_index"]].category, "Spell")


if __name__ == "__main__":
    unittest.main()

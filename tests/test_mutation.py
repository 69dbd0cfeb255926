import random

import pytest

from cozygarden.garden import Garden
from cozygarden.journal import PlantJournal
from cozygarden.mutation import MutationEngine, MutationRule, build_rule_table, combination_key
from cozygarden.plant_types import VARIANT_PLANT_TYPES, PlantType, default_registry


def certain_rules(*pairs):
    """Rules that always fire, one per (parent_a, parent_b, result)."""
    return build_rule_table(MutationRule((a, b), result, 1.0, "rare") for a, b, result in pairs)


def mutation_rate(engine: MutationEngine, garden: Garden, trials: int) -> float:
    hits = 0
    for _ in range(trials):
        if engine.check_for_mutation(2, 2, "tomato", garden) is not None:
            hits += 1
    return hits / trials


class TestRules:
    def test_combination_key_is_order_independent(self):
        assert combination_key("tomato", "basil") == combination_key("basil", "tomato")

    def test_duplicate_rules_are_rejected(self):
        with pytest.raises(ValueError):
            build_rule_table(
                [
                    MutationRule(("tomato", "basil"), "tomato_golden", 0.1, "rare"),
                    MutationRule(("basil", "tomato"), "basil_golden", 0.1, "rare"),
                ]
            )

    def test_default_rules_point_at_registered_variants(self, registry):
        engine = MutationEngine(registry)
        for rule in engine.rules.values():
            assert engine.is_variant(rule.result)
        assert engine.get_rule("basil", "tomato").result == "tomato_golden"
        assert engine.get_base_type("tulip_purple") == "tulip"

    def test_unknown_rarity_falls_back_to_common_color(self):
        assert MutationEngine.get_rarity_border_color("mythic") == MutationEngine.get_rarity_border_color("common")


class TestRegistration:
    def test_variants_are_added_once(self):
        registry = default_registry()
        MutationEngine(registry)
        size = len(registry)
        MutationEngine(registry)
        assert len(registry) == size == 10

    def test_registration_never_overwrites(self):
        registry = default_registry()
        original = registry.get("tomato")
        impostor = PlantType(id="tomato", name="Fake", emoji="?", growth_time=1.0, base_id="basil")
        MutationEngine(registry, variants=VARIANT_PLANT_TYPES + (impostor,))
        assert registry.get("tomato") is original
        assert not registry.is_variant("tomato")


class TestCheckForMutation:
    def test_no_rule_means_no_mutation(self, garden, lucky_rng, registry):
        engine = MutationEngine(registry, rng=lucky_rng)
        garden.plant_seed("carrot", 2, 3)
        assert engine.check_for_mutation(2, 2, "tomato", garden) is None

    def test_success_reports_variant_and_fires_callback(self, garden, lucky_rng, registry):
        engine = MutationEngine(registry, rng=lucky_rng)
        seen = []
        engine.on_mutation_success = seen.append
        garden.plant_seed("basil", 2, 3)

        result = engine.check_for_mutation(2, 2, "tomato", garden)
        assert result.variant_seed == "tomato_golden"
        assert seen == [result]

    def test_variant_harvest_never_mutates(self, garden, lucky_rng, registry):
        rules = certain_rules(("tomato_golden", "basil", "basil_golden"))
        engine = MutationEngine(registry, rng=lucky_rng, rules=rules)
        garden.plant_seed("basil", 2, 3)
        for _ in range(100):
            assert engine.check_for_mutation(2, 2, "tomato_golden", garden) is None

    def test_variant_neighbors_are_skipped(self, garden, lucky_rng, registry):
        rules = certain_rules(("tomato", "basil_golden", "tomato_golden"))
        engine = MutationEngine(registry, rng=lucky_rng, rules=rules)
        garden.plant_seed("basil_golden", 2, 3)
        assert engine.check_for_mutation(2, 2, "tomato", garden) is None

    def test_first_qualifying_neighbor_in_scan_order_wins(self, garden, lucky_rng, registry):
        rules = certain_rules(("tomato", "basil", "first"), ("tomato", "tulip", "second"))
        engine = MutationEngine(registry, rng=lucky_rng, rules=rules)
        # (3, 3) is the last Moore offset, (1, 1) the first.
        garden.plant_seed("basil", 3, 3)
        garden.plant_seed("tulip", 1, 1)
        assert engine.check_for_mutation(2, 2, "tomato", garden).variant_seed == "second"

    def test_does_not_modify_garden(self, garden, lucky_rng, registry):
        engine = MutationEngine(registry, rng=lucky_rng)
        garden.plant_seed("tomato", 2, 2)
        garden.plant_seed("basil", 2, 3)
        before = garden.to_snapshot()
        engine.check_for_mutation(2, 2, "tomato", garden)
        assert garden.to_snapshot() == before

    def test_observed_rate_matches_base_chance(self, garden, registry):
        engine = MutationEngine(registry, rng=random.Random(42))
        garden.plant_seed("tomato", 2, 2)
        garden.plant_seed("basil", 2, 3)
        assert mutation_rate(engine, garden, 20000) == pytest.approx(0.10, abs=0.01)

    def test_full_mastery_doubles_the_chance(self, garden, registry):
        journal = PlantJournal()
        journal.record_harvest("tomato", 100)
        engine = MutationEngine(registry, journal=journal, rng=random.Random(42))
        garden.plant_seed("tomato", 2, 2)
        garden.plant_seed("basil", 2, 3)
        assert engine.mutation_multiplier("tomato") == 2.0
        assert mutation_rate(engine, garden, 20000) == pytest.approx(0.20, abs=0.015)

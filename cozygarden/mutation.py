"""Cross-breeding: harvesting next to the right neighbor may yield a variant seed."""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from typing import Callable, Dict, Iterable, Optional, Tuple

from .garden import Garden
from .journal import PlantJournal
from .plant_types import VARIANT_PLANT_TYPES, PlantType, PlantTypeRegistry

logger = logging.getLogger(__name__)


def combination_key(type_a: str, type_b: str) -> str:
    """Order-independent key for a pair of plant types."""

    return "+".join(sorted((type_a, type_b)))


@dataclass(frozen=True)
class MutationRule:
    parents: Tuple[str, str]
    result: str
    base_chance: float
    rarity: str
    description: str = ""

    @property
    def key(self) -> str:
        return combination_key(*self.parents)


def build_rule_table(rules: Iterable[MutationRule]) -> Dict[str, MutationRule]:
    table: Dict[str, MutationRule] = {}
    for rule in rules:
        if rule.key in table:
            raise ValueError(f"Duplicate mutation rule for {rule.key}")
        table[rule.key] = rule
    return table


MUTATION_RULES: Dict[str, MutationRule] = build_rule_table(
    (
        MutationRule(("tomato", "basil"), "tomato_golden", 0.10, "rare",
                     "Golden tomato: grown beside basil it turns special."),
        MutationRule(("tulip", "tulip"), "tulip_purple", 0.10, "rare",
                     "Purple tulip: a rare cross between two tulips."),
        MutationRule(("sunflower", "tulip"), "sunflower_pink", 0.08, "epic",
                     "Pink sunflower: a very rare variant!"),
        MutationRule(("carrot", "basil"), "carrot_rainbow", 0.08, "epic",
                     "Rainbow carrot: the herbs changed its color."),
        MutationRule(("basil", "sunflower"), "basil_golden", 0.10, "rare",
                     "Golden basil: soaked up all the sunshine."),
    )
)

RARITY_BORDER_COLORS = {
    "common": "#8B7355",
    "rare": "#FFD700",
    "epic": "#A5DBF8",
    "legendary": "#FF69B4",
}


@dataclass(frozen=True)
class MutationResult:
    variant_seed: str
    rule: MutationRule


class MutationEngine:
    """Rolls for variant seeds when a base plant is harvested.

    The engine only reads the garden; granting the seed is the caller's job.
    """

    def __init__(
        self,
        registry: PlantTypeRegistry,
        journal: Optional[PlantJournal] = None,
        rng: Optional[random.Random] = None,
        rules: Optional[Dict[str, MutationRule]] = None,
        variants: Iterable[PlantType] = VARIANT_PLANT_TYPES,
    ) -> None:
        self.registry = registry
        self.journal = journal
        self.rng = rng or random.Random()
        self.rules = MUTATION_RULES if rules is None else rules
        # Called as on_mutation_success(result) after a successful roll.
        self.on_mutation_success: Optional[Callable[[MutationResult], None]] = None

        added = registry.register_variants(variants)
        logger.debug("Registered %d variant plant types", added)

    def is_variant(self, type_id: str) -> bool:
        return self.registry.is_variant(type_id)

    def get_base_type(self, type_id: str) -> Optional[str]:
        return self.registry.base_type_of(type_id)

    def get_rule(self, type_a: str, type_b: str) -> Optional[MutationRule]:
        """Return the rule for this pair in either order, or None."""

        return self.rules.get(combination_key(type_a, type_b))

    def mutation_multiplier(self, type_id: str) -> float:
        if self.journal is None:
            return 1.0
        return self.journal.get_mutation_multiplier(type_id)

    def check_for_mutation(
        self, x: int, y: int, harvested_type: str, garden: Garden
    ) -> Optional[MutationResult]:
        """Roll for a variant seed after harvesting `harvested_type` at (x, y).

        Neighbors are tried in Moore order and the first successful roll wins.
        Variants never breed, on either side of the pair.
        """

        if self.is_variant(harvested_type):
            return None

        multiplier = self.mutation_multiplier(harvested_type)
        for neighbor in garden.get_neighbors(x, y):
            if self.is_variant(neighbor.type):
                continue
            rule = self.get_rule(harvested_type, neighbor.type)
            if rule is None:
                continue

            chance = rule.base_chance * multiplier
            if self.rng.random() < chance:
                result = MutationResult(variant_seed=rule.result, rule=rule)
                logger.info("Mutation at (%d, %d): %s -> %s", x, y, rule.key, rule.result)
                if self.on_mutation_success is not None:
                    self.on_mutation_success(result)
                return result

        return None

    @staticmethod
    def get_rarity_border_color(rarity: str) -> str:
        return RARITY_BORDER_COLORS.get(rarity, RARITY_BORDER_COLORS["common"])

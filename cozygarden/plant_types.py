"""Plant type descriptors and the registry that owns them.

The registry starts with the base crops. Mutation variants are appended once
at startup and existing entries are never overwritten.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, Iterable, Iterator, Optional, Tuple

from .constants import STAGE_PROGRESS_MAX, WILDCARD

logger = logging.getLogger(__name__)


class UnknownPlantTypeError(KeyError):
    """Raised when a type id that was never registered is looked up."""


@dataclass(frozen=True)
class PlantType:
    """Static description of a crop."""

    id: str
    name: str
    emoji: str
    # Seconds needed to complete one growth stage at base speed.
    growth_time: float
    companions: Tuple[str, ...] = ()
    harvest_yield: int = 1
    bonus_multiplier: float = 1.0
    base_id: Optional[str] = None
    rarity: str = "common"
    color: str = "#8B7355"

    @property
    def is_variant(self) -> bool:
        return self.base_id is not None

    @property
    def base_growth_rate(self) -> float:
        """Progress points gained per second with no bonuses."""

        return STAGE_PROGRESS_MAX / self.growth_time

    def likes(self, other_id: str) -> bool:
        """Return True if this type lists `other_id` (or everything) as a companion."""

        return WILDCARD in self.companions or other_id in self.companions


BASE_PLANT_TYPES: Tuple[PlantType, ...] = (
    PlantType(
        id="tomato",
        name="Tomato",
        emoji="🍅",
        growth_time=5.0,
        companions=("basil",),
        bonus_multiplier=1.2,
        color="#FF6B6B",
    ),
    PlantType(
        id="sunflower",
        name="Sunflower",
        emoji="🌻",
        growth_time=4.0,
        companions=(WILDCARD,),
        bonus_multiplier=1.1,
        color="#FFD93D",
    ),
    PlantType(
        id="tulip",
        name="Tulip",
        emoji="🌷",
        growth_time=4.5,
        companions=("tulip",),
        bonus_multiplier=1.15,
        color="#FF69B4",
    ),
    PlantType(
        id="carrot",
        name="Carrot",
        emoji="🥕",
        growth_time=6.0,
        companions=("onion",),
        bonus_multiplier=1.15,
        color="#FF8C00",
    ),
    PlantType(
        id="basil",
        name="Basil",
        emoji="🌿",
        growth_time=3.5,
        companions=("tomato",),
        bonus_multiplier=1.2,
        color="#228B22",
    ),
)

VARIANT_PLANT_TYPES: Tuple[PlantType, ...] = (
    PlantType(
        id="tomato_golden",
        name="Golden Tomato",
        emoji="🍅",
        growth_time=4.5,
        companions=("basil", "sunflower"),
        harvest_yield=2,
        bonus_multiplier=1.3,
        base_id="tomato",
        rarity="rare",
        color="#FFD700",
    ),
    PlantType(
        id="tulip_purple",
        name="Purple Tulip",
        emoji="🌷",
        growth_time=4.0,
        companions=("tulip", WILDCARD),
        harvest_yield=2,
        bonus_multiplier=1.25,
        base_id="tulip",
        rarity="rare",
        color="#9B59B6",
    ),
    PlantType(
        id="sunflower_pink",
        name="Pink Sunflower",
        emoji="🌻",
        growth_time=3.5,
        companions=(WILDCARD,),
        harvest_yield=3,
        bonus_multiplier=1.4,
        base_id="sunflower",
        rarity="epic",
        color="#F2C8DD",
    ),
    PlantType(
        id="carrot_rainbow",
        name="Rainbow Carrot",
        emoji="🥕",
        growth_time=5.0,
        companions=(WILDCARD,),
        harvest_yield=3,
        bonus_multiplier=1.5,
        base_id="carrot",
        rarity="epic",
        color="#A5DBF8",
    ),
    PlantType(
        id="basil_golden",
        name="Golden Basil",
        emoji="🌿",
        growth_time=3.0,
        companions=("tomato", "sunflower"),
        harvest_yield=2,
        bonus_multiplier=1.3,
        base_id="basil",
        rarity="rare",
        color="#D3DB7F",
    ),
)


class PlantTypeRegistry:
    """Maps type ids to `PlantType` descriptors.

    Base types are fixed at construction. Variants may be appended through
    `register_variant`, which refuses to replace an existing id.
    """

    def __init__(self, types: Iterable[PlantType] = BASE_PLANT_TYPES) -> None:
        self._types: Dict[str, PlantType] = {}
        for plant_type in types:
            if plant_type.id in self._types:
                raise ValueError(f"Duplicate plant type id: {plant_type.id}")
            self._types[plant_type.id] = plant_type

    def __contains__(self, type_id: object) -> bool:
        return type_id in self._types

    def __iter__(self) -> Iterator[str]:
        return iter(self._types)

    def __len__(self) -> int:
        return len(self._types)

    def get(self, type_id: str) -> PlantType:
        """Return the descriptor for `type_id`.

        Raises UnknownPlantTypeError if the id is not registered.
        """

        try:
            return self._types[type_id]
        except KeyError:
            raise UnknownPlantTypeError(type_id) from None

    def find(self, type_id: str) -> Optional[PlantType]:
        """Return the descriptor for `type_id`, or None."""

        return self._types.get(type_id)

    def values(self) -> Iterable[PlantType]:
        return self._types.values()

    def register_variant(self, plant_type: PlantType) -> bool:
        """Append a variant type.

        Returns True if it was added, False if the id already existed (the
        existing entry is kept as is).
        """

        if plant_type.id in self._types:
            logger.debug("Plant type %s already registered; skipping", plant_type.id)
            return False
        self._types[plant_type.id] = plant_type
        return True

    def register_variants(self, plant_types: Iterable[PlantType]) -> int:
        """Register several variants and return how many were added."""

        return sum(1 for pt in plant_types if self.register_variant(pt))

    def is_variant(self, type_id: str) -> bool:
        plant_type = self._types.get(type_id)
        return plant_type is not None and plant_type.is_variant

    def base_type_of(self, type_id: str) -> Optional[str]:
        plant_type = self._types.get(type_id)
        return plant_type.base_id if plant_type is not None else None


def default_registry() -> PlantTypeRegistry:
    """Return a fresh registry holding only the base crops."""

    return PlantTypeRegistry(BASE_PLANT_TYPES)

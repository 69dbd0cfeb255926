"""Plant entity and its growth state machine.

Plants never die. When the soil dries out, growth pauses until the plant is
watered again, and no progress is lost.
"""

from __future__ import annotations

import logging
import math
import uuid
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional

from .constants import (
    NEIGHBOR_BONUS_STEP,
    PULSE_DURATION,
    STAGE_PROGRESS_MAX,
    THIRST_THRESHOLD,
    WATER_DECAY_PER_SECOND,
    WIGGLE_DURATION,
)
from .plant_types import PlantType, PlantTypeRegistry

logger = logging.getLogger(__name__)


class GrowthStage(Enum):
    SEED = "seed"
    SPROUT = "sprout"
    GROWING = "growing"
    BLOOMING = "blooming"
    FULL_GROWN = "full_grown"
    READY_TO_HARVEST = "ready_to_harvest"

    @classmethod
    def order(cls) -> List["GrowthStage"]:
        return list(cls)


class WaterStatus(Enum):
    WATERED = "watered"
    PAUSED = "paused"


# Stage advanced to when growth progress completes. FULL_GROWN is promoted to
# READY_TO_HARVEST only through `Plant.check_harvest_ready`.
NEXT_STAGE = {
    GrowthStage.SEED: GrowthStage.SPROUT,
    GrowthStage.SPROUT: GrowthStage.GROWING,
    GrowthStage.GROWING: GrowthStage.BLOOMING,
    GrowthStage.BLOOMING: GrowthStage.FULL_GROWN,
    GrowthStage.FULL_GROWN: GrowthStage.READY_TO_HARVEST,
}

STAGE_NAMES = {
    GrowthStage.SEED: "Seed",
    GrowthStage.SPROUT: "Sprout",
    GrowthStage.GROWING: "Growing",
    GrowthStage.BLOOMING: "Blooming",
    GrowthStage.FULL_GROWN: "Full grown",
    GrowthStage.READY_TO_HARVEST: "Ready to harvest!",
}

STAGE_EMOJI = {
    GrowthStage.SEED: "🌰",
    GrowthStage.SPROUT: "🌱",
    GrowthStage.GROWING: "🌿",
}

TERMINAL_STAGES = (GrowthStage.FULL_GROWN, GrowthStage.READY_TO_HARVEST)


@dataclass(frozen=True)
class HarvestResult:
    type: str
    amount: int


class Plant:
    """A single crop occupying one grid cell."""

    def __init__(self, plant_type: PlantType, x: int, y: int) -> None:
        self.id: str = str(uuid.uuid4())
        self.plant_type = plant_type
        self._x = int(x)
        self._y = int(y)

        self.stage = GrowthStage.SEED
        # Freshly planted seeds start out watered.
        self.water_status = WaterStatus.WATERED
        self.soil_wetness: float = 1.0
        self.growth_progress: float = 0.0
        self.neighbor_bonus: int = 0

        # Local clock for cosmetic effects; never gates state transitions.
        self.age: float = 0.0
        self.wiggle_until: float = 0.0
        self.pulse_until: float = 0.0

    def __repr__(self) -> str:
        return (
            f"<Plant {self.type} at ({self._x}, {self._y}) "
            f"stage={self.stage.value} progress={self.growth_progress:.1f}>"
        )

    # ------------------------------------------------------------------
    # Read-only state
    # ------------------------------------------------------------------
    @property
    def type(self) -> str:
        return self.plant_type.id

    @property
    def x(self) -> int:
        return self._x

    @property
    def y(self) -> int:
        return self._y

    @property
    def stage_index(self) -> int:
        """Position of the current stage in the growth order (0-5)."""

        return GrowthStage.order().index(self.stage)

    @property
    def is_fully_grown(self) -> bool:
        """True once growth has stopped (full grown or ready)."""

        return self.stage in TERMINAL_STAGES

    @property
    def is_ready_to_harvest(self) -> bool:
        return self.stage is GrowthStage.READY_TO_HARVEST

    @property
    def is_paused(self) -> bool:
        """True while growth waits for water."""

        return self.water_status is WaterStatus.PAUSED

    @property
    def needs_water(self) -> bool:
        """True when the soil is below the thirst threshold."""

        return self.soil_wetness < THIRST_THRESHOLD

    @property
    def is_wiggling(self) -> bool:
        """True while the watering wiggle is still showing."""

        return self.age < self.wiggle_until

    @property
    def is_pulsing(self) -> bool:
        """True right after a stage change."""

        return self.age < self.pulse_until

    @property
    def stage_name(self) -> str:
        return STAGE_NAMES[self.stage]

    @property
    def display_emoji(self) -> str:
        """Generic sprout emoji for early stages, the crop emoji after."""

        return STAGE_EMOJI.get(self.stage, self.plant_type.emoji)

    # ------------------------------------------------------------------
    # State machine
    # ------------------------------------------------------------------
    def growth_rate(self, growth_multiplier: float = 1.0) -> float:
        """Progress points per second under the current neighbor bonus."""

        bonus = 1.0 + self.neighbor_bonus * NEIGHBOR_BONUS_STEP
        return self.plant_type.base_growth_rate * bonus * growth_multiplier

    def update(self, dt: float, growth_multiplier: float = 1.0) -> Optional[GrowthStage]:
        """Advance the plant by `dt` seconds.

        Returns the new stage if the plant advanced this tick, otherwise None.
        """

        self.age += dt
        if self.is_fully_grown:
            return None

        self.soil_wetness = max(0.0, self.soil_wetness - dt * WATER_DECAY_PER_SECOND)

        if self.needs_water:
            if not self.is_paused:
                logger.debug("%s at (%d, %d) is waiting for water", self.type, self._x, self._y)
            self.water_status = WaterStatus.PAUSED
            return None

        self.growth_progress += self.growth_rate(growth_multiplier) * dt
        if self.growth_progress >= STAGE_PROGRESS_MAX:
            return self.advance_stage()
        return None

    def advance_stage(self) -> Optional[GrowthStage]:
        """Move to the next growth stage, stopping at FULL_GROWN."""

        if self.is_fully_grown:
            return None
        self.stage = NEXT_STAGE[self.stage]
        self.growth_progress = 0.0
        self.pulse_until = self.age + PULSE_DURATION
        logger.info("%s at (%d, %d) grew to %s", self.type, self._x, self._y, self.stage.value)
        return self.stage

    def check_harvest_ready(self) -> bool:
        """Promote FULL_GROWN to READY_TO_HARVEST.

        Safe to call every tick; returns True only when it promoted.
        """

        if self.stage is not GrowthStage.FULL_GROWN:
            return False
        self.stage = NEXT_STAGE[GrowthStage.FULL_GROWN]
        logger.info("%s at (%d, %d) is ready to harvest", self.type, self._x, self._y)
        return True

    def water(self) -> bool:
        """Refill the soil and clear a pause.

        Growth of a fully grown plant is unaffected, but the call still counts
        as a successful watering. Always returns True.
        """

        self.wiggle_until = self.age + WIGGLE_DURATION
        self.water_status = WaterStatus.WATERED
        self.soil_wetness = 1.0
        return True

    def set_neighbor_bonus(self, bonus: int) -> None:
        """Store the companion count computed by the garden."""

        self.neighbor_bonus = max(0, int(bonus))

    def harvest(self) -> Optional[HarvestResult]:
        """Return the harvest yield if the plant is ready, otherwise None.

        The plant is not removed here; the caller detaches it from the garden.
        """

        if not self.is_ready_to_harvest:
            return None
        return HarvestResult(type=self.type, amount=self.plant_type.harvest_yield)

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------
    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type,
            "x": self._x,
            "y": self._y,
            "stage": self.stage.value,
            "waterStatus": self.water_status.value,
            "growthProgress": self.growth_progress,
            "soilWetness": self.soil_wetness,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any], registry: PlantTypeRegistry) -> "Plant":
        """Rebuild a plant from `to_dict` output.

        Raises ValueError for a corrupt record, including an unknown type.
        """

        if not isinstance(data, dict):
            raise ValueError(f"Plant record must be a dict, got {type(data).__name__}")
        try:
            plant = cls(registry.get(data["type"]), int(data["x"]), int(data["y"]))
            plant.stage = GrowthStage(data.get("stage", GrowthStage.SEED.value))
            progress = float(data.get("growthProgress", 0.0))
            wetness = float(data.get("soilWetness", 1.0))
        except (KeyError, TypeError) as exc:
            raise ValueError(f"Malformed plant record: {data!r}") from exc

        if math.isnan(progress) or math.isnan(wetness):
            raise ValueError(f"Malformed plant record: {data!r}")
        plant.growth_progress = min(max(progress, 0.0), math.nextafter(STAGE_PROGRESS_MAX, 0.0))
        plant.soil_wetness = min(max(wetness, 0.0), 1.0)
        # The water state always follows the soil, whatever was stored.
        if plant.needs_water and not plant.is_fully_grown:
            plant.water_status = WaterStatus.PAUSED
        else:
            plant.water_status = WaterStatus.WATERED
        return plant

"""Rain cloud weather event.

Rain waters the whole garden when it starts and doubles growth speed while it
lasts. Ending is driven by elapsed simulation time, not by a scheduled timer.
"""

from __future__ import annotations

import logging

from .constants import RAIN_DURATION, RAIN_GROWTH_MULTIPLIER
from .garden import Garden

logger = logging.getLogger(__name__)


class RainCloud:
    def __init__(
        self,
        duration: float = RAIN_DURATION,
        multiplier: float = RAIN_GROWTH_MULTIPLIER,
    ) -> None:
        self.duration = duration
        self.multiplier = multiplier
        self.is_raining = False
        self.elapsed = 0.0

    @property
    def growth_multiplier(self) -> float:
        return self.multiplier if self.is_raining else 1.0

    def start(self, garden: Garden) -> bool:
        """Start raining and water every plant. False if it is already raining."""

        if self.is_raining:
            logger.debug("It is already raining")
            return False
        self.is_raining = True
        self.elapsed = 0.0
        watered = garden.water_all()
        logger.info("Rain started; %d plants watered", watered)
        return True

    def update(self, dt: float) -> None:
        if not self.is_raining:
            return
        self.elapsed += dt
        if self.elapsed >= self.duration:
            self.is_raining = False
            logger.info("Rain stopped")

"""Player inventory: gold, seeds and harvested crops."""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Optional

from .constants import INVENTORY_KEY, STARTING_GOLD, STARTING_SEEDS
from .storage import SnapshotStore

logger = logging.getLogger(__name__)


def default_seeds() -> Dict[str, int]:
    """Return the starting seed counts."""

    return dict(STARTING_SEEDS)


def default_crops() -> Dict[str, int]:
    """Return an empty crop count for every starting type."""

    return {k: 0 for k in STARTING_SEEDS}


class Inventory:
    """No weight or capacity limits; counts only ever go to zero, never below."""

    def __init__(self) -> None:
        self.gold: int = STARTING_GOLD
        self.seeds: Dict[str, int] = default_seeds()
        self.crops: Dict[str, int] = default_crops()
        # Called as on_update(inventory) after every change.
        self.on_update: Optional[Callable[["Inventory"], None]] = None

    def _changed(self) -> None:
        if self.on_update is not None:
            self.on_update(self)

    # ------------------------------------------------------------------
    # Seeds
    # ------------------------------------------------------------------
    def add_seeds(self, type_id: str, amount: int = 1) -> None:
        self.seeds[type_id] = self.seeds.get(type_id, 0) + int(amount)
        logger.debug("+%d %s seeds (now %d)", amount, type_id, self.seeds[type_id])
        self._changed()

    def use_seed(self, type_id: str) -> bool:
        """Spend one seed. Returns False if none are left."""

        if self.seeds.get(type_id, 0) <= 0:
            logger.debug("No %s seeds left", type_id)
            return False
        self.seeds[type_id] -= 1
        self._changed()
        return True

    def get_seed_count(self, type_id: str) -> int:
        return self.seeds.get(type_id, 0)

    # ------------------------------------------------------------------
    # Crops
    # ------------------------------------------------------------------
    def add_crop(self, type_id: str, amount: int = 1) -> None:
        self.crops[type_id] = self.crops.get(type_id, 0) + int(amount)
        self._changed()

    def get_crop_count(self, type_id: str) -> int:
        return self.crops.get(type_id, 0)

    def take_crop(self, type_id: str, amount: int = 1) -> int:
        """Remove up to `amount` crops of `type_id`; returns how many were taken."""

        taken = min(max(0, int(amount)), self.crops.get(type_id, 0))
        if taken:
            self.crops[type_id] -= taken
            self._changed()
        return taken

    def take_all_crops(self) -> Dict[str, int]:
        """Remove and return every non-zero crop count."""

        taken = {k: v for k, v in self.crops.items() if v > 0}
        if taken:
            for type_id in taken:
                self.crops[type_id] = 0
            self._changed()
        return taken

    # ------------------------------------------------------------------
    # Gold
    # ------------------------------------------------------------------
    def add_gold(self, amount: int) -> None:
        self.gold += int(amount)
        self._changed()

    def spend_gold(self, amount: int) -> bool:
        """Attempt to spend `amount` gold.

        Returns True on success, False if the balance is insufficient.
        """

        if self.gold < amount:
            logger.debug("Not enough gold (have %d, need %d)", self.gold, amount)
            return False
        self.gold -= int(amount)
        self._changed()
        return True

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------
    def to_snapshot(self) -> Dict[str, Any]:
        return {"gold": self.gold, "seeds": dict(self.seeds), "crops": dict(self.crops)}

    def load_snapshot(self, data: Dict[str, Any]) -> bool:
        try:
            gold = int(data.get("gold", STARTING_GOLD))
            seeds = {str(k): max(0, int(v)) for k, v in (data.get("seeds") or {}).items()}
            crops = {str(k): max(0, int(v)) for k, v in (data.get("crops") or {}).items()}
        except (AttributeError, TypeError, ValueError):
            logger.warning("Ignoring corrupt inventory snapshot")
            return False
        self.gold = max(0, gold)
        self.seeds = seeds
        self.crops = default_crops()
        self.crops.update(crops)
        self._changed()
        return True

    def save(self, store: SnapshotStore) -> None:
        store.save_json(INVENTORY_KEY, self.to_snapshot())

    def load(self, store: SnapshotStore) -> bool:
        data = store.load_json(INVENTORY_KEY)
        if data is None:
            return False
        return self.load_snapshot(data)

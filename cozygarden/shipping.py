"""Shipping bin: crops dropped here are sold at the next daily settlement."""

from __future__ import annotations

import logging
from typing import Any, Dict

from .constants import SHIPPING_KEY
from .inventory import Inventory
from .market import MarketSystem
from .storage import SnapshotStore

logger = logging.getLogger(__name__)


class ShippingBin:
    def __init__(self, x: int = 1, y: int = 1) -> None:
        self.x = x
        self.y = y
        self.contents: Dict[str, int] = {}

    def is_near(self, x: int, y: int) -> bool:
        return abs(x - self.x) <= 1 and abs(y - self.y) <= 1

    def add_crop(self, type_id: str, amount: int = 1) -> None:
        self.contents[type_id] = self.contents.get(type_id, 0) + int(amount)

    def has_items(self) -> bool:
        return any(count > 0 for count in self.contents.values())

    def deposit_all_sellables(self, inventory: Inventory) -> int:
        """Move every harvested crop from `inventory` into the bin."""

        moved = 0
        for type_id, count in inventory.take_all_crops().items():
            self.add_crop(type_id, count)
            moved += count
        return moved

    def calculate_total(self, market: MarketSystem) -> int:
        return sum(market.get_price(type_id) * count for type_id, count in self.contents.items())

    def settle(self, inventory: Inventory, market: MarketSystem) -> int:
        """Pay out the bin's contents at today's prices and empty it."""

        total = self.calculate_total(market)
        if total > 0:
            inventory.add_gold(total)
            logger.info("Shipping settlement: +%dG", total)
        self.contents = {}
        return total

    def to_snapshot(self) -> Dict[str, Any]:
        return {"contents": dict(self.contents)}

    def load_snapshot(self, data: Dict[str, Any]) -> bool:
        try:
            contents = {str(k): max(0, int(v)) for k, v in (data.get("contents") or {}).items()}
        except (AttributeError, TypeError, ValueError):
            logger.warning("Ignoring corrupt shipping bin snapshot")
            return False
        self.contents = contents
        return True

    def save(self, store: SnapshotStore) -> None:
        store.save_json(SHIPPING_KEY, self.to_snapshot())

    def load(self, store: SnapshotStore) -> bool:
        data = store.load_json(SHIPPING_KEY)
        if data is None:
            return False
        return self.load_snapshot(data)

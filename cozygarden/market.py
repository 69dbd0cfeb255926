"""Daily market trends and crop pricing."""

from __future__ import annotations

import logging
import math
import random
from typing import Any, Dict, List, Optional, Sequence

from .constants import DEFAULT_PRICE, MARKET_KEY, SHOP_PRICES, TRENDING_MULTIPLIER
from .journal import PlantJournal
from .plant_types import PlantTypeRegistry
from .storage import SnapshotStore

logger = logging.getLogger(__name__)

BUY = "buy"
SELL = "sell"


class MarketSystem:
    """Picks one trending crop per in-game day and prices items.

    Trending crops sell for 1.5x. Sale prices are further scaled by the
    journal's mastery sell multiplier.
    """

    def __init__(
        self,
        journal: Optional[PlantJournal] = None,
        rng: Optional[random.Random] = None,
        possible_items: Optional[Sequence[str]] = None,
        registry: Optional[PlantTypeRegistry] = None,
    ) -> None:
        self.journal = journal
        self.registry = registry
        self.rng = rng or random.Random()
        self.possible_items: List[str] = list(possible_items or SHOP_PRICES["crops"])
        self.price_multiplier = TRENDING_MULTIPLIER
        self.trending_item: Optional[str] = None
        self.last_update_day = -1

    def update_day(self, day: int) -> bool:
        """Pick a new trending item when `day` changes. Returns True if it did."""

        if day == self.last_update_day:
            return False
        self.last_update_day = day
        self.select_new_trending_item()
        return True

    def select_new_trending_item(self) -> Optional[str]:
        if not self.possible_items:
            return None
        previous = self.trending_item
        for _ in range(10):
            self.trending_item = self.rng.choice(self.possible_items)
            if self.trending_item != previous:
                break
        logger.info("Today's trending item: %s", self.trending_item)
        return self.trending_item

    def is_trending(self, type_id: str) -> bool:
        return type_id == self.trending_item

    def get_price(self, type_id: str, kind: str = SELL) -> int:
        """Final price for buying a seed or selling a crop of `type_id`."""

        if kind == BUY:
            return SHOP_PRICES["seeds"].get(type_id, DEFAULT_PRICE)

        price = SHOP_PRICES["crops"].get(type_id, DEFAULT_PRICE)
        if self.is_trending(type_id):
            price = math.floor(price * self.price_multiplier)
        if self.journal is not None:
            price = math.floor(price * self.journal.get_sell_multiplier(type_id))
        return price

    def get_trending_info(self) -> Optional[Dict[str, Any]]:
        if self.trending_item is None:
            return None
        info = self.registry.find(self.trending_item) if self.registry is not None else None
        return {
            "type": self.trending_item,
            "name": info.name if info else self.trending_item,
            "emoji": info.emoji if info else "🌱",
            "multiplier": self.price_multiplier,
        }

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------
    def to_snapshot(self) -> Dict[str, Any]:
        return {"trendingItem": self.trending_item, "lastUpdateDay": self.last_update_day}

    def load_snapshot(self, data: Dict[str, Any]) -> bool:
        trending = data.get("trendingItem")
        try:
            last_day = int(data.get("lastUpdateDay", -1))
        except (TypeError, ValueError):
            logger.warning("Ignoring corrupt market snapshot")
            return False
        self.trending_item = trending if isinstance(trending, str) else None
        self.last_update_day = last_day
        return True

    def save(self, store: SnapshotStore) -> None:
        store.save_json(MARKET_KEY, self.to_snapshot())

    def load(self, store: SnapshotStore) -> bool:
        data = store.load_json(MARKET_KEY)
        loaded = data is not None and self.load_snapshot(data)
        # A first start still needs something on sale.
        if self.trending_item is None:
            self.select_new_trending_item()
        return loaded

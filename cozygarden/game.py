"""Frame-driven orchestrator wiring the simulation components together.

The host calls `tick(dt)` once per rendered frame. Every component is built
here and handed its collaborators explicitly; there are no module-level
singletons.
"""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from typing import Optional, Tuple

from .constants import DAY_DURATION, GRID_HEIGHT, GRID_WIDTH
from .garden import Garden
from .inventory import Inventory
from .journal import MasteryLevelUp, PlantJournal
from .market import BUY, SELL, MarketSystem
from .mutation import MutationEngine, MutationResult
from .obstacles import ObstacleField, ObstacleSettings
from .plant import HarvestResult, Plant
from .plant_types import PlantTypeRegistry, default_registry
from .shipping import ShippingBin
from .storage import SnapshotStore
from .weather import RainCloud

logger = logging.getLogger(__name__)

# Daily settlement happens at 06:00 in-game.
SETTLEMENT_DAY_FRACTION = 0.25
AUTOSAVE_INTERVAL = 30.0


@dataclass(frozen=True)
class HarvestOutcome:
    result: HarvestResult
    level_up: Optional[MasteryLevelUp] = None
    mutation: Optional[MutationResult] = None


class GardenGame:
    """Owns one instance of every subsystem and runs the per-frame update."""

    def __init__(
        self,
        store: Optional[SnapshotStore] = None,
        rng: Optional[random.Random] = None,
        width: int = GRID_WIDTH,
        height: int = GRID_HEIGHT,
        registry: Optional[PlantTypeRegistry] = None,
        obstacle_settings: Optional[ObstacleSettings] = None,
        day_duration: float = DAY_DURATION,
        autosave_interval: Optional[float] = AUTOSAVE_INTERVAL,
    ) -> None:
        self.store = store
        self.rng = rng or random.Random()
        self.registry = registry or default_registry()

        self.journal = PlantJournal()
        # Registers the variant types, so it must exist before loading plants.
        self.mutation = MutationEngine(self.registry, journal=self.journal, rng=self.rng)
        self.garden = Garden(self.registry, width, height)
        self.obstacles = ObstacleField(obstacle_settings, rng=self.rng)
        self.inventory = Inventory()
        self.market = MarketSystem(journal=self.journal, rng=self.rng, registry=self.registry)
        self.shipping_bin = ShippingBin()
        self.rain = RainCloud()

        self.day_duration = day_duration
        self.elapsed = 0.0
        self.game_day = 0
        self._next_settlement = day_duration * SETTLEMENT_DAY_FRACTION
        self.autosave_interval = autosave_interval
        self._since_autosave = 0.0

        if self.market.trending_item is None:
            self.market.select_new_trending_item()

    # ------------------------------------------------------------------
    # Frame update
    # ------------------------------------------------------------------
    def growth_multiplier(self, plant: Plant) -> float:
        return self.journal.get_growth_multiplier(plant.type) * self.rain.growth_multiplier

    def tick(self, dt: float) -> None:
        """Run one frame of simulation."""

        if dt <= 0:
            return
        self.elapsed += dt
        self._check_daily_settlement()

        self.garden.update(dt, self.growth_multiplier)
        self.garden.check_harvest_ready()
        self.obstacles.update(dt, self.garden)
        self.rain.update(dt)

        if self.store is not None and self.autosave_interval:
            self._since_autosave += dt
            if self._since_autosave >= self.autosave_interval:
                self._since_autosave = 0.0
                self.save()

    def _check_daily_settlement(self) -> None:
        while self.elapsed >= self._next_settlement:
            self.game_day = int(self._next_settlement // self.day_duration)
            self._next_settlement += self.day_duration
            earnings = self.shipping_bin.settle(self.inventory, self.market)
            if earnings:
                logger.info("Day %d: shipping paid %dG", self.game_day, earnings)
            self.market.update_day(self.game_day)

    # ------------------------------------------------------------------
    # Player actions
    # ------------------------------------------------------------------
    def plant_at(self, x: int, y: int, type_id: str) -> Optional[Plant]:
        """Plant one seed from the inventory. Rocks block planting."""

        if self.inventory.get_seed_count(type_id) <= 0:
            logger.debug("No %s seeds to plant", type_id)
            return None
        plant = self.garden.plant_seed(type_id, x, y, blocked=self.obstacles.has_rock_at)
        if plant is not None:
            self.inventory.use_seed(type_id)
        return plant

    def water_at(self, x: int, y: int) -> bool:
        return self.garden.water_plant_at(x, y)

    def harvest_at(self, x: int, y: int) -> Optional[HarvestOutcome]:
        """Harvest the plant at (x, y) if it is ready.

        Records the harvest, rolls for a mutation while the plant's neighbors
        are still in place, then removes the plant.
        """

        plant = self.garden.get_plant_at(x, y)
        if plant is None:
            return None
        result = plant.harvest()
        if result is None:
            logger.debug("%s at (%d, %d) is not ready to harvest", plant.type, x, y)
            return None

        self.inventory.add_crop(result.type, result.amount)
        level_up = self.journal.record_harvest(result.type, result.amount)
        mutation = self.mutation.check_for_mutation(x, y, result.type, self.garden)
        if mutation is not None:
            self.inventory.add_seeds(mutation.variant_seed, 1)

        self.garden.remove_plant(x, y)
        return HarvestOutcome(result=result, level_up=level_up, mutation=mutation)

    def remove_rock_at(self, x: int, y: int) -> bool:
        return self.obstacles.try_remove_rock_at(x, y)

    def interact(self, x: int, y: int, selected_seed: Optional[str] = None) -> Optional[str]:
        """Context action for the cell the character faces.

        Returns the name of the action taken, or None if nothing happened.
        """

        if self.shipping_bin.is_near(x, y) and self.shipping_bin.deposit_all_sellables(self.inventory):
            return "ship"

        plant = self.garden.get_plant_at(x, y)
        if plant is not None:
            if plant.is_ready_to_harvest:
                return "harvest" if self.harvest_at(x, y) else None
            if plant.is_paused or plant.needs_water:
                return "water" if self.water_at(x, y) else None
            return "inspect"

        if self.obstacles.has_rock_at(x, y):
            return "break_rock" if self.remove_rock_at(x, y) else None
        if selected_seed is not None and self.plant_at(x, y, selected_seed) is not None:
            return "plant"
        return None

    def start_rain(self) -> bool:
        return self.rain.start(self.garden)

    def buy_seed(self, type_id: str, amount: int = 1) -> Tuple[bool, str]:
        """Buy seeds with gold. Returns (success, message)."""

        if type_id not in self.registry:
            return (False, f"Unknown seed: {type_id}")
        price = self.market.get_price(type_id, BUY) * amount
        if not self.inventory.spend_gold(price):
            return (False, f"Not enough gold. Need {price}G.")
        self.inventory.add_seeds(type_id, amount)
        return (True, f"Bought {amount} {type_id} seed(s) for {price}G.")

    def buy_pickaxe(self) -> Tuple[bool, str]:
        return self.obstacles.buy_pickaxe(self.inventory)

    def sell_crop(self, type_id: str, amount: int = 1) -> Tuple[bool, str]:
        """Sell harvested crops right away at today's market price.

        Sells at most as many as the inventory holds.
        """

        if amount <= 0:
            return (False, "Nothing to sell.")
        sold = self.inventory.take_crop(type_id, amount)
        if sold == 0:
            return (False, f"You have no {type_id} to sell.")
        earned = self.market.get_price(type_id, SELL) * sold
        self.inventory.add_gold(earned)
        logger.info("Sold %d %s for %dG", sold, type_id, earned)
        return (True, f"Sold {sold} {type_id} for {earned}G.")

    def sell_all_crops(self) -> int:
        """Sell every harvested crop at once. Returns the gold earned."""

        earned = 0
        for type_id, count in self.inventory.take_all_crops().items():
            earned += self.market.get_price(type_id, SELL) * count
        if earned:
            self.inventory.add_gold(earned)
            logger.info("Sold all crops for %dG", earned)
        return earned

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------
    def save(self) -> bool:
        if self.store is None:
            return False
        self.garden.save(self.store)
        self.journal.save(self.store)
        self.inventory.save(self.store)
        self.market.save(self.store)
        self.obstacles.save(self.store)
        self.shipping_bin.save(self.store)
        return True

    def load(self) -> bool:
        """Load every subsystem. Missing or corrupt parts start fresh.

        Returns True if a saved garden was restored.
        """

        if self.store is None:
            return False
        self.journal.load(self.store)
        self.inventory.load(self.store)
        self.market.load(self.store)
        self.shipping_bin.load(self.store)
        loaded = self.garden.load(self.store)
        # Obstacles after the garden so rocks never end up on plants. Without
        # a saved field the in-memory rocks still have to make way.
        if not self.obstacles.load(self.store, self.garden):
            self.obstacles.drop_cells_under_plants(self.garden)
        if loaded:
            logger.info("Garden loaded (%d plants)", len(self.garden.plants))
        return loaded

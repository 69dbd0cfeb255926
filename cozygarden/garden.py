"""Garden grid and companion planting.

The garden is the single authority on which cell holds which plant. Every
structural change (planting or removal) triggers a full recalculation of the
neighbor bonuses, so a plant's bonus depends only on the final occupancy.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Tuple

from .constants import (
    CELL_SIZE,
    CURRENT_SCHEMA_VERSION,
    GARDEN_KEY,
    GRID_HEIGHT,
    GRID_WIDTH,
    MAX_GRID_SIZE,
)
from .plant import Plant
from .plant_types import PlantTypeRegistry
from .storage import SnapshotStore, check_schema

logger = logging.getLogger(__name__)

# Moore neighborhood, scanned row by row. Mutation checks rely on this order.
MOORE_OFFSETS: Tuple[Tuple[int, int], ...] = (
    (-1, -1), (0, -1), (1, -1),
    (-1, 0), (1, 0),
    (-1, 1), (0, 1), (1, 1),
)


@dataclass
class GardenStats:
    total_plants: int = 0
    fully_grown: int = 0
    total_water_given: int = 0

    def to_dict(self) -> Dict[str, int]:
        return {
            "totalPlants": self.total_plants,
            "fullyGrown": self.fully_grown,
            "totalWaterGiven": self.total_water_given,
        }

    @classmethod
    def from_dict(cls, data: Any) -> "GardenStats":
        if not isinstance(data, dict):
            return cls()
        return cls(
            total_plants=int(data.get("totalPlants", 0)),
            fully_grown=int(data.get("fullyGrown", 0)),
            total_water_given=int(data.get("totalWaterGiven", 0)),
        )


@dataclass(frozen=True)
class RecommendedPosition:
    x: int
    y: int
    bonus: int


class Garden:
    """Owns every plant, indexed by grid coordinate."""

    def __init__(
        self,
        registry: PlantTypeRegistry,
        width: int = GRID_WIDTH,
        height: int = GRID_HEIGHT,
    ) -> None:
        if width <= 0 or height <= 0:
            raise ValueError(f"Invalid garden size {width}x{height}")
        self.registry = registry
        self.width = int(width)
        self.height = int(height)
        self.grid: List[List[Optional[Plant]]] = self._empty_grid()
        # Insertion order; used for iteration.
        self.plants: List[Plant] = []
        self.stats = GardenStats()

    def _empty_grid(self) -> List[List[Optional[Plant]]]:
        return [[None for _ in range(self.width)] for _ in range(self.height)]

    # ------------------------------------------------------------------
    # Cell queries
    # ------------------------------------------------------------------
    def is_valid_cell(self, x: int, y: int) -> bool:
        """Return True if (x, y) lies inside the grid."""

        return 0 <= x < self.width and 0 <= y < self.height

    def is_cell_empty(self, x: int, y: int) -> bool:
        """Return True for an in-bounds cell with no plant."""

        if not self.is_valid_cell(x, y):
            return False
        return self.grid[y][x] is None

    def get_plant_at(self, x: int, y: int) -> Optional[Plant]:
        """Return the plant at (x, y), or None for an empty or invalid cell."""

        if not self.is_valid_cell(x, y):
            return None
        return self.grid[y][x]

    def pixel_to_grid(self, px: float, py: float) -> Tuple[int, int]:
        """Convert pixel coordinates to the (x, y) cell containing them."""

        return int(px // CELL_SIZE), int(py // CELL_SIZE)

    def grid_to_pixel(self, x: int, y: int) -> Tuple[int, int]:
        """Return the top-left pixel of cell (x, y)."""

        return x * CELL_SIZE, y * CELL_SIZE

    # ------------------------------------------------------------------
    # Structural changes
    # ------------------------------------------------------------------
    def plant_seed(
        self,
        type_id: str,
        x: int,
        y: int,
        blocked: Optional[Callable[[int, int], bool]] = None,
    ) -> Optional[Plant]:
        """Plant a seed of `type_id` at (x, y).

        `blocked` lets the caller veto cells it owns (rocks, for example).
        Returns the new plant, or None if the cell is unusable or the type is
        unknown. Failure leaves the garden untouched.
        """

        if not self.is_valid_cell(x, y):
            logger.debug("Cannot plant at (%d, %d): out of bounds", x, y)
            return None
        if self.grid[y][x] is not None:
            logger.debug("Cannot plant at (%d, %d): cell occupied", x, y)
            return None
        plant_type = self.registry.find(type_id)
        if plant_type is None:
            logger.debug("Cannot plant unknown type %r", type_id)
            return None
        if blocked is not None and blocked(x, y):
            logger.debug("Cannot plant at (%d, %d): cell blocked", x, y)
            return None

        plant = Plant(plant_type, x, y)
        self.grid[y][x] = plant
        self.plants.append(plant)
        self.stats.total_plants += 1
        logger.info("Planted %s at (%d, %d)", type_id, x, y)

        # The newcomer can change its neighbors' bonuses too.
        self.recalculate_all_neighbor_bonuses()
        return plant

    def remove_plant(self, x: int, y: int) -> Optional[Plant]:
        """Detach the plant at (x, y) and return it, or None if there is none."""

        plant = self.get_plant_at(x, y)
        if plant is None:
            return None

        self.grid[y][x] = None
        self.plants.remove(plant)
        self.recalculate_all_neighbor_bonuses()
        logger.info("Removed %s from (%d, %d)", plant.type, x, y)
        return plant

    def water_plant_at(self, x: int, y: int) -> bool:
        """Water the plant at (x, y). Returns False if the cell has no plant."""

        plant = self.get_plant_at(x, y)
        if plant is None:
            logger.debug("Nothing to water at (%d, %d)", x, y)
            return False

        watered = plant.water()
        if watered:
            self.stats.total_water_given += 1
        return watered

    def water_all(self) -> int:
        """Water every plant and return how many were watered."""

        count = 0
        for plant in self.plants:
            if plant.water():
                count += 1
        self.stats.total_water_given += count
        return count

    # ------------------------------------------------------------------
    # Neighbors / companion planting
    # ------------------------------------------------------------------
    def get_neighbors(self, x: int, y: int) -> List[Plant]:
        """Return the plants in the 8 surrounding cells (no wraparound)."""

        neighbors: List[Plant] = []
        for dx, dy in MOORE_OFFSETS:
            nx, ny = x + dx, y + dy
            if not self.is_valid_cell(nx, ny):
                continue
            neighbor = self.grid[ny][nx]
            if neighbor is not None:
                neighbors.append(neighbor)
        return neighbors

    def calculate_neighbor_bonus(self, plant: Plant) -> int:
        """Count neighbors that are companions in either direction.

        A neighbor contributes at most +1, however many ways it qualifies.
        """

        bonus = 0
        for neighbor in self.get_neighbors(plant.x, plant.y):
            if plant.plant_type.likes(neighbor.type) or neighbor.plant_type.likes(plant.type):
                bonus += 1
        return bonus

    def recalculate_all_neighbor_bonuses(self) -> None:
        """Recompute every plant's bonus from the current occupancy."""

        for plant in self.plants:
            plant.set_neighbor_bonus(self.calculate_neighbor_bonus(plant))

    def get_recommended_positions(self, type_id: str) -> List[RecommendedPosition]:
        """Rank empty cells by the bonus `type_id` would get there.

        Only the candidate's own companion list counts. Cells with no bonus
        are left out; ties keep row-major order.
        """

        plant_type = self.registry.find(type_id)
        if plant_type is None:
            return []

        recommendations: List[RecommendedPosition] = []
        for y in range(self.height):
            for x in range(self.width):
                if self.grid[y][x] is not None:
                    continue
                bonus = sum(1 for n in self.get_neighbors(x, y) if plant_type.likes(n.type))
                if bonus > 0:
                    recommendations.append(RecommendedPosition(x, y, bonus))

        recommendations.sort(key=lambda r: r.bonus, reverse=True)
        return recommendations

    # ------------------------------------------------------------------
    # Per-frame update
    # ------------------------------------------------------------------
    def update(
        self,
        dt: float,
        growth_multiplier: Optional[Callable[[Plant], float]] = None,
    ) -> None:
        """Tick every plant by `dt` seconds.

        `growth_multiplier` supplies extra per-plant speed factors (mastery,
        weather). Promotion to READY_TO_HARVEST is left to
        `check_harvest_ready`.
        """

        fully_grown = 0
        for plant in self.plants:
            multiplier = growth_multiplier(plant) if growth_multiplier is not None else 1.0
            plant.update(dt, multiplier)
            if plant.is_fully_grown:
                fully_grown += 1
        self.stats.fully_grown = fully_grown

    def check_harvest_ready(self) -> List[Plant]:
        """Promote every FULL_GROWN plant; returns the promoted plants."""

        return [plant for plant in self.plants if plant.check_harvest_ready()]

    def get_summary(self) -> Dict[str, Any]:
        """Return display stats for the garden panel."""

        return {
            "totalPlants": self.stats.total_plants,
            "fullyGrown": self.stats.fully_grown,
            "waterGiven": self.stats.total_water_given,
            "gridSize": f"{self.width}x{self.height}",
            "occupancy": f"{len(self.plants)}/{self.width * self.height}",
        }

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------
    def to_snapshot(self) -> Dict[str, Any]:
        """Return a JSON-serializable snapshot of the garden."""

        return {
            "schema_version": CURRENT_SCHEMA_VERSION,
            "gridWidth": self.width,
            "gridHeight": self.height,
            "plants": [plant.to_dict() for plant in self.plants],
            "stats": self.stats.to_dict(),
        }

    def load_snapshot(self, data: Dict[str, Any]) -> bool:
        """Rebuild the garden from a snapshot.

        Bonuses are never stored; they are recalculated after loading.
        Returns False and keeps the current garden if the snapshot is corrupt.
        """

        if not isinstance(data, dict) or not check_schema(data):
            logger.warning("Ignoring garden snapshot with unsupported format")
            return False
        try:
            width = int(data.get("gridWidth", self.width))
            height = int(data.get("gridHeight", self.height))
            records = data.get("plants") or []
            if not (0 < width <= MAX_GRID_SIZE and 0 < height <= MAX_GRID_SIZE):
                raise ValueError(f"bad garden dimensions {width}x{height}")
            if not isinstance(records, list):
                raise ValueError("plant list is not a list")
            loaded = [Plant.from_dict(record, self.registry) for record in records]
            stats = GardenStats.from_dict(data.get("stats"))
        except (OverflowError, TypeError, ValueError) as exc:
            logger.warning("Ignoring corrupt garden snapshot: %s", exc)
            return False

        self.width = width
        self.height = height
        self.grid = self._empty_grid()
        self.plants = []
        for plant in loaded:
            if not self.is_valid_cell(plant.x, plant.y) or self.grid[plant.y][plant.x] is not None:
                logger.warning("Dropping saved %s at (%d, %d)", plant.type, plant.x, plant.y)
                continue
            self.grid[plant.y][plant.x] = plant
            self.plants.append(plant)
        self.stats = stats

        self.recalculate_all_neighbor_bonuses()
        return True

    def save(self, store: SnapshotStore) -> None:
        """Persist the garden under its own key."""

        store.save_json(GARDEN_KEY, self.to_snapshot())
        logger.info("Garden saved (%d plants)", len(self.plants))

    def load(self, store: SnapshotStore) -> bool:
        """Load the garden from `store`. Returns False if nothing usable was saved."""

        data = store.load_json(GARDEN_KEY)
        if data is None:
            return False
        return self.load_snapshot(data)



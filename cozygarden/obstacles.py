"""Rock clusters that occasionally block garden cells.

Clusters spawn on a timer, grow outward from a random empty cell in an
irregular shape, and weather away on their own after a while. With a pickaxe
the player can break them one cell at a time.
"""

from __future__ import annotations

import logging
import random
from collections import deque
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Tuple

from .constants import (
    OBSTACLE_CLUSTER_LIFETIME,
    OBSTACLE_EDGE_MARGIN,
    OBSTACLE_EXCLUDED_REGION,
    OBSTACLE_EXPAND_CHANCE,
    OBSTACLE_MAX_CLUSTER_SIZE,
    OBSTACLE_MAX_CLUSTERS,
    OBSTACLE_MIN_CLUSTER_SIZE,
    OBSTACLE_SPAWN_CHANCE,
    OBSTACLE_SPAWN_INTERVAL,
    OBSTACLES_KEY,
    PICKAXE_PRICE,
)
from .garden import Garden
from .inventory import Inventory
from .storage import SnapshotStore

logger = logging.getLogger(__name__)

Cell = Tuple[int, int]

# 4-neighborhood used when growing a cluster.
GROWTH_OFFSETS: Tuple[Cell, ...] = ((-1, 0), (1, 0), (0, -1), (0, 1))


@dataclass
class ObstacleSettings:
    spawn_interval: float = OBSTACLE_SPAWN_INTERVAL
    spawn_chance: float = OBSTACLE_SPAWN_CHANCE
    max_clusters: int = OBSTACLE_MAX_CLUSTERS
    min_cluster_size: int = OBSTACLE_MIN_CLUSTER_SIZE
    max_cluster_size: int = OBSTACLE_MAX_CLUSTER_SIZE
    cluster_lifetime: float = OBSTACLE_CLUSTER_LIFETIME
    # Chance that a frontier neighbor is accepted; gives organic shapes.
    expand_chance: float = OBSTACLE_EXPAND_CHANCE
    # Cells this close to the border never seed a cluster.
    edge_margin: int = OBSTACLE_EDGE_MARGIN
    # Inclusive (x0, y0, x1, y1) rectangle that never seeds a cluster.
    excluded_region: Optional[Tuple[int, int, int, int]] = OBSTACLE_EXCLUDED_REGION
    pickaxe_price: int = PICKAXE_PRICE

    def __post_init__(self) -> None:
        if self.min_cluster_size < 1 or self.max_cluster_size < self.min_cluster_size:
            raise ValueError(
                f"Invalid cluster size range {self.min_cluster_size}..{self.max_cluster_size}"
            )


@dataclass
class ObstacleCluster:
    id: int
    tiles: List[Cell] = field(default_factory=list)
    # Seconds on the owning field's clock.
    created_at: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "tiles": [{"x": x, "y": y} for x, y in self.tiles],
            "createdAt": self.created_at,
        }


class ObstacleField:
    """Owns every rock cluster on the garden grid."""

    def __init__(
        self,
        settings: Optional[ObstacleSettings] = None,
        rng: Optional[random.Random] = None,
    ) -> None:
        self.settings = settings or ObstacleSettings()
        self.rng = rng or random.Random()
        self.clusters: List[ObstacleCluster] = []
        self.next_cluster_id = 1
        self.has_pickaxe = False
        self.clock: float = 0.0
        self._since_spawn_check: float = 0.0
        # cell -> owning cluster id
        self._cells: Dict[Cell, int] = {}

        # Cosmetic hooks (dust particles and the like).
        self.on_cluster_spawned: Optional[Callable[[ObstacleCluster], None]] = None
        self.on_cluster_removed: Optional[Callable[[ObstacleCluster, bool], None]] = None

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------
    def has_rock_at(self, x: int, y: int) -> bool:
        """Return True if any cluster covers (x, y)."""

        return (x, y) in self._cells

    def is_rock_locked(self, x: int, y: int) -> bool:
        """True when a rock is here but the player has no pickaxe yet."""

        return self.has_rock_at(x, y) and not self.has_pickaxe

    def get_cluster(self, cluster_id: int) -> Optional[ObstacleCluster]:
        for cluster in self.clusters:
            if cluster.id == cluster_id:
                return cluster
        return None

    def rock_cells(self) -> List[Cell]:
        return list(self._cells)

    # ------------------------------------------------------------------
    # Per-frame update
    # ------------------------------------------------------------------
    def update(self, dt: float, garden: Garden) -> None:
        """Advance the field clock; spawn and expire clusters as due."""

        self.clock += dt
        self._since_spawn_check += dt
        if self._since_spawn_check >= self.settings.spawn_interval:
            self._since_spawn_check = 0.0
            self.try_spawn_cluster(garden)

        for cluster in list(self.clusters):
            if self.clock - cluster.created_at >= self.settings.cluster_lifetime:
                self.remove_cluster(cluster.id, natural=True)

    # ------------------------------------------------------------------
    # Spawning
    # ------------------------------------------------------------------
    def _is_seed_candidate(self, x: int, y: int, garden: Garden) -> bool:
        s = self.settings
        if not (s.edge_margin <= x < garden.width - s.edge_margin):
            return False
        if not (s.edge_margin <= y < garden.height - s.edge_margin):
            return False
        if s.excluded_region is not None:
            x0, y0, x1, y1 = s.excluded_region
            if x0 <= x <= x1 and y0 <= y <= y1:
                return False
        return garden.is_cell_empty(x, y) and not self.has_rock_at(x, y)

    def _is_free(self, x: int, y: int, garden: Garden) -> bool:
        return garden.is_cell_empty(x, y) and not self.has_rock_at(x, y)

    def try_spawn_cluster(self, garden: Garden) -> Optional[ObstacleCluster]:
        """Maybe grow a new cluster. Returns it, or None if nothing spawned."""

        s = self.settings
        if len(self.clusters) >= s.max_clusters:
            return None
        if self.rng.random() >= s.spawn_chance:
            return None

        candidates = [
            (x, y)
            for y in range(garden.height)
            for x in range(garden.width)
            if self._is_seed_candidate(x, y, garden)
        ]
        if len(candidates) < s.min_cluster_size:
            return None

        start = self.rng.choice(candidates)
        target_size = self.rng.randint(s.min_cluster_size, s.max_cluster_size)

        tiles: List[Cell] = []
        visited = {start}
        queue = deque([start])
        while queue and len(tiles) < target_size:
            x, y = queue.popleft()
            if not self._is_free(x, y, garden):
                continue
            tiles.append((x, y))
            for dx, dy in GROWTH_OFFSETS:
                nxt = (x + dx, y + dy)
                if nxt in visited or not self._is_free(nxt[0], nxt[1], garden):
                    continue
                if self.rng.random() < s.expand_chance:
                    visited.add(nxt)
                    queue.append(nxt)

        if len(tiles) < s.min_cluster_size:
            logger.debug("Rock cluster too small (%d cells); not spawning", len(tiles))
            return None

        cluster = ObstacleCluster(id=self.next_cluster_id, tiles=tiles, created_at=self.clock)
        self.next_cluster_id += 1
        self._add_cluster(cluster)
        logger.info("A %d-cell rock cluster appeared", len(tiles))
        if self.on_cluster_spawned is not None:
            self.on_cluster_spawned(cluster)
        return cluster

    def _add_cluster(self, cluster: ObstacleCluster) -> None:
        self.clusters.append(cluster)
        for cell in cluster.tiles:
            self._cells[cell] = cluster.id

    # ------------------------------------------------------------------
    # Removal
    # ------------------------------------------------------------------
    def remove_cluster(self, cluster_id: int, natural: bool = False) -> bool:
        """Delete a whole cluster. `natural` marks expiry rather than the pickaxe."""

        cluster = self.get_cluster(cluster_id)
        if cluster is None:
            return False
        self.clusters.remove(cluster)
        for cell in cluster.tiles:
            self._cells.pop(cell, None)
        if natural:
            logger.info("Rock cluster %d weathered away", cluster_id)
        if self.on_cluster_removed is not None:
            self.on_cluster_removed(cluster, natural)
        return True

    def try_remove_rock_at(self, x: int, y: int) -> bool:
        """Break one rock cell with the pickaxe.

        Returns True only when a cell was removed. Breaking the last cell
        removes the whole cluster.
        """

        cluster_id = self._cells.get((x, y))
        if cluster_id is None:
            return False
        if not self.has_pickaxe:
            logger.info("A pickaxe is needed to break the rock at (%d, %d)", x, y)
            return False

        cluster = self.get_cluster(cluster_id)
        cluster.tiles.remove((x, y))
        del self._cells[(x, y)]
        logger.debug("Broke rock at (%d, %d); %d cells left", x, y, len(cluster.tiles))

        if not cluster.tiles:
            self.remove_cluster(cluster_id)
            logger.info("Rock cluster %d fully cleared", cluster_id)
        return True

    def drop_cells_under_plants(self, garden: Garden) -> int:
        """Remove rock cells that sit on a plant or outside the garden.

        Clusters left without cells are deleted. Returns the number of cells
        dropped.
        """

        dropped = 0
        for cluster in list(self.clusters):
            kept = [cell for cell in cluster.tiles if garden.is_cell_empty(*cell)]
            if len(kept) == len(cluster.tiles):
                continue
            for cell in cluster.tiles:
                if cell not in kept:
                    self._cells.pop(cell, None)
                    dropped += 1
            cluster.tiles = kept
            if not kept:
                self.remove_cluster(cluster.id)
        if dropped:
            logger.warning("Dropped %d rock cells that overlapped plants", dropped)
        return dropped

    def buy_pickaxe(self, inventory: Inventory) -> Tuple[bool, str]:
        """Buy the pickaxe with gold from `inventory`."""

        if self.has_pickaxe:
            return (False, "You already own a pickaxe.")
        price = self.settings.pickaxe_price
        if not inventory.spend_gold(price):
            return (False, f"Not enough gold. Need {price}G for a pickaxe.")
        self.has_pickaxe = True
        logger.info("Pickaxe purchased")
        return (True, "Pickaxe purchased! You can now break rocks.")

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------
    def to_snapshot(self) -> Dict[str, Any]:
        return {
            "clusters": [cluster.to_dict() for cluster in self.clusters],
            "hasPickaxe": self.has_pickaxe,
            "clock": self.clock,
        }

    def load_snapshot(self, data: Dict[str, Any], garden: Optional[Garden] = None) -> bool:
        """Restore clusters from a snapshot.

        Cells that overlap another cluster, fall outside the garden or sit on
        a plant are dropped so the occupancy invariants hold after loading.
        """

        raw_clusters = data.get("clusters") or []
        if not isinstance(raw_clusters, list):
            logger.warning("Ignoring obstacle snapshot with bad cluster list")
            return False

        clusters: List[ObstacleCluster] = []
        taken: Dict[Cell, int] = {}
        try:
            clock = float(data.get("clock", 0.0))
            for raw in raw_clusters:
                cluster = ObstacleCluster(id=int(raw["id"]), created_at=float(raw.get("createdAt", clock)))
                if any(c.id == cluster.id for c in clusters):
                    continue
                for tile in raw.get("tiles") or []:
                    cell = (int(tile["x"]), int(tile["y"]))
                    if cell in taken:
                        continue
                    if garden is not None and not garden.is_cell_empty(*cell):
                        continue
                    taken[cell] = cluster.id
                    cluster.tiles.append(cell)
                if cluster.tiles:
                    clusters.append(cluster)
        except (KeyError, TypeError, ValueError) as exc:
            logger.warning("Ignoring corrupt obstacle snapshot: %s", exc)
            return False

        self.clock = clock
        self.clusters = []
        self._cells = {}
        for cluster in clusters:
            self._add_cluster(cluster)
        self.next_cluster_id = max((c.id for c in clusters), default=0) + 1
        self.has_pickaxe = bool(data.get("hasPickaxe", False))
        return True

    def save(self, store: SnapshotStore) -> None:
        store.save_json(OBSTACLES_KEY, self.to_snapshot())

    def load(self, store: SnapshotStore, garden: Optional[Garden] = None) -> bool:
        data = store.load_json(OBSTACLES_KEY)
        if data is None:
            return False
        return self.load_snapshot(data, garden)

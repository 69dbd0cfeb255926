"""Cozy Garden - a no-fail gardening simulation core.

Entry point for hosts. Wires up:
- Plant type registry and the garden grid
- Journal (mastery), mutation engine and obstacle field
- Snapshot persistence (JSON, namespaced keys)

Rendering, input and UI live in the host; it drives `GardenGame.tick`
once per frame.
"""

from __future__ import annotations

import os
import random
from typing import Optional

from .game import GardenGame, HarvestOutcome
from .garden import Garden, RecommendedPosition
from .journal import PlantJournal
from .mutation import MutationEngine
from .obstacles import ObstacleField, ObstacleSettings
from .plant import GrowthStage, Plant, WaterStatus
from .plant_types import PlantType, PlantTypeRegistry, UnknownPlantTypeError, default_registry
from .storage import FileStore, MemoryStore, SnapshotStore

__version__ = "2.0.0"


def create_game(base_dir: Optional[str] = None, seed: Optional[int] = None) -> GardenGame:
    """Build a game, restoring any saved state found in `base_dir`.

    Without `base_dir` the game keeps its state in memory only.
    """

    store: SnapshotStore
    if base_dir is None:
        store = MemoryStore()
    else:
        store = FileStore(os.path.abspath(base_dir))
    game = GardenGame(store=store, rng=random.Random(seed))
    game.load()
    return game

"""Constants for the Cozy Garden simulation core."""

from __future__ import annotations

# Garden dimensions (columns x rows)
GRID_WIDTH: int = 25
GRID_HEIGHT: int = 17

# Largest side length a saved garden may declare.
MAX_GRID_SIZE: int = 256

# Pixel size of one grid cell, used only for coordinate conversion.
CELL_SIZE: int = 32

# Companion marker meaning "companionable with everything".
WILDCARD = "*"

# Soil wetness
WATER_DECAY_PER_SECOND: float = 0.02
THIRST_THRESHOLD: float = 0.3

# Each qualifying neighbor adds 10% growth speed.
NEIGHBOR_BONUS_STEP: float = 0.1

# Progress needed to leave a growth stage.
STAGE_PROGRESS_MAX: float = 100.0

# Cosmetic effect durations (seconds, plant clock)
WIGGLE_DURATION: float = 0.5
PULSE_DURATION: float = 0.3

# Mastery tiers: level -> (threshold, sell, growth, mutation, description)
MASTERY_TABLE = {
    0: (0, 1.0, 1.0, 1.0, "Beginner farmer"),
    1: (10, 1.1, 1.0, 1.0, "You have learned the value of this plant."),
    2: (50, 1.1, 1.2, 1.0, "You have found a more efficient way to grow it."),
    3: (100, 1.1, 1.2, 2.0, "Master farmer! Golden border earned."),
}
MAX_MASTERY_LEVEL: int = 3

# Obstacle field defaults
OBSTACLE_SPAWN_INTERVAL: float = 120.0
OBSTACLE_SPAWN_CHANCE: float = 0.4
OBSTACLE_MAX_CLUSTERS: int = 3
OBSTACLE_MIN_CLUSTER_SIZE: int = 2
OBSTACLE_MAX_CLUSTER_SIZE: int = 4
OBSTACLE_CLUSTER_LIFETIME: float = 300.0
OBSTACLE_EXPAND_CHANCE: float = 0.7
OBSTACLE_EDGE_MARGIN: int = 3
# Inclusive (x0, y0, x1, y1) rectangle around the player's start position.
OBSTACLE_EXCLUDED_REGION = (10, 6, 14, 10)
PICKAXE_PRICE: int = 1000

# Weather
RAIN_DURATION: float = 30.0
RAIN_GROWTH_MULTIPLIER: float = 2.0

# Day cycle (seconds of simulation per in-game day)
DAY_DURATION: float = 120.0

# Economy
STARTING_GOLD: int = 100
STARTING_SEEDS = {
    "tomato": 5,
    "sunflower": 3,
    "tulip": 2,
    "carrot": 3,
    "basil": 4,
}
DEFAULT_PRICE: int = 10
TRENDING_MULTIPLIER: float = 1.5

# Shop prices (in gold)
SHOP_PRICES = {
    "seeds": {
        "tomato": 10,
        "sunflower": 8,
        "tulip": 12,
        "carrot": 6,
        "basil": 5,
    },
    "crops": {
        "tomato": 25,
        "sunflower": 20,
        "tulip": 30,
        "carrot": 15,
        "basil": 12,
    },
}

# Persistence / schema
STATE_FILENAME = "cozygarden_state.json"
CURRENT_SCHEMA_VERSION = 1

GARDEN_KEY = "cozy_garden_save"
JOURNAL_KEY = "cozy_garden_journal"
INVENTORY_KEY = "cozy_garden_inventory"
MARKET_KEY = "cozy_garden_market"
OBSTACLES_KEY = "cozy_garden_obstacles"
SHIPPING_KEY = "cozy_garden_shipping"

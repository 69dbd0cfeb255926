import random

import pytest

from cozygarden.garden import Garden
from cozygarden.plant_types import VARIANT_PLANT_TYPES, default_registry


class AlwaysLucky(random.Random):
    """RNG whose every roll succeeds."""

    def random(self):
        return 0.0


@pytest.fixture
def registry():
    """Base crops plus the mutation variants."""
    reg = default_registry()
    reg.register_variants(VARIANT_PLANT_TYPES)
    return reg


@pytest.fixture
def garden(registry) -> Garden:
    """A fresh 5x5 garden."""
    return Garden(registry, width=5, height=5)


@pytest.fixture
def rng() -> random.Random:
    return random.Random(1234)


@pytest.fixture
def lucky_rng() -> random.Random:
    return AlwaysLucky()

import random

import pytest

from cozygarden.garden import Garden
from cozygarden.inventory import Inventory
from cozygarden.obstacles import GROWTH_OFFSETS, ObstacleField, ObstacleSettings


def is_connected(tiles):
    tiles = set(tiles)
    start = next(iter(tiles))
    seen = {start}
    stack = [start]
    while stack:
        x, y = stack.pop()
        for dx, dy in GROWTH_OFFSETS:
            nxt = (x + dx, y + dy)
            if nxt in tiles and nxt not in seen:
                seen.add(nxt)
                stack.append(nxt)
    return seen == tiles


def field_with(tiles_by_cluster, settings=None, garden=None, has_pickaxe=False):
    field = ObstacleField(settings or ObstacleSettings(spawn_chance=0.0), rng=random.Random(0))
    data = {
        "clusters": [
            {"id": cid, "tiles": [{"x": x, "y": y} for x, y in tiles], "createdAt": 0.0}
            for cid, tiles in tiles_by_cluster.items()
        ],
        "hasPickaxe": has_pickaxe,
        "clock": 0.0,
    }
    assert field.load_snapshot(data, garden)
    return field


@pytest.fixture
def big_garden(registry) -> Garden:
    return Garden(registry)


class TestSpawning:
    def test_spawned_clusters_respect_occupancy(self, big_garden):
        for x, y in [(5, 5), (6, 5), (7, 7), (18, 12), (4, 12)]:
            big_garden.plant_seed("tomato", x, y)
        field = ObstacleField(ObstacleSettings(spawn_chance=1.0), rng=random.Random(7))

        spawned = 0
        for _ in range(300):
            cluster = field.try_spawn_cluster(big_garden)
            if cluster is None:
                continue
            spawned += 1
            s = field.settings
            assert s.min_cluster_size <= len(cluster.tiles) <= s.max_cluster_size
            assert len(set(cluster.tiles)) == len(cluster.tiles)
            assert is_connected(cluster.tiles)
            for x, y in cluster.tiles:
                assert big_garden.is_valid_cell(x, y)
                assert big_garden.get_plant_at(x, y) is None

            cells = [cell for c in field.clusters for cell in c.tiles]
            assert len(cells) == len(set(cells))
            assert len(field.clusters) <= s.max_clusters
            if len(field.clusters) == s.max_clusters:
                field.remove_cluster(field.clusters[0].id)
        assert spawned > 0

    def test_seed_cell_avoids_margin_and_start_area(self, big_garden):
        settings = ObstacleSettings(spawn_chance=1.0, min_cluster_size=1, max_cluster_size=1)
        field = ObstacleField(settings, rng=random.Random(3))
        for _ in range(200):
            cluster = field.try_spawn_cluster(big_garden)
            (x, y), = cluster.tiles
            assert 3 <= x < big_garden.width - 3
            assert 3 <= y < big_garden.height - 3
            assert not (10 <= x <= 14 and 6 <= y <= 10)
            field.remove_cluster(cluster.id)

    def test_max_clusters_is_enforced(self, big_garden):
        settings = ObstacleSettings(spawn_chance=1.0, expand_chance=1.0)
        field = ObstacleField(settings, rng=random.Random(11))
        results = [field.try_spawn_cluster(big_garden) for _ in range(5)]
        assert all(r is not None for r in results[:3])
        assert results[3] is None and results[4] is None
        assert len(field.clusters) == 3

    def test_isolated_seed_cell_is_rejected(self, registry):
        garden = Garden(registry, 3, 3)
        for x, y in [(1, 0), (2, 0), (0, 1), (1, 1), (2, 1), (0, 2), (1, 2)]:
            garden.plant_seed("carrot", x, y)
        settings = ObstacleSettings(
            spawn_chance=1.0, expand_chance=1.0, edge_margin=0, excluded_region=None
        )
        field = ObstacleField(settings, rng=random.Random(5))
        for _ in range(20):
            assert field.try_spawn_cluster(garden) is None
        assert field.clusters == []
        assert field.rock_cells() == []

    def test_too_few_candidates_spawns_nothing(self, registry):
        garden = Garden(registry, 7, 7)
        field = ObstacleField(ObstacleSettings(spawn_chance=1.0, excluded_region=None), rng=random.Random(1))
        # Only (3, 3) lies inside the 3-cell margin.
        assert field.try_spawn_cluster(garden) is None

    def test_update_runs_spawn_check_on_interval(self, big_garden):
        settings = ObstacleSettings(spawn_chance=1.0, expand_chance=1.0)
        field = ObstacleField(settings, rng=random.Random(2))
        spawned = []
        field.on_cluster_spawned = spawned.append

        field.update(60.0, big_garden)
        assert field.clusters == []
        field.update(60.0, big_garden)
        assert len(field.clusters) == 1
        assert spawned == field.clusters

    def test_invalid_size_range(self):
        with pytest.raises(ValueError):
            ObstacleSettings(min_cluster_size=3, max_cluster_size=2)


class TestRemoval:
    def test_no_rock_returns_false_and_changes_nothing(self):
        field = field_with({1: [(5, 5), (6, 5)]}, has_pickaxe=True)
        before = field.to_snapshot()
        assert field.try_remove_rock_at(9, 9) is False
        assert field.to_snapshot() == before

    def test_without_pickaxe_the_rock_stays(self):
        field = field_with({1: [(5, 5), (6, 5)]})
        assert field.is_rock_locked(5, 5)
        assert field.try_remove_rock_at(5, 5) is False
        assert field.has_rock_at(5, 5)

    def test_breaking_cells_one_at_a_time(self):
        field = field_with({1: [(5, 5), (6, 5)]}, has_pickaxe=True)
        removed = []
        field.on_cluster_removed = lambda cluster, natural: removed.append((cluster.id, natural))

        assert field.try_remove_rock_at(5, 5) is True
        assert not field.has_rock_at(5, 5)
        assert field.get_cluster(1).tiles == [(6, 5)]
        assert removed == []

        assert field.try_remove_rock_at(6, 5) is True
        assert field.get_cluster(1) is None
        assert field.clusters == []
        assert removed == [(1, False)]

    def test_clusters_weather_away_after_lifetime(self, big_garden):
        field = field_with({1: [(5, 5), (6, 5)]})
        removed = []
        field.on_cluster_removed = lambda cluster, natural: removed.append((cluster.id, natural))

        field.update(299.0, big_garden)
        assert field.has_rock_at(5, 5)
        field.update(1.0, big_garden)
        assert not field.has_rock_at(5, 5)
        assert removed == [(1, True)]

    def test_buy_pickaxe(self):
        field = ObstacleField()
        inventory = Inventory()

        ok, _ = field.buy_pickaxe(inventory)
        assert not ok
        assert inventory.gold == 100

        inventory.add_gold(1000)
        ok, _ = field.buy_pickaxe(inventory)
        assert ok
        assert field.has_pickaxe
        assert inventory.gold == 100

        ok, _ = field.buy_pickaxe(inventory)
        assert not ok
        assert inventory.gold == 100


class TestPersistence:
    def test_round_trip(self, big_garden):
        settings = ObstacleSettings(spawn_chance=1.0, expand_chance=1.0)
        field = ObstacleField(settings, rng=random.Random(9))
        field.try_spawn_cluster(big_garden)
        field.has_pickaxe = True

        restored = ObstacleField(settings)
        assert restored.load_snapshot(field.to_snapshot(), big_garden)
        assert sorted(restored.rock_cells()) == sorted(field.rock_cells())
        assert restored.has_pickaxe
        assert restored.next_cluster_id == field.next_cluster_id

    def test_overlapping_and_planted_cells_are_dropped(self, big_garden):
        big_garden.plant_seed("tulip", 8, 8)
        field = field_with({1: [(5, 5), (6, 5)], 2: [(6, 5), (8, 8)], 3: [(30, 30)]}, garden=big_garden)
        assert field.get_cluster(1).tiles == [(5, 5), (6, 5)]
        assert field.get_cluster(2) is None
        assert field.get_cluster(3) is None
        assert field.next_cluster_id == 2

    def test_corrupt_snapshot_keeps_current_state(self):
        field = field_with({1: [(5, 5)]})
        assert field.load_snapshot({"clusters": [{"tiles": []}]}) is False
        assert field.has_rock_at(5, 5)

from datetime import datetime, timezone

import pytest

from cozygarden.journal import MASTERY_TIERS, PlantJournal, mastery_level_for
from cozygarden.storage import MemoryStore

FIXED_NOW = datetime(2024, 5, 1, 8, 30, tzinfo=timezone.utc)


@pytest.fixture
def journal() -> PlantJournal:
    return PlantJournal(clock=lambda: FIXED_NOW)


def test_thresholds():
    assert [mastery_level_for(n) for n in (0, 9, 10, 49, 50, 99, 100, 5000)] == [0, 0, 1, 1, 2, 2, 3, 3]


def test_entries_are_created_lazily(journal):
    assert journal.entries == {}
    assert journal.get_mastery_level("tulip") == 0
    assert "tulip" in journal.entries
    assert journal.entries["tulip"].times_harvested == 0


def test_first_harvest_sets_timestamps(journal):
    journal.record_harvest("tomato")
    entry = journal.get_entry("tomato")
    assert entry.times_harvested == 1
    assert entry.first_discovered == FIXED_NOW.isoformat()
    assert entry.last_harvested == FIXED_NOW.isoformat()


def test_level_ups_fire_at_thresholds(journal):
    level_ups = []
    journal.on_mastery_up = level_ups.append
    for _ in range(100):
        journal.record_harvest("basil")
    assert [(u.type_id, u.new_level) for u in level_ups] == [("basil", 1), ("basil", 2), ("basil", 3)]
    assert level_ups[-1].tier is MASTERY_TIERS[3]


def test_bulk_harvest_jumps_levels(journal):
    level_up = journal.record_harvest("carrot", 55)
    assert level_up.new_level == 2
    assert journal.record_harvest("carrot") is None


def test_level_never_decreases(journal):
    journal.record_harvest("tomato", 60)
    journal.get_entry("tomato").times_harvested = 3
    assert journal.check_mastery("tomato") is None
    assert journal.get_mastery_level("tomato") == 2


@pytest.mark.parametrize(
    "harvests, sell, growth, mutation",
    [(0, 1.0, 1.0, 1.0), (10, 1.1, 1.0, 1.0), (50, 1.1, 1.2, 1.0), (100, 1.1, 1.2, 2.0)],
)
def test_multipliers_follow_tier(journal, harvests, sell, growth, mutation):
    if harvests:
        journal.record_harvest("tulip", harvests)
    assert journal.get_sell_multiplier("tulip") == sell
    assert journal.get_growth_multiplier("tulip") == growth
    assert journal.get_mutation_multiplier("tulip") == mutation


def test_progress_to_next_level(journal):
    journal.record_harvest("sunflower", 30)
    assert journal.get_progress_to_next_level("sunflower") == pytest.approx(50.0)
    journal.record_harvest("sunflower", 70)
    assert journal.get_progress_to_next_level("sunflower") == 100.0


def test_summary(journal):
    journal.record_harvest("tomato", 100)
    journal.record_harvest("basil", 2)
    journal.get_entry("carrot")
    summary = journal.get_summary(total_types=10)
    assert summary == {
        "totalHarvests": 102,
        "discoveredCount": 2,
        "masteredCount": 1,
        "totalPlantTypes": 10,
    }


class TestPersistence:
    def test_round_trip(self, journal):
        journal.record_harvest("tomato", 12)
        store = MemoryStore()
        journal.save(store)

        restored = PlantJournal()
        assert restored.load(store) is True
        entry = restored.get_entry("tomato")
        assert entry.times_harvested == 12
        assert entry.mastery_level == 1
        assert entry.first_discovered == FIXED_NOW.isoformat()

    def test_tampered_level_cannot_drop_below_earned(self, journal):
        data = {"entries": {"tomato": {"times_harvested": 120, "mastery_level": 0}}}
        assert journal.load_snapshot(data) is True
        assert journal.get_mastery_level("tomato") == 3

    def test_stored_level_is_capped(self, journal):
        data = {"entries": {"tomato": {"times_harvested": 1, "mastery_level": 9}}}
        journal.load_snapshot(data)
        assert journal.get_mastery_level("tomato") == 3

    def test_corrupt_entries_are_skipped(self, journal):
        data = {"entries": {"tomato": {"times_harvested": "many"}, "basil": "oops", "tulip": {"times_harvested": 4}}}
        assert journal.load_snapshot(data) is True
        assert set(journal.entries) == {"tulip"}

    def test_missing_entries_keep_current_state(self, journal):
        journal.record_harvest("tomato")
        assert journal.load_snapshot({"schema_version": 1}) is False
        assert journal.get_entry("tomato").times_harvested == 1

"""Plant journal: per-type harvest records and mastery levels.

Harvest counts unlock mastery tiers at fixed thresholds. Each tier grants
multipliers for sell price, growth speed and mutation chance. A mastery
level never goes down.
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from datetime import datetime
from typing import Any, Callable, Dict, Optional

from .constants import CURRENT_SCHEMA_VERSION, JOURNAL_KEY, MASTERY_TABLE, MAX_MASTERY_LEVEL
from .storage import SnapshotStore, check_schema, to_iso, utc_now

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MasteryTier:
    level: int
    threshold: int
    sell_bonus: float
    growth_bonus: float
    mutation_bonus: float
    description: str


MASTERY_TIERS: Dict[int, MasteryTier] = {
    level: MasteryTier(level, *values) for level, values in MASTERY_TABLE.items()
}


def mastery_level_for(times_harvested: int) -> int:
    """Return the highest tier whose threshold `times_harvested` meets."""

    for level in range(MAX_MASTERY_LEVEL, -1, -1):
        if times_harvested >= MASTERY_TIERS[level].threshold:
            return level
    return 0


@dataclass
class ProgressionEntry:
    """Journal record for one plant type."""

    times_harvested: int = 0
    mastery_level: int = 0
    first_discovered: Optional[str] = None
    last_harvested: Optional[str] = None


@dataclass(frozen=True)
class MasteryLevelUp:
    type_id: str
    new_level: int
    tier: MasteryTier


class PlantJournal:
    """Tracks harvests per plant type and derives mastery multipliers."""

    def __init__(self, clock: Callable[[], datetime] = utc_now) -> None:
        self.entries: Dict[str, ProgressionEntry] = {}
        self.clock = clock
        # Called as on_mastery_up(level_up) whenever a level is gained.
        self.on_mastery_up: Optional[Callable[[MasteryLevelUp], None]] = None

    def get_entry(self, type_id: str) -> ProgressionEntry:
        """Return the record for `type_id`, creating a blank one if needed."""

        entry = self.entries.get(type_id)
        if entry is None:
            entry = ProgressionEntry()
            self.entries[type_id] = entry
        return entry

    def record_harvest(self, type_id: str, amount: int = 1) -> Optional[MasteryLevelUp]:
        """Add `amount` harvests of `type_id`.

        Returns a MasteryLevelUp if this harvest raised the mastery level.
        """

        entry = self.get_entry(type_id)
        now = to_iso(self.clock())
        if entry.first_discovered is None:
            entry.first_discovered = now
            logger.info("New journal entry: %s", type_id)

        entry.times_harvested += max(0, int(amount))
        entry.last_harvested = now
        return self.check_mastery(type_id)

    def check_mastery(self, type_id: str) -> Optional[MasteryLevelUp]:
        """Raise the stored level to match the harvest count, if it grew."""

        entry = self.get_entry(type_id)
        level = mastery_level_for(entry.times_harvested)
        if level <= entry.mastery_level:
            return None

        entry.mastery_level = level
        level_up = MasteryLevelUp(type_id=type_id, new_level=level, tier=MASTERY_TIERS[level])
        logger.info("%s mastery reached level %d: %s", type_id, level, level_up.tier.description)
        if self.on_mastery_up is not None:
            self.on_mastery_up(level_up)
        return level_up

    # ------------------------------------------------------------------
    # Multipliers
    # ------------------------------------------------------------------
    def get_mastery_level(self, type_id: str) -> int:
        """Return the current mastery level (0-3) for `type_id`."""

        return self.get_entry(type_id).mastery_level

    def get_tier(self, type_id: str) -> MasteryTier:
        """Return the tier record for the current level."""

        return MASTERY_TIERS[self.get_mastery_level(type_id)]

    def get_sell_multiplier(self, type_id: str) -> float:
        """Multiplier applied to the crop's sale price."""

        return self.get_tier(type_id).sell_bonus

    def get_growth_multiplier(self, type_id: str) -> float:
        """Multiplier applied to the crop's growth speed."""

        return self.get_tier(type_id).growth_bonus

    def get_mutation_multiplier(self, type_id: str) -> float:
        """Multiplier applied to mutation chances when harvesting this crop."""

        return self.get_tier(type_id).mutation_bonus

    def get_progress_to_next_level(self, type_id: str) -> float:
        """Percentage (0-100) of the way to the next tier."""

        entry = self.get_entry(type_id)
        if entry.mastery_level >= MAX_MASTERY_LEVEL:
            return 100.0
        current = MASTERY_TIERS[entry.mastery_level].threshold
        target = MASTERY_TIERS[entry.mastery_level + 1].threshold
        progress = (entry.times_harvested - current) / (target - current)
        return min(100.0, max(0.0, progress * 100.0))

    def get_summary(self, total_types: Optional[int] = None) -> Dict[str, Any]:
        """Return totals for the journal overview."""

        total_harvests = sum(e.times_harvested for e in self.entries.values())
        discovered = sum(1 for e in self.entries.values() if e.times_harvested > 0)
        mastered = sum(1 for e in self.entries.values() if e.mastery_level >= MAX_MASTERY_LEVEL)
        return {
            "totalHarvests": total_harvests,
            "discoveredCount": discovered,
            "masteredCount": mastered,
            "totalPlantTypes": total_types if total_types is not None else len(self.entries),
        }

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------
    def to_snapshot(self) -> Dict[str, Any]:
        return {
            "schema_version": CURRENT_SCHEMA_VERSION,
            "entries": {type_id: asdict(entry) for type_id, entry in self.entries.items()},
        }

    def load_snapshot(self, data: Dict[str, Any]) -> bool:
        if not check_schema(data):
            logger.warning("Ignoring journal snapshot with unsupported format")
            return False
        raw = data.get("entries")
        if not isinstance(raw, dict):
            logger.warning("Ignoring journal snapshot without entries")
            return False

        entries: Dict[str, ProgressionEntry] = {}
        for type_id, record in raw.items():
            if not isinstance(record, dict):
                continue
            try:
                harvested = max(0, int(record.get("times_harvested", 0)))
                stored_level = int(record.get("mastery_level", 0))
            except (TypeError, ValueError):
                logger.warning("Skipping corrupt journal entry for %s", type_id)
                continue
            # A tampered level can't drop below what the harvest count earned.
            level = min(MAX_MASTERY_LEVEL, max(stored_level, mastery_level_for(harvested)))
            entries[type_id] = ProgressionEntry(
                times_harvested=harvested,
                mastery_level=level,
                first_discovered=record.get("first_discovered"),
                last_harvested=record.get("last_harvested"),
            )
        self.entries = entries
        return True

    def save(self, store: SnapshotStore) -> None:
        """Persist the journal under its own key."""

        store.save_json(JOURNAL_KEY, self.to_snapshot())

    def load(self, store: SnapshotStore) -> bool:
        data = store.load_json(JOURNAL_KEY)
        if data is None:
            return False
        return self.load_snapshot(data)

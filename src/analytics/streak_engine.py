"""
Streak & Badge Engine

Maintains the user's calculation streak and unlocks badges.

DESIGN: Every update is a single deterministic state transition
from (previous snapshot, today, today's total) to a new snapshot.
Streaks are counted in local calendar days, not 24h windows.
"""

import logging
from dataclasses import dataclass
from datetime import date
from typing import Callable, List, Optional, Tuple

from models.stats import BadgeState, UserStatsSnapshot, StatsUpdate
from storage.database import BlobStore, CorruptValueError, StorageError, STATS_KEY

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BadgeDefinition:
    """
    Fixed badge catalog entry.

    rule receives the UPDATED snapshot and today's total emissions.
    """
    badge_id: str
    name: str
    description: str
    icon: str
    color: str
    rule: Callable[[UserStatsSnapshot, float], bool]

    def locked_state(self) -> BadgeState:
        return BadgeState(
            badge_id=self.badge_id,
            name=self.name,
            description=self.description,
            icon=self.icon,
            color=self.color,
        )


# Low footprint threshold (kg CO2 per day)
LOW_FOOTPRINT_KG = 3.0

# Evaluated in this order
BADGE_CATALOG: List[BadgeDefinition] = [
    BadgeDefinition(
        badge_id="first_calculation",
        name="First Steps",
        description="Completed your first carbon footprint calculation",
        icon="🌱",
        color="bg-green-100 text-green-800 border-green-200",
        rule=lambda stats, total: stats.total_calculations >= 1,
    ),
    BadgeDefinition(
        badge_id="streak_3",
        name="Getting Started",
        description="Maintained a 3-day tracking streak",
        icon="🔥",
        color="bg-orange-100 text-orange-800 border-orange-200",
        rule=lambda stats, total: stats.current_streak >= 3,
    ),
    BadgeDefinition(
        badge_id="streak_7",
        name="Week Warrior",
        description="Maintained a 7-day tracking streak",
        icon="⭐",
        color="bg-yellow-100 text-yellow-800 border-yellow-200",
        rule=lambda stats, total: stats.current_streak >= 7,
    ),
    BadgeDefinition(
        badge_id="streak_30",
        name="Eco Champion",
        description="Maintained a 30-day tracking streak",
        icon="🏆",
        color="bg-purple-100 text-purple-800 border-purple-200",
        rule=lambda stats, total: stats.current_streak >= 30,
    ),
    BadgeDefinition(
        badge_id="low_footprint",
        name="Green Guardian",
        description="Achieved a daily footprint under 3kg CO₂",
        icon="🌿",
        color="bg-emerald-100 text-emerald-800 border-emerald-200",
        rule=lambda stats, total: total < LOW_FOOTPRINT_KG,
    ),
    BadgeDefinition(
        badge_id="calculations_10",
        name="Dedicated Tracker",
        description="Completed 10 carbon footprint calculations",
        icon="📊",
        color="bg-blue-100 text-blue-800 border-blue-200",
        rule=lambda stats, total: stats.total_calculations >= 10,
    ),
    BadgeDefinition(
        badge_id="calculations_50",
        name="Data Master",
        description="Completed 50 carbon footprint calculations",
        icon="🎯",
        color="bg-indigo-100 text-indigo-800 border-indigo-200",
        rule=lambda stats, total: stats.total_calculations >= 50,
    ),
]


def default_stats(catalog: Optional[List[BadgeDefinition]] = None) -> UserStatsSnapshot:
    """Cold-start snapshot: no streak, no calculations, all badges locked."""
    if catalog is None:
        catalog = BADGE_CATALOG
    return UserStatsSnapshot(badges=[d.locked_state() for d in catalog])


class StreakEngine:
    """
    Updates the singleton stats snapshot after each calculation.

    USAGE:
        engine = StreakEngine(blob_store)
        update = engine.update(total_emissions_today)
        for badge in update.new_badges:
            notify(badge)
    """

    def __init__(
        self,
        blob_store: BlobStore,
        clock: Callable[[], date] = date.today,
        catalog: Optional[List[BadgeDefinition]] = None,
    ):
        self.blob_store = blob_store
        self.clock = clock
        self.catalog = BADGE_CATALOG if catalog is None else catalog

    def get_stats(self) -> UserStatsSnapshot:
        """Load the stored snapshot, or the cold-start default."""
        return self._read()[0]

    def update(self, total_emissions: float, today: Optional[date] = None) -> StatsUpdate:
        """
        Record one calculation for today.

        Args:
            total_emissions: Today's total emissions in kg CO2
            today: Calculation date (defaults to clock())

        Returns:
            StatsUpdate with the new snapshot and badges unlocked by this call.
            If the stored snapshot could not be read, the result is kept
            in memory only and the stored snapshot is left untouched.
        """
        stats, readable = self._read()
        today = today or self.clock()

        stats.total_calculations += 1
        stats.current_streak = self._next_streak(stats, today)
        stats.last_calculation_date = today.isoformat()
        stats.longest_streak = max(stats.longest_streak, stats.current_streak)

        new_badges = self._unlock_badges(stats, total_emissions, today)

        if not readable:
            logger.warning("Stats unreadable, update kept in memory only")
            return StatsUpdate(stats=stats, new_badges=new_badges)

        try:
            self.blob_store.set(STATS_KEY, stats.to_dict())
        except StorageError as e:
            logger.warning(f"Error saving stats: {e}")

        return StatsUpdate(stats=stats, new_badges=new_badges)

    def reset(self):
        """Forget all stats (next read is a cold start)."""
        try:
            self.blob_store.remove(STATS_KEY)
        except StorageError as e:
            logger.warning(f"Could not reset stats: {e}")

    # Helper methods

    def _read(self) -> Tuple[UserStatsSnapshot, bool]:
        """(snapshot, readable); corrupt data reads as a readable cold start."""
        try:
            raw = self.blob_store.get(STATS_KEY)
        except CorruptValueError as e:
            logger.warning(f"Discarding corrupt stats snapshot: {e}")
            return default_stats(self.catalog), True
        except StorageError as e:
            logger.warning(f"Error loading stats: {e}")
            return default_stats(self.catalog), False

        if raw is None:
            return default_stats(self.catalog), True

        try:
            stats = UserStatsSnapshot.from_dict(raw)
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            logger.warning(f"Discarding malformed stats snapshot: {e}")
            return default_stats(self.catalog), True

        return self._reconcile_badges(stats), True

    def _next_streak(self, stats: UserStatsSnapshot, today: date) -> int:
        """Streak after a calculation on `today`."""
        if not stats.last_calculation_date:
            return 1  # First calculation ever

        try:
            last = date.fromisoformat(stats.last_calculation_date)
        except (TypeError, ValueError):
            logger.warning(f"Unreadable last calculation date: {stats.last_calculation_date!r}")
            return 1

        gap = (today - last).days
        if gap == 1:
            return stats.current_streak + 1
        if gap > 1:
            return 1
        # Same day (or clock moved backwards): unchanged
        return stats.current_streak

    def _unlock_badges(
        self,
        stats: UserStatsSnapshot,
        total_emissions: float,
        today: date,
    ) -> List[BadgeState]:
        rules = {d.badge_id: d.rule for d in self.catalog}
        new_badges: List[BadgeState] = []

        for badge in stats.badges:
            if badge.unlocked:
                continue
            rule = rules.get(badge.badge_id)
            if rule is not None and rule(stats, total_emissions):
                badge.unlocked = True
                badge.unlocked_date = today.isoformat()
                new_badges.append(badge)
                logger.info(f"Badge unlocked: {badge.badge_id}")

        return new_badges

    def _reconcile_badges(self, stats: UserStatsSnapshot) -> UserStatsSnapshot:
        """Order badges by catalog; add catalog badges missing from storage."""
        stored = {b.badge_id: b for b in stats.badges}
        badges = []
        for definition in self.catalog:
            badge = stored.pop(definition.badge_id, None) or definition.locked_state()
            badges.append(badge)
        # Keep unknown stored badges so an unlock is never lost
        badges.extend(stored.values())
        stats.badges = badges
        stats.longest_streak = max(stats.longest_streak, stats.current_streak)
        return stats

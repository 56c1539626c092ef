"""
Analytics package: streaks, badges and trends.
"""

from .streak_engine import StreakEngine, BadgeDefinition, BADGE_CATALOG, default_stats
from .trend_service import TrendAggregator

__all__ = [
    "StreakEngine",
    "BadgeDefinition",
    "BADGE_CATALOG",
    "default_stats",
    "TrendAggregator",
]

# Models Package
from .footprint import EmissionCategory, ActivityInput, EmissionCategoryResult, Suggestion
from .tracking import DailyRecord, TrendSummary, ChartSeriesPoint
from .stats import BadgeState, UserStatsSnapshot, StatsUpdate
from .coach import DailyTip, AIRecommendation, AISettings

__all__ = [
    # Calculation
    "EmissionCategory", "ActivityInput", "EmissionCategoryResult", "Suggestion",
    # Tracking
    "DailyRecord", "TrendSummary", "ChartSeriesPoint",
    # Streaks & badges
    "BadgeState", "UserStatsSnapshot", "StatsUpdate",
    # Coach
    "DailyTip", "AIRecommendation", "AISettings",
]

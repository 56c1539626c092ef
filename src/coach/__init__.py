"""
Coach package: suggestions and daily tips.
"""

from .advisor import RecommendationAdvisor, GENERAL_SUGGESTION, SUGGESTIONS
from .daily_tips import DailyTipService, date_hash, tip_for_date, FALLBACK_TIPS

__all__ = [
    "RecommendationAdvisor",
    "GENERAL_SUGGESTION",
    "SUGGESTIONS",
    "DailyTipService",
    "date_hash",
    "tip_for_date",
    "FALLBACK_TIPS",
]

"""
Recommendation Advisor

Picks the single highest-impact emission category and returns a
canned improvement suggestion for it. Personalized text from the
optional provider is layered on top and may be missing at any time.
"""

import logging
import uuid
from datetime import datetime
from typing import List, Optional

from models.coach import AIRecommendation
from models.footprint import EmissionCategory, EmissionCategoryResult, Suggestion
from services.llm_service import TextGenerationService
from services.settings_service import SettingsService

logger = logging.getLogger(__name__)


GENERAL_SUGGESTION = Suggestion(
    category="General",
    message="Start tracking your daily activities to see your carbon impact!",
    icon="Leaf",
)

# Keyed by category name
SUGGESTIONS = {
    "Transportation": Suggestion(
        category="Transportation",
        message="Try carpooling, using public transport, or walking to reduce your carbon impact.",
        icon="Car",
    ),
    "Electricity": Suggestion(
        category="Electricity",
        message="Switch to LED bulbs and unplug devices when not in use to save energy.",
        icon="Zap",
    ),
    "Food": Suggestion(
        category="Food",
        message="Consider having a meatless day or choosing locally sourced food options.",
        icon="Beef",
    ),
    "Plastic": Suggestion(
        category="Plastic",
        message="Use reusable bags and containers to reduce single-use plastic consumption.",
        icon="Recycle",
    ),
}

# Minimum useful completion length (characters)
MIN_COMPLETION_CHARS = 10

_ORDER = {category: index for index, category in enumerate(EmissionCategory)}


def highest_impact(results: List[EmissionCategoryResult]) -> Optional[EmissionCategoryResult]:
    """Result with the largest amount; ties go to the earlier display category."""
    if not results:
        return None
    ordered = sorted(results, key=lambda r: _ORDER.get(r.category, len(_ORDER)))
    return max(ordered, key=lambda r: r.amount_kg)


class RecommendationAdvisor:
    """
    Deterministic suggestions with optional AI personalization.

    suggest() never fails and never touches the network.
    personalize() and ask_coach() return None whenever the provider
    is not configured or does not answer usefully.
    """

    def __init__(
        self,
        settings_service: Optional[SettingsService] = None,
        llm_service: Optional[TextGenerationService] = None,
    ):
        self.settings_service = settings_service
        self.llm_service = llm_service

    def suggest(self, results: List[EmissionCategoryResult]) -> Suggestion:
        """Canned suggestion for the highest-impact category."""
        top = highest_impact(results)
        if top is None:
            return GENERAL_SUGGESTION

        name = getattr(top.category, "value", top.category)
        return SUGGESTIONS.get(name, GENERAL_SUGGESTION)

    def personalize(
        self,
        results: List[EmissionCategoryResult],
        total_emissions: float,
    ) -> Optional[AIRecommendation]:
        """
        Ask the provider for one tip targeting the highest-impact category.

        Returns:
            AIRecommendation, or None if disabled, empty input or provider failure
        """
        settings = self._settings()
        if settings is None or not settings.is_configured or not settings.personalized_tips:
            return None

        top = highest_impact(results)
        if top is None:
            return None

        breakdown_lines = "\n".join(
            f"- {r.category.value}: {r.amount_kg:.1f} kg CO₂ ({r.share_percent:.1f}%)"
            for r in results
        )
        prompt = (
            "You are an expert environmental coach. Based on this carbon footprint data:\n\n"
            f"Total daily emissions: {total_emissions:.1f} kg CO₂\n"
            f"Highest impact category: {top.category.value} "
            f"({top.amount_kg:.1f} kg CO₂, {top.share_percent:.1f}%)\n\n"
            f"Breakdown:\n{breakdown_lines}\n\n"
            "Provide ONE specific, actionable tip to reduce emissions in the highest impact "
            "category. Be encouraging, specific, and include a realistic impact estimate. "
            "Keep it under 120 characters and start with an emoji."
        )

        response = self.llm_service.complete(
            prompt,
            api_key=settings.api_key,
            system_prompt="recommendation",
            max_tokens=80,
        )
        if not response.success or len(response.content) <= MIN_COMPLETION_CHARS:
            if response.error:
                logger.info(f"Personalized recommendation unavailable: {response.error}")
            return None

        return AIRecommendation(
            recommendation_id=f"ai_rec_{uuid.uuid4().hex[:12]}",
            content=response.content,
            category=top.category.value,
            timestamp=datetime.now().isoformat(),
            is_personalized=True,
            footprint_data={
                "total": total_emissions,
                "highest_category": top.category.value,
                "breakdown": {r.category.breakdown_key: r.amount_kg for r in results},
            },
        )

    def ask_coach(self, question: str) -> Optional[str]:
        """Free-form question to the eco coach; None if unavailable."""
        settings = self._settings()
        if settings is None or not settings.is_configured or not question.strip():
            return None

        response = self.llm_service.complete(
            question,
            api_key=settings.api_key,
            system_prompt="eco_coach",
            max_tokens=150,
        )
        return response.content if response.success else None

    def _settings(self):
        if self.settings_service is None or self.llm_service is None:
            return None
        return self.settings_service.get()

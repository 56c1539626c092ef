"""
Daily Tips

One eco-tip per calendar day, picked deterministically from a fixed
catalog and cached for the day. When the text provider is configured
the cached tip may later be replaced by an AI-enhanced version; the
current read always gets the fallback immediately.
"""

import logging
from dataclasses import replace
from datetime import date
from typing import Callable, Optional

from models.coach import DailyTip
from services.enrichment import EnrichmentRunner
from services.llm_service import TextGenerationService
from services.settings_service import SettingsService
from storage.database import BlobStore, StorageError, DAILY_TIP_KEY

logger = logging.getLogger(__name__)


# (content, category)
FALLBACK_TIPS = [
    ("🚶‍♀️ Walk or bike for trips under 2 miles. You'll save about 1 kg of CO₂ per mile and get great exercise!", "transportation"),
    ("💡 Switch to LED bulbs - they use 75% less energy and last 25 times longer than incandescent bulbs.", "energy"),
    ("🌱 Try 'Meatless Monday' - skipping meat one day per week can save 1,900 lbs of CO₂ annually.", "food"),
    ("♻️ Bring a reusable water bottle - Americans use 50 billion plastic bottles yearly, most ending up in landfills.", "waste"),
    ("🌡️ Lower your thermostat by 2°F in winter and raise it 2°F in summer to save 2,000 lbs of CO₂ yearly.", "energy"),
    ("🚗 Combine errands into one trip - cold starts use more fuel and produce more emissions than warm engines.", "transportation"),
    ("🥬 Buy local and seasonal produce when possible - it reduces transportation emissions and supports local farmers.", "food"),
    ("📱 Keep your devices longer - extending a phone's life by just one year reduces its environmental impact by 25%.", "waste"),
    ("🚿 Take shorter showers - reducing shower time by 2 minutes can save 1,750 gallons of water annually.", "energy"),
    ("🏠 Unplug electronics when not in use - phantom loads account for 5-10% of residential electricity use.", "energy"),
]

MIN_COMPLETION_CHARS = 10


def date_hash(date_key: str) -> int:
    """
    Polynomial rolling hash (h * 31 + char) in signed 32-bit arithmetic,
    returned as an absolute value. Reproducible, not cryptographic.
    """
    h = 0
    for char in date_key:
        h = (h * 31 + ord(char)) & 0xFFFFFFFF
    if h >= 0x80000000:
        h -= 0x100000000
    return abs(h)


def tip_for_date(date_key: str) -> DailyTip:
    """Fallback tip for a date."""
    index = date_hash(date_key) % len(FALLBACK_TIPS)
    content, category = FALLBACK_TIPS[index]
    return DailyTip(
        tip_id=f"tip_{date_key}_{index}",
        content=content,
        category=category,
        date=date_key,
        is_ai=False,
    )


class DailyTipService:
    """
    Tip of the day with a per-day cache.

    USAGE:
        tips = DailyTipService(blob_store, settings, llm, runner)
        tip = tips.todays_tip()
    """

    def __init__(
        self,
        blob_store: BlobStore,
        settings_service: Optional[SettingsService] = None,
        llm_service: Optional[TextGenerationService] = None,
        runner: Optional[EnrichmentRunner] = None,
        clock: Callable[[], date] = date.today,
    ):
        self.blob_store = blob_store
        self.settings_service = settings_service
        self.llm_service = llm_service
        self.runner = runner
        self.clock = clock

    def todays_tip(self) -> DailyTip:
        """Cached tip for today, or today's fallback tip (enhanced in the background)."""
        today = self.clock().isoformat()

        cached = self._load_cached()
        if cached is not None and cached.date == today:
            return cached

        tip = tip_for_date(today)
        self._save(tip)

        if self.runner is not None and self._can_enhance():
            self.runner.submit(self.enhance, tip, on_result=self._store_enhanced)

        return tip

    def enhance(self, tip: DailyTip) -> Optional[DailyTip]:
        """AI-rewritten copy of a tip, or None."""
        settings = self.settings_service.get()
        response = self.llm_service.complete(
            f"Enhance this eco-tip for the {tip.category} category: {tip.content}",
            api_key=settings.api_key,
            system_prompt="tip_enhancer",
            max_tokens=100,
        )
        if not response.success or len(response.content) <= MIN_COMPLETION_CHARS:
            return None
        return replace(tip, content=response.content, is_ai=True)

    # Helper methods

    def _can_enhance(self) -> bool:
        if self.settings_service is None or self.llm_service is None:
            return False
        return self.settings_service.get().is_configured

    def _store_enhanced(self, tip: DailyTip):
        # Only replace the cache if it still belongs to the same day
        cached = self._load_cached()
        if cached is None or cached.date == tip.date:
            self._save(tip)

    def _load_cached(self) -> Optional[DailyTip]:
        try:
            raw = self.blob_store.get(DAILY_TIP_KEY)
        except StorageError as e:
            logger.warning(f"Error loading cached tip: {e}")
            return None

        if raw is None:
            return None
        try:
            return DailyTip.from_dict(raw)
        except (KeyError, TypeError, AttributeError) as e:
            logger.warning(f"Discarding malformed cached tip: {e}")
            return None

    def _save(self, tip: DailyTip):
        try:
            self.blob_store.set(DAILY_TIP_KEY, tip.to_dict())
        except StorageError as e:
            logger.warning(f"Could not save tip: {e}")

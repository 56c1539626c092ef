"""
Footprint Tracker Service

Single entry point for a "calculate" event: computes emissions,
stores the daily record, updates streaks/badges and picks a
suggestion.

CONCURRENCY: calculate() holds a lock for the whole core path so
two calculations can never interleave their stats or record writes.
Enrichment runs on the runner and never holds this lock.
"""

import logging
import threading
from concurrent.futures import Future
from dataclasses import dataclass
from datetime import date
from typing import Callable, List, Optional

from analytics.streak_engine import StreakEngine
from analytics.trend_service import TrendAggregator
from coach.advisor import RecommendationAdvisor
from coach.daily_tips import DailyTipService
from footprint.calculator import EmissionCalculator
from models.coach import AIRecommendation, DailyTip
from models.footprint import ActivityInput, EmissionCategoryResult, Suggestion
from models.stats import BadgeState, UserStatsSnapshot
from models.tracking import DailyRecord, TrendSummary, ChartSeriesPoint
from services.enrichment import EnrichmentRunner
from services.llm_service import TextGenerationService
from services.settings_service import SettingsService
from storage.database import BlobStore
from storage.record_store import RecordStore

logger = logging.getLogger(__name__)


@dataclass
class CalculationOutcome:
    """Everything produced by one calculation."""
    results: List[EmissionCategoryResult]
    total_emissions_kg: float
    record: DailyRecord
    stats: UserStatsSnapshot
    new_badges: List[BadgeState]
    suggestion: Suggestion

    def to_dict(self) -> dict:
        """Convert to dictionary for API response."""
        return {
            "results": [r.to_dict() for r in self.results],
            "total_emissions_kg": self.total_emissions_kg,
            "record": self.record.to_dict(),
            "stats": self.stats.to_dict(),
            "new_badges": [b.to_dict() for b in self.new_badges],
            "suggestion": self.suggestion.to_dict(),
        }


class FootprintTracker:
    """
    Wires the tracker components around one blob store.

    Construct once per process (or per test) and share it.
    """

    def __init__(
        self,
        blob_store: BlobStore,
        llm_service: Optional[TextGenerationService] = None,
        runner: Optional[EnrichmentRunner] = None,
        clock: Callable[[], date] = date.today,
    ):
        """
        Initialize the tracker.

        Args:
            blob_store: Backing key-value store for all state
            llm_service: Optional text provider for enrichment
            runner: Background runner for enrichment tasks
            clock: Returns the current local date
        """
        self.clock = clock
        self.calculator = EmissionCalculator()
        self.records = RecordStore(blob_store, clock=clock)
        self.streaks = StreakEngine(blob_store, clock=clock)
        self.trends = TrendAggregator(self.records, clock=clock)
        self.settings = SettingsService(blob_store)
        self.advisor = RecommendationAdvisor(self.settings, llm_service)
        self.runner = runner
        self.tips = DailyTipService(
            blob_store,
            settings_service=self.settings,
            llm_service=llm_service,
            runner=runner,
            clock=clock,
        )

        self._lock = threading.Lock()
        self._recommendation_lock = threading.Lock()
        self._submitted_recommendations = 0
        self._applied_recommendation = 0
        self._latest_recommendation: Optional[AIRecommendation] = None

    def calculate(self, activity: ActivityInput, commit: bool = True) -> CalculationOutcome:
        """
        Run one calculation.

        Args:
            activity: Raw activity quantities (sanitized here)
            commit: Store the record and update stats. With False only
                the emissions and suggestion are computed.

        Returns:
            CalculationOutcome
        """
        clean = activity.sanitized()

        with self._lock:
            # One date for the whole event
            today = self.clock()
            results = self.calculator.calculate(clean)
            total = self.calculator.get_total_emissions(results)
            suggestion = self.advisor.suggest(results)

            if commit:
                record = self.records.upsert(
                    today.isoformat(),
                    total,
                    self.calculator.breakdown_from_results(results),
                    activities=clean,
                    today=today,
                )
                update = self.streaks.update(total, today=today)
                stats, new_badges = update.stats, update.new_badges
            else:
                record = DailyRecord(
                    date=today.isoformat(),
                    total_emissions_kg=total,
                    breakdown=self.calculator.breakdown_from_results(results),
                    activities=clean,
                )
                stats, new_badges = self.streaks.get_stats(), []

        if commit:
            self.personalized_recommendation(results, total)

        return CalculationOutcome(
            results=results,
            total_emissions_kg=total,
            record=record,
            stats=stats,
            new_badges=new_badges,
            suggestion=suggestion,
        )

    def summary(self) -> TrendSummary:
        return self.trends.summarize()

    def chart(self, period: str = "week") -> List[ChartSeriesPoint]:
        return self.trends.series_for_period(period)

    def stats(self) -> UserStatsSnapshot:
        return self.streaks.get_stats()

    def todays_tip(self) -> DailyTip:
        return self.tips.todays_tip()

    def personalized_recommendation(
        self,
        results: List[EmissionCategoryResult],
        total: float,
    ) -> Optional[Future]:
        """Schedule AI personalization; the result lands in latest_recommendation()."""
        if self.runner is None or not results:
            return None

        with self._recommendation_lock:
            self._submitted_recommendations += 1
            sequence = self._submitted_recommendations

        return self.runner.submit(
            self.advisor.personalize,
            results,
            total,
            on_result=lambda recommendation: self._set_recommendation(recommendation, sequence),
        )

    def latest_recommendation(self) -> Optional[AIRecommendation]:
        """Most recent personalized recommendation, if enrichment succeeded."""
        return self._latest_recommendation

    def load_sample_data(self, days: int = 30, seed: Optional[int] = None) -> List[DailyRecord]:
        """Replace history with demo records."""
        with self._lock:
            return self.trends.generate_sample_records(days=days, seed=seed)

    def _set_recommendation(self, recommendation: AIRecommendation, sequence: int):
        # Results from older calculations never replace newer ones
        with self._recommendation_lock:
            if sequence < self._applied_recommendation:
                return
            self._applied_recommendation = sequence
            self._latest_recommendation = recommendation

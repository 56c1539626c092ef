"""
Tests for optional AI enrichment and the tracker service

Tests cover:
- Text generation client success and failure modes
- Personalized recommendations and coach answers
- Daily tip caching and background enhancement
- Enrichment runner isolation
- Tracker calculation flow and serialization
"""

import threading
from datetime import date
from unittest.mock import MagicMock

import pytest
import requests

from coach.advisor import RecommendationAdvisor
from coach.daily_tips import DailyTipService, tip_for_date
from models.coach import AISettings
from models.footprint import ActivityInput
from footprint.calculator import EmissionCalculator
from services.enrichment import EnrichmentRunner, SynchronousRunner
from services.llm_service import LLMResponse, TextGenerationService
from services.settings_service import SettingsService
from services.tracker_service import FootprintTracker
from storage.database import AI_SETTINGS_KEY, DAILY_TIP_KEY


# =============================================================================
# FIXTURES
# =============================================================================

@pytest.fixture
def settings_service(blob_store):
    service = SettingsService(blob_store)
    service.save(AISettings(api_key="sk-test-1234", enabled=True, personalized_tips=True))
    return service


@pytest.fixture
def llm():
    service = MagicMock(spec=TextGenerationService)
    service.complete.return_value = LLMResponse(
        content="🚲 Cycle to work twice a week to save about 4 kg CO₂.",
        success=True,
        model="test-model",
    )
    return service


@pytest.fixture
def car_heavy_results():
    return EmissionCalculator().calculate(ActivityInput(car_distance_km=40, plastic_items=2))


class DeferredRunner(SynchronousRunner):
    """Holds tasks until run(index) so completion order can be chosen."""

    def __init__(self):
        self.pending = []

    def submit(self, fn, *args, on_result=None):
        self.pending.append((fn, args, on_result))
        return None

    def run(self, index):
        fn, args, on_result = self.pending[index]
        return self._run(fn, args, on_result)


def make_response(status_code=200, payload=None):
    response = MagicMock()
    response.status_code = status_code
    if isinstance(payload, Exception):
        response.json.side_effect = payload
    else:
        response.json.return_value = payload
    return response


# =============================================================================
# TEXT GENERATION SERVICE TESTS
# =============================================================================

class TestTextGenerationService:
    """Tests for the chat-completions client."""

    def make_service(self, response=None, error=None):
        session = MagicMock()
        if error is not None:
            session.post.side_effect = error
        else:
            session.post.return_value = response
        return TextGenerationService(
            base_url="https://llm.example/v1",
            model="test-model",
            timeout=3,
            session=session,
        ), session

    def test_successful_completion(self):
        payload = {"choices": [{"message": {"content": "  🌱 Eat more plants.  "}}]}
        service, session = self.make_service(make_response(200, payload))

        result = service.complete("tip please", api_key="sk-abc", max_tokens=80)

        assert result.success is True
        assert result.content == "🌱 Eat more plants."
        args, kwargs = session.post.call_args
        assert args[0] == "https://llm.example/v1/chat/completions"
        assert kwargs["headers"]["Authorization"] == "Bearer sk-abc"
        assert kwargs["json"]["max_tokens"] == 80
        assert kwargs["timeout"] == 3

    def test_token_budget_is_bounded(self):
        payload = {"choices": [{"message": {"content": "ok then"}}]}
        service, session = self.make_service(make_response(200, payload))

        service.complete("tip", api_key="sk-abc", max_tokens=10_000)

        assert session.post.call_args.kwargs["json"]["max_tokens"] == TextGenerationService.MAX_TOKENS_LIMIT

    def test_missing_key_skips_request(self):
        service, session = self.make_service(make_response(200, {}))
        result = service.complete("tip", api_key="")
        assert result.success is False
        session.post.assert_not_called()

    @pytest.mark.parametrize("error", [
        requests.exceptions.Timeout(),
        requests.exceptions.ConnectionError("offline"),
    ])
    def test_network_errors(self, error):
        service, _ = self.make_service(error=error)
        result = service.complete("tip", api_key="sk-abc")
        assert result.success is False
        assert result.error

    def test_http_error(self):
        service, _ = self.make_service(make_response(401, {"error": "bad key"}))
        result = service.complete("tip", api_key="sk-bad")
        assert result.success is False
        assert "401" in result.error

    @pytest.mark.parametrize("payload", [
        {},
        {"choices": []},
        {"choices": [{"message": {}}]},
        {"choices": [{"message": {"content": None}}]},
        ValueError("not json"),
    ])
    def test_malformed_payloads(self, payload):
        service, _ = self.make_service(make_response(200, payload))
        assert service.complete("tip", api_key="sk-abc").success is False


# =============================================================================
# ADVISOR ENRICHMENT TESTS
# =============================================================================

class TestPersonalizedRecommendation:
    """Tests for AI recommendations layered on the canned suggestion."""

    def test_personalized_recommendation(self, settings_service, llm, car_heavy_results):
        advisor = RecommendationAdvisor(settings_service, llm)

        rec = advisor.personalize(car_heavy_results, 8.6)

        assert rec is not None
        assert rec.category == "Transportation"
        assert rec.is_personalized is True
        assert rec.footprint_data["highest_category"] == "Transportation"
        assert rec.footprint_data["breakdown"]["transportation"] == pytest.approx(8.4)
        prompt = llm.complete.call_args.args[0]
        assert "Highest impact category: Transportation" in prompt
        assert llm.complete.call_args.kwargs["max_tokens"] == 80

    def test_disabled_settings(self, blob_store, llm, car_heavy_results):
        settings = SettingsService(blob_store)
        settings.save(AISettings(api_key="sk-test", enabled=False))
        advisor = RecommendationAdvisor(settings, llm)

        assert advisor.personalize(car_heavy_results, 8.6) is None
        llm.complete.assert_not_called()

    def test_personalized_tips_turned_off(self, blob_store, llm, car_heavy_results):
        settings = SettingsService(blob_store)
        settings.save(AISettings(api_key="sk-test", enabled=True, personalized_tips=False))

        assert RecommendationAdvisor(settings, llm).personalize(car_heavy_results, 8.6) is None

    def test_stored_null_key_is_not_configured(self, blob_store, llm, car_heavy_results):
        blob_store.set(AI_SETTINGS_KEY, {"api_key": None, "enabled": True})
        settings = SettingsService(blob_store)

        assert settings.get().api_key == ""
        assert settings.get().is_configured is False
        assert RecommendationAdvisor(settings, llm).personalize(car_heavy_results, 8.6) is None
        llm.complete.assert_not_called()

    def test_short_completion_rejected(self, settings_service, llm, car_heavy_results):
        llm.complete.return_value = LLMResponse(content="Bike!", success=True)
        assert RecommendationAdvisor(settings_service, llm).personalize(car_heavy_results, 8.6) is None

    def test_provider_failure(self, settings_service, llm, car_heavy_results):
        llm.complete.return_value = LLMResponse(content="", success=False, error="timeout")
        advisor = RecommendationAdvisor(settings_service, llm)

        assert advisor.personalize(car_heavy_results, 8.6) is None
        assert advisor.suggest(car_heavy_results).category == "Transportation"

    def test_ask_coach(self, settings_service, llm):
        advisor = RecommendationAdvisor(settings_service, llm)
        assert advisor.ask_coach("How can I heat my home greener?") == llm.complete.return_value.content
        assert llm.complete.call_args.kwargs["max_tokens"] == 150


# =============================================================================
# DAILY TIP TESTS
# =============================================================================

class TestDailyTips:
    """Tests for tip caching and enhancement."""

    def test_fallback_tip_without_provider(self, blob_store, clock):
        service = DailyTipService(blob_store, clock=clock)
        tip = service.todays_tip()
        assert tip == tip_for_date("2026-03-05")
        assert blob_store.get(DAILY_TIP_KEY) == tip.to_dict()

    def test_new_tip_each_day(self, blob_store, clock):
        service = DailyTipService(blob_store, clock=clock)
        first = service.todays_tip()
        clock.advance(1)
        second = service.todays_tip()
        assert second.date == "2026-03-06"
        assert second == tip_for_date("2026-03-06")
        assert first.date != second.date

    def test_enhanced_tip_replaces_cache_for_later_reads(self, blob_store, clock, settings_service, llm):
        service = DailyTipService(blob_store, settings_service, llm, SynchronousRunner(), clock=clock)

        first = service.todays_tip()
        second = service.todays_tip()

        assert first.is_ai is False
        assert second.is_ai is True
        assert second.content == llm.complete.return_value.content
        assert second.tip_id == first.tip_id
        assert llm.complete.call_count == 1

    def test_enhancement_failure_keeps_fallback(self, blob_store, clock, settings_service, llm):
        llm.complete.side_effect = RuntimeError("provider exploded")
        service = DailyTipService(blob_store, settings_service, llm, SynchronousRunner(), clock=clock)

        assert service.todays_tip().is_ai is False
        assert service.todays_tip().is_ai is False

    def test_unreadable_cache(self, failing_store, clock):
        tip = DailyTipService(failing_store, clock=clock).todays_tip()
        assert tip == tip_for_date("2026-03-05")


# =============================================================================
# ENRICHMENT RUNNER TESTS
# =============================================================================

class TestEnrichmentRunner:
    """Tests for background task isolation."""

    def test_result_delivered(self):
        runner = EnrichmentRunner()
        received = []
        future = runner.submit(lambda x: x * 2, 21, on_result=received.append)

        assert future.result(timeout=5) == 42
        runner.shutdown(wait=True)
        assert received == [42]

    def test_task_exception_is_contained(self):
        runner = EnrichmentRunner()
        received = []

        def broken():
            raise ConnectionError("offline")

        future = runner.submit(broken, on_result=received.append)

        assert future.result(timeout=5) is None
        runner.shutdown(wait=True)
        assert received == []

    def test_none_result_not_delivered(self):
        received = []
        SynchronousRunner().submit(lambda: None, on_result=received.append)
        assert received == []

    def test_pending_task_can_be_cancelled(self):
        runner = EnrichmentRunner(max_workers=1)
        gate = threading.Event()
        blocker = runner.submit(gate.wait, 5)
        pending = runner.submit(lambda: "late")

        assert pending.cancel() is True
        gate.set()
        blocker.result(timeout=5)
        runner.shutdown(wait=True)


# =============================================================================
# TRACKER SERVICE TESTS
# =============================================================================

class TestFootprintTracker:
    """Tests for the calculation entry point."""

    def test_calculate_commits_record_and_stats(self, blob_store, clock):
        tracker = FootprintTracker(blob_store, runner=SynchronousRunner(), clock=clock)

        outcome = tracker.calculate(ActivityInput(car_distance_km=10, meat_grams=100))

        assert outcome.total_emissions_kg == pytest.approx(4.8)
        assert outcome.record.date == "2026-03-05"
        assert outcome.record.breakdown["food"] == pytest.approx(2.7)
        assert outcome.stats.total_calculations == 1
        assert [b.badge_id for b in outcome.new_badges] == ["first_calculation"]
        assert outcome.suggestion.category == "Food"
        assert tracker.summary().weekly_average == pytest.approx(4.8)

    def test_preview_does_not_commit(self, blob_store, clock):
        tracker = FootprintTracker(blob_store, clock=clock)

        outcome = tracker.calculate(ActivityInput(car_distance_km=10), commit=False)

        assert outcome.total_emissions_kg == pytest.approx(2.1)
        assert outcome.new_badges == []
        assert tracker.stats().total_calculations == 0
        assert tracker.records.get_all() == []

    def test_activities_stored_sanitized(self, blob_store, clock):
        tracker = FootprintTracker(blob_store, clock=clock)
        tracker.calculate(ActivityInput(car_distance_km=-4, plastic_items=5))
        assert tracker.records.get_all()[0].activities == ActivityInput(plastic_items=5.0)

    def test_personalized_recommendation_scheduled(self, blob_store, clock, llm):
        tracker = FootprintTracker(blob_store, llm_service=llm, runner=SynchronousRunner(), clock=clock)
        tracker.settings.save(AISettings(api_key="sk-test", enabled=True))

        outcome = tracker.calculate(ActivityInput(electricity_kwh=20))

        assert outcome.suggestion.category == "Electricity"
        assert tracker.latest_recommendation().category == "Electricity"

    def test_provider_failure_does_not_affect_calculation(self, blob_store, clock, llm):
        llm.complete.side_effect = requests.exceptions.ConnectionError("offline")
        tracker = FootprintTracker(blob_store, llm_service=llm, runner=SynchronousRunner(), clock=clock)
        tracker.settings.save(AISettings(api_key="sk-test", enabled=True))

        outcome = tracker.calculate(ActivityInput(electricity_kwh=20))

        assert outcome.stats.total_calculations == 1
        assert tracker.latest_recommendation() is None

    def test_one_date_per_calculation(self, blob_store):
        days = iter([date(2026, 3, 5)] + [date(2026, 3, 6)] * 10)
        tracker = FootprintTracker(blob_store, clock=lambda: next(days))

        outcome = tracker.calculate(ActivityInput(car_distance_km=10))

        assert outcome.record.date == "2026-03-05"
        assert outcome.stats.last_calculation_date == "2026-03-05"

    def test_older_recommendation_never_replaces_newer(self, blob_store, clock, llm):
        runner = DeferredRunner()
        tracker = FootprintTracker(blob_store, llm_service=llm, runner=runner, clock=clock)
        tracker.settings.save(AISettings(api_key="sk-test", enabled=True))

        tracker.calculate(ActivityInput(electricity_kwh=20))
        tracker.calculate(ActivityInput(car_distance_km=40))

        runner.run(1)
        runner.run(0)

        assert tracker.latest_recommendation().category == "Transportation"

    def test_concurrent_calculations_are_serialized(self, blob_store, clock):
        tracker = FootprintTracker(blob_store, clock=clock)
        threads = [
            threading.Thread(target=tracker.calculate, args=(ActivityInput(car_distance_km=10),))
            for _ in range(20)
        ]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        stats = tracker.stats()
        assert stats.total_calculations == 20
        assert stats.current_streak == 1
        assert len(tracker.records.get_all()) == 1

"""
Tests for the REST API

Each test gets a fresh in-memory tracker with a fixed clock, so
nothing touches the configured database or the network.
"""

import pytest
from fastapi.testclient import TestClient

import main
from services.enrichment import SynchronousRunner
from services.tracker_service import FootprintTracker


@pytest.fixture
def tracker(blob_store, clock, monkeypatch):
    tracker = FootprintTracker(blob_store, runner=SynchronousRunner(), clock=clock)
    monkeypatch.setattr(main, "tracker", tracker)
    return tracker


@pytest.fixture
def client(tracker):
    return TestClient(main.app)


class TestFootprintEndpoints:

    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    def test_calculate(self, client):
        response = client.post("/api/footprint/calculate", json={"car_distance_km": 10})

        assert response.status_code == 200
        data = response.json()
        assert data["total_emissions_kg"] == pytest.approx(2.1)
        assert [r["category"] for r in data["results"]] == ["Transportation"]
        assert data["results"][0]["share_percent"] == pytest.approx(100.0)
        assert [b["badge_id"] for b in data["new_badges"]] == ["first_calculation", "low_footprint"]
        assert data["record"]["date"] == "2026-03-05"
        assert data["suggestion"]["category"] == "Transportation"

    def test_preview_leaves_stats_alone(self, client):
        client.post("/api/footprint/calculate", json={"meat_grams": 200, "commit": False})
        stats = client.get("/api/stats").json()
        assert stats["total_calculations"] == 0

    def test_non_numeric_input_rejected(self, client):
        response = client.post("/api/footprint/calculate", json={"car_distance_km": "far"})
        assert response.status_code == 422

    def test_stats_after_calculations(self, client, clock):
        client.post("/api/footprint/calculate", json={"electricity_kwh": 10})
        clock.advance(1)
        client.post("/api/footprint/calculate", json={"electricity_kwh": 10})

        stats = client.get("/api/stats").json()
        assert stats["current_streak"] == 2
        assert stats["longest_streak"] == 2
        assert stats["total_calculations"] == 2
        assert len(stats["badges"]) == 7


class TestTrendEndpoints:

    def test_trends_empty(self, client):
        data = client.get("/api/trends").json()
        assert data["records"] == []
        assert data["weekly_average"] == 0
        assert data["monthly_change"] == 0

    def test_chart_week(self, client):
        client.post("/api/footprint/calculate", json={"car_distance_km": 10})
        data = client.get("/api/trends/chart", params={"period": "week"}).json()

        assert len(data["points"]) == 7
        assert data["points"][-1]["date"] == "2026-03-05"
        assert data["points"][-1]["total_emissions_kg"] == pytest.approx(2.1)
        assert data["points"][0]["total_emissions_kg"] == 0

    def test_chart_invalid_period(self, client):
        response = client.get("/api/trends/chart", params={"period": "year"})
        assert response.status_code == 400

    def test_sample_data(self, client):
        response = client.post("/api/trends/sample", json={"days": 14, "seed": 3})
        assert response.status_code == 200
        assert len(response.json()["records"]) == 14
        assert len(client.get("/api/trends").json()["records"]) == 14

    def test_sample_data_bounds(self, client):
        assert client.post("/api/trends/sample", json={"days": 0}).status_code == 422
        assert client.post("/api/trends/sample", json={"days": 91}).status_code == 422


class TestCoachEndpoints:

    def test_todays_tip(self, client):
        data = client.get("/api/tips/today").json()
        assert data["date"] == "2026-03-05"
        assert data["is_ai"] is False

    def test_no_recommendation_without_ai(self, client):
        client.post("/api/footprint/calculate", json={"car_distance_km": 10})
        assert client.get("/api/recommendations/latest").json() == {"recommendation": None}

    def test_coach_unavailable(self, client):
        data = client.post("/api/coach/ask", json={"question": "How do I save energy?"}).json()
        assert data == {"answer": None, "available": False}

    def test_coach_empty_question(self, client):
        assert client.post("/api/coach/ask", json={"question": "   "}).status_code == 400


class TestSettingsEndpoints:

    def test_default_settings(self, client):
        assert client.get("/api/settings/ai").json() == {
            "api_key": "",
            "enabled": False,
            "personalized_tips": True,
        }

    def test_key_is_never_returned(self, client, tracker):
        response = client.put(
            "/api/settings/ai",
            json={"api_key": " sk-secret-9876 ", "enabled": True},
        )
        assert response.json()["api_key"] == "...9876"
        assert client.get("/api/settings/ai").json()["api_key"] == "...9876"
        assert tracker.settings.get().api_key == "sk-secret-9876"

    def test_omitted_key_is_kept(self, client, tracker):
        client.put("/api/settings/ai", json={"api_key": "sk-secret-9876", "enabled": True})
        client.put("/api/settings/ai", json={"enabled": False})

        settings = tracker.settings.get()
        assert settings.api_key == "sk-secret-9876"
        assert settings.enabled is False

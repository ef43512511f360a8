"""
CFC Push Chatbot - Analytics Tests

Tests for daily counters, report export and the analytics API.
"""

from datetime import date, datetime, timedelta
from unittest.mock import AsyncMock

import pytest

from app.analytics.models import DailyReport, DailyStats
from app.analytics.repository import InMemoryAnalyticsRepository
from app.analytics.service import AnalyticsService

from tests.conftest import FrozenClock

API_KEY = "test-analytics-key"


def _report(day: str, menus: list[dict], sessions: int = 1, messages: int = 5) -> DailyReport:
    return DailyReport(
        date=day,
        total_sessions=sessions,
        total_messages=messages,
        unique_users=1,
        popular_menus=menus,
        peak_hours=[0] * 24,
        user_phones=["+551"],
    )


class TestAnalyticsService:
    """Tests for in-memory tracking."""

    def test_track_interaction_counts(self):
        clock = FrozenClock(datetime(2026, 4, 2, 19, 10))
        service = AnalyticsService(clock=clock)

        service.track_new_session("+551")
        service.track_interaction("+551", "a")
        service.track_interaction("+551", "a")
        service.track_interaction("+552", None)

        stats = service.get_current_stats()
        assert stats["date"] == "2026-04-02"
        assert stats["total_sessions"] == 1
        assert stats["total_messages"] == 3
        assert stats["unique_users"] == 2
        assert stats["popular_menus"] == [{"menu_id": "a", "count": 2}]
        assert stats["peak_hours"][19] == 3
        assert stats["peak_hour"] == 19

    def test_top_menus_ranked(self):
        stats = DailyStats.for_day(date(2026, 4, 2))
        stats.popular_menus = {"a": 1, "b": 5, "c": 3}
        assert [m["menu_id"] for m in stats.top_menus(2)] == ["b", "c"]

    def test_messages_per_session(self):
        stats = DailyStats.for_day(date(2026, 4, 2))
        assert stats.messages_per_session() == 0.0
        stats.total_sessions = 3
        stats.total_messages = 10
        assert stats.messages_per_session() == 3.3

    async def test_export_saves_and_resets(self):
        repo = InMemoryAnalyticsRepository()
        clock = FrozenClock(datetime(2026, 4, 2, 23, 55))
        service = AnalyticsService(repo, clock=clock)
        service.track_new_session("+551")
        service.track_interaction("+551", "b")

        assert await service.export_daily_report() is True

        report = await repo.get_report_by_date("2026-04-02")
        assert report.total_messages == 1
        assert report.user_phones == ["+551"]
        assert report.popular_menus == [{"menu_id": "b", "count": 1}]
        assert service.stats.date == "2026-04-03"
        assert service.stats.total_messages == 0

    async def test_export_failure_still_resets(self):
        repo = InMemoryAnalyticsRepository()
        repo.save_daily_report = AsyncMock(side_effect=ConnectionError("mongo down"))
        service = AnalyticsService(repo, clock=FrozenClock(datetime(2026, 4, 2, 23, 55)))
        service.track_interaction("+551")

        assert await service.export_daily_report() is False
        assert service.stats.total_messages == 0

    async def test_export_without_repository(self):
        service = AnalyticsService(clock=FrozenClock(datetime(2026, 4, 2, 23, 55)))
        assert await service.export_daily_report() is False


class TestAnalyticsRepository:
    """Tests for report queries."""

    async def test_save_upserts_per_day(self):
        repo = InMemoryAnalyticsRepository()
        stats = DailyStats.for_day(date(2026, 4, 2))
        stats.total_messages = 1
        await repo.save_daily_report(stats)
        stats.total_messages = 7
        await repo.save_daily_report(stats)

        reports = await repo.get_last_reports()
        assert len(reports) == 1
        assert reports[0].total_messages == 7

    async def test_date_range_sorted(self):
        repo = InMemoryAnalyticsRepository()
        for day in ["2026-04-03", "2026-04-01", "2026-03-20"]:
            repo.add(_report(day, []))

        reports = await repo.get_reports_by_date_range("2026-03-25", "2026-04-05")
        assert [r.date for r in reports] == ["2026-04-01", "2026-04-03"]

    async def test_most_popular_menus(self):
        repo = InMemoryAnalyticsRepository()
        repo.add(_report("2026-04-01", [{"menu_id": "a", "count": 4}, {"menu_id": "b", "count": 1}]))
        repo.add(_report("2026-04-02", [{"menu_id": "b", "count": 6}]))
        repo.add(_report("2026-01-01", [{"menu_id": "c", "count": 100}]))
        repo.add(_report("2026-03-27", [{"menu_id": "c", "count": 50}]))

        menus = await repo.get_most_popular_menus(days=7, today=date(2026, 4, 3))
        assert menus == [
            {"menu_id": "b", "total_count": 7, "daily_average": 1.0},
            {"menu_id": "a", "total_count": 4, "daily_average": 0.6},
        ]

    def test_report_round_trip_from_document(self):
        doc = _report("2026-04-01", [{"menu_id": "a", "count": 1}]).to_dict()
        doc["_id"] = "mongo-id"
        report = DailyReport.from_dict(doc)
        assert report.date == "2026-04-01"
        assert report.popular_menus == [{"menu_id": "a", "count": 1}]


class TestAnalyticsAPI:
    """Tests for the API-key protected analytics endpoints."""

    @pytest.fixture
    def api_client(self, client, monkeypatch):
        monkeypatch.setattr("app.analytics.router.settings.ANALYTICS_API_KEY", API_KEY)
        return client

    def test_missing_key_rejected(self, api_client):
        response = api_client.get("/api/analytics/realtime")
        assert response.status_code == 401

    def test_wrong_key_rejected(self, api_client):
        response = api_client.get("/api/analytics/realtime", headers={"X-API-Key": "nope"})
        assert response.status_code == 401

    def test_unset_key_rejects_everything(self, client, monkeypatch):
        monkeypatch.setattr("app.analytics.router.settings.ANALYTICS_API_KEY", None)
        response = client.get("/api/analytics/realtime", headers={"X-API-Key": "anything"})
        assert response.status_code == 401

    def test_header_key_accepted(self, api_client):
        api_client.post("/api/chatbot/test/message", json={"phoneNumber": "+551", "message": "oi"})
        response = api_client.get("/api/analytics/realtime", headers={"X-API-Key": API_KEY})
        assert response.status_code == 200
        data = response.json()
        assert data["analytics"]["total_messages"] == 1
        assert data["active_conversations"] == 1

    def test_query_key_accepted(self, api_client):
        response = api_client.get(f"/api/analytics/today?apiKey={API_KEY}")
        assert response.status_code == 200
        assert response.json()["source"] == "memory"

    def test_today_prefers_stored_report(self, api_client, container):
        container.analytics_repo.add(_report(date.today().isoformat(), [], messages=42))
        data = api_client.get("/api/analytics/today", headers={"X-API-Key": API_KEY}).json()
        assert data["source"] == "database"
        assert data["stats"]["total_messages"] == 42
        assert "user_phones" not in data["stats"]

    def test_report_by_date(self, api_client, container):
        container.analytics_repo.add(_report("2026-04-01", []))
        headers = {"X-API-Key": API_KEY}

        assert api_client.get("/api/analytics/report/2026-04-01", headers=headers).status_code == 200
        assert api_client.get("/api/analytics/report/2026-04-02", headers=headers).status_code == 404
        assert api_client.get("/api/analytics/report/april", headers=headers).status_code == 400

    def test_historical_totals(self, api_client, container):
        yesterday = (date.today() - timedelta(days=1)).isoformat()
        container.analytics_repo.add(_report(yesterday, [], sessions=2, messages=9))
        data = api_client.get("/api/analytics/historical?days=7", headers={"X-API-Key": API_KEY}).json()
        assert data["totals"] == {"sessions": 2, "messages": 9}
        assert data["reports"][0]["date"] == yesterday

    def test_historical_days_bounds(self, api_client):
        response = api_client.get("/api/analytics/historical?days=91", headers={"X-API-Key": API_KEY})
        assert response.status_code == 422

    def test_popular_menus_include_titles(self, api_client, container):
        yesterday = (date.today() - timedelta(days=1)).isoformat()
        container.analytics_repo.add(
            _report(yesterday, [{"menu_id": "a", "count": 3}, {"menu_id": "gone", "count": 1}])
        )
        data = api_client.get("/api/analytics/popular-menus", headers={"X-API-Key": API_KEY}).json()
        assert data["menus"][0]["title"] == "Prayer"
        assert data["menus"][1]["title"] is None

    def test_historical_window_is_days_long(self, api_client, container):
        today = date.today()
        for offset in range(8):
            day = (today - timedelta(days=offset)).isoformat()
            container.analytics_repo.add(_report(day, [], sessions=1, messages=1))

        data = api_client.get("/api/analytics/historical?days=7", headers={"X-API-Key": API_KEY}).json()
        assert len(data["reports"]) == 7
        assert data["period"]["start"] == (today - timedelta(days=6)).isoformat()
        assert data["totals"] == {"sessions": 7, "messages": 7}

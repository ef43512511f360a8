"""
CFC Push Chatbot - Analytics Repository

Daily analytics reports, one document per calendar day.
"""

from abc import ABC, abstractmethod
from datetime import date, timedelta
from typing import List, Optional

from motor.motor_asyncio import AsyncIOMotorDatabase

from app.analytics.models import DailyReport, DailyStats


class AnalyticsRepositoryInterface(ABC):
    @abstractmethod
    async def save_daily_report(self, stats: DailyStats) -> DailyReport:
        """Upsert the report for stats.date."""
        pass

    @abstractmethod
    async def get_report_by_date(self, day: str) -> Optional[DailyReport]:
        pass

    @abstractmethod
    async def get_reports_by_date_range(self, start: str, end: str) -> List[DailyReport]:
        pass

    @abstractmethod
    async def get_last_reports(self, limit: int = 30) -> List[DailyReport]:
        pass

    async def get_most_popular_menus(
        self,
        days: int = 7,
        today: Optional[date] = None,
        limit: int = 10,
    ) -> List[dict]:
        """Aggregate per-menu counts over the `days` calendar days ending today (inclusive)."""
        end = today or date.today()
        start = end - timedelta(days=max(days - 1, 0))
        reports = await self.get_reports_by_date_range(start.isoformat(), end.isoformat())

        totals: dict[str, int] = {}
        for report in reports:
            for entry in report.popular_menus:
                menu_id = entry["menu_id"]
                totals[menu_id] = totals.get(menu_id, 0) + entry.get("count", 0)

        ranked = sorted(totals.items(), key=lambda item: item[1], reverse=True)[:limit]
        return [
            {
                "menu_id": menu_id,
                "total_count": count,
                "daily_average": round(count / days, 1) if days else 0.0,
            }
            for menu_id, count in ranked
        ]


class MongoAnalyticsRepository(AnalyticsRepositoryInterface):
    COLLECTION_NAME = "daily_analytics_reports"

    def __init__(self, db: AsyncIOMotorDatabase):
        self.collection = db[self.COLLECTION_NAME]

    async def save_daily_report(self, stats: DailyStats) -> DailyReport:
        report = DailyReport.from_stats(stats)
        await self.collection.update_one(
            {"date": report.date},
            {"$set": report.to_dict()},
            upsert=True,
        )
        return report

    async def get_report_by_date(self, day: str) -> Optional[DailyReport]:
        doc = await self.collection.find_one({"date": day})
        return DailyReport.from_dict(doc) if doc else None

    async def get_reports_by_date_range(self, start: str, end: str) -> List[DailyReport]:
        cursor = self.collection.find({"date": {"$gte": start, "$lte": end}}).sort("date", 1)
        reports: List[DailyReport] = []
        async for doc in cursor:
            reports.append(DailyReport.from_dict(doc))
        return reports

    async def get_last_reports(self, limit: int = 30) -> List[DailyReport]:
        cursor = self.collection.find().sort("date", -1).limit(limit)
        reports: List[DailyReport] = []
        async for doc in cursor:
            reports.append(DailyReport.from_dict(doc))
        return reports


class InMemoryAnalyticsRepository(AnalyticsRepositoryInterface):
    """
    In-memory implementation for CI-safe testing.
    """

    def __init__(self):
        self._reports: dict[str, DailyReport] = {}

    def clear(self) -> None:
        self._reports.clear()

    def add(self, report: DailyReport) -> None:
        self._reports[report.date] = report

    async def save_daily_report(self, stats: DailyStats) -> DailyReport:
        report = DailyReport.from_stats(stats)
        self._reports[report.date] = report
        return report

    async def get_report_by_date(self, day: str) -> Optional[DailyReport]:
        return self._reports.get(day)

    async def get_reports_by_date_range(self, start: str, end: str) -> List[DailyReport]:
        return sorted(
            (r for r in self._reports.values() if start <= r.date <= end),
            key=lambda r: r.date,
        )

    async def get_last_reports(self, limit: int = 30) -> List[DailyReport]:
        return sorted(self._reports.values(), key=lambda r: r.date, reverse=True)[:limit]

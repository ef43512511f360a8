from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from typing import Optional


HOURS_PER_DAY = 24
TOP_MENUS_STORED = 10


def _empty_hours() -> list[int]:
    return [0] * HOURS_PER_DAY


@dataclass
class DailyStats:
    """Per-calendar-day interaction counters, kept in memory until exported."""

    date: str
    total_sessions: int = 0
    total_messages: int = 0
    popular_menus: dict[str, int] = field(default_factory=dict)
    peak_hours: list[int] = field(default_factory=_empty_hours)
    unique_phones: set[str] = field(default_factory=set)

    @classmethod
    def for_day(cls, day: date) -> "DailyStats":
        return cls(date=day.isoformat())

    @property
    def unique_users(self) -> int:
        return len(self.unique_phones)

    def top_menus(self, limit: int = TOP_MENUS_STORED) -> list[dict]:
        ranked = sorted(self.popular_menus.items(), key=lambda item: item[1], reverse=True)
        return [{"menu_id": menu_id, "count": count} for menu_id, count in ranked[:limit]]

    def peak_hour(self) -> int:
        busiest = max(self.peak_hours)
        return self.peak_hours.index(busiest)

    def messages_per_session(self) -> float:
        if self.total_sessions == 0:
            return 0.0
        return round(self.total_messages / self.total_sessions, 1)

    def to_dict(self) -> dict:
        """Public snapshot (also used for the API when no report is stored yet)."""
        return {
            "date": self.date,
            "total_sessions": self.total_sessions,
            "total_messages": self.total_messages,
            "unique_users": self.unique_users,
            "popular_menus": self.top_menus(),
            "peak_hours": list(self.peak_hours),
            "peak_hour": self.peak_hour(),
        }


@dataclass
class DailyReport:
    """A persisted daily analytics report."""

    date: str
    total_sessions: int
    total_messages: int
    unique_users: int
    popular_menus: list[dict]
    peak_hours: list[int]
    user_phones: list[str]
    generated_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @classmethod
    def from_stats(cls, stats: DailyStats, generated_at: Optional[datetime] = None) -> "DailyReport":
        return cls(
            date=stats.date,
            total_sessions=stats.total_sessions,
            total_messages=stats.total_messages,
            unique_users=stats.unique_users,
            popular_menus=stats.top_menus(TOP_MENUS_STORED),
            peak_hours=list(stats.peak_hours),
            user_phones=sorted(stats.unique_phones),
            generated_at=generated_at or datetime.now(timezone.utc),
        )

    def to_dict(self) -> dict:
        return {
            "date": self.date,
            "total_sessions": self.total_sessions,
            "total_messages": self.total_messages,
            "unique_users": self.unique_users,
            "popular_menus": self.popular_menus,
            "peak_hours": self.peak_hours,
            "user_phones": self.user_phones,
            "generated_at": self.generated_at,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "DailyReport":
        return cls(
            date=data["date"],
            total_sessions=data.get("total_sessions", 0),
            total_messages=data.get("total_messages", 0),
            unique_users=data.get("unique_users", 0),
            popular_menus=data.get("popular_menus", []),
            peak_hours=data.get("peak_hours") or _empty_hours(),
            user_phones=data.get("user_phones", []),
            generated_at=data.get("generated_at") or datetime.now(timezone.utc),
        )

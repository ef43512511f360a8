"""
CFC Push Chatbot - Session Repository

Durable chatbot sessions.
Includes MongoDB implementation for runtime and in-memory for testing.
"""

from abc import ABC, abstractmethod
from datetime import datetime, timedelta, timezone
from typing import List, Optional

from motor.motor_asyncio import AsyncIOMotorDatabase

from app.sessions.models import Interaction, SessionStatus, UserSession


def _start_of_today() -> datetime:
    now = datetime.now(timezone.utc)
    return now.replace(hour=0, minute=0, second=0, microsecond=0)


def _stats_from_sessions(sessions: List[UserSession]) -> dict:
    today = _start_of_today()
    with_interactions = [s for s in sessions if s.interactions]
    total_interactions = sum(len(s.interactions) for s in with_interactions)
    return {
        "total_sessions": len(sessions),
        "active_sessions": sum(1 for s in sessions if s.status == SessionStatus.ACTIVE),
        "today_sessions": sum(1 for s in sessions if _aware(s.start_time) >= today),
        "avg_interactions": (
            round(total_interactions / len(with_interactions)) if with_interactions else 0
        ),
    }


def _aware(value: datetime) -> datetime:
    # Motor returns naive UTC datetimes unless tz_aware is set on the client
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class SessionRepositoryInterface(ABC):
    """
    Abstract interface for session storage.

    Enables swapping implementations (MongoDB for runtime, in-memory for tests).
    """

    def __init__(self, reuse_window: timedelta = timedelta(hours=4)):
        self.reuse_window = reuse_window

    @abstractmethod
    async def get_or_create(self, phone: str) -> UserSession:
        """Return the phone's active session seen within the reuse window, or a new one."""
        pass

    @abstractmethod
    async def get_by_session_id(self, session_id: str) -> Optional[UserSession]:
        pass

    @abstractmethod
    async def save(self, session: UserSession) -> UserSession:
        pass

    @abstractmethod
    async def expire_stale(self, older_than: datetime) -> int:
        """Mark active sessions idle since before `older_than` as expired."""
        pass

    @abstractmethod
    async def list_sessions(
        self,
        limit: int = 50,
        status: Optional[SessionStatus] = None,
    ) -> List[UserSession]:
        pass

    @abstractmethod
    async def get_stats(self) -> dict:
        pass

    async def record_interaction(
        self,
        session_id: str,
        user_input: str,
        bot_response: str,
        node_id: Optional[str] = None,
        action: Optional[str] = None,
    ) -> Optional[UserSession]:
        session = await self.get_by_session_id(session_id)
        if session is None:
            return None
        session.record(Interaction.create(user_input, bot_response, node_id, action))
        return await self.save(session)

    async def complete_session(
        self,
        session_id: str,
        reason: str = "user_completed",
    ) -> Optional[UserSession]:
        session = await self.get_by_session_id(session_id)
        if session is None:
            return None
        session.status = SessionStatus.COMPLETED
        session.completed_at = datetime.now(timezone.utc)
        session.completion_reason = reason
        return await self.save(session)


class MongoSessionRepository(SessionRepositoryInterface):
    COLLECTION_NAME = "chatbot_sessions"

    def __init__(self, db: AsyncIOMotorDatabase, reuse_window: timedelta = timedelta(hours=4)):
        super().__init__(reuse_window)
        self.collection = db[self.COLLECTION_NAME]

    async def get_or_create(self, phone: str) -> UserSession:
        now = datetime.now(timezone.utc)
        doc = await self.collection.find_one_and_update(
            {
                "phone": phone,
                "status": SessionStatus.ACTIVE.value,
                "last_interaction": {"$gte": now - self.reuse_window},
            },
            {"$set": {"last_interaction": now}},
            sort=[("last_interaction", -1)],
            return_document=True,
        )
        if doc is not None:
            return UserSession.from_dict(doc)

        session = UserSession.create(phone)
        await self.collection.insert_one(session.to_dict())
        return session

    async def get_by_session_id(self, session_id: str) -> Optional[UserSession]:
        doc = await self.collection.find_one({"_id": session_id})
        return UserSession.from_dict(doc) if doc else None

    async def save(self, session: UserSession) -> UserSession:
        await self.collection.replace_one({"_id": session.session_id}, session.to_dict(), upsert=True)
        return session

    async def expire_stale(self, older_than: datetime) -> int:
        result = await self.collection.update_many(
            {
                "status": SessionStatus.ACTIVE.value,
                "last_interaction": {"$lt": older_than},
            },
            {
                "$set": {
                    "status": SessionStatus.EXPIRED.value,
                    "completion_reason": "auto_expired",
                    "completed_at": datetime.now(timezone.utc),
                }
            },
        )
        return result.modified_count

    async def list_sessions(
        self,
        limit: int = 50,
        status: Optional[SessionStatus] = None,
    ) -> List[UserSession]:
        query: dict = {}
        if status is not None:
            query["status"] = status.value
        cursor = self.collection.find(query).sort("last_interaction", -1).limit(limit)
        sessions: List[UserSession] = []
        async for doc in cursor:
            sessions.append(UserSession.from_dict(doc))
        return sessions

    async def get_stats(self) -> dict:
        total = await self.collection.count_documents({})
        active = await self.collection.count_documents({"status": SessionStatus.ACTIVE.value})
        today = await self.collection.count_documents({"start_time": {"$gte": _start_of_today()}})

        pipeline = [
            {"$match": {"interactions.0": {"$exists": True}}},
            {"$group": {"_id": None, "avg": {"$avg": {"$size": "$interactions"}}}},
        ]
        avg_interactions = 0
        async for row in self.collection.aggregate(pipeline):
            avg_interactions = round(row["avg"] or 0)

        return {
            "total_sessions": total,
            "active_sessions": active,
            "today_sessions": today,
            "avg_interactions": avg_interactions,
        }


class InMemorySessionRepository(SessionRepositoryInterface):
    """
    In-memory implementation for CI-safe testing.
    """

    def __init__(self, reuse_window: timedelta = timedelta(hours=4)):
        super().__init__(reuse_window)
        self._sessions: dict[str, UserSession] = {}

    def clear(self) -> None:
        self._sessions.clear()

    async def get_or_create(self, phone: str) -> UserSession:
        now = datetime.now(timezone.utc)
        candidates = [
            s for s in self._sessions.values()
            if s.phone == phone
            and s.status == SessionStatus.ACTIVE
            and _aware(s.last_interaction) >= now - self.reuse_window
        ]
        if candidates:
            session = max(candidates, key=lambda s: _aware(s.last_interaction))
            session.last_interaction = now
            return session

        session = UserSession.create(phone)
        self._sessions[session.session_id] = session
        return session

    async def get_by_session_id(self, session_id: str) -> Optional[UserSession]:
        return self._sessions.get(session_id)

    async def save(self, session: UserSession) -> UserSession:
        self._sessions[session.session_id] = session
        return session

    async def expire_stale(self, older_than: datetime) -> int:
        expired = 0
        for session in self._sessions.values():
            if session.status == SessionStatus.ACTIVE and _aware(session.last_interaction) < older_than:
                session.status = SessionStatus.EXPIRED
                session.completion_reason = "auto_expired"
                session.completed_at = datetime.now(timezone.utc)
                expired += 1
        return expired

    async def list_sessions(
        self,
        limit: int = 50,
        status: Optional[SessionStatus] = None,
    ) -> List[UserSession]:
        sessions = [s for s in self._sessions.values() if status is None or s.status == status]
        sessions.sort(key=lambda s: _aware(s.last_interaction), reverse=True)
        return sessions[:limit]

    async def get_stats(self) -> dict:
        return _stats_from_sessions(list(self._sessions.values()))

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Optional
import uuid


NAVIGATION_HISTORY_LIMIT = 10
INTERACTIONS_LIMIT = 100
BOT_RESPONSE_MAX_CHARS = 500


def _utcnow() -> datetime:
    """Get current UTC time as timezone-aware datetime."""
    return datetime.now(timezone.utc)


class SessionStatus(str, Enum):
    ACTIVE = "active"
    COMPLETED = "completed"
    EXPIRED = "expired"


@dataclass
class Interaction:
    timestamp: datetime
    user_input: str
    bot_response: str
    node_id: Optional[str] = None
    action: Optional[str] = None

    @classmethod
    def create(
        cls,
        user_input: str,
        bot_response: str,
        node_id: Optional[str] = None,
        action: Optional[str] = None,
    ) -> "Interaction":
        return cls(
            timestamp=_utcnow(),
            user_input=user_input,
            bot_response=bot_response[:BOT_RESPONSE_MAX_CHARS],
            node_id=node_id,
            action=action,
        )

    def to_dict(self) -> dict:
        return {
            "timestamp": self.timestamp,
            "user_input": self.user_input,
            "bot_response": self.bot_response,
            "node_id": self.node_id,
            "action": self.action,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Interaction":
        return cls(
            timestamp=data["timestamp"],
            user_input=data.get("user_input", ""),
            bot_response=data.get("bot_response", ""),
            node_id=data.get("node_id"),
            action=data.get("action"),
        )


def append_navigation(history: list[str], node_id: str) -> list[str]:
    """Add a node to the history once, keeping only the most recent entries."""
    if node_id in history:
        return history
    return (history + [node_id])[-NAVIGATION_HISTORY_LIMIT:]


@dataclass
class UserSession:
    """Durable record of one user's conversation, independent of navigation state."""

    session_id: str
    phone: str
    start_time: datetime = field(default_factory=_utcnow)
    last_interaction: datetime = field(default_factory=_utcnow)
    status: SessionStatus = SessionStatus.ACTIVE
    current_node_id: Optional[str] = None
    navigation_history: list[str] = field(default_factory=list)
    interactions: list[Interaction] = field(default_factory=list)
    completed_at: Optional[datetime] = None
    completion_reason: Optional[str] = None

    @classmethod
    def create(cls, phone: str) -> "UserSession":
        now = _utcnow()
        return cls(
            session_id=f"sess_{uuid.uuid4().hex}",
            phone=phone,
            start_time=now,
            last_interaction=now,
        )

    def record(self, interaction: Interaction) -> None:
        if interaction.node_id:
            self.current_node_id = interaction.node_id
            self.navigation_history = append_navigation(self.navigation_history, interaction.node_id)
        self.interactions = (self.interactions + [interaction])[-INTERACTIONS_LIMIT:]
        self.last_interaction = interaction.timestamp

    def to_dict(self) -> dict:
        """Convert session to dictionary for MongoDB storage."""
        return {
            "_id": self.session_id,
            "session_id": self.session_id,
            "phone": self.phone,
            "start_time": self.start_time,
            "last_interaction": self.last_interaction,
            "status": self.status.value,
            "current_node_id": self.current_node_id,
            "navigation_history": self.navigation_history,
            "interactions": [i.to_dict() for i in self.interactions],
            "completed_at": self.completed_at,
            "completion_reason": self.completion_reason,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "UserSession":
        """Create session from MongoDB document."""
        return cls(
            session_id=data["session_id"],
            phone=data["phone"],
            start_time=data["start_time"],
            last_interaction=data["last_interaction"],
            status=SessionStatus(data.get("status", SessionStatus.ACTIVE.value)),
            current_node_id=data.get("current_node_id"),
            navigation_history=data.get("navigation_history") or [],
            interactions=[Interaction.from_dict(i) for i in data.get("interactions") or []],
            completed_at=data.get("completed_at"),
            completion_reason=data.get("completion_reason"),
        )

    def summary(self) -> dict:
        return {
            "session_id": self.session_id,
            "phone": self.phone,
            "status": self.status.value,
            "start_time": self.start_time,
            "last_interaction": self.last_interaction,
            "current_node_id": self.current_node_id,
            "navigation_history": list(self.navigation_history),
            "interaction_count": len(self.interactions),
        }

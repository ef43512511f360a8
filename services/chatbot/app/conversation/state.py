"""
CFC Push Chatbot - Conversation State

Per-phone navigation cursor. State is kept in memory only; sessions and
analytics are persisted separately.
"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Callable, Optional, Tuple


def _utcnow() -> datetime:
    """Get current UTC time as timezone-aware datetime."""
    return datetime.now(timezone.utc)


class ConversationLevel(str, Enum):
    AT_ROOT = "at_root"
    BROWSING_SUBMENU = "browsing_submenu"
    VIEWING_CONTENT = "viewing_content"


@dataclass
class ConversationState:
    """
    Where one user currently is in the menu tree.

    `active_node_id` is set whenever level is not AT_ROOT: the parent whose
    children are listed (BROWSING_SUBMENU) or the node shown (VIEWING_CONTENT).
    """

    phone: str
    level: ConversationLevel = ConversationLevel.AT_ROOT
    active_node_id: Optional[str] = None
    updated_at: datetime = field(default_factory=_utcnow)

    def go_root(self) -> None:
        self.level = ConversationLevel.AT_ROOT
        self.active_node_id = None

    def browse(self, parent_id: str) -> None:
        self.level = ConversationLevel.BROWSING_SUBMENU
        self.active_node_id = parent_id

    def view(self, node_id: str) -> None:
        self.level = ConversationLevel.VIEWING_CONTENT
        self.active_node_id = node_id

    def touch(self, now: Optional[datetime] = None) -> None:
        self.updated_at = now or _utcnow()


class ConversationStore:
    """
    Conversation states keyed by phone number.

    Each phone has its own state, so concurrent users never see each other's
    navigation. Idle states are dropped by `evict_expired`.
    """

    def __init__(
        self,
        ttl: Optional[timedelta] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.ttl = ttl
        self._clock = clock or _utcnow
        self._states: dict[str, ConversationState] = {}

    def __len__(self) -> int:
        return len(self._states)

    def __contains__(self, phone: str) -> bool:
        return phone in self._states

    def now(self) -> datetime:
        return self._clock()

    def get(self, phone: str) -> Optional[ConversationState]:
        return self._states.get(phone)

    def get_or_create(self, phone: str) -> Tuple[ConversationState, bool]:
        """Return (state, created)."""
        state = self._states.get(phone)
        if state is not None:
            state.touch(self._clock())
            return state, False
        state = ConversationState(phone=phone, updated_at=self._clock())
        self._states[phone] = state
        return state, True

    def reset(self, phone: str) -> ConversationState:
        """Replace any prior state with a fresh AT_ROOT one."""
        state = ConversationState(phone=phone, updated_at=self._clock())
        self._states[phone] = state
        return state

    def clear(self, phone: str) -> None:
        self._states.pop(phone, None)

    def clear_all(self) -> None:
        self._states.clear()

    def evict_expired(self, now: Optional[datetime] = None) -> int:
        """Drop states idle longer than the TTL. Returns how many were dropped."""
        if self.ttl is None:
            return 0
        cutoff = (now or self._clock()) - self.ttl
        expired = [phone for phone, s in self._states.items() if s.updated_at < cutoff]
        for phone in expired:
            del self._states[phone]
        return len(expired)

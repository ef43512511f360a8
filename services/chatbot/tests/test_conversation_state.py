"""
CFC Push Chatbot - Conversation State Tests
"""

from datetime import datetime, timedelta, timezone

from app.conversation.state import ConversationLevel, ConversationStore

from tests.conftest import FrozenClock


class TestConversationStore:
    """Tests for the per-phone state store."""

    def test_get_or_create_starts_at_root(self):
        store = ConversationStore()
        state, created = store.get_or_create("+551")
        assert created
        assert state.level == ConversationLevel.AT_ROOT
        assert state.active_node_id is None

    def test_get_or_create_returns_existing(self):
        store = ConversationStore()
        first, _ = store.get_or_create("+551")
        first.browse("a")

        second, created = store.get_or_create("+551")
        assert not created
        assert second is first
        assert second.active_node_id == "a"

    def test_reset_discards_prior_state(self):
        store = ConversationStore()
        state, _ = store.get_or_create("+551")
        state.view("a1")

        fresh = store.reset("+551")
        assert fresh.level == ConversationLevel.AT_ROOT
        assert store.get("+551") is fresh

    def test_clear(self):
        store = ConversationStore()
        store.get_or_create("+551")
        store.get_or_create("+552")

        store.clear("+551")
        store.clear("+missing")
        assert "+551" not in store
        assert len(store) == 1

        store.clear_all()
        assert len(store) == 0

    def test_transitions_set_active_node(self):
        store = ConversationStore()
        state, _ = store.get_or_create("+551")

        state.browse("a")
        assert (state.level, state.active_node_id) == (ConversationLevel.BROWSING_SUBMENU, "a")
        state.view("a1")
        assert (state.level, state.active_node_id) == (ConversationLevel.VIEWING_CONTENT, "a1")
        state.go_root()
        assert (state.level, state.active_node_id) == (ConversationLevel.AT_ROOT, None)


class TestEviction:
    """Tests for idle state eviction."""

    def test_evicts_only_idle_states(self):
        start = datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)
        clock = FrozenClock(start)
        store = ConversationStore(ttl=timedelta(minutes=60), clock=clock)

        store.get_or_create("+idle")
        clock.set(start + timedelta(minutes=50))
        store.get_or_create("+active")

        evicted = store.evict_expired(start + timedelta(minutes=61))
        assert evicted == 1
        assert "+idle" not in store
        assert "+active" in store

    def test_access_refreshes_idle_time(self):
        start = datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)
        clock = FrozenClock(start)
        store = ConversationStore(ttl=timedelta(minutes=60), clock=clock)

        store.get_or_create("+551")
        clock.set(start + timedelta(minutes=59))
        store.get_or_create("+551")

        assert store.evict_expired(start + timedelta(minutes=90)) == 0

    def test_no_ttl_never_evicts(self):
        store = ConversationStore()
        store.get_or_create("+551")
        assert store.evict_expired(datetime.now(timezone.utc) + timedelta(days=365)) == 0
        assert len(store) == 1

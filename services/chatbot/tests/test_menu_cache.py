"""
CFC Push Chatbot - Menu Cache Tests

Tests for menu decoding, cache refresh and tree queries.
"""

import asyncio
from datetime import datetime
from unittest.mock import AsyncMock

from bson import ObjectId

from app.menus.cache import MenuCache
from app.menus.models import MenuNode, NodeKind, WelcomeMessage
from app.menus.repository import InMemoryMenuRepository
from app.menus.scheduler import CacheRefreshScheduler

from tests.conftest import FrozenClock, build_menu_nodes


class TestMenuNodeDecoding:
    """Tests for MenuNode.from_dict defaults."""

    def test_minimal_document_gets_defaults(self):
        node = MenuNode.from_dict({"_id": "n1", "title": " Agenda "})
        assert node.title == "Agenda"
        assert node.order == 0
        assert node.parent_id is None
        assert node.description == ""
        assert node.content == ""
        assert node.url == ""
        assert node.kind == NodeKind.INFO
        assert node.payload == ""
        assert node.is_active is True

    def test_object_ids_are_stringified(self):
        oid = ObjectId()
        parent = ObjectId()
        node = MenuNode.from_dict({"_id": oid, "title": "X", "parentId": parent, "order": "3"})
        assert node.id == str(oid)
        assert node.parent_id == str(parent)
        assert node.order == 3

    def test_unknown_type_and_bad_order(self):
        node = MenuNode.from_dict({"_id": "n", "title": "X", "type": "video", "order": "abc"})
        assert node.kind == NodeKind.INFO
        assert node.order == 0

    def test_null_fields(self):
        node = MenuNode.from_dict({"_id": "n", "title": None, "description": None, "url": None})
        assert node.title == ""
        assert node.description == ""
        assert node.url == ""

    def test_action_payloads(self):
        end = MenuNode(id="e", title="Sair", kind=NodeKind.ACTION, payload="END_CHAT")
        back = MenuNode(id="b", title="Voltar", kind=NodeKind.ACTION, payload="BACK_TO_MAIN")
        info = MenuNode(id="i", title="Info", payload="END_CHAT")
        assert end.has_terminal_payload and not end.returns_to_root
        assert back.returns_to_root and not back.has_terminal_payload
        assert not info.has_terminal_payload

    def test_welcome_defaults(self):
        welcome = WelcomeMessage.from_dict({"title": "Título", "quickTip": "Dica"})
        assert welcome.title == "Título"
        assert welcome.quick_tip == "Dica"
        assert welcome.message == WelcomeMessage.default().message


class TestMenuCacheQueries:
    """Tests for the tree queries."""

    async def test_root_nodes_sorted_by_order(self, menu_cache):
        assert [n.id for n in menu_cache.get_root_nodes()] == ["a", "b", "c"]

    async def test_children_sorted_by_order(self, menu_cache):
        assert [n.id for n in menu_cache.get_children("a")] == ["a1", "a2"]

    async def test_children_of_falsy_or_leaf(self, menu_cache):
        assert menu_cache.get_children(None) == []
        assert menu_cache.get_children("") == []
        assert menu_cache.get_children("b") == []

    async def test_get_node(self, menu_cache):
        assert menu_cache.get_node("a1").title == "Submit request"
        assert menu_cache.get_node("missing") is None
        assert menu_cache.get_node(None) is None

    async def test_inactive_nodes_excluded(self, menu_cache):
        assert menu_cache.get_node("x") is None

    async def test_equal_orders_keep_store_order(self):
        repo = InMemoryMenuRepository([
            MenuNode(id="first", title="First", order=1),
            MenuNode(id="second", title="Second", order=1),
        ])
        cache = MenuCache(repo)
        await cache.refresh()
        assert [n.id for n in cache.get_root_nodes()] == ["first", "second"]

    async def test_welcome_message_loaded(self, menu_cache, welcome):
        assert menu_cache.get_welcome_message() == welcome

    async def test_default_welcome_when_store_has_none(self):
        cache = MenuCache(InMemoryMenuRepository(build_menu_nodes()))
        await cache.refresh()
        assert cache.get_welcome_message() == WelcomeMessage.default()


class TestMenuCacheRefresh:
    """Tests for refresh behavior."""

    async def test_not_loaded_before_refresh(self, menu_repository):
        cache = MenuCache(menu_repository)
        assert not cache.is_loaded()
        assert cache.get_root_nodes() == []

    async def test_refresh_replaces_snapshot(self, menu_repository, menu_cache):
        menu_repository.clear()
        menu_repository.add(MenuNode(id="new", title="New", order=1))

        assert await menu_cache.refresh() is True
        assert [n.id for n in menu_cache.get_root_nodes()] == ["new"]
        assert menu_cache.get_node("a") is None

    async def test_failure_keeps_previous_snapshot(self, menu_repository, menu_cache):
        roots_before = menu_cache.get_root_nodes()
        children_before = menu_cache.get_children("a")
        menu_repository.find_all_active = AsyncMock(side_effect=ConnectionError("mongo down"))

        assert await menu_cache.refresh() is False
        assert menu_cache.get_root_nodes() == roots_before
        assert menu_cache.get_children("a") == children_before

    async def test_empty_result_keeps_previous_snapshot(self, menu_repository, menu_cache):
        menu_repository.clear()
        assert await menu_cache.refresh() is True
        assert menu_cache.is_loaded()
        assert len(menu_cache.get_root_nodes()) == 3

    async def test_welcome_failure_keeps_menus(self, menu_repository):
        menu_repository.get_active_welcome_message = AsyncMock(side_effect=RuntimeError("boom"))
        cache = MenuCache(menu_repository)
        assert await cache.refresh() is True
        assert cache.is_loaded()
        assert cache.get_welcome_message() == WelcomeMessage.default()

    async def test_stats(self, menu_repository):
        clock = FrozenClock(datetime(2026, 3, 10, 8, 30))
        cache = MenuCache(menu_repository, refresh_hour=6, clock=clock)
        await cache.refresh()

        stats = cache.get_stats()
        assert stats["total_menus"] == 5
        assert stats["root_menus"] == 3
        assert stats["submenus"] == 2
        assert stats["is_loaded"] is True
        assert stats["last_refresh"] == "2026-03-10T08:30:00"
        assert stats["next_refresh"] == "2026-03-11T06:00:00"


class TestCacheRefreshScheduler:
    """Tests for the refresh scheduler."""

    async def test_force_refresh(self, menu_repository):
        cache = MenuCache(menu_repository)
        scheduler = CacheRefreshScheduler(cache)
        assert await scheduler.force_refresh() is True
        assert cache.is_loaded()

    async def test_force_refresh_reports_failure(self, menu_repository):
        menu_repository.find_all_active = AsyncMock(side_effect=ConnectionError("down"))
        scheduler = CacheRefreshScheduler(MenuCache(menu_repository))
        assert await scheduler.force_refresh() is False

    async def test_start_loads_immediately_and_stop(self, menu_repository):
        cache = MenuCache(menu_repository)
        scheduler = CacheRefreshScheduler(cache)
        await scheduler.start()
        await asyncio.sleep(0.05)

        assert cache.is_loaded()
        assert scheduler.running

        await scheduler.stop()
        assert not scheduler.running

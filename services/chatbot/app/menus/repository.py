"""
CFC Push Chatbot - Menu Repository

Read-only access to the menu tree and welcome message.
Includes MongoDB implementation for runtime and in-memory for testing.
"""

from abc import ABC, abstractmethod
from typing import Optional, List

from bson import ObjectId
from bson.errors import InvalidId
from motor.motor_asyncio import AsyncIOMotorDatabase

from app.menus.models import MenuNode, WelcomeMessage


class MenuRepositoryInterface(ABC):
    """
    Abstract interface for the menu store.

    Enables swapping implementations (MongoDB for runtime, in-memory for tests).
    """

    @abstractmethod
    async def find_all_active(self) -> List[MenuNode]:
        """List all active nodes sorted by ascending order."""
        pass

    @abstractmethod
    async def find_by_id(self, node_id: str) -> Optional[MenuNode]:
        pass

    @abstractmethod
    async def get_stats(self) -> dict:
        pass

    @abstractmethod
    async def get_active_welcome_message(self) -> Optional[WelcomeMessage]:
        pass


def _stats_from_nodes(nodes: List[MenuNode]) -> dict:
    by_type: dict[str, int] = {}
    for node in nodes:
        by_type[node.kind.value] = by_type.get(node.kind.value, 0) + 1
    root_count = sum(1 for n in nodes if n.is_root)
    return {
        "total": len(nodes),
        "by_type": by_type,
        "root_menus": root_count,
        "submenus": len(nodes) - root_count,
    }


class MongoMenuRepository(MenuRepositoryInterface):
    """MongoDB implementation over the management service's collections."""

    COLLECTION_NAME = "menuitems"
    WELCOME_COLLECTION_NAME = "welcomemessages"

    def __init__(self, db: AsyncIOMotorDatabase):
        self.db = db
        self.collection = db[self.COLLECTION_NAME]
        self.welcome_collection = db[self.WELCOME_COLLECTION_NAME]

    async def find_all_active(self) -> List[MenuNode]:
        cursor = self.collection.find({"isActive": True}).sort("order", 1)
        nodes: List[MenuNode] = []
        async for doc in cursor:
            nodes.append(MenuNode.from_dict(doc))
        return nodes

    async def find_by_id(self, node_id: str) -> Optional[MenuNode]:
        try:
            key = ObjectId(node_id)
        except (InvalidId, TypeError):
            key = node_id
        doc = await self.collection.find_one({"_id": key})
        return MenuNode.from_dict(doc) if doc else None

    async def get_stats(self) -> dict:
        total = await self.collection.count_documents({"isActive": True})
        root_menus = await self.collection.count_documents({"isActive": True, "parentId": None})

        by_type: dict[str, int] = {}
        pipeline = [
            {"$match": {"isActive": True}},
            {"$group": {"_id": "$type", "count": {"$sum": 1}}},
        ]
        async for row in self.collection.aggregate(pipeline):
            by_type[str(row["_id"])] = row["count"]

        return {
            "total": total,
            "by_type": by_type,
            "root_menus": root_menus,
            "submenus": total - root_menus,
        }

    async def get_active_welcome_message(self) -> Optional[WelcomeMessage]:
        doc = await self.welcome_collection.find_one(
            {"isActive": True, "deletedAt": None},
            sort=[("createdAt", -1)],
        )
        return WelcomeMessage.from_dict(doc) if doc else None


class InMemoryMenuRepository(MenuRepositoryInterface):
    """
    In-memory implementation for CI-safe testing.
    """

    def __init__(
        self,
        nodes: Optional[List[MenuNode]] = None,
        welcome: Optional[WelcomeMessage] = None,
    ):
        self._nodes: dict[str, MenuNode] = {}
        self._welcome = welcome
        for node in nodes or []:
            self.add(node)

    def add(self, node: MenuNode) -> None:
        self._nodes[node.id] = node

    def clear(self) -> None:
        self._nodes.clear()

    async def find_all_active(self) -> List[MenuNode]:
        active = [n for n in self._nodes.values() if n.is_active]
        active.sort(key=lambda n: n.order)
        return active

    async def find_by_id(self, node_id: str) -> Optional[MenuNode]:
        return self._nodes.get(node_id)

    async def get_stats(self) -> dict:
        return _stats_from_nodes(await self.find_all_active())

    async def get_active_welcome_message(self) -> Optional[WelcomeMessage]:
        return self._welcome

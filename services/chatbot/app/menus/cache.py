"""
CFC Push Chatbot - Menu Cache

In-memory snapshot of the active menu tree, so answering a message never
touches MongoDB. The snapshot is replaced wholesale on refresh and is left
untouched when the store fails.
"""

import logging
from datetime import datetime
from typing import Callable, List, Optional

from app.config import settings
from app.menus.models import MenuNode, WelcomeMessage
from app.menus.repository import MenuRepositoryInterface
from app.scheduling import next_daily_run

logger = logging.getLogger(__name__)


def _by_order(nodes: List[MenuNode]) -> List[MenuNode]:
    # sorted() is stable, so equal orders keep store order
    return sorted(nodes, key=lambda n: n.order)


class MenuCache:
    """Read-many/write-rarely menu snapshot."""

    def __init__(
        self,
        repository: MenuRepositoryInterface,
        refresh_hour: Optional[int] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.repository = repository
        self.refresh_hour = settings.CACHE_REFRESH_HOUR if refresh_hour is None else refresh_hour
        self._clock = clock or datetime.now
        self._nodes: List[MenuNode] = []
        self._welcome: WelcomeMessage = WelcomeMessage.default()
        self.last_refresh: Optional[datetime] = None

    async def refresh(self) -> bool:
        """
        Reload every active node from the store.

        Returns False when the store failed; the previous snapshot is kept.
        An empty result also keeps the previous snapshot.
        """
        logger.info("Refreshing menu cache from store")
        try:
            nodes = await self.repository.find_all_active()
        except Exception as e:
            logger.error("Menu refresh failed, keeping previous cache: %s", e, exc_info=True)
            return False

        if not nodes:
            logger.warning("No active menus found, keeping previous cache (%d nodes)", len(self._nodes))
        else:
            self._nodes = list(nodes)
            logger.info("%d menus loaded into cache", len(nodes))

        try:
            welcome = await self.repository.get_active_welcome_message()
            if welcome is not None:
                self._welcome = welcome
        except Exception as e:
            logger.warning("Could not load welcome message, keeping previous one: %s", e)

        self.last_refresh = self._clock()
        return True

    def get_all_nodes(self) -> List[MenuNode]:
        return list(self._nodes)

    def get_root_nodes(self) -> List[MenuNode]:
        return _by_order([n for n in self._nodes if n.is_root])

    def get_children(self, node_id: Optional[str]) -> List[MenuNode]:
        if not node_id:
            return []
        return _by_order([n for n in self._nodes if n.parent_id == node_id])

    def get_node(self, node_id: Optional[str]) -> Optional[MenuNode]:
        if not node_id:
            return None
        for node in self._nodes:
            if node.id == node_id:
                return node
        return None

    def get_welcome_message(self) -> WelcomeMessage:
        return self._welcome

    def is_loaded(self) -> bool:
        return len(self._nodes) > 0

    def get_stats(self) -> dict:
        root_count = sum(1 for n in self._nodes if n.is_root)
        return {
            "total_menus": len(self._nodes),
            "root_menus": root_count,
            "submenus": len(self._nodes) - root_count,
            "last_refresh": self.last_refresh.isoformat() if self.last_refresh else None,
            "next_refresh": next_daily_run(self._clock(), self.refresh_hour).isoformat(),
            "is_loaded": self.is_loaded(),
        }

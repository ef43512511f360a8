"""
CFC Push Chatbot - Dialogue Engine

Menu-navigation state machine. Given an inbound message and the phone's
conversation state, computes the next state and the reply text using only
the in-memory menu cache.

Classification precedence for every message (trimmed, lowercased):
1. Greeting/reset
2. Special command (menu, voltar, sair...)
3. Numeric selection
4. Fallback help
"""

import logging
import re
from typing import Optional, Protocol

from app.conversation import messages
from app.conversation.schemas import ChatResult
from app.conversation.state import ConversationLevel, ConversationState, ConversationStore
from app.menus.cache import MenuCache
from app.menus.models import MenuNode

logger = logging.getLogger(__name__)


GREETINGS = {
    "shalom", "oi", "olá", "ola", "bom dia", "boa tarde", "boa noite",
    "hello", "hi", "hey", "alô", "alo", "eae", "opa", "salve",
    "começar", "iniciar", "start", "help", "ajuda",
}

MAIN_MENU_COMMANDS = {"menu", "#", "0"}
BACK_COMMANDS = {"voltar", "back", "<"}
EXIT_COMMANDS = {"sair", "encerrar", "15"}
SPECIAL_COMMANDS = MAIN_MENU_COMMANDS | BACK_COMMANDS | EXIT_COMMANDS

NUMERIC = re.compile(r"[0-9]+")


class InteractionTracker(Protocol):
    def track_interaction(self, phone: str, node_id: Optional[str] = None) -> None: ...

    def track_new_session(self, phone: str) -> None: ...


def is_greeting(message: str) -> bool:
    return (
        message in GREETINGS
        or message.startswith("shalom")
        or "oi" in message
        or "olá" in message
    )


def is_special_command(message: str) -> bool:
    return message in SPECIAL_COMMANDS


class DialogueEngine:
    """
    Computes replies for inbound WhatsApp messages.

    Never raises: any fault becomes the generic apology and leaves the stored
    state as it was.
    """

    def __init__(
        self,
        cache: MenuCache,
        store: ConversationStore,
        analytics: Optional[InteractionTracker] = None,
    ):
        self.cache = cache
        self.store = store
        self.analytics = analytics

    def process_message(self, phone: str, raw_text: str) -> ChatResult:
        text = (raw_text or "").strip()
        msg = text.lower()
        existing = self.store.get(phone)
        if existing is not None:
            existing.touch(self.store.now())
        level = existing.level.value if existing else ConversationLevel.AT_ROOT.value
        logger.info('[%s]: "%s" (level: %s)', phone, text, level)

        try:
            if is_greeting(msg):
                result = self._greet(phone)
            elif is_special_command(msg):
                result = self._handle_command(msg, phone)
            elif NUMERIC.fullmatch(msg):
                result = self._handle_number(int(msg), phone)
            else:
                result = self._handle_unrecognized(phone, text)
        except Exception as e:
            logger.error(f"Error computing reply for {phone}: {e}", exc_info=True)
            result = ChatResult(success=False, message=messages.ERROR)

        self._track(phone, result.node_id, new_session=existing is None)
        return result

    # Transitions

    def _greet(self, phone: str) -> ChatResult:
        text = messages.greeting(self.cache.get_welcome_message(), self.cache.get_root_nodes())
        self.store.reset(phone)
        return ChatResult(success=True, message=text)

    def _show_main_menu(self, state: ConversationState) -> ChatResult:
        text = messages.main_menu(self.cache.get_welcome_message(), self.cache.get_root_nodes())
        state.go_root()
        return ChatResult(success=True, message=text)

    def _show_submenu(
        self,
        state: ConversationState,
        parent: MenuNode,
        selected: bool = False,
    ) -> ChatResult:
        """List the children of `parent`. Only a selection reports the node id."""
        text = messages.submenu_list(parent, self.cache.get_children(parent.id))
        state.browse(parent.id)
        return ChatResult(success=True, message=text, node_id=parent.id if selected else None)

    def _handle_command(self, command: str, phone: str) -> ChatResult:
        if command in MAIN_MENU_COMMANDS:
            state, _ = self.store.get_or_create(phone)
            logger.info("%s: command '%s' -> main menu", phone, command)
            return self._show_main_menu(state)

        if command in BACK_COMMANDS:
            return self._go_back(phone)

        self.store.clear(phone)
        logger.info("%s: conversation ended", phone)
        return ChatResult(success=True, message=messages.FAREWELL, ended=True)

    def _go_back(self, phone: str) -> ChatResult:
        state = self.store.get(phone)
        if state is None:
            return self._greet(phone)

        if state.level == ConversationLevel.VIEWING_CONTENT:
            if not self.cache.get_children(state.active_node_id):
                logger.info("%s: back from content -> main menu", phone)
                return self._show_main_menu(state)
            return self._back_to_parent_list(state)

        # BROWSING_SUBMENU goes to the main menu; AT_ROOT re-emits it
        return self._show_main_menu(state)

    def _back_to_parent_list(self, state: ConversationState) -> ChatResult:
        """From content, return to the list the active node was picked from."""
        node = self.cache.get_node(state.active_node_id)
        parent = self.cache.get_node(node.parent_id) if node else None
        if parent is None:
            return self._show_main_menu(state)
        logger.info("%s: back from content -> list '%s'", state.phone, parent.title)
        return self._show_submenu(state, parent)

    def _handle_number(self, number: int, phone: str) -> ChatResult:
        state, _ = self.store.get_or_create(phone)

        if state.level == ConversationLevel.VIEWING_CONTENT:
            # The digit only takes the user back to the list; it is not reapplied
            return self._back_to_parent_list(state)

        if state.level == ConversationLevel.AT_ROOT:
            options = self.cache.get_root_nodes()
        else:
            options = self.cache.get_children(state.active_node_id)

        node = next((n for n in options if n.order == number), None)
        if node is None:
            return ChatResult(
                success=False,
                message=messages.option_unavailable(
                    number, at_root=state.level == ConversationLevel.AT_ROOT
                ),
            )

        if node.returns_to_root:
            logger.info("%s: action node -> main menu", phone)
            return self._show_main_menu(state)

        return self._select(state, node)

    def _select(self, state: ConversationState, node: MenuNode) -> ChatResult:
        children = self.cache.get_children(node.id)
        if children:
            logger.info("%s: option %s -> list '%s'", state.phone, node.order, node.title)
            return self._show_submenu(state, node, selected=True)

        logger.info("%s: option %s -> content '%s'", state.phone, node.order, node.title)
        text = messages.content(node, has_children=False)
        state.view(node.id)
        return ChatResult(success=True, message=text, node_id=node.id)

    def _handle_unrecognized(self, phone: str, text: str) -> ChatResult:
        state = self.store.get(phone)
        if state is None:
            return self._greet(phone)
        logger.info('%s: unrecognized message "%s"', phone, text)
        return ChatResult(success=True, message=messages.unrecognized(state.level, text))

    def _track(self, phone: str, node_id: Optional[str], new_session: bool) -> None:
        if self.analytics is None:
            return
        try:
            if new_session:
                self.analytics.track_new_session(phone)
            self.analytics.track_interaction(phone, node_id)
        except Exception as e:
            logger.warning(f"Analytics tracking failed for {phone}: {e}")

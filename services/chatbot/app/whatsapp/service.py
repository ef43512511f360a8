"""
CFC Push Chatbot - WhatsApp Service

Service for handling inbound Twilio webhook messages.
"""

import logging
import time
from typing import Callable, Optional

from app.conversation.engine import DialogueEngine
from app.conversation.schemas import ChatResult
from app.sessions.repository import SessionRepositoryInterface
from app.whatsapp.adapter import TwilioAdapter
from app.whatsapp.schemas import InboundMessage

logger = logging.getLogger(__name__)


class MessageDeduplicator:
    """
    Suppresses an identical (phone, text) pair seen within a short window.

    Twilio retries webhooks it considers slow; without this a retry would
    advance the conversation twice.
    """

    def __init__(self, window_seconds: float, clock: Optional[Callable[[], float]] = None):
        self.window = window_seconds
        self._clock = clock or time.monotonic
        self._seen: dict[str, float] = {}

    def __len__(self) -> int:
        return len(self._seen)

    def should_process(self, phone: str, text: str) -> bool:
        now = self._clock()
        self._purge(now)
        key = f"{phone}:{text}"
        if key in self._seen:
            return False
        self._seen[key] = now
        return True

    def _purge(self, now: float) -> None:
        expired = [key for key, seen_at in self._seen.items() if now - seen_at >= self.window]
        for key in expired:
            del self._seen[key]


class WhatsAppService:
    """
    Processes one inbound WhatsApp message end to end.

    Responsibilities:
    - Decode and deduplicate the webhook payload
    - Compute the reply with the dialogue engine
    - Deliver the reply through Twilio
    - Record the interaction on the user's session
    """

    def __init__(
        self,
        engine: DialogueEngine,
        adapter: TwilioAdapter,
        deduplicator: MessageDeduplicator,
        session_repo: Optional[SessionRepositoryInterface] = None,
    ):
        self.engine = engine
        self.adapter = adapter
        self.deduplicator = deduplicator
        self.session_repo = session_repo

    async def handle_inbound(self, inbound: InboundMessage) -> Optional[ChatResult]:
        """Returns the computed result, or None when the message was ignored."""
        phone = inbound.phone
        text = inbound.text
        if not phone or not text:
            logger.warning("Webhook without message body or sender, ignoring")
            return None

        if not self.deduplicator.should_process(phone, text):
            logger.info('Skipping duplicate message from %s: "%s"', phone, text)
            return None

        logger.info('New message from %s: "%s"', phone, text)
        result = self.engine.process_message(phone, text)

        if result.message:
            send_result = await self.adapter.send_message(phone, result.message)
            if not send_result.success:
                logger.warning("Reply to %s not delivered: %s", phone, send_result.error)

        await self._record_session(phone, text, result)
        return result

    async def _record_session(self, phone: str, text: str, result: ChatResult) -> None:
        if self.session_repo is None:
            return
        try:
            session = await self.session_repo.get_or_create(phone)
            action = "end_chat" if result.ended else ("select" if result.node_id else None)
            await self.session_repo.record_interaction(
                session.session_id,
                user_input=text,
                bot_response=result.message or "",
                node_id=result.node_id,
                action=action,
            )
            if result.ended:
                await self.session_repo.complete_session(session.session_id, reason="user_exit")
        except Exception as e:
            logger.error(f"Failed to record session for {phone}: {e}", exc_info=True)

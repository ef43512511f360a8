import asyncio
import logging
from typing import Annotated, Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Form, Response

from app.config import settings
from app.container import ServiceContainer, get_container
from app.conversation.schemas import (
    DebugMenuRequest,
    DebugMessageRequest,
    DebugMessageResponse,
)
from app.whatsapp.schemas import EMPTY_TWIML, InboundMessage
from app.whatsapp.service import WhatsAppService

logger = logging.getLogger(__name__)


router = APIRouter(prefix="/api/chatbot", tags=["WhatsApp"])


async def process_inbound_later(service: WhatsAppService, inbound: InboundMessage, delay: float) -> None:
    """Background processing of a webhook that has already been acknowledged."""
    await asyncio.sleep(delay)
    try:
        await service.handle_inbound(inbound)
    except Exception as e:
        logger.error(f"Error processing webhook message: {e}", exc_info=True)


@router.post("/webhook")
async def whatsapp_webhook(
    background_tasks: BackgroundTasks,
    container: Annotated[ServiceContainer, Depends(get_container)],
    body: Annotated[Optional[str], Form(alias="Body")] = None,
    from_: Annotated[Optional[str], Form(alias="From")] = None,
    message_sid: Annotated[Optional[str], Form(alias="MessageSid")] = None,
) -> Response:
    # Twilio only needs an empty TwiML acknowledgement; the reply is sent
    # through the REST API once processing finishes.
    inbound = InboundMessage(body=body, from_=from_, message_sid=message_sid)
    background_tasks.add_task(
        process_inbound_later,
        container.whatsapp,
        inbound,
        settings.WEBHOOK_PROCESSING_DELAY_SECONDS,
    )
    return Response(content=EMPTY_TWIML, media_type="text/xml")


@router.post("/test/message", response_model=DebugMessageResponse)
async def test_message(
    request: DebugMessageRequest,
    container: Annotated[ServiceContainer, Depends(get_container)],
) -> DebugMessageResponse:
    """Run a message through the dialogue engine without sending anything."""
    result = container.engine.process_message(request.phone_number, request.message)
    return DebugMessageResponse(phone_number=request.phone_number, input=request.message, result=result)


@router.post("/test/menu", response_model=DebugMessageResponse)
async def test_menu(
    request: DebugMenuRequest,
    container: Annotated[ServiceContainer, Depends(get_container)],
) -> DebugMessageResponse:
    """Select a menu option by number without sending anything."""
    text = str(request.menu_number)
    result = container.engine.process_message(request.phone_number, text)
    return DebugMessageResponse(phone_number=request.phone_number, input=text, result=result)

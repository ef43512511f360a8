from datetime import datetime, timezone
from typing import Optional
from pydantic import BaseModel, Field


EMPTY_TWIML = "<Response></Response>"


class InboundMessage(BaseModel):
    """The fields of a Twilio WhatsApp webhook this service reads."""

    body: Optional[str] = Field(default=None, description="Message text (Twilio 'Body')")
    from_: Optional[str] = Field(default=None, description="Sender, e.g. 'whatsapp:+5511...' (Twilio 'From')")
    message_sid: Optional[str] = Field(default=None, description="Twilio 'MessageSid'")

    @property
    def phone(self) -> Optional[str]:
        if not self.from_:
            return None
        return self.from_.replace("whatsapp:", "").strip() or None

    @property
    def text(self) -> Optional[str]:
        if self.body is None:
            return None
        return self.body.strip() or None


class SendResult(BaseModel):
    """Outcome of an outbound WhatsApp message."""

    success: bool
    message_sid: Optional[str] = None
    error: Optional[str] = None
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

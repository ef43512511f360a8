import logging
import time
import httpx
from typing import Optional

from app.config import settings
from app.whatsapp.schemas import SendResult

logger = logging.getLogger(__name__)

TRUNCATION_SUFFIX = "...\n\n(mensagem truncada)"


def truncate_message(text: str, max_length: int) -> str:
    if len(text) <= max_length:
        return text
    return text[:max_length] + TRUNCATION_SUFFIX


class TwilioAdapter:
    """Sends WhatsApp messages through the Twilio Messages REST API."""

    def __init__(
        self,
        account_sid: Optional[str] = None,
        auth_token: Optional[str] = None,
        from_number: Optional[str] = None,
        max_length: Optional[int] = None,
    ):
        self.account_sid = account_sid or settings.TWILIO_ACCOUNT_SID
        self.auth_token = auth_token or settings.TWILIO_AUTH_TOKEN
        self.from_number = from_number or settings.TWILIO_WHATSAPP_NUMBER
        self.max_length = max_length or settings.TWILIO_MAX_MESSAGE_LENGTH
        self.api_base_url = "https://api.twilio.com/2010-04-01"

    @property
    def configured(self) -> bool:
        return bool(self.account_sid and self.auth_token and self.from_number)

    def _sender(self) -> str:
        if self.from_number.startswith("whatsapp:"):
            return self.from_number
        return f"whatsapp:{self.from_number}"

    async def send_message(self, phone: str, text: str) -> SendResult:
        if not self.configured:
            return SendResult(success=False, error="Twilio is not configured")

        url = f"{self.api_base_url}/Accounts/{self.account_sid}/Messages.json"
        payload = {
            "From": self._sender(),
            "To": f"whatsapp:{phone}",
            "Body": truncate_message(text, self.max_length),
        }

        started = time.monotonic()
        async with httpx.AsyncClient() as client:
            try:
                response = await client.post(
                    url,
                    data=payload,
                    auth=(self.account_sid, self.auth_token),
                    timeout=10.0,
                )
                response.raise_for_status()
                data = response.json()
            except httpx.HTTPError as e:
                logger.error("Failed to send message to %s: %s", phone, e)
                return SendResult(success=False, error=str(e))

        elapsed_ms = int((time.monotonic() - started) * 1000)
        logger.info("[%dms] Message sent to %s", elapsed_ms, phone)
        return SendResult(success=True, message_sid=data.get("sid"))

    async def test_connection(self) -> bool:
        """Fetch the account resource to check the credentials."""
        if not self.configured:
            return False

        url = f"{self.api_base_url}/Accounts/{self.account_sid}.json"
        async with httpx.AsyncClient() as client:
            try:
                response = await client.get(url, auth=(self.account_sid, self.auth_token), timeout=10.0)
                response.raise_for_status()
                return True
            except httpx.HTTPError as e:
                logger.error("Twilio connection test failed: %s", e)
                return False

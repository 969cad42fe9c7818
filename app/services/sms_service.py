"""
SMS dispatch through the Twilio Messages REST API.

Documentation: https://www.twilio.com/docs/messaging/api/message-resource
"""
import logging
import httpx
from abc import ABC, abstractmethod
from typing import Optional

from app.config import settings
from app.core.exceptions import ExternalServiceError
from app.core.logging import mask_phone

logger = logging.getLogger(__name__)

TWILIO_API_URL = "https://api.twilio.com/2010-04-01"


class SmsClient(ABC):
    @abstractmethod
    async def send(self, to: str, body: str) -> str:
        """Send a text message and return the provider message id"""
        pass


class TwilioSmsClient(SmsClient):
    """Twilio implementation; credentials default to settings"""

    def __init__(
        self,
        account_sid: Optional[str] = None,
        auth_token: Optional[str] = None,
        from_number: Optional[str] = None
    ):
        self.account_sid = account_sid or settings.twilio_account_sid
        self.auth_token = auth_token or settings.twilio_auth_token
        self.from_number = from_number or settings.twilio_phone_number

    async def send(self, to: str, body: str) -> str:
        if not (self.account_sid and self.auth_token and self.from_number):
            raise ExternalServiceError("SMS provider is not configured")

        try:
            async with httpx.AsyncClient() as client:
                response = await client.post(
                    f"{TWILIO_API_URL}/Accounts/{self.account_sid}/Messages.json",
                    data={"To": to, "From": self.from_number, "Body": body},
                    auth=(self.account_sid, self.auth_token),
                    timeout=10.0
                )
        except httpx.HTTPError as e:
            logger.error(f"Twilio request failed for {mask_phone(to)}: {e}")
            raise ExternalServiceError("Could not reach the SMS provider")

        if response.status_code not in (200, 201):
            try:
                error_msg = response.json().get("message", "Unknown error")
            except ValueError:
                error_msg = response.text[:200]
            logger.error(f"Twilio API error: {response.status_code} - {error_msg}")
            raise ExternalServiceError(f"SMS delivery failed: {error_msg}")

        message_sid = response.json().get("sid", "")
        logger.info(f"SMS sent to {mask_phone(to)}: {message_sid}")
        return message_sid

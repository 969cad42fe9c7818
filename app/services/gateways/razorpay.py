"""
Razorpay Payment Gateway (razorpay.com)

Orders are created server-side through the Orders API; the Standard
Checkout runs in the browser and reports back payment id and signature.

Documentation: https://razorpay.com/docs/api/orders/
"""
import logging
import hashlib
import hmac
import uuid
import httpx
from typing import Dict, Any, Optional
from datetime import datetime

from app.config import settings
from app.core.exceptions import ExternalServiceError
from app.services.gateways.base import BaseGateway, PaymentOrder

logger = logging.getLogger(__name__)

RAZORPAY_API_URL = "https://api.razorpay.com/v1"

# Razorpay accepts at most 15 notes of 256 chars each
MAX_NOTES = 15
MAX_NOTE_LENGTH = 256


class RazorpayGateway(BaseGateway):
    """Razorpay gateway implementation using the Orders API"""

    def __init__(self, key_id: Optional[str] = None, key_secret: Optional[str] = None):
        self.key_id = key_id or settings.razorpay_key_id
        self.key_secret = key_secret or settings.razorpay_key_secret
        self.base_url = RAZORPAY_API_URL

    @property
    def name(self) -> str:
        return "razorpay"

    @property
    def display_name(self) -> str:
        return "Razorpay"

    @staticmethod
    def _notes(metadata: Optional[Dict[str, Any]]) -> Dict[str, str]:
        notes = {}
        for key, value in list((metadata or {}).items())[:MAX_NOTES]:
            if value is not None:
                notes[str(key)] = str(value)[:MAX_NOTE_LENGTH]
        return notes

    async def open_session(
        self,
        amount_minor: int,
        currency: str,
        description: str,
        metadata: Optional[Dict[str, Any]] = None
    ) -> PaymentOrder:
        if not self.key_id or not self.key_secret:
            raise ExternalServiceError("Payment gateway is not configured")

        notes = self._notes(metadata)
        payload = {
            "amount": amount_minor,
            "currency": currency,
            "receipt": uuid.uuid4().hex[:40],
            "notes": notes,
        }

        try:
            async with httpx.AsyncClient() as client:
                response = await client.post(
                    f"{self.base_url}/orders",
                    json=payload,
                    auth=(self.key_id, self.key_secret),
                    timeout=30.0
                )
        except httpx.HTTPError as e:
            logger.error(f"Razorpay request failed: {e}")
            raise ExternalServiceError("Could not reach the payment gateway")

        if response.status_code not in (200, 201):
            try:
                error_msg = response.json().get("error", {}).get("description", "Unknown error")
            except ValueError:
                error_msg = response.text[:200]
            logger.error(f"Razorpay API error: {response.status_code} - {error_msg}")
            raise ExternalServiceError(f"Payment order creation failed: {error_msg}")

        order = response.json()
        order_id = order.get("id")
        if not order_id:
            logger.error(f"Razorpay response missing order id: {order}")
            raise ExternalServiceError("Payment gateway response missing order id")

        logger.info(f"Created Razorpay order {order_id} for {amount_minor} {currency}")

        return PaymentOrder(
            gateway_order_id=order_id,
            amount_minor=int(order.get("amount", amount_minor)),
            currency=order.get("currency", currency),
            description=description,
            key_id=self.key_id,
            notes=notes,
            created_at=datetime.utcnow()
        )

    def verify_signature(self, gateway_order_id: str, payment_id: str, signature: str) -> bool:
        """Checkout signature is HMAC-SHA256 of "order_id|payment_id" with the key secret"""
        if not (gateway_order_id and payment_id and signature and self.key_secret):
            return False

        expected = hmac.new(
            self.key_secret.encode(),
            f"{gateway_order_id}|{payment_id}".encode(),
            hashlib.sha256
        ).hexdigest()
        return hmac.compare_digest(expected.encode(), signature.encode())

"""
Payment session registry.

A session is opened with the gateway together with three continuations:
on_success, on_failure and on_cancel. The checkout result reported by the
client resolves the session exactly once; resolution is terminal.
"""
import logging
import time
from dataclasses import dataclass
from typing import Dict, Any, Optional, Callable, Awaitable

from app.core.exceptions import NotFoundError, PaymentError, ValidationError
from app.models.payment import PaymentOutcome
from app.services.gateways.base import BaseGateway, PaymentOrder, PaymentStatus

logger = logging.getLogger(__name__)

# Abandoned checkouts are dropped after this long
SESSION_TTL_SECONDS = 2 * 60 * 60

SuccessCallback = Callable[[str], Awaitable[str]]
FailureCallback = Callable[[Optional[str]], Awaitable[str]]
CancelCallback = Callable[[], Awaitable[str]]


@dataclass
class PaymentSession:
    order: PaymentOrder
    on_success: SuccessCallback
    on_failure: FailureCallback
    on_cancel: CancelCallback
    subject: Optional[str] = None
    opened_at: float = 0.0


class PaymentSessionRegistry:
    """Open payment sessions keyed by gateway order id"""

    def __init__(self, gateway: BaseGateway, clock: Callable[[], float] = time.monotonic,
                 ttl_seconds: float = SESSION_TTL_SECONDS):
        self.gateway = gateway
        self._clock = clock
        self.ttl_seconds = ttl_seconds
        self._sessions: Dict[str, PaymentSession] = {}

    def __len__(self) -> int:
        return len(self._sessions)

    def get(self, order_id: str) -> Optional[PaymentSession]:
        return self._sessions.get(order_id)

    async def open(
        self,
        amount_minor: int,
        currency: str,
        description: str,
        metadata: Optional[Dict[str, Any]],
        on_success: SuccessCallback,
        on_failure: FailureCallback,
        on_cancel: CancelCallback,
        subject: Optional[str] = None
    ) -> PaymentOrder:
        if amount_minor <= 0:
            raise ValidationError("Payment amount must be greater than zero")

        order = await self.gateway.open_session(amount_minor, currency, description, metadata)
        self._sessions[order.gateway_order_id] = PaymentSession(
            order=order,
            on_success=on_success,
            on_failure=on_failure,
            on_cancel=on_cancel,
            subject=subject,
            opened_at=self._clock()
        )
        logger.info(f"Payment session opened: {order.gateway_order_id} ({description})")
        return order

    async def resolve(
        self,
        order_id: str,
        outcome: PaymentOutcome,
        payment_id: Optional[str] = None,
        signature: Optional[str] = None,
        error_description: Optional[str] = None
    ) -> Dict[str, Any]:
        """
        Resolve a session with the checkout outcome.

        Args:
            order_id: Gateway order id
            outcome: success, failed or cancelled
            payment_id: Gateway payment id (success)
            signature: Checkout signature (success)
            error_description: Gateway error text (failed)

        Returns:
            Dict with success flag, status and the continuation's message
        """
        session = self._sessions.get(order_id)
        if session is None:
            raise NotFoundError("Payment session not found or already completed", {"order_id": order_id})

        if outcome == PaymentOutcome.SUCCESS:
            if not self.gateway.verify_signature(order_id, payment_id, signature):
                logger.warning(f"Invalid payment signature for order {order_id}")
                raise PaymentError("Payment verification failed", {"order_id": order_id})

        # Terminal before running the continuation so it runs once
        self._sessions.pop(order_id, None)

        if outcome == PaymentOutcome.SUCCESS:
            message = await session.on_success(payment_id)
            status = PaymentStatus.PAID
        elif outcome == PaymentOutcome.FAILED:
            message = await session.on_failure(error_description)
            status = PaymentStatus.FAILED
        else:
            message = await session.on_cancel()
            status = PaymentStatus.CANCELLED

        logger.info(f"Payment session {order_id} resolved: {status.value}")
        return {
            "success": status == PaymentStatus.PAID,
            "status": status.value,
            "message": message,
            "order_id": order_id,
            "payment_id": payment_id if status == PaymentStatus.PAID else None,
        }

    def purge_stale(self) -> int:
        cutoff = self._clock() - self.ttl_seconds
        stale = [order_id for order_id, s in self._sessions.items() if s.opened_at < cutoff]
        for order_id in stale:
            self._sessions.pop(order_id, None)
        if stale:
            logger.info(f"Dropped {len(stale)} abandoned payment sessions")
        return len(stale)

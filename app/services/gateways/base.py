"""
Base Payment Gateway Interface

All payment gateways must implement this interface so that ticket
checkout and venue reservations open sessions the same way.
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Optional, Dict, Any
from datetime import datetime
from enum import Enum


class PaymentStatus(str, Enum):
    """Unified payment session status"""
    CREATED = "created"
    PAID = "paid"
    FAILED = "failed"
    CANCELLED = "cancelled"


@dataclass
class PaymentOrder:
    """Result of opening a payment session with the gateway"""
    gateway_order_id: str
    amount_minor: int
    currency: str
    description: str
    key_id: Optional[str] = None
    notes: Dict[str, Any] = field(default_factory=dict)
    created_at: Optional[datetime] = None


class BaseGateway(ABC):
    """
    Abstract base class for payment gateways.

    The hosted checkout runs on the client; the server opens the order and
    verifies the signature the checkout returns.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Gateway identifier (e.g., 'razorpay')"""
        pass

    @property
    @abstractmethod
    def display_name(self) -> str:
        """Human-readable gateway name"""
        pass

    @abstractmethod
    async def open_session(
        self,
        amount_minor: int,
        currency: str,
        description: str,
        metadata: Optional[Dict[str, Any]] = None
    ) -> PaymentOrder:
        """
        Create an order with the gateway.

        Args:
            amount_minor: Amount in the currency's minor unit (paise)
            currency: ISO currency code
            description: Text shown in the checkout
            metadata: Notes attached to the order

        Returns:
            PaymentOrder with the gateway order id
        """
        pass

    @abstractmethod
    def verify_signature(self, gateway_order_id: str, payment_id: str, signature: str) -> bool:
        """
        Verify the signature returned by the checkout on success.

        Returns:
            True if signature is valid
        """
        pass

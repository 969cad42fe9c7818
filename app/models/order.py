from pydantic import BaseModel, Field, field_validator
from typing import Optional, List
from decimal import Decimal


class OrderLine(BaseModel):
    """Linea del resumen de compra (solo cantidades > 0)"""
    index: int
    name: str
    unit_price: Decimal
    quantity: int
    permits: int
    subtotal: Decimal


class OrderSummary(BaseModel):
    lines: List[OrderLine] = []
    total_tickets_price: Decimal = Decimal("0.00")
    platform_fee: Decimal = Decimal("0.00")
    total_payable: Decimal = Decimal("0.00")
    total_people: int = 0
    message: Optional[str] = None

    @property
    def is_empty(self) -> bool:
        return not self.lines


class TicketQuoteRequest(BaseModel):
    event_id: int
    quantities: List[int] = Field(default_factory=list, description="One quantity per ticket type, by position")

    @field_validator('quantities')
    @classmethod
    def floor_quantities(cls, v):
        return [max(0, q) for q in v]


class ContactDetails(BaseModel):
    """Datos de contacto del comprador"""
    name: str = ""
    phone: str = ""
    email: str = ""


class CheckoutRequest(TicketQuoteRequest):
    contact: ContactDetails = ContactDetails()
    accepted_terms: bool = False


class CheckoutResponse(BaseModel):
    success: bool = True
    status: str = Field(..., description="pending_payment or confirmed")
    message: Optional[str] = None
    order_id: Optional[str] = None
    key_id: Optional[str] = None
    amount: int = Field(0, description="Amount in minor units (paise)")
    currency: str
    name: str
    description: str
    prefill: ContactDetails
    summary: OrderSummary
    booking_id: Optional[str] = None

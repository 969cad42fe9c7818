from pydantic import BaseModel, Field
from typing import Optional, Dict, Any
from decimal import Decimal
from enum import Enum
from app.models.schedule import Slot


class ReservationStatus(str, Enum):
    """Estados de una reserva de slot"""
    CONFIRMED = "confirmed"          # Sin costo, confirmada al instante
    PENDING_PAYMENT = "pending_payment"  # Sesion de pago abierta


class ReservationQuoteRequest(BaseModel):
    venue_id: int
    slot_index: int = Field(..., ge=0)


class ReservationQuote(BaseModel):
    venue_id: int
    venue_name: str
    slot: Slot
    fee: Decimal = Decimal("0.00")


class OrganizerDetails(BaseModel):
    """Datos del organizador que reserva el slot"""
    name: str = ""
    phone: str = ""
    email: str = ""


class ReservationConfirmRequest(ReservationQuoteRequest):
    organizer: OrganizerDetails = OrganizerDetails()
    event_type: Optional[str] = None
    accepted_terms: bool = False


class ReservationOutcome(BaseModel):
    success: bool = True
    status: ReservationStatus
    message: str
    fee: Decimal
    order_id: Optional[str] = None
    key_id: Optional[str] = None
    amount: Optional[int] = Field(None, description="Amount in minor units")
    currency: Optional[str] = None
    description: Optional[str] = None
    notes: Dict[str, Any] = Field(default_factory=dict)

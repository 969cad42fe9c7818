import logging
from typing import Dict, Any, Optional

from app.core.exceptions import NotFoundError, ValidationError
from app.models.reservation import (
    ReservationConfirmRequest, ReservationOutcome, ReservationQuote, ReservationStatus
)
from app.models.schedule import Slot
from app.services.catalog_service import CatalogState
from app.services.payments_service import PaymentSessionRegistry
from app.services.pricing_service import to_cents, to_minor_units, format_money

logger = logging.getLogger(__name__)


def describe_slot(slot: Slot) -> str:
    label = f"{slot.day.value} {slot.start}-{slot.end}"
    return f"{label} ({slot.name})" if slot.name else label


async def quote_reservation(catalog: CatalogState, venue_id: int, slot_index: int) -> ReservationQuote:
    """Look up the venue slot and its booking fee (cost per slot, or 0)"""
    venue = await catalog.venue(venue_id)
    slots = venue.get("available_slots") or []
    if slot_index < 0 or slot_index >= len(slots):
        raise NotFoundError(f"Slot {slot_index} not found", {"venue_id": venue_id, "index": slot_index})

    return ReservationQuote(
        venue_id=venue["id"],
        venue_name=venue.get("name") or f"Venue {venue['id']}",
        slot=Slot.model_validate(slots[slot_index]),
        fee=to_cents(venue.get("cost_per_slot") or 0)
    )


def validate_reservation(request: ReservationConfirmRequest) -> None:
    organizer = request.organizer
    if not (organizer.name.strip() and organizer.phone.strip() and organizer.email.strip()):
        raise ValidationError("Please fill in all organizer details.")
    if not (request.event_type or "").strip():
        raise ValidationError("Please select an event type.")
    if not request.accepted_terms:
        raise ValidationError("Please agree to the Terms & Conditions.")


async def confirm_reservation(
    catalog: CatalogState,
    registry: PaymentSessionRegistry,
    request: ReservationConfirmRequest,
    currency: str = "INR",
    subject: Optional[str] = None
) -> ReservationOutcome:
    """
    Confirm a venue slot reservation.

    Free slots are confirmed at once without contacting the gateway.
    Otherwise a payment session is opened for the fee and the reservation
    stays pending until the checkout result arrives.
    """
    validate_reservation(request)

    quote = await quote_reservation(catalog, request.venue_id, request.slot_index)
    slot_details = describe_slot(quote.slot)

    if to_minor_units(quote.fee) <= 0:
        logger.info(f"Free reservation confirmed at venue {quote.venue_id}: {slot_details}")
        return ReservationOutcome(
            status=ReservationStatus.CONFIRMED,
            message=(
                f"Booking Confirmed! Venue: {quote.venue_name}. Slot: {slot_details}. "
                f"A confirmation has been sent to your email and phone. Payment: ₹{format_money(quote.fee)}"
            ),
            fee=quote.fee
        )

    description = f"Venue Slot Booking at {quote.venue_name}"
    notes: Dict[str, Any] = {
        "venue_id": quote.venue_id,
        "slot_details": slot_details,
        "organizer_name": request.organizer.name.strip(),
        "event_type": request.event_type.strip(),
    }

    async def on_success(payment_id: str) -> str:
        logger.info(f"Venue {quote.venue_id} slot booked: {slot_details}")
        return f"Payment successful! Venue slot booked. Payment ID: {payment_id}"

    async def on_failure(error_description: Optional[str]) -> str:
        return f"Payment failed. Error: {error_description or 'Unknown error'}"

    async def on_cancel() -> str:
        return "Payment was cancelled. Your booking is not confirmed."

    order = await registry.open(
        to_minor_units(quote.fee),
        currency,
        description,
        notes,
        on_success,
        on_failure,
        on_cancel,
        subject=subject
    )

    return ReservationOutcome(
        status=ReservationStatus.PENDING_PAYMENT,
        message="Complete the payment to confirm your booking.",
        fee=quote.fee,
        order_id=order.gateway_order_id,
        key_id=order.key_id,
        amount=order.amount_minor,
        currency=order.currency,
        description=description,
        notes=notes
    )

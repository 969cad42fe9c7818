import logging
import uuid
from collections import defaultdict
from datetime import date
from typing import Dict, List, Optional, Iterable

from app.core.exceptions import ValidationError
from app.models.booking import Booking, BookingStatus
from app.models.order import TicketQuoteRequest, CheckoutRequest, CheckoutResponse
from app.services.catalog_service import CatalogState
from app.services.payments_service import PaymentSessionRegistry
from app.services.pricing_service import (
    TicketSelection, parse_ticket_types, validate_checkout, to_minor_units
)

logger = logging.getLogger(__name__)


class BookingLedger:
    """
    In-memory ticket bookings per user subject.

    Bookings are recorded after a verified payment and live for the
    process lifetime only.
    """

    def __init__(self):
        self._bookings: Dict[str, List[Booking]] = defaultdict(list)

    def record(
        self,
        subject: str,
        event_name: str,
        venue_name: Optional[str] = None,
        event_date: Optional[date] = None,
        image_url: Optional[str] = None,
        status: BookingStatus = BookingStatus.UPCOMING
    ) -> Booking:
        booking = Booking(
            id=uuid.uuid4().hex[:12],
            event_name=event_name,
            venue_name=venue_name,
            date=event_date,
            status=status,
            image_url=image_url
        )
        self._bookings[subject].append(booking)
        logger.info(f"Booking {booking.id} recorded for {event_name}")
        return booking

    def list(self, subject: str, status: Optional[BookingStatus] = None) -> List[Booking]:
        bookings = self._bookings.get(subject, [])
        if status is not None:
            bookings = [b for b in bookings if b.status == status]
        return list(bookings)


def _previous_month(year: int, month: int):
    return (year - 1, 12) if month == 1 else (year, month - 1)


def calculate_party_streak(bookings: Iterable[Booking], today: Optional[date] = None) -> int:
    """
    Count consecutive calendar months with a past booking, walking back
    from the current month and stopping at the first gap.

    Past bookings dated in the future are counted like any other.
    """
    today = today or date.today()
    months = {
        (b.date.year, b.date.month)
        for b in bookings
        if b.status == BookingStatus.PAST and b.date is not None
    }
    if not months:
        return 0

    streak = 0
    cursor = (today.year, today.month)
    while cursor in months:
        streak += 1
        cursor = _previous_month(*cursor)
    return streak


# ============================================================================
# Ticket checkout
# ============================================================================

def _event_date(value) -> Optional[date]:
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value)[:10]) if value else None
    except ValueError:
        return None


async def quote_tickets(catalog: CatalogState, request: TicketQuoteRequest, platform_fee=0):
    """Return (event, summary) for a ticket selection"""
    event = await catalog.event(request.event_id)
    ticket_types = parse_ticket_types(event.get("ticket_types"))
    if not ticket_types:
        raise ValidationError("Tickets are not on sale for this event", {"event_id": request.event_id})

    selection = TicketSelection(ticket_types, request.quantities)
    return event, selection.summary(platform_fee)


async def checkout_tickets(
    catalog: CatalogState,
    registry: PaymentSessionRegistry,
    ledger: BookingLedger,
    request: CheckoutRequest,
    subject: str,
    currency: str = "INR",
    merchant_name: str = "Party in Bangalore",
    platform_fee=0
) -> CheckoutResponse:
    """
    Validate the order and open a payment session for it.

    The booking is recorded only when the session resolves as a verified
    success. An order with nothing to pay is confirmed without the gateway.
    """
    event, summary = await quote_tickets(catalog, request, platform_fee)
    validate_checkout(summary, request.contact, request.accepted_terms)

    title = event.get("title") or f"Event {event['id']}"
    description = f"Booking for {title}"
    posters = event.get("poster_images") or []

    def record_booking() -> Booking:
        return ledger.record(
            subject,
            event_name=title,
            venue_name=event.get("venue_name"),
            event_date=_event_date(event.get("event_date")),
            image_url=posters[0] if posters else None
        )

    response = dict(
        currency=currency,
        name=merchant_name,
        description=description,
        prefill=request.contact,
        summary=summary
    )

    amount_minor = to_minor_units(summary.total_payable)
    if amount_minor <= 0:
        booking = record_booking()
        return CheckoutResponse(
            status="confirmed",
            message="Your ticket is confirmed.",
            booking_id=booking.id,
            **response
        )

    async def on_success(payment_id: str) -> str:
        record_booking()
        return f"Payment successful! ID: {payment_id}. Your ticket is confirmed."

    async def on_failure(error_description: Optional[str]) -> str:
        return f"Payment failed: {error_description or 'Unknown error'}"

    async def on_cancel() -> str:
        return "Payment was not completed."

    order = await registry.open(
        amount_minor,
        currency,
        description,
        {"event_id": event["id"], "tickets": summary.total_people},
        on_success,
        on_failure,
        on_cancel,
        subject=subject
    )

    return CheckoutResponse(
        status="pending_payment",
        order_id=order.gateway_order_id,
        key_id=order.key_id,
        amount=order.amount_minor,
        **response
    )

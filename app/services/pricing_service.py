import logging
from typing import List, Optional, Any
from decimal import Decimal, ROUND_HALF_UP

from app.core.exceptions import ValidationError
from app.models.event import TicketType
from app.models.order import OrderLine, OrderSummary, ContactDetails

logger = logging.getLogger(__name__)

CENTS = Decimal("0.01")
EMPTY_ORDER_MESSAGE = "No tickets selected."


def to_money(value: Any) -> Decimal:
    """Exact decimal from a price; floats go through str to avoid binary noise"""
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value or 0))


def to_cents(amount: Any) -> Decimal:
    """Round to two decimals, half-up"""
    return to_money(amount).quantize(CENTS, rounding=ROUND_HALF_UP)


def format_money(amount: Any) -> str:
    """Render an amount with exactly two decimals"""
    return str(to_cents(amount))


def to_minor_units(amount: Any) -> int:
    """Convert to paise at the gateway boundary, rounding half-up"""
    return int((to_money(amount) * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def parse_ticket_types(raw: Optional[List[Any]]) -> List[TicketType]:
    types = []
    for index, ticket in enumerate(raw or []):
        try:
            types.append(ticket if isinstance(ticket, TicketType) else TicketType.model_validate(ticket))
        except ValueError as e:
            raise ValidationError(f"Ticket type {index} is invalid", {"index": index, "error": str(e)})
    return types


class TicketSelection:
    """One quantity per ticket type of an event, never below zero"""

    def __init__(self, ticket_types: List[TicketType], quantities: Optional[List[int]] = None):
        self.ticket_types = list(ticket_types)
        self.quantities = [0] * len(self.ticket_types)
        for index, quantity in enumerate((quantities or [])[:len(self.ticket_types)]):
            self.quantities[index] = max(0, int(quantity))

    def adjust(self, index: int, delta: int) -> int:
        if index < 0 or index >= len(self.quantities):
            raise ValidationError(f"Ticket type {index} does not exist")
        self.quantities[index] = max(0, self.quantities[index] + delta)
        return self.quantities[index]

    def summary(self, platform_fee: Any = 0) -> OrderSummary:
        return build_order_summary(self.ticket_types, self.quantities, platform_fee)


def build_order_summary(ticket_types: List[TicketType], quantities: List[int], platform_fee: Any = 0) -> OrderSummary:
    """
    Compute the order summary for a ticket selection.

    Only lines with a positive quantity appear. An empty selection has no
    lines, total_payable 0 and the "No tickets selected." message.
    """
    lines = []
    total_tickets_price = Decimal("0")
    total_people = 0

    for index, ticket in enumerate(ticket_types):
        quantity = quantities[index] if index < len(quantities) else 0
        if quantity <= 0:
            continue

        unit_price = to_money(ticket.price)
        subtotal = unit_price * quantity
        total_tickets_price += subtotal
        total_people += ticket.permits * quantity

        lines.append(OrderLine(
            index=index,
            name=ticket.name,
            unit_price=to_cents(unit_price),
            quantity=quantity,
            permits=ticket.permits,
            subtotal=to_cents(subtotal)
        ))

    if not lines:
        return OrderSummary(message=EMPTY_ORDER_MESSAGE)

    fee = to_money(platform_fee)
    return OrderSummary(
        lines=lines,
        total_tickets_price=to_cents(total_tickets_price),
        platform_fee=to_cents(fee),
        total_payable=to_cents(total_tickets_price + fee),
        total_people=total_people
    )


def validate_checkout(summary: OrderSummary, contact: ContactDetails, accepted_terms: bool) -> None:
    """Checks run in order; the first failure is reported"""
    if summary.total_people <= 0:
        raise ValidationError("Please select at least one ticket.")

    if not contact.name.strip():
        raise ValidationError("Please enter your name.", {"field": "name"})
    if not contact.phone.strip():
        raise ValidationError("Please enter your phone number.", {"field": "phone"})
    if not contact.email.strip():
        raise ValidationError("Please enter your email.", {"field": "email"})

    if not accepted_terms:
        raise ValidationError("Please agree to the Terms & Conditions.")

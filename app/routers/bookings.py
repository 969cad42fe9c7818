from fastapi import APIRouter, Depends, Query
from typing import List, Optional
from app.config import settings
from app.core.dependencies import (
    CurrentUser, require_user, get_catalog, get_payment_registry, get_booking_ledger
)
from app.models.booking import Booking, BookingStatus, StreakResponse
from app.models.order import TicketQuoteRequest, CheckoutRequest, CheckoutResponse, OrderSummary
from app.services import bookings_service

router = APIRouter()


@router.post("/quote", response_model=OrderSummary)
async def quote(request: TicketQuoteRequest, catalog=Depends(get_catalog)):
    """
    Order summary for a ticket selection.
    No authentication required.
    """
    _, summary = await bookings_service.quote_tickets(catalog, request, settings.platform_fee)
    return summary


@router.post("/checkout", response_model=CheckoutResponse)
async def checkout(
    request: CheckoutRequest,
    user: CurrentUser = Depends(require_user),
    catalog=Depends(get_catalog),
    registry=Depends(get_payment_registry),
    ledger=Depends(get_booking_ledger)
):
    """
    Validate the order and open a payment session.
    The client opens the gateway checkout with the returned order and
    reports the outcome to /payments/{order_id}/result.
    """
    return await bookings_service.checkout_tickets(
        catalog, registry, ledger, request,
        subject=user.subject,
        currency=settings.payment_currency,
        merchant_name=settings.merchant_name,
        platform_fee=settings.platform_fee
    )


@router.get("/me", response_model=List[Booking])
async def my_bookings(
    status: Optional[BookingStatus] = Query(None, description="Filter by status"),
    user: CurrentUser = Depends(require_user),
    ledger=Depends(get_booking_ledger)
):
    return ledger.list(user.subject, status)


@router.get("/me/streak", response_model=StreakResponse)
async def my_streak(
    user: CurrentUser = Depends(require_user),
    ledger=Depends(get_booking_ledger)
):
    """Consecutive months with a past booking, counting back from this month"""
    bookings = ledger.list(user.subject, BookingStatus.PAST)
    return StreakResponse(streak=bookings_service.calculate_party_streak(bookings))

from fastapi import APIRouter, Depends
from app.config import settings
from app.core.dependencies import get_current_auth, get_catalog, get_payment_registry
from app.core.middleware import AuthContext
from app.models.reservation import (
    ReservationQuoteRequest, ReservationQuote, ReservationConfirmRequest, ReservationOutcome
)
from app.services import reservations_service

router = APIRouter()


@router.post("/quote", response_model=ReservationQuote)
async def quote_reservation(request: ReservationQuoteRequest, catalog=Depends(get_catalog)):
    """Booking fee for a venue slot"""
    return await reservations_service.quote_reservation(catalog, request.venue_id, request.slot_index)


@router.post("/confirm", response_model=ReservationOutcome)
async def confirm_reservation(
    request: ReservationConfirmRequest,
    auth: AuthContext = Depends(get_current_auth),
    catalog=Depends(get_catalog),
    registry=Depends(get_payment_registry)
):
    """
    Confirm a slot reservation.

    Free slots are confirmed immediately. Paid slots return a pending
    payment session to complete in the gateway checkout.
    """
    return await reservations_service.confirm_reservation(
        catalog, registry, request,
        currency=settings.payment_currency,
        subject=auth.subject
    )

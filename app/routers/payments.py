from fastapi import APIRouter, Depends
from app.core.dependencies import get_current_auth, get_payment_registry
from app.core.exceptions import AuthorizationError
from app.core.middleware import AuthContext
from app.models.payment import PaymentResultRequest, PaymentResultResponse

router = APIRouter()


@router.post("/{order_id}/result", response_model=PaymentResultResponse)
async def report_payment_result(
    order_id: str,
    result: PaymentResultRequest,
    auth: AuthContext = Depends(get_current_auth),
    registry=Depends(get_payment_registry)
):
    """
    Report the checkout outcome for an open payment session.

    success requires payment_id and signature; failed and cancelled
    close the session without confirming anything.
    """
    session = registry.get(order_id)
    if session and session.subject and session.subject != auth.subject:
        raise AuthorizationError("This payment belongs to another user")

    return await registry.resolve(
        order_id,
        result.outcome,
        payment_id=result.payment_id,
        signature=result.signature,
        error_description=result.error_description
    )

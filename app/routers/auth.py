from fastapi import APIRouter, Depends
import logging
from app.core.dependencies import get_content_store, get_otp_service
from app.core.exceptions import AuthenticationError
from app.core.security import create_session_token
from app.models.user import (
    AdminUser, LoginRequest, LoginResponse, OtpRequest, OtpVerifyRequest, OtpResponse
)

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/request-otp", response_model=OtpResponse)
async def request_otp(request: OtpRequest, otp_service=Depends(get_otp_service)):
    """
    Send a 6-digit verification code by SMS.
    Any pending code for the same phone is replaced.
    """
    return await otp_service.request_otp(request.phone)


@router.post("/verify-otp", response_model=OtpResponse)
async def verify_otp(request: OtpVerifyRequest, otp_service=Depends(get_otp_service)):
    """
    Verify the code and return a bearer token for the phone.
    Failures carry details.code: not_requested, expired, mismatch or exhausted.
    """
    return await otp_service.verify_otp(request.phone, request.otp)


@router.post("/login", response_model=LoginResponse)
async def login(request: LoginRequest, store=Depends(get_content_store)):
    """Back-office login with username and password"""
    user = await store.find_user(request.username, request.password)
    if not user:
        logger.warning(f"Failed admin login for username '{request.username}'")
        raise AuthenticationError("Invalid username or password")

    admin = AdminUser.model_validate(user)
    token = create_session_token(str(admin.id), admin.role.value)
    logger.info(f"Admin login: {admin.username} ({admin.role.value})")

    return LoginResponse(user=admin, token=token)

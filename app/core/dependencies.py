from functools import lru_cache
from typing import Optional
from fastapi import Depends, Request
from app.config import settings
from app.core.exceptions import AuthenticationError, AuthorizationError
from app.core.middleware import AuthContext, get_auth_context
from app.models.user import Role
import logging

logger = logging.getLogger(__name__)


# ============================================================================
# Identity
# ============================================================================

def get_current_auth(request: Request) -> AuthContext:
    """
    Dependency to get current auth context.
    Returns AuthContext (may be invalid if not authenticated).
    """
    return get_auth_context(request)


class CurrentUser:
    """Authenticated caller, from a verified bearer token"""
    def __init__(self, context: AuthContext):
        self.subject = context.subject
        self.role = context.role

    @property
    def is_super_admin(self) -> bool:
        return self.role == Role.SUPER_ADMIN.value

    @property
    def is_admin(self) -> bool:
        return self.role in (Role.SUPER_ADMIN.value, Role.ORGANIZER.value)

    @property
    def organizer_scope(self) -> Optional[int]:
        """Organizers only see their own rows; super-admins see everything"""
        if self.role != Role.ORGANIZER.value:
            return None
        try:
            return int(self.subject)
        except (TypeError, ValueError):
            raise AuthorizationError("Organizer session is not bound to a user id")


def require_user(request: Request) -> CurrentUser:
    """
    Dependency that requires a valid bearer token.
    Raises AuthenticationError if not authenticated.
    """
    context = get_auth_context(request)
    if not context.is_valid:
        raise AuthenticationError("Authentication required")
    return CurrentUser(context)


def require_admin(user: CurrentUser = Depends(require_user)) -> CurrentUser:
    """Dependency for back-office content routes (super-admin or organizer)"""
    if not user.is_admin:
        raise AuthorizationError("Admin access required")
    return user


def require_super_admin(user: CurrentUser = Depends(require_user)) -> CurrentUser:
    """Dependency for organizer management"""
    if not user.is_super_admin:
        raise AuthorizationError("Super admin access required")
    return user


# ============================================================================
# Collaborators (process-wide, overridden in tests)
# ============================================================================

@lru_cache()
def get_content_store():
    from app.services.content_store import PostgresContentStore
    return PostgresContentStore()


@lru_cache()
def get_sms_client():
    from app.services.sms_service import TwilioSmsClient
    return TwilioSmsClient()


@lru_cache()
def get_otp_service():
    from app.services.otp_service import OtpService
    return OtpService(
        get_sms_client(),
        country_code=settings.otp_country_code,
        validity_minutes=settings.otp_validity_minutes,
        max_attempts=settings.otp_max_attempts
    )


@lru_cache()
def get_payment_gateway():
    from app.services.gateways import get_gateway
    return get_gateway('razorpay')


@lru_cache()
def get_payment_registry():
    from app.services.payments_service import PaymentSessionRegistry
    return PaymentSessionRegistry(get_payment_gateway())


@lru_cache()
def get_catalog():
    from app.services.catalog_service import CatalogState
    return CatalogState(get_content_store(), ttl_seconds=settings.catalog_ttl_seconds)


@lru_cache()
def get_booking_ledger():
    from app.services.bookings_service import BookingLedger
    return BookingLedger()


@lru_cache()
def get_submission_guard():
    from app.services.content_service import SubmissionGuard
    return SubmissionGuard()


@lru_cache()
def get_uploader():
    from app.services.upload_service import ImageUploader
    return ImageUploader()

from fastapi import Request
from fastapi.responses import JSONResponse
import logging
from typing import Dict, Any
from app.core.logging import log_request_context

logger = logging.getLogger(__name__)

class APIError(Exception):
    """Base API exception"""

    def __init__(self, message: str, status_code: int = 500, details: Dict[str, Any] = None):
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)

class AuthenticationError(APIError):
    """Authentication related errors"""

    def __init__(self, message: str = "Authentication required", details: Dict[str, Any] = None):
        super().__init__(message, 401, details)

class AuthorizationError(APIError):
    """Authorization related errors"""

    def __init__(self, message: str = "Access denied", details: Dict[str, Any] = None):
        super().__init__(message, 403, details)

class ValidationError(APIError):
    """Missing or malformed input, rejected before any network call"""

    def __init__(self, message: str = "Validation failed", details: Dict[str, Any] = None):
        super().__init__(message, 400, details)

class NotFoundError(APIError):
    """Id-addressed entity is absent"""

    def __init__(self, message: str = "Not found", details: Dict[str, Any] = None):
        super().__init__(message, 404, details)

class ConflictError(APIError):
    """A submission for the same form is already in flight"""

    def __init__(self, message: str = "Request already in progress", details: Dict[str, Any] = None):
        super().__init__(message, 409, details)

class TransportError(APIError):
    """Store or network hop unreachable"""

    def __init__(self, message: str = "Service unavailable", details: Dict[str, Any] = None):
        super().__init__(message, 503, details)

class ExternalServiceError(APIError):
    """SMS, payment or image host failure"""

    def __init__(self, message: str = "External service failed", details: Dict[str, Any] = None):
        super().__init__(message, 502, details)

class PaymentError(APIError):
    """Payment processing errors"""

    def __init__(self, message: str = "Payment failed", details: Dict[str, Any] = None):
        super().__init__(message, 402, details)


class OtpError(ValidationError):
    """Base class for OTP verification failures"""

    code = "otp_error"

    def __init__(self, message: str):
        super().__init__(message, {"code": self.code})

class OtpNotRequestedError(OtpError):
    code = "not_requested"

    def __init__(self, message: str = "No OTP was requested for this number, or it has expired."):
        super().__init__(message)

class OtpExpiredError(OtpError):
    code = "expired"

    def __init__(self, message: str = "OTP has expired. Please request a new one."):
        super().__init__(message)

class OtpMismatchError(OtpError):
    code = "mismatch"

    def __init__(self, message: str = "Incorrect OTP."):
        super().__init__(message)

class OtpAttemptsExceededError(OtpError):
    code = "exhausted"

    def __init__(self, message: str = "Too many incorrect attempts. Please request a new OTP."):
        super().__init__(message)


async def api_exception_handler(request: Request, exc: APIError):
    """Handle custom API exceptions with logging"""

    user = getattr(request.state, 'user', None)
    context = log_request_context(
        getattr(user, 'subject', None),
        getattr(user, 'role', None)
    )
    context.update({
        "error_type": exc.__class__.__name__,
        "status_code": exc.status_code,
        "path": str(request.url.path),
        "method": request.method
    })

    if exc.status_code >= 500:
        logger.error(f"API Error: {exc.message}", extra={"context": context})
    else:
        logger.warning(f"API Error: {exc.message}", extra={"context": context})

    return JSONResponse(
        status_code=exc.status_code,
        content={
            "success": False,
            "error": True,
            "message": exc.message,
            "details": exc.details,
            "timestamp": context["timestamp"]
        }
    )

async def general_exception_handler(request: Request, exc: Exception):
    """Handle unexpected exceptions"""

    context = log_request_context()
    context.update({
        "error_type": exc.__class__.__name__,
        "path": str(request.url.path),
        "method": request.method
    })

    logger.error(f"Unexpected error: {str(exc)}", extra={"context": context}, exc_info=True)

    return JSONResponse(
        status_code=500,
        content={
            "success": False,
            "error": True,
            "message": "Internal server error",
            "timestamp": context["timestamp"]
        }
    )

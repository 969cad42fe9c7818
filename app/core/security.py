import jwt
import logging
from datetime import datetime, timedelta
from fastapi import Request
from app.config import settings
from typing import Optional

logger = logging.getLogger(__name__)

SESSION_ALGORITHM = "HS256"


def create_session_token(subject_id: str, role: str, ttl: Optional[timedelta] = None) -> str:
    """
    Create a signed bearer token.

    Args:
        subject_id: Phone number for OTP users, numeric id for admin users
        role: super-admin, organizer or user
        ttl: Token lifetime, defaults to JWT_EXPIRY_DAYS
    """
    if ttl is None:
        ttl = timedelta(days=settings.jwt_expiry_days)

    now = datetime.utcnow()
    payload = {
        "sub": str(subject_id),
        "role": role,
        "iat": now,
        "exp": now + ttl
    }
    return jwt.encode(payload, settings.jwt_secret, algorithm=SESSION_ALGORITHM)


def verify_session_token(token: str) -> Optional[dict]:
    """Verify a session token and return {subject, role}, or None when invalid"""
    try:
        payload = jwt.decode(token, settings.jwt_secret, algorithms=[SESSION_ALGORITHM])
        return {
            "subject": payload.get("sub"),
            "role": payload.get("role")
        }
    except jwt.ExpiredSignatureError:
        logger.debug("Session token expired")
        return None
    except jwt.InvalidTokenError:
        return None


def get_bearer_token(request: Request) -> Optional[str]:
    """Extract the token from an Authorization: Bearer header"""
    header = request.headers.get("authorization", "")
    scheme, _, token = header.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


def get_client_ip(request: Request) -> Optional[str]:
    """Get client IP address from request headers"""
    forwarded_for = request.headers.get('x-forwarded-for')
    if forwarded_for:
        return forwarded_for.split(',')[0].strip()
    return request.client.host if request.client else None

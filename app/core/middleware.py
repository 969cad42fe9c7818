import logging
import time
from typing import Optional, Dict, Any
from fastapi import Request
from app.core.security import get_bearer_token, verify_session_token, get_client_ip

logger = logging.getLogger(__name__)


class AuthContext:
    """Identity carried by the bearer token of the current request"""
    def __init__(self, token_data: Optional[Dict[str, Any]] = None):
        if token_data and token_data.get("subject"):
            self.subject = str(token_data["subject"])
            self.role = token_data.get("role")
            self.is_valid = True
        else:
            self.subject = None
            self.role = None
            self.is_valid = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            'subject': self.subject,
            'role': self.role,
            'is_valid': self.is_valid
        }


def get_auth_context(request: Request) -> AuthContext:
    """Get auth context from request state, decoding the token if needed"""
    context = getattr(request.state, 'user', None)
    if context is None:
        token = get_bearer_token(request)
        context = AuthContext(verify_session_token(token) if token else None)
        request.state.user = context
    return context


async def auth_context_middleware(request: Request, call_next):
    """
    Decode the bearer token once per request.
    Invalid or missing tokens leave an anonymous context; routes decide.
    """
    get_auth_context(request)
    return await call_next(request)


async def request_logging_middleware(request: Request, call_next):
    """Simple request logging middleware"""
    start_time = time.time()

    method = request.method
    path = request.url.path

    response = await call_next(request)

    duration = round((time.time() - start_time) * 1000, 2)

    context = getattr(request.state, 'user', None)
    role = getattr(context, 'role', None) or 'anonymous'
    logger.info(f"{method} {path} | {response.status_code} | {duration}ms | {role} | {get_client_ip(request)}")

    return response

import logging

from fastapi import Request
from fastapi.responses import JSONResponse
from jose import JWTError
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address

from agency_admin.core.config import get_settings
from agency_admin.core.security import decode_token

logger = logging.getLogger(__name__)


def rate_limit_key(request: Request) -> str:
    # Authenticated admins are counted per account, everyone else per client IP.
    scheme, _, token = (request.headers.get("authorization") or "").partition(" ")
    if scheme.lower() == "bearer" and token:
        try:
            subject = decode_token(token).get("sub")
        except JWTError:
            subject = None
        if subject:
            return f"admin:{subject}"
    return get_remote_address(request)


def api_limit() -> str:
    return get_settings().RATE_LIMIT_API


def auth_limit() -> str:
    return get_settings().RATE_LIMIT_AUTH


RATE_LIMIT_POLICIES = {
    "api": api_limit,
    "auth": auth_limit,
}

limiter = Limiter(key_func=rate_limit_key, storage_uri=get_settings().RATE_LIMIT_STORAGE_URI)


def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    logger.warning(
        "Rate limit exceeded",
        extra={"path": request.url.path, "limit": str(exc.detail), "client_key": rate_limit_key(request)},
    )
    return JSONResponse(
        status_code=429,
        content={"detail": "Too many requests"},
        headers={"Retry-After": str(get_settings().RATE_LIMIT_RETRY_AFTER_SECONDS)},
    )

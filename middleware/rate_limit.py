# middleware/rate_limit.py
"""
Rate limiting for endpoints that call the quote provider.

Usage in route files:
    from middleware.rate_limit import QUOTE_RATE_LIMIT, limiter

    @router.get("/stock-price")
    @limiter.limit(QUOTE_RATE_LIMIT)
    async def my_endpoint(request: Request):
        ...
"""
import logging

from fastapi import Request
from jose import jwt
from slowapi import Limiter
from slowapi.util import get_remote_address

from config import settings

logger = logging.getLogger(__name__)


def _get_rate_limit_key(request: Request) -> str:
    """
    Bucket by user id when the session cookie or a Bearer header carries one,
    else by client IP. The token is not verified here; auth is enforced by
    get_current_user.
    """
    token = request.cookies.get(settings.AUTH_COOKIE_NAME)
    if not token:
        auth = request.headers.get("Authorization", "")
        if auth.lower().startswith("bearer "):
            token = auth.split(" ", 1)[1].strip()
    if token:
        try:
            sub = jwt.get_unverified_claims(token).get("sub")
            if sub:
                return f"user:{sub}"
        except Exception:
            pass  # malformed token: fall back to IP

    return get_remote_address(request)


QUOTE_RATE_LIMIT = settings.RATE_LIMIT_QUOTES

limiter = Limiter(
    key_func=_get_rate_limit_key,
    storage_uri="memory://",
    strategy="fixed-window",
)

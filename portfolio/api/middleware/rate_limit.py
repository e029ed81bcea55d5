"""
Fixed-window rate limiting per client.

Scopes: auth POSTs per IP, public comment posts per IP, everything else under
the API prefix per identity (or IP when anonymous).
"""

import re
import time
from typing import Callable, Dict, Optional, Tuple

from fastapi import Request, Response, status
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from portfolio.config import get_settings
from portfolio.kernel.identity.jwt import JWTManager, TokenExpired

WINDOW_SECONDS = 60

_COMMENT_POST = re.compile(r"/articles/[^/]+/comments/?$")


def _get_client_ip(request: Request) -> str:
    """Get client IP from request (X-Forwarded-For or direct)."""
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


def _get_user_id_from_jwt(request: Request) -> Optional[str]:
    """Identity id from a bearer token; expired or invalid tokens count as anonymous."""
    auth = request.headers.get("authorization")
    if not auth or not auth.lower().startswith("bearer "):
        return None
    token = auth[7:].strip()
    if not token:
        return None
    try:
        payload = JWTManager().verify_access_token(token)
    except TokenExpired:
        return None
    return payload.sub if payload else None


class InMemoryRateLimitStore:
    """Fixed-window counters. Key -> (count, window_start)."""

    def __init__(self) -> None:
        self._data: Dict[str, Tuple[int, float]] = {}

    def check_and_incr(self, scope: str, identifier: str, limit: int, window_seconds: int) -> bool:
        """True if under the limit (and counted); False if over it."""
        key = f"{scope}:{identifier}"
        now = time.monotonic()
        count, start = self._data.get(key, (0, now))
        if now - start >= window_seconds:
            count, start = 0, now
        if count >= limit:
            return False
        self._data[key] = (count + 1, start)
        return True

    def cleanup_old(self, max_age_seconds: int = 3600) -> None:
        now = time.monotonic()
        for key in [k for k, (_, start) in self._data.items() if now - start > max_age_seconds]:
            self._data.pop(key, None)

    def reset(self) -> None:
        self._data.clear()


_store: Optional[InMemoryRateLimitStore] = None


def get_rate_limit_store() -> InMemoryRateLimitStore:
    global _store
    if _store is None:
        _store = InMemoryRateLimitStore()
    return _store


class RateLimitMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        settings = get_settings()
        path = request.url.path or ""
        if not settings.rate_limit_enabled or not path.startswith(settings.api_v1_prefix):
            return await call_next(request)

        store = get_rate_limit_store()
        store.cleanup_old(max_age_seconds=2 * WINDOW_SECONDS)

        if request.method == "POST" and path.startswith(f"{settings.api_v1_prefix}/auth"):
            scope, limit = "auth", settings.rate_limit_auth_per_minute
            identifier = _get_client_ip(request)
        elif request.method == "POST" and _COMMENT_POST.search(path):
            scope, limit = "comments", settings.rate_limit_comments_per_minute
            identifier = _get_client_ip(request)
        else:
            scope, limit = "api", settings.rate_limit_api_per_minute
            identifier = _get_user_id_from_jwt(request) or _get_client_ip(request)

        if not store.check_and_incr(scope, identifier, limit, WINDOW_SECONDS):
            return JSONResponse(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                content={"detail": "Too many requests. Please try again later."},
            )
        return await call_next(request)

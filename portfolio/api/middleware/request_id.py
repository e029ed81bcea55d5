"""
Request correlation.

Every response carries ``X-Request-ID``: the caller's id when it looks sane,
otherwise a fresh one. The id, method and path are bound to the log context
for the duration of the request.
"""

import re
import time
import uuid
from typing import Callable, Optional

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from portfolio.logging_config import bind_log_context, get_logger, reset_log_context

logger = get_logger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"
SLOW_REQUEST_MS = 1000

_CLIENT_ID = re.compile(r"^[A-Za-z0-9._-]{1,64}$")


def choose_request_id(supplied: Optional[str]) -> str:
    if supplied and _CLIENT_ID.match(supplied):
        return supplied
    return uuid.uuid4().hex


class RequestIdMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = choose_request_id(request.headers.get(REQUEST_ID_HEADER))
        request.state.request_id = request_id
        token = bind_log_context(request_id=request_id, method=request.method, path=request.url.path)
        started = time.monotonic()
        try:
            response = await call_next(request)
            elapsed_ms = (time.monotonic() - started) * 1000
            if elapsed_ms > SLOW_REQUEST_MS:
                logger.warning("Slow request", extra={"elapsed_ms": round(elapsed_ms, 1)})
        finally:
            reset_log_context(token)

        response.headers[REQUEST_ID_HEADER] = request_id
        return response

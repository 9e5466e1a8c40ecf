"""Request logging middleware for the relay.

Logs method, path, status and duration for every request. Query strings are
never logged: on /callback they carry the authorization code.
"""

import logging
import time

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

logger = logging.getLogger(__name__)


class RequestLogMiddleware(BaseHTTPMiddleware):
    """Middleware that writes one [HTTP] log line per request."""

    async def dispatch(self, request: Request, call_next):
        started = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception:
            elapsed_ms = (time.perf_counter() - started) * 1000
            logger.exception(f"[HTTP] {request.method} {request.url.path} failed after {elapsed_ms:.1f}ms")
            raise

        elapsed_ms = (time.perf_counter() - started) * 1000
        logger.info(f"[HTTP] {request.method} {request.url.path} -> {response.status_code} ({elapsed_ms:.1f}ms)")
        return response

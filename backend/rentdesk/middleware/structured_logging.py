# backend/rentdesk/middleware/structured_logging.py
from __future__ import annotations

import logging
import time
from typing import Callable

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from ..config import settings

log = logging.getLogger("rentdesk.request")


class StructuredLoggingMiddleware(BaseHTTPMiddleware):
    """
    One `http_request` line per request: method, path, status_code, latency_ms,
    user_email (dev header only; cookie principals resolve inside handlers).

    Must sit inside RequestIDMiddleware so the formatter can attach request_id.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        started = time.perf_counter()
        status_code = 500
        try:
            response = await call_next(request)
            status_code = response.status_code
            return response
        finally:
            log.info(
                "http_request",
                extra={
                    "method": request.method,
                    "path": request.url.path,
                    "status_code": status_code,
                    "latency_ms": round((time.perf_counter() - started) * 1000, 1),
                    "user_email": request.headers.get(settings.dev_header_user_email),
                },
            )

# backend/rentdesk/middleware/request_id.py
from __future__ import annotations

import re
import uuid
from contextvars import ContextVar
from typing import Callable, Optional

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

REQUEST_ID_HEADER = "X-Request-ID"

_request_id: ContextVar[Optional[str]] = ContextVar("rentdesk_request_id", default=None)
_SAFE_ID = re.compile(r"^[A-Za-z0-9._:-]{1,128}$")


def get_request_id() -> Optional[str]:
    return _request_id.get()


def pick_request_id(incoming: Optional[str]) -> str:
    """Reuse a caller-supplied id when it is short and printable, otherwise mint one."""
    if incoming and _SAFE_ID.match(incoming.strip()):
        return incoming.strip()
    return uuid.uuid4().hex


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Binds an id to the request (request.state + context var) and echoes it back."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        rid = pick_request_id(request.headers.get(REQUEST_ID_HEADER))
        request.state.request_id = rid

        token = _request_id.set(rid)
        try:
            response = await call_next(request)
        finally:
            _request_id.reset(token)

        response.headers[REQUEST_ID_HEADER] = rid
        return response

# backend/rentdesk/errors.py
from __future__ import annotations

import logging
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

log = logging.getLogger("rentdesk.errors")


class RentDeskError(Exception):
    """Base for failures the gateway and aggregation layer surface to callers."""

    status_code = 400
    kind = "error"

    def __init__(self, message: str, *, field: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.field = field

    def to_payload(self) -> dict:
        return {"error": self.kind, "message": self.message, "field": self.field}


class ValidationError(RentDeskError):
    """Missing or malformed field, or a referenced entity that does not exist."""

    status_code = 422
    kind = "validation_error"


class NotFoundError(RentDeskError):
    status_code = 404
    kind = "not_found"


class ConflictError(RentDeskError):
    """Write rejected by current state: self-delete, dependents present, duplicate unique value."""

    status_code = 409
    kind = "conflict"


class UnauthorizedError(RentDeskError):
    """Caller is authenticated but their role does not allow the operation."""

    status_code = 403
    kind = "unauthorized"


def register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(RentDeskError)
    async def _rentdesk_error(request: Request, exc: RentDeskError) -> JSONResponse:
        log.info(
            "%s %s -> %s: %s",
            request.method,
            request.url.path,
            exc.kind,
            exc.message,
        )
        return JSONResponse(status_code=exc.status_code, content=exc.to_payload())

    @app.exception_handler(RequestValidationError)
    async def _request_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
        errors = exc.errors()
        first = errors[0] if errors else {}
        loc = [str(x) for x in first.get("loc", ()) if x not in ("body", "query", "path")]
        payload = ValidationError(
            str(first.get("msg") or "invalid request"),
            field=loc[-1] if loc else None,
        ).to_payload()
        payload["details"] = jsonable_encoder(errors)
        return JSONResponse(status_code=ValidationError.status_code, content=payload)

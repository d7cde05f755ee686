# backend/rentdesk/main.py
from __future__ import annotations

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .config import settings
from .errors import register_error_handlers
from .logging_config import configure_logging

from .middleware.request_id import RequestIDMiddleware
from .middleware.structured_logging import StructuredLoggingMiddleware

from .routers.health import router as health_router
from .routers.auth import router as auth_router
from .routers.dashboard import router as dashboard_router
from .routers.reports import router as reports_router

from .routers.properties import router as properties_router
from .routers.tenants import router as tenants_router
from .routers.contracts import router as contracts_router
from .routers.payments import router as payments_router
from .routers.service_requests import router as service_requests_router
from .routers.users import router as users_router

from .routers.export import router as export_router
from .routers.events import router as events_router

API_PREFIX = "/api"


def create_app() -> FastAPI:
    configure_logging()

    app = FastAPI(title="RentDesk", version="0.1.0")

    # Starlette runs the last-added middleware first, so the request id is set before logging
    app.add_middleware(StructuredLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins(),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID", "X-Invalidate-Views", "Content-Disposition"],
    )

    register_error_handlers(app)

    # Core
    app.include_router(health_router, prefix=API_PREFIX)
    app.include_router(auth_router, prefix=API_PREFIX)
    app.include_router(dashboard_router, prefix=API_PREFIX)
    app.include_router(reports_router, prefix=API_PREFIX)

    # Entities
    app.include_router(properties_router, prefix=API_PREFIX)
    app.include_router(tenants_router, prefix=API_PREFIX)
    app.include_router(contracts_router, prefix=API_PREFIX)
    app.include_router(payments_router, prefix=API_PREFIX)
    app.include_router(service_requests_router, prefix=API_PREFIX)
    app.include_router(users_router, prefix=API_PREFIX)

    # Export + change log
    app.include_router(export_router, prefix=API_PREFIX)
    app.include_router(events_router, prefix=API_PREFIX)

    return app


app = create_app()

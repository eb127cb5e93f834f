"""FastAPI application factory"""

import logging
from contextlib import asynccontextmanager
from functools import partial

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
from starlette.responses import Response

from lufashion_ledger.api.middleware import RequestIDMiddleware, MetricsMiddleware
from lufashion_ledger.api.v1 import customers, notifications, reports
from lufashion_ledger.domain.book import LedgerBook
from lufashion_ledger.domain.exceptions import (
    InvalidAmountError,
    InvalidCustomerDataError,
    NotFoundError,
    PersistenceUnavailableError,
)
from lufashion_ledger.infrastructure.database.repositories import SqlLedgerRepository
from lufashion_ledger.infrastructure.database.session import SessionLocal
from lufashion_ledger.infrastructure.observability.logging import setup_logging
from lufashion_ledger.utils.date_utils import local_today
from lufashion_ledger.config import settings

# Setup structured logging
setup_logging(settings.log_level)


def build_book() -> LedgerBook:
    """Book backed by the configured database"""
    return LedgerBook(
        repository=SqlLedgerRepository(SessionLocal),
        today=partial(local_today, settings.timezone),
        due_soon_days=settings.due_soon_days,
        opening_charge_description=settings.opening_charge_description,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    if getattr(app.state, "book", None) is None:
        book = build_book()
        try:
            book.load()
        except PersistenceUnavailableError as e:
            # Start empty; /v1/refresh can retry once the store is back
            logging.error(f"Initial load failed, starting with an empty book: {e}")
        app.state.book = book
    yield


def create_app(book: LedgerBook | None = None) -> FastAPI:
    """Create and configure FastAPI application"""
    app = FastAPI(
        title="LuFashion Ledger",
        description="Customer nota ledger: charges, payments, due dates",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )
    app.state.book = book

    # Add middleware (order matters: last added = first executed)
    app.add_middleware(MetricsMiddleware)
    app.add_middleware(RequestIDMiddleware)

    # Domain errors -> HTTP
    @app.exception_handler(NotFoundError)
    async def not_found_handler(request: Request, exc: NotFoundError):
        return JSONResponse(status_code=404, content={"detail": str(exc)})

    @app.exception_handler(InvalidAmountError)
    @app.exception_handler(InvalidCustomerDataError)
    async def validation_handler(request: Request, exc: Exception):
        return JSONResponse(status_code=422, content={"detail": str(exc)})

    @app.exception_handler(PersistenceUnavailableError)
    async def persistence_handler(request: Request, exc: PersistenceUnavailableError):
        logging.error(f"Store unavailable: {exc}", extra={"request_id": getattr(request.state, "request_id", None)})
        return JSONResponse(status_code=503, content={"detail": "Store unavailable"})

    # Health check endpoint
    @app.get("/health")
    def health_check():
        return {"status": "ok", "service": settings.service_name}

    # Prometheus metrics endpoint
    @app.get("/metrics")
    def metrics():
        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    # Register API routers
    app.include_router(customers.router, prefix="/v1", tags=["customers"])
    app.include_router(reports.router, prefix="/v1", tags=["reports"])
    app.include_router(notifications.router, prefix="/v1", tags=["notifications"])

    return app


app = create_app()

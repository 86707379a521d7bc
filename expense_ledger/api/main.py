"""FastAPI application factory"""

import logging
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
from starlette.responses import Response

from expense_ledger.api.dependencies import get_request_id
from expense_ledger.api.middleware import RequestIDMiddleware, MetricsMiddleware
from expense_ledger.api.v1 import expenses, resolutions, statistics
from expense_ledger.domain.exceptions import DomainException, NotFoundError, ValidationError
from expense_ledger.infrastructure.observability.logging import setup_logging
from expense_ledger.config import settings

# Setup structured logging
setup_logging(settings.log_level)


def create_app() -> FastAPI:
    """Create and configure FastAPI application"""
    app = FastAPI(
        title="Expense Ledger",
        description="Recurring expenses, ratings and monthly resolutions",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
    )

    # Add middleware (order matters: last added = first executed)
    app.add_middleware(MetricsMiddleware)
    app.add_middleware(RequestIDMiddleware)

    # Domain errors -> HTTP status codes
    @app.exception_handler(ValidationError)
    def validation_error_handler(request: Request, exc: ValidationError):
        logging.warning(f"Validation failed: {exc}", extra={"request_id": get_request_id(request)})
        return JSONResponse(status_code=400, content={"detail": str(exc)})

    @app.exception_handler(NotFoundError)
    def not_found_handler(request: Request, exc: NotFoundError):
        return JSONResponse(status_code=404, content={"detail": str(exc)})

    @app.exception_handler(DomainException)
    def domain_error_handler(request: Request, exc: DomainException):
        logging.error(f"Unexpected domain error: {exc}", extra={"request_id": get_request_id(request)})
        return JSONResponse(status_code=500, content={"detail": "Internal server error"})

    # Health check endpoint
    @app.get("/health")
    def health_check():
        return {"status": "ok", "service": settings.service_name}

    # Prometheus metrics endpoint
    @app.get("/metrics")
    def metrics():
        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    # Register API routers
    app.include_router(expenses.router, prefix="/v1", tags=["expenses"])
    app.include_router(resolutions.router, prefix="/v1", tags=["resolutions"])
    app.include_router(statistics.router, prefix="/v1", tags=["statistics"])

    return app


app = create_app()

"""FastAPI application factory"""

from fastapi import FastAPI
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
from starlette.responses import Response

from finflow_gateway.api.middleware import RequestIDMiddleware, MetricsMiddleware
from finflow_gateway.api.v1 import calendar, insight, payments
from finflow_gateway.infrastructure.observability.logging import setup_logging
from finflow_gateway.config import settings

# Setup structured logging
setup_logging(settings.log_level)


def create_app() -> FastAPI:
    """Create and configure FastAPI application"""
    app = FastAPI(
        title="FinFlow Gateway",
        description="Obligation calendar, financial insight and payment confirmation service",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
    )

    # Add middleware (order matters: last added = first executed)
    app.add_middleware(MetricsMiddleware)
    app.add_middleware(RequestIDMiddleware)

    # Health check endpoint
    @app.get("/health")
    def health_check():
        return {"status": "ok", "service": settings.service_name}

    # Prometheus metrics endpoint
    @app.get("/metrics")
    def metrics():
        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    # Register API routers
    app.include_router(calendar.router, prefix="/v1", tags=["calendar"])
    app.include_router(insight.router, prefix="/v1", tags=["insight"])
    app.include_router(payments.router, prefix="/v1", tags=["payments"])

    return app


app = create_app()

"""FastAPI application factory"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
from starlette.responses import Response

from insight_engine.api.middleware import RequestIDMiddleware, MetricsMiddleware
from insight_engine.api.v1 import categories, duplicates, insights, notifications
from insight_engine.config import settings
from insight_engine.domain.categorization import CategoryClassifier
from insight_engine.domain.duplicates import DuplicateDetector
from insight_engine.domain.notifications import NotificationService, NotificationStore
from insight_engine.infrastructure.observability.logging import setup_logging
from insight_engine.infrastructure.observability.metrics import record_expired

# Setup structured logging
setup_logging(settings.log_level)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Run the notification cleanup timer for the life of the app"""
    handle = app.state.notification_store.start_cleanup(on_sweep=record_expired)
    try:
        yield
    finally:
        handle.stop()
        logging.info("Notification cleanup stopped")


def create_app() -> FastAPI:
    """Create and configure FastAPI application"""
    app = FastAPI(
        title="Insight Engine",
        description="Transaction categorization, duplicate detection, spending insights and notifications",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    # One set of stateful collaborators per app instance
    app.state.classifier = CategoryClassifier()
    app.state.detector = DuplicateDetector()
    app.state.notification_store = NotificationStore()
    app.state.notification_service = NotificationService(
        app.state.notification_store,
        detector=app.state.detector,
        classifier=app.state.classifier,
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
    app.include_router(categories.router, prefix="/v1", tags=["categories"])
    app.include_router(duplicates.router, prefix="/v1", tags=["duplicates"])
    app.include_router(insights.router, prefix="/v1", tags=["insights"])
    app.include_router(notifications.router, prefix="/v1", tags=["notifications"])

    return app


app = create_app()

"""Application factory for the FastAPI app.

Centralizes app construction (metadata, middleware, handlers, routers) so
tests can build isolated instances.
"""

from __future__ import annotations

from fastapi import FastAPI

from throttle.api.routes import health_router, status_router
from throttle.core.config import settings
from throttle.core.exception_handlers import setup_exception_handlers
from throttle.core.logging import configure_logging
from throttle.core.middleware import request_id_middleware
from throttle.core.openapi import apply_openapi_customizations


def create_app() -> FastAPI:
    """Create and configure the FastAPI application instance.

    Returns:
        Configured FastAPI app with middleware, handlers, routers and docs.
    """
    # Logging first so subsequent init logs are formatted as desired
    configure_logging(settings.log)

    app = FastAPI(
        title="Throttle",
        description=(
            "Per-client request throttling backed by a self-cleaning, "
            "two-generation in-memory counter store. Limited endpoints report "
            "RateLimit-Limit, RateLimit-Remaining and RateLimit-Reset headers "
            "and answer 429 once a client exceeds its quota."
        ),
        version="0.1.0",
        debug=settings.app.debug,
    )

    app.middleware("http")(request_id_middleware)

    setup_exception_handlers(app)

    app.include_router(status_router, prefix="/v1")
    app.include_router(health_router)

    apply_openapi_customizations(app)

    return app

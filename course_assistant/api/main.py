"""
FastAPI application with assembled routers.

Initializes FastAPI app with all API routers and configures uvicorn server.
The lifespan starts the in-process crawl worker and tears down cached
services on shutdown.

Dependencies: fastapi, course_assistant.api.routers, uvicorn
System role: API entry point with router assembly and server launch
"""

import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from course_assistant.api.deps.dependencies import get_service_cache
from course_assistant.configs import get_settings
from course_assistant.observability.logger import configure_logging
from course_assistant.observability.middleware import (
    CorrelationMiddleware,
    RequestLoggingMiddleware,
)

from .routers import (
    chat_router,
    courses_router,
    health_router,
    scans_router,
    usage_router,
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan context manager.

    Handles startup and shutdown events.
    """
    logger = logging.getLogger("uvicorn")

    cache = get_service_cache()
    await cache.startup()
    logger.info("Crawl worker started")

    yield

    await cache.shutdown()
    logger.info("Service cache cleared")


def create_app() -> FastAPI:
    """
    Create and configure FastAPI application with routers.

    Returns:
        FastAPI: Configured application instance with all routers registered
    """
    settings = get_settings()
    configure_logging(settings.log_level)

    app = FastAPI(
        title="Course Assistant API",
        description="Course document ingestion with recoverable scan sessions and quota-gated chat",
        version="0.1.0",
        docs_url=None if settings.is_production else "/docs",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(CorrelationMiddleware)

    # Register all routers with /api/v1 prefix for versioning
    app.include_router(health_router, prefix="/api/v1")
    app.include_router(courses_router, prefix="/api/v1")
    app.include_router(scans_router, prefix="/api/v1")
    app.include_router(chat_router, prefix="/api/v1")
    app.include_router(usage_router, prefix="/api/v1")

    return app


app = create_app()


if __name__ == "__main__":
    uvicorn.run(
        "course_assistant.api.main:app",
        host="0.0.0.0",
        port=8000,
    )

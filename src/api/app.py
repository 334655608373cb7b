# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""FastAPI Application Factory.

Run with:
    uvicorn src.api.app:create_app --factory --port 5000
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi.errors import RateLimitExceeded

from src import __version__
from src.api.dependencies import close_db, init_db
from src.api.middleware.auth import AuthMiddleware
from src.api.middleware.rate_limit import limiter, rate_limit_exceeded_handler
from src.api.routes import health, lessons, users
from src.core.config import get_settings
from src.infrastructure.background import setup_dramatiq, shutdown_dramatiq
from src.utils.logging import setup_logging

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager.

    Initializes and cleans up:
    - Database connection pool
    - Dramatiq broker (used to enqueue analysis jobs)

    Args:
        app: The FastAPI application instance.

    Yields:
        None during application runtime.
    """
    settings = get_settings()
    setup_logging(settings)
    logger.info(
        "Starting Adaptive Path Engine API (environment=%s, debug=%s)",
        settings.environment,
        settings.debug,
    )

    # =========================================================================
    # Startup
    # =========================================================================

    try:
        await init_db()
        logger.info("Database connection pool initialized")
    except Exception as e:
        logger.warning("Failed to initialize database connection pool: %s", str(e))

    try:
        setup_dramatiq()
        logger.info("Dramatiq broker initialized")
    except Exception as e:
        logger.warning("Failed to setup Dramatiq: %s", str(e))

    yield

    # =========================================================================
    # Shutdown
    # =========================================================================

    try:
        shutdown_dramatiq()
        logger.info("Dramatiq broker shutdown")
    except Exception as e:
        logger.warning("Error shutting down Dramatiq: %s", str(e))

    try:
        await close_db()
        logger.info("Database connection pool closed")
    except Exception as e:
        logger.warning("Error closing database connection pool: %s", str(e))

    logger.info("Shutting down Adaptive Path Engine API")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application.

    Returns:
        Configured FastAPI application instance.
    """
    settings = get_settings()

    app = FastAPI(
        title="Adaptive Path Engine API",
        description="Adaptive learning paths for coding lessons",
        version=__version__,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        openapi_url="/openapi.json" if settings.debug else None,
        lifespan=lifespan,
        # 307 redirects from /path to /path/ drop the Authorization header
        redirect_slashes=False,
    )

    # =========================================================================
    # State
    # =========================================================================
    app.state.limiter = limiter

    # =========================================================================
    # Exception handlers
    # =========================================================================
    app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)

    # =========================================================================
    # Middleware (order matters - last added is first executed)
    # =========================================================================

    app.add_middleware(AuthMiddleware)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors.origins_list,
        allow_credentials=settings.cors.allow_credentials,
        allow_methods=settings.cors.allow_methods,
        allow_headers=settings.cors.allow_headers,
    )

    # =========================================================================
    # Routes
    # =========================================================================
    app.include_router(health.router, tags=["Health"])
    app.include_router(users.router, prefix="/api/users", tags=["Adaptive Actions"])
    app.include_router(lessons.router, prefix="/api/lessons", tags=["Lessons"])

    return app

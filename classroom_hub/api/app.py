# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""FastAPI Application Factory.

This module provides the main application factory for the classroom-hub API.

Example:
    uvicorn classroom_hub.api.app:create_app --factory
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import RedirectResponse
from slowapi.errors import RateLimitExceeded

from classroom_hub import __version__
from classroom_hub.api.dependencies import close_db, get_github_client, init_db
from classroom_hub.api.middleware.auth import AuthMiddleware
from classroom_hub.api.middleware.rate_limit import limiter, rate_limit_exceeded_handler
from classroom_hub.api.routes import health
from classroom_hub.api.v1 import router as v1_router
from classroom_hub.core.config import get_settings
from classroom_hub.domains.auth.session import (
    NotAuthenticatedError,
    SessionService,
    TokenScopeLossError,
)
from classroom_hub.infrastructure.background import setup_dramatiq, shutdown_dramatiq
from classroom_hub.infrastructure.database import get_session
from classroom_hub.utils.logging import setup_logging

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager.

    Initializes and cleans up:
    - Logging
    - Database connections and the GitHub client
    - Dramatiq broker

    Args:
        app: The FastAPI application instance.

    Yields:
        None during application runtime.
    """
    settings = get_settings()
    setup_logging(settings)
    logger.info(
        "Starting classroom-hub API (environment=%s, debug=%s)",
        settings.environment,
        settings.debug,
    )

    # =========================================================================
    # Startup
    # =========================================================================

    await init_db()
    logger.info("Database connection initialized")

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

    await close_db()
    logger.info("Shutting down classroom-hub API")


async def not_authenticated_handler(
    request: Request,
    exc: NotAuthenticatedError,
) -> RedirectResponse:
    """Send requests without a session to the login page."""
    return RedirectResponse(
        url=get_settings().api.login_path,
        status_code=status.HTTP_302_FOUND,
    )


async def token_scope_loss_handler(
    request: Request,
    exc: TokenScopeLossError,
) -> RedirectResponse:
    """Sign the user out and send them to the application root.

    The stored GitHub token is cleared and the session cookie deleted.
    """
    settings = get_settings()

    if exc.user_id:
        async with get_session() as session:
            service = SessionService(session, get_github_client(), settings.github.required_scopes)
            await service.sign_out(exc.user_id)

    logger.info("Signed out user %s: %s", exc.user_id, str(exc))

    response = RedirectResponse(url=settings.api.home_path, status_code=status.HTTP_302_FOUND)
    response.delete_cookie(settings.jwt.cookie_name)
    return response


def create_app() -> FastAPI:
    """Create and configure the FastAPI application.

    Returns:
        Configured FastAPI application instance.
    """
    settings = get_settings()

    app = FastAPI(
        title="classroom-hub API",
        description="Classrooms bound to GitHub organizations",
        version=__version__,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        openapi_url="/openapi.json" if settings.debug else None,
        lifespan=lifespan,
        # Disable automatic redirects from /path to /path/
        # This prevents 307 redirects that lose Authorization headers
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
    app.add_exception_handler(NotAuthenticatedError, not_authenticated_handler)
    app.add_exception_handler(TokenScopeLossError, token_scope_loss_handler)

    # =========================================================================
    # Middleware (order matters - last added is first executed)
    # =========================================================================

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors.origins_list,
        allow_credentials=settings.cors.allow_credentials,
        allow_methods=settings.cors.allow_methods,
        allow_headers=settings.cors.allow_headers,
    )

    # Auth middleware - validates session tokens
    app.add_middleware(AuthMiddleware)

    # =========================================================================
    # Routes
    # =========================================================================
    app.include_router(health.router, tags=["Health"])
    app.include_router(v1_router)

    return app

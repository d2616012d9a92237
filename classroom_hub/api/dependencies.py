# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""FastAPI dependency injection definitions.

This module provides dependency functions for FastAPI endpoints.
Dependencies are used to:
- Get database sessions
- Get the authenticated session user
- Get service instances and their collaborators

Example:
    @router.get("/classrooms")
    async def list_classrooms(
        user: User = Depends(require_github_session),
        service: ClassroomService = Depends(get_classroom_service),
    ):
        ...
"""

import logging
from typing import AsyncGenerator

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from classroom_hub.api.middleware.auth import CurrentUser, get_current_user
from classroom_hub.core.config import FeatureSettings, get_settings
from classroom_hub.domains.auth.session import NotAuthenticatedError, SessionService
from classroom_hub.domains.classroom.service import ClassroomService
from classroom_hub.infrastructure.background.dispatcher import JobDispatcher
from classroom_hub.infrastructure.database.connection import (
    close_database,
    get_session,
    init_database,
)
from classroom_hub.infrastructure.database.migrations.runner import run_migrations
from classroom_hub.infrastructure.database.models import User
from classroom_hub.infrastructure.github import GitHubClient

logger = logging.getLogger(__name__)

# GitHub client singleton, shares one connection pool across requests
_github_client: GitHubClient | None = None


async def init_db() -> None:
    """Bring the schema up to date and initialize the connection pool."""
    settings = get_settings()

    if settings.db.auto_migrate:
        applied = await run_migrations(settings.db.url)
        if applied:
            logger.info("Applied %d database migration(s)", len(applied))

    await init_database(settings)


async def close_db() -> None:
    """Close the database connection pool and the GitHub client."""
    global _github_client

    if _github_client is not None:
        await _github_client.close()
        _github_client = None

    await close_database()


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Get a database session.

    Yields:
        AsyncSession for the application database.
    """
    async with get_session() as session:
        yield session


def get_github_client() -> GitHubClient:
    """Get the shared GitHub API client."""
    global _github_client

    if _github_client is None:
        _github_client = GitHubClient(get_settings().github)
    return _github_client


def get_job_dispatcher() -> JobDispatcher:
    """Get the background job dispatcher."""
    return JobDispatcher()


def get_features() -> FeatureSettings:
    """Get the feature flags."""
    return get_settings().features


# =========================================================================
# Authentication Dependencies
# =========================================================================


def require_auth(request: Request) -> CurrentUser:
    """Require a valid session.

    Args:
        request: HTTP request.

    Returns:
        CurrentUser.

    Raises:
        NotAuthenticatedError: If not authenticated; answered with a
            redirect to the login page.
    """
    user = get_current_user(request)
    if not user:
        raise NotAuthenticatedError("Not authenticated")
    return user


async def require_github_session(
    current_user: CurrentUser = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
    github: GitHubClient = Depends(get_github_client),
) -> User:
    """Require a session user whose GitHub token is still usable.

    Args:
        current_user: Authenticated session.
        db: Database session.
        github: GitHub API client.

    Returns:
        The signed-in User row.

    Raises:
        NotAuthenticatedError: If the session user no longer exists.
        TokenScopeLossError: If the GitHub token is missing, rejected or
            lacks a required scope; answered with a sign-out.
    """
    service = SessionService(db, github, get_settings().github.required_scopes)
    return await service.load_session_user(current_user.id)


# =========================================================================
# Service Dependencies
# =========================================================================


def get_classroom_service(
    db: AsyncSession = Depends(get_db),
    github: GitHubClient = Depends(get_github_client),
    dispatcher: JobDispatcher = Depends(get_job_dispatcher),
    features: FeatureSettings = Depends(get_features),
) -> ClassroomService:
    """Get classroom service instance.

    Args:
        db: Database session.
        github: GitHub API client.
        dispatcher: Background job dispatcher.
        features: Feature flags.

    Returns:
        Configured ClassroomService instance.
    """
    return ClassroomService(db=db, github=github, dispatcher=dispatcher, features=features)

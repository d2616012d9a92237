# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Pytest configuration and shared fixtures.

This module provides fixtures used across all test types:
- Unit tests
- Integration tests

Database fixtures run against in-memory SQLite through aiosqlite, so
no external services are needed.
"""

import os

# Must be set before the broker module is first used
os.environ.setdefault("DRAMATIQ_TEST_MODE", "true")

import itertools
from collections.abc import AsyncGenerator, Awaitable, Callable
from unittest.mock import MagicMock

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from classroom_hub.core.config.settings import FeatureSettings, GitHubSettings
from classroom_hub.infrastructure.database.models import (
    Assignment,
    Classroom,
    ClassroomMembership,
    Grouping,
    User,
)
from classroom_hub.infrastructure.database.models.base import Base
from classroom_hub.infrastructure.github import GitHubClient, GitHubOrganization

_github_ids = itertools.count(1000)


# =============================================================================
# Marker Configuration
# =============================================================================


def pytest_configure(config: pytest.Config) -> None:
    """Configure custom pytest markers."""
    config.addinivalue_line(
        "markers", "unit: mark test as a unit test"
    )
    config.addinivalue_line(
        "markers", "integration: mark test as an integration test"
    )


# =============================================================================
# Database Fixtures
# =============================================================================


@pytest_asyncio.fixture(scope="function")
async def db_engine() -> AsyncGenerator[AsyncEngine, None]:
    """Create an in-memory database with all tables."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def db_session(db_engine: AsyncEngine) -> AsyncGenerator[AsyncSession, None]:
    """Create async session for database tests."""
    async_session = async_sessionmaker(
        db_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    async with async_session() as session:
        yield session
        await session.rollback()


# =============================================================================
# Model Factories
# =============================================================================


@pytest.fixture
def create_user(db_session: AsyncSession) -> Callable[..., Awaitable[User]]:
    """Factory for persisted users."""

    async def _create(login: str = "octocat", token: str | None = "gho_test_token") -> User:
        user = User(github_id=next(_github_ids), login=login, token=token)
        db_session.add(user)
        await db_session.commit()
        return user

    return _create


@pytest.fixture
def create_classroom(db_session: AsyncSession) -> Callable[..., Awaitable[Classroom]]:
    """Factory for persisted classrooms with optional members."""

    async def _create(
        github_id: int = 4242,
        title: str = "Intro to Git",
        members: tuple[User, ...] = (),
    ) -> Classroom:
        n = next(_github_ids)
        classroom = Classroom(
            slug=f"{github_id}-classroom-{n}",
            title=title,
            github_id=github_id,
            github_global_relay_id=f"MDEyOk9yZ2FuaXphdGlvbj{n}",
            invitation_key=f"{n:032x}",
        )
        db_session.add(classroom)
        await db_session.flush()

        for member in members:
            db_session.add(ClassroomMembership(classroom_id=classroom.id, user_id=member.id))
        await db_session.commit()
        return classroom

    return _create


@pytest.fixture
def create_assignment(db_session: AsyncSession) -> Callable[..., Awaitable[Assignment]]:
    """Factory for persisted assignments."""

    async def _create(classroom: Classroom, creator: User | None, title: str = "Homework") -> Assignment:
        assignment = Assignment(
            classroom_id=classroom.id,
            creator_id=creator.id if creator else None,
            title=title,
        )
        db_session.add(assignment)
        await db_session.commit()
        return assignment

    return _create


@pytest.fixture
def create_grouping(db_session: AsyncSession) -> Callable[..., Awaitable[Grouping]]:
    """Factory for persisted groupings."""

    async def _create(classroom: Classroom, title: str = "Project teams") -> Grouping:
        grouping = Grouping(classroom_id=classroom.id, title=title)
        db_session.add(grouping)
        await db_session.commit()
        return grouping

    return _create


# =============================================================================
# Collaborator Fixtures
# =============================================================================


@pytest.fixture
def github_settings() -> GitHubSettings:
    """GitHub settings pointing at a fake API."""
    return GitHubSettings(api_url="https://github.test", timeout=1.0)


@pytest.fixture
def organization() -> GitHubOrganization:
    """Sample GitHub organization."""
    return GitHubOrganization(
        id=4242,
        node_id="MDEyOk9yZ2FuaXphdGlvbjQyNDI=",
        login="git-school",
        name="Git School",
    )


@pytest.fixture
def mock_github(organization: GitHubOrganization, github_settings: GitHubSettings) -> MagicMock:
    """GitHub client double.

    Defaults: every user administers every organization, the token carries
    all required scopes, and organization lookups return ``organization``.
    """
    github = MagicMock(spec=GitHubClient)
    github.is_organization_admin.return_value = True
    github.token_scopes.return_value = set(github_settings.required_scopes)
    github.admin_organizations.return_value = [organization]
    github.organization.return_value = organization
    return github


@pytest.fixture
def mock_dispatcher() -> MagicMock:
    """Job dispatcher double."""
    return MagicMock()


@pytest.fixture
def features() -> FeatureSettings:
    """Feature flags with everything off."""
    return FeatureSettings(multiple_classrooms_per_org=False, team_management=False)

# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Pytest fixtures for API integration tests.

The application runs in-process over httpx's ASGI transport against a
file-backed SQLite database initialized through init_database(), so
the app's own sessions and the test's session see the same data.
GitHub is replaced with a double through dependency overrides.
"""

from collections.abc import AsyncGenerator

import httpx
import pytest
import pytest_asyncio
from fastapi import FastAPI
from sqlalchemy.ext.asyncio import AsyncSession

from classroom_hub.api.app import create_app
from classroom_hub.api.dependencies import get_features, get_github_client
from classroom_hub.core.config import clear_settings_cache, get_settings
from classroom_hub.domains.auth.jwt import JWTManager
from classroom_hub.infrastructure.background import get_broker, setup_dramatiq
from classroom_hub.infrastructure.database import (
    close_database,
    get_engine,
    get_sessionmaker,
    init_database,
)
from classroom_hub.infrastructure.database.models import User
from classroom_hub.infrastructure.database.models.base import Base


@pytest_asyncio.fixture(scope="function")
async def app_database(tmp_path, monkeypatch) -> AsyncGenerator[None, None]:
    """Initialize the application database on a temporary SQLite file."""
    monkeypatch.setenv("DATABASE_URL", f"sqlite+aiosqlite:///{tmp_path / 'classroom_hub.db'}")
    monkeypatch.setenv("JWT_SECRET_KEY", "test-secret-key-for-jwt-testing")
    clear_settings_cache()

    await init_database(get_settings())
    async with get_engine().begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield

    await close_database()
    clear_settings_cache()


@pytest_asyncio.fixture(scope="function")
async def db_session(app_database) -> AsyncGenerator[AsyncSession, None]:
    """Session on the application database, for seeding and assertions."""
    async with get_sessionmaker()() as session:
        yield session


@pytest.fixture
def stub_broker():
    """Provide the stub broker with empty queues."""
    broker = setup_dramatiq()
    broker.flush_all()
    yield get_broker()
    broker.flush_all()


@pytest.fixture
def app(app_database, mock_github, features, stub_broker) -> FastAPI:
    """Create the application with GitHub and feature flags overridden."""
    app = create_app()
    app.dependency_overrides[get_github_client] = lambda: mock_github
    app.dependency_overrides[get_features] = lambda: features
    return app


@pytest_asyncio.fixture
async def client(app: FastAPI) -> AsyncGenerator[httpx.AsyncClient, None]:
    """Async HTTP client bound to the app."""
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as client:
        yield client


@pytest.fixture
def auth_headers():
    """Build an Authorization header for a user."""

    def _headers(user: User) -> dict[str, str]:
        token = JWTManager(get_settings().jwt).create_session_token(user.id, login=user.login)
        return {"Authorization": f"Bearer {token}"}

    return _headers

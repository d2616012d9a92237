# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Session service: resolves the signed-in user and signs them out.

A session is valid only while the user's stored GitHub token is
accepted by GitHub and still carries every required OAuth scope.
"""

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from classroom_hub.infrastructure.database.models import User
from classroom_hub.infrastructure.github import GitHubClient, GitHubError

logger = logging.getLogger(__name__)


class SessionError(Exception):
    """Base exception for session errors."""

    pass


class NotAuthenticatedError(SessionError):
    """Raised when a request carries no valid session."""

    pass


class TokenScopeLossError(SessionError):
    """Raised when the user's GitHub credential is no longer usable.

    The request boundary signs the user out and redirects home.
    """

    def __init__(self, message: str, user_id: str | None = None) -> None:
        super().__init__(message)
        self.user_id = user_id


class SessionService:
    """Loads session users and enforces GitHub token health.

    Attributes:
        db: Async database session.
        github: GitHub API client.
        required_scopes: Scopes a teacher token must carry.
    """

    def __init__(
        self,
        db: AsyncSession,
        github: GitHubClient,
        required_scopes: list[str],
    ) -> None:
        self.db = db
        self.github = github
        self.required_scopes = frozenset(required_scopes)

    async def get_user(self, user_id: str) -> User | None:
        """Get a user by local id."""
        result = await self.db.execute(select(User).where(User.id == user_id))
        return result.scalar_one_or_none()

    async def load_session_user(self, user_id: str) -> User:
        """Resolve the session user and check their GitHub token.

        Args:
            user_id: Subject of the session token.

        Returns:
            The signed-in user.

        Raises:
            NotAuthenticatedError: If the user no longer exists.
            TokenScopeLossError: If the token is missing, rejected, or
                lacks a required scope.
        """
        user = await self.get_user(user_id)
        if user is None:
            raise NotAuthenticatedError("Session user not found")

        await self.ensure_no_token_scope_loss(user)
        return user

    async def ensure_no_token_scope_loss(self, user: User) -> None:
        """Verify the user's GitHub token is still usable.

        Raises:
            TokenScopeLossError: If it is not.
        """
        if not user.token:
            raise TokenScopeLossError("User has no GitHub token", user_id=user.id)

        try:
            scopes = await self.github.token_scopes(user.token)
        except GitHubError as e:
            logger.info("GitHub rejected token for %s: %s", user.login, e.message)
            raise TokenScopeLossError("GitHub token rejected", user_id=user.id) from e

        missing = self.required_scopes - scopes
        if missing:
            logger.info(
                "Token for %s lost scopes: %s",
                user.login,
                ", ".join(sorted(missing)),
            )
            raise TokenScopeLossError("GitHub token is missing scopes", user_id=user.id)

    async def sign_out(self, user_id: str) -> None:
        """Forget the user's GitHub token.

        The session cookie is deleted by the caller; clearing the stored
        token invalidates every other outstanding session token too.
        """
        user = await self.get_user(user_id)
        if user is None:
            return

        user.token = None
        await self.db.commit()
        logger.info("Signed out %s", user.login)

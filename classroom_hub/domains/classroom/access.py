# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Membership & access gate for classrooms.

Keeps local classroom membership in step with GitHub organization
admin status. Membership is only ever added here, never removed:
a teacher who loses admin rights on GitHub keeps local access until
someone removes them.
"""

from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.dialects.postgresql import insert as postgresql_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncSession

from classroom_hub.domains.auth.session import TokenScopeLossError
from classroom_hub.infrastructure.database.models import Classroom, ClassroomMembership, User
from classroom_hub.infrastructure.github import GitHubClient, GitHubError
from classroom_hub.utils.datetime import utc_now

logger = logging.getLogger(__name__)


class MembershipGate:
    """Reconciles classroom membership with GitHub admin status.

    Attributes:
        db: Async database session.
        github: GitHub API client.
    """

    def __init__(self, db: AsyncSession, github: GitHubClient) -> None:
        self.db = db
        self.github = github

    async def is_admin(self, user: User, github_id: int) -> bool:
        """Check if the user administers a GitHub organization.

        Raises:
            TokenScopeLossError: If the lookup fails or the token is gone.
        """
        if not user.token:
            raise TokenScopeLossError("User has no GitHub token", user_id=user.id)

        try:
            return await self.github.is_organization_admin(user.token, github_id)
        except GitHubError as e:
            logger.warning(
                "Admin lookup for %s on org %s failed: %s",
                user.login,
                github_id,
                e.message,
            )
            raise TokenScopeLossError("GitHub admin lookup failed", user_id=user.id) from e

    async def is_member(self, user_id: str, classroom_id: str) -> bool:
        """Check if the user is a member of the classroom."""
        result = await self.db.execute(
            select(ClassroomMembership.id).where(
                ClassroomMembership.classroom_id == classroom_id,
                ClassroomMembership.user_id == user_id,
            )
        )
        return result.first() is not None

    async def add_member(self, user: User, classroom: Classroom) -> None:
        """Add a membership row, without committing."""
        self.db.add(ClassroomMembership(classroom_id=classroom.id, user_id=user.id))

    async def ensure_membership(
        self,
        user: User,
        classroom: Classroom,
        is_admin: bool | None = None,
    ) -> None:
        """Add the user to the classroom if they administer its organization.

        Non-admins are never added, and existing memberships are never
        touched. Calling this repeatedly, or from concurrent requests,
        leaves exactly one membership.

        Args:
            user: Signed-in user.
            classroom: Active classroom.
            is_admin: Admin status already fetched by the caller; looked
                up on GitHub when omitted.

        Raises:
            TokenScopeLossError: If the GitHub lookup fails.
        """
        if is_admin is None:
            is_admin = await self.is_admin(user, classroom.github_id)

        if not is_admin:
            return

        if await self.is_member(user.id, classroom.id):
            return

        # A concurrent request may have inserted the row since the check.
        result = await self.db.execute(
            self._insert_membership(classroom.id, user.id).on_conflict_do_nothing(
                index_elements=["classroom_id", "user_id"]
            )
        )
        await self.db.commit()

        if result.rowcount:
            logger.info("Added %s to classroom %s", user.login, classroom.slug)

    def _insert_membership(self, classroom_id: str, user_id: str):
        """Build a dialect INSERT that supports ON CONFLICT."""
        if self.db.get_bind().dialect.name == "postgresql":
            insert = postgresql_insert
        else:
            insert = sqlite_insert
        now = utc_now()
        return insert(ClassroomMembership).values(
            classroom_id=classroom_id,
            user_id=user_id,
            created_at=now,
            updated_at=now,
        )

# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Integration tests for concurrent membership reconciliation.

Each simulated request gets its own session and connection on the
file-backed application database.
"""

import asyncio

import pytest
from sqlalchemy import func, select

from classroom_hub.domains.classroom.access import MembershipGate
from classroom_hub.infrastructure.database import get_sessionmaker
from classroom_hub.infrastructure.database.models import Classroom, ClassroomMembership, User


class TestConcurrentFirstVisit:
    """Tests for two first visits by the same admin at once."""

    @pytest.mark.asyncio
    async def test_both_visits_succeed_with_one_membership(
        self, db_session, mock_github, create_user, create_classroom
    ):
        """Test that racing inserts end with a single membership and no error."""
        user = await create_user()
        classroom = await create_classroom()

        async def slow_admin_check(token: str, github_id: int) -> bool:
            await asyncio.sleep(0.05)
            return True

        mock_github.is_organization_admin.side_effect = slow_admin_check

        async def visit() -> None:
            async with get_sessionmaker()() as session:
                visitor = await session.get(User, user.id)
                target = await session.get(Classroom, classroom.id)
                await MembershipGate(session, mock_github).ensure_membership(visitor, target)

        results = await asyncio.gather(visit(), visit(), return_exceptions=True)

        assert results == [None, None]
        count = await db_session.execute(
            select(func.count()).select_from(ClassroomMembership).where(
                ClassroomMembership.classroom_id == classroom.id,
                ClassroomMembership.user_id == user.id,
            )
        )
        assert count.scalar() == 1

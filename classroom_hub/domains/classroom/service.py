# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Classroom service for managing classrooms and their teachers.

This module provides the ClassroomService class for:
- Classroom creation bound to a GitHub organization
- Classroom updates, soft deletion and deferred cleanup
- Co-teacher removal with assignment hand-over
- Feature-gated team groupings

Soft-deleted classrooms are invisible to every lookup except
get_unscoped() and count_classrooms(include_deleted=True).
"""

from __future__ import annotations

import logging
import re
import secrets

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from classroom_hub.core.config.settings import FeatureSettings
from classroom_hub.domains.auth.session import TokenScopeLossError
from classroom_hub.domains.classroom.access import MembershipGate
from classroom_hub.infrastructure.background.dispatcher import JobDispatcher
from classroom_hub.infrastructure.database.models import (
    Assignment,
    Classroom,
    ClassroomMembership,
    Grouping,
    User,
)
from classroom_hub.infrastructure.github import (
    GitHubClient,
    GitHubError,
    GitHubOrganization,
)
from classroom_hub.models.classroom import ClassroomCreateRequest, ClassroomUpdateRequest
from classroom_hub.models.common import paginate

logger = logging.getLogger(__name__)

_SLUG_SEPARATOR = re.compile(r"[^a-z0-9]+")


class ClassroomServiceError(Exception):
    """Base exception for classroom service errors."""

    pass


class ClassroomNotFoundError(ClassroomServiceError):
    """Raised when a classroom is missing, deleted, or not visible to the user."""

    pass


class MemberNotFoundError(ClassroomServiceError):
    """Raised when a member cannot be removed.

    Covers both a target that is not a member (or does not exist) and
    an acting user without owner rights on the organization.
    """

    pass


class NotOrganizationAdminError(ClassroomServiceError):
    """Raised when the user does not administer the GitHub organization."""

    pass


class ClassroomExistsError(ClassroomServiceError):
    """Raised when the organization already has a classroom."""

    pass


class FeatureDisabledError(ClassroomServiceError):
    """Raised when a feature-flagged view is switched off."""

    pass


class CleanupEnqueueError(ClassroomServiceError):
    """Raised when a soft-deleted classroom could not be queued for purging.

    The deletion mark is already committed. The classroom stays hidden
    and needs its destroy_resource job sent again.
    """

    pass


def parameterize(value: str) -> str:
    """Lowercase a string and join its alphanumeric runs with dashes."""
    return _SLUG_SEPARATOR.sub("-", value.lower()).strip("-")


class ClassroomService:
    """Service for managing classrooms.

    Attributes:
        db: Async database session.
        github: GitHub API client.
        dispatcher: Background job dispatcher.
        features: Feature flags.
        gate: Membership & access gate.
    """

    def __init__(
        self,
        db: AsyncSession,
        github: GitHubClient,
        dispatcher: JobDispatcher,
        features: FeatureSettings,
    ) -> None:
        """Initialize classroom service.

        Args:
            db: Async database session.
            github: GitHub API client.
            dispatcher: Dispatcher for the cleanup job.
            features: Feature flags for this request.
        """
        self.db = db
        self.github = github
        self.dispatcher = dispatcher
        self.features = features
        self.gate = MembershipGate(db, github)

    # =========================================================================
    # Lookups
    # =========================================================================

    async def get_active_by_slug(self, slug: str) -> Classroom:
        """Get a live classroom by slug.

        Raises:
            ClassroomNotFoundError: If missing or soft-deleted.
        """
        result = await self.db.execute(
            select(Classroom).where(
                Classroom.slug == slug,
                Classroom.deleted_at.is_(None),
            )
        )
        classroom = result.scalar_one_or_none()
        if classroom is None:
            raise ClassroomNotFoundError(f"Classroom {slug} not found")
        return classroom

    async def get_unscoped(self, classroom_id: str) -> Classroom | None:
        """Get a classroom by id, including soft-deleted ones."""
        result = await self.db.execute(select(Classroom).where(Classroom.id == classroom_id))
        return result.scalar_one_or_none()

    async def count_classrooms(self, include_deleted: bool = False) -> int:
        """Count classrooms, live only unless include_deleted is set."""
        query = select(func.count()).select_from(Classroom)
        if not include_deleted:
            query = query.where(Classroom.deleted_at.is_(None))
        result = await self.db.execute(query)
        return result.scalar() or 0

    async def authorize(self, user: User, slug: str) -> Classroom:
        """Resolve a classroom the user may act on.

        Reconciles the user's membership first, so an organization
        admin who is not yet a member gets in on first visit.

        Raises:
            ClassroomNotFoundError: If missing or the user is not a member.
            TokenScopeLossError: If the GitHub lookup fails.
        """
        classroom = await self.get_active_by_slug(slug)
        await self.gate.ensure_membership(user, classroom)

        if not await self.gate.is_member(user.id, classroom.id):
            raise ClassroomNotFoundError(f"Classroom {slug} not found")
        return classroom

    # =========================================================================
    # Listings
    # =========================================================================

    async def list_classrooms(
        self,
        user: User,
        limit: int = 20,
        offset: int = 0,
    ) -> tuple[list[Classroom], int]:
        """List the user's live classrooms, oldest first.

        Classrooms bound to organizations the user administers are
        reconciled before listing.

        Returns:
            Tuple of (classrooms, total count).
        """
        admin_orgs = await self._admin_organizations(user)
        if admin_orgs:
            result = await self.db.execute(
                select(Classroom).where(
                    Classroom.github_id.in_([org.id for org in admin_orgs]),
                    Classroom.deleted_at.is_(None),
                )
            )
            for classroom in result.scalars().all():
                await self.gate.ensure_membership(user, classroom, is_admin=True)

        query = (
            select(Classroom)
            .join(ClassroomMembership, ClassroomMembership.classroom_id == Classroom.id)
            .where(
                ClassroomMembership.user_id == user.id,
                Classroom.deleted_at.is_(None),
            )
        )

        count_query = select(func.count()).select_from(query.subquery())
        total = (await self.db.execute(count_query)).scalar() or 0

        query = query.order_by(Classroom.created_at, Classroom.id).limit(limit).offset(offset)
        result = await self.db.execute(query)
        return list(result.scalars().all()), total

    async def available_organizations(
        self,
        user: User,
        limit: int = 20,
        offset: int = 0,
    ) -> tuple[list[GitHubOrganization], int]:
        """List organizations the user could create a classroom for.

        These are the organizations the user administers, minus any
        already bound to a live classroom.

        Returns:
            Tuple of (organizations, total count).
        """
        admin_orgs = await self._admin_organizations(user)

        result = await self.db.execute(
            select(Classroom.github_id).where(Classroom.deleted_at.is_(None)).distinct()
        )
        bound_ids = set(result.scalars().all())

        available = sorted(
            (org for org in admin_orgs if org.id not in bound_ids),
            key=lambda org: org.login.lower(),
        )
        return paginate(available, limit, offset)

    async def list_members(self, classroom: Classroom) -> list[User]:
        """List classroom members in the order they joined."""
        result = await self.db.execute(
            select(User)
            .join(ClassroomMembership, ClassroomMembership.user_id == User.id)
            .where(ClassroomMembership.classroom_id == classroom.id)
            .order_by(ClassroomMembership.created_at, ClassroomMembership.id)
        )
        return list(result.scalars().all())

    async def list_assignments(self, classroom: Classroom) -> list[Assignment]:
        """List classroom assignments."""
        result = await self.db.execute(
            select(Assignment)
            .where(Assignment.classroom_id == classroom.id)
            .order_by(Assignment.created_at, Assignment.id)
        )
        return list(result.scalars().all())

    def ensure_groupings_enabled(self) -> None:
        """Raise unless the team groupings view is switched on.

        Raises:
            FeatureDisabledError: If team_management is off.
        """
        if not self.features.team_management:
            raise FeatureDisabledError("Team management is not enabled")

    async def list_groupings(self, classroom: Classroom) -> list[Grouping]:
        """List team groupings.

        Raises:
            FeatureDisabledError: If team_management is off.
        """
        self.ensure_groupings_enabled()
        result = await self.db.execute(
            select(Grouping)
            .where(Grouping.classroom_id == classroom.id)
            .order_by(Grouping.title)
        )
        return list(result.scalars().all())

    # =========================================================================
    # Mutations
    # =========================================================================

    async def create_classroom(
        self,
        user: User,
        request: ClassroomCreateRequest,
    ) -> Classroom:
        """Create a classroom for a GitHub organization.

        Args:
            user: Signed-in user, who becomes the first member.
            request: Creation data.

        Returns:
            The new classroom.

        Raises:
            NotOrganizationAdminError: If the user does not administer the org.
            ClassroomExistsError: If the org already has a live classroom and
                multiple classrooms per org are not allowed.
            TokenScopeLossError: If a GitHub lookup fails.
        """
        if not await self.gate.is_admin(user, request.github_id):
            raise NotOrganizationAdminError(
                f"{user.login} is not an admin of organization {request.github_id}"
            )

        if not self.features.multiple_classrooms_per_org:
            if await self._has_live_classroom(request.github_id):
                raise ClassroomExistsError(
                    f"Organization {request.github_id} already has a classroom"
                )

        organization = await self._organization(user, request.github_id)
        title = request.title or organization.login

        classroom = Classroom(
            title=title,
            slug=await self._unique_slug(organization.id, title),
            github_id=organization.id,
            github_global_relay_id=organization.node_id,
            invitation_key=secrets.token_hex(16),
        )
        self.db.add(classroom)
        await self.db.flush()

        await self.gate.add_member(user, classroom)
        await self.db.commit()
        await self.db.refresh(classroom)

        logger.info(
            "Created classroom: %s (%s) for org %s by %s",
            classroom.slug,
            classroom.id,
            classroom.github_id,
            user.login,
        )
        return classroom

    async def update_classroom(
        self,
        classroom: Classroom,
        request: ClassroomUpdateRequest,
    ) -> Classroom:
        """Update a classroom's title. The slug stays as it was."""
        classroom.title = request.title
        await self.db.commit()
        await self.db.refresh(classroom)

        logger.info("Updated classroom: %s (%s)", classroom.slug, classroom.id)
        return classroom

    async def setup_classroom(
        self,
        classroom: Classroom,
        request: ClassroomUpdateRequest,
    ) -> Classroom:
        """Apply the organization setup step of a new classroom.

        Same change as update_classroom; callers move on to the invite view.
        """
        classroom = await self.update_classroom(classroom, request)
        logger.info("Completed setup for classroom: %s", classroom.slug)
        return classroom

    async def destroy_classroom(self, classroom: Classroom) -> None:
        """Soft-delete a classroom and enqueue its cleanup job.

        Exactly one destroy_resource message is sent per call, after the
        deletion mark is committed.

        Raises:
            CleanupEnqueueError: If the broker rejects the message.
        """
        classroom.soft_delete()
        await self.db.commit()

        try:
            self.dispatcher.enqueue_destroy_resource(classroom)
        except Exception as e:
            logger.error(
                "Classroom %s (%s) is soft-deleted but its cleanup job was not enqueued",
                classroom.slug,
                classroom.id,
                exc_info=True,
            )
            raise CleanupEnqueueError(
                f"Cleanup of classroom {classroom.id} could not be scheduled"
            ) from e
        logger.info("Soft-deleted classroom: %s (%s)", classroom.slug, classroom.id)

    async def remove_member(
        self,
        classroom: Classroom,
        target_user_id: str,
        acting_user: User,
    ) -> User:
        """Remove a co-teacher from a classroom.

        The removed teacher's assignments go to the acting user when they
        are a member, otherwise to the longest-standing remaining member,
        otherwise their creator is cleared.

        Args:
            classroom: Live classroom.
            target_user_id: User to remove.
            acting_user: User performing the removal.

        Returns:
            The removed user.

        Raises:
            MemberNotFoundError: If the target is not a member, does not
                exist, or the acting user is not an organization admin.
            TokenScopeLossError: If the GitHub lookup fails.
        """
        result = await self.db.execute(
            select(User, ClassroomMembership)
            .join(ClassroomMembership, ClassroomMembership.user_id == User.id)
            .where(
                ClassroomMembership.classroom_id == classroom.id,
                User.id == target_user_id,
            )
        )
        row = result.first()
        if row is None:
            raise MemberNotFoundError(f"User {target_user_id} is not a member")
        target, membership = row

        if not await self.gate.is_admin(acting_user, classroom.github_id):
            raise MemberNotFoundError(f"User {target_user_id} is not a member")

        await self.db.delete(membership)
        await self.db.flush()

        successor_id = await self._successor_id(classroom, acting_user)
        reassigned = await self.db.execute(
            update(Assignment)
            .where(
                Assignment.classroom_id == classroom.id,
                Assignment.creator_id == target.id,
            )
            .values(creator_id=successor_id)
        )
        await self.db.commit()

        logger.info(
            "Removed %s from classroom %s; %d assignment(s) handed to %s",
            target.login,
            classroom.slug,
            reassigned.rowcount,
            successor_id,
        )
        return target

    # =========================================================================
    # Helpers
    # =========================================================================

    async def _admin_organizations(self, user: User) -> list[GitHubOrganization]:
        if not user.token:
            raise TokenScopeLossError("User has no GitHub token", user_id=user.id)
        try:
            return await self.github.admin_organizations(user.token)
        except GitHubError as e:
            logger.warning("Organization lookup for %s failed: %s", user.login, e.message)
            raise TokenScopeLossError("GitHub organization lookup failed", user_id=user.id) from e

    async def _organization(self, user: User, github_id: int) -> GitHubOrganization:
        try:
            return await self.github.organization(user.token or "", github_id)
        except GitHubError as e:
            logger.warning("Organization %s lookup failed: %s", github_id, e.message)
            raise TokenScopeLossError("GitHub organization lookup failed", user_id=user.id) from e

    async def _has_live_classroom(self, github_id: int) -> bool:
        result = await self.db.execute(
            select(Classroom.id).where(
                Classroom.github_id == github_id,
                Classroom.deleted_at.is_(None),
            )
        )
        return result.first() is not None

    async def _unique_slug(self, github_id: int, title: str) -> str:
        """Build "{github_id}-{title}", suffixed until unused.

        Soft-deleted rows keep their slug, so the check is unscoped.
        """
        base = "-".join(part for part in (str(github_id), parameterize(title)) if part)
        result = await self.db.execute(
            select(Classroom.slug).where(Classroom.slug.like(f"{base}%"))
        )
        taken = set(result.scalars().all())

        slug = base
        suffix = 2
        while slug in taken:
            slug = f"{base}-{suffix}"
            suffix += 1
        return slug

    async def _successor_id(self, classroom: Classroom, acting_user: User) -> str | None:
        if await self.gate.is_member(acting_user.id, classroom.id):
            return acting_user.id

        result = await self.db.execute(
            select(ClassroomMembership.user_id)
            .where(ClassroomMembership.classroom_id == classroom.id)
            .order_by(ClassroomMembership.created_at, ClassroomMembership.id)
            .limit(1)
        )
        return result.scalar_one_or_none()

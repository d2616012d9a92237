# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Classroom API endpoints.

This module provides endpoints for classroom management:
- GET / - List the user's classrooms
- GET /new - Blank classroom and the organizations it can bind to
- POST / - Create a classroom
- GET /{slug} - Classroom with its assignments
- PATCH /{slug} - Update classroom
- DELETE /{slug} - Delete classroom

Classroom views:
- GET /{slug}/edit - Edit view
- GET /{slug}/invitation - Co-teacher invitation key
- GET /{slug}/settings/invitations - Members
- GET /{slug}/groupings - Team groupings (feature flagged)
- GET /{slug}/invite - Invite step of the setup flow
- GET /{slug}/setup - First setup step
- PATCH /{slug}/setup_organization - Finish setup

Member management:
- PATCH /{slug}/users/{user_id}/remove - Remove a co-teacher

Every classroom-scoped endpoint first reconciles the caller's
membership with their GitHub organization admin status. Unknown,
deleted, and inaccessible classrooms all answer 404.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from fastapi.responses import RedirectResponse

from classroom_hub.api.dependencies import get_classroom_service, require_github_session
from classroom_hub.api.middleware.rate_limit import RATE_LIMIT_CREATE, limiter
from classroom_hub.core.config import get_settings
from classroom_hub.domains.classroom.service import (
    ClassroomExistsError,
    CleanupEnqueueError,
    ClassroomNotFoundError,
    ClassroomService,
    FeatureDisabledError,
    MemberNotFoundError,
    NotOrganizationAdminError,
)
from classroom_hub.infrastructure.database.models import Classroom, User
from classroom_hub.models.classroom import (
    AssignmentSummary,
    ClassroomCreateRequest,
    ClassroomDetailResponse,
    ClassroomDraft,
    ClassroomGroupingsResponse,
    ClassroomInvitationResponse,
    ClassroomListResponse,
    ClassroomMembersResponse,
    ClassroomResponse,
    ClassroomSummary,
    ClassroomUpdateRequest,
    ClassroomView,
    GroupingSummary,
    MemberSummary,
    NewClassroomResponse,
    OrganizationSummary,
)
from classroom_hub.models.common import Page

logger = logging.getLogger(__name__)

router = APIRouter()

FLASH_COOKIE = "flash"
MEMBER_REMOVED_MESSAGE = "The user has been removed from the classroom"


def _page_size(limit: int | None) -> int:
    return limit or get_settings().api.page_size


def _redirect(url: str, flash: str | None = None) -> RedirectResponse:
    """Build a 303 redirect, optionally carrying a flash message."""
    response = RedirectResponse(url=url, status_code=status.HTTP_303_SEE_OTHER)
    if flash:
        response.set_cookie(FLASH_COOKIE, flash, max_age=60, httponly=True, samesite="lax")
    return response


async def _get_classroom(service: ClassroomService, user: User, slug: str) -> Classroom:
    """Resolve a classroom for the user, mapping misses to 404.

    TokenScopeLossError is left to the application handler.
    """
    try:
        return await service.authorize(user, slug)
    except ClassroomNotFoundError:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Classroom not found",
        )


def _view(classroom: Classroom) -> ClassroomView:
    return ClassroomView(classroom=ClassroomResponse.model_validate(classroom))


@router.get(
    "",
    response_model=ClassroomListResponse,
    summary="List classrooms",
    description="List the signed-in user's classrooms, oldest first.",
)
async def list_classrooms(
    limit: int | None = Query(None, ge=1, le=100),
    offset: int = Query(0, ge=0),
    user: User = Depends(require_github_session),
    service: ClassroomService = Depends(get_classroom_service),
) -> ClassroomListResponse:
    """List classrooms.

    Classrooms of organizations the user administers are joined first,
    so an admin sees them without being invited.
    """
    page_size = _page_size(limit)
    classrooms, total = await service.list_classrooms(user, limit=page_size, offset=offset)

    return ClassroomListResponse(
        items=[ClassroomSummary.model_validate(c) for c in classrooms],
        total=total,
        limit=page_size,
        offset=offset,
    )


@router.get(
    "/new",
    response_model=NewClassroomResponse,
    summary="New classroom",
    description="Blank classroom and the organizations it can be created for.",
)
async def new_classroom(
    limit: int | None = Query(None, ge=1, le=100),
    offset: int = Query(0, ge=0),
    user: User = Depends(require_github_session),
    service: ClassroomService = Depends(get_classroom_service),
) -> NewClassroomResponse:
    """Return a blank classroom and the user's unbound admin organizations."""
    page_size = _page_size(limit)
    organizations, total = await service.available_organizations(
        user,
        limit=page_size,
        offset=offset,
    )

    return NewClassroomResponse(
        classroom=ClassroomDraft(),
        organizations=Page[OrganizationSummary](
            items=[
                OrganizationSummary(github_id=org.id, login=org.login, name=org.name)
                for org in organizations
            ],
            total=total,
            limit=page_size,
            offset=offset,
        ),
    )


@router.post(
    "",
    status_code=status.HTTP_303_SEE_OTHER,
    summary="Create classroom",
    description="Create a classroom for a GitHub organization the user administers.",
)
@limiter.limit(RATE_LIMIT_CREATE)
async def create_classroom(
    request: Request,
    data: ClassroomCreateRequest,
    user: User = Depends(require_github_session),
    service: ClassroomService = Depends(get_classroom_service),
) -> RedirectResponse:
    """Create a classroom and continue to its setup view.

    Raises:
        HTTPException: 403 if the user is not an organization admin,
            409 if the organization already has a classroom.
    """
    logger.info("Creating classroom for org %s by %s", data.github_id, user.login)

    try:
        classroom = await service.create_classroom(user, data)
    except NotOrganizationAdminError:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You must be an owner of the organization",
        )
    except ClassroomExistsError as e:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=str(e),
        )

    return _redirect(request.url_for("setup_classroom", slug=classroom.slug).path)


@router.get(
    "/{slug}",
    response_model=ClassroomDetailResponse,
    summary="Get classroom",
)
async def show_classroom(
    slug: str,
    user: User = Depends(require_github_session),
    service: ClassroomService = Depends(get_classroom_service),
) -> ClassroomDetailResponse:
    """Get a classroom with its assignments."""
    classroom = await _get_classroom(service, user, slug)
    assignments = await service.list_assignments(classroom)

    return ClassroomDetailResponse(
        classroom=ClassroomResponse.model_validate(classroom),
        assignments=[AssignmentSummary.model_validate(a) for a in assignments],
    )


@router.get(
    "/{slug}/edit",
    response_model=ClassroomView,
    summary="Edit classroom",
)
async def edit_classroom(
    slug: str,
    user: User = Depends(require_github_session),
    service: ClassroomService = Depends(get_classroom_service),
) -> ClassroomView:
    """Get the classroom for the edit view."""
    return _view(await _get_classroom(service, user, slug))


@router.get(
    "/{slug}/invitation",
    response_model=ClassroomInvitationResponse,
    summary="Co-teacher invitation",
)
async def classroom_invitation(
    slug: str,
    user: User = Depends(require_github_session),
    service: ClassroomService = Depends(get_classroom_service),
) -> ClassroomInvitationResponse:
    """Get the key co-teachers use to join the classroom."""
    classroom = await _get_classroom(service, user, slug)

    return ClassroomInvitationResponse(
        classroom=ClassroomResponse.model_validate(classroom),
        invitation_key=classroom.invitation_key,
    )


@router.get(
    "/{slug}/settings/invitations",
    response_model=ClassroomMembersResponse,
    summary="Classroom members",
)
async def show_users(
    slug: str,
    user: User = Depends(require_github_session),
    service: ClassroomService = Depends(get_classroom_service),
) -> ClassroomMembersResponse:
    """List the classroom's members."""
    classroom = await _get_classroom(service, user, slug)
    members = await service.list_members(classroom)

    return ClassroomMembersResponse(
        classroom=ClassroomResponse.model_validate(classroom),
        members=[MemberSummary.model_validate(m) for m in members],
    )


@router.patch(
    "/{slug}/users/{user_id}/remove",
    status_code=status.HTTP_303_SEE_OTHER,
    summary="Remove member",
    description="Remove a co-teacher. Their assignments are handed to another member.",
)
async def remove_user(
    request: Request,
    slug: str,
    user_id: str,
    user: User = Depends(require_github_session),
    service: ClassroomService = Depends(get_classroom_service),
) -> RedirectResponse:
    """Remove a member and go back to the members view.

    Raises:
        HTTPException: 404 if the target is not a member or cannot be
            removed by this user.
    """
    classroom = await _get_classroom(service, user, slug)

    try:
        removed = await service.remove_member(classroom, user_id, acting_user=user)
    except MemberNotFoundError:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="User not found",
        )

    logger.info("%s removed %s from %s", user.login, removed.login, classroom.slug)
    return _redirect(
        request.url_for("show_users", slug=classroom.slug).path,
        flash=MEMBER_REMOVED_MESSAGE,
    )


@router.get(
    "/{slug}/groupings",
    response_model=ClassroomGroupingsResponse,
    summary="Team groupings",
)
async def show_groupings(
    slug: str,
    user: User = Depends(require_github_session),
    service: ClassroomService = Depends(get_classroom_service),
) -> ClassroomGroupingsResponse:
    """List team groupings.

    Raises:
        HTTPException: 404 when team management is switched off.
    """
    try:
        service.ensure_groupings_enabled()
    except FeatureDisabledError:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Not found",
        )

    classroom = await _get_classroom(service, user, slug)
    groupings = await service.list_groupings(classroom)

    return ClassroomGroupingsResponse(
        classroom=ClassroomResponse.model_validate(classroom),
        groupings=[GroupingSummary.model_validate(g) for g in groupings],
    )


@router.patch(
    "/{slug}",
    status_code=status.HTTP_303_SEE_OTHER,
    summary="Update classroom",
)
async def update_classroom(
    request: Request,
    slug: str,
    data: ClassroomUpdateRequest,
    user: User = Depends(require_github_session),
    service: ClassroomService = Depends(get_classroom_service),
) -> RedirectResponse:
    """Update a classroom and go back to it."""
    classroom = await _get_classroom(service, user, slug)
    classroom = await service.update_classroom(classroom, data)

    return _redirect(request.url_for("show_classroom", slug=classroom.slug).path)


@router.delete(
    "/{slug}",
    status_code=status.HTTP_303_SEE_OTHER,
    summary="Delete classroom",
    description="Soft-delete a classroom; its data is purged by a background job.",
)
async def destroy_classroom(
    request: Request,
    slug: str,
    user: User = Depends(require_github_session),
    service: ClassroomService = Depends(get_classroom_service),
) -> RedirectResponse:
    """Delete a classroom and go back to the listing."""
    classroom = await _get_classroom(service, user, slug)
    try:
        await service.destroy_classroom(classroom)
    except CleanupEnqueueError as e:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=str(e),
        )

    logger.info("Classroom %s deleted by %s", classroom.slug, user.login)
    return _redirect(request.url_for("list_classrooms").path)


@router.get(
    "/{slug}/invite",
    response_model=ClassroomView,
    summary="Invite step",
)
async def invite(
    slug: str,
    user: User = Depends(require_github_session),
    service: ClassroomService = Depends(get_classroom_service),
) -> ClassroomView:
    """Get the classroom for the invite step."""
    return _view(await _get_classroom(service, user, slug))


@router.get(
    "/{slug}/setup",
    response_model=ClassroomView,
    summary="Setup step",
)
async def setup_classroom(
    slug: str,
    user: User = Depends(require_github_session),
    service: ClassroomService = Depends(get_classroom_service),
) -> ClassroomView:
    """Get the classroom for the first setup step."""
    return _view(await _get_classroom(service, user, slug))


@router.patch(
    "/{slug}/setup_organization",
    status_code=status.HTTP_303_SEE_OTHER,
    summary="Finish setup",
)
async def setup_organization(
    request: Request,
    slug: str,
    data: ClassroomUpdateRequest,
    user: User = Depends(require_github_session),
    service: ClassroomService = Depends(get_classroom_service),
) -> RedirectResponse:
    """Save the setup step and continue to the invite step."""
    classroom = await _get_classroom(service, user, slug)
    classroom = await service.setup_classroom(classroom, data)

    return _redirect(request.url_for("invite", slug=classroom.slug).path)

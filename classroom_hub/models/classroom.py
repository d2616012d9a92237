# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Request and response models for classroom endpoints."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from classroom_hub.models.common import Page


class ClassroomCreateRequest(BaseModel):
    """Request to create a classroom for a GitHub organization."""

    github_id: int = Field(gt=0, description="GitHub organization id")
    title: str | None = Field(
        default=None,
        min_length=1,
        max_length=255,
        description="Defaults to the organization login",
    )


class ClassroomUpdateRequest(BaseModel):
    """Request to update a classroom."""

    title: str = Field(min_length=1, max_length=255)


class ClassroomSummary(BaseModel):
    """Classroom summary for listings."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    slug: str
    title: str
    github_id: int
    created_at: datetime


class ClassroomResponse(ClassroomSummary):
    """Full classroom representation."""

    github_global_relay_id: str
    updated_at: datetime


class ClassroomListResponse(BaseModel):
    """Response for the classroom listing."""

    items: list[ClassroomSummary]
    total: int
    limit: int
    offset: int


class MemberSummary(BaseModel):
    """Classroom member (co-teacher)."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    login: str
    github_id: int


class AssignmentSummary(BaseModel):
    """Assignment summary."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    title: str
    creator_id: str | None


class GroupingSummary(BaseModel):
    """Grouping summary."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    title: str


class OrganizationSummary(BaseModel):
    """GitHub organization the user may bind a classroom to."""

    github_id: int
    login: str
    name: str | None = None


class ClassroomDraft(BaseModel):
    """Blank classroom for the creation form."""

    github_id: int | None = None
    title: str | None = None


class NewClassroomResponse(BaseModel):
    """Response for the "new classroom" view."""

    classroom: ClassroomDraft
    organizations: Page[OrganizationSummary]


class ClassroomDetailResponse(BaseModel):
    """Classroom with its assignments."""

    classroom: ClassroomResponse
    assignments: list[AssignmentSummary]


class ClassroomMembersResponse(BaseModel):
    """Classroom with its members, for the invitation settings view."""

    classroom: ClassroomResponse
    members: list[MemberSummary]


class ClassroomInvitationResponse(BaseModel):
    """Classroom with the key co-teachers use to join."""

    classroom: ClassroomResponse
    invitation_key: str


class ClassroomGroupingsResponse(BaseModel):
    """Classroom with its team groupings."""

    classroom: ClassroomResponse
    groupings: list[GroupingSummary]


class ClassroomView(BaseModel):
    """Classroom context for single-classroom views."""

    classroom: ClassroomResponse

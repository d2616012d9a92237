# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""SQLAlchemy models for the application database."""

from classroom_hub.infrastructure.database.models.base import (
    Base,
    SoftDeleteMixin,
    TimestampMixin,
    UUIDPrimaryKeyMixin,
)
from classroom_hub.infrastructure.database.models.classroom import (
    Assignment,
    Classroom,
    ClassroomMembership,
    Grouping,
)
from classroom_hub.infrastructure.database.models.user import User

__all__ = [
    "Base",
    "SoftDeleteMixin",
    "TimestampMixin",
    "UUIDPrimaryKeyMixin",
    "User",
    "Classroom",
    "ClassroomMembership",
    "Assignment",
    "Grouping",
]

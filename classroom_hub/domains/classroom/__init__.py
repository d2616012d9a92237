# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Classroom domain.

Classrooms are bound to GitHub organizations. Admins of an organization
are reconciled into the classroom's membership on access.
"""

from classroom_hub.domains.classroom.access import MembershipGate
from classroom_hub.domains.classroom.cleanup import purge_classroom
from classroom_hub.domains.classroom.service import (
    ClassroomExistsError,
    ClassroomNotFoundError,
    ClassroomService,
    ClassroomServiceError,
    CleanupEnqueueError,
    FeatureDisabledError,
    MemberNotFoundError,
    NotOrganizationAdminError,
    parameterize,
)

__all__ = [
    "ClassroomService",
    "MembershipGate",
    "purge_classroom",
    "parameterize",
    # Errors
    "ClassroomServiceError",
    "ClassroomNotFoundError",
    "MemberNotFoundError",
    "NotOrganizationAdminError",
    "ClassroomExistsError",
    "FeatureDisabledError",
    "CleanupEnqueueError",
]

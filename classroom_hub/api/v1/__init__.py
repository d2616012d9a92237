# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""API v1 routes package.

Modules:
    classrooms: Classroom management endpoints (CRUD, members, setup flow).
"""

from fastapi import APIRouter

from classroom_hub.api.v1 import classrooms

# Create the main v1 router
router = APIRouter(prefix="/api/v1")

# Include domain routers
router.include_router(classrooms.router, prefix="/classrooms", tags=["Classrooms"])

__all__ = ["router"]

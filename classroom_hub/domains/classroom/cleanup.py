# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Hard deletion of soft-deleted classrooms.

Run by the destroy_resource background job after a classroom has
been soft-deleted. Safe to run any number of times for the same id.
"""

import logging

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from classroom_hub.infrastructure.database.models import (
    Assignment,
    Classroom,
    ClassroomMembership,
    Grouping,
)

logger = logging.getLogger(__name__)


async def purge_classroom(db: AsyncSession, classroom_id: str) -> bool:
    """Delete a soft-deleted classroom and everything it owns.

    Classrooms that are already gone, or that are not marked deleted,
    are left alone.

    Args:
        db: Database session.
        classroom_id: Classroom identifier.

    Returns:
        True if rows were deleted, False if there was nothing to do.
    """
    result = await db.execute(select(Classroom).where(Classroom.id == classroom_id))
    classroom = result.scalar_one_or_none()

    if classroom is None:
        logger.info("Classroom %s already purged", classroom_id)
        return False

    if not classroom.is_deleted:
        logger.warning("Refusing to purge live classroom %s", classroom_id)
        return False

    for model in (Assignment, Grouping, ClassroomMembership):
        await db.execute(delete(model).where(model.classroom_id == classroom_id))
    await db.delete(classroom)
    await db.commit()

    logger.info("Purged classroom %s (%s)", classroom.slug, classroom_id)
    return True

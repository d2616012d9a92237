# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Cleanup background tasks for classroom-hub.

Deferred hard deletion of soft-deleted resources.
"""

import logging

import dramatiq

from classroom_hub.infrastructure.background.broker import Priority, Queues, setup_dramatiq
from classroom_hub.infrastructure.background.tasks.base import run_async, worker_session

# Setup broker before defining actors
setup_dramatiq()

logger = logging.getLogger(__name__)

RESOURCE_CLASSROOM = "classroom"


@dramatiq.actor(
    queue_name=Queues.CLEANUP,
    max_retries=3,
    time_limit=300000,  # 5 minutes
    priority=Priority.LOW,
)
def destroy_resource(resource_type: str, resource_id: str) -> bool:
    """Hard-delete a soft-deleted resource and its dependents.

    Failures propagate so the broker retries the message; the purge
    itself is idempotent.

    Args:
        resource_type: Kind of resource ("classroom").
        resource_id: Resource identifier.

    Returns:
        True if anything was deleted.
    """
    if resource_type != RESOURCE_CLASSROOM:
        logger.warning("Unknown resource type for destroy: %s (%s)", resource_type, resource_id)
        return False

    async def _destroy() -> bool:
        from classroom_hub.domains.classroom.cleanup import purge_classroom

        async with worker_session() as session:
            return await purge_classroom(session, resource_id)

    try:
        return run_async(_destroy())
    except Exception:
        logger.error("Failed to destroy %s %s", resource_type, resource_id, exc_info=True)
        raise

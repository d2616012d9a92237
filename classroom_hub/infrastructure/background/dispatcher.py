# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Job dispatcher used by domain services.

Services never import actors directly; they emit one message per
intent through this class.
"""

import logging

from classroom_hub.infrastructure.database.models import Classroom

logger = logging.getLogger(__name__)


class JobDispatcher:
    """Enqueues background jobs on the Dramatiq broker."""

    def enqueue_destroy_resource(self, classroom: Classroom) -> None:
        """Enqueue deferred hard deletion of a classroom.

        Args:
            classroom: The soft-deleted classroom.
        """
        from classroom_hub.infrastructure.background.tasks.cleanup import (
            RESOURCE_CLASSROOM,
            destroy_resource,
        )

        message = destroy_resource.send(RESOURCE_CLASSROOM, classroom.id)
        logger.info(
            "Enqueued destroy_resource for classroom %s (message %s)",
            classroom.id,
            message.message_id,
        )

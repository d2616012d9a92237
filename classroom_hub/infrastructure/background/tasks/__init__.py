# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Dramatiq task actors.

Running Workers:
    dramatiq classroom_hub.infrastructure.background.tasks --processes 2 --threads 4
"""

from classroom_hub.infrastructure.background.tasks.cleanup import (
    RESOURCE_CLASSROOM,
    destroy_resource,
)

__all__ = [
    "RESOURCE_CLASSROOM",
    "destroy_resource",
]

# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Background task infrastructure module for classroom-hub.

Quick Start:
    # Setup broker (call once at startup)
    from classroom_hub.infrastructure.background import setup_dramatiq
    setup_dramatiq()

    # Enqueue from services
    JobDispatcher().enqueue_destroy_resource(classroom)

Running Workers:
    dramatiq classroom_hub.infrastructure.background.tasks --processes 2 --threads 4
"""

from classroom_hub.infrastructure.background.broker import (
    BrokerManager,
    Priority,
    Queues,
    get_broker,
    get_broker_manager,
    setup_dramatiq,
    shutdown_dramatiq,
)
from classroom_hub.infrastructure.background.dispatcher import JobDispatcher

# Task actors are imported lazily to avoid registering them before
# the broker is configured.

__all__ = [
    "BrokerManager",
    "JobDispatcher",
    "Priority",
    "Queues",
    "get_broker",
    "get_broker_manager",
    "setup_dramatiq",
    "shutdown_dramatiq",
]

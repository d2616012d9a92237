# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""DateTime utilities for classroom-hub.

All timestamps are stored in UTC and all Python datetimes are
timezone-aware, so soft-delete and audit columns never mix naive
and aware values.

Usage:
    from classroom_hub.utils.datetime import utc_now

    deleted_at = utc_now()
"""

from datetime import datetime, timezone


def utc_now() -> datetime:
    """Get current UTC time as timezone-aware datetime.

    Returns:
        Timezone-aware datetime representing current UTC time.
    """
    return datetime.now(timezone.utc)


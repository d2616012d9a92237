"""classroom-hub Backend.

Classroom management service for teachers who administer GitHub
organizations: classroom lifecycle, co-teacher membership and cleanup.

Copyright (C) 2025 Global Digital Labs (gdlabs.io)
SPDX-License-Identifier: LGPL-3.0-or-later
"""

__version__ = "1.0.0"

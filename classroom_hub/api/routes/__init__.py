# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""API Routes package.

This module exports all unversioned route modules for the API.
"""

from classroom_hub.api.routes import health

__all__ = ["health"]

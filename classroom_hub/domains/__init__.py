# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Domain services layer for classroom-hub.

Domains:
    auth: Session tokens and GitHub token health.
    classroom: Classroom lifecycle and membership reconciliation.
"""

# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Application database migrations.

Contains migrations for:
- users: Signed-in GitHub accounts
- classrooms: Classrooms bound to GitHub organizations
- classroom_memberships: Teacher access to classrooms
- assignments: Classroom assignments
- groupings: Team groupings
"""

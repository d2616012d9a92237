# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Database migrations package.

Alembic revisions for the application database live in versions/.
They can be applied with the alembic CLI (see alembic.ini) or
programmatically through runner.run_migrations(), which the API
calls at startup when DB_AUTO_MIGRATE is on.
"""

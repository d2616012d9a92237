# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Initial application database schema.

Revision ID: 001_initial_schema
Revises: None
Create Date: 2025-06-02

This migration creates all tables based on the SQLAlchemy models in
classroom_hub/infrastructure/database/models/. Identifiers are
application-generated UUID strings, so the schema runs unchanged on
PostgreSQL and SQLite.
"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

revision: str = "001_initial_schema"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    ]


def upgrade() -> None:
    """Create application tables."""
    # ==========================================================================
    # 1. users table
    # ==========================================================================
    op.create_table(
        "users",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("github_id", sa.BigInteger, unique=True, nullable=False),
        sa.Column("login", sa.String(255), nullable=False),
        sa.Column("token", sa.Text, nullable=True),
        *_timestamps(),
    )

    # ==========================================================================
    # 2. classrooms table
    # ==========================================================================
    op.create_table(
        "classrooms",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("slug", sa.String(255), nullable=False),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("github_id", sa.BigInteger, nullable=False),
        sa.Column("github_global_relay_id", sa.String(255), nullable=False),
        sa.Column("invitation_key", sa.String(64), unique=True, nullable=False),
        *_timestamps(),
        sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_classrooms_slug", "classrooms", ["slug"], unique=True)
    op.create_index("ix_classrooms_github_id", "classrooms", ["github_id"])
    op.create_index("ix_classrooms_deleted_at", "classrooms", ["deleted_at"])

    # ==========================================================================
    # 3. classroom_memberships table
    # ==========================================================================
    op.create_table(
        "classroom_memberships",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column(
            "classroom_id",
            sa.String(36),
            sa.ForeignKey("classrooms.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "user_id",
            sa.String(36),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
        ),
        *_timestamps(),
        sa.UniqueConstraint("classroom_id", "user_id", name="uq_classroom_membership"),
    )
    op.create_index(
        "ix_classroom_memberships_classroom_id", "classroom_memberships", ["classroom_id"]
    )
    op.create_index("ix_classroom_memberships_user_id", "classroom_memberships", ["user_id"])

    # ==========================================================================
    # 4. assignments table
    # ==========================================================================
    op.create_table(
        "assignments",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column(
            "classroom_id",
            sa.String(36),
            sa.ForeignKey("classrooms.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column(
            "creator_id",
            sa.String(36),
            sa.ForeignKey("users.id", ondelete="SET NULL"),
            nullable=True,
        ),
        *_timestamps(),
    )
    op.create_index("ix_assignments_classroom_id", "assignments", ["classroom_id"])
    op.create_index("ix_assignments_creator_id", "assignments", ["creator_id"])

    # ==========================================================================
    # 5. groupings table
    # ==========================================================================
    op.create_table(
        "groupings",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column(
            "classroom_id",
            sa.String(36),
            sa.ForeignKey("classrooms.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("title", sa.String(255), nullable=False),
        *_timestamps(),
    )
    op.create_index("ix_groupings_classroom_id", "groupings", ["classroom_id"])


def downgrade() -> None:
    """Drop application tables."""
    op.drop_table("groupings")
    op.drop_table("assignments")
    op.drop_table("classroom_memberships")
    op.drop_table("classrooms")
    op.drop_table("users")

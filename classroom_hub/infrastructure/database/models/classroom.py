# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Classroom models.

A classroom is bound to one GitHub organization. Teachers reach it
through a membership row; assignments and groupings hang off it.
"""

from sqlalchemy import BigInteger, ForeignKey, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from classroom_hub.infrastructure.database.models.base import (
    Base,
    SoftDeleteMixin,
    TimestampMixin,
    UUIDPrimaryKeyMixin,
)


class Classroom(UUIDPrimaryKeyMixin, TimestampMixin, SoftDeleteMixin, Base):
    """Classroom bound to a GitHub organization."""

    __tablename__ = "classrooms"

    slug: Mapped[str] = mapped_column(String(255), unique=True, nullable=False, index=True)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    github_id: Mapped[int] = mapped_column(BigInteger, nullable=False, index=True)
    github_global_relay_id: Mapped[str] = mapped_column(String(255), nullable=False)
    invitation_key: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)

    def __repr__(self) -> str:
        return f"<Classroom {self.slug} ({self.id})>"


class ClassroomMembership(TimestampMixin, Base):
    """Grants a user access to manage a classroom."""

    __tablename__ = "classroom_memberships"
    __table_args__ = (
        UniqueConstraint("classroom_id", "user_id", name="uq_classroom_membership"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    classroom_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("classrooms.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    user_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )


class Assignment(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """Assignment owned by a classroom.

    creator_id always points at a current member of the classroom, or
    is NULL when no member is left to take it over.
    """

    __tablename__ = "assignments"

    classroom_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("classrooms.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    creator_id: Mapped[str | None] = mapped_column(
        String(36),
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )


class Grouping(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """Named set of student teams within a classroom."""

    __tablename__ = "groupings"

    classroom_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("classrooms.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    title: Mapped[str] = mapped_column(String(255), nullable=False)

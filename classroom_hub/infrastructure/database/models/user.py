# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""User model.

A user is a GitHub account that signed in to the service. The GitHub
access token is kept on the row and cleared on forced sign-out.
"""

from sqlalchemy import BigInteger, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from classroom_hub.infrastructure.database.models.base import (
    Base,
    TimestampMixin,
    UUIDPrimaryKeyMixin,
)


class User(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """Signed-in GitHub account."""

    __tablename__ = "users"

    github_id: Mapped[int] = mapped_column(BigInteger, unique=True, nullable=False)
    login: Mapped[str] = mapped_column(String(255), nullable=False)
    token: Mapped[str | None] = mapped_column(Text, nullable=True)

    @property
    def is_signed_in(self) -> bool:
        """Check if the user still holds a GitHub token."""
        return bool(self.token)

    def __repr__(self) -> str:
        return f"<User {self.login} ({self.id})>"

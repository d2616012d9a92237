# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Shared response models and pagination helpers."""

from collections.abc import Sequence
from typing import Generic, TypeVar

from pydantic import BaseModel, Field

T = TypeVar("T")


class Page(BaseModel, Generic[T]):
    """One page of a limit/offset paginated collection."""

    items: list[T]
    total: int = Field(ge=0)
    limit: int = Field(ge=1)
    offset: int = Field(ge=0)

    @property
    def has_more(self) -> bool:
        """Check if more items follow this page."""
        return self.offset + len(self.items) < self.total


def paginate(items: Sequence[T], limit: int, offset: int) -> tuple[list[T], int]:
    """Slice an in-memory collection.

    Args:
        items: Full collection.
        limit: Page size.
        offset: Number of items to skip.

    Returns:
        Tuple of (items on the page, total count).
    """
    return list(items[offset:offset + limit]), len(items)

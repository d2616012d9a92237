# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Authentication domain: session tokens and session users."""

from classroom_hub.domains.auth.jwt import (
    InvalidTokenError,
    JWTError,
    JWTManager,
    TokenExpiredError,
    TokenPayload,
)
from classroom_hub.domains.auth.session import (
    NotAuthenticatedError,
    SessionError,
    SessionService,
    TokenScopeLossError,
)

__all__ = [
    "JWTManager",
    "TokenPayload",
    "JWTError",
    "TokenExpiredError",
    "InvalidTokenError",
    "SessionService",
    "SessionError",
    "NotAuthenticatedError",
    "TokenScopeLossError",
]

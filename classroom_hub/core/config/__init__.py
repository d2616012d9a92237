# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Configuration package for classroom-hub.

Pydantic-based settings loaded from environment variables.

Example:
    >>> from classroom_hub.core.config import get_settings
    >>> settings = get_settings()
    >>> settings.features.team_management
    False
"""

from classroom_hub.core.config.settings import (
    APISettings,
    CORSSettings,
    DatabaseSettings,
    FeatureSettings,
    GitHubSettings,
    JWTSettings,
    RateLimitSettings,
    RedisSettings,
    Settings,
    clear_settings_cache,
    get_settings,
)

__all__ = [
    # Settings
    "Settings",
    "get_settings",
    "clear_settings_cache",
    # Subsettings
    "DatabaseSettings",
    "RedisSettings",
    "GitHubSettings",
    "JWTSettings",
    "FeatureSettings",
    "RateLimitSettings",
    "CORSSettings",
    "APISettings",
]

# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""GitHub REST API integration."""

from classroom_hub.infrastructure.github.client import (
    GitHubAuthenticationError,
    GitHubClient,
    GitHubError,
    GitHubNotFoundError,
    GitHubOrganization,
    GitHubOrganizationMembership,
    GitHubRequestError,
)

__all__ = [
    "GitHubClient",
    "GitHubOrganization",
    "GitHubOrganizationMembership",
    "GitHubError",
    "GitHubAuthenticationError",
    "GitHubNotFoundError",
    "GitHubRequestError",
]

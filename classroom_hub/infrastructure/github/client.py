# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""GitHub REST API client.

Thin async wrapper over the handful of GitHub endpoints the service
needs to authorize teachers:

- token scopes of the signed-in user
- organization metadata (id, node id, login)
- the user's membership role in an organization
- the user's active organization memberships

Every call is made with the user's own OAuth token.

Example:
    client = GitHubClient(get_settings().github)
    if await client.is_organization_admin(user.token, classroom.github_id):
        ...
"""

import logging
from dataclasses import dataclass
from typing import Any

import httpx

from classroom_hub.core.config.settings import GitHubSettings

logger = logging.getLogger(__name__)


class GitHubError(Exception):
    """Base exception for GitHub API errors."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class GitHubAuthenticationError(GitHubError):
    """Raised when GitHub rejects the token (401)."""


class GitHubNotFoundError(GitHubError):
    """Raised when the requested GitHub resource does not exist (404)."""


class GitHubRequestError(GitHubError):
    """Raised on transport failures and unexpected GitHub responses."""


@dataclass(frozen=True)
class GitHubOrganization:
    """GitHub organization metadata.

    Attributes:
        id: Numeric organization id.
        node_id: Global relay (GraphQL) id.
        login: Organization login.
        name: Display name, if set.
    """

    id: int
    node_id: str
    login: str
    name: str | None = None

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "GitHubOrganization":
        return cls(
            id=int(data["id"]),
            node_id=data["node_id"],
            login=data["login"],
            name=data.get("name"),
        )


@dataclass(frozen=True)
class GitHubOrganizationMembership:
    """The signed-in user's membership in an organization."""

    organization: GitHubOrganization
    role: str
    state: str

    @property
    def is_admin(self) -> bool:
        """Active admin membership."""
        return self.role == "admin" and self.state == "active"


class GitHubClient:
    """Async client for the GitHub REST API.

    Attributes:
        _settings: GitHub API settings.
        _client: Shared httpx client, created lazily.
    """

    def __init__(
        self,
        settings: GitHubSettings,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            settings: GitHub API settings.
            transport: Optional httpx transport, used by tests.
        """
        self._settings = settings
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self._settings.api_url,
                timeout=self._settings.timeout,
                transport=self._transport,
                headers={
                    "Accept": "application/vnd.github+json",
                    "User-Agent": self._settings.user_agent,
                },
            )
        return self._client

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def _get(
        self,
        token: str,
        url: str,
        params: dict[str, Any] | None = None,
    ) -> httpx.Response:
        """Issue an authenticated GET and map error statuses.

        Raises:
            GitHubAuthenticationError: On 401.
            GitHubNotFoundError: On 404.
            GitHubRequestError: On transport errors and other non-2xx.
        """
        try:
            response = await self._get_client().get(
                url,
                params=params,
                headers={"Authorization": f"Bearer {token}"},
            )
        except httpx.RequestError as e:
            logger.error("GitHub request to %s failed: %s", url, e)
            raise GitHubRequestError(f"GitHub request failed: {e}") from e

        if response.status_code == 401:
            raise GitHubAuthenticationError("Bad credentials", status_code=401)
        if response.status_code == 404:
            raise GitHubNotFoundError(f"Not found: {url}", status_code=404)
        if response.status_code >= 400:
            raise GitHubRequestError(
                f"GitHub returned {response.status_code} for {url}",
                status_code=response.status_code,
            )
        return response

    async def token_scopes(self, token: str) -> set[str]:
        """Get the OAuth scopes granted to a token.

        Args:
            token: GitHub OAuth token.

        Returns:
            Set of scope names.
        """
        response = await self._get(token, "/user")
        header = response.headers.get("X-OAuth-Scopes", "")
        return {scope.strip() for scope in header.split(",") if scope.strip()}

    async def organization(self, token: str, github_id: int) -> GitHubOrganization:
        """Get organization metadata by numeric id.

        Raises:
            GitHubNotFoundError: If the organization does not exist.
        """
        response = await self._get(token, f"/organizations/{github_id}")
        return GitHubOrganization.from_api(response.json())

    async def is_organization_admin(self, token: str, github_id: int) -> bool:
        """Check if the token's user is an active admin of an organization.

        Organizations the user cannot see, or is not a member of, are
        reported as False rather than raised.

        Raises:
            GitHubAuthenticationError: If the token is rejected.
            GitHubRequestError: On transport failures.
        """
        try:
            organization = await self.organization(token, github_id)
            response = await self._get(token, f"/user/memberships/orgs/{organization.login}")
        except GitHubNotFoundError:
            return False
        except GitHubRequestError as e:
            if e.status_code == 403:
                return False
            raise

        data = response.json()
        return data.get("role") == "admin" and data.get("state") == "active"

    async def organization_memberships(
        self,
        token: str,
    ) -> list[GitHubOrganizationMembership]:
        """List the user's active organization memberships.

        Follows ``Link: rel="next"`` pagination until exhausted.
        """
        memberships: list[GitHubOrganizationMembership] = []
        url: str | None = "/user/memberships/orgs"
        params: dict[str, Any] | None = {"state": "active", "per_page": 100}

        while url:
            response = await self._get(token, url, params=params)
            for item in response.json():
                memberships.append(
                    GitHubOrganizationMembership(
                        organization=GitHubOrganization.from_api(item["organization"]),
                        role=item.get("role", "member"),
                        state=item.get("state", "active"),
                    )
                )
            next_link = response.links.get("next")
            url = next_link["url"] if next_link else None
            # the next link already carries the query string
            params = None

        return memberships

    async def admin_organizations(self, token: str) -> list[GitHubOrganization]:
        """List organizations the user actively administers."""
        memberships = await self.organization_memberships(token)
        return [m.organization for m in memberships if m.is_admin]

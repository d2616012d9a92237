# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Integration tests for Classrooms API endpoints."""

import pytest
from sqlalchemy import func, select

from classroom_hub.api.dependencies import get_job_dispatcher
from classroom_hub.infrastructure.background import Queues
from classroom_hub.infrastructure.database.models import (
    Classroom,
    ClassroomMembership,
    User,
)
from classroom_hub.infrastructure.github import GitHubAuthenticationError, GitHubOrganization

BASE = "/api/v1/classrooms"


async def _is_member(db_session, classroom, user) -> bool:
    result = await db_session.execute(
        select(ClassroomMembership.id).where(
            ClassroomMembership.classroom_id == classroom.id,
            ClassroomMembership.user_id == user.id,
        )
    )
    return result.first() is not None


async def _reload(db_session, obj):
    await db_session.refresh(obj)
    return obj


class TestClassroomsAPIRouting:
    """Tests for classrooms API routing."""

    def test_routes_registered(self, app):
        """Test that classroom routes are registered."""
        routes = [route.path for route in app.routes]

        assert BASE in routes
        assert f"{BASE}/new" in routes
        assert f"{BASE}/{{slug}}" in routes
        assert f"{BASE}/{{slug}}/edit" in routes
        assert f"{BASE}/{{slug}}/invitation" in routes
        assert f"{BASE}/{{slug}}/settings/invitations" in routes
        assert f"{BASE}/{{slug}}/users/{{user_id}}/remove" in routes
        assert f"{BASE}/{{slug}}/groupings" in routes
        assert f"{BASE}/{{slug}}/invite" in routes
        assert f"{BASE}/{{slug}}/setup" in routes
        assert f"{BASE}/{{slug}}/setup_organization" in routes
        assert "/health" in routes


class TestSessionHandling:
    """Tests for the session gate in front of every endpoint."""

    @pytest.mark.asyncio
    async def test_unauthenticated_redirects_to_login(self, client):
        """Test that requests without a session go to the login page."""
        response = await client.get(BASE)

        assert response.status_code == 302
        assert response.headers["location"] == "/login"

    @pytest.mark.asyncio
    async def test_invalid_github_token_signs_out(
        self, client, db_session, mock_github, create_user, auth_headers
    ):
        """Test that a rejected GitHub token logs the user out and redirects home."""
        mock_github.token_scopes.side_effect = GitHubAuthenticationError(
            "Bad credentials", status_code=401
        )
        user = await create_user()

        response = await client.get(BASE, headers=auth_headers(user))

        assert response.status_code == 302
        assert response.headers["location"] == "/"
        set_cookie = response.headers["set-cookie"]
        assert "classroom_session=" in set_cookie
        assert "Max-Age=0" in set_cookie
        assert (await _reload(db_session, user)).token is None

    @pytest.mark.asyncio
    async def test_missing_scope_signs_out(
        self, client, db_session, mock_github, create_user, auth_headers
    ):
        """Test that a token that lost a scope is treated the same way."""
        mock_github.token_scopes.return_value = {"repo"}
        user = await create_user()

        response = await client.get(BASE, headers=auth_headers(user))

        assert response.status_code == 302
        assert response.headers["location"] == "/"
        assert (await _reload(db_session, user)).token is None

    @pytest.mark.asyncio
    async def test_admin_lookup_failure_signs_out(
        self, client, db_session, mock_github, create_user, create_classroom, auth_headers
    ):
        """Test that a failing org admin lookup on a classroom page signs out."""
        mock_github.is_organization_admin.side_effect = GitHubAuthenticationError(
            "Bad credentials", status_code=401
        )
        user = await create_user()
        classroom = await create_classroom(members=(user,))

        response = await client.get(f"{BASE}/{classroom.slug}", headers=auth_headers(user))

        assert response.status_code == 302
        assert response.headers["location"] == "/"
        assert (await _reload(db_session, user)).token is None


class TestIndex:
    """Tests for GET /classrooms."""

    @pytest.mark.asyncio
    async def test_adds_admin_to_classrooms(
        self, client, db_session, organization, create_user, create_classroom, auth_headers
    ):
        """Test that an org admin is added to the org's classroom."""
        user = await create_user()
        classroom = await create_classroom(github_id=organization.id)

        response = await client.get(BASE, headers=auth_headers(user))

        assert response.status_code == 200
        data = response.json()
        assert data["total"] == 1
        assert data["items"][0]["slug"] == classroom.slug
        assert await _is_member(db_session, classroom, user)

    @pytest.mark.asyncio
    async def test_does_not_add_non_admin(
        self, client, db_session, mock_github, organization, create_user, create_classroom, auth_headers
    ):
        """Test that a non-admin is never added."""
        mock_github.admin_organizations.return_value = []
        user = await create_user()
        classroom = await create_classroom(github_id=organization.id)

        response = await client.get(BASE, headers=auth_headers(user))

        assert response.status_code == 200
        assert response.json()["total"] == 0
        assert not await _is_member(db_session, classroom, user)

    @pytest.mark.asyncio
    async def test_pagination_params(self, client, create_user, create_classroom, auth_headers):
        """Test that limit and offset are echoed back."""
        user = await create_user()
        await create_classroom(members=(user,))

        response = await client.get(f"{BASE}?limit=5&offset=0", headers=auth_headers(user))

        data = response.json()
        assert data["limit"] == 5
        assert data["offset"] == 0


class TestNew:
    """Tests for GET /classrooms/new."""

    @pytest.mark.asyncio
    async def test_lists_unbound_admin_organizations(
        self, client, mock_github, organization, create_user, create_classroom, auth_headers
    ):
        """Test that orgs already bound to a classroom are excluded."""
        other = GitHubOrganization(id=7, node_id="MDEyOk9yZzc=", login="another-org", name="Another")
        mock_github.admin_organizations.return_value = [organization, other]
        user = await create_user()
        await create_classroom(github_id=organization.id)

        response = await client.get(f"{BASE}/new", headers=auth_headers(user))

        assert response.status_code == 200
        data = response.json()
        assert data["classroom"] == {"github_id": None, "title": None}
        assert data["organizations"]["total"] == 1
        assert data["organizations"]["items"] == [
            {"github_id": 7, "login": "another-org", "name": "Another"}
        ]


class TestCreate:
    """Tests for POST /classrooms."""

    @pytest.mark.asyncio
    async def test_creates_and_redirects_to_setup(
        self, client, db_session, organization, create_user, auth_headers
    ):
        """Test creation binds the org and redirects to setup."""
        user = await create_user()

        response = await client.post(
            BASE,
            json={"github_id": organization.id},
            headers=auth_headers(user),
        )

        assert response.status_code == 303
        result = await db_session.execute(select(Classroom))
        classroom = result.scalar_one()
        assert response.headers["location"] == f"{BASE}/{classroom.slug}/setup"
        assert classroom.github_id == organization.id
        assert classroom.github_global_relay_id == organization.node_id
        assert await _is_member(db_session, classroom, user)

    @pytest.mark.asyncio
    async def test_does_not_allow_duplicate_org(
        self, client, db_session, organization, create_user, create_classroom, auth_headers
    ):
        """Test that a second classroom for an org is refused."""
        user = await create_user()
        await create_classroom(github_id=organization.id)

        response = await client.post(
            BASE,
            json={"github_id": organization.id},
            headers=auth_headers(user),
        )

        assert response.status_code == 409
        count = await db_session.execute(select(func.count()).select_from(Classroom))
        assert count.scalar() == 1

    @pytest.mark.asyncio
    async def test_allows_duplicate_org_with_flag(
        self, client, db_session, features, organization, create_user, create_classroom, auth_headers
    ):
        """Test that the multiple-classrooms flag lifts the restriction."""
        features.multiple_classrooms_per_org = True
        user = await create_user()
        await create_classroom(github_id=organization.id)

        response = await client.post(
            BASE,
            json={"github_id": organization.id},
            headers=auth_headers(user),
        )

        assert response.status_code == 303
        count = await db_session.execute(select(func.count()).select_from(Classroom))
        assert count.scalar() == 2

    @pytest.mark.asyncio
    async def test_non_admin_fails(
        self, client, db_session, mock_github, organization, create_user, auth_headers
    ):
        """Test that a non-admin cannot create a classroom."""
        mock_github.is_organization_admin.return_value = False
        user = await create_user()

        response = await client.post(
            BASE,
            json={"github_id": organization.id},
            headers=auth_headers(user),
        )

        assert response.status_code == 403
        count = await db_session.execute(select(func.count()).select_from(Classroom))
        assert count.scalar() == 0

    @pytest.mark.asyncio
    async def test_invalid_body(self, client, create_user, auth_headers):
        """Test request validation."""
        user = await create_user()

        response = await client.post(BASE, json={"github_id": 0}, headers=auth_headers(user))

        assert response.status_code == 422


class TestClassroomViews:
    """Tests for the single-classroom views."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("suffix", ["", "/edit", "/invitation", "/settings/invitations", "/invite", "/setup"])
    async def test_views_return_200(
        self, client, suffix, create_user, create_classroom, auth_headers
    ):
        """Test that every classroom view renders for a member."""
        user = await create_user()
        classroom = await create_classroom(members=(user,))

        response = await client.get(f"{BASE}/{classroom.slug}{suffix}", headers=auth_headers(user))

        assert response.status_code == 200
        assert response.json()["classroom"]["slug"] == classroom.slug

    @pytest.mark.asyncio
    async def test_show_includes_assignments(
        self, client, create_user, create_classroom, create_assignment, auth_headers
    ):
        """Test that show lists the classroom's assignments."""
        user = await create_user()
        classroom = await create_classroom(members=(user,))
        await create_assignment(classroom, user, title="Lab 1")

        response = await client.get(f"{BASE}/{classroom.slug}", headers=auth_headers(user))

        assert [a["title"] for a in response.json()["assignments"]] == ["Lab 1"]

    @pytest.mark.asyncio
    async def test_invitation_includes_key(self, client, create_user, create_classroom, auth_headers):
        """Test that the invitation view exposes the key."""
        user = await create_user()
        classroom = await create_classroom(members=(user,))

        response = await client.get(f"{BASE}/{classroom.slug}/invitation", headers=auth_headers(user))

        assert response.json()["invitation_key"] == classroom.invitation_key

    @pytest.mark.asyncio
    async def test_settings_lists_members(self, client, create_user, create_classroom, auth_headers):
        """Test that the settings view lists members."""
        user = await create_user(login="owner")
        teacher = await create_user(login="teacher")
        classroom = await create_classroom(members=(user, teacher))

        response = await client.get(
            f"{BASE}/{classroom.slug}/settings/invitations",
            headers=auth_headers(user),
        )

        assert {m["login"] for m in response.json()["members"]} == {"owner", "teacher"}

    @pytest.mark.asyncio
    async def test_non_member_gets_404(
        self, client, mock_github, create_user, create_classroom, auth_headers
    ):
        """Test that outsiders cannot see a classroom."""
        mock_github.is_organization_admin.return_value = False
        user = await create_user()
        classroom = await create_classroom()

        response = await client.get(f"{BASE}/{classroom.slug}", headers=auth_headers(user))

        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_deleted_classroom_gets_404(
        self, client, db_session, create_user, create_classroom, auth_headers
    ):
        """Test that soft-deleted classrooms are gone."""
        user = await create_user()
        classroom = await create_classroom(members=(user,))
        classroom.soft_delete()
        await db_session.commit()

        response = await client.get(f"{BASE}/{classroom.slug}", headers=auth_headers(user))

        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_unknown_slug_gets_404(self, client, create_user, auth_headers):
        """Test that unknown slugs are 404."""
        user = await create_user()

        response = await client.get(f"{BASE}/nope", headers=auth_headers(user))

        assert response.status_code == 404


class TestRemoveUser:
    """Tests for PATCH /classrooms/{slug}/users/{user_id}/remove."""

    @pytest.mark.asyncio
    async def test_removes_member_and_reassigns(
        self, client, db_session, create_user, create_classroom, create_assignment, auth_headers
    ):
        """Test removal, assignment hand-over and flash redirect."""
        owner = await create_user(login="owner")
        teacher = await create_user(login="teacher")
        classroom = await create_classroom(members=(owner, teacher))
        assignment = await create_assignment(classroom, teacher)

        response = await client.patch(
            f"{BASE}/{classroom.slug}/users/{teacher.id}/remove",
            headers=auth_headers(owner),
        )

        assert response.status_code == 303
        assert response.headers["location"] == f"{BASE}/{classroom.slug}/settings/invitations"
        assert "flash" in response.cookies
        assert not await _is_member(db_session, classroom, teacher)
        assert (await _reload(db_session, assignment)).creator_id == owner.id

    @pytest.mark.asyncio
    async def test_non_member_target_gets_404(
        self, client, create_user, create_classroom, auth_headers
    ):
        """Test that removing a non-member is 404."""
        owner = await create_user(login="owner")
        outsider = await create_user(login="outsider")
        classroom = await create_classroom(members=(owner,))

        response = await client.patch(
            f"{BASE}/{classroom.slug}/users/{outsider.id}/remove",
            headers=auth_headers(owner),
        )

        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_nonexistent_user_gets_404(
        self, client, create_user, create_classroom, auth_headers
    ):
        """Test that removing an unknown user is 404."""
        owner = await create_user()
        classroom = await create_classroom(members=(owner,))

        response = await client.patch(
            f"{BASE}/{classroom.slug}/users/does-not-exist/remove",
            headers=auth_headers(owner),
        )

        assert response.status_code == 404


class TestGroupings:
    """Tests for GET /classrooms/{slug}/groupings."""

    @pytest.mark.asyncio
    async def test_404_without_team_management(
        self, client, create_user, create_classroom, auth_headers
    ):
        """Test that the view is hidden without the flag."""
        user = await create_user()
        classroom = await create_classroom(members=(user,))

        response = await client.get(f"{BASE}/{classroom.slug}/groupings", headers=auth_headers(user))

        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_200_with_team_management(
        self, client, features, create_user, create_classroom, create_grouping, auth_headers
    ):
        """Test that the view lists groupings with the flag on."""
        features.team_management = True
        user = await create_user()
        classroom = await create_classroom(members=(user,))
        await create_grouping(classroom, title="Project teams")

        response = await client.get(f"{BASE}/{classroom.slug}/groupings", headers=auth_headers(user))

        assert response.status_code == 200
        assert [g["title"] for g in response.json()["groupings"]] == ["Project teams"]


class TestUpdate:
    """Tests for PATCH /classrooms/{slug}."""

    @pytest.mark.asyncio
    async def test_updates_and_redirects(
        self, client, db_session, create_user, create_classroom, auth_headers
    ):
        """Test that the title changes and the slug does not."""
        user = await create_user()
        classroom = await create_classroom(members=(user,))
        slug = classroom.slug

        response = await client.patch(
            f"{BASE}/{slug}",
            json={"title": "New Title"},
            headers=auth_headers(user),
        )

        assert response.status_code == 303
        assert response.headers["location"] == f"{BASE}/{slug}"
        classroom = await _reload(db_session, classroom)
        assert classroom.title == "New Title"
        assert classroom.slug == slug


class TestDestroy:
    """Tests for DELETE /classrooms/{slug}."""

    @pytest.mark.asyncio
    async def test_soft_deletes_and_enqueues_cleanup(
        self, client, db_session, stub_broker, create_user, create_classroom, auth_headers
    ):
        """Test deletion mark, one cleanup job and redirect to the index."""
        user = await create_user()
        classroom = await create_classroom(members=(user,))

        response = await client.delete(f"{BASE}/{classroom.slug}", headers=auth_headers(user))

        assert response.status_code == 303
        assert response.headers["location"] == BASE
        assert (await _reload(db_session, classroom)).deleted_at is not None
        assert stub_broker.queues[Queues.CLEANUP].qsize() == 1

    @pytest.mark.asyncio
    async def test_broker_failure_returns_503(
        self, app, client, db_session, mock_dispatcher, create_user, create_classroom, auth_headers
    ):
        """Test that a failed enqueue is reported while the deletion stands."""
        user = await create_user()
        classroom = await create_classroom(members=(user,))
        mock_dispatcher.enqueue_destroy_resource.side_effect = ConnectionError("redis down")
        app.dependency_overrides[get_job_dispatcher] = lambda: mock_dispatcher

        response = await client.delete(f"{BASE}/{classroom.slug}", headers=auth_headers(user))

        assert response.status_code == 503
        assert (await _reload(db_session, classroom)).deleted_at is not None


class TestSetupOrganization:
    """Tests for PATCH /classrooms/{slug}/setup_organization."""

    @pytest.mark.asyncio
    async def test_updates_and_redirects_to_invite(
        self, client, db_session, create_user, create_classroom, auth_headers
    ):
        """Test that setup saves the title and moves on to the invite step."""
        user = await create_user()
        classroom = await create_classroom(members=(user,))

        response = await client.patch(
            f"{BASE}/{classroom.slug}/setup_organization",
            json={"title": "Fall Term"},
            headers=auth_headers(user),
        )

        assert response.status_code == 303
        assert response.headers["location"] == f"{BASE}/{classroom.slug}/invite"
        assert (await _reload(db_session, classroom)).title == "Fall Term"


class TestHealth:
    """Tests for GET /health."""

    @pytest.mark.asyncio
    async def test_health(self, client):
        """Test that health reports the database as healthy."""
        response = await client.get("/health")

        assert response.status_code == 200
        data = response.json()
        assert data["components"]["database"]["status"] == "healthy"
        assert data["components"]["broker"]["details"]["broker_type"] == "stub"
        assert data["status"] == "healthy"


class TestUserRows:
    """Tests that sessions resolve against stored users."""

    @pytest.mark.asyncio
    async def test_deleted_user_redirects_to_login(self, client, db_session, create_user, auth_headers):
        """Test that a session for a vanished user is unauthenticated."""
        user = await create_user()
        headers = auth_headers(user)
        await db_session.delete(await db_session.get(User, user.id))
        await db_session.commit()

        response = await client.get(BASE, headers=headers)

        assert response.status_code == 302
        assert response.headers["location"] == "/login"

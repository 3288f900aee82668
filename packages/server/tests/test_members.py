"""
Integration tests for membership management.

Tests cover:
- Member listing
- Adding existing users (admin only, owner role reserved for owners)
- Role changes, including the last-owner guard
"""

from __future__ import annotations

import uuid

import pytest

from conftest import bearer

MEMBERS_URL = "/api/v1/orgs/zoada-labs/members"


class TestListMembers:
    async def test_lists_every_role(self, client, tenant):
        response = await client.get(MEMBERS_URL, headers=bearer(tenant["users"]["viewer"]))
        assert response.status_code == 200
        roles = sorted(m["role"] for m in response.json()["data"])
        assert roles == ["admin", "member", "owner", "viewer"]
        emails = {m["email"] for m in response.json()["data"]}
        assert "owner@zoada.example.com" in emails

    async def test_outsider_gets_404(self, client, tenant):
        response = await client.get(MEMBERS_URL, headers=bearer(tenant["users"]["outsider"]))
        assert response.status_code == 404


class TestAddMember:
    async def test_admin_adds_existing_user(self, client, tenant):
        response = await client.post(
            MEMBERS_URL,
            json={"email": "outsider@elsewhere.example.com", "role": "member"},
            headers=bearer(tenant["users"]["admin"]),
        )
        assert response.status_code == 201
        body = response.json()
        assert body["user_id"] == str(tenant["users"]["outsider"].id)
        assert body["role"] == "member"
        assert body["invited_by"] == str(tenant["users"]["admin"].id)

        orgs = await client.get("/api/v1/orgs", headers=bearer(tenant["users"]["outsider"]))
        assert [o["slug"] for o in orgs.json()["data"]] == ["zoada-labs"]

    async def test_default_role_is_member(self, client, tenant):
        response = await client.post(
            MEMBERS_URL,
            json={"email": "outsider@elsewhere.example.com"},
            headers=bearer(tenant["users"]["owner"]),
        )
        assert response.json()["role"] == "member"

    async def test_already_member_conflicts(self, client, tenant):
        response = await client.post(
            MEMBERS_URL,
            json={"email": "viewer@zoada.example.com", "role": "admin"},
            headers=bearer(tenant["users"]["owner"]),
        )
        assert response.status_code == 409

    async def test_unknown_email(self, client, tenant):
        response = await client.post(
            MEMBERS_URL,
            json={"email": "nobody@nowhere.example.com"},
            headers=bearer(tenant["users"]["owner"]),
        )
        assert response.status_code == 404

    @pytest.mark.parametrize("role", ["member", "viewer"])
    async def test_low_roles_cannot_add(self, client, tenant, role):
        response = await client.post(
            MEMBERS_URL,
            json={"email": "outsider@elsewhere.example.com"},
            headers=bearer(tenant["users"][role]),
        )
        assert response.status_code == 403

    async def test_admin_cannot_grant_owner(self, client, tenant):
        response = await client.post(
            MEMBERS_URL,
            json={"email": "outsider@elsewhere.example.com", "role": "owner"},
            headers=bearer(tenant["users"]["admin"]),
        )
        assert response.status_code == 403

    async def test_owner_can_grant_owner(self, client, tenant):
        response = await client.post(
            MEMBERS_URL,
            json={"email": "outsider@elsewhere.example.com", "role": "owner"},
            headers=bearer(tenant["users"]["owner"]),
        )
        assert response.status_code == 201


class TestUpdateMemberRole:
    async def test_admin_promotes_viewer(self, client, tenant):
        viewer = tenant["users"]["viewer"]
        response = await client.patch(
            f"{MEMBERS_URL}/{viewer.id}",
            json={"role": "member"},
            headers=bearer(tenant["users"]["admin"]),
        )
        assert response.status_code == 200
        assert response.json()["role"] == "member"

        # the promoted viewer can now create projects
        created = await client.post(
            "/api/v1/orgs/zoada-labs/projects", json={"name": "Promoted"}, headers=bearer(viewer)
        )
        assert created.status_code == 201

    async def test_admin_cannot_demote_owner(self, client, tenant):
        owner = tenant["users"]["owner"]
        response = await client.patch(
            f"{MEMBERS_URL}/{owner.id}",
            json={"role": "member"},
            headers=bearer(tenant["users"]["admin"]),
        )
        assert response.status_code == 403

    async def test_last_owner_cannot_step_down(self, client, tenant):
        owner = tenant["users"]["owner"]
        response = await client.patch(
            f"{MEMBERS_URL}/{owner.id}",
            json={"role": "admin"},
            headers=bearer(owner),
        )
        assert response.status_code == 409

    async def test_owner_hands_over(self, client, tenant):
        owner = tenant["users"]["owner"]
        admin = tenant["users"]["admin"]
        promoted = await client.patch(
            f"{MEMBERS_URL}/{admin.id}", json={"role": "owner"}, headers=bearer(owner)
        )
        assert promoted.status_code == 200

        stepped_down = await client.patch(
            f"{MEMBERS_URL}/{owner.id}", json={"role": "admin"}, headers=bearer(owner)
        )
        assert stepped_down.status_code == 200
        assert stepped_down.json()["role"] == "admin"

    async def test_unknown_member(self, client, tenant):
        response = await client.patch(
            f"{MEMBERS_URL}/{uuid.uuid4()}",
            json={"role": "member"},
            headers=bearer(tenant["users"]["owner"]),
        )
        assert response.status_code == 404

    async def test_invalid_role(self, client, tenant):
        viewer = tenant["users"]["viewer"]
        response = await client.patch(
            f"{MEMBERS_URL}/{viewer.id}",
            json={"role": "superuser"},
            headers=bearer(tenant["users"]["owner"]),
        )
        assert response.status_code == 422

    async def test_role_changes_are_audited(self, client, db, tenant):
        viewer = tenant["users"]["viewer"]
        await client.patch(
            f"{MEMBERS_URL}/{viewer.id}",
            json={"role": "admin"},
            headers=bearer(tenant["users"]["owner"]),
        )
        events = await client.get(
            "/api/v1/orgs/zoada-labs/events",
            params={"entity_type": "membership"},
            headers=bearer(tenant["users"]["owner"]),
        )
        data = events.json()["data"]
        assert data[0]["event_type"] == "membership.updated"
        assert data[0]["metadata"]["from"] == "viewer"
        assert data[0]["metadata"]["to"] == "admin"

"""Tests for the L10 meeting API endpoints."""

from uuid import uuid4

import pytest
from httpx import AsyncClient

from src.l10.authorization import AccessLevel
from src.main import app


@pytest.fixture
def organization_id():
    return uuid4()


@pytest.fixture
async def leader(client: AsyncClient, organization_id) -> dict[str, str]:
    """Headers for a leadership team member."""
    profile_id = uuid4()
    await app.state.authorizer.add_profile(profile_id, organization_id, AccessLevel.ELT)
    return {"X-Profile-Id": str(profile_id)}


@pytest.fixture
async def member(client: AsyncClient, organization_id) -> dict[str, str]:
    """Headers for a regular organization member."""
    profile_id = uuid4()
    await app.state.authorizer.add_profile(profile_id, organization_id)
    return {"X-Profile-Id": str(profile_id)}


@pytest.fixture
async def meeting_id(client: AsyncClient, leader, organization_id) -> str:
    response = await client.post(
        "/l10",
        json={
            "organization_id": str(organization_id),
            "title": "Leadership L10",
            "scheduled_at": "2026-03-02T09:00:00Z",
        },
        headers=leader,
    )
    assert response.status_code == 201
    return response.json()["id"]


async def get_agenda(client: AsyncClient, meeting_id: str, headers) -> list[dict]:
    response = await client.get(f"/l10/{meeting_id}/agenda", headers=headers)
    assert response.status_code == 200
    return response.json()


class TestCreateMeeting:
    async def test_create(self, client: AsyncClient, leader, organization_id) -> None:
        response = await client.post(
            "/l10",
            json={
                "organization_id": str(organization_id),
                "title": "Sales L10",
                "scheduled_at": "2026-03-02T09:00:00Z",
                "meeting_type": "department",
            },
            headers=leader,
        )

        assert response.status_code == 201
        data = response.json()
        assert data["title"] == "Sales L10"
        assert data["meeting_type"] == "department"
        assert data["status"] == "scheduled"

    async def test_member_forbidden(
        self, client: AsyncClient, member, organization_id
    ) -> None:
        response = await client.post(
            "/l10",
            json={
                "organization_id": str(organization_id),
                "title": "L10",
                "scheduled_at": "2026-03-02T09:00:00Z",
            },
            headers=member,
        )
        assert response.status_code == 403

    async def test_requires_caller(self, client: AsyncClient, organization_id) -> None:
        response = await client.post(
            "/l10",
            json={
                "organization_id": str(organization_id),
                "title": "L10",
                "scheduled_at": "2026-03-02T09:00:00Z",
            },
        )
        assert response.status_code == 401


class TestAgenda:
    async def test_get_agenda(self, client: AsyncClient, meeting_id, member) -> None:
        agenda = await get_agenda(client, meeting_id, member)

        assert len(agenda) == 7
        assert [item["section"] for item in agenda][:2] == ["segue", "scorecard"]
        assert all(item["state"] == "pending" for item in agenda)

    async def test_navigate_then_next(self, client: AsyncClient, meeting_id, member) -> None:
        agenda = await get_agenda(client, meeting_id, member)

        response = await client.put(
            f"/l10/{meeting_id}/agenda",
            json={"action": "navigate", "agenda_item_id": agenda[0]["id"]},
            headers=member,
        )
        assert response.status_code == 200
        assert response.json()[0]["state"] == "active"

        response = await client.put(
            f"/l10/{meeting_id}/agenda", json={"action": "next"}, headers=member
        )
        assert response.status_code == 200
        data = response.json()
        assert [item["state"] for item in data[:3]] == ["complete", "active", "pending"]

        response = await client.put(
            f"/l10/{meeting_id}/agenda", json={"action": "previous"}, headers=member
        )
        assert [item["state"] for item in response.json()[:2]] == ["active", "pending"]

    async def test_update_notes(self, client: AsyncClient, meeting_id, member) -> None:
        agenda = await get_agenda(client, meeting_id, member)

        response = await client.put(
            f"/l10/{meeting_id}/agenda",
            json={
                "action": "update_notes",
                "agenda_item_id": agenda[5]["id"],
                "notes": "Hiring plan discussed",
            },
            headers=member,
        )

        assert response.status_code == 200
        item = response.json()[5]
        assert item["notes"] == "Hiring plan discussed"
        assert item["state"] == "pending"

    async def test_commands_are_audited(
        self, client: AsyncClient, meeting_id, member
    ) -> None:
        agenda = await get_agenda(client, meeting_id, member)
        await client.put(
            f"/l10/{meeting_id}/agenda",
            json={"action": "navigate", "agenda_item_id": agenda[0]["id"]},
            headers=member,
        )

        store = app.state.event_store
        assert await store.count_events("l10/agenda_item.started") == 1
        assert await store.count_events("l10/meeting.created") == 1

    @pytest.mark.parametrize("action", ["navigate", "update_notes"])
    async def test_item_id_required(
        self, client: AsyncClient, meeting_id, member, action
    ) -> None:
        response = await client.put(
            f"/l10/{meeting_id}/agenda", json={"action": action}, headers=member
        )
        assert response.status_code == 400

    async def test_unknown_action(self, client: AsyncClient, meeting_id, member) -> None:
        response = await client.put(
            f"/l10/{meeting_id}/agenda", json={"action": "skip"}, headers=member
        )
        assert response.status_code == 422

    async def test_next_without_active_item(
        self, client: AsyncClient, meeting_id, member
    ) -> None:
        response = await client.put(
            f"/l10/{meeting_id}/agenda", json={"action": "next"}, headers=member
        )
        assert response.status_code == 409

    async def test_unknown_target(self, client: AsyncClient, meeting_id, member) -> None:
        response = await client.put(
            f"/l10/{meeting_id}/agenda",
            json={"action": "navigate", "agenda_item_id": str(uuid4())},
            headers=member,
        )
        assert response.status_code == 404

    async def test_unknown_meeting(self, client: AsyncClient, member) -> None:
        response = await client.get(f"/l10/{uuid4()}/agenda", headers=member)
        assert response.status_code == 404

    async def test_requires_caller(self, client: AsyncClient, meeting_id) -> None:
        response = await client.get(f"/l10/{meeting_id}/agenda")
        assert response.status_code == 401

    async def test_outsider_forbidden(self, client: AsyncClient, meeting_id) -> None:
        response = await client.get(
            f"/l10/{meeting_id}/agenda", headers={"X-Profile-Id": str(uuid4())}
        )
        assert response.status_code == 403


class TestLifecycle:
    async def test_start_and_end(self, client: AsyncClient, meeting_id, member) -> None:
        response = await client.post(f"/l10/{meeting_id}/start", headers=member)
        assert response.status_code == 200
        assert response.json()["status"] == "in_progress"

        response = await client.post(
            f"/l10/{meeting_id}/end", json={"rating": 9}, headers=member
        )
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "completed"
        assert data["rating"] == 9
        assert data["duration_minutes"] == 0

        agenda = await get_agenda(client, meeting_id, member)
        assert all(item["state"] == "complete" for item in agenda)

    async def test_end_without_body(self, client: AsyncClient, meeting_id, member) -> None:
        await client.post(f"/l10/{meeting_id}/start", headers=member)

        response = await client.post(f"/l10/{meeting_id}/end", headers=member)

        assert response.status_code == 200
        assert response.json()["rating"] is None

    async def test_start_twice_conflicts(
        self, client: AsyncClient, meeting_id, member
    ) -> None:
        await client.post(f"/l10/{meeting_id}/start", headers=member)
        response = await client.post(f"/l10/{meeting_id}/start", headers=member)
        assert response.status_code == 409

    async def test_end_before_start_conflicts(
        self, client: AsyncClient, meeting_id, member
    ) -> None:
        response = await client.post(f"/l10/{meeting_id}/end", headers=member)
        assert response.status_code == 409

    async def test_rating_out_of_range(
        self, client: AsyncClient, meeting_id, member
    ) -> None:
        await client.post(f"/l10/{meeting_id}/start", headers=member)
        response = await client.post(
            f"/l10/{meeting_id}/end", json={"rating": 11}, headers=member
        )
        assert response.status_code == 422

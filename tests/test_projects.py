"""Tests for project endpoints and membership."""
import pytest

from taskhub.models.team import Team, TeamMember, TeamRole

API = "/api/v1"


@pytest.mark.asyncio
async def test_create_and_list_projects(client, auth_headers, headers_for, owner, outsider):
    response = await client.post(
        f"{API}/projects",
        json={"name": "Mobile app", "description": "iOS and Android", "priority": 2},
        headers=auth_headers,
    )
    assert response.status_code == 201
    created = response.json()
    assert created["owner_id"] == owner.id
    assert created["status"] == "Active"

    response = await client.get(f"{API}/projects/{created['id']}/members", headers=auth_headers)
    assert response.status_code == 200
    assert [(m["user_id"], m["role"]) for m in response.json()] == [(owner.id, "Owner")]

    response = await client.get(f"{API}/projects", headers=headers_for(outsider))
    assert response.json() == []

    response = await client.get(f"{API}/projects", headers=auth_headers)
    assert [p["name"] for p in response.json()] == ["Mobile app"]


@pytest.mark.asyncio
async def test_project_name_required(client, auth_headers):
    response = await client.post(f"{API}/projects", json={"name": ""}, headers=auth_headers)
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_guest_cannot_create_projects(client, headers_for, make_user):
    guest = await make_user("visitor", role="guest")
    response = await client.post(f"{API}/projects", json={"name": "Nope"}, headers=headers_for(guest))
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_membership_management(client, auth_headers, headers_for, project, outsider):
    url = f"{API}/projects/{project.id}"

    response = await client.get(url, headers=headers_for(outsider))
    assert response.status_code == 403

    response = await client.post(
        f"{url}/members", json={"user_id": outsider.id, "role": "Viewer"}, headers=auth_headers
    )
    assert response.status_code == 201

    response = await client.post(
        f"{url}/members", json={"user_id": outsider.id, "role": "Viewer"}, headers=auth_headers
    )
    assert response.status_code == 409

    response = await client.get(url, headers=headers_for(outsider))
    assert response.status_code == 200

    # Viewers may not manage the project
    response = await client.put(url, json={"name": "Renamed"}, headers=headers_for(outsider))
    assert response.status_code == 403

    response = await client.delete(f"{url}/members/{outsider.id}", headers=auth_headers)
    assert response.status_code == 204

    response = await client.get(url, headers=headers_for(outsider))
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_owner_cannot_be_removed(client, auth_headers, project, owner):
    response = await client.delete(f"{API}/projects/{project.id}/members/{owner.id}", headers=auth_headers)
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_update_and_soft_delete(client, auth_headers, project):
    url = f"{API}/projects/{project.id}"

    response = await client.put(url, json={"name": "Website v2", "status": "OnHold"}, headers=auth_headers)
    assert response.status_code == 200
    assert response.json()["name"] == "Website v2"
    assert response.json()["status"] == "OnHold"

    response = await client.delete(url, headers=auth_headers)
    assert response.status_code == 204

    response = await client.get(url, headers=auth_headers)
    assert response.status_code == 404

    response = await client.post(
        f"{API}/tasks", json={"title": "Late task", "project_id": project.id}, headers=auth_headers
    )
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_tasks_of_deleted_project_are_unreachable(client, auth_headers, project, task):
    await client.delete(f"{API}/projects/{project.id}", headers=auth_headers)

    response = await client.get(f"{API}/tasks/{task.id}", headers=auth_headers)
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_project_filed_under_team(client, db_session, auth_headers, headers_for, owner, outsider):
    team = Team(name="Web", owner_id=owner.id)
    db_session.add(team)
    await db_session.commit()
    await db_session.refresh(team)
    team_id, outsider_id = team.id, outsider.id

    response = await client.post(
        f"{API}/projects", json={"name": "Blog", "team_id": team_id}, headers=auth_headers
    )
    assert response.status_code == 201
    assert response.json()["team_id"] == team_id

    response = await client.post(
        f"{API}/projects", json={"name": "Stray", "team_id": team_id}, headers=headers_for(outsider)
    )
    assert response.status_code == 403

    db_session.add(TeamMember(team_id=team_id, user_id=outsider_id, role=TeamRole.MEMBER))
    await db_session.commit()
    response = await client.post(
        f"{API}/projects", json={"name": "Docs", "team_id": team_id}, headers=headers_for(outsider)
    )
    assert response.status_code == 201


@pytest.mark.asyncio
async def test_project_with_unknown_team(client, auth_headers, project):
    response = await client.post(
        f"{API}/projects", json={"name": "Ghost", "team_id": 404}, headers=auth_headers
    )
    assert response.status_code == 400
    assert response.json()["detail"].startswith("Team")

    response = await client.put(
        f"{API}/projects/{project.id}", json={"team_id": 404}, headers=auth_headers
    )
    assert response.status_code == 400

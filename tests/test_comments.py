"""Tests for task comments and attachments."""
import pytest

API = "/api/v1"


@pytest.mark.asyncio
async def test_comment_thread(client, auth_headers, headers_for, project, task, outsider):
    url = f"{API}/tasks/{task.id}/comments"

    response = await client.post(url, json={"content": "First draft is up"}, headers=auth_headers)
    assert response.status_code == 201
    root = response.json()
    assert root["is_edited"] is False

    response = await client.post(
        url, json={"content": "Looks good", "parent_comment_id": root["id"]}, headers=auth_headers
    )
    assert response.status_code == 201

    response = await client.post(url, json={"content": "Orphan reply", "parent_comment_id": 999}, headers=auth_headers)
    assert response.status_code == 400

    response = await client.get(url, headers=auth_headers)
    assert [c["content"] for c in response.json()] == ["First draft is up", "Looks good"]

    response = await client.get(url, headers=headers_for(outsider))
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_only_author_edits_and_deletes(client, auth_headers, headers_for, project, task, outsider):
    await client.post(
        f"{API}/projects/{project.id}/members", json={"user_id": outsider.id}, headers=auth_headers
    )
    url = f"{API}/tasks/{task.id}/comments"
    comment = (await client.post(url, json={"content": "Mine"}, headers=auth_headers)).json()

    response = await client.put(f"{url}/{comment['id']}", json={"content": "Theirs"}, headers=headers_for(outsider))
    assert response.status_code == 403

    response = await client.put(f"{url}/{comment['id']}", json={"content": "Mine, edited"}, headers=auth_headers)
    assert response.status_code == 200
    assert response.json()["is_edited"] is True

    response = await client.delete(f"{url}/{comment['id']}", headers=auth_headers)
    assert response.status_code == 204

    response = await client.get(url, headers=auth_headers)
    assert response.json() == []


@pytest.mark.asyncio
async def test_attachments(client, auth_headers, task):
    url = f"{API}/tasks/{task.id}/attachments"

    response = await client.post(
        url,
        json={"file_name": "brief.pdf", "file_url": "https://files.example.com/brief.pdf", "file_size": 2048},
        headers=auth_headers,
    )
    assert response.status_code == 201
    attachment = response.json()
    assert attachment["content_type"] == "application/octet-stream"

    response = await client.get(url, headers=auth_headers)
    assert [a["file_name"] for a in response.json()] == ["brief.pdf"]

    response = await client.delete(f"{url}/{attachment['id']}", headers=auth_headers)
    assert response.status_code == 204

    response = await client.get(url, headers=auth_headers)
    assert response.json() == []


@pytest.mark.asyncio
async def test_attachment_size_must_be_positive(client, auth_headers, task):
    response = await client.post(
        f"{API}/tasks/{task.id}/attachments",
        json={"file_name": "x.bin", "file_url": "https://files.example.com/x.bin", "file_size": -1},
        headers=auth_headers,
    )
    assert response.status_code == 422

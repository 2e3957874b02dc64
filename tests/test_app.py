"""Tests for the application shell: health, metrics, localization and logging."""
import json
import logging

import pytest

from taskhub.core.exceptions import ConflictError, NotFoundError
from taskhub.localization.helpers import get_translation, resolve_locale
from taskhub.utils.logging_config import setup_logging


@pytest.mark.asyncio
async def test_health(client, db_session):
    response = await client.get("/health")
    assert response.status_code == 200
    assert response.json()["checks"]["database"] == "ok"


@pytest.mark.asyncio
async def test_metrics_count_task_events(client, auth_headers, project):
    await client.post("/api/v1/tasks", json={"title": "Count me", "project_id": project.id}, headers=auth_headers)

    response = await client.get("/metrics")
    assert response.status_code == 200
    assert 'task_events_total{event="task.created"}' in response.text
    assert "http_requests_total" in response.text


@pytest.mark.parametrize(
    "header, expected",
    [
        (None, "en"),
        ("ru-RU,ru;q=0.9,en;q=0.8", "ru"),
        ("de-DE,en;q=0.5,ru;q=0.7", "ru"),
        ("fr", "en"),
    ],
)
def test_resolve_locale(header, expected):
    assert resolve_locale(header) == expected


def test_translation_fallbacks():
    assert get_translation("errors.entity_not_found", "ru", entity="Task", id=3) == "Task с ID 3 не найден"
    assert get_translation("errors.internal", "xx") == "An internal server error has occurred"
    assert get_translation("errors.unknown_key") == "errors.unknown_key"
    assert NotFoundError("Task", 3).detail == "Task with ID 3 was not found"


def test_json_logging(capsys):
    setup_logging(level="INFO", log_format="json")
    logging.getLogger("taskhub.test").info("hello", extra={"task_id": 7})

    line = capsys.readouterr().out.strip().splitlines()[-1]
    record = json.loads(line)
    assert record["message"] == "hello"
    assert record["level"] == "INFO"
    assert record["task_id"] == 7
    logging.getLogger().handlers.clear()


@pytest.mark.asyncio
async def test_domain_errors_follow_accept_language(client, auth_headers):
    response = await client.get(
        "/api/v1/tasks/999", headers={**auth_headers, "Accept-Language": "ru-RU,ru;q=0.9"}
    )
    assert response.status_code == 404
    assert response.json()["detail"] == "Task с ID 999 не найден"

    response = await client.get("/api/v1/tasks/999", headers=auth_headers)
    assert response.json()["detail"] == "Task with ID 999 was not found"


@pytest.mark.asyncio
async def test_unauthenticated_error_keeps_bearer_challenge(client):
    response = await client.get("/api/v1/auth/me", headers={"Authorization": "Bearer nonsense"})
    assert response.status_code == 401
    assert response.headers["www-authenticate"] == "Bearer"
    assert response.json()["detail"] == "Could not validate credentials"


def test_explicit_detail_is_not_translated():
    error = ConflictError("Custom text")
    assert error.localized_detail("ru") == "Custom text"
    assert ConflictError().localized_detail("ru") == "Конфликт ресурса"


@pytest.mark.asyncio
async def test_security_headers(client, db_session):
    response = await client.get("/health")
    assert response.headers["x-content-type-options"] == "nosniff"
    assert response.headers["x-frame-options"] == "DENY"
    assert response.headers["strict-transport-security"].startswith("max-age=")
    assert "default-src 'self'" in response.headers["content-security-policy"]
    assert "server" not in response.headers

    response = await client.get("/docs")
    assert response.headers["x-content-type-options"] == "nosniff"
    assert "content-security-policy" not in response.headers

"""Tests for GET /api/v1/health."""

from people_api.app.core.config import settings


def test_database_reachable(client) -> None:
    response = client.get("/api/v1/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok", "version": settings.api_version, "database": "ok"}


def test_database_unreachable_still_answers(client, database) -> None:
    database.reachable = False

    response = client.get("/api/v1/health")

    assert response.status_code == 200
    assert response.json()["database"] == "unavailable"

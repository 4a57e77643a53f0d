from __future__ import annotations

from fastapi.testclient import TestClient

from ticket_analytics.db.session import get_db
from ticket_analytics.main import create_app


def _client() -> TestClient:
    app = create_app()
    app.dependency_overrides[get_db] = lambda: object()
    return TestClient(app)


def test_invalid_filter_is_rendered_as_400() -> None:
    response = _client().get("/api/analytics", params={"status": "OPEN,ON_FIRE"})

    assert response.status_code == 400
    body = response.json()
    assert body["error"] == "InvalidFilterError"
    assert body["error_code"] == "INVALID_FILTER"
    assert body["details"]["field"] == "status"


def test_invalid_window_is_rendered_as_400() -> None:
    response = _client().get("/api/analytics", params={"start": "2026-03-09", "end": "2026-03-01"})

    assert response.status_code == 400
    assert response.json()["error_code"] == "INVALID_WINDOW"

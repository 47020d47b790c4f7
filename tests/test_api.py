"""HTTP tests for the SLA routes."""

from datetime import datetime

import pytest
from fastapi.testclient import TestClient

from deskclock.config import Settings
from deskclock.main import create_app

UTC_SETTINGS = {
    "timezone": "UTC",
    "work_days": [1, 2, 3, 4, 5],
    "work_start": "09:00",
    "work_end": "18:00",
    "sla_response_hours": 4,
    "sla_resolution_hours": 24,
    "ola_resolution_hours": 8,
}


def parse(value: str) -> datetime:
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


@pytest.fixture
def client(tmp_path):
    app_settings = Settings(
        environment="test",
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'api.db'}",
        sla_policy_path=tmp_path / "sla_policy.yaml",
        watch_sla_policy=False,
    )
    with TestClient(create_app(app_settings)) as test_client:
        yield test_client


@pytest.fixture
def tenant(client):
    response = client.put("/sla/tenants/acme/settings", json=UTC_SETTINGS)
    assert response.status_code == 200
    return "acme"


def open_ticket(client, ticket_id="TKT-000001", tenant_id="acme", **extra):
    payload = {
        "ticket_id": ticket_id,
        "tenant_id": tenant_id,
        "created_at": "2024-01-01T09:00:00Z",
        **extra,
    }
    return client.post("/sla/tickets", json=payload)


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "healthy"
    assert body["checks"]["sla_policy"] == "loaded"


def test_correlation_id_is_echoed(client):
    response = client.get("/health", headers={"X-Correlation-ID": "abc-123"})
    assert response.headers["X-Correlation-ID"] == "abc-123"


def test_open_ticket(client, tenant):
    response = open_ticket(client)
    assert response.status_code == 201

    body = response.json()
    assert body["version"] == 1
    assert body["status"] == "open"
    assert body["sla_response"]["state"] == "running"
    assert parse(body["sla_response"]["due_at"]) == parse("2024-01-01T13:00:00Z")
    assert parse(body["sla_resolution"]["due_at"]) == parse("2024-01-03T15:00:00Z")
    assert body["ola"]["state"] == "not_started"
    assert body["ola_status"] is None
    assert body["overall_state"] == "on_track"


def test_open_ticket_twice(client, tenant):
    open_ticket(client)
    response = open_ticket(client)
    assert response.status_code == 422
    assert response.json()["error_type"] == "ValidationException"


def test_open_ticket_rejects_unknown_priority(client, tenant):
    assert open_ticket(client, priority="critical").status_code == 422


def test_pause_resume_and_reply(client, tenant):
    open_ticket(client)

    client.post("/sla/tickets/TKT-000001/events", json={
        "event": "status_changed",
        "status": "waiting_customer",
        "occurred_at": "2024-01-01T10:00:00Z",
    })
    response = client.post("/sla/tickets/TKT-000001/events", json={
        "event": "status_changed",
        "status": "in_progress",
        "occurred_at": "2024-01-01T12:00:00Z",
    })
    assert response.status_code == 200
    body = response.json()
    assert body["version"] == 3
    assert body["sla_response"]["paused_ms"] == 2 * 60 * 60 * 1000
    assert parse(body["sla_response"]["due_at"]) == parse("2024-01-01T15:00:00Z")

    response = client.post("/sla/tickets/TKT-000001/events", json={
        "event": "first_reply",
        "occurred_at": "2024-01-01T14:00:00Z",
    })
    body = response.json()
    assert body["sla_response"]["state"] == "completed"
    assert body["response_status"]["state"] == "met"


def test_status_change_requires_status(client, tenant):
    open_ticket(client)
    response = client.post("/sla/tickets/TKT-000001/events", json={
        "event": "status_changed",
        "occurred_at": "2024-01-01T10:00:00Z",
    })
    assert response.status_code == 422


def test_assignment_starts_ola(client, tenant):
    open_ticket(client)
    response = client.post("/sla/tickets/TKT-000001/events", json={
        "event": "assigned",
        "occurred_at": "2024-01-01T10:00:00Z",
    })
    body = response.json()
    assert parse(body["assigned_at"]) == parse("2024-01-01T10:00:00Z")
    assert parse(body["ola"]["due_at"]) == parse("2024-01-01T18:00:00Z")
    assert body["ola_status"]["state"] == "on_track"


def test_get_ticket_reports_breach(client, tenant):
    open_ticket(client)

    response = client.get("/sla/tickets/TKT-000001", params={"now": "2024-01-01T13:00:00Z"})
    assert response.json()["response_status"]["is_breached"] is False

    response = client.get("/sla/tickets/TKT-000001", params={"now": "2024-01-01T13:30:00Z"})
    body = response.json()
    assert body["response_status"]["is_breached"] is True
    assert body["response_status"]["remaining_ms"] == -30 * 60 * 1000
    assert body["overall_state"] == "breached"


def test_unknown_ticket(client):
    response = client.get("/sla/tickets/TKT-404")
    assert response.status_code == 404
    assert response.json()["error_type"] == "ResourceNotFoundException"


def test_invalid_calendar_rejected(client):
    response = client.put("/sla/tenants/acme/settings", json={
        **UTC_SETTINGS,
        "work_start": "18:00",
        "work_end": "09:00",
    })
    assert response.status_code == 422
    assert response.json()["error_type"] == "InvalidCalendarException"

    response = client.put("/sla/tenants/acme/settings", json={**UTC_SETTINGS, "work_days": []})
    assert response.status_code == 422


def test_tenant_settings_round_trip(client, tenant):
    body = client.get("/sla/tenants/acme/settings").json()
    assert body["tenant_id"] == "acme"
    assert body["timezone"] == "UTC"


def test_unconfigured_tenant_gets_defaults(client):
    body = client.get("/sla/tenants/newco/settings").json()
    assert body["timezone"] == "America/Sao_Paulo"


def test_compliance(client, tenant):
    open_ticket(client, "TKT-1")
    client.post("/sla/tickets/TKT-1/events", json={"event": "first_reply", "occurred_at": "2024-01-01T10:00:00Z"})
    client.post("/sla/tickets/TKT-1/events", json={
        "event": "status_changed", "status": "resolved", "occurred_at": "2024-01-01T11:00:00Z",
    })
    open_ticket(client, "TKT-2")
    client.post("/sla/tickets/TKT-2/events", json={"event": "first_reply", "occurred_at": "2024-01-01T15:00:00Z"})

    response = client.get("/sla/tenants/acme/compliance")
    assert response.status_code == 200
    body = response.json()
    assert body["total"] == 2
    assert body["response_met"] == 1
    assert body["resolution_met"] == 1
    assert body["breached"] == 1
    assert body["response_rate"] == 50.0

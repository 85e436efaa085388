from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient

from workshop_app.config import settings
from workshop_app.db import get_session
from workshop_app.services.reminder_service import ReminderService, TickSummary, WorkshopNotFound
from workshop_app.web.routes import get_email_service, get_reminder_scheduler
from workshop_app.web.server import app


async def _no_session():
    yield None


@pytest.fixture
def reminders() -> MagicMock:
    sched = MagicMock()
    sched.run_now = AsyncMock(return_value=TickSummary(workshops=2, checked=3, sent=2, skipped=1))
    return sched


@pytest.fixture
def client(reminders, mock_email):
    app.dependency_overrides[get_reminder_scheduler] = lambda: reminders
    app.dependency_overrides[get_email_service] = lambda: mock_email
    app.dependency_overrides[get_session] = _no_session
    # no context manager: startup hooks (and the real scheduler) stay off
    yield TestClient(app, raise_server_exceptions=False)
    app.dependency_overrides.clear()


def test_health(client):
    r = client.get("/health")
    assert r.status_code == 200
    assert r.json() == {"status": "ok", "scheduler_running": False}
    assert r.headers["x-request-id"]


def test_request_id_is_echoed(client):
    r = client.get("/health", headers={"x-request-id": "abc-123"})
    assert r.headers["x-request-id"] == "abc-123"


def test_manual_run_returns_summary(client, reminders):
    r = client.post("/admin/reminders/run")
    assert r.status_code == 200
    body = r.json()
    assert body["ok"] is True
    assert body["summary"]["sent"] == 2
    assert body["summary"]["disabled"] is False
    reminders.run_now.assert_awaited_once()


def test_send_reminder_now(client, monkeypatch):
    broadcast = AsyncMock(return_value=3)
    monkeypatch.setattr(ReminderService, "broadcast", broadcast)

    r = client.post("/admin/workshops/w1/send-reminder")
    assert r.status_code == 200
    assert r.json() == {"message": "Reminders sent to 3 students", "sent_count": 3}
    broadcast.assert_awaited_once_with("w1")


def test_send_reminder_unknown_workshop(client, monkeypatch):
    monkeypatch.setattr(ReminderService, "broadcast", AsyncMock(side_effect=WorkshopNotFound("nope")))

    r = client.post("/admin/workshops/nope/send-reminder")
    assert r.status_code == 404
    assert r.json()["detail"] == "Workshop not found"


class TestAdminKey:
    def test_missing_key_rejected(self, client, monkeypatch):
        monkeypatch.setattr(settings, "ADMIN_API_KEY", "s3cret")
        assert client.post("/admin/reminders/run").status_code == 401

    def test_wrong_key_rejected(self, client, monkeypatch):
        monkeypatch.setattr(settings, "ADMIN_API_KEY", "s3cret")
        r = client.post("/admin/reminders/run", headers={"X-Admin-Key": "guess"})
        assert r.status_code == 401

    def test_correct_key_accepted(self, client, monkeypatch):
        monkeypatch.setattr(settings, "ADMIN_API_KEY", "s3cret")
        r = client.post("/admin/reminders/run", headers={"X-Admin-Key": "s3cret"})
        assert r.status_code == 200

    def test_health_is_public(self, client, monkeypatch):
        monkeypatch.setattr(settings, "ADMIN_API_KEY", "s3cret")
        assert client.get("/health").status_code == 200


class TestTestEmail:
    def test_sent(self, client, mock_email):
        r = client.post("/admin/settings/test-email", json={"email": "admin@studio.test"})
        assert r.status_code == 200
        mock_email.send_test_email.assert_awaited_once_with("admin@studio.test")

    def test_provider_failure(self, client, mock_email):
        mock_email.send_test_email.return_value = False
        r = client.post("/admin/settings/test-email", json={"email": "admin@studio.test"})
        assert r.status_code == 502

    def test_missing_email_is_validation_error(self, client):
        r = client.post("/admin/settings/test-email", json={})
        assert r.status_code == 422
        assert r.json()["error"] == "validation_error"


def test_unhandled_error_hides_internals(client, reminders):
    reminders.run_now.side_effect = RuntimeError("secret dsn in message")
    r = client.post("/admin/reminders/run")
    assert r.status_code == 500
    assert r.json()["error"] == "internal_error"
    assert "secret" not in r.text

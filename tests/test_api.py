"""
End-to-end tests for the HTTP API.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient

from conftest import seed_directory
from interview_scheduler.core.config import Settings
from interview_scheduler.infrastructure.email.mock_email import MockEmailTransport
from interview_scheduler.infrastructure.notifications.memory_sink import MemoryNotificationSink
from interview_scheduler.main import create_app


EMPLOYER = {"X-User-Id": "emp-1", "X-User-Role": "employer"}
ANA = {"X-User-Id": "cand-a", "X-User-Role": "candidate"}
BEN = {"X-User-Id": "cand-b", "X-User-Role": "candidate"}


@pytest.fixture
def sink() -> MemoryNotificationSink:
    return MemoryNotificationSink()


@pytest.fixture
def email() -> MockEmailTransport:
    return MockEmailTransport()


@pytest.fixture
def client(sink, email):
    app_settings = Settings(ENV="test", STORE_PROVIDER="memory", DEFAULT_TIMEZONE="UTC", DIRECTORY_FILE=None)
    app = create_app(app_settings, directory=seed_directory(), email=email, sink=sink)
    with TestClient(app) as test_client:
        yield test_client


def _future_day(days: int = 10) -> str:
    return (datetime.now(timezone.utc) + timedelta(days=days)).date().isoformat()


def _create_slot(client, day: str, start: str = "09:00", end: str = "09:30", capacity: int = 1) -> dict:
    resp = client.post(
        "/api/v1/slots",
        json={"date": day, "start_time": start, "end_time": end, "max_bookings": capacity},
        headers=EMPLOYER,
    )
    assert resp.status_code == 201, resp.text
    return resp.json()["slots"][0]


def test_health(client):
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok"}


def test_booking_lifecycle(client, sink):
    day = _future_day()
    slot = _create_slot(client, day)

    resp = client.get("/api/v1/availability", params={"employer_id": "emp-1", "start": day, "end": day})
    assert resp.status_code == 200
    assert [s["id"] for s in resp.json()["slots"]] == [slot["id"]]
    assert list(resp.json()["days"]) == [day]

    resp = client.post("/api/v1/bookings", json={"slot_id": slot["id"], "job_id": "job-1"}, headers=ANA)
    assert resp.status_code == 201, resp.text
    booking = resp.json()
    assert booking["status"] == "scheduled"
    assert [n.title for n in sink.for_recipient("emp-1")] == ["Interview Booked"]

    resp = client.post("/api/v1/bookings", json={"slot_id": slot["id"], "job_id": "job-1"}, headers=BEN)
    assert resp.status_code == 409
    assert resp.json() == {
        "error": "This time is no longer available, please choose another.",
        "code": "slot_not_open",
    }

    resp = client.get("/api/v1/availability", params={"employer_id": "emp-1", "start": day, "end": day})
    assert resp.json()["slots"] == []
    resp = client.get(
        "/api/v1/availability",
        params={"employer_id": "emp-1", "start": day, "end": day, "view": "employer"},
        headers=EMPLOYER,
    )
    assert resp.json()["slots"][0]["current_bookings"] == 1

    resp = client.post(f"/api/v1/bookings/{booking['id']}/cancel", json={"reason": "conflict"}, headers=EMPLOYER)
    assert resp.status_code == 200
    assert resp.json()["status"] == "cancelled_by_employer"
    assert sink.for_recipient("cand-a")[-1].title == "Interview Cancelled"

    resp = client.post("/api/v1/bookings", json={"slot_id": slot["id"], "job_id": "job-1"}, headers=BEN)
    assert resp.status_code == 201


def test_status_and_notes_endpoints(client):
    slot = _create_slot(client, _future_day())
    booking = client.post("/api/v1/bookings", json={"slot_id": slot["id"], "job_id": "job-1"}, headers=ANA).json()

    resp = client.post(f"/api/v1/bookings/{booking['id']}/status", json={"status": "bogus"}, headers=EMPLOYER)
    assert resp.status_code == 400
    assert resp.json()["code"] == "invalid_status"

    resp = client.post(f"/api/v1/bookings/{booking['id']}/status", json={"status": "no_show_employer"}, headers=ANA)
    assert resp.status_code == 403

    resp = client.post(f"/api/v1/bookings/{booking['id']}/status", json={"status": "confirmed"}, headers=EMPLOYER)
    assert resp.status_code == 200
    assert resp.json()["confirmed_at"] is not None

    resp = client.patch(f"/api/v1/bookings/{booking['id']}/notes", json={"notes": "See you"}, headers=ANA)
    assert resp.json()["candidate_notes"] == "See you"
    resp = client.patch(
        f"/api/v1/bookings/{booking['id']}/notes", json={"notes": "x", "audience": "employer"}, headers=ANA
    )
    assert resp.status_code == 403

    resp = client.get("/api/v1/bookings", params={"upcoming": "true"}, headers=ANA)
    assert resp.json()["count"] == 1
    resp = client.get("/api/v1/bookings/stats", headers=EMPLOYER)
    assert resp.json()["by_status"] == {"confirmed": 1}


def test_reschedule_endpoint(client):
    first = _create_slot(client, _future_day(10))
    second = _create_slot(client, _future_day(11), start="13:00", end="13:30")
    booking = client.post("/api/v1/bookings", json={"slot_id": first["id"], "job_id": "job-1"}, headers=ANA).json()

    resp = client.post(
        f"/api/v1/bookings/{booking['id']}/reschedule",
        json={"new_slot_id": second["id"], "reason": "exam"},
        headers=ANA,
    )
    assert resp.status_code == 200, resp.text
    body = resp.json()
    assert body["status"] == "rescheduled"
    assert body["slot_id"] == second["id"]
    assert body["reschedule_history"][0]["reason"] == "exam"


def test_invitation_flow(client, email):
    slot = _create_slot(client, _future_day(3))
    resp = client.post(
        "/api/v1/invitations",
        json={"application_id": "app-1", "candidate_id": "cand-a", "job_id": "job-1", "new_status": "phone_interview"},
        headers=EMPLOYER,
    )
    assert resp.status_code == 200, resp.text
    invite = resp.json()
    assert invite["invited"] is True
    assert invite["scheduling_link"].endswith(f"/interview/schedule/{invite['token']}")
    assert email.sent[0].subject == "Interview Invitation - Backend Engineer at Acme Corp"

    resp = client.get(f"/api/v1/invitations/{invite['token']}")
    assert resp.status_code == 200
    assert [s["id"] for s in resp.json()["open_slots"]] == [slot["id"]]

    resp = client.post(f"/api/v1/invitations/{invite['token']}/schedule", json={"slot_id": slot["id"]})
    assert resp.status_code == 200, resp.text
    assert resp.json()["status"] == "confirmed"

    resp = client.get(f"/api/v1/invitations/{invite['token']}")
    assert resp.status_code == 409
    assert resp.json()["code"] == "invitation_consumed"

    resp = client.get("/api/v1/invitations/not-a-token")
    assert resp.status_code == 404
    assert resp.json()["code"] == "invalid_invitation"


def test_non_interview_status_is_ignored(client, email):
    resp = client.post(
        "/api/v1/invitations",
        json={"application_id": "app-1", "candidate_id": "cand-a", "job_id": "job-1", "new_status": "reviewed"},
        headers=EMPLOYER,
    )
    assert resp.json() == {
        "invited": False,
        "token": None,
        "booking_id": None,
        "expires_at": None,
        "scheduling_link": None,
    }
    assert email.sent == []


def test_reminder_run_endpoint(client):
    resp = client.post("/api/v1/reminders/run")
    assert resp.status_code == 200
    assert resp.json() == {"reminders": 0, "booking_ids": []}


def test_errors_map_to_status_codes(client):
    assert client.get("/api/v1/bookings/missing", headers=EMPLOYER).status_code == 404
    assert client.get("/api/v1/bookings").status_code == 401
    assert client.get("/api/v1/bookings", headers={"X-User-Id": "x", "X-User-Role": "wizard"}).status_code == 403
    assert client.get("/api/v1/availability", params={"employer_id": "nobody"}).status_code == 404

    day = _future_day()
    _create_slot(client, day)
    resp = client.post(
        "/api/v1/slots", json={"date": day, "start_time": "09:15", "end_time": "09:45"}, headers=EMPLOYER
    )
    assert resp.status_code == 409
    assert resp.json()["code"] == "slot_conflict"
    resp = client.post(
        "/api/v1/slots", json={"date": day, "start_time": "25:00", "end_time": "26:00"}, headers=EMPLOYER
    )
    assert resp.status_code == 400


def test_availability_query_guards(client):
    employer_view = {"employer_id": "emp-1", "view": "employer"}
    assert client.get("/api/v1/availability", params=employer_view).status_code == 401
    resp = client.get("/api/v1/availability", params=employer_view, headers=ANA)
    assert resp.status_code == 403
    assert resp.json()["code"] == "forbidden"
    assert client.get("/api/v1/availability", params=employer_view, headers=EMPLOYER).status_code == 200

    resp = client.get("/api/v1/availability", params={"employer_id": "emp-1", "month": "0000-01"})
    assert resp.status_code == 400
    assert resp.json()["code"] == "validation_error"

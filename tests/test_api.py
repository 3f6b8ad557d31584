"""
End-to-end tests through the HTTP and WebSocket surface
"""

import asyncio
from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient

from app.core.config import settings
from app.core.db import get_db
from app.utils.security import rate_limiter
import main
from main import app


@pytest.fixture
def client(db_session):
    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    rate_limiter.clear()
    yield TestClient(app)
    app.dependency_overrides.clear()


def sign_up_and_login(client, email, role="student", name=None):
    response = client.post("/api/auth/register", json={
        "email": email,
        "password": "pa55word",
        "name": name or email.split("@")[0].title(),
        "role": role
    })
    assert response.status_code == 201
    response = client.post("/api/auth/login", json={"email": email, "password": "pa55word"})
    assert response.status_code == 200
    return {"Authorization": f"Bearer {response.json()['data']['token']}"}


def future(days=1):
    return (datetime.now(timezone.utc) + timedelta(days=days)).isoformat()


@pytest.fixture
def organizer_headers(client):
    return sign_up_and_login(client, "olivia@campus.edu", role="organizer")


@pytest.fixture
def event_id(client, organizer_headers):
    response = client.post("/api/events", headers=organizer_headers, json={
        "title": "Career Fair",
        "description": "Meet employers",
        "date": future(),
        "location": "Main Hall",
        "maxAttendees": 2
    })
    assert response.status_code == 201
    return response.json()["data"]["id"]


def test_health(client):
    assert client.get("/health").json() == {"status": "ok", "liveConnections": 0}


def test_requests_without_token_are_unauthenticated(client):
    response = client.get("/api/events")

    assert response.status_code == 401
    body = response.json()
    assert body["success"] is False
    assert body["error_code"] == "unauthenticated"


def test_verify_returns_identity(client):
    headers = sign_up_and_login(client, "amir@campus.edu")
    user = client.get("/api/auth/verify", headers=headers).json()["data"]["user"]

    assert user["email"] == "amir@campus.edu"
    assert user["role"] == "student"


def test_duplicate_sign_up_and_case_insensitive_login(client):
    sign_up_and_login(client, "bea@campus.edu")

    duplicate = client.post("/api/auth/register", json={
        "email": "BEA@campus.edu", "password": "x", "name": "Bea"
    })
    assert duplicate.status_code == 400

    login = client.post("/api/auth/login", json={"email": "Bea@Campus.edu", "password": "pa55word"})
    assert login.status_code == 200
    assert login.json()["data"]["user"]["email"] == "bea@campus.edu"

    wrong = client.post("/api/auth/login", json={"email": "bea@campus.edu", "password": "nope"})
    assert wrong.status_code == 401


def test_multibyte_password_over_bcrypt_limit_is_a_validation_error(client):
    response = client.post("/api/auth/register", json={
        "email": "eloise@campus.edu", "password": "é" * 40, "name": "Eloise"
    })

    assert response.status_code == 400
    assert response.json()["error_code"] == "validation_error"


def test_spoofed_forwarded_for_does_not_reset_login_limit(client, monkeypatch):
    monkeypatch.setattr(settings, "RATE_LIMIT_PER_MINUTE", 2)
    credentials = {"email": "nobody@campus.edu", "password": "guess"}

    statuses = [
        client.post("/api/auth/login", json=credentials, headers={"X-Forwarded-For": f"198.51.100.{i}"}).status_code
        for i in range(3)
    ]

    assert statuses == [401, 401, 429]


def test_past_event_is_rejected(client, organizer_headers):
    response = client.post("/api/events", headers=organizer_headers, json={
        "title": "Yesterday", "description": "Too late", "date": future(days=-1), "location": "Nowhere"
    })
    assert response.status_code == 400
    assert response.json()["error_code"] == "validation_error"


def test_student_cannot_create_event(client):
    headers = sign_up_and_login(client, "amir@campus.edu")
    response = client.post("/api/events", headers=headers, json={
        "title": "Party", "description": "Fun", "date": future(), "location": "Dorm"
    })
    assert response.status_code == 403


def test_registration_flow(client, organizer_headers, event_id):
    student = sign_up_and_login(client, "amir@campus.edu")

    created = client.post("/api/registrations", headers=student, json={"eventId": event_id})
    assert created.status_code == 201
    registration = created.json()["data"]
    assert registration["status"] == "pending"

    again = client.post("/api/registrations", headers=student, json={"eventId": event_id})
    assert again.status_code == 409

    forbidden = client.put(
        f"/api/registrations/{registration['id']}/status", headers=student, json={"status": "approved"}
    )
    assert forbidden.status_code == 403

    approved = client.put(
        f"/api/registrations/{registration['id']}/status", headers=organizer_headers, json={"status": "approved"}
    )
    assert approved.status_code == 200
    assert approved.json()["data"]["status"] == "approved"

    event = client.get(f"/api/events/{event_id}", headers=student).json()["data"]
    assert event["attendeeCount"] == 1
    assert event["maxAttendees"] == 2
    assert event["userRegistration"]["id"] == registration["id"]

    listed = client.get(f"/api/events/{event_id}/registrations", headers=organizer_headers).json()["data"]
    assert listed[0]["user"]["email"] == "amir@campus.edu"

    assert client.get(f"/api/events/{event_id}/registrations", headers=student).status_code == 403


def test_invalid_status_is_rejected_by_schema(client, organizer_headers, event_id):
    student = sign_up_and_login(client, "amir@campus.edu")
    registration = client.post("/api/registrations", headers=student, json={"eventId": event_id}).json()["data"]

    response = client.put(
        f"/api/registrations/{registration['id']}/status", headers=organizer_headers, json={"status": "maybe"}
    )
    assert response.status_code == 422


def test_update_and_delete_event(client, organizer_headers, event_id):
    other = sign_up_and_login(client, "oscar@campus.edu", role="organizer")

    assert client.put(f"/api/events/{event_id}", headers=other, json={"title": "Mine"}).status_code == 403

    updated = client.put(f"/api/events/{event_id}", headers=organizer_headers, json={"location": "Gym"})
    assert updated.status_code == 200
    assert updated.json()["data"]["location"] == "Gym"
    assert updated.json()["data"]["title"] == "Career Fair"

    deleted = client.delete(f"/api/events/{event_id}", headers=organizer_headers)
    assert deleted.json()["data"] == {"deletedEventId": event_id}

    assert client.get(f"/api/events/{event_id}", headers=organizer_headers).status_code == 404
    assert client.get("/api/events", headers=organizer_headers).json()["data"] == []


def test_websocket_welcome_and_ping(client):
    with client.websocket_connect("/ws/updates") as websocket:
        welcome = websocket.receive_json()
        assert welcome["type"] == "connection"
        assert welcome["connectionCount"] == 1
        assert client.get("/ws/stats").json() == {"totalConnections": 1}

        websocket.send_text("not json")
        websocket.send_json({"type": "ping", "timestamp": 42})
        assert websocket.receive_json() == {"type": "pong", "timestamp": 42}


def test_lifespan_starts_sweeper_and_cancels_it_on_shutdown(monkeypatch):
    events = []

    class RecordingSweeper:
        async def run_forever(self):
            events.append("started")
            try:
                await asyncio.Event().wait()
            except asyncio.CancelledError:
                events.append("cancelled")
                raise

    monkeypatch.setattr(main, "use_firestore", lambda: True)
    monkeypatch.setattr(main, "expiry_sweeper", RecordingSweeper())

    with TestClient(app) as client:
        assert client.get("/health").status_code == 200

    assert events == ["started", "cancelled"]

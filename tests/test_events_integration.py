from __future__ import annotations

import dataclasses
import uuid
from datetime import datetime, timedelta, timezone

from fastapi.testclient import TestClient
from sqlalchemy import select, update

from ezevent.db import SessionLocal
from ezevent.models import Event
from ezevent.models.event import EventStatus
from ezevent.models.user import UserRole
from ezevent.services import events_service
from tests.test_auth_rbac import auth_headers, make_user


def _event_payload(name: str = "Tech Talk", days_ahead: int = 10, **extra) -> dict:
    start = datetime.now(timezone.utc) + timedelta(days=days_ahead)
    return {
        "name": name,
        "description": "An evening of talks",
        "startTime": start.isoformat(),
        "endTime": (start + timedelta(hours=3)).isoformat(),
        "location": "Hall A",
        **extra,
    }


def create_event(client: TestClient, token: str, **kwargs) -> dict:
    resp = client.post("/api/events", json=_event_payload(**kwargs), headers=auth_headers(token))
    assert resp.status_code == 200, resp.text
    return resp.json()["event"]


def _without_auto_approve(monkeypatch):
    monkeypatch.setattr(
        events_service,
        "settings",
        dataclasses.replace(events_service.settings, auto_approve_privileged_events=False),
    )


def test_organizer_creates_auto_approved_event(client: TestClient, db_session):
    token, user_id = make_user(client, db_session, "org@example.com", UserRole.ORGANIZER)

    event = create_event(client, token, name="  Spring Fair  ")
    assert event["name"] == "Spring Fair"
    assert event["status"] == "APPROVED"
    assert event["createdBy"] == user_id
    assert len(event["qrCode"]) == 32
    assert event["shareUrl"] == f"http://testserver.local/student/events/{event['id']}"

    mine = client.get("/api/events/mine", headers=auth_headers(token)).json()
    assert mine["total"] == 1
    assert mine["events"][0]["id"] == event["id"]


def test_each_event_gets_its_own_qr_code(client: TestClient, db_session):
    token, _ = make_user(client, db_session, "org@example.com", UserRole.ORGANIZER)
    first = create_event(client, token, name="One")
    second = create_event(client, token, name="Two")
    assert first["qrCode"] != second["qrCode"]


def test_create_event_validation(client: TestClient, db_session):
    token, _ = make_user(client, db_session, "org@example.com", UserRole.ORGANIZER)
    headers = auth_headers(token)

    start = datetime(2030, 5, 1, 9, 0, tzinfo=timezone.utc)
    resp = client.post(
        "/api/events",
        json={
            "name": "Backwards",
            "startTime": start.isoformat(),
            "endTime": (start - timedelta(hours=1)).isoformat(),
        },
        headers=headers,
    )
    assert resp.status_code == 422

    resp = client.post(
        "/api/events",
        json={"name": "Naive", "startTime": "2030-05-01T09:00:00", "endTime": "2030-05-01T10:00:00"},
        headers=headers,
    )
    assert resp.status_code == 422

    resp = client.post("/api/events", json=_event_payload(name="   "), headers=headers)
    assert resp.status_code == 422


def _parse_utc(value: str) -> datetime:
    parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    assert parsed.utcoffset() == timedelta(0), value
    return parsed


def test_event_times_keep_utc_offset(client: TestClient, db_session):
    token, _ = make_user(client, db_session, "org@example.com", UserRole.ORGANIZER)
    resp = client.post(
        "/api/events",
        json={
            "name": "Offset",
            "startTime": "2030-05-01T16:00:00+07:00",
            "endTime": "2030-05-01T18:00:00+07:00",
        },
        headers=auth_headers(token),
    )
    assert resp.status_code == 200
    created = resp.json()["event"]
    assert _parse_utc(created["startTime"]) == datetime(2030, 5, 1, 9, 0, tzinfo=timezone.utc)
    assert _parse_utc(created["endTime"]) == datetime(2030, 5, 1, 11, 0, tzinfo=timezone.utc)
    _parse_utc(created["createdAt"])

    detail = client.get("/api/events/detail", params={"id": created["id"]}).json()["event"]
    assert _parse_utc(detail["startTime"]) == datetime(2030, 5, 1, 9, 0, tzinfo=timezone.utc)

    listed = client.get("/api/events").json()["events"][0]
    assert _parse_utc(listed["endTime"]) == datetime(2030, 5, 1, 11, 0, tzinfo=timezone.utc)


def test_public_list_only_shows_approved(client: TestClient, db_session, monkeypatch):
    token, _ = make_user(client, db_session, "org@example.com", UserRole.ORGANIZER)
    approved = create_event(client, token, name="Visible")

    _without_auto_approve(monkeypatch)
    pending = create_event(client, token, name="Hidden")
    assert pending["status"] == "PENDING"

    resp = client.get("/api/events")
    assert resp.status_code == 200
    ids = [e["id"] for e in resp.json()["events"]]
    assert ids == [approved["id"]]
    assert "qrCode" not in resp.json()["events"][0]


def test_admin_reviews_pending_event(client: TestClient, db_session, monkeypatch):
    org_token, _ = make_user(client, db_session, "org@example.com", UserRole.ORGANIZER)
    admin_token, _ = make_user(client, db_session, "admin@example.com", UserRole.ADMIN)

    _without_auto_approve(monkeypatch)
    to_approve = create_event(client, org_token, name="Approve me")
    to_reject = create_event(client, org_token, name="Reject me")

    resp = client.post(
        "/api/events/approve",
        json={"eventId": to_approve["id"], "status": "APPROVED"},
        headers=auth_headers(admin_token),
    )
    assert resp.status_code == 200
    assert resp.json()["event"]["status"] == "APPROVED"

    resp = client.post(
        "/api/events/approve",
        json={"eventId": to_reject["id"], "status": "REJECTED"},
        headers=auth_headers(admin_token),
    )
    assert resp.status_code == 200
    assert resp.json()["event"]["status"] == "REJECTED"

    # terminal states cannot be reviewed again
    resp = client.post(
        "/api/events/approve",
        json={"eventId": to_reject["id"], "status": "APPROVED"},
        headers=auth_headers(admin_token),
    )
    assert resp.status_code == 409
    assert resp.json()["detail"]["code"] == "EVENT_NOT_PENDING"


def test_approve_rejects_bad_input(client: TestClient, db_session):
    org_token, _ = make_user(client, db_session, "org@example.com", UserRole.ORGANIZER)
    admin_token, _ = make_user(client, db_session, "admin@example.com", UserRole.ADMIN)
    event = create_event(client, org_token)

    resp = client.post(
        "/api/events/approve",
        json={"eventId": str(uuid.uuid4()), "status": "APPROVED"},
        headers=auth_headers(admin_token),
    )
    assert resp.status_code == 404

    resp = client.post(
        "/api/events/approve",
        json={"eventId": event["id"], "status": "CANCELLED"},
        headers=auth_headers(admin_token),
    )
    assert resp.status_code == 422

    resp = client.post(
        "/api/events/approve",
        json={"eventId": event["id"], "status": "APPROVED"},
        headers=auth_headers(org_token),
    )
    assert resp.status_code == 403


def test_auto_approve_batch(client: TestClient, db_session, monkeypatch):
    org_token, _ = make_user(client, db_session, "org@example.com", UserRole.ORGANIZER)
    admin_token, _ = make_user(client, db_session, "admin@example.com", UserRole.ADMIN)

    _without_auto_approve(monkeypatch)
    create_event(client, org_token, name="A")
    create_event(client, org_token, name="B")

    resp = client.post("/api/events/auto-approve", headers=auth_headers(admin_token))
    assert resp.status_code == 200
    assert {e["name"] for e in resp.json()["approvedEvents"]} == {"A", "B"}
    assert all(e["status"] == "APPROVED" for e in resp.json()["approvedEvents"])

    resp = client.post("/api/events/auto-approve", headers=auth_headers(admin_token))
    assert resp.json()["approvedEvents"] == []


def test_delete_event_requires_ownership(client: TestClient, db_session):
    owner_token, _ = make_user(client, db_session, "owner@example.com", UserRole.ORGANIZER)
    other_token, _ = make_user(client, db_session, "other@example.com", UserRole.ORGANIZER)
    admin_token, _ = make_user(client, db_session, "admin@example.com", UserRole.ADMIN)

    first = create_event(client, owner_token, name="First")
    second = create_event(client, owner_token, name="Second")

    resp = client.post(
        "/api/events/delete", json={"eventId": first["id"]}, headers=auth_headers(other_token)
    )
    assert resp.status_code == 403
    assert resp.json()["detail"]["code"] == "NOT_EVENT_OWNER"

    resp = client.post(
        "/api/events/delete", json={"eventId": first["id"]}, headers=auth_headers(owner_token)
    )
    assert resp.status_code == 200

    resp = client.post(
        "/api/events/delete", json={"eventId": second["id"]}, headers=auth_headers(admin_token)
    )
    assert resp.status_code == 200

    resp = client.post(
        "/api/events/delete", json={"eventId": second["id"]}, headers=auth_headers(admin_token)
    )
    assert resp.status_code == 404
    assert client.get("/api/events").json()["total"] == 0


def test_event_detail_visibility(client: TestClient, db_session, monkeypatch):
    org_token, _ = make_user(client, db_session, "org@example.com", UserRole.ORGANIZER)
    student_token, _ = make_user(client, db_session, "student@example.com")
    approved = create_event(client, org_token, name="Open")

    resp = client.get("/api/events/detail", params={"id": approved["id"]})
    assert resp.status_code == 200
    detail = resp.json()["event"]
    assert detail["creator"]["email"] == "org@example.com"
    assert detail["qrCode"] is None

    resp = client.get(
        "/api/events/detail", params={"id": approved["id"]}, headers=auth_headers(org_token)
    )
    assert resp.json()["event"]["qrCode"] == approved["qrCode"]

    _without_auto_approve(monkeypatch)
    pending = create_event(client, org_token, name="Draft")
    resp = client.get(
        "/api/events/detail", params={"id": pending["id"]}, headers=auth_headers(student_token)
    )
    assert resp.status_code == 404
    resp = client.get(
        "/api/events/detail", params={"id": pending["id"]}, headers=auth_headers(org_token)
    )
    assert resp.status_code == 200


def test_available_events(client: TestClient, db_session):
    org_token, _ = make_user(client, db_session, "org@example.com", UserRole.ORGANIZER)
    student_token, _ = make_user(client, db_session, "student@example.com")

    later = create_event(client, org_token, name="Later", days_ahead=20)
    sooner = create_event(client, org_token, name="Sooner", days_ahead=2)
    create_event(client, org_token, name="Finished", days_ahead=-5)

    resp = client.post(
        "/api/events/register", json={"eventId": sooner["id"]}, headers=auth_headers(student_token)
    )
    assert resp.status_code == 200

    resp = client.get("/api/events/available", headers=auth_headers(student_token))
    assert resp.status_code == 200
    events = resp.json()["events"]
    assert [e["id"] for e in events] == [sooner["id"], later["id"]]
    assert events[0]["isRegistered"] is True
    assert events[0]["participantCount"] == 1
    assert events[1]["isRegistered"] is False

    anonymous = client.get("/api/events/available").json()["events"]
    assert not any(e["isRegistered"] for e in anonymous)


def test_event_qr_image_for_owner(client: TestClient, db_session):
    org_token, _ = make_user(client, db_session, "org@example.com", UserRole.ORGANIZER)
    student_token, _ = make_user(client, db_session, "student@example.com")
    event = create_event(client, org_token)

    resp = client.get(
        "/api/events/qr-image", params={"eventId": event["id"]}, headers=auth_headers(org_token)
    )
    assert resp.status_code == 200
    body = resp.json()
    assert body["qrCode"] == event["qrCode"]
    assert body["qrCodeImage"].startswith("data:image/png;base64,")

    resp = client.get(
        "/api/events/qr-image", params={"eventId": event["id"]}, headers=auth_headers(student_token)
    )
    assert resp.status_code == 403


def test_admin_lists_all_events_with_counts(client: TestClient, db_session, monkeypatch):
    org_token, _ = make_user(client, db_session, "org@example.com", UserRole.ORGANIZER)
    admin_token, _ = make_user(client, db_session, "admin@example.com", UserRole.ADMIN)
    student_token, _ = make_user(client, db_session, "student@example.com")

    event = create_event(client, org_token, name="Counted")
    _without_auto_approve(monkeypatch)
    create_event(client, org_token, name="Pending")
    client.post(
        "/api/events/register", json={"eventId": event["id"]}, headers=auth_headers(student_token)
    )

    resp = client.get("/api/admin/events", headers=auth_headers(admin_token))
    assert resp.status_code == 200
    by_name = {e["name"]: e for e in resp.json()["events"]}
    assert by_name["Counted"]["registrationCount"] == 1
    assert by_name["Pending"]["registrationCount"] == 0
    assert by_name["Pending"]["status"] == "PENDING"


def test_auto_approve_leaves_event_rejected_after_read(client: TestClient, db_session, monkeypatch):
    org_token, _ = make_user(client, db_session, "org@example.com", UserRole.ORGANIZER)
    admin_token, _ = make_user(client, db_session, "admin@example.com", UserRole.ADMIN)

    _without_auto_approve(monkeypatch)
    kept = create_event(client, org_token, name="Kept")
    rejected = create_event(client, org_token, name="Rejected")

    read_candidates = events_service._pending_privileged_event_ids

    def read_then_reject(db):
        ids = read_candidates(db)
        # another admin rejects one of the candidates before the batch writes
        other = SessionLocal()
        try:
            other.execute(
                update(Event)
                .where(Event.id == uuid.UUID(rejected["id"]))
                .values(status=EventStatus.REJECTED)
            )
            other.commit()
        finally:
            other.close()
        return ids

    monkeypatch.setattr(events_service, "_pending_privileged_event_ids", read_then_reject)

    resp = client.post("/api/events/auto-approve", headers=auth_headers(admin_token))
    assert resp.status_code == 200
    assert [e["id"] for e in resp.json()["approvedEvents"]] == [kept["id"]]

    status = db_session.scalar(select(Event.status).where(Event.id == uuid.UUID(rejected["id"])))
    assert status == EventStatus.REJECTED

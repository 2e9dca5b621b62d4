from __future__ import annotations

from datetime import datetime, timedelta, timezone

import jwt
from fastapi.testclient import TestClient
from sqlalchemy import select, update

from ezevent.auth.jwt import create_access_token
from ezevent.auth.password import verify_password
from ezevent.core.config import settings
from ezevent.models import User
from ezevent.models.user import UserRole


def auth_headers(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


def register(
    client: TestClient,
    email: str,
    password: str = "StrongPass123",
    name: str = "Test User",
    **extra,
):
    return client.post(
        "/api/auth/register",
        json={"email": email, "password": password, "name": name, **extra},
    )


def login(client: TestClient, email: str, password: str = "StrongPass123"):
    return client.post(
        "/api/auth/login",
        json={"email": email, "password": password},
    )


def make_user(client: TestClient, db_session, email: str, role: UserRole = UserRole.STUDENT):
    """Register + log in a user with ``role``; returns (token, user_id)."""
    resp = register(client, email)
    assert resp.status_code == 200, resp.text
    if role != UserRole.STUDENT:
        db_session.execute(update(User).where(User.email == email).values(role=role))
        db_session.commit()

    body = login(client, email).json()
    return body["token"], body["user"]["id"]


def test_register_then_login_works(client: TestClient):
    resp = register(client, "reg1@example.com", phone="+84 912-345", organization="EZ Uni")
    assert resp.status_code == 200
    user = resp.json()["user"]
    assert user["email"] == "reg1@example.com"
    assert user["role"] == "STUDENT"
    assert user["organization"] == "EZ Uni"
    assert "password" not in user and "passwordHash" not in user

    resp2 = login(client, "reg1@example.com")
    assert resp2.status_code == 200
    body = resp2.json()
    assert body["token"]
    assert body["user"]["email"] == "reg1@example.com"

    claims = jwt.decode(
        body["token"],
        settings.jwt_secret,
        algorithms=[settings.jwt_algorithm],
        audience=settings.jwt_audience,
    )
    assert claims["sub"] == body["user"]["id"]
    assert claims["email"] == "reg1@example.com"
    assert claims["role"] == "STUDENT"


def test_password_is_hashed(client: TestClient, db_session):
    register(client, "hash@example.com", password="secret99")
    user = db_session.scalar(select(User).where(User.email == "hash@example.com"))
    assert user.password_hash != "secret99"
    assert verify_password("secret99", user.password_hash)


def test_register_duplicate_email_conflicts(client: TestClient):
    assert register(client, "dup@example.com").status_code == 200
    resp = register(client, "DUP@example.com")
    assert resp.status_code == 409


def test_register_validation(client: TestClient):
    assert register(client, "not-an-email").status_code == 422
    assert register(client, "short@example.com", password="123").status_code == 422
    assert register(client, "phone@example.com", phone="abc").status_code == 422
    assert register(client, "name@example.com", name="x" * 101).status_code == 422


def test_register_cannot_self_assign_admin(client: TestClient):
    resp = register(client, "sneaky@example.com", role="ADMIN")
    assert resp.status_code == 422

    resp = register(client, "org@example.com", role="ORGANIZER")
    assert resp.status_code == 200
    assert resp.json()["user"]["role"] == "ORGANIZER"


def test_login_rejects_bad_credentials(client: TestClient):
    register(client, "login@example.com")
    assert login(client, "login@example.com", password="WrongPass123").status_code == 401
    assert login(client, "missing@example.com").status_code == 401


def test_me_returns_profile(client: TestClient, db_session):
    token, user_id = make_user(client, db_session, "me@example.com")
    resp = client.get("/api/auth/me", headers=auth_headers(token))
    assert resp.status_code == 200
    assert resp.json()["id"] == user_id
    assert resp.json()["lastLoginAt"] is not None


def test_missing_and_invalid_tokens_are_unauthorized(client: TestClient):
    resp = client.get("/api/events/mine")
    assert resp.status_code == 401
    assert resp.headers["www-authenticate"] == "Bearer"

    resp = client.get("/api/events/mine", headers={"Authorization": "Token abc"})
    assert resp.status_code == 401

    resp = client.get("/api/events/mine", headers=auth_headers("not-a-jwt"))
    assert resp.status_code == 401


def test_expired_and_foreign_tokens_are_unauthorized(client: TestClient, db_session):
    _, user_id = make_user(client, db_session, "exp@example.com")

    expired = create_access_token(user_id, "exp@example.com", "STUDENT", ttl_seconds=-60)
    assert client.get("/api/events/mine", headers=auth_headers(expired)).status_code == 401

    now = datetime.now(timezone.utc)
    forged = jwt.encode(
        {
            "sub": user_id,
            "email": "exp@example.com",
            "role": "ADMIN",
            "iat": int(now.timestamp()),
            "exp": int((now + timedelta(hours=1)).timestamp()),
            "iss": settings.jwt_issuer,
            "aud": settings.jwt_audience,
        },
        "some-other-secret-that-is-long-enough",
        algorithm="HS256",
    )
    assert client.get("/api/admin/events", headers=auth_headers(forged)).status_code == 401


def test_rbac_student_blocked_from_organizer_route(client: TestClient, db_session):
    token, _ = make_user(client, db_session, "attendee@example.com")

    resp = client.post(
        "/api/events",
        json={
            "name": "Attendee Event",
            "startTime": "2030-01-01T09:00:00+00:00",
            "endTime": "2030-01-01T17:00:00+00:00",
        },
        headers=auth_headers(token),
    )
    assert resp.status_code == 403
    assert resp.json()["detail"]["code"] == "FORBIDDEN"


def test_rbac_organizer_blocked_from_admin_routes(client: TestClient, db_session):
    token, _ = make_user(client, db_session, "org1@example.com", UserRole.ORGANIZER)

    assert client.get("/api/admin/events", headers=auth_headers(token)).status_code == 403
    resp = client.post(
        "/api/events/checkin",
        json={"qrCode": "whatever"},
        headers=auth_headers(token),
    )
    assert resp.status_code == 403


def test_rbac_admin_allowed_everywhere(client: TestClient, db_session):
    token, _ = make_user(client, db_session, "admin@example.com", UserRole.ADMIN)

    assert client.get("/api/admin/events", headers=auth_headers(token)).status_code == 200

    ev = client.post(
        "/api/events",
        json={
            "name": "Admin Event",
            "startTime": "2030-01-01T09:00:00+00:00",
            "endTime": "2030-01-01T17:00:00+00:00",
        },
        headers=auth_headers(token),
    )
    assert ev.status_code == 200

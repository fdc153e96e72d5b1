from datetime import timedelta

from sqlalchemy import select, update

from schoolms.core.config import settings
from schoolms.models import AuditLog, UserRole, UserSession
from schoolms.utils.dates import utcnow
from tests.conftest import DEFAULT_PASSWORD, create_user, login


async def test_login_returns_token_and_user(client, admin_user):
    response = await client.post(
        "/api/v1/auth/login",
        json={"email": "ADMIN@school.example.com", "password": DEFAULT_PASSWORD},
    )

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["token_type"] == "bearer"
    assert data["access_token"]
    assert data["user"]["email"] == "admin@school.example.com"
    assert data["user"]["role"] == "ADMIN"


async def test_login_with_wrong_password_is_audited(client, db_session, admin_user):
    response = await client.post(
        "/api/v1/auth/login",
        json={"email": admin_user.email, "password": "wrong-password"},
    )

    assert response.status_code == 401
    body = response.json()
    assert body["success"] is False
    assert body["message"] == "Invalid email or password"

    result = await db_session.execute(select(AuditLog).where(AuditLog.action == "LOGIN"))
    entry = result.scalar_one()
    assert entry.status == "FAIL"


async def test_inactive_user_cannot_login(client, db_session):
    await create_user(db_session, UserRole.STAFF, "gone@school.example.com", is_active=False)

    response = await client.post(
        "/api/v1/auth/login",
        json={"email": "gone@school.example.com", "password": DEFAULT_PASSWORD},
    )

    assert response.status_code == 401


async def test_me_requires_token(client):
    response = await client.get("/api/v1/auth/me")

    assert response.status_code == 401
    assert response.headers["www-authenticate"] == "Bearer"


async def test_me_rejects_garbage_token(client):
    response = await client.get("/api/v1/auth/me", headers={"Authorization": "Bearer not-a-jwt"})

    assert response.status_code == 401
    assert response.json()["message"] == "Invalid token"


async def test_me_returns_current_user(client, admin_headers):
    response = await client.get("/api/v1/auth/me", headers=admin_headers)

    assert response.status_code == 200
    assert response.json()["data"]["email"] == "admin@school.example.com"


async def test_logout_revokes_session(client, admin_headers):
    response = await client.post("/api/v1/auth/logout", headers=admin_headers)
    assert response.status_code == 200

    response = await client.get("/api/v1/auth/me", headers=admin_headers)
    assert response.status_code == 401
    assert response.json()["message"] == "Session has been revoked"


async def test_idle_session_is_revoked(client, db_session, admin_headers, fake_redis):
    await db_session.execute(
        update(UserSession).values(last_activity_at=utcnow() - timedelta(hours=2))
    )
    await db_session.commit()
    fake_redis.store.clear()

    response = await client.get("/api/v1/auth/me", headers=admin_headers)

    assert response.status_code == 401
    assert response.json()["message"] == "Session expired due to inactivity"
    session = (await db_session.execute(select(UserSession))).scalar_one()
    assert session.revoked_at is not None

    violations = await db_session.execute(
        select(AuditLog).where(AuditLog.action == "SESSION_SECURITY_VIOLATION")
    )
    assert violations.scalar_one().details["reason"] == "idle_timeout"


async def test_client_ip_taken_from_first_forwarded_hop(client, db_session, admin_user):
    response = await client.post(
        "/api/v1/auth/login",
        json={"email": admin_user.email, "password": DEFAULT_PASSWORD},
        headers={"X-Forwarded-For": "203.0.113.5, 10.0.0.1"},
    )
    assert response.status_code == 200

    session = (await db_session.execute(select(UserSession))).scalar_one()
    assert session.ip_address == "203.0.113.5"


async def test_ip_change_rejected_when_validation_enabled(client, admin_user, monkeypatch):
    monkeypatch.setattr(settings, "session_validate_ip", True)
    response = await client.post(
        "/api/v1/auth/login",
        json={"email": admin_user.email, "password": DEFAULT_PASSWORD},
        headers={"X-Forwarded-For": "203.0.113.5"},
    )
    token = response.json()["data"]["access_token"]

    response = await client.get(
        "/api/v1/auth/me",
        headers={"Authorization": f"Bearer {token}", "X-Forwarded-For": "198.51.100.7"},
    )

    assert response.status_code == 401


async def test_user_agent_change_only_warns(client, admin_user):
    headers = await login(client, admin_user.email, user_agent="browser-a")
    headers["User-Agent"] = "browser-b"

    response = await client.get("/api/v1/auth/me", headers=headers)

    assert response.status_code == 200


async def test_wrong_role_is_forbidden(client, teacher_headers):
    response = await client.post("/api/v1/rooms", json={"room_no": "T-1"}, headers=teacher_headers)

    assert response.status_code == 403
    assert response.json()["error"]["type"] == "ForbiddenError"


async def test_super_admin_passes_role_checks(client, db_session):
    await create_user(db_session, UserRole.SUPER_ADMIN, "root@school.example.com")
    headers = await login(client, "root@school.example.com")

    response = await client.post("/api/v1/rooms", json={"room_no": "S-1"}, headers=headers)

    assert response.status_code == 201


async def test_audit_log_listing_is_admin_only(client, admin_headers, teacher_headers):
    await client.post("/api/v1/rooms", json={"room_no": "A-1"}, headers=admin_headers)

    response = await client.get("/api/v1/audit-logs?module=ROOM", headers=admin_headers)
    assert response.status_code == 200
    items = response.json()["data"]["items"]
    assert [i["action"] for i in items] == ["CREATE_ROOM"]

    response = await client.get("/api/v1/audit-logs", headers=teacher_headers)
    assert response.status_code == 403


async def test_admin_password_reset(client, db_session, admin_headers, teacher_user, teacher_headers):
    response = await client.post(
        f"/api/v1/auth/users/{teacher_user.id}/reset-password", headers=admin_headers
    )

    assert response.status_code == 200
    temporary_password = response.json()["data"]["temporary_password"]
    assert (await client.get("/api/v1/auth/me", headers=teacher_headers)).status_code == 401

    response = await client.post(
        "/api/v1/auth/login", json={"email": teacher_user.email, "password": DEFAULT_PASSWORD}
    )
    assert response.status_code == 401
    await login(client, teacher_user.email, temporary_password)
    assert teacher_user.need_password_change is True

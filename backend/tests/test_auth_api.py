"""API tests for admin login and the audit trail."""

from jose import jwt

from agency_admin.bootstrap import create_admin
from agency_admin.core.config import get_settings
from agency_admin.core.security import decode_token
from agency_admin.models import AdminUser

from conftest import ADMIN_EMAIL, ADMIN_PASSWORD

LOGIN_URL = "/api/auth/login"


def login(client, password=ADMIN_PASSWORD, username=ADMIN_EMAIL):
    return client.post(LOGIN_URL, data={"username": username, "password": password})


class TestLogin:
    def test_success_returns_an_admin_token(self, client, admin_user):
        response = login(client)

        assert response.status_code == 200
        body = response.json()
        assert body["token_type"] == "bearer"

        claims = decode_token(body["access_token"])
        assert claims["sub"] == str(admin_user.id)
        assert claims["role"] == "admin"
        assert claims["typ"] == "access"

    def test_token_from_login_opens_admin_routes(self, client, admin_user):
        token = login(client).json()["access_token"]

        response = client.get("/api/admin/errors", headers={"Authorization": f"Bearer {token}"})

        assert response.status_code == 200

    def test_wrong_password(self, client, admin_user):
        response = login(client, password="wrong")

        assert response.status_code == 400
        assert response.json() == {"detail": "Incorrect email or password"}

    def test_unknown_user(self, client):
        assert login(client, username="nobody@agency.test").status_code == 400

    def test_locks_after_repeated_failures(self, client, admin_user, db_session):
        for _ in range(get_settings().LOGIN_MAX_ATTEMPTS):
            assert login(client, password="wrong").status_code == 400

        response = login(client)

        assert response.status_code == 423
        db_session.expire_all()
        assert db_session.get(AdminUser, admin_user.id).locked_until is not None

    def test_token_signed_with_another_key_is_rejected(self, client, admin_user):
        settings = get_settings()
        forged = jwt.encode(
            {"sub": str(admin_user.id), "typ": "access", "role": "admin", "sv": 0},
            "another-key",
            algorithm=settings.JWT_ALGORITHM,
        )

        response = client.get("/api/admin/errors", headers={"Authorization": f"Bearer {forged}"})

        assert response.status_code == 401


def test_audit_log_lists_login_events(client, admin_user, auth_headers):
    login(client, password="wrong")
    login(client)

    response = client.get("/api/admin/audit", headers=auth_headers)

    assert response.status_code == 200
    actions = [entry["action"] for entry in response.json()]
    assert actions[:2] == ["login_success", "login_failed"]
    assert all(entry["user_id"] == admin_user.id for entry in response.json())


def test_create_admin_skips_existing_email(db_session, admin_user):
    assert create_admin(db_session, ADMIN_EMAIL, "Someone Else", "another-password") is None
    assert db_session.query(AdminUser).count() == 1

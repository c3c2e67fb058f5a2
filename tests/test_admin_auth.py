"""Tests for admin login, session checks and logout."""

from datetime import timedelta

from appforge.security import MAX_LOGIN_ATTEMPTS, SESSION_COOKIE, VIEW_ORDERS, AdminUser

from conftest import ADMIN_EMAIL, ADMIN_PASSWORD


def _login(client, **overrides):
    credentials = {"email": ADMIN_EMAIL, "password": ADMIN_PASSWORD}
    credentials.update(overrides)
    return client.post("/api/admin/auth", json=credentials)


class TestLogin:
    def test_success_sets_session_cookie(self, client):
        response = _login(client)

        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["admin"]["email"] == ADMIN_EMAIL
        assert data["admin"]["role"] == "super_admin"
        assert data["session"]["isCurrentSession"] is True
        assert client.cookies.get(SESSION_COOKIE) == data["token"]

        cookie_header = response.headers["set-cookie"].lower()
        assert "httponly" in cookie_header
        assert "samesite=strict" in cookie_header
        assert "max-age=28800" in cookie_header

    def test_remember_me_extends_cookie(self, client):
        response = _login(client, rememberMe=True)
        assert f"max-age={30 * 24 * 3600}" in response.headers["set-cookie"].lower()

    def test_wrong_password(self, client):
        response = _login(client, password="not-the-password")
        assert response.status_code == 401
        assert response.json() == {"error": "Invalid credentials"}

    def test_unknown_email(self, client):
        response = _login(client, email="someone@example.com")
        assert response.status_code == 401
        assert response.json() == {"error": "Invalid credentials"}

    def test_malformed_credentials(self, client):
        response = _login(client, email="not-an-email", password="short")

        assert response.status_code == 400
        fields = {detail["field"] for detail in response.json()["details"]}
        assert fields == {"email", "password"}

    def test_account_locks_after_repeated_failures(self, client, app):
        for _ in range(MAX_LOGIN_ATTEMPTS):
            assert _login(client, password="wrong-password").status_code == 401

        response = _login(client)

        assert response.status_code == 423
        assert response.json()["error"].startswith("Account is locked")
        actions = [entry["action"] for entry in app.state.security.audit_log]
        assert "account_locked" in actions

    def test_success_resets_failed_attempts(self, client, app):
        for _ in range(MAX_LOGIN_ATTEMPTS - 1):
            _login(client, password="wrong-password")
        assert _login(client).status_code == 200
        assert app.state.security.admins[0].login_attempts == 0

    def test_login_is_audited_with_client_address(self, client, app):
        client.post(
            "/api/admin/auth",
            json={"email": ADMIN_EMAIL, "password": ADMIN_PASSWORD},
            headers={"X-Forwarded-For": "203.0.113.7, 10.0.0.1", "User-Agent": "pytest-agent"},
        )

        entry = app.state.security.audit_log[0]
        assert entry["action"] == "login_success"
        assert entry["ipAddress"] == "203.0.113.7"
        assert entry["userAgent"] == "pytest-agent"


class TestSessionCheck:
    def test_cookie_session(self, admin_client):
        data = admin_client.get("/api/admin/auth").json()
        assert data["authenticated"] is True
        assert data["admin"]["id"] == "admin-1"

    def test_bearer_token(self, client):
        token = _login(client).json()["token"]
        client.cookies.clear()

        assert client.get("/api/admin/auth").status_code == 401
        response = client.get("/api/admin/auth", headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == 200

    def test_missing_token(self, client):
        response = client.get("/api/admin/auth")
        assert response.status_code == 401
        assert response.json() == {"error": "Not authenticated"}

    def test_garbage_token(self, client):
        response = client.get("/api/admin/auth", headers={"Authorization": "Bearer not.a.jwt"})
        assert response.status_code == 401
        assert response.json() == {"error": "Session invalid"}

    def test_inactive_session_expires(self, admin_client, app):
        session = app.state.security.sessions[0]
        session.last_activity = session.last_activity - timedelta(hours=3)

        assert admin_client.get("/api/admin/auth").status_code == 401
        assert session.is_active is False

    def test_missing_permission_is_forbidden(self, client, app, settings):
        security = app.state.security
        support = AdminUser(id="admin-2", email="support@ece-cli.com", name="Support",
                            role="support", permissions=[VIEW_ORDERS])
        security.admins.append(support)
        session = security.create_session(support, "127.0.0.1", "pytest")
        headers = {"Authorization": f"Bearer {session.token}"}

        assert client.get("/api/admin/orders", headers=headers).status_code == 200
        response = client.get("/api/admin/analytics", headers=headers)
        assert response.status_code == 403
        assert response.json() == {"error": "Insufficient permissions"}


class TestLogout:
    def test_logout_invalidates_token(self, client):
        token = _login(client).json()["token"]

        response = client.delete("/api/admin/auth")

        assert response.status_code == 200
        assert response.json()["success"] is True
        assert client.cookies.get(SESSION_COOKIE) is None
        response = client.get("/api/admin/auth", headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == 401

    def test_logout_without_session(self, client):
        assert client.delete("/api/admin/auth").status_code == 401

"""Tests for the security console: permissions, roles, sessions and the audit log."""

import pytest

from appforge.security import AdminSecurity, AdminUser, AUDIT_LOG_LIMIT, VIEW_ORDERS


def _second_session(app):
    security = app.state.security
    return security.create_session(security.admins[0], "198.51.100.4", "other-browser")


class TestPermissions:
    def test_list_and_categories(self, admin_client):
        data = admin_client.get("/api/admin/security/permissions").json()

        assert len(data["permissions"]) == 19
        assert data["categories"][0] == "Order Management"
        assert len(data["categories"]) == 7

        orders_only = admin_client.get("/api/admin/security/permissions",
                                       params={"category": "Order Management"}).json()
        assert [p["id"] for p in orders_only["permissions"]] == ["orders.view", "orders.manage", "orders.refund"]

    def test_create_update_delete(self, admin_client):
        created = admin_client.post("/api/admin/security/permissions", json={
            "action": "create",
            "params": {"name": "Export Reports", "category": "Analytics & Financial", "level": 4,
                       "resource": "reports", "actions": ["export"]},
        }).json()
        assert created["permission"]["id"] == "reports.export"

        duplicate = admin_client.post("/api/admin/security/permissions", json={
            "action": "create", "params": {"id": "reports.export"},
        })
        assert duplicate.status_code == 409

        updated = admin_client.post("/api/admin/security/permissions", json={
            "action": "update", "params": {"id": "reports.export", "name": "Export All Reports", "level": 5},
        }).json()
        assert updated["permission"]["name"] == "Export All Reports"

        deleted = admin_client.post("/api/admin/security/permissions", json={
            "action": "delete", "params": {"id": "reports.export"},
        })
        assert deleted.status_code == 200
        missing = admin_client.post("/api/admin/security/permissions", json={
            "action": "delete", "params": {"id": "reports.export"},
        })
        assert missing.status_code == 404

    def test_requires_system_admin(self, client, app):
        security = app.state.security
        viewer = AdminUser(id="admin-3", email="viewer@ece-cli.com", name="Viewer",
                           role="viewer", permissions=[VIEW_ORDERS])
        security.admins.append(viewer)
        token = security.create_session(viewer, "127.0.0.1", "pytest").token

        response = client.get("/api/admin/security/permissions", headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == 403


class TestRoles:
    def test_create_update_delete(self, admin_client):
        role = admin_client.post("/api/admin/security/roles", json={
            "action": "create",
            "params": {"name": "Auditor", "description": "Read-only audit access",
                       "permissions": ["security.view"], "level": 4},
        }).json()["role"]
        assert role["adminCount"] == 0

        updated = admin_client.post("/api/admin/security/roles", json={
            "action": "update", "params": {"id": role["id"], "name": "Senior Auditor", "level": 6},
        }).json()["role"]
        assert updated["name"] == "Senior Auditor"

        admin_client.post("/api/admin/security/roles", json={"action": "delete", "params": {"id": role["id"]}})
        names = [r["name"] for r in admin_client.get("/api/admin/security/roles").json()["roles"]]
        assert names == ["Super Admin", "Admin", "Support", "Finance"]

    def test_super_admin_role_cannot_be_deleted(self, admin_client):
        response = admin_client.post("/api/admin/security/roles", json={"action": "delete", "params": {"id": "1"}})
        assert response.status_code == 400
        assert response.json() == {"error": "Cannot delete Super Admin role"}

    def test_unknown_role(self, admin_client):
        response = admin_client.post("/api/admin/security/roles", json={"action": "update", "params": {"id": "99"}})
        assert response.status_code == 404


class TestSessions:
    def test_list_marks_current_session(self, admin_client, app):
        _second_session(app)

        sessions = admin_client.get("/api/admin/security/sessions").json()["sessions"]

        assert len(sessions) == 2
        assert [s["isCurrentSession"] for s in sessions] == [True, False]
        assert sessions[1]["userAgent"] == "other-browser"

    def test_revoke_other_session(self, admin_client, app):
        other = _second_session(app)

        response = admin_client.post("/api/admin/security/sessions", json={"action": "revoke", "sessionId": other.id})

        assert response.status_code == 200
        assert other.is_active is False
        again = admin_client.post("/api/admin/security/sessions", json={"action": "revoke", "sessionId": other.id})
        assert again.status_code == 404

    def test_cannot_revoke_current_session(self, admin_client, app):
        current = app.state.security.sessions[0]
        response = admin_client.post("/api/admin/security/sessions", json={"action": "revoke", "sessionId": current.id})
        assert response.status_code == 400

    def test_revoke_all_keeps_current(self, admin_client, app):
        others = [_second_session(app), _second_session(app)]

        data = admin_client.post("/api/admin/security/sessions", json={"action": "revoke_all"}).json()

        assert data["revokedCount"] == 2
        assert not any(s.is_active for s in others)
        assert admin_client.get("/api/admin/auth").status_code == 200

    def test_emergency_revocation(self, admin_client, app):
        _second_session(app)

        assert admin_client.delete("/api/admin/security/sessions").status_code == 400
        data = admin_client.delete("/api/admin/security/sessions", params={"emergency": "true"}).json()

        assert data["revokedCount"] == 1
        assert app.state.security.audit_log[0]["severity"] == "critical"

    def test_extend_refreshes_activity(self, admin_client, app):
        other = _second_session(app)
        before = other.last_activity

        response = admin_client.post("/api/admin/security/sessions", json={"action": "extend", "sessionId": other.id})

        assert response.status_code == 200
        assert other.last_activity >= before


class TestAudit:
    def test_paging(self, admin_client):
        admin_client.get("/api/admin/orders")
        admin_client.get("/api/admin/orders")

        data = admin_client.get("/api/admin/security/audit", params={"limit": 2, "offset": 0}).json()

        assert data["total"] == 3
        assert [entry["action"] for entry in data["logs"]] == ["VIEW_ORDERS", "VIEW_ORDERS"]

    def test_paging_rejects_negative_values(self, admin_client):
        assert admin_client.get("/api/admin/security/audit", params={"offset": -1}).status_code == 400
        assert admin_client.get("/api/admin/security/audit", params={"limit": -10}).status_code == 400

    def test_log_is_capped(self, settings):
        security = AdminSecurity(settings)
        for i in range(AUDIT_LOG_LIMIT + 5):
            security.log_action("admin@ece-cli.com", "PING", str(i), "127.0.0.1", "pytest")

        assert len(security.audit_log) == AUDIT_LOG_LIMIT
        assert security.audit_log[0]["details"] == str(AUDIT_LOG_LIMIT + 4)

    @pytest.mark.parametrize("role,permissions,allowed", [
        ("super_admin", [], True),
        ("admin", ["system_admin"], True),
        ("support", ["view_orders"], False),
    ])
    def test_permission_checks(self, role, permissions, allowed):
        admin = AdminUser(id="a", email="a@example.com", name="A", role=role, permissions=permissions)
        assert AdminSecurity.has_permission(admin, "manage_refunds") is allowed

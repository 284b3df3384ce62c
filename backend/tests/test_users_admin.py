"""
User administration and profile tests.

Verifies approval, role changes, deactivation, per-user grants and the
self-service profile endpoints.
"""

import io

from stockroom.extensions import db
from stockroom.models import SecurityEvent, UserPermission


class TestUserAdministration:

    def test_list_users(self, client, manager_headers, staff, pending_user):
        data = client.get("/api/users", headers=manager_headers).get_json()
        assert data["count"] == 3

        data = client.get("/api/users?status=pending", headers=manager_headers).get_json()
        assert [u["email"] for u in data["items"]] == [pending_user.email]
        assert data["items"][0]["permissions"] == []

    def test_approve_pending_user(self, client, manager_headers, pending_user):
        resp = client.patch(f"/api/users/{pending_user.id}", json={"status": "active"}, headers=manager_headers)

        assert resp.status_code == 200
        data = resp.get_json()
        assert data["status"] == "active"
        assert data["role"] == "staff"

        event = db.session.query(SecurityEvent).filter_by(event_type="USER_UPDATED").one()
        assert "status pending -> active" in event.reason

    def test_approve_with_role(self, client, manager_headers, pending_user):
        resp = client.patch(
            f"/api/users/{pending_user.id}",
            json={"status": "active", "role": "supervisor"},
            headers=manager_headers,
        )
        assert resp.get_json()["role"] == "supervisor"

    def test_invalid_values(self, client, manager_headers, staff):
        for payload in ({"role": "pending"}, {"role": "owner"}, {"status": "banned"}, {"email": "x@y.z"}, {}):
            resp = client.patch(f"/api/users/{staff.id}", json=payload, headers=manager_headers)
            assert resp.status_code == 400, payload

    def test_cannot_change_self(self, client, manager, manager_headers):
        resp = client.patch(f"/api/users/{manager.id}", json={"role": "staff"}, headers=manager_headers)
        assert resp.status_code == 409

    def test_unknown_user(self, client, manager_headers):
        assert client.patch("/api/users/999", json={"role": "staff"}, headers=manager_headers).status_code == 404
        assert client.get("/api/users/999", headers=manager_headers).status_code == 404

    def test_deactivation_revokes_sessions(self, client, manager_headers, staff, staff_headers):
        assert client.get("/api/auth/me", headers=staff_headers).status_code == 200

        resp = client.patch(f"/api/users/{staff.id}", json={"status": "inactive"}, headers=manager_headers)
        assert resp.status_code == 200

        assert client.get("/api/auth/me", headers=staff_headers).status_code == 401

    def test_role_change_applies_on_next_request(self, client, manager_headers, staff, staff_headers):
        assert client.get("/api/products/export", headers=staff_headers).status_code == 403

        client.patch(f"/api/users/{staff.id}", json={"role": "supervisor"}, headers=manager_headers)

        assert client.get("/api/products/export", headers=staff_headers).status_code == 200


class TestUserPermissions:

    def test_grant_and_revoke(self, client, manager, manager_headers, staff):
        resp = client.post(f"/api/users/{staff.id}/permissions/can_export_data", headers=manager_headers)
        assert resp.status_code == 201
        assert resp.get_json()["granted_by_user_id"] == manager.id

        # Granting twice keeps one row
        client.post(f"/api/users/{staff.id}/permissions/can_export_data", headers=manager_headers)
        assert db.session.query(UserPermission).filter_by(user_id=staff.id).count() == 1

        data = client.get(f"/api/users/{staff.id}/permissions", headers=manager_headers).get_json()
        assert [g["permission_name"] for g in data["items"]] == ["can_export_data"]

        assert client.delete(f"/api/users/{staff.id}/permissions/can_export_data", headers=manager_headers).status_code == 200
        assert client.delete(f"/api/users/{staff.id}/permissions/can_export_data", headers=manager_headers).status_code == 404

    def test_grant_unknown_permission(self, client, manager_headers, staff):
        resp = client.post(f"/api/users/{staff.id}/permissions/can_fly", headers=manager_headers)
        assert resp.status_code == 400

    def test_grant_unknown_user(self, client, manager_headers):
        resp = client.post("/api/users/999/permissions/can_export_data", headers=manager_headers)
        assert resp.status_code == 404

    def test_replace_grants(self, client, manager_headers, staff):
        client.post(f"/api/users/{staff.id}/permissions/can_export_data", headers=manager_headers)

        resp = client.put(
            f"/api/users/{staff.id}/permissions",
            json={"permissions": ["can_add_invoices", "can_view_insights"]},
            headers=manager_headers,
        )

        assert resp.status_code == 200
        assert resp.get_json()["permissions"] == ["can_add_invoices", "can_view_insights"]

        summary = client.get(f"/api/users/{staff.id}", headers=manager_headers).get_json()
        assert summary["permissions"] == ["can_add_invoices", "can_view_insights"]

    def test_replace_grants_validation(self, client, manager_headers, staff):
        resp = client.put(f"/api/users/{staff.id}/permissions", json={"permissions": "all"}, headers=manager_headers)
        assert resp.status_code == 400

        resp = client.put(
            f"/api/users/{staff.id}/permissions",
            json={"permissions": ["can_add_invoices", "can_fly"]},
            headers=manager_headers,
        )
        assert resp.status_code == 400
        assert db.session.query(UserPermission).count() == 0

    def test_me_reflects_grants(self, client, manager_headers, staff, staff_headers):
        client.post(f"/api/users/{staff.id}/permissions/can_view_insights", headers=manager_headers)

        data = client.get("/api/auth/me", headers=staff_headers).get_json()
        assert data["granted"] == ["can_view_insights"]
        assert data["permissions"]["can_view_insights"] is True


class TestProfile:

    def test_get_and_update(self, client, staff_headers):
        assert client.get("/api/profile", headers=staff_headers).get_json()["full_name"] == "Staff"

        resp = client.put("/api/profile", json={"full_name": "  Ana Souza "}, headers=staff_headers)
        assert resp.status_code == 200
        assert resp.get_json()["full_name"] == "Ana Souza"

    def test_cannot_change_own_role(self, client, staff_headers):
        resp = client.put("/api/profile", json={"role": "manager"}, headers=staff_headers)
        assert resp.status_code == 400

    def test_avatar_upload(self, client, staff, staff_headers):
        resp = client.post(
            "/api/profile/avatar",
            data={"file": (io.BytesIO(b"GIF89a"), "me.gif")},
            headers=staff_headers,
            content_type="multipart/form-data",
        )

        assert resp.status_code == 200
        url = resp.get_json()["avatar_url"]
        assert url.startswith(f"/uploads/avatars/{staff.id}/")
        assert client.get(url).data == b"GIF89a"

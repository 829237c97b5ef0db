"""Tests for the assignment, notification, user, and audit endpoints."""

import pytest

from tests.conftest import auth_headers


@pytest.fixture()
def file(client, alice):
    repo = client.post("/api/repositories", json={"name": "r"}, headers=auth_headers("alice")).json()
    return client.post(
        f"/api/repositories/{repo['id']}/files",
        json={"name": "plan.md", "content": "plan"},
        headers=auth_headers("alice"),
    ).json()


class TestAssignmentsApi:

    def test_grant_by_user_id_then_by_email(self, client, file, bob):
        first = client.post(
            f"/api/assignments/{file['id']}",
            json={"user_id": "bob", "role": "viewer"},
            headers=auth_headers("alice"),
        )
        assert first.status_code == 200
        assert first.json()["created"] is True

        second = client.post(
            f"/api/assignments/{file['id']}",
            json={"email": "bob@example.com", "role": "editor"},
            headers=auth_headers("alice"),
        )
        assert second.json()["created"] is False
        assert second.json()["assignment"]["role"] == "editor"

    def test_grant_requires_exactly_one_target(self, client, file, bob):
        resp = client.post(
            f"/api/assignments/{file['id']}",
            json={"user_id": "bob", "email": "bob@example.com", "role": "viewer"},
            headers=auth_headers("alice"),
        )
        assert resp.status_code == 422

    def test_grant_unknown_email_is_404(self, client, file):
        resp = client.post(
            f"/api/assignments/{file['id']}",
            json={"email": "nobody@example.com", "role": "viewer"},
            headers=auth_headers("alice"),
        )
        assert resp.status_code == 404

    @pytest.mark.parametrize("target", [
        {"user_id": "carol"},
        {"user_id": "ghost"},
        {"email": "carol@example.com"},
        {"email": "ghost@example.com"},
    ])
    def test_stranger_cannot_grant_or_discover_users(self, client, file, bob, carol, target):
        resp = client.post(
            f"/api/assignments/{file['id']}",
            json={**target, "role": "viewer"},
            headers=auth_headers("bob"),
        )
        assert resp.status_code == 403
        assert resp.json()["error"] == "FORBIDDEN"

    def test_list_and_revoke(self, client, file, bob):
        client.post(
            f"/api/assignments/{file['id']}",
            json={"user_id": "bob", "role": "viewer"},
            headers=auth_headers("alice"),
        )
        listed = client.get(f"/api/assignments/{file['id']}", headers=auth_headers("alice")).json()
        assert [a["user_id"] for a in listed] == ["bob"]

        resp = client.delete(f"/api/assignments/{file['id']}/bob", headers=auth_headers("alice"))
        assert resp.status_code == 204
        again = client.delete(f"/api/assignments/{file['id']}/bob", headers=auth_headers("alice"))
        assert again.status_code == 404


class TestNotificationsApi:

    def test_request_accept_flow(self, client, file, bob):
        sent = client.post(
            "/api/notifications/request-access",
            json={"resource_id": file["id"]},
            headers=auth_headers("bob"),
        )
        assert sent.status_code == 201
        assert sent.json()["message"] == "Access request sent successfully"

        repeat = client.post(
            "/api/notifications/request-access",
            json={"resource_id": file["id"]},
            headers=auth_headers("bob"),
        )
        assert repeat.status_code == 200
        assert repeat.json()["message"] == "Request already sent"

        inbox = client.get("/api/notifications?status=pending", headers=auth_headers("alice")).json()
        assert len(inbox) == 1
        notification_id = inbox[0]["id"]

        resolved = client.post(
            f"/api/notifications/{notification_id}/resolve",
            json={"action": "accept", "role": "viewer"},
            headers=auth_headers("alice"),
        )
        assert resolved.status_code == 200
        assert resolved.json()["status"] == "accepted"

        content = client.get(f"/api/resources/{file['id']}/content", headers=auth_headers("bob"))
        assert content.content == b"plan"

        sent_list = client.get("/api/notifications/sent", headers=auth_headers("bob")).json()
        assert sent_list[0]["status"] == "accepted"

    def test_own_resource_request_is_400(self, client, file):
        resp = client.post(
            "/api/notifications/request-access",
            json={"resource_id": file["id"]},
            headers=auth_headers("alice"),
        )
        assert resp.status_code == 400
        assert resp.json()["message"] == "You already own this resource"

    def test_resolve_by_stranger_is_403(self, client, file, bob, carol):
        n = client.post(
            "/api/notifications/request-access",
            json={"resource_id": file["id"]},
            headers=auth_headers("bob"),
        ).json()["notification"]
        resp = client.post(
            f"/api/notifications/{n['id']}/resolve",
            json={"action": "reject"},
            headers=auth_headers("carol"),
        )
        assert resp.status_code == 403

    def test_accept_without_role_is_400(self, client, file, bob):
        n = client.post(
            "/api/notifications/request-access",
            json={"resource_id": file["id"]},
            headers=auth_headers("bob"),
        ).json()["notification"]
        resp = client.post(
            f"/api/notifications/{n['id']}/resolve",
            json={"action": "accept"},
            headers=auth_headers("alice"),
        )
        assert resp.status_code == 400

    def test_dismiss(self, client, file, bob):
        n = client.post(
            "/api/notifications/request-access",
            json={"resource_id": file["id"]},
            headers=auth_headers("bob"),
        ).json()["notification"]
        assert client.delete(f"/api/notifications/{n['id']}", headers=auth_headers("alice")).status_code == 204
        assert client.delete(f"/api/notifications/{n['id']}", headers=auth_headers("alice")).status_code == 404


class TestUsersAndAudit:

    def test_me(self, client, alice):
        resp = client.get("/api/users/me", headers=auth_headers("alice"))
        assert resp.json()["user_id"] == "alice"
        assert resp.json()["role"] == "user"

    def test_admin_provisions_user(self, client, admin):
        resp = client.post(
            "/api/users",
            json={"email": "New@Example.com", "display_name": "New"},
            headers=auth_headers("root", role="admin"),
        )
        assert resp.status_code == 201
        assert resp.json()["email"] == "new@example.com"

        dup = client.post(
            "/api/users",
            json={"email": "new@example.com"},
            headers=auth_headers("root", role="admin"),
        )
        assert dup.status_code == 409

    def test_non_admin_cannot_provision(self, client, alice):
        resp = client.post("/api/users", json={"email": "x@example.com"}, headers=auth_headers("alice"))
        assert resp.status_code == 403

    def test_audit_records_grants(self, client, file, admin, bob):
        client.post(
            f"/api/assignments/{file['id']}",
            json={"user_id": "bob", "role": "viewer"},
            headers=auth_headers("alice"),
        )
        entries = client.get(
            f"/api/audit?resource_id={file['id']}", headers=auth_headers("root", role="admin")
        ).json()
        actions = [e["action"] for e in entries]
        assert "grant_create" in actions
        assert "resource_create" in actions

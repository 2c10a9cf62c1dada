"""
Newsroom - Admin Route Tests

Run with: pytest tests/test_admin.py -v
"""

from newsroom.auth import accounts
from newsroom.auth.models import Role
from tests.conftest import API, PASSWORD, auth_headers, headers_for, login_user


class TestUserManagement:

    def test_list_users_open_to_staff(self, client, test_admin, test_editor, test_reader):
        assert client.get(f"{API}/admin/users").status_code == 401
        assert client.get(f"{API}/admin/users", headers=headers_for(client, "reader")).status_code == 403

        response = client.get(f"{API}/admin/users", headers=headers_for(client, "editor"))

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["pagination"]["total"] == 3
        assert all("password" not in u for u in data["users"])

    def test_editor_cannot_create_users(self, client, test_editor):
        response = client.post(
            f"{API}/admin/users",
            json={
                "full_name": "Sneaky Admin",
                "username": "sneaky",
                "email": "sneaky@test.com",
                "password": "sneakypass",
                "role": "admin",
            },
            headers=headers_for(client, "editor"),
        )

        assert response.status_code == 403

    def test_list_users_filter_by_role(self, client, test_admin, test_editor, test_reader):
        response = client.get(
            f"{API}/admin/users", params={"role": "user"}, headers=headers_for(client, "admin")
        )

        users = response.json()["data"]["users"]
        assert [u["username"] for u in users] == ["reader"]

    def test_admin_creates_user_with_role(self, client, test_admin):
        response = client.post(
            f"{API}/admin/users",
            json={
                "full_name": "New Editor",
                "username": "neweditor",
                "email": "neweditor@test.com",
                "password": "editorpass",
                "role": "editor",
            },
            headers=headers_for(client, "admin"),
        )

        assert response.status_code == 201
        assert response.json()["data"]["role"] == "editor"
        assert login_user(client, "neweditor", "editorpass") is not None

    def test_block_toggle(self, client, db_session, test_admin, test_reader):
        headers = headers_for(client, "admin")
        reader_tokens = login_user(client, "reader")

        blocked = client.post(f"{API}/admin/users/{test_reader.id}/block", headers=headers)
        assert blocked.status_code == 200
        assert blocked.json()["data"]["is_blocked"] is True

        # Blocked accounts cannot log in, refresh, or act
        assert client.post(
            f"{API}/users/login", json={"username": "reader", "password": PASSWORD}
        ).status_code == 403
        assert client.post(
            f"{API}/users/refresh-token", json={"refresh_token": reader_tokens["refresh_token"]}
        ).status_code == 401
        assert client.post(
            f"{API}/users/change-password",
            json={"old_password": PASSWORD, "new_password": "whatever1"},
            headers=auth_headers(reader_tokens["access_token"]),
        ).status_code == 403

        unblocked = client.post(f"{API}/admin/users/{test_reader.id}/block", headers=headers)
        assert unblocked.json()["data"]["is_blocked"] is False
        assert login_user(client, "reader") is not None

    def test_cannot_block_admin(self, client, db_session, test_admin, make_user):
        make_user("admin2", Role.ADMIN)
        other = accounts.find_by_identifier(db_session, username="admin2")

        response = client.post(f"{API}/admin/users/{other.id}/block", headers=headers_for(client, "admin"))

        assert response.status_code == 403
        assert response.json()["message"] == "Cannot block an Admin"

    def test_cannot_block_self(self, client, test_admin):
        response = client.post(
            f"{API}/admin/users/{test_admin.id}/block", headers=headers_for(client, "admin")
        )

        assert response.status_code == 403

    def test_cannot_demote_admin(self, client, db_session, test_admin):
        response = client.patch(
            f"{API}/admin/users/{test_admin.id}/role",
            json={"role": "editor"},
            headers=headers_for(client, "admin"),
        )

        assert response.status_code == 403
        db_session.expire_all()
        assert accounts.get_account(db_session, test_admin.id).role == Role.ADMIN

    def test_invalid_role_is_bad_request(self, client, test_admin, test_reader):
        response = client.patch(
            f"{API}/admin/users/{test_reader.id}/role",
            json={"role": "overlord"},
            headers=headers_for(client, "admin"),
        )

        assert response.status_code == 400

    def test_unknown_user_is_not_found(self, client, test_admin):
        response = client.post(
            f"{API}/admin/users/00000000-0000-0000-0000-000000000000/block",
            headers=headers_for(client, "admin"),
        )

        assert response.status_code == 404


class TestDashboard:

    def test_stats_for_staff_only(self, client, test_reporter, test_reader):
        assert client.get(f"{API}/admin/stats", headers=headers_for(client, "reader")).status_code == 403

        response = client.get(f"{API}/admin/stats", headers=headers_for(client, "reporter"))

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["totalUsers"] == 2
        assert data["totalArticles"] == 0
        assert data["totalViews"] == 0
        assert data["latestArticles"] == []


class TestPromotionScenario:
    """Register, get refused, get promoted, succeed."""

    def test_reader_promoted_to_editor_can_publish(self, client, test_admin):
        client.post(
            f"{API}/users/register",
            json={
                "full_name": "Alice",
                "username": "alice",
                "email": "alice@test.com",
                "password": "alicepass",
            },
        )
        alice = login_user(client, "alice", "alicepass")
        assert alice["user"]["role"] == "user"
        alice_headers = auth_headers(alice["access_token"])

        refused = client.post(f"{API}/categories", json={"name": "Politics"}, headers=alice_headers)
        assert refused.status_code == 403

        promoted = client.patch(
            f"{API}/admin/users/{alice['user']['id']}/role",
            json={"role": "editor"},
            headers=headers_for(client, "admin"),
        )
        assert promoted.status_code == 200

        # Same token: the gate reloads the account on every request
        retried = client.post(f"{API}/categories", json={"name": "Politics"}, headers=alice_headers)
        assert retried.status_code == 201

"""
Newsroom - Credential Store Tests

Run with: pytest tests/test_accounts.py -v
"""

import pytest

from newsroom.auth import accounts, flow
from newsroom.auth.models import Role
from newsroom.errors import (
    ConflictError,
    ForbiddenError,
    NotFoundError,
    UnauthorizedError,
    ValidationError,
)
from tests.conftest import PASSWORD


# =============================================================================
# CREATION AND SECRETS
# =============================================================================

class TestCreateAccount:

    @pytest.mark.parametrize(
        "username,email",
        [("alice", "alice@example.com"), ("Bob_99", "BOB@Example.org"), ("c_d", "c.d+tag@mail.co")],
    )
    def test_stored_secret_is_never_the_raw_input(self, db_session, username, email):
        user = accounts.create_account(
            db_session, username=username, email=email, full_name="Some One", password="raw-secret"
        )

        assert user.password != "raw-secret"
        assert user.password.startswith("$2b$")
        assert user.username == username.lower()
        assert user.email == email.lower()
        assert user.role == Role.USER

    def test_verify_secret(self, db_session, test_reader):
        assert accounts.verify_secret(test_reader, PASSWORD) is True
        for wrong in ("", "password123", PASSWORD + " ", "x" * 80):
            assert accounts.verify_secret(test_reader, wrong) is False

    def test_duplicate_username_conflicts(self, db_session, test_reader):
        with pytest.raises(ConflictError):
            accounts.create_account(
                db_session, username="READER", email="new@test.com", full_name="N", password="pw1234"
            )

    def test_duplicate_email_conflicts(self, db_session, test_reader):
        with pytest.raises(ConflictError):
            accounts.create_account(
                db_session, username="newbie", email="reader@test.com", full_name="N", password="pw1234"
            )

    def test_invalid_role_rejected(self, db_session):
        with pytest.raises(ValidationError):
            accounts.create_account(
                db_session, username="x1", email="x1@test.com", full_name="X", password="pw1234",
                role="superuser",
            )

    def test_password_change_rehashes_once(self, db_session, test_reader):
        accounts.set_password(db_session, test_reader, "another-secret")
        db_session.refresh(test_reader)

        assert accounts.verify_secret(test_reader, "another-secret")
        assert not accounts.verify_secret(test_reader, PASSWORD)

    def test_unrelated_update_keeps_digest(self, db_session, test_reader):
        digest = test_reader.password

        accounts.update_details(db_session, test_reader.id, bio="new bio")

        assert test_reader.password == digest


class TestLookup:

    def test_find_by_username_or_email(self, db_session, test_reader):
        assert accounts.find_by_identifier(db_session, username="Reader").id == test_reader.id
        assert accounts.find_by_identifier(db_session, email="READER@test.com").id == test_reader.id

    def test_find_requires_identifier(self, db_session):
        with pytest.raises(ValidationError):
            accounts.find_by_identifier(db_session)

    def test_malformed_id_is_absent(self, db_session):
        assert accounts.get_account(db_session, "not-a-uuid") is None
        with pytest.raises(NotFoundError):
            accounts.get_account_or_404(db_session, "not-a-uuid")

    def test_list_accounts_filters(self, db_session, test_admin, test_editor, test_reader):
        users, total = accounts.list_accounts(db_session, role="editor")
        assert total == 1 and users[0].id == test_editor.id

        users, total = accounts.list_accounts(db_session, search="READ")
        assert total == 1 and users[0].id == test_reader.id

        users, total = accounts.list_accounts(db_session, page=2, limit=2)
        assert total == 3 and len(users) == 1


# =============================================================================
# ADMINISTRATOR PROTECTION
# =============================================================================

class TestAdminProtection:
    """No operation blocks an administrator or moves one to another role."""

    def test_admin_cannot_be_blocked(self, db_session, test_admin):
        with pytest.raises(ForbiddenError):
            accounts.set_blocked(db_session, test_admin.id, True)
        with pytest.raises(ForbiddenError):
            accounts.toggle_blocked(db_session, test_admin.id)

        db_session.refresh(test_admin)
        assert test_admin.is_blocked is False

    @pytest.mark.parametrize("role", [Role.EDITOR, Role.REPORTER, Role.USER, "reporter"])
    def test_admin_cannot_be_demoted(self, db_session, test_admin, role):
        with pytest.raises(ForbiddenError):
            accounts.set_role(db_session, test_admin.id, role)

        db_session.refresh(test_admin)
        assert test_admin.role == Role.ADMIN

    def test_admin_to_admin_is_a_no_op(self, db_session, test_admin):
        assert accounts.set_role(db_session, test_admin.id, Role.ADMIN).role == Role.ADMIN

    def test_blocked_account_cannot_become_admin(self, db_session, make_user):
        blocked = make_user("blocked", blocked=True)

        with pytest.raises(ForbiddenError):
            accounts.set_role(db_session, blocked.id, Role.ADMIN)

    def test_promoted_account_cannot_then_be_blocked(self, db_session, test_editor):
        accounts.set_role(db_session, test_editor.id, Role.ADMIN)

        with pytest.raises(ForbiddenError):
            accounts.set_blocked(db_session, test_editor.id, True)

    def test_unknown_role_is_validation_error(self, db_session, test_reader):
        with pytest.raises(ValidationError):
            accounts.set_role(db_session, test_reader.id, "owner")

    def test_blocking_clears_refresh_token(self, db_session, test_reader):
        accounts.set_refresh_token(db_session, test_reader.id, "stored-token")

        user = accounts.set_blocked(db_session, test_reader.id, True)

        assert user.is_blocked is True
        assert user.refresh_token is None

    def test_toggle_unblocks(self, db_session, make_user):
        blocked = make_user("blocked", blocked=True)

        assert accounts.toggle_blocked(db_session, blocked.id).is_blocked is False


# =============================================================================
# REFRESH ROTATION
# =============================================================================

class TestRotation:

    def test_compare_and_swap(self, db_session, test_reader):
        accounts.set_refresh_token(db_session, test_reader.id, "t1")

        assert accounts.rotate_refresh_token(db_session, test_reader.id, "t1", "t2") is True
        # The loser of a race presents the value that was just replaced
        assert accounts.rotate_refresh_token(db_session, test_reader.id, "t1", "t3") is False

        db_session.refresh(test_reader)
        assert test_reader.refresh_token == "t2"

    def test_flow_refresh_single_use(self, db_session, test_reader):
        result = flow.login(db_session, PASSWORD, username="reader")
        t1 = result.tokens.refresh_token

        t2 = flow.refresh(db_session, t1).refresh_token

        assert t2 != t1
        with pytest.raises(UnauthorizedError):
            flow.refresh(db_session, t1)
        assert flow.refresh(db_session, t2).refresh_token != t2

    def test_flow_login_checks_order(self, db_session, make_user):
        make_user("blocked", blocked=True)

        with pytest.raises(ValidationError):
            flow.login(db_session, PASSWORD)
        with pytest.raises(NotFoundError):
            flow.login(db_session, PASSWORD, username="nobody")
        # Blocked wins over a wrong password
        with pytest.raises(ForbiddenError):
            flow.login(db_session, "wrong", username="blocked")

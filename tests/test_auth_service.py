"""Tests for app.services.auth and app.services.accounts: signup, login, refresh, logout, reset, profile."""

import unittest
from datetime import UTC, datetime, timedelta
from unittest.mock import MagicMock

from app.core.errors import (
    AccountInactiveError,
    AccountNotFoundError,
    AccountRejectedError,
    EmailExistsError,
    InvalidCredentialsError,
    InvalidInputError,
    InvalidRefreshTokenError,
    InvalidTokenError,
    PendingApprovalError,
    TokenExpiredError,
    UnauthorizedError,
)
from app.core.security import verify_password
from app.models import Account
from app.models.account import APPROVAL_PENDING
from app.services import accounts, approval, auth, tokens
from app.services.bootstrap import run_bootstrap
from app.services.permissions import permissions_for
from support import make_account, make_session_factory, make_settings

PASSWORD = "Secret123!"


class AuthServiceTestCase(unittest.TestCase):
    def setUp(self) -> None:
        self.settings = make_settings()
        self.db = make_session_factory()()
        run_bootstrap(self.db, self.settings)
        self.admin = make_account(self.db, "admin@example.com", role_names=("admin",))

    def tearDown(self) -> None:
        self.db.close()

    def _signup_and_approve(self, email: str = "alice@example.com") -> Account:
        account = accounts.register(self.db, self.settings, email, PASSWORD)
        return approval.approve(self.db, self.admin.id, account.id)


class TestRegister(AuthServiceTestCase):
    def test_new_account_is_pending_with_default_role(self) -> None:
        account = accounts.register(
            self.db, self.settings, "  Alice@Example.com ", PASSWORD, full_name="Alice"
        )
        self.assertEqual(account.email, "alice@example.com")
        self.assertEqual(account.approval_status, APPROVAL_PENDING)
        self.assertTrue(account.active)
        self.assertEqual([r.name for r in account.roles], ["user"])
        self.assertNotEqual(account.password_hash, PASSWORD)
        self.assertTrue(verify_password(PASSWORD, account.password_hash))

    def test_display_name_defaults_to_email(self) -> None:
        account = accounts.register(self.db, self.settings, "bob@example.com", PASSWORD)
        self.assertEqual(account.full_name, "bob@example.com")

    def test_duplicate_email_after_normalization(self) -> None:
        accounts.register(self.db, self.settings, "alice@example.com", PASSWORD)
        with self.assertRaises(EmailExistsError):
            accounts.register(self.db, self.settings, "ALICE@example.com ", PASSWORD)

    def test_missing_fields(self) -> None:
        with self.assertRaises(InvalidInputError):
            accounts.register(self.db, self.settings, "", PASSWORD)
        with self.assertRaises(InvalidInputError):
            accounts.register(self.db, self.settings, "carol@example.com", "")
        with self.assertRaises(InvalidInputError):
            accounts.register(self.db, self.settings, "carol@example.com", "short")


class TestLogin(AuthServiceTestCase):
    def test_pending_account_gets_pending_approval_not_invalid_credentials(self) -> None:
        accounts.register(self.db, self.settings, "alice@example.com", PASSWORD)
        with self.assertRaises(PendingApprovalError) as ctx:
            auth.login(self.db, self.settings, "alice@example.com", PASSWORD)
        self.assertNotIsInstance(ctx.exception, InvalidCredentialsError)

    def test_approved_login_returns_tokens_and_permissions(self) -> None:
        account = self._signup_and_approve()
        result = auth.login(self.db, self.settings, "ALICE@example.com", PASSWORD)
        self.assertTrue(result.access_token)
        self.assertTrue(result.refresh_token)
        self.assertEqual(result.expires_in, self.settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60)
        self.assertEqual(set(result.user.permissions), permissions_for(self.db, account.id))
        self.assertEqual(tokens.subject_of(result.access_token, self.settings), account.id)
        self.assertIsNotNone(tokens.find_active_session(self.db, result.refresh_token))

    def test_admin_login_snapshot_matches_resolver(self) -> None:
        result = auth.login(self.db, self.settings, "admin@example.com", "Password123!")
        self.assertEqual(
            tokens.permissions_of(result.access_token, self.settings),
            permissions_for(self.db, self.admin.id),
        )
        self.assertEqual(result.user.roles, ["admin"])

    def test_unknown_email_and_wrong_password_look_the_same(self) -> None:
        self._signup_and_approve()
        with self.assertRaises(InvalidCredentialsError) as unknown:
            auth.login(self.db, self.settings, "nobody@example.com", PASSWORD)
        with self.assertRaises(InvalidCredentialsError) as wrong:
            auth.login(self.db, self.settings, "alice@example.com", "Wrong123!")
        self.assertEqual(unknown.exception.code, wrong.exception.code)
        self.assertEqual(unknown.exception.message, wrong.exception.message)

    def test_rejected_and_inactive(self) -> None:
        rejected = accounts.register(self.db, self.settings, "rej@example.com", PASSWORD)
        approval.reject(self.db, self.admin.id, rejected.id)
        with self.assertRaises(AccountRejectedError):
            auth.login(self.db, self.settings, "rej@example.com", PASSWORD)

        active = self._signup_and_approve("gone@example.com")
        approval.deactivate(self.db, self.admin.id, active.id)
        with self.assertRaises(AccountInactiveError):
            auth.login(self.db, self.settings, "gone@example.com", PASSWORD)

    def test_missing_credentials(self) -> None:
        with self.assertRaises(InvalidInputError):
            auth.login(self.db, self.settings, " ", PASSWORD)
        with self.assertRaises(InvalidInputError):
            auth.login(self.db, self.settings, "alice@example.com", "")


class TestRefreshAndLogout(AuthServiceTestCase):
    def setUp(self) -> None:
        super().setUp()
        self.account = self._signup_and_approve()
        self.login = auth.login(self.db, self.settings, "alice@example.com", PASSWORD)

    def test_refresh_issues_new_distinct_access_token(self) -> None:
        first = auth.refresh(self.db, self.settings, self.login.refresh_token)
        second = auth.refresh(self.db, self.settings, self.login.refresh_token)
        self.assertNotEqual(first.access_token, second.access_token)
        self.assertNotEqual(first.access_token, self.login.access_token)
        self.assertEqual(
            tokens.permissions_of(first.access_token, self.settings),
            tokens.permissions_of(second.access_token, self.settings),
        )

    def test_refresh_picks_up_new_permissions(self) -> None:
        from app.models import Role

        admin_role = self.db.query(Role).filter(Role.name == "admin").one()
        self.account.roles.append(admin_role)
        self.db.commit()
        self.assertNotIn(
            "users:approve", tokens.permissions_of(self.login.access_token, self.settings)
        )
        refreshed = auth.refresh(self.db, self.settings, self.login.refresh_token)
        self.assertIn("users:approve", tokens.permissions_of(refreshed.access_token, self.settings))

    def test_logout_then_refresh_fails(self) -> None:
        auth.logout(self.db, self.login.refresh_token)
        with self.assertRaises(InvalidRefreshTokenError):
            auth.refresh(self.db, self.settings, self.login.refresh_token)

    def test_logout_is_idempotent_and_tolerant(self) -> None:
        auth.logout(self.db, self.login.refresh_token)
        auth.logout(self.db, self.login.refresh_token)
        auth.logout(self.db, None)
        auth.logout(self.db, "not-a-token")

    def test_expired_session_fails(self) -> None:
        session = tokens.find_active_session(self.db, self.login.refresh_token)
        session.expires_at = datetime.now(UTC) - timedelta(minutes=1)
        self.db.commit()
        with self.assertRaises(InvalidRefreshTokenError):
            auth.refresh(self.db, self.settings, self.login.refresh_token)

    def test_unknown_and_access_tokens_fail(self) -> None:
        with self.assertRaises(InvalidRefreshTokenError):
            auth.refresh(self.db, self.settings, "unknown")
        with self.assertRaises(InvalidRefreshTokenError):
            auth.refresh(self.db, self.settings, self.login.access_token)

    def test_rejected_account_cannot_refresh(self) -> None:
        approval.reject(self.db, self.admin.id, self.account.id)
        with self.assertRaises(InvalidRefreshTokenError):
            auth.refresh(self.db, self.settings, self.login.refresh_token)


class TestProfile(AuthServiceTestCase):
    def test_profile_from_access_token(self) -> None:
        account = self._signup_and_approve()
        result = auth.login(self.db, self.settings, "alice@example.com", PASSWORD)
        profile = auth.get_profile(self.db, self.settings, result.access_token)
        self.assertEqual(profile.email, "alice@example.com")
        self.assertEqual(profile.approved_by_user_id, self.admin.id)
        self.assertEqual([r.name for r in profile.roles], ["user"])
        self.assertEqual(profile.id, account.id)

    def test_invalid_token(self) -> None:
        with self.assertRaises(UnauthorizedError):
            auth.get_profile(self.db, self.settings, "garbage")

    def test_deleted_account(self) -> None:
        account = self._signup_and_approve()
        access_token, _ = tokens.issue_access_token(account.id, set(), self.settings)
        self.db.delete(account)
        self.db.commit()
        with self.assertRaises(AccountNotFoundError):
            auth.get_profile(self.db, self.settings, access_token)


class TestPasswordReset(AuthServiceTestCase):
    def setUp(self) -> None:
        super().setUp()
        self.account = self._signup_and_approve()
        self.deliver = MagicMock()

    def _request(self, email: str = "alice@example.com") -> str:
        return auth.request_password_reset(self.db, self.settings, email, deliver=self.deliver)

    def _issued_token(self) -> str:
        return self.deliver.call_args.args[1]

    def test_same_message_for_unknown_email(self) -> None:
        known = self._request()
        unknown = self._request("nobody@example.com")
        self.assertEqual(known, unknown)
        self.deliver.assert_called_once()

    def test_token_stored_with_expiry(self) -> None:
        self._request()
        self.db.refresh(self.account)
        self.assertEqual(self.account.reset_token, self._issued_token())
        self.assertIsNotNone(self.account.reset_token_expiry)

    def test_reset_changes_password_and_is_single_use(self) -> None:
        self._request()
        token = self._issued_token()
        old_login = auth.login(self.db, self.settings, "alice@example.com", PASSWORD)

        auth.reset_password(self.db, self.settings, token, "NewSecret456!")

        self.db.refresh(self.account)
        self.assertIsNone(self.account.reset_token)
        self.assertIsNone(self.account.reset_token_expiry)
        with self.assertRaises(InvalidCredentialsError):
            auth.login(self.db, self.settings, "alice@example.com", PASSWORD)
        auth.login(self.db, self.settings, "alice@example.com", "NewSecret456!")
        with self.assertRaises(InvalidRefreshTokenError):
            auth.refresh(self.db, self.settings, old_login.refresh_token)
        with self.assertRaises(InvalidTokenError):
            auth.reset_password(self.db, self.settings, token, "Another789!")

    def test_expired_token(self) -> None:
        self._request()
        self.account.reset_token_expiry = datetime.now(UTC) - timedelta(seconds=1)
        self.db.commit()
        with self.assertRaises(TokenExpiredError):
            auth.reset_password(self.db, self.settings, self._issued_token(), "NewSecret456!")

    def test_unknown_token(self) -> None:
        with self.assertRaises(InvalidTokenError):
            auth.reset_password(self.db, self.settings, "nope", "NewSecret456!")

    def test_missing_input(self) -> None:
        with self.assertRaises(InvalidInputError):
            auth.reset_password(self.db, self.settings, "", "NewSecret456!")
        with self.assertRaises(InvalidInputError):
            auth.request_password_reset(self.db, self.settings, " ")


if __name__ == "__main__":
    unittest.main()

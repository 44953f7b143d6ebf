"""Unit tests for app.services.approval: transitions, capability checks and the login gate."""

import unittest
import uuid

from app.core.errors import (
    AccountInactiveError,
    AccountNotFoundError,
    AccountRejectedError,
    InvalidApprovalTransitionError,
    PendingApprovalError,
    PermissionDeniedError,
)
from app.models import Account
from app.models.account import APPROVAL_APPROVED, APPROVAL_PENDING, APPROVAL_REJECTED
from app.services import approval, tokens
from app.services.bootstrap import run_bootstrap
from support import make_account, make_session_factory, make_settings


class TestTransitionsTable(unittest.TestCase):
    def test_allowed(self) -> None:
        self.assertTrue(approval.can_transition(APPROVAL_PENDING, APPROVAL_APPROVED))
        self.assertTrue(approval.can_transition(APPROVAL_PENDING, APPROVAL_REJECTED))
        self.assertTrue(approval.can_transition(APPROVAL_APPROVED, APPROVAL_REJECTED))

    def test_disallowed(self) -> None:
        self.assertFalse(approval.can_transition(APPROVAL_REJECTED, APPROVAL_APPROVED))
        self.assertFalse(approval.can_transition(APPROVAL_APPROVED, APPROVAL_PENDING))
        self.assertFalse(approval.can_transition(APPROVAL_REJECTED, APPROVAL_PENDING))
        self.assertFalse(approval.can_transition(APPROVAL_APPROVED, APPROVAL_APPROVED))


class TestAuthenticationGate(unittest.TestCase):
    """Only approved and active accounts pass; inactive wins over any status."""

    def _account(self, status: str, active: bool = True) -> Account:
        return Account(email="x@example.com", approval_status=status, active=active)

    def test_approved_active_passes(self) -> None:
        account = self._account(APPROVAL_APPROVED)
        approval.authentication_gate(account)
        self.assertTrue(approval.can_authenticate(account))

    def test_pending(self) -> None:
        with self.assertRaises(PendingApprovalError) as ctx:
            approval.authentication_gate(self._account(APPROVAL_PENDING))
        self.assertEqual(ctx.exception.code, "USER_PENDING_APPROVAL")

    def test_rejected(self) -> None:
        with self.assertRaises(AccountRejectedError):
            approval.authentication_gate(self._account(APPROVAL_REJECTED))

    def test_inactive_overrides_approval(self) -> None:
        account = self._account(APPROVAL_APPROVED, active=False)
        with self.assertRaises(AccountInactiveError):
            approval.authentication_gate(account)
        self.assertFalse(approval.can_authenticate(account))


class TestApprovalActions(unittest.TestCase):
    def setUp(self) -> None:
        self.settings = make_settings()
        self.db = make_session_factory()()
        run_bootstrap(self.db, self.settings)
        self.admin = make_account(self.db, "admin@example.com", role_names=("admin",))
        self.nobody = make_account(self.db, "nobody@example.com", role_names=("user",))
        self.pending = make_account(
            self.db, "pending@example.com", approval_status=APPROVAL_PENDING
        )

    def tearDown(self) -> None:
        self.db.close()

    def test_approve_sets_actor_and_time(self) -> None:
        account = approval.approve(self.db, self.admin.id, self.pending.id)
        self.assertEqual(account.approval_status, APPROVAL_APPROVED)
        self.assertEqual(account.approved_by, self.admin.id)
        self.assertIsNotNone(account.approved_at)

    def test_approve_requires_capability(self) -> None:
        with self.assertRaises(PermissionDeniedError):
            approval.approve(self.db, self.nobody.id, self.pending.id)
        self.db.refresh(self.pending)
        self.assertEqual(self.pending.approval_status, APPROVAL_PENDING)
        self.assertIsNone(self.pending.approved_by)

    def test_approve_unknown_target(self) -> None:
        with self.assertRaises(AccountNotFoundError):
            approval.approve(self.db, self.admin.id, uuid.uuid4())

    def test_reject_keeps_account_active(self) -> None:
        account = approval.reject(self.db, self.admin.id, self.pending.id, "  duplicate signup ")
        self.assertEqual(account.approval_status, APPROVAL_REJECTED)
        self.assertEqual(account.rejection_reason, "duplicate signup")
        self.assertTrue(account.active)

    def test_reject_approved_account(self) -> None:
        approval.approve(self.db, self.admin.id, self.pending.id)
        account = approval.reject(self.db, self.admin.id, self.pending.id)
        self.assertEqual(account.approval_status, APPROVAL_REJECTED)
        self.assertIsNone(account.rejection_reason)

    def test_rejected_is_terminal(self) -> None:
        approval.reject(self.db, self.admin.id, self.pending.id)
        with self.assertRaises(InvalidApprovalTransitionError):
            approval.approve(self.db, self.admin.id, self.pending.id)
        with self.assertRaises(InvalidApprovalTransitionError):
            approval.reject(self.db, self.admin.id, self.pending.id)

    def test_reject_requires_capability(self) -> None:
        with self.assertRaises(PermissionDeniedError):
            approval.reject(self.db, self.nobody.id, self.pending.id, "no")

    def test_deactivate_revokes_sessions(self) -> None:
        target = make_account(self.db, "target@example.com")
        session = tokens.issue_refresh_token(self.db, target, self.settings)
        account = approval.deactivate(self.db, self.admin.id, target.id)
        self.assertFalse(account.active)
        self.assertEqual(account.approval_status, APPROVAL_APPROVED)
        self.assertIsNone(tokens.find_active_session(self.db, session.token))

    def test_deactivated_or_rejected_admin_loses_capabilities(self) -> None:
        second = make_account(self.db, "second.com", approval_status=APPROVAL_PENDING)
        approval.deactivate(self.db, self.admin.id, self.admin.id)
        with self.assertRaises(PermissionDeniedError):
            approval.approve(self.db, self.admin.id, self.pending.id)

        reviewer = make_account(self.db, "reviewer@example.com", role_names=("admin",))
        approval.reject(self.db, reviewer.id, reviewer.id)
        with self.assertRaises(PermissionDeniedError):
            approval.approve(self.db, reviewer.id, second.id)
        self.db.refresh(self.pending)
        self.db.refresh(second)
        self.assertEqual(self.pending.approval_status, APPROVAL_PENDING)
        self.assertEqual(second.approval_status, APPROVAL_PENDING)

    def test_deactivate_requires_capability(self) -> None:
        with self.assertRaises(PermissionDeniedError):
            approval.deactivate(self.db, self.nobody.id, self.pending.id)
        self.db.refresh(self.pending)
        self.assertTrue(self.pending.active)


if __name__ == "__main__":
    unittest.main()

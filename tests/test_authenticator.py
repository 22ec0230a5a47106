"""Tests for bearer-token request authentication."""

import unittest
from dataclasses import asdict

from app.models import Account, Role
from app.services.authenticator import Identity, authenticate, parse_bearer
from app.services.errors import AuthRejectedError, RejectionCode
from helpers import (
    OTHER_SECRET,
    FakeClock,
    add_account,
    make_engine,
    make_session_factory,
    make_token_service,
)


class TestParseBearer(unittest.TestCase):
    def test_valid(self) -> None:
        self.assertEqual(parse_bearer("Bearer abc.def.ghi"), "abc.def.ghi")
        self.assertEqual(parse_bearer("bearer abc"), "abc")
        self.assertEqual(parse_bearer("  BEARER   abc  "), "abc")

    def test_invalid(self) -> None:
        for header in [None, "", "Bearer", "Bearer ", "Basic abc", "Bearer a b", "abc.def.ghi"]:
            with self.subTest(header=header):
                self.assertIsNone(parse_bearer(header))


class TestAuthenticate(unittest.TestCase):
    def setUp(self) -> None:
        self.engine = make_engine()
        self.db = make_session_factory(self.engine)()
        self.clock = FakeClock()
        self.tokens = make_token_service(self.clock)
        account = add_account(self.db, email="coach@example.com", name="Coach", role=Role.INSTRUCTOR)
        self.account_id = account.id
        pair = self.tokens.issue_pair(account.id, account.email, account.role)
        self.access = pair.access_token
        self.refresh = pair.refresh_token

    def tearDown(self) -> None:
        self.db.close()
        self.engine.dispose()

    def _assert_rejected(self, header, reason: RejectionCode) -> None:
        with self.assertRaises(AuthRejectedError) as ctx:
            authenticate(self.db, self.tokens, header)
        self.assertIs(ctx.exception.reason, reason)
        self.assertEqual(ctx.exception.status_code, 401)
        self.assertFalse(ctx.exception.clear_refresh_cookie)

    def test_identity(self) -> None:
        identity = authenticate(self.db, self.tokens, f"Bearer {self.access}")
        self.assertEqual(
            identity,
            Identity(
                id=self.account_id,
                email="coach@example.com",
                name="Coach",
                role="instructor",
                linked_profile_id=None,
            ),
        )
        self.assertNotIn("password_hash", asdict(identity))

    def test_expiry_window(self) -> None:
        self.clock.advance(hours=1)
        self.assertEqual(authenticate(self.db, self.tokens, f"Bearer {self.access}").id, self.account_id)
        self.clock.advance(hours=2)
        self._assert_rejected(f"Bearer {self.access}", RejectionCode.INVALID_TOKEN)

    def test_missing_or_malformed_header(self) -> None:
        for header in [None, "", "Token abc", "Bearer"]:
            with self.subTest(header=header):
                self._assert_rejected(header, RejectionCode.MISSING_CREDENTIALS)

    def test_invalid_tokens(self) -> None:
        other = make_token_service(self.clock, secret=OTHER_SECRET)
        foreign = other.issue_pair(self.account_id, "coach@example.com", "admin").access_token
        for token in ["garbage", "a.b.c", foreign, self.refresh]:
            with self.subTest(token=token):
                self._assert_rejected(f"Bearer {token}", RejectionCode.INVALID_TOKEN)

    def test_deactivated_account(self) -> None:
        account = self.db.get(Account, self.account_id)
        account.is_active = False
        self.db.commit()
        self._assert_rejected(f"Bearer {self.access}", RejectionCode.ACCOUNT_INACTIVE)

    def test_deleted_account(self) -> None:
        self.db.delete(self.db.get(Account, self.account_id))
        self.db.commit()
        self._assert_rejected(f"Bearer {self.access}", RejectionCode.ACCOUNT_INACTIVE)


if __name__ == "__main__":
    unittest.main()

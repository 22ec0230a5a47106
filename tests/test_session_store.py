"""Tests for SessionStore against an in-memory SQLite database."""

import unittest
from datetime import timedelta

from app.models import AuthSession
from app.services.errors import SessionIntegrityError
from app.services.sessions import CLIENT_AGENT_MAX_LEN, ClientInfo, SessionStore
from helpers import T0, FakeClock, add_account, make_engine, make_session_factory


class SessionStoreTestCase(unittest.TestCase):
    def setUp(self) -> None:
        self.engine = make_engine()
        self.db = make_session_factory(self.engine)()
        self.clock = FakeClock()
        self.store = SessionStore(self.db, self.clock)
        self.account = add_account(self.db)
        self.account_id = self.account.id

    def tearDown(self) -> None:
        self.db.close()
        self.engine.dispose()

    def _count(self) -> int:
        return self.db.query(AuthSession).count()


class TestCreateAndFind(SessionStoreTestCase):
    def test_create_then_find(self) -> None:
        self.store.create(
            self.account_id,
            "token-1",
            T0 + timedelta(days=30),
            ClientInfo(ip="10.0.0.1", user_agent="curl/8.0"),
        )
        found = self.store.find_by_token("token-1")
        self.assertIsNotNone(found)
        self.assertEqual(found.account_id, self.account_id)
        self.assertEqual(found.expires_at, T0 + timedelta(days=30))
        self.assertEqual(found.created_at, T0)
        self.assertEqual(found.client_ip, "10.0.0.1")
        self.assertEqual(found.client_agent, "curl/8.0")

    def test_unknown_and_empty_token(self) -> None:
        self.assertIsNone(self.store.find_by_token("nope"))
        self.assertIsNone(self.store.find_by_token(""))

    def test_client_metadata_is_optional_and_truncated(self) -> None:
        self.store.create(self.account_id, "token-1", T0 + timedelta(days=1))
        self.store.create(
            self.account_id,
            "token-2",
            T0 + timedelta(days=1),
            ClientInfo(user_agent="x" * (CLIENT_AGENT_MAX_LEN + 50)),
        )
        first = self.store.find_by_token("token-1")
        second = self.store.find_by_token("token-2")
        self.assertIsNone(first.client_ip)
        self.assertIsNone(first.client_agent)
        self.assertEqual(len(second.client_agent), CLIENT_AGENT_MAX_LEN)

    def test_expired_row_is_absent(self) -> None:
        self.store.create(self.account_id, "token-1", T0 + timedelta(hours=1))
        self.clock.advance(minutes=59)
        self.assertIsNotNone(self.store.find_by_token("token-1"))
        self.clock.advance(minutes=1)
        self.assertIsNone(self.store.find_by_token("token-1"))
        # Still stored until the sweep removes it.
        self.assertEqual(self._count(), 1)

    def test_duplicate_token_raises_and_keeps_original(self) -> None:
        self.store.create(self.account_id, "token-1", T0 + timedelta(days=30))
        other = add_account(self.db, email="other@example.com")
        with self.assertLogs("app.services.sessions", level="CRITICAL"):
            with self.assertRaises(SessionIntegrityError):
                self.store.create(other.id, "token-1", T0 + timedelta(days=1))
        found = self.store.find_by_token("token-1")
        self.assertEqual(found.account_id, self.account_id)
        self.assertEqual(found.expires_at, T0 + timedelta(days=30))
        self.assertEqual(self._count(), 1)


class TestDelete(SessionStoreTestCase):
    def test_delete_by_token_is_idempotent(self) -> None:
        self.store.create(self.account_id, "token-1", T0 + timedelta(days=30))
        self.assertEqual(self.store.delete_by_token("token-1"), 1)
        self.assertEqual(self.store.delete_by_token("token-1"), 0)
        self.assertIsNone(self.store.find_by_token("token-1"))

    def test_delete_by_token_leaves_other_sessions(self) -> None:
        self.store.create(self.account_id, "token-1", T0 + timedelta(days=30))
        self.store.create(self.account_id, "token-2", T0 + timedelta(days=30))
        self.store.delete_by_token("token-1")
        self.assertIsNotNone(self.store.find_by_token("token-2"))

    def test_delete_for_account(self) -> None:
        other = add_account(self.db, email="other@example.com")
        self.store.create(self.account_id, "token-1", T0 + timedelta(days=30))
        self.store.create(self.account_id, "token-2", T0 + timedelta(days=30))
        self.store.create(other.id, "token-3", T0 + timedelta(days=30))
        self.assertEqual(self.store.delete_for_account(self.account_id), 2)
        self.assertEqual(self.store.delete_for_account(self.account_id), 0)
        self.assertIsNotNone(self.store.find_by_token("token-3"))


class TestDeleteExpired(SessionStoreTestCase):
    def test_deletes_only_expired_rows(self) -> None:
        self.store.create(self.account_id, "past", T0 - timedelta(seconds=1))
        self.store.create(self.account_id, "boundary", T0)
        self.store.create(self.account_id, "future", T0 + timedelta(seconds=1))
        self.assertEqual(self.store.delete_expired(), 2)
        remaining = [row.refresh_token for row in self.db.query(AuthSession).all()]
        self.assertEqual(remaining, ["future"])

    def test_nothing_to_delete(self) -> None:
        self.store.create(self.account_id, "future", T0 + timedelta(days=1))
        self.assertEqual(self.store.delete_expired(), 0)
        self.assertEqual(self._count(), 1)


if __name__ == "__main__":
    unittest.main()

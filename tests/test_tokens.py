"""Unit tests for app.core.tokens: HS256 token issuance, verification, expiry and tampering."""

import base64
import json
import unittest
from datetime import timedelta

import jwt

from app.core.tokens import TOKEN_ALGORITHM, TokenService
from helpers import OTHER_SECRET, T0, TEST_SECRET, FakeClock, make_token_service


def _b64url(data: dict) -> str:
    raw = json.dumps(data, separators=(",", ":")).encode("utf-8")
    return base64.urlsafe_b64encode(raw).rstrip(b"=").decode("ascii")


def _flip_char(segment: str, index: int) -> str:
    replacement = "A" if segment[index] != "A" else "B"
    return segment[:index] + replacement + segment[index + 1 :]


class TestIssuePair(unittest.TestCase):
    """issue_pair signs an access and a refresh token with shared claims, different lifetimes."""

    def setUp(self) -> None:
        self.clock = FakeClock()
        self.tokens = make_token_service(self.clock)

    def test_three_part_hs256_tokens(self) -> None:
        pair = self.tokens.issue_pair("acct-1", "alice@example.com", "student")
        for token in (pair.access_token, pair.refresh_token):
            self.assertEqual(token.count("."), 2)
            header = jwt.get_unverified_header(token)
            self.assertEqual(header["alg"], TOKEN_ALGORITHM)
        self.assertNotEqual(pair.access_token, pair.refresh_token)

    def test_lifetimes(self) -> None:
        pair = self.tokens.issue_pair("acct-1", "alice@example.com", "student")
        self.assertEqual(pair.access_expires_at, T0 + timedelta(hours=2))
        self.assertEqual(pair.refresh_expires_at, T0 + timedelta(days=30))

    def test_payload_round_trip(self) -> None:
        pair = self.tokens.issue_pair("acct-1", "alice@example.com", "student")
        access = self.tokens.verify(pair.access_token)
        refresh = self.tokens.verify(pair.refresh_token)
        self.assertIsNotNone(access)
        self.assertIsNotNone(refresh)
        self.assertEqual(access.subject, "acct-1")
        self.assertEqual(access.email, "alice@example.com")
        self.assertEqual(access.role, "student")
        self.assertEqual(access.issued_at, T0)
        self.assertEqual(access.expires_at, T0 + timedelta(hours=2))
        self.assertEqual(access.token_type, "access")
        self.assertEqual(refresh.token_type, "refresh")
        self.assertEqual(refresh.expires_at, T0 + timedelta(days=30))

    def test_pairs_in_same_second_are_distinct(self) -> None:
        first = self.tokens.issue_pair("acct-1", "alice@example.com", "student")
        second = self.tokens.issue_pair("acct-1", "alice@example.com", "student")
        self.assertNotEqual(first.refresh_token, second.refresh_token)
        self.assertNotEqual(first.access_token, second.access_token)

    def test_rejects_empty_secret_and_bad_ttl(self) -> None:
        with self.assertRaises(ValueError):
            TokenService("")
        with self.assertRaises(ValueError):
            TokenService(TEST_SECRET, access_ttl=timedelta(0))


class TestVerifyExpiry(unittest.TestCase):
    """verify honours exp against the injected clock."""

    def setUp(self) -> None:
        self.clock = FakeClock()
        self.tokens = make_token_service(self.clock)
        self.pair = self.tokens.issue_pair("acct-1", "alice@example.com", "student")

    def test_valid_before_expiry(self) -> None:
        self.clock.advance(hours=1, minutes=59)
        self.assertIsNotNone(self.tokens.verify(self.pair.access_token, "access"))

    def test_invalid_at_and_after_expiry(self) -> None:
        self.clock.advance(hours=2)
        self.assertIsNone(self.tokens.verify(self.pair.access_token, "access"))
        self.clock.advance(hours=1)
        self.assertIsNone(self.tokens.verify(self.pair.access_token, "access"))

    def test_refresh_outlives_access(self) -> None:
        self.clock.advance(days=29)
        self.assertIsNone(self.tokens.verify(self.pair.access_token))
        self.assertIsNotNone(self.tokens.verify(self.pair.refresh_token, "refresh"))
        self.clock.advance(days=2)
        self.assertIsNone(self.tokens.verify(self.pair.refresh_token, "refresh"))


class TestVerifyRejections(unittest.TestCase):
    """Every malformed, tampered, foreign or mistyped token verifies to None."""

    def setUp(self) -> None:
        self.clock = FakeClock()
        self.tokens = make_token_service(self.clock)
        self.pair = self.tokens.issue_pair("acct-1", "alice@example.com", "student")

    def test_tampered_payload_character(self) -> None:
        header, payload, signature = self.pair.access_token.split(".")
        for index in (0, len(payload) // 2, len(payload) - 1):
            with self.subTest(index=index):
                tampered = ".".join([header, _flip_char(payload, index), signature])
                self.assertIsNone(self.tokens.verify(tampered))

    def test_tampered_signature(self) -> None:
        header, payload, signature = self.pair.access_token.split(".")
        tampered = ".".join([header, payload, _flip_char(signature, 0)])
        self.assertIsNone(self.tokens.verify(tampered))

    def test_forged_claims_with_original_signature(self) -> None:
        header, _, signature = self.pair.access_token.split(".")
        forged_payload = _b64url(
            {
                "sub": "acct-1",
                "email": "alice@example.com",
                "role": "admin",
                "token_type": "access",
                "jti": "x",
                "iat": int(T0.timestamp()),
                "exp": int(T0.timestamp()) + 7200,
            }
        )
        self.assertIsNone(self.tokens.verify(".".join([header, forged_payload, signature])))

    def test_other_secret(self) -> None:
        other = make_token_service(self.clock, secret=OTHER_SECRET)
        self.assertIsNone(other.verify(self.pair.access_token))
        self.assertIsNone(self.tokens.verify(other.issue_pair("a", "b@c.de", "admin").access_token))

    def test_alg_none(self) -> None:
        header = _b64url({"alg": "none", "typ": "JWT"})
        _, payload, _ = self.pair.access_token.split(".")
        self.assertIsNone(self.tokens.verify(f"{header}.{payload}."))

    def test_other_hmac_algorithm(self) -> None:
        claims = jwt.decode(
            self.pair.access_token,
            TEST_SECRET,
            algorithms=[TOKEN_ALGORITHM],
            options={"verify_exp": False, "verify_iat": False},
        )
        hs512 = jwt.encode(claims, TEST_SECRET, algorithm="HS512")
        self.assertIsNone(self.tokens.verify(hs512))

    def test_missing_claims(self) -> None:
        token = jwt.encode(
            {"sub": "acct-1", "exp": int(T0.timestamp()) + 60},
            TEST_SECRET,
            algorithm=TOKEN_ALGORITHM,
        )
        self.assertIsNone(self.tokens.verify(token))

    def test_wrong_token_type(self) -> None:
        self.assertIsNone(self.tokens.verify(self.pair.refresh_token, "access"))
        self.assertIsNone(self.tokens.verify(self.pair.access_token, "refresh"))

    def test_garbage(self) -> None:
        for token in ["", "abc", "a.b", "a.b.c", "a.b.c.d", "...", "\x00.\x00.\x00"]:
            with self.subTest(token=token):
                self.assertIsNone(self.tokens.verify(token))

    def test_non_string(self) -> None:
        self.assertIsNone(self.tokens.verify(None))  # type: ignore[arg-type]
        self.assertIsNone(self.tokens.verify(12345))  # type: ignore[arg-type]


if __name__ == "__main__":
    unittest.main()

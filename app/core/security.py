"""Password hashing (PBKDF2-HMAC-SHA256), constant-time comparison and opaque ids."""

import hashlib
import hmac
import logging
import secrets

logger = logging.getLogger(__name__)

# PBKDF2 parameters. Stored hashes do not record them, so changing any of
# these makes every existing password hash unverifiable.
PBKDF2_ALGORITHM = "sha256"
PBKDF2_ITERATIONS = 100_000
SALT_BYTES = 16
DERIVED_KEY_BYTES = 32

OPAQUE_ID_BYTES = 16

# Min/max lengths for input validation.
EMAIL_MAX_LEN = 255
NAME_MIN_LEN = 2
NAME_MAX_LEN = 255
PASSWORD_MIN_LEN = 8
PASSWORD_MAX_LEN = 128


def _derive_key(plain_password: str, salt: bytes) -> bytes:
    return hashlib.pbkdf2_hmac(
        PBKDF2_ALGORITHM,
        plain_password.encode("utf-8"),
        salt,
        PBKDF2_ITERATIONS,
        dklen=DERIVED_KEY_BYTES,
    )


def constant_time_equals(a: bytes | str, b: bytes | str) -> bool:
    """Compare two secrets without short-circuiting on the first differing byte."""
    if isinstance(a, str):
        a = a.encode("utf-8")
    if isinstance(b, str):
        b = b.encode("utf-8")
    return hmac.compare_digest(a, b)


def hash_password(plain_password: str) -> str:
    """
    Hash a plain-text password for storage as ``salt_hex:hash_hex``.

    A fresh random salt is drawn for every call, so hashing the same password
    twice yields two different strings that both verify.
    """
    salt = secrets.token_bytes(SALT_BYTES)
    derived = _derive_key(plain_password, salt)
    return f"{salt.hex()}:{derived.hex()}"


def verify_password(plain_password: str, stored_hash: str) -> bool:
    """
    Verify a plain password against a stored ``salt_hex:hash_hex`` value.

    Never raises: malformed stored values and internal errors verify as False.
    """
    try:
        salt_hex, sep, key_hex = stored_hash.partition(":")
        if not sep or not salt_hex or not key_hex or ":" in key_hex:
            logger.warning("Password verification failed: malformed stored hash")
            return False
        salt = bytes.fromhex(salt_hex)
        expected = bytes.fromhex(key_hex)
        derived = _derive_key(plain_password, salt)
    except (ValueError, TypeError, AttributeError) as e:
        logger.warning("Password verification failed: %s", type(e).__name__)
        return False
    return constant_time_equals(derived, expected)


def generate_opaque_id() -> str:
    """Return an unpredictable 128-bit hex identifier (accounts, sessions, audit rows)."""
    return secrets.token_hex(OPAQUE_ID_BYTES)

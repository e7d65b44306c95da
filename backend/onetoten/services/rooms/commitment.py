"""Commit-reveal helpers.

Player one publishes ``commit(number, salt)`` before player two guesses and
discloses ``number`` and ``salt`` afterwards. The browser client hashes the
same ``"<number>:<salt>"`` message with WebCrypto, so both sides must agree
on this exact encoding.
"""

import hashlib
import hmac
import secrets

SALT_BYTES = 16


def generate_salt() -> str:
    """Return a fresh random salt, hex encoded (32 characters)."""
    return secrets.token_hex(SALT_BYTES)


def commit(number, salt: str) -> str:
    payload = f"{number}:{salt}"
    return hashlib.sha256(payload.encode('utf-8')).hexdigest()


def verify(number, salt, number_hash) -> bool:
    """Check that ``number_hash`` commits to ``number`` with ``salt``.

    Never raises: anything that is not a string hash or salt simply fails
    verification.
    """
    if not isinstance(salt, str) or not isinstance(number_hash, str):
        return False
    return hmac.compare_digest(commit(number, salt), number_hash.lower())

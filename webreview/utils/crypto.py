"""
Crypto utilities — bcrypt password hashing.

Every call to hash_password draws a fresh salt, so hashing the same
password twice never yields the same string.  Cost factor comes from
BCRYPT_ROUNDS (default 12; the test config lowers it for speed).
"""

import functools
import secrets

import bcrypt
from flask import current_app, has_app_context

DEFAULT_ROUNDS = 12


def _get_rounds() -> int:
    if has_app_context():
        return int(current_app.config.get("BCRYPT_ROUNDS", DEFAULT_ROUNDS))
    return DEFAULT_ROUNDS


def hash_password(plain_password: str) -> str:
    """Hash a plain-text password with bcrypt."""
    salt = bcrypt.gensalt(rounds=_get_rounds())
    return bcrypt.hashpw(plain_password.encode("utf-8"), salt).decode("utf-8")


def verify_password(plain_password: str, password_hash: str) -> bool:
    """Verify a plain-text password against its bcrypt hash.

    Returns False for a missing or malformed hash instead of raising.
    """
    if not password_hash or not isinstance(plain_password, str):
        return False

    try:
        return bcrypt.checkpw(
            plain_password.encode("utf-8"),
            password_hash.encode("utf-8"),
        )
    except (ValueError, TypeError):
        return False


@functools.lru_cache(maxsize=4)
def _placeholder_hash(rounds: int) -> str:
    salt = bcrypt.gensalt(rounds=rounds)
    return bcrypt.hashpw(secrets.token_urlsafe(16).encode("utf-8"), salt).decode("utf-8")


def verify_against_placeholder(plain_password) -> bool:
    """Spend one bcrypt check on a throwaway hash; always False.

    Login calls this for unknown emails so they cost as much as a wrong
    password on a real account.
    """
    verify_password(plain_password, _placeholder_hash(_get_rounds()))
    return False

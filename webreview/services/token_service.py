"""
Token Service — access token issuance/verification, bearer extraction,
invitation tokens.

Access token:  7 days (configurable via JWT_EXPIRES_SECONDS)
Algorithm:     HS256, keyed by JWT_SECRET_KEY

Token payload:
{
    "sub": <user_id>,
    "userId": <user_id>,
    "email": "...",
    "name": "...",
    "role": "admin" | "developer" | "client",
    "organizationId": "...",
    "type": "access",
    "iat": <issued_at>,
    "exp": <expires_at>,
    "jti": <unique_id>
}

The signing secret is checked when the app is created; a missing or weak
secret aborts startup rather than producing tokens anyone could forge.
"""

import logging
import secrets
import uuid
from datetime import datetime, timedelta, timezone

import jwt
from flask import current_app

logger = logging.getLogger(__name__)


# ─── Defaults ────────────────────────────────────────────────
DEFAULT_EXPIRES = 604800   # 7 days
ALGORITHM = "HS256"
MIN_SECRET_LENGTH = 32
INVITE_TOKEN_BYTES = 32    # 256 bits


def check_signing_secret(secret) -> None:
    """Raise RuntimeError unless *secret* is usable for HS256 signing."""
    if not secret or not isinstance(secret, str):
        raise RuntimeError(
            "JWT_SECRET_KEY is not set. Generate one with: "
            "python -c \"import secrets; print(secrets.token_urlsafe(48))\""
        )
    if len(secret) < MIN_SECRET_LENGTH:
        raise RuntimeError(
            f"JWT_SECRET_KEY must be at least {MIN_SECRET_LENGTH} characters long"
        )


def _get_secret() -> str:
    secret = current_app.config.get("JWT_SECRET_KEY")
    check_signing_secret(secret)
    return secret


def _get_expires() -> int:
    return int(current_app.config.get("JWT_EXPIRES_SECONDS", DEFAULT_EXPIRES))


# ═══════════════════════════════════════════════════════════════
# Token Generation
# ═══════════════════════════════════════════════════════════════
def issue_token(user) -> str:
    """Sign an access token carrying the user's identity and role."""
    now = datetime.now(timezone.utc)
    payload = {
        "sub": user.id,
        "userId": user.id,
        "email": user.email,
        "name": user.name,
        "role": user.role,
        "organizationId": user.organization_id,
        "type": "access",
        "iat": now,
        "exp": now + timedelta(seconds=_get_expires()),
        "jti": str(uuid.uuid4()),
    }
    return jwt.encode(payload, _get_secret(), algorithm=ALGORITHM)


# ═══════════════════════════════════════════════════════════════
# Token Verification
# ═══════════════════════════════════════════════════════════════
def verify_token(token) -> dict | None:
    """
    Decode and verify an access token.

    Returns the claims dict, or None on expiry, signature mismatch,
    wrong token type or malformed input.
    """
    if not token or not isinstance(token, str):
        return None

    try:
        payload = jwt.decode(
            token,
            _get_secret(),
            algorithms=[ALGORITHM],
            options={"require": ["exp", "iat", "sub"]},
        )
    except jwt.ExpiredSignatureError:
        logger.debug("Rejected expired access token")
        return None
    except jwt.InvalidTokenError as exc:
        logger.debug("Rejected invalid access token: %s", exc)
        return None

    if payload.get("type") != "access":
        return None
    return payload


def extract_bearer_token(headers) -> str | None:
    """
    Pull the token out of an Authorization header.

    Accepts ``Bearer <token>`` (scheme matched case-insensitively) or a bare
    token value.  Header name lookup is case-insensitive for both Werkzeug
    Headers and plain dicts.
    """
    if not headers:
        return None

    value = None
    for key, val in headers.items():
        if key.lower() == "authorization":
            value = val
            break

    value = (value or "").strip()
    if not value or value.lower() == "bearer":
        return None
    if value[:7].lower() == "bearer ":
        value = value[7:].strip()
    return value or None


# ═══════════════════════════════════════════════════════════════
# Helpers
# ═══════════════════════════════════════════════════════════════
def generate_invite_token() -> str:
    """Generate a URL-safe invitation token with 256 bits of entropy."""
    return secrets.token_urlsafe(INVITE_TOKEN_BYTES)

"""Shared helpers for blueprints and services.

json_body:         request JSON as a dict (never None, never a list)
normalize_url:     prefix https:// when the scheme is omitted, reject garbage
commit_or_raise:   commit, mapping constraint violations to ConflictError
"""
import logging
import re
from urllib.parse import urlsplit

from flask import request
from sqlalchemy.exc import IntegrityError

from webreview.core.exceptions import ConflictError, ValidationError
from webreview.models import db

logger = logging.getLogger(__name__)

_HOST_LABEL = re.compile(r"^(?!-)[A-Za-z0-9-]{1,63}(?<!-)$")


def json_body() -> dict:
    """Return the request's JSON object, or {} for a missing/non-object body."""
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


def normalize_url(value) -> str:
    """Return *value* as an absolute http(s) URL.

    ``acme.com`` becomes ``https://acme.com``.  Raises ValidationError for
    anything that still does not parse with a usable host.
    """
    if not isinstance(value, str) or not value.strip():
        raise ValidationError("Invalid URL format")
    url = value.strip()
    if not re.match(r"^[A-Za-z][A-Za-z0-9+.-]*://", url):
        url = f"https://{url}"

    try:
        parts = urlsplit(url)
        hostname = parts.hostname
        parts.port  # noqa: B018 - raises ValueError for a bad port
    except ValueError as exc:
        raise ValidationError("Invalid URL format") from exc

    if parts.scheme.lower() not in ("http", "https") or not hostname:
        raise ValidationError("Invalid URL format")
    if not hostname.startswith("[") and ":" not in hostname:
        if not all(_HOST_LABEL.match(label) for label in hostname.rstrip(".").split(".")):
            raise ValidationError("Invalid URL format")
    if any(ch.isspace() for ch in url):
        raise ValidationError("Invalid URL format")
    return url


def commit_or_raise(conflict_message: str = "Duplicate or constraint violation") -> None:
    """Commit the session; an IntegrityError rolls back and becomes ConflictError.

    Other database errors roll back and propagate to the app-level 500 handler.
    """
    try:
        db.session.commit()
    except IntegrityError as exc:
        db.session.rollback()
        logger.warning("Integrity error on commit: %s", exc.orig)
        raise ConflictError(conflict_message) from exc
    except Exception:
        db.session.rollback()
        raise

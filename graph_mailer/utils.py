"""Utility helpers shared across modules."""

from __future__ import annotations

import base64
from datetime import UTC, datetime, timedelta
from urllib.parse import quote


def utcnow() -> datetime:
    """Aware ``datetime`` for the current instant."""
    return datetime.now(tz=UTC)


def expiry_from_seconds(expires_in, now: datetime | None = None) -> datetime | None:
    """Translate an ``expires_in`` value from a token response into an instant."""
    if expires_in is None:
        return None
    try:
        seconds = int(expires_in)
    except (TypeError, ValueError):
        return None
    return (now or utcnow()) + timedelta(seconds=seconds)


def b64encode_bytes(payload: bytes) -> str:
    """Base64 text as Graph expects in ``contentBytes``."""
    return base64.b64encode(payload).decode("ascii")


def path_segment(value: str) -> str:
    """Quote a value for use as a single URL path segment."""
    return quote(str(value), safe="@")

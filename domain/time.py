"""
Domain time utilities (pure).

Centralized timestamp validation and parsing helpers.

Documents written by the mobile client store timestamps as ISO-8601 strings
(sometimes with a trailing 'Z'); anything that cannot be parsed is treated as
absent rather than raising.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Optional


def require_aware_timestamp(name: str, value: datetime) -> None:
    if value.tzinfo is None or value.utcoffset() is None:
        raise ValueError(f"{name} must be timezone-aware")


def parse_timestamp(value: Any) -> Optional[datetime]:
    """
    Parse a stored timestamp into a timezone-aware UTC datetime.

    Returns None for missing or malformed values. Naive values are assumed UTC.
    """

    if value is None:
        return None
    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        try:
            dt = datetime.fromisoformat(text.replace("Z", "+00:00"))
        except ValueError:
            return None
    else:
        return None

    if dt.tzinfo is None or dt.utcoffset() is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def to_iso_utc(dt: datetime, *, name: str = "timestamp") -> str:
    """Serialize an aware datetime to ISO-8601 in UTC."""

    require_aware_timestamp(name, dt)
    return dt.astimezone(timezone.utc).isoformat()


def start_of_day(now: datetime) -> datetime:
    """Truncate an aware datetime to midnight in its own timezone."""

    require_aware_timestamp("now", now)
    return now.replace(hour=0, minute=0, second=0, microsecond=0)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)

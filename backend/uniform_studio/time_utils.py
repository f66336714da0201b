# Overview: UTC conversions shared by order dates, outcomes and timestamps.

"""
All datetimes are stored as UTC without tzinfo and rendered as
"YYYY-MM-DDTHH:MM:SSZ". Order forms submit "YYYY-MM-DD" or datetime-local
("YYYY-MM-DDTHH:MM") values with no offset; those are taken as UTC.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional


def as_utc_naive(dt: datetime) -> datetime:
    if dt.tzinfo is None:
        return dt
    return dt.astimezone(timezone.utc).replace(tzinfo=None)


def utcnow() -> datetime:
    """Current UTC time, truncated to the whole second it will be rendered at."""
    return as_utc_naive(datetime.now(timezone.utc)).replace(microsecond=0)


def same_instant(a: datetime, b: datetime) -> bool:
    """True when two datetimes render to the same string."""
    return as_utc_naive(a).replace(microsecond=0) == as_utc_naive(b).replace(microsecond=0)


def parse_iso_datetime(value: Optional[str]) -> Optional[datetime]:
    """
    Parse a client-supplied date into UTC-naive form.

    Blank input is None; anything unparseable raises ValueError.
    """
    if value is None or not value.strip():
        return None
    text = value.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    return as_utc_naive(datetime.fromisoformat(text))


def to_utc_z(dt: Optional[datetime]) -> Optional[str]:
    if dt is None:
        return None
    return as_utc_naive(dt).replace(microsecond=0).isoformat() + "Z"

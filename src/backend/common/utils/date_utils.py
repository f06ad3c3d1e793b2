"""Timestamp helpers shared by the action center.

Snapshot dates arrive as ISO strings of mixed shape ("2025-11-30",
"2025-11-30T00:00:00.000Z", ...). Everything is normalised to aware UTC
datetimes so comparisons against `now` never mix naive and aware values.
"""

from __future__ import annotations

import math
from datetime import date, datetime, timezone
from typing import Any

_SECONDS_PER_DAY = 86400


def as_utc(value: datetime) -> datetime:
    """Attach UTC to naive datetimes; convert aware ones to UTC."""

    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def parse_timestamp(value: Any) -> datetime | None:
    """Parse an ISO date/datetime (or pass through a datetime).

    Returns None for blanks and anything unparseable.
    """

    if value is None:
        return None
    if isinstance(value, datetime):
        return as_utc(value)
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day, tzinfo=timezone.utc)
    if not isinstance(value, str):
        return None

    s = value.strip()
    if not s:
        return None
    if s.endswith("Z") or s.endswith("z"):
        s = s[:-1] + "+00:00"

    try:
        return as_utc(datetime.fromisoformat(s))
    except ValueError:
        pass
    try:
        d = date.fromisoformat(s[:10])
    except ValueError:
        return None
    return datetime(d.year, d.month, d.day, tzinfo=timezone.utc)


def whole_days_between(later: datetime, earlier: datetime) -> int:
    """Signed number of full days from `earlier` to `later`, truncated toward zero."""

    seconds = (as_utc(later) - as_utc(earlier)).total_seconds()
    return math.trunc(seconds / _SECONDS_PER_DAY)


def format_short_date(value: datetime) -> str:
    """Format as e.g. 'Nov 3'."""

    return f"{value:%b} {value.day}"

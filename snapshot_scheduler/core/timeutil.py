"""
UTC timestamp helpers.

All stored timestamps are UTC ISO-8601 strings. Output uses millisecond
precision with a "Z" suffix; input accepts any ISO-8601 form and treats naive
values as UTC.
"""

from __future__ import annotations

import math
from datetime import UTC, datetime, timedelta


def parse_timestamp(value: str) -> datetime:
    """
    Parse an ISO-8601 string into an aware UTC datetime.

    Raises:
        ValueError: if the value is not a string or not ISO-8601
    """
    if not isinstance(value, str) or not value.strip():
        raise ValueError(f"Invalid timestamp: {value!r}")

    parsed = datetime.fromisoformat(value.strip())
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=UTC)
    return parsed.astimezone(UTC)


def format_timestamp(dt: datetime) -> str:
    """Format as e.g. 2025-01-02T15:30:00.000Z."""
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=UTC)
    return dt.astimezone(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def day_bucket(dt: datetime) -> str:
    """UTC calendar date used for daily log buckets (YYYY-MM-DD)."""
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=UTC)
    return dt.astimezone(UTC).date().isoformat()


def delay_seconds(scheduled_at: datetime, now: datetime) -> int:
    """Seconds until scheduled_at, rounded up; past-due yields 0, never negative."""
    remaining = (scheduled_at - now).total_seconds()
    return max(0, math.ceil(remaining))


def within_lookahead(scheduled_at: datetime, now: datetime, lookahead_seconds: int) -> bool:
    """True when scheduled_at <= now + lookahead (inclusive boundary)."""
    return scheduled_at <= now + timedelta(seconds=lookahead_seconds)

# src/mint_scores/db/time.py
"""Time utilities for database models and validation."""

from collections.abc import Callable
from datetime import UTC, datetime, timedelta

# Zero-argument callable returning a timezone-aware "now"; injectable for tests.
Clock = Callable[[], datetime]

_EPOCH = datetime(1970, 1, 1, tzinfo=UTC)


def utcnow() -> datetime:
    """Return the current UTC time as a timezone-aware datetime."""
    return datetime.now(UTC)


def as_utc(value: datetime) -> datetime:
    """Return ``value`` as an aware UTC datetime.

    SQLite hands back naive datetimes even for ``DateTime(timezone=True)``
    columns; those are stored in UTC, so they are tagged rather than converted.
    """
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def parse_client_timestamp(raw: str | None) -> datetime | None:
    """Parse a client-reported ISO-8601 timestamp.

    Returns None for missing or unparseable values. Naive timestamps are
    treated as UTC.
    """
    if not raw or not isinstance(raw, str):
        return None
    try:
        parsed = datetime.fromisoformat(raw.strip())
    except ValueError:
        return None
    return as_utc(parsed)


def to_millis(value: datetime) -> int:
    """Return whole milliseconds since the epoch for an aware or naive-UTC datetime."""
    # Integer arithmetic; float timestamps can lose the last millisecond.
    return (as_utc(value) - _EPOCH) // timedelta(milliseconds=1)


def isoformat_z(value: datetime) -> str:
    """Render a datetime as ISO-8601 UTC with millisecond precision and a ``Z`` suffix."""
    return as_utc(value).isoformat(timespec="milliseconds").replace("+00:00", "Z")

"""
UTC timestamp helpers.

Envelopes and the ``x-date`` header stamp times one way: ISO 8601, UTC,
millisecond precision, ``Z`` suffix (``2024-06-01T12:00:00.000Z``).
Naive datetimes are taken to be UTC.
"""

from datetime import UTC, datetime


def utc_now() -> datetime:
    return datetime.now(UTC)


def to_iso8601(dt: datetime | None) -> str | None:
    """Render *dt* in the envelope format; ``None`` passes through."""
    if dt is None:
        return None
    aware = dt if dt.tzinfo is not None else dt.replace(tzinfo=UTC)
    return aware.astimezone(UTC).strftime("%Y-%m-%dT%H:%M:%S.") + f"{aware.microsecond // 1000:03d}Z"


def from_iso8601(value: str | None) -> datetime | None:
    """Parse an ISO 8601 string (``Z`` accepted); ``None`` passes through."""
    if value is None:
        return None
    parsed = datetime.fromisoformat(value)
    return parsed if parsed.tzinfo is not None else parsed.replace(tzinfo=UTC)


def iso_timestamp() -> str:
    """Current time in the envelope format."""
    return to_iso8601(utc_now())  # type: ignore[return-value]

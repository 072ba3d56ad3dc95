"""Utilities for datetime handling."""

from datetime import UTC, date, datetime, time
from zoneinfo import ZoneInfo

# Taskwarrior's compact ISO-8601 form, always UTC
TASKWARRIOR_FORMAT = "%Y%m%dT%H%M%SZ"


def now_utc() -> datetime:
    """Get current UTC datetime."""
    return datetime.now(UTC).replace(microsecond=0)


def local_midnight(day: date, tz: ZoneInfo) -> datetime | None:
    """Return the instant of local midnight on ``day`` in ``tz``.

    Returns None when that midnight does not exist (a DST gap starting at
    00:00). An ambiguous midnight resolves to the earlier instant.
    """
    candidate = datetime.combine(day, time(), tzinfo=tz)  # fold=0 is the earlier instant
    round_trip = candidate.astimezone(UTC).astimezone(tz)
    if round_trip.replace(tzinfo=None) != candidate.replace(tzinfo=None):
        return None
    return candidate


def local_date(value: datetime, tz: ZoneInfo) -> date:
    """Calendar day of an aware datetime in ``tz``."""
    return value.astimezone(tz).date()


def same_local_day(a: datetime | None, b: datetime | None, tz: ZoneInfo) -> bool:
    """Compare two optional datetimes by their calendar day in ``tz``."""
    if a is None or b is None:
        return a is None and b is None
    return local_date(a, tz) == local_date(b, tz)


def to_taskwarrior(value: datetime) -> str:
    """Format an aware datetime the way Taskwarrior stores it."""
    return value.astimezone(UTC).strftime(TASKWARRIOR_FORMAT)


def from_taskwarrior(value: str) -> datetime:
    """Parse a Taskwarrior timestamp into an aware UTC datetime."""
    if value.endswith("Z") and "T" in value and "-" not in value:
        return datetime.strptime(value, TASKWARRIOR_FORMAT).replace(tzinfo=UTC)
    # Handle both 'Z' suffix and explicit timezone
    parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed

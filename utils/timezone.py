"""UTC-everywhere time handling. Naive datetimes are rejected, never guessed."""

from datetime import datetime, timezone


def now_utc() -> datetime:
    """Current time in UTC. Source of every stored timestamp."""
    return datetime.now(timezone.utc)


def to_utc(dt: datetime) -> datetime:
    """Aware datetime converted to UTC. Raises ValueError for naive input."""
    if dt.tzinfo is None:
        raise ValueError("Cannot convert naive datetime to UTC; a timezone is required")
    return dt.astimezone(timezone.utc)


def parse_iso(iso_string: str) -> datetime:
    """ISO 8601 text (offset or 'Z' required) as a UTC datetime."""
    return to_utc(datetime.fromisoformat(iso_string))

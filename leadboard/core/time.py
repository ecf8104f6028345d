"""Time utilities for timezone-aware UTC datetimes."""

from datetime import UTC, datetime

EPOCH = datetime(1970, 1, 1, tzinfo=UTC)


def utc_now() -> datetime:
    """Return a timezone-aware UTC datetime for defaults and onupdate hooks."""
    return datetime.now(UTC)


def parse_timestamp(value) -> datetime | None:
    """Parse a stored timestamp into an aware UTC datetime, or None if it cannot be read.

    Accepts datetimes and ISO 8601 strings (including a trailing ``Z``). Naive
    values are taken to be UTC, which is how SQLite hands them back.
    """
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str) and value.strip():
        try:
            parsed = datetime.fromisoformat(value.strip())
        except ValueError:
            return None
    else:
        return None
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=UTC)
    return parsed.astimezone(UTC)

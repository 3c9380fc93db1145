"""
Datetime utilities.

All reward engine timestamps are timezone-aware UTC.
"""

from datetime import UTC, datetime


def utc_now() -> datetime:
    """Current UTC datetime with timezone info."""
    return datetime.now(UTC)


def ensure_utc(value: datetime) -> datetime:
    """
    Make a datetime aware UTC.

    Naive values are taken to be UTC; aware values are converted.
    """
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def start_of_day(value: datetime) -> datetime:
    """Midnight UTC of the day containing value."""
    return ensure_utc(value).replace(hour=0, minute=0, second=0, microsecond=0)

"""Datetime utilities for timezone-aware UTC timestamps.

Usage:
    from libs.common.datetime_utils import utc_now

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now
    )
"""

from datetime import datetime, timezone


def utc_now() -> datetime:
    """Return timezone-aware UTC datetime.

    Always use this for timestamps in the database.
    """
    return datetime.now(timezone.utc)


def utc_isoformat(value: datetime | None = None) -> str:
    """ISO-8601 UTC string with millisecond precision and a ``Z`` suffix.

    Matches the timestamp shape browsers produce, which is what the payment
    gateway echoes back inside invoice payloads.
    """
    value = (value or utc_now()).astimezone(timezone.utc)
    return value.strftime("%Y-%m-%dT%H:%M:%S.") + f"{value.microsecond // 1000:03d}Z"

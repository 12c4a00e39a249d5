"""Timestamp normalization for persisted rows.

All timestamp columns store integer milliseconds since the Unix epoch in UTC.
Naive datetimes are interpreted as UTC.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
_ONE_MILLISECOND = timedelta(milliseconds=1)


def to_epoch_millis(value: datetime) -> int:
    """Convert a datetime into integer UTC epoch milliseconds.

    Args:
        value: Aware or naive (UTC) datetime.

    Returns:
        Milliseconds since the epoch, truncated toward negative infinity.
    """
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return (value - _EPOCH) // _ONE_MILLISECOND


def from_epoch_millis(millis: int) -> datetime:
    """Convert integer UTC epoch milliseconds into an aware datetime."""
    return _EPOCH + timedelta(milliseconds=millis)


def optional_to_epoch_millis(value: datetime | None) -> int | None:
    """Convert an optional datetime, keeping None as SQL NULL."""
    if value is None:
        return None
    return to_epoch_millis(value)


def optional_from_epoch_millis(millis: int | None) -> datetime | None:
    """Convert an optional millisecond column value into a datetime."""
    if millis is None:
        return None
    return from_epoch_millis(millis)

"""Unit tests for timestamp normalization."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

from store.timestamps import (
    from_epoch_millis,
    optional_from_epoch_millis,
    optional_to_epoch_millis,
    to_epoch_millis,
)


def test_naive_datetime_is_treated_as_utc() -> None:
    """Naive datetimes should be interpreted as UTC."""
    millis = to_epoch_millis(datetime(1970, 1, 1, 0, 0, 1))

    assert millis == 1000


def test_aware_datetime_is_converted_to_utc() -> None:
    """Offsets should be applied before conversion."""
    value = datetime(1970, 1, 1, 1, 0, tzinfo=timezone(timedelta(hours=1)))

    assert to_epoch_millis(value) == 0


def test_sub_millisecond_precision_is_truncated() -> None:
    """Microseconds below one millisecond should be dropped."""
    value = datetime(1970, 1, 1, 0, 0, 0, 1999, tzinfo=timezone.utc)

    assert to_epoch_millis(value) == 1


def test_from_epoch_millis_returns_aware_utc() -> None:
    """Stored millis should load as aware UTC datetimes."""
    value = from_epoch_millis(1500)

    assert value == datetime(1970, 1, 1, 0, 0, 1, 500000, tzinfo=timezone.utc)
    assert value.utcoffset() == timedelta(0)


def test_optional_helpers_keep_none() -> None:
    """None should map to SQL NULL and back."""
    assert optional_to_epoch_millis(None) is None
    assert optional_from_epoch_millis(None) is None

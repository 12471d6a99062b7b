"""
Tests for timestamp normalization helpers.
"""

from datetime import datetime, timezone, timedelta

import pytest

from table_orders.core.clock import from_epoch_ms, to_epoch_ms, utc_now


def test_utc_now_is_naive_with_second_precision():
    now = utc_now()

    assert now.tzinfo is None
    assert now.microsecond == 0
    assert abs(datetime.now(timezone.utc).replace(tzinfo=None) - now) < timedelta(seconds=5)


def test_naive_datetimes_are_read_as_utc():
    assert to_epoch_ms(datetime(2024, 1, 1, 12, 0, 0)) == 1704110400000


def test_aware_datetimes_keep_their_offset():
    paris = timezone(timedelta(hours=1))
    assert to_epoch_ms(datetime(2024, 1, 1, 13, 0, 0, tzinfo=paris)) == 1704110400000


@pytest.mark.parametrize("value", [1704110400000, "1704110400000", 1704110400000.0])
def test_from_epoch_ms_gives_naive_utc(value):
    assert from_epoch_ms(value) == datetime(2024, 1, 1, 12, 0, 0)


def test_from_epoch_ms_round_trips_whole_seconds():
    moment = datetime(2024, 5, 1, 19, 30, 15)
    assert from_epoch_ms(to_epoch_ms(moment)) == moment


@pytest.mark.parametrize("value", ["abc", "", "nan", True])
def test_from_epoch_ms_rejects_non_numbers(value):
    with pytest.raises(ValueError):
        from_epoch_ms(value)

"""
Time helpers.

Timestamps are stored as naive UTC datetimes truncated to the second, so
every deployment compares them in the same reference zone regardless of the
server's local time. Clients exchange them as epoch milliseconds.
"""

import math
from datetime import datetime, timezone
from typing import Any, Callable

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    """Current time in UTC, second precision, without tzinfo."""
    return datetime.now(timezone.utc).replace(microsecond=0, tzinfo=None)


def to_epoch_ms(value: datetime) -> int:
    """Convert a stored timestamp to epoch milliseconds (naive means UTC)."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return int(value.timestamp() * 1000)


def from_epoch_ms(value: Any) -> datetime:
    """
    Convert epoch milliseconds (int, float or numeric string) to a naive UTC
    datetime.

    Raises:
        ValueError: if the value is not a finite number
    """
    if isinstance(value, bool):
        raise ValueError(f"Not a timestamp: {value!r}")
    millis = float(value)
    if not math.isfinite(millis):
        raise ValueError(f"Not a timestamp: {value!r}")
    moment = datetime.fromtimestamp(millis / 1000, tz=timezone.utc)
    return moment.replace(tzinfo=None)

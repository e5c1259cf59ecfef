"""Time helpers shared by the decay and rating engines."""

from __future__ import annotations

import math
import time
from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import Union

from pinball_rankings.core.constants import SECONDS_PER_DAY
from pinball_rankings.core.exceptions import ValidationError

Timestamp = Union[datetime, date, str, int, float]


@dataclass
class Clock:
    """Clock abstraction for time-based calculations.

    Allows injection of custom time for testing.
    """

    now_timestamp: float | None = None

    def __post_init__(self) -> None:
        """Initialize with current time if not provided."""
        if self.now_timestamp is None:
            self.now_timestamp = time.time()

    @property
    def now(self) -> float:
        """Get current timestamp.

        Returns:
            Current timestamp in seconds since epoch.
        """
        if self.now_timestamp is None:
            return time.time()
        return self.now_timestamp

    @property
    def now_datetime(self) -> datetime:
        """Get current time as an aware UTC datetime."""
        return datetime.fromtimestamp(self.now, tz=timezone.utc)

    def days_since(self, timestamp: Timestamp) -> float:
        """Calculate days since given timestamp.

        Args:
            timestamp: The reference timestamp.

        Returns:
            Number of days since the timestamp.
        """
        return (self.now - to_datetime(timestamp).timestamp()) / SECONDS_PER_DAY


def to_datetime(value: Timestamp) -> datetime:
    """Normalize a date-like value to an aware UTC datetime.

    Dates become midnight UTC, naive datetimes are taken as UTC, strings are
    parsed as ISO 8601 and numbers are epoch seconds.

    Raises:
        ValidationError: If the value cannot be interpreted as a point in time.
    """
    if isinstance(value, datetime):
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day, tzinfo=timezone.utc)
    if isinstance(value, str):
        try:
            return to_datetime(datetime.fromisoformat(value))
        except ValueError as exception:
            raise ValidationError(
                f"Invalid ISO timestamp: {value!r}"
            ) from exception
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        if not math.isfinite(value):
            raise ValidationError(f"Invalid epoch timestamp: {value!r}")
        return datetime.fromtimestamp(float(value), tz=timezone.utc)
    raise ValidationError(f"Unsupported timestamp type: {type(value).__name__}")


def days_between(start: Timestamp, end: Timestamp) -> int:
    """Whole days elapsed from ``start`` to ``end`` (floored, may be negative)."""
    delta = to_datetime(end) - to_datetime(start)
    return math.floor(delta.total_seconds() / SECONDS_PER_DAY)

"""Half-open time windows and period slicing."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from enum import Enum
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from reservations.errors import InvalidRange


class PricingPeriod(str, Enum):
    MINUTE = "minute"
    HOUR = "hour"
    DAY = "day"
    WEEK = "week"

    @property
    def delta(self) -> timedelta:
        return _PERIOD_DELTAS[self]


_PERIOD_DELTAS = {
    PricingPeriod.MINUTE: timedelta(minutes=1),
    PricingPeriod.HOUR: timedelta(hours=1),
    PricingPeriod.DAY: timedelta(days=1),
    PricingPeriod.WEEK: timedelta(weeks=1),
}


@dataclass(frozen=True)
class Window:
    """A half-open interval ``[start, end)``.

    Two windows that merely touch (one ends where the other starts) do not
    overlap, so back-to-back bookings never double count.
    """

    start: datetime
    end: datetime

    def __post_init__(self) -> None:
        if self.start > self.end:
            raise InvalidRange(self.start, self.end)

    @property
    def duration(self) -> timedelta:
        return self.end - self.start

    @property
    def is_empty(self) -> bool:
        return self.start == self.end


def resolve_period(period: PricingPeriod | str | timedelta) -> timedelta:
    if isinstance(period, timedelta):
        delta = period
    else:
        delta = PricingPeriod(period).delta
    if delta <= timedelta(0):
        raise ValueError("Period must be a positive duration.")
    return delta


def slice_range(start: datetime, end: datetime, period: PricingPeriod | str | timedelta) -> list[Window]:
    """Partition ``[start, end)`` into consecutive slices of ``period``.

    The last slice is truncated to ``end``. A zero-length range yields a
    single zero-length slice.
    """
    if start > end:
        raise InvalidRange(start, end)
    step = resolve_period(period)

    if start == end:
        return [Window(start, end)]

    slices: list[Window] = []
    cursor = start
    while cursor < end:
        next_cursor = min(cursor + step, end)
        slices.append(Window(cursor, next_cursor))
        cursor = next_cursor
    return slices


def overlaps(a: Window, b: Window) -> bool:
    return a.start < b.end and b.start < a.end


def clamp(window: Window, bounds: Window) -> Window:
    start = max(window.start, bounds.start)
    end = min(window.end, bounds.end)
    if start > end:
        # Disjoint: collapse onto the nearest bound edge.
        edge = bounds.start if window.end <= bounds.start else bounds.end
        return Window(edge, edge)
    return Window(start, end)


def length_of_time(window: Window, period: PricingPeriod | str | timedelta) -> int:
    """Number of billable periods in a window, as used for pricing."""
    return len(slice_range(window.start, window.end, period))


def to_utc(dt: datetime, tz_name: str) -> datetime:
    if dt.tzinfo is not None:
        return dt.astimezone(timezone.utc)

    try:
        zone = ZoneInfo(tz_name)
    except (ZoneInfoNotFoundError, ValueError):
        zone = ZoneInfo("UTC")

    return dt.replace(tzinfo=zone).astimezone(timezone.utc)

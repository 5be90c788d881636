"""Tests for window slicing, overlap and clamping."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from conftest import at, window
from reservations.errors import InvalidRange
from reservations.intervals import (
    PricingPeriod,
    Window,
    clamp,
    length_of_time,
    overlaps,
    slice_range,
    to_utc,
)


def test_window_rejects_start_after_end() -> None:
    with pytest.raises(InvalidRange):
        Window(at(2), at(1))


def test_invalid_range_is_a_value_error() -> None:
    with pytest.raises(ValueError):
        slice_range(at(3), at(1), PricingPeriod.DAY)


def test_slice_range_by_day_covers_range_without_gaps() -> None:
    slices = slice_range(at(1), at(4), PricingPeriod.DAY)

    assert len(slices) == 3
    assert slices[0].start == at(1)
    assert slices[-1].end == at(4)
    for previous, current in zip(slices, slices[1:]):
        assert previous.end == current.start
    assert all(s.duration <= timedelta(days=1) for s in slices)


def test_slice_range_truncates_last_slice() -> None:
    slices = slice_range(at(1, 0), at(1, 2) + timedelta(minutes=30), "hour")

    assert [s.duration for s in slices] == [
        timedelta(hours=1),
        timedelta(hours=1),
        timedelta(minutes=30),
    ]
    assert slices[-1].end == at(1, 2) + timedelta(minutes=30)


def test_slice_range_zero_length_yields_single_empty_slice() -> None:
    slices = slice_range(at(5), at(5), PricingPeriod.DAY)

    assert slices == [Window(at(5), at(5))]
    assert slices[0].is_empty


def test_slice_range_accepts_timedelta_period() -> None:
    slices = slice_range(at(1, 0), at(1, 1), timedelta(minutes=15))
    assert len(slices) == 4


def test_slice_range_rejects_non_positive_period() -> None:
    with pytest.raises(ValueError):
        slice_range(at(1), at(2), timedelta(0))


def test_slice_range_rejects_unknown_period_name() -> None:
    with pytest.raises(ValueError):
        slice_range(at(1), at(2), "fortnight")


def test_overlap_is_symmetric() -> None:
    a = window(1, 3)
    b = window(2, 5)
    c = window(5, 6)

    assert overlaps(a, b) and overlaps(b, a)
    assert not overlaps(a, c) and not overlaps(c, a)


def test_abutting_windows_do_not_overlap() -> None:
    assert not overlaps(window(1, 2), window(2, 3))


def test_contained_window_overlaps() -> None:
    assert overlaps(window(1, 10), window(3, 4))


def test_clamp_intersects_windows() -> None:
    assert clamp(window(1, 5), window(3, 8)) == window(3, 5)


def test_clamp_disjoint_returns_degenerate_window() -> None:
    clamped = clamp(window(1, 2), window(5, 8))

    assert clamped.is_empty
    assert clamped.duration == timedelta(0)


def test_length_of_time_counts_started_periods() -> None:
    assert length_of_time(window(1, 4), PricingPeriod.DAY) == 3
    assert length_of_time(Window(at(1, 0), at(1, 12)), PricingPeriod.DAY) == 1
    assert length_of_time(Window(at(1, 0), at(1, 12)), PricingPeriod.HOUR) == 12


def test_to_utc_localises_naive_datetimes() -> None:
    local = datetime(2026, 7, 1, 12, 0)
    converted = to_utc(local, "Europe/London")

    assert converted == datetime(2026, 7, 1, 11, 0, tzinfo=timezone.utc)


def test_to_utc_falls_back_to_utc_for_unknown_zone() -> None:
    local = datetime(2026, 7, 1, 12, 0)
    assert to_utc(local, "Not/AZone") == datetime(2026, 7, 1, 12, 0, tzinfo=timezone.utc)

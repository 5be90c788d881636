"""Booked quantity and remaining spaces for a resource window."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta
from typing import Iterable

from reservations.domain import Allocation, Booking, Resource
from reservations.intervals import PricingPeriod, Window, overlaps, slice_range
from reservations.ledger import effective_capacity
from reservations.lifecycle import is_active


@dataclass(frozen=True)
class SlotAvailability:
    window: Window
    effective_capacity: int
    booked: int

    @property
    def remaining(self) -> int:
        return self.effective_capacity - self.booked

    @property
    def fully_booked(self) -> bool:
        return self.remaining <= 0


def active_overlaps(resource: Resource, window: Window, bookings: Iterable[Booking]) -> list[Booking]:
    return [
        booking
        for booking in bookings
        if booking.resource_id == resource.id and is_active(booking.status) and overlaps(booking.window, window)
    ]


def booked_quantity(resource: Resource, window: Window, bookings: Iterable[Booking]) -> int:
    return sum(booking.spaces for booking in active_overlaps(resource, window, bookings))


def total_booked_spaces(resource: Resource, window: Window, bookings: Iterable[Booking]) -> int:
    return booked_quantity(resource, window, bookings)


def remaining_spaces(
    resource: Resource,
    window: Window,
    bookings: Iterable[Booking],
    allocations: Iterable[Allocation] = (),
) -> int:
    """Effective capacity minus booked quantity.

    Negative values mean the window is overbooked and must be passed on
    unclamped; use ``spaces_available`` for display.
    """
    return effective_capacity(resource, window, allocations) - booked_quantity(resource, window, bookings)


def spaces_available(
    resource: Resource,
    window: Window,
    bookings: Iterable[Booking],
    allocations: Iterable[Allocation] = (),
) -> int:
    return max(remaining_spaces(resource, window, bookings, allocations), 0)


def slot_availability(
    resource: Resource,
    window: Window,
    bookings: Iterable[Booking],
    allocations: Iterable[Allocation] = (),
    period: PricingPeriod | str | timedelta | None = None,
) -> list[SlotAvailability]:
    booking_list = list(bookings)
    allocation_list = list(allocations)
    slots: list[SlotAvailability] = []
    for slot in slice_range(window.start, window.end, period or resource.pricing_period):
        slots.append(
            SlotAvailability(
                window=slot,
                effective_capacity=effective_capacity(resource, slot, allocation_list),
                booked=booked_quantity(resource, slot, booking_list),
            )
        )
    return slots


def fully_booked_slots(
    resource: Resource,
    window: Window,
    bookings: Iterable[Booking],
    allocations: Iterable[Allocation] = (),
    period: PricingPeriod | str | timedelta | None = None,
) -> list[Window]:
    return [
        slot.window
        for slot in slot_availability(resource, window, bookings, allocations, period)
        if slot.fully_booked
    ]

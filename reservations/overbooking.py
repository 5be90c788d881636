"""Detection of resource windows committed beyond their capacity."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Mapping

from reservations.accounting import remaining_spaces
from reservations.domain import Allocation, Booking, Resource
from reservations.errors import UnknownResource
from reservations.intervals import Window


@dataclass(frozen=True)
class OverbookedAllocation:
    resource_id: str
    window: Window
    remaining: int


def is_overbooked(
    resource: Resource,
    window: Window,
    bookings: Iterable[Booking],
    allocations: Iterable[Allocation] = (),
) -> bool:
    return remaining_spaces(resource, window, bookings, allocations) < 0


def would_overbook(
    candidate: Booking,
    resource: Resource,
    bookings: Iterable[Booking],
    allocations: Iterable[Allocation] = (),
) -> bool:
    """Check whether committing ``candidate`` would push the window below zero.

    A candidate that leaves remaining spaces unchanged or higher (zero spaces,
    or an edit that shrinks an existing booking) never counts as overbooking,
    even when the window is already oversubscribed.
    """
    booking_list = list(bookings)
    allocation_list = list(allocations)
    before = remaining_spaces(resource, candidate.window, booking_list, allocation_list)
    if candidate.id is None or all(existing.id != candidate.id for existing in booking_list):
        booking_list.append(candidate)
    else:
        booking_list = [candidate if existing.id == candidate.id else existing for existing in booking_list]
    after = remaining_spaces(resource, candidate.window, booking_list, allocation_list)
    return after < 0 and after < before


def find_overbooked_allocations(
    items: Iterable[Booking],
    resources: Mapping[str, Resource],
    bookings: Iterable[Booking],
    allocations: Iterable[Allocation] = (),
) -> list[OverbookedAllocation]:
    """Evaluate each resource/window pair of a composite booking on its own."""
    booking_list = list(bookings)
    allocation_list = list(allocations)
    overbooked: list[OverbookedAllocation] = []
    seen: set[tuple[str, Window]] = set()

    for item in items:
        key = (item.resource_id, item.window)
        if key in seen:
            continue
        seen.add(key)

        resource = resources.get(item.resource_id)
        if resource is None:
            raise UnknownResource(item.resource_id)

        remaining = remaining_spaces(resource, item.window, booking_list, allocation_list)
        if remaining < 0:
            overbooked.append(OverbookedAllocation(item.resource_id, item.window, remaining))

    return overbooked

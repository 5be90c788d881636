"""Availability queries resolved against the storage collaborators."""

from __future__ import annotations

from datetime import timedelta
from typing import Iterable, Optional

from reservations import accounting, ledger, overbooking
from reservations.accounting import SlotAvailability
from reservations.domain import Booking, Resource
from reservations.intervals import PricingPeriod, Window, length_of_time
from reservations.ledger import CapacityBreakdown
from reservations.overbooking import OverbookedAllocation
from reservations.stores import AllocationStore, BookingStore, ResourceProvider
from logger import get_logger

logger = get_logger(__name__)


class AvailabilityEngine:
    """Read-only façade over a resource provider and allocation/booking stores.

    Every call re-reads the stores; nothing is cached between queries.
    Deciding to accept a booking from ``remaining_spaces`` is only safe if the
    caller re-validates under its own per-resource lock before committing.
    """

    def __init__(
        self,
        resources: ResourceProvider,
        allocations: AllocationStore,
        bookings: BookingStore,
    ) -> None:
        self._resources = resources
        self._allocations = allocations
        self._bookings = bookings

    def _snapshot(self, resource_id: str, window: Window):
        resource = self._resources.get_resource(resource_id)
        allocations = list(self._allocations.allocations_overlapping(resource_id, window))
        bookings = list(self._bookings.bookings_overlapping(resource_id, window))
        return resource, allocations, bookings

    def get_resource(self, resource_id: str) -> Resource:
        return self._resources.get_resource(resource_id)

    def capacity_breakdown(self, resource_id: str, window: Window) -> CapacityBreakdown:
        resource, allocations, _ = self._snapshot(resource_id, window)
        return ledger.capacity_breakdown(resource, window, allocations)

    def effective_capacity(self, resource_id: str, window: Window) -> int:
        return self.capacity_breakdown(resource_id, window).effective

    def booked_quantity(self, resource_id: str, window: Window) -> int:
        resource, _, bookings = self._snapshot(resource_id, window)
        return accounting.booked_quantity(resource, window, bookings)

    def total_booked_spaces(self, resource_id: str, window: Window) -> int:
        return self.booked_quantity(resource_id, window)

    def remaining_spaces(self, resource_id: str, window: Window) -> int:
        resource, allocations, bookings = self._snapshot(resource_id, window)
        return accounting.remaining_spaces(resource, window, bookings, allocations)

    def is_overbooked(self, resource_id: str, window: Window) -> bool:
        resource, allocations, bookings = self._snapshot(resource_id, window)
        overbooked = overbooking.is_overbooked(resource, window, bookings, allocations)
        if overbooked:
            logger.warning("Resource %s is overbooked between %s and %s", resource_id, window.start, window.end)
        return overbooked

    def would_overbook(self, candidate: Booking) -> bool:
        resource, allocations, bookings = self._snapshot(candidate.resource_id, candidate.window)
        return overbooking.would_overbook(candidate, resource, bookings, allocations)

    def find_overbooked_allocations(self, items: Iterable[Booking]) -> list[OverbookedAllocation]:
        found: list[OverbookedAllocation] = []
        for item in items:
            resource, allocations, bookings = self._snapshot(item.resource_id, item.window)
            found.extend(
                overbooking.find_overbooked_allocations(
                    [item],
                    {resource.id: resource},
                    bookings,
                    allocations,
                )
            )
        # Lines sharing a resource and window are reported once.
        unique = list(dict.fromkeys(found))
        for entry in unique:
            logger.warning(
                "Overbooked allocation: resource=%s window=[%s, %s) remaining=%s",
                entry.resource_id,
                entry.window.start,
                entry.window.end,
                entry.remaining,
            )
        return unique

    def slot_availability(
        self,
        resource_id: str,
        window: Window,
        period: PricingPeriod | str | timedelta | None = None,
    ) -> list[SlotAvailability]:
        resource, allocations, bookings = self._snapshot(resource_id, window)
        return accounting.slot_availability(resource, window, bookings, allocations, period)

    def fully_booked_slots(
        self,
        resource_id: str,
        window: Window,
        period: PricingPeriod | str | timedelta | None = None,
    ) -> list[Window]:
        return [slot.window for slot in self.slot_availability(resource_id, window, period) if slot.fully_booked]

    def length_of_time(self, resource_id: str, window: Window, period: Optional[PricingPeriod] = None) -> int:
        resource = self._resources.get_resource(resource_id)
        return length_of_time(window, period or resource.pricing_period)

"""Effective capacity of a resource after administrator allocations."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

from reservations.domain import Allocation, AllocationMode, Resource
from reservations.intervals import Window, overlaps


@dataclass(frozen=True)
class CapacityBreakdown:
    """How a resource's base capacity was adjusted for one window.

    ``allocated_all`` counts the full-capacity reservations separately from
    the quantity-based ``reserved`` figure so callers can tell the two apart.
    """

    base: int
    added: int
    reserved: int
    allocated_all: int

    @property
    def effective(self) -> int:
        return max(self.base - self.allocated_all + self.added - self.reserved, 0)


def overlapping_allocations(resource: Resource, window: Window, allocations: Iterable[Allocation]) -> list[Allocation]:
    return [
        allocation
        for allocation in allocations
        if allocation.resource_id == resource.id and overlaps(allocation.window, window)
    ]


def capacity_breakdown(resource: Resource, window: Window, allocations: Iterable[Allocation]) -> CapacityBreakdown:
    # Any overlap applies the whole allocation; partial overlaps are not prorated.
    relevant = overlapping_allocations(resource, window, allocations)

    # Several allocate-all blocks still reserve the base capacity only once.
    allocate_all = any(a.mode == AllocationMode.ALLOCATE_ALL for a in relevant)
    allocated_all = resource.capacity if allocate_all else 0
    added = sum(a.quantity for a in relevant if a.mode == AllocationMode.INCREASE)
    reserved = sum(a.quantity for a in relevant if a.mode == AllocationMode.RESERVE)

    return CapacityBreakdown(
        base=resource.capacity,
        added=added,
        reserved=reserved,
        allocated_all=allocated_all,
    )


def effective_capacity(resource: Resource, window: Window, allocations: Iterable[Allocation]) -> int:
    return capacity_breakdown(resource, window, allocations).effective

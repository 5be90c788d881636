"""Collaborator interfaces the engine reads from, plus an in-memory snapshot."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Iterable, Optional, Protocol, Sequence

from reservations.domain import Allocation, Booking, Resource
from reservations.errors import UnknownResource
from reservations.intervals import Window, overlaps


class ResourceProvider(Protocol):
    def get_resource(self, resource_id: str) -> Resource: ...

    def list_bookable_resources(self, predicate: Optional[Callable[[Resource], bool]] = None) -> Sequence[Resource]:
        """Bookable resources, narrowed by the optional ``predicate`` filter."""


class AllocationStore(Protocol):
    def allocations_overlapping(self, resource_id: str, window: Window) -> Sequence[Allocation]: ...


class BookingStore(Protocol):
    def bookings_overlapping(self, resource_id: str, window: Window) -> Sequence[Booking]: ...


@dataclass
class InMemoryStore:
    """Serves resources, allocations and bookings from plain lists."""

    resources: dict[str, Resource] = field(default_factory=dict)
    allocations: list[Allocation] = field(default_factory=list)
    bookings: list[Booking] = field(default_factory=list)

    @classmethod
    def from_iterables(
        cls,
        resources: Iterable[Resource] = (),
        allocations: Iterable[Allocation] = (),
        bookings: Iterable[Booking] = (),
    ) -> "InMemoryStore":
        return cls(
            resources={resource.id: resource for resource in resources},
            allocations=list(allocations),
            bookings=list(bookings),
        )

    def get_resource(self, resource_id: str) -> Resource:
        try:
            return self.resources[resource_id]
        except KeyError:
            raise UnknownResource(resource_id) from None

    def list_bookable_resources(self, predicate: Optional[Callable[[Resource], bool]] = None) -> list[Resource]:
        return [resource for resource in self.resources.values() if predicate is None or predicate(resource)]

    def allocations_overlapping(self, resource_id: str, window: Window) -> list[Allocation]:
        return [a for a in self.allocations if a.resource_id == resource_id and overlaps(a.window, window)]

    def bookings_overlapping(self, resource_id: str, window: Window) -> list[Booking]:
        return [b for b in self.bookings if b.resource_id == resource_id and overlaps(b.window, window)]

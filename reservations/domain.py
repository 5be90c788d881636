"""Plain value types the availability engine computes over."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from reservations.intervals import PricingPeriod, Window


class BookingStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"


class AllocationMode(str, Enum):
    ALLOCATE_ALL = "allocate_all"
    INCREASE = "increase"
    RESERVE = "reserve"


@dataclass(frozen=True)
class Resource:
    id: str
    title: str
    capacity: int
    pricing_period: PricingPeriod = PricingPeriod.DAY

    def __post_init__(self) -> None:
        if self.capacity < 0:
            raise ValueError(f"Resource {self.id}: capacity cannot be negative")


@dataclass(frozen=True)
class Allocation:
    resource_id: str
    window: Window
    quantity: int = 0
    mode: AllocationMode = AllocationMode.RESERVE
    title: Optional[str] = None

    def __post_init__(self) -> None:
        if self.quantity < 0:
            raise ValueError("Allocation quantity cannot be negative")

    @property
    def full_title(self) -> str:
        if self.title:
            return self.title
        return f"{self.window.start} - {self.window.end}"


@dataclass(frozen=True)
class Booking:
    resource_id: str
    window: Window
    spaces: int
    status: BookingStatus = BookingStatus.PENDING
    id: Optional[str] = None
    reference: Optional[str] = None

    def __post_init__(self) -> None:
        if self.spaces < 0:
            raise ValueError("Booking spaces cannot be negative")


@dataclass(frozen=True)
class CompositeBooking:
    """One customer booking spread over several resource lines."""

    window: Window
    items: list[Booking] = field(default_factory=list)
    reference: Optional[str] = None

    def normalized_items(self) -> list[Booking]:
        """Pull any item boundary lying outside the parent window onto it."""
        normalized: list[Booking] = []
        for item in self.items:
            start = item.window.start
            end = item.window.end
            if start < self.window.start or start > self.window.end:
                start = self.window.start
            if end > self.window.end or end < self.window.start:
                end = self.window.end
            normalized.append(
                Booking(
                    resource_id=item.resource_id,
                    window=Window(start, end),
                    spaces=item.spaces,
                    status=item.status,
                    id=item.id,
                    reference=item.reference or self.reference,
                )
            )
        return normalized

"""Error taxonomy for availability calculations."""

from __future__ import annotations


class AvailabilityError(Exception):
    """Base class for every error raised by the availability engine."""


class InvalidRange(AvailabilityError, ValueError):
    def __init__(self, start, end) -> None:
        super().__init__(f"Window start ({start}) is after its end ({end}).")
        self.start = start
        self.end = end


class InvalidTransition(AvailabilityError):
    def __init__(self, current, target) -> None:
        current_value = getattr(current, "value", current)
        target_value = getattr(target, "value", target)
        super().__init__(f"Cannot move booking from '{current_value}' to '{target_value}'.")
        self.current = current
        self.target = target


class UnknownResource(AvailabilityError, LookupError):
    def __init__(self, resource_id) -> None:
        super().__init__(f"Bookable resource not found: {resource_id}")
        self.resource_id = resource_id


class BookingConflict(AvailabilityError):
    """Raised when a booking cannot be committed without overbooking."""

    def __init__(self, resource_id, remaining: int, requested: int) -> None:
        super().__init__(
            f"Resource {resource_id} has {max(remaining, 0)} spaces remaining; {requested} requested."
        )
        self.resource_id = resource_id
        self.remaining = remaining
        self.requested = requested


class UnknownBooking(AvailabilityError, LookupError):
    def __init__(self, booking_id) -> None:
        super().__init__(f"Booking not found: {booking_id}")
        self.booking_id = booking_id

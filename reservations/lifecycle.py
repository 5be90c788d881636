"""Booking status transitions."""

from __future__ import annotations

from dataclasses import replace

from reservations.domain import Booking, BookingStatus
from reservations.errors import InvalidTransition

ACTIVE_STATUSES = frozenset({BookingStatus.PENDING, BookingStatus.CONFIRMED})

# Cancelled is terminal; a fresh booking is the only way back.
ALLOWED_TRANSITIONS: dict[BookingStatus, frozenset[BookingStatus]] = {
    BookingStatus.PENDING: frozenset({BookingStatus.PENDING, BookingStatus.CONFIRMED, BookingStatus.CANCELLED}),
    BookingStatus.CONFIRMED: frozenset({BookingStatus.CONFIRMED, BookingStatus.CANCELLED}),
    BookingStatus.CANCELLED: frozenset(),
}


def is_active(status: BookingStatus | str) -> bool:
    return BookingStatus(status) in ACTIVE_STATUSES


def validate_transition(current: BookingStatus | str, target: BookingStatus | str) -> BookingStatus:
    current_status = BookingStatus(current)
    target_status = BookingStatus(target)
    if target_status not in ALLOWED_TRANSITIONS[current_status]:
        raise InvalidTransition(current_status, target_status)
    return target_status


def transition(booking: Booking, target: BookingStatus | str) -> Booking:
    return replace(booking, status=validate_transition(booking.status, target))


def mark_pending(booking: Booking) -> Booking:
    return transition(booking, BookingStatus.PENDING)


def mark_confirmed(booking: Booking) -> Booking:
    return transition(booking, BookingStatus.CONFIRMED)


def mark_cancelled(booking: Booking) -> Booking:
    return transition(booking, BookingStatus.CANCELLED)

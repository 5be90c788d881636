"""SQLAlchemy store and commit boundary against in-memory SQLite."""

from __future__ import annotations

import pytest

from conftest import window
from db.repository import (
    SqlAlchemyStore,
    commit_booking,
    commit_composite_booking,
    create_allocation,
    set_booking_status,
    upsert_resource,
)
from db.session import validate_db_compatibility
from reservations.domain import AllocationMode, Booking, BookingStatus, CompositeBooking
from reservations.errors import BookingConflict, InvalidTransition, UnknownBooking, UnknownResource
from reservations.models import Booking as BookingRow


@pytest.fixture
def seeded(db_session):
    upsert_resource(db_session, resource_id="kayak", title="Kayak", capacity=10)
    upsert_resource(db_session, resource_id="canoe", title="Canoe", capacity=2)
    return db_session


def test_schema_matches_compatibility_check(session_factory) -> None:
    validate_db_compatibility(session_factory.kw["bind"])


def test_store_reads_resources(seeded) -> None:
    store = SqlAlchemyStore(seeded)

    assert store.get_resource("kayak").capacity == 10
    assert [r.id for r in store.list_bookable_resources()] == ["canoe", "kayak"]
    assert [r.id for r in store.list_bookable_resources(lambda r: r.capacity > 5)] == ["kayak"]


def test_inactive_resource_is_unknown(seeded) -> None:
    upsert_resource(seeded, resource_id="canoe", title="Canoe", capacity=2, is_active=False)

    with pytest.raises(UnknownResource):
        SqlAlchemyStore(seeded).get_resource("canoe")


def test_commit_booking_and_remaining_spaces(seeded) -> None:
    commit_booking(seeded, Booking("kayak", window(1, 4), spaces=4, status=BookingStatus.CONFIRMED))
    commit_booking(seeded, Booking("kayak", window(2, 6), spaces=3))

    engine = SqlAlchemyStore(seeded).engine()

    assert engine.booked_quantity("kayak", window(2, 3)) == 7
    assert engine.remaining_spaces("kayak", window(2, 3)) == 3


def test_commit_rejects_overbooking(seeded) -> None:
    commit_booking(seeded, Booking("canoe", window(1, 3), spaces=2))

    with pytest.raises(BookingConflict) as excinfo:
        commit_booking(seeded, Booking("canoe", window(2, 4), spaces=1))

    assert excinfo.value.remaining == 0
    assert seeded.query(BookingRow).count() == 1


def test_commit_can_allow_overbooking(seeded) -> None:
    commit_booking(seeded, Booking("canoe", window(1, 3), spaces=2))
    commit_booking(seeded, Booking("canoe", window(1, 3), spaces=1), allow_overbooking=True)

    assert SqlAlchemyStore(seeded).engine().is_overbooked("canoe", window(1, 3))


def test_commit_unknown_resource(seeded) -> None:
    with pytest.raises(UnknownResource):
        commit_booking(seeded, Booking("raft", window(1, 3), spaces=1))


def test_allocation_reduces_capacity(seeded) -> None:
    created = create_allocation(
        seeded,
        title="Maintenance",
        window=window(5, 7),
        lines=[("kayak", 4, AllocationMode.RESERVE), ("canoe", 0, "allocate_all")],
    )
    engine = SqlAlchemyStore(seeded).engine()

    assert len(created) == 2
    assert engine.effective_capacity("kayak", window(6, 8)) == 6
    assert engine.effective_capacity("canoe", window(6, 8)) == 0
    assert engine.effective_capacity("canoe", window(7, 8)) == 2


def test_allocation_for_unknown_resource_rolls_back(seeded) -> None:
    with pytest.raises(UnknownResource):
        create_allocation(seeded, window=window(5, 7), lines=[("raft", 1, "reserve")])

    assert SqlAlchemyStore(seeded).allocations_overlapping("kayak", window(1, 9)) == []


def test_cancel_frees_spaces(seeded) -> None:
    booking = commit_booking(seeded, Booking("canoe", window(1, 3), spaces=2))

    cancelled = set_booking_status(seeded, booking.id, BookingStatus.CANCELLED)
    commit_booking(seeded, Booking("canoe", window(1, 3), spaces=2))

    assert cancelled.status == BookingStatus.CANCELLED
    assert SqlAlchemyStore(seeded).engine().remaining_spaces("canoe", window(1, 3)) == 0


def test_cancelled_booking_cannot_be_confirmed(seeded) -> None:
    booking = commit_booking(seeded, Booking("canoe", window(1, 3), spaces=1))
    set_booking_status(seeded, booking.id, "cancelled")

    with pytest.raises(InvalidTransition):
        set_booking_status(seeded, booking.id, "confirmed")

    assert SqlAlchemyStore(seeded).get_booking(booking.id).status == BookingStatus.CANCELLED


def test_status_of_unknown_booking(seeded) -> None:
    with pytest.raises(UnknownBooking):
        set_booking_status(seeded, "missing", "confirmed")


def test_composite_booking_is_all_or_nothing(seeded) -> None:
    composite = CompositeBooking(
        window=window(1, 4),
        reference="order-1",
        items=[
            Booking("kayak", window(1, 4), spaces=2),
            Booking("canoe", window(1, 4), spaces=1),
            Booking("canoe", window(2, 9), spaces=2),
        ],
    )

    with pytest.raises(BookingConflict):
        commit_composite_booking(seeded, composite)

    assert SqlAlchemyStore(seeded).bookings_for_reference("order-1") == []


def test_composite_booking_commits_clamped_lines(seeded) -> None:
    composite = CompositeBooking(
        window=window(1, 4),
        reference="order-2",
        items=[Booking("kayak", window(1, 4), spaces=2), Booking("canoe", window(2, 9), spaces=2)],
    )

    committed = commit_composite_booking(seeded, composite)
    stored = SqlAlchemyStore(seeded).bookings_for_reference("order-2")

    assert len(committed) == 2
    assert [b.window for b in stored] == [window(1, 4), window(2, 4)]
    assert all(b.reference == "order-2" for b in stored)


def test_zero_space_booking_commits_into_overbooked_window(seeded) -> None:
    upsert_resource(seeded, resource_id="canoe", title="Canoe", capacity=1)
    commit_booking(seeded, Booking("canoe", window(1, 3), spaces=2), allow_overbooking=True)

    committed = commit_booking(seeded, Booking("canoe", window(1, 3), spaces=0))

    assert committed.spaces == 0
    assert SqlAlchemyStore(seeded).engine().remaining_spaces("canoe", window(1, 3)) == -1

"""SQLAlchemy-backed collaborators and the booking commit boundary."""

from __future__ import annotations

from contextlib import contextmanager
from typing import Callable, Iterable, Iterator, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from logger import get_logger
from reservations import domain
from reservations.engine import AvailabilityEngine
from reservations.errors import BookingConflict, UnknownBooking, UnknownResource
from reservations.intervals import PricingPeriod, Window
from reservations.lifecycle import ACTIVE_STATUSES, is_active, validate_transition
from reservations.models import AllocationLine, BookableResource, Booking, ResourceAllocation

logger = get_logger(__name__)

ACTIVE_STATUS_VALUES = sorted(status.value for status in ACTIVE_STATUSES)


@contextmanager
def _transaction(db: Session) -> Iterator[None]:
    try:
        yield
        db.commit()
    except Exception:
        db.rollback()
        raise


def _lock_resource(db: Session, resource_id: str) -> BookableResource:
    # Row lock on the resource serialises every commit against it.
    resource = db.scalar(
        select(BookableResource)
        .where(BookableResource.id == resource_id, BookableResource.is_active.is_(True))
        .with_for_update()
    )
    if resource is None:
        raise UnknownResource(resource_id)
    return resource


class SqlAlchemyStore:
    """Resource provider, allocation store and booking store over one session."""

    def __init__(self, db: Session) -> None:
        self._db = db

    def engine(self) -> AvailabilityEngine:
        return AvailabilityEngine(self, self, self)

    def get_resource(self, resource_id: str) -> domain.Resource:
        resource = self._db.get(BookableResource, resource_id)
        if resource is None or not resource.is_active:
            raise UnknownResource(resource_id)
        return resource.to_domain()

    def list_bookable_resources(
        self, predicate: Optional[Callable[[domain.Resource], bool]] = None
    ) -> list[domain.Resource]:
        stmt = (
            select(BookableResource)
            .where(BookableResource.is_active.is_(True))
            .order_by(BookableResource.title.asc())
        )
        resources = [row.to_domain() for row in self._db.scalars(stmt)]
        return [resource for resource in resources if predicate is None or predicate(resource)]

    def allocations_overlapping(self, resource_id: str, window: Window) -> list[domain.Allocation]:
        stmt = (
            select(AllocationLine)
            .join(ResourceAllocation, AllocationLine.allocation_id == ResourceAllocation.id)
            .where(
                AllocationLine.resource_id == resource_id,
                ResourceAllocation.start_time < window.end,
                ResourceAllocation.end_time > window.start,
            )
        )
        return [line.to_domain() for line in self._db.scalars(stmt)]

    def bookings_overlapping(self, resource_id: str, window: Window) -> list[domain.Booking]:
        stmt = select(Booking).where(
            Booking.resource_id == resource_id,
            Booking.status.in_(ACTIVE_STATUS_VALUES),
            Booking.start_time < window.end,
            Booking.end_time > window.start,
        )
        return [row.to_domain() for row in self._db.scalars(stmt)]

    def bookings_for_reference(self, reference: str) -> list[domain.Booking]:
        stmt = select(Booking).where(Booking.reference == reference).order_by(Booking.start_time.asc())
        return [row.to_domain() for row in self._db.scalars(stmt)]

    def get_booking(self, booking_id: str) -> domain.Booking:
        booking = self._db.get(Booking, booking_id)
        if booking is None:
            raise UnknownBooking(booking_id)
        return booking.to_domain()


def commit_booking(db: Session, booking: domain.Booking, *, allow_overbooking: bool = False) -> domain.Booking:
    """Persist a booking after re-checking availability under the resource lock."""
    with _transaction(db):
        _lock_resource(db, booking.resource_id)
        engine = SqlAlchemyStore(db).engine()

        if is_active(booking.status) and not allow_overbooking and engine.would_overbook(booking):
            remaining = engine.remaining_spaces(booking.resource_id, booking.window)
            logger.info(
                "Rejected booking for resource %s: %s requested, %s remaining",
                booking.resource_id,
                booking.spaces,
                remaining,
            )
            raise BookingConflict(booking.resource_id, remaining, booking.spaces)

        row = Booking(
            resource_id=booking.resource_id,
            reference=booking.reference,
            start_time=booking.window.start,
            end_time=booking.window.end,
            spaces=booking.spaces,
            status=domain.BookingStatus(booking.status).value,
        )
        if booking.id:
            row.id = booking.id
        db.add(row)
        db.flush()
        committed = row.to_domain()

    logger.info("Committed booking %s for resource %s (%s spaces)", committed.id, committed.resource_id, committed.spaces)
    return committed


def commit_composite_booking(
    db: Session,
    composite: domain.CompositeBooking,
    *,
    allow_overbooking: bool = False,
) -> list[domain.Booking]:
    """Commit every line of a composite booking, or none of them."""
    with _transaction(db):
        items = composite.normalized_items()
        for resource_id in sorted({item.resource_id for item in items}):
            _lock_resource(db, resource_id)

        engine = SqlAlchemyStore(db).engine()
        rows: list[Booking] = []
        for item in items:
            if is_active(item.status) and not allow_overbooking and engine.would_overbook(item):
                remaining = engine.remaining_spaces(item.resource_id, item.window)
                raise BookingConflict(item.resource_id, remaining, item.spaces)
            row = Booking(
                resource_id=item.resource_id,
                reference=item.reference,
                start_time=item.window.start,
                end_time=item.window.end,
                spaces=item.spaces,
                status=domain.BookingStatus(item.status).value,
            )
            db.add(row)
            # Flush so later lines on the same resource see this one.
            db.flush()
            rows.append(row)
        committed = [row.to_domain() for row in rows]

    logger.info("Committed %s booking lines for reference %s", len(committed), composite.reference)
    return committed


def set_booking_status(db: Session, booking_id: str, target: domain.BookingStatus | str) -> domain.Booking:
    with _transaction(db):
        booking = db.scalar(select(Booking).where(Booking.id == booking_id).with_for_update())
        if booking is None:
            raise UnknownBooking(booking_id)

        new_status = validate_transition(booking.status, target)
        previous = booking.status
        booking.status = new_status.value
        db.flush()
        updated = booking.to_domain()

    logger.info("Booking %s moved from %s to %s", booking_id, previous, new_status.value)
    return updated


def upsert_resource(
    db: Session,
    *,
    title: str,
    capacity: int,
    pricing_period: PricingPeriod | str = PricingPeriod.DAY,
    resource_id: Optional[str] = None,
    is_active: bool = True,
) -> domain.Resource:
    with _transaction(db):
        resource = db.get(BookableResource, resource_id) if resource_id else None
        if resource is None:
            resource = BookableResource(title=title)
            if resource_id:
                resource.id = resource_id
            db.add(resource)

        resource.title = title
        resource.capacity = capacity
        resource.pricing_period = PricingPeriod(pricing_period).value
        resource.is_active = is_active
        db.flush()
        result = resource.to_domain()

    return result


def create_allocation(
    db: Session,
    *,
    window: Window,
    lines: Iterable[tuple[str, int, domain.AllocationMode | str]],
    title: Optional[str] = None,
) -> list[domain.Allocation]:
    with _transaction(db):
        allocation = ResourceAllocation(title=title, start_time=window.start, end_time=window.end)
        for resource_id, quantity, mode in lines:
            if db.get(BookableResource, resource_id) is None:
                raise UnknownResource(resource_id)
            allocation.lines.append(
                AllocationLine(
                    resource_id=resource_id,
                    quantity=quantity,
                    mode=domain.AllocationMode(mode).value,
                )
            )
        db.add(allocation)
        db.flush()
        created = allocation.to_domain()
        allocation_id = allocation.id

    logger.info("Created allocation %s covering %s resources", allocation_id, len(created))
    return created

"""SQLAlchemy models for bookable resources, allocations and bookings."""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import Boolean, DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship
from sqlalchemy.sql import func

from reservations import domain
from reservations.intervals import PricingPeriod, Window


class Base(DeclarativeBase):
    pass


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes even for timezone-aware columns.
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _new_id() -> str:
    return str(uuid.uuid4())


class BookableResource(Base):
    __tablename__ = "bookable_resources"

    id: Mapped[str] = mapped_column(String, primary_key=True, default=_new_id)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    capacity: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    pricing_period: Mapped[str] = mapped_column(String(16), nullable=False, default=PricingPeriod.DAY.value)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    def to_domain(self) -> domain.Resource:
        return domain.Resource(
            id=self.id,
            title=self.title,
            capacity=self.capacity,
            pricing_period=PricingPeriod(self.pricing_period),
        )


class ResourceAllocation(Base):
    """Capacity pre-allocated by an administrator, e.g. closed over a holiday."""

    __tablename__ = "resource_allocations"

    id: Mapped[str] = mapped_column(String, primary_key=True, default=_new_id)
    title: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    start_time: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, index=True)
    end_time: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    lines: Mapped[list["AllocationLine"]] = relationship(
        back_populates="allocation",
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    @property
    def window(self) -> Window:
        return Window(_as_utc(self.start_time), _as_utc(self.end_time))

    @property
    def resources_list(self) -> str:
        return ", ".join(line.resource.title for line in self.lines if line.resource is not None)

    def to_domain(self) -> list[domain.Allocation]:
        return [line.to_domain() for line in self.lines]


class AllocationLine(Base):
    __tablename__ = "allocation_lines"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    allocation_id: Mapped[str] = mapped_column(
        String, ForeignKey("resource_allocations.id", ondelete="CASCADE"), nullable=False, index=True
    )
    resource_id: Mapped[str] = mapped_column(
        String, ForeignKey("bookable_resources.id", ondelete="CASCADE"), nullable=False, index=True
    )
    quantity: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    mode: Mapped[str] = mapped_column(String(16), nullable=False, default=domain.AllocationMode.RESERVE.value)

    allocation: Mapped[ResourceAllocation] = relationship(back_populates="lines")
    resource: Mapped[BookableResource] = relationship(lazy="joined")

    def to_domain(self) -> domain.Allocation:
        return domain.Allocation(
            resource_id=self.resource_id,
            window=self.allocation.window,
            quantity=self.quantity,
            mode=domain.AllocationMode(self.mode),
            title=self.allocation.title,
        )


class Booking(Base):
    __tablename__ = "bookings"

    id: Mapped[str] = mapped_column(String, primary_key=True, default=_new_id)
    resource_id: Mapped[str] = mapped_column(
        String, ForeignKey("bookable_resources.id", ondelete="CASCADE"), nullable=False, index=True
    )
    reference: Mapped[Optional[str]] = mapped_column(String(64), nullable=True, index=True)
    start_time: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, index=True)
    end_time: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, index=True)
    spaces: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    status: Mapped[str] = mapped_column(
        String(32), nullable=False, default=domain.BookingStatus.PENDING.value, index=True
    )
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    def to_domain(self) -> domain.Booking:
        return domain.Booking(
            id=self.id,
            resource_id=self.resource_id,
            window=Window(_as_utc(self.start_time), _as_utc(self.end_time)),
            spaces=self.spaces,
            status=domain.BookingStatus(self.status),
            reference=self.reference,
        )

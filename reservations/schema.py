"""Pydantic schemas for the availability API."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from config import get_settings
from reservations.domain import AllocationMode, BookingStatus
from reservations.intervals import PricingPeriod, to_utc


def _normalize_instant(value: datetime) -> datetime:
    # Naive times are wall-clock times in the configured zone.
    return to_utc(value, get_settings().default_timezone)


class WindowModel(BaseModel):
    start: datetime
    end: datetime

    normalize_times = field_validator("start", "end")(_normalize_instant)

    @model_validator(mode="after")
    def validate_order(self):
        if self.start > self.end:
            raise ValueError("start must not be after end.")
        return self


class ResourceItem(BaseModel):
    resource_id: str
    title: str
    capacity: int
    pricing_period: PricingPeriod


class ResourceListResponse(BaseModel):
    resources: list[ResourceItem]


class AvailabilityResponse(BaseModel):
    resource_id: str
    start: datetime
    end: datetime
    base_capacity: int
    effective_capacity: int
    booked: int
    remaining_spaces: int
    spaces_available: int
    overbooked: bool
    length_of_time: int


class SlotItem(BaseModel):
    start: datetime
    end: datetime
    effective_capacity: int
    booked: int
    remaining_spaces: int
    fully_booked: bool


class SlotAvailabilityResponse(BaseModel):
    resource_id: str
    period: PricingPeriod
    slots: list[SlotItem]


class BookingLineRequest(WindowModel):
    resource_id: str = Field(min_length=1)
    spaces: int = Field(default=1, ge=0)


class BookingCreateRequest(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    reference: Optional[str] = None
    start: datetime
    end: datetime
    lines: list[BookingLineRequest] = Field(min_length=1)
    allow_overbooking: bool = False

    normalize_times = field_validator("start", "end")(_normalize_instant)

    @model_validator(mode="after")
    def validate_order(self):
        if self.start > self.end:
            raise ValueError("start must not be after end.")
        return self


class BookingItem(BaseModel):
    booking_id: str
    resource_id: str
    reference: Optional[str] = None
    status: BookingStatus
    start: datetime
    end: datetime
    spaces: int


class BookingResult(BaseModel):
    success: bool
    reason: Optional[str] = None
    bookings: list[BookingItem] = Field(default_factory=list)

    @field_validator("reason")
    @classmethod
    def normalize_reason(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        return value.strip() or None


class BookingStatusRequest(BaseModel):
    status: BookingStatus


class OverbookedItem(BaseModel):
    resource_id: str
    start: datetime
    end: datetime
    remaining_spaces: int


class OverbookingReport(BaseModel):
    reference: str
    overbooked: bool
    allocations: list[OverbookedItem]


class ResourceUpsertRequest(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    resource_id: Optional[str] = None
    title: str = Field(min_length=1)
    capacity: int = Field(ge=0)
    pricing_period: PricingPeriod = PricingPeriod.DAY
    is_active: bool = True


class AllocationLineRequest(BaseModel):
    resource_id: str = Field(min_length=1)
    quantity: int = Field(default=0, ge=0)
    mode: AllocationMode = AllocationMode.RESERVE


class AllocationCreateRequest(WindowModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    title: Optional[str] = None
    lines: list[AllocationLineRequest] = Field(min_length=1)


class AdminActionResult(BaseModel):
    success: bool
    reason: Optional[str] = None
    resource_id: Optional[str] = None
    allocation_count: Optional[int] = None

from __future__ import annotations

import hmac
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Literal, Optional

from fastapi import Depends, FastAPI, Header, HTTPException, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from config import get_settings, require
from db.repository import (
    SqlAlchemyStore,
    commit_composite_booking,
    create_allocation,
    set_booking_status,
    upsert_resource,
)
from db.session import get_db, init_db, validate_db_compatibility
from logger import get_logger
from reservations import domain
from reservations.errors import (
    BookingConflict,
    InvalidRange,
    InvalidTransition,
    UnknownBooking,
    UnknownResource,
)
from reservations.intervals import PricingPeriod, Window, resolve_period, to_utc
from reservations.schema import (
    AdminActionResult,
    AllocationCreateRequest,
    AvailabilityResponse,
    BookingCreateRequest,
    BookingItem,
    BookingResult,
    BookingStatusRequest,
    OverbookedItem,
    OverbookingReport,
    ResourceItem,
    ResourceListResponse,
    ResourceUpsertRequest,
    SlotAvailabilityResponse,
    SlotItem,
)

settings = get_settings()
logger = get_logger(__name__)

APP_NAME = settings.app_name
APP_VERSION = settings.app_version
API_KEY_HEADER = "X-API-Key"
ADMIN_API_KEY_HEADER = "X-Admin-API-Key"


def verify_api_key(x_api_key: Optional[str] = Header(default=None, alias=API_KEY_HEADER)):
    if not x_api_key or not hmac.compare_digest(x_api_key, settings.api_key):
        raise HTTPException(status_code=401, detail="Invalid or missing API key.")


def verify_admin_api_key(x_admin_api_key: Optional[str] = Header(default=None, alias=ADMIN_API_KEY_HEADER)):
    if not x_admin_api_key or not hmac.compare_digest(x_admin_api_key, settings.admin_api_key):
        raise HTTPException(status_code=401, detail="Invalid or missing admin API key.")


def _window(start: datetime, end: datetime) -> Window:
    return Window(to_utc(start, settings.default_timezone), to_utc(end, settings.default_timezone))


def _booking_item(booking: domain.Booking) -> BookingItem:
    return BookingItem(
        booking_id=booking.id,
        resource_id=booking.resource_id,
        reference=booking.reference,
        status=booking.status,
        start=booking.window.start,
        end=booking.window.end,
        spaces=booking.spaces,
    )


class HealthResponse(BaseModel):
    status: Literal["ok", "error"]
    service: str
    version: str


@asynccontextmanager
async def lifespan(_app: FastAPI):
    require("BOOKING_API_KEY", settings.api_key)
    require("ADMIN_API_KEY", settings.admin_api_key)
    init_db()
    validate_db_compatibility()
    logger.info("%s %s started", APP_NAME, APP_VERSION)
    yield


app = FastAPI(title=APP_NAME, version=APP_VERSION, lifespan=lifespan)


@app.exception_handler(UnknownResource)
@app.exception_handler(UnknownBooking)
def handle_not_found(_request: Request, exc: LookupError):
    return JSONResponse(status_code=404, content={"detail": str(exc)})


@app.exception_handler(InvalidRange)
def handle_invalid_range(_request: Request, exc: InvalidRange):
    return JSONResponse(status_code=422, content={"detail": str(exc)})


@app.exception_handler(InvalidTransition)
def handle_invalid_transition(_request: Request, exc: InvalidTransition):
    return JSONResponse(status_code=409, content={"detail": str(exc)})


@app.get("/health/live", response_model=HealthResponse)
def health_live():
    return HealthResponse(status="ok", service=APP_NAME, version=APP_VERSION)


@app.get("/health/ready", response_model=HealthResponse)
def health_ready():
    try:
        validate_db_compatibility()
    except (RuntimeError, SQLAlchemyError) as exc:
        raise HTTPException(status_code=503, detail=str(exc)) from exc
    return HealthResponse(status="ok", service=APP_NAME, version=APP_VERSION)


@app.get("/v1/resources", response_model=ResourceListResponse, dependencies=[Depends(verify_api_key)])
def list_resources(min_capacity: int = 0, db: Session = Depends(get_db)):
    resources = SqlAlchemyStore(db).list_bookable_resources(lambda resource: resource.capacity >= min_capacity)
    return ResourceListResponse(
        resources=[
            ResourceItem(
                resource_id=resource.id,
                title=resource.title,
                capacity=resource.capacity,
                pricing_period=resource.pricing_period,
            )
            for resource in resources
        ]
    )


@app.get(
    "/v1/resources/{resource_id}/availability",
    response_model=AvailabilityResponse,
    dependencies=[Depends(verify_api_key)],
)
def get_availability(resource_id: str, start: datetime, end: datetime, db: Session = Depends(get_db)):
    window = _window(start, end)
    engine = SqlAlchemyStore(db).engine()

    capacity = engine.capacity_breakdown(resource_id, window)
    booked = engine.booked_quantity(resource_id, window)
    remaining = capacity.effective - booked

    return AvailabilityResponse(
        resource_id=resource_id,
        start=window.start,
        end=window.end,
        base_capacity=capacity.base,
        effective_capacity=capacity.effective,
        booked=booked,
        remaining_spaces=remaining,
        spaces_available=max(remaining, 0),
        overbooked=remaining < 0,
        length_of_time=engine.length_of_time(resource_id, window),
    )


@app.get(
    "/v1/resources/{resource_id}/slots",
    response_model=SlotAvailabilityResponse,
    dependencies=[Depends(verify_api_key)],
)
def get_slots(
    resource_id: str,
    start: datetime,
    end: datetime,
    period: Optional[PricingPeriod] = None,
    db: Session = Depends(get_db),
):
    window = _window(start, end)
    engine = SqlAlchemyStore(db).engine()
    resolved_period = period or engine.get_resource(resource_id).pricing_period

    slot_count = -(-window.duration // resolve_period(resolved_period))
    if slot_count > settings.max_slots:
        raise HTTPException(
            status_code=422,
            detail=f"Window spans {slot_count} slots; at most {settings.max_slots} are allowed per request.",
        )

    slots = engine.slot_availability(resource_id, window, resolved_period)
    return SlotAvailabilityResponse(
        resource_id=resource_id,
        period=resolved_period,
        slots=[
            SlotItem(
                start=slot.window.start,
                end=slot.window.end,
                effective_capacity=slot.effective_capacity,
                booked=slot.booked,
                remaining_spaces=slot.remaining,
                fully_booked=slot.fully_booked,
            )
            for slot in slots
        ],
    )


@app.post("/v1/bookings", response_model=BookingResult, dependencies=[Depends(verify_api_key)])
def create_booking(request: BookingCreateRequest, db: Session = Depends(get_db)):
    composite = domain.CompositeBooking(
        window=_window(request.start, request.end),
        reference=request.reference,
        items=[
            domain.Booking(
                resource_id=line.resource_id,
                window=_window(line.start, line.end),
                spaces=line.spaces,
                reference=request.reference,
            )
            for line in request.lines
        ],
    )

    try:
        committed = commit_composite_booking(db, composite, allow_overbooking=request.allow_overbooking)
    except BookingConflict as exc:
        return JSONResponse(
            status_code=409,
            content=BookingResult(success=False, reason=str(exc)).model_dump(mode="json"),
        )
    except SQLAlchemyError:
        return JSONResponse(
            status_code=500,
            content=BookingResult(success=False, reason="Database error while creating booking.").model_dump(mode="json"),
        )

    return BookingResult(success=True, bookings=[_booking_item(booking) for booking in committed])


@app.post("/v1/bookings/{booking_id}/status", response_model=BookingResult, dependencies=[Depends(verify_api_key)])
def update_booking_status(booking_id: str, request: BookingStatusRequest, db: Session = Depends(get_db)):
    booking = set_booking_status(db, booking_id, request.status)
    return BookingResult(success=True, bookings=[_booking_item(booking)])


@app.get("/v1/bookings/overbooked", response_model=OverbookingReport, dependencies=[Depends(verify_api_key)])
def overbooking_report(reference: str, db: Session = Depends(get_db)):
    store = SqlAlchemyStore(db)
    items = store.bookings_for_reference(reference)
    if not items:
        raise HTTPException(status_code=404, detail="No bookings found for this reference.")

    overbooked = store.engine().find_overbooked_allocations(items)
    return OverbookingReport(
        reference=reference,
        overbooked=bool(overbooked),
        allocations=[
            OverbookedItem(
                resource_id=entry.resource_id,
                start=entry.window.start,
                end=entry.window.end,
                remaining_spaces=entry.remaining,
            )
            for entry in overbooked
        ],
    )


@app.post("/v1/admin/resources", response_model=AdminActionResult, dependencies=[Depends(verify_admin_api_key)])
def admin_upsert_resource(request: ResourceUpsertRequest, db: Session = Depends(get_db)):
    resource = upsert_resource(
        db,
        resource_id=request.resource_id,
        title=request.title,
        capacity=request.capacity,
        pricing_period=request.pricing_period,
        is_active=request.is_active,
    )
    return AdminActionResult(success=True, resource_id=resource.id)


@app.post("/v1/admin/allocations", response_model=AdminActionResult, dependencies=[Depends(verify_admin_api_key)])
def admin_create_allocation(request: AllocationCreateRequest, db: Session = Depends(get_db)):
    created = create_allocation(
        db,
        title=request.title,
        window=_window(request.start, request.end),
        lines=[(line.resource_id, line.quantity, line.mode) for line in request.lines],
    )
    return AdminActionResult(success=True, allocation_count=len(created))


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("api_server:app", host="0.0.0.0", port=8000)

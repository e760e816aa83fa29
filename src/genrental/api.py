"""FastAPI REST API for generator rental bookings."""

from typing import Literal, Optional

from fastapi import BackgroundTasks, FastAPI, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from pydantic import BaseModel, ConfigDict, Field

from . import __version__
from .config import load_settings
from .engine import LifecycleEngine, build_engine
from .errors import (
    GenrentalError,
    InvalidDateRangeError,
    InvalidRentalError,
    InvalidStateError,
    InvalidStatusError,
    NoUnitsAvailableError,
    RentalNotFoundError,
    StorageError,
    UnitNotFoundError,
)
from .export import export_filename, filter_by_range, rentals_to_csv
from .models import Customer, DeliveryType, Fulfillment, RentalDraft, RentalPeriod, RentalStatus
from .pricing import rental_days
from .utils import parse_date, parse_date_range


# --- Pydantic Schemas ---


class RentalCreateRequest(BaseModel):
    """Request body for a booking, as posted by the calendar form."""

    model_config = ConfigDict(populate_by_name=True)

    name: str = Field(..., min_length=1)
    email: str = Field(..., min_length=1)
    phone: str = Field(..., min_length=1)
    start_date: str = Field(..., alias="startDate", description="YYYY-MM-DD or d.m.yyyy")
    end_date: str = Field(..., alias="endDate", description="YYYY-MM-DD or d.m.yyyy")
    delivery: Literal["delivery", "pickup"] = "pickup"
    address: Optional[str] = ""
    price: Optional[float] = Field(
        default=None, ge=0, description="Quoted from the period when omitted"
    )


class RentalCreateResponse(BaseModel):
    id: int
    message: str


class RentalSchema(BaseModel):
    id: int
    name: str
    email: str
    phone: str
    start_date: str
    end_date: str
    delivery_type: str
    address: str
    price: float
    status: str
    unit_id: Optional[int] = None
    created_at: str


class UnitSchema(BaseModel):
    id: int
    name: str
    in_service: bool
    available: bool


class AvailabilityResponse(BaseModel):
    total: int
    available: int
    details: list[UnitSchema]


class BookedPeriodSchema(BaseModel):
    start: str
    end: str


class BookedDatesResponse(BaseModel):
    bookedPeriods: list[BookedPeriodSchema]
    activeUnits: int


class CalendarDaySchema(BaseModel):
    date: str
    bookings: int
    bookable: bool


class CalendarResponse(BaseModel):
    days: list[CalendarDaySchema]
    activeUnits: int


class QuoteResponse(BaseModel):
    days: int
    price_per_day: float
    price: float


class TransitionResponse(BaseModel):
    message: str
    rental: RentalSchema
    unitId: Optional[int] = None


class UnitToggleResponse(BaseModel):
    message: str
    unit: UnitSchema


class ErrorResponse(BaseModel):
    detail: str
    error_type: str


# --- Helper Functions ---


def get_engine() -> LifecycleEngine:
    """Get an engine for the configured data directory."""
    return build_engine()


def _draft_from_request(request: RentalCreateRequest) -> RentalDraft:
    delivery_type = DeliveryType(request.delivery)
    address = (request.address or "").strip()
    if delivery_type is DeliveryType.DELIVERY and not address:
        raise InvalidRentalError("address", "is required for delivery")
    return RentalDraft(
        customer=Customer(
            name=request.name.strip(),
            email=request.email.strip(),
            phone=request.phone.strip(),
        ),
        period=RentalPeriod(
            start=parse_date(request.start_date),
            end=parse_date(request.end_date),
        ),
        fulfillment=Fulfillment(delivery_type=delivery_type, address=address),
        price=request.price,
    )


def _parse_status(status: Optional[str]) -> Optional[RentalStatus]:
    if not status or status == "all":
        return None
    try:
        return RentalStatus(status)
    except ValueError:
        raise InvalidStatusError(status)


# --- FastAPI App ---


app = FastAPI(
    title="genrental API",
    description="Booking and fleet allocation API for generator rentals",
    version=__version__,
)

# CORS for the calendar front end
app.add_middleware(
    CORSMiddleware,
    allow_origins=load_settings().cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# --- Global Exception Handler ---


# Map exception types to HTTP status codes
ERROR_STATUS_CODES: dict[type, int] = {
    RentalNotFoundError: 404,
    UnitNotFoundError: 404,
    InvalidStateError: 404,
    NoUnitsAvailableError: 400,
    InvalidRentalError: 400,
    InvalidDateRangeError: 400,
    InvalidStatusError: 400,
    StorageError: 500,
}


@app.exception_handler(GenrentalError)
async def genrental_error_handler(request: Request, exc: GenrentalError) -> JSONResponse:
    """Map GenrentalError subclasses to appropriate HTTP responses."""
    status_code = ERROR_STATUS_CODES.get(type(exc), 500)
    return JSONResponse(
        status_code=status_code,
        content={"detail": str(exc), "error_type": type(exc).__name__},
    )


# --- Endpoints ---


@app.get("/api/health")
def health_check():
    """
    Health check endpoint.

    Reports whether the data files can be read.
    """
    try:
        engine = get_engine()
        return {
            "status": "ok",
            "units": len(engine.list_units()),
            "rentals": len(engine.list_rentals()),
        }
    except GenrentalError as e:
        return {
            "status": "error",
            "detail": str(e),
        }


# --- Public Endpoints ---


@app.post("/api/rentals", response_model=RentalCreateResponse, status_code=201)
def create_rental(request: RentalCreateRequest, background_tasks: BackgroundTasks):
    """Submit a rental request. The admin notification runs after the response."""
    engine = get_engine()
    rental = engine.create_rental(_draft_from_request(request), notify=False)
    background_tasks.add_task(engine.notify_rental_created, rental)
    return RentalCreateResponse(id=rental.id, message="Rental request created successfully")


@app.get("/api/rentals/quote", response_model=QuoteResponse)
def quote_rental(
    start: Optional[str] = Query(default=None),
    end: Optional[str] = Query(default=None),
):
    """Price a rental period."""
    start_date, end_date = parse_date_range(start, end)
    engine = get_engine()
    return QuoteResponse(
        days=rental_days(start_date, end_date),
        price_per_day=engine.price_per_day,
        price=engine.quote(start_date, end_date),
    )


@app.get("/api/generators/availability", response_model=AvailabilityResponse)
def generator_availability():
    """Fleet size and how many generators are free right now."""
    return get_engine().compute_availability().to_dict()


@app.get("/api/rentals/booked-dates", response_model=BookedDatesResponse)
def booked_dates():
    """Periods the public calendar must block, and the in-service fleet size."""
    periods, active = get_engine().booking_snapshot()
    return BookedDatesResponse(
        bookedPeriods=[BookedPeriodSchema(**p.to_dict()) for p in periods],
        activeUnits=active,
    )


@app.get("/api/calendar", response_model=CalendarResponse)
def calendar(
    start: Optional[str] = Query(default=None),
    end: Optional[str] = Query(default=None),
):
    """Per-day bookability for a date window."""
    start_date, end_date = parse_date_range(start, end)
    engine = get_engine()
    snapshot = engine.booking_snapshot()
    days = engine.calendar(start_date, end_date, snapshot=snapshot)
    return CalendarResponse(
        days=[CalendarDaySchema(**d.to_dict()) for d in days],
        activeUnits=snapshot[1],
    )


# --- Admin Endpoints ---


@app.get("/api/admin/rentals", response_model=list[RentalSchema])
def list_rentals(status: Optional[str] = Query(default=None)):
    """List rentals newest first, optionally filtered by status."""
    rentals = get_engine().list_rentals(_parse_status(status))
    return [RentalSchema(**r.to_dict()) for r in rentals]


@app.get("/api/admin/rentals/export")
def export_rentals(
    start: Optional[str] = Query(default=None),
    end: Optional[str] = Query(default=None),
):
    """Download rentals overlapping start..end as CSV."""
    start_date, end_date = parse_date_range(start, end)
    rentals = filter_by_range(get_engine().list_rentals(), start_date, end_date)
    filename = export_filename(start_date, end_date)
    return Response(
        content=rentals_to_csv(rentals),
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@app.get("/api/rentals/{rental_id}", response_model=RentalSchema)
def get_rental(rental_id: int):
    """Get a single rental by ID."""
    return RentalSchema(**get_engine().get_rental(rental_id).to_dict())


@app.post("/api/rentals/{rental_id}/approve", response_model=TransitionResponse)
def approve_rental(rental_id: int):
    """Approve a pending rental and assign a generator."""
    rental = get_engine().approve(rental_id)
    return TransitionResponse(
        message="Rental approved and generator assigned",
        rental=RentalSchema(**rental.to_dict()),
        unitId=rental.unit_id,
    )


@app.post("/api/rentals/{rental_id}/invoice", response_model=TransitionResponse)
def invoice_rental(rental_id: int):
    """Mark an approved rental as invoiced."""
    rental = get_engine().invoice(rental_id)
    return TransitionResponse(
        message="Invoice sent successfully",
        rental=RentalSchema(**rental.to_dict()),
        unitId=rental.unit_id,
    )


@app.post("/api/rentals/{rental_id}/paid", response_model=TransitionResponse)
def mark_rental_paid(rental_id: int):
    """Record payment and release the generator."""
    rental = get_engine().mark_paid(rental_id)
    return TransitionResponse(
        message="Payment recorded and generator released",
        rental=RentalSchema(**rental.to_dict()),
        unitId=rental.unit_id,
    )


@app.delete("/api/rentals/{rental_id}", response_model=TransitionResponse)
def delete_rental(rental_id: int):
    """Delete a rental, releasing its generator if it holds one."""
    rental = get_engine().delete_rental(rental_id)
    return TransitionResponse(
        message="Rental deleted successfully",
        rental=RentalSchema(**rental.to_dict()),
        unitId=rental.unit_id,
    )


# --- Unit Endpoints ---


@app.get("/api/units", response_model=list[UnitSchema])
def list_units():
    """List all generators."""
    return [UnitSchema(**u.to_dict()) for u in get_engine().list_units()]


@app.post("/api/units/{unit_id}/toggle-active", response_model=UnitToggleResponse)
def toggle_unit(unit_id: int):
    """Take a generator out of service, or put it back."""
    unit = get_engine().toggle_unit(unit_id)
    return UnitToggleResponse(
        message=f"Generator {unit_id} status updated.",
        unit=UnitSchema(**unit.to_dict()),
    )

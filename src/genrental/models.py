"""Data models for genrental."""

from dataclasses import dataclass, field, replace
from datetime import date, datetime, timezone
from enum import Enum
from typing import Any

from .utils import parse_date


def _utc_now() -> str:
    """Return current UTC time as ISO 8601 string."""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _now_ms() -> int:
    """Return current UTC time in milliseconds since the epoch."""
    return int(datetime.now(timezone.utc).timestamp() * 1000)


def _generate_id(existing_ids: list[int]) -> int:
    """Generate a time-based rental ID that is unique within existing_ids."""
    candidate = _now_ms()
    if existing_ids:
        candidate = max(candidate, max(existing_ids) + 1)
    return candidate


_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def parse_timestamp(value: str) -> datetime:
    """
    Parse a stored ISO 8601 timestamp into an aware UTC datetime.

    Blank or unparseable values sort as the epoch.
    """
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except (AttributeError, ValueError):
        return _EPOCH
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


class RentalStatus(str, Enum):
    """Lifecycle status of a rental request."""

    PENDING = "pending"
    APPROVED = "approved"
    INVOICED = "invoiced"
    PAID = "paid"

    @property
    def holds_unit(self) -> bool:
        """True while the rental exclusively occupies its assigned unit."""
        return self in (RentalStatus.APPROVED, RentalStatus.INVOICED)


class DeliveryType(str, Enum):
    DELIVERY = "delivery"
    PICKUP = "pickup"


@dataclass(frozen=True)
class Customer:
    name: str
    email: str
    phone: str


@dataclass(frozen=True)
class RentalPeriod:
    """Inclusive date range of a rental."""

    start: date
    end: date

    def covers(self, day: date) -> bool:
        return self.start <= day <= self.end

    def overlaps(self, start: date, end: date) -> bool:
        return self.start <= end and start <= self.end


@dataclass(frozen=True)
class Fulfillment:
    delivery_type: DeliveryType
    address: str = ""


@dataclass
class RentalDraft:
    """A rental request as submitted by a customer, before it is stored."""

    customer: Customer
    period: RentalPeriod
    fulfillment: Fulfillment
    price: float | None = None  # quoted from the period when omitted


@dataclass
class RentalRequest:
    """A customer's booking record moving through the rental lifecycle."""

    id: int
    customer: Customer
    period: RentalPeriod
    fulfillment: Fulfillment
    price: float
    status: RentalStatus = RentalStatus.PENDING
    unit_id: int | None = None
    created_at: str = field(default_factory=_utc_now)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.customer.name,
            "email": self.customer.email,
            "phone": self.customer.phone,
            "start_date": self.period.start.isoformat(),
            "end_date": self.period.end.isoformat(),
            "delivery_type": self.fulfillment.delivery_type.value,
            "address": self.fulfillment.address,
            "price": self.price,
            "status": self.status.value,
            "unit_id": self.unit_id,
            "created_at": self.created_at,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "RentalRequest":
        # "generator_id" is the key used by files written before units were generalized
        unit_id = data.get("unit_id", data.get("generator_id"))
        return cls(
            id=int(data["id"]),
            customer=Customer(
                name=data.get("name", ""),
                email=data.get("email", ""),
                phone=data.get("phone", ""),
            ),
            period=RentalPeriod(
                start=parse_date(data["start_date"]),
                end=parse_date(data["end_date"]),
            ),
            fulfillment=Fulfillment(
                delivery_type=DeliveryType(data.get("delivery_type") or DeliveryType.PICKUP.value),
                address=data.get("address") or "",
            ),
            price=float(data.get("price") or 0),
            status=RentalStatus(data.get("status", RentalStatus.PENDING.value)),
            unit_id=int(unit_id) if unit_id is not None else None,
            created_at=data.get("created_at", ""),
        )

    @classmethod
    def create(cls, draft: RentalDraft, rental_id: int, price: float) -> "RentalRequest":
        """Create a new pending rental from a draft."""
        return cls(
            id=rental_id,
            customer=draft.customer,
            period=draft.period,
            fulfillment=draft.fulfillment,
            price=price,
            status=RentalStatus.PENDING,
            unit_id=None,
            created_at=_utc_now(),
        )

    def with_status(self, status: RentalStatus, unit_id: int | None) -> "RentalRequest":
        return replace(self, status=status, unit_id=unit_id)


@dataclass
class Unit:
    """A physical rentable generator."""

    id: int
    name: str
    in_service: bool = True
    available: bool = True

    @property
    def assignable(self) -> bool:
        return self.in_service and self.available

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "in_service": self.in_service,
            "available": self.available,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Unit":
        # Older files use is_active / is_available
        return cls(
            id=int(data["id"]),
            name=data.get("name", f"Unit {data['id']}"),
            in_service=data.get("in_service", data.get("is_active", True)),
            available=data.get("available", data.get("is_available", True)),
        )


# Models for availability and calendar queries


@dataclass(frozen=True)
class BookedPeriod:
    """Date range of a rental currently occupying a unit."""

    start: date
    end: date

    def to_dict(self) -> dict[str, str]:
        return {"start": self.start.isoformat(), "end": self.end.isoformat()}


@dataclass
class Availability:
    total: int
    available: int
    units: list[Unit]

    def to_dict(self) -> dict[str, Any]:
        return {
            "total": self.total,
            "available": self.available,
            "details": [u.to_dict() for u in self.units],
        }


@dataclass(frozen=True)
class CalendarDay:
    day: date
    bookings: int
    bookable: bool

    def to_dict(self) -> dict[str, Any]:
        return {
            "date": self.day.isoformat(),
            "bookings": self.bookings,
            "bookable": self.bookable,
        }

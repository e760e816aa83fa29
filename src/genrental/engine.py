"""Rental lifecycle and generator allocation."""

from __future__ import annotations

import logging
from contextlib import contextmanager
from datetime import date, timedelta
from typing import Any, Iterator

from .config import DEFAULT_PRICE_PER_DAY, Settings, load_settings
from .errors import (
    InvalidRentalError,
    InvalidStateError,
    NoUnitsAvailableError,
    RentalNotFoundError,
    StorageError,
)
from .models import (
    Availability,
    BookedPeriod,
    CalendarDay,
    DeliveryType,
    RentalDraft,
    RentalRequest,
    RentalStatus,
    Unit,
)
from .notifier import Notifier, notifier_from_settings
from .pricing import quote
from .rental_store import RentalStore
from .storage import exclusive_lock
from .unit_pool import UnitPool, pick_unit

logger = logging.getLogger(__name__)

# Every status maps to its successor; paid is terminal.
NEXT_STATUS: dict[RentalStatus, RentalStatus | None] = {
    RentalStatus.PENDING: RentalStatus.APPROVED,
    RentalStatus.APPROVED: RentalStatus.INVOICED,
    RentalStatus.INVOICED: RentalStatus.PAID,
    RentalStatus.PAID: None,
}


def validate_draft(draft: RentalDraft) -> None:
    """
    Check a submitted rental request.

    Raises:
        InvalidRentalError: On a blank contact field, an inverted period,
            a delivery without address, or a negative price.
    """
    for name in ("name", "email", "phone"):
        if not str(getattr(draft.customer, name) or "").strip():
            raise InvalidRentalError(name, "is required")

    if draft.period.end < draft.period.start:
        raise InvalidRentalError("end_date", "is before start_date")

    if draft.fulfillment.delivery_type is DeliveryType.DELIVERY:
        if not draft.fulfillment.address.strip():
            raise InvalidRentalError("address", "is required for delivery")

    if draft.price is not None and draft.price < 0:
        raise InvalidRentalError("price", "must not be negative")


def _index_of(rentals: list[RentalRequest], rental_id: int) -> int:
    for i, rental in enumerate(rentals):
        if rental.id == rental_id:
            return i
    raise RentalNotFoundError(rental_id)


def _require_status(rental: RentalRequest, expected: RentalStatus) -> RentalStatus:
    """Check the rental is in `expected` and return the status it moves to."""
    if rental.status is not expected:
        raise InvalidStateError(rental.id, rental.status, expected)
    target = NEXT_STATUS[expected]
    assert target is not None
    return target


def _booked_periods(rentals: list[RentalRequest]) -> list[BookedPeriod]:
    return [
        BookedPeriod(start=r.period.start, end=r.period.end)
        for r in rentals
        if r.status.holds_unit
    ]


class LifecycleEngine:
    """Moves rentals through pending -> approved -> invoiced -> paid and keeps units in step."""

    def __init__(
        self,
        rentals: RentalStore,
        units: UnitPool,
        notifier: Notifier | None = None,
        price_per_day: float = DEFAULT_PRICE_PER_DAY,
    ):
        self.rentals = rentals
        self.units = units
        self.notifier = notifier
        self.price_per_day = price_per_day

    @contextmanager
    def _lock(self) -> Iterator[None]:
        """Serialize read-modify-write of both collections."""
        with exclusive_lock(self.rentals.data_dir):
            yield

    def _commit(
        self,
        rentals: list[RentalRequest],
        units: list[Unit],
        units_before: list[dict[str, Any]],
    ) -> None:
        """Save units then rentals; restore units if the rentals write fails."""
        self.units.save_all(units)
        try:
            self.rentals.save_all(rentals)
        except StorageError:
            try:
                self.units.collection.save(units_before)
            except StorageError:
                logger.exception("Failed to restore units after rental write failure")
            raise

    # --- Intake ---

    def create_rental(self, draft: RentalDraft, notify: bool = True) -> RentalRequest:
        """
        Validate and store a new pending rental.

        The price is quoted from the period when the draft has none.

        Raises:
            InvalidRentalError: If the draft is invalid.
            StorageError: If the rental can't be saved.
        """
        validate_draft(draft)
        price = draft.price
        if price is None:
            price = quote(draft.period.start, draft.period.end, self.price_per_day)

        with self._lock():
            rental = self.rentals.create(draft, price=price)
        logger.info("Rental %s created (%s..%s)", rental.id, rental.period.start, rental.period.end)

        if notify:
            self.notify_rental_created(rental)
        return rental

    def notify_rental_created(self, rental: RentalRequest) -> None:
        """Run the notifier; failures are logged and never raised."""
        if self.notifier is None:
            return
        try:
            self.notifier.rental_created(rental)
        except Exception:
            logger.exception("Notification for rental %s failed", rental.id)

    def quote(self, start: date, end: date) -> float:
        return quote(start, end, self.price_per_day)

    # --- Transitions ---

    def approve(self, rental_id: int) -> RentalRequest:
        """
        Approve a pending rental and reserve the lowest-id free unit for it.

        Raises:
            RentalNotFoundError: If the rental doesn't exist.
            InvalidStateError: If the rental isn't pending.
            NoUnitsAvailableError: If no unit is in service and available.
        """
        with self._lock():
            rentals = self.rentals.load_all()
            idx = _index_of(rentals, rental_id)
            target = _require_status(rentals[idx], RentalStatus.PENDING)

            units_before = self.units.collection.load()
            units = self.units.load_all()
            unit = pick_unit(units)
            if unit is None:
                logger.warning("Rental %s not approved: no generators available", rental_id)
                raise NoUnitsAvailableError(rental_id)

            unit.available = False
            rentals[idx] = rentals[idx].with_status(target, unit.id)
            self._commit(rentals, units, units_before)

        logger.info("Rental %s approved, unit %s assigned", rental_id, unit.id)
        return rentals[idx]

    def invoice(self, rental_id: int) -> RentalRequest:
        """
        Mark an approved rental as invoiced.

        Raises:
            RentalNotFoundError: If the rental doesn't exist.
            InvalidStateError: If the rental isn't approved.
        """
        with self._lock():
            rentals = self.rentals.load_all()
            idx = _index_of(rentals, rental_id)
            target = _require_status(rentals[idx], RentalStatus.APPROVED)
            rentals[idx] = rentals[idx].with_status(target, rentals[idx].unit_id)
            self.rentals.save_all(rentals)

        logger.info("Rental %s invoiced", rental_id)
        return rentals[idx]

    def mark_paid(self, rental_id: int) -> RentalRequest:
        """
        Record payment for an invoiced rental and release its unit.

        The unit id stays on the rental for reporting.

        Raises:
            RentalNotFoundError: If the rental doesn't exist.
            InvalidStateError: If the rental isn't invoiced.
        """
        with self._lock():
            rentals = self.rentals.load_all()
            idx = _index_of(rentals, rental_id)
            rental = rentals[idx]
            target = _require_status(rental, RentalStatus.INVOICED)

            units_before = self.units.collection.load()
            units = self.units.load_all()
            self._release(units, rental)
            rentals[idx] = rental.with_status(target, rental.unit_id)
            self._commit(rentals, units, units_before)

        logger.info("Rental %s paid, unit %s released", rental_id, rental.unit_id)
        return rentals[idx]

    def delete_rental(self, rental_id: int) -> RentalRequest:
        """
        Remove a rental in any status, releasing its unit if it holds one.

        Returns:
            The removed RentalRequest.

        Raises:
            RentalNotFoundError: If the rental doesn't exist.
        """
        with self._lock():
            rentals = self.rentals.load_all()
            idx = _index_of(rentals, rental_id)
            removed = rentals.pop(idx)

            if removed.status.holds_unit:
                units_before = self.units.collection.load()
                units = self.units.load_all()
                self._release(units, removed)
                self._commit(rentals, units, units_before)
            else:
                self.rentals.save_all(rentals)

        logger.info("Rental %s deleted (was %s)", rental_id, removed.status.value)
        return removed

    def _release(self, units: list[Unit], rental: RentalRequest) -> None:
        if rental.unit_id is None:
            return
        for unit in units:
            if unit.id == rental.unit_id:
                unit.available = True
                return
        logger.warning("Rental %s references missing unit %s", rental.id, rental.unit_id)

    def toggle_unit(self, unit_id: int) -> Unit:
        """Flip a unit's in-service flag. Raises UnitNotFoundError."""
        with self._lock():
            unit = self.units.toggle_in_service(unit_id)
        logger.info("Unit %s in_service=%s", unit.id, unit.in_service)
        return unit

    # --- Queries ---

    def list_rentals(self, status: RentalStatus | None = None) -> list[RentalRequest]:
        return self.rentals.list(status)

    def get_rental(self, rental_id: int) -> RentalRequest:
        return self.rentals.get(rental_id)

    def list_units(self) -> list[Unit]:
        return self.units.list()

    def compute_availability(self) -> Availability:
        """Count units that are in service and not assigned."""
        units = self.units.list()
        return Availability(
            total=len(units),
            available=sum(1 for u in units if u.assignable),
            units=units,
        )

    def compute_booked_periods(self) -> list[BookedPeriod]:
        """Periods of rentals currently occupying a unit."""
        return _booked_periods(self.rentals.load_all())

    def active_unit_count(self) -> int:
        """Number of units in service, whether or not currently assigned."""
        return sum(1 for u in self.units.list() if u.in_service)

    def booking_snapshot(self) -> tuple[list[BookedPeriod], int]:
        """
        Booked periods and in-service unit count read together under the lock.

        Both values come from the same state of the two files.
        """
        with self._lock():
            periods = _booked_periods(self.rentals.load_all())
            active = sum(1 for u in self.units.load_all() if u.in_service)
        return periods, active

    def compute_calendar_capacity(self, day: date) -> bool:
        """True if day has fewer occupying bookings than in-service units."""
        periods, capacity = self.booking_snapshot()
        bookings = sum(1 for p in periods if p.start <= day <= p.end)
        return bookings < capacity

    def calendar(
        self,
        start: date,
        end: date,
        today: date | None = None,
        snapshot: tuple[list[BookedPeriod], int] | None = None,
    ) -> list[CalendarDay]:
        """
        Bookability of each day from start to end inclusive.

        Days before today are never bookable. Pass a snapshot from
        booking_snapshot() to report the capacity it was computed against.
        """
        periods, capacity = snapshot or self.booking_snapshot()
        today = today or date.today()

        days = []
        day = start
        while day <= end:
            bookings = sum(1 for p in periods if p.start <= day <= p.end)
            days.append(
                CalendarDay(
                    day=day,
                    bookings=bookings,
                    bookable=day >= today and bookings < capacity,
                )
            )
            day += timedelta(days=1)
        return days

    def check_consistency(self) -> list[str]:
        """
        Compare unit flags with rental assignments.

        Returns:
            Human-readable descriptions of each violation (empty if consistent).
        """
        problems = []
        with self._lock():
            units = {u.id: u for u in self.units.load_all()}
            rentals = self.rentals.load_all()
        holders: dict[int, list[int]] = {}

        for rental in rentals:
            if not rental.status.holds_unit:
                continue
            if rental.unit_id is None:
                problems.append(f"Rental {rental.id} is {rental.status.value} without a unit")
                continue
            if rental.unit_id not in units:
                problems.append(f"Rental {rental.id} holds missing unit {rental.unit_id}")
                continue
            holders.setdefault(rental.unit_id, []).append(rental.id)

        for unit_id, unit in units.items():
            held_by = holders.get(unit_id, [])
            if len(held_by) > 1:
                ids = ", ".join(str(i) for i in held_by)
                problems.append(f"Unit {unit_id} held by several rentals: {ids}")
            if unit.available and held_by:
                problems.append(f"Unit {unit_id} is available but held by rental {held_by[0]}")
            if not unit.available and not held_by:
                problems.append(f"Unit {unit_id} is unavailable but no rental holds it")

        return problems


def build_engine(settings: Settings | None = None) -> LifecycleEngine:
    """
    Create an engine backed by the JSON files in the configured data directory.

    Seeds the generator pool and an empty rentals file on first use.
    """
    settings = settings or load_settings()
    rentals = RentalStore(settings.rentals_path)
    units = UnitPool(settings.units_path)
    with exclusive_lock(settings.data_dir):
        rentals.initialize()
        if units.initialize_default(count=settings.unit_count, name=settings.unit_name):
            logger.info("Seeded %d generators in %s", settings.unit_count, settings.units_path)
    return LifecycleEngine(
        rentals,
        units,
        notifier=notifier_from_settings(settings),
        price_per_day=settings.price_per_day,
    )

"""Custom exceptions for genrental."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .models import RentalStatus


class GenrentalError(Exception):
    """Base exception for all genrental errors."""

    pass


class RentalNotFoundError(GenrentalError):
    """Raised when a rental ID doesn't exist."""

    def __init__(self, rental_id: int):
        self.rental_id = rental_id
        super().__init__(f"Rental not found: {rental_id}")


class UnitNotFoundError(GenrentalError):
    """Raised when a unit ID doesn't exist."""

    def __init__(self, unit_id: int):
        self.unit_id = unit_id
        super().__init__(f"Generator not found: {unit_id}")


class InvalidStateError(GenrentalError):
    """Raised when a transition is attempted from the wrong status."""

    def __init__(self, rental_id: int, current: "RentalStatus", expected: "RentalStatus"):
        self.rental_id = rental_id
        self.current = current
        self.expected = expected
        super().__init__(
            f"Rental {rental_id} is {current.value}, expected {expected.value}"
        )


class NoUnitsAvailableError(GenrentalError):
    """Raised when approval finds no in-service, available unit."""

    def __init__(self, rental_id: int | None = None):
        self.rental_id = rental_id
        super().__init__("No generators available to assign.")


class InvalidRentalError(GenrentalError):
    """Raised when a rental request fails validation."""

    def __init__(self, field: str, reason: str):
        self.field = field
        self.reason = reason
        super().__init__(f"Invalid rental request: {field} {reason}")


class InvalidDateRangeError(GenrentalError):
    """Raised when a date or date range is missing or malformed."""

    def __init__(self, value: str, reason: str | None = None):
        self.value = value
        msg = f"Invalid date range: {value}"
        if reason:
            msg = f"{msg} ({reason})"
        super().__init__(msg)


class InvalidStatusError(GenrentalError):
    """Raised when a status filter is not a known rental status."""

    def __init__(self, status: str):
        self.status = status
        super().__init__(f"Unknown rental status: {status}")


class StorageError(GenrentalError):
    """Raised when a data file can't be read or written."""

    def __init__(self, path: str, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"Storage failure on {path}: {reason}")

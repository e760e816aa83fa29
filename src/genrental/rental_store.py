"""Rental request storage for genrental."""

from pathlib import Path

from .errors import InvalidDateRangeError, RentalNotFoundError, StorageError
from .models import RentalDraft, RentalRequest, RentalStatus, _generate_id, parse_timestamp
from .storage import JsonCollection

_UNCHANGED = object()


class RentalStore:
    """Manages reading and writing rental requests."""

    def __init__(self, path: Path):
        """
        Initialize RentalStore.

        Args:
            path: Path of the rentals JSON file.
        """
        self.collection = JsonCollection(path)

    @property
    def data_dir(self) -> Path:
        return self.collection.data_dir

    def initialize(self) -> bool:
        """Create an empty collection if none exists. Returns True if created."""
        if self.collection.exists():
            return False
        self.collection.save([])
        return True

    def load_all(self) -> list[RentalRequest]:
        """
        Load every rental in file order.

        Raises:
            StorageError: If the file can't be read or holds a malformed record.
        """
        try:
            return [RentalRequest.from_dict(r) for r in self.collection.load()]
        except (AttributeError, KeyError, TypeError, ValueError, InvalidDateRangeError) as e:
            raise StorageError(str(self.collection.path), f"bad record: {e}")

    def save_all(self, rentals: list[RentalRequest]) -> None:
        """Replace the whole collection."""
        self.collection.save([r.to_dict() for r in rentals])

    def create(self, draft: RentalDraft, price: float) -> RentalRequest:
        """
        Store a new pending rental.

        Args:
            draft: The submitted request.
            price: Final price for the rental.

        Returns:
            The created RentalRequest.
        """
        rentals = self.load_all()
        rental_id = _generate_id([r.id for r in rentals])
        rental = RentalRequest.create(draft, rental_id=rental_id, price=price)
        rentals.append(rental)
        self.save_all(rentals)
        return rental

    def list(self, status: RentalStatus | None = None) -> list[RentalRequest]:
        """
        List rentals, newest first.

        Args:
            status: If given, only rentals with this status.
        """
        rentals = self.load_all()
        if status is not None:
            rentals = [r for r in rentals if r.status is status]
        return sorted(rentals, key=lambda r: (parse_timestamp(r.created_at), r.id), reverse=True)

    def get(self, rental_id: int) -> RentalRequest:
        """
        Get a rental by ID.

        Raises:
            RentalNotFoundError: If rental doesn't exist.
        """
        for rental in self.load_all():
            if rental.id == rental_id:
                return rental
        raise RentalNotFoundError(rental_id)

    def update_status(
        self,
        rental_id: int,
        status: RentalStatus,
        unit_id: "int | None | object" = _UNCHANGED,
    ) -> RentalRequest:
        """
        Overwrite a rental's status and optionally its unit assignment.

        Raises:
            RentalNotFoundError: If rental doesn't exist.
        """
        rentals = self.load_all()
        for i, existing in enumerate(rentals):
            if existing.id == rental_id:
                new_unit = existing.unit_id if unit_id is _UNCHANGED else unit_id
                rentals[i] = existing.with_status(status, new_unit)
                self.save_all(rentals)
                return rentals[i]

        raise RentalNotFoundError(rental_id)

    def delete(self, rental_id: int) -> RentalRequest:
        """
        Remove a rental.

        Returns:
            The removed RentalRequest.

        Raises:
            RentalNotFoundError: If rental doesn't exist.
        """
        rentals = self.load_all()
        for i, existing in enumerate(rentals):
            if existing.id == rental_id:
                removed = rentals.pop(i)
                self.save_all(rentals)
                return removed

        raise RentalNotFoundError(rental_id)

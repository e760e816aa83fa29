"""Generator pool storage for genrental."""

from pathlib import Path

from .config import DEFAULT_UNIT_COUNT, DEFAULT_UNIT_NAME
from .errors import StorageError, UnitNotFoundError
from .models import Unit
from .storage import JsonCollection


def pick_unit(units: list[Unit]) -> Unit | None:
    """Lowest-id unit that is in service and available, or None."""
    for unit in sorted(units, key=lambda u: u.id):
        if unit.assignable:
            return unit
    return None


class UnitPool:
    """Manages the fleet of rentable units and their flags."""

    def __init__(self, path: Path):
        """
        Initialize UnitPool.

        Args:
            path: Path of the units JSON file.
        """
        self.collection = JsonCollection(path)

    @property
    def data_dir(self) -> Path:
        return self.collection.data_dir

    def initialize_default(
        self, count: int = DEFAULT_UNIT_COUNT, name: str = DEFAULT_UNIT_NAME
    ) -> bool:
        """
        Seed the pool if it doesn't exist yet. Never overwrites an existing pool.

        Returns:
            True if a pool was created.
        """
        if self.collection.exists():
            return False
        units = [Unit(id=i, name=f"{name} {i}") for i in range(1, count + 1)]
        self.save_all(units)
        return True

    def load_all(self) -> list[Unit]:
        """
        Load every unit, id ascending.

        Raises:
            StorageError: If the file can't be read or holds a malformed record.
        """
        try:
            units = [Unit.from_dict(u) for u in self.collection.load()]
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            raise StorageError(str(self.collection.path), f"bad record: {e}")
        return sorted(units, key=lambda u: u.id)

    def save_all(self, units: list[Unit]) -> None:
        """Replace the whole collection."""
        self.collection.save([u.to_dict() for u in units])

    def list(self) -> list[Unit]:
        """List all units."""
        return self.load_all()

    def get(self, unit_id: int) -> Unit:
        """
        Get a unit by ID.

        Raises:
            UnitNotFoundError: If unit doesn't exist.
        """
        for unit in self.load_all():
            if unit.id == unit_id:
                return unit
        raise UnitNotFoundError(unit_id)

    def find_available(self) -> Unit | None:
        """Return the lowest-id unit that is in service and available, or None."""
        return pick_unit(self.load_all())

    def set_availability(self, unit_id: int, available: bool) -> Unit:
        """
        Set a unit's availability flag.

        Raises:
            UnitNotFoundError: If unit doesn't exist.
        """
        units = self.load_all()
        for unit in units:
            if unit.id == unit_id:
                unit.available = available
                self.save_all(units)
                return unit
        raise UnitNotFoundError(unit_id)

    def toggle_in_service(self, unit_id: int) -> Unit:
        """
        Flip a unit's in-service flag.

        Taking a unit out of service doesn't release a rental holding it.

        Raises:
            UnitNotFoundError: If unit doesn't exist.
        """
        units = self.load_all()
        for unit in units:
            if unit.id == unit_id:
                unit.in_service = not unit.in_service
                self.save_all(units)
                return unit
        raise UnitNotFoundError(unit_id)

"""Tests for UnitPool."""

import json

import pytest

from genrental.errors import StorageError, UnitNotFoundError
from genrental.unit_pool import UnitPool


class TestUnitPool:
    def test_default_pool_has_three_units(self, unit_pool):
        units = unit_pool.list()

        assert [u.id for u in units] == [1, 2, 3]
        assert [u.name for u in units] == ["Aggregaatti 1", "Aggregaatti 2", "Aggregaatti 3"]
        assert all(u.in_service and u.available for u in units)

    def test_initialize_default_never_overwrites(self, unit_pool):
        unit_pool.set_availability(2, False)

        assert unit_pool.initialize_default() is False
        assert unit_pool.get(2).available is False

    def test_initialize_custom_count(self, temp_dir):
        pool = UnitPool(temp_dir / "units.json")
        assert pool.initialize_default(count=5, name="Unit") is True
        assert [u.name for u in pool.list()][-1] == "Unit 5"

    def test_find_available_picks_lowest_id(self, unit_pool):
        assert unit_pool.find_available().id == 1

        unit_pool.set_availability(1, False)
        assert unit_pool.find_available().id == 2

    def test_find_available_skips_out_of_service(self, unit_pool):
        unit_pool.toggle_in_service(1)
        assert unit_pool.find_available().id == 2

    def test_find_available_none_when_exhausted(self, unit_pool):
        for unit_id in (1, 2, 3):
            unit_pool.set_availability(unit_id, False)
        assert unit_pool.find_available() is None

    def test_toggle_in_service_flips(self, unit_pool):
        assert unit_pool.toggle_in_service(3).in_service is False
        assert unit_pool.toggle_in_service(3).in_service is True

    def test_toggle_does_not_release(self, unit_pool):
        unit_pool.set_availability(1, False)
        unit = unit_pool.toggle_in_service(1)

        assert unit.in_service is False
        assert unit.available is False

    def test_unknown_unit_raises(self, unit_pool):
        with pytest.raises(UnitNotFoundError):
            unit_pool.toggle_in_service(99)
        with pytest.raises(UnitNotFoundError):
            unit_pool.set_availability(99, True)
        with pytest.raises(UnitNotFoundError):
            unit_pool.get(99)

    def test_reads_legacy_flag_names(self, temp_dir):
        path = temp_dir / "generators.json"
        path.write_text(json.dumps([
            {"id": 2, "name": "Aggregaatti 2", "is_available": False, "is_active": True},
            {"id": 1, "name": "Aggregaatti 1", "is_available": True, "is_active": False},
        ]))
        pool = UnitPool(path)

        units = pool.list()
        assert [u.id for u in units] == [1, 2]
        assert units[0].in_service is False
        assert units[1].available is False
        assert pool.find_available() is None

    def test_malformed_record_raises_storage_error(self, temp_dir):
        path = temp_dir / "generators.json"
        path.write_text(json.dumps([{"name": "Aggregaatti 1"}, {"id": "two"}]))

        with pytest.raises(StorageError, match="bad record"):
            UnitPool(path).list()

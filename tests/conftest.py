"""Pytest fixtures for genrental tests."""

import tempfile
from datetime import date
from pathlib import Path

import pytest

from genrental.engine import LifecycleEngine
from genrental.models import Customer, DeliveryType, Fulfillment, RentalDraft, RentalPeriod
from genrental.rental_store import RentalStore
from genrental.unit_pool import UnitPool


@pytest.fixture
def temp_dir():
    """Create a temporary directory."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def rental_store(temp_dir):
    """Empty rental store in the temp directory."""
    return RentalStore(temp_dir / "rentals.json")


@pytest.fixture
def unit_pool(temp_dir):
    """Default three-unit pool in the temp directory."""
    pool = UnitPool(temp_dir / "generators.json")
    pool.initialize_default()
    return pool


@pytest.fixture
def engine(rental_store, unit_pool):
    """Engine over the temp stores, without a notifier."""
    return LifecycleEngine(rental_store, unit_pool)


def make_draft(
    start: date = date(2025, 6, 2),
    end: date = date(2025, 6, 4),
    name: str = "Matti Meikäläinen",
    delivery: DeliveryType = DeliveryType.PICKUP,
    address: str = "",
    price: float | None = 190.0,
) -> RentalDraft:
    """Build a valid rental draft."""
    return RentalDraft(
        customer=Customer(name=name, email="matti@example.fi", phone="+358401234567"),
        period=RentalPeriod(start=start, end=end),
        fulfillment=Fulfillment(delivery_type=delivery, address=address),
        price=price,
    )

"""Tests for rental pricing."""

from datetime import date

import pytest

from genrental.pricing import quote, rental_days


@pytest.mark.parametrize(
    "start, end, days",
    [
        (date(2025, 6, 1), date(2025, 6, 1), 1),
        (date(2025, 6, 1), date(2025, 6, 2), 1),
        (date(2025, 6, 1), date(2025, 6, 3), 2),
        (date(2025, 6, 28), date(2025, 7, 5), 7),
        (date(2024, 12, 31), date(2025, 1, 1), 1),
    ],
)
def test_rental_days(start, end, days):
    assert rental_days(start, end) == days


def test_quote_uses_default_daily_price():
    assert quote(date(2025, 6, 1), date(2025, 6, 4)) == 285.0


def test_same_day_quote_charges_one_day():
    assert quote(date(2025, 6, 1), date(2025, 6, 1), price_per_day=120.0) == 120.0

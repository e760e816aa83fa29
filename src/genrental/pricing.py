"""Rental pricing."""

from datetime import date

from .config import DEFAULT_PRICE_PER_DAY


def rental_days(start: date, end: date) -> int:
    """
    Number of days charged for a rental.

    The span between the dates, with a one-day minimum, so a same-day
    rental is charged one day and the 1st to the 3rd is charged two.
    """
    return max(1, (end - start).days)


def quote(start: date, end: date, price_per_day: float = DEFAULT_PRICE_PER_DAY) -> float:
    """Price for renting one unit from start to end."""
    return rental_days(start, end) * price_per_day

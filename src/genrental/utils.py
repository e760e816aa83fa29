"""Utility functions for genrental."""

import re
from datetime import date
from typing import TYPE_CHECKING

from .errors import InvalidDateRangeError

if TYPE_CHECKING:
    from .models import RentalRequest, Unit

_ISO_DATE = re.compile(r"^(\d{4})-(\d{1,2})-(\d{1,2})$")
_FI_DATE = re.compile(r"^(\d{1,2})\.(\d{1,2})\.(\d{4})$")


def parse_date(value: "str | date") -> date:
    """
    Parse a calendar date.

    Formats:
    - "2025-06-01" (ISO)
    - "1.6.2025" (Finnish, as sent by the booking form)
    - "2025-06-01T00:00:00.000Z" (time part is ignored)

    Raises:
        InvalidDateRangeError: If the value isn't a valid date.
    """
    if isinstance(value, date):
        return value
    text = str(value).strip()
    if "T" in text:
        text = text.split("T", 1)[0]

    match = _ISO_DATE.match(text)
    if match:
        year, month, day = (int(g) for g in match.groups())
    else:
        match = _FI_DATE.match(text)
        if not match:
            raise InvalidDateRangeError(str(value), "expected YYYY-MM-DD or d.m.yyyy")
        day, month, year = (int(g) for g in match.groups())

    try:
        return date(year, month, day)
    except ValueError as e:
        raise InvalidDateRangeError(str(value), str(e))


def parse_date_range(start: str | None, end: str | None) -> tuple[date, date]:
    """
    Parse a required inclusive date range.

    Raises:
        InvalidDateRangeError: If either bound is missing or end < start.
    """
    if not start or not end:
        raise InvalidDateRangeError(f"{start or '?'}..{end or '?'}", "start and end are required")
    start_date = parse_date(start)
    end_date = parse_date(end)
    if end_date < start_date:
        raise InvalidDateRangeError(f"{start}..{end}", "end is before start")
    return start_date, end_date


def format_rental(rental: "RentalRequest", verbose: bool = False) -> str:
    """Format a rental for display."""
    unit_str = f" [unit {rental.unit_id}]" if rental.unit_id is not None else ""
    period = f"{rental.period.start.isoformat()}..{rental.period.end.isoformat()}"
    result = (
        f"{rental.id}  {period}  {rental.customer.name}"
        f"  {rental.price:.2f} EUR ({rental.status.value}){unit_str}"
    )

    if verbose:
        result += f"\n         Email: {rental.customer.email}"
        result += f"\n         Phone: {rental.customer.phone}"
        result += f"\n         Fulfillment: {rental.fulfillment.delivery_type.value}"
        if rental.fulfillment.address:
            result += f" ({rental.fulfillment.address})"
        result += f"\n         Created: {rental.created_at}"

    return result


def format_unit(unit: "Unit") -> str:
    """Format a unit for display."""
    service = "in service" if unit.in_service else "out of service"
    occupancy = "available" if unit.available else "assigned"
    return f"{unit.id:>3}  {unit.name}  ({service}, {occupancy})"

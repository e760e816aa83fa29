"""CSV export of rental requests."""

import csv
import io
from datetime import date

from .models import RentalRequest
from .pricing import rental_days

CSV_COLUMNS = [
    "id",
    "created_at",
    "status",
    "name",
    "email",
    "phone",
    "start_date",
    "end_date",
    "days",
    "delivery_type",
    "address",
    "price",
    "unit_id",
]


def filter_by_range(rentals: list[RentalRequest], start: date, end: date) -> list[RentalRequest]:
    """Rentals whose period overlaps the inclusive window start..end."""
    return [r for r in rentals if r.period.overlaps(start, end)]


def rentals_to_csv(rentals: list[RentalRequest]) -> str:
    """Render rentals as CSV with a header row."""
    output = io.StringIO()
    writer = csv.DictWriter(output, fieldnames=CSV_COLUMNS, lineterminator="\n")
    writer.writeheader()
    for rental in rentals:
        row = rental.to_dict()
        row["days"] = rental_days(rental.period.start, rental.period.end)
        row["price"] = f"{rental.price:.2f}"
        row["unit_id"] = "" if rental.unit_id is None else rental.unit_id
        writer.writerow({col: row[col] for col in CSV_COLUMNS})
    return output.getvalue()


def export_filename(start: date, end: date) -> str:
    return f"rentals_{start.isoformat()}_{end.isoformat()}.csv"

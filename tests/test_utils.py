"""Tests for date parsing and display helpers."""

from datetime import date

import pytest

from genrental.errors import InvalidDateRangeError
from genrental.models import Unit
from genrental.utils import format_unit, parse_date, parse_date_range


class TestParseDate:
    @pytest.mark.parametrize(
        "value, expected",
        [
            ("2025-06-01", date(2025, 6, 1)),
            ("1.6.2025", date(2025, 6, 1)),
            ("15.12.2025", date(2025, 12, 15)),
            (" 2025-6-1 ", date(2025, 6, 1)),
            ("2025-06-01T21:00:00.000Z", date(2025, 6, 1)),
        ],
    )
    def test_valid_formats(self, value, expected):
        assert parse_date(value) == expected

    def test_date_passthrough(self):
        assert parse_date(date(2025, 1, 2)) == date(2025, 1, 2)

    @pytest.mark.parametrize("value", ["", "tomorrow", "06/01/2025", "31.2.2025", "2025-13-01"])
    def test_invalid_raises(self, value):
        with pytest.raises(InvalidDateRangeError):
            parse_date(value)


class TestParseDateRange:
    def test_valid_range(self):
        assert parse_date_range("2025-06-01", "3.6.2025") == (date(2025, 6, 1), date(2025, 6, 3))

    @pytest.mark.parametrize("start, end", [(None, "2025-06-01"), ("2025-06-01", None), ("", "")])
    def test_missing_bound(self, start, end):
        with pytest.raises(InvalidDateRangeError, match="required"):
            parse_date_range(start, end)

    def test_inverted_range(self):
        with pytest.raises(InvalidDateRangeError, match="before start"):
            parse_date_range("2025-06-03", "2025-06-01")


def test_format_unit():
    text = format_unit(Unit(id=2, name="Aggregaatti 2", in_service=False, available=True))
    assert "Aggregaatti 2" in text
    assert "out of service" in text

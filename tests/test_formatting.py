import math
from datetime import date, datetime
from decimal import Decimal

import pytest

from business_reports.formatting import (
    format_currency,
    format_date,
    format_timestamp,
    parse_amount,
    parse_date,
    round_half_up,
)


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        (1500, 1500.0),
        (12.5, 12.5),
        (Decimal("3.25"), 3.25),
        ("₹2,36,000.00", 236000.0),
        ("  1,234.50 ", 1234.5),
        ("-₹45.10", -45.1),
        ("12abc", 12.0),
        ("1.2.3", 1.2),
        (".5", 0.5),
    ],
)
def test_parse_amount_accepts_numbers_and_localized_strings(raw, expected):
    assert parse_amount(raw) == pytest.approx(expected)


@pytest.mark.parametrize(
    "raw",
    ["invalid", "", "₹", "-", ".", None, True, False, [], {}, float("nan"), float("inf")],
)
def test_parse_amount_malformed_is_exactly_zero(raw):
    result = parse_amount(raw)
    assert result == 0
    assert not math.isnan(result)


def test_format_currency_indian_grouping_display_and_document_paths():
    assert format_currency(123456) == "₹1,23,456.00"
    assert format_currency(1234567.891) == "₹12,34,567.89"
    assert format_currency(999) == "₹999.00"
    assert format_currency(-123456) == "-₹1,23,456.00"
    assert format_currency(-123456, for_document=True) == "₹-1,23,456.00"
    assert format_currency(0) == "₹0.00"


def test_format_currency_rounds_half_up_identically_on_both_paths():
    # 2.675 is stored as 2.67499999... but its shortest repr rounds half-up.
    assert format_currency(2.675) == "₹2.68"
    assert format_currency(2.675, for_document=True) == "₹2.68"
    assert round_half_up(0.125) == Decimal("0.13")


def test_format_currency_parses_strings_first():
    assert format_currency("₹1,000.5") == "₹1,000.50"
    assert format_currency("garbage") == "₹0.00"


def test_currency_round_trip_preserves_value():
    for raw in ["₹2,36,000.00", "1234.567", "-98765.4", "0.01"]:
        value = parse_amount(raw)
        assert parse_amount(format_currency(value)) == pytest.approx(
            float(round_half_up(value))
        )


def test_parse_date_iso_and_locale_forms():
    assert parse_date("2025-05-15") == datetime(2025, 5, 15)
    assert parse_date("2025-05-15T10:30:00Z").year == 2025
    assert parse_date("15 May 2025") == datetime(2025, 5, 15)
    assert parse_date("May 15, 2025") == datetime(2025, 5, 15)
    assert parse_date("05/15/2025") == datetime(2025, 5, 15)
    assert parse_date(date(2024, 1, 2)) == datetime(2024, 1, 2)


@pytest.mark.parametrize("raw", ["Invalid Date", "", "   ", "not a date", None, 42, "15/05/2025"])
def test_parse_date_unparseable_is_none(raw):
    assert parse_date(raw) is None


def test_format_date_never_returns_invalid_marker():
    assert format_date("2025-05-15T00:00:00") == "15 May 2025"
    assert format_date("2025-05-03") == "3 May 2025"
    assert format_date("Invalid Date") == "N/A"
    assert format_date(None) == "N/A"


def test_format_timestamp():
    assert format_timestamp(datetime(2026, 10, 19, 14, 30)) == "October 19, 2026 at 02:30 PM"

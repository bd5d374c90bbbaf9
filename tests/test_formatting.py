"""
Unit tests for parsing and formatting helpers.
"""

from datetime import date, datetime
from decimal import Decimal

import pytest

from developer_helper.errors import InvalidArgumentError
from developer_helper.formatting import (
    format_currency,
    format_date,
    format_phone_number,
    is_in_range,
    is_negative,
    is_positive,
    parse_or_default,
    round_down,
    round_to,
    round_up,
    try_parse,
)


class TestNumberChecks:

    @pytest.mark.parametrize("value,expected", [(1, True), (5, True), (10, True), (0, False), (11, False)])
    def test_in_range_is_inclusive(self, value, expected):
        assert is_in_range(value, 1, 10) is expected

    def test_in_range_decimal(self):
        assert is_in_range(Decimal("2.50"), Decimal("2.5"), Decimal("3"))

    def test_sign(self):
        assert is_positive(Decimal("0.01"))
        assert not is_positive(0)
        assert is_negative(-1)
        assert not is_negative(0)


class TestParsing:
    """Test cases for try_parse and parse_or_default."""

    def test_parse_int(self):
        assert parse_or_default("42", 0) == 42
        assert parse_or_default("4x2", 7) == 7

    def test_parse_empty_returns_default(self):
        assert parse_or_default("", 3) == 3
        assert parse_or_default(None, 3) == 3

    def test_parse_explicit_type(self):
        assert parse_or_default("2.5", None, Decimal) == Decimal("2.5")
        assert parse_or_default("2024-01-31", None, date) == date(2024, 1, 31)
        assert parse_or_default("true", False) is True

    def test_none_default_needs_type(self):
        with pytest.raises(InvalidArgumentError):
            parse_or_default("1", None)

    def test_try_parse(self):
        assert try_parse("12", int) == (True, 12)
        assert try_parse("12.5", int) == (False, None)
        assert try_parse("", int) == (False, None)


class TestRounding:
    """Test cases for decimal rounding."""

    @pytest.mark.parametrize("value,decimals,expected", [
        (2.675, 2, "2.68"),
        (Decimal("2.5"), 0, "3"),
        (Decimal("-2.5"), 0, "-3"),
        (1.234, 1, "1.2"),
        (7, 2, "7.00"),
    ])
    def test_round_half_away_from_zero(self, value, decimals, expected):
        assert round_to(value, decimals) == Decimal(expected)

    def test_round_up(self):
        assert round_up(1.231, 2) == Decimal("1.24")
        assert round_up(-1.239, 2) == Decimal("-1.23")

    def test_round_down(self):
        assert round_down(1.239, 2) == Decimal("1.23")
        assert round_down(-1.231, 2) == Decimal("-1.24")

    @pytest.mark.parametrize("decimals", [-1, 1.5, True])
    def test_invalid_decimals(self, decimals):
        with pytest.raises(InvalidArgumentError):
            round_to(1, decimals)

    @pytest.mark.parametrize("value", ["abc", float("nan"), True, None])
    def test_invalid_value(self, value):
        with pytest.raises(InvalidArgumentError):
            round_to(value)


class TestFormatting:
    """Test cases for display formatting."""

    def test_currency(self):
        assert format_currency(1234.5) == "₺1,234.50"
        assert format_currency(Decimal("0.005"), "$") == "$0.01"
        assert format_currency(-1234567, "€") == "€-1,234,567.00"

    def test_currency_decimals(self):
        assert format_currency(Decimal("10.4567"), "$", decimals=3) == "$10.457"

    def test_date(self):
        assert format_date(date(2024, 1, 5)) == "05.01.2024"
        assert format_date(datetime(2024, 1, 5, 13, 30), "%Y-%m-%d %H:%M") == "2024-01-05 13:30"

    @pytest.mark.parametrize("number,expected", [
        ("5551234567", "555 123 4567"),
        ("(555) 123-4567", "555 123 4567"),
        ("+90 555 123 4567", "905551234567"),
        ("12-34", "1234"),
        ("", ""),
        (None, None),
    ])
    def test_phone_number(self, number, expected):
        assert format_phone_number(number) == expected

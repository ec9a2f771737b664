# Test type: Unit Test
# Validation to be executed: Validates amount validation, rounding, date
#   parsing and assessment-year helpers.
# Command: pytest test/test_unit_helpers.py -v

"""Unit tests for app.utils.helpers module."""

from datetime import date, datetime

import pytest

from app.services.exceptions import InvalidAmountError
from app.utils.helpers import (
    assessment_year_for,
    assessment_year_start,
    days_between,
    format_assessment_year,
    parse_date,
    round_currency,
    round_rate,
    validate_amount,
)


class TestValidateAmount:

    def test_int_and_float(self):
        assert validate_amount(5) == 5.0
        assert isinstance(validate_amount(5), float)
        assert validate_amount(0.5) == 0.5

    def test_zero_allowed(self):
        assert validate_amount(0) == 0.0

    @pytest.mark.parametrize("bad", [-0.01, float("nan"), float("-inf"), "10", None, False])
    def test_rejected(self, bad):
        with pytest.raises(InvalidAmountError):
            validate_amount(bad)

    def test_message_names_the_field(self):
        with pytest.raises(InvalidAmountError, match="salary"):
            validate_amount(-1, field="salary")


class TestRounding:

    def test_currency(self):
        assert round_currency(123.456) == 123.46
        assert round_currency(500.008) == 500.01

    def test_rate(self):
        assert round_rate(0.15600001) == 0.156
        assert round_rate(0.07279999) == 0.0728


class TestParseDate:

    def test_iso(self):
        assert parse_date("2024-07-31") == date(2024, 7, 31)

    def test_datetime_string(self):
        assert parse_date("2024-07-31 10:30:00") == date(2024, 7, 31)

    def test_day_first(self):
        assert parse_date("31/07/2024") == date(2024, 7, 31)

    def test_passthrough(self):
        assert parse_date(date(2024, 1, 1)) == date(2024, 1, 1)
        assert parse_date(datetime(2024, 1, 1, 23, 59)) == date(2024, 1, 1)

    def test_invalid(self):
        with pytest.raises(ValueError, match="Invalid date format"):
            parse_date("July 31st")


class TestDaysBetween:

    def test_future_and_past(self):
        assert days_between(date(2024, 9, 5), date(2024, 9, 15)) == 10
        assert days_between(date(2024, 9, 5), date(2024, 6, 15)) == -82

    def test_same_day(self):
        assert days_between(date(2024, 9, 5), date(2024, 9, 5)) == 0

    def test_partial_day_rounds_up(self):
        assert days_between(datetime(2024, 9, 5, 12, 0), date(2024, 9, 15)) == 10
        assert days_between(datetime(2024, 9, 5, 0, 0), date(2024, 9, 15)) == 10


class TestAssessmentYear:

    def test_start(self):
        assert assessment_year_start("2024-25") == 2024
        assert assessment_year_start("2024-2025") == 2024
        assert assessment_year_start("1999-00") == 1999

    @pytest.mark.parametrize("bad", ["2024", "2024-26", "24-25", "2024/25"])
    def test_invalid(self, bad):
        with pytest.raises(ValueError, match="Invalid assessment year"):
            assessment_year_start(bad)

    def test_format(self):
        assert format_assessment_year(2024) == "2024-25"
        assert format_assessment_year(2099) == "2099-00"

    def test_year_for_date(self):
        assert assessment_year_for(date(2024, 9, 5)) == "2025-26"
        assert assessment_year_for(date(2025, 3, 31)) == "2025-26"
        assert assessment_year_for(date(2025, 4, 1)) == "2026-27"

"""
Unit tests for utils.py module.

Tests validation functions, calendar helpers and rate compounding.
"""

from datetime import date, datetime

import pandas as pd
import pytest

from cashledger.utils import (
    add_months,
    check_finite,
    check_non_negative,
    compound_rates,
    days_between,
    first_of_month,
    last_day_of_month,
    month_index,
    month_offset,
    to_date,
)


class TestValidation:
    """Test input validation functions."""

    def test_check_non_negative(self):
        check_non_negative("x", 0)
        with pytest.raises(ValueError, match="x must be non-negative"):
            check_non_negative("x", -0.1)

    def test_check_finite(self):
        check_finite("x", 1.0)
        with pytest.raises(ValueError, match="x must be finite"):
            check_finite("x", float("-inf"))


class TestCalendar:

    @pytest.mark.parametrize(
        "value",
        [date(2024, 3, 5), datetime(2024, 3, 5, 23, 59), pd.Timestamp("2024-03-05"), "2024-03-05", "2024-03-05T10:00:00"],
    )
    def test_to_date(self, value):
        assert to_date(value) == date(2024, 3, 5)

    def test_to_date_rejects_other_types(self):
        with pytest.raises(TypeError):
            to_date(20240305)

    def test_first_and_last_day(self):
        assert first_of_month(date(2024, 2, 17)) == date(2024, 2, 1)
        assert last_day_of_month(date(2024, 2, 17)) == date(2024, 2, 29)
        assert last_day_of_month(date(2023, 12, 1)) == date(2023, 12, 31)

    @pytest.mark.parametrize(
        "start,months,expected",
        [
            (date(2024, 1, 31), 1, date(2024, 2, 1)),
            (date(2024, 11, 15), 2, date(2025, 1, 1)),
            (date(2024, 1, 15), -1, date(2023, 12, 1)),
            (date(2024, 6, 1), 0, date(2024, 6, 1)),
        ],
    )
    def test_add_months(self, start, months, expected):
        assert add_months(start, months) == expected

    def test_month_offset(self):
        assert month_offset(date(2024, 1, 20), date(2024, 4, 1)) == 3
        assert month_offset(date(2024, 1, 1), date(2023, 11, 30)) == -2

    def test_days_between(self):
        assert days_between(date(2023, 1, 1), date(2024, 1, 1)) == 365
        assert days_between(date(2024, 1, 1), date(2025, 1, 1)) == 366
        assert days_between(date(2024, 1, 2), date(2024, 1, 1)) == -1

    def test_month_index(self):
        idx = month_index(date(2024, 1, 15), 3)
        assert list(idx) == list(pd.to_datetime(["2024-01-01", "2024-02-01", "2024-03-01"]))
        assert len(month_index(date(2024, 1, 1), 0)) == 0


class TestCompounding:

    def test_empty(self):
        assert compound_rates([]) == 0.0

    def test_three_months(self):
        assert compound_rates([0.02, 0.02, 0.02]) == pytest.approx(0.061208)

    def test_deflation(self):
        assert compound_rates([0.1, -0.1]) == pytest.approx(-0.01)

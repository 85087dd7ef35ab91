"""
Unit tests for calendar arithmetic.

Tests whole-month differences and end-of-month clamping.
"""

from datetime import date

from vehicle_analytics.utils.date_utils import (
    add_months,
    months_between,
    months_owned,
    vehicle_age_years,
)


class TestMonthsBetween:
    """Test whole calendar month differences."""

    def test_same_day_of_month_counts_full_month(self):
        """Test that Jan 15 to Feb 15 is one month."""
        assert months_between(date(2024, 1, 15), date(2024, 2, 15)) == 1

    def test_partial_month_is_not_counted(self):
        """Test that Jan 31 to Feb 29 is zero whole months."""
        assert months_between(date(2024, 1, 31), date(2024, 2, 29)) == 0

    def test_multi_year_span(self):
        """Test a span across several years."""
        assert months_between(date(2021, 3, 15), date(2025, 6, 1)) == 50

    def test_negative_span(self):
        """Test that an end before the start yields a negative count."""
        assert months_between(date(2024, 3, 15), date(2024, 1, 20)) == -1
        assert months_between(date(2024, 3, 15), date(2024, 1, 15)) == -2


class TestAddMonths:
    """Test month addition."""

    def test_clamps_to_end_of_month(self):
        """Test that Jan 31 plus one month lands on the last day of February."""
        assert add_months(date(2024, 1, 31), 1) == date(2024, 2, 29)
        assert add_months(date(2023, 1, 31), 1) == date(2023, 2, 28)

    def test_rolls_over_year(self):
        """Test that adding months crosses a year boundary."""
        assert add_months(date(2024, 11, 15), 3) == date(2025, 2, 15)

    def test_negative_months(self):
        """Test subtracting months."""
        assert add_months(date(2024, 3, 31), -1) == date(2024, 2, 29)
        assert add_months(date(2024, 1, 10), -1) == date(2023, 12, 10)

    def test_zero_months(self):
        """Test that adding zero months returns the same date."""
        assert add_months(date(2024, 5, 5), 0) == date(2024, 5, 5)


class TestOwnershipAndAge:
    """Test floored ownership and age helpers."""

    def test_months_owned_is_at_least_one(self):
        """Test that a same-day purchase still counts as one month owned."""
        assert months_owned(date(2025, 6, 1), date(2025, 6, 1)) == 1
        assert months_owned(date(2025, 6, 1), date(2025, 5, 1)) == 1

    def test_months_owned_counts_whole_months(self):
        """Test months owned for a longer span."""
        assert months_owned(date(2022, 6, 1), date(2025, 6, 1)) == 36

    def test_vehicle_age_never_negative(self):
        """Test that next year's model is zero years old."""
        assert vehicle_age_years(2026, date(2025, 6, 1)) == 0
        assert vehicle_age_years(2020, date(2025, 6, 1)) == 5

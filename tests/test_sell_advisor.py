"""
Unit tests for sell timing advice.

Tests velocity, trend, sweet spot, sell score and the underwater rule.
"""

from datetime import date

import pytest

from vehicle_analytics.core.depreciation import project_values
from vehicle_analytics.core.exceptions import InvalidInput
from vehicle_analytics.core.models import ValuationSnapshot, VehicleFacts
from vehicle_analytics.core.sell_advisor import (
    SellAdvisorConfig,
    SellVerdict,
    ValueTrend,
    analyze_sell_timing,
    find_sweet_spot,
    monthly_depreciation,
    sell_score,
    value_trend,
)

AS_OF = date(2025, 6, 1)

DECLINING_SNAPSHOTS = [
    ValuationSnapshot(date(2025, 5, 1), 20000),
    ValuationSnapshot(date(2025, 1, 1), 24000),
    ValuationSnapshot(date(2025, 3, 1), 22000),
]


def _vehicle(**overrides) -> VehicleFacts:
    values = dict(
        make="Toyota",
        model="Camry",
        model_year=2021,
        current_mileage=48000,
        purchase_price=24000.0,
        purchase_date=date(2022, 6, 1),
        current_value=20000.0,
    )
    values.update(overrides)
    return VehicleFacts(**values)


class TestSellRecommendation:
    """Test end-to-end sell advice."""

    def test_fast_depreciation_says_sell_soon(self):
        """Test that a steeply declining vehicle with equity should sell soon."""
        result = analyze_sell_timing(_vehicle(), DECLINING_SNAPSHOTS, 300, as_of=AS_OF)

        assert result.sell_score == 100
        assert result.verdict is SellVerdict.SELL_SOON
        assert result.trend is ValueTrend.DECLINING
        assert result.monthly_depreciation == pytest.approx(1000.0)
        assert result.retained_value_percent == pytest.approx(20000 / 24000 * 100)
        assert result.equity == 20000
        assert result.cost_per_month == pytest.approx(1300.0)
        assert "declining" in result.recommendation.reason
        assert not result.recommendation.underwater

    def test_underwater_never_sell_soon(self):
        """Test that negative equity forces the underwater hold branch."""
        result = analyze_sell_timing(_vehicle(), DECLINING_SNAPSHOTS, 300, loan_balance=30000, as_of=AS_OF)

        assert result.sell_score >= 75
        assert result.equity == -10000
        assert result.verdict is SellVerdict.HOLD_OFF
        assert result.recommendation.underwater
        assert result.recommendation.title == "Underwater on Loan"

    def test_consider_mentions_sweet_spot(self):
        """Test that the consider branch references the sweet-spot month."""
        vehicle = _vehicle(purchase_price=20000.0)
        result = analyze_sell_timing(vehicle, [], 400, as_of=AS_OF)

        # retained +15, slow velocity -5, age 36 months +10
        assert result.sell_score == 70
        assert result.verdict is SellVerdict.CONSIDER
        assert result.sweet_spot_months == 1
        assert "1 months from now" in result.recommendation.reason

    def test_positive_equity_with_loan(self):
        """Test equity with a loan smaller than the value."""
        result = analyze_sell_timing(_vehicle(), [], 0, loan_balance=5000, as_of=AS_OF)
        assert result.equity == 15000
        assert not result.recommendation.underwater

    def test_projection_horizon(self):
        """Test that the projection covers the configured horizon."""
        result = analyze_sell_timing(_vehicle(), [], 0, as_of=AS_OF, config=SellAdvisorConfig(horizon_months=12))
        assert len(result.projected_values) == 13
        assert result.projected_values[0].value == 20000

    def test_negative_inputs_rejected(self):
        """Test that negative running costs or balance are rejected."""
        with pytest.raises(InvalidInput):
            analyze_sell_timing(_vehicle(), [], -1, as_of=AS_OF)
        with pytest.raises(InvalidInput):
            analyze_sell_timing(_vehicle(), [], 0, loan_balance=-1, as_of=AS_OF)

    def test_future_model_year_rejected(self):
        """Test that a model year beyond next year is rejected."""
        with pytest.raises(InvalidInput):
            analyze_sell_timing(_vehicle(model_year=2027), [], 0, as_of=AS_OF)

    def test_zero_elapsed_snapshots_rejected(self):
        """Test that snapshots sharing one date cannot yield a rate."""
        snapshots = [ValuationSnapshot(date(2025, 1, 1), 21000), ValuationSnapshot(date(2025, 1, 1), 20000)]
        with pytest.raises(InvalidInput):
            analyze_sell_timing(_vehicle(), snapshots, 0, as_of=AS_OF)

    def test_deterministic(self):
        """Test that identical inputs give identical results."""
        assert analyze_sell_timing(_vehicle(), DECLINING_SNAPSHOTS, 300, as_of=AS_OF) == \
            analyze_sell_timing(_vehicle(), DECLINING_SNAPSHOTS, 300, as_of=AS_OF)


class TestMonthlyDepreciation:
    """Test depreciation velocity."""

    def test_from_snapshots(self):
        """Test velocity between the oldest and newest snapshot."""
        assert monthly_depreciation(_vehicle(), DECLINING_SNAPSHOTS, AS_OF) == pytest.approx(1000.0)

    def test_sub_month_span_floored_to_one_month(self):
        """Test that snapshots days apart count as one month."""
        snapshots = [ValuationSnapshot(date(2025, 1, 1), 21000), ValuationSnapshot(date(2025, 1, 20), 20500)]
        assert monthly_depreciation(_vehicle(), snapshots, AS_OF) == pytest.approx(500.0)

    def test_fallback_to_purchase_price(self):
        """Test straight-line velocity with fewer than two snapshots."""
        vehicle = _vehicle(purchase_price=28000.0)
        assert monthly_depreciation(vehicle, [], AS_OF) == pytest.approx(8000 / 36)

    def test_fallback_never_negative(self):
        """Test that an appreciating vehicle has zero fallback velocity."""
        vehicle = _vehicle(purchase_price=15000.0)
        assert monthly_depreciation(vehicle, [], AS_OF) == 0.0


class TestValueTrend:
    """Test trend classification."""

    def test_needs_two_snapshots(self):
        """Test that fewer than two snapshots is stable."""
        assert value_trend([], 20000) is ValueTrend.STABLE
        assert value_trend([ValuationSnapshot(date(2025, 1, 1), 20000)], 20000) is ValueTrend.STABLE

    def test_rising(self):
        """Test a rising trend."""
        snapshots = [ValuationSnapshot(date(2025, 1, 1), 19000), ValuationSnapshot(date(2025, 2, 1), 20000)]
        assert value_trend(snapshots, 20000) is ValueTrend.RISING

    def test_declining_uses_last_three(self):
        """Test that only the three most recent snapshots are considered."""
        snapshots = [ValuationSnapshot(date(2024, 1, 1), 10000)] + DECLINING_SNAPSHOTS
        assert value_trend(snapshots, 20000) is ValueTrend.DECLINING

    def test_small_moves_are_stable(self):
        """Test that a 1% monthly dip is stable."""
        snapshots = [ValuationSnapshot(date(2025, 1, 1), 20200), ValuationSnapshot(date(2025, 2, 1), 20000)]
        assert value_trend(snapshots, 20000) is ValueTrend.STABLE


class TestSweetSpot:
    """Test the sweet-spot search."""

    def test_running_costs_trigger_sweet_spot(self):
        """Test that high running costs make month one the sweet spot."""
        projection = project_values(20000, "Toyota", "Camry", 24, as_of=AS_OF)
        assert find_sweet_spot(20000, projection, 400) == 1

    def test_no_sweet_spot_within_horizon(self):
        """Test that slow depreciation alone never crosses the threshold."""
        projection = project_values(20000, "Toyota", "Camry", 24, as_of=AS_OF)
        assert find_sweet_spot(20000, projection, 0) is None


class TestSellScore:
    """Test the sell score."""

    def test_clamped_high(self):
        """Test that a strong sell case is clamped to 100."""
        assert sell_score(85, 1200, 20000, ValueTrend.DECLINING, 1000, 48) == 100

    def test_clamped_low(self):
        """Test that a very weak sell case is clamped to 0."""
        # 50 - 10 - 5 - 15 - 20 - 5
        assert sell_score(30, 50, 20000, ValueTrend.RISING, -100, 100) == 0

    def test_low_score(self):
        """Test a weak sell case that stays above the floor."""
        # 50 - 5 - 15 - 20 - 5
        assert sell_score(50, 50, 20000, ValueTrend.RISING, -100, 100) == 5

    def test_zero_value_is_safe(self):
        """Test that a zero current value does not divide by zero."""
        assert 0 <= sell_score(0, 0, 0, ValueTrend.STABLE, 0, 12) <= 100

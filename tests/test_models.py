"""
Unit tests for input records.

Tests construction-time validation of vehicle, cost, valuation and loan records.
"""

from datetime import date

import pytest

from vehicle_analytics.core.exceptions import InvalidInput, InvalidLoanTerms, VehicleAnalyticsError
from vehicle_analytics.core.models import (
    AccidentRecord,
    AccidentSeverity,
    CostEntry,
    ExtraPayment,
    LoanTerms,
    ValuationSnapshot,
    VehicleFacts,
)


def _vehicle(**overrides) -> VehicleFacts:
    values = dict(
        make="Toyota",
        model="Camry",
        model_year=2022,
        current_mileage=36000,
        purchase_price=28000.0,
        purchase_date=date(2022, 6, 1),
        current_value=20000.0,
    )
    values.update(overrides)
    return VehicleFacts(**values)


class TestErrorTaxonomy:
    """Test exception hierarchy."""

    def test_invalid_input_is_value_error(self):
        """Test that InvalidInput can be caught as ValueError."""
        assert issubclass(InvalidInput, ValueError)
        assert issubclass(InvalidInput, VehicleAnalyticsError)

    def test_invalid_loan_terms_is_invalid_input(self):
        """Test that loan errors are input errors."""
        assert issubclass(InvalidLoanTerms, InvalidInput)


class TestAccidentRecord:
    """Test accident records and severity impacts."""

    def test_severity_impacts(self):
        """Test the value impact fraction of each severity."""
        assert AccidentSeverity.MINOR.impact_fraction == 0.075
        assert AccidentSeverity.MODERATE.impact_fraction == 0.15
        assert AccidentSeverity.MAJOR.impact_fraction == 0.25
        assert AccidentSeverity.STRUCTURAL.impact_fraction == 0.35

    def test_unknown_severity_impact(self):
        """Test that an accident without severity uses the 10% estimate."""
        record = AccidentRecord(date=date(2024, 1, 1), severity=None)
        assert record.impact_fraction == 0.10

    def test_negative_repair_cost_rejected(self):
        """Test that a negative repair cost is rejected."""
        with pytest.raises(InvalidInput):
            AccidentRecord(date=date(2024, 1, 1), severity=AccidentSeverity.MINOR, repair_cost=-1)


class TestVehicleFacts:
    """Test vehicle fact validation."""

    def test_valid_vehicle(self):
        """Test that a valid vehicle is built and its history frozen."""
        accidents = [AccidentRecord(date=date(2023, 1, 1), severity=AccidentSeverity.MINOR)]
        vehicle = _vehicle(accident_history=accidents)
        assert vehicle.accident_history == tuple(accidents)
        assert vehicle.has_accident_history
        assert vehicle.display_name == "2022 Toyota Camry"

    def test_clean_history(self):
        """Test a vehicle without accidents."""
        assert not _vehicle().has_accident_history

    @pytest.mark.parametrize("field,value", [
        ("current_mileage", -1),
        ("purchase_price", -100.0),
        ("current_value", -1.0),
        ("trim_msrp", 0.0),
        ("insurance_premium", -5.0),
        ("model_year", 1800),
        ("make", "  "),
    ])
    def test_invalid_fields_rejected(self, field, value):
        """Test that out-of-range fields raise InvalidInput."""
        with pytest.raises(InvalidInput):
            _vehicle(**{field: value})

    def test_future_model_year_check(self):
        """Test that model years beyond next year are rejected at analysis time."""
        vehicle = _vehicle(model_year=2027)
        with pytest.raises(InvalidInput):
            vehicle.check_model_year(date(2025, 6, 1))
        _vehicle(model_year=2026).check_model_year(date(2025, 6, 1))


class TestCostAndValuation:
    """Test cost entries and valuation snapshots."""

    def test_maintenance_categories(self):
        """Test that maintenance and repair count as upkeep."""
        assert CostEntry(date(2024, 1, 1), "Maintenance", 50).is_maintenance
        assert CostEntry(date(2024, 1, 1), "repair", 50).is_maintenance
        assert not CostEntry(date(2024, 1, 1), "fuel", 50).is_maintenance
        assert CostEntry(date(2024, 1, 1), "fuel", 50).is_fuel

    def test_negative_amount_rejected(self):
        """Test that a negative cost is rejected."""
        with pytest.raises(InvalidInput):
            CostEntry(date(2024, 1, 1), "fuel", -10)

    def test_negative_valuation_rejected(self):
        """Test that a negative valuation is rejected."""
        with pytest.raises(InvalidInput):
            ValuationSnapshot(date(2024, 1, 1), -1.0)


class TestLoanTerms:
    """Test loan term validation."""

    def test_valid_loan(self):
        """Test that valid terms expose the monthly rate."""
        loan = LoanTerms(principal=30000, annual_rate_percent=6, term_months=60, start_date=date(2024, 1, 15))
        assert loan.monthly_rate == pytest.approx(0.005)
        assert loan.extra_payments == ()

    @pytest.mark.parametrize("overrides", [
        {"principal": 0},
        {"principal": -1000},
        {"term_months": 0},
        {"annual_rate_percent": -0.5},
        {"down_payment": -1},
    ])
    def test_invalid_terms_rejected(self, overrides):
        """Test that unusable terms raise InvalidLoanTerms."""
        values = dict(principal=30000, annual_rate_percent=6, term_months=60, start_date=date(2024, 1, 15))
        values.update(overrides)
        with pytest.raises(InvalidLoanTerms):
            LoanTerms(**values)

    def test_non_positive_extra_payment_rejected(self):
        """Test that an extra payment must be positive."""
        with pytest.raises(InvalidLoanTerms):
            ExtraPayment(date=date(2024, 6, 1), amount=0)

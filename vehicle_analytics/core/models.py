"""
Input snapshots consumed by the analytics engine.

Every record is an immutable value built by the caller right before an
analysis runs. Validation happens at construction so that no component ever
sees a negative price, mileage or amount.
"""

from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Optional, Tuple

from .exceptions import InvalidInput, InvalidLoanTerms

# Value impact used when an accident is reported without a severity
UNKNOWN_SEVERITY_IMPACT = 0.10

# Earliest model year accepted for a vehicle
MIN_MODEL_YEAR = 1886

MAINTENANCE_CATEGORIES = frozenset({"maintenance", "repair"})
FUEL_CATEGORY = "fuel"


class AccidentSeverity(Enum):
    """Severity of a reported accident."""
    MINOR = "minor"
    MODERATE = "moderate"
    MAJOR = "major"
    STRUCTURAL = "structural"

    @property
    def impact_fraction(self) -> float:
        """Fraction of vehicle value typically lost to an accident of this severity."""
        return _SEVERITY_IMPACT[self]


_SEVERITY_IMPACT = {
    AccidentSeverity.MINOR: 0.075,
    AccidentSeverity.MODERATE: 0.15,
    AccidentSeverity.MAJOR: 0.25,
    AccidentSeverity.STRUCTURAL: 0.35,
}


@dataclass(frozen=True)
class AccidentRecord:
    """Single entry in a vehicle's accident history.

    A severity of None means the accident was reported without details.
    """
    date: date
    severity: Optional[AccidentSeverity]
    damage_type: str = ""
    repair_cost: Optional[float] = None
    notes: Optional[str] = None

    def __post_init__(self):
        if self.repair_cost is not None and self.repair_cost < 0:
            raise InvalidInput("repair_cost cannot be negative")

    @property
    def impact_fraction(self) -> float:
        if self.severity is None:
            return UNKNOWN_SEVERITY_IMPACT
        return self.severity.impact_fraction


@dataclass(frozen=True)
class VehicleFacts:
    """Facts about an owned or prospective vehicle."""
    make: str
    model: str
    model_year: int
    current_mileage: int
    purchase_price: float
    purchase_date: date
    current_value: float
    trim_msrp: Optional[float] = None
    location: Optional[str] = None
    insurance_premium: Optional[float] = None
    accident_history: Tuple[AccidentRecord, ...] = ()

    def __post_init__(self):
        """Validate ranges and freeze the accident history."""
        if not self.make or not self.make.strip():
            raise InvalidInput("make is required")
        if self.model_year < MIN_MODEL_YEAR:
            raise InvalidInput(f"model_year must be >= {MIN_MODEL_YEAR}")
        if self.current_mileage < 0:
            raise InvalidInput("current_mileage cannot be negative")
        if self.purchase_price < 0:
            raise InvalidInput("purchase_price cannot be negative")
        if self.current_value < 0:
            raise InvalidInput("current_value cannot be negative")
        if self.trim_msrp is not None and self.trim_msrp <= 0:
            raise InvalidInput("trim_msrp must be > 0 when provided")
        if self.insurance_premium is not None and self.insurance_premium < 0:
            raise InvalidInput("insurance_premium cannot be negative")
        object.__setattr__(self, "accident_history", tuple(self.accident_history))

    @property
    def has_accident_history(self) -> bool:
        return len(self.accident_history) > 0

    @property
    def display_name(self) -> str:
        return f"{self.model_year} {self.make} {self.model}"

    def check_model_year(self, as_of: date) -> None:
        """Reject model years more than one year ahead of the reference date."""
        if self.model_year > as_of.year + 1:
            raise InvalidInput(
                f"model_year {self.model_year} is later than {as_of.year + 1}"
            )


@dataclass(frozen=True)
class CostEntry:
    """Money spent on a vehicle."""
    date: date
    category: str
    amount: float
    merchant: Optional[str] = None
    notes: Optional[str] = None

    def __post_init__(self):
        if self.amount < 0:
            raise InvalidInput("cost amount cannot be negative")

    @property
    def is_maintenance(self) -> bool:
        """Maintenance and repair entries both count as upkeep."""
        return self.category.strip().lower() in MAINTENANCE_CATEGORIES

    @property
    def is_fuel(self) -> bool:
        return self.category.strip().lower() == FUEL_CATEGORY


@dataclass(frozen=True)
class ValuationSnapshot:
    """Estimated market value of a vehicle on a given date."""
    date: date
    estimated_value: float
    mileage_at_time: Optional[int] = None
    source: Optional[str] = None

    def __post_init__(self):
        if self.estimated_value < 0:
            raise InvalidInput("estimated_value cannot be negative")


@dataclass(frozen=True)
class ExtraPayment:
    """Lump-sum principal reduction made on a loan."""
    date: date
    amount: float
    notes: Optional[str] = None

    def __post_init__(self):
        if self.amount <= 0:
            raise InvalidLoanTerms("extra payment amount must be > 0")


@dataclass(frozen=True)
class LoanTerms:
    """Financing terms for a vehicle loan.

    principal is the financed amount; down_payment is cash paid up front and
    only affects the total cost of the purchase.
    """
    principal: float
    annual_rate_percent: float
    term_months: int
    start_date: date
    down_payment: float = 0.0
    extra_payments: Tuple[ExtraPayment, ...] = ()

    def __post_init__(self):
        """Validate loan terms are usable for amortization."""
        if self.principal <= 0:
            raise InvalidLoanTerms("principal must be > 0")
        if self.term_months <= 0:
            raise InvalidLoanTerms("term_months must be > 0")
        if self.annual_rate_percent < 0:
            raise InvalidLoanTerms("annual_rate_percent cannot be negative")
        if self.down_payment < 0:
            raise InvalidLoanTerms("down_payment cannot be negative")
        object.__setattr__(self, "extra_payments", tuple(self.extra_payments))

    @property
    def monthly_rate(self) -> float:
        return self.annual_rate_percent / 100.0 / 12.0

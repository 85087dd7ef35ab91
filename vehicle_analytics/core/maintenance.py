"""
Maintenance cost forecasting.

Derives a vehicle's yearly upkeep from its cost history, compares it with a
typical figure for the make, projects the next five years of costs, lists the
services coming due by mileage and summarises spending patterns.

Service intervals come from a per-make schedule table. Electric vehicles have
no oil, transmission fluid or spark plug service.
"""

import logging
from dataclasses import dataclass
from datetime import date
from enum import Enum
from types import MappingProxyType
from typing import Dict, List, Mapping, Optional, Sequence, Tuple

from .catalog import MakeCostCategory, is_electric, make_cost_category, normalize_make
from .exceptions import InvalidInput
from .models import CostEntry, VehicleFacts
from vehicle_analytics.utils.date_utils import months_owned, vehicle_age_years

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ForecastConfig:
    """Tunable constants for maintenance forecasting."""
    annual_miles: int = 12000
    assumed_miles_per_month: int = 1000
    horizon_years: int = 5

    def __post_init__(self):
        if self.annual_miles <= 0:
            raise ValueError("annual_miles must be > 0")
        if self.assumed_miles_per_month <= 0:
            raise ValueError("assumed_miles_per_month must be > 0")
        if self.horizon_years <= 0:
            raise ValueError("horizon_years must be > 0")


DEFAULT_FORECAST_CONFIG = ForecastConfig()


@dataclass(frozen=True)
class ServiceInterval:
    """A recurring service; an interval of 0 means the vehicle never needs it."""
    service: str
    interval_miles: int
    cost: float


@dataclass(frozen=True)
class MaintenanceSchedule:
    """Recurring service intervals for one make."""
    oil_change: ServiceInterval
    tire_rotation: ServiceInterval
    brake_fluid: ServiceInterval
    transmission_fluid: ServiceInterval
    spark_plugs: ServiceInterval

    def intervals(self) -> Tuple[ServiceInterval, ...]:
        return (
            self.oil_change,
            self.tire_rotation,
            self.brake_fluid,
            self.transmission_fluid,
            self.spark_plugs,
        )


def _schedule(
    oil: Tuple[int, float],
    tires: Tuple[int, float],
    brake_fluid: Tuple[int, float],
    transmission: Tuple[int, float],
    spark_plugs: Tuple[int, float],
) -> MaintenanceSchedule:
    return MaintenanceSchedule(
        oil_change=ServiceInterval("Oil Change", *oil),
        tire_rotation=ServiceInterval("Tire Rotation", *tires),
        brake_fluid=ServiceInterval("Brake Fluid Flush", *brake_fluid),
        transmission_fluid=ServiceInterval("Transmission Fluid", *transmission),
        spark_plugs=ServiceInterval("Spark Plugs", *spark_plugs),
    )


DEFAULT_SCHEDULE = _schedule(
    oil=(5000, 60), tires=(7500, 40), brake_fluid=(30000, 100),
    transmission=(60000, 200), spark_plugs=(60000, 250),
)

EV_SCHEDULE = _schedule(
    oil=(0, 0), tires=(6250, 50), brake_fluid=(50000, 120),
    transmission=(0, 0), spark_plugs=(0, 0),
)

MAINTENANCE_SCHEDULES: Mapping[str, MaintenanceSchedule] = MappingProxyType({
    "TOYOTA": _schedule(
        oil=(10000, 70), tires=(5000, 30), brake_fluid=(30000, 110),
        transmission=(60000, 180), spark_plugs=(120000, 250),
    ),
    "LEXUS": _schedule(
        oil=(10000, 110), tires=(5000, 40), brake_fluid=(30000, 140),
        transmission=(60000, 250), spark_plugs=(120000, 350),
    ),
    "HONDA": _schedule(
        oil=(7500, 65), tires=(7500, 35), brake_fluid=(36000, 100),
        transmission=(60000, 150), spark_plugs=(105000, 300),
    ),
    "SUBARU": _schedule(
        oil=(6000, 70), tires=(6000, 35), brake_fluid=(30000, 110),
        transmission=(60000, 220), spark_plugs=(60000, 280),
    ),
    "MAZDA": _schedule(
        oil=(7500, 65), tires=(7500, 35), brake_fluid=(40000, 100),
        transmission=(60000, 180), spark_plugs=(75000, 240),
    ),
    "FORD": _schedule(
        oil=(7500, 60), tires=(7500, 40), brake_fluid=(36000, 100),
        transmission=(150000, 250), spark_plugs=(100000, 300),
    ),
    "CHEVROLET": _schedule(
        oil=(7500, 55), tires=(7500, 40), brake_fluid=(45000, 100),
        transmission=(45000, 220), spark_plugs=(97500, 280),
    ),
    "BMW": _schedule(
        oil=(10000, 150), tires=(7500, 50), brake_fluid=(24000, 150),
        transmission=(80000, 400), spark_plugs=(60000, 450),
    ),
    "MERCEDES-BENZ": _schedule(
        oil=(10000, 180), tires=(10000, 50), brake_fluid=(20000, 170),
        transmission=(60000, 450), spark_plugs=(60000, 500),
    ),
    "AUDI": _schedule(
        oil=(10000, 140), tires=(10000, 50), brake_fluid=(20000, 150),
        transmission=(40000, 400), spark_plugs=(40000, 380),
    ),
    "PORSCHE": _schedule(
        oil=(10000, 250), tires=(10000, 60), brake_fluid=(20000, 220),
        transmission=(60000, 600), spark_plugs=(40000, 650),
    ),
    "TESLA": EV_SCHEDULE,
    "RIVIAN": EV_SCHEDULE,
    "LUCID": EV_SCHEDULE,
    "POLESTAR": EV_SCHEDULE,
})


def schedule_for(make: str, model: str = "") -> MaintenanceSchedule:
    """Maintenance schedule for a make; electric nameplates use the EV schedule."""
    if is_electric(make, model):
        return EV_SCHEDULE
    return MAINTENANCE_SCHEDULES.get(normalize_make(make), DEFAULT_SCHEDULE)


# Typical yearly upkeep for a new vehicle, by make group
TYPICAL_YEARLY_COST: Mapping[MakeCostCategory, float] = MappingProxyType({
    MakeCostCategory.LUXURY: 2000.0,
    MakeCostCategory.ECONOMY: 1000.0,
    MakeCostCategory.TRUCK: 1500.0,
    MakeCostCategory.STANDARD: 1300.0,
})
TYPICAL_COST_GROWTH_PER_YEAR = 0.08

MIN_PREDICTED_YEARLY_COST = 1000.0
PREDICTED_COST_GROWTH_PER_YEAR = 0.10

# (from mileage, to mileage, service, add-on cost)
MILEAGE_SERVICE_ADDONS = (
    (60000, 72000, "60k service ($800-$1,200)", 1000.0),
    (90000, 102000, "90k service ($1,200-$1,800)", 1500.0),
    (120000, 132000, "120k service ($1,500-$2,500)", 2000.0),
)

AGE_SERVICE_ADDONS: Mapping[int, Tuple[str, float]] = MappingProxyType({
    6: ("Battery replacement", 200.0),
    8: ("Brake system overhaul", 800.0),
    10: ("Suspension components", 1200.0),
})

BASE_CONFIDENCE = 0.8
# (more than this many cost entries, confidence adjustment)
DATA_POINT_CONFIDENCE = ((20, 0.15), (10, 0.10), (5, 0.05))
SPARSE_DATA_CONFIDENCE = -0.20
CONFIDENCE_DECAY_PER_YEAR = 0.10
MIN_CONFIDENCE = 0.40
MAX_CONFIDENCE = 0.95

CRITICAL_WITHIN_MILES = 500
MILESTONE_STEP_MILES = 30000
MILESTONE_LOOKAHEAD_MILES = 15000
MILESTONE_COST_PER_STEP = 500.0
MAX_MILESTONE_COST = 2000.0

MIN_ENTRIES_FOR_TREND = 4
TREND_DEADBAND = 0.15


class ComparisonStatus(Enum):
    """Actual yearly upkeep relative to typical."""
    MUCH_LOWER = "muchLower"
    LOWER = "lower"
    AVERAGE = "average"
    HIGHER = "higher"
    MUCH_HIGHER = "muchHigher"


COMPARISON_BANDS = (
    (-20.0, ComparisonStatus.MUCH_LOWER),
    (-5.0, ComparisonStatus.LOWER),
    (5.0, ComparisonStatus.AVERAGE),
    (20.0, ComparisonStatus.HIGHER),
)


class MaintenancePriority(Enum):
    CRITICAL = "critical"
    RECOMMENDED = "recommended"


class CostTrend(Enum):
    INCREASING = "increasing"
    STABLE = "stable"
    DECREASING = "decreasing"


@dataclass(frozen=True)
class CostComparison:
    """Actual yearly upkeep compared with the typical figure for the make."""
    typical_yearly: float
    your_yearly: float
    difference: float
    percent_difference: float
    status: ComparisonStatus


@dataclass(frozen=True)
class YearlyPrediction:
    """Predicted upkeep for one future year."""
    year: int
    predicted_cost: float
    major_services: Tuple[str, ...]
    estimated_mileage: int
    confidence: float


@dataclass(frozen=True)
class UpcomingMaintenanceItem:
    """A service coming due at a given odometer reading."""
    service: str
    due_at_mileage: int
    estimated_cost: float
    priority: MaintenancePriority


@dataclass(frozen=True)
class MaintenanceAnalytics:
    """Spending patterns over the recorded cost history."""
    cost_per_mile: float
    cost_per_month: float
    total_spent: float
    most_expensive_category: Optional[str]
    trend: CostTrend


@dataclass(frozen=True)
class MaintenanceInsights:
    """Complete maintenance forecast for a vehicle."""
    yearly_average: float
    comparison: CostComparison
    five_year_predictions: Tuple[YearlyPrediction, ...]
    upcoming_maintenance: Tuple[UpcomingMaintenanceItem, ...]
    analytics: MaintenanceAnalytics


def generate_maintenance_insights(
    vehicle: VehicleFacts,
    cost_entries: Sequence[CostEntry],
    as_of: Optional[date] = None,
    config: ForecastConfig = DEFAULT_FORECAST_CONFIG,
) -> MaintenanceInsights:
    """Build the maintenance forecast for a vehicle.

    Args:
        vehicle: Vehicle facts
        cost_entries: All recorded costs for the vehicle
        as_of: Reference date (defaults to today)
        config: Forecast constants

    Returns:
        MaintenanceInsights

    Raises:
        InvalidInput: If the model year is later than next year
    """
    as_of = as_of or date.today()
    vehicle.check_model_year(as_of)
    entries = tuple(sorted(cost_entries, key=lambda e: e.date))
    owned = months_owned(vehicle.purchase_date, as_of)

    yearly = yearly_average(entries, owned)
    insights = MaintenanceInsights(
        yearly_average=yearly,
        comparison=compare_to_typical(vehicle.make, vehicle.model_year, yearly, as_of),
        five_year_predictions=tuple(predict_costs(vehicle, yearly, len(entries), as_of, config)),
        upcoming_maintenance=tuple(
            upcoming_maintenance(vehicle.make, vehicle.model, vehicle.current_mileage)
        ),
        analytics=spending_analytics(entries, owned, config),
    )

    logger.debug(
        "Maintenance insights for %s: yearly=%.2f status=%s upcoming=%d",
        vehicle.display_name, yearly, insights.comparison.status.value,
        len(insights.upcoming_maintenance),
    )
    return insights


def yearly_average(entries: Sequence[CostEntry], owned_months: int) -> float:
    if not entries:
        return 0.0
    return sum(e.amount for e in entries) / owned_months * 12.0


def typical_yearly_cost(make: str, model_year: int, as_of: date) -> float:
    """Typical yearly upkeep for the make group, growing 8% per year of age."""
    base = TYPICAL_YEARLY_COST[make_cost_category(make)]
    age = vehicle_age_years(model_year, as_of)
    return base * (1.0 + age * TYPICAL_COST_GROWTH_PER_YEAR)


def compare_to_typical(make: str, model_year: int, actual_yearly: float, as_of: date) -> CostComparison:
    typical = typical_yearly_cost(make, model_year, as_of)
    difference = actual_yearly - typical
    percent = difference / typical * 100.0

    status = ComparisonStatus.MUCH_HIGHER
    for bound, band_status in COMPARISON_BANDS:
        if percent <= bound:
            status = band_status
            break

    return CostComparison(
        typical_yearly=typical,
        your_yearly=actual_yearly,
        difference=difference,
        percent_difference=percent,
        status=status,
    )


def prediction_confidence(year_offset: int, data_points: int) -> float:
    """Confidence of a prediction; more history and nearer years score higher."""
    confidence = BASE_CONFIDENCE
    for more_than, adjustment in DATA_POINT_CONFIDENCE:
        if data_points > more_than:
            confidence += adjustment
            break
    else:
        confidence += SPARSE_DATA_CONFIDENCE

    confidence -= (year_offset - 1) * CONFIDENCE_DECAY_PER_YEAR
    return round(max(min(confidence, MAX_CONFIDENCE), MIN_CONFIDENCE), 2)


def predict_costs(
    vehicle: VehicleFacts,
    yearly: float,
    data_points: int,
    as_of: date,
    config: ForecastConfig = DEFAULT_FORECAST_CONFIG,
) -> List[YearlyPrediction]:
    """Project upkeep for each of the next horizon_years years."""
    age = vehicle_age_years(vehicle.model_year, as_of)
    base = max(yearly, MIN_PREDICTED_YEARLY_COST)

    predictions = []
    for offset in range(1, config.horizon_years + 1):
        mileage = vehicle.current_mileage + offset * config.annual_miles
        cost = base * (1.0 + PREDICTED_COST_GROWTH_PER_YEAR * offset)
        services = []

        for low, high, service, addon in MILEAGE_SERVICE_ADDONS:
            if low <= mileage < high:
                services.append(service)
                cost += addon
                break

        age_addon = AGE_SERVICE_ADDONS.get(age + offset)
        if age_addon is not None:
            services.append(age_addon[0])
            cost += age_addon[1]

        predictions.append(YearlyPrediction(
            year=as_of.year + offset,
            predicted_cost=cost,
            major_services=tuple(services),
            estimated_mileage=mileage,
            confidence=prediction_confidence(offset, data_points),
        ))
    return predictions


def _priority(due_at: int, mileage: int) -> MaintenancePriority:
    if due_at - mileage <= CRITICAL_WITHIN_MILES:
        return MaintenancePriority.CRITICAL
    return MaintenancePriority.RECOMMENDED


def upcoming_maintenance(make: str, model: str, mileage: int) -> List[UpcomingMaintenanceItem]:
    """Services coming due, sorted by the mileage they are due at.

    Each recurring service is due at the next multiple of its interval. The
    next 30k-mile milestone service is included once it is within 15,000 miles.
    """
    if mileage < 0:
        raise InvalidInput("mileage cannot be negative")

    items = []
    for interval in schedule_for(make, model).intervals():
        if interval.interval_miles <= 0:
            continue
        due_at = (mileage // interval.interval_miles + 1) * interval.interval_miles
        items.append(UpcomingMaintenanceItem(
            service=interval.service,
            due_at_mileage=due_at,
            estimated_cost=interval.cost,
            priority=_priority(due_at, mileage),
        ))

    milestone = (mileage // MILESTONE_STEP_MILES + 1) * MILESTONE_STEP_MILES
    if milestone - mileage <= MILESTONE_LOOKAHEAD_MILES:
        steps = milestone // MILESTONE_STEP_MILES
        items.append(UpcomingMaintenanceItem(
            service=f"{milestone // 1000}k Service",
            due_at_mileage=milestone,
            estimated_cost=min(MILESTONE_COST_PER_STEP * steps, MAX_MILESTONE_COST),
            priority=_priority(milestone, mileage),
        ))

    return sorted(items, key=lambda item: item.due_at_mileage)


def spending_analytics(
    entries: Sequence[CostEntry],
    owned_months: int,
    config: ForecastConfig = DEFAULT_FORECAST_CONFIG,
) -> MaintenanceAnalytics:
    """Cost rates, top category and trend over date-sorted cost entries."""
    if not entries:
        return MaintenanceAnalytics(
            cost_per_mile=0.0,
            cost_per_month=0.0,
            total_spent=0.0,
            most_expensive_category=None,
            trend=CostTrend.STABLE,
        )

    total = sum(e.amount for e in entries)
    miles_driven = owned_months * config.assumed_miles_per_month

    category_totals: Dict[str, float] = {}
    for entry in entries:
        category_totals[entry.category] = category_totals.get(entry.category, 0.0) + entry.amount
    most_expensive = max(category_totals, key=category_totals.get)

    return MaintenanceAnalytics(
        cost_per_mile=total / miles_driven,
        cost_per_month=total / owned_months,
        total_spent=total,
        most_expensive_category=most_expensive,
        trend=cost_trend(entries),
    )


def cost_trend(entries: Sequence[CostEntry]) -> CostTrend:
    """Compare the average entry of the later half with the earlier half."""
    if len(entries) < MIN_ENTRIES_FOR_TREND:
        return CostTrend.STABLE

    ordered = sorted(entries, key=lambda e: e.date)
    midpoint = len(ordered) // 2
    first, second = ordered[:midpoint], ordered[midpoint:]
    first_avg = sum(e.amount for e in first) / len(first)
    second_avg = sum(e.amount for e in second) / len(second)

    if first_avg == 0:
        return CostTrend.INCREASING if second_avg > 0 else CostTrend.STABLE

    change = (second_avg - first_avg) / first_avg
    if change > TREND_DEADBAND:
        return CostTrend.INCREASING
    if change < -TREND_DEADBAND:
        return CostTrend.DECREASING
    return CostTrend.STABLE

"""
Ownership quality scoring.

Rates an owned vehicle's ongoing health on a 300-850 scale, read like a credit
score. Six capped sub-scores are summed without weights:

    maintenance      <= 250
    condition        <= 200
    mileage          <= 150
    age              <= 100
    cost efficiency  <= 100
    market demand    <=  50

Missing cost history yields neutral mid-range sub-scores instead of zero.
"""

import logging
import math
from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import List, Optional, Sequence, Tuple

from .bins import LowerBoundScale, ScoreBand, UpperBoundScale, percent_difference
from .catalog import LUXURY_MAKES, POPULAR_MAKES, normalize_make
from .models import AccidentRecord, AccidentSeverity, CostEntry, VehicleFacts
from vehicle_analytics.utils.date_utils import months_owned, vehicle_age_years

logger = logging.getLogger(__name__)

MIN_TOTAL_SCORE = 300
MAX_TOTAL_SCORE = 850

MAX_MAINTENANCE_SCORE = 250
MAX_CONDITION_SCORE = 200
MAX_AGE_SCORE = 100
MAX_MARKET_SCORE = 50

NEUTRAL_MAINTENANCE_SCORE = 150
NEUTRAL_COST_EFFICIENCY_SCORE = 75

AVERAGE_MILES_PER_YEAR = 12000

MAINTENANCE_BASE_SCORE = 125

# Maintenance visits per month owned
MAINTENANCE_FREQUENCY_SCALE = LowerBoundScale(
    bands=(
        ScoreBand(0.5, 100, "bi-monthly"),
        ScoreBand(0.33, 75, "quarterly"),
        ScoreBand(0.25, 50, "every four months"),
    ),
    fallback=ScoreBand(-math.inf, 25, "minimal"),
)

# Days since the most recent maintenance visit
MAINTENANCE_RECENCY_SCALE = UpperBoundScale(
    bands=(
        ScoreBand(30, 25, "very recent"),
        ScoreBand(90, 15, "recent"),
    ),
    fallback=ScoreBand(math.inf, 0, "stale"),
)

ACCIDENT_DEDUCTIONS = {
    AccidentSeverity.MINOR: 30,
    AccidentSeverity.MODERATE: 60,
    AccidentSeverity.MAJOR: 100,
    AccidentSeverity.STRUCTURAL: 150,
}
UNKNOWN_SEVERITY_DEDUCTION = 40

MILEAGE_SCALE = UpperBoundScale(
    bands=(
        ScoreBand(-40, 150),
        ScoreBand(-20, 135),
        ScoreBand(-10, 120),
        ScoreBand(10, 105),
        ScoreBand(30, 75),
        ScoreBand(50, 45),
    ),
    fallback=ScoreBand(math.inf, 15),
)

# Vehicle age in years
AGE_SCALE = UpperBoundScale(
    bands=(
        ScoreBand(2, 100),
        ScoreBand(5, 85),
        ScoreBand(8, 70),
        ScoreBand(12, 50),
        ScoreBand(15, 30),
    ),
    fallback=ScoreBand(math.inf, 10),
)
CLEAN_VETERAN_AGE = 10
CLEAN_VETERAN_BONUS = 15

# Total spend per month owned
COST_EFFICIENCY_SCALE = UpperBoundScale(
    bands=(
        ScoreBand(50, 100),
        ScoreBand(100, 85),
        ScoreBand(150, 70),
        ScoreBand(250, 50),
        ScoreBand(400, 30),
    ),
    fallback=ScoreBand(math.inf, 10),
)

MARKET_BASE_SCORE = 25
POPULAR_MARKET_BONUS = 25
LUXURY_MARKET_BONUS = 15
DEFAULT_MARKET_BONUS = 10


class QualityGrade(Enum):
    """Grade band of a quality score."""
    EXCELLENT = "excellent"
    VERY_GOOD = "veryGood"
    GOOD = "good"
    FAIR = "fair"
    POOR = "poor"


GRADE_THRESHOLDS = (
    (750, QualityGrade.EXCELLENT),
    (650, QualityGrade.VERY_GOOD),
    (550, QualityGrade.GOOD),
    (450, QualityGrade.FAIR),
)


@dataclass(frozen=True)
class QualitySubScores:
    """The six capped components of a quality score."""
    maintenance: int
    condition: int
    mileage: int
    age: int
    cost_efficiency: int
    market_demand: int

    def total(self) -> int:
        """Unweighted sum clamped to the 300-850 scale."""
        raw = (
            self.maintenance + self.condition + self.mileage
            + self.age + self.cost_efficiency + self.market_demand
        )
        return max(MIN_TOTAL_SCORE, min(raw, MAX_TOTAL_SCORE))


@dataclass(frozen=True)
class QualityScoreResult:
    """Quality score with its components and insights."""
    total_score: int
    grade: QualityGrade
    sub_scores: QualitySubScores
    insights: Tuple[str, ...]
    monthly_cost: float


def calculate_quality_score(
    vehicle: VehicleFacts,
    cost_entries: Sequence[CostEntry],
    as_of: Optional[date] = None,
) -> QualityScoreResult:
    """Score an owned vehicle's ongoing health.

    Args:
        vehicle: Vehicle facts
        cost_entries: All recorded costs for the vehicle
        as_of: Reference date (defaults to today)

    Returns:
        QualityScoreResult with total in [300, 850]

    Raises:
        InvalidInput: If the model year is later than next year
    """
    as_of = as_of or date.today()
    vehicle.check_model_year(as_of)
    entries = tuple(cost_entries)
    owned = months_owned(vehicle.purchase_date, as_of)
    monthly_cost = sum(e.amount for e in entries) / owned

    sub_scores = QualitySubScores(
        maintenance=maintenance_score(entries, owned, as_of),
        condition=condition_score(vehicle.accident_history),
        mileage=mileage_score(vehicle.current_mileage, vehicle.model_year, as_of),
        age=age_score(vehicle.model_year, vehicle.has_accident_history, as_of),
        cost_efficiency=cost_efficiency_score(entries, owned),
        market_demand=market_demand_score(vehicle.make),
    )
    total = sub_scores.total()

    logger.debug("Quality score for %s: %d (%s)", vehicle.display_name, total, sub_scores)

    return QualityScoreResult(
        total_score=total,
        grade=grade_for_score(total),
        sub_scores=sub_scores,
        insights=tuple(_insights(sub_scores, monthly_cost)),
        monthly_cost=monthly_cost,
    )


def grade_for_score(score: int) -> QualityGrade:
    for threshold, grade in GRADE_THRESHOLDS:
        if score >= threshold:
            return grade
    return QualityGrade.POOR


def maintenance_score(entries: Tuple[CostEntry, ...], owned_months: int, as_of: date) -> int:
    """Frequency of maintenance visits plus a bonus for a recent one."""
    if not entries:
        return NEUTRAL_MAINTENANCE_SCORE

    maintenance = [e for e in entries if e.is_maintenance]
    score = MAINTENANCE_BASE_SCORE
    score += MAINTENANCE_FREQUENCY_SCALE.score(len(maintenance) / owned_months)

    if maintenance:
        days_since = (as_of - max(e.date for e in maintenance)).days
        score += MAINTENANCE_RECENCY_SCALE.score(max(days_since, 0))

    return min(score, MAX_MAINTENANCE_SCORE)


def condition_score(accidents: Sequence[AccidentRecord]) -> int:
    score = MAX_CONDITION_SCORE
    for accident in accidents:
        if accident.severity is None:
            score -= UNKNOWN_SEVERITY_DEDUCTION
        else:
            score -= ACCIDENT_DEDUCTIONS[accident.severity]
    return max(score, 0)


def mileage_score(mileage: int, model_year: int, as_of: date) -> int:
    expected = max(as_of.year - model_year, 1) * AVERAGE_MILES_PER_YEAR
    return MILEAGE_SCALE.score(percent_difference(mileage, expected))


def age_score(model_year: int, has_accidents: bool, as_of: date) -> int:
    years_old = vehicle_age_years(model_year, as_of)
    score = AGE_SCALE.score(years_old)
    if years_old > CLEAN_VETERAN_AGE and not has_accidents:
        score += CLEAN_VETERAN_BONUS
    return min(score, MAX_AGE_SCORE)


def cost_efficiency_score(entries: Tuple[CostEntry, ...], owned_months: int) -> int:
    if not entries:
        return NEUTRAL_COST_EFFICIENCY_SCORE
    return COST_EFFICIENCY_SCALE.score(sum(e.amount for e in entries) / owned_months)


def market_demand_score(make: str) -> int:
    canonical = normalize_make(make)
    if canonical in POPULAR_MAKES:
        bonus = POPULAR_MARKET_BONUS
    elif canonical in LUXURY_MAKES:
        bonus = LUXURY_MARKET_BONUS
    else:
        bonus = DEFAULT_MARKET_BONUS
    return min(MARKET_BASE_SCORE + bonus, MAX_MARKET_SCORE)


def _insights(sub_scores: QualitySubScores, monthly_cost: float) -> List[str]:
    insights = []

    if sub_scores.maintenance >= 225:
        insights.append("Exceptional maintenance record")
    elif sub_scores.maintenance >= 200:
        insights.append("Excellent maintenance history")
    elif sub_scores.maintenance < NEUTRAL_MAINTENANCE_SCORE:
        insights.append("Maintenance could be improved")

    if sub_scores.condition == MAX_CONDITION_SCORE:
        insights.append("Perfect condition - no accidents")
    elif sub_scores.condition >= 150:
        insights.append("Good condition with minor history")
    elif sub_scores.condition < 100:
        insights.append("Condition concerns present")

    if sub_scores.mileage >= 135:
        insights.append("Low mileage for vehicle age")
    elif sub_scores.mileage < 75:
        insights.append("High mileage for year")

    if sub_scores.cost_efficiency >= 85:
        insights.append("Very economical to maintain")
    elif sub_scores.cost_efficiency < 50:
        insights.append("Higher than average maintenance costs")

    insights.append(f"${int(monthly_cost)}/month average cost")
    return insights

"""
Sell timing advice.

Combines depreciation velocity, the recent valuation trend, retained value,
loan equity and vehicle age into a 0-100 sell score, and walks the value
projection to find the month where keeping the car starts costing more than a
fixed share of its value each month.

A vehicle that is underwater on its loan is never advised to sell soon.
"""

import logging
from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Optional, Sequence, Tuple

from .depreciation import ProjectedValue, project_values
from .exceptions import InvalidInput
from .models import ValuationSnapshot, VehicleFacts
from vehicle_analytics.utils.date_utils import months_between, months_owned

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SellAdvisorConfig:
    """Tunable constants for sell timing."""
    horizon_months: int = 24
    sweet_spot_threshold: float = 0.025

    def __post_init__(self):
        if self.horizon_months <= 0:
            raise ValueError("horizon_months must be > 0")
        if self.sweet_spot_threshold <= 0:
            raise ValueError("sweet_spot_threshold must be > 0")


DEFAULT_SELL_CONFIG = SellAdvisorConfig()

NEUTRAL_SELL_SCORE = 50
SELL_SOON_THRESHOLD = 75
CONSIDER_THRESHOLD = 50

# Trend thresholds on average monthly change as percent of current value
RISING_TREND_PERCENT = 1.0
DECLINING_TREND_PERCENT = -3.0
TREND_WINDOW = 3


class ValueTrend(Enum):
    """Direction of recent valuations."""
    RISING = "rising"
    STABLE = "stable"
    DECLINING = "declining"


class SellVerdict(Enum):
    """Sell timing verdict."""
    SELL_SOON = "sellSoon"
    CONSIDER = "consider"
    HOLD_OFF = "holdOff"


@dataclass(frozen=True)
class SellRecommendation:
    """Verdict with caller-facing title and reason."""
    verdict: SellVerdict
    title: str
    reason: str
    underwater: bool = False


@dataclass(frozen=True)
class SellAnalysis:
    """Complete sell timing analysis."""
    sell_score: int
    recommendation: SellRecommendation
    trend: ValueTrend
    monthly_depreciation: float
    retained_value_percent: float
    equity: float
    cost_per_month: float
    sweet_spot_months: Optional[int]
    projected_values: Tuple[ProjectedValue, ...]

    @property
    def verdict(self) -> SellVerdict:
        return self.recommendation.verdict


def analyze_sell_timing(
    vehicle: VehicleFacts,
    valuation_snapshots: Sequence[ValuationSnapshot],
    monthly_running_costs: float,
    loan_balance: Optional[float] = None,
    as_of: Optional[date] = None,
    config: SellAdvisorConfig = DEFAULT_SELL_CONFIG,
) -> SellAnalysis:
    """Recommend whether to hold or sell a vehicle.

    Args:
        vehicle: Vehicle facts
        valuation_snapshots: Valuation history in any order
        monthly_running_costs: Monthly cost of keeping the car (fuel,
            insurance, upkeep), excluding depreciation
        loan_balance: Outstanding loan balance, None if owned outright
        as_of: Reference date (defaults to today)
        config: Sell timing constants

    Returns:
        SellAnalysis

    Raises:
        InvalidInput: If costs or balance are negative, the model year is
            more than a year ahead, or the snapshot series spans no time at all
    """
    as_of = as_of or date.today()
    vehicle.check_model_year(as_of)
    if monthly_running_costs < 0:
        raise InvalidInput("monthly_running_costs cannot be negative")
    if loan_balance is not None and loan_balance < 0:
        raise InvalidInput("loan_balance cannot be negative")

    snapshots = sorted(valuation_snapshots, key=lambda s: s.date)
    current_value = vehicle.current_value
    age_months = months_owned(vehicle.purchase_date, as_of)

    velocity = monthly_depreciation(vehicle, snapshots, as_of)
    if vehicle.purchase_price > 0:
        retained = current_value / vehicle.purchase_price * 100
    else:
        retained = 100.0
    equity = current_value - (loan_balance or 0.0)
    trend = value_trend(snapshots, current_value)

    projection = project_values(
        current_value, vehicle.make, vehicle.model, config.horizon_months, as_of=as_of
    )
    sweet_spot = find_sweet_spot(
        current_value, projection, monthly_running_costs, config.sweet_spot_threshold
    )
    score = sell_score(retained, velocity, current_value, trend, equity, age_months)
    recommendation = _recommend(score, trend, equity, sweet_spot)

    logger.debug(
        "Sell analysis for %s: score=%d verdict=%s trend=%s sweet_spot=%s",
        vehicle.display_name, score, recommendation.verdict.value, trend.value, sweet_spot,
    )

    return SellAnalysis(
        sell_score=score,
        recommendation=recommendation,
        trend=trend,
        monthly_depreciation=velocity,
        retained_value_percent=retained,
        equity=equity,
        cost_per_month=monthly_running_costs + velocity,
        sweet_spot_months=sweet_spot,
        projected_values=tuple(projection),
    )


def monthly_depreciation(
    vehicle: VehicleFacts,
    snapshots: Sequence[ValuationSnapshot],
    as_of: date,
) -> float:
    """Dollars of value lost per month.

    Uses the oldest and newest snapshots when there are at least two,
    otherwise the straight line from purchase price to current value.
    """
    if len(snapshots) >= 2:
        ordered = sorted(snapshots, key=lambda s: s.date)
        oldest, newest = ordered[0], ordered[-1]
        if oldest.date == newest.date:
            raise InvalidInput("valuation snapshots span no elapsed time")
        months = max(months_between(oldest.date, newest.date), 1)
        return (oldest.estimated_value - newest.estimated_value) / months

    total_loss = vehicle.purchase_price - vehicle.current_value
    return max(total_loss / months_owned(vehicle.purchase_date, as_of), 0.0)


def value_trend(snapshots: Sequence[ValuationSnapshot], current_value: float) -> ValueTrend:
    """Classify the average change across the most recent snapshots."""
    if len(snapshots) < 2 or current_value <= 0:
        return ValueTrend.STABLE

    recent = sorted(snapshots, key=lambda s: s.date)[-TREND_WINDOW:]
    changes = [
        later.estimated_value - earlier.estimated_value
        for earlier, later in zip(recent, recent[1:])
    ]
    percent_change = sum(changes) / len(changes) / current_value * 100

    if percent_change > RISING_TREND_PERCENT:
        return ValueTrend.RISING
    if percent_change < DECLINING_TREND_PERCENT:
        return ValueTrend.DECLINING
    return ValueTrend.STABLE


def find_sweet_spot(
    current_value: float,
    projection: Sequence[ProjectedValue],
    monthly_running_costs: float,
    threshold: float = DEFAULT_SELL_CONFIG.sweet_spot_threshold,
) -> Optional[int]:
    """First future month whose average monthly cost of ownership exceeds
    threshold * current_value, or None within the projection horizon."""
    limit = current_value * threshold
    for point in projection:
        if point.month_offset <= 0:
            continue
        monthly_loss = (current_value - point.value) / point.month_offset
        if monthly_loss + monthly_running_costs > limit:
            return point.month_offset
    return None


def sell_score(
    retained_percent: float,
    velocity: float,
    current_value: float,
    trend: ValueTrend,
    equity: float,
    age_months: int,
) -> int:
    """Score how favourable it is to sell now, clamped to [0, 100]."""
    score = NEUTRAL_SELL_SCORE

    # Capture value while it is still high
    if retained_percent > 80:
        score += 15
    elif retained_percent > 60:
        score += 10
    elif retained_percent < 40:
        score -= 10

    velocity_percent = velocity / current_value * 100 if current_value > 0 else 0.0
    if velocity_percent > 2:
        score += 15
    elif velocity_percent > 1:
        score += 10
    elif velocity_percent < 0.5:
        score -= 5

    if trend is ValueTrend.RISING:
        score -= 15
    elif trend is ValueTrend.DECLINING:
        score += 15

    if equity < 0:
        score -= 20

    if 36 <= age_months <= 60:
        score += 10
    elif age_months > 84:
        score -= 5

    return max(0, min(score, 100))


def _recommend(
    score: int,
    trend: ValueTrend,
    equity: float,
    sweet_spot: Optional[int],
) -> SellRecommendation:
    if equity < 0:
        return SellRecommendation(
            verdict=SellVerdict.HOLD_OFF,
            title="Underwater on Loan",
            reason=(
                "Your loan balance exceeds the vehicle's value. Continue making "
                "payments to build equity before selling, or consider making "
                "extra payments."
            ),
            underwater=True,
        )

    if score >= SELL_SOON_THRESHOLD:
        reason = "Your vehicle is depreciating at a rate where selling soon would maximize your return."
        if trend is ValueTrend.DECLINING:
            reason += " The value trend is declining, so acting sooner is better."
        return SellRecommendation(SellVerdict.SELL_SOON, "Good Time to Sell", reason)

    if score >= CONSIDER_THRESHOLD:
        reason = (
            "Your vehicle still holds reasonable value. Monitor the market and "
            "consider selling in the next few months."
        )
        if sweet_spot is not None:
            reason += f" The optimal window is roughly {sweet_spot} months from now."
        return SellRecommendation(SellVerdict.CONSIDER, "Consider Selling", reason)

    if trend is ValueTrend.RISING:
        reason = "Your vehicle's value appears to be rising. Hold for now to maximize your return."
    else:
        reason = "Your vehicle's value is relatively stable or still holds well."
    return SellRecommendation(SellVerdict.HOLD_OFF, "Hold For Now", reason)


"""
Deal scoring for prospective purchases.

Scores a listing on four independent axes (price, mileage, condition, market),
each 0-100, and combines them into a weighted overall score with a grade,
insight strings and a recommendation.
"""

import logging
import math
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal, ROUND_HALF_UP
from enum import Enum
from typing import List, Optional, Sequence, Tuple

from .bins import ScoreBand, UpperBoundScale, percent_difference
from .catalog import LUXURY_MAKES, POPULAR_MAKES, REGIONAL_DEMAND, normalize_make
from .exceptions import InvalidInput
from .models import MIN_MODEL_YEAR, AccidentRecord, AccidentSeverity

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DealWeights:
    """Weights of the four deal axes; they must sum to 1."""
    price: float = 0.30
    mileage: float = 0.25
    condition: float = 0.25
    market: float = 0.20

    def __post_init__(self):
        weights = (self.price, self.mileage, self.condition, self.market)
        if any(w < 0 for w in weights):
            raise ValueError("deal weights cannot be negative")
        if not math.isclose(sum(weights), 1.0, abs_tol=1e-9):
            raise ValueError("deal weights must sum to 1.0")


@dataclass(frozen=True)
class DealScorerConfig:
    """Tunable constants for deal scoring.

    The price axis uses its own flat depreciation rate, independent of the
    per-make table used for value projection.
    """
    price_depreciation_rate: float = 0.15
    average_miles_per_year: int = 12000
    weights: DealWeights = field(default_factory=DealWeights)

    def __post_init__(self):
        if not 0 <= self.price_depreciation_rate < 1:
            raise ValueError("price_depreciation_rate must be in [0, 1)")
        if self.average_miles_per_year <= 0:
            raise ValueError("average_miles_per_year must be > 0")


DEFAULT_DEAL_CONFIG = DealScorerConfig()


class DealGrade(Enum):
    """Letter-style grade for an overall deal score."""
    EXCELLENT = "excellent"
    GOOD = "good"
    FAIR = "fair"
    BELOW_AVERAGE = "belowAverage"
    POOR = "poor"


GRADE_THRESHOLDS = (
    (90, DealGrade.EXCELLENT),
    (75, DealGrade.GOOD),
    (60, DealGrade.FAIR),
    (40, DealGrade.BELOW_AVERAGE),
)

# Percent of asking price above (+) or below (-) depreciated market value
PRICE_SCALE = UpperBoundScale(
    bands=(
        ScoreBand(-20, 100, "Exceptional price - {pct}% below market!"),
        ScoreBand(-10, 90, "Great price - {pct}% below market"),
        ScoreBand(-5, 80, "Good price - {pct}% below market"),
        ScoreBand(0, 70, "Fair price - at market value"),
        ScoreBand(5, 60, "Slightly above market (+{pct}%)"),
        ScoreBand(10, 40, "Above market price (+{pct}%)"),
        ScoreBand(20, 20, "Significantly overpriced (+{pct}%)"),
    ),
    fallback=ScoreBand(math.inf, 10, "Extremely overpriced (+{pct}%)"),
)

# Percent of odometer reading above (+) or below (-) expected mileage
MILEAGE_SCALE = UpperBoundScale(
    bands=(
        ScoreBand(-40, 100, "Exceptionally low mileage ({miles})"),
        ScoreBand(-20, 90, "Very low mileage for year"),
        ScoreBand(-10, 80, "Below average mileage"),
        ScoreBand(10, 70, "Average mileage for year"),
        ScoreBand(30, 50, "Above average mileage"),
        ScoreBand(50, 30, "High mileage for year"),
    ),
    fallback=ScoreBand(math.inf, 10, "Very high mileage ({miles})"),
)

CLEAN_HISTORY_SCORE = 100
UNKNOWN_SEVERITY_SCORE = 75

CONDITION_SCORES = {
    AccidentSeverity.MINOR: 85,
    AccidentSeverity.MODERATE: 70,
    AccidentSeverity.MAJOR: 50,
    AccidentSeverity.STRUCTURAL: 30,
}

CONDITION_INSIGHTS = {
    AccidentSeverity.MINOR: "Minor accident history (-7.5% value impact)",
    AccidentSeverity.MODERATE: "Moderate accident history (-15% value impact)",
    AccidentSeverity.MAJOR: "Major accident history (-25% value impact)",
    AccidentSeverity.STRUCTURAL: "Structural damage history (-35% value impact)",
}

MARKET_BASE_SCORE = 70
POPULAR_MAKE_BONUS = 15
LUXURY_MAKE_BONUS = 10
MAX_SUB_SCORE = 100


@dataclass(frozen=True)
class DealSubScores:
    """Independent 0-100 scores for each deal axis."""
    price: int
    mileage: int
    condition: int
    market: int

    def weighted_total(self, weights: DealWeights) -> int:
        """Weighted sum rounded half-up to the nearest integer."""
        weighted = (
            self.price * weights.price
            + self.mileage * weights.mileage
            + self.condition * weights.condition
            + self.market * weights.market
        )
        rounded = Decimal(str(weighted)).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
        return max(0, min(int(rounded), MAX_SUB_SCORE))


@dataclass(frozen=True)
class DealAnalysisResult:
    """Complete analysis of a prospective purchase."""
    overall_score: int
    sub_scores: DealSubScores
    grade: DealGrade
    insights: Tuple[str, ...]
    recommendation: str
    price_difference_percent: float
    adjusted_market_value: float
    expected_mileage: int
    mileage_difference: int
    accident_impact: Optional[float] = None
    location_adjustment: Optional[float] = None

    @property
    def price_score(self) -> int:
        return self.sub_scores.price

    @property
    def mileage_score(self) -> int:
        return self.sub_scores.mileage

    @property
    def condition_score(self) -> int:
        return self.sub_scores.condition

    @property
    def market_score(self) -> int:
        return self.sub_scores.market


def analyze_deal(
    make: str,
    model: str,
    model_year: int,
    mileage: int,
    asking_price: float,
    trim_msrp: Optional[float] = None,
    location: Optional[str] = None,
    accident_history: Optional[Sequence[AccidentRecord]] = None,
    as_of: Optional[date] = None,
    config: DealScorerConfig = DEFAULT_DEAL_CONFIG,
) -> DealAnalysisResult:
    """Score a prospective purchase.

    Args:
        make: Vehicle make
        model: Vehicle model
        model_year: Model year
        mileage: Odometer reading
        asking_price: Seller's asking price
        trim_msrp: MSRP of the selected trim, if known; otherwise the asking
            price stands in as the baseline market value
        location: Free-text location of the listing
        accident_history: Reported accidents, empty or None for a clean history
        as_of: Reference date (defaults to today)
        config: Scoring constants

    Returns:
        DealAnalysisResult with overall score, sub-scores, grade and insights

    Raises:
        InvalidInput: If prices or mileage are out of range
    """
    as_of = as_of or date.today()
    _validate_deal_inputs(model_year, mileage, asking_price, trim_msrp, as_of)
    accidents = tuple(accident_history or ())

    price_score, price_diff, adjusted_value, price_insight = _score_price(
        asking_price, trim_msrp or asking_price, model_year, as_of, config
    )
    mileage_score, expected, mileage_diff, mileage_insight = _score_mileage(
        mileage, model_year, as_of, config
    )
    condition_score, accident_impact, condition_insights = _score_condition(accidents)
    market_score, location_adjustment, market_insights = _score_market(make, model, location)

    sub_scores = DealSubScores(
        price=price_score,
        mileage=mileage_score,
        condition=condition_score,
        market=market_score,
    )
    overall = sub_scores.weighted_total(config.weights)

    insights = [price_insight, mileage_insight]
    insights.extend(condition_insights)
    insights.extend(market_insights)
    insights.append(_summary_insight(overall))

    logger.debug(
        "Deal %s %s %d: price=%d mileage=%d condition=%d market=%d overall=%d",
        make, model, model_year, price_score, mileage_score,
        condition_score, market_score, overall,
    )

    return DealAnalysisResult(
        overall_score=overall,
        sub_scores=sub_scores,
        grade=grade_for_score(overall),
        insights=tuple(insights),
        recommendation=_recommendation(overall, asking_price),
        price_difference_percent=price_diff,
        adjusted_market_value=adjusted_value,
        expected_mileage=expected,
        mileage_difference=mileage_diff,
        accident_impact=accident_impact,
        location_adjustment=location_adjustment,
    )


def grade_for_score(score: int) -> DealGrade:
    for threshold, grade in GRADE_THRESHOLDS:
        if score >= threshold:
            return grade
    return DealGrade.POOR


def _validate_deal_inputs(
    model_year: int,
    mileage: int,
    asking_price: float,
    trim_msrp: Optional[float],
    as_of: date,
) -> None:
    if asking_price <= 0:
        raise InvalidInput("asking_price must be > 0")
    if mileage < 0:
        raise InvalidInput("mileage cannot be negative")
    if trim_msrp is not None and trim_msrp <= 0:
        raise InvalidInput("trim_msrp must be > 0 when provided")
    if model_year < MIN_MODEL_YEAR or model_year > as_of.year + 1:
        raise InvalidInput(f"model_year must be between {MIN_MODEL_YEAR} and {as_of.year + 1}")


def _score_price(
    asking_price: float,
    market_value: float,
    model_year: int,
    as_of: date,
    config: DealScorerConfig,
) -> Tuple[int, float, float, str]:
    """Score asking price against the market value depreciated to today."""
    years_old = max(as_of.year - model_year, 0)
    adjusted = market_value * (1 - config.price_depreciation_rate) ** years_old
    diff = percent_difference(asking_price, adjusted)

    band = PRICE_SCALE.band_for(diff)
    return band.score, diff, adjusted, band.label.format(pct=int(abs(diff)))


def _score_mileage(
    mileage: int,
    model_year: int,
    as_of: date,
    config: DealScorerConfig,
) -> Tuple[int, int, int, str]:
    """Score mileage against the expected miles for the vehicle's age."""
    years_old = max(as_of.year - model_year, 1)
    expected = years_old * config.average_miles_per_year
    difference = mileage - expected
    diff = percent_difference(mileage, expected)

    band = MILEAGE_SCALE.band_for(diff)
    return band.score, expected, difference, band.label.format(miles=f"{mileage:,} mi")


def _score_condition(accidents: Tuple[AccidentRecord, ...]) -> Tuple[int, Optional[float], List[str]]:
    """Score reported accident history; the worst accident decides."""
    if not accidents:
        return CLEAN_HISTORY_SCORE, None, ["Clean history - no reported accidents"]

    worst = min(accidents, key=_condition_score_for)
    score = _condition_score_for(worst)
    if worst.severity is None:
        insights = ["Accident reported (severity unknown, -10% estimated)"]
    else:
        insights = [CONDITION_INSIGHTS[worst.severity]]

    if len(accidents) > 1:
        insights.append(f"{len(accidents)} accidents reported")

    return score, worst.impact_fraction, insights


def _condition_score_for(accident: AccidentRecord) -> int:
    if accident.severity is None:
        return UNKNOWN_SEVERITY_SCORE
    return CONDITION_SCORES[accident.severity]


def _score_market(make: str, model: str, location: Optional[str]) -> Tuple[int, Optional[float], List[str]]:
    """Score resale demand for the make and regional demand for the vehicle type."""
    canonical = normalize_make(make)
    display_make = make.strip()
    insights = []
    location_adjustment = None

    score = MARKET_BASE_SCORE
    if canonical in POPULAR_MAKES:
        score += POPULAR_MAKE_BONUS
        insights.append(f"{display_make} has excellent resale value")
    elif canonical in LUXURY_MAKES:
        score += LUXURY_MAKE_BONUS
        insights.append(f"{display_make} luxury brand with strong market")

    for region in REGIONAL_DEMAND:
        if region.applies_to(make, model, location):
            score += region.score_bonus
            location_adjustment = region.multiplier
            insights.append(region.insight)

    return min(score, MAX_SUB_SCORE), location_adjustment, insights


def _summary_insight(overall: int) -> str:
    if overall >= 85:
        return "Overall: This is an excellent opportunity!"
    if overall >= 70:
        return "Overall: This is a solid deal"
    if overall >= 55:
        return "Overall: Fair deal, negotiate if possible"
    return "Overall: Consider looking for better options"


def _recommendation(overall: int, asking_price: float) -> str:
    if overall >= 90:
        return (
            "Exceptional Deal! Don't hesitate - this is priced well below market "
            "with great fundamentals. Act quickly before someone else does."
        )
    if overall >= 80:
        return (
            "Great Deal! This vehicle offers excellent value. The price and "
            "condition are both favorable. Recommended purchase."
        )
    if overall >= 70:
        return (
            "Good Deal. This is a fair price for the vehicle's condition and "
            "mileage. Worth considering seriously."
        )
    if overall >= 60:
        return (
            "Fair Deal. The price is reasonable but not exceptional. "
            f"Try negotiating ${asking_price * 0.05:,.0f} lower."
        )
    if overall >= 45:
        return (
            "Below Average. Significant concerns with price, mileage, or "
            "condition. Negotiate heavily or keep looking."
        )
    return (
        "Poor Deal. Multiple red flags present. Unless you have specific "
        "reasons, we recommend continuing your search."
    )

"""
Depreciation rates and forward value projection.

Projects a vehicle's value month by month using a fixed annual rate looked up
from the make/model depreciation table. No floor is applied here; callers that
want one use apply_value_floor on the result.
"""

import logging
from dataclasses import dataclass
from datetime import date
from typing import List, Optional, Sequence

from .catalog import ANNUAL_DEPRECIATION_RATES, depreciation_class
from .exceptions import InvalidInput
from .models import AccidentRecord
from vehicle_analytics.utils.date_utils import add_months

logger = logging.getLogger(__name__)

# Accident damage never costs more than half of a vehicle's value
MAX_ACCIDENT_IMPACT_FRACTION = 0.5

DEFAULT_MSRP_FLOOR_FRACTION = 0.05


@dataclass(frozen=True)
class ProjectedValue:
    """Projected vehicle value at a month offset from the reference date."""
    month_offset: int
    date: date
    value: float


def depreciation_rate(make: str, model: str) -> float:
    """Annual depreciation rate for a make/model.

    Args:
        make: Vehicle make (any case, aliases accepted)
        model: Vehicle model nameplate

    Returns:
        Annual rate in (0, 1)
    """
    return ANNUAL_DEPRECIATION_RATES[depreciation_class(make, model)]


def project_values(
    current_value: float,
    make: str,
    model: str,
    months: int,
    as_of: Optional[date] = None,
) -> List[ProjectedValue]:
    """Project value forward with geometric monthly decay.

    value[m + 1] = value[m] * (1 - annual_rate / 12)

    Args:
        current_value: Value today (month offset 0)
        make: Vehicle make
        model: Vehicle model
        months: Horizon in months; output has months + 1 points
        as_of: Reference date for month offset 0 (defaults to today)

    Returns:
        Ordered list of ProjectedValue from offset 0 to months inclusive

    Raises:
        InvalidInput: If current_value or months is negative
    """
    if current_value < 0:
        raise InvalidInput("current_value cannot be negative")
    if months < 0:
        raise InvalidInput("months cannot be negative")

    start = as_of or date.today()
    monthly_rate = depreciation_rate(make, model) / 12.0

    values = []
    value = float(current_value)
    for offset in range(months + 1):
        values.append(ProjectedValue(
            month_offset=offset,
            date=add_months(start, offset),
            value=value,
        ))
        value *= (1.0 - monthly_rate)

    logger.debug(
        "Projected %s %s over %d months at %.4f/month",
        make, model, months, monthly_rate,
    )
    return values


def apply_value_floor(
    projection: Sequence[ProjectedValue],
    msrp: float,
    fraction: float = DEFAULT_MSRP_FLOOR_FRACTION,
) -> List[ProjectedValue]:
    """Return a copy of a projection that never drops below fraction * msrp."""
    if msrp <= 0:
        raise InvalidInput("msrp must be > 0")
    if not 0 <= fraction < 1:
        raise InvalidInput("fraction must be in [0, 1)")

    floor = msrp * fraction
    return [
        ProjectedValue(p.month_offset, p.date, max(p.value, floor))
        for p in projection
    ]


def accident_value_impact(current_value: float, accidents: Sequence[AccidentRecord]) -> float:
    """Dollar value lost to accident history.

    Each accident costs its severity fraction of current value; the total is
    capped at half of current value.
    """
    if current_value < 0:
        raise InvalidInput("current_value cannot be negative")

    total = sum(current_value * accident.impact_fraction for accident in accidents)
    return min(total, current_value * MAX_ACCIDENT_IMPACT_FRACTION)

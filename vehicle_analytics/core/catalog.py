"""
Static vehicle lookup tables.

All make and nameplate based decisions go through the explicit tables in this
module. Makes are normalized (case, whitespace, common aliases) before lookup so
that "mercedes benz", "Mercedes-Benz" and "MERCEDES" hit the same row.
"""

import re
from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import FrozenSet, Iterable, Mapping, Optional


MAKE_ALIASES: Mapping[str, str] = MappingProxyType({
    "MERCEDES": "MERCEDES-BENZ",
    "MERCEDES BENZ": "MERCEDES-BENZ",
    "MERCEDESBENZ": "MERCEDES-BENZ",
    "BENZ": "MERCEDES-BENZ",
    "CHEVY": "CHEVROLET",
    "VW": "VOLKSWAGEN",
    "ROLLS ROYCE": "ROLLS-ROYCE",
    "LANDROVER": "LAND ROVER",
    "ALFA": "ALFA ROMEO",
    "RAM TRUCKS": "RAM",
    "DODGE RAM": "RAM",
})


def normalize_make(make: str) -> str:
    """Canonical upper-case make name used as the key for every table."""
    cleaned = " ".join(make.replace("_", " ").upper().split())
    return MAKE_ALIASES.get(cleaned, cleaned)


def _model_tokens(model: str) -> FrozenSet[str]:
    return frozenset(t for t in re.split(r"[\s,/()]+", model.upper()) if t)


def model_matches(model: str, nameplates: Iterable[str]) -> bool:
    """True if the model names any of the nameplates.

    Single-word nameplates must match a whole word of the model ("RAM" does not
    match "TRAMONTANA"); multi-word nameplates match as a substring.
    """
    upper_model = " ".join(model.upper().split())
    tokens = _model_tokens(model)
    for nameplate in nameplates:
        if " " in nameplate:
            if nameplate in upper_model:
                return True
        elif nameplate in tokens:
            return True
    return False


# Makes with strong resale demand
POPULAR_MAKES: FrozenSet[str] = frozenset({"TOYOTA", "HONDA", "LEXUS", "SUBARU", "MAZDA"})

# Luxury makes recognised by the deal and quality market axes
LUXURY_MAKES: FrozenSet[str] = frozenset({"BMW", "MERCEDES-BENZ", "AUDI", "LEXUS", "PORSCHE"})


class DepreciationClass(Enum):
    """Depreciation behaviour groups for the value projector."""
    OFF_ROAD = "off_road"
    EXOTIC = "exotic"
    HIGH_RETENTION = "high_retention"
    ELECTRIC = "electric"
    LUXURY = "luxury"
    STANDARD = "standard"


ANNUAL_DEPRECIATION_RATES: Mapping[DepreciationClass, float] = MappingProxyType({
    DepreciationClass.OFF_ROAD: 0.06,
    DepreciationClass.EXOTIC: 0.07,
    DepreciationClass.HIGH_RETENTION: 0.10,
    DepreciationClass.ELECTRIC: 0.12,
    DepreciationClass.LUXURY: 0.15,
    DepreciationClass.STANDARD: 0.12,
})

MAKE_DEPRECIATION_CLASS: Mapping[str, DepreciationClass] = MappingProxyType({
    "PORSCHE": DepreciationClass.EXOTIC,
    "FERRARI": DepreciationClass.EXOTIC,
    "LAMBORGHINI": DepreciationClass.EXOTIC,
    "TOYOTA": DepreciationClass.HIGH_RETENTION,
    "LEXUS": DepreciationClass.HIGH_RETENTION,
    "HONDA": DepreciationClass.HIGH_RETENTION,
    "SUBARU": DepreciationClass.HIGH_RETENTION,
    "TESLA": DepreciationClass.ELECTRIC,
    "BMW": DepreciationClass.LUXURY,
    "MERCEDES-BENZ": DepreciationClass.LUXURY,
    "AUDI": DepreciationClass.LUXURY,
    "MASERATI": DepreciationClass.LUXURY,
    "JAGUAR": DepreciationClass.LUXURY,
})

# Nameplates that hold value regardless of make
OFF_ROAD_NAMEPLATES = ("WRANGLER", "4RUNNER", "TACOMA", "BRONCO")


def depreciation_class(make: str, model: str) -> DepreciationClass:
    """Resolve the depreciation group; nameplate overrides make."""
    if model_matches(model, OFF_ROAD_NAMEPLATES):
        return DepreciationClass.OFF_ROAD
    return MAKE_DEPRECIATION_CLASS.get(normalize_make(make), DepreciationClass.STANDARD)


class MakeCostCategory(Enum):
    """Make groups used for typical yearly upkeep costs."""
    LUXURY = "luxury"
    ECONOMY = "economy"
    TRUCK = "truck"
    STANDARD = "standard"


MAKE_COST_CATEGORY: Mapping[str, MakeCostCategory] = MappingProxyType({
    "BMW": MakeCostCategory.LUXURY,
    "MERCEDES-BENZ": MakeCostCategory.LUXURY,
    "AUDI": MakeCostCategory.LUXURY,
    "LEXUS": MakeCostCategory.LUXURY,
    "PORSCHE": MakeCostCategory.LUXURY,
    "CADILLAC": MakeCostCategory.LUXURY,
    "TOYOTA": MakeCostCategory.ECONOMY,
    "HONDA": MakeCostCategory.ECONOMY,
    "MAZDA": MakeCostCategory.ECONOMY,
    "HYUNDAI": MakeCostCategory.ECONOMY,
    "KIA": MakeCostCategory.ECONOMY,
    "FORD": MakeCostCategory.TRUCK,
    "CHEVROLET": MakeCostCategory.TRUCK,
    "RAM": MakeCostCategory.TRUCK,
    "GMC": MakeCostCategory.TRUCK,
})


def make_cost_category(make: str) -> MakeCostCategory:
    return MAKE_COST_CATEGORY.get(normalize_make(make), MakeCostCategory.STANDARD)


class VehicleCategory(Enum):
    """Body/powertrain classification of a vehicle."""
    EV = "ev"
    LUXURY = "luxury"
    TRUCK = "truck"
    SUV = "suv"
    SPORTS = "sports"
    SEDAN = "sedan"


EV_MAKES: FrozenSet[str] = frozenset({"TESLA", "RIVIAN", "LUCID", "POLESTAR"})

EV_NAMEPLATES = (
    "MODEL 3", "MODEL Y", "MODEL S", "MODEL X", "BOLT", "LEAF", "ID.4",
    "IONIQ 5", "IONIQ 6", "EV6", "EV9", "MACH-E", "LIGHTNING", "HUMMER EV",
)

PREMIUM_MAKES: FrozenSet[str] = frozenset({
    "BMW", "MERCEDES-BENZ", "AUDI", "LEXUS", "PORSCHE", "CADILLAC",
    "INFINITI", "ACURA", "GENESIS", "VOLVO", "LINCOLN", "LAND ROVER",
    "JAGUAR", "MASERATI", "BENTLEY", "ROLLS-ROYCE", "FERRARI",
    "LAMBORGHINI", "MCLAREN", "ASTON MARTIN", "ALFA ROMEO",
})

PICKUP_NAMEPLATES = (
    "F-150", "F-250", "F-350", "SILVERADO", "RAM", "RAM 1500", "RAM 2500",
    "TUNDRA", "TACOMA", "RANGER", "COLORADO", "FRONTIER", "CANYON",
    "GLADIATOR", "SIERRA", "TITAN", "MAVERICK", "RIDGELINE",
)

SUV_NAMEPLATES = (
    "SUV", "4RUNNER", "WRANGLER", "BRONCO", "EXPLORER", "TAHOE", "SUBURBAN",
    "EXPEDITION", "SEQUOIA", "HIGHLANDER", "PILOT", "PATHFINDER",
    "TELLURIDE", "PALISADE", "TRAVERSE", "DURANGO",
)

SPORTS_NAMEPLATES = (
    "MUSTANG", "CAMARO", "CORVETTE", "SUPRA", "GR86", "BRZ", "370Z", "400Z",
    "MIATA", "MX-5", "WRX", "STI", "TYPE R", "GT-R", "911", "CAYMAN",
    "BOXSTER", "M3", "M4", "M5", "AMG", "CHALLENGER", "CHARGER",
)


def is_electric(make: str, model: str) -> bool:
    return normalize_make(make) in EV_MAKES or model_matches(model, EV_NAMEPLATES)


def is_pickup(make: str, model: str) -> bool:
    return normalize_make(make) == "RAM" or model_matches(model, PICKUP_NAMEPLATES)


def classify_vehicle(make: str, model: str) -> VehicleCategory:
    """Classify a vehicle; the first matching category wins."""
    if is_electric(make, model):
        return VehicleCategory.EV
    if normalize_make(make) in PREMIUM_MAKES:
        return VehicleCategory.LUXURY
    if is_pickup(make, model):
        return VehicleCategory.TRUCK
    if model_matches(model, SUV_NAMEPLATES):
        return VehicleCategory.SUV
    if model_matches(model, SPORTS_NAMEPLATES):
        return VehicleCategory.SPORTS
    return VehicleCategory.SEDAN


STATE_CODES: Mapping[str, str] = MappingProxyType({
    "ALABAMA": "AL", "ALASKA": "AK", "ARIZONA": "AZ", "ARKANSAS": "AR",
    "CALIFORNIA": "CA", "COLORADO": "CO", "CONNECTICUT": "CT", "DELAWARE": "DE",
    "FLORIDA": "FL", "GEORGIA": "GA", "HAWAII": "HI", "IDAHO": "ID",
    "ILLINOIS": "IL", "INDIANA": "IN", "IOWA": "IA", "KANSAS": "KS",
    "KENTUCKY": "KY", "LOUISIANA": "LA", "MAINE": "ME", "MARYLAND": "MD",
    "MASSACHUSETTS": "MA", "MICHIGAN": "MI", "MINNESOTA": "MN", "MISSISSIPPI": "MS",
    "MISSOURI": "MO", "MONTANA": "MT", "NEBRASKA": "NE", "NEVADA": "NV",
    "NEW HAMPSHIRE": "NH", "NEW JERSEY": "NJ", "NEW MEXICO": "NM", "NEW YORK": "NY",
    "NORTH CAROLINA": "NC", "NORTH DAKOTA": "ND", "OHIO": "OH", "OKLAHOMA": "OK",
    "OREGON": "OR", "PENNSYLVANIA": "PA", "RHODE ISLAND": "RI", "SOUTH CAROLINA": "SC",
    "SOUTH DAKOTA": "SD", "TENNESSEE": "TN", "TEXAS": "TX", "UTAH": "UT",
    "VERMONT": "VT", "VIRGINIA": "VA", "WASHINGTON": "WA", "WEST VIRGINIA": "WV",
    "WISCONSIN": "WI", "WYOMING": "WY",
})


def location_mentions_state(location: Optional[str], state_name: str) -> bool:
    """True if a free-text location names the state.

    The state may be spelled out anywhere, or given as the postal code that
    closes a "City, ST" location (optionally followed by a ZIP code). "Chicago"
    does not count as CA, and "Mt. Pleasant, SC" does not count as MT.
    """
    if not location:
        return False
    upper_location = location.upper()
    state_upper = state_name.upper()
    if state_upper in upper_location:
        # "West Virginia" must not count as "Virginia"
        stripped = upper_location
        for other in STATE_CODES:
            if other != state_upper and state_upper in other:
                stripped = stripped.replace(other, " ")
        if state_upper in stripped:
            return True
    code = STATE_CODES.get(state_upper)
    if code is None:
        return False
    pattern = r",\s*" + code + r"\.?(\s+\d{5}(-\d{4})?)?\s*$"
    return re.search(pattern, upper_location) is not None


@dataclass(frozen=True)
class MarketRegion:
    """Location-driven demand premium for one vehicle category."""
    category: VehicleCategory
    states: FrozenSet[str]
    multiplier: float
    score_bonus: int
    insight: str

    def applies_to(self, make: str, model: str, location: Optional[str]) -> bool:
        if self.category is VehicleCategory.TRUCK:
            matches_vehicle = is_pickup(make, model)
        elif self.category is VehicleCategory.EV:
            matches_vehicle = is_electric(make, model)
        else:
            matches_vehicle = classify_vehicle(make, model) is self.category
        return matches_vehicle and any(
            location_mentions_state(location, state) for state in self.states
        )


REGIONAL_DEMAND = (
    MarketRegion(
        category=VehicleCategory.TRUCK,
        states=frozenset({"TEXAS", "MONTANA", "WYOMING"}),
        multiplier=0.15,
        score_bonus=10,
        insight="Trucks in high demand in this region (+15%)",
    ),
    MarketRegion(
        category=VehicleCategory.EV,
        states=frozenset({"CALIFORNIA"}),
        multiplier=0.20,
        score_bonus=10,
        insight="EVs command premium in California (+20%)",
    ),
)

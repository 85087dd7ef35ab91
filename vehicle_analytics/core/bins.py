"""
Binned scoring scales.

A scale is an ordered list of bands evaluated first-match-wins. Band edges are
plain data so tests can target exact boundaries (e.g. a percent difference of
exactly -20).
"""

from dataclasses import dataclass
from typing import Tuple


@dataclass(frozen=True)
class ScoreBand:
    """One band of a scale: values reaching `bound` earn `score`."""
    bound: float
    score: int
    label: str = ""


@dataclass(frozen=True)
class UpperBoundScale:
    """Scale whose bands match `value <= bound`, scanned in ascending order."""
    bands: Tuple[ScoreBand, ...]
    fallback: ScoreBand

    def __post_init__(self):
        """Validate bands are ordered so first match is the tightest."""
        bounds = [band.bound for band in self.bands]
        if bounds != sorted(bounds):
            raise ValueError("UpperBoundScale bands must be in ascending bound order")

    def band_for(self, value: float) -> ScoreBand:
        for band in self.bands:
            if value <= band.bound:
                return band
        return self.fallback

    def score(self, value: float) -> int:
        return self.band_for(value).score


@dataclass(frozen=True)
class LowerBoundScale:
    """Scale whose bands match `value >= bound`, scanned in descending order."""
    bands: Tuple[ScoreBand, ...]
    fallback: ScoreBand

    def __post_init__(self):
        bounds = [band.bound for band in self.bands]
        if bounds != sorted(bounds, reverse=True):
            raise ValueError("LowerBoundScale bands must be in descending bound order")

    def band_for(self, value: float) -> ScoreBand:
        for band in self.bands:
            if value >= band.bound:
                return band
        return self.fallback

    def score(self, value: float) -> int:
        return self.band_for(value).score


def percent_difference(actual: float, reference: float) -> float:
    """Signed percent difference of actual relative to reference."""
    return (actual - reference) / reference * 100.0

"""
Engine configuration loading.

Reads the tunable constants of the analytics components from a YAML file.
Every section is optional; a missing section or key keeps its default.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Set

import yaml

from vehicle_analytics.core.deal import DealScorerConfig, DealWeights
from vehicle_analytics.core.maintenance import ForecastConfig
from vehicle_analytics.core.sell_advisor import SellAdvisorConfig


@dataclass(frozen=True)
class EngineConfig:
    """Complete engine configuration."""
    deal: DealScorerConfig = field(default_factory=DealScorerConfig)
    sell_advisor: SellAdvisorConfig = field(default_factory=SellAdvisorConfig)
    maintenance: ForecastConfig = field(default_factory=ForecastConfig)


DEFAULT_ENGINE_CONFIG = EngineConfig()

_DEAL_KEYS = {'price_depreciation_rate', 'average_miles_per_year', 'weights'}
_WEIGHT_KEYS = {'price', 'mileage', 'condition', 'market'}
_SELL_KEYS = {'horizon_months', 'sweet_spot_threshold'}
_MAINTENANCE_KEYS = {'annual_miles', 'assumed_miles_per_month', 'horizon_years'}

# Keys that count months, years or miles and must be whole numbers
_INTEGER_KEYS = {
    'average_miles_per_year', 'horizon_months', 'annual_miles',
    'assumed_miles_per_month', 'horizon_years',
}


def load_engine_config(path: str) -> EngineConfig:
    """Load and validate engine configuration from a YAML file.

    Unknown keys are rejected at every level so that a typo never silently
    falls back to a default.

    Args:
        path: Path to YAML configuration file

    Returns:
        Validated EngineConfig object

    Raises:
        FileNotFoundError: If config file doesn't exist
        yaml.YAMLError: If YAML is invalid
        ValueError: If configuration is invalid
    """
    config_path = Path(path)
    if not config_path.exists():
        raise FileNotFoundError(f"Engine config file not found: {path}")

    with open(config_path, 'r', encoding='utf-8') as f:
        try:
            raw_config = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise yaml.YAMLError(f"Invalid YAML in config file {path}: {e}")

    if raw_config is None:
        return DEFAULT_ENGINE_CONFIG
    if not isinstance(raw_config, dict):
        raise ValueError("Configuration must be a mapping")

    allowed_top_keys = {'deal', 'sell_advisor', 'maintenance'}
    unknown_keys = set(raw_config.keys()) - allowed_top_keys
    if unknown_keys:
        raise ValueError(f"Unknown configuration keys: {unknown_keys}")

    return EngineConfig(
        deal=_parse_deal(raw_config.get('deal') or {}),
        sell_advisor=_parse_section(
            raw_config.get('sell_advisor') or {}, 'sell_advisor', _SELL_KEYS, SellAdvisorConfig
        ),
        maintenance=_parse_section(
            raw_config.get('maintenance') or {}, 'maintenance', _MAINTENANCE_KEYS, ForecastConfig
        ),
    )


def _check_section(data: Any, path: str, allowed_keys: Set[str]) -> Dict[str, Any]:
    """Validate that a section is a mapping with known keys only."""
    if not isinstance(data, dict):
        raise ValueError(f"'{path}' must be a dictionary")
    unknown_keys = set(data.keys()) - allowed_keys
    if unknown_keys:
        raise ValueError(f"Unknown keys in {path}: {unknown_keys}")
    return data


def _number(value: Any, path: str):
    # bool is an int subclass but never a meaningful constant here
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"'{path}' must be a number")
    if path.rsplit('.', 1)[-1] in _INTEGER_KEYS and not isinstance(value, int):
        raise ValueError(f"'{path}' must be a whole number")
    return value


def _parse_section(data: Any, path: str, allowed_keys: Set[str], config_cls):
    """Build a flat config dataclass from a section of numbers."""
    section = _check_section(data, path, allowed_keys)
    values = {key: _number(value, f"{path}.{key}") for key, value in section.items()}
    return config_cls(**values)


def _parse_deal(data: Any) -> DealScorerConfig:
    section = _check_section(data, 'deal', _DEAL_KEYS)
    values = {
        key: _number(value, f"deal.{key}")
        for key, value in section.items()
        if key != 'weights'
    }
    if 'weights' in section:
        values['weights'] = _parse_section(section['weights'], 'deal.weights', _WEIGHT_KEYS, DealWeights)
    return DealScorerConfig(**values)

"""
Vehicle snapshot loading.

Builds the immutable input records for one vehicle from a YAML file, so the
command line can run analyses without a database. The file layout is:

    vehicle:                # required
      make: Toyota
      model: Camry
      model_year: 2020
      current_mileage: 45000
      purchase_price: 25000
      purchase_date: 2021-03-15
      current_value: 19000
      accidents:
        - {date: 2022-06-01, severity: minor}
    costs:
      - {date: 2023-01-10, category: maintenance, amount: 120}
    valuations:
      - {date: 2023-01-01, estimated_value: 21000}
    loan:
      principal: 20000
      annual_rate_percent: 5.5
      term_months: 60
      start_date: 2021-03-15
      extra_payments:
        - {date: 2022-01-15, amount: 1000}
    monthly_running_costs: 350

Dates may be YAML dates or ISO strings.
"""

from dataclasses import dataclass
from datetime import date
from pathlib import Path
from typing import Any, Dict, List, Optional, Set, Tuple

import yaml

from vehicle_analytics.core.models import (
    AccidentRecord,
    AccidentSeverity,
    CostEntry,
    ExtraPayment,
    LoanTerms,
    ValuationSnapshot,
    VehicleFacts,
)


@dataclass(frozen=True)
class VehicleSnapshot:
    """Everything recorded about one vehicle at analysis time."""
    vehicle: VehicleFacts
    cost_entries: Tuple[CostEntry, ...] = ()
    valuations: Tuple[ValuationSnapshot, ...] = ()
    loan: Optional[LoanTerms] = None
    monthly_running_costs: float = 0.0


_TOP_KEYS = {'vehicle', 'costs', 'valuations', 'loan', 'monthly_running_costs'}
_VEHICLE_REQUIRED = {
    'make', 'model', 'model_year', 'current_mileage',
    'purchase_price', 'purchase_date', 'current_value',
}
_VEHICLE_KEYS = _VEHICLE_REQUIRED | {'trim_msrp', 'location', 'insurance_premium', 'accidents'}
_ACCIDENT_KEYS = {'date', 'severity', 'damage_type', 'repair_cost', 'notes'}
_COST_KEYS = {'date', 'category', 'amount', 'merchant', 'notes'}
_VALUATION_KEYS = {'date', 'estimated_value', 'mileage_at_time', 'source'}
_LOAN_REQUIRED = {'principal', 'annual_rate_percent', 'term_months', 'start_date'}
_LOAN_KEYS = _LOAN_REQUIRED | {'down_payment', 'extra_payments'}
_EXTRA_KEYS = {'date', 'amount', 'notes'}


def load_vehicle_snapshot(path: str) -> VehicleSnapshot:
    """Load a vehicle snapshot from a YAML file.

    Args:
        path: Path to YAML snapshot file

    Returns:
        VehicleSnapshot with validated records

    Raises:
        FileNotFoundError: If the file doesn't exist
        yaml.YAMLError: If YAML is invalid
        ValueError: If the snapshot is malformed or a record fails validation
    """
    snapshot_path = Path(path)
    if not snapshot_path.exists():
        raise FileNotFoundError(f"Snapshot file not found: {path}")

    with open(snapshot_path, 'r', encoding='utf-8') as f:
        try:
            raw = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise yaml.YAMLError(f"Invalid YAML in snapshot file {path}: {e}")

    if not raw:
        raise ValueError("Snapshot file is empty")
    return parse_vehicle_snapshot(raw)


def parse_vehicle_snapshot(raw: Any) -> VehicleSnapshot:
    """Build a VehicleSnapshot from already-parsed YAML data."""
    data = _mapping(raw, 'snapshot', _TOP_KEYS)
    if 'vehicle' not in data:
        raise ValueError("Missing required 'vehicle' section")

    running_costs = _number(data.get('monthly_running_costs', 0.0), 'monthly_running_costs')

    loan_data = data.get('loan')
    return VehicleSnapshot(
        vehicle=_parse_vehicle(data['vehicle']),
        cost_entries=tuple(
            _parse_cost(item, f"costs[{i}]") for i, item in enumerate(_sequence(data, 'costs'))
        ),
        valuations=tuple(
            _parse_valuation(item, f"valuations[{i}]")
            for i, item in enumerate(_sequence(data, 'valuations'))
        ),
        loan=_parse_loan(loan_data) if loan_data is not None else None,
        monthly_running_costs=float(running_costs),
    )


def _mapping(data: Any, path: str, allowed_keys: Set[str], required: Set[str] = frozenset()) -> Dict[str, Any]:
    if not isinstance(data, dict):
        raise ValueError(f"'{path}' must be a dictionary")
    unknown_keys = set(data.keys()) - allowed_keys
    if unknown_keys:
        raise ValueError(f"Unknown keys in {path}: {unknown_keys}")
    missing = required - set(data.keys())
    if missing:
        raise ValueError(f"Missing required keys in {path}: {sorted(missing)}")
    return data


def _sequence(data: Dict[str, Any], key: str) -> List[Any]:
    items = data.get(key) or []
    if not isinstance(items, list):
        raise ValueError(f"'{key}' must be a list")
    return items


def _number(value: Any, path: str):
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"'{path}' must be a number")
    return value


def _optional_number(item: Dict[str, Any], key: str, path: str) -> Optional[float]:
    value = item.get(key)
    return None if value is None else float(_number(value, f"{path}.{key}"))


def _optional_text(item: Dict[str, Any], key: str) -> Optional[str]:
    value = item.get(key)
    return None if value is None else str(value)


def _whole_number(value: Any, path: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"'{path}' must be a whole number")
    return value


def _optional_mileage(item: Dict[str, Any], path: str) -> Optional[int]:
    value = item.get('mileage_at_time')
    return None if value is None else _whole_number(value, f"{path}.mileage_at_time")


def _date(value: Any, path: str) -> date:
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return date.fromisoformat(value)
        except ValueError:
            pass
    raise ValueError(f"'{path}' must be an ISO date (YYYY-MM-DD)")


def _parse_accident(data: Any, path: str) -> AccidentRecord:
    item = _mapping(data, path, _ACCIDENT_KEYS, {'date'})
    severity = item.get('severity')
    if severity is not None:
        try:
            severity = AccidentSeverity(str(severity).lower())
        except ValueError:
            valid = [s.value for s in AccidentSeverity]
            raise ValueError(f"'{path}.severity' must be one of: {valid}")
    return AccidentRecord(
        date=_date(item['date'], f"{path}.date"),
        severity=severity,
        damage_type=_optional_text(item, 'damage_type') or '',
        repair_cost=_optional_number(item, 'repair_cost', path),
        notes=_optional_text(item, 'notes'),
    )


def _parse_vehicle(data: Any) -> VehicleFacts:
    item = _mapping(data, 'vehicle', _VEHICLE_KEYS, _VEHICLE_REQUIRED)
    return VehicleFacts(
        make=str(item['make']),
        model=str(item['model']),
        model_year=_whole_number(item['model_year'], 'vehicle.model_year'),
        current_mileage=_whole_number(item['current_mileage'], 'vehicle.current_mileage'),
        purchase_price=float(_number(item['purchase_price'], 'vehicle.purchase_price')),
        purchase_date=_date(item['purchase_date'], 'vehicle.purchase_date'),
        current_value=float(_number(item['current_value'], 'vehicle.current_value')),
        trim_msrp=_optional_number(item, 'trim_msrp', 'vehicle'),
        location=_optional_text(item, 'location'),
        insurance_premium=_optional_number(item, 'insurance_premium', 'vehicle'),
        accident_history=tuple(
            _parse_accident(accident, f"vehicle.accidents[{i}]")
            for i, accident in enumerate(_sequence(item, 'accidents'))
        ),
    )


def _parse_cost(data: Any, path: str) -> CostEntry:
    item = _mapping(data, path, _COST_KEYS, {'date', 'category', 'amount'})
    return CostEntry(
        date=_date(item['date'], f"{path}.date"),
        category=str(item['category']),
        amount=float(_number(item['amount'], f"{path}.amount")),
        merchant=_optional_text(item, 'merchant'),
        notes=_optional_text(item, 'notes'),
    )


def _parse_valuation(data: Any, path: str) -> ValuationSnapshot:
    item = _mapping(data, path, _VALUATION_KEYS, {'date', 'estimated_value'})
    return ValuationSnapshot(
        date=_date(item['date'], f"{path}.date"),
        estimated_value=float(_number(item['estimated_value'], f"{path}.estimated_value")),
        mileage_at_time=_optional_mileage(item, path),
        source=_optional_text(item, 'source'),
    )


def _parse_loan(data: Any) -> LoanTerms:
    item = _mapping(data, 'loan', _LOAN_KEYS, _LOAN_REQUIRED)
    extras = []
    for i, extra in enumerate(_sequence(item, 'extra_payments')):
        path = f"loan.extra_payments[{i}]"
        extra_item = _mapping(extra, path, _EXTRA_KEYS, {'date', 'amount'})
        extras.append(ExtraPayment(
            date=_date(extra_item['date'], f"{path}.date"),
            amount=float(_number(extra_item['amount'], f"{path}.amount")),
            notes=_optional_text(extra_item, 'notes'),
        ))
    return LoanTerms(
        principal=float(_number(item['principal'], 'loan.principal')),
        annual_rate_percent=float(_number(item['annual_rate_percent'], 'loan.annual_rate_percent')),
        term_months=_whole_number(item['term_months'], 'loan.term_months'),
        start_date=_date(item['start_date'], 'loan.start_date'),
        down_payment=float(_number(item.get('down_payment', 0.0), 'loan.down_payment')),
        extra_payments=tuple(extras),
    )

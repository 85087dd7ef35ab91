"""
Error taxonomy for the analytics engine.

Invalid inputs are rejected before any computation starts. Missing or partial
history is never an error: every component has a neutral fallback instead.
"""


class VehicleAnalyticsError(Exception):
    """Base exception for the analytics engine."""


class InvalidInput(VehicleAnalyticsError, ValueError):
    """Input snapshot is out of range or internally inconsistent."""


class InvalidLoanTerms(InvalidInput):
    """Loan terms cannot produce an amortization schedule."""

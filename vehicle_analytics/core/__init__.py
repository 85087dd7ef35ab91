"""
Core modules for the vehicle analytics engine.

This package contains the pure analytics components: value projection,
loan amortization, deal scoring, quality scoring, sell timing advice and
maintenance forecasting, plus the input records and lookup tables they share.
"""

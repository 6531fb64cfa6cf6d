"""Yield aggregation.

Turns a validated, evenly spaced observation series into a single annualized
base yield. Everything here is pure: no I/O, no mutation of inputs.
"""

from lst_yield.aggregate.base_yield import compute_yield, resample, validate_series
from lst_yield.aggregate.report import build_report

__all__ = ["build_report", "compute_yield", "resample", "validate_series"]

"""Exception types raised by the yield pipeline.

Observation series that break the input contract raise a subclass of
`SeriesContractError`. These are caller bugs, not transient faults, and are
never retried.
"""

from __future__ import annotations


class SeriesContractError(ValueError):
    """Base class for malformed observation series."""


class InsufficientDataError(SeriesContractError):
    """Too few observations (before or after resampling) to compute a yield."""


class UnsortedSeriesError(SeriesContractError):
    """Block numbers (or timestamps) are not strictly increasing."""


class GranularityError(SeriesContractError):
    """Consecutive observations are not exactly one granularity step apart."""


class RpcError(RuntimeError):
    """The JSON-RPC endpoint answered with an error object or an empty result."""


class HeaderChainError(RuntimeError):
    """Fetched block headers do not link by parent hash."""

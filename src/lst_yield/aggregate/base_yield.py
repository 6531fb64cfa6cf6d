"""Base yield computation.

The series must already be provenance-checked (headers linked by hash) and
sampled once per `granularity` blocks. This module only re-checks ordering
and spacing, and fails loudly on any violation.

Steps:
- Resample every `stride`-th observation counting back from the newest
- Annualize the backing growth of each resampled interval
- Average the intervals (simple arithmetic mean)
"""
from __future__ import annotations

import logging
from typing import Sequence

from lst_yield.constants import BACKING_DECIMALS, BLOCK_GRANULARITY, SECONDS_PER_YEAR
from lst_yield.errors import GranularityError, InsufficientDataError, UnsortedSeriesError
from lst_yield.models import Observation, YieldResult
from lst_yield.units import to_real

log = logging.getLogger(__name__)


def validate_series(
    series: Sequence[Observation],
    granularity: int = BLOCK_GRANULARITY,
) -> None:
    """Check that `series` is non-empty, sorted and evenly spaced in blocks.

    Chain pauses would show up as irregular spacing; they are rejected, not
    tolerated.

    Raises:
        InsufficientDataError: if `series` is empty.
        UnsortedSeriesError: if a block number does not exceed its predecessor.
        GranularityError: if two neighbours are not exactly `granularity` apart.
    """
    if len(series) == 0:
        raise InsufficientDataError("input data not long enough")

    for prior, current in zip(series, series[1:]):
        if current.block_number <= prior.block_number:
            raise UnsortedSeriesError(
                f"list not sorted: block {current.block_number} follows {prior.block_number}"
            )
        delta = current.block_number - prior.block_number
        if delta != granularity:
            raise GranularityError(
                f"provided data not at correct granularity: "
                f"block delta {delta} != {granularity} at block {current.block_number}"
            )


def resample(series: Sequence[Observation], stride: int) -> list[Observation]:
    """Keep every `stride`-th observation counted back from the newest one.

    The newest observation is always kept and the result is in chronological
    order.

    Raises:
        ValueError: if `stride` is not a positive integer.
    """
    if isinstance(stride, bool) or not isinstance(stride, int) or stride < 1:
        raise ValueError(f"stride must be a positive integer, got {stride!r}")

    kept = [obs for index, obs in enumerate(reversed(series)) if index % stride == 0]
    kept.reverse()
    return kept


def annualized_growth(prior: Observation, current: Observation, decimals: int = BACKING_DECIMALS) -> float:
    """Return the backing growth between two observations scaled to one year.

    Raises:
        UnsortedSeriesError: if `current` is not later than `prior`.
        ValueError: if the prior backing value is zero.
    """
    time_delta = current.timestamp - prior.timestamp
    if time_delta <= 0:
        raise UnsortedSeriesError(
            f"list not sorted: timestamp {current.timestamp} does not follow {prior.timestamp}"
        )
    annualizer = SECONDS_PER_YEAR / time_delta

    prior_real = to_real(prior.backing_value, decimals)
    if prior_real == 0.0:
        raise ValueError(f"backing value is zero at block {prior.block_number}")
    current_real = to_real(current.backing_value, decimals)
    return (current_real / prior_real - 1.0) * annualizer


def mean_growth(rates: Sequence[float]) -> float:
    """Aggregate per-interval annualized rates into one yield.

    Plain arithmetic mean; compounding is ignored.

    Raises:
        InsufficientDataError: if `rates` is empty.
    """
    if not rates:
        raise InsufficientDataError("resampled data insufficient: no intervals to average")
    # TODO: replace with an EMA once there is enough history to weight recent days
    return sum(rates) / len(rates)


def compute_yield(
    series: Sequence[Observation],
    stride: int,
    *,
    granularity: int = BLOCK_GRANULARITY,
    decimals: int = BACKING_DECIMALS,
) -> YieldResult:
    """Compute the annualized base yield of an observation series.

    Args:
        series: Observations ordered by ascending block number, one per
            `granularity` blocks. Not modified.
        stride: Resampling factor; 1 uses every observation.
        granularity: Exact block distance required between neighbours.
        decimals: Fixed-point decimals of `backing_value`.

    Returns:
        `YieldResult` holding the mean annualized growth as a ratio.

    Raises:
        InsufficientDataError: for an empty series, or when fewer than two
            observations survive resampling.
        UnsortedSeriesError: for non-increasing block numbers or timestamps.
        GranularityError: for irregular block spacing.
        ValueError: for a non-positive stride.
    """
    validate_series(series, granularity)

    resampled = resample(series, stride)
    if not resampled:
        raise InsufficientDataError("resampled data insufficient")
    if len(resampled) < 2:
        raise InsufficientDataError(
            f"resampled data insufficient: {len(series)} observations at stride {stride} "
            "leave a single point"
        )

    rates = [annualized_growth(prior, current, decimals) for prior, current in zip(resampled, resampled[1:])]
    base_yield = mean_growth(rates)

    log.debug(
        "Base yield %.10f from %d intervals (observations=%d stride=%d)",
        base_yield,
        len(rates),
        len(series),
        stride,
    )
    return YieldResult(base_yield=base_yield)

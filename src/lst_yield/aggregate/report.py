"""Attach chain context to a computed yield."""

from __future__ import annotations

from lst_yield.models import BlockHeader, YieldReport, YieldResult


def build_report(result: YieldResult, head: BlockHeader, stride: int, observations: int) -> YieldReport:
    """Return a `YieldReport` committing `result` to the `head` block.

    Args:
        result: Output of `compute_yield`.
        head: Header of the newest block the series was read up to.
        stride: Resampling stride the result was computed with.
        observations: Number of raw observations in the series.
    """
    return YieldReport(
        block_number=head.number,
        block_hash=head.hash,
        base_yield=result.base_yield,
        stride=stride,
        observations=observations,
    )

"""Pydantic models for observations, block headers and yield output.

`Observation` is the unit of input to the yield computation; `YieldResult`
is its output. `BlockHeader` and `YieldReport` carry the chain context the
result was computed against.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from lst_yield.units import UINT256_MAX

UINT64_MAX = 2**64 - 1

HASH_PATTERN = r"^0x[0-9a-fA-F]{64}$"


class Observation(BaseModel):
    """One on-chain sample of a backing value.

    Attributes:
        timestamp: Block timestamp in seconds since the epoch.
        block_number: Block height the value was read at.
        backing_value: Fixed-point backing value (18 decimals for cbETH).
    """
    model_config = ConfigDict(extra="forbid", frozen=True)
    timestamp: int = Field(..., ge=0, le=UINT64_MAX)
    block_number: int = Field(..., ge=0, le=UINT64_MAX)
    backing_value: int = Field(..., ge=0, le=UINT256_MAX)


class YieldResult(BaseModel):
    """Annualized base yield as a ratio (0.05 means 5%)."""
    model_config = ConfigDict(extra="forbid", frozen=True)
    base_yield: float


class BlockHeader(BaseModel):
    """Subset of an Ethereum block header needed for linkage and timing."""
    model_config = ConfigDict(extra="forbid", frozen=True)
    number: int = Field(..., ge=0)
    hash: str = Field(..., pattern=HASH_PATTERN)
    parent_hash: str = Field(..., pattern=HASH_PATTERN)
    timestamp: int = Field(..., ge=0)

    @classmethod
    def from_rpc(cls, block: dict[str, Any]) -> "BlockHeader":
        """Build a header from an `eth_getBlockByNumber` result object.

        Args:
            block: JSON-RPC block object with hex-encoded quantities.
        """
        return cls(
            number=int(block["number"], 16),
            hash=block["hash"],
            parent_hash=block["parentHash"],
            timestamp=int(block["timestamp"], 16),
        )


class YieldReport(BaseModel):
    """Base yield paired with the head block it was computed against.

    Attributes:
        block_number: Head block number (the commitment).
        block_hash: Head block hash (the commitment).
        base_yield: Annualized yield ratio.
        stride: Resampling stride used.
        observations: Number of raw observations consumed.
    """
    model_config = ConfigDict(extra="forbid", frozen=True)
    block_number: int = Field(..., ge=0)
    block_hash: str = Field(..., pattern=HASH_PATTERN)
    base_yield: float
    stride: int = Field(..., ge=1)
    observations: int = Field(..., ge=0)

    def __str__(self) -> str:
        return (
            f"LstDexStats: baseYield={self.base_yield * 100.0:.2f}% "
            f"(blockNumber={self.block_number}, blockHash={self.block_hash})"
        )

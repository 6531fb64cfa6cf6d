"""lst_yield package.

Computes an annualized base yield for a liquid staking token from its on-chain
backing value (the cbETH exchange rate), sampled once per day of blocks.

Architecture:
- Ingest: JSON-RPC provider with a file cache, header linkage check, CSV I/O
- Aggregate: pure base-yield computation over a validated observation series
- Pydantic models describe observations, headers and the final report
"""

__all__ = ["__version__"]
__version__ = "0.1.0"

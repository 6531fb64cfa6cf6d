"""Build an observation series from chain data.

The exchange rate is read at one block per `granularity` step, starting
`blocks_to_query` blocks behind the head. Timestamps come from the verified
headers of the same range.
"""

from __future__ import annotations

import logging
from typing import Sequence

from lst_yield.constants import BLOCK_GRANULARITY, BLOCKS_TO_QUERY, CBETH_ADDRESS, EXCHANGE_RATE_SELECTOR
from lst_yield.errors import RpcError
from lst_yield.ingest.headers import fetch_headers, verify_header_chain
from lst_yield.ingest.provider import Provider
from lst_yield.models import BlockHeader, Observation

log = logging.getLogger(__name__)


def decode_uint256(data: str) -> int:
    """Decode a single ABI-encoded uint256 return value.

    Raises:
        RpcError: if `data` is not a 32-byte hex word.
    """
    hex_body = data[2:] if data.startswith("0x") else data
    if len(hex_body) != 64:
        raise RpcError(f"expected one 32-byte word, got {len(hex_body) // 2} bytes")
    return int(hex_body, 16)


def read_exchange_rate(provider: Provider, block: int, token: str = CBETH_ADDRESS) -> int:
    """Return the token's `exchangeRate()` at `block` as a fixed-point integer."""
    return decode_uint256(provider.call(token, EXCHANGE_RATE_SELECTOR, block))


def sample_blocks(head: int, blocks_to_query: int = BLOCKS_TO_QUERY, granularity: int = BLOCK_GRANULARITY) -> list[int]:
    """Return the sampled block numbers from `head - blocks_to_query` up to `head`.

    Raises:
        ValueError: if the head is shallower than the query window.
    """
    if head < blocks_to_query:
        raise ValueError(f"head block {head} is shallower than the {blocks_to_query}-block window")
    start = head - blocks_to_query
    return list(range(start, head + 1, granularity))


def observations_from_headers(
    provider: Provider,
    headers: Sequence[BlockHeader],
    blocks: Sequence[int],
) -> list[Observation]:
    """Read the exchange rate at each of `blocks`, timestamped by `headers`."""
    by_number = {h.number: h for h in headers}
    out: list[Observation] = []
    for block in blocks:
        header = by_number[block]
        out.append(
            Observation(
                timestamp=header.timestamp,
                block_number=block,
                backing_value=read_exchange_rate(provider, block),
            )
        )
    return out


def collect_observations(
    provider: Provider,
    head: int,
    blocks_to_query: int = BLOCKS_TO_QUERY,
    granularity: int = BLOCK_GRANULARITY,
) -> tuple[list[Observation], BlockHeader]:
    """Fetch, verify and sample the chain behind `head`.

    Args:
        provider: Chain access (usually a `CachedProvider`).
        head: Newest block to include.
        blocks_to_query: Depth of the window behind `head`.
        granularity: Blocks between samples.

    Returns:
        Tuple of (observations oldest first, head block header).

    Raises:
        HeaderChainError: if the fetched headers do not link up.
    """
    blocks = sample_blocks(head, blocks_to_query, granularity)
    headers = fetch_headers(provider, blocks[0], head)
    verify_header_chain(headers)

    observations = observations_from_headers(provider, headers, blocks)
    log.info("Collected %d observations (%d..%d)", len(observations), blocks[0], blocks[-1])
    return observations, headers[-1]

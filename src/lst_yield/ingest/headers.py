"""Block header retrieval and hash-linkage verification.

`verify_header_chain` is the provenance check for a sampled series: if every
header names its predecessor's hash as parent, the sampled blocks belong to
one chain ending at the head block.
"""

from __future__ import annotations

import logging
from typing import Sequence

from lst_yield.errors import HeaderChainError
from lst_yield.ingest.provider import Provider
from lst_yield.models import BlockHeader

log = logging.getLogger(__name__)


def fetch_headers(provider: Provider, start: int, end: int) -> list[BlockHeader]:
    """Fetch headers for blocks `start` through `end` inclusive.

    Raises:
        ValueError: if `end` is before `start`.
    """
    if end < start:
        raise ValueError(f"end block {end} is before start block {start}")

    log.info("Fetching %d headers (%d..%d)", end - start + 1, start, end)
    return [provider.get_block_header(n) for n in range(start, end + 1)]


def verify_header_chain(headers: Sequence[BlockHeader]) -> None:
    """Check that `headers` are consecutive and linked by parent hash.

    Raises:
        HeaderChainError: on an empty list, a height gap, or a parent hash that
            does not match the previous header's hash.
    """
    if not headers:
        raise HeaderChainError("no headers to verify")

    for prior, current in zip(headers, headers[1:]):
        if current.number != prior.number + 1:
            raise HeaderChainError(
                f"header {current.number} does not follow {prior.number}"
            )
        if current.parent_hash.lower() != prior.hash.lower():
            raise HeaderChainError(
                f"block {current.number} parent {current.parent_hash} "
                f"does not match hash of block {prior.number} ({prior.hash})"
            )

    log.info("Verified header chain %d..%d", headers[0].number, headers[-1].number)

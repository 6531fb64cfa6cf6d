"""Ethereum JSON-RPC access with optional on-disk caching.

`RpcProvider` talks to a node over HTTP; `CachedProvider` wraps any provider
and stores immutable responses (headers, historical calls) as JSON files so
repeated runs against the same block range do not hit the node again.
"""

from __future__ import annotations

import itertools
import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Protocol

import requests
from pydantic import ValidationError
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from lst_yield.errors import RpcError
from lst_yield.models import BlockHeader

log = logging.getLogger(__name__)

RETRY_STATUSES = (429, 500, 502, 503, 504)


class Provider(Protocol):
    """Read-only chain access used by the ingest steps."""

    def block_number(self) -> int: ...

    def get_block_header(self, number: int) -> BlockHeader: ...

    def call(self, to: str, data: str, block: int) -> str: ...


class RpcProvider:
    """Minimal JSON-RPC client for an Ethereum node.

    Args:
        rpc_url: HTTP(S) endpoint of the node.
        retries: Retries for connection errors and 429/5xx answers.
        backoff_ms: Base backoff between retries, in milliseconds.
        timeout: Per-request timeout in seconds.
    """

    def __init__(self, rpc_url: str, retries: int = 3, backoff_ms: int = 500, timeout: float = 30.0) -> None:
        self.rpc_url = rpc_url
        self.timeout = timeout
        self._ids = itertools.count(1)

        retry = Retry(
            total=retries,
            backoff_factor=backoff_ms / 1000,
            status_forcelist=RETRY_STATUSES,
            allowed_methods=None,  # JSON-RPC reads are POSTs
        )
        self.session = requests.Session()
        self.session.mount("http://", HTTPAdapter(max_retries=retry))
        self.session.mount("https://", HTTPAdapter(max_retries=retry))

    def request(self, method: str, params: list[Any]) -> Any:
        """Send one JSON-RPC request and return its `result`.

        Raises:
            requests.HTTPError: if the endpoint answers with a non-2xx status.
            RpcError: if the response carries a JSON-RPC error object.
        """
        payload = {"jsonrpc": "2.0", "id": next(self._ids), "method": method, "params": params}
        log.debug("RPC %s %s", method, params)
        r = self.session.post(self.rpc_url, json=payload, timeout=self.timeout)
        r.raise_for_status()
        body = r.json()
        if body.get("error"):
            err = body["error"]
            raise RpcError(f"{method} failed: {err.get('message', err)} (code={err.get('code')})")
        return body.get("result")

    def block_number(self) -> int:
        """Return the latest block height."""
        return int(self.request("eth_blockNumber", []), 16)

    def get_block_header(self, number: int) -> BlockHeader:
        """Return the header of block `number`.

        Raises:
            RpcError: if the node does not know the block.
        """
        block = self.request("eth_getBlockByNumber", [hex(number), False])
        if block is None:
            raise RpcError(f"block at height {number} not found")
        return BlockHeader.from_rpc(block)

    def call(self, to: str, data: str, block: int) -> str:
        """Execute a read-only contract call at `block` and return the hex output."""
        result = self.request("eth_call", [{"to": to, "data": data}, hex(block)])
        if not isinstance(result, str):
            raise RpcError(f"eth_call to {to} at block {block} returned {result!r}")
        return result


class CachedProvider:
    """Provider wrapper that caches headers and calls under `cache_dir`.

    Only data pinned to a block number is cached; `block_number()` always goes
    to the wrapped provider.
    """

    def __init__(self, cache_dir: Path, provider: Provider) -> None:
        cache_dir.mkdir(parents=True, exist_ok=True)
        self.cache_dir = cache_dir
        self.provider = provider

    def _read(self, path: Path) -> Any | None:
        if not path.exists():
            return None
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except ValueError as e:
            log.warning("Discarding corrupt cache entry %s: %s", path, e)
            path.unlink(missing_ok=True)
            return None
        log.debug("Cache hit: %s", path)
        return data

    def _write(self, path: Path, data: Any) -> None:
        # write-then-rename so an interrupted run never leaves a truncated entry
        fd, tmp_name = tempfile.mkstemp(dir=self.cache_dir, prefix=f".{path.name}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f)
            os.replace(tmp_name, path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise
        log.debug("Cached: %s", path)

    def block_number(self) -> int:
        return self.provider.block_number()

    def get_block_header(self, number: int) -> BlockHeader:
        path = self.cache_dir / f"header_{number}.json"
        cached = self._read(path)
        if cached is not None:
            try:
                return BlockHeader.model_validate(cached)
            except ValidationError as e:
                log.warning("Discarding invalid cached header %s: %s", path, e)
                path.unlink(missing_ok=True)

        header = self.provider.get_block_header(number)
        self._write(path, header.model_dump())
        return header

    def call(self, to: str, data: str, block: int) -> str:
        path = self.cache_dir / f"call_{to.lower()}_{data.lower()}_{block}.json"
        cached = self._read(path)
        if cached is not None:
            return cached

        result = self.provider.call(to, data, block)
        self._write(path, result)
        return result

from __future__ import annotations

from pathlib import Path
from typing import Any

import pytest
import requests

from lst_yield.constants import CBETH_ADDRESS, EXCHANGE_RATE_SELECTOR
from lst_yield.errors import HeaderChainError, RpcError
from lst_yield.ingest.headers import fetch_headers, verify_header_chain
from lst_yield.ingest.observations import collect_observations, decode_uint256, read_exchange_rate, sample_blocks
from lst_yield.ingest.provider import CachedProvider, RpcProvider
from lst_yield.models import BlockHeader


def _header(n: int, parent: int | None = None) -> BlockHeader:
    parent = n - 1 if parent is None else parent
    return BlockHeader(number=n, hash="0x" + f"{n:064x}", parent_hash="0x" + f"{parent:064x}", timestamp=n * 12)


def test_verify_header_chain_accepts_linked_headers() -> None:
    verify_header_chain([_header(n) for n in range(5, 10)])


def test_verify_header_chain_rejects_bad_parent() -> None:
    headers = [_header(5), _header(6), _header(7, parent=5)]
    with pytest.raises(HeaderChainError, match="parent"):
        verify_header_chain(headers)


def test_verify_header_chain_rejects_gap() -> None:
    with pytest.raises(HeaderChainError):
        verify_header_chain([_header(5), _header(7, parent=5)])


def test_verify_header_chain_rejects_empty() -> None:
    with pytest.raises(HeaderChainError):
        verify_header_chain([])


def test_fetch_headers_is_inclusive(fake_provider) -> None:
    provider = fake_provider(latest=100)
    headers = fetch_headers(provider, 10, 13)
    assert [h.number for h in headers] == [10, 11, 12, 13]
    with pytest.raises(ValueError):
        fetch_headers(provider, 13, 10)


def test_decode_uint256() -> None:
    assert decode_uint256("0x" + f"{10**18:064x}") == 10**18
    with pytest.raises(RpcError):
        decode_uint256("0x")


def test_read_exchange_rate_calls_cbeth(fake_provider) -> None:
    provider = fake_provider(latest=100, rates={50: 1_070_000_000_000_000_000})
    assert read_exchange_rate(provider, 50) == 1_070_000_000_000_000_000
    assert provider.eth_calls == [(CBETH_ADDRESS, EXCHANGE_RATE_SELECTOR, 50)]


def test_sample_blocks() -> None:
    assert sample_blocks(20, blocks_to_query=8, granularity=4) == [12, 16, 20]
    with pytest.raises(ValueError):
        sample_blocks(5, blocks_to_query=8, granularity=4)


def test_collect_observations(fake_provider) -> None:
    rates = {12: 100 * 10**18, 16: 101 * 10**18, 20: 102 * 10**18}
    provider = fake_provider(latest=20, rates=rates)

    observations, head = collect_observations(provider, 20, blocks_to_query=8, granularity=4)

    assert [o.block_number for o in observations] == [12, 16, 20]
    assert [o.backing_value for o in observations] == [rates[12], rates[16], rates[20]]
    assert observations[0].timestamp == provider.genesis_ts + 12 * 12
    assert head.number == 20
    assert provider.header_calls == list(range(12, 21))


def test_collect_observations_detects_broken_chain(fake_provider) -> None:
    class Forked(fake_provider):  # type: ignore[misc, valid-type]
        def get_block_header(self, number: int) -> BlockHeader:
            header = super().get_block_header(number)
            if number == 15:
                return header.model_copy(update={"parent_hash": "0x" + "ee" * 32})
            return header

    with pytest.raises(HeaderChainError):
        collect_observations(Forked(latest=20, rates={}), 20, blocks_to_query=8, granularity=4)


def test_cached_provider_reuses_responses(tmp_path: Path, fake_provider) -> None:
    inner = fake_provider(latest=30, rates={25: 5 * 10**17})
    cached = CachedProvider(tmp_path / "cache", inner)

    first = cached.get_block_header(25)
    again = CachedProvider(tmp_path / "cache", inner).get_block_header(25)
    assert first == again
    assert inner.header_calls == [25]

    assert cached.call(CBETH_ADDRESS, EXCHANGE_RATE_SELECTOR, 25) == cached.call(CBETH_ADDRESS, EXCHANGE_RATE_SELECTOR, 25)
    assert len(inner.eth_calls) == 1

    assert cached.block_number() == 30


class _Resp:
    def __init__(self, body: dict[str, Any], status: int = 200) -> None:
        self.body = body
        self.status_code = status

    def raise_for_status(self) -> None:
        if self.status_code >= 400:
            raise requests.HTTPError(f"status {self.status_code}")

    def json(self) -> dict[str, Any]:
        return self.body


def test_rpc_provider_parses_results(monkeypatch: pytest.MonkeyPatch) -> None:
    provider = RpcProvider("http://node.invalid")
    sent: list[dict[str, Any]] = []

    def fake_post(url: str, json: dict[str, Any], timeout: float) -> _Resp:
        sent.append(json)
        if json["method"] == "eth_blockNumber":
            return _Resp({"jsonrpc": "2.0", "id": json["id"], "result": "0x1312d00"})
        return _Resp({
            "jsonrpc": "2.0",
            "id": json["id"],
            "result": {"number": "0x1312d00", "hash": "0x" + "11" * 32, "parentHash": "0x" + "22" * 32, "timestamp": "0x10"},
        })

    monkeypatch.setattr(provider.session, "post", fake_post)

    assert provider.block_number() == 20_000_000
    header = provider.get_block_header(20_000_000)
    assert header.timestamp == 16
    assert sent[1]["params"] == ["0x1312d00", False]
    assert sent[0]["id"] != sent[1]["id"]


def test_rpc_provider_raises_on_rpc_error(monkeypatch: pytest.MonkeyPatch) -> None:
    provider = RpcProvider("http://node.invalid")
    monkeypatch.setattr(
        provider.session,
        "post",
        lambda url, json, timeout: _Resp({"jsonrpc": "2.0", "id": 1, "error": {"code": -32000, "message": "header not found"}}),
    )
    with pytest.raises(RpcError, match="header not found"):
        provider.call(CBETH_ADDRESS, EXCHANGE_RATE_SELECTOR, 1)


def test_rpc_provider_missing_block(monkeypatch: pytest.MonkeyPatch) -> None:
    provider = RpcProvider("http://node.invalid")
    monkeypatch.setattr(provider.session, "post", lambda url, json, timeout: _Resp({"jsonrpc": "2.0", "id": 1, "result": None}))
    with pytest.raises(RpcError, match="not found"):
        provider.get_block_header(5)


def test_cached_provider_recovers_from_truncated_entry(tmp_path: Path, fake_provider) -> None:
    cache_dir = tmp_path / "cache"
    cache_dir.mkdir()
    (cache_dir / "header_25.json").write_text('{"number": 25, "ha', encoding="utf-8")
    inner = fake_provider(latest=30)

    header = CachedProvider(cache_dir, inner).get_block_header(25)

    assert header.number == 25
    assert inner.header_calls == [25]
    assert BlockHeader.model_validate_json((cache_dir / "header_25.json").read_text(encoding="utf-8")) == header


def test_cached_provider_refetches_invalid_header(tmp_path: Path, fake_provider) -> None:
    cache_dir = tmp_path / "cache"
    cache_dir.mkdir()
    (cache_dir / "header_25.json").write_text('{"number": 25}', encoding="utf-8")
    inner = fake_provider(latest=30)

    assert CachedProvider(cache_dir, inner).get_block_header(25).number == 25
    assert inner.header_calls == [25]


def test_cached_provider_leaves_no_temp_files(tmp_path: Path, fake_provider) -> None:
    cached = CachedProvider(tmp_path / "cache", fake_provider(latest=30, rates={25: 1}))
    cached.get_block_header(25)
    cached.call(CBETH_ADDRESS, EXCHANGE_RATE_SELECTOR, 25)
    assert sorted(p.name for p in (tmp_path / "cache").iterdir()) == [
        f"call_{CBETH_ADDRESS.lower()}_{EXCHANGE_RATE_SELECTOR}_25.json",
        "header_25.json",
    ]

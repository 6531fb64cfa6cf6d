from __future__ import annotations

from typing import Callable

import pytest

from lst_yield.constants import BLOCK_GRANULARITY, DAY_IN_SECONDS
from lst_yield.models import BlockHeader, Observation
from lst_yield.units import to_fixed_point

START_TS = 1716129570


def block_hash(n: int) -> str:
    return "0x" + f"{n:064x}"


class FakeProvider:
    """In-memory chain: 12s blocks and an exchange rate per block."""

    def __init__(self, latest: int, rates: dict[int, int] | None = None, genesis_ts: int = 1_700_000_000) -> None:
        self.latest = latest
        self.rates = rates or {}
        self.genesis_ts = genesis_ts
        self.header_calls: list[int] = []
        self.eth_calls: list[tuple[str, str, int]] = []

    def block_number(self) -> int:
        return self.latest

    def get_block_header(self, number: int) -> BlockHeader:
        self.header_calls.append(number)
        return BlockHeader(
            number=number,
            hash=block_hash(number),
            parent_hash=block_hash(number - 1),
            timestamp=self.genesis_ts + number * 12,
        )

    def call(self, to: str, data: str, block: int) -> str:
        self.eth_calls.append((to, data, block))
        return "0x" + f"{self.rates[block]:064x}"


@pytest.fixture
def make_series() -> Callable[..., list[Observation]]:
    """Daily observations for the given real-valued backing ratios."""

    def _make(values: list[float], start_ts: int = START_TS, start_block: int = 0) -> list[Observation]:
        return [
            Observation(
                timestamp=start_ts + i * DAY_IN_SECONDS,
                block_number=start_block + i * BLOCK_GRANULARITY,
                backing_value=to_fixed_point(str(v)),
            )
            for i, v in enumerate(values)
        ]

    return _make


@pytest.fixture
def fake_provider() -> type[FakeProvider]:
    return FakeProvider

"""Configuration helpers and Settings container.

This module provides a small `Settings` dataclass and `get_settings` which
reads the RPC endpoint, cache directory and optional head block from the
environment (a `.env` file at the project root is loaded first).
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
import os

from dotenv import load_dotenv

# Explicitly load .env from project root
PROJECT_ROOT = Path(__file__).resolve().parents[2]
load_dotenv(PROJECT_ROOT / ".env")

@dataclass(frozen=True)
class Settings:
    """Container for pipeline configuration read from the environment.

    Attributes:
        rpc_url: Ethereum JSON-RPC endpoint (may be empty for offline use).
        cache_dir: Local directory for cached RPC responses.
        end_block_number: Head block to compute against; latest when None.
        log_level: Logging level name (e.g. "INFO").
    """
    rpc_url: str
    cache_dir: Path
    end_block_number: int | None
    log_level: str

    def require_rpc_url(self) -> str:
        """Return `rpc_url` or raise if it was not configured.

        Raises:
            RuntimeError: if `RPC_URL` is not set.
        """
        if not self.rpc_url:
            raise RuntimeError(
                "RPC_URL is required. Set it in .env or pass --rpc-url "
                "(example: 'https://eth-mainnet.example/v2/<key>')."
            )
        return self.rpc_url


def get_settings() -> Settings:
    """Read environment variables and return a frozen `Settings` object.

    Raises:
        ValueError: if `END_BLOCK_NUMBER` is set but not a non-negative integer.
    """
    rpc_url = os.getenv("RPC_URL", "").strip()
    cache_dir = Path(os.getenv("CACHE_DIR", "data/rpc_cache"))
    log_level = os.getenv("LOG_LEVEL", "INFO").strip().upper() or "INFO"

    raw_end = os.getenv("END_BLOCK_NUMBER", "").strip()
    end_block_number = None
    if raw_end:
        if not raw_end.isdigit():
            raise ValueError(f"END_BLOCK_NUMBER must be a block height, got {raw_end!r}")
        end_block_number = int(raw_end)

    return Settings(
        rpc_url=rpc_url,
        cache_dir=cache_dir,
        end_block_number=end_block_number,
        log_level=log_level,
    )

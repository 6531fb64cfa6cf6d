"""Command-line interface for the base-yield pipeline.

Provides subcommands: `fetch` (read the chain, verify headers, compute) and
`compute` (offline, from a CSV of observations). Each command is implemented
as a `cmd_*` function that accepts an argparse namespace and returns an exit
code.
"""
from __future__ import annotations

import argparse
import json
import logging
import time
from pathlib import Path
from typing import Sequence

import requests

from lst_yield.aggregate import build_report, compute_yield
from lst_yield.config import get_settings
from lst_yield.constants import BLOCK_GRANULARITY
from lst_yield.ingest.csv_io import read_observations_csv, write_observations_csv
from lst_yield.ingest.observations import collect_observations
from lst_yield.ingest.provider import CachedProvider, RpcProvider
from lst_yield.logging_config import configure_logging

log = logging.getLogger(__name__)


# --------------------------------------------------
# Helpers
# --------------------------------------------------
def _log_time_delta(name: str, start: float) -> float:
    """Log the whole seconds elapsed since `start` and return the current time."""
    now = time.monotonic()
    log.info("%s took %d seconds", name, int(now - start))
    return now


# --------------------------------------------------
# FETCH
# --------------------------------------------------
def cmd_fetch(args: argparse.Namespace) -> int:
    """Fetch observations from the chain, verify them and print the yield report.

    Args:
        args: argparse namespace with `rpc_url`, `cache_dir`,
            `end_block_number`, `stride`, `days`, `save_csv`, `json`.
    """
    s = get_settings()
    rpc_url = args.rpc_url or s.require_rpc_url()
    cache_dir = Path(args.cache_dir) if args.cache_dir else s.cache_dir
    end_block = args.end_block_number if args.end_block_number is not None else s.end_block_number

    provider = CachedProvider(cache_dir, RpcProvider(rpc_url))
    head = end_block if end_block is not None else provider.block_number()
    log.info("Computing base yield up to block %d (cache=%s)", head, cache_dir)

    current_time = time.monotonic()
    observations, head_header = collect_observations(
        provider,
        head,
        blocks_to_query=args.days * BLOCK_GRANULARITY,
    )
    current_time = _log_time_delta("collect_observations", current_time)

    if args.save_csv:
        write_observations_csv(observations, Path(args.save_csv))

    result = compute_yield(observations, args.stride)
    report = build_report(result, head_header, args.stride, len(observations))
    _log_time_delta("compute_yield", current_time)

    print(report.model_dump_json() if args.json else report)
    return 0


# --------------------------------------------------
# COMPUTE
# --------------------------------------------------
def cmd_compute(args: argparse.Namespace) -> int:
    """Compute the yield from a CSV of observations and print it.

    Args:
        args: argparse namespace with `csv`, `stride`, `json`.
    """
    observations = read_observations_csv(Path(args.csv))
    result = compute_yield(observations, args.stride)

    if args.json:
        print(json.dumps({
            "base_yield": result.base_yield,
            "stride": args.stride,
            "observations": len(observations),
            "last_block": observations[-1].block_number,
        }))
    else:
        print(
            f"baseYield={result.base_yield * 100.0:.2f}% "
            f"(observations={len(observations)}, stride={args.stride}, "
            f"lastBlock={observations[-1].block_number})"
        )
    return 0


# --------------------------------------------------
# CLI
# --------------------------------------------------
def _positive_int(text: str) -> int:
    value = int(text)
    if value < 1:
        raise argparse.ArgumentTypeError(f"must be >= 1, got {value}")
    return value


def build_parser() -> argparse.ArgumentParser:
    """Build and return the top-level argument parser for the CLI.

    Returns:
        Configured argparse.ArgumentParser instance with `fetch` and
        `compute` subcommands.
    """
    p = argparse.ArgumentParser(prog="lst_yield")
    p.add_argument("--log-file", default=None, help="Also write logs to this file")
    sub = p.add_subparsers(dest="cmd", required=True)

    p_fetch = sub.add_parser("fetch", help="Read the chain and compute the base yield")
    p_fetch.add_argument("-r", "--rpc-url", default=None, help="RPC endpoint (env RPC_URL)")
    p_fetch.add_argument("-c", "--cache-dir", default=None, help="RPC cache dir (env CACHE_DIR)")
    p_fetch.add_argument(
        "-e", "--end-block-number", type=int, default=None,
        help="Head block (env END_BLOCK_NUMBER, default latest)",
    )
    p_fetch.add_argument("--stride", type=_positive_int, default=1)
    p_fetch.add_argument("--days", type=_positive_int, default=3, help="Days of history behind the head")
    p_fetch.add_argument("--save-csv", default=None, help="Write the observations to this CSV")
    p_fetch.add_argument("--json", action="store_true")

    p_compute = sub.add_parser("compute", help="Compute the base yield from a CSV")
    p_compute.add_argument("csv", help="CSV with timestamp,block_number,backing_value")
    p_compute.add_argument("--stride", type=_positive_int, default=1)
    p_compute.add_argument("--json", action="store_true")

    return p


def main(argv: Sequence[str] | None = None) -> int:
    """CLI entry point: parse args, configure logging and dispatch commands."""
    args = build_parser().parse_args(argv)
    log_path = Path(args.log_file) if args.log_file else None
    configure_logging(log_path)

    try:
        configure_logging(log_path, get_settings().log_level)
        if args.cmd == "fetch":
            return cmd_fetch(args)
        if args.cmd == "compute":
            return cmd_compute(args)
    except (ValueError, RuntimeError, requests.RequestException) as e:
        log.error("%s failed: %s", args.cmd, e)
        return 1
    raise SystemExit(2)


if __name__ == "__main__":
    raise SystemExit(main())

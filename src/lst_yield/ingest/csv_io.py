"""CSV import/export of observation series using pandas.

Backing values are 256-bit integers, wider than any numpy dtype, so the
column is always read and written as text.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Sequence

import pandas as pd

from lst_yield.constants import BACKING_DECIMALS
from lst_yield.models import Observation
from lst_yield.units import to_fixed_point

log = logging.getLogger(__name__)

COLUMNS = ["timestamp", "block_number", "backing_value"]


def observations_to_frame(series: Sequence[Observation]) -> pd.DataFrame:
    """Return `series` as a DataFrame with `backing_value` kept as strings."""
    rows = [
        {
            "timestamp": o.timestamp,
            "block_number": o.block_number,
            "backing_value": str(o.backing_value),
        }
        for o in series
    ]
    return pd.DataFrame(rows, columns=COLUMNS)


def _parse_backing(text: str, decimals: int) -> int:
    """Integers are raw fixed-point values; anything with a '.' is a real ratio."""
    text = text.strip()
    if "." in text:
        return to_fixed_point(text, decimals)
    return int(text)


def frame_to_observations(pdf: pd.DataFrame, decimals: int = BACKING_DECIMALS) -> list[Observation]:
    """Validate each row of `pdf` into an `Observation`, keeping row order.

    Raises:
        ValueError: if a required column is missing or a row fails validation.
    """
    missing = [c for c in COLUMNS if c not in pdf.columns]
    if missing:
        raise ValueError(f"missing columns: {', '.join(missing)}")

    out: list[Observation] = []
    for rec in pdf[COLUMNS].to_dict(orient="records"):
        out.append(
            Observation(
                timestamp=int(rec["timestamp"]),
                block_number=int(rec["block_number"]),
                backing_value=_parse_backing(str(rec["backing_value"]), decimals),
            )
        )
    return out


def write_observations_csv(series: Sequence[Observation], path: Path) -> Path:
    """Write `series` to `path` as CSV and return the path."""
    path.parent.mkdir(parents=True, exist_ok=True)
    observations_to_frame(series).to_csv(path, index=False)
    log.info("Saved %d observations to %s", len(series), path)
    return path


def read_observations_csv(path: Path, decimals: int = BACKING_DECIMALS) -> list[Observation]:
    """Read observations from a CSV with `timestamp,block_number,backing_value`."""
    pdf = pd.read_csv(path, dtype={"timestamp": str, "block_number": str, "backing_value": str})
    log.info("Read %d rows from %s", len(pdf), path)
    return frame_to_observations(pdf, decimals)

from __future__ import annotations

from pathlib import Path
from typing import Sequence

import numpy as np
import pandas as pd


def read_table(path: str | Path) -> pd.DataFrame:
    """Read a whitespace-separated numeric table, the format gnuplot itself reads."""
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Data file not found: {path}")
    try:
        frame = pd.read_csv(path, sep=r"\s+", header=None, comment="#", engine="python")
    except pd.errors.EmptyDataError:
        raise ValueError(f"No data rows found in {path}") from None
    if frame.empty:
        raise ValueError(f"No data rows found in {path}")
    return frame


def parse_columns(raw: str) -> list[int]:
    columns = [int(x.strip()) for x in raw.replace(",", ":").split(":") if x.strip()]
    if not columns:
        raise ValueError(f"No columns given in: {raw!r}")
    return columns


def select_columns(frame: pd.DataFrame, columns: Sequence[int]) -> list[np.ndarray]:
    out: list[np.ndarray] = []
    n_cols = int(frame.shape[1])
    for column in columns:
        if column < 1 or column > n_cols:
            raise ValueError(f"Column {column} is out of range; the table has {n_cols} column(s).")
        values = pd.to_numeric(frame.iloc[:, column - 1], errors="raise")
        out.append(values.to_numpy(dtype=float))
    return out

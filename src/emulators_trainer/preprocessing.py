"""Min-max normalisation and train/test splitting of training frames."""

from __future__ import annotations

from typing import Optional, Sequence, Tuple

import numpy as np
import pandas as pd

from .errors import InvalidArgument
from .frames import OBSERVABLE_COLUMN, extract_input_output_df


def get_minmax_in(frame: pd.DataFrame, parameter_names: Sequence[str]) -> np.ndarray:
    """Return ``[min, max]`` per input column as an ``(n_params, 2)`` array."""

    if len(parameter_names) == 0:
        raise InvalidArgument("Parameter list cannot be empty")
    missing = [name for name in parameter_names if name not in frame.columns]
    if missing:
        raise InvalidArgument(f"Columns not found in DataFrame: {missing}")

    in_minmax = np.empty((len(parameter_names), 2), dtype=float)
    for idx, name in enumerate(parameter_names):
        column = frame[name].to_numpy(dtype=float)
        in_minmax[idx, 0] = column.min()
        in_minmax[idx, 1] = column.max()
    return in_minmax


def get_minmax_out(array_out: np.ndarray) -> np.ndarray:
    """Return ``[min, max]`` per output feature of a ``(n_samples, n_features)`` array."""

    values = np.asarray(array_out, dtype=float)
    if values.ndim != 2:
        raise InvalidArgument(f"Output array must be 2-D, got shape {values.shape}")
    n_samples, n_features = values.shape
    if n_features == 0:
        raise InvalidArgument("Array cannot be empty (0 output features)")
    if n_samples == 0:
        raise InvalidArgument("Array cannot be empty (0 samples)")
    return np.column_stack([values.min(axis=0), values.max(axis=0)])


def _span(minmax: np.ndarray, label: str) -> np.ndarray:
    span = minmax[:, 1] - minmax[:, 0]
    if np.any(span == 0.0):
        zero = np.flatnonzero(span == 0.0).tolist()
        raise InvalidArgument(f"Zero-width {label} range at positions {zero}; cannot normalise")
    return span


def maximin_df(
    frame: pd.DataFrame,
    in_minmax: np.ndarray,
    out_minmax: np.ndarray,
    *,
    observable_column: str = OBSERVABLE_COLUMN,
) -> pd.DataFrame:
    """Return a copy of *frame* scaled to ``[0, 1]`` with the given ranges.

    Row ``i`` of *in_minmax* applies to the ``i``-th column of the frame;
    observables are scaled element-wise with *out_minmax*.
    """

    in_minmax = np.asarray(in_minmax, dtype=float)
    out_minmax = np.asarray(out_minmax, dtype=float)
    in_span = _span(in_minmax, "input")
    out_span = _span(out_minmax, "output")

    normalised = frame.copy()
    for idx in range(in_minmax.shape[0]):
        column = normalised.columns[idx]
        normalised[column] = (normalised[column].astype(float) - in_minmax[idx, 0]) / in_span[idx]
    if observable_column in normalised.columns:
        normalised[observable_column] = pd.Series(
            [(np.asarray(obs, dtype=float) - out_minmax[:, 0]) / out_span for obs in normalised[observable_column]],
            index=normalised.index,
            dtype=object,
        )
    return normalised


def splitdf(
    frame: pd.DataFrame,
    fraction: float,
    *,
    rng: Optional[np.random.Generator] = None,
) -> Tuple[pd.DataFrame, pd.DataFrame]:
    """Randomly split *frame*; the first part holds ``round(n * fraction)`` rows."""

    if not 0.0 <= fraction <= 1.0:
        raise InvalidArgument(f"Split percentage must be between 0 and 1, got {fraction}")
    n_rows = len(frame)
    if n_rows == 0:
        raise InvalidArgument("Cannot split empty DataFrame")

    generator = rng if rng is not None else np.random.default_rng()
    split_idx = round(n_rows * fraction)
    mask = np.zeros(n_rows, dtype=bool)
    mask[generator.permutation(n_rows)[:split_idx]] = True
    return frame.loc[mask], frame.loc[~mask]


def traintest_split(
    frame: pd.DataFrame,
    test_fraction: float,
    *,
    rng: Optional[np.random.Generator] = None,
) -> Tuple[pd.DataFrame, pd.DataFrame]:
    """Return ``(train, test)`` with *test_fraction* of the rows held out."""

    test, train = splitdf(frame, test_fraction, rng=rng)
    return train, test


def getdata(
    frame: pd.DataFrame,
    *,
    test_fraction: float = 0.2,
    rng: Optional[np.random.Generator] = None,
) -> Tuple[np.ndarray, np.ndarray, np.ndarray, np.ndarray]:
    """Split *frame* and extract ``(x_train, y_train, x_test, y_test)`` arrays."""

    train, test = traintest_split(frame, test_fraction, rng=rng)
    x_train, y_train = extract_input_output_df(train)
    x_test, y_test = extract_input_output_df(test)
    return x_train, y_train, x_test, y_test


__all__ = [
    "get_minmax_in",
    "get_minmax_out",
    "getdata",
    "maximin_df",
    "splitdf",
    "traintest_split",
]

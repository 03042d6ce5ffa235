"""Load simulation outputs into a tidy training frame.

Each sample directory holds a JSON parameter file and one or more ``.npy``
observables.  A user-supplied ``get_row(parameters, observable)`` decides
which parameters become columns; the observable itself is conventionally
stored in an ``observable`` column holding 1-D arrays.
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Callable, Dict, List, Mapping, MutableSequence, Optional, Tuple

import numpy as np
import pandas as pd

from .errors import InvalidArgument

logger = logging.getLogger(__name__)

OBSERVABLE_COLUMN = "observable"

RowBuilder = Callable[[Mapping[str, object], np.ndarray], Mapping[str, object]]
RowReader = Callable[[Path], Optional[Mapping[str, object]]]


def read_observable_row(
    location: Path | str,
    parameter_file: str,
    observable_file: str,
    get_row: RowBuilder,
    *,
    start: Optional[int] = None,
    stop: Optional[int] = None,
) -> Optional[Dict[str, object]]:
    """Read one sample and return its frame row, or ``None`` when it holds NaNs.

    ``start``/``stop`` select the slice ``observable[start:stop]`` before the
    NaN check, so only the retained window has to be clean.
    """

    location = Path(location)
    with (location / parameter_file).open("r", encoding="utf8") as handle:
        parameters = json.load(handle)
    observable = np.load(location / observable_file)
    if start is not None or stop is not None:
        observable = observable[start:stop]

    if np.isnan(observable).any():
        logger.warning("File with NaN at %s", location)
        return None
    return dict(get_row(parameters, observable))


def add_observable_df(
    rows: MutableSequence[Dict[str, object]],
    location: Path | str,
    parameter_file: str,
    observable_file: str,
    get_row: RowBuilder,
    *,
    start: Optional[int] = None,
    stop: Optional[int] = None,
) -> None:
    """Append the row for *location* to *rows* unless the observable has NaNs.

    *rows* accumulates the records of a frame; pass it to
    :class:`pandas.DataFrame` once every sample has been added.
    """

    row = read_observable_row(location, parameter_file, observable_file, get_row, start=start, stop=stop)
    _append_row(rows, row)


def _append_row(rows: MutableSequence[Dict[str, object]], row: Optional[Mapping[str, object]]) -> None:
    if row is not None:
        rows.append(dict(row))


def load_df_directory(
    directory: Path | str,
    read_row: RowReader,
    *,
    parameter_suffix: str = ".json",
) -> pd.DataFrame:
    """Walk *directory* and build a frame from every sample directory found.

    ``read_row(location)`` is called once for each directory containing at
    least one file ending in *parameter_suffix*; ``None`` results are skipped.
    """

    root = Path(directory)
    if not root.is_dir():
        raise InvalidArgument(f"Directory does not exist: {root}")

    rows: List[Dict[str, object]] = []
    for current, dirnames, filenames in os.walk(root):
        dirnames.sort()
        if any(name.endswith(parameter_suffix) for name in filenames):
            _append_row(rows, read_row(Path(current)))
    return pd.DataFrame(rows)


def extract_input_output_df(
    frame: pd.DataFrame,
    *,
    observable_column: str = OBSERVABLE_COLUMN,
) -> Tuple[np.ndarray, np.ndarray]:
    """Split *frame* into input and output arrays.

    Every column other than *observable_column* is an input feature.  The
    number of output features is taken from the first observable and every
    other observable must match it.

    Returns
    -------
    tuple of numpy.ndarray
        ``(inputs, outputs)`` with shapes ``(n_samples, n_inputs)`` and
        ``(n_samples, n_outputs)``.
    """

    if len(frame) == 0:
        raise InvalidArgument("DataFrame cannot be empty")
    if observable_column not in frame.columns:
        raise InvalidArgument(f"DataFrame must have an '{observable_column}' column")

    input_columns = [column for column in frame.columns if column != observable_column]
    if not input_columns:
        raise InvalidArgument(
            f"DataFrame must have at least one input feature column besides '{observable_column}'"
        )

    observables = [np.asarray(obs, dtype=float).ravel() for obs in frame[observable_column]]
    n_output_features = observables[0].size
    if n_output_features == 0:
        raise InvalidArgument("Observable arrays cannot be empty")
    for row_idx, obs in enumerate(observables):
        if obs.size != n_output_features:
            raise InvalidArgument(
                f"Observable at row {row_idx} has wrong size: expected {n_output_features}, got {obs.size}"
            )

    array_input = frame.loc[:, input_columns].to_numpy(dtype=float)
    array_output = np.vstack(observables)
    return array_input, array_output


__all__ = [
    "OBSERVABLE_COLUMN",
    "add_observable_df",
    "extract_input_output_df",
    "load_df_directory",
    "read_observable_row",
]

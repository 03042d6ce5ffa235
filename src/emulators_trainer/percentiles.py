"""Nearest-rank percentile summaries of residual matrices."""

from __future__ import annotations

import math
from typing import Sequence

import numpy as np

from .config import DEFAULT_PERCENTILES
from .errors import (
    EmptyFeatureSet,
    EmptyPercentileSpec,
    InsufficientSamples,
    InvalidArgument,
    PercentileOutOfRange,
)

MIN_SAMPLES = 3


def nearest_rank_index(n_elements: int, percentile: float) -> int:
    """Return the 0-based position of *percentile* in a sorted sample of *n_elements*.

    The 1-based rank is ``ceil(n * p / 100)`` clamped into ``[1, n]``.
    """

    rank = math.ceil(n_elements * percentile / 100.0)
    return max(1, min(n_elements, rank)) - 1


def sort_residuals(
    residuals: np.ndarray,
    percentiles: Sequence[float] = DEFAULT_PERCENTILES,
) -> np.ndarray:
    """Reduce a ``(n_samples, n_features)`` matrix to per-feature percentiles.

    Every column is sorted independently and the value at the nearest-rank
    index is selected for each requested percentile.  No interpolation takes
    place, so every output cell is an element of the input column.  The
    result has shape ``(len(percentiles), n_features)``.
    """

    values = np.asarray(residuals, dtype=float)
    if values.ndim != 2:
        raise InvalidArgument(f"Residuals must be a 2-D matrix, got shape {values.shape}")
    n_elements, n_output = values.shape

    if n_elements < MIN_SAMPLES:
        raise InsufficientSamples(
            f"Need at least {MIN_SAMPLES} elements for percentile computation, got n_elements={n_elements}"
        )
    if n_output == 0:
        raise EmptyFeatureSet("Residuals matrix has no output features")
    requested = [float(p) for p in percentiles]
    if not requested:
        raise EmptyPercentileSpec("Percentiles array cannot be empty")
    if any(not (0.0 <= p <= 100.0) for p in requested):
        raise PercentileOutOfRange(f"Percentiles must be between 0 and 100, got {requested}")

    sorted_residuals = np.sort(values, axis=0)
    indices = [nearest_rank_index(n_elements, p) for p in requested]
    return sorted_residuals[indices, :]


__all__ = ["MIN_SAMPLES", "nearest_rank_index", "sort_residuals"]

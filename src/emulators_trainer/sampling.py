"""Quasi-random parameter samples for training-set generation."""

from __future__ import annotations

import math
from typing import Dict, Sequence, Union

import numpy as np
from scipy.stats import qmc

from .errors import InvalidArgument

SeedLike = Union[int, np.random.Generator, None]


def _validate_bounds(lower: Sequence[float], upper: Sequence[float]) -> None:
    if len(lower) != len(upper):
        raise InvalidArgument(
            "Lower and upper bounds must have same length. "
            f"Got len(lower)={len(lower)}, len(upper)={len(upper)}"
        )
    if len(lower) == 0:
        raise InvalidArgument("Bounds arrays cannot be empty")
    for idx, (lo, hi) in enumerate(zip(lower, upper)):
        if not math.isfinite(lo) or not math.isfinite(hi):
            raise InvalidArgument(f"Bounds must be finite. Got lower[{idx}]={lo}, upper[{idx}]={hi}")
        if lo >= hi:
            raise InvalidArgument(
                f"Lower bound must be less than upper bound for parameter {idx}. "
                f"Got lower[{idx}]={lo} >= upper[{idx}]={hi}"
            )


def create_training_dataset(
    n: int,
    lower_bounds: Sequence[float],
    upper_bounds: Sequence[float],
    *,
    seed: SeedLike = None,
) -> np.ndarray:
    """Draw *n* Latin hypercube samples inside the given box.

    Parameters
    ----------
    n:
        Number of samples.
    lower_bounds, upper_bounds:
        Per-parameter bounds; every lower bound must be strictly below the
        matching upper bound and both must be finite.
    seed:
        Seed or generator forwarded to :class:`scipy.stats.qmc.LatinHypercube`.

    Returns
    -------
    numpy.ndarray
        Array of shape ``(n, n_parameters)``; one row per sample.
    """

    if n <= 0:
        raise InvalidArgument(f"Number of samples must be positive, got n={n}")
    lower = [float(v) for v in lower_bounds]
    upper = [float(v) for v in upper_bounds]
    _validate_bounds(lower, upper)

    sampler = qmc.LatinHypercube(d=len(lower), seed=seed)
    unit_samples = sampler.random(n=n)
    return qmc.scale(unit_samples, lower, upper)


def create_training_dict(
    training_matrix: np.ndarray,
    index: int,
    parameter_names: Sequence[str],
) -> Dict[str, float]:
    """Map *parameter_names* onto row *index* of *training_matrix*."""

    row = np.asarray(training_matrix)[index]
    return {name: float(row[idx]) for idx, name in enumerate(parameter_names)}


__all__ = ["create_training_dataset", "create_training_dict"]

"""Residual aggregation over a tree of validation samples.

:func:`evaluate_residuals` discovers every sample directory, infers the number
of output features from the first one and then folds the remaining samples
into a dense ``(n_samples, n_features)`` matrix.  Only the first sample is
allowed to abort the run; later failures are logged and skipped so that a few
corrupted simulation outputs do not invalidate a large validation batch.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Sequence

import numpy as np

from .config import DEFAULT_PERCENTILES
from .errors import DimensionInferenceFailed, InvalidArgument
from .locator import locate_sample_directories
from .percentiles import sort_residuals
from .residuals import (
    EmulatorPrediction,
    GroundTruthLoader,
    SigmaLoader,
    compute_single_residuals,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SampleOutcome:
    """Result of processing one sample location."""

    location: Path
    residuals: Optional[np.ndarray] = None
    error: Optional[BaseException] = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.residuals is not None


def _process_location(
    location: Path,
    marker_file: str,
    parameter_names: Sequence[str],
    ground_truth_fn: GroundTruthLoader,
    prediction_fn: EmulatorPrediction,
    sigma_fn: Optional[SigmaLoader],
    n_output_features: int,
) -> SampleOutcome:
    try:
        res = compute_single_residuals(
            location, marker_file, parameter_names, ground_truth_fn, prediction_fn, sigma_fn
        )
    except Exception as exc:  # noqa: BLE001
        return SampleOutcome(location, error=exc)
    if res.size != n_output_features:
        return SampleOutcome(
            location,
            error=InvalidArgument(
                f"Inconsistent output dimensions: file in {location} returned {res.size} features, "
                f"expected {n_output_features}"
            ),
        )
    return SampleOutcome(location, residuals=res)


def evaluate_residuals(
    root_dir: Path | str,
    marker_file: str,
    parameter_names: Sequence[str],
    ground_truth_fn: GroundTruthLoader,
    prediction_fn: EmulatorPrediction,
    sigma_fn: Optional[SigmaLoader] = None,
    *,
    max_workers: Optional[int] = None,
) -> np.ndarray:
    """Compute the residual matrix for every sample below *root_dir*.

    Parameters
    ----------
    root_dir:
        Root of the validation tree.
    marker_file:
        JSON parameter descriptor identifying a sample directory.
    parameter_names:
        Ordered parameter names forwarded to *prediction_fn*.
    ground_truth_fn, prediction_fn, sigma_fn:
        See :func:`~src.emulators_trainer.residuals.compute_single_residuals`.
    max_workers:
        When greater than one, samples after the first are processed on a
        thread pool of that size.

    Returns
    -------
    numpy.ndarray
        Matrix of shape ``(n_successful, n_output_features)`` in discovery
        order.

    Raises
    ------
    InvalidArgument
        Empty inputs, a missing root or a tree without any sample.
    DimensionInferenceFailed
        The first sample could not be processed.
    """

    if not parameter_names:
        raise InvalidArgument("Parameter array cannot be empty")
    if not marker_file:
        raise InvalidArgument("Marker file name cannot be empty")
    if max_workers is not None and max_workers < 1:
        raise InvalidArgument(f"max_workers must be positive, got {max_workers}")

    locations = locate_sample_directories(root_dir, marker_file)
    n_locations = len(locations)
    logger.info("Auto-detected %d directories with '%s'", n_locations, marker_file)

    first_location = locations[0]
    try:
        first_residuals = compute_single_residuals(
            first_location, marker_file, parameter_names, ground_truth_fn, prediction_fn, sigma_fn
        )
    except Exception as exc:  # noqa: BLE001
        raise DimensionInferenceFailed(
            f"Failed to process first file to infer output dimensions: {exc}"
        ) from exc

    n_output_features = int(first_residuals.size)
    logger.info("Auto-detected %d output features from first file", n_output_features)

    slots: List[Optional[np.ndarray]] = [None] * n_locations
    slots[0] = first_residuals

    def run(index: int) -> SampleOutcome:
        return _process_location(
            locations[index],
            marker_file,
            parameter_names,
            ground_truth_fn,
            prediction_fn,
            sigma_fn,
            n_output_features,
        )

    remaining = range(1, n_locations)
    if max_workers is not None and max_workers > 1 and n_locations > 2:
        with ThreadPoolExecutor(max_workers=max_workers) as pool:
            outcomes = list(pool.map(run, remaining))
    else:
        outcomes = [run(index) for index in remaining]

    for index, outcome in zip(remaining, outcomes):
        if outcome.ok:
            slots[index] = outcome.residuals
        else:
            logger.warning("Failed to process file in %s: %s", outcome.location, outcome.error)

    rows = [row for row in slots if row is not None]
    if len(rows) < n_locations:
        logger.warning(
            "Processed %d of %d directories with '%s'; resizing output",
            len(rows),
            n_locations,
            marker_file,
        )
    return np.vstack(rows)


def evaluate_sorted_residuals(
    root_dir: Path | str,
    marker_file: str,
    parameter_names: Sequence[str],
    ground_truth_fn: GroundTruthLoader,
    prediction_fn: EmulatorPrediction,
    sigma_fn: Optional[SigmaLoader] = None,
    *,
    percentiles: Sequence[float] = DEFAULT_PERCENTILES,
    max_workers: Optional[int] = None,
) -> np.ndarray:
    """Shortcut for ``sort_residuals(evaluate_residuals(...), percentiles)``."""

    residuals = evaluate_residuals(
        root_dir,
        marker_file,
        parameter_names,
        ground_truth_fn,
        prediction_fn,
        sigma_fn,
        max_workers=max_workers,
    )
    return sort_residuals(residuals, percentiles=percentiles)


__all__ = ["SampleOutcome", "evaluate_residuals", "evaluate_sorted_residuals"]

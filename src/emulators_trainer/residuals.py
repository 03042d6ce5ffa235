"""Per-sample residuals between ground truth and emulator predictions.

A sample location is a directory holding a flat JSON parameter descriptor
(the *marker file*) together with whatever observable files the caller's
loaders understand.  Two error measures are supported:

* sigma mode, ``|truth - prediction| / sigma``, used when an uncertainty
  loader is supplied;
* relative mode, ``100 * |1 - prediction / truth|``, the percentage error.

Loaders and the emulator are injected by the caller.  Plain callables work,
as does any object implementing the small protocols below.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Dict, Optional, Protocol, Sequence

import numpy as np

from .errors import (
    DivisionByZero,
    InvalidArgument,
    MissingParameter,
    SampleProcessingError,
)


class GroundTruthLoader(Protocol):
    def __call__(self, location: str) -> Sequence[float]: ...


class EmulatorPrediction(Protocol):
    def __call__(self, inputs: np.ndarray) -> Sequence[float]: ...


class SigmaLoader(Protocol):
    def __call__(self, location: str) -> Sequence[float]: ...


def read_parameter_record(path: Path) -> Dict[str, object]:
    """Load the flat JSON descriptor stored at *path*."""

    with path.open("r", encoding="utf8") as handle:
        payload = json.load(handle)
    if not isinstance(payload, dict):
        raise InvalidArgument(f"Parameter file {path} must contain a JSON object")
    return payload


def build_input_vector(record: Dict[str, object], parameter_names: Sequence[str], path: Path) -> np.ndarray:
    """Order the descriptor values exactly as *parameter_names* lists them."""

    for name in parameter_names:
        if name not in record:
            raise MissingParameter(name, path)
    values = []
    for name in parameter_names:
        try:
            values.append(float(record[name]))
        except (TypeError, ValueError) as exc:
            raise InvalidArgument(f"Parameter '{name}' in {path} is not numeric: {record[name]!r}") from exc
    return np.asarray(values, dtype=float)


def _as_vector(values: Sequence[float]) -> np.ndarray:
    return np.asarray(values, dtype=float).ravel()


def sigma_residuals(truth: np.ndarray, prediction: np.ndarray, sigma: np.ndarray) -> np.ndarray:
    if np.any(sigma == 0.0):
        raise DivisionByZero("Found zero values in sigma, cannot divide by zero")
    return np.abs(truth - prediction) / sigma


def relative_residuals(truth: np.ndarray, prediction: np.ndarray) -> np.ndarray:
    if np.any(truth == 0.0):
        raise DivisionByZero("Found zero values in ground truth, cannot compute relative error")
    return 100.0 * np.abs(1.0 - prediction / truth)


def compute_single_residuals(
    location: Path | str,
    marker_file: str,
    parameter_names: Sequence[str],
    ground_truth_fn: GroundTruthLoader,
    prediction_fn: EmulatorPrediction,
    sigma_fn: Optional[SigmaLoader] = None,
) -> np.ndarray:
    """Return the residual vector for the sample stored in *location*.

    Parameters
    ----------
    location:
        Sample directory containing *marker_file*.
    marker_file:
        Name of the JSON parameter descriptor.
    parameter_names:
        Parameters read from the descriptor, in the order the emulator
        expects them.
    ground_truth_fn, prediction_fn, sigma_fn:
        Caller-supplied loaders and emulator.  ``ground_truth_fn`` and
        ``sigma_fn`` receive the location as a string; ``prediction_fn``
        receives the ordered input vector.

    Raises
    ------
    InvalidArgument
        Empty arguments, a missing descriptor, or a missing parameter
        (:class:`MissingParameter`).
    DivisionByZero
        A zero sigma (sigma mode) or zero ground truth (relative mode).
    SampleProcessingError
        Any other failure, with the location attached.
    """

    if not str(location) or not marker_file:
        raise InvalidArgument("Location and marker file cannot be empty")
    if not parameter_names:
        raise InvalidArgument("Parameter array cannot be empty")

    location_str = str(location)
    param_path = Path(location_str) / marker_file
    if not param_path.is_file():
        raise InvalidArgument(f"Parameter file does not exist: {param_path}")

    try:
        record = read_parameter_record(param_path)
        inputs = build_input_vector(record, parameter_names, param_path)

        truth = _as_vector(ground_truth_fn(location_str))
        prediction = _as_vector(prediction_fn(inputs))
        if sigma_fn is not None:
            sigma = _as_vector(sigma_fn(location_str))
            return sigma_residuals(truth, prediction, sigma)
        return relative_residuals(truth, prediction)
    except (InvalidArgument, DivisionByZero, SampleProcessingError):
        raise
    except Exception as exc:  # noqa: BLE001
        raise SampleProcessingError(location_str, str(exc)) from exc


__all__ = [
    "EmulatorPrediction",
    "GroundTruthLoader",
    "SigmaLoader",
    "build_input_vector",
    "compute_single_residuals",
    "read_parameter_record",
    "relative_residuals",
    "sigma_residuals",
]

"""Domain-specific exceptions for emulator training and validation."""

from __future__ import annotations

from pathlib import Path
from typing import Optional


class EmulatorsTrainerError(RuntimeError):
    """Base class for emulator training and validation errors."""


class InvalidArgument(EmulatorsTrainerError, ValueError):
    """Raised when caller inputs are malformed, missing or out of range."""


class MissingParameter(InvalidArgument):
    """Raised when a requested parameter is absent from a sample descriptor."""

    def __init__(self, parameter: str, path: Optional[Path] = None):
        self.parameter = parameter
        self.path = path
        where = f" in {path}" if path is not None else ""
        super().__init__(f"Parameter '{parameter}' not found{where}")


class InsufficientSamples(InvalidArgument):
    """Raised when a residual matrix has too few rows for percentiles."""


class EmptyFeatureSet(InvalidArgument):
    """Raised when a residual matrix has no output features."""


class EmptyPercentileSpec(InvalidArgument):
    """Raised when no percentiles are requested."""


class PercentileOutOfRange(InvalidArgument):
    """Raised when a requested percentile lies outside [0, 100]."""


class DivisionByZero(EmulatorsTrainerError, ZeroDivisionError):
    """Raised when a residual denominator contains an exact zero."""


class SampleProcessingError(EmulatorsTrainerError):
    """Raised when an unexpected failure occurs while processing one sample."""

    def __init__(self, location: Path | str, message: str):
        self.location = Path(location)
        super().__init__(f"Failed to process residuals for {location}: {message}")


class DimensionInferenceFailed(EmulatorsTrainerError):
    """Raised when the first sample fails, so the output shape is unknown."""


class DatasetExistsError(EmulatorsTrainerError, FileExistsError):
    """Raised when a dataset directory exists and overwriting was not requested."""


class ConfigError(EmulatorsTrainerError):
    """Raised when a validation configuration is invalid."""


__all__ = [
    "EmulatorsTrainerError",
    "InvalidArgument",
    "MissingParameter",
    "InsufficientSamples",
    "EmptyFeatureSet",
    "EmptyPercentileSpec",
    "PercentileOutOfRange",
    "DivisionByZero",
    "SampleProcessingError",
    "DimensionInferenceFailed",
    "DatasetExistsError",
    "ConfigError",
]

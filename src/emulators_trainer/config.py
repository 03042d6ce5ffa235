"""Configuration objects for emulator validation runs."""

from __future__ import annotations

import hashlib
import json
import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Tuple

from .errors import ConfigError

DEFAULT_PERCENTILES: Tuple[float, ...] = (68.0, 95.0, 99.7)

CONFIG_ENV_VAR = "EMULATORS_TRAINER_CONFIG"
MAX_WORKERS_ENV_VAR = "EMULATORS_TRAINER_MAX_WORKERS"


@dataclass(frozen=True)
class ValidationConfig:
    """Settings describing how a sample tree is validated.

    Attributes
    ----------
    marker_file:
        Name of the JSON parameter descriptor that marks a sample directory.
    parameter_names:
        Ordered parameter names forwarded to the emulator.
    observable_file:
        ``.npy`` file holding the ground-truth observable in each sample.
    sigma_file:
        Optional ``.npy`` file with per-feature uncertainties.  When absent the
        percentage relative error is reported instead.
    percentiles:
        Percentiles extracted from the sorted residuals.
    max_workers:
        Thread count used for the per-sample loop; ``None`` runs serially.
    """

    marker_file: str
    parameter_names: Tuple[str, ...]
    observable_file: str
    sigma_file: Optional[str] = None
    percentiles: Tuple[float, ...] = DEFAULT_PERCENTILES
    max_workers: Optional[int] = None

    def as_dict(self) -> Dict[str, object]:
        return {
            "marker_file": self.marker_file,
            "parameter_names": list(self.parameter_names),
            "observable_file": self.observable_file,
            "sigma_file": self.sigma_file,
            "percentiles": list(self.percentiles),
            "max_workers": self.max_workers,
        }

    def identity(self) -> str:
        payload = json.dumps(self.as_dict(), sort_keys=True)
        return hashlib.sha256(payload.encode("utf8")).hexdigest()


_FIELD_NAMES = tuple(field.name for field in fields(ValidationConfig))
_REQUIRED = ("marker_file", "parameter_names", "observable_file")


def _read_config_file(path: Path) -> Dict[str, Any]:
    if not path.is_file():
        raise ConfigError(f"Configuration file {path} does not exist")
    try:
        payload = json.loads(path.read_text(encoding="utf8"))
    except json.JSONDecodeError as exc:
        raise ConfigError(f"Configuration file {path} is not valid JSON: {exc}") from exc
    if not isinstance(payload, dict):
        raise ConfigError(f"Configuration file {path} must contain a JSON object")
    return payload


def _coerce(raw: Mapping[str, Any]) -> ValidationConfig:
    unknown = sorted(set(raw).difference(_FIELD_NAMES))
    if unknown:
        raise ConfigError(f"Unknown configuration keys: {unknown}")
    missing = [key for key in _REQUIRED if not raw.get(key)]
    if missing:
        raise ConfigError(f"Missing required configuration keys: {missing}")

    names = raw["parameter_names"]
    if isinstance(names, str):
        names = [name.strip() for name in names.split(",") if name.strip()]
    requested = raw.get("percentiles")
    if requested is None:
        requested = DEFAULT_PERCENTILES
    try:
        percentiles = tuple(float(p) for p in requested)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"Percentiles must be numeric: {exc}") from exc
    if not percentiles:
        raise ConfigError("Percentiles cannot be empty")

    max_workers = raw.get("max_workers")
    if max_workers is not None:
        try:
            max_workers = int(max_workers)
        except (TypeError, ValueError) as exc:
            raise ConfigError(f"max_workers must be an integer: {exc}") from exc
        if max_workers < 1:
            raise ConfigError(f"max_workers must be positive, got {max_workers}")

    sigma_file = raw.get("sigma_file")
    return ValidationConfig(
        marker_file=str(raw["marker_file"]),
        parameter_names=tuple(str(name) for name in names),
        observable_file=str(raw["observable_file"]),
        sigma_file=str(sigma_file) if sigma_file else None,
        percentiles=percentiles,
        max_workers=max_workers,
    )


def load_validation_config(path: Path | str | None = None, **overrides: Any) -> ValidationConfig:
    """Build a :class:`ValidationConfig` from a JSON file and overrides.

    The file is taken from *path* or, when omitted, from the
    ``EMULATORS_TRAINER_CONFIG`` environment variable.  Keyword overrides that
    are not ``None`` take precedence over file values.  ``max_workers`` falls
    back to ``EMULATORS_TRAINER_MAX_WORKERS`` when neither source sets it.
    """

    raw: Dict[str, Any] = {}
    candidate = path if path is not None else os.environ.get(CONFIG_ENV_VAR)
    if candidate:
        raw.update(_read_config_file(Path(candidate)))
    raw.update({key: value for key, value in overrides.items() if value is not None})
    if raw.get("max_workers") is None:
        env_workers = os.environ.get(MAX_WORKERS_ENV_VAR, "").strip()
        if env_workers:
            raw["max_workers"] = env_workers
    return _coerce(raw)


__all__ = [
    "CONFIG_ENV_VAR",
    "DEFAULT_PERCENTILES",
    "MAX_WORKERS_ENV_VAR",
    "ValidationConfig",
    "load_validation_config",
]

"""Dataset directory bookkeeping and per-sample execution strategies."""

from __future__ import annotations

import functools
import hashlib
import json
import logging
import platform
import shutil
from concurrent.futures import ProcessPoolExecutor, ThreadPoolExecutor
from datetime import datetime
from pathlib import Path
from typing import Callable, Dict, Mapping, Optional, Sequence, Tuple

import numpy as np

from .errors import DatasetExistsError, InvalidArgument
from .sampling import create_training_dict

logger = logging.getLogger(__name__)

METADATA_FILE = ".dataset_metadata.json"
COMPUTE_MODES: Tuple[str, ...] = ("distributed", "threads", "serial")

ScriptFn = Callable[[Dict[str, float], Path], object]


def _backup_path(root: Path) -> Path:
    stamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    candidate = root.with_name(f"{root.name}_backup_{stamp}")
    counter = 1
    while candidate.exists():
        candidate = root.with_name(f"{root.name}_backup_{stamp}_{counter}")
        counter += 1
    return candidate


def prepare_dataset_directory(root_dir: Path | str, *, force: bool = False) -> Path:
    """Create *root_dir* for a fresh dataset and record generation metadata.

    An existing directory is never reused silently: with ``force=True`` it is
    moved to ``<root>_backup_<timestamp>`` first, otherwise
    :class:`DatasetExistsError` is raised.
    """

    root = Path(root_dir)
    if root.is_dir():
        if not force:
            created = datetime.fromtimestamp(root.stat().st_mtime).isoformat(timespec="seconds")
            raise DatasetExistsError(
                f"Dataset directory already exists: {root} (last modified {created}). "
                "Choose a different directory, delete it manually, or pass force=True "
                "to back up the existing data."
            )
        backup = _backup_path(root)
        logger.warning("Directory exists; moving %s to backup %s", root, backup)
        shutil.move(str(root), str(backup))
    root.mkdir(parents=True)

    metadata = {
        "created_at": datetime.now().isoformat(),
        "python_version": platform.python_version(),
        "numpy_version": np.__version__,
    }
    (root / METADATA_FILE).write_text(json.dumps(metadata, indent=2, sort_keys=True), encoding="utf8")
    logger.info("Prepared dataset directory %s", root)
    return root


def validate_compute_inputs(training_matrix: np.ndarray, parameter_names: Sequence[str]) -> Tuple[int, int]:
    """Check a ``(n_samples, n_parameters)`` matrix against *parameter_names*.

    Returns ``(n_parameters, n_samples)``.
    """

    matrix = np.asarray(training_matrix, dtype=float)
    if matrix.ndim != 2:
        raise InvalidArgument(f"Training matrix must be 2-D, got shape {matrix.shape}")
    n_samples, n_params = matrix.shape

    if not parameter_names:
        raise InvalidArgument("Parameter names array cannot be empty")
    if n_params != len(parameter_names):
        raise InvalidArgument(
            f"Number of parameters ({len(parameter_names)}) must match columns in training_matrix ({n_params})"
        )
    if n_samples == 0:
        raise InvalidArgument("Training matrix must have at least one combination (row)")
    if any(not name for name in parameter_names):
        raise InvalidArgument("Parameter names cannot be empty strings")
    if len(set(parameter_names)) != len(parameter_names):
        raise InvalidArgument(f"Parameter names must be unique. Found duplicates in: {list(parameter_names)}")
    if not np.all(np.isfinite(matrix)):
        raise InvalidArgument("Training matrix contains non-finite values (NaN or Inf)")
    return n_params, n_samples


def _run_sample(script_fn: ScriptFn, root: Path, sample: Dict[str, float]) -> None:
    script_fn(sample, root)


def compute_dataset(
    training_matrix: np.ndarray,
    parameter_names: Sequence[str],
    root_dir: Path | str,
    script_fn: ScriptFn,
    mode: str = "serial",
    *,
    force: bool = False,
    max_workers: Optional[int] = None,
) -> Path:
    """Run *script_fn* once per sample row and return the dataset directory.

    Modes
    -----
    ``"distributed"``
        :class:`~concurrent.futures.ProcessPoolExecutor`; *script_fn* must be
        picklable (a module-level function or a :func:`functools.partial` of one).
    ``"threads"``
        :class:`~concurrent.futures.ThreadPoolExecutor` on shared memory.
    ``"serial"``
        Plain loop, handy for debugging.

    Exceptions raised by *script_fn* propagate to the caller.
    """

    _, n_samples = validate_compute_inputs(training_matrix, parameter_names)
    if mode not in COMPUTE_MODES:
        raise InvalidArgument(f"Invalid mode: {mode!r}. Must be one of {', '.join(COMPUTE_MODES)}")

    root = prepare_dataset_directory(root_dir, force=force)
    samples = [create_training_dict(training_matrix, idx, parameter_names) for idx in range(n_samples)]
    task = functools.partial(_run_sample, script_fn, root)

    if mode == "distributed":
        with ProcessPoolExecutor(max_workers=max_workers) as pool:
            list(pool.map(task, samples))
    elif mode == "threads":
        with ThreadPoolExecutor(max_workers=max_workers) as pool:
            list(pool.map(task, samples))
    else:
        for sample in samples:
            task(sample)

    logger.info("Computed %d samples in %s mode under %s", n_samples, mode, root)
    return root


def sample_digest(sample: Mapping[str, float]) -> str:
    payload = json.dumps(dict(sample), sort_keys=True)
    return hashlib.sha1(payload.encode("utf8")).hexdigest()


def write_sample_descriptor(sample: Mapping[str, float], root_dir: Path, *, marker_file: str) -> Path:
    """Write *sample* as the JSON marker file of a new sample directory.

    Repeated rows of a design get ``<digest>_1``, ``<digest>_2``, ... so no
    sample overwrites another.
    """

    root = Path(root_dir)
    digest = sample_digest(sample)
    location = root / digest
    counter = 0
    while True:
        try:
            location.mkdir(parents=True)
            break
        except FileExistsError:
            counter += 1
            location = root / f"{digest}_{counter}"
    (location / marker_file).write_text(json.dumps(dict(sample), indent=2), encoding="utf8")
    return location


__all__ = [
    "COMPUTE_MODES",
    "METADATA_FILE",
    "compute_dataset",
    "prepare_dataset_directory",
    "sample_digest",
    "validate_compute_inputs",
    "write_sample_descriptor",
]

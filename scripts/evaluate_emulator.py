"""Command line interface for validating an emulator over a sample tree.

Every sample directory below ``--root`` is expected to contain the JSON
parameter descriptor (``--marker-file``), the ground-truth observable as a
``.npy`` file (``--observable-file``) and, optionally, per-feature
uncertainties (``--sigma-file``).  The emulator is any importable callable
given as ``module:attribute``; it receives the parameter vector ordered as
``--parameters`` and must return one value per output feature.

Typical usage::

    python -m scripts.evaluate_emulator --root runs/validation \
        --marker-file params.json --parameters omega_m,sigma_8,h \
        --observable-file pk.npy --sigma-file pk_sigma.npy \
        --emulator my_project.emulator:predict --output artifacts/percentiles.csv

Options can also be collected in a JSON file passed with ``--config``;
explicit flags override the file.
"""
from __future__ import annotations

import argparse
import importlib
import logging
import sys
from pathlib import Path
from typing import Callable, Iterable, Optional

import matplotlib

matplotlib.use("Agg")
import matplotlib.pyplot as plt  # noqa: E402
import numpy as np  # noqa: E402
import pandas as pd  # noqa: E402

from src.emulators_trainer.aggregation import evaluate_residuals  # noqa: E402
from src.emulators_trainer.config import ValidationConfig, load_validation_config  # noqa: E402
from src.emulators_trainer.errors import InvalidArgument  # noqa: E402
from src.emulators_trainer.percentiles import sort_residuals  # noqa: E402

LOGGER = logging.getLogger("evaluate_emulator")

_DEFAULT_OUTPUT = Path("artifacts") / "residual_percentiles.csv"


def _configure_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(levelname)s:%(name)s:%(message)s",
    )


def _parse_args(argv: Iterable[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Evaluate emulator residual percentiles over a sample tree")
    parser.add_argument("--root", type=Path, required=True, help="Root directory of the validation samples")
    parser.add_argument("--config", type=Path, default=None, help="JSON file with validation settings")
    parser.add_argument("--marker-file", default=None, help="Parameter descriptor marking a sample directory")
    parser.add_argument(
        "--parameters",
        default=None,
        help="Comma separated parameter names, in the order the emulator expects them",
    )
    parser.add_argument("--observable-file", default=None, help="Ground-truth .npy file in each sample")
    parser.add_argument(
        "--sigma-file",
        default=None,
        help="Optional .npy file with per-feature uncertainties (enables sigma-normalised residuals)",
    )
    parser.add_argument("--emulator", required=True, help="Emulator callable given as module:attribute")
    parser.add_argument(
        "--percentiles",
        type=float,
        nargs="+",
        default=None,
        help="Percentiles to report (default: 68 95 99.7)",
    )
    parser.add_argument("--workers", type=int, default=None, help="Thread count for the per-sample loop")
    parser.add_argument(
        "--output",
        type=Path,
        default=_DEFAULT_OUTPUT,
        help=f"Destination CSV for the percentile table (default: {_DEFAULT_OUTPUT})",
    )
    parser.add_argument("--residuals-output", type=Path, default=None, help="Optional .npy for the raw residuals")
    parser.add_argument("--plot", type=Path, default=None, help="Optional PNG with the percentile bands")
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Emit debug logging (useful when auditing skipped samples)",
    )
    return parser.parse_args(argv)


def resolve_emulator(dotted: str) -> Callable[[np.ndarray], Iterable[float]]:
    """Import ``module:attribute`` and return the callable it names."""

    module_name, sep, attribute = dotted.partition(":")
    if not sep or not module_name or not attribute:
        raise InvalidArgument(f"Invalid emulator '{dotted}'; expected module:attribute")
    target = importlib.import_module(module_name)
    for part in attribute.split("."):
        target = getattr(target, part)
    if not callable(target):
        raise InvalidArgument(f"Emulator '{dotted}' is not callable")
    return target


def npy_loader(file_name: str) -> Callable[[str], np.ndarray]:
    """Return a loader reading *file_name* from a sample directory."""

    def load(location: str) -> np.ndarray:
        return np.load(Path(location) / file_name)

    load.__name__ = f"load_{Path(file_name).stem}"
    return load


def percentile_frame(table: np.ndarray, percentiles: Iterable[float]) -> pd.DataFrame:
    frame = pd.DataFrame(
        table,
        index=pd.Index([float(p) for p in percentiles], name="percentile"),
        columns=[f"feature_{idx}" for idx in range(table.shape[1])],
    )
    return frame


def plot_percentile_bands(frame: pd.DataFrame, output: Path, *, sigma_mode: bool) -> None:
    features = np.arange(frame.shape[1])
    fig, ax = plt.subplots(figsize=(7, 4))
    for percentile, row in frame.iterrows():
        ax.plot(features, row.to_numpy(dtype=float), marker=".", label=f"{percentile:g}%")
    ax.set_xlabel("output feature")
    ax.set_ylabel("|truth - emulator| / sigma" if sigma_mode else "relative error (%)")
    ax.set_title("Emulator residual percentiles")
    ax.legend()
    fig.tight_layout()
    output.parent.mkdir(parents=True, exist_ok=True)
    fig.savefig(output)
    plt.close(fig)


def _load_config(args: argparse.Namespace) -> ValidationConfig:
    return load_validation_config(
        args.config,
        marker_file=args.marker_file,
        parameter_names=args.parameters,
        observable_file=args.observable_file,
        sigma_file=args.sigma_file,
        percentiles=args.percentiles,
        max_workers=args.workers,
    )


def main(argv: Iterable[str] | None = None) -> int:
    args = _parse_args(argv)
    _configure_logging(args.verbose)

    LOGGER.info("Starting emulator evaluation")
    LOGGER.info("Sample root: %s", args.root)
    LOGGER.info("Emulator: %s", args.emulator)

    try:
        config = _load_config(args)
        LOGGER.info("Configuration %s (identity %s)", config.as_dict(), config.identity()[:12])
        emulator = resolve_emulator(args.emulator)
        sigma_fn: Optional[Callable[[str], np.ndarray]] = None
        if config.sigma_file:
            sigma_fn = npy_loader(config.sigma_file)

        residuals = evaluate_residuals(
            args.root,
            config.marker_file,
            config.parameter_names,
            npy_loader(config.observable_file),
            emulator,
            sigma_fn,
            max_workers=config.max_workers,
        )
        table = sort_residuals(residuals, percentiles=config.percentiles)
        frame = percentile_frame(table, config.percentiles)

        args.output.parent.mkdir(parents=True, exist_ok=True)
        frame.to_csv(args.output)
        LOGGER.info("Wrote %d percentiles x %d features to %s", *table.shape, args.output)
        if args.residuals_output is not None:
            args.residuals_output.parent.mkdir(parents=True, exist_ok=True)
            np.save(args.residuals_output, residuals)
            LOGGER.info("Wrote residual matrix %s to %s", residuals.shape, args.residuals_output)
        if args.plot is not None:
            plot_percentile_bands(frame, args.plot, sigma_mode=sigma_fn is not None)
            LOGGER.info("Wrote percentile plot to %s", args.plot)
        return 0
    except Exception as exc:  # pragma: no cover - exercised via CLI
        LOGGER.error("%s", exc)
        LOGGER.debug("Full exception", exc_info=True)
        return 1


if __name__ == "__main__":  # pragma: no cover - CLI entry point
    sys.exit(main())

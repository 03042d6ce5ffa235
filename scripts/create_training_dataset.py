"""Draw a Latin hypercube design and lay out one sample directory per row.

Each sample directory is named after a digest of its parameters and holds
the JSON marker file that downstream simulations (and
``scripts.evaluate_emulator``) use to recognise it.

Typical usage::

    python -m scripts.create_training_dataset --n 200 \
        --parameters omega_m sigma_8 h --lower 0.1 0.6 0.6 --upper 0.5 1.0 0.8 \
        --root runs/training --marker-file params.json --seed 42 --mode threads
"""
from __future__ import annotations

import argparse
import functools
import logging
import sys
from pathlib import Path
from typing import Iterable

import pandas as pd

from src.emulators_trainer.dataset import COMPUTE_MODES, compute_dataset, write_sample_descriptor
from src.emulators_trainer.errors import InvalidArgument
from src.emulators_trainer.sampling import create_training_dataset

LOGGER = logging.getLogger("create_training_dataset")

SAMPLES_CSV = "training_samples.csv"


def _configure_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(levelname)s:%(name)s:%(message)s",
    )


def _parse_args(argv: Iterable[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Create a Latin hypercube training dataset layout")
    parser.add_argument("--n", type=int, required=True, help="Number of samples to draw")
    parser.add_argument("--parameters", nargs="+", required=True, help="Parameter names (one per dimension)")
    parser.add_argument("--lower", type=float, nargs="+", required=True, help="Lower bound per parameter")
    parser.add_argument("--upper", type=float, nargs="+", required=True, help="Upper bound per parameter")
    parser.add_argument("--seed", type=int, default=None, help="Seed for reproducible designs")
    parser.add_argument("--root", type=Path, required=True, help="Dataset directory to create")
    parser.add_argument("--marker-file", default="params.json", help="Name of the per-sample JSON descriptor")
    parser.add_argument(
        "--mode",
        choices=COMPUTE_MODES,
        default="serial",
        help="Execution strategy for the per-sample step",
    )
    parser.add_argument("--workers", type=int, default=None, help="Pool size for the threads/distributed modes")
    parser.add_argument(
        "--force",
        action="store_true",
        help="Move an existing dataset directory to a timestamped backup instead of failing",
    )
    parser.add_argument(
        "--samples-csv",
        type=Path,
        default=None,
        help=f"Where to write the sample table (default: <root>/{SAMPLES_CSV})",
    )
    parser.add_argument("--verbose", action="store_true", help="Emit debug logging")
    return parser.parse_args(argv)


def main(argv: Iterable[str] | None = None) -> int:
    args = _parse_args(argv)
    _configure_logging(args.verbose)

    LOGGER.info("Drawing %d samples over %s", args.n, ", ".join(args.parameters))

    try:
        if len(args.lower) != len(args.parameters):
            raise InvalidArgument(
                f"Expected {len(args.parameters)} bounds, got {len(args.lower)} lower and {len(args.upper)} upper"
            )
        matrix = create_training_dataset(args.n, args.lower, args.upper, seed=args.seed)
        script_fn = functools.partial(write_sample_descriptor, marker_file=args.marker_file)
        root = compute_dataset(
            matrix,
            args.parameters,
            args.root,
            script_fn,
            args.mode,
            force=args.force,
            max_workers=args.workers,
        )

        samples_csv = args.samples_csv if args.samples_csv is not None else root / SAMPLES_CSV
        samples_csv.parent.mkdir(parents=True, exist_ok=True)
        pd.DataFrame(matrix, columns=list(args.parameters)).to_csv(samples_csv, index_label="sample")
        LOGGER.info("Wrote %d samples to %s", matrix.shape[0], samples_csv)
        return 0
    except Exception as exc:  # pragma: no cover - exercised via CLI
        LOGGER.error("%s", exc)
        LOGGER.debug("Full exception", exc_info=True)
        return 1


if __name__ == "__main__":  # pragma: no cover - CLI entry point
    sys.exit(main())

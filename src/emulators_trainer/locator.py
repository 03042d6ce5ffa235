"""Discovery of sample directories inside a validation tree."""

from __future__ import annotations

import os
from pathlib import Path
from typing import List

from .errors import InvalidArgument


def locate_sample_directories(root_dir: Path | str, marker_file: str) -> List[Path]:
    """Return every directory below *root_dir* that directly holds *marker_file*.

    The tree is walked top-down with sorted directory names so the discovery
    order is reproducible.  Only an immediate child named *marker_file* that
    is a regular file qualifies a directory.
    """

    if not marker_file:
        raise InvalidArgument("Marker file name cannot be empty")
    root = Path(root_dir)
    if not root.is_dir():
        raise InvalidArgument(f"Directory does not exist: {root}")

    locations: List[Path] = []
    for current, dirnames, filenames in os.walk(root):
        dirnames.sort()
        if marker_file in filenames and (Path(current) / marker_file).is_file():
            locations.append(Path(current))

    if not locations:
        raise InvalidArgument(f"No directories containing '{marker_file}' found in: {root}")
    return locations


__all__ = ["locate_sample_directories"]

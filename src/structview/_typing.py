"""Defines type aliases for the project."""

from pathlib import Path

import numpy as np
import numpy.typing as npt

PathLike = str | Path
DistanceMatrix = npt.NDArray[np.float64]


__all__ = [
    "DistanceMatrix",
    "PathLike",
]

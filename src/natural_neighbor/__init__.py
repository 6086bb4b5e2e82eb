"""
natural-neighbor: 2D natural neighbor (Sibson) interpolation of scattered data.
"""

from natural_neighbor import regrid  # noqa: F401  registers the ``.nni`` accessor
from natural_neighbor.exceptions import (
    MismatchedLengthsError,
    NaturalNeighborError,
    TooManyNeighborsError,
    TriangulationError,
)
from natural_neighbor.interpolation import Interpolator, Lerpable, Point, SparseWeights, lerp
from natural_neighbor.regrid import NaturalNeighborRegridder
from natural_neighbor.triangulation import Triangulation

__version__ = "0.1.0"

__all__ = [
    "Interpolator",
    "Lerpable",
    "MismatchedLengthsError",
    "NaturalNeighborError",
    "NaturalNeighborRegridder",
    "Point",
    "SparseWeights",
    "TooManyNeighborsError",
    "Triangulation",
    "TriangulationError",
    "__version__",
    "lerp",
]

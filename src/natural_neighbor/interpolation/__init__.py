from natural_neighbor.interpolation.base import Lerpable, Point, lerp
from natural_neighbor.interpolation.core import Interpolator, SparseWeights

__all__ = ["Interpolator", "Lerpable", "Point", "SparseWeights", "lerp"]

"""
Natural neighbor interpolator with optional precomputed weights.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

import numpy as np

from natural_neighbor.constants import DEFAULT_DEGREE_LIMIT, PROBE_EPSILON
from natural_neighbor.exceptions import MismatchedLengthsError
from natural_neighbor.interpolation.accumulators import BlendAccumulator, WeightAccumulator
from natural_neighbor.interpolation.base import apply_weights_sparse, as_point
from natural_neighbor.interpolation.envelope import EnvelopeWalker
from natural_neighbor.interpolation.locator import PointLocator
from natural_neighbor.interpolation.spatial import TriangleIndex
from natural_neighbor.triangulation import Triangulation

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SparseWeights:
    """Natural neighbor weights of many targets, stored as flat triplets.

    Entry ``k`` says that target ``target_indices[k]`` takes ``weights[k]`` of
    site ``source_indices[k]``. Targets outside the hull have no entries.
    """

    source_indices: np.ndarray
    target_indices: np.ndarray
    weights: np.ndarray
    n_targets: int
    n_sites: int

    @property
    def valid(self) -> np.ndarray:
        """Boolean mask of targets inside the hull."""
        mask = np.zeros(self.n_targets, dtype=bool)
        mask[self.target_indices] = True
        return mask

    def apply(self, data: np.ndarray) -> np.ndarray:
        """Interpolate ``data`` of shape (..., n_sites) to shape (..., n_targets)."""
        data = np.asarray(data, dtype=np.float64)
        if data.shape[-1] != self.n_sites:
            raise MismatchedLengthsError(self.n_sites, data.shape[-1])

        original_shape = data.shape
        reshaped_data = np.ascontiguousarray(data.reshape(-1, self.n_sites))

        result = apply_weights_sparse(
            reshaped_data, self.source_indices, self.target_indices, self.weights, self.n_targets
        )
        return result.reshape(*original_shape[:-1], self.n_targets)


class Interpolator:
    """2D natural neighbor (Sibson) interpolation over a fixed set of sites.

    The triangulation, its spatial index and every derived array are built once
    here and never modified, so one instance can serve queries from many threads.

    Example:
        >>> interpolator = Interpolator([(0, 0), (100, 0), (100, 100), (0, 100)])
        >>> round(interpolator.interpolate([1.0, 0.0, 1.0, 0.0], (50, 50)), 12)
        0.5
        >>> [(site, round(weight, 12)) for site, weight in sorted(interpolator.interpolate_weights((50, 50)))]
        [(0, 0.25), (1, 0.25), (2, 0.25), (3, 0.25)]

    Args:
        points: Site coordinates, shape (N, 2), N >= 3 and not all collinear
        degree_limit: Bound on the natural neighbors and internal walk steps of a
            single query; exceeding it raises TooManyNeighborsError
        probe_epsilon: Relative offset used to resolve queries lying exactly on an
            edge shared by two triangles

    Raises:
        TriangulationError: If the sites cannot be triangulated
    """

    def __init__(
        self,
        points,
        degree_limit: int = DEFAULT_DEGREE_LIMIT,
        probe_epsilon: float = PROBE_EPSILON,
    ):
        triangulation = points if isinstance(points, Triangulation) else Triangulation.from_points(points)
        self._setup(triangulation, degree_limit, probe_epsilon)

    @classmethod
    def from_triangulation(
        cls,
        triangulation: Triangulation,
        degree_limit: int = DEFAULT_DEGREE_LIMIT,
        probe_epsilon: float = PROBE_EPSILON,
    ) -> Interpolator:
        """Build an interpolator on a triangulation produced elsewhere."""
        return cls(triangulation, degree_limit=degree_limit, probe_epsilon=probe_epsilon)

    def _setup(self, triangulation: Triangulation, degree_limit: int, probe_epsilon: float) -> None:
        if int(degree_limit) != degree_limit or degree_limit < 1:
            msg = f"degree_limit must be a positive integer, got {degree_limit!r}"
            raise ValueError(msg)
        if not probe_epsilon > 0:
            msg = f"probe_epsilon must be positive, got {probe_epsilon!r}"
            raise ValueError(msg)

        self.triangulation = triangulation
        self.degree_limit = int(degree_limit)
        self.probe_epsilon = float(probe_epsilon)

        self.index = TriangleIndex(triangulation)
        self.locator = PointLocator(triangulation, self.index, self.probe_epsilon)
        self.walker = EnvelopeWalker(triangulation, self.degree_limit)

    @property
    def n_sites(self) -> int:
        return self.triangulation.n_sites

    @property
    def points(self) -> np.ndarray:
        return self.triangulation.points

    def _perform(self, point, accumulator) -> Any:
        x, y = as_point(point)
        location = self.locator.locate(x, y)
        if location is None:
            return None
        if location.on_vertex:
            accumulator(location.site, 1.0)
        else:
            self.walker.accumulate(location.start_halfedge, x, y, accumulator)
        return accumulator.result()

    def interpolate(self, values, point) -> Any:
        """Interpolate ``values`` at ``point``.

        Args:
            values: One value per site. Numbers, numpy arrays or any Lerpable
            point: Query point (x, y)

        Returns:
            The blended value, or None if ``point`` is outside the convex hull of the sites

        Raises:
            MismatchedLengthsError: If ``len(values)`` differs from the number of sites
            TooManyNeighborsError: If the query exceeds the degree limit
        """
        if len(values) != self.n_sites:
            raise MismatchedLengthsError(self.n_sites, len(values))
        return self._perform(point, BlendAccumulator(values))

    def interpolate_weights(self, point) -> list[tuple[int, float]] | None:
        """Natural neighbors of ``point`` and their normalized Sibson weights.

        Returns:
            A list of ``(site_index, weight)`` with weights summing to 1, or None if
            ``point`` is outside the convex hull of the sites

        Raises:
            TooManyNeighborsError: If the query exceeds the degree limit
        """
        return self._perform(point, WeightAccumulator())

    def compute_weights(self, targets) -> SparseWeights:
        """Precompute weights for many targets (build once, apply many).

        Args:
            targets: Target coordinates, shape (M, 2)

        Returns:
            SparseWeights that can be applied to any data over the sites
        """
        targets = np.asarray(targets, dtype=np.float64).reshape(-1, 2)

        source_indices: list[int] = []
        target_indices: list[int] = []
        weights: list[float] = []

        # This loop is Python but it runs only once per set of targets
        for target_idx, (x, y) in enumerate(targets.tolist()):
            found = self.interpolate_weights((x, y))
            if found is None:
                continue
            for site, weight in found:
                source_indices.append(site)
                target_indices.append(target_idx)
                weights.append(weight)

        n_valid = len(set(target_indices))
        logger.debug("Computed weights for %d of %d targets", n_valid, len(targets))

        return SparseWeights(
            source_indices=np.asarray(source_indices, dtype=np.int64),
            target_indices=np.asarray(target_indices, dtype=np.int64),
            weights=np.asarray(weights, dtype=np.float64),
            n_targets=len(targets),
            n_sites=self.n_sites,
        )

    def interpolate_points(self, values, targets) -> np.ndarray:
        """Interpolate numeric ``values`` (..., n_sites) at every target, NaN outside the hull."""
        values = np.asarray(values, dtype=np.float64)
        if values.shape[-1] != self.n_sites:
            raise MismatchedLengthsError(self.n_sites, values.shape[-1])
        return self.compute_weights(targets).apply(values)

    def info(self) -> dict[str, Any]:
        """Get information about the interpolator instance.

        Returns:
            Dictionary containing interpolator metadata and configuration
        """
        return {
            "type": "Interpolator",
            "n_sites": self.n_sites,
            "n_triangles": self.triangulation.n_triangles,
            "degree_limit": self.degree_limit,
            "probe_epsilon": self.probe_epsilon,
        }

    def to_file(self, filepath: str) -> None:
        """Save the triangulation and configuration to a netCDF file.

        Args:
            filepath: Path to save the interpolator
        """
        from natural_neighbor.io import _interpolator_to_netcdf  # noqa: PLC0415

        _interpolator_to_netcdf(self, filepath)

    @classmethod
    def from_file(cls, filepath: str) -> Interpolator:
        """Load an interpolator saved with ``to_file`` without re-triangulating.

        Args:
            filepath: Path to load the interpolator from

        Returns:
            Instance of Interpolator
        """
        from natural_neighbor.io import _interpolator_from_netcdf  # noqa: PLC0415

        triangulation, config = _interpolator_from_netcdf(filepath)
        return cls.from_triangulation(
            triangulation, degree_limit=config["degree_limit"], probe_epsilon=config["probe_epsilon"]
        )

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(n_sites={self.n_sites}, n_triangles={self.triangulation.n_triangles}, "
            f"degree_limit={self.degree_limit})"
        )

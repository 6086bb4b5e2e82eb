"""
Spatial index over the triangles of a triangulation.

Each triangle is wrapped as a bounding circle (centroid and the largest
centroid-to-corner distance). Circles are grouped into radius classes, one
``cKDTree`` per class, so that a few long hull triangles do not inflate the
search radius used for the many small interior ones. Centroids are stored
relative to the origin of the triangulation.
"""

from __future__ import annotations

from collections.abc import Iterator

import numpy as np
from scipy.spatial import cKDTree

from natural_neighbor.triangulation import Triangulation


class TriangleIndex:
    """Coarse filter answering "which triangles may contain this point"."""

    def __init__(self, triangulation: Triangulation, leafsize: int = 16):
        self.origin = triangulation.origin
        vertices = triangulation.local_points()[triangulation.corners()]  # (T, 3, 2)

        self.centroids = vertices.mean(axis=1)
        # Slightly inflated so that corners survive the sqrt round trip.
        self.radii = np.sqrt(((vertices - self.centroids[:, None, :]) ** 2).sum(axis=2)).max(axis=1) * (1.0 + 1e-9)

        smallest = self.radii[self.radii > 0].min() if np.any(self.radii > 0) else 1.0
        classes = np.floor(np.log2(np.maximum(self.radii, smallest) / smallest)).astype(np.int64)

        self._buckets: list[tuple[cKDTree, np.ndarray, float]] = []
        for radius_class in np.unique(classes):
            members = np.flatnonzero(classes == radius_class)
            tree = cKDTree(self.centroids[members], leafsize=leafsize)
            self._buckets.append((tree, members, float(self.radii[members].max())))

    def __len__(self) -> int:
        return len(self.radii)

    def locate_containing(self, point: tuple[float, float]) -> Iterator[int]:
        """Yield indices of triangles whose bounding circle contains ``point``."""
        x = point[0] - self.origin[0]
        y = point[1] - self.origin[1]
        for tree, members, max_radius in self._buckets:
            hits = tree.query_ball_point((x, y), max_radius)
            if not hits:
                continue
            candidates = members[hits]
            offsets = self.centroids[candidates] - (x, y)
            inside = (offsets**2).sum(axis=1) <= self.radii[candidates] ** 2
            yield from candidates[inside].tolist()

"""
Half-edge adjacency model of a planar Delaunay triangulation.

The triangulation itself is produced by an external builder (Qhull through
``scipy.spatial.Delaunay`` by default). This module only normalises its output
into three flat arrays:

- ``points``: site coordinates, the row index is the site id
- ``triangles``: ``3 * T`` site indices, corners of triangle ``t`` at ``3t, 3t+1, 3t+2``
- ``halfedges``: ``3 * T`` edge indices, ``halfedges[e]`` is the opposite half-edge
  of ``e`` or the sentinel ``len(halfedges)`` for an edge on the convex hull

Half-edge ``e`` belongs to triangle ``e // 3`` and starts at site ``triangles[e]``.
All triangles are stored counter-clockwise.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

import numpy as np
from scipy.spatial import Delaunay, QhullError

from natural_neighbor.exceptions import TriangulationError

logger = logging.getLogger(__name__)


def next_halfedge(e: int) -> int:
    """Next half-edge inside the same triangle."""
    return e - 2 if e % 3 == 2 else e + 1


def _signed_area2(points: np.ndarray, corners: np.ndarray) -> np.ndarray:
    """Twice the signed area of each triangle in ``corners`` (T, 3)."""
    a = points[corners[:, 0]]
    b = points[corners[:, 1]]
    c = points[corners[:, 2]]
    return (b[:, 0] - a[:, 0]) * (c[:, 1] - a[:, 1]) - (b[:, 1] - a[:, 1]) * (c[:, 0] - a[:, 0])


def _match_halfedges(corners: np.ndarray, n_sites: int) -> np.ndarray:
    """Pair every directed edge (a, b) with its reverse (b, a)."""
    n_edges = corners.size
    origin = corners.ravel()
    dest = corners[:, [1, 2, 0]].ravel()

    keys = origin * n_sites + dest
    reverse = dest * n_sites + origin

    order = np.argsort(keys, kind="stable")
    sorted_keys = keys[order]
    if np.any(sorted_keys[1:] == sorted_keys[:-1]):
        msg = "Triangulation contains the same directed edge twice"
        raise TriangulationError(msg)

    pos = np.clip(np.searchsorted(sorted_keys, reverse), 0, n_edges - 1)
    found = sorted_keys[pos] == reverse
    return np.where(found, order[pos], n_edges).astype(np.int64)


def _flip_halfedges(halfedges: np.ndarray) -> np.ndarray:
    """Remap half-edges after every triangle (a, b, c) is rewritten as (a, c, b)."""
    n_edges = halfedges.size
    local = np.arange(n_edges) % 3
    perm = np.arange(n_edges) - local + (2 - local)

    opposite = halfedges[perm]
    interior = opposite < n_edges
    flipped = np.full(n_edges, n_edges, dtype=np.int64)
    flipped[interior] = opposite[interior] - opposite[interior] % 3 + (2 - opposite[interior] % 3)
    return flipped


@dataclass(frozen=True)
class Triangulation:
    """Immutable triangulation arrays shared by every query."""

    points: np.ndarray
    triangles: np.ndarray
    halfedges: np.ndarray

    @property
    def n_sites(self) -> int:
        return int(self.points.shape[0])

    @property
    def n_triangles(self) -> int:
        return int(self.triangles.size // 3)

    @property
    def empty(self) -> int:
        """Sentinel stored in ``halfedges`` for edges on the convex hull."""
        return int(self.halfedges.size)

    def corners(self) -> np.ndarray:
        """Site indices of every triangle as a (T, 3) array."""
        return self.triangles.reshape(-1, 3)

    @property
    def origin(self) -> np.ndarray:
        """Lower-left corner of the bounding box of the sites.

        Queries translate coordinates to this origin so that sites clustered far
        from (0, 0) keep their precision.
        """
        return self.points.min(axis=0)

    def local_points(self) -> np.ndarray:
        """Site coordinates relative to ``origin``."""
        return self.points - self.origin

    def circumcircles(self, origin=None) -> tuple[np.ndarray, np.ndarray]:
        """Circumcenters (T, 2) and squared circumradii (T,) of every triangle.

        Each center is computed relative to the first corner of its triangle.
        With ``origin`` given, centers are returned relative to it.

        Zero-area triangles get a NaN center and a squared radius of -1, so that
        no point ever tests inside them.
        """
        points = self.points if origin is None else self.points - np.asarray(origin, dtype=np.float64)
        corners = self.corners()
        a = points[corners[:, 0]]
        b = points[corners[:, 1]] - a
        c = points[corners[:, 2]] - a

        d = 2.0 * (b[:, 0] * c[:, 1] - b[:, 1] * c[:, 0])
        degenerate = d == 0.0
        d = np.where(degenerate, 1.0, d)

        b2 = b[:, 0] ** 2 + b[:, 1] ** 2
        c2 = c[:, 0] ** 2 + c[:, 1] ** 2
        ux = (c[:, 1] * b2 - b[:, 1] * c2) / d
        uy = (b[:, 0] * c2 - c[:, 0] * b2) / d

        centers = a + np.column_stack([ux, uy])
        radii2 = ux**2 + uy**2

        centers[degenerate] = np.nan
        radii2[degenerate] = -1.0
        return centers, radii2

    @classmethod
    def from_points(cls, points) -> Triangulation:
        """Triangulate ``points`` (N, 2) with Qhull and derive the half-edge arrays.

        Args:
            points: Site coordinates, any array-like of shape (N, 2)

        Returns:
            A counter-clockwise triangulation of the sites

        Raises:
            TriangulationError: If fewer than 3 usable sites are given or all sites are collinear
        """
        points = _as_points(points)
        if points.shape[0] < 3:
            msg = f"At least 3 sites are required to triangulate, got {points.shape[0]}"
            raise TriangulationError(msg)

        try:
            delaunay = Delaunay(points)
        except QhullError as e:
            msg = f"Could not triangulate the sites (are they all collinear?): {e}"
            raise TriangulationError(msg) from e

        if len(delaunay.coplanar):
            logger.warning(
                "%d site(s) were not placed in the triangulation (duplicates?) and will never be natural neighbors",
                len(delaunay.coplanar),
            )

        corners = delaunay.simplices.astype(np.int64)
        area2 = _signed_area2(points, corners)
        clockwise = area2 < 0
        corners[clockwise] = corners[clockwise][:, [0, 2, 1]]

        halfedges = _match_halfedges(corners, points.shape[0])
        logger.debug("Triangulated %d sites into %d triangles", points.shape[0], corners.shape[0])
        return cls(points=points, triangles=corners.ravel(), halfedges=halfedges)

    @classmethod
    def from_arrays(cls, points, triangles, halfedges) -> Triangulation:
        """Wrap arrays produced by an external triangulation builder.

        The triangles may be wound either way as long as the winding is consistent;
        clockwise input is flipped to counter-clockwise.

        Args:
            points: Site coordinates (N, 2)
            triangles: Flat site indices, length a multiple of 3
            halfedges: Flat opposite half-edges, same length as ``triangles``; any value
                ``>= len(halfedges)`` marks a hull edge

        Raises:
            TriangulationError: If the arrays are inconsistent
        """
        points = _as_points(points)
        triangles = np.asarray(triangles, dtype=np.int64).ravel()
        halfedges = np.asarray(halfedges, dtype=np.int64).ravel()
        n_edges = triangles.size

        if n_edges == 0 or n_edges % 3 != 0:
            msg = f"Length of triangles must be a positive multiple of 3, got {n_edges}"
            raise TriangulationError(msg)
        if halfedges.size != n_edges:
            msg = f"halfedges has length {halfedges.size}, expected {n_edges}"
            raise TriangulationError(msg)
        if triangles.min() < 0 or triangles.max() >= points.shape[0]:
            msg = "triangles references a site index outside of points"
            raise TriangulationError(msg)
        if halfedges.min() < 0:
            msg = "halfedges must not contain negative indices"
            raise TriangulationError(msg)

        halfedges = np.where(halfedges >= n_edges, n_edges, halfedges)
        interior = np.flatnonzero(halfedges < n_edges)
        if np.any(halfedges[halfedges[interior]] != interior):
            msg = "halfedges is not reciprocal: halfedges[halfedges[e]] != e for some interior edge"
            raise TriangulationError(msg)

        corners = triangles.reshape(-1, 3)
        area2 = _signed_area2(points, corners)
        if np.all(area2 <= 0) and np.any(area2 < 0):
            corners = corners[:, [0, 2, 1]]
            halfedges = _flip_halfedges(halfedges)
        elif np.any(area2 < 0):
            msg = "Triangles are not consistently wound"
            raise TriangulationError(msg)

        return cls(points=points, triangles=np.ascontiguousarray(corners.ravel()), halfedges=halfedges)


def _as_points(points) -> np.ndarray:
    points = np.asarray(points, dtype=np.float64)
    if points.ndim != 2 or points.shape[1] != 2:
        msg = f"Sites must have shape (N, 2), got {points.shape}"
        raise TriangulationError(msg)
    if not np.isfinite(points).all():
        msg = "Site coordinates must be finite"
        raise TriangulationError(msg)
    return np.ascontiguousarray(points)

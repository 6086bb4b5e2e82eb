"""
Point location: find where the insertion envelope of a query starts.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

import numpy as np

from natural_neighbor.constants import PROBE_DIRECTIONS, PROBE_EPSILON
from natural_neighbor.interpolation.spatial import TriangleIndex
from natural_neighbor.interpolation.utils import orientation
from natural_neighbor.triangulation import Triangulation

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Location:
    """Result of locating a query point.

    Exactly one field is set: ``site`` when the query coincides with a site,
    otherwise ``start_halfedge``, a half-edge of a triangle containing the query.
    """

    start_halfedge: int | None = None
    site: int | None = None

    @property
    def on_vertex(self) -> bool:
        return self.site is not None


class PointLocator:
    """Resolve a query point to a starting half-edge.

    Args:
        triangulation: Triangulation to search
        index: Spatial index over its triangles
        probe_epsilon: Offset used to break ties, relative to the extent of the sites.
            Queries closer than ``probe_epsilon`` times the length of a hull edge to
            that edge are on the hull boundary.
    """

    def __init__(self, triangulation: Triangulation, index: TriangleIndex, probe_epsilon: float = PROBE_EPSILON):
        self.index = index
        self.probe_epsilon = probe_epsilon
        self._xs = triangulation.points[:, 0].tolist()
        self._ys = triangulation.points[:, 1].tolist()
        self._ox, self._oy = triangulation.origin.tolist()
        local = triangulation.local_points()
        self._lxs = local[:, 0].tolist()
        self._lys = local[:, 1].tolist()
        self._triangles = triangulation.triangles.tolist()
        self._halfedges = triangulation.halfedges.tolist()
        self._empty = triangulation.empty

        extent = float(np.ptp(triangulation.points, axis=0).max())
        self.probe_distance = probe_epsilon * extent

    def candidates(self, x: float, y: float) -> list[int]:
        """Triangles that contain ``(x, y)``, edges and corners included."""
        return [t for t in self.index.locate_containing((x, y)) if self._contains(t, x - self._ox, y - self._oy)]

    def locate(self, x: float, y: float) -> Location | None:
        """Find the start of the insertion envelope for ``(x, y)``.

        Returns:
            A Location, or None when the point is outside the convex hull, on its
            boundary, or sits on an ambiguity no probe offset can resolve
        """
        hits = list(self.index.locate_containing((x, y)))
        site = self._coincident_site(hits, x, y)
        if site is not None:
            return Location(site=site)

        lx, ly = x - self._ox, y - self._oy
        found = [t for t in hits if self._contains(t, lx, ly)]
        if not found:
            return None
        if any(self._near_hull_edge(t, lx, ly) for t in found):
            return None
        if len(found) == 1:
            return Location(start_halfedge=found[0] * 3)

        # On a shared edge: nudge the point to pick one side. Only location is
        # perturbed; the envelope is still built around the original point.
        d = self.probe_distance
        for dx, dy in PROBE_DIRECTIONS:
            probed = self.candidates(x + dx * d, y + dy * d)
            if len(probed) == 1:
                logger.debug("Resolved ambiguous location of (%r, %r) with offset (%r, %r)", x, y, dx * d, dy * d)
                return Location(start_halfedge=probed[0] * 3)

        logger.debug("Could not resolve location of (%r, %r) among %d triangles", x, y, len(found))
        return None

    def _corners(self, t: int) -> tuple[float, float, float, float, float, float]:
        a, b, c = self._triangles[3 * t : 3 * t + 3]
        return self._lxs[a], self._lys[a], self._lxs[b], self._lys[b], self._lxs[c], self._lys[c]

    def _contains(self, t: int, lx: float, ly: float) -> bool:
        ax, ay, bx, by, cx, cy = self._corners(t)
        if orientation(ax, ay, bx, by, cx, cy) <= 0.0:
            return False
        return (
            orientation(ax, ay, bx, by, lx, ly) >= 0.0
            and orientation(bx, by, cx, cy, lx, ly) >= 0.0
            and orientation(cx, cy, ax, ay, lx, ly) >= 0.0
        )

    def _coincident_site(self, hits: list[int], x: float, y: float) -> int | None:
        for t in hits:
            for site in self._triangles[3 * t : 3 * t + 3]:
                if self._xs[site] == x and self._ys[site] == y:
                    return site
        return None

    def _near_hull_edge(self, t: int, lx: float, ly: float) -> bool:
        ax, ay, bx, by, cx, cy = self._corners(t)
        # Half-edges 3t, 3t+1, 3t+2 run a -> b, b -> c, c -> a.
        for edge, (px, py, qx, qy) in enumerate(((ax, ay, bx, by), (bx, by, cx, cy), (cx, cy, ax, ay)), start=3 * t):
            if self._halfedges[edge] < self._empty:
                continue
            length2 = (qx - px) ** 2 + (qy - py) ** 2
            # Twice the area over the length is the distance to the edge.
            area2 = orientation(px, py, qx, qy, lx, ly)
            if area2 * area2 <= (self.probe_epsilon**2) * length2 * length2:
                return True
        return False

"""
Insertion envelope walk and Sibson area computation.

The insertion envelope (Bowyer-Watson cavity) of a query point is the set of
triangles whose circumcircle strictly contains it. Its boundary is walked one
half-edge at a time; the origins of the boundary half-edges are the natural
neighbors of the query. For every window of three consecutive boundary
half-edges ``(prev, base, next)`` the area the query would steal from the
Voronoi cell of ``base``'s origin is computed from circumcenters only, which
keeps a query O(k) in the number of natural neighbors.

Reference: G.W. Lucas, "A Fast and Accurate Algorithm for Natural Neighbor
Interpolation".
"""

from __future__ import annotations

import logging
from collections.abc import Callable

from natural_neighbor.exceptions import TooManyNeighborsError
from natural_neighbor.interpolation.utils import circumcenter, shoelace_term
from natural_neighbor.triangulation import Triangulation, next_halfedge

logger = logging.getLogger(__name__)


class DegreeGuard:
    """Counts loop iterations and aborts the query once ``limit`` is exceeded."""

    __slots__ = ("count", "limit")

    def __init__(self, limit: int):
        self.limit = limit
        self.count = 0

    def tick(self) -> None:
        self.count += 1
        if self.count > self.limit:
            logger.debug("Degree limit of %d exceeded", self.limit)
            raise TooManyNeighborsError(self.limit)


class EnvelopeWalker:
    """Walks insertion envelopes over a fixed triangulation.

    The walker holds no per-query state and can be shared between threads.

    Args:
        triangulation: Triangulation to walk
        degree_limit: Bound on every loop of a walk
    """

    def __init__(self, triangulation: Triangulation, degree_limit: int):
        self.degree_limit = degree_limit
        origin = triangulation.origin
        self._ox, self._oy = origin.tolist()
        local = triangulation.local_points()
        self._xs = local[:, 0].tolist()
        self._ys = local[:, 1].tolist()
        self._triangles = triangulation.triangles.tolist()
        self._halfedges = triangulation.halfedges.tolist()
        self._empty = triangulation.empty

        centers, radii2 = triangulation.circumcircles(origin)
        self._cx = centers[:, 0].tolist()
        self._cy = centers[:, 1].tolist()
        self._r2 = radii2.tolist()

    def in_circumcircle(self, t: int, x: float, y: float) -> bool:
        """Strict test: points on the circle are outside."""
        return self._in_circumcircle(t, x - self._ox, y - self._oy)

    def _in_circumcircle(self, t: int, x: float, y: float) -> bool:
        dx = self._cx[t] - x
        dy = self._cy[t] - y
        return dx * dx + dy * dy < self._r2[t]

    def _advance(self, edge: int, x: float, y: float) -> int:
        """Rotate ``edge`` about its origin across triangles inside the envelope.

        Returns the first half-edge with the same origin whose opposite triangle is
        outside the envelope (or which lies on the hull).
        """
        guard = DegreeGuard(self.degree_limit)
        while True:
            opposite = self._halfedges[edge]
            if opposite >= self._empty or not self._in_circumcircle(opposite // 3, x, y):
                return edge
            guard.tick()
            edge = next_halfedge(opposite)

    def walk(self, start: int, x: float, y: float, visit: Callable[[int, int, int], None]) -> None:
        """Call ``visit(prev, base, next)`` once for every natural neighbor of ``(x, y)``.

        Args:
            start: A half-edge of a triangle containing the query
            x, y: Query point, relative to the origin of the triangulation
            visit: Called with three consecutive envelope half-edges; ``base``'s
                origin is the natural neighbor
        """
        empty = self._empty
        origin = self._triangles[start]
        guard = DegreeGuard(self.degree_limit)

        e_prev, e_base, e_next = empty, empty, start
        first_pair = None

        while True:
            guard.tick()
            e_next = self._advance(e_next, x, y)

            # The first two rounds only fill the window.
            if e_prev < empty:
                if first_pair is None:
                    first_pair = (e_prev, e_base)
                visit(e_prev, e_base, e_next)

            e_prev, e_base, e_next = e_base, e_next, next_halfedge(e_next)

            if self._triangles[e_next] == origin:
                if first_pair is None:
                    # Fewer than three envelope edges: nothing to weigh.
                    return
                visit(e_prev, e_base, first_pair[0])
                visit(e_base, first_pair[0], first_pair[1])
                return

    def area(self, x: float, y: float, prev: int, base: int, nxt: int) -> float:
        """Unnormalized Sibson weight of the origin of ``base``.

        Twice the area of the part of the base site's Voronoi cell that a site
        inserted at ``(x, y)`` would take over. ``(x, y)`` is relative to the
        origin of the triangulation.
        """
        xs, ys, triangles = self._xs, self._ys, self._triangles
        p, b, n = triangles[prev], triangles[base], triangles[nxt]
        px, py = xs[p], ys[p]
        bx, by = xs[b], ys[b]
        nx, ny = xs[n], ys[n]

        mpx, mpy = (bx + px) / 2.0, (by + py) / 2.0
        mnx, mny = (bx + nx) / 2.0, (by + ny) / 2.0

        # Voronoi vertices of the base site inside the envelope, fanning from
        # prev's triangle to base's triangle.
        guard = DegreeGuard(self.degree_limit)
        pre = 0.0
        sx, sy = mpx, mpy
        edge = prev
        while True:
            guard.tick()
            t = edge // 3
            cx, cy = self._cx[t], self._cy[t]
            pre += shoelace_term(sx, sy, cx, cy)
            sx, sy = cx, cy
            following = next_halfedge(edge)
            if following == base:
                break
            edge = self._halfedges[following]
        pre += shoelace_term(sx, sy, mnx, mny) + shoelace_term(mnx, mny, mpx, mpy)

        gpx, gpy = circumcenter(x, y, bx, by, px, py)
        gnx, gny = circumcenter(x, y, bx, by, nx, ny)
        post = (
            shoelace_term(mpx, mpy, gpx, gpy)
            + shoelace_term(gpx, gpy, gnx, gny)
            + shoelace_term(gnx, gny, mnx, mny)
            + shoelace_term(mnx, mny, mpx, mpy)
        )

        # Triangles are counter-clockwise, so the fan runs clockwise around the
        # base site and both rings have negative signed area.
        return post - pre

    def accumulate(self, start: int, x: float, y: float, accumulator: Callable[[int, float], None]) -> None:
        """Walk the envelope of ``(x, y)`` and feed ``(site, weight)`` pairs to ``accumulator``."""
        triangles = self._triangles
        x -= self._ox
        y -= self._oy

        def visit(prev: int, base: int, nxt: int) -> None:
            accumulator(triangles[base], self.area(x, y, prev, base, nxt))

        self.walk(start, x, y, visit)

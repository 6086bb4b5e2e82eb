"""
Utility functions for interpolation.

Everything here works on plain Python floats; these run once or more per
natural neighbor inside a query, where numpy scalar overhead dominates.
"""

__all__ = [
    "circumcenter",
    "orientation",
    "shoelace_term",
]

# Relative error bound of the orientation determinant (Shewchuk's ccwerrboundA).
_EPSILON = 2.0**-53
ORIENTATION_ERRBOUND = (3.0 + 16.0 * _EPSILON) * _EPSILON


def circumcenter(ax: float, ay: float, bx: float, by: float, cx: float, cy: float) -> tuple[float, float]:
    """Center of the circle through three points.

    Computed relative to ``a`` so that points far from the origin keep their precision.
    Collinear points have no circumcircle; the center is then at infinity.
    """
    bx -= ax
    by -= ay
    cx -= ax
    cy -= ay
    d = 2.0 * (bx * cy - by * cx)
    if d == 0.0:
        return float("inf"), float("inf")
    b2 = bx * bx + by * by
    c2 = cx * cx + cy * cy
    return ax + (cy * b2 - by * c2) / d, ay + (bx * c2 - cx * b2) / d


def orientation(ax: float, ay: float, bx: float, by: float, cx: float, cy: float) -> float:
    """Twice the signed area of triangle ``abc``, positive when counter-clockwise.

    Results smaller than the rounding error of the computation are returned as
    exactly 0.0, so a point lying on the line ``ab`` up to rounding tests as on it.
    """
    left = (bx - ax) * (cy - ay)
    right = (by - ay) * (cx - ax)
    det = left - right
    if abs(det) <= ORIENTATION_ERRBOUND * (abs(left) + abs(right)):
        return 0.0
    return det


def shoelace_term(ax: float, ay: float, bx: float, by: float) -> float:
    """Contribution of the directed segment a -> b to twice the signed area of a ring.

    Summed over a closed ring this is positive for a counter-clockwise ring.
    """
    return (ax - bx) * (ay + by)

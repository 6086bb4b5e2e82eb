"""
Exceptions raised by natural-neighbor.

Querying outside the convex hull of the sites is not an error; it yields ``None``.
"""


class NaturalNeighborError(Exception):
    """Base class for all natural-neighbor errors."""


class TriangulationError(NaturalNeighborError, ValueError):
    """The sites or the supplied adjacency arrays do not form a usable triangulation."""


class MismatchedLengthsError(NaturalNeighborError, ValueError):
    """The number of values does not match the number of sites."""

    def __init__(self, expected: int, actual: int):
        self.expected = expected
        self.actual = actual
        super().__init__(f"Expected {expected} values (one per site), got {actual}")

    def __reduce__(self):
        return (type(self), (self.expected, self.actual))


class TooManyNeighborsError(NaturalNeighborError):
    """A walk around the insertion envelope exceeded the configured degree limit.

    This usually means the input is numerically degenerate (near-duplicate or
    exactly cocircular sites). Retry with a larger ``degree_limit`` or perturb the sites.
    """

    def __init__(self, limit: int):
        self.limit = limit
        super().__init__(f"Walk exceeded the degree limit of {limit} neighbors")

    def __reduce__(self):
        return (type(self), (self.limit,))

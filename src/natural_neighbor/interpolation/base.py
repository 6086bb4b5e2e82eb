"""
Base classes and types for interpolation.
"""

from __future__ import annotations

from typing import NamedTuple, Protocol, TypeVar, runtime_checkable

from natural_neighbor.methods._numba_kernels import apply_weights_sparse

V = TypeVar("V")


class Point(NamedTuple):
    """A 2D point. Compared by value only."""

    x: float
    y: float


@runtime_checkable
class Lerpable(Protocol):
    """A value that can be blended linearly with another value of the same type.

    ``a.lerp(b, weight)`` must return ``(1 - weight) * a + weight * b`` for
    ``weight`` in ``[0, 1]``. Plain numbers and numpy arrays do not need to
    implement this; they are blended arithmetically.

    Example:
        >>> from dataclasses import dataclass
        >>> @dataclass
        ... class Color:
        ...     r: float
        ...     g: float
        ...     b: float
        ...
        ...     def lerp(self, other, weight):
        ...         return Color(
        ...             self.r * (1.0 - weight) + other.r * weight,
        ...             self.g * (1.0 - weight) + other.g * weight,
        ...             self.b * (1.0 - weight) + other.b * weight,
        ...         )
    """

    def lerp(self, other, weight: float): ...


def lerp(value: V, other: V, weight: float) -> V:
    """Blend ``value`` towards ``other`` by ``weight``."""
    if isinstance(value, Lerpable):
        return value.lerp(other, weight)
    return value * (1.0 - weight) + other * weight


def as_point(point) -> Point:
    """Coerce a Point, tuple or length-2 array into a Point of floats."""
    x, y = point
    return Point(float(x), float(y))


__all__ = [
    "Lerpable",
    "Point",
    "apply_weights_sparse",
    "as_point",
    "lerp",
]

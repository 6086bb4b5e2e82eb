"""
Tests for the geometric helpers and value blending.
"""

import numpy as np
import pytest

from natural_neighbor import Lerpable, Point, lerp
from natural_neighbor.interpolation.utils import circumcenter, orientation, shoelace_term


def test_circumcenter():
    """Test the circumcenter of a right triangle."""
    assert circumcenter(0.0, 0.0, 2.0, 0.0, 0.0, 2.0) == pytest.approx((1.0, 1.0))


def test_circumcenter_collinear():
    """Collinear points have their center at infinity."""
    assert circumcenter(0.0, 0.0, 1.0, 1.0, 2.0, 2.0) == (float("inf"), float("inf"))


def test_circumcenter_far_from_origin():
    """A small triangle far from (0, 0) keeps its precision."""
    x, y = circumcenter(-170.0, -170.0, -170.0 + 1e-3, -170.0, -170.0, -170.0 + 1e-3)
    assert x == pytest.approx(-170.0 + 5e-4, abs=1e-11)
    assert y == pytest.approx(-170.0 + 5e-4, abs=1e-11)


def test_orientation():
    """The sign gives the side of ``c`` relative to the line ``ab``."""
    assert orientation(0.0, 0.0, 1.0, 0.0, 0.0, 1.0) == 1.0
    assert orientation(0.0, 0.0, 0.0, 1.0, 1.0, 0.0) == -1.0
    assert orientation(0.0, 0.0, 3.0, 1.0, 1.5, 0.5) == 0.0


def test_orientation_snaps_rounding_noise():
    """Determinants within the rounding error bound are reported as zero."""
    assert orientation(0.0, 0.0, 1.0, 1.0, 0.5, 0.5 + 2.0**-53) == 0.0
    assert orientation(0.0, 0.0, 1.0, 1.0, 0.5, 0.5 + 1e-10) > 0.0
    assert orientation(0.0, 0.0, 1.0, 1.0, 0.5, 0.5 - 1e-10) < 0.0


def test_shoelace_orientation():
    """Summed over a ring, the terms give twice the signed area."""
    ring = [(0.0, 0.0), (2.0, 0.0), (2.0, 1.0), (0.0, 1.0)]
    ccw = sum(shoelace_term(*ring[i], *ring[(i + 1) % 4]) for i in range(4))
    cw = sum(shoelace_term(*ring[(i + 1) % 4], *ring[i]) for i in range(4))
    assert ccw == pytest.approx(4.0)
    assert cw == pytest.approx(-4.0)


def test_lerp_numbers_and_arrays():
    """Test that plain numbers and arrays are blended arithmetically."""
    assert lerp(2.0, 4.0, 0.25) == pytest.approx(2.5)
    np.testing.assert_allclose(lerp(np.array([0.0, 10.0]), np.array([10.0, 0.0]), 0.5), [5.0, 5.0])


def test_lerp_uses_protocol():
    """Objects with a ``lerp`` method are recognised as Lerpable."""

    class Angle:
        def __init__(self, degrees):
            self.degrees = degrees

        def lerp(self, other, weight):
            delta = (other.degrees - self.degrees + 180.0) % 360.0 - 180.0
            return Angle((self.degrees + weight * delta) % 360.0)

    assert isinstance(Angle(0.0), Lerpable)
    assert not isinstance(1.0, Lerpable)
    assert lerp(Angle(350.0), Angle(10.0), 0.5).degrees == pytest.approx(0.0)


def test_point_is_a_tuple():
    """Test that points compare by value."""
    assert Point(1.0, 2.0) == (1.0, 2.0)
    assert Point(1.0, 2.0).x == 1.0

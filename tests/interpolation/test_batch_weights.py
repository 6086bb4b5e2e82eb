"""
Tests for precomputed (build once, apply many) weights.
"""

import numpy as np
import pytest

from natural_neighbor import MismatchedLengthsError, SparseWeights


def test_compute_weights_matches_queries(random_interpolator, random_sites):
    """Batch weights equal the per-point weights."""
    targets = np.random.default_rng(7).uniform(-0.2, 1.2, size=(80, 2))
    weights = random_interpolator.compute_weights(targets)

    assert isinstance(weights, SparseWeights)
    assert weights.n_targets == 80
    assert weights.n_sites == len(random_sites)

    for target_idx, target in enumerate(targets):
        single = random_interpolator.interpolate_weights(target)
        mask = weights.target_indices == target_idx
        if single is None:
            assert not weights.valid[target_idx]
            assert not mask.any()
        else:
            assert weights.valid[target_idx]
            assert list(zip(weights.source_indices[mask].tolist(), weights.weights[mask].tolist())) == single


def test_apply_matches_interpolate(random_interpolator, random_sites):
    """Applying weights to extra leading dimensions matches scalar queries."""
    targets = np.random.default_rng(8).uniform(-0.2, 1.2, size=(50, 2))
    data = np.stack([random_sites[:, 0], random_sites[:, 1], random_sites.sum(axis=1)]).reshape(3, 1, -1)

    result = random_interpolator.compute_weights(targets).apply(data)
    assert result.shape == (3, 1, 50)

    for target_idx, target in enumerate(targets):
        expected = random_interpolator.interpolate(data[0, 0], target)
        if expected is None:
            assert np.isnan(result[:, 0, target_idx]).all()
        else:
            assert result[0, 0, target_idx] == pytest.approx(expected, abs=1e-9)


def test_interpolate_points_outside_hull(unit_square):
    """Targets outside the hull are NaN."""
    result = unit_square.interpolate_points([1.0, 0.0, 1.0, 0.0], [(0.5, 0.5), (3.0, 3.0), (0.25, 0.75)])
    assert result[0] == pytest.approx(0.5)
    assert np.isnan(result[1])
    assert np.isfinite(result[2])


def test_apply_mismatched_sites(unit_square):
    """Data must have one entry per site along its last axis."""
    weights = unit_square.compute_weights([(0.5, 0.5)])
    with pytest.raises(MismatchedLengthsError):
        weights.apply(np.zeros((2, 5)))
    with pytest.raises(MismatchedLengthsError):
        unit_square.interpolate_points(np.zeros(3), [(0.5, 0.5)])


def test_no_targets_inside(unit_square):
    """Test that weights with no valid targets are all NaN when applied."""
    weights = unit_square.compute_weights([(5.0, 5.0), (-5.0, 5.0)])
    assert weights.weights.size == 0
    assert not weights.valid.any()
    assert np.isnan(weights.apply([1.0, 2.0, 3.0, 4.0])).all()

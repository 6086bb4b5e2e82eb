"""
Numba-optimized kernels for applying precomputed natural neighbor weights.

These functions are designed to be used inside xr.apply_ufunc.
"""

import numpy as np
from numba import jit, prange


@jit(nopython=True, nogil=True, parallel=True)
def apply_weights_sparse(
    data_flat,  # (n_samples, n_sites)
    source_indices,  # (n_entries,) site index of each weight
    target_indices,  # (n_entries,) target index of each weight
    weights,  # (n_entries,) normalized Sibson coordinates
    n_targets,
):
    """
    Apply flattened (target, site, weight) triplets to interpolate data.

    Targets without any entry (outside the convex hull) are NaN. A NaN at any
    natural neighbor of a target propagates to that target.

    Args:
        data_flat: 2D array of site data (n_samples, n_sites)
        source_indices: Site index of every entry
        target_indices: Target index of every entry
        weights: Weight of every entry
        n_targets: Number of targets

    Returns:
        Interpolated data (n_samples, n_targets)
    """
    n_samples = data_flat.shape[0]
    n_entries = len(weights)

    covered = np.zeros(n_targets, dtype=np.bool_)
    for k in range(n_entries):
        covered[target_indices[k]] = True

    result = np.zeros((n_samples, n_targets), dtype=np.float64)

    for s in prange(n_samples):
        for k in range(n_entries):
            result[s, target_indices[k]] += data_flat[s, source_indices[k]] * weights[k]
        for t in range(n_targets):
            if not covered[t]:
                result[s, t] = np.nan

    return result

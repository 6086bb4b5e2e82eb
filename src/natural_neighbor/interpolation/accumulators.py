"""
Accumulators fed with ``(site, weight)`` pairs during an envelope walk.

Both give no result when the weights sum to zero or to a non-finite value.
"""

from __future__ import annotations

import math
from collections.abc import Sequence
from typing import Any

from natural_neighbor.interpolation.base import lerp


class BlendAccumulator:
    """Online weighted average of site values.

    Each new value is blended into the running value by ``weight / running_sum``,
    so only O(1) state is kept regardless of the number of natural neighbors.
    """

    def __init__(self, values: Sequence[Any]):
        self.values = values
        self.value: Any = None
        self.weight_sum = 0.0

    def __call__(self, site: int, weight: float) -> None:
        self.weight_sum += weight
        if self.value is None:
            self.value = self.values[site]
        elif self.weight_sum != 0.0:
            self.value = lerp(self.value, self.values[site], weight / self.weight_sum)

    def result(self) -> Any:
        if self.weight_sum == 0.0 or not math.isfinite(self.weight_sum):
            return None
        return self.value


class WeightAccumulator:
    """Explicit list of ``(site, weight)`` pairs, normalized at the end."""

    def __init__(self):
        self.weights: list[tuple[int, float]] = []
        self.weight_sum = 0.0

    def __call__(self, site: int, weight: float) -> None:
        self.weight_sum += weight
        self.weights.append((site, weight))

    def result(self) -> list[tuple[int, float]] | None:
        if self.weight_sum == 0.0 or not math.isfinite(self.weight_sum):
            return None
        return [(site, weight / self.weight_sum) for site, weight in self.weights]

"""
Streaming particle-size statistics.

Particles are folded into count / sum / sum of squares as they are
detected, so no per-particle list is ever kept.
"""

from __future__ import annotations
import math


class ParticleAccumulator:
    """Running count, total and squared total of particle sizes (px² or voxels)."""

    __slots__ = ("count", "total_size", "sum_squares")

    def __init__(self) -> None:
        self.count: int = 0
        self.total_size: float = 0.0
        self.sum_squares: float = 0.0

    def reset(self) -> None:
        """Zero all summaries for a new analysis."""
        self.count = 0
        self.total_size = 0.0
        self.sum_squares = 0.0

    def record(self, size: float) -> None:
        """Add one particle."""
        size = float(size)
        self.count += 1
        self.total_size += size
        self.sum_squares += size * size

    @property
    def mean_size(self) -> float:
        """Mean particle size, NaN when nothing was recorded."""
        if self.count == 0:
            return math.nan
        return self.total_size / self.count

    @property
    def sample_sd(self) -> float:
        """
        Size spread reported next to the mean.

        Computed as (n*Σs² - (Σs)²) / n / (n - 1), i.e. the sample
        variance without a square root. NaN for fewer than two particles.
        """
        n = self.count
        if n < 2:
            return math.nan
        return (n * self.sum_squares - self.total_size * self.total_size) / n / (n - 1)

    def __repr__(self) -> str:
        return (f"ParticleAccumulator(count={self.count}, total_size={self.total_size}, "
                f"sum_squares={self.sum_squares})")

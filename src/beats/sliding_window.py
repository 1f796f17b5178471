"""
Trailing-window statistics for a single band's energy series.

Each band of the detector keeps one SlidingWindowStats over its most recent
energies. The window reports a running average and a dispersion measure
(mean absolute deviation) that together form the band's adaptive baseline.
"""

import logging
from typing import Union

import numpy as np

logger = logging.getLogger(__name__)


class SlidingWindowStats:
    """
    Fixed-capacity circular buffer with running average and dispersion.

    The average always divides the running sum by the full capacity, even
    while the window is still warming up, so early averages are depressed
    until the buffer has been filled once. The dispersion is recomputed over
    the live buffer contents on every insertion (O(capacity) per sample) and
    uses the effective sample count, min(inserted, capacity).
    """

    def __init__(self, capacity: int, dtype: Union[type, np.dtype] = np.float32):
        """
        Initialize an empty window.

        Args:
            capacity: Maximum number of samples retained (must be positive)
            dtype: Floating-point numpy dtype used for storage and statistics
        """
        if capacity <= 0:
            raise ValueError(f"Window capacity must be positive, got {capacity}")

        self.capacity = int(capacity)
        self.dtype = np.dtype(dtype)
        self._zero = self.dtype.type(0)

        self._samples = np.zeros(self.capacity, dtype=self.dtype)
        self._total_samples = 0
        self._full = False
        self._sum = self._zero
        self._average = self._zero
        self._dispersion = self._zero

    def add_sample(self, value: float) -> None:
        """
        Insert a value, evicting the oldest one once the window is full.

        Args:
            value: New energy value
        """
        sample = self.dtype.type(value)
        index = self._total_samples % self.capacity
        self._total_samples += 1
        if not self._full and self._total_samples >= self.capacity:
            self._full = True

        self._sum = self.dtype.type(self._sum + (sample - self._samples[index]))
        self._samples[index] = sample
        self._average = self.dtype.type(self._sum / self.dtype.type(self.capacity))

        count = self.get_sample_count()
        deviations = np.abs(self._samples[:count] - self._average)
        self._dispersion = self.dtype.type(np.sum(deviations, dtype=self.dtype) / self.dtype.type(count))

    def get_average(self):
        """Running sum divided by the window capacity."""
        return self._average

    def get_dispersion(self):
        """Mean absolute deviation of the live samples around the average."""
        return self._dispersion

    def get_sample_count(self) -> int:
        """Number of samples inserted, capped at the capacity."""
        return self.capacity if self._full else self._total_samples

    def is_full(self) -> bool:
        return self._full

    def get_stats(self) -> dict:
        """
        Get a snapshot of the window state.

        Returns:
            Dictionary with capacity, sample counts and current statistics
        """
        return {
            "capacity": self.capacity,
            "sample_count": self.get_sample_count(),
            "total_samples": self._total_samples,
            "is_full": self._full,
            "average": float(self._average),
            "dispersion": float(self._dispersion),
        }

    def __repr__(self) -> str:
        return (
            f"SlidingWindowStats(capacity={self.capacity}, dtype={self.dtype.name}, "
            f"samples={self.get_sample_count()}, average={float(self._average):.4f}, "
            f"dispersion={float(self._dispersion):.4f})"
        )

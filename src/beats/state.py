"""
Detector configuration and mutable per-frame state.

DetectorConfig holds the construction-time parameters, DetectorState owns the
per-band trailing windows, the scratch buffers written every frame, and the
per-category counters. The state has no behaviour of its own beyond
initialization; BeatDetector mutates it in place.
"""

import logging
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Dict, List, Union

import numpy as np

from src.const import (
    DEFAULT_BAND_COUNT,
    DEFAULT_DECIBEL_CUTOFF,
    DEFAULT_DTYPE,
    DEFAULT_HIGH_CUTOFF,
    DEFAULT_HIGH_THRESHOLD,
    DEFAULT_HISTORY_SIZE,
    DEFAULT_LOW_CUTOFF,
    DEFAULT_LOW_THRESHOLD,
    DEFAULT_MID_CUTOFF,
    DEFAULT_MID_THRESHOLD,
    DEFAULT_REFRACTORY_FRAMES,
    DEFAULT_SPECTRUM_SIZE,
)

from .sliding_window import SlidingWindowStats

logger = logging.getLogger(__name__)


class DetectorConfigError(ValueError):
    """Raised when a detector configuration violates its invariants."""


def _is_integer(value) -> bool:
    return isinstance(value, (int, np.integer)) and not isinstance(value, bool)


class BeatType(IntEnum):
    """Beat categories, evaluated in this order every frame."""

    LOW = 0
    MID = 1
    HIGH = 2


@dataclass
class CategoryConfig:
    """Trigger parameters for one beat category"""

    cutoff: int  # Fires when more than cutoff // 2 bands exceed their baseline
    threshold: float  # Percentage of the band average added to the baseline


def default_categories() -> Dict[BeatType, CategoryConfig]:
    return {
        BeatType.LOW: CategoryConfig(cutoff=DEFAULT_LOW_CUTOFF, threshold=DEFAULT_LOW_THRESHOLD),
        BeatType.MID: CategoryConfig(cutoff=DEFAULT_MID_CUTOFF, threshold=DEFAULT_MID_THRESHOLD),
        BeatType.HIGH: CategoryConfig(cutoff=DEFAULT_HIGH_CUTOFF, threshold=DEFAULT_HIGH_THRESHOLD),
    }


@dataclass
class DetectorConfig:
    """Construction-time configuration for BeatDetector"""

    spectrum_size: int = DEFAULT_SPECTRUM_SIZE  # Magnitudes per frame from the transform
    band_count: int = DEFAULT_BAND_COUNT  # Contiguous bands the spectrum is split into
    history_size: int = DEFAULT_HISTORY_SIZE  # Trailing window length per band
    decibel_cutoff: float = DEFAULT_DECIBEL_CUTOFF  # Only used by decibel scaling transforms
    categories: Dict[BeatType, CategoryConfig] = field(default_factory=default_categories)
    refractory_frames: int = DEFAULT_REFRACTORY_FRAMES  # Frames suppressed after a category fires
    dtype: Union[type, np.dtype] = DEFAULT_DTYPE  # Floating-point type for all buffers

    @property
    def samples_per_band(self) -> int:
        return self.spectrum_size // self.band_count

    def validate(self) -> None:
        """
        Check the configuration invariants.

        Raises:
            DetectorConfigError: If any parameter is out of range
        """
        for name in ("spectrum_size", "band_count", "history_size"):
            value = getattr(self, name)
            if not _is_integer(value) or value <= 0:
                raise DetectorConfigError(f"{name} must be a positive integer, got {value!r}")

        if self.band_count > self.spectrum_size:
            raise DetectorConfigError(
                f"band_count ({self.band_count}) exceeds spectrum_size ({self.spectrum_size})"
            )
        if self.spectrum_size % self.band_count != 0:
            raise DetectorConfigError(
                f"spectrum_size ({self.spectrum_size}) is not divisible by band_count ({self.band_count}); "
                f"{self.spectrum_size % self.band_count} trailing bins would be dropped"
            )

        try:
            dtype = np.dtype(self.dtype)
        except TypeError as e:
            raise DetectorConfigError(f"Invalid dtype {self.dtype!r}: {e}") from e
        if not np.issubdtype(dtype, np.floating):
            raise DetectorConfigError(f"dtype must be a floating-point type, got {dtype.name}")

        if self.decibel_cutoff <= 0:
            raise DetectorConfigError(f"decibel_cutoff must be positive, got {self.decibel_cutoff}")
        if not _is_integer(self.refractory_frames) or self.refractory_frames < 0:
            raise DetectorConfigError(
                f"refractory_frames must be a non-negative integer, got {self.refractory_frames!r}"
            )

        missing = [beat_type.name for beat_type in BeatType if beat_type not in self.categories]
        if missing:
            raise DetectorConfigError(f"Missing category configuration for: {', '.join(missing)}")
        for beat_type in BeatType:
            category = self.categories[beat_type]
            if not _is_integer(category.cutoff) or category.cutoff < 0:
                raise DetectorConfigError(
                    f"{beat_type.name} cutoff must be a non-negative integer, got {category.cutoff!r}"
                )
            if category.threshold < 0:
                raise DetectorConfigError(
                    f"{beat_type.name} threshold must not be negative, got {category.threshold}"
                )


@dataclass
class CategoryState:
    """Mutable state of one beat category"""

    cutoff: int
    threshold: float
    counter: int = 0  # Frames remaining before the category may fire again
    energy: np.floating = 0.0  # Summed band energy recorded at the last firing (config dtype)


class DetectorState:
    """
    Aggregate of everything BeatDetector mutates frame to frame.

    Attributes:
        history: One trailing window per band
        spectrum: Scratch buffer filled by the transform each frame
        band_energy: Current-frame energy per band
        categories: Fixed mapping from BeatType to its CategoryState
    """

    def __init__(self, config: DetectorConfig):
        config.validate()
        self.config = config
        self.dtype = np.dtype(config.dtype)

        self.spectrum_size = config.spectrum_size
        self.band_count = config.band_count
        self.history_size = config.history_size
        self.samples_per_band = config.samples_per_band
        self.decibel_cutoff = config.decibel_cutoff

        self.history: List[SlidingWindowStats] = [
            SlidingWindowStats(config.history_size, self.dtype) for _ in range(config.band_count)
        ]
        self.spectrum = np.zeros(config.spectrum_size, dtype=self.dtype)
        self.band_energy = np.zeros(config.band_count, dtype=self.dtype)

        self.categories: Dict[BeatType, CategoryState] = {
            beat_type: CategoryState(
                cutoff=int(config.categories[beat_type].cutoff),
                threshold=float(config.categories[beat_type].threshold),
                energy=self.dtype.type(0),
            )
            for beat_type in BeatType
        }

        logger.debug(
            f"DetectorState allocated: {self.band_count} bands x {self.samples_per_band} bins, "
            f"history={self.history_size}, dtype={self.dtype.name}"
        )

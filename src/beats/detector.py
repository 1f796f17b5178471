"""
Per-frame spectral beat detection.

BeatDetector classifies sudden energy bursts into LOW / MID / HIGH beat
categories. Each frame it:

1. Counts down the refractory counters of categories that fired recently
2. Calls the spectrum transform on the raw samples
3. Collects the spectrum into contiguous bands (scaled by ENERGY_GAIN)
4. Normalizes each band and feeds it to that band's trailing window
5. Counts, per category, the bands whose energy exceeds the adaptive baseline
   ``dispersion / average + average * threshold / 100``
6. Fires every ready category whose count exceeds half its cutoff

The detector is synchronous and single-threaded; the sink is invoked inline.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Union

import numpy as np

from src.const import ENERGY_GAIN
from src.utils.logging_utils import frame_extra

from .capabilities import BeatSink, SinkFunction, SpectrumTransform, TransformFunction
from .state import BeatType, DetectorConfig, DetectorState

logger = logging.getLogger(__name__)


@dataclass
class FrameAnalysis:
    """Result of one processed frame"""

    frame_index: int  # 1-based index of this frame
    band_energy: np.ndarray  # Current-frame energy per band (copy)
    mean_sum: float  # Sum of the band trailing averages
    peak_sum: float  # Sum of the current-frame band energies
    exceed_counts: Dict[BeatType, int] = field(default_factory=dict)  # Bands above each category's baseline
    fired: List[BeatType] = field(default_factory=list)  # Categories notified this frame


class BeatDetector:
    """
    Adaptive-threshold beat detector over band energies.

    Bands whose trailing average is exactly zero (silence so far) cannot be
    compared against a relative baseline; they are treated as not exceeding
    and are counted in ``zero_average_skips``.

    Instances are not thread-safe; guard concurrent calls externally.
    """

    def __init__(
        self,
        transform: Union[SpectrumTransform, TransformFunction],
        config: Optional[DetectorConfig] = None,
    ):
        """
        Initialize the detector.

        Args:
            transform: Spectrum transform called once per frame
            config: Detector configuration (uses defaults if None)

        Raises:
            DetectorConfigError: If the configuration is invalid
        """
        self.transform = transform
        self.config = config if config is not None else DetectorConfig()
        self.state = DetectorState(self.config)

        self._gain = self.state.dtype.type(ENERGY_GAIN)
        self._threshold_factors = {
            beat_type: self.state.dtype.type(category.threshold / 100.0)
            for beat_type, category in self.state.categories.items()
        }

        # Statistics
        self.frame_count = 0
        self.beat_counts: Dict[BeatType, int] = {beat_type: 0 for beat_type in BeatType}
        self.zero_average_skips = 0

        logger.info(
            f"BeatDetector initialized (spectrum_size={self.config.spectrum_size}, "
            f"bands={self.config.band_count}, history={self.config.history_size}, "
            f"dtype={self.state.dtype.name})"
        )

    def process(self, samples: Sequence[float], sink: Union[BeatSink, SinkFunction]) -> FrameAnalysis:
        """
        Run the detector on one frame of samples.

        Args:
            samples: Raw audio samples handed to the spectrum transform
            sink: Called once per category that fires, with (beat_type, energy)

        Returns:
            FrameAnalysis describing this frame

        Raises:
            ValueError: If the transform output does not have spectrum_size entries
        """
        state = self.state
        self.frame_count += 1

        # A category is ready only if its counter was already zero at frame start,
        # so a one-frame cool-down suppresses the frame right after a firing.
        ready: Dict[BeatType, bool] = {}
        for beat_type in BeatType:
            category = state.categories[beat_type]
            ready[beat_type] = category.counter == 0
            if category.counter > 0:
                category.counter -= 1

        spectrum = np.asarray(self.transform(samples, state.spectrum_size), dtype=state.dtype)
        if spectrum.shape != (state.spectrum_size,):
            raise ValueError(
                f"Spectrum transform returned shape {spectrum.shape}, expected ({state.spectrum_size},)"
            )
        state.spectrum[:] = spectrum

        # Accumulator holds only this frame's contribution
        state.band_energy.fill(0)
        used_bins = state.band_count * state.samples_per_band
        bands = state.spectrum[:used_bins].reshape(state.band_count, state.samples_per_band)
        state.band_energy += np.sum(bands * self._gain, axis=1, dtype=state.dtype)
        state.band_energy /= state.dtype.type(state.samples_per_band)

        for band_index, window in enumerate(state.history):
            window.add_sample(state.band_energy[band_index])

        averages = np.array([window.get_average() for window in state.history], dtype=state.dtype)
        dispersions = np.array([window.get_dispersion() for window in state.history], dtype=state.dtype)

        valid = averages != 0
        skipped = int(state.band_count - np.count_nonzero(valid))
        if skipped:
            self.zero_average_skips += skipped

        relative_dispersion = np.zeros_like(averages)
        np.divide(dispersions, averages, out=relative_dispersion, where=valid)

        mean_sum = float(np.sum(averages, dtype=state.dtype))
        peak_energy = state.dtype.type(np.sum(state.band_energy, dtype=state.dtype))

        exceed_counts: Dict[BeatType, int] = {}
        for beat_type in BeatType:
            baseline = relative_dispersion + averages * self._threshold_factors[beat_type]
            exceed_counts[beat_type] = int(np.count_nonzero(valid & (state.band_energy > baseline)))

        fired: List[BeatType] = []
        for beat_type in BeatType:
            category = state.categories[beat_type]
            if ready[beat_type] and exceed_counts[beat_type] > category.cutoff // 2:
                category.counter = self.config.refractory_frames
                category.energy = peak_energy
                self.beat_counts[beat_type] += 1
                fired.append(beat_type)
                logger.debug(
                    f"Beat {beat_type.name}: energy={peak_energy:.4f}, "
                    f"bands={exceed_counts[beat_type]}/{state.band_count}",
                    extra=frame_extra(self.frame_count),
                )
                sink(beat_type, peak_energy)

        return FrameAnalysis(
            frame_index=self.frame_count,
            band_energy=state.band_energy.copy(),
            mean_sum=mean_sum,
            peak_sum=float(peak_energy),
            exceed_counts=exceed_counts,
            fired=fired,
        )

    def get_last_energy(self, beat_type: BeatType) -> np.floating:
        """Energy recorded the last time ``beat_type`` fired (0.0 if never)."""
        return self.state.categories[beat_type].energy

    def get_stats(self) -> dict:
        """
        Get detector statistics.

        Returns:
            Dictionary with frame count, per-category beat counts and skips
        """
        return {
            "frames_processed": self.frame_count,
            "beats": {beat_type.name: count for beat_type, count in self.beat_counts.items()},
            "zero_average_skips": self.zero_average_skips,
            "counters": {beat_type.name: category.counter for beat_type, category in self.state.categories.items()},
        }

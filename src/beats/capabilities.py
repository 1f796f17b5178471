"""
External capabilities used by BeatDetector.

The detector never computes a spectrum or consumes beats itself. It calls a
SpectrumTransform once per frame and a BeatSink once per fired category.
Both roles are single-method interfaces; plain callables with the same
signature work as well as the classes defined here.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Sequence, Union

import numpy as np
from scipy import signal as scipy_signal

from src.const import DEFAULT_DECIBEL_CUTOFF, SILENCE_THRESHOLD

from .state import BeatType

logger = logging.getLogger(__name__)

TransformFunction = Callable[[np.ndarray, int], np.ndarray]
SinkFunction = Callable[[BeatType, float], None]


class SpectrumTransform(ABC):
    """
    Maps a block of raw samples to a magnitude spectrum.

    The output has exactly ``length`` entries. For the detector's default
    configuration that is the same length as the input block, which for a
    real-valued input includes the mirrored upper half of the spectrum.
    """

    @abstractmethod
    def __call__(self, samples: Sequence[float], length: int) -> np.ndarray:
        """
        Compute the magnitude spectrum of one frame.

        Args:
            samples: Raw audio samples for the frame
            length: Number of magnitudes to produce

        Returns:
            Array of ``length`` non-negative magnitudes
        """


class BeatSink(ABC):
    """Synchronous receiver of beat notifications. Must return quickly."""

    @abstractmethod
    def __call__(self, beat_type: BeatType, energy: float) -> None:
        """
        Receive one fired beat category.

        Args:
            beat_type: Category that fired
            energy: Summed current-frame band energy at the time of firing
        """


class MagnitudeSpectrumTransform(SpectrumTransform):
    """
    Windowed FFT magnitude spectrum using numpy.

    Input blocks are zero-padded or truncated to ``length`` samples, multiplied
    by a scipy window, and transformed with a full complex FFT so the output has
    ``length`` magnitudes. Magnitudes are divided by ``length`` when
    ``normalize`` is set.
    """

    def __init__(self, window: Optional[str] = "hann", normalize: bool = True):
        self.window = window
        self.normalize = normalize
        self._window_cache: Dict[int, np.ndarray] = {}

    def _get_window(self, length: int) -> Optional[np.ndarray]:
        if self.window is None:
            return None
        if length not in self._window_cache:
            self._window_cache[length] = scipy_signal.get_window(self.window, length)
        return self._window_cache[length]

    def __call__(self, samples: Sequence[float], length: int) -> np.ndarray:
        block = np.asarray(samples, dtype=np.float64).ravel()
        if len(block) < length:
            block = np.pad(block, (0, length - len(block)))
        elif len(block) > length:
            block = block[:length]

        window = self._get_window(length)
        if window is not None:
            block = block * window

        magnitudes = np.abs(np.fft.fft(block, n=length))
        if self.normalize:
            magnitudes /= length
        return magnitudes


class DecibelScaleTransform(SpectrumTransform):
    """
    Wraps another transform and maps its magnitudes onto a clipped decibel scale.

    Each magnitude m becomes ``1 - max(20*log10(m), -cutoff) / -cutoff``, so 0 dB
    maps to 1.0 and anything at or below ``-cutoff`` dB maps to 0.0. Frames whose
    peak magnitude is below the silence threshold produce all zeros.
    """

    def __init__(
        self,
        inner: Union[SpectrumTransform, TransformFunction],
        decibel_cutoff: float = DEFAULT_DECIBEL_CUTOFF,
        silence_threshold: float = SILENCE_THRESHOLD,
    ):
        if decibel_cutoff <= 0:
            raise ValueError(f"decibel_cutoff must be positive, got {decibel_cutoff}")
        self.inner = inner
        self.decibel_cutoff = float(decibel_cutoff)
        self.silence_threshold = silence_threshold

    def __call__(self, samples: Sequence[float], length: int) -> np.ndarray:
        magnitudes = np.asarray(self.inner(samples, length), dtype=np.float64)
        if magnitudes.size == 0 or np.max(magnitudes) <= self.silence_threshold:
            return np.zeros_like(magnitudes)

        with np.errstate(divide="ignore"):
            decibels = 20.0 * np.log10(magnitudes)
        decibels = np.maximum(decibels, -self.decibel_cutoff)
        return 1.0 - decibels / -self.decibel_cutoff


class SimpleBeatSink(BeatSink):
    """Remembers which categories fired and their energies until reset()."""

    def __init__(self):
        self.beat: Dict[BeatType, bool] = {}
        self.energy: Dict[BeatType, float] = {}
        self.reset()

    def __call__(self, beat_type: BeatType, energy: float) -> None:
        self.beat[beat_type] = True
        self.energy[beat_type] = float(energy)

    def reset(self) -> None:
        """Clear all flags and energies (call once per frame)."""
        for beat_type in BeatType:
            self.beat[beat_type] = False
            self.energy[beat_type] = 0.0

    def any(self) -> bool:
        return any(self.beat.values())


@dataclass
class BeatEvent:
    """One beat notification tagged with the frame it came from"""

    frame_index: int  # Frame counter of the detector when the beat fired
    beat_type: BeatType
    energy: float


class BeatEventRecorder(BeatSink):
    """
    Collects every notification as a BeatEvent, optionally forwarding it.

    The frame index is read from ``frame_source`` (typically the detector's
    ``frame_count``) at call time.
    """

    def __init__(
        self,
        frame_source: Optional[Callable[[], int]] = None,
        forward: Optional[SinkFunction] = None,
    ):
        self.frame_source = frame_source
        self.forward = forward
        self.events: List[BeatEvent] = []

    def __call__(self, beat_type: BeatType, energy: float) -> None:
        frame_index = self.frame_source() if self.frame_source is not None else len(self.events)
        self.events.append(BeatEvent(frame_index=frame_index, beat_type=BeatType(beat_type), energy=float(energy)))
        if self.forward is not None:
            self.forward(beat_type, energy)

    def counts(self) -> Dict[BeatType, int]:
        """Number of recorded events per category."""
        result = {beat_type: 0 for beat_type in BeatType}
        for event in self.events:
            result[event.beat_type] += 1
        return result

    def clear(self) -> None:
        self.events.clear()

"""
Spectral Beat Detection Components.

This package contains the per-frame beat detector and its collaborators:
- Trailing-window band statistics
- Detector configuration and state
- Spectrum transform / beat sink capabilities
- JSON configuration and WAV frame source for offline runs
"""

from .capabilities import (
    BeatEvent,
    BeatEventRecorder,
    BeatSink,
    DecibelScaleTransform,
    MagnitudeSpectrumTransform,
    SimpleBeatSink,
    SpectrumTransform,
)
from .config import load_detector_config, save_detector_config
from .detector import BeatDetector, FrameAnalysis
from .sliding_window import SlidingWindowStats
from .state import BeatType, CategoryConfig, CategoryState, DetectorConfig, DetectorConfigError, DetectorState

__all__ = [
    "BeatDetector",
    "FrameAnalysis",
    "SlidingWindowStats",
    "BeatType",
    "CategoryConfig",
    "CategoryState",
    "DetectorConfig",
    "DetectorConfigError",
    "DetectorState",
    "SpectrumTransform",
    "BeatSink",
    "MagnitudeSpectrumTransform",
    "DecibelScaleTransform",
    "SimpleBeatSink",
    "BeatEvent",
    "BeatEventRecorder",
    "load_detector_config",
    "save_detector_config",
]

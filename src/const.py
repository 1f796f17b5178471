"""
Global constants for the spectral beat detector.

Default detector geometry, per-category trigger parameters and the fixed
energy gain applied while collecting band energy.
"""

import numpy as np

# Spectrum / band geometry
DEFAULT_SPECTRUM_SIZE = 1024  # Magnitudes produced by the transform per frame
DEFAULT_BAND_COUNT = 64  # Contiguous spectrum partitions (16 bins each at defaults)
DEFAULT_HISTORY_SIZE = 40  # Trailing window length per band (~0.9s at 44.1kHz/1024)
DEFAULT_DECIBEL_CUTOFF = 125.0  # Floor for decibel scaling (dB below full scale)

# Per-category trigger parameters: cutoff is a band count, threshold a percentage
DEFAULT_LOW_CUTOFF = 4
DEFAULT_MID_CUTOFF = 16
DEFAULT_HIGH_CUTOFF = 32

DEFAULT_LOW_THRESHOLD = 150
DEFAULT_MID_THRESHOLD = 130
DEFAULT_HIGH_THRESHOLD = 80

# Frames a category stays silent after firing
DEFAULT_REFRACTORY_FRAMES = 1

# Gain applied to every magnitude while summing band energy
ENERGY_GAIN = 10.0

# Default numeric type for all detector buffers
DEFAULT_DTYPE = np.float32

# Below this peak magnitude a frame is treated as silence by decibel scaling
SILENCE_THRESHOLD = 0.001

"""
Shared pytest fixtures for the beat detector test suite.

Provides synthetic spectrum transforms, small detector configurations and
temporary WAV files.
"""

import sys
import tempfile
import wave
from pathlib import Path
from typing import Callable, Generator, List, Sequence

import numpy as np
import pytest

sys.path.insert(0, str(Path(__file__).parent.parent))

from src.const import ENERGY_GAIN  # noqa: E402


class BandEnergyTransform:
    """
    Test transform that produces a spectrum yielding given band energies.

    Every call ignores the samples and returns the next frame of the script,
    divided by ENERGY_GAIN so each band's detector energy equals the scripted
    value (one spectrum bin per band unless ``bins_per_band`` is larger).
    """

    def __init__(self, frames: Sequence[Sequence[float]], bins_per_band: int = 1):
        self.frames = [np.asarray(frame, dtype=np.float64) for frame in frames]
        self.bins_per_band = bins_per_band
        self.calls = 0

    def __call__(self, samples, length: int) -> np.ndarray:
        frame = self.frames[min(self.calls, len(self.frames) - 1)]
        self.calls += 1
        spectrum = np.repeat(frame / ENERGY_GAIN, self.bins_per_band)
        assert len(spectrum) == length
        return spectrum


# =============================================================================
# Transform and Sink Fixtures
# =============================================================================


@pytest.fixture
def band_energy_transform() -> Callable[..., BandEnergyTransform]:
    """Factory for scripted band-energy transforms."""
    return BandEnergyTransform


@pytest.fixture
def beat_log() -> List[tuple]:
    """List collecting (beat_type, energy) tuples."""
    return []


@pytest.fixture
def collecting_sink(beat_log: List[tuple]) -> Callable:
    """Plain-function sink appending to beat_log."""

    def sink(beat_type, energy):
        beat_log.append((beat_type, energy))

    return sink


# =============================================================================
# Audio Fixtures
# =============================================================================


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for test files."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


def write_wav(path: Path, samples: np.ndarray, sample_rate: int = 44100, channels: int = 1) -> Path:
    """Write float samples in [-1, 1] as 16-bit PCM (interleaved if channels > 1)."""
    pcm = np.clip(samples, -1.0, 1.0 - 1.0 / 32768.0)
    pcm = (pcm * 32768.0).astype(np.int16)
    with wave.open(str(path), "wb") as wav_file:
        wav_file.setnchannels(channels)
        wav_file.setsampwidth(2)
        wav_file.setframerate(sample_rate)
        wav_file.writeframes(pcm.tobytes())
    return path


@pytest.fixture
def wav_writer() -> Callable[..., Path]:
    """Expose write_wav to tests."""
    return write_wav


@pytest.fixture
def click_track_wav(temp_dir: Path) -> Path:
    """
    Two seconds of quiet noise with a loud broadband click every 0.5s.

    Deterministic (fixed seed) so detector runs are reproducible.
    """
    sample_rate = 44100
    rng = np.random.default_rng(1234)
    samples = rng.normal(0.0, 0.01, 2 * sample_rate)
    for start in range(sample_rate // 4, len(samples), sample_rate // 2):
        samples[start : start + 256] += rng.normal(0.0, 0.6, 256)
    return write_wav(temp_dir / "clicks.wav", samples, sample_rate)

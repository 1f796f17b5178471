"""
WAV file frame source for offline detector runs.

Reads 16-bit or 32-bit PCM files with the standard ``wave`` module and yields
fixed-size float frames in [-1.0, 1.0). Only the first channel of a
multi-channel file is used.
"""

import logging
import wave
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, Union

import numpy as np

logger = logging.getLogger(__name__)

_PCM_SCALES = {
    2: (np.int16, 32768.0),
    4: (np.int32, 2147483648.0),
}


@dataclass
class WavInfo:
    """Basic parameters of a WAV file"""

    sample_rate: int
    channels: int
    sample_width: int  # Bytes per sample
    frame_count: int  # Samples per channel

    @property
    def duration(self) -> float:
        return self.frame_count / self.sample_rate if self.sample_rate else 0.0


def read_wav_info(path: Union[str, Path]) -> WavInfo:
    """Read the header of a WAV file."""
    with wave.open(str(path), "rb") as wav_file:
        return WavInfo(
            sample_rate=wav_file.getframerate(),
            channels=wav_file.getnchannels(),
            sample_width=wav_file.getsampwidth(),
            frame_count=wav_file.getnframes(),
        )


def iter_wav_frames(path: Union[str, Path], frame_size: int) -> Iterator[np.ndarray]:
    """
    Yield consecutive frames of ``frame_size`` samples from a WAV file.

    The last frame is zero-padded to ``frame_size``.

    Args:
        path: WAV file path
        frame_size: Samples per yielded frame

    Yields:
        float32 arrays of length frame_size

    Raises:
        ValueError: If frame_size is not positive or the sample width is unsupported
    """
    if frame_size <= 0:
        raise ValueError(f"frame_size must be positive, got {frame_size}")

    with wave.open(str(path), "rb") as wav_file:
        channels = wav_file.getnchannels()
        sample_width = wav_file.getsampwidth()
        if sample_width not in _PCM_SCALES:
            raise ValueError(f"Unsupported sample width: {sample_width} bytes")
        pcm_dtype, scale = _PCM_SCALES[sample_width]

        logger.info(
            f"WAV file opened: {wav_file.getframerate()}Hz, {channels}ch, "
            f"{sample_width} bytes/sample, {wav_file.getnframes()} frames"
        )
        if channels > 1:
            logger.warning(f"File has {channels} channels - using channel 0 only")

        while True:
            data = wav_file.readframes(frame_size)
            if not data:
                break

            samples = np.frombuffer(data, dtype=pcm_dtype).astype(np.float32) / scale
            if channels > 1:
                samples = samples.reshape(-1, channels)[:, 0]
            if len(samples) < frame_size:
                samples = np.pad(samples, (0, frame_size - len(samples)))
            yield samples

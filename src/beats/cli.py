"""
Command-line runner: stream a WAV file through the beat detector.

Prints one line per detected beat (time, category, energy) followed by a
summary. Detector parameters come from a JSON config file and can be
overridden on the command line.
"""

import argparse
import logging
import sys
import wave
from dataclasses import replace
from pathlib import Path
from typing import List, Optional

from src.paths import DETECTOR_CONFIG_FILE

from .capabilities import BeatEventRecorder, DecibelScaleTransform, MagnitudeSpectrumTransform
from .config import load_detector_config
from .detector import BeatDetector
from .state import BeatType, DetectorConfigError
from .wav_source import iter_wav_frames, read_wav_info

logger = logging.getLogger(__name__)


def build_parser(file_config) -> argparse.ArgumentParser:
    """Create the argument parser, using ``file_config`` values as defaults."""
    parser = argparse.ArgumentParser(description="Spectral beat detector")
    parser.add_argument("wav_file", help="16/32-bit PCM WAV file to analyse")
    parser.add_argument("--config", default=str(DETECTOR_CONFIG_FILE), help="Path to configuration file")
    parser.add_argument(
        "--spectrum-size", type=int, default=file_config.spectrum_size, help="Samples (and magnitudes) per frame"
    )
    parser.add_argument("--band-count", type=int, default=file_config.band_count, help="Number of energy bands")
    parser.add_argument(
        "--history-size", type=int, default=file_config.history_size, help="Trailing window length per band"
    )
    parser.add_argument(
        "--decibel-scale",
        action="store_true",
        help="Map magnitudes onto the clipped decibel scale before detection",
    )
    parser.add_argument("--window", default="hann", help="scipy window name, or 'none' for a rectangular window")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    parser.add_argument("--log-file", default=None, help="Write the full log to this file")
    return parser


def run(wav_path: Path, detector: BeatDetector, sample_rate: int, out=None) -> BeatEventRecorder:
    """
    Feed every frame of a WAV file to ``detector`` and print each beat.

    Returns:
        Recorder holding all beat events
    """
    out = out if out is not None else sys.stdout
    frame_size = detector.config.spectrum_size
    recorder = BeatEventRecorder(frame_source=lambda: detector.frame_count)

    for frame in iter_wav_frames(wav_path, frame_size):
        first_new = len(recorder.events)
        detector.process(frame, recorder)
        for event in recorder.events[first_new:]:
            seconds = (event.frame_index - 1) * frame_size / sample_rate
            print(f"{seconds:9.3f}s  {event.beat_type.name:<4}  energy={event.energy:.4f}", file=out)

    return recorder


def main(argv: Optional[List[str]] = None) -> int:
    """Entry point."""
    from src.utils.logging_utils import setup_logging

    # Parse just the config argument first to know which config file to load
    parser_config = argparse.ArgumentParser(add_help=False)
    parser_config.add_argument("--config", default=str(DETECTOR_CONFIG_FILE))
    parser_config.add_argument("--debug", action="store_true")
    parser_config.add_argument("--log-file", default=None)
    config_args, _ = parser_config.parse_known_args(argv)

    setup_logging(config_args.debug, config_args.log_file)

    try:
        file_config = load_detector_config(config_args.config)
    except DetectorConfigError as e:
        logger.error(f"Failed to load config file {config_args.config}: {e}")
        return 1

    args = build_parser(file_config).parse_args(argv)

    try:
        config = replace(
            file_config,
            spectrum_size=args.spectrum_size,
            band_count=args.band_count,
            history_size=args.history_size,
        )
        transform = MagnitudeSpectrumTransform(window=None if args.window.lower() == "none" else args.window)
        if args.decibel_scale:
            transform = DecibelScaleTransform(transform, config.decibel_cutoff)
        detector = BeatDetector(transform, config)

        wav_path = Path(args.wav_file)
        info = read_wav_info(wav_path)
        recorder = run(wav_path, detector, info.sample_rate)
    except (ValueError, OSError, EOFError, wave.Error) as e:
        logger.error(f"Beat detection failed: {e}")
        return 1

    counts = recorder.counts()
    summary = ", ".join(f"{beat_type.name}={counts[beat_type]}" for beat_type in BeatType)
    print(f"{detector.frame_count} frames ({info.duration:.1f}s): {summary}")
    logger.info(f"Detector stats: {detector.get_stats()}")
    return 0


if __name__ == "__main__":
    sys.exit(main())

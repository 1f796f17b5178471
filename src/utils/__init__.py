"""
Utility modules for the spectral beat detector.

Shared helpers used by the detector package and its command-line runner.
"""

from .logging_utils import DetectorLogFormatter, frame_extra, setup_logging

__all__ = ["DetectorLogFormatter", "frame_extra", "setup_logging"]

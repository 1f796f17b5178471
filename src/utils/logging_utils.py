"""
Logging utilities for the beat detector.

Provides a formatter that stamps every record with the seconds elapsed since
the run started and, for records emitted while processing a frame, the frame
index. setup_logging() is the one-call configuration used by the runner.
"""

import logging
import sys
import time
from pathlib import Path
from typing import Optional, Union

DEFAULT_LOG_FORMAT = "%(asctime)s - %(run_time)s - %(frame)s - %(name)s - %(levelname)s - %(message)s"

# Key under which callers pass a frame index through ``extra``
FRAME_INDEX_KEY = "frame_index"


class DetectorLogFormatter(logging.Formatter):
    """
    Formatter for detector runs.

    Adds two fields usable in the format string:
        run_time: Seconds since the run started, e.g. ``   1.250s``
        frame: ``f=000042`` when the record carries a frame index, else ``-``
    """

    def __init__(
        self, fmt: Optional[str] = None, datefmt: Optional[str] = None, run_start: Optional[float] = None
    ):
        super().__init__(fmt or DEFAULT_LOG_FORMAT, datefmt)
        self.run_start = time.time() if run_start is None else run_start

    def format(self, record):
        record.run_time = f"{max(0.0, record.created - self.run_start):8.3f}s"
        frame_index = getattr(record, FRAME_INDEX_KEY, None)
        record.frame = "-" if frame_index is None else f"f={frame_index:06d}"
        return super().format(record)


def frame_extra(frame_index: int) -> dict:
    """``extra`` mapping tagging a log record with a frame index."""
    return {FRAME_INDEX_KEY: frame_index}


def setup_logging(debug: bool = False, log_file: Optional[Union[str, Path]] = None) -> DetectorLogFormatter:
    """
    Configure the root logger for a detector run.

    Console output is limited to WARNING and above so beat lines printed by the
    runner stay readable; the optional log file receives the full level.

    Args:
        debug: Log at DEBUG instead of INFO
        log_file: Optional path of a log file (truncated on startup)

    Returns:
        The formatter shared by all handlers (its run_start is the run start)
    """
    level = logging.DEBUG if debug else logging.INFO
    formatter = DetectorLogFormatter()

    root_logger = logging.getLogger()
    root_logger.handlers = []
    root_logger.setLevel(level)

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(formatter)
    console_handler.setLevel(logging.WARNING)
    root_logger.addHandler(console_handler)

    if log_file is not None:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_path, mode="w")
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)

    return formatter

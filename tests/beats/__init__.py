"""
Test suite for the beat detection package.

Covers the trailing-window statistics, detector configuration and state,
the frame algorithm, the stock capabilities, JSON configuration, the WAV
frame source and the command-line runner.
"""

#!/usr/bin/env python3
"""
Beat detector entry point.

Runs the spectral beat detector over a WAV file; see ``src/beats/cli.py``.
"""

import sys
from pathlib import Path

# Add project root to path for imports
sys.path.insert(0, str(Path(__file__).parent))

from src.beats.cli import main  # noqa: E402

if __name__ == "__main__":
    sys.exit(main())

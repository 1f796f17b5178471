"""
Beat detector path configuration.

Runtime data lives outside the source tree.

Directory structure with BEATS_ROOT=/mnt/beats:
    /mnt/beats/config/   - Detector configuration files

Environment variable:
    BEATS_ROOT - Base directory for all data (default: $XDG_DATA_HOME/beats, ~/.local/share/beats)
"""

import os
from pathlib import Path

APP_NAME = "beats"

_root_override = os.environ.get("BEATS_ROOT")
if _root_override:
    ROOT_DIR = Path(_root_override)
else:
    _xdg_data_home = Path(os.environ.get("XDG_DATA_HOME", Path.home() / ".local" / "share"))
    ROOT_DIR = _xdg_data_home / APP_NAME

CONFIG_DIR = ROOT_DIR / "config"

DETECTOR_CONFIG_FILE = CONFIG_DIR / "detector_config.json"

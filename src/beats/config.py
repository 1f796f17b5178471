"""
JSON configuration for the beat detector.

Example file::

    {
        "comments": "Anything under 'comments' is ignored",
        "spectrum_size": 1024,
        "band_count": 64,
        "history_size": 40,
        "decibel_cutoff": 125,
        "refractory_frames": 1,
        "dtype": "float32",
        "categories": {
            "low": {"cutoff": 4, "threshold": 150},
            "mid": {"cutoff": 16, "threshold": 130},
            "high": {"cutoff": 32, "threshold": 80}
        }
    }

Keys that are absent or null keep their defaults.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional, Union

import numpy as np

from src.paths import DETECTOR_CONFIG_FILE

from .state import BeatType, CategoryConfig, DetectorConfig, DetectorConfigError, default_categories

logger = logging.getLogger(__name__)

def _to_int(value: Any) -> int:
    """int() that refuses to truncate fractional values."""
    if isinstance(value, bool):
        raise TypeError(f"Expected an integer, got {value!r}")
    if isinstance(value, float):
        if not value.is_integer():
            raise ValueError(f"Expected an integer, got {value!r}")
        return int(value)
    return int(value)


_SCALAR_FIELDS = {
    "spectrum_size": _to_int,
    "band_count": _to_int,
    "history_size": _to_int,
    "decibel_cutoff": float,
    "refractory_frames": _to_int,
}


def detector_config_from_dict(data: Dict[str, Any]) -> DetectorConfig:
    """
    Build a validated DetectorConfig from a plain dictionary.

    Args:
        data: Configuration values (see module docstring)

    Returns:
        Validated DetectorConfig

    Raises:
        DetectorConfigError: On unknown keys, malformed values or invariant violations
    """
    values = {k: v for k, v in data.items() if k != "comments" and v is not None}
    unknown = set(values) - set(_SCALAR_FIELDS) - {"categories", "dtype"}
    if unknown:
        raise DetectorConfigError(f"Unknown configuration keys: {', '.join(sorted(unknown))}")

    kwargs: Dict[str, Any] = {}
    for name, cast in _SCALAR_FIELDS.items():
        if name in values:
            try:
                kwargs[name] = cast(values[name])
            except (TypeError, ValueError) as e:
                raise DetectorConfigError(f"Invalid value for {name}: {values[name]!r}") from e

    if "dtype" in values:
        try:
            kwargs["dtype"] = np.dtype(values["dtype"]).type
        except TypeError as e:
            raise DetectorConfigError(f"Invalid dtype: {values['dtype']!r}") from e

    category_values = values.get("categories", {})
    if not isinstance(category_values, dict):
        raise DetectorConfigError(f"'categories' must be an object, got {category_values!r}")

    categories = default_categories()
    for key, overrides in category_values.items():
        try:
            beat_type = BeatType[key.upper()]
        except KeyError as e:
            raise DetectorConfigError(f"Unknown beat category: {key!r}") from e
        if not isinstance(overrides, dict):
            raise DetectorConfigError(f"Category {key!r} must be an object, got {overrides!r}")
        current = categories[beat_type]
        try:
            categories[beat_type] = CategoryConfig(
                cutoff=_to_int(overrides.get("cutoff", current.cutoff)),
                threshold=float(overrides.get("threshold", current.threshold)),
            )
        except (TypeError, ValueError) as e:
            raise DetectorConfigError(f"Invalid parameters for category {key!r}: {overrides!r}") from e
    kwargs["categories"] = categories

    config = DetectorConfig(**kwargs)
    config.validate()
    return config


def detector_config_to_dict(config: DetectorConfig) -> Dict[str, Any]:
    """Serialize a DetectorConfig into the JSON file layout."""
    return {
        "spectrum_size": config.spectrum_size,
        "band_count": config.band_count,
        "history_size": config.history_size,
        "decibel_cutoff": config.decibel_cutoff,
        "refractory_frames": config.refractory_frames,
        "dtype": np.dtype(config.dtype).name,
        "categories": {
            beat_type.name.lower(): {"cutoff": category.cutoff, "threshold": category.threshold}
            for beat_type, category in config.categories.items()
        },
    }


def load_detector_config(config_path: Optional[Union[str, Path]] = None) -> DetectorConfig:
    """
    Load detector configuration from a JSON file.

    A missing file is not an error: a warning is logged and defaults are used.

    Args:
        config_path: Path to the JSON file (default: DETECTOR_CONFIG_FILE)

    Returns:
        Validated DetectorConfig

    Raises:
        DetectorConfigError: If the file exists but is malformed or invalid
    """
    path = Path(config_path) if config_path is not None else DETECTOR_CONFIG_FILE
    if not path.exists():
        logger.warning(f"Config file not found: {path} - using defaults")
        return DetectorConfig()

    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise DetectorConfigError(f"Config file {path} is not valid JSON: {e}") from e
    except (OSError, UnicodeDecodeError) as e:
        raise DetectorConfigError(f"Cannot read config file {path}: {e}") from e

    if not isinstance(data, dict):
        raise DetectorConfigError(f"Config file {path} must contain a JSON object")

    config = detector_config_from_dict(data)
    logger.info(f"Loaded detector configuration from {path}")
    return config


def save_detector_config(config: DetectorConfig, config_path: Optional[Union[str, Path]] = None) -> Path:
    """
    Write a configuration to disk as JSON.

    Returns:
        Path that was written
    """
    config.validate()
    path = Path(config_path) if config_path is not None else DETECTOR_CONFIG_FILE
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w") as f:
        json.dump(detector_config_to_dict(config), f, indent=2)
    logger.info(f"Saved detector configuration to {path}")
    return path

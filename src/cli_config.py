"""Configuration file support for runtime tunables.

A YAML (or JSON) file may carry a ``typesgraph:`` section, or the settings at
its root. Known keys are applied onto ``Constants``; CLI flags are applied
afterwards and win.
"""

from __future__ import annotations

import logging
import os
from typing import Any, Dict, Optional

import yaml

from constants import Constants

logger = logging.getLogger(__name__)

# config key -> (Constants attribute, converter)
_KNOWN_KEYS = {
    "workers": ("PARSE_WORKERS", int),
    "types_directory": ("TYPES_DIRECTORY", str),
    "types_data_file": ("TYPES_DATA_FILE", str),
    "not_needed_file": ("NOT_NEEDED_FILE", str),
}


def load_config(config_path: Optional[str]) -> Dict[str, Any]:
    """Load the configuration mapping from file.

    Args:
        config_path: Path to YAML/JSON config file.

    Returns:
        Configuration dict; empty when no file is given.

    Raises:
        FileNotFoundError: The file does not exist.
        ValueError: The file is not a mapping or is not valid YAML.
    """
    if not config_path:
        return {}
    if not os.path.isfile(config_path):
        raise FileNotFoundError(config_path)
    with open(config_path, "r", encoding="utf-8") as fh:
        try:
            data = yaml.safe_load(fh) or {}
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid configuration file {config_path}: {e}") from e
    if not isinstance(data, dict):
        raise ValueError(f"Configuration file {config_path} must contain a mapping")
    section = data.get("typesgraph", data)
    return section if isinstance(section, dict) else {}


def apply_config(config: Dict[str, Any]) -> None:
    """Apply known configuration keys onto ``Constants``."""
    for key, value in config.items():
        known = _KNOWN_KEYS.get(key)
        if known is None:
            logger.warning("Ignoring unknown configuration key: %s", key)
            continue
        attribute, convert = known
        try:
            setattr(Constants, attribute, convert(value))
        except (TypeError, ValueError):
            logger.warning("Ignoring invalid value for %s: %r", key, value)


def apply_cli_overrides(args) -> None:
    """Apply CLI flags that override configuration (CLI has highest precedence)."""
    workers = getattr(args, "WORKERS", None)
    if workers is not None:
        Constants.PARSE_WORKERS = max(1, int(workers))

"""Reading and writing the registry's JSON data files."""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, List, Mapping, Optional

from definitions.packages import AllPackages, NotNeededPackage

logger = logging.getLogger(__name__)


def read_types_data(path: str) -> Dict[str, Dict[str, Dict[str, Any]]]:
    """Load the types data file: ``name -> version key -> entry``."""
    with open(path, "r", encoding="utf-8") as fh:
        data = json.load(fh)
    if not isinstance(data, dict):
        raise ValueError(f"{path}: expected an object keyed by package name")
    return data


def read_not_needed(path: str) -> List[NotNeededPackage]:
    """Load ``notNeededPackages.json`` (``{"packages": [...]}``)."""
    with open(path, "r", encoding="utf-8") as fh:
        data = json.load(fh)
    entries = data.get("packages", []) if isinstance(data, dict) else data
    return [NotNeededPackage.from_raw(entry) for entry in entries]


def read_all_packages(types_data_path: str, not_needed_path: Optional[str] = None) -> AllPackages:
    """Build the registry from its data files."""
    types_data = read_types_data(types_data_path)
    not_needed = read_not_needed(not_needed_path) if not_needed_path else []
    all_packages = AllPackages.from_data(types_data, not_needed)
    logger.info(
        "Loaded %d typings packages and %d not-needed packages.",
        len(types_data),
        len(not_needed),
    )
    return all_packages


def write_types_data(path: str, types_data: Mapping[str, Any]) -> None:
    """Write the types data file with sorted keys for stable diffs."""
    with open(path, "w", encoding="utf-8") as fh:
        json.dump(types_data, fh, ensure_ascii=False, indent=4, sort_keys=True)
    logger.info("Types data has been successfully written at: %s", path)

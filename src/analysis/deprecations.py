"""Deprecation bookkeeping for published typings packages."""

from __future__ import annotations

import logging
from typing import Iterable, List

from definitions.packages import AllPackages
from versioning.naming import mangle_scoped_package, strip_types_scope

logger = logging.getLogger(__name__)


def packages_to_deprecate(all_packages: AllPackages, published_names: Iterable[str]) -> List[str]:
    """Published ``@types`` packages that no longer exist in the registry.

    A name is kept when it is neither a typings package nor a not-needed
    package; such packages were deleted and should be deprecated on npm.

    Args:
        all_packages: Current registry.
        published_names: Names as published, with or without the ``@types/`` scope.

    Returns:
        Sorted, de-duplicated mangled names.
    """
    removed = set()
    for full_name in published_names:
        name = mangle_scoped_package(strip_types_scope(full_name.strip()))
        if not name:
            continue
        if all_packages.try_get_latest_version(name) is None and all_packages.get_not_needed_package(name) is None:
            logger.info("Deprecating %s", name)
            removed.add(name)
    return sorted(removed)

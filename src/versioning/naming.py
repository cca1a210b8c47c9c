"""Scoped package name mangling.

Scoped npm names cannot be used as a single directory or ``@types`` package
name, so ``@org/pkg`` is stored as ``org__pkg``. Identity always uses the
mangled form; unmangling is for display and module names only.
"""

from constants import Constants

_TYPES_PREFIX = Constants.TYPES_SCOPE + "/"


def is_scoped(name: str) -> bool:
    """Return True for ``@org/pkg`` style names."""
    return name.startswith("@") and "/" in name


def mangle_scoped_package(name: str) -> str:
    """``@org/pkg`` -> ``org__pkg``; unscoped names are returned unchanged."""
    if is_scoped(name):
        scope, _, rest = name[1:].partition("/")
        return f"{scope}{Constants.SCOPE_SEPARATOR}{rest}"
    return name


def unmangle_scoped_package(name: str) -> str:
    """``org__pkg`` -> ``@org/pkg``; names without a separator are returned unchanged."""
    scope, sep, rest = name.partition(Constants.SCOPE_SEPARATOR)
    if sep and scope and rest:
        return f"@{scope}/{rest}"
    return name


def strip_types_scope(name: str) -> str:
    """``@types/foo`` -> ``foo``."""
    if name.startswith(_TYPES_PREFIX):
        return name[len(_TYPES_PREFIX):]
    return name


def get_full_npm_name(name: str) -> str:
    """Published npm name for a typings package, e.g. ``@types/org__pkg``."""
    return _TYPES_PREFIX + mangle_scoped_package(name)

"""Parsing utilities for version constraints and change tokens."""

from typing import Any, Optional, Tuple

from .models import LATEST, LATEST_TOKEN, PackageChange, Version, VersionConstraint
from .naming import mangle_scoped_package, strip_types_scope


def tokenize_rightmost_at(s: str) -> Tuple[str, Optional[str]]:
    """Return (identifier, spec or None) using the rightmost-``@`` rule.

    A leading ``@`` is the scope marker of a scoped name, never a separator.
    """
    s = s.strip()
    at = s.rfind("@")
    if at <= 0:
        return s, None
    identifier = s[:at].strip()
    spec = s[at + 1:].strip()
    return identifier, spec if spec else None


def parse_constraint_text(spec: Optional[str]) -> VersionConstraint:
    """Parse ``*``, ``latest``, ``2`` or ``2.1`` into a constraint."""
    if spec is None or spec.strip() in ("", LATEST_TOKEN) or spec.strip().lower() == "latest":
        return LATEST
    text = spec.strip()
    if text[:1] in ("v", "V"):
        text = text[1:]
    parts = text.split(".")
    if not 1 <= len(parts) <= 2 or not all(p.isdigit() for p in parts):
        raise ValueError(f"Invalid version constraint: {spec!r}")
    if len(parts) == 1:
        return VersionConstraint(major=int(parts[0]))
    return VersionConstraint(major=int(parts[0]), minor=int(parts[1]))


def parse_constraint(raw: Any) -> VersionConstraint:
    """Parse the data-file form of a constraint.

    Accepts ``"*"``, a text constraint such as ``"1"``, or a mapping with
    ``major`` and optional ``minor``.
    """
    if raw is None:
        return LATEST
    if isinstance(raw, str):
        return parse_constraint_text(raw)
    if isinstance(raw, dict):
        if "major" not in raw:
            raise ValueError(f"Version constraint object lacks 'major': {raw!r}")
        minor = raw.get("minor")
        return VersionConstraint(
            major=int(raw["major"]),
            minor=int(minor) if minor is not None else None,
        )
    raise ValueError(f"Unsupported version constraint: {raw!r}")


def parse_change_token(token: str) -> PackageChange:
    """Parse a CLI token such as ``jquery@2`` or ``@ember/object@3.1``.

    The name is normalized to its mangled typings name.
    """
    identifier, spec = tokenize_rightmost_at(token)
    if not identifier:
        raise ValueError(f"Missing package name in {token!r}")
    name = mangle_scoped_package(strip_types_scope(identifier))
    return PackageChange(name=name, version=parse_constraint_text(spec))


def parse_version_key(key: str) -> Version:
    """Parse a version key of the data file (``"1.0"``)."""
    return Version.parse(key)

"""Data models for typings versions and version constraints."""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional


class ConstraintMode(Enum):
    """Resolution strategy derived from a constraint."""
    LATEST = "latest"
    MAJOR = "major"
    EXACT = "exact"


@dataclass(frozen=True, order=True)
class Version:
    """Major/minor version of a typings package, ordered by (major, minor)."""
    major: int
    minor: int = 0

    @classmethod
    def parse(cls, text: str) -> "Version":
        """Parse ``"1"`` or ``"1.2"`` (a leading ``v`` is tolerated)."""
        raw = text.strip()
        if raw[:1] in ("v", "V"):
            raw = raw[1:]
        parts = raw.split(".")
        if not 1 <= len(parts) <= 2 or not all(p.isdigit() for p in parts):
            raise ValueError(f"Invalid typings version: {text!r}")
        return cls(int(parts[0]), int(parts[1]) if len(parts) == 2 else 0)

    def __str__(self) -> str:
        return f"{self.major}.{self.minor}"


@dataclass(frozen=True)
class VersionConstraint:
    """A dependency's required version: latest, a major line, or exact.

    ``major`` None means ``"*"``; ``minor`` is only meaningful with ``major``.
    """
    major: Optional[int] = None
    minor: Optional[int] = None

    def __post_init__(self) -> None:
        if self.major is None and self.minor is not None:
            raise ValueError("A minor version requires a major version")

    @property
    def mode(self) -> ConstraintMode:
        if self.major is None:
            return ConstraintMode.LATEST
        if self.minor is None:
            return ConstraintMode.MAJOR
        return ConstraintMode.EXACT

    def matches(self, version: Version) -> bool:
        """True when ``version`` satisfies this constraint's major/minor parts.

        Latest-ness is not checked here; see ``TypingsVersions.try_get``.
        """
        if self.major is None:
            return True
        if self.major != version.major:
            return False
        return self.minor is None or self.minor == version.minor

    def to_raw(self) -> Any:
        """Serialize to the data-file form: ``"*"`` or ``{"major": .., "minor": ..}``."""
        if self.major is None:
            return LATEST_TOKEN
        raw = {"major": self.major}
        if self.minor is not None:
            raw["minor"] = self.minor
        return raw

    def __str__(self) -> str:
        if self.major is None:
            return LATEST_TOKEN
        if self.minor is None:
            return str(self.major)
        return f"{self.major}.{self.minor}"


LATEST_TOKEN = "*"
LATEST = VersionConstraint()


@dataclass(frozen=True, order=True)
class PackageId:
    """Identity of one published typings artifact."""
    name: str
    version: Version

    def __str__(self) -> str:
        return f"{self.name}@{self.version}"


@dataclass(frozen=True)
class PackageChange:
    """A changed package as given by the caller: name plus constraint."""
    name: str
    version: VersionConstraint = LATEST

    def __str__(self) -> str:
        return f"{self.name}@{self.version}"

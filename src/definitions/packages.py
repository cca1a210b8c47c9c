"""In-memory registry of typings packages.

``AllPackages`` is built once from the raw types data (name -> version key ->
entry) and the list of not-needed packages, and is read-only afterwards.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, Iterator, List, Mapping, Optional, Tuple

import semantic_version

from constants import Constants
from definitions.errors import RegistryConflictError, UnknownPackageError
from versioning.models import LATEST, ConstraintMode, PackageId, Version, VersionConstraint
from versioning.naming import get_full_npm_name, mangle_scoped_package, unmangle_scoped_package
from versioning.parser import parse_constraint, parse_version_key

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TypingsVersion:
    """One version entry of a typings package."""
    name: str
    version: Version
    library_name: str
    dependencies: Mapping[str, VersionConstraint] = field(default_factory=dict)
    test_dependencies: Tuple[str, ...] = ()
    project_name: str = ""
    contributors: Tuple[Mapping[str, str], ...] = ()
    files: Tuple[str, ...] = ()
    globals: Tuple[str, ...] = ()
    declared_modules: Tuple[str, ...] = ()
    content_hash: str = ""
    is_latest: bool = True

    @classmethod
    def from_raw(cls, name: str, raw: Mapping[str, Any], is_latest: bool = True) -> "TypingsVersion":
        """Build an entry from its data-file form."""
        return cls(
            name=name,
            version=Version(int(raw.get("libraryMajorVersion", 1)), int(raw.get("libraryMinorVersion", 0))),
            library_name=raw.get("libraryName", unmangle_scoped_package(name)),
            dependencies={
                dep: parse_constraint(constraint)
                for dep, constraint in (raw.get("dependencies") or {}).items()
            },
            test_dependencies=tuple(dict.fromkeys(raw.get("testDependencies") or [])),
            project_name=raw.get("projectName", ""),
            contributors=tuple(raw.get("contributors") or []),
            files=tuple(raw.get("files") or []),
            globals=tuple(raw.get("globals") or []),
            declared_modules=tuple(raw.get("declaredModules") or []),
            content_hash=raw.get("contentHash", ""),
            is_latest=is_latest,
        )

    def to_raw(self) -> Dict[str, Any]:
        """Data-file form of this entry."""
        return {
            "libraryName": self.library_name,
            "typingsPackageName": self.name,
            "libraryMajorVersion": self.version.major,
            "libraryMinorVersion": self.version.minor,
            "projectName": self.project_name,
            "contributors": [dict(c) for c in self.contributors],
            "dependencies": {dep: c.to_raw() for dep, c in self.dependencies.items()},
            "testDependencies": list(self.test_dependencies),
            "files": list(self.files),
            "globals": list(self.globals),
            "declaredModules": list(self.declared_modules),
            "contentHash": self.content_hash,
        }

    @property
    def id(self) -> PackageId:
        return PackageId(self.name, self.version)

    @property
    def major(self) -> int:
        return self.version.major

    @property
    def minor(self) -> int:
        return self.version.minor

    @property
    def full_npm_name(self) -> str:
        return get_full_npm_name(self.name)

    @property
    def desc(self) -> str:
        """e.g. ``@types/jquery v2.0``."""
        return f"{self.full_npm_name} v{self.version}"

    @property
    def subdirectory_path(self) -> str:
        """Directory under ``types/``: ``foo`` for the latest version, ``foo/v1`` otherwise."""
        if self.is_latest:
            return self.name
        return f"{self.name}/v{self.major}"

    def sort_key(self) -> Tuple[str, Version]:
        return (self.name, self.version)

    def __hash__(self) -> int:
        return hash(self.id)


class TypingsVersions:
    """All coexisting versions of one typings package, newest first."""

    def __init__(self, name: str, data: Mapping[str, Mapping[str, Any]]):
        if not data:
            raise ValueError(f"No versions given for {name}")
        raw_by_version: Dict[Version, Mapping[str, Any]] = {}
        for key, raw in data.items():
            version = parse_version_key(key)
            if version in raw_by_version:
                raise ValueError(f"{name}: version key {key!r} duplicates version {version}")
            raw_by_version[version] = raw
        keys = sorted(raw_by_version, reverse=True)
        self.name = name
        self.versions: Dict[Version, TypingsVersion] = {}
        for index, version in enumerate(keys):
            entry = TypingsVersion.from_raw(name, raw_by_version[version], is_latest=index == 0)
            if entry.version != version:
                logger.warning(
                    "%s: version key %s does not match entry version %s",
                    name, version, entry.version,
                )
            self.versions[version] = entry

    @property
    def latest(self) -> TypingsVersion:
        return next(iter(self.versions.values()))

    def get_all(self) -> List[TypingsVersion]:
        """Every version, newest first."""
        return list(self.versions.values())

    def try_get(self, constraint: VersionConstraint = LATEST) -> Optional[TypingsVersion]:
        """Resolve a constraint: latest, greatest minor under a major, or exact."""
        if constraint.mode is ConstraintMode.LATEST:
            return self.latest
        for version, entry in self.versions.items():
            if constraint.matches(version):
                return entry
        return None

    def get(self, constraint: VersionConstraint = LATEST) -> TypingsVersion:
        entry = self.try_get(constraint)
        if entry is None:
            available = ", ".join(str(v) for v in self.versions)
            raise UnknownPackageError(self.name, f"no version matches {constraint} (available: {available})")
        return entry


@dataclass(frozen=True)
class NotNeededPackage:
    """A typings name made obsolete by types shipped with the library itself."""
    name: str
    library_name: str
    as_of_version: semantic_version.Version
    source_repo_url: str

    @classmethod
    def from_raw(cls, raw: Mapping[str, Any]) -> "NotNeededPackage":
        """Build from a ``notNeededPackages.json`` entry."""
        for key in ("typingsPackageName", "libraryName", "asOfVersion", "sourceRepoURL"):
            if key not in raw:
                raise ValueError(f"Not-needed package entry lacks '{key}': {raw!r}")
        return cls(
            name=mangle_scoped_package(raw["typingsPackageName"]),
            library_name=raw["libraryName"],
            as_of_version=semantic_version.Version(raw["asOfVersion"]),
            source_repo_url=raw["sourceRepoURL"],
        )

    def to_raw(self) -> Dict[str, str]:
        return {
            "libraryName": self.library_name,
            "typingsPackageName": self.name,
            "asOfVersion": str(self.as_of_version),
            "sourceRepoURL": self.source_repo_url,
        }

    @property
    def full_npm_name(self) -> str:
        return get_full_npm_name(self.name)

    @property
    def version(self) -> Version:
        return Version(self.as_of_version.major, self.as_of_version.minor)


class AllPackages:
    """Read-only index of typings packages and not-needed packages."""

    def __init__(self, data: Dict[str, TypingsVersions], not_needed: Dict[str, NotNeededPackage]):
        for name in not_needed:
            if name in data:
                raise RegistryConflictError(name)
        self._data = dict(sorted(data.items()))
        self._not_needed = dict(sorted(not_needed.items()))

    @classmethod
    def from_data(
        cls, types_data: Mapping[str, Mapping[str, Mapping[str, Any]]],
        not_needed: Iterable[NotNeededPackage] = (),
    ) -> "AllPackages":
        """Build the registry from raw types data and not-needed packages."""
        data = {name: TypingsVersions(name, versions) for name, versions in types_data.items()}
        return cls(data, {pkg.name: pkg for pkg in not_needed})

    def __contains__(self, name: str) -> bool:
        return name in self._data

    def try_get_typings_versions(self, name: str) -> Optional[TypingsVersions]:
        return self._data.get(name)

    def get_typings_versions(self, name: str) -> TypingsVersions:
        versions = self._data.get(name)
        if versions is None:
            raise UnknownPackageError(name)
        return versions

    def try_resolve(self, name: str, constraint: VersionConstraint = LATEST) -> Optional[TypingsVersion]:
        """The entry ``constraint`` currently selects for ``name``, or None."""
        versions = self._data.get(name)
        return versions.try_get(constraint) if versions is not None else None

    def try_get_latest_version(self, name: str) -> Optional[TypingsVersion]:
        return self.try_resolve(name, LATEST)

    def get_latest(self, name: str) -> TypingsVersion:
        return self.get_typings_versions(name).latest

    def get_not_needed_package(self, name: str) -> Optional[NotNeededPackage]:
        return self._not_needed.get(name)

    def has_typing_for(self, name: str, constraint: VersionConstraint = LATEST) -> bool:
        return self.try_resolve(name, constraint) is not None

    def all_typings(self) -> Iterator[TypingsVersion]:
        """Every version of every package, by name then newest first."""
        for versions in self._data.values():
            yield from versions.get_all()

    def all_latest_typings(self) -> Iterator[TypingsVersion]:
        for versions in self._data.values():
            yield versions.latest

    def all_not_needed(self) -> List[NotNeededPackage]:
        return list(self._not_needed.values())

    def all_dependency_typings(self, pkg: TypingsVersion) -> Iterator[TypingsVersion]:
        """Registry entries ``pkg``'s runtime dependencies currently resolve to."""
        for name, constraint in pkg.dependencies.items():
            resolved = self.try_resolve(name, constraint)
            if resolved is not None:
                yield resolved

    def to_types_data(self) -> Dict[str, Dict[str, Dict[str, Any]]]:
        """Raw types data for every package, the inverse of ``from_data``."""
        return {
            name: {str(entry.version): entry.to_raw() for entry in versions.get_all()}
            for name, versions in self._data.items()
        }


def definitions_url(pkg: TypingsVersion) -> str:
    """Source location of ``pkg`` in the definitions repository."""
    return f"{Constants.DEFINITIONS_REPO_URL}/tree/master/{Constants.TYPES_DIRECTORY}/{pkg.subdirectory_path}"

"""Parse typings package directories into registry data.

``get_typing_info`` turns one ``types/<name>`` directory (and its ``vN``
subdirectories for older versions) into data-file entries.
``parse_definitions`` does that for the whole tree, in parallel across
packages, and reports failures per package so that one broken package does
not stop the rest.
"""

from __future__ import annotations

import hashlib
import json
import logging
import posixpath
import re
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence

from common.fs import FS
from common.logging_utils import Timer, extra_context, is_debug_enabled
from constants import Constants
from definitions.errors import DefinitionsError, InvalidReferenceError, InvalidSourceError, PackageFileNotFoundError
from definitions.module_info import get_module_info, get_test_dependencies
from definitions.references import all_referenced_files, is_declaration_file, read_source, read_text
from versioning.models import LATEST, Version
from versioning.naming import unmangle_scoped_package

logger = logging.getLogger(__name__)

_VERSION_DIRECTORY = re.compile(r"^v(\d+)(?:\.(\d+))?$")
_HEADER = re.compile(
    r"^//\s*Type definitions for\s+(?:non-npm package\s+)?(.+?)\s+(\d+)\.(\d+)(?:\.\d+)?\s*$",
    re.MULTILINE,
)
_PROJECT = re.compile(r"^//\s*Project:\s*(.+?)\s*$", re.MULTILINE)
_CONTRIBUTOR = re.compile(r"([^<,]+?)\s*<([^>]+)>")


@dataclass
class PackageParseResult:
    """Outcome of parsing one package: its data entries or the error that stopped it."""
    name: str
    data: Optional[Dict[str, Dict[str, Any]]] = None
    error: Optional[DefinitionsError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass(frozen=True)
class Header:
    """Fields of the ``// Type definitions for`` header comment."""
    library_name: str
    version: Version
    projects: List[str]
    contributors: List[Dict[str, str]]


def strip_json_comments(content: str) -> str:
    """Strip ``//`` and ``/* */`` comments and trailing commas from tsconfig text."""
    content = re.sub(r'/\*.*?\*/', '', content, flags=re.DOTALL)
    content = re.sub(r'(?m)^\s*//.*?$', '', content)
    content = re.sub(r',(\s*[}\]])', r'\1', content)
    return content


def parse_header(text: str, package_name: str) -> Optional[Header]:
    """Parse the header comment of ``index.d.ts``; None when there is none."""
    m = _HEADER.search(text)
    if not m:
        return None
    projects: List[str] = []
    for project in _PROJECT.findall(text):
        projects.extend(p.strip() for p in project.split(",") if p.strip())
    contributors: List[Dict[str, str]] = []
    in_contributors = False
    for line in text.splitlines():
        if not line.startswith("//"):
            break
        body = line[2:].strip()
        if body.startswith("Definitions by:"):
            in_contributors = True
            body = body[len("Definitions by:"):]
        elif body.startswith("Definitions:") or body.startswith("TypeScript Version:"):
            in_contributors = False
        if in_contributors:
            for name, url in _CONTRIBUTOR.findall(body):
                contributors.append({"name": name.strip(), "url": url.strip()})
    library_name = m.group(1).strip() or unmangle_scoped_package(package_name)
    return Header(
        library_name=library_name,
        version=Version(int(m.group(2)), int(m.group(3))),
        projects=projects,
        contributors=contributors,
    )


def _read_entry_files(package_name: str, fs: FS) -> List[str]:
    if not fs.exists(Constants.TSCONFIG_FILE):
        raise PackageFileNotFoundError(package_name, Constants.TSCONFIG_FILE)
    try:
        tsconfig = json.loads(strip_json_comments(read_text(Constants.TSCONFIG_FILE, fs, package_name)))
    except json.JSONDecodeError as e:
        raise InvalidSourceError(package_name, Constants.TSCONFIG_FILE, f"invalid JSON: {e}") from e
    files = tsconfig.get("files") if isinstance(tsconfig, dict) else None
    if not isinstance(files, list) or not files:
        raise InvalidSourceError(package_name, Constants.TSCONFIG_FILE, "'files' must list the entry files")
    for f in files:
        if not isinstance(f, str) or not f or "\\" in f:
            raise InvalidSourceError(package_name, Constants.TSCONFIG_FILE, f"invalid entry in 'files': {f!r}")
    return [posixpath.normpath(f) for f in files]


def _read_other_files(package_name: str, fs: FS) -> List[str]:
    """Normalized, de-duplicated entries of ``OTHER_FILES.txt``.

    Entries must stay inside the directory that lists them.
    """
    if not fs.exists(Constants.OTHER_FILES_FILE):
        return []
    entries: Dict[str, None] = {}
    for line in read_text(Constants.OTHER_FILES_FILE, fs, package_name).splitlines():
        entry = line.strip()
        if not entry or entry.startswith("#"):
            continue
        if "\\" in entry:
            raise InvalidSourceError(package_name, Constants.OTHER_FILES_FILE, f"'{entry}' must use '/' separators")
        normalized = posixpath.normpath(entry)
        if normalized == ".." or normalized.startswith("../") or normalized.startswith("/"):
            raise InvalidReferenceError(package_name, Constants.OTHER_FILES_FILE, entry)
        entries[normalized] = None
    return list(entries)


def _content_hash(package_name: str, file_names: Sequence[str], fs: FS) -> str:
    digest = hashlib.sha256()
    for name in sorted(file_names):
        digest.update(name.encode("utf-8"))
        digest.update(b"\0")
        digest.update(read_text(name, fs, package_name).encode("utf-8"))
        digest.update(b"\0")
    return digest.hexdigest()


def _parse_version_directory(
    package_name: str, fs: FS, logical_path: str, directory_version: Optional[Version]
) -> Dict[str, Any]:
    entries = _read_entry_files(package_name, fs)
    refs = all_referenced_files(entries, fs, package_name, logical_path)
    for other in _read_other_files(package_name, fs):
        if not is_declaration_file(other) or other in refs.types:
            continue
        if not fs.exists(other):
            raise PackageFileNotFoundError(package_name, other)
        refs.types[other] = read_source(other, fs, package_name)

    info = get_module_info(package_name, refs.types)
    test_dependencies = get_test_dependencies(
        package_name, refs.types, refs.tests.keys(), info.dependencies, fs
    )

    header = None
    if fs.exists(Constants.INDEX_FILE):
        header = parse_header(read_text(Constants.INDEX_FILE, fs, package_name), package_name)
    if header is None:
        version = directory_version or Version(1, 0)
        logger.warning("%s: no header found, assuming version %s", logical_path, version)
        header = Header(unmangle_scoped_package(package_name), version, [], [])
    elif directory_version is not None and header.version.major != directory_version.major:
        raise InvalidSourceError(
            package_name,
            posixpath.join(logical_path, Constants.INDEX_FILE),
            f"header version {header.version} does not match directory v{directory_version.major}",
        )

    files = list(refs.types) + list(refs.tests)
    return {
        "libraryName": header.library_name,
        "typingsPackageName": package_name,
        "libraryMajorVersion": header.version.major,
        "libraryMinorVersion": header.version.minor,
        "projectName": header.projects[0] if header.projects else "",
        "contributors": header.contributors,
        "dependencies": {dep: LATEST.to_raw() for dep in sorted(info.dependencies)},
        "testDependencies": sorted(test_dependencies),
        "files": files,
        "globals": sorted(info.globals),
        "declaredModules": sorted(info.declared_modules),
        "contentHash": _content_hash(package_name, files + [Constants.TSCONFIG_FILE], fs),
    }


def get_typing_info(package_name: str, fs: FS) -> Dict[str, Dict[str, Any]]:
    """Data-file entries (version key -> entry) for one package directory.

    Raises:
        DefinitionsError: The package or one of its older versions is invalid.
    """
    logical_root = posixpath.join(Constants.TYPES_DIRECTORY, package_name)
    latest = _parse_version_directory(package_name, fs, logical_root, None)
    data = {f"{latest['libraryMajorVersion']}.{latest['libraryMinorVersion']}": latest}
    for entry in fs.readdir():
        m = _VERSION_DIRECTORY.match(entry)
        if not m or not fs.is_directory(entry):
            continue
        directory_version = Version(int(m.group(1)), int(m.group(2) or 0))
        older = _parse_version_directory(
            package_name, fs.sub_dir(entry), posixpath.join(logical_root, entry), directory_version
        )
        key = f"{older['libraryMajorVersion']}.{older['libraryMinorVersion']}"
        if key in data:
            raise InvalidSourceError(package_name, entry, f"duplicate version {key}")
        data[key] = older
    return data


def parse_package(package_name: str, types_fs: FS) -> PackageParseResult:
    """Parse one package, capturing a ``DefinitionsError`` instead of raising it."""
    if not types_fs.is_directory(package_name):
        error = PackageFileNotFoundError(package_name, posixpath.join(Constants.TYPES_DIRECTORY, package_name))
        logger.error("Failed to parse %s: %s", package_name, error)
        return PackageParseResult(name=package_name, error=error)
    with Timer() as t:
        try:
            data = get_typing_info(package_name, types_fs.sub_dir(package_name))
        except DefinitionsError as e:
            logger.error("Failed to parse %s: %s", package_name, e)
            return PackageParseResult(name=package_name, error=e)
    if is_debug_enabled(logger):
        logger.debug(
            "Parsed package",
            extra=extra_context(
                event="function_exit",
                component="parse",
                action="get_typing_info",
                target=package_name,
                outcome="success",
                duration_ms=t.duration_ms(),
            ),
        )
    return PackageParseResult(name=package_name, data=data)


def parse_definitions(
    fs: FS, workers: int = Constants.PARSE_WORKERS, names: Optional[Sequence[str]] = None
) -> Dict[str, PackageParseResult]:
    """Parse every package under ``types/`` of a definitions tree.

    Packages are independent, so they are parsed on a thread pool; each
    package's own files are read sequentially.

    Returns:
        Results keyed by package name, in name order.
    """
    types_fs = fs.sub_dir(Constants.TYPES_DIRECTORY)
    if names is None:
        names = [name for name in types_fs.readdir() if types_fs.is_directory(name)]
    logger.info("Parsing %d packages with %d workers.", len(names), workers)
    with ThreadPoolExecutor(max_workers=max(1, workers)) as pool:
        futures = {name: pool.submit(parse_package, name, types_fs) for name in names}
        results = {name: futures[name].result() for name in sorted(futures)}
    failed = [name for name, result in results.items() if not result.ok]
    if failed:
        logger.warning("%d of %d packages failed to parse: %s", len(failed), len(results), ", ".join(failed))
    return results


def types_data_from_results(results: Dict[str, PackageParseResult]) -> Dict[str, Dict[str, Dict[str, Any]]]:
    """Raw types data for the successfully parsed packages."""
    return {name: result.data for name, result in results.items() if result.ok and result.data}

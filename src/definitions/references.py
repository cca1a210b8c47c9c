"""Collect every file of a typings package reachable from its entry points.

Starting from the entry files, follows ``/// <reference path>`` directives,
own-package ``/// <reference types>`` directives and relative or own-package
imports. References to other packages are left to the module info
extractor, which turns them into dependencies.
"""

from __future__ import annotations

import logging
import posixpath
from collections import deque
from dataclasses import dataclass, field
from typing import Deque, Dict, Iterable, List, Set, Tuple

from common.fs import FS
from common.logging_utils import extra_context, is_debug_enabled
from constants import Constants
from definitions.errors import InvalidReferenceError, InvalidSourceError, PackageFileNotFoundError
from definitions.scanner import SourceFile, scan_source
from versioning.naming import unmangle_scoped_package

logger = logging.getLogger(__name__)


@dataclass
class ReferencedFiles:
    """Files of one package, split by role, in discovery order."""
    types: Dict[str, SourceFile] = field(default_factory=dict)
    tests: Dict[str, SourceFile] = field(default_factory=dict)
    has_non_relative_imports: bool = False


@dataclass(frozen=True)
class Reference:
    """A local reference; ``exact`` references name a file, others a module."""
    text: str
    exact: bool


def is_declaration_file(file_name: str) -> bool:
    return file_name.endswith(Constants.DECLARATION_EXTENSION)


def read_text(file_name: str, fs: FS, package_name: str) -> str:
    """Read one file of ``package_name`` as UTF-8 text.

    Raises:
        InvalidSourceError: The file is not valid UTF-8 or its path uses ``\\``.
        PackageFileNotFoundError: The file cannot be read.
    """
    try:
        return fs.read_file(file_name)
    except UnicodeDecodeError as e:
        raise InvalidSourceError(package_name, file_name, f"not valid UTF-8 ({e.reason})") from e
    except ValueError as e:
        raise InvalidSourceError(package_name, file_name, str(e)) from e
    except OSError as e:
        raise PackageFileNotFoundError(package_name, file_name) from e


def read_source(file_name: str, fs: FS, package_name: str) -> SourceFile:
    """Read and scan one file of ``package_name``."""
    text = read_text(file_name, fs, package_name)
    if text.startswith("\ufeff"):
        raise InvalidSourceError(package_name, file_name, "File has BOM")
    return scan_source(file_name, text)


def resolve_module(specifier: str, fs: FS) -> str:
    """Map a module specifier to the file that would provide it."""
    spec = specifier[:-1] if specifier.endswith("/") else specifier
    if spec not in (".", ".."):
        for extension in [Constants.DECLARATION_EXTENSION] + Constants.SCRIPT_EXTENSIONS:
            if fs.exists(spec + extension):
                return spec + extension
    if spec == ".":
        return Constants.INDEX_FILE
    return posixpath.join(spec, Constants.INDEX_FILE)


def _package_offset(package_name: str, logical_path: str) -> str:
    """Location of the collected directory inside the package, e.g. ``v1`` or ``.``."""
    package_root = posixpath.join(Constants.TYPES_DIRECTORY, package_name)
    if logical_path == package_root or not logical_path.startswith(package_root + "/"):
        return "."
    return posixpath.relpath(logical_path, package_root)


def find_referenced_files(
    src: SourceFile, package_name: str, sub_directory: str, offset: str
) -> Tuple[List[Reference], bool]:
    """Local references made by ``src``, as paths relative to the package root.

    Returns (references, has_non_relative_imports).
    """
    refs: List[Reference] = []
    has_non_relative_imports = False
    own_prefixes = tuple(dict.fromkeys([package_name + "/", unmangle_scoped_package(package_name) + "/"]))

    def add_reference(text: str, exact: bool) -> None:
        if "\\" in text:
            raise InvalidSourceError(package_name, src.file_name, f"reference '{text}' must use '/' separators")
        full = posixpath.normpath(posixpath.join(sub_directory, text))
        if full.startswith("../" + package_name + "/"):
            refs.append(Reference(full[len(package_name) + 4:], exact))
            return
        if full.startswith("..") and posixpath.normpath(posixpath.join(offset, full)).startswith(".."):
            raise InvalidReferenceError(package_name, src.file_name, text)
        refs.append(Reference(full, exact))

    def convert_to_relative_reference(name: str, prefix: str) -> str:
        # boring/foo -> ./foo from the root, ../foo from one level down
        depth = 0 if sub_directory == "." else len(sub_directory.split("/"))
        return "." + "/.." * depth + "/" + name[len(prefix):]

    for ref in src.referenced_files:
        add_reference(ref, exact=True)
    for ref in src.type_references:
        if ref.startswith("../" + package_name + "/"):
            add_reference(ref, exact=False)
            continue
        for prefix in own_prefixes:
            if ref.startswith(prefix):
                add_reference(convert_to_relative_reference(ref, prefix), exact=False)
                break
    for ref in src.imports:
        if ref.startswith("."):
            add_reference(ref, exact=False)
            continue
        for prefix in own_prefixes:
            if ref.startswith(prefix):
                add_reference(convert_to_relative_reference(ref, prefix), exact=False)
                has_non_relative_imports = True
                break
    return refs, has_non_relative_imports


def all_referenced_files(
    entry_file_names: Iterable[str], fs: FS, package_name: str, logical_path: str
) -> ReferencedFiles:
    """Collect the declaration and test files reachable from the entry files.

    Files are processed first-in first-out; a path is marked visited before
    it is queued, so each file is read once and reference cycles terminate.

    Args:
        entry_file_names: Entry files (declarations and tests), relative to ``fs``.
        fs: View of the package directory.
        package_name: Mangled typings name of the package.
        logical_path: Location of ``fs`` in the definitions tree, e.g. ``types/jquery/v1``.

    Raises:
        PackageFileNotFoundError: An entry file does not exist.
        InvalidReferenceError: A reference escapes the package directory.
        InvalidSourceError: A file starts with a byte-order mark, is not UTF-8 or uses a
            ``\\``-separated reference.
    """
    result = ReferencedFiles()
    offset = _package_offset(package_name, logical_path)
    seen: Set[str] = set()
    queue: Deque[Tuple[str, bool]] = deque()

    def enqueue(path: str, is_entry: bool) -> None:
        if path in seen:
            return
        seen.add(path)
        queue.append((path, is_entry))

    for name in entry_file_names:
        enqueue(posixpath.normpath(name), True)

    while queue:
        path, is_entry = queue.popleft()
        if not fs.exists(path) or fs.is_directory(path):
            if is_entry:
                raise PackageFileNotFoundError(package_name, path)
            if is_debug_enabled(logger):
                logger.debug(
                    "Skipping unresolved reference",
                    extra=extra_context(
                        event="decision",
                        component="references",
                        action="skip",
                        target=path,
                        package=package_name,
                    ),
                )
            continue
        src = read_source(path, fs, package_name)
        if is_declaration_file(path):
            result.types[path] = src
        else:
            result.tests[path] = src
        sub_directory = posixpath.dirname(path) or "."
        refs, non_relative = find_referenced_files(src, package_name, sub_directory, offset)
        result.has_non_relative_imports = result.has_non_relative_imports or non_relative
        for ref in refs:
            enqueue(ref.text if ref.exact else resolve_module(ref.text, fs), False)

    return result

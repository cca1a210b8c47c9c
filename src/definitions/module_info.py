"""Dependency extraction from a package's declaration and test files."""

from __future__ import annotations

import logging
import posixpath
import re
from dataclasses import dataclass
from typing import FrozenSet, Iterable, Mapping, Set

from common.fs import FS
from constants import Constants
from definitions.errors import PackageFileNotFoundError, PinnedDependencyError
from definitions.references import read_source
from definitions.scanner import SourceFile
from versioning.naming import mangle_scoped_package, strip_types_scope, unmangle_scoped_package

logger = logging.getLogger(__name__)

_VERSION_DIRECTORY = re.compile(r"^v\d+(?:\.\d+)?$")


@dataclass(frozen=True)
class ModuleInfo:
    """Names a package's files reference, declare and expose."""
    dependencies: FrozenSet[str]
    declared_modules: FrozenSet[str]
    globals: FrozenSet[str]
    test_dependencies: FrozenSet[str] = frozenset()


def root_name(import_text: str, type_files: Mapping[str, object], package_name: str) -> str:
    """Mangled package name a module specifier or type reference points at.

    ``foo/bar/baz`` -> ``foo``; ``@foo/bar/baz`` -> ``foo__bar``.

    Raises:
        PinnedDependencyError: ``import_text`` names an old version of another
            package, e.g. ``other/v3``. Those directories are not published.
    """
    text = strip_types_scope(import_text)
    parts = text.split("/")
    split_at = 2 if text.startswith("@") and len(parts) > 1 else 1
    root = "/".join(parts[:split_at])
    rest = parts[split_at:]
    mangled = mangle_scoped_package(root)
    if (
        rest
        and _VERSION_DIRECTORY.match(rest[-1])
        and "/".join(rest) + Constants.DECLARATION_EXTENSION not in type_files
        and mangled != package_name
    ):
        raise PinnedDependencyError(package_name, import_text, root)
    return mangled


def proper_module_name(folder_name: str, file_name: str) -> str:
    """Module a file declares: ``index.d.ts`` -> ``folder``, ``a/b.d.ts`` -> ``folder/a/b``."""
    if posixpath.basename(file_name) == Constants.INDEX_FILE:
        part = posixpath.dirname(file_name)
    else:
        part = file_name[:-len(Constants.DECLARATION_EXTENSION)]
    return folder_name if part in ("", ".") else posixpath.join(folder_name, part)


def _external_references(src: SourceFile) -> Iterable[str]:
    for ref in src.imports:
        if not ref.startswith("."):
            yield ref
    for ref in src.type_references:
        if not ref.startswith("."):
            yield ref


def get_module_info(package_name: str, type_files: Mapping[str, SourceFile]) -> ModuleInfo:
    """Dependencies, declared modules and globals of a package's type files.

    Only the given files are scanned; self references are dropped, including
    pinned ones such as ``fail/v3`` inside ``fail``.
    """
    dependencies: Set[str] = set()
    declared_modules: Set[str] = set()
    globals_: Set[str] = set()
    module_name = unmangle_scoped_package(package_name)

    for src in type_files.values():
        for ref in _external_references(src):
            dependency = root_name(ref, type_files, package_name)
            if dependency != package_name:
                dependencies.add(dependency)
        if src.is_module:
            if src.exports_something:
                declared_modules.add(proper_module_name(module_name, src.file_name))
                if src.namespace_export:
                    globals_.add(src.namespace_export)
        else:
            declared_modules.update(src.ambient_modules)
            globals_.update(src.globals)

    return ModuleInfo(
        dependencies=frozenset(dependencies),
        declared_modules=frozenset(declared_modules),
        globals=frozenset(globals_),
    )


def get_test_dependencies(
    package_name: str,
    type_files: Mapping[str, SourceFile],
    test_file_names: Iterable[str],
    dependencies: Iterable[str],
    fs: FS,
) -> FrozenSet[str]:
    """Names the test files need beyond ``dependencies``.

    Each test file is read again from ``fs`` and scanned like a type file.
    """
    known = set(dependencies)
    test_dependencies: Set[str] = set()
    for file_name in test_file_names:
        try:
            src = read_source(file_name, fs, package_name)
        except FileNotFoundError as e:
            raise PackageFileNotFoundError(package_name, file_name) from e
        for ref in _external_references(src):
            dependency = root_name(ref, type_files, package_name)
            if dependency != package_name and dependency not in known:
                test_dependencies.add(dependency)
    if test_dependencies:
        logger.debug("%s: test dependencies %s", package_name, sorted(test_dependencies))
    return frozenset(test_dependencies)

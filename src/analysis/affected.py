"""Affected-set computation over the typings dependency graph.

Given changed packages, find every package version that must be rebuilt:
the changed versions themselves plus everything that transitively depends on
them. Runtime dependents propagate further because their published output
changes; test-only dependents need re-testing but publish nothing new, so
they are reported without propagating.
"""

from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass
from typing import Deque, Dict, Iterable, List, NamedTuple, Optional, Set, Tuple

from common.logging_utils import extra_context, is_debug_enabled
from definitions.packages import AllPackages, TypingsVersion
from versioning.models import PackageChange, PackageId, Version

logger = logging.getLogger(__name__)

# A concrete package version, or (name, None) for a name that resolves to nothing.
Node = Tuple[str, Optional[Version]]


class Dependent(NamedTuple):
    pkg: TypingsVersion
    runtime: bool


ReverseDependencies = Dict[Node, Dict[PackageId, Dependent]]


@dataclass(frozen=True)
class Affected:
    """Result of ``get_affected_packages``; both lists sorted by name, then version."""
    changed_packages: List[TypingsVersion]
    dependent_packages: List[TypingsVersion]


def _node(pkg: TypingsVersion) -> Node:
    return (pkg.name, pkg.version)


def _add_edge(reverse: ReverseDependencies, target: Node, dependent: TypingsVersion, runtime: bool) -> None:
    edges = reverse.setdefault(target, {})
    existing = edges.get(dependent.id)
    edges[dependent.id] = Dependent(dependent, runtime or (existing is not None and existing.runtime))


def get_reverse_dependencies(all_packages: AllPackages) -> ReverseDependencies:
    """Map each package version (or unresolved name) to the versions depending on it.

    A runtime dependency points at whatever its constraint currently resolves
    to. A test dependency always tracks the latest version, so it points at
    every version of its target: any change to that name affects the tests.
    """
    reverse: ReverseDependencies = {}
    for typing in all_packages.all_typings():
        for name, constraint in typing.dependencies.items():
            target = all_packages.try_resolve(name, constraint)
            _add_edge(reverse, _node(target) if target else (name, None), typing, runtime=True)
        for name in typing.test_dependencies:
            versions = all_packages.try_get_typings_versions(name)
            if versions is None:
                _add_edge(reverse, (name, None), typing, runtime=False)
                continue
            for target in versions.get_all():
                _add_edge(reverse, _node(target), typing, runtime=False)
    return reverse


def _sorted(packages: Iterable[TypingsVersion]) -> List[TypingsVersion]:
    return sorted(packages, key=TypingsVersion.sort_key)


def get_affected_packages(all_packages: AllPackages, changes: Iterable[PackageChange]) -> Affected:
    """Changed package versions and their transitive dependents.

    A change that resolves to no registry entry (a deleted package, or an
    unknown version) yields no changed package but still seeds the search, so
    packages that depend on the missing name are reported.
    """
    roots: List[Node] = []
    changed: Dict[PackageId, TypingsVersion] = {}
    for change in changes:
        resolved = all_packages.try_resolve(change.name, change.version)
        if resolved is None:
            logger.info("%s does not resolve to a typings version; only its dependents are affected.", change)
            roots.append((change.name, None))
            continue
        changed[resolved.id] = resolved
        roots.append(_node(resolved))

    if not roots:
        return Affected(changed_packages=[], dependent_packages=[])

    reverse = get_reverse_dependencies(all_packages)
    visited: Set[Node] = set()
    queue: Deque[Node] = deque()

    def enqueue(node: Node) -> None:
        if node not in visited:
            visited.add(node)
            queue.append(node)

    for root in roots:
        enqueue(root)

    dependents: Dict[PackageId, TypingsVersion] = {}
    while queue:
        node = queue.popleft()
        for package_id, dependent in reverse.get(node, {}).items():
            dependents.setdefault(package_id, dependent.pkg)
            if dependent.runtime:
                enqueue(_node(dependent.pkg))

    for package_id in changed:
        dependents.pop(package_id, None)

    if is_debug_enabled(logger):
        logger.debug(
            "Affected set computed",
            extra=extra_context(
                event="function_exit",
                component="affected",
                action="get_affected_packages",
                outcome="success",
                changed=len(changed),
                dependents=len(dependents),
                visited=len(visited),
            ),
        )
    return Affected(
        changed_packages=_sorted(changed.values()),
        dependent_packages=_sorted(dependents.values()),
    )

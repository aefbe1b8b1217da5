"""Workspace dependency resolution and graph checks.

resolve() narrows each package's declared dependencies down to the ones
that are themselves workspace packages, keyed by target name.
DependencyGraph then verifies the result is acyclic and yields a build
order where dependencies come before their dependents.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping

from .errors import DependencyCycleError, NameCollisionError
from .events import EventHook, null_hook
from .models import Package
from .names import ROOT_TARGET, sanitize


def target_lookup(root: Package, members: Iterable[Package]) -> dict[str, str]:
    """Map each sanitized manifest name to the target that builds it.

    The root package is reachable both through its manifest name and through
    the reserved "root" name.

    Raises:
        NameCollisionError: If two packages share a sanitized name, or a
            member claims the reserved root name.
    """
    lookup: dict[str, str] = {sanitize(root.manifest_name): ROOT_TARGET}
    owners: dict[str, Package] = {
        sanitize(root.manifest_name): root,
        ROOT_TARGET: root,
    }
    for pkg in members:
        if pkg.name in owners:
            other = owners[pkg.name]
            raise NameCollisionError(
                pkg.name,
                (other.manifest_name, other.path),
                (pkg.manifest_name, pkg.path),
            )
        owners[pkg.name] = pkg
        lookup[pkg.name] = pkg.name
    return lookup


def resolve(
    root: Package,
    members: Iterable[Package],
    emit: EventHook = null_hook,
) -> dict[str, set[str]]:
    """Compute the in-workspace dependencies of every package.

    Runtime and development dependencies are both considered. A dependency
    is kept only when its sanitized name belongs to another workspace
    package; registry packages are dropped silently. Every member also
    depends on the root, and the root depends on nothing.

    Returns:
        Map of target name → set of target names it depends on.
    """
    members = list(members)
    lookup = target_lookup(root, members)

    resolved: dict[str, set[str]] = {ROOT_TARGET: set()}
    for pkg in members:
        deps = {ROOT_TARGET}
        for dep_name in pkg.manifest.dependency_names():
            target = lookup.get(sanitize(dep_name))
            if target is not None and target != pkg.name:
                deps.add(target)
        resolved[pkg.name] = deps
        emit("dependencies.resolved", {"name": pkg.name, "depends_on": ordered(deps)})
    return resolved


def ordered(deps: Iterable[str]) -> list[str]:
    """Order a dependency set: root first, then the rest alphabetically."""
    deps = set(deps)
    head = [ROOT_TARGET] if ROOT_TARGET in deps else []
    return head + sorted(deps - {ROOT_TARGET})


_WHITE, _GREY, _BLACK = 0, 1, 2


class DependencyGraph:
    """Directed graph over target names stored as an index arena.

    Nodes are positions in ``names``; ``edges`` holds (dependent, dependency)
    index pairs.
    """

    def __init__(self, names: Iterable[str]) -> None:
        self.names: list[str] = sorted(set(names))
        self.index: dict[str, int] = {n: i for i, n in enumerate(self.names)}
        self.edges: list[tuple[int, int]] = []
        self._adjacency: list[list[int]] = [[] for _ in self.names]

    @classmethod
    def from_map(cls, dependency_map: Mapping[str, Iterable[str]]) -> DependencyGraph:
        """Build a graph from resolve() output.

        Raises:
            KeyError: If a dependency is not itself a key of the map.
        """
        graph = cls(dependency_map)
        for name in graph.names:
            for dep in sorted(dependency_map[name]):
                graph.add_edge(name, dep)
        return graph

    def add_edge(self, dependent: str, dependency: str) -> None:
        src, dst = self.index[dependent], self.index[dependency]
        self.edges.append((src, dst))
        self._adjacency[src].append(dst)

    def dependencies_of(self, name: str) -> list[str]:
        return [self.names[i] for i in self._adjacency[self.index[name]]]

    def build_order(self) -> list[str]:
        """Return names with every dependency before its dependents.

        Uses depth-first search with white/grey/black marking. Reaching a
        grey node means the current path loops back on itself.

        Raises:
            DependencyCycleError: With the offending cycle, e.g. a → b → a.
        """
        color = [_WHITE] * len(self.names)
        path: list[int] = []
        order: list[str] = []

        def visit(node: int) -> None:
            color[node] = _GREY
            path.append(node)
            for nxt in self._adjacency[node]:
                if color[nxt] == _GREY:
                    start = path.index(nxt)
                    cycle = [self.names[i] for i in path[start:]] + [self.names[nxt]]
                    raise DependencyCycleError(cycle)
                if color[nxt] == _WHITE:
                    visit(nxt)
            path.pop()
            color[node] = _BLACK
            order.append(self.names[node])

        for node in range(len(self.names)):
            if color[node] == _WHITE:
                visit(node)
        return order


def check_cycles(
    dependency_map: Mapping[str, Iterable[str]], emit: EventHook = null_hook
) -> list[str]:
    """Fail on circular dependencies; return the build order otherwise."""
    order = DependencyGraph.from_map(dependency_map).build_order()
    emit("graph.order", {"order": order})
    return order

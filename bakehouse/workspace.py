"""Package discovery.

Walks the workspace tree looking for package manifests and keeps the ones
whose directory matches a membership glob. The manifest at the workspace
root is always read and becomes the root package.
"""

from __future__ import annotations

import os
from collections.abc import Iterable
from pathlib import Path

from .errors import IoError
from .events import EventHook, null_hook
from .models import Package
from .names import ROOT_TARGET, sanitize
from .patterns import compile_patterns
from .resolvers import PNPM, WorkspaceResolver

# Never descended into, even when a membership glob would match inside.
PRUNED_DIRS = frozenset({"node_modules"})


def _is_hidden(name: str) -> bool:
    return name.startswith(".")


def _raise_walk_error(exc: OSError) -> None:
    raise IoError(Path(exc.filename or "."), exc.strerror or str(exc)) from exc


def read_root_package(
    workspace_root: Path, resolver: WorkspaceResolver = PNPM
) -> Package:
    """Read the manifest at the workspace root as the root package."""
    manifest = resolver.read_root_manifest(workspace_root / resolver.manifest_file)
    return Package(
        name=ROOT_TARGET,
        manifest_name=manifest.name,
        path=workspace_root,
        manifest=manifest,
    )


def scan(
    workspace_root: Path | str,
    membership_patterns: Iterable[str],
    resolver: WorkspaceResolver = PNPM,
    emit: EventHook = null_hook,
) -> tuple[Package, list[Package]]:
    """Discover the root package and every workspace member.

    Follows symlinks, skips hidden entries and node_modules, and treats a
    directory as a candidate when it directly contains the resolver's
    manifest file. A candidate becomes a member when its path relative to
    the workspace root matches the membership patterns.

    Args:
        workspace_root: Workspace directory, absolute or relative to cwd.
        membership_patterns: Member globs; "!" marks an exclusion.
        resolver: Ecosystem describing manifest names and readers.
        emit: Receives package.found / package.skipped events.

    Returns:
        Tuple of (root package, members sorted by path).

    Raises:
        GlobError: If a membership pattern is invalid.
        ManifestError: If any member manifest cannot be read or parsed.
    """
    root = Path(workspace_root).resolve()
    patterns = list(membership_patterns)
    matcher = compile_patterns(patterns)
    emit("workspace.scan", {"root": root, "patterns": patterns})

    root_package = read_root_package(root, resolver)

    # Keyed by real path so a package reached through a symlink and through
    # its real location is only read once.
    members: dict[str, Package] = {}
    # Real paths of each walked directory and its ancestors
    lineage: dict[str, frozenset[str]] = {}

    for dirpath, dirnames, filenames in os.walk(
        root, followlinks=True, onerror=_raise_walk_error
    ):
        real = os.path.realpath(dirpath)
        ancestors = lineage.get(os.path.dirname(dirpath), frozenset())
        if real in ancestors:
            # Symlink back into its own ancestry
            dirnames[:] = []
            continue
        lineage[dirpath] = ancestors | {real}
        dirnames[:] = sorted(
            d for d in dirnames if not _is_hidden(d) and d not in PRUNED_DIRS
        )

        current = Path(dirpath)
        if current == root or resolver.manifest_file not in filenames:
            continue

        relative = current.relative_to(root).as_posix()
        if not matcher.matches(relative):
            emit("package.skipped", {"path": relative})
            continue
        if real in members:
            continue

        manifest = resolver.read_manifest(current / resolver.manifest_file)
        package = Package(
            name=sanitize(manifest.name),
            manifest_name=manifest.name,
            path=current,
            manifest=manifest,
        )
        members[real] = package
        emit(
            "package.found",
            {"name": package.manifest_name, "version": package.version, "path": relative},
        )

    return root_package, sorted(members.values(), key=lambda p: p.path)

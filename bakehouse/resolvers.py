"""Workspace ecosystems bakehouse understands.

Each ecosystem is described by a WorkspaceResolver record: the file names
that mark packages and membership, the functions that read them, and the
defaults used when generating Dockerfiles. Supporting a new package manager
means adding one record to RESOLVERS.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path

from . import pnpm, uv
from .errors import BakehouseError
from .models import PackageManifest, WorkspaceMembership


@dataclass(frozen=True)
class WorkspaceResolver:
    """Capabilities of one package ecosystem.

    Attributes:
        kind: Short identifier used on the command line ("pnpm", "uv").
        manifest_file: File name whose presence makes a directory a package.
        membership_file: File at the workspace root listing member globs.
        read_manifest: Parses one member manifest file.
        read_root_manifest: Parses the manifest at the workspace root.
        read_membership: Parses the membership file.
        default_runtime: Runtime version used when no manifest states one.
        root_template: Bundled Dockerfile template for the root target.
        package_template: Bundled Dockerfile template for member targets.
    """

    kind: str
    manifest_file: str
    membership_file: str
    read_manifest: Callable[[Path], PackageManifest]
    read_root_manifest: Callable[[Path], PackageManifest]
    read_membership: Callable[[Path], WorkspaceMembership]
    default_runtime: str
    root_template: str
    package_template: str


PNPM = WorkspaceResolver(
    kind="pnpm",
    manifest_file=pnpm.MANIFEST_FILE,
    membership_file=pnpm.MEMBERSHIP_FILE,
    read_manifest=pnpm.load_package_json,
    read_root_manifest=pnpm.load_package_json,
    read_membership=pnpm.load_workspace_config,
    default_runtime="20",
    root_template="node-root.Dockerfile",
    package_template="node-package.Dockerfile",
)

UV = WorkspaceResolver(
    kind="uv",
    manifest_file=uv.MANIFEST_FILE,
    membership_file=uv.MEMBERSHIP_FILE,
    read_manifest=uv.load_manifest,
    read_root_manifest=uv.load_root_manifest,
    read_membership=uv.load_workspace_config,
    default_runtime="3.12",
    root_template="python-root.Dockerfile",
    package_template="python-package.Dockerfile",
)

# Detection order matters: a pnpm repo may also carry a pyproject.toml for
# tooling, but a pnpm-workspace.yaml is unambiguous.
RESOLVERS: dict[str, WorkspaceResolver] = {r.kind: r for r in (PNPM, UV)}


def get_resolver(kind: str) -> WorkspaceResolver:
    """Look up a resolver by name."""
    try:
        return RESOLVERS[kind]
    except KeyError:
        raise BakehouseError(
            f"Unknown ecosystem {kind!r} (expected one of: {', '.join(RESOLVERS)})"
        ) from None


def detect_resolver(workspace_root: Path) -> WorkspaceResolver:
    """Pick the ecosystem whose membership file exists at the root.

    For uv the root pyproject.toml must also declare [tool.uv.workspace].
    """
    for resolver in RESOLVERS.values():
        membership = workspace_root / resolver.membership_file
        if not membership.is_file():
            continue
        if resolver is UV and not uv.declares_workspace(membership):
            continue
        return resolver
    raise BakehouseError(
        f"No workspace found in {workspace_root}: expected "
        + " or ".join(sorted({r.membership_file for r in RESOLVERS.values()}))
    )

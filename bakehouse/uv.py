"""uv workspace reading.

A uv workspace keeps one pyproject.toml per package. The root pyproject.toml
lists member globs under [tool.uv.workspace].members (and optionally
exclude), and may itself be virtual, i.e. have no [project] table.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import tomlkit
from packaging.requirements import InvalidRequirement, Requirement
from packaging.utils import canonicalize_name
from pydantic import BaseModel, ConfigDict, Field, ValidationError
from tomlkit.exceptions import TOMLKitError

from .errors import ManifestParseError, ManifestReadError
from .models import PackageManifest, WorkspaceMembership, describe_errors

MANIFEST_FILE = "pyproject.toml"
MEMBERSHIP_FILE = "pyproject.toml"


class _Project(BaseModel):
    model_config = ConfigDict(extra="ignore")

    name: str
    # dynamic versions are not resolved
    version: str = "0.0.0"
    dependencies: list[str] = Field(default_factory=list)
    optional_dependencies: dict[str, list[str]] = Field(
        default_factory=dict, alias="optional-dependencies"
    )
    requires_python: str | None = Field(default=None, alias="requires-python")


class _UvWorkspace(BaseModel):
    members: list[str] | None = None
    exclude: list[str] = Field(default_factory=list)


class _Uv(BaseModel):
    workspace: _UvWorkspace | None = None


class _Tool(BaseModel):
    uv: _Uv | None = None


class _Pyproject(BaseModel):
    """The subset of pyproject.toml that bakehouse reads."""

    model_config = ConfigDict(extra="ignore")

    project: _Project | None = None
    # PEP 735 groups may hold {include-group = "..."} tables
    dependency_groups: dict[str, list[str | dict[str, Any]]] = Field(
        default_factory=dict, alias="dependency-groups"
    )
    tool: _Tool | None = None

    @property
    def workspace(self) -> _UvWorkspace | None:
        if self.tool is None or self.tool.uv is None:
            return None
        return self.tool.uv.workspace


def load_pyproject(path: Path) -> tomlkit.TOMLDocument:
    """Load and parse a pyproject.toml file."""
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ManifestReadError(path, exc.strerror or str(exc)) from exc
    try:
        return tomlkit.parse(text)
    except TOMLKitError as exc:
        raise ManifestParseError(path, f"invalid TOML: {exc}") from exc


def _load(path: Path) -> _Pyproject:
    doc = load_pyproject(path)
    try:
        return _Pyproject.model_validate(doc.unwrap())
    except ValidationError as exc:
        raise ManifestParseError(path, describe_errors(exc)) from exc


def dep_canonical_name(dep_str: str) -> str:
    """Extract the canonical package name from a PEP 508 dependency string.

    Examples:
        "requests>=2.0" → "requests"
        "My_Package[extra]~=1.0" → "my-package"
    """
    return canonicalize_name(Requirement(dep_str).name)


def _dependency_map(path: Path, dep_strings: list[Any]) -> dict[str, str]:
    """Map canonical name → requirement string, skipping include-group tables."""
    deps: dict[str, str] = {}
    for dep_str in dep_strings:
        if not isinstance(dep_str, str):
            continue
        try:
            deps[dep_canonical_name(dep_str)] = dep_str
        except InvalidRequirement as exc:
            raise ManifestParseError(path, f"bad requirement {dep_str!r}: {exc}") from exc
    return deps


def _manifest(path: Path, doc: _Pyproject, project: _Project) -> PackageManifest:
    dev: list[Any] = []
    for group_deps in project.optional_dependencies.values():
        dev.extend(group_deps)
    for group_deps in doc.dependency_groups.values():
        dev.extend(group_deps)

    return PackageManifest(
        name=canonicalize_name(project.name),
        version=project.version,
        dependencies=_dependency_map(path, project.dependencies),
        dev_dependencies=_dependency_map(path, dev),
        runtime=project.requires_python,
    )


def load_manifest(path: Path) -> PackageManifest:
    """Read a member pyproject.toml into a PackageManifest.

    Gathers dependencies from three locations:
    - [project].dependencies → runtime dependencies
    - [project].optional-dependencies.* → development dependencies
    - [dependency-groups].* → development dependencies

    The name is normalized per PEP 503 so it compares equal to dependency
    names.

    Raises:
        ManifestReadError: If the file cannot be read.
        ManifestParseError: If it is not TOML, has no [project].name, or a
            field has the wrong shape.
    """
    doc = _load(path)
    if doc.project is None:
        raise ManifestParseError(path, "no [project] table")
    return _manifest(path, doc, doc.project)


def load_root_manifest(path: Path) -> PackageManifest:
    """Read the workspace root pyproject.toml.

    A virtual root has no [project] table; it is named after its directory
    and gets version 0.0.0. Dependency groups are still read.
    """
    doc = _load(path)
    project = doc.project or _Project(name=path.parent.name)
    return _manifest(path, doc, project)


def declares_workspace(path: Path) -> bool:
    """True if the pyproject.toml has a [tool.uv.workspace] table."""
    return _load(path).workspace is not None


def load_workspace_config(path: Path) -> WorkspaceMembership:
    """Extract member globs from [tool.uv.workspace].

    Entries of [tool.uv.workspace].exclude become "!" patterns.

    Raises:
        ManifestParseError: If no workspace members are defined.
    """
    workspace = _load(path).workspace
    if workspace is None or workspace.members is None:
        raise ManifestParseError(path, "no [tool.uv.workspace] members defined")
    patterns = list(workspace.members)
    patterns.extend(f"!{e}" for e in workspace.exclude)
    return WorkspaceMembership(patterns=patterns)

"""pnpm workspace reading.

A pnpm workspace keeps one package.json per package and lists its member
globs in pnpm-workspace.yaml at the workspace root.
"""

from __future__ import annotations

import json
from pathlib import Path

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .errors import ManifestParseError, ManifestReadError
from .models import PackageManifest, WorkspaceMembership, describe_errors

MANIFEST_FILE = "package.json"
MEMBERSHIP_FILE = "pnpm-workspace.yaml"


class _Engines(BaseModel):
    node: str | None = None


class _PackageJson(BaseModel):
    """The subset of package.json that bakehouse reads."""

    model_config = ConfigDict(extra="ignore")

    name: str
    version: str
    dependencies: dict[str, str] | None = None
    dev_dependencies: dict[str, str] | None = Field(
        default=None, alias="devDependencies"
    )
    engines: _Engines | None = None


class _PnpmWorkspace(BaseModel):
    model_config = ConfigDict(extra="ignore")

    packages: list[str]


def _read_text(path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ManifestReadError(path, exc.strerror or str(exc)) from exc


def load_package_json(path: Path) -> PackageManifest:
    """Read a package.json into a PackageManifest.

    Raises:
        ManifestReadError: If the file cannot be read.
        ManifestParseError: If it is not JSON or lacks a string "name" or
            "version".
    """
    try:
        data = json.loads(_read_text(path))
    except json.JSONDecodeError as exc:
        raise ManifestParseError(path, f"invalid JSON: {exc}") from exc
    try:
        pkg = _PackageJson.model_validate(data)
    except ValidationError as exc:
        raise ManifestParseError(path, describe_errors(exc)) from exc

    return PackageManifest(
        name=pkg.name,
        version=pkg.version,
        dependencies=pkg.dependencies or {},
        dev_dependencies=pkg.dev_dependencies or {},
        runtime=pkg.engines.node if pkg.engines else None,
    )


def load_workspace_config(path: Path) -> WorkspaceMembership:
    """Read the member globs from pnpm-workspace.yaml.

    Raises:
        ManifestReadError: If the file cannot be read.
        ManifestParseError: If it is not YAML or has no "packages" list.
    """
    try:
        data = yaml.safe_load(_read_text(path))
    except yaml.YAMLError as exc:
        raise ManifestParseError(path, f"invalid YAML: {exc}") from exc
    try:
        workspace = _PnpmWorkspace.model_validate(data)
    except ValidationError as exc:
        raise ManifestParseError(path, describe_errors(exc)) from exc
    return WorkspaceMembership(patterns=workspace.packages)


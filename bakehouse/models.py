"""Data models for bakehouse.

These Pydantic models represent the records that flow through the pipeline:
manifests and membership read from disk, the packages discovered by the
scanner, and the bake file that is finally serialized.
"""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, ValidationError


class PackageManifest(BaseModel):
    """Identity record parsed from one package manifest.

    Attributes:
        name: Manifest name, possibly scoped (e.g. "@sample/api").
        version: Version string, "0.0.0" when the manifest omits it.
        dependencies: Runtime dependencies, name → version range.
        dev_dependencies: Development dependencies, name → version range.
        runtime: Minimum runtime version hint (engines.node, requires-python).
    """

    model_config = ConfigDict(frozen=True)

    name: str
    version: str = "0.0.0"
    dependencies: dict[str, str] = Field(default_factory=dict)
    dev_dependencies: dict[str, str] = Field(default_factory=dict)
    runtime: str | None = None

    def dependency_names(self) -> set[str]:
        """Names of all declared dependencies, runtime and development."""
        return set(self.dependencies) | set(self.dev_dependencies)


class WorkspaceMembership(BaseModel):
    """Ordered glob patterns selecting workspace member directories."""

    model_config = ConfigDict(frozen=True)

    patterns: list[str] = Field(default_factory=list)


class Package(BaseModel):
    """A package discovered in the workspace.

    Attributes:
        name: Target name. Sanitized manifest name, or "root" for the root.
        manifest_name: Name exactly as written in the manifest.
        path: Absolute path to the package directory.
        manifest: The parsed manifest.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    manifest_name: str
    path: Path
    manifest: PackageManifest

    @property
    def version(self) -> str:
        return self.manifest.version


class Target(BaseModel):
    """One build target in the bake file."""

    context: str
    dockerfile: str
    tags: list[str] = Field(default_factory=list)
    depends_on: list[str] = Field(default_factory=list)
    contexts: dict[str, str] | None = None


class Group(BaseModel):
    """A named list of targets built together."""

    targets: list[str] = Field(default_factory=list)


class BakeFile(BaseModel):
    """The complete build-orchestration descriptor."""

    group: dict[str, Group] = Field(default_factory=dict)
    target: dict[str, Target] = Field(default_factory=dict)

    def add_target(self, name: str, target: Target) -> None:
        self.target[name] = target

    def add_group(self, name: str, targets: list[str]) -> None:
        self.group[name] = Group(targets=targets)


def describe_errors(exc: ValidationError) -> str:
    """Flatten a pydantic error into one line."""
    problems = []
    for err in exc.errors():
        loc = ".".join(str(part) for part in err["loc"]) or "<document>"
        problems.append(f"{loc}: {err['msg']}")
    return "; ".join(problems)

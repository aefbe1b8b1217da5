"""Docker Bake descriptor construction and encoding.

Building is split in two halves. plan_bake() is pure: it turns packages and
their resolved dependencies into a BakeFile plus a list of Dockerfiles each
target needs. apply_plan() is the effectful half that writes the Dockerfiles
that do not exist yet.

Two encodings of a BakeFile are supported: JSON (the canonical form, which
round-trips through load_bake_json) and HCL, whose key order and layout are
fixed.
"""

from __future__ import annotations

import json
import os
import re
from collections.abc import Iterable, Mapping
from pathlib import Path
from typing import TYPE_CHECKING

from pydantic import BaseModel, ConfigDict, ValidationError

from .errors import IoError, ParseError, UnsupportedFormatError
from .events import EventHook, null_hook
from .graph import ordered
from .models import BakeFile, Package, Target
from .names import ROOT_TARGET, sanitize
from .versions import lowest_version

if TYPE_CHECKING:
    from .dockerfile import DockerfileProvisioner

DOCKERFILE_NAME = "Dockerfile.bake"
DEFAULT_GROUP = "default"
FORMATS = ("hcl", "json")

# Header written into generated Dockerfiles, read back to spot stale ones.
RUNTIME_MARKER = re.compile(r"^# bakehouse: runtime=(\S+)")


def context_path(package_path: Path | str, workspace_root: Path | str) -> str:
    """Return the package directory relative to the workspace root.

    The result is POSIX style with no leading "./", and "." for the root
    itself. Relative inputs are resolved against the current directory
    first, so the answer does not depend on how the paths were spelled.
    """
    relative = os.path.relpath(
        os.path.abspath(package_path), os.path.abspath(workspace_root)
    )
    return Path(relative).as_posix()


def tag_for(package: Package) -> str:
    return f"{sanitize(package.manifest_name)}:{package.version}"


class DockerfileRequest(BaseModel):
    """A Dockerfile a target needs, with everything needed to render it.

    Attributes:
        target: Target name the Dockerfile builds.
        package: The package being built.
        path: Absolute path the Dockerfile lives at.
        context: Build context relative to the workspace root.
        runtime: Concrete runtime version for the base image.
        dependencies: Ordered target names this target depends on.
    """

    model_config = ConfigDict(frozen=True)

    target: str
    package: Package
    path: Path
    context: str
    runtime: str
    dependencies: list[str]

    @property
    def is_root(self) -> bool:
        return self.target == ROOT_TARGET


class BakePlan(BaseModel):
    """The pure result of planning: the descriptor and the Dockerfiles it needs."""

    bake_file: BakeFile
    dockerfiles: list[DockerfileRequest]


def _runtime_for(package: Package, root: Package, default_runtime: str) -> str:
    for hint in (package.manifest.runtime, root.manifest.runtime):
        if hint:
            version = lowest_version(hint)
            if version:
                return version
    return default_runtime


def build_bake_file(
    root: Package,
    members: Iterable[Package],
    dependency_map: Mapping[str, Iterable[str]],
    *,
    dockerfile: str = DOCKERFILE_NAME,
    include_root: bool = False,
) -> BakeFile:
    """Turn packages and their resolved dependencies into a BakeFile.

    The root target builds the whole workspace from ".". Each member target
    builds from its own directory, depends on the root first and then on its
    workspace dependencies in alphabetical order, and receives the root
    build as a named context so its Dockerfile can say ``FROM root``.

    Args:
        root: The workspace root package.
        members: Every member package.
        dependency_map: Output of graph.resolve().
        dockerfile: Dockerfile name used for every target.
        include_root: List the root target in the default group too.
    """
    members = sorted(members, key=lambda p: p.name)
    bake = BakeFile()
    bake.add_target(
        ROOT_TARGET,
        Target(context=".", dockerfile=dockerfile, tags=[tag_for(root)]),
    )

    for pkg in members:
        context = context_path(pkg.path, root.path)
        contexts = (
            {ROOT_TARGET: f"target:{ROOT_TARGET}"} if context != "." else None
        )
        bake.add_target(
            pkg.name,
            Target(
                context=context,
                dockerfile=dockerfile,
                tags=[tag_for(pkg)],
                depends_on=ordered(dependency_map.get(pkg.name, {ROOT_TARGET})),
                contexts=contexts,
            ),
        )

    group = [pkg.name for pkg in members]
    if include_root:
        group.insert(0, ROOT_TARGET)
    bake.add_group(DEFAULT_GROUP, group)
    return bake


def plan_bake(
    root: Package,
    members: Iterable[Package],
    dependency_map: Mapping[str, Iterable[str]],
    *,
    default_runtime: str,
    dockerfile: str = DOCKERFILE_NAME,
    include_root: bool = False,
) -> BakePlan:
    """Plan the bake file and the Dockerfiles it needs, without touching disk.

    Args:
        default_runtime: Runtime version when neither the package nor the
            root manifest states one.

    See build_bake_file() for the remaining arguments.
    """
    members = list(members)
    bake = build_bake_file(
        root, members, dependency_map, dockerfile=dockerfile, include_root=include_root
    )
    packages = {ROOT_TARGET: root} | {pkg.name: pkg for pkg in members}

    requests = []
    for name, target in bake.target.items():
        pkg = packages[name]
        requests.append(
            DockerfileRequest(
                target=name,
                package=pkg,
                path=pkg.path / target.dockerfile,
                context=target.context,
                runtime=_runtime_for(pkg, root, default_runtime),
                dependencies=target.depends_on,
            )
        )
    return BakePlan(bake_file=bake, dockerfiles=requests)


def _recorded_runtime(path: Path) -> str | None:
    try:
        with path.open(encoding="utf-8") as fh:
            first = fh.readline()
    except OSError as exc:
        raise IoError(path, exc.strerror or str(exc)) from exc
    match = RUNTIME_MARKER.match(first)
    return match.group(1) if match else None


def apply_plan(
    plan: BakePlan,
    provisioner: DockerfileProvisioner,
    emit: EventHook = null_hook,
) -> list[Path]:
    """Write every planned Dockerfile that does not exist yet.

    Existing Dockerfiles are never modified. When one was generated for a
    different runtime version than the manifests now imply, a
    dockerfile.stale event is emitted and the file is still kept.

    Returns:
        Paths of the Dockerfiles written.

    Raises:
        IoError: If a Dockerfile cannot be read or written.
    """
    written: list[Path] = []
    for request in plan.dockerfiles:
        if request.path.exists():
            recorded = _recorded_runtime(request.path)
            if recorded is not None and recorded != request.runtime:
                emit(
                    "dockerfile.stale",
                    {
                        "target": request.target,
                        "path": request.path,
                        "recorded": recorded,
                        "runtime": request.runtime,
                    },
                )
            else:
                emit("dockerfile.reused", {"target": request.target, "path": request.path})
            continue

        content = provisioner.generate(request)
        try:
            request.path.write_text(content, encoding="utf-8")
        except OSError as exc:
            raise IoError(request.path, exc.strerror or str(exc)) from exc
        written.append(request.path)
        emit("dockerfile.generated", {"target": request.target, "path": request.path})
    return written


def check_format(fmt: str) -> str:
    """Validate an output format name.

    Raises:
        UnsupportedFormatError: If fmt is not "hcl" or "json".
    """
    if fmt not in FORMATS:
        raise UnsupportedFormatError(fmt, FORMATS)
    return fmt


def to_json(bake: BakeFile) -> str:
    """Encode as docker-bake JSON. Absent contexts are left out."""
    return json.dumps(bake.model_dump(exclude_none=True), indent=2) + "\n"


def load_bake_json(text: str, source: Path | str = "<string>") -> BakeFile:
    """Parse docker-bake JSON back into a BakeFile.

    Raises:
        ParseError: If the text is not a valid bake document.
    """
    try:
        return BakeFile.model_validate_json(text)
    except ValidationError as exc:
        raise ParseError(Path(source), f"invalid bake file: {exc}") from exc


_IDENTIFIER = re.compile(r"[A-Za-z_][A-Za-z0-9_-]*\Z")


def _hcl_string(value: str) -> str:
    escaped = (
        value.replace("\\", "\\\\")
        .replace('"', '\\"')
        .replace("\n", "\\n")
        .replace("${", "$${")
        .replace("%{", "%%{")
    )
    return f'"{escaped}"'


def _hcl_list(values: Iterable[str]) -> str:
    return "[" + ", ".join(_hcl_string(v) for v in values) + "]"


def _hcl_key(key: str) -> str:
    return key if _IDENTIFIER.match(key) else _hcl_string(key)


def to_hcl(bake: BakeFile) -> str:
    """Encode as docker-bake HCL.

    Groups come first, then targets with the root target leading. Inside a
    target the keys are always emitted as context, dockerfile, tags,
    depends_on (skipped when empty) and contexts (skipped when absent)::

        target "api" {
          context = "apps/api"
          dockerfile = "Dockerfile.bake"
          tags = ["api:1.0.0"]
          depends_on = ["root", "logger"]
          contexts = { root = "target:root" }
        }
    """
    blocks: list[str] = []
    for name, group in bake.group.items():
        blocks.append(
            f"group {_hcl_string(name)} {{\n"
            f"  targets = {_hcl_list(group.targets)}\n"
            "}\n"
        )

    names = sorted(bake.target, key=lambda n: (n != ROOT_TARGET, n))
    for name in names:
        target = bake.target[name]
        lines = [
            f"target {_hcl_string(name)} {{",
            f"  context = {_hcl_string(target.context)}",
            f"  dockerfile = {_hcl_string(target.dockerfile)}",
            f"  tags = {_hcl_list(target.tags)}",
        ]
        if target.depends_on:
            lines.append(f"  depends_on = {_hcl_list(target.depends_on)}")
        if target.contexts:
            pairs = ", ".join(
                f"{_hcl_key(k)} = {_hcl_string(v)}" for k, v in target.contexts.items()
            )
            lines.append(f"  contexts = {{ {pairs} }}")
        lines.append("}\n")
        blocks.append("\n".join(lines))

    return "\n".join(blocks)


def encode(bake: BakeFile, fmt: str) -> str:
    """Encode a BakeFile in the named format."""
    if check_format(fmt) == "json":
        return to_json(bake)
    return to_hcl(bake)

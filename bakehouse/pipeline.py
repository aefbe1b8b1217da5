"""Bake pipeline: discover → resolve → check → plan → provision → write.

This module wires the pieces together:
1. Load .bakehouse and validate the requested output format
2. Pick the workspace ecosystem and read its member globs
3. Discover the root package and every member
4. Resolve in-workspace dependencies and reject cycles
5. Plan the bake file and the Dockerfiles it needs
6. Write missing Dockerfiles, then the bake file itself

Nothing is written before step 6, so any discovery, parse, glob, format or
cycle error leaves the workspace untouched. Step 6 is not atomic.
"""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, Field

from .bake import BakeFile, apply_plan, check_format, encode, plan_bake
from .config import load_config
from .dockerfile import DockerfileProvisioner
from .errors import IoError
from .events import EventHook, null_hook
from .graph import check_cycles, resolve
from .resolvers import detect_resolver, get_resolver
from .workspace import scan


class BakeResult(BaseModel):
    """Outcome of one pipeline run.

    Attributes:
        bake_file: The descriptor that was built.
        content: The encoded descriptor.
        output_path: Where it was written, or None for a dry run.
        dockerfiles: Dockerfiles generated during this run.
        build_order: Target names, dependencies first.
    """

    bake_file: BakeFile
    content: str
    output_path: Path | None = None
    dockerfiles: list[Path] = Field(default_factory=list)
    build_order: list[str] = Field(default_factory=list)


def run_bake(
    workspace: Path | str = ".",
    *,
    output: str | None = None,
    fmt: str | None = None,
    ecosystem: str | None = None,
    include_root: bool | None = None,
    dry_run: bool = False,
    emit: EventHook = null_hook,
) -> BakeResult:
    """Generate the bake file for a workspace.

    Arguments left as None fall back to .bakehouse, then to defaults.

    Args:
        workspace: Workspace root, absolute or relative to cwd.
        output: Output path, relative to the workspace root.
        fmt: "hcl" or "json".
        ecosystem: "pnpm" or "uv"; detected from the root when omitted.
        include_root: Put the root target in the default group.
        dry_run: Build and encode only; write nothing.
        emit: Receives progress events.

    Raises:
        BakehouseError: Any failure; see bakehouse.errors.
    """
    root = Path(workspace).resolve()
    config = load_config(root)

    fmt = check_format(fmt or config.output_format)
    kind = ecosystem or config.ecosystem
    resolver = get_resolver(kind) if kind else detect_resolver(root)
    if include_root is None:
        include_root = config.include_root

    membership = resolver.read_membership(root / resolver.membership_file)
    root_package, members = scan(root, membership.patterns, resolver, emit)

    dependency_map = resolve(root_package, members, emit)
    order = check_cycles(dependency_map, emit)

    plan = plan_bake(
        root_package,
        members,
        dependency_map,
        default_runtime=resolver.default_runtime,
        dockerfile=config.dockerfile,
        include_root=include_root,
    )
    content = encode(plan.bake_file, fmt)
    if dry_run:
        return BakeResult(bake_file=plan.bake_file, content=content, build_order=order)

    provisioner = DockerfileProvisioner.for_workspace(resolver, root, config)
    written = apply_plan(plan, provisioner, emit)

    output_path = root / (output or config.output or f"docker-bake.{fmt}")
    try:
        output_path.write_text(content, encoding="utf-8")
    except OSError as exc:
        raise IoError(output_path, exc.strerror or str(exc)) from exc
    emit("bake.written", {"path": output_path, "format": fmt})

    return BakeResult(
        bake_file=plan.bake_file,
        content=content,
        output_path=output_path,
        dockerfiles=written,
        build_order=order,
    )

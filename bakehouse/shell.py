"""Console output helpers.

step() prints phase headers and fatal() reports unrecoverable errors.
ConsoleHook renders pipeline events in the same style, so the core
stays free of print calls.
"""

from __future__ import annotations

import sys
from collections.abc import Mapping
from typing import NoReturn

# Events that open a new phase in the output
_STEPS = {
    "workspace.scan": "Discovering workspace packages",
    "dependencies.resolved": "Resolving dependencies",
    "graph.order": "Checking dependency graph",
    "dockerfile.generated": "Provisioning Dockerfiles",
    "dockerfile.reused": "Provisioning Dockerfiles",
    "dockerfile.stale": "Provisioning Dockerfiles",
    "bake.written": "Writing bake file",
}


def step(msg: str) -> None:
    """Print a visually distinct step header.

    Used to separate major phases of the pipeline in terminal output.
    """
    print(f"\n{'─' * 60}\n{msg}\n{'─' * 60}")


def fatal(msg: str) -> NoReturn:
    """Print an error message and exit with code 1.

    Use for unrecoverable errors that should halt the pipeline.
    """
    print(f"ERROR: {msg}", file=sys.stderr)
    sys.exit(1)


def _describe(event: str, fields: Mapping[str, object]) -> str | None:
    if event == "workspace.scan":
        return f"  {fields['root']} ({', '.join(map(str, fields['patterns']))})"
    if event == "package.found":
        return f"  {fields['name']} {fields['version']} ({fields['path']})"
    if event == "dependencies.resolved":
        return f"  {fields['name']} → [{', '.join(fields['depends_on'])}]"
    if event == "graph.order":
        return f"  build order: {' → '.join(fields['order'])}"
    if event == "dockerfile.generated":
        return f"  {fields['target']}: generated {fields['path']}"
    if event == "dockerfile.reused":
        return f"  {fields['target']}: using existing {fields['path']}"
    if event == "dockerfile.stale":
        return (
            f"  Warning: {fields['path']} was generated for runtime "
            f"{fields['recorded']}, manifests now ask for {fields['runtime']}"
        )
    if event == "bake.written":
        return f"  ✓ Wrote {fields['format']} to {fields['path']}"
    return None


class ConsoleHook:
    """Event hook that prints progress the way the release tooling does.

    Skipped packages are only shown with verbose=True.
    """

    def __init__(self, verbose: bool = False) -> None:
        self.verbose = verbose
        self._phase: str | None = None

    def __call__(self, event: str, fields: Mapping[str, object]) -> None:
        if event == "package.skipped":
            if self.verbose:
                print(f"  skipping {fields['path']} (no matching glob)")
            return
        phase = _STEPS.get(event)
        if phase is not None and phase != self._phase:
            self._phase = phase
            step(phase)
        line = _describe(event, fields)
        if line is not None:
            print(line)

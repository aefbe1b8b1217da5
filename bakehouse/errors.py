"""Exception hierarchy for bakehouse.

Library code raises these; only the CLI turns them into an exit status.
"""

from __future__ import annotations

from pathlib import Path


class BakehouseError(Exception):
    """Base class for every failure bakehouse reports."""


class IoError(BakehouseError):
    """A file could not be read or written."""

    def __init__(self, path: Path, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"{path}: {reason}")


class ParseError(BakehouseError):
    """File content does not have the expected shape."""

    def __init__(self, path: Path, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"{path}: {reason}")


class ManifestError(BakehouseError):
    """A manifest or membership file could not be loaded."""


class ManifestReadError(ManifestError, IoError):
    pass


class ManifestParseError(ManifestError, ParseError):
    pass


class ConfigError(ParseError):
    """The .bakehouse config file is malformed."""


class GlobError(BakehouseError):
    """A membership pattern is not a valid glob."""

    def __init__(self, pattern: str, reason: str) -> None:
        self.pattern = pattern
        super().__init__(f"Invalid glob {pattern!r}: {reason}")


class UnsupportedFormatError(BakehouseError):
    """The requested output format is neither hcl nor json."""

    def __init__(self, fmt: str, supported: tuple[str, ...]) -> None:
        self.format = fmt
        super().__init__(
            f"Unsupported format: {fmt!r} (expected one of: {', '.join(supported)})"
        )


class NameCollisionError(BakehouseError):
    """Two packages sanitize to the same target name."""

    def __init__(
        self, target: str, first: tuple[str, Path], second: tuple[str, Path]
    ) -> None:
        self.target = target
        super().__init__(
            f"Target name {target!r} is claimed by both "
            f"{first[0]} ({first[1]}) and {second[0]} ({second[1]})"
        )


class DependencyCycleError(BakehouseError):
    """The workspace dependency graph is not acyclic."""

    def __init__(self, cycle: list[str]) -> None:
        self.cycle = cycle
        super().__init__("Dependency cycle detected: " + " -> ".join(cycle))

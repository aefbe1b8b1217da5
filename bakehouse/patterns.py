"""Workspace membership glob matching.

Patterns are gitignore-style globs (pathspec's "gitwildmatch") matched
against POSIX paths relative to the workspace root. A leading "!" turns a
pattern into an exclusion.

Membership globs select a directory, not its contents: unless a pattern
uses "**" it only matches paths with as many segments as it has, so
"apps/*" selects "apps/api" but not "apps/api/nested". Template globs use
plain gitwildmatch semantics, where "apps/*" covers everything below apps/.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

from pathspec import PathSpec

from .errors import GlobError


def _check(raw: str, pattern: str) -> None:
    """Reject globs gitwildmatch would silently read as literals."""
    if not pattern:
        raise GlobError(raw, "empty pattern")
    start = pattern.find("[")
    while start != -1:
        i = start + 1
        if pattern[i : i + 1] in ("!", "^"):
            i += 1
        # "]" right after the opening bracket is part of the class
        if pattern[i : i + 1] == "]":
            i += 1
        end = pattern.find("]", i)
        if end == -1:
            raise GlobError(raw, f"unclosed '[' at offset {start}")
        start = pattern.find("[", end + 1)


def _compile(raw: str, pattern: str) -> PathSpec:
    _check(raw, pattern)
    try:
        return PathSpec.from_lines("gitwildmatch", [pattern])
    except ValueError as exc:
        raise GlobError(raw, str(exc)) from exc


@dataclass(frozen=True)
class _Glob:
    pattern: str
    spec: PathSpec
    tail: PathSpec | None

    @classmethod
    def compile(cls, raw: str, pattern: str) -> _Glob:
        spec = _compile(raw, pattern)
        last = pattern.rsplit("/", 1)[-1]
        tail = None if last == "**" else _compile(raw, last)
        return cls(pattern=pattern, spec=spec, tail=tail)

    def selects(self, relative_path: str) -> bool:
        if not self.spec.match_file(relative_path):
            return False
        if "**" not in self.pattern:
            return self.pattern.count("/") == relative_path.count("/")
        # gitwildmatch also accepts anything below a matched directory
        return self.tail is None or bool(
            self.tail.match_file(relative_path.rsplit("/", 1)[-1])
        )


@dataclass(frozen=True)
class MembershipMatcher:
    """Compiled include and exclude patterns."""

    include: tuple[_Glob, ...]
    exclude: tuple[_Glob, ...]

    def matches(self, relative_path: str) -> bool:
        """True if the path matches an include and no exclude pattern."""
        if not any(g.selects(relative_path) for g in self.include):
            return False
        return not any(g.selects(relative_path) for g in self.exclude)


def _normalize(raw: str) -> tuple[bool, str]:
    negated = raw.startswith("!")
    pattern = raw[1:] if negated else raw
    return negated, pattern.removeprefix("./").rstrip("/")


def compile_patterns(patterns: Iterable[str]) -> MembershipMatcher:
    """Compile membership globs, splitting off "!" exclusions.

    A trailing "/" and a leading "./" are ignored so "./apps/*/" and
    "apps/*" select the same directories.

    Raises:
        GlobError: If a pattern is empty or malformed.
    """
    include: list[_Glob] = []
    exclude: list[_Glob] = []
    for raw in patterns:
        negated, pattern = _normalize(raw)
        (exclude if negated else include).append(_Glob.compile(raw, pattern))
    return MembershipMatcher(include=tuple(include), exclude=tuple(exclude))


def first_match(patterns: Iterable[str], relative_path: str) -> str | None:
    """Return the first template glob that covers relative_path, if any.

    Unlike membership globs, "*" here also covers nested directories.
    """
    for raw in patterns:
        _, pattern = _normalize(raw)
        if _compile(raw, pattern).match_file(relative_path):
            return raw
    return None

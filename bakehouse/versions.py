"""Runtime version hints.

Manifests state the runtime they need as a range (engines.node = ">=18.17",
requires-python = ">=3.11,<4"). Generated Dockerfiles need one concrete
version to pick a base image, so the lowest bound mentioned is used.
"""

from __future__ import annotations

import re

import semver
from packaging.specifiers import InvalidSpecifier, SpecifierSet
from packaging.version import InvalidVersion, Version

# PEP 440 operators that put a floor under the version
_LOWER_BOUND_OPS = frozenset({">=", ">", "==", "~=", "==="})
# npm comparators that only cap the version
_UPPER_BOUND_PREFIXES = ("<", "!=")
_NPM_OPERATOR = re.compile(r"^(?:>=|<=|>|<|=|\^|~|v)+")
_NUMERIC = re.compile(r"\d+(?:\.\d+){0,2}")


def parse_version(version_str: str) -> semver.Version:
    """Parse a version string into a semver.Version object.

    Handles incomplete versions by padding with zeros:
    - "1" → "1.0.0"
    - "1.2" → "1.2.0"
    - "1.2.3" → "1.2.3"

    Only the first 3 components are used (major.minor.patch).
    """
    parts = version_str.split(".")
    while len(parts) < 3:
        parts.append("0")
    return semver.Version.parse(".".join(parts[:3]))


def _pep440_bounds(spec: str) -> list[str] | None:
    """Lower bounds of a PEP 440 specifier set, or None if spec is not one."""
    try:
        specifiers = SpecifierSet(spec)
    except InvalidSpecifier:
        return None
    bounds = []
    for specifier in specifiers:
        if specifier.operator not in _LOWER_BOUND_OPS:
            continue
        try:
            release = Version(specifier.version.removesuffix(".*")).release
        except InvalidVersion:
            continue
        bounds.append(".".join(str(part) for part in release[:3]))
    return bounds


def _npm_bounds(spec: str) -> list[str]:
    """Lower bounds of an npm range such as "^20.1.0-rc.1 || >=22 <23"."""
    bounds = []
    for token in re.split(r"\|\||[\s,]+", spec):
        if not token or token == "-" or token.startswith(_UPPER_BOUND_PREFIXES):
            continue
        # drop the operator, then any prerelease or build suffix
        operand = _NPM_OPERATOR.sub("", token)
        operand = re.split(r"[-+]", operand, maxsplit=1)[0]
        match = _NUMERIC.match(operand)
        if match:
            bounds.append(match.group(0))
    return bounds


def lowest_version(spec: str) -> str | None:
    """Return the lowest concrete version a range allows, or None.

    PEP 440 specifiers (requires-python) are read with packaging; anything
    else is treated as an npm range. Precision is kept as written:
    ">=18" → "18", ">=3.11,<4" → "3.11", "^20.10.0 || >=22" → "20.10.0".
    Upper bounds are ignored, and a bare "*" yields None.
    """
    spec = spec.strip()
    if not spec:
        return None
    bounds = _pep440_bounds(spec)
    if bounds is None:
        bounds = _npm_bounds(spec)
    if not bounds:
        return None
    return min(bounds, key=parse_version)

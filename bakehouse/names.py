"""Target-name sanitization.

Bake target names and image tags cannot contain "@" or "/", so scoped
manifest names like "@sample/api" are flattened to "sample-api".
"""

from __future__ import annotations

# Reserved target name for the workspace root package.
ROOT_TARGET = "root"


def sanitize(name: str) -> str:
    """Turn a manifest name into a bake target identifier.

    Removes every "@", replaces every "/" with "-", then lowercases.
    The result is stable under a second application.

    Examples:
        "@sample/api" → "sample-api"
        "My/Pkg" → "my-pkg"
    """
    return name.replace("@", "").replace("/", "-").lower()

"""Shared test fixtures."""

from __future__ import annotations

import json
from collections.abc import Callable
from pathlib import Path

import pytest

WritePackage = Callable[..., Path]


@pytest.fixture
def write_package(tmp_path: Path) -> WritePackage:
    """Return a helper that writes a package.json under tmp_path."""

    def _write(
        subdir: str,
        name: str,
        version: str = "1.0.0",
        deps: dict[str, str] | None = None,
        dev_deps: dict[str, str] | None = None,
        node: str | None = None,
    ) -> Path:
        pkg_dir = tmp_path / subdir
        pkg_dir.mkdir(parents=True, exist_ok=True)
        data: dict[str, object] = {"name": name, "version": version}
        if deps:
            data["dependencies"] = deps
        if dev_deps:
            data["devDependencies"] = dev_deps
        if node:
            data["engines"] = {"node": node}
        (pkg_dir / "package.json").write_text(json.dumps(data, indent=2) + "\n")
        return pkg_dir

    return _write


@pytest.fixture
def write_pnpm_workspace(tmp_path: Path) -> Callable[[list[str]], Path]:
    """Return a helper that writes pnpm-workspace.yaml with the given globs."""

    def _write(packages: list[str]) -> Path:
        lines = ["packages:"] + [f"  - '{p}'" for p in packages]
        path = tmp_path / "pnpm-workspace.yaml"
        path.write_text("\n".join(lines) + "\n")
        return path

    return _write


@pytest.fixture
def sample_workspace(
    tmp_path: Path,
    write_package: WritePackage,
    write_pnpm_workspace: Callable[[list[str]], Path],
) -> Path:
    """A pnpm monorepo with two apps and three shared packages.

    apps/api   (@sample/api)   → @sample/logger, @sample/config, winston
    apps/admin (@sample/admin) → @sample/types, react
    packages/logger (@sample/logger) → winston
    packages/config (@sample/config) → dev: @sample/types
    packages/types  (@sample/types)
    """
    write_pnpm_workspace(["apps/*", "packages/*"])
    write_package(".", "sample-monorepo", node=">=18.17")
    write_package(
        "apps/api",
        "@sample/api",
        deps={
            "@sample/logger": "workspace:*",
            "@sample/config": "workspace:*",
            "winston": "^3.11.0",
        },
    )
    write_package(
        "apps/admin",
        "@sample/admin",
        deps={"@sample/types": "workspace:*", "react": "^18.2.0"},
    )
    write_package("packages/logger", "@sample/logger", deps={"winston": "^3.11.0"})
    write_package(
        "packages/config",
        "@sample/config",
        version="0.2.0",
        dev_deps={"@sample/types": "workspace:^"},
    )
    write_package("packages/types", "@sample/types")
    return tmp_path


@pytest.fixture
def uv_workspace(tmp_path: Path) -> Path:
    """A uv workspace with a virtual root and two members."""
    (tmp_path / "pyproject.toml").write_text(
        """\
[tool.uv.workspace]
members = ["packages/*"]
exclude = ["packages/scratch"]
"""
    )
    for name, body in {
        "core": 'dependencies = ["pydantic>=2.0"]',
        "app": 'dependencies = ["Core>=0.1", "click>=8.0"]\n'
        'requires-python = ">=3.11"',
        "scratch": "",
    }.items():
        pkg_dir = tmp_path / "packages" / name
        pkg_dir.mkdir(parents=True)
        (pkg_dir / "pyproject.toml").write_text(
            f'[project]\nname = "{name}"\nversion = "0.1.0"\n{body}\n'
        )
    return tmp_path

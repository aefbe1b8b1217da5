"""Tests for bakehouse.pipeline."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from bakehouse.bake import load_bake_json
from bakehouse.errors import (
    DependencyCycleError,
    GlobError,
    NameCollisionError,
    UnsupportedFormatError,
)
from bakehouse.pipeline import run_bake


def _written_files(root: Path) -> set[Path]:
    return {p for p in root.rglob("*") if p.is_file()}


class TestRunBake:
    """End-to-end runs against the sample pnpm workspace."""

    def test_json_scenario(self, sample_workspace: Path) -> None:
        result = run_bake(sample_workspace, fmt="json")

        assert result.output_path == sample_workspace.resolve() / "docker-bake.json"
        data = json.loads(result.output_path.read_text())

        api = data["target"]["sample-api"]
        assert api["depends_on"] == ["root", "sample-config", "sample-logger"]
        assert "winston" not in api["depends_on"]
        assert api["context"] == "apps/api"
        assert api["contexts"] == {"root": "target:root"}
        assert data["target"]["sample-config"]["depends_on"] == ["root", "sample-types"]
        assert data["target"]["root"]["tags"] == ["sample-monorepo:1.0.0"]
        assert sorted(data["group"]["default"]["targets"]) == [
            "sample-admin",
            "sample-api",
            "sample-config",
            "sample-logger",
            "sample-types",
        ]

    def test_every_member_depends_on_root(self, sample_workspace: Path) -> None:
        result = run_bake(sample_workspace, fmt="json")
        for name, target in result.bake_file.target.items():
            if name != "root":
                assert target.depends_on[0] == "root"

    def test_default_hcl_output(self, sample_workspace: Path) -> None:
        result = run_bake(sample_workspace)

        assert result.output_path == sample_workspace.resolve() / "docker-bake.hcl"
        content = result.output_path.read_text()
        assert content.startswith('group "default" {\n')
        assert 'target "sample-api" {' in content

    def test_custom_output_path(self, sample_workspace: Path) -> None:
        (sample_workspace / "build").mkdir()
        result = run_bake(sample_workspace, output="build/bake.json", fmt="json")
        assert result.output_path == sample_workspace.resolve() / "build" / "bake.json"
        assert load_bake_json(result.output_path.read_text()) == result.bake_file

    def test_generates_dockerfiles(self, sample_workspace: Path) -> None:
        result = run_bake(sample_workspace)

        expected = {
            sample_workspace.resolve() / rel / "Dockerfile.bake"
            for rel in (
                ".",
                "apps/api",
                "apps/admin",
                "packages/logger",
                "packages/config",
                "packages/types",
            )
        }
        assert set(result.dockerfiles) == expected
        api = (sample_workspace / "apps" / "api" / "Dockerfile.bake").read_text()
        # engines.node ">=18.17" on the root applies to every target
        assert api.startswith("# bakehouse: runtime=18.17\n")
        assert "FROM node:18.17-alpine" in api

    def test_existing_dockerfile_preserved(self, sample_workspace: Path) -> None:
        custom = sample_workspace / "apps" / "api" / "Dockerfile.bake"
        custom.write_text("FROM mine\n")

        result = run_bake(sample_workspace)

        assert custom.read_text() == "FROM mine\n"
        assert custom.resolve() not in result.dockerfiles

    def test_build_order(self, sample_workspace: Path) -> None:
        order = run_bake(sample_workspace, dry_run=True).build_order
        assert order[0] == "root"
        assert order.index("sample-logger") < order.index("sample-api")
        assert order.index("sample-types") < order.index("sample-config")

    def test_dry_run_writes_nothing(self, sample_workspace: Path) -> None:
        before = _written_files(sample_workspace)

        result = run_bake(sample_workspace, fmt="json", dry_run=True)

        assert result.output_path is None
        assert json.loads(result.content)["target"]["root"]["context"] == "."
        assert _written_files(sample_workspace) == before

    def test_unsupported_format_writes_nothing(self, sample_workspace: Path) -> None:
        before = _written_files(sample_workspace)

        with pytest.raises(UnsupportedFormatError):
            run_bake(sample_workspace, fmt="yaml")

        assert _written_files(sample_workspace) == before

    def test_only_root_package(
        self, tmp_path: Path, write_package, write_pnpm_workspace
    ) -> None:
        write_pnpm_workspace(["apps/*"])
        write_package(".", "lonely", version="3.0.0")

        result = run_bake(tmp_path, fmt="json")

        data = json.loads(result.content)
        assert list(data["target"]) == ["root"]
        assert data["group"]["default"]["targets"] == []

    def test_relative_workspace_from_other_cwd(
        self, sample_workspace: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        elsewhere = sample_workspace.parent / "elsewhere"
        elsewhere.mkdir()
        monkeypatch.chdir(elsewhere)

        result = run_bake(Path("..") / sample_workspace.name, fmt="json", dry_run=True)

        assert result.bake_file.target["sample-logger"].context == "packages/logger"

    def test_cycle_writes_nothing(
        self, tmp_path: Path, write_package, write_pnpm_workspace
    ) -> None:
        write_pnpm_workspace(["packages/*"])
        write_package(".", "mono")
        write_package("packages/a", "a", deps={"b": "workspace:*"})
        write_package("packages/b", "b", dev_deps={"a": "workspace:*"})
        before = _written_files(tmp_path)

        with pytest.raises(DependencyCycleError, match="a -> b -> a"):
            run_bake(tmp_path)

        assert _written_files(tmp_path) == before

    def test_name_collision(self, tmp_path: Path, write_package, write_pnpm_workspace) -> None:
        write_pnpm_workspace(["packages/*"])
        write_package(".", "mono")
        write_package("packages/one", "@x/dup")
        write_package("packages/two", "x/dup")

        with pytest.raises(NameCollisionError):
            run_bake(tmp_path)

    def test_invalid_glob(self, tmp_path: Path, write_package, write_pnpm_workspace) -> None:
        write_pnpm_workspace(["packages/[x"])
        write_package(".", "mono")
        with pytest.raises(GlobError):
            run_bake(tmp_path)


class TestRunBakeConfig:
    def test_config_format_and_include_root(self, sample_workspace: Path) -> None:
        (sample_workspace / ".bakehouse").write_text(
            "output_format: json\ninclude_root: true\n"
        )

        result = run_bake(sample_workspace, dry_run=True)

        data = json.loads(result.content)
        assert data["group"]["default"]["targets"][0] == "root"

    def test_flags_override_config(self, sample_workspace: Path) -> None:
        (sample_workspace / ".bakehouse").write_text(
            "output_format: json\ninclude_root: true\n"
        )

        result = run_bake(sample_workspace, fmt="hcl", include_root=False, dry_run=True)

        assert result.content.startswith("group")
        assert "root" not in result.bake_file.group["default"].targets

    def test_unsupported_format_in_config(self, sample_workspace: Path) -> None:
        (sample_workspace / ".bakehouse").write_text("output_format: yaml\n")
        with pytest.raises(UnsupportedFormatError):
            run_bake(sample_workspace)
        assert not (sample_workspace / "docker-bake.yaml").exists()

    def test_template_override(self, sample_workspace: Path) -> None:
        (sample_workspace / "app.Dockerfile").write_text("FROM app:__RUNTIME_VERSION__\n")
        (sample_workspace / ".bakehouse").write_text(
            'templates:\n  "apps/*": app.Dockerfile\n'
        )

        run_bake(sample_workspace)

        assert (sample_workspace / "apps/api/Dockerfile.bake").read_text() == (
            "FROM app:18.17\n"
        )
        assert "pnpm" in (sample_workspace / "packages/types/Dockerfile.bake").read_text()


class TestRunBakeUv:
    def test_uv_workspace(self, uv_workspace: Path) -> None:
        result = run_bake(uv_workspace, fmt="json")

        targets = result.bake_file.target
        assert set(targets) == {"root", "app", "core"}
        assert targets["app"].depends_on == ["root", "core"]
        assert targets["app"].context == "packages/app"
        assert not (uv_workspace / "packages/scratch/Dockerfile.bake").exists()
        app_dockerfile = (uv_workspace / "packages/app/Dockerfile.bake").read_text()
        assert "FROM python:3.11-slim" in app_dockerfile
        core_dockerfile = (uv_workspace / "packages/core/Dockerfile.bake").read_text()
        assert "FROM python:3.12-slim" in core_dockerfile

    def test_forced_ecosystem(self, sample_workspace: Path) -> None:
        result = run_bake(sample_workspace, ecosystem="pnpm", dry_run=True)
        assert "sample-api" in result.bake_file.target

"""Tests for bakehouse.shell."""

from __future__ import annotations

from pathlib import Path

import pytest

from bakehouse.shell import ConsoleHook, fatal, step


def test_step_prints_header(capsys: pytest.CaptureFixture[str]) -> None:
    step("Discovering")
    out = capsys.readouterr().out
    assert "Discovering" in out
    assert "─" * 60 in out


def test_fatal_exits_with_code_1(capsys: pytest.CaptureFixture[str]) -> None:
    with pytest.raises(SystemExit) as excinfo:
        fatal("boom")
    assert excinfo.value.code == 1
    assert capsys.readouterr().err == "ERROR: boom\n"


class TestConsoleHook:
    def test_headers_once_per_phase(self, capsys: pytest.CaptureFixture[str]) -> None:
        hook = ConsoleHook()
        hook("workspace.scan", {"root": Path("/ws"), "patterns": ["apps/*"]})
        hook("package.found", {"name": "@sample/api", "version": "1.0.0", "path": "apps/api"})
        hook("dockerfile.generated", {"target": "root", "path": Path("/ws/Dockerfile.bake")})
        hook("dockerfile.reused", {"target": "api", "path": Path("/ws/apps/api/Dockerfile.bake")})

        out = capsys.readouterr().out
        assert out.count("Discovering workspace packages") == 1
        assert out.count("Provisioning Dockerfiles") == 1
        assert "  @sample/api 1.0.0 (apps/api)" in out
        assert "api: using existing" in out

    def test_skipped_only_when_verbose(self, capsys: pytest.CaptureFixture[str]) -> None:
        ConsoleHook()("package.skipped", {"path": "docs"})
        assert capsys.readouterr().out == ""

        ConsoleHook(verbose=True)("package.skipped", {"path": "docs"})
        assert "skipping docs" in capsys.readouterr().out

    def test_stale_warning(self, capsys: pytest.CaptureFixture[str]) -> None:
        ConsoleHook()(
            "dockerfile.stale",
            {"target": "api", "path": "apps/api/Dockerfile.bake", "recorded": "16", "runtime": "20"},
        )
        assert "Warning:" in capsys.readouterr().out

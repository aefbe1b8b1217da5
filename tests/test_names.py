"""Tests for bakehouse.names."""

from __future__ import annotations

import pytest

from bakehouse.names import sanitize


class TestSanitize:
    def test_scoped_name(self) -> None:
        assert sanitize("@sample/api") == "sample-api"

    def test_plain_name_unchanged(self) -> None:
        assert sanitize("logger") == "logger"

    def test_lowercases(self) -> None:
        assert sanitize("@Sample/API") == "sample-api"

    def test_removes_every_at_sign(self) -> None:
        assert sanitize("a@b@c") == "abc"

    def test_replaces_every_slash(self) -> None:
        assert sanitize("a/b/c") == "a-b-c"

    def test_empty_string(self) -> None:
        assert sanitize("") == ""

    @pytest.mark.parametrize(
        "name", ["@sample/api", "My/Pkg", "@@x//y", "already-clean", "", "@/"]
    )
    def test_idempotent(self, name: str) -> None:
        once = sanitize(name)
        assert sanitize(once) == once

"""Project configuration from the .bakehouse file.

The file is optional YAML at the workspace root::

    output_format: json
    include_root: true
    templates:
      "apps/*": ./templates/app.Dockerfile
      "packages/*": ./templates/lib.Dockerfile

Command-line flags take precedence over anything set here.
"""

from __future__ import annotations

from pathlib import Path

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .bake import DOCKERFILE_NAME
from .errors import ConfigError, IoError
from .models import describe_errors
from .patterns import first_match

CONFIG_FILE = ".bakehouse"


class BakehouseConfig(BaseModel):
    """Settings read from .bakehouse.

    Attributes:
        output_format: "hcl" or "json". Validated when the pipeline runs.
        output: Output path relative to the workspace root. Defaults to
            docker-bake.<format>.
        dockerfile: Dockerfile name used for every target.
        ecosystem: Force a workspace ecosystem instead of detecting it.
        include_root: Put the root target in the default group.
        templates: Glob over package paths → Dockerfile template path.
    """

    model_config = ConfigDict(extra="forbid")

    output_format: str = "hcl"
    output: str | None = None
    dockerfile: str = DOCKERFILE_NAME
    ecosystem: str | None = None
    include_root: bool = False
    templates: dict[str, Path] = Field(default_factory=dict)

    def find_template(self, package_path: str) -> Path | None:
        """Return the first template whose glob matches a package path.

        Globs are tried in file order and matched against the package
        directory relative to the workspace root. "*" also covers nested
        directories, so "apps/*" applies to "apps/web/admin".
        """
        pattern = first_match(self.templates, package_path)
        return self.templates[pattern] if pattern is not None else None


def load_config(workspace_root: Path) -> BakehouseConfig:
    """Load .bakehouse from the workspace root, or defaults if absent.

    Raises:
        ConfigError: If the file is not valid YAML or has unknown keys.
    """
    path = workspace_root / CONFIG_FILE
    if not path.exists():
        return BakehouseConfig()

    try:
        content = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise IoError(path, exc.strerror or str(exc)) from exc
    try:
        data = yaml.safe_load(content)
    except yaml.YAMLError as exc:
        raise ConfigError(path, f"invalid YAML: {exc}") from exc

    if data is None:
        return BakehouseConfig()
    try:
        return BakehouseConfig.model_validate(data)
    except ValidationError as exc:
        raise ConfigError(path, describe_errors(exc)) from exc

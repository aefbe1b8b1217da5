"""Dockerfile generation for targets that do not have one yet.

Templates are plain text with __PLACEHOLDER__ markers. Each ecosystem ships
a root template and a package template under bakehouse/templates; a
.bakehouse config can point package paths at custom templates instead.
"""

from __future__ import annotations

from pathlib import Path

from .bake import DockerfileRequest
from .config import BakehouseConfig
from .errors import IoError
from .patterns import first_match
from .resolvers import WorkspaceResolver

TEMPLATES_DIR = Path(__file__).parent / "templates"


def _read_template(path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8")
    except OSError as exc:
        raise IoError(path, exc.strerror or str(exc)) from exc


def render(template: str, request: DockerfileRequest) -> str:
    """Fill a template's placeholders for one target."""
    replacements = {
        "__RUNTIME_VERSION__": request.runtime,
        "__PACKAGE_NAME__": request.package.manifest_name,
        "__PACKAGE_PATH__": request.context,
        "__TARGET_NAME__": request.target,
        "__DEPENDENCIES__": ", ".join(request.dependencies) or "(none)",
    }
    for marker, value in replacements.items():
        template = template.replace(marker, value)
    return template


class DockerfileProvisioner:
    """Renders Dockerfile text for a planned target.

    Args:
        root_template: Template text for the root target.
        package_template: Template text for member targets.
        overrides: Glob over package paths → template text, first match wins.
    """

    def __init__(
        self,
        root_template: str,
        package_template: str,
        overrides: dict[str, str] | None = None,
    ) -> None:
        self.root_template = root_template
        self.package_template = package_template
        self.overrides = overrides or {}

    @classmethod
    def for_workspace(
        cls,
        resolver: WorkspaceResolver,
        workspace_root: Path,
        config: BakehouseConfig,
    ) -> DockerfileProvisioner:
        """Load the ecosystem's bundled templates plus configured overrides.

        Override paths are relative to the workspace root.
        """
        overrides = {
            pattern: _read_template(workspace_root / path)
            for pattern, path in config.templates.items()
        }
        return cls(
            root_template=_read_template(TEMPLATES_DIR / resolver.root_template),
            package_template=_read_template(TEMPLATES_DIR / resolver.package_template),
            overrides=overrides,
        )

    def template_for(self, request: DockerfileRequest) -> str:
        if request.is_root:
            return self.root_template
        pattern = first_match(self.overrides, request.context)
        if pattern is not None:
            return self.overrides[pattern]
        return self.package_template

    def generate(self, request: DockerfileRequest) -> str:
        """Return the Dockerfile text for one target."""
        return render(self.template_for(request), request)

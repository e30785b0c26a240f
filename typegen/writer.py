"""Assembles a session's fragments and references into one artifact per file."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Sequence

from jinja2 import Environment, FileSystemLoader, Template, TemplateError

from .config import OutputSettings
from .errors import GenerationError
from .frontend import SCHEMA_SUFFIX
from .logging import get_logger
from .types import Package

DEFAULT_ARTIFACT_TEMPLATE = """\
// {{ header }}

package {{ package_name }}
{% if imports %}

import (
{% for ref in imports %}
\t"{{ ref }}"
{% endfor %}
)
{% endif %}
{% for fragment in fragments %}

{{ fragment | trim }}
{% endfor %}
"""


@dataclass
class Artifact:
    """A rendered output file that has not necessarily been written yet."""

    source: Path
    path: Path
    content: str
    imports: List[str]


class ArtifactWriter:
    """Renders and writes ``<stem><suffix>`` next to each processed file."""

    def __init__(self, settings: Optional[OutputSettings] = None) -> None:
        self.settings = settings or OutputSettings()
        self.logger = get_logger("writer")
        self._template: Optional[Template] = None

    def artifact_path(self, source: Path) -> Path:
        name = source.name
        if name.endswith(SCHEMA_SUFFIX):
            stem = name[: -len(SCHEMA_SUFFIX)]
        else:
            stem = source.stem
        return source.with_name(f"{stem}{self.settings.suffix}")

    def render(
        self,
        source: Path,
        package: Package,
        fragments: Sequence[str],
        references: Sequence[str],
    ) -> Artifact:
        # A package never imports itself.
        imports = [ref for ref in references if ref != package.path]
        try:
            content = self._load_template().render(
                header=self.settings.header,
                package_name=package.name,
                package_path=package.path,
                imports=imports,
                fragments=list(fragments),
                source=str(source),
            )
        except TemplateError as exc:
            raise GenerationError(f"rendering artifact for {source}: {exc}") from exc
        return Artifact(source=source, path=self.artifact_path(source), content=content, imports=imports)

    def write(self, artifact: Artifact) -> Path:
        try:
            artifact.path.write_text(artifact.content, encoding="utf-8")
        except OSError as exc:
            raise GenerationError(f"writing {artifact.path}: {exc}") from exc
        self.logger.info("Wrote %s", artifact.path)
        return artifact.path

    def _load_template(self) -> Template:
        if self._template is not None:
            return self._template
        custom = self.settings.template
        if custom is None:
            environment = Environment(autoescape=False, trim_blocks=True, lstrip_blocks=True)
            self._template = environment.from_string(DEFAULT_ARTIFACT_TEMPLATE)
            return self._template
        environment = Environment(
            loader=FileSystemLoader(str(custom.parent)),
            autoescape=False,
            trim_blocks=True,
            lstrip_blocks=True,
            keep_trailing_newline=True,
        )
        try:
            self._template = environment.get_template(custom.name)
        except (TemplateError, OSError, UnicodeDecodeError) as exc:
            raise GenerationError(f"loading artifact template {custom}: {exc}") from exc
        return self._template


__all__ = ["Artifact", "ArtifactWriter", "DEFAULT_ARTIFACT_TEMPLATE"]

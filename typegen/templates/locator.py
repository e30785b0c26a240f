"""Locates, parses and caches the template behind each generator type."""

from __future__ import annotations

from pathlib import Path
from typing import Dict, Mapping, Optional

from jinja2 import (
    Environment,
    FileSystemLoader,
    StrictUndefined,
    Template,
    TemplateSyntaxError,
    Undefined,
)
from jinja2 import TemplateNotFound as JinjaTemplateNotFound

from ..errors import TemplateNotFound, TemplateParseError
from ..logging import get_logger
from ..types import Named, TypeIdentity
from .functions import TEMPLATE_GLOBALS

DEFAULT_TEMPLATE_SUFFIX = ".tmpl"

TemplateHandle = Template


class TemplateLocator:
    """Resolves ``<dir of declaring file>/<GeneratorName><suffix>`` per generator.

    Parsed templates are cached by the generator's type identity, never by
    path, so same-named generators in different packages cannot collide. One
    locator may be shared by every session of a run.
    """

    def __init__(
        self,
        *,
        suffix: str = DEFAULT_TEMPLATE_SUFFIX,
        trim_blocks: bool = True,
        lstrip_blocks: bool = True,
        strict_undefined: bool = True,
        extra_globals: Optional[Mapping[str, object]] = None,
    ) -> None:
        self.suffix = suffix
        self._trim_blocks = trim_blocks
        self._lstrip_blocks = lstrip_blocks
        self._undefined = StrictUndefined if strict_undefined else Undefined
        self._globals = dict(TEMPLATE_GLOBALS)
        if extra_globals:
            self._globals.update(extra_globals)
        self._templates: Dict[TypeIdentity, TemplateHandle] = {}
        self._environments: Dict[Path, Environment] = {}
        self.logger = get_logger("templates")

    def template_path(self, generator: Named) -> Path:
        """Return where the template for ``generator`` is expected to live."""
        position = generator.position
        if position is None or not position.filename:
            raise TemplateNotFound(
                str(generator.identity),
                None,
                "generator type has no declaration position",
            )
        return Path(position.filename).parent / f"{generator.name}{self.suffix}"

    def resolve(self, generator: Named) -> TemplateHandle:
        identity = generator.identity
        cached = self._templates.get(identity)
        if cached is not None:
            self.logger.debug("Reusing cached template for %s", identity)
            return cached

        path = self.template_path(generator)
        self.logger.debug("Looking for template for %s at %s", identity, path)
        environment = self._environment_for(path.parent)
        try:
            template = environment.get_template(path.name)
        except JinjaTemplateNotFound as exc:
            raise TemplateNotFound(str(identity), str(path)) from exc
        except TemplateSyntaxError as exc:
            raise TemplateParseError(
                str(identity), str(path), f"line {exc.lineno}: {exc.message}"
            ) from exc
        except OSError as exc:
            raise TemplateNotFound(str(identity), str(path), str(exc)) from exc
        except UnicodeDecodeError as exc:
            raise TemplateParseError(str(identity), str(path), f"not valid UTF-8: {exc}") from exc

        self._templates[identity] = template
        return template

    def is_cached(self, identity: TypeIdentity) -> bool:
        return identity in self._templates

    def __len__(self) -> int:
        return len(self._templates)

    def _environment_for(self, directory: Path) -> Environment:
        # Templates may include siblings from their own directory.
        key = directory.resolve()
        environment = self._environments.get(key)
        if environment is None:
            environment = Environment(
                loader=FileSystemLoader(str(key)),
                autoescape=False,
                trim_blocks=self._trim_blocks,
                lstrip_blocks=self._lstrip_blocks,
                keep_trailing_newline=True,
                undefined=self._undefined,
            )
            environment.globals.update(self._globals)
            self._environments[key] = environment
        return environment


__all__ = ["DEFAULT_TEMPLATE_SUFFIX", "TemplateHandle", "TemplateLocator"]

"""State and orchestration for one generation run."""

from __future__ import annotations

from typing import Dict, Iterable, List, Optional, Set, Tuple

from .context import TemplateContext
from .directives import Invocation, InvocationKey
from .errors import TemplateExecutionError
from .logging import get_logger
from .templates import TemplateLocator
from .types import TypeUniverse


class GenerationSession:
    """Dedup ledger, template access and accumulated output for one file.

    A session is single-threaded and short-lived: build one per processed
    file, run its invocations, hand ``outputs`` and ``references`` to a
    writer, then drop it. Only the locator may outlive it.
    """

    def __init__(
        self,
        universe: TypeUniverse,
        locator: Optional[TemplateLocator] = None,
    ) -> None:
        self.universe = universe
        self.locator = locator or TemplateLocator()
        self._seen: Set[InvocationKey] = set()
        self._references: Dict[str, None] = {}
        self._outputs: List[str] = []
        self.logger = get_logger("session")

    @property
    def outputs(self) -> List[str]:
        return list(self._outputs)

    @property
    def references(self) -> List[str]:
        return list(self._references)

    def has_run(self, invocation: Invocation) -> bool:
        return invocation.key in self._seen

    def add_reference(self, reference: str) -> bool:
        """Append ``reference`` unless already present; report whether it was new."""
        if reference in self._references:
            return False
        self._references[reference] = None
        return True

    def execute(self, invocation: Invocation) -> Optional[str]:
        """Run one invocation; returns None when it was already executed."""
        key = invocation.key
        if key in self._seen:
            self.logger.debug("Skipping duplicate invocation %s", invocation.describe())
            return None
        self._seen.add(key)

        template = self.locator.resolve(invocation.generator)
        context = TemplateContext(
            invocation,
            self.universe,
            template_name=template.name or "",
        )
        self.logger.debug("Executing %s with args %s", invocation.describe(), invocation.args)
        try:
            text = template.render(context.namespace())
        except Exception as exc:
            raise TemplateExecutionError(
                str(invocation.generator.identity),
                str(invocation.target.identity),
                exc,
            ) from exc

        for reference in context.references:
            self.add_reference(reference)
        self._outputs.append(text)
        return text

    def run(self, invocations: Iterable[Invocation]) -> Tuple[List[str], List[str]]:
        """Execute ``invocations`` in order and return ``(outputs, references)``."""
        for invocation in invocations:
            self.execute(invocation)
        return self.outputs, self.references


__all__ = ["GenerationSession"]

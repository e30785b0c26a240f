"""Helper utilities for laying out schema packages and templates in tests."""

from __future__ import annotations

import textwrap
from pathlib import Path
from typing import Any, Mapping

from typegen.config import TypegenConfig
from typegen.frontend import SchemaLoader
from typegen.orchestrator import Orchestrator


class SchemaBuilder:
    """Writes ``*.types.yml`` files and templates under a throwaway module root."""

    def __init__(self, tmp_path: Path, module: str = "example.com/shop") -> None:
        self.root = tmp_path / "repo"
        self.root.mkdir()
        self.module = module

    def write(self, files: Mapping[str, str]) -> None:
        """Write `path -> contents` entries below the module root."""
        for relative, content in files.items():
            path = self.root / relative
            path.parent.mkdir(parents=True, exist_ok=True)
            normalised = textwrap.dedent(content).lstrip("\n")
            path.write_text(normalised, encoding="utf-8")

    def path(self, relative: str = "") -> Path:
        """Return an absolute path below the module root."""
        return (self.root / relative).resolve() if relative else self.root.resolve()

    def import_path(self, relative: str) -> str:
        return f"{self.module}/{relative}"

    def config(self, **overrides: Any) -> TypegenConfig:
        overrides.setdefault("modules", {self.module: self.root})
        return TypegenConfig(root=self.root, **overrides)

    def loader(self) -> SchemaLoader:
        return SchemaLoader({self.module: self.root})

    def orchestrator(self, **overrides: Any) -> Orchestrator:
        return Orchestrator(self.config(**overrides))


__all__ = ["SchemaBuilder"]

"""Loads ``*.types.yml`` schema packages into a type universe."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
import re
from typing import Any, Dict, List, Mapping, Optional

import yaml

from ..errors import SchemaError
from ..logging import get_logger
from ..types import (
    BUILTINS,
    Basic,
    Func,
    Interface,
    Named,
    Package,
    Pointer,
    Position,
    Struct,
    Type,
    Universe,
    Var,
    is_exported,
)
from .expr import parse_signature, parse_type

SCHEMA_SUFFIX = ".types.yml"

_IDENT = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


@dataclass
class _SchemaDocument:
    path: Path
    package_name: Optional[str]
    imports: Dict[str, str]
    types: Dict[str, Any]
    lines: Dict[str, int] = field(default_factory=dict)


class SchemaLoader:
    """Front end that maps directories of schema files to packages.

    A package's import path is its module prefix joined with its directory
    relative to the module root. Packages are loaded on demand, including
    the packages they import, and cached in ``universe``.
    """

    def __init__(self, modules: Mapping[str, Path], universe: Optional[Universe] = None) -> None:
        self.modules: Dict[str, Path] = {
            prefix.strip("/"): Path(root).expanduser().resolve() for prefix, root in modules.items()
        }
        self.universe = universe or Universe()
        self._active = 0
        self._aliases: List[Named] = []
        self.logger = get_logger("frontend")

    # ------------------------------------------------------------------
    # Public API

    def import_paths_for(self, path: Path) -> List[str]:
        """Every import path under which the directory of ``path`` is reachable."""
        directory = Path(path).expanduser().resolve().parent
        candidates: List[str] = []
        for prefix, root in self.modules.items():
            try:
                relative = directory.relative_to(root)
            except ValueError:
                continue
            parts = [part for part in (prefix, relative.as_posix()) if part and part != "."]
            import_path = "/".join(parts)
            if not import_path:
                raise SchemaError(f"module root {root} maps to an empty import path; give it a prefix")
            candidates.append(import_path)
        return candidates

    def packages_for(self, path: Path) -> List[Package]:
        """Load every package that could contain ``path`` and return those that do."""
        for import_path in self.import_paths_for(path):
            self.load_package(import_path)
        return self.universe.packages_for_file(path)

    def load_package(self, import_path: str) -> Package:
        existing = self.universe.package(import_path)
        if existing is not None:
            return existing

        directory = self._directory_for(import_path)
        if directory is None:
            raise SchemaError(f"cannot find package {import_path} in any configured module")
        files = sorted(directory.glob(f"*{SCHEMA_SUFFIX}"))
        if not files:
            raise SchemaError(f"no {SCHEMA_SUFFIX} files in {directory} for package {import_path}")

        documents = [self._read(path) for path in files]
        package = Package(
            path=import_path,
            name=self._package_name(import_path, directory, documents),
            directory=directory,
            files=[path.resolve() for path in files],
        )
        self.logger.debug("Loading package %s from %s", import_path, directory)

        self.universe.add_package(package)
        self._active += 1
        try:
            for document in documents:
                self._declare(package, document)
            for document in documents:
                self._define(package, document)
            if self._active == 1:
                self._resolve_aliases()
        except Exception:
            self.universe.discard(import_path)
            if self._active == 1:
                self._aliases.clear()
            raise
        finally:
            self._active -= 1
        return package

    # ------------------------------------------------------------------
    # Reading

    def _directory_for(self, import_path: str) -> Optional[Path]:
        best: Optional[tuple[int, Path]] = None
        for prefix, root in self.modules.items():
            if prefix and import_path != prefix and not import_path.startswith(prefix + "/"):
                continue
            rest = import_path[len(prefix) :].lstrip("/") if prefix else import_path
            candidate = root / rest if rest else root
            if not candidate.is_dir():
                continue
            if best is None or len(prefix) > best[0]:
                best = (len(prefix), candidate)
        return best[1] if best else None

    def _read(self, path: Path) -> _SchemaDocument:
        try:
            text = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            raise SchemaError(f"failed to read {path}: {exc}") from exc
        try:
            data = yaml.safe_load(text) or {}
            root_node = yaml.compose(text, Loader=yaml.SafeLoader)
        except yaml.YAMLError as exc:
            raise SchemaError(f"failed to parse {path}: {exc}") from exc
        if not isinstance(data, dict):
            raise SchemaError(f"{path} must contain a mapping at the root")

        types = data.get("types") or {}
        if not isinstance(types, dict):
            raise SchemaError(f"{path}: 'types' must be a mapping of type name to declaration")
        for name in types:
            if not isinstance(name, str) or not _IDENT.match(name):
                raise SchemaError(f"{path}: invalid type name {name!r}")

        package_name = data.get("package")
        if package_name is not None and (not isinstance(package_name, str) or not _IDENT.match(package_name)):
            raise SchemaError(f"{path}: invalid package name {package_name!r}")

        return _SchemaDocument(
            path=path.resolve(),
            package_name=package_name,
            imports=self._imports(path, data.get("imports")),
            types=types,
            lines=_declaration_lines(root_node),
        )

    @staticmethod
    def _imports(path: Path, raw: Any) -> Dict[str, str]:
        if raw is None:
            return {}
        if isinstance(raw, list):
            imports = {}
            for entry in raw:
                if not isinstance(entry, str) or not entry:
                    raise SchemaError(f"{path}: import entries must be package paths")
                imports[entry.rstrip("/").rsplit("/", 1)[-1]] = entry
            return imports
        if isinstance(raw, dict):
            return {str(alias): str(target) for alias, target in raw.items()}
        raise SchemaError(f"{path}: 'imports' must be a list or a mapping")

    @staticmethod
    def _package_name(import_path: str, directory: Path, documents: List[_SchemaDocument]) -> str:
        declared = {doc.package_name for doc in documents if doc.package_name}
        if len(declared) > 1:
            raise SchemaError(
                f"conflicting package names in {directory}: {', '.join(sorted(declared))}"
            )
        if declared:
            return declared.pop()
        fallback = import_path.rsplit("/", 1)[-1]
        return re.sub(r"[^A-Za-z0-9_]", "_", fallback)

    # ------------------------------------------------------------------
    # Declaring and defining types

    def _declare(self, package: Package, document: _SchemaDocument) -> None:
        for name in document.types:
            if package.lookup(name) is not None:
                raise SchemaError(f"{document.path}: type {name} redeclared in package {package.path}")
            position = Position(str(document.path), document.lines.get(name, 0))
            package.declare(Named(name, package.ref, position=position))

    def _define(self, package: Package, document: _SchemaDocument) -> None:
        def resolve(qualifier: Optional[str], name: str) -> Type:
            return self._resolve_name(package, document, qualifier, name)

        for name, declaration in document.types.items():
            named = package.scope[name]
            where = f"{document.path}: type {name}"
            if not isinstance(declaration, dict):
                raise SchemaError(f"{where}: declaration must be a mapping")
            kinds = [key for key in ("struct", "interface", "type") if key in declaration]
            if len(kinds) != 1:
                raise SchemaError(f"{where}: declare exactly one of struct, interface or type")

            kind = kinds[0]
            if kind == "struct":
                named.underlying = self._struct(where, declaration["struct"], resolve)
            elif kind == "interface":
                named.underlying = self._interface(where, declaration["interface"], resolve)
            else:
                named.underlying = self._expression(where, declaration["type"], resolve)
                if isinstance(named.underlying, Named):
                    self._aliases.append(named)

            named.methods = self._methods(where, declaration.get("methods"), resolve)

    def _resolve_name(
        self,
        package: Package,
        document: _SchemaDocument,
        qualifier: Optional[str],
        name: str,
    ) -> Type:
        if qualifier is None:
            local = package.lookup(name)
            if local is not None:
                return local
            if name in BUILTINS:
                return BUILTINS[name]
            raise SchemaError(f"{document.path}: undefined type {name}")
        import_path = document.imports.get(qualifier)
        if import_path is None:
            raise SchemaError(f"{document.path}: unknown package qualifier {qualifier}")
        dependency = self.load_package(import_path)
        named = dependency.lookup(name)
        if named is None:
            raise SchemaError(f"{document.path}: undefined type {qualifier}.{name}")
        if not is_exported(name):
            raise SchemaError(f"{document.path}: {qualifier}.{name} is not exported")
        return named

    @staticmethod
    def _expression(where: str, raw: Any, resolve: Any) -> Type:
        if not isinstance(raw, str) or not raw.strip():
            raise SchemaError(f"{where}: type expression must be a non-empty string")
        return parse_type(raw, resolve)

    def _struct(self, where: str, raw: Any, resolve: Any) -> Struct:
        if raw is None:
            return Struct()
        if not isinstance(raw, list):
            raise SchemaError(f"{where}: struct must be a list of fields")
        fields: List[Var] = []
        for entry in raw:
            if not isinstance(entry, dict) or "type" not in entry:
                raise SchemaError(f"{where}: every field needs a 'type'")
            field_type = self._expression(where, entry["type"], resolve)
            name = entry.get("name")
            embedded = bool(entry.get("embedded", name is None))
            if embedded and not name:
                name = _embedded_name(where, field_type)
            if not isinstance(name, str) or not name:
                raise SchemaError(f"{where}: field name must be a string")
            tag = entry.get("tag", "")
            if not isinstance(tag, str):
                raise SchemaError(f"{where}: tag of field {name} must be a string")
            fields.append(Var(name, field_type, embedded, tag))
        return Struct(tuple(fields))

    def _interface(self, where: str, raw: Any, resolve: Any) -> Interface:
        if raw is None:
            return Interface()
        if not isinstance(raw, list):
            raise SchemaError(f"{where}: interface must be a list of members")
        methods: List[Func] = []
        embeddeds: List[Type] = []
        for entry in raw:
            if isinstance(entry, dict) and "embed" in entry:
                embeddeds.append(self._expression(where, entry["embed"], resolve))
                continue
            if not isinstance(entry, dict) or "name" not in entry or "type" not in entry:
                raise SchemaError(f"{where}: interface members need 'name' and 'type', or 'embed'")
            methods.append(Func(str(entry["name"]), parse_signature(str(entry["type"]), resolve)))
        return Interface(tuple(methods), tuple(embeddeds))

    @staticmethod
    def _methods(where: str, raw: Any, resolve: Any) -> List[Func]:
        if raw is None:
            return []
        if not isinstance(raw, list):
            raise SchemaError(f"{where}: methods must be a list")
        methods: List[Func] = []
        for entry in raw:
            if not isinstance(entry, dict) or "name" not in entry or "type" not in entry:
                raise SchemaError(f"{where}: methods need 'name' and 'type'")
            signature = parse_signature(str(entry["type"]), resolve)
            methods.append(Func(str(entry["name"]), signature, bool(entry.get("pointer", False))))
        return methods

    def _resolve_aliases(self) -> None:
        # `type A B` takes B's underlying shape once every package is defined.
        pending, self._aliases = self._aliases, []
        for named in pending:
            seen = {named.identity}
            current = named.underlying
            while isinstance(current, Named):
                if current.identity in seen:
                    raise SchemaError(f"invalid recursive type {named.identity}")
                seen.add(current.identity)
                current = current.underlying
            if current is None:
                raise SchemaError(f"type {named.identity} has no underlying type")
            named.underlying = current


def _embedded_name(where: str, field_type: Type) -> str:
    base = field_type.elem if isinstance(field_type, Pointer) else field_type
    name = base.name if isinstance(base, (Named, Basic)) else None
    if name is None:
        raise SchemaError(f"{where}: embedded field must be a (pointer to a) type name")
    return name


def _declaration_lines(root: Optional[yaml.Node]) -> Dict[str, int]:
    if not isinstance(root, yaml.MappingNode):
        return {}
    for key_node, value_node in root.value:
        if getattr(key_node, "value", None) == "types" and isinstance(value_node, yaml.MappingNode):
            return {
                str(type_key.value): type_key.start_mark.line + 1
                for type_key, _ in value_node.value
            }
    return {}


__all__ = ["SCHEMA_SUFFIX", "SchemaLoader"]

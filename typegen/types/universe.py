"""Resolved view of packages and the types they declare."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Protocol

from .shapes import (
    Basic,
    Func,
    Interface,
    Named,
    PackageRef,
    Signature,
    Struct,
    Tuple,
    Type,
    Var,
)

BASIC_NAMES = (
    "bool",
    "string",
    "int",
    "int8",
    "int16",
    "int32",
    "int64",
    "uint",
    "uint8",
    "uint16",
    "uint32",
    "uint64",
    "uintptr",
    "byte",
    "rune",
    "float32",
    "float64",
    "complex64",
    "complex128",
)


def _builtin_scope() -> Dict[str, Type]:
    scope: Dict[str, Type] = {name: Basic(name) for name in BASIC_NAMES}
    scope["any"] = Interface()
    error_sig = Signature(results=Tuple((Var("", Basic("string")),)))
    scope["error"] = Named("error", None, Interface(methods=(Func("Error", error_sig),)))
    return scope


BUILTINS: Dict[str, Type] = _builtin_scope()


@dataclass
class Package:
    """A loaded package: its identity, source files and declared types."""

    path: str
    name: str
    directory: Optional[Path] = None
    files: List[Path] = field(default_factory=list)
    scope: Dict[str, Named] = field(default_factory=dict)

    @property
    def ref(self) -> PackageRef:
        return PackageRef(self.path, self.name)

    def declare(self, named: Named) -> Named:
        if named.package is None or named.package.path != self.path:
            raise ValueError(f"{named.identity} does not belong to package {self.path}")
        if named.name in self.scope:
            raise ValueError(f"type {named.name} already declared in package {self.path}")
        self.scope[named.name] = named
        return named

    def lookup(self, name: str) -> Optional[Named]:
        return self.scope.get(name)

    def types_in_file(self, path: Path) -> List[Named]:
        """Named types declared in ``path``, ordered by declaration line then name."""
        target = _normalise(path)
        declared = [
            named
            for named in self.scope.values()
            if named.position is not None and _normalise(Path(named.position.filename)) == target
        ]
        return sorted(declared, key=lambda n: (n.position.line if n.position else 0, n.name))

    def structs_in_file(self, path: Path) -> List[Named]:
        return [n for n in self.types_in_file(path) if isinstance(n.underlying, Struct)]


class TypeUniverse(Protocol):
    """Interface the generation core needs from a front end."""

    def lookup(self, qualified_name: str) -> Optional[Type]:
        """Resolve ``"path/to/pkg.Name"`` or a builtin name."""

    def packages_for_file(self, path: Path) -> List[Package]:
        """Every loaded package that contains ``path``."""


class Universe:
    """In-memory ``TypeUniverse`` populated by a front end or by tests."""

    def __init__(self, packages: Iterable[Package] = ()) -> None:
        self._packages: Dict[str, Package] = {}
        for package in packages:
            self.add_package(package)

    def add_package(self, package: Package) -> Package:
        if package.path in self._packages:
            raise ValueError(f"package {package.path} already loaded")
        self._packages[package.path] = package
        return package

    def discard(self, path: str) -> None:
        """Forget a package, e.g. one whose loading failed part-way."""
        self._packages.pop(path, None)

    def package(self, path: str) -> Optional[Package]:
        return self._packages.get(path)

    def lookup(self, qualified_name: str) -> Optional[Type]:
        name = qualified_name.strip()
        if "." not in name:
            return BUILTINS.get(name)
        package_path, _, type_name = name.rpartition(".")
        package = self._packages.get(package_path)
        if package is None:
            return None
        return package.lookup(type_name)

    def packages_for_file(self, path: Path) -> List[Package]:
        target = _normalise(path)
        return [
            package
            for package in self._packages.values()
            if any(_normalise(candidate) == target for candidate in package.files)
        ]


def _normalise(path: Path) -> Path:
    return Path(path).expanduser().resolve()


__all__ = ["BASIC_NAMES", "BUILTINS", "Package", "TypeUniverse", "Universe"]

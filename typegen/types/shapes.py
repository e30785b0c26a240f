"""Structural type descriptors consumed by the generation pipeline.

The shapes form a closed set: every component that dispatches on a type
(the import walker, the printer, identity checks) handles each class below
explicitly. ``Named`` is the only shape with identity semantics; all other
shapes are compared structurally.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Iterator, List, Optional, Sequence


@dataclass(frozen=True, order=True)
class TypeIdentity:
    """Stable key for a named type: defining package path plus type name."""

    package_path: str
    name: str

    def __str__(self) -> str:
        if self.package_path:
            return f"{self.package_path}.{self.name}"
        return self.name


@dataclass(frozen=True)
class PackageRef:
    """Lightweight pointer back to the package that declares a named type."""

    path: str
    name: str


@dataclass(frozen=True)
class Position:
    """Declaration site of a named type."""

    filename: str
    line: int = 0

    def __str__(self) -> str:
        return f"{self.filename}:{self.line}" if self.line else self.filename


class Type:
    """Base class for every type shape."""

    __slots__ = ()

    def __str__(self) -> str:
        return type_string(self)


@dataclass(frozen=True)
class Basic(Type):
    name: str


@dataclass(frozen=True)
class Pointer(Type):
    elem: Type


@dataclass(frozen=True)
class Slice(Type):
    elem: Type


@dataclass(frozen=True)
class Array(Type):
    elem: Type
    length: int


class ChanDir(str, Enum):
    BOTH = "both"
    SEND = "send"
    RECV = "recv"


@dataclass(frozen=True)
class Chan(Type):
    elem: Type
    direction: ChanDir = ChanDir.BOTH


@dataclass(frozen=True)
class Map(Type):
    key: Type
    elem: Type


@dataclass(frozen=True)
class Var:
    """A struct field, parameter or result."""

    name: str
    type: Type
    embedded: bool = False
    tag: str = ""

    @property
    def exported(self) -> bool:
        return is_exported(self.name)

    def __str__(self) -> str:
        if self.embedded or not self.name:
            return type_string(self.type)
        return f"{self.name} {type_string(self.type)}"


@dataclass(frozen=True)
class Tuple(Type):
    """Ordered parameter or result list."""

    vars: tuple[Var, ...] = ()

    def __len__(self) -> int:
        return len(self.vars)

    def __iter__(self) -> Iterator[Var]:
        return iter(self.vars)


@dataclass(frozen=True)
class Signature(Type):
    params: Tuple = field(default_factory=Tuple)
    results: Tuple = field(default_factory=Tuple)
    variadic: bool = False


@dataclass(frozen=True)
class Func:
    """A method: either an interface method or one declared on a named type."""

    name: str
    signature: Signature
    pointer_receiver: bool = False


@dataclass(frozen=True)
class Struct(Type):
    fields: tuple[Var, ...] = ()


@dataclass(frozen=True)
class Interface(Type):
    methods: tuple[Func, ...] = ()
    embeddeds: tuple[Type, ...] = ()

    @property
    def empty(self) -> bool:
        return not self.methods and not self.embeddeds


class Named(Type):
    """A declared type.

    Equality and hashing use ``identity`` only, which keeps self-referential
    declarations (a struct holding a pointer to itself) safe to compare,
    hash and print. ``underlying`` may be bound after construction so that
    front ends can declare every name before resolving bodies.
    """

    __slots__ = ("identity", "package", "position", "underlying", "methods")

    def __init__(
        self,
        name: str,
        package: Optional[PackageRef] = None,
        underlying: Optional[Type] = None,
        *,
        position: Optional[Position] = None,
        methods: Sequence[Func] = (),
    ) -> None:
        self.identity = TypeIdentity(package.path if package else "", name)
        self.package = package
        self.position = position
        self.underlying = underlying
        self.methods: List[Func] = list(methods)

    @property
    def name(self) -> str:
        return self.identity.name

    def method(self, name: str) -> Optional[Func]:
        for candidate in self.methods:
            if candidate.name == name:
                return candidate
        return None

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Named):
            return NotImplemented
        return self.identity == other.identity

    def __hash__(self) -> int:
        return hash(("named", self.identity))

    def __repr__(self) -> str:
        return f"Named({self.identity})"


# Pointer, slice, array and channel all wrap a single element type.
ELEMENT_WRAPPERS = (Pointer, Slice, Array, Chan)

Qualifier = Callable[[Optional[PackageRef]], str]


def is_exported(name: str) -> bool:
    """Return True when ``name`` is visible outside its declaring package."""
    return bool(name) and name[0].isupper()


def qualify_by_path(package: Optional[PackageRef]) -> str:
    return package.path if package else ""


def relative_to(package_path: str) -> Qualifier:
    """Qualifier eliding ``package_path`` and naming every other package by its short name."""

    def _qualifier(package: Optional[PackageRef]) -> str:
        if package is None or package.path == package_path:
            return ""
        return package.name

    return _qualifier


def type_string(t: Type, qualifier: Qualifier | None = None) -> str:
    """Render ``t`` in conventional type syntax."""
    qualify = qualifier or qualify_by_path
    return _render(t, qualify)


def _render(t: Type, qualify: Qualifier) -> str:
    if isinstance(t, Named):
        prefix = qualify(t.package)
        return f"{prefix}.{t.name}" if prefix else t.name
    if isinstance(t, Basic):
        return t.name
    if isinstance(t, Pointer):
        return "*" + _render(t.elem, qualify)
    if isinstance(t, Slice):
        return "[]" + _render(t.elem, qualify)
    if isinstance(t, Array):
        return f"[{t.length}]" + _render(t.elem, qualify)
    if isinstance(t, Chan):
        elem = _render(t.elem, qualify)
        if t.direction is ChanDir.RECV:
            return "<-chan " + elem
        if t.direction is ChanDir.SEND:
            return "chan<- " + elem
        if isinstance(t.elem, Chan) and t.elem.direction is ChanDir.RECV:
            return f"chan ({elem})"
        return "chan " + elem
    if isinstance(t, Map):
        return f"map[{_render(t.key, qualify)}]{_render(t.elem, qualify)}"
    if isinstance(t, Struct):
        parts = []
        for f in t.fields:
            text = _render(f.type, qualify) if f.embedded else f"{f.name} {_render(f.type, qualify)}"
            if f.tag:
                text += " " + _quote(f.tag)
            parts.append(text)
        return "struct{" + "; ".join(parts) + "}"
    if isinstance(t, Tuple):
        return _render_tuple(t, qualify, variadic=False)
    if isinstance(t, Signature):
        return "func" + _render_signature(t, qualify)
    if isinstance(t, Interface):
        parts = [_render(e, qualify) for e in t.embeddeds]
        parts.extend(m.name + _render_signature(m.signature, qualify) for m in t.methods)
        return "interface{" + "; ".join(parts) + "}"
    return f"<{type(t).__name__}>"


def _render_tuple(t: Tuple, qualify: Qualifier, *, variadic: bool) -> str:
    parts = []
    last = len(t.vars) - 1
    for index, var in enumerate(t.vars):
        if variadic and index == last and isinstance(var.type, Slice):
            text = "..." + _render(var.type.elem, qualify)
        else:
            text = _render(var.type, qualify)
        parts.append(f"{var.name} {text}" if var.name else text)
    return "(" + ", ".join(parts) + ")"


def _render_signature(sig: Signature, qualify: Qualifier) -> str:
    text = _render_tuple(sig.params, qualify, variadic=sig.variadic)
    results = sig.results.vars
    if not results:
        return text
    if len(results) == 1 and not results[0].name:
        return f"{text} {_render(results[0].type, qualify)}"
    return f"{text} {_render_tuple(sig.results, qualify, variadic=False)}"


def _quote(tag: str) -> str:
    escaped = tag.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


__all__ = [
    "Array",
    "Basic",
    "Chan",
    "ChanDir",
    "ELEMENT_WRAPPERS",
    "Func",
    "Interface",
    "Map",
    "Named",
    "PackageRef",
    "Pointer",
    "Position",
    "Qualifier",
    "Signature",
    "Slice",
    "Struct",
    "Tuple",
    "Type",
    "TypeIdentity",
    "Var",
    "is_exported",
    "qualify_by_path",
    "relative_to",
    "type_string",
]

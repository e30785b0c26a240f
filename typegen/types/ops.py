"""Pure structural operations over type shapes."""

from __future__ import annotations

from typing import Dict, List, Optional, Set, Union

from .shapes import (
    ELEMENT_WRAPPERS,
    Array,
    Basic,
    Chan,
    Func,
    Interface,
    Map,
    Named,
    Pointer,
    Signature,
    Slice,
    Struct,
    Tuple,
    Type,
    TypeIdentity,
    Var,
    is_exported,
)


def identical(x: Type, y: Type) -> bool:
    """Report whether two shapes denote the same type."""
    if x is y:
        return True
    if isinstance(x, Named) or isinstance(y, Named):
        return isinstance(x, Named) and isinstance(y, Named) and x.identity == y.identity
    if type(x) is not type(y):
        return False
    if isinstance(x, Basic):
        return x.name == y.name  # type: ignore[attr-defined]
    if isinstance(x, (Pointer, Slice)):
        return identical(x.elem, y.elem)  # type: ignore[attr-defined]
    if isinstance(x, Array):
        return x.length == y.length and identical(x.elem, y.elem)  # type: ignore[attr-defined]
    if isinstance(x, Chan):
        return x.direction == y.direction and identical(x.elem, y.elem)  # type: ignore[attr-defined]
    if isinstance(x, Map):
        return identical(x.key, y.key) and identical(x.elem, y.elem)  # type: ignore[attr-defined]
    if isinstance(x, Struct):
        other: Struct = y  # type: ignore[assignment]
        if len(x.fields) != len(other.fields):
            return False
        return all(
            a.name == b.name
            and a.embedded == b.embedded
            and a.tag == b.tag
            and identical(a.type, b.type)
            for a, b in zip(x.fields, other.fields)
        )
    if isinstance(x, Tuple):
        return _identical_tuples(x, y)  # type: ignore[arg-type]
    if isinstance(x, Signature):
        sig: Signature = y  # type: ignore[assignment]
        return (
            x.variadic == sig.variadic
            and _identical_tuples(x.params, sig.params)
            and _identical_tuples(x.results, sig.results)
        )
    if isinstance(x, Interface):
        mine = interface_methods(x)
        theirs = interface_methods(y)  # type: ignore[arg-type]
        if mine.keys() != theirs.keys():
            return False
        return all(identical(mine[name].signature, theirs[name].signature) for name in mine)
    return x == y


def _identical_tuples(x: Tuple, y: Tuple) -> bool:
    # Parameter names do not take part in identity.
    if len(x.vars) != len(y.vars):
        return False
    return all(identical(a.type, b.type) for a, b in zip(x.vars, y.vars))


def as_interface(t: Type) -> Optional[Interface]:
    """Return the interface shape behind ``t``, if it is interface-shaped."""
    if isinstance(t, Named):
        t = t.underlying  # type: ignore[assignment]
    return t if isinstance(t, Interface) else None


def interface_methods(iface: Interface) -> Dict[str, Func]:
    """Return the complete method set of an interface, embedded interfaces included."""
    methods: Dict[str, Func] = {}
    seen: Set[TypeIdentity] = set()

    def _collect(current: Interface) -> None:
        for method in current.methods:
            methods.setdefault(method.name, method)
        for embedded in current.embeddeds:
            if isinstance(embedded, Named):
                if embedded.identity in seen:
                    continue
                seen.add(embedded.identity)
            inner = as_interface(embedded)
            if inner is not None:
                _collect(inner)

    _collect(iface)
    return methods


def method_set(t: Type) -> Dict[str, Func]:
    """Return the methods callable on a value of type ``t``.

    Value receivers contribute to both ``T`` and ``*T``; pointer receivers only
    to ``*T``. Methods promoted through embedded fields follow the usual
    depth rule: the shallowest name wins, and two names at the same depth
    cancel each other out.
    """
    iface = as_interface(t)
    if iface is not None:
        return interface_methods(iface)

    addressable = isinstance(t, Pointer)
    base = t.elem if isinstance(t, Pointer) else t
    if addressable and as_interface(base) is not None:
        # A pointer to an interface has no methods of its own.
        return {}

    result: Dict[str, Func] = {}
    blocked: Set[str] = set()
    seen: Set[TypeIdentity] = set()
    level: List[tuple[Type, bool]] = [(base, addressable)]

    while level:
        found: Dict[str, List[Func]] = {}
        field_names: Set[str] = set()
        next_level: List[tuple[Type, bool]] = []
        for current, pointer in level:
            underlying: Optional[Type] = current
            if isinstance(current, Named):
                if current.identity in seen:
                    continue
                seen.add(current.identity)
                for method in current.methods:
                    if pointer or not method.pointer_receiver:
                        found.setdefault(method.name, []).append(method)
                underlying = current.underlying
            if isinstance(underlying, Interface):
                for name, method in interface_methods(underlying).items():
                    found.setdefault(name, []).append(method)
                continue
            if isinstance(underlying, Struct):
                for f in underlying.fields:
                    field_names.add(f.name)
                    if not f.embedded:
                        continue
                    if isinstance(f.type, Pointer):
                        next_level.append((f.type.elem, True))
                    else:
                        next_level.append((f.type, pointer))
        for name, candidates in found.items():
            if name in result or name in blocked:
                continue
            if len(candidates) == 1:
                result[name] = candidates[0]
            else:
                blocked.add(name)
        blocked.update(name for name in field_names if name not in result)
        level = next_level

    return result


def implements(t: Type, iface: Interface) -> bool:
    """Report whether ``t`` structurally satisfies ``iface``."""
    required = interface_methods(iface)
    if not required:
        return True
    available = method_set(t)
    for name, method in required.items():
        candidate = available.get(name)
        if candidate is None or not identical(candidate.signature, method.signature):
            return False
    return True


def struct_of(t: Type) -> Optional[Struct]:
    """Find the struct behind ``t``, looking through names and element wrappers."""
    seen: Set[TypeIdentity] = set()
    current: Optional[Type] = t
    while current is not None:
        if isinstance(current, Struct):
            return current
        if isinstance(current, Named):
            if current.identity in seen:
                return None
            seen.add(current.identity)
            current = current.underlying
        elif isinstance(current, ELEMENT_WRAPPERS) or isinstance(current, Map):
            current = current.elem
        else:
            return None
    return None


def struct_fields(t: Type) -> List[Var]:
    """Direct fields of the struct behind ``t`` in declaration order."""
    s = struct_of(t)
    if s is None:
        return []
    return list(s.fields)


def lookup_field(t: Type, name: str) -> Optional[Var]:
    """Find field ``name`` on ``t``.

    Direct fields match regardless of visibility. Otherwise the search
    continues breadth-first through embedded members, where only exported
    names can match.
    """
    s = struct_of(t)
    if s is None:
        return None
    for f in s.fields:
        if f.name == name:
            return f
    if not is_exported(name):
        return None

    seen: Set[TypeIdentity] = set()
    level: List[Type] = [f.type for f in s.fields if f.embedded]
    while level:
        matches: List[Union[Var, Func]] = []
        next_level: List[Type] = []
        for embedded in level:
            base = embedded.elem if isinstance(embedded, Pointer) else embedded
            inner: Optional[Type] = base
            if isinstance(base, Named):
                if base.identity in seen:
                    continue
                seen.add(base.identity)
                method = base.method(name)
                if method is not None:
                    matches.append(method)
                inner = base.underlying
            if not isinstance(inner, Struct):
                continue
            for f in inner.fields:
                if f.name == name:
                    matches.append(f)
                elif f.embedded:
                    next_level.append(f.type)
        if matches:
            if len(matches) == 1 and isinstance(matches[0], Var):
                return matches[0]
            return None
        level = next_level
    return None


def pointer_to(t: Type) -> Pointer:
    return Pointer(t)


def core_named(t: Type) -> Optional[Named]:
    """Strip element wrappers and map values until a named type (or nothing) remains."""
    current: Type = t
    while isinstance(current, ELEMENT_WRAPPERS) or isinstance(current, Map):
        current = current.elem
    return current if isinstance(current, Named) else None


__all__ = [
    "as_interface",
    "core_named",
    "identical",
    "implements",
    "interface_methods",
    "lookup_field",
    "method_set",
    "pointer_to",
    "struct_fields",
    "struct_of",
]

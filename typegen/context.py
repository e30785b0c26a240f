"""Capability object bound into a template for one invocation."""

from __future__ import annotations

from typing import Any, Callable, Dict, List, Optional

from .directives import Invocation
from .errors import InterfaceNotFound, MissingRequiredArgument, NotAnInterface, UnsupportedTypeShape
from .logging import get_logger
from .types import (
    Basic,
    Interface,
    Map,
    Named,
    Pointer,
    Signature,
    Struct,
    Tuple,
    Type,
    TypeUniverse,
    Var,
    as_interface,
    core_named,
    implements,
    lookup_field,
    pointer_to,
    relative_to,
    struct_fields,
    type_string,
)
from .types.shapes import ELEMENT_WRAPPERS

logger = get_logger("context")


class TemplateContext:
    """Arguments, reference registration and type introspection for a template.

    References registered here are staged on the context; the owning session
    commits them only once the template has rendered successfully.
    """

    def __init__(
        self,
        invocation: Invocation,
        universe: TypeUniverse,
        *,
        template_name: str = "",
    ) -> None:
        target = invocation.target
        self.invocation = invocation
        self.args: Dict[str, str] = dict(invocation.args)
        self.struct: Named = target
        self.struct_name = target.name
        self.generator: Named = invocation.generator
        self.template_name = template_name
        self.package_name = target.package.name if target.package else ""
        self.package_path = target.package.path if target.package else ""
        self._universe = universe
        self._references: Dict[str, None] = {}
        self._qualifier = relative_to(self.package_path)

    # ------------------------------------------------------------------
    # Arguments

    def arg(self, name: str) -> str:
        return self.args.get(name, "")

    def has_arg(self, name: str) -> bool:
        return name in self.args

    def require_arg(self, name: str) -> str:
        if name not in self.args:
            raise MissingRequiredArgument(name)
        return self.args[name]

    def default_arg(self, name: str, fallback: str) -> str:
        return self.args.get(name, fallback)

    # ------------------------------------------------------------------
    # References

    @property
    def references(self) -> List[str]:
        return list(self._references)

    def add_import(self, reference: str) -> str:
        """Register ``reference``; returns "" so templates can call it inline.

        An empty reference can never be imported and is rejected.
        """
        if not reference:
            raise ValueError(f"empty reference registered by {self.invocation.describe()}")
        if reference not in self._references:
            self._references[reference] = None
            logger.debug("Registered reference %s for %s", reference, self.invocation.describe())
        return ""

    def add_import_type(self, t: Type) -> str:
        """Register the defining package of every named type reachable from ``t``."""
        self._walk(t, [])
        return ""

    def _walk(self, t: Type, trail: List[str]) -> None:
        if isinstance(t, Named):
            if t.package is not None and t.package.path:
                self.add_import(t.package.path)
        elif isinstance(t, ELEMENT_WRAPPERS):
            self._walk(t.elem, trail + [f"element of {t}"])
        elif isinstance(t, Map):
            self._walk(t.key, trail + [f"key of {t}"])
            self._walk(t.elem, trail + [f"element of {t}"])
        elif isinstance(t, Struct):
            # A named struct stops at the Named case; only literals get here.
            for var in t.fields:
                self._walk(var.type, trail + [f"field {var.name} of {t}"])
        elif isinstance(t, Interface):
            for embedded in t.embeddeds:
                self._walk(embedded, trail + [f"embedded {embedded} of {t}"])
            for method in t.methods:
                self._walk(method.signature, trail + [f"method {method.name} of {t}"])
        elif isinstance(t, Signature):
            self._walk(t.params, trail + [f"params of {t}"])
            self._walk(t.results, trail + [f"results of {t}"])
        elif isinstance(t, Tuple):
            for index, var in enumerate(t.vars):
                self._walk(var.type, trail + [f"member {index} of {t}"])
        elif isinstance(t, Basic):
            pass
        else:
            raise UnsupportedTypeShape(t, trail)

    # ------------------------------------------------------------------
    # Introspection

    def implements(self, t: Type, interface_name: str) -> bool:
        resolved = self._resolve(interface_name)
        if resolved is None:
            raise InterfaceNotFound(interface_name)
        iface = as_interface(resolved)
        if iface is None:
            raise NotAnInterface(interface_name)
        return implements(t, iface)

    def _resolve(self, name: str) -> Optional[Type]:
        if "." not in name and self.package_path:
            local = self._universe.lookup(f"{self.package_path}.{name}")
            if local is not None:
                return local
        return self._universe.lookup(name)

    def type_string(self, t: Type) -> str:
        return type_string(t, self._qualifier)

    def type_name(self, t: Type) -> str:
        named = core_named(t)
        return type_string(named if named is not None else t, self._qualifier)

    def fields(self, t: Type) -> List[Var]:
        return struct_fields(t)

    def field(self, t: Type, name: str) -> Optional[Var]:
        return lookup_field(t, name)

    def pointer_to(self, t: Type) -> Pointer:
        return pointer_to(t)

    # ------------------------------------------------------------------

    def namespace(self) -> Dict[str, Any]:
        """Names made available to the template body."""
        capabilities: Dict[str, Callable[..., Any]] = {
            "arg": self.arg,
            "has_arg": self.has_arg,
            "require_arg": self.require_arg,
            "default_arg": self.default_arg,
            "add_import": self.add_import,
            "add_import_type": self.add_import_type,
            "implements": self.implements,
            "type_name": self.type_name,
            "type_string": self.type_string,
            "fields": self.fields,
            "field": self.field,
            "pointer_to": self.pointer_to,
        }
        return {
            "ctx": self,
            "args": self.args,
            "struct": self.struct,
            "struct_name": self.struct_name,
            "generator": self.generator,
            "template_name": self.template_name,
            "package_name": self.package_name,
            "package_path": self.package_path,
            **capabilities,
        }


__all__ = ["TemplateContext"]

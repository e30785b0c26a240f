"""Helpers registered as globals in every generator template environment."""

from __future__ import annotations

from typing import Any, Callable, Dict, List, Optional

from ..types import Pointer, Type, Var, is_exported, lookup_field, pointer_to, struct_fields


def cat_no_space(*parts: object) -> str:
    return "".join(str(part) for part in parts)


def pointer_type(t: Type) -> Pointer:
    return pointer_to(t)


def struct_field(t: Type, name: str) -> Optional[Var]:
    return lookup_field(t, name)


def all_struct_fields(t: Type) -> List[Var]:
    return struct_fields(t)


TEMPLATE_GLOBALS: Dict[str, Callable[..., Any]] = {
    "cat_no_space": cat_no_space,
    "is_exported": is_exported,
    "pointer_type": pointer_type,
    "struct_field": struct_field,
    "struct_fields": all_struct_fields,
}

__all__ = ["TEMPLATE_GLOBALS", "all_struct_fields", "cat_no_space", "pointer_type", "struct_field"]

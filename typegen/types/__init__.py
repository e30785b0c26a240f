"""Type shapes, structural operations and the type universe."""

from .ops import (
    as_interface,
    core_named,
    identical,
    implements,
    interface_methods,
    lookup_field,
    method_set,
    pointer_to,
    struct_fields,
    struct_of,
)
from .shapes import (
    Array,
    Basic,
    Chan,
    ChanDir,
    Func,
    Interface,
    Map,
    Named,
    PackageRef,
    Pointer,
    Position,
    Signature,
    Slice,
    Struct,
    Tuple,
    Type,
    TypeIdentity,
    Var,
    is_exported,
    relative_to,
    type_string,
)
from .universe import BUILTINS, Package, TypeUniverse, Universe

__all__ = [
    "Array",
    "BUILTINS",
    "Basic",
    "Chan",
    "ChanDir",
    "Func",
    "Interface",
    "Map",
    "Named",
    "Package",
    "PackageRef",
    "Pointer",
    "Position",
    "Signature",
    "Slice",
    "Struct",
    "Tuple",
    "Type",
    "TypeIdentity",
    "TypeUniverse",
    "Universe",
    "Var",
    "as_interface",
    "core_named",
    "identical",
    "implements",
    "interface_methods",
    "is_exported",
    "lookup_field",
    "method_set",
    "pointer_to",
    "relative_to",
    "struct_fields",
    "struct_of",
    "type_string",
]

"""Tests for the schema type-expression parser."""

from __future__ import annotations

from typing import Optional

import pytest

from typegen.errors import SchemaError, TypeExpressionError
from typegen.frontend import parse_signature, parse_type, tokenize
from typegen.types import (
    BUILTINS,
    Array,
    Basic,
    Chan,
    ChanDir,
    Interface,
    Map,
    Named,
    PackageRef,
    Pointer,
    Signature,
    Slice,
    Struct,
    Type,
)

USER = Named("User", PackageRef("example.com/shop/models", "models"), Struct())
LOCAL = Named("Order", PackageRef("example.com/shop/app", "app"), Struct())


def _resolve(qualifier: Optional[str], name: str) -> Type:
    if qualifier == "models" and name == "User":
        return USER
    if qualifier is None and name == "Order":
        return LOCAL
    if qualifier is None and name in BUILTINS:
        return BUILTINS[name]
    raise SchemaError(f"undefined {qualifier}.{name}")


def test_tokenize_skips_whitespace() -> None:
    tokens = tokenize("map[string] *models.User")
    assert [token.text for token in tokens] == ["map", "[", "string", "]", "*", "models", ".", "User"]


def test_parse_composite_types() -> None:
    assert parse_type("map[string]*models.User", _resolve) == Map(Basic("string"), Pointer(USER))
    assert parse_type("[]Order", _resolve) == Slice(LOCAL)
    assert parse_type("[3]int", _resolve) == Array(Basic("int"), 3)
    assert parse_type("<-chan []int", _resolve) == Chan(Slice(Basic("int")), ChanDir.RECV)
    assert parse_type("chan<- (int)", _resolve) == Chan(Basic("int"), ChanDir.SEND)
    assert parse_type("interface{}", _resolve) == Interface()


def test_parse_signature_groups_parameter_names() -> None:
    signature = parse_signature("func(a, b int, rest ...string) (int, error)", _resolve)

    assert [var.name for var in signature.params] == ["a", "b", "rest"]
    assert signature.params.vars[0].type == Basic("int")
    assert signature.params.vars[2].type == Slice(Basic("string"))
    assert signature.variadic
    assert [var.type for var in signature.results] == [Basic("int"), BUILTINS["error"]]


def test_parse_signature_with_unnamed_parameters() -> None:
    signature = parse_signature("func(Order, *models.User) error", _resolve)

    assert [var.type for var in signature.params] == [LOCAL, Pointer(USER)]
    assert len(signature.results) == 1
    assert not signature.variadic


def test_parse_struct_literal_with_embedding_and_tags() -> None:
    parsed = parse_type('struct{Order; *models.User; Name, Alias string `json:"name"`}', _resolve)

    assert isinstance(parsed, Struct)
    assert [(field.name, field.embedded) for field in parsed.fields] == [
        ("Order", True),
        ("User", True),
        ("Name", False),
        ("Alias", False),
    ]
    assert parsed.fields[1].type == Pointer(USER)
    assert parsed.fields[2].tag == 'json:"name"'


def test_parse_interface_literal() -> None:
    parsed = parse_type("interface{error; Len() int}", _resolve)

    assert isinstance(parsed, Interface)
    assert parsed.embeddeds == (BUILTINS["error"],)
    assert [method.name for method in parsed.methods] == ["Len"]


@pytest.mark.parametrize(
    "expression",
    ["map[string", "func(...int, string)", "[x]int", "int int", "$", "func(a int, string)"],
)
def test_parse_rejects_malformed_expressions(expression: str) -> None:
    with pytest.raises(TypeExpressionError):
        parse_type(expression, _resolve)


def test_parse_signature_requires_func() -> None:
    with pytest.raises(TypeExpressionError):
        parse_signature("int", _resolve)


def test_resolver_errors_propagate() -> None:
    with pytest.raises(SchemaError, match="undefined"):
        parse_type("[]Missing", _resolve)


def test_func_type_is_a_signature() -> None:
    assert isinstance(parse_type("func()", _resolve), Signature)

"""Tests for type shapes and their printed form."""

from __future__ import annotations

from typegen.types import (
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
    Signature,
    Slice,
    Struct,
    Tuple,
    TypeIdentity,
    Var,
    is_exported,
    relative_to,
    type_string,
)

MODELS = PackageRef("example.com/shop/models", "models")
STRING = Basic("string")
INT = Basic("int")


def test_named_equality_uses_identity_only() -> None:
    first = Named("User", MODELS, Struct())
    second = Named("User", MODELS, Struct((Var("Name", STRING),)))
    other = Named("User", PackageRef("example.com/shop/admin", "admin"), Struct())

    assert first == second
    assert hash(first) == hash(second)
    assert first != other
    assert first.identity == TypeIdentity("example.com/shop/models", "User")
    assert str(first.identity) == "example.com/shop/models.User"


def test_self_referential_named_types_print_and_hash() -> None:
    node = Named("Node", MODELS)
    node.underlying = Struct((Var("Next", Pointer(node)), Var("Value", INT)))

    assert type_string(node.underlying) == "struct{Next *example.com/shop/models.Node; Value int}"
    assert len({node, Pointer(node)}) == 2


def test_type_string_renders_composite_shapes() -> None:
    user = Named("User", MODELS)
    qualifier = relative_to("example.com/shop/app")

    assert type_string(Map(STRING, Slice(Pointer(user))), qualifier) == "map[string][]*models.User"
    assert type_string(Array(INT, 4)) == "[4]int"
    assert type_string(Chan(INT, ChanDir.SEND)) == "chan<- int"
    assert type_string(Chan(Chan(INT, ChanDir.RECV))) == "chan (<-chan int)"


def test_relative_qualifier_elides_own_package() -> None:
    user = Named("User", MODELS)

    assert type_string(Pointer(user), relative_to("example.com/shop/models")) == "*User"
    assert type_string(Pointer(user), relative_to("example.com/shop/app")) == "*models.User"


def test_signature_rendering_handles_variadic_and_results() -> None:
    signature = Signature(
        params=Tuple((Var("format", STRING), Var("args", Slice(Interface())))),
        results=Tuple((Var("", INT), Var("", Named("error")))),
        variadic=True,
    )

    assert type_string(signature) == "func(format string, args ...interface{}) (int, error)"


def test_struct_tags_and_interfaces_are_quoted() -> None:
    tagged = Struct((Var("Name", STRING, tag='json:"name"'),))
    stringer = Interface(methods=(Func("String", Signature(results=Tuple((Var("", STRING),)))),))

    assert type_string(tagged) == 'struct{Name string "json:\\"name\\""}'
    assert type_string(stringer) == "interface{String() string}"
    assert Interface().empty


def test_is_exported_checks_leading_capital() -> None:
    assert is_exported("Name")
    assert not is_exported("name")
    assert not is_exported("")
    assert Var("ID", INT).exported

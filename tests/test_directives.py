"""Tests for directive extraction from struct field tags."""

from __future__ import annotations

import pytest

from typegen.directives import (
    Invocation,
    extract_invocations,
    lookup_tag,
    merge_args,
    parse_args,
)
from typegen.errors import InvalidGeneratorType, MalformedDirective, RecursionLimitExceeded
from typegen.types import Basic, Named, PackageRef, Slice, Struct, Var

PKG = PackageRef("example.com/shop/app", "app")


def _generator(name: str, *fields: Var) -> Named:
    return Named(name, PKG, Struct(tuple(fields)))


def _directive(generator, tag: str, name: str = "gen") -> Var:
    return Var(name, generator, False, tag)


def test_lookup_tag_finds_reserved_key() -> None:
    tag = 'json:"-" codegen:"type=string,cap=8"'

    assert lookup_tag(tag, "codegen") == "type=string,cap=8"
    assert lookup_tag(tag, "json") == "-"
    assert lookup_tag(tag, "yaml") is None
    assert lookup_tag("", "codegen") is None


def test_lookup_tag_unquotes_escapes() -> None:
    assert lookup_tag('codegen:"sep=\\"\\t\\""', "codegen") == 'sep="\t"'


def test_lookup_tag_malformed_only_fails_when_key_is_involved() -> None:
    with pytest.raises(ValueError):
        lookup_tag('codegen:"type=string', "codegen")
    assert lookup_tag('json:"x" garbage', "codegen") is None


def test_parse_args_first_duplicate_wins_and_bare_keys_are_empty() -> None:
    assert parse_args("a=1,b,a=2") == {"a": "1", "b": ""}
    assert parse_args("") == {}
    assert parse_args("expr=x=y") == {"expr": "x=y"}


@pytest.mark.parametrize("raw", ["=value", "a=1,,b=2", "two words=1"])
def test_parse_args_rejects_bad_keys(raw: str) -> None:
    with pytest.raises(ValueError):
        parse_args(raw)


def test_merge_args_prefers_inner_values() -> None:
    assert merge_args({"b": "9"}, {"a": "1", "b": "2"}) == {"b": "9", "a": "1"}


def test_extract_visits_fields_in_order_with_nested_directives() -> None:
    leaf = _generator("leafGen")
    middle = _generator("middleGen", _directive(leaf, 'codegen:"x=1"'))
    first = _generator("firstGen")
    target = _generator(
        "Target",
        _directive(first, 'codegen:"a=1"', name="one"),
        Var("plain", Basic("int")),
        _directive(middle, 'codegen:"b=2"', name="two"),
    )

    invocations = extract_invocations(target)

    assert [inv.generator.name for inv in invocations] == ["firstGen", "middleGen", "leafGen"]
    assert all(inv.target is target for inv in invocations)
    assert invocations[2].args == {"x": "1", "b": "2"}


def test_nested_directives_inherit_unset_arguments() -> None:
    inner = _generator("innerGen")
    outer = _generator("outerGen", _directive(inner, 'codegen:"b=9"'))
    target = _generator("Target", _directive(outer, 'codegen:"a=1,b=2"'))

    invocations = extract_invocations(target)

    assert invocations[0].args == {"a": "1", "b": "2"}
    assert invocations[1].args == {"a": "1", "b": "9"}


def test_custom_directive_key() -> None:
    gen = _generator("gen")
    target = _generator("Target", _directive(gen, 'gen:"k=v" codegen:"other=1"'))

    invocations = extract_invocations(target, directive_key="gen")

    assert invocations[0].args == {"k": "v"}


def test_non_struct_target_has_no_invocations() -> None:
    assert extract_invocations(Named("ID", PKG, Basic("int"))) == []


def test_directive_on_unnamed_type_is_rejected() -> None:
    target = _generator("Target", Var("items", Slice(Basic("int")), False, 'codegen:""'))

    with pytest.raises(InvalidGeneratorType) as excinfo:
        extract_invocations(target)
    assert excinfo.value.field == "items"
    assert "[]int" in str(excinfo.value)


def test_malformed_directive_names_the_field() -> None:
    gen = _generator("gen")
    target = _generator("Target", _directive(gen, 'codegen:"=oops"', name="broken"))

    with pytest.raises(MalformedDirective) as excinfo:
        extract_invocations(target)
    assert excinfo.value.field == "broken"
    assert excinfo.value.target == "example.com/shop/app.Target"


def test_self_nesting_generator_hits_recursion_limit() -> None:
    loop = Named("loopGen", PKG)
    loop.underlying = Struct((_directive(loop, 'codegen:""', name="again"),))
    target = _generator("Target", _directive(loop, 'codegen:""'))

    with pytest.raises(RecursionLimitExceeded) as excinfo:
        extract_invocations(target, max_depth=3)
    assert excinfo.value.limit == 3
    assert excinfo.value.chain[0] == "example.com/shop/app.Target"


def test_invocation_keys_ignore_argument_order_and_dict_identity() -> None:
    gen = _generator("gen")
    target = _generator("Target")

    first = Invocation(gen, target, {"a": "1", "b": "2"})
    second = Invocation(gen, target, dict([("b", "2"), ("a", "1")]))
    third = Invocation(gen, target, {"a": "1"})

    assert first.key == second.key
    assert first.key != third.key
    assert first.describe() == "example.com/shop/app.gen -> example.com/shop/app.Target"


def test_extraction_is_deterministic() -> None:
    inner = _generator("innerGen")
    outer = _generator("outerGen", _directive(inner, 'codegen:"b=9"'))
    target = _generator(
        "Target",
        _directive(outer, 'codegen:"a=1,b=2"', name="one"),
        _directive(inner, 'codegen:"c"', name="two"),
    )

    first = extract_invocations(target)
    second = extract_invocations(target)

    assert [inv.key for inv in first] == [inv.key for inv in second]
    assert first == second

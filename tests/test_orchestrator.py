"""End-to-end tests for per-file generation."""

from __future__ import annotations

import pytest

from typegen.errors import (
    NoDirectivesFound,
    PackageResolutionError,
    SchemaError,
    TemplateExecutionError,
    TemplateNotFound,
    TemplateParseError,
    UnsupportedTypeShape,
)
from typegen.orchestrator import Orchestrator
from typegen.types import Basic, Map, Struct, Type, Var

from tests._fixtures.schema_builder import SchemaBuilder


class Opaque(Type):
    """A shape the import walker has no case for."""


SHOP = {
    "gens/gens.types.yml": """
    package: gens
    types:
      Stack:
        struct: []
      Finder:
        struct:
          - {name: stack, type: Stack, tag: 'codegen:"kind=finder"'}
    """,
    "gens/Stack.tmpl": """
    {{ add_import_type(field(struct, "items").type) }}
    type {{ struct_name }}{{ arg("kind") | capitalize }}Stack struct { items {{ type_string(field(struct, "items").type) }} }
    """,
    "gens/Finder.tmpl": """
    {{ add_import("errors") }}
    // {{ struct_name }} finder for {{ default_arg("kind", "all") }}
    """,
    "models/models.types.yml": """
    types:
      User:
        struct:
          - {name: Name, type: string}
    """,
    "app/app.types.yml": """
    package: app
    imports: [example.com/shop/gens, example.com/shop/models]
    types:
      Users:
        struct:
          - {name: gen, type: gens.Stack, tag: 'codegen:"kind=user"'}
          - {name: find, type: gens.Finder, tag: 'codegen:""'}
          - {name: items, type: "[]*models.User"}
      plain:
        struct:
          - {name: Value, type: int}
    """,
}


def test_process_file_writes_artifact(schema_builder: SchemaBuilder) -> None:
    schema_builder.write(SHOP)
    source = schema_builder.path("app/app.types.yml")

    result = schema_builder.orchestrator().process_file(source)

    assert result.written
    assert result.package.path == "example.com/shop/app"
    assert [inv.generator.name for inv in result.invocations] == ["Stack", "Finder", "Stack"]
    # The nested Stack directive sets kind=finder, so it is not a duplicate.
    assert len(result.outputs) == 3
    assert result.references == ["example.com/shop/models", "errors"]
    content = schema_builder.path("app/app_generated.go").read_text(encoding="utf-8")
    assert content.startswith("// Code generated by typegen. DO NOT EDIT.\n\npackage app\n")
    assert '\t"example.com/shop/models"\n\t"errors"\n' in content
    assert "type UsersUserStack struct { items []*models.User }" in content
    assert "type UsersFinderStack struct" in content
    assert "// Users finder for all" in content


def test_dry_run_does_not_write(schema_builder: SchemaBuilder) -> None:
    schema_builder.write(SHOP)
    source = schema_builder.path("app/app.types.yml")

    result = schema_builder.orchestrator().process_file(source, dry_run=True)

    assert not result.written
    assert "package app" in result.artifact.content
    assert not result.artifact.path.exists()


def test_file_without_directives_fails(schema_builder: SchemaBuilder) -> None:
    schema_builder.write(SHOP)

    with pytest.raises(NoDirectivesFound):
        schema_builder.orchestrator().process_file(schema_builder.path("models/models.types.yml"))
    assert not schema_builder.path("models/models_generated.go").exists()


def test_ambiguous_package_mapping_fails(schema_builder: SchemaBuilder) -> None:
    schema_builder.write(SHOP)
    root = schema_builder.path()
    orchestrator = schema_builder.orchestrator(modules={"example.com/shop": root, "mirror.io/shop": root})

    with pytest.raises(PackageResolutionError) as excinfo:
        orchestrator.process_file(schema_builder.path("app/app.types.yml"))
    assert len(excinfo.value.candidates) == 2


def test_files_are_isolated_within_a_run(schema_builder: SchemaBuilder) -> None:
    schema_builder.write(SHOP)
    schema_builder.write(
        {
            "broken/broken.types.yml": """
            types:
              missingGen:
                struct: []
              Target:
                struct:
                  - {name: gen, type: missingGen, tag: 'codegen:""'}
            """,
        }
    )
    orchestrator = schema_builder.orchestrator()

    report = orchestrator.run(
        [
            schema_builder.path("broken/broken.types.yml"),
            schema_builder.path("app/app.types.yml"),
        ]
    )

    assert [outcome.ok for outcome in report.outcomes] == [False, True]
    assert isinstance(report.failed[0].error, TemplateNotFound)
    assert report.succeeded[0].result.written
    assert not schema_builder.path("broken/broken_generated.go").exists()


def test_failing_template_leaves_no_artifact(schema_builder: SchemaBuilder) -> None:
    schema_builder.write(
        {
            "strict/strict.types.yml": """
            types:
              needsArg:
                struct: []
              Target:
                struct:
                  - {name: gen, type: needsArg, tag: 'codegen:"other=1"'}
            """,
            "strict/needsArg.tmpl": "{{ require_arg('type') }}\n",
        }
    )

    report = schema_builder.orchestrator().run([schema_builder.path("strict/strict.types.yml")])

    assert isinstance(report.failed[0].error, TemplateExecutionError)
    assert "required arg type not found" in str(report.failed[0].error)
    assert not schema_builder.path("strict/strict_generated.go").exists()


def test_custom_directive_key_and_output_suffix(schema_builder: SchemaBuilder) -> None:
    schema_builder.write(
        {
            "custom/custom.types.yml": """
            types:
              idGen:
                struct: []
              Target:
                struct:
                  - {name: gen, type: idGen, tag: 'gen:"prefix=ID"'}
            """,
            "custom/idGen.j2": "const {{ arg('prefix') }}{{ struct_name }} = 1\n",
        }
    )
    config = schema_builder.config(directive_key="gen")
    config.templates.suffix = ".j2"
    config.output.suffix = ".gen.go"

    result = Orchestrator(config).process_file(schema_builder.path("custom/custom.types.yml"))

    assert result.artifact.path.name == "custom.gen.go"
    assert "const IDTarget = 1" in result.artifact.content


def test_undecodable_schema_fails_only_its_file(schema_builder: SchemaBuilder) -> None:
    schema_builder.write(SHOP)
    bad = schema_builder.path("latin") / "bad.types.yml"
    bad.parent.mkdir()
    bad.write_bytes(b"types:\n  T\xff: {struct: []}\n")

    report = schema_builder.orchestrator().run([bad, schema_builder.path("app/app.types.yml")])

    assert [outcome.ok for outcome in report.outcomes] == [False, True]
    assert isinstance(report.failed[0].error, SchemaError)
    assert "failed to read" in str(report.failed[0].error)


def test_undecodable_template_fails_only_its_file(schema_builder: SchemaBuilder) -> None:
    schema_builder.write(SHOP)
    schema_builder.write(
        {
            "encoded/encoded.types.yml": """
            types:
              latinGen:
                struct: []
              Target:
                struct:
                  - {name: gen, type: latinGen, tag: 'codegen:""'}
            """,
        }
    )
    schema_builder.path("encoded/latinGen.tmpl").write_bytes(b"x\xff\n")

    report = schema_builder.orchestrator().run(
        [
            schema_builder.path("encoded/encoded.types.yml"),
            schema_builder.path("app/app.types.yml"),
        ]
    )

    assert [outcome.ok for outcome in report.outcomes] == [False, True]
    assert isinstance(report.failed[0].error, TemplateParseError)
    assert not schema_builder.path("encoded/encoded_generated.go").exists()


def test_unsupported_shape_fails_the_whole_file(schema_builder: SchemaBuilder) -> None:
    schema_builder.write(
        {
            "odd/odd.types.yml": """
            types:
              plainGen:
                struct: []
              walkGen:
                struct: []
              Target:
                struct:
                  - {name: first, type: plainGen, tag: 'codegen:""'}
                  - {name: second, type: walkGen, tag: 'codegen:""'}
            """,
            "odd/plainGen.tmpl": "// plain {{ struct_name }}\n",
            "odd/walkGen.tmpl": "{{ add_import_type(field(struct, 'weird').type) }}\n",
        }
    )
    orchestrator = schema_builder.orchestrator()
    package = orchestrator.loader.load_package("example.com/shop/odd")
    target = package.lookup("Target")
    # Schemas cannot express an unknown shape, so graft one onto the loaded type.
    target.underlying = Struct(target.underlying.fields + (Var("weird", Map(Basic("string"), Opaque())),))

    report = orchestrator.run([schema_builder.path("odd/odd.types.yml")])

    failure = report.failed[0].error
    assert isinstance(failure, TemplateExecutionError)
    assert isinstance(failure.cause, UnsupportedTypeShape)
    assert report.succeeded == []
    assert not schema_builder.path("odd/odd_generated.go").exists()

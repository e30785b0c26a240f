"""Error taxonomy for typegen runs."""

from __future__ import annotations

from typing import Sequence


class GenerationError(RuntimeError):
    """Base error for all generation failures."""


# Extraction-time -----------------------------------------------------------


class MalformedDirective(GenerationError):
    """Raised when a field's directive tag cannot be parsed."""

    def __init__(self, target: str, field: str, detail: str) -> None:
        super().__init__(f"malformed directive on field '{field}' of {target}: {detail}")
        self.target = target
        self.field = field
        self.detail = detail


class InvalidGeneratorType(GenerationError):
    """Raised when a directive-carrying field is not of a named type."""

    def __init__(self, target: str, field: str, type_repr: str) -> None:
        super().__init__(
            f"expected named type for directive field '{field}' of {target}, found {type_repr}"
        )
        self.target = target
        self.field = field
        self.type_repr = type_repr


class RecursionLimitExceeded(GenerationError):
    """Raised when nested directives recurse deeper than the configured bound."""

    def __init__(self, target: str, chain: Sequence[str], limit: int) -> None:
        joined = " -> ".join(chain)
        super().__init__(
            f"directive nesting for {target} exceeded depth {limit}: {joined}"
        )
        self.target = target
        self.chain = list(chain)
        self.limit = limit


# Resolution-time -----------------------------------------------------------


class TemplateNotFound(GenerationError):
    """Raised when no template exists for a generator type."""

    def __init__(self, generator: str, path: str | None, detail: str | None = None) -> None:
        message = f"template for generator {generator} not found"
        if path:
            message += f" at {path}"
        if detail:
            message += f": {detail}"
        super().__init__(message)
        self.generator = generator
        self.path = path


class TemplateParseError(GenerationError):
    """Raised when a generator's template fails to parse."""

    def __init__(self, generator: str, path: str, detail: str) -> None:
        super().__init__(f"parsing template {path} for generator {generator}: {detail}")
        self.generator = generator
        self.path = path
        self.detail = detail


# Execution-time ------------------------------------------------------------


class MissingRequiredArgument(GenerationError):
    """Raised when a template requires an argument the directive did not set."""

    def __init__(self, name: str) -> None:
        super().__init__(f"required arg {name} not found")
        self.name = name


class UnsupportedTypeShape(GenerationError):
    """Raised when the import walker meets a type shape it has no case for."""

    def __init__(self, shape: object, path: Sequence[str] = ()) -> None:
        kind = type(shape).__name__
        message = f"couldn't add import for '{shape}' of type {kind}"
        if path:
            message += " (via " + ", ".join(path) + ")"
        super().__init__(message)
        self.shape = shape
        self.path = list(path)


class InterfaceNotFound(GenerationError):
    """Raised when an interface name does not resolve in the type universe."""

    def __init__(self, name: str) -> None:
        super().__init__(f"interface {name} not found")
        self.name = name


class NotAnInterface(GenerationError):
    """Raised when a resolved name is not interface-shaped."""

    def __init__(self, name: str) -> None:
        super().__init__(f"{name} is not an interface")
        self.name = name


class TemplateExecutionError(GenerationError):
    """Wraps a failure raised while executing one invocation's template."""

    def __init__(self, generator: str, target: str, cause: BaseException) -> None:
        super().__init__(f"running generator {generator} on {target}: {cause}")
        self.generator = generator
        self.target = target
        self.cause = cause


# Run-time (file granularity) -----------------------------------------------


class NoDirectivesFound(GenerationError):
    """Raised when a processed file declares no directive-bearing types."""

    def __init__(self, path: str) -> None:
        super().__init__(f"no codegen directives found in {path}")
        self.path = path


class PackageResolutionError(GenerationError):
    """Raised when a file maps to zero or several loaded packages."""

    def __init__(self, path: str, candidates: Sequence[str]) -> None:
        if candidates:
            detail = f"expected only 1 package, found {len(candidates)}: " + ", ".join(candidates)
        else:
            detail = "file does not belong to any known package"
        super().__init__(f"resolving package for {path}: {detail}")
        self.path = path
        self.candidates = list(candidates)


# Front end -----------------------------------------------------------------


class SchemaError(GenerationError):
    """Raised when a type schema file cannot be loaded."""


class TypeExpressionError(SchemaError):
    """Raised when a type expression in a schema file is not well formed."""

    def __init__(self, expression: str, offset: int, detail: str) -> None:
        super().__init__(f"invalid type expression {expression!r} at offset {offset}: {detail}")
        self.expression = expression
        self.offset = offset
        self.detail = detail


__all__ = [
    "GenerationError",
    "InterfaceNotFound",
    "InvalidGeneratorType",
    "MalformedDirective",
    "MissingRequiredArgument",
    "NoDirectivesFound",
    "NotAnInterface",
    "PackageResolutionError",
    "RecursionLimitExceeded",
    "SchemaError",
    "TemplateExecutionError",
    "TemplateNotFound",
    "TemplateParseError",
    "TypeExpressionError",
    "UnsupportedTypeShape",
]

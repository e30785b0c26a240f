"""Extraction of generation directives from struct field tags."""

from __future__ import annotations

from dataclasses import dataclass, field
import re
from typing import Dict, List, Mapping, Optional, Sequence

from .errors import InvalidGeneratorType, MalformedDirective, RecursionLimitExceeded
from .logging import get_logger
from .types import Named, Struct, TypeIdentity, type_string

DEFAULT_DIRECTIVE_KEY = "codegen"
DEFAULT_MAX_DEPTH = 32

ArgumentMap = Dict[str, str]

_ESCAPES = {"\\": "\\", '"': '"', "'": "'", "n": "\n", "t": "\t", "r": "\r", "0": "\0"}
_ESCAPE_PATTERN = re.compile(r"\\(.)", re.DOTALL)

logger = get_logger("directives")


@dataclass(frozen=True)
class InvocationKey:
    """Canonical, hashable form of an invocation used for deduplication."""

    generator: TypeIdentity
    target: TypeIdentity
    args: tuple[tuple[str, str], ...]


@dataclass(frozen=True)
class Invocation:
    """Run ``generator`` against ``target`` with ``args``."""

    generator: Named
    target: Named
    args: ArgumentMap = field(default_factory=dict, hash=False)

    @property
    def key(self) -> InvocationKey:
        return InvocationKey(
            generator=self.generator.identity,
            target=self.target.identity,
            args=tuple(sorted(self.args.items())),
        )

    def describe(self) -> str:
        return f"{self.generator.identity} -> {self.target.identity}"


def lookup_tag(tag: str, key: str) -> Optional[str]:
    """Return the value stored under ``key`` in a conventional struct tag.

    Tags look like ``codegen:"type=string" json:"-"``. Returns None when the
    key is absent. Raises ValueError when the tag is not well formed and the
    key could plausibly be inside the unparseable remainder.
    """
    remaining = tag
    while remaining:
        remaining = remaining.lstrip(" ")
        if not remaining:
            break
        index = 0
        while (
            index < len(remaining)
            and remaining[index] > " "
            and remaining[index] not in ':"'
            and remaining[index] != "\x7f"
        ):
            index += 1
        if (
            index == 0
            or index + 1 >= len(remaining)
            or remaining[index] != ":"
            or remaining[index + 1] != '"'
        ):
            return _syntax_error(remaining, key, "expected name:\"value\" pair")
        name = remaining[:index]
        remaining = remaining[index + 1 :]

        index = 1
        while index < len(remaining) and remaining[index] != '"':
            if remaining[index] == "\\":
                index += 1
            index += 1
        if index >= len(remaining):
            return _syntax_error(name + ":" + remaining, key, "unterminated quoted value")
        quoted = remaining[: index + 1]
        remaining = remaining[index + 1 :]

        if name == key:
            return _unquote(quoted)
    return None


def _syntax_error(remaining: str, key: str, detail: str) -> None:
    if f"{key}:" in remaining:
        raise ValueError(f"{detail} near {remaining!r}")
    return None


def _unquote(quoted: str) -> str:
    body = quoted[1:-1]

    def _replace(match: re.Match[str]) -> str:
        escaped = match.group(1)
        if escaped not in _ESCAPES:
            raise ValueError(f"unsupported escape \\{escaped} in {quoted}")
        return _ESCAPES[escaped]

    return _ESCAPE_PATTERN.sub(_replace, body)


def parse_args(raw: str) -> ArgumentMap:
    """Parse ``key1=val1,key2`` into an argument map.

    A key without ``=value`` maps to the empty string and the first
    occurrence of a repeated key wins. Values are opaque.
    """
    args: ArgumentMap = {}
    if raw == "":
        return args
    for position, entry in enumerate(raw.split(","), start=1):
        key, _, value = entry.partition("=")
        key = key.strip()
        if not key:
            raise ValueError(f"empty argument name in entry {position} of {raw!r}")
        if any(ch.isspace() for ch in key):
            raise ValueError(f"argument name {key!r} contains whitespace")
        args.setdefault(key, value)
    return args


def merge_args(inner: Mapping[str, str], outer: Mapping[str, str]) -> ArgumentMap:
    """Fill keys missing from ``inner`` with values from ``outer``."""
    merged = dict(inner)
    for key, value in outer.items():
        merged.setdefault(key, value)
    return merged


def extract_invocations(
    target: Named,
    *,
    directive_key: str = DEFAULT_DIRECTIVE_KEY,
    max_depth: int = DEFAULT_MAX_DEPTH,
) -> List[Invocation]:
    """Return the invocations requested by ``target``'s fields.

    Fields are visited in declaration order. When a generator type is itself
    a struct, its own directives follow immediately after the directive that
    introduced it, inheriting any argument they do not set themselves.
    """
    shape = target.underlying
    if not isinstance(shape, Struct):
        return []
    invocations = _extract(
        target,
        owner=target,
        shape=shape,
        inherited={},
        chain=(str(target.identity),),
        directive_key=directive_key,
        max_depth=max_depth,
    )
    if invocations:
        logger.debug("Extracted %d invocation(s) from %s", len(invocations), target.identity)
    return invocations


def _extract(
    target: Named,
    *,
    owner: Named,
    shape: Struct,
    inherited: Mapping[str, str],
    chain: Sequence[str],
    directive_key: str,
    max_depth: int,
) -> List[Invocation]:
    invocations: List[Invocation] = []
    owner_name = str(owner.identity)
    for var in shape.fields:
        try:
            raw = lookup_tag(var.tag, directive_key)
            if raw is None:
                continue
            args = parse_args(raw)
        except ValueError as exc:
            raise MalformedDirective(owner_name, var.name, str(exc)) from exc

        generator = var.type
        if not isinstance(generator, Named):
            raise InvalidGeneratorType(owner_name, var.name, type_string(generator))

        merged = merge_args(args, inherited)
        invocations.append(Invocation(generator=generator, target=target, args=merged))

        nested = generator.underlying
        if not isinstance(nested, Struct):
            continue
        next_chain = (*chain, str(generator.identity))
        if len(next_chain) - 1 > max_depth:
            raise RecursionLimitExceeded(str(target.identity), next_chain, max_depth)
        invocations.extend(
            _extract(
                target,
                owner=generator,
                shape=nested,
                inherited=merged,
                chain=next_chain,
                directive_key=directive_key,
                max_depth=max_depth,
            )
        )
    return invocations


__all__ = [
    "ArgumentMap",
    "DEFAULT_DIRECTIVE_KEY",
    "DEFAULT_MAX_DEPTH",
    "Invocation",
    "InvocationKey",
    "extract_invocations",
    "lookup_tag",
    "merge_args",
    "parse_args",
]

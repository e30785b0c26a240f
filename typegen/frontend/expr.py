"""Recursive-descent parser for type expressions used in schema files."""

from __future__ import annotations

from dataclasses import dataclass
import re
from typing import Callable, List, Optional, Tuple as PyTuple

from ..errors import TypeExpressionError
from ..types import (
    Array,
    Basic,
    Chan,
    ChanDir,
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
    Var,
)

# Resolves an optionally package-qualified identifier to a type.
Resolver = Callable[[Optional[str], str], Type]

KEYWORDS = frozenset({"map", "chan", "func", "struct", "interface"})

_TOKEN_PATTERN = re.compile(
    r"""
    (?P<ws>\s+)
  | (?P<ellipsis>\.\.\.)
  | (?P<arrow><-)
  | (?P<ident>[A-Za-z_][A-Za-z0-9_]*)
  | (?P<int>[0-9]+)
  | (?P<string>"(?:[^"\\]|\\.)*"|`[^`]*`)
  | (?P<punct>[*\[\](){},;.])
    """,
    re.VERBOSE,
)


@dataclass(frozen=True)
class Token:
    kind: str
    text: str
    offset: int


def tokenize(expression: str) -> List[Token]:
    tokens: List[Token] = []
    offset = 0
    while offset < len(expression):
        match = _TOKEN_PATTERN.match(expression, offset)
        if match is None:
            raise TypeExpressionError(expression, offset, f"unexpected character {expression[offset]!r}")
        kind = match.lastgroup or ""
        if kind != "ws":
            tokens.append(Token(kind, match.group(), offset))
        offset = match.end()
    return tokens


def parse_type(expression: str, resolve: Resolver) -> Type:
    """Parse ``expression`` into a type shape, resolving names through ``resolve``."""
    return _Parser(expression, resolve).parse()


def parse_signature(expression: str, resolve: Resolver) -> Signature:
    """Parse a ``func(...)`` expression; anything else is an error."""
    parsed = parse_type(expression, resolve)
    if not isinstance(parsed, Signature):
        raise TypeExpressionError(expression, 0, "expected a func type")
    return parsed


class _Parser:
    def __init__(self, expression: str, resolve: Resolver) -> None:
        self.expression = expression
        self.resolve = resolve
        self.tokens = tokenize(expression)
        self.index = 0

    # -- token helpers -------------------------------------------------

    def peek(self, ahead: int = 0) -> Optional[Token]:
        position = self.index + ahead
        return self.tokens[position] if position < len(self.tokens) else None

    def peek_text(self, ahead: int = 0) -> str:
        token = self.peek(ahead)
        return token.text if token is not None else ""

    def advance(self) -> Token:
        token = self.peek()
        if token is None:
            raise self.error("unexpected end of expression")
        self.index += 1
        return token

    def expect(self, text: str) -> Token:
        token = self.peek()
        if token is None or token.text != text:
            raise self.error(f"expected {text!r}", token)
        self.index += 1
        return token

    def expect_ident(self) -> Token:
        token = self.peek()
        if token is None or token.kind != "ident":
            raise self.error("expected identifier", token)
        self.index += 1
        return token

    def error(self, detail: str, token: Optional[Token] = None) -> TypeExpressionError:
        if token is None:
            token = self.peek()
        offset = token.offset if token is not None else len(self.expression)
        found = f", found {token.text!r}" if token is not None else ""
        return TypeExpressionError(self.expression, offset, detail + found)

    @staticmethod
    def starts_type(token: Optional[Token]) -> bool:
        if token is None:
            return False
        return token.kind in {"ident", "arrow"} or token.text in {"*", "[", "("}

    # -- grammar -------------------------------------------------------

    def parse(self) -> Type:
        parsed = self.type()
        if self.peek() is not None:
            raise self.error("unexpected trailing input")
        return parsed

    def type(self) -> Type:
        token = self.peek()
        if token is None:
            raise self.error("unexpected end of expression")
        if token.text == "*":
            self.advance()
            return Pointer(self.type())
        if token.text == "[":
            self.advance()
            if self.peek_text() == "]":
                self.advance()
                return Slice(self.type())
            length = self.advance()
            if length.kind != "int":
                raise self.error("expected array length", length)
            self.expect("]")
            return Array(self.type(), int(length.text))
        if token.text == "(":
            self.advance()
            inner = self.type()
            self.expect(")")
            return inner
        if token.kind == "arrow":
            self.advance()
            self.expect("chan")
            return Chan(self.type(), ChanDir.RECV)
        if token.kind != "ident":
            raise self.error("expected a type", token)
        if token.text == "map":
            self.advance()
            self.expect("[")
            key = self.type()
            self.expect("]")
            return Map(key, self.type())
        if token.text == "chan":
            self.advance()
            if self.peek() is not None and self.peek().kind == "arrow":  # type: ignore[union-attr]
                self.advance()
                return Chan(self.type(), ChanDir.SEND)
            return Chan(self.type(), ChanDir.BOTH)
        if token.text == "func":
            self.advance()
            return self.signature()
        if token.text == "struct":
            self.advance()
            return self.struct()
        if token.text == "interface":
            self.advance()
            return self.interface()
        return self.qualident()

    def qualident(self) -> Type:
        first = self.expect_ident()
        if self.peek_text() == "." and (self.peek(1) is not None and self.peek(1).kind == "ident"):  # type: ignore[union-attr]
            self.advance()
            member = self.advance()
            return self.resolve(first.text, member.text)
        return self.resolve(None, first.text)

    def signature(self) -> Signature:
        params, variadic = self.parameters(allow_variadic=True)
        results = Tuple()
        if self.peek_text() == "(":
            results, _ = self.parameters(allow_variadic=False)
        elif self.starts_type(self.peek()):
            results = Tuple((Var("", self.type()),))
        return Signature(params, results, variadic)

    def parameters(self, *, allow_variadic: bool) -> PyTuple[Tuple, bool]:
        open_token = self.expect("(")
        # Each entry: (kind, name, type, variadic) where kind is bare/named/type.
        entries: List[PyTuple[str, str, Optional[Type], bool]] = []
        while self.peek_text() != ")":
            token = self.peek()
            if token is None:
                raise self.error("unterminated parameter list", open_token)
            if token.kind == "ident" and token.text not in KEYWORDS:
                following = self.peek(1)
                if following is not None and following.text in {",", ")"}:
                    self.advance()
                    entries.append(("bare", token.text, None, False))
                elif following is not None and following.text == ".":
                    entries.append(("type", "", self.type(), False))
                elif following is not None and following.kind == "ellipsis":
                    self.advance()
                    self.advance()
                    entries.append(("named", token.text, Slice(self.type()), True))
                else:
                    self.advance()
                    entries.append(("named", token.text, self.type(), False))
            elif token.kind == "ellipsis":
                self.advance()
                entries.append(("type", "", Slice(self.type()), True))
            else:
                entries.append(("type", "", self.type(), False))
            if self.peek_text() == ",":
                self.advance()
                continue
            break
        self.expect(")")

        variadic = False
        for position, (_, _, _, is_variadic) in enumerate(entries):
            if not is_variadic:
                continue
            if not allow_variadic or position != len(entries) - 1:
                raise self.error("can only use ... with final parameter", open_token)
            variadic = True

        if any(kind == "named" for kind, _, _, _ in entries):
            return Tuple(tuple(self._group_named(entries, open_token))), variadic

        members = []
        for kind, name, parsed, _ in entries:
            member_type = self.resolve(None, name) if kind == "bare" else parsed
            members.append(Var("", member_type))  # type: ignore[arg-type]
        return Tuple(tuple(members)), variadic

    def _group_named(
        self,
        entries: List[PyTuple[str, str, Optional[Type], bool]],
        anchor: Token,
    ) -> List[Var]:
        grouped: List[Var] = []
        pending: List[str] = []
        for kind, name, parsed, _ in entries:
            if kind == "type":
                raise self.error("mixed named and unnamed parameters", anchor)
            if kind == "bare":
                pending.append(name)
                continue
            for waiting in pending:
                grouped.append(Var(waiting, parsed))  # type: ignore[arg-type]
            pending.clear()
            grouped.append(Var(name, parsed))  # type: ignore[arg-type]
        if pending:
            raise self.error("mixed named and unnamed parameters", anchor)
        return grouped

    def struct(self) -> Struct:
        self.expect("{")
        fields: List[Var] = []
        while self.peek_text() != "}":
            token = self.peek()
            if token is None:
                raise self.error("unterminated struct")
            if token.text == "*":
                self.advance()
                embedded = self.qualident()
                fields.append(Var(self._embedded_name(embedded), Pointer(embedded), True, self.tag()))
            elif token.kind == "ident":
                following = self.peek(1)
                if following is None or following.text in {".", ";", "}"} or following.kind == "string":
                    embedded = self.qualident()
                    fields.append(Var(self._embedded_name(embedded), embedded, True, self.tag()))
                else:
                    names = [self.advance().text]
                    while self.peek_text() == ",":
                        self.advance()
                        names.append(self.expect_ident().text)
                    field_type = self.type()
                    tag = self.tag()
                    fields.extend(Var(name, field_type, False, tag) for name in names)
            else:
                raise self.error("expected field declaration", token)
            if self.peek_text() == ";":
                self.advance()
            elif self.peek_text() != "}":
                raise self.error("expected ';' or '}' after field")
        self.expect("}")
        return Struct(tuple(fields))

    def _embedded_name(self, embedded: Type) -> str:
        if isinstance(embedded, (Named, Basic)):
            return embedded.name
        raise self.error("embedded field must be a type name")

    def tag(self) -> str:
        token = self.peek()
        if token is None or token.kind != "string":
            return ""
        self.advance()
        body = token.text[1:-1]
        if token.text.startswith("`"):
            return body
        return body.replace('\\"', '"').replace("\\\\", "\\")

    def interface(self) -> Interface:
        self.expect("{")
        methods: List[Func] = []
        embeddeds: List[Type] = []
        while self.peek_text() != "}":
            token = self.peek()
            if token is None:
                raise self.error("unterminated interface")
            if token.kind == "ident" and token.text not in KEYWORDS and self.peek_text(1) == "(":
                self.advance()
                methods.append(Func(token.text, self.signature()))
            else:
                embeddeds.append(self.type())
            if self.peek_text() == ";":
                self.advance()
            elif self.peek_text() != "}":
                raise self.error("expected ';' or '}' after interface member")
        self.expect("}")
        return Interface(tuple(methods), tuple(embeddeds))


__all__ = ["KEYWORDS", "Resolver", "Token", "parse_signature", "parse_type", "tokenize"]

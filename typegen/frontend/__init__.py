"""Schema front end: type expressions and package loading."""

from .expr import parse_signature, parse_type, tokenize
from .loader import SCHEMA_SUFFIX, SchemaLoader

__all__ = ["SCHEMA_SUFFIX", "SchemaLoader", "parse_signature", "parse_type", "tokenize"]

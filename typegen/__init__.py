"""Directive-driven, type-aware code generation."""

__version__ = "0.1.0"

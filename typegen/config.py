"""Configuration loading for typegen (.typegen.yml)."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from .directives import DEFAULT_DIRECTIVE_KEY, DEFAULT_MAX_DEPTH
from .templates import DEFAULT_TEMPLATE_SUFFIX

CONFIG_FILENAME = ".typegen.yml"
DEFAULT_OUTPUT_SUFFIX = "_generated.go"
DEFAULT_HEADER = "Code generated by typegen. DO NOT EDIT."


class ConfigError(RuntimeError):
    """Raised when the configuration file cannot be parsed or is invalid."""


@dataclass
class TemplateSettings:
    """Jinja2 environment options applied to every generator template."""

    suffix: str = DEFAULT_TEMPLATE_SUFFIX
    trim_blocks: bool = True
    lstrip_blocks: bool = True
    strict_undefined: bool = True


@dataclass
class OutputSettings:
    """How generated artifacts are named and laid out."""

    suffix: str = DEFAULT_OUTPUT_SUFFIX
    template: Optional[Path] = None
    header: str = DEFAULT_HEADER


@dataclass
class TypegenConfig:
    """Settings for a typegen run, rooted at the directory holding .typegen.yml."""

    root: Path
    directive_key: str = DEFAULT_DIRECTIVE_KEY
    max_depth: int = DEFAULT_MAX_DEPTH
    modules: Dict[str, Path] = field(default_factory=dict)
    templates: TemplateSettings = field(default_factory=TemplateSettings)
    output: OutputSettings = field(default_factory=OutputSettings)

    def __post_init__(self) -> None:
        if not self.modules:
            self.modules = {self.root.name: self.root}


def load_config(config_path: Path) -> TypegenConfig:
    """Load configuration from disk, falling back to defaults when absent."""
    config_file = _resolve_config_path(config_path)
    root = config_file.parent.resolve()

    if not config_file.exists():
        return TypegenConfig(root=root)

    data = _read_config(config_file)
    if not isinstance(data, dict):
        raise ConfigError(f"{config_file.name} must contain a mapping at the root")

    directive_key = _as_str(data.get("directive_key")) or DEFAULT_DIRECTIVE_KEY
    if any(ch.isspace() or ch in ':"' for ch in directive_key):
        raise ConfigError(f"directive_key {directive_key!r} is not a valid tag key")

    max_depth = DEFAULT_MAX_DEPTH
    if "max_depth" in data:
        parsed_depth = _as_int(data.get("max_depth"))
        if parsed_depth is None or parsed_depth < 1:
            raise ConfigError("max_depth must be a positive integer")
        max_depth = parsed_depth

    modules: Dict[str, Path] = {}
    for prefix, directory in _as_dict(data.get("modules")).items():
        directory_str = _as_str(directory)
        if directory_str is None:
            raise ConfigError(f"module {prefix!r} must map to a directory path")
        modules[str(prefix).strip("/")] = (root / directory_str).resolve()

    template_data = _as_dict(data.get("templates"))
    templates = TemplateSettings(
        suffix=_as_str(data.get("template_suffix")) or DEFAULT_TEMPLATE_SUFFIX,
        trim_blocks=_bool_or(template_data.get("trim_blocks"), True),
        lstrip_blocks=_bool_or(template_data.get("lstrip_blocks"), True),
        strict_undefined=_bool_or(template_data.get("strict_undefined"), True),
    )

    output_data = _as_dict(data.get("output"))
    template_str = _as_str(output_data.get("template"))
    output = OutputSettings(
        suffix=_as_str(output_data.get("suffix")) or DEFAULT_OUTPUT_SUFFIX,
        template=(root / template_str) if template_str else None,
        header=_as_str(output_data.get("header")) or DEFAULT_HEADER,
    )

    return TypegenConfig(
        root=root,
        directive_key=directive_key,
        max_depth=max_depth,
        modules=modules,
        templates=templates,
        output=output,
    )


def _resolve_config_path(config_path: Path) -> Path:
    config_path = config_path.expanduser()
    if config_path.is_dir():
        return (config_path / CONFIG_FILENAME).resolve()
    return config_path.resolve()


def _read_config(path: Path) -> Dict[str, Any]:
    try:
        text = path.read_text(encoding="utf-8")
    except UnicodeDecodeError as exc:
        raise ConfigError(f"Failed to read {path.name}: {exc}") from exc
    if not text.strip():
        return {}
    try:
        loaded = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse {path.name}: {exc}") from exc
    return loaded if loaded is not None else {}


def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _as_str(value: Any) -> Optional[str]:
    return str(value) if isinstance(value, (str, int, float)) and not isinstance(value, bool) else None


def _as_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value)
        except ValueError:
            return None
    return None


def _bool_or(value: Any, default: bool) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in {"true", "yes", "1"}:
            return True
        if lowered in {"false", "no", "0"}:
            return False
    return default


__all__ = [
    "CONFIG_FILENAME",
    "ConfigError",
    "OutputSettings",
    "TemplateSettings",
    "TypegenConfig",
    "load_config",
]

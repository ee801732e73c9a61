"""Configuration loading for nestdoc (.nestdoc.yml)."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Sequence

import yaml

CONFIG_FILENAME = ".nestdoc.yml"

DEFAULT_PARSER_PATH = "./parser-go/go-parser"
DEFAULT_MAX_OUTPUT_BYTES = 50 * 1024 * 1024
DEFAULT_SOURCE_INCLUDE = ("src/**/*.ts",)
DEFAULT_SOURCE_EXCLUDE = ("**/*.d.ts", "**/node_modules/**")
DEFAULT_TREE_EXCLUDE = (".git", "node_modules", "dist", "output", "coverage")
SUPPORTED_FORMATS = ("docx", "markdown")

ENV_PARSER_PATH_KEYS = ("NESTDOC_PARSER_PATH", "GO_PARSER_PATH")
ENV_OUTPUT_DIR_KEYS = ("NESTDOC_OUTPUT_DIR",)
ENV_FORMAT_KEYS = ("NESTDOC_FORMAT",)


class ConfigError(RuntimeError):
    """Raised when the configuration file cannot be parsed."""


@dataclass
class ParserConfig:
    """Settings for the external structural parser process."""

    path: Path
    max_output_bytes: int = DEFAULT_MAX_OUTPUT_BYTES
    timeout: Optional[float] = None


@dataclass
class OutputConfig:
    """Where generated artifacts land and in which format."""

    dir: Path
    format: str = "docx"


@dataclass
class SourceConfig:
    """Glob patterns selecting the TypeScript sources to analyse."""

    include: List[str] = field(default_factory=lambda: list(DEFAULT_SOURCE_INCLUDE))
    exclude: List[str] = field(default_factory=lambda: list(DEFAULT_SOURCE_EXCLUDE))


@dataclass
class TreeConfig:
    """Folder listing options."""

    exclude: List[str] = field(default_factory=lambda: list(DEFAULT_TREE_EXCLUDE))
    max_depth: Optional[int] = None


@dataclass
class NestDocConfig:
    """Represents the settings defined in .nestdoc.yml merged with the environment."""

    root: Path
    parser: ParserConfig
    output: OutputConfig
    sources: SourceConfig = field(default_factory=SourceConfig)
    tree: TreeConfig = field(default_factory=TreeConfig)


def default_config(root: Path, env: Mapping[str, str] | None = None) -> NestDocConfig:
    """Return the built-in defaults rooted at ``root``."""
    return _build_config(root.resolve(), {}, env)


def load_config(config_path: Path, env: Mapping[str, str] | None = None) -> NestDocConfig:
    """Load configuration from disk, falling back to defaults when absent."""
    config_file = _resolve_config_path(config_path)
    root = config_file.parent.resolve()

    if not config_file.exists():
        return _build_config(root, {}, env)

    data = _read_config(config_file)
    if not isinstance(data, dict):
        raise ConfigError(f"{CONFIG_FILENAME} must contain a mapping at the root")
    return _build_config(root, data, env)


def _build_config(
    root: Path, data: Dict[str, Any], env: Mapping[str, str] | None
) -> NestDocConfig:
    environ = os.environ if env is None else env

    parser_data = _as_dict(data.get("parser"))
    parser_path = _first_env(environ, ENV_PARSER_PATH_KEYS) or _as_str(parser_data.get("path"))
    max_output = _as_int(parser_data.get("max_output_bytes"))
    if max_output is not None and max_output <= 0:
        raise ConfigError("parser.max_output_bytes must be a positive integer")
    parser = ParserConfig(
        path=_resolve_path(root, parser_path or DEFAULT_PARSER_PATH),
        max_output_bytes=max_output or DEFAULT_MAX_OUTPUT_BYTES,
        timeout=_as_float(parser_data.get("timeout")),
    )

    output_data = _as_dict(data.get("output"))
    output_dir = _first_env(environ, ENV_OUTPUT_DIR_KEYS) or _as_str(output_data.get("dir"))
    output_format = (
        _first_env(environ, ENV_FORMAT_KEYS) or _as_str(output_data.get("format")) or "docx"
    ).lower()
    if output_format not in SUPPORTED_FORMATS:
        supported = ", ".join(SUPPORTED_FORMATS)
        raise ConfigError(f"Unsupported output format '{output_format}' (expected one of: {supported})")
    output = OutputConfig(dir=_resolve_path(root, output_dir or "output"), format=output_format)

    sources = SourceConfig()
    sources_data = _as_dict(data.get("sources"))
    if "include" in sources_data:
        sources.include = _as_str_list(sources_data.get("include"))
    if "exclude" in sources_data:
        sources.exclude = _as_str_list(sources_data.get("exclude"))

    tree = TreeConfig()
    tree_data = _as_dict(data.get("tree"))
    if "exclude" in tree_data:
        tree.exclude = _as_str_list(tree_data.get("exclude"))
    tree.max_depth = _as_int(tree_data.get("max_depth"))

    return NestDocConfig(root=root, parser=parser, output=output, sources=sources, tree=tree)


def _resolve_config_path(config_path: Path) -> Path:
    config_path = config_path.expanduser()
    if config_path.is_dir():
        return (config_path / CONFIG_FILENAME).resolve()
    return config_path.resolve()


def _read_config(path: Path) -> Any:
    text = path.read_text(encoding="utf-8")
    if not text.strip():
        return {}
    try:
        loaded = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse {path.name}: {exc}") from exc
    return loaded if loaded is not None else {}


def _resolve_path(root: Path, value: str) -> Path:
    candidate = Path(value).expanduser()
    if not candidate.is_absolute():
        candidate = root / candidate
    return candidate.resolve()


def _first_env(environ: Mapping[str, str], keys: Sequence[str]) -> Optional[str]:
    for key in keys:
        value = environ.get(key)
        if value:
            return value
    return None


def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _as_str(value: Any) -> Optional[str]:
    return str(value) if isinstance(value, (str, int, float)) and not isinstance(value, bool) else None


def _as_float(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value)
        except ValueError:
            return None
    return None


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


def _as_str_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, Sequence):
        return [str(item) for item in value if isinstance(item, (str, int, float))]
    return []


__all__ = [
    "CONFIG_FILENAME",
    "ConfigError",
    "NestDocConfig",
    "OutputConfig",
    "ParserConfig",
    "SourceConfig",
    "TreeConfig",
    "default_config",
    "load_config",
]

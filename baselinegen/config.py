"""Configuration loading for baselinegen (.baselinegen.yml)."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import yaml

from .errors import ConfigError

CONFIG_FILENAME = ".baselinegen.yml"
DEFAULT_STAGING_DIR = "generated"
DEFAULT_CACHE_PATH = ".baselinegen/cache.json"


@dataclass
class FormatterConfig:
    """Formatter backend settings."""

    indent_size: int = 4
    command: List[str] = field(default_factory=list)


@dataclass
class CacheConfig:
    """Result cache settings."""

    enabled: bool = False
    path: Optional[Path] = None


@dataclass
class BaselineConfig:
    """Represents the settings defined in .baselinegen.yml."""

    root: Path
    staging_dir: Path
    workers: int = field(default_factory=lambda: os.cpu_count() or 1)
    exclude_paths: List[str] = field(default_factory=list)
    incompatible_paths: List[str] = field(default_factory=list)
    formatter: FormatterConfig = field(default_factory=FormatterConfig)
    cache: CacheConfig = field(default_factory=CacheConfig)


def load_config(config_path: Path) -> BaselineConfig:
    """Load configuration from disk, falling back to defaults when absent."""
    config_file = _resolve_config_path(config_path)
    root = config_file.parent.resolve()

    if not config_file.exists():
        return BaselineConfig(root=root, staging_dir=root / DEFAULT_STAGING_DIR)

    data = _read_config(config_file)
    if not isinstance(data, dict):
        raise ConfigError(f"{config_file.name} must contain a mapping at the root")

    staging = _as_str(data.get("staging_dir")) or DEFAULT_STAGING_DIR
    config = BaselineConfig(root=root, staging_dir=(root / staging).resolve())

    workers = _as_int(data.get("workers"))
    if workers is not None:
        if workers < 0:
            raise ConfigError("workers must be zero or a positive integer")
        config.workers = workers

    config.exclude_paths = _as_str_list(data.get("exclude_paths"))
    config.incompatible_paths = [
        path.strip("/") for path in _as_str_list(data.get("incompatible_paths")) if path.strip("/")
    ]

    formatter_data = _as_dict(data.get("formatter"))
    if formatter_data:
        indent = _as_int(formatter_data.get("indent_size"))
        if indent is not None:
            config.formatter.indent_size = indent
        config.formatter.command = _as_str_list(formatter_data.get("command"))

    cache_data = _as_dict(data.get("cache"))
    if cache_data:
        config.cache.enabled = _as_bool(cache_data.get("enabled")) or False
        cache_path = _as_str(cache_data.get("path"))
        config.cache.path = root / (cache_path or DEFAULT_CACHE_PATH)
    elif _as_bool(data.get("cache")):
        config.cache.enabled = True
        config.cache.path = root / DEFAULT_CACHE_PATH

    return config


def _resolve_config_path(config_path: Path) -> Path:
    config_path = config_path.expanduser()
    if config_path.is_dir():
        return (config_path / CONFIG_FILENAME).resolve()
    return config_path.resolve()


def _read_config(path: Path) -> Dict[str, Any]:
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"Failed to read {path.name}: {exc}") from exc
    if not text.strip():
        return {}
    try:
        loaded = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse {path.name}: {exc}") from exc
    return loaded or {}


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


def _as_bool(value: Any) -> Optional[bool]:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in {"true", "yes", "1"}:
            return True
        if lowered in {"false", "no", "0"}:
            return False
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
    "BaselineConfig",
    "CONFIG_FILENAME",
    "CacheConfig",
    "ConfigError",
    "FormatterConfig",
    "load_config",
]

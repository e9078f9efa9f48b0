"""Tests for baselinegen.config."""

from __future__ import annotations

import os
from pathlib import Path

import pytest

from baselinegen.config import BaselineConfig, load_config
from baselinegen.errors import ConfigError


def test_load_config_returns_defaults_when_missing(tmp_path: Path) -> None:
    config = load_config(tmp_path)

    assert isinstance(config, BaselineConfig)
    assert config.root == tmp_path.resolve()
    assert config.staging_dir == tmp_path.resolve() / "generated"
    assert config.workers == (os.cpu_count() or 1)
    assert config.exclude_paths == []
    assert config.incompatible_paths == []
    assert config.formatter.indent_size == 4
    assert config.formatter.command == []
    assert config.cache.enabled is False


def test_load_config_parses_expected_fields(tmp_path: Path) -> None:
    config_file = tmp_path / ".baselinegen.yml"
    config_file.write_text(
        """
staging_dir: out/baselines
workers: 2
exclude_paths:
  - "vendor/"
  - "*.min.js"
incompatible_paths:
  - "/legacy/flow/"
formatter:
  indent_size: 2
  command: ["prettier", "--parser", "babel"]
cache:
  enabled: true
  path: .cache/results.json
""",
        encoding="utf-8",
    )

    config = load_config(config_file)

    root = tmp_path.resolve()
    assert config.staging_dir == root / "out" / "baselines"
    assert config.workers == 2
    assert config.exclude_paths == ["vendor/", "*.min.js"]
    assert config.incompatible_paths == ["legacy/flow"]
    assert config.formatter.indent_size == 2
    assert config.formatter.command == ["prettier", "--parser", "babel"]
    assert config.cache.enabled is True
    assert config.cache.path == root / ".cache" / "results.json"


def test_load_config_accepts_cache_shorthand(tmp_path: Path) -> None:
    (tmp_path / ".baselinegen.yml").write_text("cache: true\n", encoding="utf-8")

    config = load_config(tmp_path)

    assert config.cache.enabled is True
    assert config.cache.path == tmp_path.resolve() / ".baselinegen" / "cache.json"


def test_load_config_treats_empty_file_as_defaults(tmp_path: Path) -> None:
    (tmp_path / ".baselinegen.yml").write_text("\n", encoding="utf-8")

    config = load_config(tmp_path)

    assert config.exclude_paths == []


def test_load_config_rejects_non_mapping_root(tmp_path: Path) -> None:
    (tmp_path / ".baselinegen.yml").write_text("- a\n- b\n", encoding="utf-8")

    with pytest.raises(ConfigError):
        load_config(tmp_path)


def test_load_config_rejects_invalid_yaml(tmp_path: Path) -> None:
    (tmp_path / ".baselinegen.yml").write_text("workers: [1, 2\n", encoding="utf-8")

    with pytest.raises(ConfigError):
        load_config(tmp_path)


def test_load_config_rejects_negative_workers(tmp_path: Path) -> None:
    (tmp_path / ".baselinegen.yml").write_text("workers: -1\n", encoding="utf-8")

    with pytest.raises(ConfigError):
        load_config(tmp_path)

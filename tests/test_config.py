"""Tests for nestdoc.config."""

from __future__ import annotations

from pathlib import Path

import pytest

from nestdoc.config import (
    ConfigError,
    DEFAULT_MAX_OUTPUT_BYTES,
    NestDocConfig,
    default_config,
    load_config,
)


def test_load_config_returns_defaults_when_missing(tmp_path: Path) -> None:
    config = load_config(tmp_path, env={})

    assert isinstance(config, NestDocConfig)
    assert config.root == tmp_path.resolve()
    assert config.parser.path == (tmp_path / "parser-go" / "go-parser").resolve()
    assert config.parser.max_output_bytes == DEFAULT_MAX_OUTPUT_BYTES == 50 * 1024 * 1024
    assert config.parser.timeout is None
    assert config.output.dir == (tmp_path / "output").resolve()
    assert config.output.format == "docx"
    assert config.sources.include == ["src/**/*.ts"]
    assert config.sources.exclude == ["**/*.d.ts", "**/node_modules/**"]
    assert config.tree.exclude == [".git", "node_modules", "dist", "output", "coverage"]
    assert config.tree.max_depth is None


def test_load_config_parses_expected_fields(tmp_path: Path) -> None:
    config_file = tmp_path / ".nestdoc.yml"
    config_file.write_text(
        """
parser:
  path: bin/parser
  max_output_bytes: 1024
  timeout: 30
output:
  dir: build/docs
  format: markdown
sources:
  include: ["app/**/*.ts"]
  exclude: []
tree:
  exclude: [".git"]
  max_depth: 2
""",
        encoding="utf-8",
    )

    config = load_config(config_file, env={})

    assert config.parser.path == (tmp_path / "bin" / "parser").resolve()
    assert config.parser.max_output_bytes == 1024
    assert config.parser.timeout == 30.0
    assert config.output.dir == (tmp_path / "build" / "docs").resolve()
    assert config.output.format == "markdown"
    assert config.sources.include == ["app/**/*.ts"]
    assert config.sources.exclude == []
    assert config.tree.exclude == [".git"]
    assert config.tree.max_depth == 2


def test_environment_overrides_file_values(tmp_path: Path) -> None:
    (tmp_path / ".nestdoc.yml").write_text("output:\n  format: docx\n", encoding="utf-8")

    config = load_config(
        tmp_path,
        env={
            "GO_PARSER_PATH": "/opt/parser",
            "NESTDOC_OUTPUT_DIR": "/tmp/nestdoc-out",
            "NESTDOC_FORMAT": "Markdown",
        },
    )

    assert config.parser.path == Path("/opt/parser").resolve()
    assert config.output.dir == Path("/tmp/nestdoc-out").resolve()
    assert config.output.format == "markdown"


def test_primary_parser_variable_wins_over_alias(tmp_path: Path) -> None:
    config = default_config(
        tmp_path, env={"NESTDOC_PARSER_PATH": "/opt/a", "GO_PARSER_PATH": "/opt/b"}
    )

    assert config.parser.path == Path("/opt/a").resolve()


@pytest.mark.parametrize(
    "content",
    [
        "- just\n- a list\n",
        "output:\n  format: pdf\n",
        "parser:\n  max_output_bytes: 0\n",
        "parser: [unclosed\n",
    ],
)
def test_invalid_config_raises(tmp_path: Path, content: str) -> None:
    (tmp_path / ".nestdoc.yml").write_text(content, encoding="utf-8")

    with pytest.raises(ConfigError):
        load_config(tmp_path, env={})

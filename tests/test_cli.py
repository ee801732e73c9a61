"""CLI parser and command behaviour tests."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from nestdoc.cli import _build_parser, main


def test_cli_accepts_verbose_before_command() -> None:
    parser = _build_parser()
    args = parser.parse_args(["--verbose", "generate", "shop"])
    assert args.verbose is True
    assert args.command == "generate"
    assert args.path == "shop"


def test_cli_accepts_verbose_after_command() -> None:
    parser = _build_parser()
    args = parser.parse_args(["routes", "--verbose"])
    assert args.verbose is True
    assert args.command == "routes"
    assert args.path == "."


def test_cli_generate_overrides() -> None:
    parser = _build_parser()
    args = parser.parse_args(
        ["generate", "shop", "--format", "markdown", "--output-dir", "docs", "--parser", "bin/p"]
    )
    assert args.format == "markdown"
    assert args.output_dir == "docs"
    assert args.parser == "bin/p"


def test_cli_rejects_unknown_format() -> None:
    parser = _build_parser()
    with pytest.raises(SystemExit):
        parser.parse_args(["generate", "shop", "--format", "pdf"])


def test_cli_serve_defaults() -> None:
    args = _build_parser().parse_args(["serve"])
    assert (args.host, args.port) == ("0.0.0.0", 8000)


def test_routes_command_prints_json(project_builder, tmp_path: Path, capsys) -> None:
    project_builder.write(
        {
            "src/health.controller.ts": """
            import { Controller, Get } from '@nestjs/common';

            @Controller('health')
            export class HealthController {
              @Get()
              check(): string {
                return 'ok';
              }
            }
            """
        }
    )

    main(["routes", str(project_builder.path()), "--config", str(tmp_path)])

    payload = json.loads(capsys.readouterr().out)
    assert payload == [
        {
            "controller": "HealthController",
            "route": "GET health/",
            "methodName": "check",
            "requestParams": {},
            "responseDto": None,
        }
    ]


def test_interfaces_command_prints_json(project_builder, tmp_path: Path, capsys) -> None:
    project_builder.write({"src/user.ts": "export interface IUser {\n  pet: IPet;\n}\n"})

    main(["interfaces", str(project_builder.path()), "--config", str(tmp_path)])

    payload = json.loads(capsys.readouterr().out)
    assert payload["relationships"] == [{"from": "IUser", "to": "IPet", "type": "Ref"}]


def test_generate_reports_missing_project(tmp_path: Path, capsys) -> None:
    with pytest.raises(SystemExit) as excinfo:
        main(["generate", str(tmp_path / "missing"), "--config", str(tmp_path)])

    assert excinfo.value.code == 1
    assert "does not exist" in capsys.readouterr().err


def test_generate_reports_parser_failure(project_builder, tmp_path: Path, capsys) -> None:
    project_builder.write({"src/app.ts": "export class App {}\n"})

    with pytest.raises(SystemExit) as excinfo:
        main(
            [
                "generate",
                str(project_builder.path()),
                "--config",
                str(tmp_path),
                "--parser",
                str(tmp_path / "no-such-parser"),
            ]
        )

    assert excinfo.value.code == 1
    assert "Parser executable not found" in capsys.readouterr().err

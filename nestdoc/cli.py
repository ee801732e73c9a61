"""CLI entrypoints for nestdoc commands."""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

from .config import SUPPORTED_FORMATS, ConfigError, NestDocConfig, load_config
from .logging import configure_logging
from .orchestrator import DocumentationService
from .parser_bridge import ParserError


def _add_verbose_option(
    parser: argparse.ArgumentParser, *, suppress_default: bool = False
) -> None:
    kwargs: dict[str, object] = {
        "action": "store_true",
        "help": "Increase log verbosity for troubleshooting.",
    }
    if suppress_default:
        kwargs["default"] = argparse.SUPPRESS
    else:
        kwargs["default"] = False
    parser.add_argument(
        "-v",
        "--verbose",
        **kwargs,
    )


def _add_config_option(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--config",
        default=None,
        help="Path to a .nestdoc.yml file or its directory (defaults to the current directory).",
    )


def _add_project_argument(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "path",
        nargs="?",
        default=".",
        help="Path to the TypeScript project root (defaults to current directory).",
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="nestdoc",
        description="Generate project documentation from a NestJS-style TypeScript backend.",
    )
    _add_verbose_option(parser)
    parser.add_argument(
        "--log-file",
        default=None,
        help="Also write detailed logs to this file.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    generate_parser = subparsers.add_parser(
        "generate",
        help="Build the project document and ER diagram.",
    )
    _add_verbose_option(generate_parser, suppress_default=True)
    _add_config_option(generate_parser)
    _add_project_argument(generate_parser)
    generate_parser.add_argument(
        "--output-dir",
        default=None,
        help="Directory receiving <project>/ artifacts (overrides output.dir).",
    )
    generate_parser.add_argument(
        "--format",
        choices=SUPPORTED_FORMATS,
        default=None,
        help="Document format (overrides output.format).",
    )
    generate_parser.add_argument(
        "--parser",
        default=None,
        help="Path to the structural parser executable (overrides parser.path).",
    )

    routes_parser = subparsers.add_parser(
        "routes",
        help="Print extracted endpoint records as JSON.",
    )
    _add_verbose_option(routes_parser, suppress_default=True)
    _add_config_option(routes_parser)
    _add_project_argument(routes_parser)

    interfaces_parser = subparsers.add_parser(
        "interfaces",
        help="Print mined interfaces and their references as JSON.",
    )
    _add_verbose_option(interfaces_parser, suppress_default=True)
    _add_config_option(interfaces_parser)
    _add_project_argument(interfaces_parser)

    serve_parser = subparsers.add_parser(
        "serve",
        help="Run the HTTP service.",
    )
    _add_verbose_option(serve_parser, suppress_default=True)
    serve_parser.add_argument("--host", default="0.0.0.0", help="Interface to bind.")
    serve_parser.add_argument("--port", type=int, default=8000, help="Port to listen on.")

    return parser


def main(argv: list[str] | None = None) -> None:
    """CLI entrypoint for nestdoc commands."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    configure_logging(
        verbose=bool(args.verbose),
        log_file=Path(args.log_file) if args.log_file else None,
    )

    if args.command == "serve":
        from .service import run_service

        run_service(host=args.host, port=args.port, verbose=bool(args.verbose))
        return

    try:
        config = _load_config(args)
    except ConfigError as exc:
        parser.exit(1, f"nestdoc: {exc}\n")

    service = DocumentationService(config=config)

    if args.command == "generate":
        try:
            result = service.generate(args.path)
        except FileNotFoundError as exc:
            parser.exit(1, f"{exc}\n")
        except ParserError as exc:
            parser.exit(1, f"nestdoc generate failed: {exc}\nRun with --verbose for more details.\n")
        except Exception as exc:  # pragma: no cover - last-resort guard
            parser.exit(1, f"nestdoc generate failed: {exc}\nRun with --verbose for more details.\n")
        print(f"Documentation written to {_relativize(result.path)}")
        print(f"ER diagram written to {_relativize(result.diagram_path)}")
    elif args.command == "routes":
        try:
            endpoints = service.routes(args.path)
        except FileNotFoundError as exc:
            parser.exit(1, f"{exc}\n")
        print(json.dumps([endpoint.to_dict() for endpoint in endpoints], indent=2))
    elif args.command == "interfaces":
        try:
            report = service.interfaces(args.path)
        except FileNotFoundError as exc:
            parser.exit(1, f"{exc}\n")
        print(json.dumps(report.to_payload(), indent=2))
    else:  # pragma: no cover - argparse enforces choices
        parser.exit(1, "Unknown command\n")


def _load_config(args: argparse.Namespace) -> NestDocConfig:
    config = load_config(Path(args.config) if args.config else Path.cwd())
    if getattr(args, "output_dir", None):
        config.output.dir = Path(args.output_dir).expanduser().resolve()
    if getattr(args, "format", None):
        config.output.format = args.format
    if getattr(args, "parser", None):
        config.parser.path = Path(args.parser).expanduser().resolve()
    return config


def _relativize(path: Path) -> str:
    try:
        return str(path.relative_to(Path.cwd()))
    except ValueError:
        return str(path)


if __name__ == "__main__":
    main(sys.argv[1:])

"""Logging setup shared by the CLI, the pipeline and the HTTP service."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import IO, Optional

_ROOT = "nestdoc"
_CONSOLE_FORMAT = "[nestdoc] %(levelname)s %(message)s"
_FILE_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def get_logger(name: str | None = None) -> logging.Logger:
    """Return ``nestdoc.<name>``, or the package logger when ``name`` is empty."""
    return logging.getLogger(f"{_ROOT}.{name}" if name else _ROOT)


def level_for(verbose: bool) -> int:
    return logging.DEBUG if verbose else logging.INFO


def uvicorn_log_level(verbose: bool) -> str:
    """Map the verbosity flag onto uvicorn's ``log_level`` names."""
    return logging.getLevelName(level_for(verbose)).lower()


def configure_logging(
    *,
    verbose: bool = False,
    log_file: Path | None = None,
    stream: Optional[IO[str]] = None,
) -> logging.Logger:
    """Install the console handler (and an optional file sink) on the nestdoc logger.

    Calling it again replaces the handlers installed by the previous call, so
    repeated CLI invocations in one process never duplicate output.
    """
    level = level_for(verbose)
    logger = logging.getLogger(_ROOT)
    logger.setLevel(level)
    logger.propagate = False
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    console = logging.StreamHandler(stream)
    console.setFormatter(logging.Formatter(_CONSOLE_FORMAT))
    logger.addHandler(console)

    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        sink = logging.FileHandler(log_file, encoding="utf-8")
        sink.setFormatter(logging.Formatter(_FILE_FORMAT))
        logger.addHandler(sink)

    for handler in logger.handlers:
        handler.setLevel(level)
    return logger


__all__ = ["configure_logging", "get_logger", "level_for", "uvicorn_log_level"]

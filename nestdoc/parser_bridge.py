"""Bridge to the external structural parser executable."""

from __future__ import annotations

import json
import subprocess
import sys
import tempfile
import threading
from pathlib import Path
from typing import IO, Callable, Iterable, List, Optional

from .config import DEFAULT_MAX_OUTPUT_BYTES
from .logging import get_logger
from .models import ParsedProjectData

_LOGGER = get_logger("parser_bridge")

Runner = Callable[..., bytes]


class ParserError(RuntimeError):
    """Raised when the structural parser fails or returns unusable output."""


class ParserBridge:
    """Runs the parser against a project directory and decodes its JSON."""

    def __init__(
        self,
        executable: Path,
        *,
        max_output_bytes: int = DEFAULT_MAX_OUTPUT_BYTES,
        timeout: Optional[float] = None,
        runner: Runner | None = None,
    ) -> None:
        self.executable = self._platform_executable(Path(executable))
        self.max_output_bytes = max_output_bytes
        self.timeout = timeout
        self._runner = runner or self._default_runner

    def run(self, project_path: Path) -> ParsedProjectData:
        if not self.executable.exists():
            raise ParserError(f"Parser executable not found: {self.executable}")

        _LOGGER.info("Running parser %s on %s", self.executable, project_path)
        try:
            output = self._runner(
                [str(self.executable), str(project_path)],
                timeout=self.timeout,
                limit=self.max_output_bytes,
            )
        except subprocess.CalledProcessError as exc:
            stderr = _decode(exc.stderr).strip()
            detail = f": {stderr}" if stderr else ""
            raise ParserError(f"Parser exited with status {exc.returncode}{detail}") from exc
        except subprocess.TimeoutExpired as exc:
            raise ParserError(f"Parser timed out after {exc.timeout} seconds") from exc
        except OSError as exc:
            raise ParserError(f"Failed to start parser: {exc}") from exc

        if len(output) > self.max_output_bytes:
            raise ParserError(
                f"Parser output exceeded {self.max_output_bytes} bytes ({len(output)} bytes)"
            )
        text = _decode(output).strip()
        if not text:
            raise ParserError("Parser produced no output")
        try:
            payload = json.loads(text)
        except json.JSONDecodeError as exc:
            raise ParserError(f"Parser returned invalid JSON: {exc}") from exc
        try:
            parsed = ParsedProjectData.from_payload(payload)
        except ValueError as exc:
            raise ParserError(f"Parser returned malformed data: {exc}") from exc

        _LOGGER.debug(
            "Parser reported %d entities, %d classes, %d functions, %d relationships",
            len(parsed.entities),
            len(parsed.classes),
            len(parsed.functions),
            len(parsed.relationships),
        )
        return parsed

    @staticmethod
    def _platform_executable(path: Path) -> Path:
        if sys.platform.startswith("win") and path.suffix.lower() != ".exe":
            return path.with_name(path.name + ".exe")
        return path

    @staticmethod
    def _default_runner(
        args: Iterable[str],
        *,
        timeout: Optional[float] = None,
        limit: Optional[int] = None,
    ) -> bytes:
        """Run the parser and return its stdout.

        Reading stops, and the process is killed, as soon as stdout grows past
        ``limit`` bytes; the caller sees the truncated (still oversized) output.
        """
        command = list(args)
        expired = threading.Event()
        with tempfile.TemporaryFile() as stderr:
            with subprocess.Popen(command, stdout=subprocess.PIPE, stderr=stderr) as process:

                def _expire() -> None:
                    expired.set()
                    process.kill()

                timer = threading.Timer(timeout, _expire) if timeout else None
                if timer is not None:
                    timer.start()
                try:
                    output = _read_capped(process.stdout, limit)
                    if limit is not None and len(output) > limit:
                        process.kill()
                        return output
                    returncode = process.wait()
                finally:
                    if timer is not None:
                        timer.cancel()
            if expired.is_set():
                raise subprocess.TimeoutExpired(command, timeout or 0, output=output)
            if returncode != 0:
                stderr.seek(0)
                raise subprocess.CalledProcessError(
                    returncode, command, output=output, stderr=stderr.read()
                )
        return output


_READ_CHUNK = 64 * 1024


def _read_capped(stream: Optional[IO[bytes]], limit: Optional[int]) -> bytes:
    if stream is None:
        return b""
    chunks: List[bytes] = []
    total = 0
    while True:
        chunk = stream.read(_READ_CHUNK)
        if not chunk:
            break
        chunks.append(chunk)
        total += len(chunk)
        if limit is not None and total > limit:
            break
    return b"".join(chunks)


def _decode(data: bytes | str | None) -> str:
    if data is None:
        return ""
    if isinstance(data, str):
        return data
    return data.decode("utf-8", errors="replace")


__all__ = ["ParserBridge", "ParserError"]

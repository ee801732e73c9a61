"""Tests for nestdoc.parser_bridge."""

from __future__ import annotations

import json
import subprocess
import sys
from pathlib import Path

import pytest

from nestdoc.config import DEFAULT_MAX_OUTPUT_BYTES
from nestdoc.parser_bridge import ParserBridge, ParserError

_PAYLOAD = {
    "entities": [
        {
            "name": "User",
            "filePath": "src/user.entity.ts",
            "docs": "",
            "methods": None,
            "properties": [{"name": "id", "type": "number", "decorators": ["PrimaryGeneratedColumn"]}],
        }
    ],
    "classes": None,
    "functions": [{"name": "bootstrap", "method": "", "route": "", "docs": "Starts", "returnType": "void"}],
    "relationships": [{"from": "Order", "to": "User", "type": "ManyToOne"}],
}


class RecordingRunner:
    """Test double returning canned parser output."""

    def __init__(self, output: bytes = b"", error: Exception | None = None) -> None:
        self.output = output
        self.error = error
        self.calls: list[dict[str, object]] = []

    def __call__(self, args, *, timeout=None, limit=None) -> bytes:
        self.calls.append({"args": list(args), "timeout": timeout, "limit": limit})
        if self.error is not None:
            raise self.error
        return self.output


@pytest.fixture
def executable(tmp_path: Path) -> Path:
    path = tmp_path / "go-parser"
    path.write_text("#!/bin/sh\n", encoding="utf-8")
    return path


def test_run_decodes_parser_output(executable: Path, tmp_path: Path) -> None:
    runner = RecordingRunner(json.dumps(_PAYLOAD).encode("utf-8"))
    bridge = ParserBridge(executable, timeout=5, runner=runner)

    parsed = bridge.run(tmp_path)

    assert runner.calls == [
        {"args": [str(executable), str(tmp_path)], "timeout": 5, "limit": DEFAULT_MAX_OUTPUT_BYTES}
    ]
    assert parsed.entities[0].name == "User"
    assert parsed.entities[0].methods == []
    assert parsed.entities[0].properties[0].decorators == ["PrimaryGeneratedColumn"]
    assert parsed.classes == []
    assert parsed.functions[0].return_type == "void"
    assert parsed.relationships[0].to_dict() == {"from": "Order", "to": "User", "type": "ManyToOne"}


def test_relationships_default_to_empty(executable: Path, tmp_path: Path) -> None:
    payload = {"entities": [], "classes": [], "functions": []}
    bridge = ParserBridge(executable, runner=RecordingRunner(json.dumps(payload).encode()))

    assert bridge.run(tmp_path).relationships == []


def test_missing_executable_raises(tmp_path: Path) -> None:
    runner = RecordingRunner(b"{}")
    bridge = ParserBridge(tmp_path / "missing-parser", runner=runner)

    with pytest.raises(ParserError, match="not found"):
        bridge.run(tmp_path)
    assert runner.calls == []


def test_non_zero_exit_preserves_stderr(executable: Path, tmp_path: Path) -> None:
    error = subprocess.CalledProcessError(2, ["go-parser"], output=b"", stderr=b"boom: bad input")
    bridge = ParserBridge(executable, runner=RecordingRunner(error=error))

    with pytest.raises(ParserError, match="boom: bad input"):
        bridge.run(tmp_path)


@pytest.mark.parametrize(
    ("output", "message"),
    [
        (b"", "no output"),
        (b"   \n", "no output"),
        (b"{not json", "invalid JSON"),
        (b'{"entities": [], "classes": []}', "functions"),
        (b"[]", "JSON object"),
    ],
)
def test_unusable_output_raises(executable: Path, tmp_path: Path, output: bytes, message: str) -> None:
    bridge = ParserBridge(executable, runner=RecordingRunner(output))

    with pytest.raises(ParserError, match=message):
        bridge.run(tmp_path)


def test_output_over_ceiling_raises(executable: Path, tmp_path: Path) -> None:
    payload = json.dumps({"entities": [], "classes": [], "functions": []}).encode()
    bridge = ParserBridge(executable, max_output_bytes=10, runner=RecordingRunner(payload))

    with pytest.raises(ParserError, match="exceeded 10 bytes"):
        bridge.run(tmp_path)


def test_default_runner_stops_reading_past_the_limit() -> None:
    endless = "import sys\nwhile True:\n    sys.stdout.write('x' * 4096)\n"

    output = ParserBridge._default_runner([sys.executable, "-c", endless], timeout=30, limit=1024)

    assert len(output) > 1024
    assert len(output) < 1024 * 1024


def test_default_runner_returns_stdout() -> None:
    script = "import sys; sys.stdout.write('{\"entities\": []}')"

    output = ParserBridge._default_runner([sys.executable, "-c", script], limit=1024)

    assert output == b'{"entities": []}'


def test_default_runner_reports_exit_status_and_stderr() -> None:
    script = "import sys; sys.stderr.write('bad project'); sys.exit(3)"

    with pytest.raises(subprocess.CalledProcessError) as excinfo:
        ParserBridge._default_runner([sys.executable, "-c", script])

    assert excinfo.value.returncode == 3
    assert excinfo.value.stderr == b"bad project"


def test_default_runner_kills_on_timeout() -> None:
    script = "import time; time.sleep(30)"

    with pytest.raises(subprocess.TimeoutExpired):
        ParserBridge._default_runner([sys.executable, "-c", script], timeout=0.5)

import os
from datetime import datetime, timezone

import pytest

from log_analyzer.parser import LogEntry

SAMPLE_LOG = os.path.join(os.path.dirname(__file__), "..", "logs", "sample.log")


def make_line(level="INFO", status=200, path="/api/login", latency="120ms",
              ts="2026-02-01T10:15:01Z") -> str:
    return f"{ts} {level} {status} {path} {latency}"


@pytest.fixture
def make_entry():
    def _make(level="INFO", status=200, path="/api/login", latency_ms=120):
        return LogEntry(
            timestamp=datetime(2026, 2, 1, 10, 15, 1, tzinfo=timezone.utc),
            level=level,
            status=status,
            path=path,
            latency_ms=latency_ms,
        )
    return _make


@pytest.fixture
def sample_log():
    return SAMPLE_LOG


@pytest.fixture
def write_log(tmp_path):
    """Write lines to a log file under tmp_path and return its path."""
    def _write(lines, name="access.log"):
        path = tmp_path / name
        path.write_text("".join(line + "\n" for line in lines), encoding="utf-8")
        return str(path)
    return _write

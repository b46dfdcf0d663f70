"""
Pytest fixtures for the tabular decoder test suite.

Provides:
- LogContext isolation between tests
- Captured structured logs
- Sample price data (bytes, stream and file)
"""

import io
import json
import logging
from io import StringIO
from pathlib import Path

import pytest

from tabular_kernel.logging_config import LogContext, StructuredFormatter


PRICES_CSV = (
    "date,close,high,low,open,volume,adjClose,adjHigh,adjLow,adjOpen,adjVolume,divCash,splitFactor\n"
    "2019-01-02 00:00:00+00:00,157.92,158.85,154.23,154.89,37039737,155.2,156.1,151.57,152.22,37039737,0.0,1.0\n"
    "2019-01-03 00:00:00+00:00,142.19,145.72,142.0,143.98,91312195,139.74,143.21,139.55,141.5,91312195,0.0,1.0\n"
    "2019-01-04 00:00:00-05:00,148.26,148.55,143.8,144.53,58607070,145.7,145.99,141.32,142.04,58607070,0.0,1.0\n"
)


# =============================================================================
# Logging fixtures
# =============================================================================


@pytest.fixture(autouse=True)
def _clear_log_context():
    """Clear LogContext between tests to prevent cross-test contamination."""
    LogContext.clear()
    yield
    LogContext.clear()


@pytest.fixture
def captured_logs():
    """
    Capture tabular logs (DEBUG and above) as parsed JSON dicts.

    Usage::

        def test_something(captured_logs):
            decode_rows(...)
            logs = captured_logs()
            assert any(r["message"] == "decode_completed" for r in logs)
    """
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    root = logging.getLogger("tabular")
    previous_level = root.level
    root.setLevel(logging.DEBUG)
    root.addHandler(handler)

    def _get_records() -> list[dict]:
        lines = stream.getvalue().strip().split("\n")
        return [json.loads(line) for line in lines if line]

    yield _get_records

    root.removeHandler(handler)
    root.setLevel(previous_level)


# =============================================================================
# Data fixtures
# =============================================================================


@pytest.fixture
def prices_stream() -> io.BytesIO:
    return io.BytesIO(PRICES_CSV.encode("utf-8"))


@pytest.fixture
def prices_file(tmp_path: Path) -> Path:
    path = tmp_path / "prices.csv"
    path.write_text(PRICES_CSV, encoding="utf-8")
    return path

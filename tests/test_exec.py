"""Tests for the exec source."""

import pytest

from chartsync.errors import TransportError
from chartsync.sources.exec import run_command


def test_run_command_returns_stdout():
    assert run_command(["sh", "-c", "echo hello"], timeout=5) == b"hello\n"


def test_run_command_non_zero_exit():
    with pytest.raises(TransportError, match="exited with code 3: boom"):
        run_command(["sh", "-c", "echo boom >&2; exit 3"], timeout=5)


def test_run_command_missing_binary():
    with pytest.raises(TransportError):
        run_command(["/nonexistent/nvidia-smi", "-q"], timeout=5)


def test_run_command_timeout():
    with pytest.raises(TransportError, match="did not finish"):
        run_command(["sleep", "5"], timeout=0.2)

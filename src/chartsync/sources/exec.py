"""Exec source: run a binary with a deadline and return its stdout."""

from __future__ import annotations

import logging
import shlex
import subprocess

from ..errors import TransportError

logger = logging.getLogger(__name__)


def run_command(argv: list[str], *, timeout: float) -> bytes:
    """Run *argv* and return stdout.

    Raises TransportError if the binary cannot be started, exits non-zero or
    does not finish within *timeout* seconds.
    """
    cmd = shlex.join(argv)
    logger.debug("Executing '%s'", cmd)
    try:
        proc = subprocess.run(argv, capture_output=True, timeout=timeout, check=True)
    except subprocess.TimeoutExpired as e:
        raise TransportError(f"'{cmd}' did not finish within {timeout}s") from e
    except subprocess.CalledProcessError as e:
        stderr = (e.stderr or b"").decode(errors="replace").strip()
        raise TransportError(f"'{cmd}' exited with code {e.returncode}: {stderr}") from e
    except OSError as e:
        raise TransportError(f"error on '{cmd}': {e}") from e
    return proc.stdout

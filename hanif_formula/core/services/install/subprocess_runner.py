"""
Subprocess runner for post-install checks.

The single place where verification commands are spawned. The child is
polled so a cancel event, a deadline, or Ctrl-C can kill it; in each of
those cases the child is reaped and ``Cancelled`` is raised.
"""

from __future__ import annotations

import logging
import subprocess
import threading
import time
from typing import Any

from hanif_formula.core.errors import Cancelled

logger = logging.getLogger(__name__)

POLL_INTERVAL = 0.1
OUTPUT_TAIL_CHARS = 2000


def run_captured(
    cmd: list[str],
    *,
    step: str,
    timeout: float | None = None,
    cancel_event: threading.Event | None = None,
    env: dict[str, str] | None = None,
    cwd: str | None = None,
) -> dict[str, Any]:
    """Run ``cmd`` and capture its output.

    Args:
        cmd: Argument vector, no shell.
        step: Label used in logs and in ``Cancelled``.
        timeout: Seconds before the child is killed. None waits forever.
        cancel_event: When set, the child is killed.
        env: Full environment for the child (default: inherit).
        cwd: Working directory for the child.

    Returns:
        ``{"rc": N, "stdout": "...", "stderr": "...", "elapsed_ms": N}``.

    Raises:
        OSError: The command could not be launched.
        Cancelled: Killed on cancel event, deadline, or interrupt.
    """
    logger.debug("Running %s: %s", step, cmd)
    start = time.monotonic()
    deadline = start + timeout if timeout is not None else None

    proc = subprocess.Popen(
        cmd,
        stdout=subprocess.PIPE,
        stderr=subprocess.PIPE,
        stdin=subprocess.DEVNULL,
        text=True,
        errors="replace",
        env=env,
        cwd=cwd,
    )

    try:
        while True:
            try:
                stdout, stderr = proc.communicate(timeout=POLL_INTERVAL)
                break
            except subprocess.TimeoutExpired:
                if cancel_event is not None and cancel_event.is_set():
                    _kill(proc)
                    raise Cancelled(step, "cancel requested")
                if deadline is not None and time.monotonic() >= deadline:
                    _kill(proc)
                    raise Cancelled(step, f"timed out after {timeout}s")
    except KeyboardInterrupt:
        _kill(proc)
        raise Cancelled(step, "interrupted") from None

    elapsed_ms = int((time.monotonic() - start) * 1000)
    logger.debug("%s exited %d in %dms", step, proc.returncode, elapsed_ms)
    return {
        "rc": proc.returncode,
        "stdout": stdout or "",
        "stderr": (stderr or "")[-OUTPUT_TAIL_CHARS:],
        "elapsed_ms": elapsed_ms,
    }


def _kill(proc: subprocess.Popen) -> None:
    """Kill the child and reap it so no zombie or open pipe is left."""
    proc.kill()
    try:
        proc.communicate(timeout=5)
    except subprocess.TimeoutExpired:
        logger.warning("Process %d did not exit after kill", proc.pid)

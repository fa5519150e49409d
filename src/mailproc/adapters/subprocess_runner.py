"""Subprocess adapter.

Implements the core ProcessRunner port with ``subprocess.Popen``. Every call
spawns one child, drains its output and reaps it before returning.
"""

from __future__ import annotations

import logging
import subprocess
from typing import Optional, Sequence

from mailproc.core.errors import ProcessSpawnError
from mailproc.core.models import ExitOutcome, Job

LOGGER = logging.getLogger(__name__)


def run_process(command: Sequence[str], input: Optional[bytes] = None) -> Job:
    """Run ``command`` and capture its stdout and stderr.

    ``input`` is written to the child's stdin when given. Without it no pipe
    is opened and the child inherits our stdin. There is no timeout.
    """

    argv = list(command)
    if not argv:
        raise ProcessSpawnError(argv, "empty command")

    try:
        proc = subprocess.Popen(
            argv,
            stdin=subprocess.PIPE if input is not None else None,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
        )
    except OSError as exc:
        raise ProcessSpawnError(argv, str(exc)) from exc

    stdout: Optional[bytes] = None
    stderr: Optional[bytes] = None
    try:
        stdout, stderr = proc.communicate(input)
    except OSError:
        LOGGER.exception("Could not collect output from %s", " ".join(argv))
        proc.wait()

    return Job(
        command=argv,
        outcome=ExitOutcome.from_returncode(proc.returncode),
        stdout=stdout,
        stderr=stderr,
    )


def program_found(program: str) -> bool:
    """Return True when ``program`` resolves on the search path (via ``which``)."""

    return run_process(["which", program]).success

"""Blocking execution of external commands such as adb."""

import logging
import subprocess
import sys

from gameperf.errors import ExecutionError
from gameperf.models import CommandResult

logger = logging.getLogger(__name__)

ADB = "adb"

# Keeps a console window from flashing up on Windows hosts.
_CREATION_FLAGS = subprocess.CREATE_NO_WINDOW if sys.platform == "win32" else 0


def run(program: str, argument_string: str) -> CommandResult:
    """
    Run ``program`` with whitespace-split arguments and wait for it to exit.

    No shell is involved, so quoting and metacharacters are passed through
    literally. There is no timeout.

    Raises:
        ExecutionError: the process could not be started, or exited non-zero.
    """
    args = argument_string.split()
    logger.debug("run %s %s", program, args)
    try:
        completed = subprocess.run(
            [program, *args],
            capture_output=True,
            creationflags=_CREATION_FLAGS,
        )
    except OSError as exc:
        raise ExecutionError(program, args, None, "", str(exc)) from exc

    stdout = completed.stdout.decode("utf-8", errors="replace")
    stderr = completed.stderr.decode("utf-8", errors="replace")
    if completed.returncode != 0:
        raise ExecutionError(program, args, completed.returncode, stdout, stderr)
    return CommandResult(succeeded=True, stdout=stdout, stderr=stderr)


def adb(argument_string: str) -> CommandResult:
    """Run an adb command, e.g. ``adb("shell getprop")``."""
    return run(ADB, argument_string)

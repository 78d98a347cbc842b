"""
Queries against the connected device.

Every lookup is a plain substring match over adb's line-oriented output and
the first matching line in listing order wins.
"""

import logging
import re
import time

from gameperf.errors import InjectionError, NotFoundError, PropertyError
from gameperf.executor import adb
from gameperf.models import ProcessIdentity

logger = logging.getLogger(__name__)

PROPERTY_RE = re.compile(r"\[(.*)\]: \[(.*)\]")
RESUMED_PACKAGE_RE = re.compile(r"com\.[a-zA-Z0-9]*\.[a-zA-Z0-9.]*")


def resolve_pid(identifier: str) -> ProcessIdentity:
    """
    Resolve a pid or a (partial) process name to a process on the device.

    A purely numeric identifier is returned as-is without querying the device.

    Raises:
        NotFoundError: no process name contains ``identifier``.
    """
    if identifier.isdigit():
        return ProcessIdentity(pid=identifier, name=identifier)

    result = adb("shell ps -e")
    for line in result.stdout.splitlines():
        columns = line.split()
        # PID is the second column, NAME the last one; skips the column header
        if len(columns) < 2 or not columns[1].isdigit():
            continue
        if identifier in columns[-1]:
            return ProcessIdentity(pid=columns[1], name=columns[-1])
    raise NotFoundError(identifier)


def resolve_package(identifier: str) -> str:
    """
    Resolve a partial package name against the installed packages.

    Raises:
        NotFoundError: no installed package line contains ``identifier``.
    """
    result = adb(f"shell pm list packages -f {identifier}")
    for line in result.stdout.splitlines():
        if identifier in line:
            logger.info("%s", line)
            return line.rsplit("=", 1)[-1].strip()
    raise NotFoundError(identifier)


def get_property(key: str) -> str:
    """
    Read a single value from the device property table.

    Raises:
        PropertyError: no line mentions ``key`` or it is not a ``[k]: [v]`` pair.
    """
    result = adb("shell getprop")
    for line in result.stdout.splitlines():
        if key in line:
            match = PROPERTY_RE.search(line)
            if match is None:
                raise PropertyError(key)
            return match.group(2)
    raise PropertyError(key)


def check_library_loaded(package: str, pid: str, library: str) -> bool:
    """
    Check whether ``library`` is mapped into the process.

    Raises:
        InjectionError: the library is not mapped (yet).
    """
    result = adb(f"shell run-as {package} cat /proc/{pid}/maps")
    for line in result.stdout.splitlines():
        if line.endswith(library):
            logger.info("[*] %s", line)
            return True
    raise InjectionError(library)


def wait_for_library(
    package: str,
    pid: str,
    library: str,
    attempts: int = 10,
    interval: float = 0.5,
) -> bool:
    """
    Poll ``check_library_loaded`` until the library shows up.

    Raises:
        InjectionError: still not loaded after the last attempt.
    """
    for attempt in range(1, attempts + 1):
        try:
            return check_library_loaded(package, pid, library)
        except InjectionError:
            if attempt == attempts:
                raise
            logger.debug("%s not loaded yet (attempt %d/%d)", library, attempt, attempts)
            time.sleep(interval)
    raise InjectionError(library)


def dump_meminfo(target: str) -> str:
    """Return the raw ``dumpsys meminfo`` report for a pid or package."""
    logger.info("dump meminfo %s", target)
    return adb(f"shell dumpsys meminfo {target}").stdout


def current_app() -> str:
    """
    Package name of the activity currently in the foreground.

    Raises:
        NotFoundError: no resumed activity could be found.
    """
    result = adb("shell dumpsys activity activities|grep mResumedActivity")
    match = RESUMED_PACKAGE_RE.search(result.stdout)
    if match is None:
        raise NotFoundError("mResumedActivity")
    return match.group(0)

"""
Parser for ``dumpsys meminfo <process>`` reports.

The report is read top to bottom through a fixed sequence of sections::

    HEADER -> PSS_INFO -> APP_SUMMARY -> OBJECTS

A line of dashes closes the header, "App Summary" closes the pss table and
"Objects" closes the summary; everything after that is ignored. Lines that
match neither the current section's pattern nor its closing marker are
skipped, so truncated or malformed reports produce a partial sample instead
of an error.
"""

import logging
import re
import threading
from enum import Enum

from gameperf.models import INDEX_LABEL, MemorySample

logger = logging.getLogger(__name__)

IDENTITY_RE = re.compile(r"\*\* MEMINFO in pid (\d+) \[(.*)\] \*\*")
PSS_RE = re.compile(r"(\D+)(\d+)(?:\s|$)")
SUMMARY_RE = re.compile(r"(\D+):\s+(\d+)")

HEADER_END = "------"
PSS_END = "App Summary"
SUMMARY_END = "Objects"


class ParserSection(Enum):
    """Sections of a meminfo report, in the order they appear."""

    HEADER = "header"
    PSS_INFO = "pss_info"
    APP_SUMMARY = "app_summary"
    OBJECTS = "objects"


class SampleCounter:
    """Thread-safe monotonic sequence of sample cursors, starting at 1."""

    def __init__(self, start: int = 1) -> None:
        self._lock = threading.Lock()
        self._next = start

    @property
    def value(self) -> int:
        """The cursor the next call to ``next()`` will hand out."""
        with self._lock:
            return self._next

    def next(self) -> int:
        """Consume and return the next cursor."""
        with self._lock:
            cursor = self._next
            self._next += 1
            return cursor


# Shared by every parse that is not given its own counter.
default_counter = SampleCounter()


def _to_value(digits: str) -> int:
    return int(digits) // 1024


def parse_meminfo(report: str, counter: SampleCounter = default_counter) -> MemorySample:
    """
    Parse a meminfo report into a MemorySample.

    The counter is consumed once, when the identity line is found. A report
    without one yields an unidentified sample with cursor 0.

    Args:
        report: Full text of ``dumpsys meminfo`` for one process.
        counter: Source of the sample cursor.
    """
    section = ParserSection.HEADER
    package_name = ""
    pid = ""
    cursor = 0
    pss: list[tuple[str, int]] = []
    summary: list[tuple[str, int]] = []

    for raw_line in report.splitlines():
        line = raw_line.strip()

        if section is ParserSection.HEADER:
            if HEADER_END in line:
                section = ParserSection.PSS_INFO
                continue
            match = IDENTITY_RE.search(line)
            if match and not pid:
                pid, package_name = match.group(1), match.group(2)
                cursor = counter.next()
                logger.debug("package_name=%s, pid=%s", package_name, pid)

        elif section is ParserSection.PSS_INFO:
            if PSS_END in line:
                section = ParserSection.APP_SUMMARY
                logger.debug("App Summary:")
                continue
            match = PSS_RE.search(line)
            if match:
                pss.append((match.group(1).strip(), _to_value(match.group(2))))

        elif section is ParserSection.APP_SUMMARY:
            if SUMMARY_END in line:
                section = ParserSection.OBJECTS
                logger.debug("Objects:")
                break
            match = SUMMARY_RE.search(line)
            if match:
                summary.append((match.group(1).strip(), _to_value(match.group(2))))

    return MemorySample(
        package_name=package_name,
        pid=pid,
        pss_header=(INDEX_LABEL, *(label for label, _ in pss)),
        pss_values=(cursor, *(value for _, value in pss)),
        app_header=(INDEX_LABEL, *(label for label, _ in summary)),
        app_values=(cursor, *(value for _, value in summary)),
        cursor=cursor,
    )

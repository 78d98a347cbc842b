"""Shared fixtures for gameperf tests."""

import pytest

from gameperf import device
from gameperf.errors import ExecutionError
from gameperf.models import CommandResult

MEMINFO_REPORT = """\
Applications Memory Usage (in Kilobytes):
Uptime: 7219337 Realtime: 7219337

** MEMINFO in pid 4321 [com.example.game] **
                   Pss  Private  Private  SwapPss      Rss     Heap     Heap     Heap
                 Total    Dirty    Clean    Dirty    Total     Size    Alloc     Free
                ------   ------   ------   ------   ------   ------   ------   ------
  Native Heap    20480    20400        0        0    22000    40960    30000    10960
  Dalvik Heap    10240    10000        0        0    12000    16384     8192     8192
        TOTAL    51200    40000     2048        0    60000    57344    38192    19152

 App Summary
                       Pss(KB)                        Rss(KB)
                        ------                         ------
           Java Heap:    10240                          12000
         Native Heap:    20480                          22000
           TOTAL PSS:    51200            TOTAL RSS:    60000

 Objects
               Views:       12         ViewRootImpl:        1
         AppContexts:        4           Activities:        1
"""


class FakeAdb:
    """Stands in for ``gameperf.device.adb``, answering by command prefix."""

    def __init__(self, responses: dict[str, str] | None = None) -> None:
        self.responses = responses or {}
        self.calls: list[str] = []

    def __call__(self, argument_string: str) -> CommandResult:
        self.calls.append(argument_string)
        for prefix, stdout in self.responses.items():
            if argument_string.startswith(prefix):
                return CommandResult(succeeded=True, stdout=stdout, stderr="")
        raise ExecutionError("adb", argument_string.split(), 1, "", "error: no devices/emulators found")


@pytest.fixture
def fake_adb(monkeypatch):
    """Replace adb in the device module with a scripted fake."""
    fake = FakeAdb()
    monkeypatch.setattr(device, "adb", fake)
    return fake


@pytest.fixture
def meminfo_report() -> str:
    return MEMINFO_REPORT

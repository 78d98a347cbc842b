"""Data models for gameperf."""

from dataclasses import asdict, dataclass
from enum import Enum

INDEX_LABEL = "index"


@dataclass(slots=True, frozen=True)
class CommandResult:
    """Captured outcome of one external command."""

    succeeded: bool
    stdout: str
    stderr: str


@dataclass(slots=True, frozen=True)
class ProcessIdentity:
    """A resolved process on the device."""

    pid: str
    name: str


@dataclass(slots=True, frozen=True)
class MemorySample:
    """
    Immutable snapshot parsed from one memory report.

    Each header starts with the "index" label and each value sequence starts
    with ``cursor``, so headers and values always have the same length.
    Values are the report's kB figures integer-divided by 1024.
    """

    package_name: str
    pid: str
    pss_header: tuple[str, ...]
    pss_values: tuple[int, ...]
    app_header: tuple[str, ...]
    app_values: tuple[int, ...]
    cursor: int

    def __post_init__(self) -> None:
        for name, header, values in (
            ("pss", self.pss_header, self.pss_values),
            ("app", self.app_header, self.app_values),
        ):
            if len(header) != len(values):
                raise ValueError(f"{name} header has {len(header)} labels but {len(values)} values")
            if not header or header[0] != INDEX_LABEL:
                raise ValueError(f"{name} header must start with {INDEX_LABEL!r}")
            if values[0] != self.cursor:
                raise ValueError(f"{name} values must start with cursor {self.cursor}")

    @property
    def identified(self) -> bool:
        """True when the report carried a MEMINFO identity line."""
        return bool(self.pid)

    @property
    def total_pss(self) -> int | None:
        """Value of the TOTAL row of the pss series, if the report had one."""
        for label, value in self.pss_series():
            if label == "TOTAL":
                return value
        return None

    def pss_series(self) -> list[tuple[str, int]]:
        """Label/value pairs of the pss section without the index column."""
        return list(zip(self.pss_header[1:], self.pss_values[1:]))

    def app_series(self) -> list[tuple[str, int]]:
        """Label/value pairs of the App Summary section without the index column."""
        return list(zip(self.app_header[1:], self.app_values[1:]))

    def to_dict(self) -> dict:
        """Serializable payload for subscribers."""
        payload = asdict(self)
        for key in ("pss_header", "pss_values", "app_header", "app_values"):
            payload[key] = list(payload[key])
        return payload


class CaptureStatus(Enum):
    """States of the capture loop."""

    IDLE = "idle"
    RUNNING = "running"


@dataclass(slots=True, frozen=True)
class CaptureState:
    """Current status of the capture loop and the target it samples."""

    status: CaptureStatus
    target: str = ""


@dataclass(slots=True, frozen=True)
class StartCapture:
    """Control message: begin sampling ``target``."""

    target: str


@dataclass(slots=True, frozen=True)
class StopCapture:
    """Control message: stop sampling."""


ControlMessage = StartCapture | StopCapture

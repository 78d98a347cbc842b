"""gameperf - Textual front end for memory capture."""

from collections import deque

from textual.app import App, ComposeResult
from textual.containers import Horizontal
from textual.message import Message
from textual.widgets import DataTable, Footer, Input, Sparkline, Static

from gameperf.capture import CaptureController
from gameperf.models import MemorySample

HISTORY_LENGTH = 60


class SampleCaptured(Message):
    """Posted from the capture thread for every new sample."""

    def __init__(self, sample: MemorySample) -> None:
        super().__init__()
        self.sample = sample


class CaptureHeader(Static):
    """Header widget showing what is being captured."""

    DEFAULT_CSS = """
    CaptureHeader {
        height: auto;
        padding: 0 1;
        background: $surface;
    }
    """

    def __init__(self, *args, **kwargs) -> None:
        """Initialize CaptureHeader."""
        super().__init__(*args, **kwargs)
        self._status: str = "idle"
        self._target: str = ""
        self._package_name: str = ""
        self._pid: str = ""
        self._cursor: int = 0

    def on_mount(self) -> None:
        self.update(self._status_text())

    def set_status(self, status: str, target: str = "") -> None:
        """Show the requested capture status."""
        self._status = status
        self._target = target
        self.update(self._status_text())

    def update_sample(self, sample: MemorySample) -> None:
        """Show the identity of the latest sample."""
        self._package_name = sample.package_name
        self._pid = sample.pid
        self._cursor = sample.cursor
        self.update(self._status_text())

    def _status_text(self) -> str:
        if not self._package_name:
            identity = "[dim]no sample yet[/dim]"
        else:
            identity = f"{self._package_name} (pid {self._pid}) #{self._cursor}"
        target = f" {self._target}" if self._target else ""
        return f"[b]{self._status}[/b]{target}  {identity}"


class SampleTable(DataTable):
    """Label/value table for one series of the latest sample."""

    def on_mount(self) -> None:
        """Add the columns when mounted."""
        self.cursor_type = "row"
        self.add_column("Name", key="name", width=24)
        self.add_column("MB", key="value", width=10)

    def update_series(self, series: list[tuple[str, int]]) -> None:
        """
        Replace the rows with a new series.

        Rows are keyed by label so repeated labels update in place.
        """
        seen: set[str] = set()
        for label, value in series:
            if label in seen:
                continue
            seen.add(label)
            if label in self.rows:
                self.update_cell(label, "value", str(value))
            else:
                self.add_row(label, str(value), key=label)

        for row_key in list(self.rows):
            if row_key.value not in seen:
                self.remove_row(row_key)


class GamePerfApp(App):
    """Main gameperf application."""

    TITLE = "gameperf"
    SUB_TITLE = "Android Memory Capture"

    CSS = """
    Screen {
        layout: vertical;
    }

    #target {
        dock: top;
    }

    #pss-history {
        height: 4;
        margin: 0 1;
    }

    Horizontal {
        height: 1fr;
    }

    SampleTable {
        width: 1fr;
        border: solid $primary;
    }
    """

    BINDINGS = [
        ("f2", "stop_capture", "Stop"),
        ("f10", "quit", "Quit"),
    ]

    def __init__(
        self,
        target: str | None = None,
        sample_interval: float = 1.0,
        idle_interval: float = 0.2,
    ) -> None:
        """Initialize the GamePerfApp."""
        super().__init__()
        self._initial_target = target
        self._target = ""
        self._history: deque[int] = deque(maxlen=HISTORY_LENGTH)
        self._controller = CaptureController(
            self._deliver_sample,
            sample_interval=sample_interval,
            idle_interval=idle_interval,
        )

    def compose(self) -> ComposeResult:
        """Compose the application layout."""
        yield Input(placeholder="package name or pid, Enter to capture", id="target")
        yield CaptureHeader(id="capture-header")
        yield Sparkline([], id="pss-history")
        yield Horizontal(
            SampleTable(id="pss-table"),
            SampleTable(id="app-table"),
        )
        yield Footer()

    def on_mount(self) -> None:
        """Start the capture controller when the app is mounted."""
        self.query_one("#pss-table", SampleTable).border_title = "PSS"
        self.query_one("#app-table", SampleTable).border_title = "App Summary"
        self._controller.start()
        if self._initial_target:
            self.start_capture(self._initial_target)

    def on_unmount(self) -> None:
        self._controller.stop()

    def _deliver_sample(self, sample: MemorySample) -> None:
        # Runs on the capture thread; post_message is thread-safe.
        self.post_message(SampleCaptured(sample))

    def start_capture(self, target: str) -> None:
        """Begin capturing ``target``, dropping the previous history."""
        self._target = target
        self._history.clear()
        self._controller.start_capture(target)
        self.query_one("#capture-header", CaptureHeader).set_status("running", target)

    def on_input_submitted(self, event: Input.Submitted) -> None:
        """Start capturing the submitted target."""
        target = event.value.strip()
        if target:
            self.start_capture(target)

    def on_sample_captured(self, message: SampleCaptured) -> None:
        """Render a sample delivered from the capture thread."""
        # A tick of the previous target may still be in flight
        if not self._is_current(message.sample):
            return
        self.show_sample(message.sample)

    def _is_current(self, sample: MemorySample) -> bool:
        if self._target.isdigit():
            return sample.pid == self._target
        return self._target in sample.package_name

    def show_sample(self, sample: MemorySample) -> None:
        """Update the UI with a new sample."""
        self.query_one("#capture-header", CaptureHeader).update_sample(sample)
        self.query_one("#pss-table", SampleTable).update_series(sample.pss_series())
        self.query_one("#app-table", SampleTable).update_series(sample.app_series())

        total = sample.total_pss
        if total is not None:
            self._history.append(total)
            self.query_one("#pss-history", Sparkline).data = list(self._history)

    def action_stop_capture(self) -> None:
        """Stop sampling but keep the last sample on screen."""
        self._controller.stop_capture()
        self.query_one("#capture-header", CaptureHeader).set_status("idle")
        self.notify("Capture stopped")

    def action_quit(self) -> None:
        """Handle quit action with graceful cleanup."""
        self._controller.stop()
        self.exit()

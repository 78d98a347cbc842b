"""Background capture loop for gameperf."""

import logging
import threading
from collections.abc import Callable
from queue import Empty, Queue

from gameperf.device import dump_meminfo, resolve_pid
from gameperf.models import (
    CaptureState,
    CaptureStatus,
    ControlMessage,
    MemorySample,
    StartCapture,
    StopCapture,
)
from gameperf.parser import SampleCounter, parse_meminfo

logger = logging.getLogger(__name__)

MIN_INTERVAL = 0.05

Sampler = Callable[[str, SampleCounter], MemorySample]
Publisher = Callable[[MemorySample], None]


def sample_target(target: str, counter: SampleCounter) -> MemorySample:
    """
    Dump and parse the meminfo report of ``target``.

    dumpsys is asked for ``target`` directly first, which takes a single adb
    call for a pid or a full process name. Only when that report has no
    identity line is ``target`` treated as a partial name and resolved
    through the process listing.
    """
    sample = parse_meminfo(dump_meminfo(target), counter)
    if sample.identified or target.isdigit():
        return sample

    identity = resolve_pid(target)
    return parse_meminfo(dump_meminfo(identity.pid), counter)


class CaptureController:
    """
    Samples one target at a fixed cadence on a daemon thread.

    Control flows in through a queue that the loop drains without blocking on
    every iteration; samples flow out through the ``publish`` callback, which
    is invoked on the background thread. Pipeline failures skip the tick and
    never stop the loop.
    """

    def __init__(
        self,
        publish: Publisher,
        sample_interval: float = 1.0,
        idle_interval: float = 0.2,
        sampler: Sampler = sample_target,
        counter: SampleCounter | None = None,
    ) -> None:
        """
        Initialize the CaptureController.

        Args:
            publish: Called with every sample captured.
            sample_interval: Seconds between samples while running.
            idle_interval: Seconds between control checks while idle.
            sampler: Pipeline producing one sample for a target.
            counter: Cursor source; a private counter is created if omitted.
        """
        self._publish = publish
        self._sample_interval = max(MIN_INTERVAL, sample_interval)
        self._idle_interval = max(MIN_INTERVAL, idle_interval)
        self._sampler = sampler
        self._counter = counter if counter is not None else SampleCounter()
        self._control: Queue[ControlMessage] = Queue()
        self._state = CaptureState(CaptureStatus.RUNNING, "")
        self._shutdown = threading.Event()
        self._thread: threading.Thread | None = None

    @property
    def sample_interval(self) -> float:
        """Seconds between samples while running."""
        return self._sample_interval

    @sample_interval.setter
    def sample_interval(self, value: float) -> None:
        self._sample_interval = max(MIN_INTERVAL, value)

    @property
    def idle_interval(self) -> float:
        """Seconds between control checks while idle."""
        return self._idle_interval

    @idle_interval.setter
    def idle_interval(self, value: float) -> None:
        self._idle_interval = max(MIN_INTERVAL, value)

    @property
    def counter(self) -> SampleCounter:
        return self._counter

    @property
    def state(self) -> CaptureState:
        """State as last committed by the loop."""
        return self._state

    @property
    def is_running(self) -> bool:
        """Check if the capture thread is running."""
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        """Start the capture thread."""
        if self.is_running:
            return

        # Fresh per run: a thread outliving a timed-out stop() keeps its set event
        self._shutdown = threading.Event()
        self._thread = threading.Thread(
            target=self._run_loop,
            args=(self._shutdown,),
            daemon=True,
            name="CaptureController",
        )
        self._thread.start()
        logger.info("capture controller started")

    def stop(self, timeout: float | None = 5.0) -> None:
        """
        Stop the capture thread.

        A command already spawned by the sampler is not cancelled; the thread
        exits once it returns.
        """
        self._shutdown.set()
        if self._thread is not None:
            self._thread.join(timeout=timeout)
            self._thread = None
            logger.info("capture controller stopped")

    def start_capture(self, target: str) -> None:
        """Ask the loop to sample ``target``, replacing any previous target."""
        self._control.put(StartCapture(target))

    def stop_capture(self) -> None:
        """Ask the loop to go idle."""
        self._control.put(StopCapture())

    def _drain_control(self) -> None:
        """Apply every pending control message in arrival order."""
        while True:
            try:
                message = self._control.get_nowait()
            except Empty:
                return
            self._state = self._apply(self._state, message)
            logger.info("capture %s %s", self._state.status.value, self._state.target)

    @staticmethod
    def _apply(state: CaptureState, message: ControlMessage) -> CaptureState:
        if isinstance(message, StartCapture):
            return CaptureState(CaptureStatus.RUNNING, message.target)
        # Idle keeps the last target
        return CaptureState(CaptureStatus.IDLE, state.target)

    def _run_loop(self, shutdown: threading.Event) -> None:
        """Main capture loop running in the background thread."""
        while not shutdown.is_set():
            self._drain_control()
            state = self._state

            if state.status is CaptureStatus.IDLE:
                shutdown.wait(timeout=self._idle_interval)
                continue

            if state.target:
                self._tick(state.target, shutdown)
            shutdown.wait(timeout=self._sample_interval)

    def _tick(self, target: str, shutdown: threading.Event) -> None:
        """Capture and publish one sample, skipping the tick on any failure."""
        try:
            sample = self._sampler(target, self._counter)
            if shutdown.is_set():
                logger.debug("dropping sample of %s captured after stop", target)
                return
            self._publish(sample)
        except Exception as exc:
            logger.debug("skipping sample of %s: %s", target, exc)

"""Non-interactive progress reporting for concurrent downloads.

``SimpleWriter`` never redraws the terminal. A background poller checks the
registered trackers every ``interval`` seconds and writes one line when a
tracker completes or fails, then a single summary line on ``stop()``. This
keeps output readable in log files, CI jobs and piped output.

All shared state (tracker records, aggregate counters, lifecycle state) sits
behind one lock. The lock is also held while status lines are written, so a
registration may wait for at most one scan and the lines it emits.
"""

import logging
import threading
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, Iterable, Optional, Protocol, TextIO

import click

from ..core.tracker import TrackerHandle
from ..utils.units import format_binary_bytes, format_elapsed

logger = logging.getLogger(__name__)

DEFAULT_POLL_INTERVAL = 0.1
DEFAULT_STOP_GRACE_PERIOD = 5.0

SUCCESS_GLYPH = "✓"
FAILURE_GLYPH = "✗"


class MonitorState(Enum):
    """Lifecycle of a progress writer."""

    IDLE = "idle"
    RENDERING = "rendering"
    STOPPED = "stopped"


@dataclass
class TrackerRecord:
    """State observed locally for one registered tracker."""

    tracker: TrackerHandle
    start_time: float
    total: int
    message: str
    done: bool = False
    errored: bool = False

    @property
    def pending(self) -> bool:
        return not (self.done or self.errored)


@dataclass
class ProgressStyle:
    """Display style. Carries nothing for writers that never draw bars."""

    name: str = ""


class ProgressWriter(Protocol):
    """Surface shared by every progress writer.

    Downloaders depend on this instead of a concrete writer so the output
    mode can be picked when the writer is constructed.
    """

    def append_tracker(self, tracker: TrackerHandle) -> None:
        ...

    def set_num_trackers_expected(self, num_trackers: int) -> None:
        ...

    def start(self) -> None:
        ...

    def stop(self) -> None:
        ...


class SimpleWriter:
    """Progress writer that logs start, completion and failure events.

    Display knobs that only matter for an interactive bar renderer
    (``set_style``, ``show_eta``, ``set_sort_by`` ...) are accepted and
    ignored: they never change what this writer prints.
    """

    def __init__(
        self,
        formatter: Callable[[int], str] = format_binary_bytes,
        output: Optional[TextIO] = None,
        interval: float = DEFAULT_POLL_INTERVAL,
        clock: Callable[[], float] = time.monotonic,
        stop_grace_period: float = DEFAULT_STOP_GRACE_PERIOD,
    ):
        """Initialize simple writer.

        Args:
            formatter: Converts a byte count to a display string
            output: Stream to write lines to (standard output when None)
            interval: Seconds between two polls of the trackers
            clock: Monotonic time source in seconds
            stop_grace_period: Seconds ``stop()`` waits for the poller to exit

        Raises:
            ValueError: If interval or stop_grace_period is not positive
        """
        if interval <= 0:
            raise ValueError("interval must be positive")
        if stop_grace_period <= 0:
            raise ValueError("stop_grace_period must be positive")

        self._formatter = formatter
        self._output = output
        self._interval = interval
        self._clock = clock
        self._stop_grace_period = stop_grace_period

        self._lock = threading.Lock()
        self._wake = threading.Event()
        self._thread: Optional[threading.Thread] = None

        # Keyed by id() so handles compare by identity whatever their __eq__
        self._records: Dict[int, TrackerRecord] = {}
        self._state = MonitorState.IDLE
        self._expected_num = 0
        self._overall_start: Optional[float] = None
        self._completed = 0
        self._total_bytes = 0
        self._write_failed = False
        self._format_failed = False

    # Registry

    def append_tracker(self, tracker: TrackerHandle) -> None:
        """Register a tracker using its own total and message."""
        self.register(tracker, tracker.total, tracker.message)

    def append_trackers(self, trackers: Iterable[TrackerHandle]) -> None:
        for tracker in trackers:
            self.append_tracker(tracker)

    def register(self, tracker: TrackerHandle, total: int, message: str) -> None:
        """Register a tracker with an explicit total and label.

        Trackers are told apart by identity, so two equal (or unhashable)
        handles still get separate records.

        Args:
            tracker: Handle to observe
            total: Declared size, 0 when unknown
            message: Label printed in status lines
        """
        with self._lock:
            if id(tracker) in self._records:
                logger.warning(f"Tracker registered twice, replacing previous record: {message}")
            self._records[id(tracker)] = TrackerRecord(
                tracker=tracker,
                start_time=self._clock(),
                total=total,
                message=message,
            )

    def length(self) -> int:
        with self._lock:
            return len(self._records)

    def length_active(self) -> int:
        with self._lock:
            return sum(1 for record in self._records.values() if record.pending)

    def length_done(self) -> int:
        with self._lock:
            return sum(1 for record in self._records.values() if record.done)

    def length_in_queue(self) -> int:
        """Count trackers registered but not yet started."""
        with self._lock:
            return sum(
                1 for record in self._records.values()
                if record.pending and record.tracker.value() == 0
            )

    @property
    def state(self) -> MonitorState:
        with self._lock:
            return self._state

    def is_render_in_progress(self) -> bool:
        with self._lock:
            return self._state is MonitorState.RENDERING

    # Output

    def set_output_writer(self, output: Optional[TextIO]) -> None:
        with self._lock:
            self._output = output
            self._write_failed = False

    def log(self, msg: str, *args: Any) -> None:
        """Write a free-form line, ``%``-formatting ``msg`` with ``args``."""
        with self._lock:
            self._write(msg % args if args else msg)

    def set_num_trackers_expected(self, num_trackers: int) -> None:
        with self._lock:
            self._expected_num = num_trackers
            if num_trackers > 0:
                self._write(f"Starting download of {num_trackers} file(s)...")

    def _write(self, line: str) -> None:
        # Caller holds the lock. A broken sink must never take down the
        # download it reports on. click.echo drops the colors when the
        # stream is not a terminal.
        try:
            click.echo(line, file=self._output)
        except Exception as e:
            if not self._write_failed:
                self._write_failed = True
                logger.warning(f"Progress output failed, further write errors are ignored: {e}")

    def _format(self, size: int) -> str:
        try:
            return self._formatter(size)
        except Exception as e:
            if not self._format_failed:
                self._format_failed = True
                logger.warning(f"Size formatter failed, printing raw byte counts: {e}")
            return f"{size} B"

    # Lifecycle

    def start(self) -> None:
        """Start polling trackers on a background thread."""
        with self._lock:
            if not self._begin_rendering():
                return
            self._thread = threading.Thread(
                target=self._poll_loop,
                name="progress-poller",
                daemon=True,
            )
            self._thread.start()

    def render(self) -> None:
        """Poll trackers on the calling thread until ``stop()`` is called."""
        with self._lock:
            if not self._begin_rendering():
                return
        self._poll_loop()

    def _begin_rendering(self) -> bool:
        if self._state is not MonitorState.IDLE:
            logger.warning(f"Progress writer already {self._state.value}, ignoring start request")
            return False
        self._state = MonitorState.RENDERING
        self._overall_start = self._clock()
        return True

    def _poll_loop(self) -> None:
        while self.poll_once():
            self._wake.wait(self._interval)

    def poll_once(self) -> bool:
        """Run one tick: report trackers that finished since the last one.

        Returns:
            False once the writer is stopped, True otherwise
        """
        with self._lock:
            if self._state is MonitorState.STOPPED:
                return False
            self._scan()
            return True

    def _scan(self) -> None:
        # Caller holds the lock.
        now = self._clock()
        for record in self._records.values():
            if not record.pending:
                continue
            tracker = record.tracker

            if tracker.is_done():
                record.done = True
                total = tracker.total
                self._completed += 1
                self._total_bytes += total
                elapsed = now - record.start_time
                speed = ""
                if elapsed > 0 and total > 0:
                    speed = f" at {self._format(round(total / elapsed))}/s"
                self._write(
                    f"{click.style(SUCCESS_GLYPH, fg='green')} {record.message} "
                    f"({self._format(total)} in {format_elapsed(elapsed)}{speed})"
                )
            elif tracker.is_errored():
                record.errored = True
                elapsed = now - record.start_time
                self._write(
                    f"{click.style(FAILURE_GLYPH, fg='red')} {record.message} "
                    f"(failed after {format_elapsed(elapsed)})"
                )

    def stop(self) -> None:
        """Stop polling and print the summary. Safe to call more than once."""
        with self._lock:
            if self._state is MonitorState.STOPPED:
                return

            # Final pass so nothing that finished before stop() goes unreported.
            self._scan()
            self._state = MonitorState.STOPPED
            self._wake.set()

            elapsed = 0.0
            if self._overall_start is not None:
                elapsed = self._clock() - self._overall_start
            failed = sum(1 for record in self._records.values() if record.errored)

            if self._completed > 0 or failed > 0:
                self._write(self._summary(elapsed, failed))

            thread = self._thread

        if thread is not None and thread is not threading.current_thread():
            thread.join(self._stop_grace_period)
            if thread.is_alive():
                logger.warning("Progress poller did not exit within the grace period")

    def _summary(self, elapsed: float, failed: int) -> str:
        summary = f"\nDownload complete: {self._completed} succeeded"
        if failed > 0:
            summary += f", {failed} failed"
        summary += f" in {format_elapsed(elapsed, precision=1)}"
        if self._completed > 0 and self._total_bytes > 0:
            summary += f" ({self._format(self._total_bytes)} total"
            if elapsed > 0:
                summary += f", {self._format(round(self._total_bytes / elapsed))}/s avg"
            summary += ")"
        return summary

    # Interactive-only knobs, accepted for interchangeability and ignored.

    def set_auto_stop(self, auto_stop: bool) -> None:
        pass

    def set_message_length(self, length: int) -> None:
        pass

    def set_message_width(self, width: int) -> None:
        pass

    def set_pinned_messages(self, *messages: str) -> None:
        pass

    def set_sort_by(self, sort_by: Any) -> None:
        pass

    def set_style(self, style: ProgressStyle) -> None:
        pass

    def set_tracker_length(self, length: int) -> None:
        pass

    def set_tracker_position(self, position: Any) -> None:
        pass

    def set_update_frequency(self, frequency: float) -> None:
        pass

    def show_eta(self, show: bool) -> None:
        pass

    def show_overall(self, show: bool) -> None:
        pass

    def show_overall_tracker(self, show: bool) -> None:
        pass

    def show_percentage(self, show: bool) -> None:
        pass

    def show_pinned(self, show: bool) -> None:
        pass

    def show_time(self, show: bool) -> None:
        pass

    def show_tracker(self, show: bool) -> None:
        pass

    def show_value(self, show: bool) -> None:
        pass

    def style(self) -> ProgressStyle:
        return ProgressStyle()

"""Thread-safe work-item trackers observed by progress writers."""

import threading
from typing import Protocol, runtime_checkable


@runtime_checkable
class TrackerHandle(Protocol):
    """Read-only view of one tracked operation.

    Progress writers only ever query these members; whoever owns the
    operation advances it.
    """

    total: int
    message: str

    def value(self) -> int:
        ...

    def is_done(self) -> bool:
        ...

    def is_errored(self) -> bool:
        ...


class Tracker:
    """Progress of a single operation, safe to update from any thread."""

    def __init__(self, message: str, total: int = 0):
        """Initialize tracker.

        Args:
            message: Human-readable label for the operation
            total: Expected size, 0 when unknown
        """
        if total < 0:
            raise ValueError("total must be non-negative")

        self.message = message
        self._total = total
        self._value = 0
        self._done = False
        self._errored = False
        self._lock = threading.Lock()

    @property
    def total(self) -> int:
        with self._lock:
            return self._total

    def update_total(self, total: int) -> None:
        """Set the expected size once it becomes known."""
        if total < 0:
            raise ValueError("total must be non-negative")
        with self._lock:
            self._total = total

    def value(self) -> int:
        with self._lock:
            return self._value

    def increment(self, amount: int = 1) -> None:
        """Advance progress by ``amount``; ignored once finished."""
        with self._lock:
            if not (self._done or self._errored):
                self._value += amount

    def set_value(self, value: int) -> None:
        with self._lock:
            if not (self._done or self._errored):
                self._value = value

    def mark_as_done(self) -> None:
        """Mark the operation complete. No-op if it already finished."""
        with self._lock:
            if self._done or self._errored:
                return
            if self._total > 0:
                self._value = self._total
            self._done = True

    def mark_as_errored(self) -> None:
        """Mark the operation failed. No-op if it already finished."""
        with self._lock:
            if self._done or self._errored:
                return
            self._errored = True

    def is_done(self) -> bool:
        with self._lock:
            return self._done

    def is_errored(self) -> bool:
        with self._lock:
            return self._errored

    def percentage(self) -> float:
        """Completion percentage, 0 when the total is unknown."""
        with self._lock:
            if self._total <= 0:
                return 0.0
            return min(self._value / self._total, 1.0) * 100.0

    def __repr__(self) -> str:
        return f"Tracker(message={self.message!r}, total={self._total}, value={self._value})"

"""Tests for work-item trackers."""

import threading

import pytest

from parallel_downloader.core.tracker import Tracker, TrackerHandle


class TestTracker:
    """Test Tracker state changes."""

    def test_initial_state(self):
        tracker = Tracker("file.bin", total=100)

        assert tracker.message == "file.bin"
        assert tracker.total == 100
        assert tracker.value() == 0
        assert tracker.is_done() is False
        assert tracker.is_errored() is False

    def test_negative_total_rejected(self):
        with pytest.raises(ValueError, match="total must be non-negative"):
            Tracker("x", total=-1)

    def test_increment_and_percentage(self):
        tracker = Tracker("x", total=200)
        tracker.increment(50)

        assert tracker.value() == 50
        assert tracker.percentage() == 25.0

    def test_percentage_unknown_total(self):
        tracker = Tracker("x")
        tracker.increment(10)

        assert tracker.percentage() == 0.0

    def test_mark_as_done_fills_value(self):
        tracker = Tracker("x", total=10)
        tracker.increment(4)
        tracker.mark_as_done()

        assert tracker.is_done() is True
        assert tracker.value() == 10

    def test_done_and_errored_are_exclusive(self):
        done = Tracker("done")
        done.mark_as_done()
        done.mark_as_errored()

        errored = Tracker("errored")
        errored.mark_as_errored()
        errored.mark_as_done()

        assert (done.is_done(), done.is_errored()) == (True, False)
        assert (errored.is_done(), errored.is_errored()) == (False, True)

    def test_finished_tracker_ignores_updates(self):
        tracker = Tracker("x", total=10)
        tracker.mark_as_done()
        tracker.increment(5)
        tracker.set_value(3)

        assert tracker.value() == 10

    def test_update_total(self):
        tracker = Tracker("x")
        tracker.update_total(4096)

        assert tracker.total == 4096

    def test_concurrent_increments(self):
        tracker = Tracker("x", total=40000)

        def work():
            for _ in range(10000):
                tracker.increment()

        threads = [threading.Thread(target=work) for _ in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert tracker.value() == 40000

    def test_satisfies_handle_protocol(self):
        assert isinstance(Tracker("x"), TrackerHandle)

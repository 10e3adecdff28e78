"""
Unit tests for scheduler.py module.
"""

import sys
from pathlib import Path

# Add project root to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from godiagram.scheduler import ManualScheduler


class FakeClock:
    """Settable clock for deterministic scheduling."""

    def __init__(self):
        self.now = 100.0

    def __call__(self):
        return self.now


class TestManualScheduler:
    """Tests for ManualScheduler."""

    def test_runs_only_when_due(self):
        """Test callbacks wait for their delay."""
        clock = FakeClock()
        scheduler = ManualScheduler(clock=clock)
        calls = []
        scheduler.schedule(0.5, lambda: calls.append("reply"))

        assert scheduler.run_due() == 0
        assert calls == []
        assert scheduler.pending_count() == 1
        assert scheduler.next_due() == 100.5

        clock.now = 100.5
        assert scheduler.run_due() == 1
        assert calls == ["reply"]
        assert scheduler.pending_count() == 0
        assert scheduler.next_due() is None

    def test_earliest_first(self):
        """Test due callbacks run in due order."""
        clock = FakeClock()
        scheduler = ManualScheduler(clock=clock)
        calls = []
        scheduler.schedule(0.3, lambda: calls.append("late"))
        scheduler.schedule(0.1, lambda: calls.append("early"))
        clock.now = 101.0
        scheduler.run_due()
        assert calls == ["early", "late"]

    def test_cancel(self):
        """Test a cancelled handle never runs."""
        scheduler = ManualScheduler(clock=FakeClock())
        calls = []
        handle = scheduler.schedule(0.0, lambda: calls.append("x"))
        assert handle.pending
        handle.cancel()
        assert not handle.pending
        assert scheduler.run_all() == 0
        assert calls == []

    def test_cancel_from_earlier_callback(self):
        """Test a callback can cancel one that is also due."""
        scheduler = ManualScheduler(clock=FakeClock())
        calls = []
        second = None

        def first():
            calls.append("first")
            second.cancel()

        scheduler.schedule(0.1, first)
        second = scheduler.schedule(0.2, lambda: calls.append("second"))
        assert scheduler.run_all() == 1
        assert calls == ["first"]

    def test_run_all_includes_rescheduled(self):
        """Test run_all also runs callbacks scheduled while running."""
        scheduler = ManualScheduler(clock=FakeClock())
        calls = []

        def chain():
            calls.append("one")
            scheduler.schedule(1.0, lambda: calls.append("two"))

        scheduler.schedule(1.0, chain)
        assert scheduler.run_all() == 2
        assert calls == ["one", "two"]

    def test_fired_handle_not_pending(self):
        """Test a handle reports itself done after running."""
        scheduler = ManualScheduler(clock=FakeClock())
        handle = scheduler.schedule(0.0, lambda: None)
        scheduler.run_all()
        assert handle.fired
        assert not handle.pending

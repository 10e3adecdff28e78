"""
Deferred callbacks for the problem diagram's opponent reply.

Diagrams never start threads. They hand the reply to a ReplyScheduler and
the host decides when due callbacks run: an interactive front end pumps
run_due() from its event loop, tests and the CLI call run_all().
"""

import logging
import time
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Protocol

logger = logging.getLogger(__name__)


@dataclass
class ReplyHandle:
    """Token for a scheduled callback; cancel() makes it a no-op."""
    due: float
    callback: Callable[[], None]
    cancelled: bool = False
    fired: bool = False

    def cancel(self) -> None:
        self.cancelled = True

    @property
    def pending(self) -> bool:
        return not (self.cancelled or self.fired)


class ReplyScheduler(Protocol):
    """Anything that can run a callback after a delay."""

    def schedule(self, delay: float, callback: Callable[[], None]) -> ReplyHandle:
        ...


@dataclass
class ManualScheduler:
    """
    Clock-driven scheduler pumped by its owner.

    Usage:
        scheduler = ManualScheduler()
        handle = scheduler.schedule(0.5, reply)
        scheduler.run_due()   # runs reply once 0.5s have passed
        scheduler.run_all()   # runs everything still pending now
    """
    clock: Callable[[], float] = time.monotonic
    _handles: List[ReplyHandle] = field(default_factory=list)

    def schedule(self, delay: float, callback: Callable[[], None]) -> ReplyHandle:
        handle = ReplyHandle(due=self.clock() + max(delay, 0.0), callback=callback)
        self._handles.append(handle)
        return handle

    def pending_count(self) -> int:
        return sum(1 for handle in self._handles if handle.pending)

    def next_due(self) -> Optional[float]:
        due = [handle.due for handle in self._handles if handle.pending]
        return min(due) if due else None

    def run_due(self, now: Optional[float] = None) -> int:
        """
        Run callbacks whose due time has passed, earliest first.

        Callbacks scheduled while running are left for the next call.

        Returns:
            Number of callbacks run
        """
        now = self.clock() if now is None else now
        ready = sorted(
            (handle for handle in self._handles if handle.pending and handle.due <= now),
            key=lambda handle: handle.due,
        )
        ran = 0
        for handle in ready:
            # An earlier callback may have cancelled this one
            if handle.pending:
                handle.fired = True
                handle.callback()
                ran += 1
        self._handles = [handle for handle in self._handles if handle.pending]
        if ran:
            logger.debug("Ran %d deferred callback(s)", ran)
        return ran

    def run_all(self) -> int:
        """Run every pending callback, including ones scheduled meanwhile."""
        total = 0
        while self.pending_count():
            total += self.run_due(now=float("inf"))
        return total

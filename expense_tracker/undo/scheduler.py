"""
Cancellable deferred callbacks.

The undo window is the only timed behaviour in the tracker. It goes
through this interface so the host decides how time passes:

- ManualScheduler: time moves only when ``advance()`` is called.
  Deterministic; used by tests and by hosts with their own tick.
- MonotonicScheduler: wall-clock time from ``time.monotonic``. Due
  callbacks run when ``run_due()`` is called; readers of a deadline
  compare against ``now()`` instead of waiting for the callback.
- AsyncioScheduler: real timers on an asyncio event loop.
"""

import asyncio
import time
from abc import ABC, abstractmethod
from typing import Callable, Optional


class ScheduledTask(ABC):
    """Handle for one pending callback."""

    @property
    @abstractmethod
    def when(self) -> float:
        """Scheduler time at which the callback is due."""
        pass

    @abstractmethod
    def cancel(self) -> None:
        """Prevent the callback from running. Safe to call more than once."""
        pass

    @abstractmethod
    def cancelled(self) -> bool:
        pass


class Scheduler(ABC):
    """Runs callbacks after a delay."""

    @abstractmethod
    def now(self) -> float:
        """Current scheduler time in seconds."""
        pass

    @abstractmethod
    def call_later(self, delay: float, callback: Callable[[], None]) -> ScheduledTask:
        """Schedule ``callback`` to run once after ``delay`` seconds."""
        pass


class _QueuedTask(ScheduledTask):

    def __init__(self, when: float, callback: Callable[[], None], seq: int):
        self._when = when
        self.callback = callback
        self.seq = seq
        self._cancelled = False
        self.fired = False

    @property
    def when(self) -> float:
        return self._when

    def cancel(self) -> None:
        self._cancelled = True

    def cancelled(self) -> bool:
        return self._cancelled

    @property
    def live(self) -> bool:
        return not self._cancelled and not self.fired


class _QueuedScheduler(Scheduler):
    """Keeps callbacks in a list and runs the due ones on request."""

    def __init__(self):
        self._tasks: list[_QueuedTask] = []
        self._seq = 0

    def call_later(self, delay: float, callback: Callable[[], None]) -> ScheduledTask:
        if delay < 0:
            raise ValueError(f"delay must be non-negative, got {delay}")
        self._prune()
        self._seq += 1
        task = _QueuedTask(self.now() + delay, callback, self._seq)
        self._tasks.append(task)
        return task

    @property
    def pending(self) -> int:
        """Number of callbacks still waiting to run."""
        return sum(1 for t in self._tasks if t.live)

    @property
    def held(self) -> int:
        """Number of task handles kept, including cancelled ones not yet pruned."""
        return len(self._tasks)

    def _prune(self) -> None:
        self._tasks = [t for t in self._tasks if t.live]

    def _on_run(self, task: _QueuedTask) -> None:
        """Hook called just before a due callback runs."""
        pass

    def _run_until(self, target: float) -> int:
        """Run live callbacks due at or before ``target``, earliest first."""
        ran = 0
        while True:
            due = [t for t in self._tasks if t.live and t.when <= target]
            if not due:
                break
            task = min(due, key=lambda t: (t.when, t.seq))
            self._on_run(task)
            task.fired = True
            task.callback()
            ran += 1
        self._prune()
        return ran


class ManualScheduler(_QueuedScheduler):
    """
    Scheduler driven by explicit ``advance()`` calls.

    Due callbacks run in order of due time (then scheduling order), with
    ``now()`` set to each callback's due time while it runs.
    """

    def __init__(self, start: float = 0.0):
        super().__init__()
        self._now = float(start)

    def now(self) -> float:
        return self._now

    def _on_run(self, task: _QueuedTask) -> None:
        self._now = task.when

    def advance(self, seconds: float) -> int:
        """
        Move time forward, running every callback that falls due.

        Returns:
            Number of callbacks run
        """
        if seconds < 0:
            raise ValueError(f"cannot move time backwards ({seconds})")
        target = self._now + seconds
        ran = self._run_until(target)
        self._now = target
        return ran


class MonotonicScheduler(_QueuedScheduler):
    """
    Scheduler on a real clock with no background thread.

    ``now()`` follows ``clock`` (``time.monotonic`` by default). Callbacks
    run only from ``run_due()``, so a host without an event loop can
    call it from whatever tick it has, or never.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        super().__init__()
        self._clock = clock

    def now(self) -> float:
        return self._clock()

    def run_due(self) -> int:
        """Run every callback whose time has come. Returns how many ran."""
        return self._run_until(self.now())


class _AsyncioTask(ScheduledTask):

    def __init__(self, handle: asyncio.TimerHandle):
        self._handle = handle

    @property
    def when(self) -> float:
        return self._handle.when()

    def cancel(self) -> None:
        self._handle.cancel()

    def cancelled(self) -> bool:
        return self._handle.cancelled()


class AsyncioScheduler(Scheduler):
    """
    Scheduler backed by an asyncio event loop.

    Without an explicit loop, the running loop is used at call time, so
    the scheduler must then be used from inside a coroutine or callback.
    """

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None):
        self._loop = loop

    def _get_loop(self) -> asyncio.AbstractEventLoop:
        return self._loop or asyncio.get_running_loop()

    def now(self) -> float:
        return self._get_loop().time()

    def call_later(self, delay: float, callback: Callable[[], None]) -> ScheduledTask:
        return _AsyncioTask(self._get_loop().call_later(delay, callback))

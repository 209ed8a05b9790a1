"""Stopwatch state machine and live elapsed-time sampler."""

import asyncio
import logging
import threading
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from daywatch.core.formatting import now_ms

logger = logging.getLogger(__name__)

Clock = Callable[[], int]


class StopwatchState(str, Enum):
    """Stopwatch states."""

    IDLE = "idle"
    RUNNING = "running"


@dataclass
class Interval:
    """A completed stopwatch run."""

    start: int
    end: int
    duration: int


class Stopwatch:
    """Two-state stopwatch.

    Elapsed time is always recomputed from the stored start and the wall
    clock, never accumulated per tick, so sampler jitter does not drift.
    """

    def __init__(self, clock: Clock = now_ms):
        """Initialize stopwatch.

        Args:
            clock: Returns the current time in epoch milliseconds
        """
        self.clock = clock
        self.started_at: Optional[int] = None
        # Endpoints run in a threadpool; start and stop must not interleave
        self._lock = threading.Lock()

    @property
    def state(self) -> StopwatchState:
        return StopwatchState.RUNNING if self.started_at is not None else StopwatchState.IDLE

    @property
    def is_running(self) -> bool:
        return self.started_at is not None

    def start(self) -> int:
        """Start running. Starting a running stopwatch keeps the original start.

        Returns:
            Start time in epoch milliseconds
        """
        with self._lock:
            if self.started_at is None:
                self.started_at = self.clock()
                logger.debug(f"Stopwatch started at {self.started_at}")
            return self.started_at

    def restore(self, started_at: int) -> None:
        """Resume a stopwatch that was started earlier."""
        self.started_at = started_at

    def elapsed(self) -> int:
        """Whole seconds since start, 0 when idle."""
        started_at = self.started_at
        if started_at is None:
            return 0
        return max(0, (self.clock() - started_at) // 1000)

    def stop(self) -> Optional[Interval]:
        """Stop running and reset.

        Returns:
            The completed interval, or None if the stopwatch was idle
        """
        with self._lock:
            if self.started_at is None:
                return None

            end = self.clock()
            interval = Interval(
                start=self.started_at,
                end=end,
                duration=max(0, (end - self.started_at) // 1000),
            )
            self.started_at = None
        logger.debug(f"Stopwatch stopped after {interval.duration}s")
        return interval


class Sampler:
    """Recurring callback that reports elapsed seconds while running."""

    def __init__(
        self,
        stopwatch: Stopwatch,
        on_tick: Callable[[int], None],
        interval: float = 1.0,
    ):
        """Initialize sampler.

        Args:
            stopwatch: Stopwatch to sample
            on_tick: Receives the elapsed seconds on each tick
            interval: Seconds between ticks
        """
        self.stopwatch = stopwatch
        self.on_tick = on_tick
        self.interval = interval
        self._task: Optional["asyncio.Task[None]"] = None

    async def run(self) -> None:
        """Tick until the stopwatch stops."""
        while self.stopwatch.is_running:
            self.on_tick(self.stopwatch.elapsed())
            await asyncio.sleep(self.interval)
        self.on_tick(0)

    def start(self) -> "asyncio.Task[None]":
        """Schedule the sampler on the running event loop."""
        if self._task is None or self._task.done():
            self._task = asyncio.get_running_loop().create_task(self.run())
        return self._task

    def cancel(self) -> None:
        """Stop sampling."""
        if self._task is not None:
            self._task.cancel()
            self._task = None

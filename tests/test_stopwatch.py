"""Tests for the stopwatch and sampler."""

import asyncio
import threading

from daywatch.core.stopwatch import Sampler, Stopwatch, StopwatchState


class FakeClock:
    """Manually advanced clock in epoch milliseconds."""

    def __init__(self, now: int = 1_700_000_000_000):
        self.now = now

    def __call__(self) -> int:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += int(seconds * 1000)


class TestStopwatch:
    """Test Stopwatch state machine."""

    def test_initially_idle(self) -> None:
        """Test a new stopwatch is idle with no elapsed time."""
        stopwatch = Stopwatch(FakeClock())
        assert stopwatch.state == StopwatchState.IDLE
        assert not stopwatch.is_running
        assert stopwatch.elapsed() == 0

    def test_start_and_elapsed(self) -> None:
        """Test elapsed is computed from the clock."""
        clock = FakeClock()
        stopwatch = Stopwatch(clock)
        started_at = stopwatch.start()

        assert started_at == clock.now
        assert stopwatch.state == StopwatchState.RUNNING
        clock.advance(75.9)
        assert stopwatch.elapsed() == 75

    def test_start_twice_keeps_start(self) -> None:
        """Test starting a running stopwatch does not reset it."""
        clock = FakeClock()
        stopwatch = Stopwatch(clock)
        first = stopwatch.start()
        clock.advance(10)
        assert stopwatch.start() == first

    def test_stop_returns_interval(self) -> None:
        """Test stopping yields start, end and whole seconds."""
        clock = FakeClock()
        stopwatch = Stopwatch(clock)
        start = stopwatch.start()
        clock.advance(125.4)

        interval = stopwatch.stop()

        assert interval is not None
        assert interval.start == start
        assert interval.end == clock.now
        assert interval.duration == 125
        assert stopwatch.state == StopwatchState.IDLE
        assert stopwatch.elapsed() == 0

    def test_stop_idle_returns_none(self) -> None:
        """Test stopping an idle stopwatch does nothing."""
        assert Stopwatch(FakeClock()).stop() is None

    def test_elapsed_not_accumulated(self) -> None:
        """Test elapsed stays correct when sampled irregularly."""
        clock = FakeClock()
        stopwatch = Stopwatch(clock)
        stopwatch.start()
        for step in (0.3, 2.5, 0.2, 7.0):
            clock.advance(step)
            stopwatch.elapsed()
        assert stopwatch.elapsed() == 10

    def test_concurrent_stop_returns_one_interval(self) -> None:
        """Test stops racing on several threads complete the run once."""
        stopwatch = Stopwatch(FakeClock())
        stopwatch.start()
        results = []
        barrier = threading.Barrier(8)

        def stop() -> None:
            barrier.wait()
            results.append(stopwatch.stop())

        threads = [threading.Thread(target=stop) for _ in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert sum(1 for r in results if r is not None) == 1
        assert not stopwatch.is_running

    def test_restore(self) -> None:
        """Test resuming from a saved start."""
        clock = FakeClock()
        stopwatch = Stopwatch(clock)
        stopwatch.restore(clock.now - 30_000)
        assert stopwatch.is_running
        assert stopwatch.elapsed() == 30


class TestSampler:
    """Test the asyncio sampler."""

    def test_ticks_until_stopped(self) -> None:
        """Test ticks report elapsed time and end with zero."""
        clock = FakeClock()
        stopwatch = Stopwatch(clock)
        stopwatch.start()
        ticks: list[int] = []

        def on_tick(elapsed: int) -> None:
            ticks.append(elapsed)
            clock.advance(1)
            if len(ticks) == 3:
                stopwatch.stop()

        asyncio.run(Sampler(stopwatch, on_tick, interval=0.001).run())

        assert ticks == [0, 1, 2, 0]

    def test_idle_stopwatch_reports_zero(self) -> None:
        """Test sampling an idle stopwatch reports zero once."""
        ticks: list[int] = []
        asyncio.run(Sampler(Stopwatch(FakeClock()), ticks.append, interval=0.001).run())
        assert ticks == [0]

    def test_start_and_cancel(self) -> None:
        """Test the sampler task can be scheduled and cancelled."""
        stopwatch = Stopwatch(FakeClock())
        stopwatch.start()
        ticks: list[int] = []

        async def scenario() -> bool:
            sampler = Sampler(stopwatch, ticks.append, interval=0.01)
            task = sampler.start()
            assert sampler.start() is task
            await asyncio.sleep(0.03)
            sampler.cancel()
            await asyncio.sleep(0)
            return task.cancelled() or task.done()

        assert asyncio.run(scenario())
        assert ticks

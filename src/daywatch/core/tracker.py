"""Core time tracking engine."""

import logging
from datetime import date
from typing import Optional, Union

from daywatch.core.kvstore import KeyValueStore
from daywatch.core.session import MutationResult, Outcome, RecordSession
from daywatch.core.stopwatch import Stopwatch

logger = logging.getLogger(__name__)


class TimeTracker:
    """Stopwatch and record operations for the current identity."""

    def __init__(
        self,
        session: RecordSession,
        stopwatch: Optional[Stopwatch] = None,
        state: Optional[KeyValueStore] = None,
    ):
        """Initialize time tracker.

        Args:
            session: Record session of the current identity
            stopwatch: Stopwatch to drive. Creates a fresh one if None.
            state: Key-value store that keeps the running start between
                processes (CLI). None keeps it in memory only.
        """
        self.session = session
        self.stopwatch = stopwatch or Stopwatch()
        self.state = state
        self._restore()

    @property
    def user_id(self) -> Optional[str]:
        return self.session.user_id

    def _state_key(self) -> str:
        return f"stopwatch:{self.user_id}"

    def _restore(self) -> None:
        if self.state is None or self.user_id is None or self.stopwatch.is_running:
            return
        saved = self.state.get(self._state_key())
        if saved:
            try:
                self.stopwatch.restore(int(saved))
            except ValueError:
                logger.warning(f"Ignoring invalid stopwatch state: {saved!r}")
                self.state.delete(self._state_key())

    def start(self) -> Optional[int]:
        """Start the stopwatch.

        Returns:
            Start time in epoch milliseconds, or None without an identity
        """
        if self.user_id is None:
            return None

        started_at = self.stopwatch.start()
        if self.state is not None:
            self.state.set(self._state_key(), str(started_at))
        return started_at

    def stop(self) -> MutationResult:
        """Stop the stopwatch and record the completed interval.

        Stopping an idle stopwatch does nothing.
        """
        interval = self.stopwatch.stop()
        if self.state is not None and self.user_id is not None:
            self.state.delete(self._state_key())

        if interval is None:
            return MutationResult(Outcome.SKIPPED, error="Stopwatch is not running")

        result = self.session.add_interval(interval.start, interval.end, interval.duration)
        if not result.ok:
            logger.warning(f"Stopwatch run of {interval.duration}s not recorded: {result.error}")
        return result

    def status(self) -> Optional[int]:
        """Elapsed seconds of the running stopwatch, None when idle."""
        if not self.stopwatch.is_running:
            return None
        return self.stopwatch.elapsed()

    def add_manual_entry(self, seconds: Union[str, int], day: Union[str, date]) -> MutationResult:
        """Add a manual entry. See RecordSession.add_manual."""
        return self.session.add_manual(seconds, day)

    def edit_entry(self, record_id: str, value: Union[str, int, None]) -> MutationResult:
        """Change the duration of an entry. See RecordSession.edit_duration."""
        return self.session.edit_duration(record_id, value)

    def delete_entry(self, record_id: str) -> MutationResult:
        """Delete an entry. See RecordSession.delete."""
        return self.session.delete(record_id)

"""
Idle interval controller.

Owned resource with a single writer: only the interval handler starts,
reschedules, resets or stops it, and only in response to actions on the
log. While running it dispatches WaitInterval every interval_s seconds
until reset (countdown restarts) or stopped.

The controller never reads engine state; the wait-interval handler
decides whether a placeholder is actually pushed.
"""

from __future__ import annotations

import asyncio
import time
from typing import Callable

from constants import DEFAULT_WAIT_INTERVAL_S, MIN_WAIT_INTERVAL_S
from observability.logger import log_event
from orchestrator.actions import Action, WaitInterval


def _now_ms() -> int:
    return time.time_ns() // 1_000_000


class IntervalController:
    """Self-triggering WaitInterval source."""

    def __init__(
        self,
        *,
        dispatch: Callable[[Action], None],
        interval_s: int = DEFAULT_WAIT_INTERVAL_S,
        session_id: str | None = None,
        clock: Callable[[], int] = _now_ms,
    ) -> None:
        self._dispatch = dispatch
        self._interval_s = max(MIN_WAIT_INTERVAL_S, interval_s)
        self._session_id = session_id
        self._clock = clock
        self._task: asyncio.Task[None] | None = None

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    @property
    def interval_s(self) -> int:
        return self._interval_s

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    # ------------------------------------------------------------------
    # Mutation (interval handler only)
    # ------------------------------------------------------------------

    def configure(self, interval_s: int) -> None:
        """Set the period without starting the countdown."""
        self._interval_s = max(MIN_WAIT_INTERVAL_S, interval_s)

    def start(self) -> None:
        """Start the countdown. No-op when already running."""
        if self.running:
            return
        self._spawn()
        self._log("INTERVAL_STARTED")

    def reschedule(self, interval_s: int) -> None:
        """Change the period; a running countdown restarts with it."""
        self.configure(interval_s)
        if self.running:
            self._cancel()
            self._spawn()
        self._log("INTERVAL_RESCHEDULED")

    def reset(self) -> None:
        """Restart a running countdown from zero."""
        if not self.running:
            return
        self._cancel()
        self._spawn()

    def stop(self) -> None:
        if not self.running:
            return
        self._cancel()
        self._log("INTERVAL_STOPPED")

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _spawn(self) -> None:
        self._task = asyncio.create_task(self._run())

    def _cancel(self) -> None:
        if self._task is not None:
            self._task.cancel()
            self._task = None

    async def _run(self) -> None:
        try:
            while True:
                await asyncio.sleep(self._interval_s)
                self._dispatch(WaitInterval(ts_ms=self._clock()))
        except asyncio.CancelledError:
            return

    def _log(self, event_type: str) -> None:
        log_event({
            "ts_ms": self._clock(),
            "event_type": event_type,
            "session_id": self._session_id,
            "interval_s": self._interval_s,
        })

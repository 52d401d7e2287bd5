"""
Named, cancellable timers (v1).

Responsibilities:
- Start a timer that dispatches exactly one action on expiry
- Replace a running timer with the same id (restart semantics)
- Cancel timers individually or all at once on teardown

Non-responsibilities:
- NO decisions about which action to dispatch or when
- NO knowledge of reducer transitions

A cancelled timer never dispatches. Timeout-vs-cancel races are resolved
here: whichever side reaches the log first wins, the loser is torn down.
"""

from __future__ import annotations

import asyncio
from asyncio import Task
from typing import Callable

from orchestrator.actions import Action
from observability.logger import log_event


# ---------------------------------------------------------------------
# Types
# ---------------------------------------------------------------------

DispatchFn = Callable[[Action], None]
ActionFactory = Callable[[], Action]


# ---------------------------------------------------------------------
# Timer Manager
# ---------------------------------------------------------------------

class TimerManager:
    """
    Runtime manager for delayed actions.

    Lifecycle:
    1. Handler calls start_timer(id, delay_ms, factory)
    2a. Competing action's handler calls cancel_timer(id) -> nothing happens
    2b. Delay elapses -> dispatch(factory())
    """

    def __init__(self, *, dispatch: DispatchFn) -> None:
        self._dispatch = dispatch
        self._timers: dict[str, Task[None]] = {}

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def start_timer(
        self,
        timer_id: str,
        delay_ms: int,
        factory: ActionFactory,
    ) -> None:
        """
        Start or replace a timer.

        A running timer with the same id is cancelled first.
        """
        self.cancel_timer(timer_id)
        self._timers[timer_id] = asyncio.create_task(
            self._timer_task(timer_id=timer_id, delay_ms=delay_ms, factory=factory)
        )

    def cancel_timer(self, timer_id: str) -> bool:
        """
        Cancel an in-flight timer.

        Idempotent. Returns True if a pending timer was cancelled.
        """
        task = self._timers.pop(timer_id, None)
        if task is None or task.done():
            return False
        task.cancel()
        return True

    def is_pending(self, timer_id: str) -> bool:
        task = self._timers.get(timer_id)
        return task is not None and not task.done()

    def clear_all(self) -> None:
        """
        Cancel and clear all outstanding timers.
        Used on session teardown.
        """
        for task in self._timers.values():
            task.cancel()
        self._timers.clear()

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    async def _timer_task(
        self,
        *,
        timer_id: str,
        delay_ms: int,
        factory: ActionFactory,
    ) -> None:
        try:
            await asyncio.sleep(max(0, delay_ms) / 1000.0)
        except asyncio.CancelledError:
            return

        # Replaced while waking up
        if self._timers.get(timer_id) is not asyncio.current_task():
            return
        del self._timers[timer_id]

        action = factory()
        log_event({
            "ts_ms": action.ts_ms,
            "event_type": "TIMER_FIRED",
            "timer_id": timer_id,
            "action_type": action.action_type.value,
        })
        self._dispatch(action)

"""
Runtime execution shell for a single chat session.

Responsibilities:
- Own the action log and the authoritative ChatState
- Call the pure reducer, once per action, in log order
- Schedule effect handlers with the post-reduction snapshot
- Own named timers (TimerManager)
- Marshal actions from foreign threads onto the event loop

Non-responsibilities:
- Deciding anything: every decision is either a reducer transition or a
  handler reacting to an action
- Transport concerns (WebSocket, JSON framing)
"""

from __future__ import annotations

import asyncio
import time
from collections import deque
from typing import TYPE_CHECKING, Callable, Iterable

from constants import ACTION_LOG_MAX
from observability.logger import log_event
from orchestrator.actions import Action, ActionType
from orchestrator.reducer import changed_slices, reduce
from orchestrator.state_dataclass import ChatState
from orchestrator.timers import TimerManager

if TYPE_CHECKING:
    from orchestrator.handlers.base import Handler
    from orchestrator.runtime_context import RuntimeExecutionContext


def _now_ms() -> int:
    return time.time_ns() // 1_000_000


# Called synchronously after every state-changing reduction
StateObserver = Callable[[Action, ChatState], None]


class Runtime:
    """
    Runtime execution boundary for a single chat session.

    Guarantees:
    - dispatch() is synchronous: the action is appended, reduced and
      logged before it returns; no two actions are reduced concurrently
    - Handlers never run inline; each subscribed handler gets its own task
      and the snapshot produced by that very action
    - Handler tasks are created in log order, so their synchronous
      prologues (timer arm / cancel) observe log order too
    - A failing handler is logged as HANDLER_ERROR and never affects state
      or other handlers

    Handlers write state only by dispatching follow-up actions.
    """

    def __init__(
        self,
        *,
        initial_state: ChatState | None = None,
        context: RuntimeExecutionContext | None = None,
        handlers: Iterable[Handler] = (),
        observers: Iterable[StateObserver] = (),
        action_log_max: int = ACTION_LOG_MAX,
    ) -> None:
        self._state = initial_state if initial_state is not None else ChatState()
        self._ctx = context
        self._log: deque[Action] = deque(maxlen=action_log_max)
        self._tasks: set[asyncio.Task[None]] = set()
        self._loop: asyncio.AbstractEventLoop | None = None
        self._closed = False
        self._observers: list[StateObserver] = list(observers)

        self._subscriptions: dict[ActionType, list[Handler]] = {}
        for handler in handlers:
            for action_type in handler.action_types:
                self._subscriptions.setdefault(action_type, []).append(handler)

        self.timers = TimerManager(dispatch=self.dispatch)

    # ------------------------------------------------------------------
    # Read-only views
    # ------------------------------------------------------------------

    @property
    def state(self) -> ChatState:
        """
        Current immutable snapshot.

        Handlers should prefer the snapshot they were scheduled with; this
        is for callbacks that fire later (recognizer results, timers).
        """
        return self._state

    @property
    def action_log(self) -> tuple[Action, ...]:
        """Most recent actions, oldest first (bounded)."""
        return tuple(self._log)

    @property
    def ctx(self) -> RuntimeExecutionContext | None:
        return self._ctx

    @property
    def session_id(self) -> str | None:
        return self._ctx.session_id if self._ctx is not None else None

    def now_ms(self) -> int:
        return _now_ms()

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    def bind_loop(self, loop: asyncio.AbstractEventLoop) -> None:
        """Remember the loop dispatch_threadsafe() marshals onto."""
        self._loop = loop

    def dispatch(self, action: Action) -> None:
        """
        Append action to the log, reduce it and schedule its handlers.

        This method is the *only* entry point for state changes. All
        stimulus sources converge here: gateway, collaborator callbacks,
        timers, the interval controller and handlers themselves.
        """
        if self._closed:
            log_event({
                "ts_ms": action.ts_ms,
                "event_type": "DISPATCH_AFTER_SHUTDOWN",
                "session_id": self.session_id,
                "dropped_action": action.action_type.value,
            })
            return

        self._log.append(action)

        prev = self._state
        self._state = reduce(prev, action)
        changed = changed_slices(prev, self._state)

        log_event({
            "ts_ms": action.ts_ms,
            "event_type": action.action_type.value,
            "session_id": self.session_id,
            "decision": "state_changed" if changed else "no_op",
            "details": {"slices": changed},
        })

        if changed:
            self._notify_observers(action)

        handlers = self._subscriptions.get(action.action_type)
        if not handlers:
            return

        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            log_event({
                "ts_ms": action.ts_ms,
                "event_type": "HANDLERS_SKIPPED_NO_LOOP",
                "session_id": self.session_id,
                "action_type": action.action_type.value,
            })
            return

        if self._loop is None:
            self._loop = loop

        snapshot = self._state
        for handler in handlers:
            task = loop.create_task(self._run_handler(handler, action, snapshot))
            self._tasks.add(task)
            task.add_done_callback(self._tasks.discard)

    def dispatch_threadsafe(self, action: Action) -> None:
        """
        Dispatch from any thread.

        On the loop thread this is plain dispatch(); elsewhere the action
        is marshalled with call_soon_threadsafe.
        """
        try:
            running = asyncio.get_running_loop()
        except RuntimeError:
            running = None

        if self._loop is None or running is self._loop:
            self.dispatch(action)
            return

        self._loop.call_soon_threadsafe(self.dispatch, action)

    def _notify_observers(self, action: Action) -> None:
        for observer in self._observers:
            try:
                observer(action, self._state)
            except Exception as exc:  # pylint: disable=broad-exception-caught
                log_event({
                    "ts_ms": _now_ms(),
                    "event_type": "OBSERVER_ERROR",
                    "session_id": self.session_id,
                    "action_type": action.action_type.value,
                    "exception": type(exc).__name__,
                    "message": str(exc),
                })

    async def _run_handler(
        self,
        handler: Handler,
        action: Action,
        snapshot: ChatState,
    ) -> None:
        try:
            await handler.handle(action, snapshot, self)
        except asyncio.CancelledError:
            raise
        except Exception as exc:  # pylint: disable=broad-exception-caught
            log_event({
                "ts_ms": _now_ms(),
                "event_type": "HANDLER_ERROR",
                "session_id": self.session_id,
                "handler": type(handler).__name__,
                "action_type": action.action_type.value,
                "exception": type(exc).__name__,
                "message": str(exc),
            })

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def drain(self) -> None:
        """
        Wait until no handler task is in flight.

        Pending timers and the interval controller are not awaited.
        """
        await asyncio.sleep(0)
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
            await asyncio.sleep(0)

    async def shutdown(self) -> None:
        """
        Clean shutdown of the runtime.

        Cancels timers, the interval controller and in-flight handlers, and
        waits for them to finish. Later dispatches are dropped (logged).
        """
        self._closed = True
        self.timers.clear_all()

        controller = self._state.settings.interval
        if controller is not None:
            controller.stop()

        for task in list(self._tasks):
            task.cancel()
        if self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
        self._tasks.clear()

        log_event({
            "ts_ms": _now_ms(),
            "event_type": "RUNTIME_SHUTDOWN",
            "session_id": self.session_id,
            "actions_logged": len(self._log),
        })


"""
Waiting placeholders, idle interval and offline alert.

Outbound interaction (send, language change, menu message, form, mount):
    - notify the external content hook (best effort)
    - push the configured waiting placeholder
    - turn on speaker / idle interval (send, language change, menu only)
    - arm the offline alert

Peer reply (RECEIVE_MESSAGE, RESET_CHANGE_LANGUAGE):
    - drop placeholders, cancel the offline alert, restart the idle countdown

The IntervalController is touched by IntervalHandler only.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from constants import IDLE_PLACEHOLDER_IDS
from observability.logger import log_event
from orchestrator.actions import (
    Action,
    ActionType,
    PushWaitingMessage,
    RemoveWaitingMessage,
    TimeoutAlert,
    TurnOnSettings,
)
from orchestrator.handlers.base import Handler
from orchestrator.state_dataclass import ChatState
from orchestrator.waiting import interval_placeholder, timeout_alert, waiting_placeholder

if TYPE_CHECKING:
    from orchestrator.runtime import Runtime


OFFLINE_ALERT_TIMER_ID = "offline_alert"

_OUTBOUND = frozenset({
    ActionType.SEND_MESSAGE,
    ActionType.CHANGE_LANGUAGE,
    ActionType.SEND_MENU_MESSAGE,
})

_PEER_REPLY = frozenset({
    ActionType.RECEIVE_MESSAGE,
    ActionType.RESET_CHANGE_LANGUAGE,
})


class WaitingMessageHandler(Handler):
    """Push the configured placeholder after an outbound interaction."""

    action_types = _OUTBOUND | {ActionType.SUBMIT_FORM, ActionType.HISTORY_DID_MOUNT}

    async def handle(self, action: Action, state: ChatState, rt: Runtime) -> None:
        hook = rt.ctx.external_content if rt.ctx is not None else None
        if hook is not None and hook.active:
            try:
                hook.on_sent()
            except Exception as exc:  # pylint: disable=broad-exception-caught
                log_event({
                    "ts_ms": rt.now_ms(),
                    "event_type": "EXTERNAL_CONTENT_HOOK_FAILED",
                    "session_id": rt.session_id,
                    "exception": type(exc).__name__,
                    "message": str(exc),
                })

        waiting = state.settings.waiting_message
        if waiting is None or not waiting.is_valid:
            return

        rt.dispatch(PushWaitingMessage(
            ts_ms=rt.now_ms(),
            activity=waiting_placeholder(waiting, state.format.locale, action.ts_ms),
        ))


class TurnOnSettingsHandler(Handler):
    action_types = _OUTBOUND

    async def handle(self, action: Action, state: ChatState, rt: Runtime) -> None:
        rt.dispatch(TurnOnSettings(ts_ms=rt.now_ms()))


class RemoveWaitingHandler(Handler):
    """Drop placeholders once the peer answered."""

    action_types = _PEER_REPLY

    async def handle(self, action: Action, state: ChatState, rt: Runtime) -> None:
        settings = state.settings
        waiting_valid = settings.waiting_message is not None and settings.waiting_message.is_valid
        if waiting_valid or settings.interval_available:
            rt.dispatch(RemoveWaitingMessage(ts_ms=rt.now_ms()))


class WaitIntervalHandler(Handler):
    """Push the idle placeholder, at most one in a row."""

    action_types = frozenset({ActionType.WAIT_INTERVAL})

    async def handle(self, action: Action, state: ChatState, rt: Runtime) -> None:
        if not state.settings.interval_available:
            return

        activities = state.history.activities
        if activities and activities[-1].id in IDLE_PLACEHOLDER_IDS:
            return

        rt.dispatch(PushWaitingMessage(
            ts_ms=rt.now_ms(),
            activity=interval_placeholder(
                state.settings.waiting_message,
                state.format.locale,
                action.ts_ms,
            ),
        ))


class IntervalHandler(Handler):
    """Single writer of the IntervalController."""

    action_types = frozenset({
        ActionType.ENABLE_INTERVAL_CONTROLLER,
        ActionType.SET_INTERVAL_TIME,
        ActionType.TURN_ON_SETTINGS,
    }) | _PEER_REPLY

    async def handle(self, action: Action, state: ChatState, rt: Runtime) -> None:
        controller = state.settings.interval
        if controller is None:
            return

        kind = action.action_type
        if kind is ActionType.ENABLE_INTERVAL_CONTROLLER:
            controller.configure(state.settings.interval_s)
        elif kind is ActionType.SET_INTERVAL_TIME:
            controller.reschedule(state.settings.interval_s)
        elif kind is ActionType.TURN_ON_SETTINGS:
            controller.start()
        elif kind in _PEER_REPLY:
            controller.reset()


class OfflineAlertHandler(Handler):
    """Alert when the peer stays silent after an outbound interaction."""

    action_types = _OUTBOUND | {ActionType.SUBMIT_FORM} | _PEER_REPLY

    async def handle(self, action: Action, state: ChatState, rt: Runtime) -> None:
        if action.action_type in _PEER_REPLY:
            rt.timers.cancel_timer(OFFLINE_ALERT_TIMER_ID)
            return

        timeout_s = rt.ctx.offline_alert_timeout_s if rt.ctx is not None else 0
        if timeout_s <= 0:
            return

        strings = state.format.strings
        locale = state.format.locale

        def make_alert() -> TimeoutAlert:
            ts_ms = rt.now_ms()
            return TimeoutAlert(ts_ms=ts_ms, activity=timeout_alert(strings, locale, ts_ms))

        rt.timers.start_timer(OFFLINE_ALERT_TIMER_ID, timeout_s * 1000, make_alert)

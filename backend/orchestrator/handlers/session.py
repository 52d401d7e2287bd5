"""
Small session-level reactions.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from observability.logger import log_event
from orchestrator.actions import Action, ActionType, LastInputNotSpeech
from orchestrator.handlers.base import Handler
from orchestrator.state_dataclass import ChatState

if TYPE_CHECKING:
    from orchestrator.runtime import Runtime


class LastInputNotSpeechHandler(Handler):
    """Non-voice interactions turn speak-back off."""

    action_types = frozenset({
        ActionType.CHANGE_LANGUAGE,
        ActionType.SEND_MENU_MESSAGE,
        ActionType.SUBMIT_FORM,
    })

    async def handle(self, action: Action, state: ChatState, rt: Runtime) -> None:
        rt.dispatch(LastInputNotSpeech(ts_ms=rt.now_ms()))


class SelectionNotifyHandler(Handler):
    """Push the current selection to the host's selection listener."""

    action_types = frozenset({
        ActionType.SEND_MESSAGE_SUCCEED,
        ActionType.SEND_MESSAGE_FAIL,
        ActionType.SHOW_TYPING,
        ActionType.CLEAR_TYPING,
    })

    async def handle(self, action: Action, state: ChatState, rt: Runtime) -> None:
        listener = rt.ctx.selection_listener if rt.ctx is not None else None
        if listener is None:
            return
        try:
            listener(state.history.selected_activity)
        except Exception as exc:  # pylint: disable=broad-exception-caught
            log_event({
                "ts_ms": rt.now_ms(),
                "event_type": "SELECTION_LISTENER_FAILED",
                "session_id": rt.session_id,
                "exception": type(exc).__name__,
                "message": str(exc),
            })

"""
Typing indicators, both directions.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from adapters.transport.base import TransportError
from constants import (
    ACTIVITY_TYPE_TYPING,
    SEND_TYPING_THROTTLE_MS,
    TYPING_INDICATOR_EXPIRY_MS,
)
from observability.logger import log_event
from orchestrator.actions import Action, ActionType, ClearTyping, ShowTyping
from orchestrator.activity import Activity, Participant
from orchestrator.handlers.base import Handler, post_activity
from orchestrator.state_dataclass import ChatState

if TYPE_CHECKING:
    from orchestrator.runtime import Runtime


class ShowTypingHandler(Handler):
    """Peer typing indicators expire on their own."""

    action_types = frozenset({ActionType.SHOW_TYPING})

    async def handle(self, action: Action, state: ChatState, rt: Runtime) -> None:
        assert isinstance(action, ShowTyping)
        typing_id = action.activity.id
        rt.timers.start_timer(
            f"typing:{typing_id}",
            TYPING_INDICATOR_EXPIRY_MS,
            lambda: ClearTyping(ts_ms=rt.now_ms(), id=typing_id),
        )


class SendTypingHandler(Handler):
    """
    Tell the peer the user is typing.

    Leading-edge throttle: the first UPDATE_INPUT posts, the following ones
    are ignored for SEND_TYPING_THROTTLE_MS.
    """

    action_types = frozenset({ActionType.UPDATE_INPUT})

    def __init__(self) -> None:
        self._last_sent_ms: int | None = None

    async def handle(self, action: Action, state: ChatState, rt: Runtime) -> None:
        if not state.shell.send_typing:
            return

        if (
            self._last_sent_ms is not None
            and action.ts_ms - self._last_sent_ms < SEND_TYPING_THROTTLE_MS
        ):
            return
        self._last_sent_ms = action.ts_ms

        typing = Activity(
            type=ACTIVITY_TYPE_TYPING,
            from_=state.connection.user or Participant(id=None),
        )
        try:
            await post_activity(typing, state, rt, metric="send_typing_post")
        except TransportError as exc:
            log_event({
                "ts_ms": rt.now_ms(),
                "event_type": "SEND_TYPING_FAILED",
                "session_id": rt.session_id,
                "exception": type(exc).__name__,
                "message": str(exc),
            })

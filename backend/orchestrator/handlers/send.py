"""
Optimistic send / retry chain.

    SEND_MESSAGE        -> SEND_MESSAGE_TRY(correlation_id just minted)
    SEND_MESSAGE_RETRY  -> SEND_MESSAGE_TRY(same correlation_id)
    SEND_MESSAGE_TRY    -> post -> SEND_MESSAGE_SUCCEED | SEND_MESSAGE_FAIL

Per-entry lifecycle:
    Created -> Trying -> {Succeeded | Failed};  Failed -> Trying on retry.

At most one post per CorrelationId is in flight. Failures are never
retried automatically.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from adapters.transport.base import TransportError
from observability.logger import log_event
from orchestrator.actions import (
    Action,
    ActionType,
    SendMessageFail,
    SendMessageRetry,
    SendMessageSucceed,
    SendMessageTry,
)
from orchestrator.handlers.base import Handler, build_envelope, post_activity
from orchestrator.state_dataclass import ChatState

if TYPE_CHECKING:
    from orchestrator.runtime import Runtime


def last_minted_correlation_id(state: ChatState) -> str:
    """CorrelationId assigned by the most recent SEND_MESSAGE."""
    history = state.history
    return f"{history.correlation_base}.{history.correlation_counter - 1}"


class SendMessageHandler(Handler):
    """SEND_MESSAGE -> SEND_MESSAGE_TRY."""

    action_types = frozenset({ActionType.SEND_MESSAGE})

    async def handle(self, action: Action, state: ChatState, rt: Runtime) -> None:
        rt.dispatch(SendMessageTry(
            ts_ms=rt.now_ms(),
            correlation_id=last_minted_correlation_id(state),
        ))


class RetrySendHandler(Handler):
    """SEND_MESSAGE_RETRY -> SEND_MESSAGE_TRY."""

    action_types = frozenset({ActionType.SEND_MESSAGE_RETRY})

    async def handle(self, action: Action, state: ChatState, rt: Runtime) -> None:
        assert isinstance(action, SendMessageRetry)
        rt.dispatch(SendMessageTry(
            ts_ms=rt.now_ms(),
            correlation_id=action.correlation_id,
        ))


class TrySendHandler(Handler):
    """
    Post the activity carrying the requested CorrelationId.

    Holds the in-flight set, so one instance must serve the whole session.
    """

    action_types = frozenset({ActionType.SEND_MESSAGE_TRY})

    def __init__(self) -> None:
        self._in_flight: set[str] = set()

    @property
    def in_flight(self) -> frozenset[str]:
        return frozenset(self._in_flight)

    async def handle(self, action: Action, state: ChatState, rt: Runtime) -> None:
        assert isinstance(action, SendMessageTry)
        correlation_id = action.correlation_id

        activity = next(
            (a for a in state.history.activities if a.correlation_id == correlation_id),
            None,
        )
        if activity is None:
            log_event({
                "ts_ms": action.ts_ms,
                "event_type": "SEND_TRY_DROPPED",
                "session_id": rt.session_id,
                "correlation_id": correlation_id,
                "reason": "activity_not_found",
            })
            return

        if correlation_id in self._in_flight:
            log_event({
                "ts_ms": action.ts_ms,
                "event_type": "SEND_TRY_DROPPED",
                "session_id": rt.session_id,
                "correlation_id": correlation_id,
                "reason": "already_in_flight",
            })
            return

        self._in_flight.add(correlation_id)
        try:
            server_id = await post_activity(
                build_envelope(activity, state),
                state,
                rt,
                metric="send_message_post",
                details={"correlation_id": correlation_id},
            )
        except TransportError as exc:
            log_event({
                "ts_ms": rt.now_ms(),
                "event_type": "SEND_MESSAGE_POST_FAILED",
                "session_id": rt.session_id,
                "correlation_id": correlation_id,
                "exception": type(exc).__name__,
                "message": str(exc),
            })
            rt.dispatch(SendMessageFail(
                ts_ms=rt.now_ms(),
                correlation_id=correlation_id,
            ))
            return
        finally:
            self._in_flight.discard(correlation_id)

        rt.dispatch(SendMessageSucceed(
            ts_ms=rt.now_ms(),
            correlation_id=correlation_id,
            id=server_id,
        ))

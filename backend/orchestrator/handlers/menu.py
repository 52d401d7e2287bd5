"""
Canned menu messages.

    SEND_MENU_MESSAGE -> resolve for the session locale -> PUSH_MENU_MESSAGE
    PUSH_MENU_MESSAGE -> post -> SENT_MENU_MESSAGE | SEND_MENU_MESSAGE_FAIL
"""

from __future__ import annotations

from dataclasses import replace
from typing import TYPE_CHECKING
from uuid import uuid4

from adapters.transport.base import TransportError
from constants import MENU_SENDER_NAME
from observability.logger import log_event
from orchestrator.actions import (
    Action,
    ActionType,
    PushMenuMessage,
    SendMenuMessageFail,
    SentMenuMessage,
)
from orchestrator.activity import Activity, Participant, iso_timestamp
from orchestrator.handlers.base import Handler, build_envelope, post_activity
from orchestrator.languages import check_locale
from orchestrator.state_dataclass import ChatState, MenuMessage

if TYPE_CHECKING:
    from orchestrator.runtime import Runtime


def find_menu_message(state: ChatState) -> MenuMessage | None:
    """Menu entry for the requested message in the session locale."""
    locale = state.format.locale
    group = next(
        (
            g for g in state.menu.all_messages
            if g.locale == locale or check_locale(g.locale, locale)
        ),
        None,
    )
    if group is None:
        return None
    return next(
        (m for m in group.messages if m.sending_message == state.menu.send_message),
        None,
    )


class SendMenuMessageHandler(Handler):
    action_types = frozenset({ActionType.SEND_MENU_MESSAGE})

    async def handle(self, action: Action, state: ChatState, rt: Runtime) -> None:
        message = find_menu_message(state)
        if message is None or not message.sending_message:
            log_event({
                "ts_ms": action.ts_ms,
                "event_type": "MENU_MESSAGE_NOT_FOUND",
                "session_id": rt.session_id,
                "locale": state.format.locale,
                "message": state.menu.send_message,
            })
            return

        base = state.menu.activity or Activity()
        activity = replace(
            base,
            id=iso_timestamp(action.ts_ms),
            text=message.sending_message,
            from_=Participant(id=uuid4().hex, name=MENU_SENDER_NAME),
        )
        rt.dispatch(PushMenuMessage(ts_ms=rt.now_ms(), activity=activity))


class PushMenuMessageHandler(Handler):
    action_types = frozenset({ActionType.PUSH_MENU_MESSAGE})

    async def handle(self, action: Action, state: ChatState, rt: Runtime) -> None:
        assert isinstance(action, PushMenuMessage)
        try:
            await post_activity(
                build_envelope(action.activity, state),
                state,
                rt,
                metric="menu_message_post",
            )
        except TransportError as exc:
            log_event({
                "ts_ms": rt.now_ms(),
                "event_type": "MENU_MESSAGE_POST_FAILED",
                "session_id": rt.session_id,
                "exception": type(exc).__name__,
                "message": str(exc),
            })
            rt.dispatch(SendMenuMessageFail(ts_ms=rt.now_ms()))
            return

        rt.dispatch(SentMenuMessage(ts_ms=rt.now_ms()))

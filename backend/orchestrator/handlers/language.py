"""
Language-switch negotiation.

    CHANGE_LANGUAGE -> post request -> CHANGED_LANGUAGE | CHANGE_LANGUAGE_FAIL
    RECEIVE_MESSAGE (confirmation greeting or changeLanguage event)
        -> recognizer.set_language(), SET_LOCALE

Unsupported language codes are logged and dropped.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import TYPE_CHECKING

from adapters.transport.base import TransportError
from constants import CHANGE_LANGUAGE_EVENT
from observability.logger import log_event
from orchestrator.actions import (
    Action,
    ActionType,
    ChangedLanguage,
    ChangeLanguage,
    ChangeLanguageFail,
    ReceiveMessage,
    SetLocale,
)
from orchestrator.handlers.base import Handler, build_envelope, post_activity
from orchestrator.languages import entry_for_confirmation, entry_for_locale
from orchestrator.reducers._evolve import deref
from orchestrator.state_dataclass import ChatState

if TYPE_CHECKING:
    from orchestrator.runtime import Runtime


class ChangeLanguageHandler(Handler):
    """Post the language-change request."""

    action_types = frozenset({ActionType.CHANGE_LANGUAGE})

    async def handle(self, action: Action, state: ChatState, rt: Runtime) -> None:
        assert isinstance(action, ChangeLanguage)
        try:
            await post_activity(
                build_envelope(action.activity, state),
                state,
                rt,
                metric="change_language_post",
                details={"language": action.language},
            )
        except TransportError as exc:
            log_event({
                "ts_ms": rt.now_ms(),
                "event_type": "CHANGE_LANGUAGE_POST_FAILED",
                "session_id": rt.session_id,
                "language": action.language,
                "exception": type(exc).__name__,
                "message": str(exc),
            })
            rt.dispatch(ChangeLanguageFail(ts_ms=rt.now_ms()))
            return

        rt.dispatch(ChangedLanguage(ts_ms=rt.now_ms()))


class LanguageConfirmationHandler(Handler):
    """Apply a language switch confirmed by the peer."""

    action_types = frozenset({ActionType.RECEIVE_MESSAGE})

    async def handle(self, action: Action, state: ChatState, rt: Runtime) -> None:
        assert isinstance(action, ReceiveMessage)
        activity = action.activity

        entry = entry_for_confirmation(activity.text)

        value = activity.value
        if isinstance(value, Mapping) and value.get("type") == CHANGE_LANGUAGE_EVENT:
            code = value.get("language_code")
            entry = entry_for_locale(code)
            if entry is None:
                log_event({
                    "ts_ms": action.ts_ms,
                    "event_type": "UNSUPPORTED_LANGUAGE",
                    "session_id": rt.session_id,
                    "language_code": code,
                })
                return

        if entry is None:
            return

        # Availability only gates start / stop; a held handle always follows the locale
        recognizer = deref(state.language.recognizer_ref)
        if recognizer is not None:
            recognizer.set_language(entry.recognizer_language)

        rt.dispatch(SetLocale(ts_ms=rt.now_ms(), locale=entry.language))

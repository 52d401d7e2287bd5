"""
Voice input / output lifecycle.

Listening:
    LISTENING_STARTING -> start_recognizing()
        stream start  -> LISTENING_START
        partial       -> UPDATE_INPUT(source=speech)
        final         -> UPDATE_INPUT, LISTENING_STOPPING, SEND_MESSAGE
        failure       -> LISTENING_STOPPING
    LISTENING_STOPPING | CARD_ACTION_CLICKED -> stop_recognizing() -> LISTENING_STOP

Silence timeout (race between two action streams):
    LISTENING_START arms the timer; UPDATE_INPUT or LISTENING_STOPPING
    tears it down. Whoever reaches the log first wins.

Speaking:
    SPEAK_SSML -> LISTENING_STOPPING, SPEAKING_STARTED, speak()
        completion -> LISTENING_STARTING (auto listen) | SPEAKING_STOPPED
        error      -> SPEAKING_STOPPED
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from constants import ACTIVITY_TYPE_MESSAGE, LISTENING_SILENCE_TIMEOUT_MS
from observability.logger import log_event
from observability.metrics import timed
from orchestrator.actions import (
    Action,
    ActionType,
    ListeningStart,
    ListeningStarting,
    ListeningStop,
    ListeningStopping,
    ReceiveMessage,
    SendMessage,
    SpeakingStarted,
    SpeakingStopped,
    SpeakSsml,
    UpdateInput,
)
from orchestrator.activity import message_activity
from orchestrator.enums.input_source import InputSource
from orchestrator.enums.listening import ListeningState
from orchestrator.handlers.base import Handler, recognizer_of
from orchestrator.speech import speak_from_message, trim_recognized
from orchestrator.state_dataclass import ChatState

if TYPE_CHECKING:
    from orchestrator.runtime import Runtime


SILENCE_TIMER_ID = "listening_silence"


# =============================================================================
# Listening
# =============================================================================

class StartListeningHandler(Handler):
    """LISTENING_STARTING -> recognition session."""

    action_types = frozenset({ActionType.LISTENING_STARTING})

    async def handle(self, action: Action, state: ChatState, rt: Runtime) -> None:
        recognizer = recognizer_of(state)
        if recognizer is None:
            log_event({
                "ts_ms": action.ts_ms,
                "event_type": "RECOGNIZER_UNAVAILABLE",
                "session_id": rt.session_id,
            })
            rt.dispatch(ListeningStopping(
                ts_ms=rt.now_ms(),
                reason="recognizer_unavailable",
            ))
            return

        locale = state.format.locale
        last_message = next(
            (
                a for a in reversed(state.history.activities)
                if a.type == ACTIVITY_TYPE_MESSAGE
            ),
            None,
        )
        grammars = tuple(last_message.listen_for) if last_message else ()

        def on_partial(text: str) -> None:
            rt.dispatch_threadsafe(UpdateInput(
                ts_ms=rt.now_ms(),
                input=text,
                source=InputSource.SPEECH,
            ))

        def on_final(text: str) -> None:
            text = trim_recognized(text)
            on_partial(text)
            rt.dispatch_threadsafe(ListeningStopping(
                ts_ms=rt.now_ms(),
                reason="final_result",
            ))
            rt.dispatch_threadsafe(SendMessage(
                ts_ms=rt.now_ms(),
                activity=message_activity(text, rt.state.connection.user, locale),
            ))

        def on_stream_start() -> None:
            rt.dispatch_threadsafe(ListeningStart(ts_ms=rt.now_ms()))

        def on_failure() -> None:
            rt.dispatch_threadsafe(ListeningStopping(
                ts_ms=rt.now_ms(),
                reason="recognition_failed",
            ))

        try:
            await recognizer.start_recognizing(
                locale,
                grammars,
                on_partial,
                on_final,
                on_stream_start,
                on_failure,
            )
        except Exception as exc:  # pylint: disable=broad-exception-caught
            log_event({
                "ts_ms": rt.now_ms(),
                "event_type": "RECOGNITION_START_FAILED",
                "session_id": rt.session_id,
                "exception": type(exc).__name__,
                "message": str(exc),
            })
            on_failure()


class StopListeningHandler(Handler):
    """LISTENING_STOPPING | CARD_ACTION_CLICKED -> LISTENING_STOP."""

    action_types = frozenset({
        ActionType.LISTENING_STOPPING,
        ActionType.CARD_ACTION_CLICKED,
    })

    async def handle(self, action: Action, state: ChatState, rt: Runtime) -> None:
        recognizer = recognizer_of(state)
        if recognizer is not None:
            try:
                await recognizer.stop_recognizing()
            except Exception as exc:  # pylint: disable=broad-exception-caught
                log_event({
                    "ts_ms": rt.now_ms(),
                    "event_type": "RECOGNITION_STOP_FAILED",
                    "session_id": rt.session_id,
                    "exception": type(exc).__name__,
                    "message": str(exc),
                })

        rt.dispatch(ListeningStop(ts_ms=rt.now_ms()))


class SilenceTimeoutHandler(Handler):
    """Arms / tears down the listening silence timer."""

    action_types = frozenset({
        ActionType.LISTENING_START,
        ActionType.UPDATE_INPUT,
        ActionType.LISTENING_STOPPING,
    })

    async def handle(self, action: Action, state: ChatState, rt: Runtime) -> None:
        if action.action_type is not ActionType.LISTENING_START:
            rt.timers.cancel_timer(SILENCE_TIMER_ID)
            return

        # Late stream start after a stop: the reducer ignored it
        if state.shell.listening_state is not ListeningState.STARTED:
            return

        rt.timers.start_timer(
            SILENCE_TIMER_ID,
            LISTENING_SILENCE_TIMEOUT_MS,
            lambda: ListeningStopping(ts_ms=rt.now_ms(), reason="silence_timeout"),
        )


# =============================================================================
# Speaking
# =============================================================================

class SpeakHandler(Handler):
    """SPEAK_SSML -> speech output."""

    action_types = frozenset({ActionType.SPEAK_SSML})

    async def handle(self, action: Action, state: ChatState, rt: Runtime) -> None:
        assert isinstance(action, SpeakSsml)

        # Never listen to ourselves
        rt.dispatch(ListeningStopping(ts_ms=rt.now_ms(), reason="speaking"))

        if not action.ssml:
            return

        rt.dispatch(SpeakingStarted(ts_ms=rt.now_ms()))

        synthesizer = rt.ctx.synthesizer if rt.ctx is not None else None
        if synthesizer is None:
            log_event({
                "ts_ms": action.ts_ms,
                "event_type": "SYNTHESIZER_UNAVAILABLE",
                "session_id": rt.session_id,
            })
            rt.dispatch(SpeakingStopped(ts_ms=rt.now_ms()))
            return

        recognizer = recognizer_of(state)
        auto_listen = recognizer is not None and (
            action.auto_listen_after_speak or state.settings.auto_listen_after_speak
        )
        on_started = recognizer.warmup if auto_listen and recognizer else None

        try:
            with timed(
                "speech_synthesis",
                session_id=rt.session_id,
                details={"locale": action.locale, "chars": len(action.ssml)},
            ):
                await synthesizer.speak(
                    action.ssml,
                    action.locale or state.format.locale,
                    on_started,
                )
        except Exception as exc:  # pylint: disable=broad-exception-caught
            log_event({
                "ts_ms": rt.now_ms(),
                "event_type": "SPEECH_SYNTHESIS_FAILED",
                "session_id": rt.session_id,
                "exception": type(exc).__name__,
                "message": str(exc),
            })
            rt.dispatch(SpeakingStopped(ts_ms=rt.now_ms()))
            return

        if auto_listen:
            rt.dispatch(ListeningStarting(ts_ms=rt.now_ms()))
        else:
            rt.dispatch(SpeakingStopped(ts_ms=rt.now_ms()))


class StopSpeakingHandler(Handler):
    """Any user activity interrupts speech output."""

    action_types = frozenset({
        ActionType.UPDATE_INPUT,
        ActionType.LISTENING_STARTING,
        ActionType.SEND_MESSAGE,
        ActionType.CARD_ACTION_CLICKED,
        ActionType.STOP_SPEAKING,
    })

    async def handle(self, action: Action, state: ChatState, rt: Runtime) -> None:
        synthesizer = rt.ctx.synthesizer if rt.ctx is not None else None
        if synthesizer is not None:
            synthesizer.stop_speaking()
        rt.dispatch(SpeakingStopped(ts_ms=rt.now_ms()))


class SpeakOnReceiveHandler(Handler):
    """Speak peer messages when speech output is wanted."""

    action_types = frozenset({ActionType.RECEIVE_MESSAGE})

    async def handle(self, action: Action, state: ChatState, rt: Runtime) -> None:
        assert isinstance(action, ReceiveMessage)
        activity = action.activity

        if activity.type != ACTIVITY_TYPE_MESSAGE:
            return

        user = state.connection.user
        if user is not None and user.id is not None and activity.from_.id == user.id:
            return

        if not state.connection.speaker_enabled:
            return
        if not (state.settings.always_speak or state.shell.last_input_via_speech):
            return

        rt.dispatch(speak_from_message(activity, state.format.locale, rt.now_ms()))

"""
Shell slice reducer: input buffer, listening and speaking state machines.

Listening transitions:
    STOPPED -> STARTING -> STARTED -> STOPPING -> STOPPED

LISTENING_START is accepted only from STARTING, so STOPPED -> STARTED can
never happen (a late stream-start callback after a stop is ignored).
"""

from __future__ import annotations

from typing import Callable

from orchestrator.actions import (
    Action,
    ActionType,
    SetSendTyping,
    UpdateInput,
)
from orchestrator.enums.input_source import InputSource
from orchestrator.enums.listening import ListeningState
from orchestrator.enums.speaking import SpeakingState
from orchestrator.reducers._evolve import evolve
from orchestrator.state_dataclass import ShellState


def _update_input(state: ShellState, action: UpdateInput) -> ShellState:
    return evolve(
        state,
        input=action.input,
        last_input_via_speech=action.source is InputSource.SPEECH,
    )


def _listening_starting(state: ShellState, _action: Action) -> ShellState:
    return evolve(state, listening_state=ListeningState.STARTING)


def _listening_start(state: ShellState, _action: Action) -> ShellState:
    if state.listening_state is not ListeningState.STARTING:
        return state
    return evolve(state, listening_state=ListeningState.STARTED)


def _listening_stopping(state: ShellState, _action: Action) -> ShellState:
    if state.listening_state is ListeningState.STOPPED:
        return state
    return evolve(state, listening_state=ListeningState.STOPPING)


def _listening_stop(state: ShellState, _action: Action) -> ShellState:
    return evolve(state, listening_state=ListeningState.STOPPED)


def _send_message(state: ShellState, _action: Action) -> ShellState:
    return evolve(state, input="")


def _set_send_typing(state: ShellState, action: SetSendTyping) -> ShellState:
    return evolve(state, send_typing=action.send_typing)


def _not_speech(state: ShellState, _action: Action) -> ShellState:
    return evolve(state, last_input_via_speech=False)


def _speaking_started(state: ShellState, _action: Action) -> ShellState:
    return evolve(state, speaking_state=SpeakingState.SPEAKING)


def _speaking_stopped(state: ShellState, _action: Action) -> ShellState:
    return evolve(state, speaking_state=SpeakingState.STOPPED)


_REDUCERS: dict[ActionType, Callable[[ShellState, Action], ShellState]] = {
    ActionType.UPDATE_INPUT: _update_input,  # type: ignore[dict-item]
    ActionType.LISTENING_STARTING: _listening_starting,
    ActionType.LISTENING_START: _listening_start,
    ActionType.LISTENING_STOPPING: _listening_stopping,
    ActionType.LISTENING_STOP: _listening_stop,
    ActionType.SEND_MESSAGE: _send_message,
    ActionType.SET_SEND_TYPING: _set_send_typing,  # type: ignore[dict-item]
    ActionType.CARD_ACTION_CLICKED: _not_speech,
    ActionType.LAST_INPUT_NOT_SPEECH: _not_speech,
    ActionType.SPEAKING_STARTED: _speaking_started,
    ActionType.SPEAKING_STOPPED: _speaking_stopped,
}


def reduce_shell(state: ShellState, action: Action) -> ShellState:
    """Reduce one action into the shell slice."""
    fn = _REDUCERS.get(action.action_type)
    if fn is None:
        return state
    return fn(state, action)

"""
Settings slice reducer: speech preferences, waiting descriptor, interval.

The interval controller itself is never touched here; this reducer only
records the handle and the values the interval handler mirrors into it.
"""

from __future__ import annotations

from orchestrator.actions import (
    Action,
    ActionType,
    EnableIntervalController,
    SaveConversationId,
    SetAutoListen,
    SetChannelData,
    SetCustomSettings,
    SetIntervalTime,
)
from orchestrator.reducers._evolve import evolve
from orchestrator.state_dataclass import SettingsState, WaitingMessage
from constants import MIN_WAIT_INTERVAL_S


def reduce_settings(state: SettingsState, action: Action) -> SettingsState:
    """Reduce one action into the settings slice."""
    if isinstance(action, SetCustomSettings):
        waiting = action.waiting_message
        if not isinstance(waiting, WaitingMessage):
            waiting = None
        return evolve(
            state,
            waiting_message=waiting,
            scroll_to_bottom=action.scroll_to_bottom,
        )

    if isinstance(action, SetAutoListen):
        return evolve(
            state,
            auto_listen_after_speak=action.auto_listen_after_speak,
            always_speak=action.always_speak,
        )

    if isinstance(action, EnableIntervalController):
        return evolve(
            state,
            interval=action.controller,
            interval_s=max(MIN_WAIT_INTERVAL_S, action.interval_s),
        )

    if isinstance(action, SetIntervalTime):
        return evolve(
            state,
            interval_s=max(MIN_WAIT_INTERVAL_S, state.interval_s + action.scale),
        )

    if isinstance(action, SaveConversationId):
        return evolve(state, conversation_id=action.conversation_id)

    if isinstance(action, SetChannelData):
        return evolve(state, channel_data=action.channel_data)

    kind = action.action_type

    if kind is ActionType.TOGGLE_ALWAYS_SPEAK:
        return evolve(state, always_speak=not state.always_speak)

    if kind is ActionType.TOGGLE_AUTO_LISTEN_AFTER_SPEAK:
        return evolve(state, auto_listen_after_speak=not state.auto_listen_after_speak)

    if kind is ActionType.ENABLE_CONFIGURATION:
        return evolve(state, configurable=True)

    if kind is ActionType.TOGGLE_CONFIG:
        return evolve(state, show_config=not state.show_config)

    if kind is ActionType.TURN_ON_SETTINGS:
        # Nothing to turn on without a controller
        if state.interval is None:
            return state
        return evolve(state, interval_available=True)

    return state

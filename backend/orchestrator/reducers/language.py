"""
Language-switch slice reducer.
"""

from __future__ import annotations

from orchestrator.actions import (
    Action,
    ActionType,
    SaveSetting,
    SetLanguageSetting,
)
from orchestrator.reducers._evolve import evolve, weak
from orchestrator.state_dataclass import LanguageState


def reduce_language(state: LanguageState, action: Action) -> LanguageState:
    """Reduce one action into the language slice."""
    kind = action.action_type

    if kind is ActionType.CHANGE_LANGUAGE:
        return evolve(state, is_changing_language=True)

    if kind in (
        ActionType.RESET_CHANGE_LANGUAGE,
        ActionType.CHANGE_LANGUAGE_FAIL,
        ActionType.RECEIVE_MESSAGE,
    ):
        return evolve(state, is_changing_language=False)

    if isinstance(action, SaveSetting):
        return evolve(state, recognizer_ref=weak(action.recognizer))

    if isinstance(action, SetLanguageSetting):
        return evolve(
            state,
            display=action.display,
            languages=tuple(action.languages),
        )

    return state

"""
Format slice reducer.

SET_LOCALE is the only action that swaps the string table.
"""

from __future__ import annotations

from orchestrator.actions import (
    Action,
    SetChatTitle,
    SetLocale,
    SetMeasurements,
    SetSize,
    ToggleUploadButton,
)
from orchestrator.reducers._evolve import evolve
from orchestrator.state_dataclass import FormatState
from orchestrator.strings import strings_for


def reduce_format(state: FormatState, action: Action) -> FormatState:
    """Reduce one action into the format slice."""
    if isinstance(action, SetLocale):
        if action.locale == state.locale:
            return state
        return evolve(
            state,
            locale=action.locale,
            strings=strings_for(action.locale),
        )

    if isinstance(action, SetChatTitle):
        title = True if action.chat_title is None else action.chat_title
        return evolve(state, chat_title=title)

    if isinstance(action, SetMeasurements):
        return evolve(state, carousel_margin=action.carousel_margin)

    if isinstance(action, SetSize):
        return evolve(state, width=action.width, height=action.height)

    if isinstance(action, ToggleUploadButton):
        return evolve(state, show_upload_button=action.show_upload_button)

    return state

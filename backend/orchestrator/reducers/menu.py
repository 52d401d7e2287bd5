"""
Menu slice reducer.
"""

from __future__ import annotations

from orchestrator.actions import (
    Action,
    ActionType,
    SendMenuMessage,
    SetCustomMenuSetting,
)
from orchestrator.reducers._evolve import evolve
from orchestrator.state_dataclass import MenuState


def reduce_menu(state: MenuState, action: Action) -> MenuState:
    """Reduce one action into the menu slice."""
    if isinstance(action, SetCustomMenuSetting):
        return evolve(
            state,
            show_menu=action.show_menu,
            common_icons=tuple(action.common_icons),
            all_messages=tuple(action.all_messages),
        )

    if isinstance(action, SendMenuMessage):
        return evolve(
            state,
            activity=action.activity,
            send_message=action.message,
        )

    if action.action_type is ActionType.TOGGLE_MENU:
        return evolve(state, show_menu=not state.show_menu)

    return state

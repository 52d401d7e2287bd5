"""
Pure chat engine reducer.

(state, action) -> state'

Rules:
- Pure: no side effects, no IO, no clocks.
- Deterministic: output depends only on inputs.
- Total: every (state, action) pair is handled or ignored; nothing raises.
- Local: each slice reducer sees only its own slice.
- Identity: if no slice changed, the very same ChatState is returned.
"""

from __future__ import annotations

from dataclasses import replace

from orchestrator.actions import Action
from orchestrator.reducers.connection import reduce_connection
from orchestrator.reducers.format import reduce_format
from orchestrator.reducers.history import reduce_history
from orchestrator.reducers.language import reduce_language
from orchestrator.reducers.menu import reduce_menu
from orchestrator.reducers.settings import reduce_settings
from orchestrator.reducers.shell import reduce_shell
from orchestrator.state_dataclass import ChatState


def reduce(state: ChatState, action: Action) -> ChatState:
    """Reduce one action through every slice."""
    history = reduce_history(state.history, action)
    shell = reduce_shell(state.shell, action)
    connection = reduce_connection(state.connection, action)
    fmt = reduce_format(state.format, action)
    settings = reduce_settings(state.settings, action)
    language = reduce_language(state.language, action)
    menu = reduce_menu(state.menu, action)

    if (
        history is state.history
        and shell is state.shell
        and connection is state.connection
        and fmt is state.format
        and settings is state.settings
        and language is state.language
        and menu is state.menu
    ):
        return state

    return replace(
        state,
        history=history,
        shell=shell,
        connection=connection,
        format=fmt,
        settings=settings,
        language=language,
        menu=menu,
    )


def changed_slices(before: ChatState, after: ChatState) -> list[str]:
    """Names of the slices that differ by identity (for logging)."""
    return [
        name
        for name in ("history", "shell", "connection", "format", "settings", "language", "menu")
        if getattr(before, name) is not getattr(after, name)
    ]

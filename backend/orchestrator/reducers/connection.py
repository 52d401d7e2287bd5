"""
Connection slice reducer.

The transport is owned by the surrounding application; only a weak
reference is stored.
"""

from __future__ import annotations

from orchestrator.actions import (
    Action,
    ConnectionChange,
    StartConnection,
    TurnOnSettings,
)
from orchestrator.reducers._evolve import evolve, weak
from orchestrator.state_dataclass import ConnectionState


def reduce_connection(state: ConnectionState, action: Action) -> ConnectionState:
    """Reduce one action into the connection slice."""
    if isinstance(action, StartConnection):
        return evolve(
            state,
            transport_ref=weak(action.transport),
            user=action.user,
            bot=action.bot,
        )

    if isinstance(action, ConnectionChange):
        return evolve(state, status=action.status)

    if isinstance(action, TurnOnSettings):
        return evolve(state, speaker_enabled=True)

    return state

"""
Effect handler contract and shared helpers.

Rules:
- A handler reacts to the action kinds it subscribes to (action_types).
- It receives the snapshot produced by that action, never a live state.
- It writes state only by dispatching follow-up actions through rt.
- It never calls another handler.
- Collaborator failures become actions or log events; nothing propagates
  except programming errors (which the runtime logs as HANDLER_ERROR).
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import replace
from typing import TYPE_CHECKING, Any, ClassVar

from adapters.transport.base import TransportUnavailable
from constants import CLIENT_CAPABILITIES
from observability.metrics import timed
from orchestrator.actions import Action, ActionType
from orchestrator.activity import Activity
from orchestrator.reducers._evolve import deref
from orchestrator.state_dataclass import ChatState

if TYPE_CHECKING:
    from adapters.transport.base import Transport
    from adapters.voice.base import SpeechRecognizer
    from orchestrator.runtime import Runtime


class Handler(ABC):
    """Asynchronous reaction to a set of action kinds."""

    action_types: ClassVar[frozenset[ActionType]] = frozenset()

    @abstractmethod
    async def handle(self, action: Action, state: ChatState, rt: Runtime) -> None:
        raise NotImplementedError


# ---------------------------------------------------------------------
# Collaborator resolution (weak references; None == unavailable)
# ---------------------------------------------------------------------

def transport_of(state: ChatState) -> Transport | None:
    return deref(state.connection.transport_ref)


def recognizer_of(state: ChatState) -> SpeechRecognizer | None:
    """Bound recognizer that currently reports itself available."""
    recognizer = deref(state.language.recognizer_ref)
    if recognizer is None or not recognizer.is_available():
        return None
    return recognizer


# ---------------------------------------------------------------------
# Outbound envelopes
# ---------------------------------------------------------------------

def build_envelope(activity: Activity, state: ChatState) -> Activity:
    """
    Decorate an outbound activity for the wire.

    - First outbound envelope of the session carries the client
      capability announcement entity
    - Session channel data rides along as channelData.payload
    """
    envelope = activity

    if state.history.outbound_counter == 1:
        envelope = replace(
            envelope,
            entities=tuple(envelope.entities) + (dict(CLIENT_CAPABILITIES),),
        )

    payload = state.settings.channel_data
    if payload:
        channel_data: dict[str, Any] = dict(envelope.channel_data or {})
        channel_data["payload"] = payload
        envelope = replace(envelope, channel_data=channel_data)

    return envelope


async def post_activity(
    envelope: Activity,
    state: ChatState,
    rt: Runtime,
    *,
    metric: str,
    details: dict[str, Any] | None = None,
) -> str:
    """
    Post one envelope through the bound transport.

    Returns the server id. Raises TransportError (TransportUnavailable when
    no live transport is bound).
    """
    transport = transport_of(state)
    if transport is None:
        raise TransportUnavailable("no transport bound to the session")

    with timed(metric, session_id=rt.session_id, details=details):
        return await transport.post(envelope)

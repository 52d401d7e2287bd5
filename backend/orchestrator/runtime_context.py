"""
Runtime execution context.

Provides handlers with live access to session-owned collaborators
(speech synthesizer, external content hook, selection listener, config).

This module contains:
- Narrow Protocols (capabilities, not implementations)
- Zero orchestration logic
- Zero state mutation

The transport and the speech recognizer are NOT reached through here:
handlers resolve them from the state snapshot (weak references), so a
collected or unbound collaborator reads as "unavailable".
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

from orchestrator.activity import Activity
from session.connection_status import ConnectionStatus

if TYPE_CHECKING:
    from adapters.voice.base import SpeechSynthesizer
    from session.chat_session import ChatSession


# ---------------------------------------------------------------------
# Collaborator Protocols
# ---------------------------------------------------------------------

@runtime_checkable
class ExternalContentHook(Protocol):
    """
    Optional host capability notified after every outbound interaction.

    Best effort: exceptions raised by on_sent() are logged and ignored.
    """
    active: bool

    def on_sent(self) -> None: ...


class SelectionListener(Protocol):
    def __call__(self, activity: Activity | None) -> None: ...


# ---------------------------------------------------------------------
# Runtime Execution Context
# ---------------------------------------------------------------------

class RuntimeExecutionContext:
    """
    Imperative execution context for handlers.

    This object provides *live views* into session-owned resources
    so Runtime does not need to synchronize or cache anything.

    Handlers are allowed to:
    - Call collaborators
    - Observe connection state and configuration

    Handlers are NOT allowed to:
    - Mutate session state directly
    - Write engine state other than by dispatching actions
    """

    def __init__(self, session: ChatSession) -> None:
        self.session = session

    # ----------------------------
    # Session metadata
    # ----------------------------

    @property
    def session_id(self) -> str:
        return self.session.session_id

    @property
    def connection_status(self) -> ConnectionStatus:
        return self.session.connection_status

    @property
    def offline_alert_timeout_s(self) -> int:
        return self.session.offline_alert_timeout_s

    # ----------------------------
    # Collaborators
    # ----------------------------

    @property
    def synthesizer(self) -> SpeechSynthesizer | None:
        return self.session.synthesizer

    @property
    def external_content(self) -> ExternalContentHook | None:
        return self.session.external_content

    @property
    def selection_listener(self) -> SelectionListener | None:
        return self.session.selection_listener

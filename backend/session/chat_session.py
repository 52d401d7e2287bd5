"""
Chat session container.

- Owns the collaborators the engine only references weakly (transport,
  recognizer) so they live exactly as long as the session
- Owns connection status (mutable, gateway-controlled)
- Owned and mutated by ChatGateway
- NOT a state machine
- Contains no orchestration logic
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from constants import DEFAULT_OFFLINE_ALERT_TIMEOUT_S
from session.connection_status import ConnectionStatus

if TYPE_CHECKING:
    from adapters.transport.base import Transport
    from adapters.voice.base import SpeechRecognizer, SpeechSynthesizer
    from orchestrator.interval import IntervalController
    from orchestrator.runtime import Runtime
    from orchestrator.runtime_context import ExternalContentHook, SelectionListener

# ---------------------------------------------------------------------
# ChatSession
# ---------------------------------------------------------------------

@dataclass
class ChatSession:
    """Mutable runtime container for a single chat session."""

    # ------------------------------------------------------------------
    # Identity / lifecycle
    # ------------------------------------------------------------------

    session_id: str
    created_at: float = field(default_factory=time.time)
    offline_alert_timeout_s: int = DEFAULT_OFFLINE_ALERT_TIMEOUT_S

    # ------------------------------------------------------------------
    # Connection / gateway-controlled state
    # ------------------------------------------------------------------

    connection_status: ConnectionStatus = ConnectionStatus.UNINITIALIZED

    # ------------------------------------------------------------------
    # Runtime (owns authoritative state)
    # ------------------------------------------------------------------

    runtime: Runtime | None = None
    interval: IntervalController | None = None

    # ------------------------------------------------------------------
    # Collaborators (strong references live here only)
    # ------------------------------------------------------------------

    transport: Transport | None = None
    recognizer: SpeechRecognizer | None = None
    synthesizer: SpeechSynthesizer | None = None
    external_content: ExternalContentHook | None = None
    selection_listener: SelectionListener | None = None

    # ------------------------------------------------------------------
    # Wiring helpers (called by ChatGateway)
    # ------------------------------------------------------------------

    def attach_runtime(self, runtime: Runtime) -> None:
        """
        Attach the runtime.

        Must be called before any collaborator is announced to the engine.
        """
        self.runtime = runtime

    def attach_transport(self, transport: Transport) -> None:
        self.transport = transport

    def attach_recognizer(self, recognizer: SpeechRecognizer) -> None:
        self.recognizer = recognizer

    def attach_synthesizer(self, synthesizer: SpeechSynthesizer) -> None:
        self.synthesizer = synthesizer

    # ------------------------------------------------------------------
    # Observability helpers (read-only)
    # ------------------------------------------------------------------

    def log_context(self) -> dict[str, Any]:
        """Standard logging context for this session."""
        return {
            "session_id": self.session_id,
            "connection_status": self.connection_status.value,
        }

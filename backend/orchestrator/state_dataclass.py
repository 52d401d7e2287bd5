"""
Authoritative chat engine state containers.

Rules:
- These dataclasses are pure data models.
- One dataclass per slice; each slice is reduced independently.
- No behavior, no derived logic beyond trivial predicates.
- Collaborator objects owned by the surrounding application (transport,
  recognizer) are held through weak references.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Mapping

from constants import (
    DEFAULT_LOCALE,
    DEFAULT_WAIT_INTERVAL_S,
)
from orchestrator.activity import Activity, Participant
from orchestrator.enums.listening import ListeningState
from orchestrator.enums.speaking import SpeakingState
from orchestrator.strings import StringTable, default_strings
from session.connection_status import ConnectionStatus


# =============================================================================
# Waiting placeholder descriptor
# =============================================================================

@dataclass(frozen=True)
class WaitingMessage:
    """
    Configured waiting placeholder.

    kind:
        "message" (plain text content), "css" (styling marker), or a media
        content type (content is then a URL).
    """
    kind: str | None
    content: str | None = None

    @property
    def is_valid(self) -> bool:
        return bool(self.kind) and bool(self.content)


# =============================================================================
# Menu
# =============================================================================

@dataclass(frozen=True)
class MenuMessage:
    """Canned message: what is sent vs. what is shown."""
    sending_message: str
    displaying_message: str | None = None


@dataclass(frozen=True)
class MenuMessageGroup:
    """Canned messages for one locale."""
    locale: str
    messages: tuple[MenuMessage, ...] = ()


# =============================================================================
# History
# =============================================================================

@dataclass(frozen=True)
class HistoryState:
    """
    Ordered conversation.

    correlation_counter:
        Next CorrelationId suffix. Only SEND_MESSAGE increments it; it is
        never decremented, so ids are never reused.
    outbound_counter:
        Outbound envelopes reserved so far (optimistic sends, language
        changes, menu messages). Rolled back on language / menu failures.
        Equal to 1 while the first envelope of the session is in flight.
    """
    activities: tuple[Activity, ...] = ()
    correlation_base: str = "0"
    correlation_counter: int = 0
    outbound_counter: int = 0
    selected_activity: Activity | None = None


# =============================================================================
# Shell
# =============================================================================

@dataclass(frozen=True)
class ShellState:
    """Input buffer and voice state machines."""
    input: str = ""
    send_typing: bool = False
    listening_state: ListeningState = ListeningState.STOPPED
    speaking_state: SpeakingState = SpeakingState.STOPPED
    last_input_via_speech: bool = False


# =============================================================================
# Connection
# =============================================================================

@dataclass(frozen=True)
class ConnectionState:
    """
    Transport binding.

    transport_ref:
        weak reference to the transport; the surrounding application owns it.
    speaker_enabled:
        Set on the first outbound interaction; never cleared.
    """
    status: ConnectionStatus = ConnectionStatus.UNINITIALIZED
    transport_ref: Callable[[], Any] | None = None
    user: Participant | None = None
    bot: Participant | None = None
    speaker_enabled: bool = False


# =============================================================================
# Format
# =============================================================================

@dataclass(frozen=True)
class FormatState:
    """Locale, string table and UI measurement hints."""
    locale: str = DEFAULT_LOCALE
    strings: StringTable = default_strings
    chat_title: bool | str = True
    show_upload_button: bool = True
    carousel_margin: int | None = None
    width: int | None = None
    height: int | None = None


# =============================================================================
# Settings (waiting / interval)
# =============================================================================

@dataclass(frozen=True)
class SettingsState:
    """
    Session customization, waiting descriptor and idle interval.

    interval:
        IntervalController handle. The reducer only stores it; the interval
        handler is its single writer.
    interval_available:
        Interval injection is live (after the first outbound interaction).
    """
    waiting_message: WaitingMessage | None = None
    scroll_to_bottom: int = 1
    auto_listen_after_speak: bool = False
    always_speak: bool = False
    configurable: bool = False
    show_config: bool = False
    interval: Any = None  # IntervalController
    interval_s: int = DEFAULT_WAIT_INTERVAL_S
    interval_available: bool = False
    conversation_id: str | None = None
    channel_data: Mapping[str, Any] | None = None


# =============================================================================
# Language switch
# =============================================================================

@dataclass(frozen=True)
class LanguageState:
    """Language negotiation state."""
    is_changing_language: bool = False
    recognizer_ref: Callable[[], Any] | None = None
    display: bool = False
    languages: tuple[str, ...] = ()


# =============================================================================
# Menu
# =============================================================================

@dataclass(frozen=True)
class MenuState:
    show_menu: bool = False
    common_icons: tuple[str, ...] = ()
    all_messages: tuple[MenuMessageGroup, ...] = ()
    send_message: str | None = None
    activity: Activity | None = None


# =============================================================================
# Combined state
# =============================================================================

@dataclass(frozen=True)
class ChatState:
    """Immutable snapshot of every slice."""
    history: HistoryState = field(default_factory=HistoryState)
    shell: ShellState = field(default_factory=ShellState)
    connection: ConnectionState = field(default_factory=ConnectionState)
    format: FormatState = field(default_factory=FormatState)
    settings: SettingsState = field(default_factory=SettingsState)
    language: LanguageState = field(default_factory=LanguageState)
    menu: MenuState = field(default_factory=MenuState)

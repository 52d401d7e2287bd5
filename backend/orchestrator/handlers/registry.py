"""
Default handler set for a chat session.

Handlers holding per-session bookkeeping (in-flight posts, typing
throttle) are instantiated fresh for every call.
"""

from __future__ import annotations

from orchestrator.handlers.base import Handler
from orchestrator.handlers.language import ChangeLanguageHandler, LanguageConfirmationHandler
from orchestrator.handlers.menu import PushMenuMessageHandler, SendMenuMessageHandler
from orchestrator.handlers.send import RetrySendHandler, SendMessageHandler, TrySendHandler
from orchestrator.handlers.session import LastInputNotSpeechHandler, SelectionNotifyHandler
from orchestrator.handlers.typing import SendTypingHandler, ShowTypingHandler
from orchestrator.handlers.voice import (
    SilenceTimeoutHandler,
    SpeakHandler,
    SpeakOnReceiveHandler,
    StartListeningHandler,
    StopListeningHandler,
    StopSpeakingHandler,
)
from orchestrator.handlers.waiting import (
    IntervalHandler,
    OfflineAlertHandler,
    RemoveWaitingHandler,
    TurnOnSettingsHandler,
    WaitingMessageHandler,
    WaitIntervalHandler,
)


def default_handlers() -> list[Handler]:
    return [
        # Send / retry
        SendMessageHandler(),
        TrySendHandler(),
        RetrySendHandler(),
        SelectionNotifyHandler(),
        # Typing
        ShowTypingHandler(),
        SendTypingHandler(),
        # Voice
        SpeakHandler(),
        SpeakOnReceiveHandler(),
        StartListeningHandler(),
        StopListeningHandler(),
        StopSpeakingHandler(),
        SilenceTimeoutHandler(),
        # Language
        ChangeLanguageHandler(),
        LanguageConfirmationHandler(),
        # Menu
        SendMenuMessageHandler(),
        PushMenuMessageHandler(),
        # Waiting / interval / offline
        RemoveWaitingHandler(),
        WaitingMessageHandler(),
        TurnOnSettingsHandler(),
        WaitIntervalHandler(),
        IntervalHandler(),
        OfflineAlertHandler(),
        LastInputNotSpeechHandler(),
    ]

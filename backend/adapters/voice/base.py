"""
Speech engine contracts.

Interfaces only. The engines themselves (browser speech APIs, cloud
recognizers, synthesizers) live outside this package.

Key invariants:
- Recognition callbacks may be invoked from engine threads; the engine side
  marshals them onto the event loop (Runtime.dispatch_threadsafe).
- A recognizer that is absent, collected or reports is_available() == False
  is treated as "capability unavailable", never as an error.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Callable, Sequence


TextCallback = Callable[[str], None]
SignalCallback = Callable[[], None]


class SpeechRecognizer(ABC):
    """Abstract voice input engine."""

    @abstractmethod
    def is_available(self) -> bool:
        raise NotImplementedError

    @abstractmethod
    async def start_recognizing(
        self,
        locale: str,
        grammars: Sequence[str],
        on_partial: TextCallback,
        on_final: TextCallback,
        on_stream_start: SignalCallback,
        on_failure: SignalCallback,
    ) -> None:
        """
        Begin a recognition session.

        Contract:
        - on_stream_start fires once audio is flowing
        - on_partial may fire any number of times
        - exactly one of on_final / on_failure ends the session
        - raising here is equivalent to calling on_failure
        """
        raise NotImplementedError

    @abstractmethod
    async def stop_recognizing(self) -> None:
        """
        End the current session. Idempotent.
        """
        raise NotImplementedError

    def warmup(self) -> None:
        """Prepare for an imminent session (optional)."""

    def set_language(self, locale: str) -> None:
        """Switch the recognition language (optional)."""


class SpeechSynthesizer(ABC):
    """Abstract voice output engine."""

    @abstractmethod
    async def speak(
        self,
        text: str,
        locale: str,
        on_started: SignalCallback | None = None,
    ) -> None:
        """
        Speak text; returns when speech completes.

        Raises on synthesis failure.
        """
        raise NotImplementedError

    @abstractmethod
    def stop_speaking(self) -> None:
        """Interrupt speech in progress. Idempotent."""
        raise NotImplementedError

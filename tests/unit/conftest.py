# pylint: disable=missing-module-docstring,missing-function-docstring,missing-class-docstring

import asyncio
import json
from typing import Any, Callable

import pytest

from adapters.transport.base import Transport, TransportError
from adapters.voice.base import SpeechRecognizer, SpeechSynthesizer
from observability import logger
from orchestrator.activity import Activity
from orchestrator.handlers.registry import default_handlers
from orchestrator.runtime import Runtime
from orchestrator.runtime_context import RuntimeExecutionContext
from orchestrator.state_dataclass import ChatState, HistoryState
from session.chat_session import ChatSession


# ---------------------------------------------------------------------
# Fakes
# ---------------------------------------------------------------------

class FakeTransport(Transport):
    """Records posts; answers srv1, srv2, ... or raises when told to fail."""

    def __init__(self) -> None:
        self.posted: list[Activity] = []
        self.fail = False
        self._n = 0

    async def post(self, activity: Activity) -> str:
        self.posted.append(activity)
        if self.fail:
            raise TransportError("peer unreachable")
        self._n += 1
        return f"srv{self._n}"


class FakeRecognizer(SpeechRecognizer):
    def __init__(self, available: bool = True) -> None:
        self.available = available
        self.started: list[tuple[str, tuple[str, ...]]] = []
        self.stopped = 0
        self.languages: list[str] = []
        self.warmed = 0
        self.callbacks: dict[str, Callable[..., None]] = {}

    def is_available(self) -> bool:
        return self.available

    async def start_recognizing(
        self,
        locale: str,
        grammars: tuple[str, ...],
        on_partial: Callable[[str], None],
        on_final: Callable[[str], None],
        on_stream_start: Callable[[], None],
        on_failure: Callable[[], None],
    ) -> None:
        self.started.append((locale, grammars))
        self.callbacks = {
            "partial": on_partial,
            "final": on_final,
            "stream_start": on_stream_start,
            "failure": on_failure,
        }

    async def stop_recognizing(self) -> None:
        self.stopped += 1

    def warmup(self) -> None:
        self.warmed += 1

    def set_language(self, locale: str) -> None:
        self.languages.append(locale)


class FakeSynthesizer(SpeechSynthesizer):
    def __init__(self, fail: bool = False) -> None:
        self.fail = fail
        self.spoken: list[tuple[str, str]] = []
        self.stops = 0

    async def speak(
        self,
        text: str,
        locale: str,
        on_started: Callable[[], None] | None = None,
    ) -> None:
        self.spoken.append((text, locale))
        await asyncio.sleep(0)
        if on_started is not None:
            on_started()
        if self.fail:
            raise RuntimeError("audio device busy")

    def stop_speaking(self) -> None:
        self.stops += 1


# ---------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------

@pytest.fixture
def log_lines(monkeypatch: pytest.MonkeyPatch) -> list[dict[str, Any]]:
    """Every log_event emitted during the test, decoded."""
    captured: list[dict[str, Any]] = []
    monkeypatch.setattr(logger, "_print", lambda line: captured.append(json.loads(line)))
    monkeypatch.setattr(logger, "_enabled", True)
    return captured


@pytest.fixture
def transport() -> FakeTransport:
    return FakeTransport()


@pytest.fixture
def make_runtime() -> Callable[..., Runtime]:
    """
    Build a runtime wired like a gateway session would.

    Keyword arguments are ChatSession fields (synthesizer, external_content,
    offline_alert_timeout_s, ...). Offline alerts are off unless requested.
    """

    def _make(*, handlers: Any = None, base: str = "base", **session_fields: Any) -> Runtime:
        session_fields.setdefault("offline_alert_timeout_s", 0)
        session = ChatSession(session_id="sess_test", **session_fields)
        runtime = Runtime(
            initial_state=ChatState(history=HistoryState(correlation_base=base)),
            context=RuntimeExecutionContext(session=session),
            handlers=default_handlers() if handlers is None else handlers,
        )
        session.attach_runtime(runtime)
        return runtime

    return _make


@pytest.fixture
def recognizer() -> FakeRecognizer:
    return FakeRecognizer()


@pytest.fixture
def synthesizer() -> FakeSynthesizer:
    return FakeSynthesizer()

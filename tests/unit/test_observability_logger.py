# pylint: disable=missing-module-docstring,missing-function-docstring

import json
from typing import Any

import pytest

from observability import logger


@pytest.fixture
def captured(monkeypatch: pytest.MonkeyPatch) -> list[str]:
    lines: list[str] = []
    monkeypatch.setattr(logger, "_print", lines.append)
    monkeypatch.setattr(logger, "_enabled", True)
    return lines


def test_log_event_emits_valid_jsonl(captured: list[str]) -> None:
    """
    - log_event emits exactly one JSONL line
    - payload is serialized as-is
    - output sink is patchable
    """
    payload: dict[str, Any] = {
        "event_type": "TEST",
        "value": 123,
        "text": "こんにちは",
    }

    logger.log_event(payload)

    # Exactly one line emitted
    assert len(captured) == 1

    # Non-ASCII is kept as-is
    assert "こんにちは" in captured[0]

    # Payload must be preserved exactly
    assert json.loads(captured[0]) == payload


def test_unserializable_event_falls_back(captured: list[str]) -> None:
    logger.log_event({"ts_ms": 5, "event_type": "TEST", "handle": object()})

    decoded = json.loads(captured[0])
    assert decoded["event_type"] == "LOGGER_SERIALIZATION_ERROR"
    assert decoded["ts_ms"] == 5
    assert "handle" in decoded["original_event_repr"]


def test_disabled_logger_is_silent(captured: list[str]) -> None:
    logger.set_enabled(False)
    logger.log_event({"event_type": "TEST"})

    assert captured == []
    assert logger.is_enabled() is False

    logger.set_enabled(True)
    logger.log_event({"event_type": "TEST"})
    assert len(captured) == 1

# pylint: disable=missing-module-docstring,missing-function-docstring
import asyncio
from typing import Any, Callable

import pytest

import orchestrator.handlers.typing as typing_handlers
from constants import ACTIVITY_TYPE_TYPING
from orchestrator.actions import SetSendTyping, ShowTyping, StartConnection, UpdateInput
from orchestrator.activity import Activity, Participant
from orchestrator.runtime import Runtime


USER = Participant(id="user-1", name="Ada")
BOT = Participant(id="bot-1", name="Bot")


def test_peer_typing_indicator_expires(
    make_runtime: Callable[..., Runtime],
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    monkeypatch.setattr(typing_handlers, "TYPING_INDICATOR_EXPIRY_MS", 10)

    async def scenario() -> tuple[list[str | None], Runtime]:
        rt = make_runtime()
        rt.dispatch(ShowTyping(ts_ms=0, activity=Activity(id="t1", type=ACTIVITY_TYPE_TYPING, from_=BOT)))
        await rt.drain()
        shown = [a.id for a in rt.state.history.activities]
        await asyncio.sleep(0.05)
        return shown, rt

    shown, rt = asyncio.run(scenario())

    assert shown == ["t1"]
    assert rt.state.history.activities == ()


def test_send_typing_is_throttled(make_runtime: Callable[..., Runtime], transport: Any) -> None:
    async def scenario() -> None:
        rt = make_runtime()
        rt.dispatch(StartConnection(ts_ms=0, transport=transport, user=USER))
        rt.dispatch(SetSendTyping(ts_ms=0, send_typing=True))
        for ts_ms in (1_000, 2_000, 3_999, 4_000):
            rt.dispatch(UpdateInput(ts_ms=ts_ms, input="h" * (ts_ms // 1_000)))
            await rt.drain()

    asyncio.run(scenario())

    assert len(transport.posted) == 2
    assert all(a.type == ACTIVITY_TYPE_TYPING for a in transport.posted)
    assert transport.posted[0].from_ == USER


def test_send_typing_disabled(make_runtime: Callable[..., Runtime], transport: Any) -> None:
    async def scenario() -> None:
        rt = make_runtime()
        rt.dispatch(StartConnection(ts_ms=0, transport=transport, user=USER))
        rt.dispatch(SetSendTyping(ts_ms=0, send_typing=False))
        rt.dispatch(UpdateInput(ts_ms=0, input="h"))
        await rt.drain()

    asyncio.run(scenario())

    assert transport.posted == []


def test_send_typing_failure_is_logged(
    make_runtime: Callable[..., Runtime],
    transport: Any,
    log_lines: list[dict[str, Any]],
) -> None:
    transport.fail = True

    async def scenario() -> None:
        rt = make_runtime()
        rt.dispatch(StartConnection(ts_ms=0, transport=transport, user=USER))
        rt.dispatch(SetSendTyping(ts_ms=0, send_typing=True))
        rt.dispatch(UpdateInput(ts_ms=0, input="h"))
        await rt.drain()

    asyncio.run(scenario())

    assert any(e["event_type"] == "SEND_TYPING_FAILED" for e in log_lines)
    assert not any(e["event_type"] == "HANDLER_ERROR" for e in log_lines)

# pylint: disable=missing-module-docstring,missing-function-docstring,missing-class-docstring
import asyncio
from typing import Any, Callable

from adapters.transport.base import Transport
from constants import CLIENT_CAPABILITIES, RETRY_SENTINEL_ID
from orchestrator.actions import (
    ActionType,
    SendMessage,
    SendMessageRetry,
    SendMessageTry,
    SetChannelData,
    StartConnection,
)
from orchestrator.activity import Activity, Participant
from orchestrator.handlers.send import TrySendHandler
from orchestrator.runtime import Runtime


USER = Participant(id="user-1", name="Ada")


class GatedTransport(Transport):
    """Holds every post until release() is called."""

    def __init__(self) -> None:
        self.posted: list[Activity] = []
        self._gate = asyncio.Event()

    def release(self) -> None:
        self._gate.set()

    async def post(self, activity: Activity) -> str:
        self.posted.append(activity)
        server_id = f"srv{len(self.posted)}"
        await self._gate.wait()
        return server_id


def send(text: str) -> SendMessage:
    return SendMessage(ts_ms=0, activity=Activity(from_=USER, text=text))


def kinds(rt: Runtime) -> list[ActionType]:
    return [a.action_type for a in rt.action_log]


def test_send_is_acknowledged_with_server_id(
    make_runtime: Callable[..., Runtime],
    transport: Any,
) -> None:
    async def scenario() -> Runtime:
        rt = make_runtime()
        rt.dispatch(StartConnection(ts_ms=0, transport=transport, user=USER))
        rt.dispatch(send("hi"))
        await rt.drain()
        return rt

    rt = asyncio.run(scenario())

    activity = rt.state.history.activities[0]
    assert activity.correlation_id == "base.0"
    assert activity.id == "srv1"
    tries = [a for a in rt.action_log if isinstance(a, SendMessageTry)]
    assert [t.correlation_id for t in tries] == ["base.0"]
    assert ActionType.SEND_MESSAGE_SUCCEED in kinds(rt)


def test_capabilities_only_on_first_envelope(
    make_runtime: Callable[..., Runtime],
    transport: Any,
) -> None:
    async def scenario() -> None:
        rt = make_runtime()
        rt.dispatch(StartConnection(ts_ms=0, transport=transport, user=USER))
        rt.dispatch(send("one"))
        await rt.drain()
        rt.dispatch(send("two"))
        await rt.drain()

    asyncio.run(scenario())

    first, second = transport.posted
    assert CLIENT_CAPABILITIES in list(first.entities)
    assert CLIENT_CAPABILITIES not in list(second.entities)
    assert first.correlation_id == "base.0"


def test_channel_data_rides_along(
    make_runtime: Callable[..., Runtime],
    transport: Any,
) -> None:
    async def scenario() -> None:
        rt = make_runtime()
        rt.dispatch(StartConnection(ts_ms=0, transport=transport, user=USER))
        rt.dispatch(SetChannelData(ts_ms=0, channel_data={"tenant": "acme"}))
        rt.dispatch(send("hi"))
        await rt.drain()

    asyncio.run(scenario())

    assert transport.posted[0].channel_data == {"payload": {"tenant": "acme"}}


def test_failure_is_recorded_and_not_retried(
    make_runtime: Callable[..., Runtime],
    transport: Any,
    log_lines: list[dict[str, Any]],
) -> None:
    transport.fail = True

    async def scenario() -> Runtime:
        rt = make_runtime()
        rt.dispatch(StartConnection(ts_ms=0, transport=transport, user=USER))
        rt.dispatch(send("hi"))
        await rt.drain()
        return rt

    rt = asyncio.run(scenario())

    assert rt.state.history.activities[0].id == RETRY_SENTINEL_ID
    assert len(transport.posted) == 1
    assert kinds(rt).count(ActionType.SEND_MESSAGE_TRY) == 1
    assert any(e["event_type"] == "SEND_MESSAGE_POST_FAILED" for e in log_lines)


def test_retry_round_trip_reuses_correlation(
    make_runtime: Callable[..., Runtime],
    transport: Any,
) -> None:
    transport.fail = True

    async def scenario() -> Runtime:
        rt = make_runtime()
        rt.dispatch(StartConnection(ts_ms=0, transport=transport, user=USER))
        rt.dispatch(send("hi"))
        await rt.drain()
        transport.fail = False
        rt.dispatch(SendMessageRetry(ts_ms=0, correlation_id="base.0"))
        await rt.drain()
        return rt

    rt = asyncio.run(scenario())

    activities = rt.state.history.activities
    assert len(activities) == 1
    assert activities[0].correlation_id == "base.0"
    assert activities[0].id == "srv1"
    tries = [a.correlation_id for a in rt.action_log if isinstance(a, SendMessageTry)]
    assert tries == ["base.0", "base.0"]


def test_missing_transport_fails_the_send(make_runtime: Callable[..., Runtime]) -> None:
    async def scenario() -> Runtime:
        rt = make_runtime()
        rt.dispatch(send("hi"))
        await rt.drain()
        return rt

    rt = asyncio.run(scenario())

    assert rt.state.history.activities[0].id == RETRY_SENTINEL_ID


def test_try_for_unknown_correlation_is_dropped(
    make_runtime: Callable[..., Runtime],
    transport: Any,
    log_lines: list[dict[str, Any]],
) -> None:
    async def scenario() -> Runtime:
        rt = make_runtime()
        rt.dispatch(StartConnection(ts_ms=0, transport=transport, user=USER))
        rt.dispatch(SendMessageTry(ts_ms=0, correlation_id="gone.7"))
        await rt.drain()
        return rt

    rt = asyncio.run(scenario())

    assert transport.posted == []
    assert rt.state.history.activities == ()
    dropped = [e for e in log_lines if e["event_type"] == "SEND_TRY_DROPPED"]
    assert dropped[0]["reason"] == "activity_not_found"


def test_at_most_one_post_in_flight_per_correlation(
    make_runtime: Callable[..., Runtime],
    log_lines: list[dict[str, Any]],
) -> None:
    gated = GatedTransport()
    try_handler = TrySendHandler()

    async def scenario() -> Runtime:
        rt = make_runtime(handlers=[try_handler])
        rt.dispatch(StartConnection(ts_ms=0, transport=gated, user=USER))
        rt.dispatch(send("hi"))
        rt.dispatch(SendMessageTry(ts_ms=0, correlation_id="base.0"))
        await asyncio.sleep(0)
        rt.dispatch(SendMessageTry(ts_ms=0, correlation_id="base.0"))
        await asyncio.sleep(0)
        assert try_handler.in_flight == frozenset({"base.0"})
        gated.release()
        await rt.drain()
        return rt

    rt = asyncio.run(scenario())

    assert len(gated.posted) == 1
    assert rt.state.history.activities[0].id == "srv1"
    assert try_handler.in_flight == frozenset()
    dropped = [e for e in log_lines if e["event_type"] == "SEND_TRY_DROPPED"]
    assert dropped[0]["reason"] == "already_in_flight"


def test_different_correlations_post_concurrently(make_runtime: Callable[..., Runtime]) -> None:
    gated = GatedTransport()

    async def scenario() -> Runtime:
        rt = make_runtime()
        rt.dispatch(StartConnection(ts_ms=0, transport=gated, user=USER))
        rt.dispatch(send("one"))
        rt.dispatch(send("two"))
        for _ in range(5):
            await asyncio.sleep(0)
        assert len(gated.posted) == 2
        gated.release()
        await rt.drain()
        return rt

    rt = asyncio.run(scenario())

    assert {a.id for a in rt.state.history.activities} == {"srv1", "srv2"}

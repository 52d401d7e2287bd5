# pylint: disable=missing-module-docstring,missing-function-docstring
import asyncio
from typing import Any, Callable

from constants import MENU_SENDER_NAME
from orchestrator.actions import (
    ActionType,
    ChangeLanguage,
    PushMenuMessage,
    ReceiveMessage,
    SaveSetting,
    SendMenuMessage,
    SetCustomMenuSetting,
    SetLocale,
    StartConnection,
)
from orchestrator.activity import Activity, Participant, message_activity
from orchestrator.languages import check_locale, entry_for_confirmation, entry_for_locale
from orchestrator.runtime import Runtime
from orchestrator.state_dataclass import MenuMessage, MenuMessageGroup


USER = Participant(id="user-1", name="Ada")
BOT = Participant(id="bot-1", name="Bot")


def kinds(rt: Runtime) -> list[ActionType]:
    return [a.action_type for a in rt.action_log]


# ---------------------------------------------------------------------
# Table lookups
# ---------------------------------------------------------------------

def test_locale_groups() -> None:
    assert check_locale("ja", "ja-JP")
    assert check_locale("zh-TW", "cmn-Hant-TW")
    assert not check_locale("zh", "zh-TW")
    assert not check_locale(None, "en")


def test_confirmation_and_locale_entries() -> None:
    entry = entry_for_confirmation("Hello,Language has been set to English.")
    assert entry is not None
    assert entry.language == "en-US"

    assert entry_for_confirmation("Hello") is None

    korean = entry_for_locale("ko-KR")
    assert korean is not None
    assert korean.recognizer_language == "ko-KR"
    assert entry_for_locale("xx") is None


# ---------------------------------------------------------------------
# Confirmation
# ---------------------------------------------------------------------

def test_english_greeting_sets_locale(
    make_runtime: Callable[..., Runtime],
    transport: Any,
    recognizer: Any,
) -> None:
    async def scenario() -> Runtime:
        rt = make_runtime()
        rt.dispatch(StartConnection(ts_ms=0, transport=transport, user=USER))
        rt.dispatch(SaveSetting(ts_ms=0, recognizer=recognizer))
        rt.dispatch(SetLocale(ts_ms=0, locale="ja-JP"))
        rt.dispatch(ReceiveMessage(
            ts_ms=0,
            activity=Activity(id="p1", from_=BOT, text="Hello,Language has been set to English."),
        ))
        await rt.drain()
        return rt

    rt = asyncio.run(scenario())

    assert rt.state.format.locale == "en-US"
    assert rt.state.format.strings.locale == "en-US"
    assert recognizer.languages == ["en-US"]


def test_unavailable_recognizer_still_follows_language(
    make_runtime: Callable[..., Runtime],
    transport: Any,
    recognizer: Any,
) -> None:
    # e.g. microphone permission not granted yet
    recognizer.available = False

    async def scenario() -> Runtime:
        rt = make_runtime()
        rt.dispatch(StartConnection(ts_ms=0, transport=transport, user=USER))
        rt.dispatch(SaveSetting(ts_ms=0, recognizer=recognizer))
        rt.dispatch(ReceiveMessage(
            ts_ms=0,
            activity=Activity(id="p1", from_=BOT, text="Hello,Language has been set to English."),
        ))
        await rt.drain()
        return rt

    rt = asyncio.run(scenario())

    assert rt.state.format.locale == "en-US"
    assert recognizer.languages == ["en-US"]


def test_change_language_event_resolves_locale_group(
    make_runtime: Callable[..., Runtime],
    transport: Any,
) -> None:
    async def scenario() -> Runtime:
        rt = make_runtime()
        rt.dispatch(StartConnection(ts_ms=0, transport=transport, user=USER))
        rt.dispatch(ReceiveMessage(
            ts_ms=0,
            activity=Activity(
                id="p1",
                type="event",
                from_=BOT,
                value={"type": "changeLanguage", "language_code": "zh-TW"},
            ),
        ))
        await rt.drain()
        return rt

    rt = asyncio.run(scenario())

    assert rt.state.format.locale == "zh-hant"


def test_unsupported_language_is_dropped(
    make_runtime: Callable[..., Runtime],
    transport: Any,
    log_lines: list[dict[str, Any]],
) -> None:
    async def scenario() -> Runtime:
        rt = make_runtime()
        rt.dispatch(StartConnection(ts_ms=0, transport=transport, user=USER))
        rt.dispatch(ReceiveMessage(
            ts_ms=0,
            activity=Activity(
                id="p1",
                type="event",
                from_=BOT,
                value={"type": "changeLanguage", "language_code": "tlh"},
            ),
        ))
        await rt.drain()
        return rt

    rt = asyncio.run(scenario())

    assert ActionType.SET_LOCALE not in kinds(rt)
    unsupported = [e for e in log_lines if e["event_type"] == "UNSUPPORTED_LANGUAGE"]
    assert unsupported[0]["language_code"] == "tlh"


def test_ordinary_message_does_not_switch(
    make_runtime: Callable[..., Runtime],
    transport: Any,
) -> None:
    async def scenario() -> Runtime:
        rt = make_runtime()
        rt.dispatch(StartConnection(ts_ms=0, transport=transport, user=USER))
        rt.dispatch(ReceiveMessage(ts_ms=0, activity=Activity(id="p1", from_=BOT, text="Hello")))
        await rt.drain()
        return rt

    rt = asyncio.run(scenario())

    assert ActionType.SET_LOCALE not in kinds(rt)


# ---------------------------------------------------------------------
# Request
# ---------------------------------------------------------------------

def _change_language(make_runtime: Callable[..., Runtime], transport: Any) -> Runtime:
    async def scenario() -> Runtime:
        rt = make_runtime()
        rt.dispatch(StartConnection(ts_ms=0, transport=transport, user=USER))
        rt.dispatch(ChangeLanguage(
            ts_ms=0,
            activity=message_activity("japanese", USER, "en-us"),
            language="japanese",
        ))
        await rt.drain()
        return rt

    return asyncio.run(scenario())


def test_language_request_success(make_runtime: Callable[..., Runtime], transport: Any) -> None:
    rt = _change_language(make_runtime, transport)

    assert transport.posted[0].text == "japanese"
    assert ActionType.CHANGED_LANGUAGE in kinds(rt)
    assert rt.state.history.outbound_counter == 2
    assert rt.state.language.is_changing_language is True
    assert rt.state.shell.last_input_via_speech is False


def test_language_request_failure_rolls_back(make_runtime: Callable[..., Runtime], transport: Any) -> None:
    transport.fail = True

    rt = _change_language(make_runtime, transport)

    assert ActionType.CHANGE_LANGUAGE_FAIL in kinds(rt)
    assert rt.state.history.outbound_counter == 0
    assert rt.state.language.is_changing_language is False


# ---------------------------------------------------------------------
# Menu
# ---------------------------------------------------------------------

MENU = (
    MenuMessageGroup(
        locale="en-US",
        messages=(MenuMessage(sending_message="Opening hours", displaying_message="Hours"),),
    ),
    MenuMessageGroup(
        locale="ja-JP",
        messages=(MenuMessage(sending_message="営業時間"),),
    ),
)


def _send_menu(make_runtime: Callable[..., Runtime], transport: Any, message: str) -> Runtime:
    async def scenario() -> Runtime:
        rt = make_runtime()
        rt.dispatch(StartConnection(ts_ms=0, transport=transport, user=USER))
        rt.dispatch(SetCustomMenuSetting(ts_ms=0, show_menu=True, all_messages=MENU))
        rt.dispatch(SendMenuMessage(
            ts_ms=1_700_000_000_000,
            activity=message_activity(message, USER, "en-us"),
            message=message,
        ))
        await rt.drain()
        return rt

    return asyncio.run(scenario())


def test_menu_message_is_resolved_and_posted(make_runtime: Callable[..., Runtime], transport: Any) -> None:
    rt = _send_menu(make_runtime, transport, "Opening hours")

    pushed = [a for a in rt.action_log if isinstance(a, PushMenuMessage)]
    assert len(pushed) == 1
    posted = transport.posted[0]
    assert posted.text == "Opening hours"
    assert posted.id == "2023-11-14T22:13:20.000Z"
    assert posted.from_.name == MENU_SENDER_NAME
    assert ActionType.SENT_MENU_MESSAGE in kinds(rt)
    assert rt.state.history.outbound_counter == 2
    # The menu post does not enter the visible history
    assert rt.state.history.activities == ()


def test_unknown_menu_message_is_logged(
    make_runtime: Callable[..., Runtime],
    transport: Any,
    log_lines: list[dict[str, Any]],
) -> None:
    rt = _send_menu(make_runtime, transport, "Parking")

    assert transport.posted == []
    assert ActionType.PUSH_MENU_MESSAGE not in kinds(rt)
    assert any(e["event_type"] == "MENU_MESSAGE_NOT_FOUND" for e in log_lines)


def test_menu_post_failure_rolls_back(make_runtime: Callable[..., Runtime], transport: Any) -> None:
    transport.fail = True

    rt = _send_menu(make_runtime, transport, "Opening hours")

    assert ActionType.SEND_MENU_MESSAGE_FAIL in kinds(rt)
    assert rt.state.history.outbound_counter == 0

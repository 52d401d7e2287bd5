# pylint: disable=missing-module-docstring,missing-function-docstring
import gc
from functools import reduce as fold

from orchestrator.actions import (
    Action,
    CardActionClicked,
    ChangeLanguage,
    ChangeLanguageFail,
    EnableIntervalController,
    ListeningStart,
    ListeningStarting,
    ListeningStop,
    ListeningStopping,
    ReceiveMessage,
    ResetChangeLanguage,
    SaveSetting,
    SendMessage,
    SetAutoListen,
    SetChatTitle,
    SetCustomSettings,
    SetIntervalTime,
    SetLocale,
    SpeakingStarted,
    SpeakingStopped,
    StartConnection,
    ToggleAlwaysSpeak,
    ToggleMenu,
    TurnOnSettings,
    UpdateInput,
)
from orchestrator.activity import Activity, Participant
from orchestrator.enums.input_source import InputSource
from orchestrator.enums.listening import ListeningState
from orchestrator.enums.speaking import SpeakingState
from orchestrator.reducer import changed_slices, reduce
from orchestrator.reducers._evolve import deref
from orchestrator.state_dataclass import ChatState, WaitingMessage


USER = Participant(id="user-1")


class Handle:
    """Anything weak-referenceable."""


def run(*actions: Action, state: ChatState | None = None) -> ChatState:
    return fold(reduce, actions, state or ChatState())


# ---------------------------------------------------------------------
# Identity
# ---------------------------------------------------------------------

def test_unrelated_action_returns_same_state() -> None:
    state = ChatState()

    assert reduce(state, ListeningStop(ts_ms=0)) is state
    assert reduce(state, ToggleMenu(ts_ms=0)) is not state


def test_only_touched_slices_change() -> None:
    before = ChatState()
    after = reduce(before, UpdateInput(ts_ms=0, input="he"))

    assert changed_slices(before, after) == ["shell"]
    assert after.history is before.history
    assert after.settings is before.settings


# ---------------------------------------------------------------------
# Shell: listening / speaking
# ---------------------------------------------------------------------

def test_listening_cycle() -> None:
    state = run(ListeningStarting(ts_ms=0))
    assert state.shell.listening_state is ListeningState.STARTING

    state = reduce(state, ListeningStart(ts_ms=0))
    assert state.shell.listening_state is ListeningState.STARTED

    state = reduce(state, ListeningStopping(ts_ms=0))
    assert state.shell.listening_state is ListeningState.STOPPING

    state = reduce(state, ListeningStop(ts_ms=0))
    assert state.shell.listening_state is ListeningState.STOPPED


def test_stream_start_never_jumps_from_stopped() -> None:
    state = ChatState()

    assert reduce(state, ListeningStart(ts_ms=0)) is state

    # Late stream start after the session was stopped
    state = run(ListeningStarting(ts_ms=0), ListeningStopping(ts_ms=0), ListeningStop(ts_ms=0))
    state = reduce(state, ListeningStart(ts_ms=0))
    assert state.shell.listening_state is ListeningState.STOPPED


def test_stopping_from_stopped_is_noop() -> None:
    state = ChatState()

    assert reduce(state, ListeningStopping(ts_ms=0)) is state


def test_speech_input_is_tagged() -> None:
    state = run(UpdateInput(ts_ms=0, input="hel", source=InputSource.SPEECH))
    assert state.shell.input == "hel"
    assert state.shell.last_input_via_speech is True

    state = reduce(state, UpdateInput(ts_ms=0, input="hello"))
    assert state.shell.last_input_via_speech is False


def test_card_click_clears_speech_flag() -> None:
    state = run(UpdateInput(ts_ms=0, input="x", source=InputSource.SPEECH), CardActionClicked(ts_ms=0))

    assert state.shell.last_input_via_speech is False


def test_send_clears_input() -> None:
    state = run(
        UpdateInput(ts_ms=0, input="hi"),
        SendMessage(ts_ms=0, activity=Activity(from_=USER, text="hi")),
    )

    assert state.shell.input == ""


def test_speaking_toggles() -> None:
    state = run(SpeakingStarted(ts_ms=0))
    assert state.shell.speaking_state is SpeakingState.SPEAKING

    state = reduce(state, SpeakingStopped(ts_ms=0))
    assert state.shell.speaking_state is SpeakingState.STOPPED


# ---------------------------------------------------------------------
# Connection / format
# ---------------------------------------------------------------------

def test_connection_holds_transport_weakly() -> None:
    transport = Handle()
    state = run(StartConnection(ts_ms=0, transport=transport, user=USER))

    assert deref(state.connection.transport_ref) is transport
    assert state.connection.user == USER

    del transport
    gc.collect()
    assert deref(state.connection.transport_ref) is None


def test_turn_on_settings_enables_speaker() -> None:
    state = run(TurnOnSettings(ts_ms=0))

    assert state.connection.speaker_enabled is True


def test_set_locale_swaps_strings_once() -> None:
    state = run(SetLocale(ts_ms=0, locale="ja-JP"))

    assert state.format.locale == "ja-JP"
    assert state.format.strings.locale == "ja-JP"
    assert reduce(state, SetLocale(ts_ms=0, locale="ja-JP")) is state


def test_unknown_locale_falls_back_to_english_strings() -> None:
    state = run(SetLocale(ts_ms=0, locale="xx-YY"))

    assert state.format.locale == "xx-YY"
    assert state.format.strings.locale == "en-US"


def test_chat_title_defaults_to_true() -> None:
    state = run(SetChatTitle(ts_ms=0, chat_title="Support"))
    assert state.format.chat_title == "Support"

    state = reduce(state, SetChatTitle(ts_ms=0, chat_title=None))
    assert state.format.chat_title is True


# ---------------------------------------------------------------------
# Settings
# ---------------------------------------------------------------------

def test_custom_settings_only_accepts_waiting_descriptor() -> None:
    waiting = WaitingMessage(kind="message", content="please wait")
    state = run(SetCustomSettings(ts_ms=0, waiting_message=waiting))
    assert state.settings.waiting_message == waiting

    state = reduce(state, SetCustomSettings(ts_ms=0, waiting_message={"kind": "message"}))
    assert state.settings.waiting_message is None


def test_auto_listen_and_toggle() -> None:
    state = run(
        SetAutoListen(ts_ms=0, auto_listen_after_speak=True, always_speak=False),
        ToggleAlwaysSpeak(ts_ms=0),
    )

    assert state.settings.auto_listen_after_speak is True
    assert state.settings.always_speak is True


def test_interval_time_is_floored() -> None:
    controller = Handle()
    state = run(EnableIntervalController(ts_ms=0, controller=controller, interval_s=2))
    assert state.settings.interval is controller
    assert state.settings.interval_s == 2

    state = run(SetIntervalTime(ts_ms=0, scale=-1), SetIntervalTime(ts_ms=0, scale=-1), state=state)
    assert state.settings.interval_s == 1

    state = reduce(state, SetIntervalTime(ts_ms=0, scale=1))
    assert state.settings.interval_s == 2


def test_turn_on_settings_needs_controller() -> None:
    state = run(TurnOnSettings(ts_ms=0))
    assert state.settings.interval_available is False

    state = run(
        EnableIntervalController(ts_ms=0, controller=Handle(), interval_s=10),
        TurnOnSettings(ts_ms=0),
    )
    assert state.settings.interval_available is True


# ---------------------------------------------------------------------
# Language / menu
# ---------------------------------------------------------------------

def test_change_language_flag() -> None:
    request = ChangeLanguage(ts_ms=0, activity=Activity(from_=USER, text="japanese"), language="japanese")

    state = run(request)
    assert state.language.is_changing_language is True

    assert run(request, ResetChangeLanguage(ts_ms=0)).language.is_changing_language is False
    assert run(request, ChangeLanguageFail(ts_ms=0)).language.is_changing_language is False
    reply = ReceiveMessage(ts_ms=0, activity=Activity(id="p1", text="ok"))
    assert run(request, reply).language.is_changing_language is False


def test_save_setting_holds_recognizer_weakly() -> None:
    recognizer = Handle()
    state = run(SaveSetting(ts_ms=0, recognizer=recognizer))

    assert deref(state.language.recognizer_ref) is recognizer
    assert reduce(state, SaveSetting(ts_ms=0, recognizer=recognizer)) is state


def test_toggle_menu() -> None:
    state = run(ToggleMenu(ts_ms=0))
    assert state.menu.show_menu is True

    assert run(ToggleMenu(ts_ms=0), state=state).menu.show_menu is False

"""
Session gateway.

Responsibilities:
- Owns ChatSession lifecycle (one gateway == one client connection)
- Mints the CorrelationId base and the session defaults
- Creates the runtime, the bridged transport and the interval controller
- Routes inbound JSON stimuli -> actions (the only place wall-clock
  timestamps are attached to user stimuli)
- Pushes state snapshots and transport requests to the client outbox
- Press-and-hold repetition for the interval controls

NOT responsible for:
- Any state machine logic (reducers)
- Any reaction to actions (handlers)
"""

from __future__ import annotations

import asyncio
import json
import random
import time
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Callable
from uuid import uuid4

from adapters.transport.bridged import BridgedTransport
from constants import INTERVAL_ADJUST_REPEAT_MS
from observability.logger import log_event
from orchestrator.actions import (
    Action,
    CardActionClicked,
    ChangeLanguage,
    ConnectionChange,
    EnableIntervalController,
    HistoryDidMount,
    ListeningStarting,
    ListeningStopping,
    ReceiveMessage,
    ReceiveSentMessage,
    ResetChangeLanguage,
    SaveSetting,
    SelectActivity,
    SendMenuMessage,
    SendMessage,
    SendMessageRetry,
    SetAutoListen,
    SetChannelData,
    SetCustomMenuSetting,
    SetCustomSettings,
    SetIntervalTime,
    SetLocale,
    SetSendTyping,
    ShowTyping,
    StartConnection,
    StopSpeaking,
    SubmitForm,
    TakeSuggestedAction,
    ToggleAlwaysSpeak,
    ToggleAutoListenAfterSpeak,
    ToggleConfig,
    ToggleMenu,
    UpdateInput,
)
from orchestrator.activity import Activity, Participant, message_activity
from orchestrator.handlers.registry import default_handlers
from orchestrator.interval import IntervalController
from orchestrator.runtime import Runtime
from orchestrator.runtime_context import RuntimeExecutionContext
from orchestrator.state_dataclass import (
    ChatState,
    HistoryState,
    MenuMessage,
    MenuMessageGroup,
    WaitingMessage,
)
from protocol.activity_json import (
    ActivityDecodeError,
    activity_from_dict,
    activity_to_dict,
)
from session.chat_session import ChatSession
from session.connection_status import ConnectionStatus

if TYPE_CHECKING:
    from adapters.voice.base import SpeechRecognizer, SpeechSynthesizer
    from config import AppConfig
    from orchestrator.runtime_context import ExternalContentHook, SelectionListener


# ------------------------------------------------------------------
# Helpers
# ------------------------------------------------------------------

def _now_ms() -> int:
    return time.time_ns() // 1_000_000


def _new_session_id() -> str:
    return f"sess_{uuid4().hex[:12]}"


def new_correlation_base(now_ms: int | None = None) -> str:
    """Per-session CorrelationId prefix: wall-clock ms plus a random suffix."""
    ms = _now_ms() if now_ms is None else now_ms
    return f"{ms}{random.randint(0, 999_999):06d}"


def menu_groups(raw: Any) -> tuple[MenuMessageGroup, ...]:
    """
    Decode client menu configuration.

        [{"locale": "en-US",
          "messages": [{"sending_message": "...", "displaying_message": "..."}]}]

    Raises:
        ValueError on any shape violation.
    """
    if not isinstance(raw, list):
        raise ValueError("all_messages must be an array")

    groups: list[MenuMessageGroup] = []
    for group in raw:
        if not isinstance(group, dict) or not isinstance(group.get("locale"), str):
            raise ValueError("menu group needs a locale")
        messages = group.get("messages", [])
        if not isinstance(messages, list):
            raise ValueError("menu group messages must be an array")

        decoded: list[MenuMessage] = []
        for message in messages:
            if not isinstance(message, dict) or not isinstance(message.get("sending_message"), str):
                raise ValueError("menu message needs sending_message")
            displaying = message.get("displaying_message")
            if displaying is not None and not isinstance(displaying, str):
                raise ValueError("displaying_message must be a string")
            decoded.append(MenuMessage(
                sending_message=message["sending_message"],
                displaying_message=displaying,
            ))
        groups.append(MenuMessageGroup(locale=group["locale"], messages=tuple(decoded)))

    return tuple(groups)


def state_view(state: ChatState) -> dict[str, Any]:
    """JSON-safe projection of a snapshot for the client."""
    history = state.history
    selected = history.selected_activity
    return {
        "activities": [activity_to_dict(a) for a in history.activities],
        "selected_activity_id": selected.id if selected is not None else None,
        "input": state.shell.input,
        "listening_state": state.shell.listening_state.value,
        "speaking_state": state.shell.speaking_state.value,
        "connection_status": state.connection.status.value,
        "locale": state.format.locale,
        "is_changing_language": state.language.is_changing_language,
        "always_speak": state.settings.always_speak,
        "auto_listen_after_speak": state.settings.auto_listen_after_speak,
        "interval_s": state.settings.interval_s,
        "interval_available": state.settings.interval_available,
        "show_config": state.settings.show_config,
        "show_menu": state.menu.show_menu,
    }


# ------------------------------------------------------------------
# Gateway result
# ------------------------------------------------------------------

@dataclass(frozen=True)
class GatewayResult:
    """
    Return value for gateway boundary methods.

    outbound_json:
        Immediate JSON replies to send to the client. Asynchronous output
        (state pushes, POST_ACTIVITY requests) goes through the outbox.
    """
    outbound_json: tuple[dict[str, Any], ...] = ()


# ------------------------------------------------------------------
# Press and hold
# ------------------------------------------------------------------

class PressAndHold:
    """
    Repeat an action while a control is held.

    press()   -> dispatch every INTERVAL_ADJUST_REPEAT_MS until released
    release() -> one more dispatch, stop repeating
    leave()   -> stop repeating (pointer left the control)
    """

    def __init__(
        self,
        *,
        dispatch: Callable[[Action], None],
        repeat_ms: int = INTERVAL_ADJUST_REPEAT_MS,
    ) -> None:
        self._dispatch = dispatch
        self._repeat_ms = repeat_ms
        self._task: asyncio.Task[None] | None = None

    @property
    def held(self) -> bool:
        return self._task is not None and not self._task.done()

    def press(self, factory: Callable[[], Action]) -> None:
        self.leave()
        self._task = asyncio.create_task(self._repeat(factory))

    def release(self, factory: Callable[[], Action]) -> None:
        self.leave()
        self._dispatch(factory())

    def leave(self) -> None:
        if self._task is not None:
            self._task.cancel()
            self._task = None

    async def _repeat(self, factory: Callable[[], Action]) -> None:
        try:
            while True:
                await asyncio.sleep(self._repeat_ms / 1000.0)
                self._dispatch(factory())
        except asyncio.CancelledError:
            return


# ------------------------------------------------------------------
# ChatGateway
# ------------------------------------------------------------------

class ChatGateway:
    """
    One gateway == one chat session.

    Collaborators the server cannot provide itself (speech engines, host
    hooks) may be injected by an embedding application or by tests.
    """

    def __init__(
        self,
        *,
        config: AppConfig,
        user: Participant | None = None,
        recognizer: SpeechRecognizer | None = None,
        synthesizer: SpeechSynthesizer | None = None,
        external_content: ExternalContentHook | None = None,
        selection_listener: SelectionListener | None = None,
    ) -> None:
        self._config = config
        self._user = user
        self._recognizer = recognizer
        self._synthesizer = synthesizer
        self._external_content = external_content
        self._selection_listener = selection_listener

        self.session: ChatSession | None = None
        self.transport: BridgedTransport | None = None
        self._outbox: asyncio.Queue[dict[str, Any]] = asyncio.Queue()
        self._press_and_hold: PressAndHold | None = None

    # ------------------------------------------------------------------
    # Outbox
    # ------------------------------------------------------------------

    def _enqueue(self, msg: dict[str, Any]) -> None:
        self._outbox.put_nowait(msg)

    async def next_outbound(self) -> dict[str, Any]:
        """Next asynchronous message for the client (FIFO)."""
        return await self._outbox.get()

    def drain_outbound(self) -> tuple[dict[str, Any], ...]:
        out: list[dict[str, Any]] = []
        while not self._outbox.empty():
            out.append(self._outbox.get_nowait())
        return tuple(out)

    def _on_state(self, action: Action, state: ChatState) -> None:
        self._enqueue({
            "type": "STATE",
            "action": action.action_type.value,
            "ts_ms": action.ts_ms,
            "state": state_view(state),
        })

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    @property
    def runtime(self) -> Runtime | None:
        return self.session.runtime if self.session is not None else None

    async def on_ws_connect(self) -> GatewayResult:
        """Called when a WebSocket connection is established."""
        session_id = _new_session_id()
        config = self._config
        now = _now_ms()

        self.session = ChatSession(
            session_id=session_id,
            offline_alert_timeout_s=config.offline_alert_timeout_s,
            external_content=self._external_content,
            selection_listener=self._selection_listener,
        )
        self.session.connection_status = ConnectionStatus.CONNECTING

        runtime = Runtime(
            initial_state=ChatState(
                history=HistoryState(correlation_base=new_correlation_base(now)),
            ),
            context=RuntimeExecutionContext(session=self.session),
            handlers=default_handlers(),
            observers=(self._on_state,),
        )
        runtime.bind_loop(asyncio.get_running_loop())
        self.session.attach_runtime(runtime)

        # Strong references live in the session; the engine holds weak ones
        transport = BridgedTransport(
            send_json=self._enqueue,
            timeout_s=config.post_result_timeout_s,
            session_id=session_id,
        )
        self.transport = transport
        self.session.attach_transport(transport)
        if self._recognizer is not None:
            self.session.attach_recognizer(self._recognizer)
        if self._synthesizer is not None:
            self.session.attach_synthesizer(self._synthesizer)

        controller = IntervalController(
            dispatch=runtime.dispatch,
            interval_s=config.wait_interval_s,
            session_id=session_id,
        )
        self.session.interval = controller
        self._press_and_hold = PressAndHold(dispatch=runtime.dispatch)

        user = self._user or Participant(id=f"user_{uuid4().hex[:8]}")

        waiting: WaitingMessage | None = None
        if config.waiting_message_type:
            waiting = WaitingMessage(
                kind=config.waiting_message_type,
                content=config.waiting_message_content,
            )

        for action in (
            StartConnection(ts_ms=now, transport=transport, user=user),
            SetLocale(ts_ms=now, locale=config.default_locale),
            SetAutoListen(
                ts_ms=now,
                auto_listen_after_speak=config.auto_listen_after_speak,
                always_speak=config.always_speak,
            ),
            SetCustomSettings(ts_ms=now, waiting_message=waiting),
            EnableIntervalController(
                ts_ms=now,
                controller=controller,
                interval_s=config.wait_interval_s,
            ),
        ):
            runtime.dispatch(action)

        if self.session.recognizer is not None:
            runtime.dispatch(SaveSetting(ts_ms=now, recognizer=self.session.recognizer))

        self.session.connection_status = ConnectionStatus.ONLINE
        runtime.dispatch(ConnectionChange(ts_ms=now, status=ConnectionStatus.ONLINE))

        log_event({
            "ts_ms": now,
            "event_type": "SESSION_STARTED",
            **self.session.log_context(),
            "user_id": user.id,
            "correlation_base": runtime.state.history.correlation_base,
        })

        init_msg: dict[str, Any] = {
            "type": "SESSION_INIT",
            "session_id": session_id,
            "user": {"id": user.id, "name": user.name},
            "state": state_view(runtime.state),
        }
        return GatewayResult(outbound_json=(init_msg,))

    async def on_ws_disconnect(self, reason: str | None = None) -> GatewayResult:
        """Called when the WebSocket disconnects."""
        if self.session is None:
            log_event({
                "ts_ms": _now_ms(),
                "event_type": "WS_DISCONNECT_WITHOUT_SESSION",
                "reason": reason,
            })
            return GatewayResult()

        if self._press_and_hold is not None:
            self._press_and_hold.leave()

        runtime = self.session.runtime
        if runtime is not None:
            runtime.dispatch(ConnectionChange(ts_ms=_now_ms(), status=ConnectionStatus.ENDED))

        if self.transport is not None:
            self.transport.close()

        if runtime is not None:
            await runtime.shutdown()

        self.session.connection_status = ConnectionStatus.ENDED

        log_event({
            "ts_ms": _now_ms(),
            "event_type": "SESSION_ENDED",
            **self.session.log_context(),
            "reason": reason,
        })
        return GatewayResult()

    # ------------------------------------------------------------------
    # Inbound JSON
    # ------------------------------------------------------------------

    async def on_json_message(self, payload: str) -> GatewayResult:
        """Route one inbound JSON stimulus."""
        if self.session is None or self.session.runtime is None:
            log_event({
                "ts_ms": _now_ms(),
                "event_type": "MESSAGE_WITHOUT_SESSION",
                "payload_preview": payload[:100],
            })
            return GatewayResult()

        session_id = self.session.session_id

        try:
            data = json.loads(payload)
        except json.JSONDecodeError as e:
            log_event({
                "ts_ms": _now_ms(),
                "event_type": "JSON_DECODE_ERROR",
                "session_id": session_id,
                "error": str(e),
                "payload_preview": payload[:100],
            })
            return GatewayResult()

        if not isinstance(data, dict):
            log_event({
                "ts_ms": _now_ms(),
                "event_type": "JSON_DECODE_ERROR",
                "session_id": session_id,
                "error": "message must be an object",
                "payload_preview": payload[:100],
            })
            return GatewayResult()

        msg_type = data.get("type")
        ts_ms = data.get("ts_ms")
        if not isinstance(ts_ms, int):
            ts_ms = _now_ms()

        try:
            return self._route(msg_type, data, ts_ms)
        except ActivityDecodeError as e:
            log_event({
                "ts_ms": _now_ms(),
                "event_type": "ACTIVITY_DECODE_ERROR",
                "session_id": session_id,
                "msg_type": msg_type,
                "error": str(e),
            })
            return GatewayResult()

    def _route(self, msg_type: Any, data: dict[str, Any], ts_ms: int) -> GatewayResult:
        assert self.session is not None and self.session.runtime is not None
        runtime = self.session.runtime
        state = runtime.state

        action: Action | None = None

        # ----------------------------
        # Transport bridge
        # ----------------------------
        if msg_type == "POST_RESULT":
            if self.transport is not None:
                self.transport.resolve(
                    str(data.get("request_id")),
                    server_id=data.get("id"),
                    error=data.get("error"),
                )
            return GatewayResult()

        if msg_type == "RECEIVE_ACTIVITY":
            activity = activity_from_dict(data.get("activity"))
            action = self._receive_action(activity, state, ts_ms)

        # ----------------------------
        # History
        # ----------------------------
        elif msg_type == "SEND_MESSAGE":
            text = data.get("text")
            if not isinstance(text, str) or not text:
                return self._reject(msg_type, "text required")
            action = SendMessage(
                ts_ms=ts_ms,
                activity=message_activity(text, state.connection.user, state.format.locale),
            )
        elif msg_type == "RETRY":
            correlation_id = data.get("correlation_id")
            if not isinstance(correlation_id, str):
                return self._reject(msg_type, "correlation_id required")
            action = SendMessageRetry(ts_ms=ts_ms, correlation_id=correlation_id)
        elif msg_type == "SELECT_ACTIVITY":
            action = SelectActivity(
                ts_ms=ts_ms,
                activity=self._find_activity(state, data.get("id")),
            )
        elif msg_type == "TAKE_SUGGESTED_ACTION":
            activity = self._find_activity(state, data.get("id"))
            if activity is None:
                return self._reject(msg_type, "unknown activity")
            action = TakeSuggestedAction(ts_ms=ts_ms, activity=activity)
        elif msg_type == "SUBMIT_FORM":
            action = SubmitForm(ts_ms=ts_ms)
        elif msg_type == "HISTORY_DID_MOUNT":
            action = HistoryDidMount(ts_ms=ts_ms)

        # ----------------------------
        # Shell
        # ----------------------------
        elif msg_type == "UPDATE_INPUT":
            action = UpdateInput(ts_ms=ts_ms, input=str(data.get("input", "")))
        elif msg_type == "LISTEN_START":
            action = ListeningStarting(ts_ms=ts_ms)
        elif msg_type == "LISTEN_STOP":
            action = ListeningStopping(ts_ms=ts_ms, reason="user")
        elif msg_type == "STOP_SPEAKING":
            action = StopSpeaking(ts_ms=ts_ms)
        elif msg_type == "CARD_ACTION_CLICKED":
            action = CardActionClicked(ts_ms=ts_ms)
        elif msg_type == "SET_SEND_TYPING":
            action = SetSendTyping(ts_ms=ts_ms, send_typing=bool(data.get("send_typing")))

        # ----------------------------
        # Connection
        # ----------------------------
        elif msg_type == "CONNECTION_CHANGE":
            try:
                status = ConnectionStatus(data.get("status"))
            except ValueError:
                return self._reject(msg_type, "unknown status")
            self.session.connection_status = status
            action = ConnectionChange(ts_ms=ts_ms, status=status)

        # ----------------------------
        # Settings / interval
        # ----------------------------
        elif msg_type == "TOGGLE_ALWAYS_SPEAK":
            action = ToggleAlwaysSpeak(ts_ms=ts_ms)
        elif msg_type == "TOGGLE_AUTO_LISTEN_AFTER_SPEAK":
            action = ToggleAutoListenAfterSpeak(ts_ms=ts_ms)
        elif msg_type == "TOGGLE_CONFIG":
            action = ToggleConfig(ts_ms=ts_ms)
        elif msg_type == "SET_CHANNEL_DATA":
            channel_data = data.get("channel_data")
            if channel_data is not None and not isinstance(channel_data, dict):
                return self._reject(msg_type, "channel_data must be an object")
            action = SetChannelData(ts_ms=ts_ms, channel_data=channel_data)
        elif msg_type in ("SET_INTERVAL_TIME", "INTERVAL_PRESS", "INTERVAL_RELEASE", "INTERVAL_LEAVE"):
            return self._interval_control(msg_type, data)

        # ----------------------------
        # Language / menu
        # ----------------------------
        elif msg_type == "CHANGE_LANGUAGE":
            language = data.get("language")
            if not isinstance(language, str) or not language:
                return self._reject(msg_type, "language required")
            action = ChangeLanguage(
                ts_ms=ts_ms,
                activity=message_activity(language, state.connection.user, state.format.locale),
                language=language,
            )
        elif msg_type == "RESET_CHANGE_LANGUAGE":
            action = ResetChangeLanguage(ts_ms=ts_ms)
        elif msg_type == "SEND_MENU_MESSAGE":
            message = data.get("message")
            if not isinstance(message, str) or not message:
                return self._reject(msg_type, "message required")
            action = SendMenuMessage(
                ts_ms=ts_ms,
                activity=message_activity(message, state.connection.user, state.format.locale),
                message=message,
            )
        elif msg_type == "SET_CUSTOM_MENU_SETTING":
            icons = data.get("common_icons", [])
            if not isinstance(icons, list) or not all(isinstance(i, str) for i in icons):
                return self._reject(msg_type, "common_icons must be an array of strings")
            try:
                groups = menu_groups(data.get("all_messages", []))
            except ValueError as e:
                return self._reject(msg_type, str(e))
            action = SetCustomMenuSetting(
                ts_ms=ts_ms,
                show_menu=bool(data.get("show_menu", True)),
                common_icons=tuple(icons),
                all_messages=groups,
            )
        elif msg_type == "TOGGLE_MENU":
            action = ToggleMenu(ts_ms=ts_ms)

        else:
            log_event({
                "ts_ms": _now_ms(),
                "event_type": "UNKNOWN_MESSAGE_TYPE",
                "msg_type": msg_type,
                "session_id": self.session.session_id,
            })
            return GatewayResult()

        runtime.dispatch(action)
        return GatewayResult()

    # ------------------------------------------------------------------
    # Routing helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _receive_action(activity: Activity, state: ChatState, ts_ms: int) -> Action:
        if activity.type == "typing":
            return ShowTyping(ts_ms=ts_ms, activity=activity)
        user = state.connection.user
        if user is not None and user.id is not None and activity.from_.id == user.id:
            return ReceiveSentMessage(ts_ms=ts_ms, activity=activity)
        return ReceiveMessage(ts_ms=ts_ms, activity=activity)

    @staticmethod
    def _find_activity(state: ChatState, activity_id: Any) -> Activity | None:
        if activity_id is None:
            return None
        return next(
            (a for a in state.history.activities if a.id == activity_id),
            None,
        )

    def _interval_control(self, msg_type: str, data: dict[str, Any]) -> GatewayResult:
        assert self.session is not None and self.session.runtime is not None
        runtime = self.session.runtime

        scale = data.get("scale", 1)
        if scale not in (1, -1):
            return self._reject(msg_type, "scale must be 1 or -1")

        def factory() -> Action:
            return SetIntervalTime(ts_ms=_now_ms(), scale=scale)

        hold = self._press_and_hold
        if msg_type == "SET_INTERVAL_TIME" or hold is None:
            runtime.dispatch(factory())
        elif msg_type == "INTERVAL_PRESS":
            hold.press(factory)
        elif msg_type == "INTERVAL_RELEASE":
            hold.release(factory)
        else:
            hold.leave()
        return GatewayResult()

    def _reject(self, msg_type: Any, error: str) -> GatewayResult:
        log_event({
            "ts_ms": _now_ms(),
            "event_type": "MESSAGE_REJECTED",
            "session_id": self.session.session_id if self.session else None,
            "msg_type": msg_type,
            "error": error,
        })
        return GatewayResult(outbound_json=({
            "type": "ERROR",
            "msg_type": msg_type,
            "error": error,
        },))

"""
Action definitions for the chat engine.

Rules:
- Actions describe facts or requests that have occurred.
- Actions carry data only (no behavior).
- All reducer decisions and all handler subscriptions are keyed by
  ActionType.
- Actions are never mutated once appended to the log.

Timestamps are supplied by the stimulus source (or fake in tests); reducers
use ts_ms instead of reading a clock.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, ClassVar, Mapping

from orchestrator.activity import Activity, Participant
from orchestrator.enums.input_source import InputSource
from session.connection_status import ConnectionStatus


# =============================================================================
# Action Type Enumeration
# =============================================================================

class ActionType(str, Enum):
    """
    Canonical action kinds understood by reducers and handlers.

    These are stable discriminants used for logging, replay and handler
    subscription.
    """

    # ------------------------------------------------------------------
    # History
    # ------------------------------------------------------------------
    SEND_MESSAGE = "Send_Message"
    SEND_MESSAGE_TRY = "Send_Message_Try"
    SEND_MESSAGE_SUCCEED = "Send_Message_Succeed"
    SEND_MESSAGE_FAIL = "Send_Message_Fail"
    SEND_MESSAGE_RETRY = "Send_Message_Retry"
    RECEIVE_MESSAGE = "Receive_Message"
    RECEIVE_SENT_MESSAGE = "Receive_Sent_Message"
    SHOW_TYPING = "Show_Typing"
    CLEAR_TYPING = "Clear_Typing"
    SELECT_ACTIVITY = "Select_Activity"
    TAKE_SUGGESTED_ACTION = "Take_SuggestedAction"
    PUSH_WAITING_MESSAGE = "Push_Waiting_Message"
    REMOVE_WAITING_MESSAGE = "Remove_Waiting_Message"
    TIMEOUT_ALERT = "Timeout_Alert"
    PUSH_QRCODE_MESSAGE = "Push_Qrcode_Message"
    HISTORY_DID_MOUNT = "History_Did_Mount"
    SUBMIT_FORM = "Submit_Form"

    # ------------------------------------------------------------------
    # Shell (input buffer, listening, speaking)
    # ------------------------------------------------------------------
    UPDATE_INPUT = "Update_Input"
    LISTENING_STARTING = "Listening_Starting"
    LISTENING_START = "Listening_Start"
    LISTENING_STOPPING = "Listening_Stopping"
    LISTENING_STOP = "Listening_Stop"
    SPEAKING_STARTED = "Speaking_Started"
    SPEAKING_STOPPED = "Speaking_Stopped"
    STOP_SPEAKING = "Stop_Speaking"
    SPEAK_SSML = "Speak_SSML"
    CARD_ACTION_CLICKED = "Card_Action_Clicked"
    SET_SEND_TYPING = "Set_Send_Typing"
    LAST_INPUT_NOT_SPEECH = "Last_Input_Not_Speech"

    # ------------------------------------------------------------------
    # Connection
    # ------------------------------------------------------------------
    START_CONNECTION = "Start_Connection"
    CONNECTION_CHANGE = "Connection_Change"

    # ------------------------------------------------------------------
    # Format
    # ------------------------------------------------------------------
    SET_LOCALE = "Set_Locale"
    SET_CHAT_TITLE = "Set_Chat_Title"
    SET_MEASUREMENTS = "Set_Measurements"
    SET_SIZE = "Set_Size"
    TOGGLE_UPLOAD_BUTTON = "Toggle_Upload_Button"

    # ------------------------------------------------------------------
    # Settings / waiting / interval
    # ------------------------------------------------------------------
    SET_CUSTOM_SETTINGS = "Set_Custom_Settings"
    SET_AUTO_LISTEN = "Set_Auto_Listen"
    TOGGLE_ALWAYS_SPEAK = "Toggle_Always_Speak"
    TOGGLE_AUTO_LISTEN_AFTER_SPEAK = "Toggle_Auto_Listen_After_Speak"
    ENABLE_CONFIGURATION = "Enable_Configuration"
    TOGGLE_CONFIG = "Toggle_Config"
    ENABLE_INTERVAL_CONTROLLER = "Enable_Interval_Controller"
    SET_INTERVAL_TIME = "Set_Interval_Time"
    TURN_ON_SETTINGS = "Turn_On_Settings"
    WAIT_INTERVAL = "Wait_Interval"
    SAVE_CONVERSATION_ID = "Save_Conversation_Id"
    SET_CHANNEL_DATA = "Set_Channel_Data"

    # ------------------------------------------------------------------
    # Language switch
    # ------------------------------------------------------------------
    CHANGE_LANGUAGE = "Change_Language"
    CHANGED_LANGUAGE = "Changed_Language"
    CHANGE_LANGUAGE_FAIL = "Change_Language_Fail"
    RESET_CHANGE_LANGUAGE = "Reset_Change_Language"
    SAVE_SETTING = "Save_Setting"
    SET_LANGUAGE_SETTING = "Set_Language_Setting"

    # ------------------------------------------------------------------
    # Menu
    # ------------------------------------------------------------------
    SET_CUSTOM_MENU_SETTING = "Set_Custom_Menu_Setting"
    SEND_MENU_MESSAGE = "Send_Menu_Message"
    PUSH_MENU_MESSAGE = "Push_Menu_Message"
    SENT_MENU_MESSAGE = "Sent_Menu_Message"
    SEND_MENU_MESSAGE_FAIL = "Send_Menu_Message_Fail"
    TOGGLE_MENU = "Toggle_Menu"


# =============================================================================
# Base Action
# =============================================================================

@dataclass(frozen=True, kw_only=True)
class Action:
    """
    Base action type.

    action_type is an explicit per-class discriminant and must never be
    inferred from Python type identity.
    """

    action_type: ClassVar[ActionType]
    ts_ms: int


# =============================================================================
# History Actions
# =============================================================================

@dataclass(frozen=True, kw_only=True)
class SendMessage(Action):
    """User sends a message (optimistic append)."""
    activity: Activity
    action_type: ClassVar[ActionType] = ActionType.SEND_MESSAGE


@dataclass(frozen=True, kw_only=True)
class SendMessageTry(Action):
    """Attempt to post the activity carrying correlation_id."""
    correlation_id: str
    action_type: ClassVar[ActionType] = ActionType.SEND_MESSAGE_TRY


@dataclass(frozen=True, kw_only=True)
class SendMessageSucceed(Action):
    """Transport acknowledged the post with a server id."""
    correlation_id: str
    id: str
    action_type: ClassVar[ActionType] = ActionType.SEND_MESSAGE_SUCCEED


@dataclass(frozen=True, kw_only=True)
class SendMessageFail(Action):
    """Transport rejected the post (or was unavailable)."""
    correlation_id: str
    action_type: ClassVar[ActionType] = ActionType.SEND_MESSAGE_FAIL


@dataclass(frozen=True, kw_only=True)
class SendMessageRetry(Action):
    """User asked to re-send a failed message."""
    correlation_id: str
    action_type: ClassVar[ActionType] = ActionType.SEND_MESSAGE_RETRY


@dataclass(frozen=True, kw_only=True)
class ReceiveMessage(Action):
    """Activity from the peer."""
    activity: Activity
    action_type: ClassVar[ActionType] = ActionType.RECEIVE_MESSAGE


@dataclass(frozen=True, kw_only=True)
class ReceiveSentMessage(Action):
    """Server echo of an activity the local user sent."""
    activity: Activity
    action_type: ClassVar[ActionType] = ActionType.RECEIVE_SENT_MESSAGE


@dataclass(frozen=True, kw_only=True)
class ShowTyping(Action):
    """Peer typing indicator."""
    activity: Activity
    action_type: ClassVar[ActionType] = ActionType.SHOW_TYPING


@dataclass(frozen=True, kw_only=True)
class ClearTyping(Action):
    """Typing indicator expired."""
    id: str | None
    action_type: ClassVar[ActionType] = ActionType.CLEAR_TYPING


@dataclass(frozen=True, kw_only=True)
class SelectActivity(Action):
    """UI selected an activity (None clears the selection)."""
    activity: Activity | None
    action_type: ClassVar[ActionType] = ActionType.SELECT_ACTIVITY


@dataclass(frozen=True, kw_only=True)
class TakeSuggestedAction(Action):
    """A suggested action of this activity was taken; hide the rest."""
    activity: Activity
    action_type: ClassVar[ActionType] = ActionType.TAKE_SUGGESTED_ACTION


@dataclass(frozen=True, kw_only=True)
class PushWaitingMessage(Action):
    """Insert a waiting placeholder."""
    activity: Activity
    action_type: ClassVar[ActionType] = ActionType.PUSH_WAITING_MESSAGE


@dataclass(frozen=True, kw_only=True)
class RemoveWaitingMessage(Action):
    """Drop every waiting placeholder."""
    action_type: ClassVar[ActionType] = ActionType.REMOVE_WAITING_MESSAGE


@dataclass(frozen=True, kw_only=True)
class TimeoutAlert(Action):
    """No peer reply within the offline alert window."""
    activity: Activity
    action_type: ClassVar[ActionType] = ActionType.TIMEOUT_ALERT


@dataclass(frozen=True, kw_only=True)
class PushQrcodeMessage(Action):
    """Insert a locally generated QR code activity."""
    activity: Activity
    action_type: ClassVar[ActionType] = ActionType.PUSH_QRCODE_MESSAGE


@dataclass(frozen=True, kw_only=True)
class HistoryDidMount(Action):
    """History view became visible."""
    action_type: ClassVar[ActionType] = ActionType.HISTORY_DID_MOUNT


@dataclass(frozen=True, kw_only=True)
class SubmitForm(Action):
    """A card form was submitted."""
    action_type: ClassVar[ActionType] = ActionType.SUBMIT_FORM


# =============================================================================
# Shell Actions
# =============================================================================

@dataclass(frozen=True, kw_only=True)
class UpdateInput(Action):
    """Input buffer changed (keyboard or speech)."""
    input: str
    source: InputSource = InputSource.TEXT
    action_type: ClassVar[ActionType] = ActionType.UPDATE_INPUT


@dataclass(frozen=True, kw_only=True)
class ListeningStarting(Action):
    """Request to begin a recognition session."""
    action_type: ClassVar[ActionType] = ActionType.LISTENING_STARTING


@dataclass(frozen=True, kw_only=True)
class ListeningStart(Action):
    """Recognizer audio stream started."""
    action_type: ClassVar[ActionType] = ActionType.LISTENING_START


@dataclass(frozen=True, kw_only=True)
class ListeningStopping(Action):
    """Request to end the recognition session."""
    reason: str | None = None
    action_type: ClassVar[ActionType] = ActionType.LISTENING_STOPPING


@dataclass(frozen=True, kw_only=True)
class ListeningStop(Action):
    """Recognizer stopped."""
    action_type: ClassVar[ActionType] = ActionType.LISTENING_STOP


@dataclass(frozen=True, kw_only=True)
class SpeakingStarted(Action):
    """Speech output in flight."""
    action_type: ClassVar[ActionType] = ActionType.SPEAKING_STARTED


@dataclass(frozen=True, kw_only=True)
class SpeakingStopped(Action):
    """Speech output finished or interrupted."""
    action_type: ClassVar[ActionType] = ActionType.SPEAKING_STOPPED


@dataclass(frozen=True, kw_only=True)
class StopSpeaking(Action):
    """Explicit request to interrupt speech output."""
    action_type: ClassVar[ActionType] = ActionType.STOP_SPEAKING


@dataclass(frozen=True, kw_only=True)
class SpeakSsml(Action):
    """Speak text in the given locale."""
    ssml: str | None
    locale: str | None
    auto_listen_after_speak: bool = False
    action_type: ClassVar[ActionType] = ActionType.SPEAK_SSML


@dataclass(frozen=True, kw_only=True)
class CardActionClicked(Action):
    """User clicked a card action."""
    action_type: ClassVar[ActionType] = ActionType.CARD_ACTION_CLICKED


@dataclass(frozen=True, kw_only=True)
class SetSendTyping(Action):
    """Enable / disable outbound typing notifications."""
    send_typing: bool
    action_type: ClassVar[ActionType] = ActionType.SET_SEND_TYPING


@dataclass(frozen=True, kw_only=True)
class LastInputNotSpeech(Action):
    """Most recent input did not come from the recognizer."""
    action_type: ClassVar[ActionType] = ActionType.LAST_INPUT_NOT_SPEECH


# =============================================================================
# Connection Actions
# =============================================================================

@dataclass(frozen=True, kw_only=True)
class StartConnection(Action):
    """
    Bind the session to a transport owned by the surrounding application.

    The connection slice keeps only a weak reference to transport.
    """
    transport: Any
    user: Participant
    bot: Participant | None = None
    action_type: ClassVar[ActionType] = ActionType.START_CONNECTION


@dataclass(frozen=True, kw_only=True)
class ConnectionChange(Action):
    """Transport reported a status change."""
    status: ConnectionStatus
    action_type: ClassVar[ActionType] = ActionType.CONNECTION_CHANGE


# =============================================================================
# Format Actions
# =============================================================================

@dataclass(frozen=True, kw_only=True)
class SetLocale(Action):
    """Switch active locale (and with it the string table)."""
    locale: str
    action_type: ClassVar[ActionType] = ActionType.SET_LOCALE


@dataclass(frozen=True, kw_only=True)
class SetChatTitle(Action):
    """Chat title (True = default title, False = hidden)."""
    chat_title: bool | str | None
    action_type: ClassVar[ActionType] = ActionType.SET_CHAT_TITLE


@dataclass(frozen=True, kw_only=True)
class SetMeasurements(Action):
    """UI measurement hints."""
    carousel_margin: int | None
    action_type: ClassVar[ActionType] = ActionType.SET_MEASUREMENTS


@dataclass(frozen=True, kw_only=True)
class SetSize(Action):
    """UI viewport size."""
    width: int | None
    height: int | None
    action_type: ClassVar[ActionType] = ActionType.SET_SIZE


@dataclass(frozen=True, kw_only=True)
class ToggleUploadButton(Action):
    """Show or hide the upload affordance."""
    show_upload_button: bool
    action_type: ClassVar[ActionType] = ActionType.TOGGLE_UPLOAD_BUTTON


# =============================================================================
# Settings Actions
# =============================================================================

@dataclass(frozen=True, kw_only=True)
class SetCustomSettings(Action):
    """Install session customization (waiting message descriptor)."""
    waiting_message: Any = None  # WaitingMessage | None
    scroll_to_bottom: int = 1
    action_type: ClassVar[ActionType] = ActionType.SET_CUSTOM_SETTINGS


@dataclass(frozen=True, kw_only=True)
class SetAutoListen(Action):
    """Set both speech preferences at once."""
    auto_listen_after_speak: bool
    always_speak: bool
    action_type: ClassVar[ActionType] = ActionType.SET_AUTO_LISTEN


@dataclass(frozen=True, kw_only=True)
class ToggleAlwaysSpeak(Action):
    action_type: ClassVar[ActionType] = ActionType.TOGGLE_ALWAYS_SPEAK


@dataclass(frozen=True, kw_only=True)
class ToggleAutoListenAfterSpeak(Action):
    action_type: ClassVar[ActionType] = ActionType.TOGGLE_AUTO_LISTEN_AFTER_SPEAK


@dataclass(frozen=True, kw_only=True)
class EnableConfiguration(Action):
    action_type: ClassVar[ActionType] = ActionType.ENABLE_CONFIGURATION


@dataclass(frozen=True, kw_only=True)
class ToggleConfig(Action):
    action_type: ClassVar[ActionType] = ActionType.TOGGLE_CONFIG


@dataclass(frozen=True, kw_only=True)
class EnableIntervalController(Action):
    """
    Hand the interval controller to the settings slice.

    The controller self-triggers WAIT_INTERVAL through the runtime's
    dispatch; only the interval handler starts or reschedules it.
    """
    controller: Any  # IntervalController
    interval_s: int
    action_type: ClassVar[ActionType] = ActionType.ENABLE_INTERVAL_CONTROLLER


@dataclass(frozen=True, kw_only=True)
class SetIntervalTime(Action):
    """Adjust the idle interval by scale seconds (+1 / -1)."""
    scale: int
    action_type: ClassVar[ActionType] = ActionType.SET_INTERVAL_TIME


@dataclass(frozen=True, kw_only=True)
class TurnOnSettings(Action):
    """First outbound interaction: enable speaker and idle interval."""
    action_type: ClassVar[ActionType] = ActionType.TURN_ON_SETTINGS


@dataclass(frozen=True, kw_only=True)
class WaitInterval(Action):
    """Idle interval elapsed."""
    action_type: ClassVar[ActionType] = ActionType.WAIT_INTERVAL


@dataclass(frozen=True, kw_only=True)
class SaveConversationId(Action):
    conversation_id: str
    action_type: ClassVar[ActionType] = ActionType.SAVE_CONVERSATION_ID


@dataclass(frozen=True, kw_only=True)
class SetChannelData(Action):
    """Session-level side-channel payload merged into every envelope."""
    channel_data: Mapping[str, Any] | None
    action_type: ClassVar[ActionType] = ActionType.SET_CHANNEL_DATA


# =============================================================================
# Language Actions
# =============================================================================

@dataclass(frozen=True, kw_only=True)
class ChangeLanguage(Action):
    """Ask the peer to switch language."""
    activity: Activity
    language: str
    action_type: ClassVar[ActionType] = ActionType.CHANGE_LANGUAGE


@dataclass(frozen=True, kw_only=True)
class ChangedLanguage(Action):
    """Language-change request was posted."""
    action_type: ClassVar[ActionType] = ActionType.CHANGED_LANGUAGE


@dataclass(frozen=True, kw_only=True)
class ChangeLanguageFail(Action):
    """Language-change request could not be posted."""
    action_type: ClassVar[ActionType] = ActionType.CHANGE_LANGUAGE_FAIL


@dataclass(frozen=True, kw_only=True)
class ResetChangeLanguage(Action):
    action_type: ClassVar[ActionType] = ActionType.RESET_CHANGE_LANGUAGE


@dataclass(frozen=True, kw_only=True)
class SaveSetting(Action):
    """Hand the recognizer handle to the language slice (weakly held)."""
    recognizer: Any
    action_type: ClassVar[ActionType] = ActionType.SAVE_SETTING


@dataclass(frozen=True, kw_only=True)
class SetLanguageSetting(Action):
    display: bool
    languages: tuple[str, ...] = ()
    action_type: ClassVar[ActionType] = ActionType.SET_LANGUAGE_SETTING


# =============================================================================
# Menu Actions
# =============================================================================

@dataclass(frozen=True, kw_only=True)
class SetCustomMenuSetting(Action):
    show_menu: bool
    common_icons: tuple[str, ...] = ()
    all_messages: tuple[Any, ...] = ()  # MenuMessageGroup
    action_type: ClassVar[ActionType] = ActionType.SET_CUSTOM_MENU_SETTING


@dataclass(frozen=True, kw_only=True)
class SendMenuMessage(Action):
    """User picked a canned menu message."""
    activity: Activity
    message: str
    action_type: ClassVar[ActionType] = ActionType.SEND_MENU_MESSAGE


@dataclass(frozen=True, kw_only=True)
class PushMenuMessage(Action):
    """Resolved menu message ready to be posted."""
    activity: Activity
    action_type: ClassVar[ActionType] = ActionType.PUSH_MENU_MESSAGE


@dataclass(frozen=True, kw_only=True)
class SentMenuMessage(Action):
    action_type: ClassVar[ActionType] = ActionType.SENT_MENU_MESSAGE


@dataclass(frozen=True, kw_only=True)
class SendMenuMessageFail(Action):
    action_type: ClassVar[ActionType] = ActionType.SEND_MENU_MESSAGE_FAIL


@dataclass(frozen=True, kw_only=True)
class ToggleMenu(Action):
    action_type: ClassVar[ActionType] = ActionType.TOGGLE_MENU

"""
POLICY-AS-CONSTANTS
-------------------
Single source of truth for all behavioral constants of the chat engine.

Rules:
- If changing a value changes runtime behavior, it belongs here.
- No magic numbers or magic ids elsewhere in the codebase.
- Other modules MUST import from this file.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Final

# =============================================================================
# Activity identity
# =============================================================================

# Placed in Activity.id when a post attempt failed (retry affordance).
RETRY_SENTINEL_ID: Final[str] = "retry"

ACTIVITY_TYPE_MESSAGE: Final[str] = "message"
ACTIVITY_TYPE_TYPING: Final[str] = "typing"
ACTIVITY_TYPE_EVENT: Final[str] = "event"

TEXT_FORMAT_PLAIN: Final[str] = "plain"

# =============================================================================
# Waiting placeholders
# =============================================================================

WAITING_STRING_ID: Final[str] = "waitingString"
WAITING_CSS_ID: Final[str] = "waitingCss"
WAITING_IMAGE_ID: Final[str] = "waitingImage"
WAITING_INTERVAL_ID: Final[str] = "waitingInterval"
TIMEOUT_ALERT_ID: Final[str] = "timeoutAlert"
QRCODE_ID: Final[str] = "qrcode"

# Placeholders removed when a peer reply arrives.
REMOVABLE_PLACEHOLDER_IDS: Final[frozenset[str]] = frozenset({
    WAITING_STRING_ID,
    WAITING_CSS_ID,
    WAITING_IMAGE_ID,
    WAITING_INTERVAL_ID,
    TIMEOUT_ALERT_ID,
})

# A trailing entry with one of these ids suppresses another idle placeholder.
IDLE_PLACEHOLDER_IDS: Final[frozenset[str]] = frozenset({
    WAITING_STRING_ID,
    WAITING_CSS_ID,
    WAITING_IMAGE_ID,
    WAITING_INTERVAL_ID,
})

WAITING_SENDER_NAME: Final[str] = "waiting"
WAITING_KIND_MESSAGE: Final[str] = "message"
WAITING_KIND_CSS: Final[str] = "css"
WAITING_CSS_TEXT: Final[str] = "use css"
DEFAULT_INTERVAL_TEXT: Final[str] = "waiting for the next message"

# =============================================================================
# Timing
# =============================================================================

LISTENING_SILENCE_TIMEOUT_MS: Final[int] = 5_000
TYPING_INDICATOR_EXPIRY_MS: Final[int] = 3_000
SEND_TYPING_THROTTLE_MS: Final[int] = 3_000
INTERVAL_ADJUST_REPEAT_MS: Final[int] = 150

DEFAULT_WAIT_INTERVAL_S: Final[int] = 10
MIN_WAIT_INTERVAL_S: Final[int] = 1
DEFAULT_OFFLINE_ALERT_TIMEOUT_S: Final[int] = 60
DEFAULT_POST_RESULT_TIMEOUT_S: Final[float] = 15.0

# =============================================================================
# Runtime bounds
# =============================================================================

ACTION_LOG_MAX: Final[int] = 2_000

# =============================================================================
# Session
# =============================================================================

DEFAULT_LOCALE: Final[str] = "en-us"

# Announced once, on the first outbound envelope of a session.
CLIENT_CAPABILITIES: Final[dict[str, object]] = {
    "type": "ClientCapabilities",
    "requiresBotState": True,
    "supportsTts": True,
    "supportsListening": True,
}

# =============================================================================
# Speech
# =============================================================================

EXPECTING_INPUT_HINT: Final[str] = "expectingInput"
WAITING_FOR_ANSWER_BOT_STATE: Final[str] = "WaitingForAnswerToQuestion"
URL_PATTERN: Final[str] = r"https?://.*"
SPEECH_TRIM_CHARS: Final[str] = ". \t\r\n"

# =============================================================================
# Language switch
# =============================================================================

CHANGE_LANGUAGE_EVENT: Final[str] = "changeLanguage"


@dataclass(frozen=True)
class LanguageEntry:
    """One switchable language and the peer's confirmation greeting for it."""
    text: str
    language: str
    message: str
    recognizer_language: str


LANGUAGE_CHANGE_WORDS: Final[tuple[LanguageEntry, ...]] = (
    LanguageEntry("japanese", "ja-JP", "こんにちは、日本語を設定しました。", "ja-JP"),
    LanguageEntry("tchinese", "zh-hant", "您好，語言已經設定為繁體中文。", "cmn-Hant-TW"),
    LanguageEntry("chinese", "zh", "您好，语言已经设定为简体中文。", "zh"),
    LanguageEntry("english", "en-US", "Hello,Language has been set to English.", "en-US"),
    LanguageEntry("korean", "ko-kr", "안녕하세요，언어가 한국어로 설정되었습니다.", "ko-KR"),
    LanguageEntry("russian", "ru-ru", "Привет, Язык установлен на русский язык.", "ru-RU"),
    LanguageEntry("thai", "th-th", "สวัสดีภาษาได้รับการตั้งค่าเป็นภาษาไทยแล้ว.", "th-TH"),
)

LANGUAGE_COUNT: Final[int] = len(LANGUAGE_CHANGE_WORDS)

# Two locale codes denote the same language iff some group contains both.
CHECKED_LOCALE_GROUPS: Final[tuple[tuple[str, ...], ...]] = (
    ("ja", "ja-JP", "ja-jp"),
    ("zh-hant", "zh-TW", "zh-tw", "zh-HK", "zh-hk", "cmn-Hant-TW"),
    ("zh", "zh-CN", "zh-cn", "zh-hans", "zh-Hans"),
    ("en", "en-US", "en-us", "en-GB", "en-gb"),
    ("ko", "ko-kr", "ko-KR"),
    ("ru", "ru-ru", "ru-RU"),
    ("th", "th-th", "th-TH"),
)

# =============================================================================
# Menu
# =============================================================================

MENU_SENDER_NAME: Final[str] = "send message bot"

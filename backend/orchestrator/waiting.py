"""
Synthetic placeholder activities (waiting, idle interval, timeout alert).

Placeholders are ordinary message activities with reserved ids, sent by a
sender that has no id, so REMOVE_WAITING_MESSAGE can find them again.
"""

from __future__ import annotations

from constants import (
    DEFAULT_INTERVAL_TEXT,
    TEXT_FORMAT_PLAIN,
    TIMEOUT_ALERT_ID,
    WAITING_CSS_ID,
    WAITING_CSS_TEXT,
    WAITING_IMAGE_ID,
    WAITING_INTERVAL_ID,
    WAITING_KIND_CSS,
    WAITING_KIND_MESSAGE,
    WAITING_SENDER_NAME,
    WAITING_STRING_ID,
)
from orchestrator.activity import Activity, Attachment, Participant, iso_timestamp
from orchestrator.state_dataclass import WaitingMessage
from orchestrator.strings import StringTable

_WAITING_SENDER = Participant(id=None, name=WAITING_SENDER_NAME)


def _text_placeholder(activity_id: str, text: str, locale: str, ts_ms: int) -> Activity:
    return Activity(
        id=activity_id,
        from_=_WAITING_SENDER,
        text=text,
        locale=locale,
        text_format=TEXT_FORMAT_PLAIN,
        timestamp=iso_timestamp(ts_ms),
    )


def _media_placeholder(activity_id: str, waiting: WaitingMessage, locale: str) -> Activity:
    return Activity(
        id=activity_id,
        from_=_WAITING_SENDER,
        locale=locale,
        attachments=(
            Attachment(content_type=waiting.kind or "", content_url=waiting.content),
        ),
    )


def waiting_placeholder(waiting: WaitingMessage, locale: str, ts_ms: int) -> Activity:
    """Placeholder shown right after an outbound interaction."""
    if waiting.kind == WAITING_KIND_MESSAGE:
        return _text_placeholder(WAITING_STRING_ID, waiting.content or "", locale, ts_ms)
    if waiting.kind == WAITING_KIND_CSS:
        return _text_placeholder(WAITING_CSS_ID, WAITING_CSS_TEXT, locale, ts_ms)
    return _media_placeholder(WAITING_IMAGE_ID, waiting, locale)


def interval_placeholder(
    waiting: WaitingMessage | None,
    locale: str,
    ts_ms: int,
) -> Activity:
    """Placeholder pushed when the idle interval elapses."""
    if waiting is None or not waiting.is_valid:
        return _text_placeholder(WAITING_INTERVAL_ID, DEFAULT_INTERVAL_TEXT, locale, ts_ms)
    if waiting.kind == WAITING_KIND_MESSAGE:
        return _text_placeholder(WAITING_INTERVAL_ID, waiting.content or "", locale, ts_ms)
    return _media_placeholder(WAITING_INTERVAL_ID, waiting, locale)


def timeout_alert(strings: StringTable, locale: str, ts_ms: int) -> Activity:
    """Notice shown when the peer has not replied in time."""
    text = strings.get("timeoutAlert") or ""
    return _text_placeholder(TIMEOUT_ALERT_ID, text, locale, ts_ms)

"""
Speech text selection.

Pure helpers that turn a received activity into a SPEAK_SSML action and
clean up recognizer output. No collaborators, no state.
"""

from __future__ import annotations

import re
from collections.abc import Mapping

from constants import (
    EXPECTING_INPUT_HINT,
    SPEECH_TRIM_CHARS,
    TEXT_FORMAT_PLAIN,
    URL_PATTERN,
    WAITING_FOR_ANSWER_BOT_STATE,
)
from orchestrator.actions import SpeakSsml
from orchestrator.activity import Activity
from orchestrator.languages import entry_for_confirmation

_URL_RE = re.compile(URL_PATTERN)


def speech_text(activity: Activity) -> str | None:
    """
    Pick what to say for an activity.

    Order: explicit speak field; text when the format is plain or absent;
    channelData.speechOutput.speakText; the first attachment content
    title. Anything from the first http(s) URL on is cut off.
    """
    speak = activity.speak

    if not speak and activity.text_format in (None, TEXT_FORMAT_PLAIN):
        speak = activity.text

    if not speak and activity.channel_data:
        speech_output = activity.channel_data.get("speechOutput")
        if isinstance(speech_output, Mapping):
            speak = speech_output.get("speakText")

    if not speak:
        for attachment in activity.attachments:
            if attachment.content and attachment.content.get("title"):
                speak = attachment.content["title"]
                break

    if speak:
        match = _URL_RE.search(speak)
        if match:
            speak = speak[:match.start()]

    return speak or None


def expects_answer(activity: Activity) -> bool:
    """The peer is waiting for the user to reply (auto listen)."""
    if activity.input_hint == EXPECTING_INPUT_HINT:
        return True
    bot_state = (activity.channel_data or {}).get("botState")
    return bot_state == WAITING_FOR_ANSWER_BOT_STATE


def speak_from_message(activity: Activity, fallback_locale: str, ts_ms: int) -> SpeakSsml:
    """Build the SPEAK_SSML action for a received message."""
    confirmation = entry_for_confirmation(activity.text)
    locale = (
        (confirmation.language if confirmation else None)
        or activity.locale
        or fallback_locale
    )
    return SpeakSsml(
        ts_ms=ts_ms,
        ssml=speech_text(activity),
        locale=locale,
        auto_listen_after_speak=expects_answer(activity),
    )


def trim_recognized(text: str) -> str:
    """Drop leading / trailing dots and whitespace from a final result."""
    return text.strip(SPEECH_TRIM_CHARS)

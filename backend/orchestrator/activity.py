"""
Conversation activity records.

Rules:
- Activities are immutable values.
- Updates replace the record at its index (dataclasses.replace); every
  untouched entry keeps its identity so consumers can detect change by `is`.
- Open key-value payloads (channel_data, value, entities) are validated at
  the wire boundary (protocol.activity_json), never here.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Mapping

from constants import ACTIVITY_TYPE_MESSAGE, TEXT_FORMAT_PLAIN


@dataclass(frozen=True)
class Participant:
    """Sender identity (user, peer, or a synthetic placeholder sender)."""
    id: str | None
    name: str | None = None


@dataclass(frozen=True)
class Attachment:
    """Media or card attachment."""
    content_type: str
    content_url: str | None = None
    name: str | None = None
    content: Mapping[str, Any] | None = None


@dataclass(frozen=True)
class Activity:
    """
    Single conversation message / typing indicator / event.

    id:
        Server-assigned. None until acknowledged (or after an explicit
        retry); the retry sentinel after a failed post.
    correlation_id:
        Minted locally on optimistic send; links the entry to its later
        acknowledgement or server echo.
    """

    type: str = ACTIVITY_TYPE_MESSAGE
    from_: Participant = field(default_factory=lambda: Participant(id=None))
    id: str | None = None
    text: str | None = None
    attachments: tuple[Attachment, ...] = ()
    timestamp: str | None = None
    locale: str | None = None
    text_format: str | None = None
    speak: str | None = None
    input_hint: str | None = None

    # Grammar hints for the speech recognizer
    listen_for: tuple[str, ...] = ()

    suggested_actions: tuple[Mapping[str, Any], ...] | None = None
    entities: tuple[Mapping[str, Any], ...] = ()
    value: Mapping[str, Any] | None = None
    channel_data: Mapping[str, Any] | None = None
    correlation_id: str | None = None


def is_postback(activity: Activity) -> bool:
    """True for activities the peer tagged as a postback."""
    return bool(activity.channel_data and activity.channel_data.get("postBack"))


def iso_timestamp(ts_ms: int) -> str:
    """Render an action timestamp the way the transport expects it."""
    dt = datetime.fromtimestamp(ts_ms / 1000.0, tz=timezone.utc)
    return dt.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def message_activity(
    text: str,
    from_: Participant | None,
    locale: str | None,
) -> Activity:
    """Plain-text message authored by the local user."""
    return Activity(
        from_=from_ if from_ is not None else Participant(id=None),
        text=text,
        locale=locale,
        text_format=TEXT_FORMAT_PLAIN,
    )

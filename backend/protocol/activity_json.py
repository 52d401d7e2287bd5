"""
JSON wire shape of Activity records.

Client <-> Server (camelCase, as the transport contract defines it):

    {
      "type": "message",
      "id": "srv-1",
      "from": {"id": "user-1", "name": "Ada"},
      "text": "hi",
      "timestamp": "2024-01-01T00:00:00.000Z",
      "locale": "en-us",
      "textFormat": "plain",
      "speak": null,
      "inputHint": "expectingInput",
      "listenFor": ["yes", "no"],
      "attachments": [{"contentType": "image/png", "contentUrl": "..."}],
      "suggestedActions": [...],
      "entities": [...],
      "value": {...},
      "channelData": {"clientActivityId": "base.0", "postBack": true, ...}
    }

The CorrelationId travels as channelData.clientActivityId. Open maps
(value, channelData, entities, attachment content) are checked for shape
only; their contents are not interpreted here.

Usage example:

    try:
        activity = activity_from_dict(data["activity"])
    except ActivityDecodeError as e:
        log_event({"event_type": "ACTIVITY_DECODE_ERROR", "error": str(e)})
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from constants import ACTIVITY_TYPE_EVENT, ACTIVITY_TYPE_MESSAGE, ACTIVITY_TYPE_TYPING
from orchestrator.activity import Activity, Attachment, Participant


# -------------------------
# Exceptions
# -------------------------

class ActivityDecodeError(ValueError):
    """Inbound activity JSON does not have the expected shape."""


CORRELATION_KEY = "clientActivityId"

_KNOWN_TYPES = frozenset({ACTIVITY_TYPE_MESSAGE, ACTIVITY_TYPE_TYPING, ACTIVITY_TYPE_EVENT})


# -------------------------
# Field helpers
# -------------------------

def _opt_str(data: Mapping[str, Any], key: str) -> str | None:
    value = data.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        raise ActivityDecodeError(f"{key} must be a string, got {type(value).__name__}")
    return value


def _opt_map(data: Mapping[str, Any], key: str) -> Mapping[str, Any] | None:
    value = data.get(key)
    if value is None:
        return None
    if not isinstance(value, Mapping):
        raise ActivityDecodeError(f"{key} must be an object, got {type(value).__name__}")
    return value


def _list(data: Mapping[str, Any], key: str) -> list[Any]:
    value = data.get(key)
    if value is None:
        return []
    if not isinstance(value, list):
        raise ActivityDecodeError(f"{key} must be an array, got {type(value).__name__}")
    return value


def _participant(data: Mapping[str, Any]) -> Participant:
    raw = _opt_map(data, "from")
    if raw is None:
        return Participant(id=None)
    return Participant(id=_opt_str(raw, "id"), name=_opt_str(raw, "name"))


def _attachment(raw: Any) -> Attachment:
    if not isinstance(raw, Mapping):
        raise ActivityDecodeError("attachment must be an object")
    content_type = _opt_str(raw, "contentType")
    if not content_type:
        raise ActivityDecodeError("attachment.contentType is required")
    return Attachment(
        content_type=content_type,
        content_url=_opt_str(raw, "contentUrl"),
        name=_opt_str(raw, "name"),
        content=_opt_map(raw, "content"),
    )


def _maps(data: Mapping[str, Any], key: str) -> tuple[Mapping[str, Any], ...]:
    items = _list(data, key)
    for item in items:
        if not isinstance(item, Mapping):
            raise ActivityDecodeError(f"{key} entries must be objects")
    return tuple(items)


# -------------------------
# Decode / encode
# -------------------------

def activity_from_dict(data: Any) -> Activity:
    """
    Decode one activity.

    Raises:
        ActivityDecodeError on any shape violation.
    """
    if not isinstance(data, Mapping):
        raise ActivityDecodeError("activity must be an object")

    activity_type = _opt_str(data, "type") or ACTIVITY_TYPE_MESSAGE
    if activity_type not in _KNOWN_TYPES:
        raise ActivityDecodeError(f"unsupported activity type: {activity_type}")

    channel_data = _opt_map(data, "channelData")
    correlation_id = None
    if channel_data is not None:
        correlation_id = _opt_str(channel_data, CORRELATION_KEY)

    listen_for = _list(data, "listenFor")
    if not all(isinstance(g, str) for g in listen_for):
        raise ActivityDecodeError("listenFor entries must be strings")

    suggested_raw = data.get("suggestedActions")
    suggested: tuple[Mapping[str, Any], ...] | None = None
    if isinstance(suggested_raw, Mapping):
        # {"actions": [...]} or a bare list
        suggested = _maps(suggested_raw, "actions")
    elif suggested_raw is not None:
        suggested = _maps(data, "suggestedActions")

    return Activity(
        type=activity_type,
        from_=_participant(data),
        id=_opt_str(data, "id"),
        text=_opt_str(data, "text"),
        attachments=tuple(_attachment(a) for a in _list(data, "attachments")),
        timestamp=_opt_str(data, "timestamp"),
        locale=_opt_str(data, "locale"),
        text_format=_opt_str(data, "textFormat"),
        speak=_opt_str(data, "speak"),
        input_hint=_opt_str(data, "inputHint"),
        listen_for=tuple(listen_for),
        suggested_actions=suggested,
        entities=_maps(data, "entities"),
        value=_opt_map(data, "value"),
        channel_data=channel_data,
        correlation_id=correlation_id,
    )


def activity_to_dict(activity: Activity) -> dict[str, Any]:
    """Encode one activity; None fields and empty collections are omitted."""
    out: dict[str, Any] = {
        "type": activity.type,
        "from": {
            k: v for k, v in (("id", activity.from_.id), ("name", activity.from_.name))
            if v is not None
        },
    }

    scalars = (
        ("id", activity.id),
        ("text", activity.text),
        ("timestamp", activity.timestamp),
        ("locale", activity.locale),
        ("textFormat", activity.text_format),
        ("speak", activity.speak),
        ("inputHint", activity.input_hint),
    )
    for key, value in scalars:
        if value is not None:
            out[key] = value

    if activity.attachments:
        out["attachments"] = [
            {
                k: v for k, v in (
                    ("contentType", a.content_type),
                    ("contentUrl", a.content_url),
                    ("name", a.name),
                    ("content", dict(a.content) if a.content is not None else None),
                )
                if v is not None
            }
            for a in activity.attachments
        ]
    if activity.listen_for:
        out["listenFor"] = list(activity.listen_for)
    if activity.suggested_actions is not None:
        out["suggestedActions"] = {"actions": [dict(a) for a in activity.suggested_actions]}
    if activity.entities:
        out["entities"] = [dict(e) for e in activity.entities]
    if activity.value is not None:
        out["value"] = dict(activity.value)

    channel_data = dict(activity.channel_data or {})
    if activity.correlation_id is not None:
        channel_data[CORRELATION_KEY] = activity.correlation_id
    if channel_data:
        out["channelData"] = channel_data

    return out

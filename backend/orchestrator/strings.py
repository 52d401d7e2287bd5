"""
Localized string table handles.

The table contents belong to the presentation layer; the engine only needs
a handle that changes exactly when the locale changes, plus the few strings
it puts into synthetic activities.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping

from constants import DEFAULT_INTERVAL_TEXT
from orchestrator.languages import check_locale


@dataclass(frozen=True)
class StringTable:
    """Immutable string table for one locale group."""
    locale: str
    entries: Mapping[str, str] = field(default_factory=dict)

    def get(self, key: str, default: str | None = None) -> str | None:
        return self.entries.get(key, default)


_EN = MappingProxyType({
    "config": "Configs",
    "alwaysSpeak": "always speak",
    "autoListenAfterSpeak": "auto listen after speak",
    "timeInterval": "time interval (s)",
    "close": "close",
    "retry": "retry",
    "waitingInterval": DEFAULT_INTERVAL_TEXT,
    "timeoutAlert": "The other side has not replied yet. Please wait a moment.",
})

_JA = MappingProxyType({
    **_EN,
    "config": "設定",
    "close": "閉じる",
    "retry": "再送信",
    "waitingInterval": "次のメッセージを待っています",
    "timeoutAlert": "まだ返信がありません。しばらくお待ちください。",
})

_ZH = MappingProxyType({
    **_EN,
    "config": "设置",
    "close": "关闭",
    "retry": "重试",
    "waitingInterval": "正在等待下一条消息",
    "timeoutAlert": "对方尚未回复，请稍候。",
})

_TABLES: tuple[tuple[str, Mapping[str, str]], ...] = (
    ("en-US", _EN),
    ("ja-JP", _JA),
    ("zh", _ZH),
)

default_strings = StringTable(locale="en-US", entries=_EN)


def strings_for(locale: str | None) -> StringTable:
    """Resolve the table for locale; English when no group matches."""
    for table_locale, entries in _TABLES:
        if locale == table_locale or check_locale(table_locale, locale):
            return StringTable(locale=table_locale, entries=entries)
    return default_strings

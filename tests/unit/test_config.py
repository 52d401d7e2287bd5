# pylint: disable=missing-module-docstring,missing-function-docstring
import pytest

from config import AppConfig
from constants import DEFAULT_LOCALE, DEFAULT_OFFLINE_ALERT_TIMEOUT_S, DEFAULT_WAIT_INTERVAL_S


_VARS = (
    "ENV",
    "ENABLE_JSON_LOGS",
    "DEFAULT_LOCALE",
    "ALWAYS_SPEAK",
    "AUTO_LISTEN_AFTER_SPEAK",
    "WAIT_INTERVAL_S",
    "OFFLINE_ALERT_TIMEOUT_S",
    "WAITING_MESSAGE_TYPE",
    "WAITING_MESSAGE_CONTENT",
    "POST_RESULT_TIMEOUT_S",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in _VARS:
        monkeypatch.delenv(name, raising=False)


def test_defaults_without_environment() -> None:
    config = AppConfig.load_from_env()

    assert config.env == "dev"
    assert config.enable_json_logs is True
    assert config.default_locale == DEFAULT_LOCALE
    assert config.wait_interval_s == DEFAULT_WAIT_INTERVAL_S
    assert config.offline_alert_timeout_s == DEFAULT_OFFLINE_ALERT_TIMEOUT_S
    assert config.waiting_message_type is None


def test_environment_overrides(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("ENABLE_JSON_LOGS", "0")
    monkeypatch.setenv("DEFAULT_LOCALE", "ja-JP")
    monkeypatch.setenv("ALWAYS_SPEAK", "true")
    monkeypatch.setenv("WAIT_INTERVAL_S", "25")
    monkeypatch.setenv("WAITING_MESSAGE_TYPE", "message")
    monkeypatch.setenv("WAITING_MESSAGE_CONTENT", "One moment")
    monkeypatch.setenv("POST_RESULT_TIMEOUT_S", "2.5")

    config = AppConfig.load_from_env()

    assert config.enable_json_logs is False
    assert config.default_locale == "ja-JP"
    assert config.always_speak is True
    assert config.auto_listen_after_speak is False
    assert config.wait_interval_s == 25
    assert (config.waiting_message_type, config.waiting_message_content) == ("message", "One moment")
    assert config.post_result_timeout_s == 2.5


def test_non_numeric_interval_is_rejected(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("WAIT_INTERVAL_S", "soon")

    with pytest.raises(ValueError):
        AppConfig.load_from_env()

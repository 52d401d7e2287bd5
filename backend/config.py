"""
Application configuration.

Responsibilities:
- Load deployment-specific configuration
- Read environment variables
- Provide a typed, immutable config object

Non-responsibilities:
- No orchestration logic
- No protocol constants (see constants.py)
- No runtime mutation
"""

from __future__ import annotations

import os
from dataclasses import dataclass

from constants import (
    DEFAULT_LOCALE,
    DEFAULT_OFFLINE_ALERT_TIMEOUT_S,
    DEFAULT_POST_RESULT_TIMEOUT_S,
    DEFAULT_WAIT_INTERVAL_S,
)


def _env_bool(name: str, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class AppConfig:
    """
    Immutable application configuration.

    Constructed once at process startup.
    Passed downward to the gateway, which seeds every new session with it.
    """

    # ------------------------------------------------------------------
    # Environment
    # ------------------------------------------------------------------

    env: str = "dev"
    log_level: str = "INFO"

    # ------------------------------------------------------------------
    # Observability
    # ------------------------------------------------------------------

    enable_json_logs: bool = True

    # ------------------------------------------------------------------
    # Session defaults
    # ------------------------------------------------------------------

    default_locale: str = DEFAULT_LOCALE
    always_speak: bool = False
    auto_listen_after_speak: bool = False

    # ------------------------------------------------------------------
    # Waiting / idle interval / offline alert
    # ------------------------------------------------------------------

    wait_interval_s: int = DEFAULT_WAIT_INTERVAL_S
    offline_alert_timeout_s: int = DEFAULT_OFFLINE_ALERT_TIMEOUT_S
    waiting_message_type: str | None = None
    waiting_message_content: str | None = None

    # ------------------------------------------------------------------
    # Bridged transport
    # ------------------------------------------------------------------

    post_result_timeout_s: float = DEFAULT_POST_RESULT_TIMEOUT_S

    # ------------------------------------------------------------------
    # Factory
    # ------------------------------------------------------------------

    @staticmethod
    def load_from_env() -> AppConfig:
        """
        Load configuration from environment variables.

        Raises:
            ValueError if a numeric variable is not a number.
        """
        return AppConfig(
            env=os.environ.get("ENV", "dev"),
            log_level=os.environ.get("LOG_LEVEL", "INFO"),

            enable_json_logs=os.environ.get("ENABLE_JSON_LOGS", "1") == "1",

            default_locale=os.environ.get("DEFAULT_LOCALE", DEFAULT_LOCALE),
            always_speak=_env_bool("ALWAYS_SPEAK", False),
            auto_listen_after_speak=_env_bool("AUTO_LISTEN_AFTER_SPEAK", False),

            wait_interval_s=int(os.environ.get("WAIT_INTERVAL_S", DEFAULT_WAIT_INTERVAL_S)),
            offline_alert_timeout_s=int(
                os.environ.get("OFFLINE_ALERT_TIMEOUT_S", DEFAULT_OFFLINE_ALERT_TIMEOUT_S)
            ),
            waiting_message_type=os.environ.get("WAITING_MESSAGE_TYPE") or None,
            waiting_message_content=os.environ.get("WAITING_MESSAGE_CONTENT") or None,

            post_result_timeout_s=float(
                os.environ.get("POST_RESULT_TIMEOUT_S", DEFAULT_POST_RESULT_TIMEOUT_S)
            ),
        )

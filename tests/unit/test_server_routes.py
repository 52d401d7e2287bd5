# pylint: disable=missing-module-docstring,missing-function-docstring
from typing import Any

import pytest
from fastapi.testclient import TestClient

from config import AppConfig
from observability import logger
from server.app import create_app


@pytest.fixture
def client(monkeypatch: pytest.MonkeyPatch) -> TestClient:
    # create_app flips the process-wide switch; restore it afterwards
    monkeypatch.setattr(logger, "_enabled", logger.is_enabled())
    return TestClient(create_app(AppConfig(enable_json_logs=False, offline_alert_timeout_s=0)))


def _receive_until(ws: Any, predicate: Any, limit: int = 50) -> dict[str, Any]:
    for _ in range(limit):
        msg = ws.receive_json()
        if predicate(msg):
            return msg
    raise AssertionError("expected message never arrived")


def test_health(client: TestClient) -> None:
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_create_app_applies_log_switch(client: TestClient) -> None:
    assert client.app.state.config.enable_json_logs is False  # type: ignore[attr-defined]
    assert logger.is_enabled() is False


def test_websocket_session(client: TestClient) -> None:
    with client.websocket_connect("/ws") as ws:
        init = ws.receive_json()
        assert init["type"] == "SESSION_INIT"
        assert init["state"]["connection_status"] == "ONLINE"

        ws.send_json({"type": "TOGGLE_MENU"})
        pushed = _receive_until(ws, lambda m: m.get("action") == "Toggle_Menu")
        assert pushed["state"]["show_menu"] is True

        ws.send_json({"type": "SEND_MESSAGE", "text": "hi"})
        post = _receive_until(ws, lambda m: m["type"] == "POST_ACTIVITY")
        assert post["activity"]["text"] == "hi"

        ws.send_json({"type": "POST_RESULT", "request_id": post["request_id"], "id": "srv-1"})
        acked = _receive_until(ws, lambda m: m.get("action") == "Send_Message_Succeed")
        assert acked["state"]["activities"][0]["id"] == "srv-1"


def test_websocket_rejects_invalid_message(client: TestClient) -> None:
    with client.websocket_connect("/ws") as ws:
        ws.receive_json()
        ws.send_json({"type": "CHANGE_LANGUAGE"})

        error = _receive_until(ws, lambda m: m["type"] == "ERROR")

    assert error == {"type": "ERROR", "msg_type": "CHANGE_LANGUAGE", "error": "language required"}

"""
Route registration for the chat session API.

Responsibilities:
- Define HTTP and WebSocket endpoints
- Wire gateway to WebSocket lifecycle
- Pump the gateway outbox (state pushes, transport requests) to the socket
- Pull dependencies from app.state
"""

from __future__ import annotations

import asyncio
import contextlib
import json

from fastapi import FastAPI, WebSocket, WebSocketDisconnect

from observability.logger import log_event
from session.gateway import ChatGateway, GatewayResult


def register_routes(app: FastAPI) -> None:
    """Register all routes on the FastAPI app."""
    @app.get("/health")
    async def health() -> dict[str, str]: # pyright: ignore[reportUnusedFunction]
        return {"status": "ok"}

    @app.websocket("/ws")
    async def websocket_endpoint(ws: WebSocket) -> None: # pyright: ignore[reportUnusedFunction]
        await ws.accept()

        gateway = ChatGateway(config=app.state.config)
        writer: asyncio.Task[None] | None = None

        try:
            result = await gateway.on_ws_connect()
            await _flush_gateway_result(ws, result)

            writer = asyncio.create_task(_pump_outbox(ws, gateway))

            while True:
                text = await ws.receive_text()
                result = await gateway.on_json_message(text)
                await _flush_gateway_result(ws, result)

        except WebSocketDisconnect:
            await gateway.on_ws_disconnect(reason="client_disconnect")

        except Exception as exc:  # pylint: disable=broad-exception-caught
            log_event({
                "event_type": "WS_FATAL_ERROR",
                "session_id": gateway.session.session_id if gateway.session else None,
                "exception": type(exc).__name__,
                "message": str(exc),
            })
            await gateway.on_ws_disconnect(reason="server_error")

        finally:
            if writer is not None:
                writer.cancel()
                with contextlib.suppress(asyncio.CancelledError):
                    await writer


async def _pump_outbox(ws: WebSocket, gateway: ChatGateway) -> None:
    while True:
        msg = await gateway.next_outbound()
        await ws.send_text(json.dumps(msg))


async def _flush_gateway_result(
    ws: WebSocket,
    result: GatewayResult,
) -> None:
    for msg in result.outbound_json:
        await ws.send_text(json.dumps(msg))

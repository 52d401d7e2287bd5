"""
Transport bridged over the client WebSocket.

The browser side owns the real connection to the conversational peer. A
post() becomes a POST_ACTIVITY message to the client; the client answers
with POST_RESULT carrying the same request_id and either the server id or
an error.

    S2C: {"type": "POST_ACTIVITY", "request_id": "...", "activity": {...}}
    C2S: {"type": "POST_RESULT", "request_id": "...", "id": "srv-1"}
    C2S: {"type": "POST_RESULT", "request_id": "...", "error": "..."}

A missing answer within timeout_s is a failure.
"""

from __future__ import annotations

import asyncio
from typing import Any, Callable
from uuid import uuid4

from adapters.transport.base import Transport, TransportError
from observability.logger import log_event
from orchestrator.activity import Activity
from protocol.activity_json import activity_to_dict
from constants import DEFAULT_POST_RESULT_TIMEOUT_S


SendJson = Callable[[dict[str, Any]], None]


class BridgedTransport(Transport):
    """Request / response bridge between post() and the client socket."""

    def __init__(
        self,
        *,
        send_json: SendJson,
        timeout_s: float = DEFAULT_POST_RESULT_TIMEOUT_S,
        session_id: str | None = None,
    ) -> None:
        self._send_json = send_json
        self._timeout_s = timeout_s
        self._session_id = session_id
        self._pending: dict[str, asyncio.Future[str]] = {}
        self._closed = False

    @property
    def pending(self) -> int:
        return len(self._pending)

    async def post(self, activity: Activity) -> str:
        if self._closed:
            raise TransportError("transport closed")

        request_id = f"req_{uuid4().hex[:12]}"
        future: asyncio.Future[str] = asyncio.get_running_loop().create_future()
        self._pending[request_id] = future

        try:
            self._send_json({
                "type": "POST_ACTIVITY",
                "request_id": request_id,
                "activity": activity_to_dict(activity),
            })
            return await asyncio.wait_for(future, timeout=self._timeout_s)
        except asyncio.TimeoutError as exc:
            raise TransportError(f"no POST_RESULT within {self._timeout_s}s") from exc
        finally:
            self._pending.pop(request_id, None)

    def resolve(
        self,
        request_id: str,
        *,
        server_id: str | int | None = None,
        error: str | None = None,
    ) -> bool:
        """
        Complete a pending post.

        Numeric ids are normalized to strings; any other non-string id
        fails the post. Returns False for unknown or already completed
        requests.
        """
        future = self._pending.get(request_id)
        if future is None or future.done():
            log_event({
                "event_type": "POST_RESULT_UNKNOWN_REQUEST",
                "session_id": self._session_id,
                "request_id": request_id,
            })
            return False

        if error is not None:
            future.set_exception(TransportError(str(error)))
        elif isinstance(server_id, bool) or not isinstance(server_id, (str, int)) or server_id == "":
            future.set_exception(TransportError(f"post rejected without a valid id: {server_id!r}"))
        else:
            future.set_result(str(server_id))
        return True

    def close(self) -> None:
        """Fail every pending post; later posts fail immediately."""
        self._closed = True
        for future in self._pending.values():
            if not future.done():
                future.set_exception(TransportError("transport closed"))
        self._pending.clear()

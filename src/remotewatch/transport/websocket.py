"""WebSocket connections exposed as event sources.

WebSocketServer accepts ASGI websockets (from the FastAPI route) and emits
"connection" once the handshake completes. Each WebSocketConnection emits
"message" for every inbound frame and "close" exactly once.
"""

from __future__ import annotations

import contextlib
from typing import TYPE_CHECKING

from starlette.websockets import WebSocketDisconnect, WebSocketState

from remotewatch.core.subscriptions import EventSource
from remotewatch.logging import TRACE, get_logger

if TYPE_CHECKING:
    from fastapi import WebSocket

log = get_logger("transport")


class WebSocketConnection(EventSource):
    """One accepted websocket."""

    def __init__(self, websocket: WebSocket) -> None:
        super().__init__()
        self._websocket = websocket
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def remote(self) -> str:
        client = self._websocket.client
        return f"{client.host}:{client.port}" if client else "unknown"

    async def send(self, payload: str) -> None:
        """Send a text frame; a no-op once the connection is closed."""
        if self._closed or self._websocket.application_state != WebSocketState.CONNECTED:
            return
        log.log(TRACE, "-> %s %s", self.remote, payload)
        try:
            await self._websocket.send_text(payload)
        except Exception as e:
            log.debug("Send to %s failed: %s", self.remote, e)

    async def close(self, code: int = 1000, reason: str = "") -> None:
        if self._closed:
            return
        with contextlib.suppress(Exception):
            await self._websocket.close(code=code, reason=reason)

    def mark_closed(self) -> None:
        """Record the disconnect and emit "close" once."""
        if self._closed:
            return
        self._closed = True
        self.emit("close")


class WebSocketServer(EventSource):
    """Accepts websockets and tracks the live connections."""

    def __init__(self) -> None:
        super().__init__()
        self._connections: set[WebSocketConnection] = set()

    @property
    def connection_count(self) -> int:
        return len(self._connections)

    async def handle(self, websocket: WebSocket) -> None:
        """Serve one websocket until it disconnects."""
        await websocket.accept()
        connection = WebSocketConnection(websocket)
        self._connections.add(connection)
        log.debug("Websocket connected from %s", connection.remote)
        self.emit("connection", connection)

        try:
            while True:
                message = await websocket.receive()
                if message["type"] == "websocket.disconnect":
                    break
                data = message.get("text")
                if data is None:
                    data = message.get("bytes")
                if data is not None:
                    log.log(TRACE, "<- %s %r", connection.remote, data)
                    connection.emit("message", data)
        except WebSocketDisconnect:
            log.debug("Websocket from %s dropped", connection.remote)
        finally:
            self._connections.discard(connection)
            connection.mark_closed()
            log.debug("Websocket from %s closed", connection.remote)

    async def close_all(self, reason: str = "Server shutting down") -> None:
        """Close every open connection (1001 going away)."""
        connections = list(self._connections)
        for connection in connections:
            await connection.close(code=1001, reason=reason)
        log.info("Closed %d connections", len(connections))

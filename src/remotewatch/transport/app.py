"""FastAPI application exposing the websocket endpoint."""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any

from fastapi import FastAPI, WebSocket

from remotewatch import __version__
from remotewatch.config.schema import DEFAULT_WS_PATH
from remotewatch.transport.websocket import WebSocketServer

log = logging.getLogger(__name__)


def create_app(
    ws_server: WebSocketServer,
    path: str = DEFAULT_WS_PATH,
    status: Callable[[], dict[str, Any]] | None = None,
) -> FastAPI:
    """Create the application serving ws_server at path.

    Args:
        ws_server: Receives every accepted websocket.
        path: URL path of the websocket endpoint.
        status: Optional extra fields for GET /status.
    """
    app = FastAPI(
        title="remotewatch",
        description="Filesystem change notifications over WebSocket",
        version=__version__,
    )

    @app.websocket(path)
    async def websocket_endpoint(websocket: WebSocket) -> None:
        await ws_server.handle(websocket)

    @app.get("/status")
    async def api_status() -> dict[str, Any]:
        """Health check with the number of open connections."""
        result: dict[str, Any] = {
            "status": "ok",
            "connections": ws_server.connection_count,
        }
        if status is not None:
            result.update(status())
        return result

    return app

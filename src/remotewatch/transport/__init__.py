"""WebSocket transport: FastAPI route plus connection event sources."""

from remotewatch.transport.app import create_app
from remotewatch.transport.websocket import WebSocketConnection, WebSocketServer

__all__ = [
    "WebSocketConnection",
    "WebSocketServer",
    "create_app",
]

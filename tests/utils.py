"""Shared fakes for remotewatch tests."""

from __future__ import annotations

import asyncio
import json
from collections.abc import Awaitable, Callable
from typing import Any

from remotewatch.core.events import WatchEvent, WatchEventKind
from remotewatch.core.subscriptions import EventSource


class FakeConnection(EventSource):
    """In-memory duplex connection."""

    def __init__(self, should_fail: bool = False) -> None:
        super().__init__()
        self.should_fail = should_fail
        self.sent: list[str] = []

    async def send(self, payload: str) -> None:
        if self.should_fail:
            raise ConnectionError("connection reset")
        self.sent.append(payload)

    @property
    def messages(self) -> list[dict[str, Any]]:
        return [json.loads(payload) for payload in self.sent]

    def receive(self, data: str | dict[str, Any]) -> None:
        """Simulate an inbound frame."""
        self.emit("message", data if isinstance(data, str) else json.dumps(data))

    def close(self) -> None:
        self.emit("close")


class FakeConnectionServer(EventSource):
    """Emits "connection" for fake connections on demand."""

    def connect(self, count: int = 1, **kwargs: Any) -> list[FakeConnection]:
        connections = [FakeConnection(**kwargs) for _ in range(count)]
        for connection in connections:
            self.emit("connection", connection)
        return connections


class FakeWatcher(EventSource):
    """Records add/unwatch calls and emits WatchEvents on demand."""

    def __init__(self) -> None:
        super().__init__()
        self.added: list[list[str]] = []
        self.unwatched: list[list[str]] = []

    def add(self, paths: list[str]) -> None:
        self.added.append(list(paths))

    def unwatch(self, paths: list[str]) -> None:
        self.unwatched.append(list(paths))

    def fire(self, kind: WatchEventKind, path: str) -> None:
        self.emit(kind.value, WatchEvent(kind, path))


def make_reader(
    files: dict[str, str],
    gates: dict[str, asyncio.Event] | None = None,
) -> tuple[Callable[[str], Awaitable[str]], list[str]]:
    """Build an in-memory content reader.

    Returns:
        The reader coroutine function and the list of paths it was asked for.
    """
    calls: list[str] = []
    gates = gates or {}

    async def read(path: str) -> str:
        calls.append(path)
        gate = gates.get(path)
        if gate is not None:
            await gate.wait()
        if path not in files:
            raise FileNotFoundError(path)
        return files[path]

    return read, calls

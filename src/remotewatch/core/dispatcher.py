"""Fan-out of watcher events to every connected client.

The dispatcher owns the process-wide default settings. For each watcher
event it optionally reads the file once, then renders one payload per
client according to that client's effective settings and sends it.

Delivery tasks are chained so that every client sees events in the order
the watcher emitted them, while the file reads of consecutive events may
still overlap.
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import TYPE_CHECKING

from remotewatch.core.events import WatchEvent, WatchEventKind
from remotewatch.core.messages import encode_broadcast
from remotewatch.core.paths import rewrite_path
from remotewatch.core.settings import ClientSettings, EffectiveSettings
from remotewatch.logging import VERBOSE

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from remotewatch.core.registry import Client, ClientRegistry

    ContentReader = Callable[[str], Awaitable[str]]

_CONTENT_KINDS = frozenset(kind.value for kind in WatchEventKind if kind.carries_contents)


async def read_text_contents(path: str) -> str:
    """Read a file off the event loop and decode it as UTF-8."""
    data = await asyncio.to_thread(Path(path).read_bytes)
    return data.decode("utf-8", errors="replace")


class EventDispatcher:
    """Turns watcher events into per-client broadcast payloads.

    Args:
        registry: The client registry to deliver to.
        defaults: Process-wide settings used for every unset client field.
        logger: Diagnostics sink; defaults to the package logger.
        read_file: Coroutine used to load file contents.
    """

    def __init__(
        self,
        registry: ClientRegistry,
        defaults: EffectiveSettings,
        logger: logging.Logger | None = None,
        read_file: ContentReader | None = None,
    ) -> None:
        self._registry = registry
        self._defaults = defaults
        self._log = logger or logging.getLogger("remotewatch.dispatch")
        self._read_file = read_file or read_text_contents
        self._tail: asyncio.Task[None] | None = None
        self._pending: set[asyncio.Task[None]] = set()

    @property
    def defaults(self) -> EffectiveSettings:
        return self._defaults

    def set_defaults(self, patch: ClientSettings) -> EffectiveSettings:
        """Override some process-wide defaults at runtime."""
        self._defaults = patch.resolve(self._defaults)
        self._log.info(
            "Default settings: base_path=%s relative_paths=%s with_contents=%s",
            self._defaults.base_path,
            self._defaults.relative_paths,
            self._defaults.with_contents,
        )
        return self._defaults

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    def needs_contents(self) -> bool:
        """True if the defaults or any registered client want file contents."""
        if self._defaults.with_contents:
            return True
        return any(
            client.settings.resolve(self._defaults).with_contents
            for client in self._registry.clients()
        )

    def on_watch_event(self, event: WatchEvent) -> asyncio.Task[None]:
        """Accept one watcher event and schedule its delivery.

        Must be called from the event loop thread.
        """
        self._log.debug("%s %s", event.kind.value, event.path)

        read_task: asyncio.Task[str | None] | None = None
        if event.kind.carries_contents and self.needs_contents():
            read_task = asyncio.create_task(self._load_contents(event.path))

        task = asyncio.create_task(self._deliver(event, read_task, self._tail))
        self._tail = task
        self._pending.add(task)
        task.add_done_callback(self._on_delivery_done)
        return task

    async def drain(self) -> None:
        """Wait until every scheduled delivery has finished."""
        while self._pending:
            await asyncio.wait(list(self._pending))

    async def broadcast(
        self,
        kind: WatchEventKind | str,
        path: str,
        contents: str | None = None,
    ) -> int:
        """Send one tailored payload per registered client.

        Clients that want contents for an added/changed event are skipped
        when contents is None.

        Returns:
            Number of clients the payload was delivered to.
        """
        event_name = kind.value if isinstance(kind, WatchEventKind) else str(kind)

        # Snapshot and render synchronously; only the sends may suspend
        deliveries: list[tuple[Client, str]] = []
        for client in self._registry.clients():
            payload = self._render(client, event_name, path, contents)
            if payload is not None:
                deliveries.append((client, payload))

        if not deliveries:
            return 0

        results = await asyncio.gather(
            *(self._send(client, payload) for client, payload in deliveries)
        )
        delivered = sum(results)
        self._log.log(VERBOSE, "%s %s delivered to %d clients", event_name, path, delivered)
        return delivered

    def _render(
        self,
        client: Client,
        event_name: str,
        path: str,
        contents: str | None,
    ) -> str | None:
        settings = client.settings.resolve(self._defaults)

        if settings.with_contents and contents is None and event_name in _CONTENT_KINDS:
            self._log.debug("Skipping client %d: no contents for %s", client.id, path)
            return None

        try:
            client_path = rewrite_path(path, settings.base_path, settings.relative_paths)
        except ValueError as e:
            self._log.warning(
                "Cannot make %s relative to %s for client %d: %s",
                path,
                settings.base_path,
                client.id,
                e,
            )
            return None

        return encode_broadcast(
            event_name,
            client_path,
            contents if settings.with_contents else None,
        )

    async def _send(self, client: Client, payload: str) -> bool:
        if client.id not in self._registry:
            return False
        try:
            await client.connection.send(payload)
        except Exception as e:
            self._log.debug("Send to client %d failed: %s", client.id, e)
            return False
        return True

    async def _load_contents(self, path: str) -> str | None:
        try:
            return await self._read_file(path)
        except OSError as e:
            self._log.warning("Failed to read %s: %s", path, e)
            return None

    async def _deliver(
        self,
        event: WatchEvent,
        read_task: asyncio.Task[str | None] | None,
        previous: asyncio.Task[None] | None,
    ) -> None:
        if previous is not None and not previous.done():
            await asyncio.wait([previous])

        contents: str | None = None
        if read_task is not None:
            contents = await read_task
        elif event.kind.carries_contents and self.needs_contents():
            # A client asked for contents after the event arrived
            contents = await self._load_contents(event.path)

        await self.broadcast(event.kind, event.path, contents)

    def _on_delivery_done(self, task: asyncio.Task[None]) -> None:
        self._pending.discard(task)
        if self._tail is task:
            self._tail = None
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            self._log.error("Event delivery failed: %s", exc, exc_info=exc)

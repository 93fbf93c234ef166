"""Start/stop lifecycle binding the core to its collaborators.

WatchServer subscribes to the connection server and to each watcher event
kind on run(), and removes exactly those subscriptions on stop(), so a
server can be cycled run -> stop -> run without leaking listeners.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from typing import TYPE_CHECKING, Protocol

from remotewatch.config.schema import SettingsConfig
from remotewatch.core.dispatcher import EventDispatcher
from remotewatch.core.events import WatchEvent, WatchEventKind
from remotewatch.core.protocol import SettingsProtocol
from remotewatch.core.registry import ClientRegistry
from remotewatch.core.settings import ClientSettings, EffectiveSettings

if TYPE_CHECKING:
    from remotewatch.core.dispatcher import ContentReader
    from remotewatch.core.registry import Client, Connection
    from remotewatch.core.subscriptions import Listener, Subscription

CONNECTION_EVENT = "connection"
MESSAGE_EVENT = "message"
CLOSE_EVENT = "close"


class ServerStateError(RuntimeError):
    """Raised on run() while running or stop() while stopped."""


class Watcher(Protocol):
    """Filesystem watcher as consumed by the server."""

    def on(self, event: str, listener: Listener) -> Subscription: ...

    def add(self, paths: Sequence[str]) -> None: ...

    def unwatch(self, paths: Sequence[str]) -> None: ...


class ConnectionServer(Protocol):
    """Connection acceptor as consumed by the server."""

    def on(self, event: str, listener: Listener) -> Subscription: ...


class WatchServer:
    """Broadcasts watcher events to every connected client.

    Example:
        server = WatchServer(["src"], ws_server, watcher)
        server.run()
        ...
        server.stop()

    Args:
        paths: Paths registered with the watcher on run().
        connection_server: Emits "connection" with a Connection.
        watcher: Emits one event per WatchEventKind value with a WatchEvent.
        defaults: Process-wide delivery settings.
        logger: Diagnostics sink shared by the core components.
        read_file: Override for loading file contents.
    """

    def __init__(
        self,
        paths: Iterable[str] | None,
        connection_server: ConnectionServer,
        watcher: Watcher,
        defaults: EffectiveSettings | None = None,
        logger: logging.Logger | None = None,
        read_file: ContentReader | None = None,
    ) -> None:
        self._paths = list(paths or [])
        self._connections = connection_server
        self._watcher = watcher
        self._log = logger or logging.getLogger("remotewatch.server")

        if defaults is None:
            defaults = EffectiveSettings.from_config(SettingsConfig())
        self.registry = ClientRegistry()
        self.dispatcher = EventDispatcher(
            self.registry,
            defaults,
            logger=logger,
            read_file=read_file,
        )
        self.protocol = SettingsProtocol(
            self.registry,
            lambda: self.dispatcher.defaults,
            logger=logger,
        )

        self._running = False
        self._subscriptions: list[Subscription] = []

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def paths(self) -> list[str]:
        return list(self._paths)

    @property
    def connection_server(self) -> ConnectionServer:
        return self._connections

    @property
    def watcher(self) -> Watcher:
        return self._watcher

    @property
    def settings(self) -> EffectiveSettings:
        """Current process-wide defaults."""
        return self.dispatcher.defaults

    def set_settings(
        self,
        base_path: str | None = None,
        relative_paths: bool | None = None,
        with_contents: bool | None = None,
    ) -> EffectiveSettings:
        """Change process-wide defaults; None leaves a field as is."""
        return self.dispatcher.set_defaults(
            ClientSettings(
                base_path=base_path,
                relative_paths=relative_paths,
                with_contents=with_contents,
            )
        )

    def run(self) -> WatchServer:
        """Start listening for connections and watcher events.

        Raises:
            ServerStateError: If the server is already running.
        """
        if self._running:
            raise ServerStateError("Hot module replacement server is already running")

        subscriptions = [self._connections.on(CONNECTION_EVENT, self._on_connection)]
        for kind in WatchEventKind:
            subscriptions.append(self._watcher.on(kind.value, self._on_watch_event))

        try:
            if self._paths:
                self._watcher.add(self._paths)
        except Exception:
            for subscription in subscriptions:
                subscription.cancel()
            raise

        self._subscriptions = subscriptions
        self._running = True
        self._log.info("Watching %s", ", ".join(self._paths) or "(no paths)")
        return self

    def stop(self) -> WatchServer:
        """Remove every listener installed by run() and unwatch the paths.

        In-flight deliveries are not cancelled.

        Raises:
            ServerStateError: If the server is not running.
        """
        if not self._running:
            raise ServerStateError("Hot module replacement server is not running")

        for subscription in self._subscriptions:
            subscription.cancel()
        self._subscriptions = []

        if self._paths:
            self._watcher.unwatch(self._paths)

        self._running = False
        self._log.info("Stopped watching")
        return self

    async def broadcast(self, kind: WatchEventKind | str, path: str, contents: str | None = None) -> int:
        return await self.dispatcher.broadcast(kind, path, contents)

    async def drain(self) -> None:
        """Wait for in-flight deliveries and settings acknowledgements."""
        await self.dispatcher.drain()
        await self.protocol.drain()

    def _on_watch_event(self, event: WatchEvent) -> None:
        if not self._running:
            return
        self.dispatcher.on_watch_event(event)

    def _on_connection(self, connection: Connection) -> None:
        if not self._running:
            return

        client = self.registry.register(connection)
        client_subscriptions: list[Subscription] = []

        def on_message(raw: str | bytes) -> None:
            self.protocol.handle_message(client, raw)

        def on_close(*_: object) -> None:
            self._on_close(client, client_subscriptions)

        client_subscriptions.append(connection.on(MESSAGE_EVENT, on_message))
        client_subscriptions.append(connection.on(CLOSE_EVENT, on_close))
        self._log.info("Client %d connected", client.id)

    def _on_close(self, client: Client, subscriptions: list[Subscription]) -> None:
        self.registry.unregister(client.id)
        for subscription in subscriptions:
            subscription.cancel()
        self._log.info("Client %d disconnected", client.id)

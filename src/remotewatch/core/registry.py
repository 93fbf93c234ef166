"""Registry of connected clients and their negotiated settings."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterator
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Protocol

from remotewatch.core.settings import ClientSettings, EffectiveSettings

if TYPE_CHECKING:
    from remotewatch.core.subscriptions import Listener, Subscription

log = logging.getLogger("remotewatch.clients")


class Connection(Protocol):
    """What the core needs from one duplex client connection."""

    async def send(self, payload: str) -> None: ...

    def on(self, event: str, listener: Listener) -> Subscription: ...


@dataclass
class Client:
    """One live connection plus the settings it negotiated."""

    id: int
    connection: Connection
    settings: ClientSettings = field(default_factory=ClientSettings)


class ClientRegistry:
    """Tracks connected clients keyed by a process-unique id.

    Ids increase monotonically and are never reused by the same registry,
    even after the client disconnects. All methods are synchronous so that
    the registry is never observed half-updated across an await.
    """

    def __init__(self) -> None:
        self._clients: dict[int, Client] = {}
        self._last_id = 0

    def register(self, connection: Connection) -> Client:
        """Create a client for a freshly accepted connection."""
        self._last_id += 1
        client = Client(id=self._last_id, connection=connection)
        self._clients[client.id] = client
        log.debug("Client %d connected (%d total)", client.id, len(self._clients))
        return client

    def unregister(self, client_id: int) -> None:
        """Remove a client; unknown ids are ignored."""
        if self._clients.pop(client_id, None) is not None:
            log.debug("Client %d disconnected (%d left)", client_id, len(self._clients))

    def get(self, client_id: int) -> Client | None:
        return self._clients.get(client_id)

    def clients(self) -> list[Client]:
        """Snapshot of the currently registered clients."""
        return list(self._clients.values())

    def for_each(self, fn: Callable[[Client], object]) -> None:
        """Call fn once per client in a snapshot of the registry."""
        for client in self.clients():
            fn(client)

    def update_settings(self, client_id: int, patch: ClientSettings) -> ClientSettings | None:
        """Merge patch into a client's settings.

        Returns:
            The client's new settings, or None if the client is gone.
        """
        client = self._clients.get(client_id)
        if client is None:
            return None
        client.settings = client.settings.merged(patch)
        return client.settings

    def effective_settings(
        self, client_id: int, defaults: EffectiveSettings
    ) -> EffectiveSettings | None:
        client = self._clients.get(client_id)
        if client is None:
            return None
        return client.settings.resolve(defaults)

    def __len__(self) -> int:
        return len(self._clients)

    def __contains__(self, client_id: object) -> bool:
        return client_id in self._clients

    def __iter__(self) -> Iterator[Client]:
        return iter(self.clients())

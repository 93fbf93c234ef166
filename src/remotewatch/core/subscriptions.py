"""Listener registration with explicit, cancellable handles.

Every collaborator that emits events (the file watcher, the websocket
server, each websocket connection) derives from EventSource. Subscribing
returns a Subscription which is the only way to remove that listener, so
callers never need to keep the original callback around.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any

log = logging.getLogger("remotewatch.events")

Listener = Callable[..., Any]


class Subscription:
    """Handle for one installed listener."""

    __slots__ = ("_source", "event", "listener", "_active")

    def __init__(self, source: EventSource, event: str, listener: Listener) -> None:
        self._source = source
        self.event = event
        self.listener = listener
        self._active = True

    @property
    def active(self) -> bool:
        return self._active

    def cancel(self) -> None:
        """Remove the listener. Safe to call more than once."""
        if not self._active:
            return
        self._active = False
        self._source._remove(self)

    def __repr__(self) -> str:
        state = "active" if self._active else "cancelled"
        return f"<Subscription {self.event!r} {state}>"


class EventSource:
    """Minimal synchronous event emitter.

    Listeners run in registration order on the caller's thread. A listener
    that raises is logged and does not prevent the others from running.
    """

    def __init__(self) -> None:
        self._listeners: dict[str, list[Subscription]] = {}

    def on(self, event: str, listener: Listener) -> Subscription:
        """Install a listener and return its handle."""
        subscription = Subscription(self, event, listener)
        self._listeners.setdefault(event, []).append(subscription)
        return subscription

    def listener_count(self, event: str) -> int:
        return len(self._listeners.get(event, ()))

    def emit(self, event: str, *args: Any) -> int:
        """Invoke every listener for event.

        Returns:
            Number of listeners invoked.
        """
        # Copy so listeners may subscribe or cancel while we iterate
        subscriptions = list(self._listeners.get(event, ()))
        for subscription in subscriptions:
            if not subscription.active:
                continue
            try:
                subscription.listener(*args)
            except Exception:
                log.exception("Listener for %r failed", event)
        return len(subscriptions)

    def remove_all_listeners(self) -> None:
        for subscriptions in list(self._listeners.values()):
            for subscription in list(subscriptions):
                subscription.cancel()

    def _remove(self, subscription: Subscription) -> None:
        subscriptions = self._listeners.get(subscription.event)
        if not subscriptions:
            return
        try:
            subscriptions.remove(subscription)
        except ValueError:
            return
        if not subscriptions:
            del self._listeners[subscription.event]

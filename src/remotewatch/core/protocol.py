"""In-band control protocol for per-client settings.

A client sends `{"event": "settings", "settings": {...}}` with any subset of
basePath / relativePaths / withContents. The fields are merged into that
client's own settings and the fully resolved result is sent back on the same
connection. Anything else is logged and dropped; the connection stays open.
"""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import Callable
from typing import TYPE_CHECKING

from pydantic import ValidationError

from remotewatch.core.messages import SETTINGS_EVENT, SettingsRequest, encode_settings_ack

if TYPE_CHECKING:
    from remotewatch.core.registry import Client, ClientRegistry
    from remotewatch.core.settings import EffectiveSettings


class SettingsProtocol:
    """Handles inbound control frames for every connection.

    Args:
        registry: Registry holding the per-client settings.
        defaults: Callable returning the current process-wide defaults.
        logger: Diagnostics sink; defaults to the package logger.
    """

    def __init__(
        self,
        registry: ClientRegistry,
        defaults: Callable[[], EffectiveSettings],
        logger: logging.Logger | None = None,
    ) -> None:
        self._registry = registry
        self._defaults = defaults
        self._log = logger or logging.getLogger("remotewatch.protocol")
        self._pending: set[asyncio.Task[None]] = set()

    def handle_message(self, client: Client, raw: str | bytes) -> asyncio.Task[None] | None:
        """Process one inbound frame from client.

        The settings update happens synchronously; the acknowledgement is
        sent in a background task which is returned.

        Returns:
            The acknowledgement task, or None if the frame was dropped.
        """
        try:
            data = json.loads(raw)
        except ValueError as e:
            self._log.warning("Malformed message from client %d: %s", client.id, e)
            return None

        if not isinstance(data, dict) or data.get("event") != SETTINGS_EVENT:
            self._log.info("Ignoring unrecognized message from client %d: %.200s", client.id, raw)
            return None

        try:
            request = SettingsRequest.model_validate(data)
        except ValidationError as e:
            self._log.warning(
                "Invalid settings from client %d: %s",
                client.id,
                e.errors(include_url=False),
            )
            return None

        if self._registry.update_settings(client.id, request.settings.to_settings()) is None:
            # Client closed while the frame was in flight
            return None

        effective = self._registry.effective_settings(client.id, self._defaults())
        if effective is None:
            return None

        self._log.debug(
            "Client %d settings: base_path=%s relative_paths=%s with_contents=%s",
            client.id,
            effective.base_path,
            effective.relative_paths,
            effective.with_contents,
        )

        task = asyncio.create_task(self._acknowledge(client, encode_settings_ack(effective)))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task

    async def drain(self) -> None:
        """Wait for outstanding acknowledgements."""
        while self._pending:
            await asyncio.wait(list(self._pending))

    async def _acknowledge(self, client: Client, payload: str) -> None:
        try:
            await client.connection.send(payload)
        except Exception as e:
            self._log.debug("Settings acknowledgement to client %d failed: %s", client.id, e)

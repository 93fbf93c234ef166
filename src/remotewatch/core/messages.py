"""Wire message types exchanged with clients.

All frames are JSON text. Outbound broadcast and acknowledgement frames are
rendered by the helpers below; inbound control frames are validated with
pydantic models.
"""

from __future__ import annotations

import json
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

from remotewatch.core.settings import ClientSettings, EffectiveSettings

SETTINGS_EVENT = "settings"


class WireModel(BaseModel):
    """Base model for client frames; strict types, camelCase aliases."""

    model_config = ConfigDict(populate_by_name=True, strict=True)


class SettingsPatch(WireModel):
    """Partial settings sent by a client."""

    base_path: str | None = Field(default=None, alias="basePath")
    relative_paths: bool | None = Field(default=None, alias="relativePaths")
    with_contents: bool | None = Field(default=None, alias="withContents")

    def to_settings(self) -> ClientSettings:
        return ClientSettings(
            base_path=self.base_path,
            relative_paths=self.relative_paths,
            with_contents=self.with_contents,
        )


class SettingsRequest(WireModel):
    """`{"event": "settings", "settings": {...}}` from a client."""

    event: Literal["settings"]
    settings: SettingsPatch = Field(default_factory=SettingsPatch)


def encode_broadcast(event: str, path: str, contents: str | None = None) -> str:
    """Render a change notification frame.

    The contents key is omitted entirely when contents is None.
    """
    payload: dict[str, Any] = {"event": event, "path": path}
    if contents is not None:
        payload["contents"] = contents
    return json.dumps(payload)


def encode_settings_ack(settings: EffectiveSettings) -> str:
    """Render the acknowledgement for a settings request."""
    return json.dumps({"event": SETTINGS_EVENT, "settings": settings.to_wire()})

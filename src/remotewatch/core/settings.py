"""Per-client delivery settings.

A client's settings are partial: any field left as None falls back to the
process-wide default when the effective settings are resolved.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, replace
from typing import Any

from remotewatch.config.schema import SettingsConfig


@dataclass(frozen=True)
class EffectiveSettings:
    """Fully resolved settings; every field is set."""

    base_path: str
    relative_paths: bool
    with_contents: bool

    @classmethod
    def from_config(cls, config: SettingsConfig, cwd: str | None = None) -> EffectiveSettings:
        return cls(
            base_path=config.base_path or cwd or os.getcwd(),
            relative_paths=config.relative_paths,
            with_contents=config.with_contents,
        )

    def to_wire(self) -> dict[str, Any]:
        return {
            "basePath": self.base_path,
            "relativePaths": self.relative_paths,
            "withContents": self.with_contents,
        }


@dataclass(frozen=True)
class ClientSettings:
    """Settings explicitly chosen by one client (None = unset)."""

    base_path: str | None = None
    relative_paths: bool | None = None
    with_contents: bool | None = None

    def merged(self, patch: ClientSettings) -> ClientSettings:
        """Return a copy with every set field of patch applied.

        Fields that are None in patch are left untouched.
        """
        changes = {
            name: value
            for name, value in (
                ("base_path", patch.base_path),
                ("relative_paths", patch.relative_paths),
                ("with_contents", patch.with_contents),
            )
            if value is not None
        }
        return replace(self, **changes) if changes else self

    def resolve(self, defaults: EffectiveSettings) -> EffectiveSettings:
        return EffectiveSettings(
            base_path=self.base_path if self.base_path is not None else defaults.base_path,
            relative_paths=(
                self.relative_paths if self.relative_paths is not None else defaults.relative_paths
            ),
            with_contents=(
                self.with_contents if self.with_contents is not None else defaults.with_contents
            ),
        )

    @property
    def is_empty(self) -> bool:
        return self.base_path is None and self.relative_paths is None and self.with_contents is None

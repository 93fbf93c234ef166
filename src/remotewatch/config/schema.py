"""Configuration schema dataclasses for remotewatch.

Defines the structure of configuration at every level (user, project,
explicit file, environment, command line). The loaded Config is immutable
and passed explicitly to the components that need it, so several servers
can coexist in one process.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 5776
DEFAULT_WS_PATH = "/hmr"


@dataclass(frozen=True)
class ServerConfig:
    """WebSocket listener configuration."""

    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    path: str = DEFAULT_WS_PATH  # URL path of the websocket endpoint


@dataclass(frozen=True)
class WatchConfig:
    """Filesystem watcher configuration.

    Example config.yaml:
        watch:
          paths:
            - src
          ignored:
            - "**/node_modules/**"
          ignore_initial: true
    """

    paths: tuple[str, ...] = ()  # Empty means the current working directory
    ignored: tuple[str, ...] = ()  # fnmatch patterns or path prefixes
    ignore_initial: bool = True  # Suppress the synthetic "added" burst on add()
    recursive: bool = True


@dataclass(frozen=True)
class SettingsConfig:
    """Process-wide delivery defaults.

    Each connected client may override any of these for itself.
    """

    base_path: str | None = None  # None resolves to the cwd at load time
    relative_paths: bool = False
    with_contents: bool = False


@dataclass(frozen=True)
class LoggingConfig:
    """Logging configuration."""

    level: str | None = None  # DEBUG, INFO, WARNING, ERROR
    verbose: int | None = None  # 0-4, takes precedence over level
    file: str | None = None  # Log file path


@dataclass(frozen=True)
class Config:
    """Root configuration object."""

    server: ServerConfig = field(default_factory=ServerConfig)
    watch: WatchConfig = field(default_factory=WatchConfig)
    settings: SettingsConfig = field(default_factory=SettingsConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    # Unknown top-level keys, kept for extensibility
    extra: dict[str, Any] = field(default_factory=dict)

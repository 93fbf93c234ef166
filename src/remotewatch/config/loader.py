"""Configuration file loading.

Handles:
- YAML file parsing
- Environment variable overrides
- Conversion from dict to typed Config dataclass
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any

import yaml

from remotewatch.config.merge import merge_configs
from remotewatch.config.paths import get_config_paths
from remotewatch.config.schema import (
    DEFAULT_HOST,
    DEFAULT_PORT,
    DEFAULT_WS_PATH,
    Config,
    LoggingConfig,
    ServerConfig,
    SettingsConfig,
    WatchConfig,
)

_log = logging.getLogger("remotewatch.config")


class ConfigError(Exception):
    """Raised when a configuration value is missing or invalid."""


def load_yaml_file(path: Path, required: bool = False) -> dict[str, Any]:
    """Load a YAML file, returning empty dict if not found or invalid.

    Args:
        path: Path to the YAML file.
        required: Raise ConfigError instead of skipping missing or broken files.

    Returns:
        Parsed YAML as dict, or empty dict on error.
    """
    if not path.exists():
        if required:
            raise ConfigError(f"Configuration file not found: {path}")
        return {}

    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        if required:
            raise ConfigError(f"Invalid YAML in {path}: {e}") from e
        _log.warning("Invalid YAML in %s: %s", path, e)
        return {}
    except OSError as e:
        if required:
            raise ConfigError(f"Error reading {path}: {e}") from e
        _log.warning("Error reading %s: %s", path, e)
        return {}

    if data is None:
        return {}
    if not isinstance(data, dict):
        if required:
            raise ConfigError(f"Configuration root must be a mapping: {path}")
        _log.warning("Ignoring %s: root is not a mapping", path)
        return {}
    return data


def env_overrides() -> dict[str, Any]:
    """Build config dict from environment variables."""
    overrides: dict[str, Any] = {}

    host = os.environ.get("REMOTEWATCH_HOST")
    if host:
        overrides.setdefault("server", {})["host"] = host

    port = os.environ.get("REMOTEWATCH_PORT")
    if port:
        try:
            overrides.setdefault("server", {})["port"] = int(port)
        except ValueError as e:
            raise ConfigError(f"REMOTEWATCH_PORT must be an integer, got {port!r}") from e

    log_path = os.environ.get("REMOTEWATCH_LOG")
    if log_path:
        overrides.setdefault("logging", {})["file"] = log_path

    return overrides


def _section(data: dict[str, Any], name: str) -> dict[str, Any]:
    value = data.get(name)
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ConfigError(f"'{name}' section must be a mapping")
    return value


def _get_str(section: dict[str, Any], key: str, field_name: str, default: str | None) -> str | None:
    value = section.get(key, default)
    if value is not None and not isinstance(value, str):
        raise ConfigError(f"{field_name} must be a string")
    return value


def _get_bool(section: dict[str, Any], key: str, field_name: str, default: bool) -> bool:
    value = section.get(key, default)
    if not isinstance(value, bool):
        raise ConfigError(f"{field_name} must be a boolean")
    return value


def _get_int(section: dict[str, Any], key: str, field_name: str, default: int | None) -> int | None:
    value = section.get(key, default)
    if value is None:
        return None
    # bool is an int subclass
    if isinstance(value, bool) or not isinstance(value, int):
        raise ConfigError(f"{field_name} must be an integer")
    return value


def _get_str_list(section: dict[str, Any], key: str, field_name: str) -> tuple[str, ...]:
    value = section.get(key)
    if value is None:
        return ()
    if isinstance(value, str):
        return (value,)
    if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
        raise ConfigError(f"{field_name} must be a list of strings")
    return tuple(value)


def dict_to_config(data: dict[str, Any], cwd: str | None = None) -> Config:
    """Convert merged dict to typed Config dataclass.

    Args:
        data: Merged configuration dictionary.
        cwd: Directory used to resolve an unset base path.

    Returns:
        Typed Config object.

    Raises:
        ConfigError: If a value has the wrong type or is out of range.
    """
    cwd = cwd or os.getcwd()

    server_data = _section(data, "server")
    port = _get_int(server_data, "port", "server.port", DEFAULT_PORT)
    if port is None or not 0 <= port <= 65535:
        raise ConfigError("server.port must be between 0 and 65535")
    ws_path = _get_str(server_data, "path", "server.path", DEFAULT_WS_PATH) or DEFAULT_WS_PATH
    if not ws_path.startswith("/"):
        ws_path = "/" + ws_path
    server = ServerConfig(
        host=_get_str(server_data, "host", "server.host", DEFAULT_HOST) or DEFAULT_HOST,
        port=port,
        path=ws_path,
    )

    watch_data = _section(data, "watch")
    watch = WatchConfig(
        paths=_get_str_list(watch_data, "paths", "watch.paths"),
        ignored=_get_str_list(watch_data, "ignored", "watch.ignored"),
        ignore_initial=_get_bool(watch_data, "ignore_initial", "watch.ignore_initial", True),
        recursive=_get_bool(watch_data, "recursive", "watch.recursive", True),
    )

    settings_data = _section(data, "settings")
    base_path = _get_str(settings_data, "base_path", "settings.base_path", None)
    settings = SettingsConfig(
        base_path=os.path.abspath(os.path.join(cwd, base_path)) if base_path else cwd,
        relative_paths=_get_bool(settings_data, "relative_paths", "settings.relative_paths", False),
        with_contents=_get_bool(settings_data, "with_contents", "settings.with_contents", False),
    )

    log_data = _section(data, "logging")
    verbose = _get_int(log_data, "verbose", "logging.verbose", None)
    logging_config = LoggingConfig(
        level=_get_str(log_data, "level", "logging.level", None),
        verbose=verbose,
        file=_get_str(log_data, "file", "logging.file", None),
    )

    known_keys = {"server", "watch", "settings", "logging"}
    extra = {k: v for k, v in data.items() if k not in known_keys}

    return Config(
        server=server,
        watch=watch,
        settings=settings,
        logging=logging_config,
        extra=extra,
    )


def load_config(
    project_root: str | None = None,
    config_file: str | Path | None = None,
    overrides: dict[str, Any] | None = None,
) -> Config:
    """Load and merge config from all sources.

    Priority order (highest to lowest):
    1. Explicit overrides (command-line flags)
    2. Environment variables
    3. Explicit config file (--config)
    4. Project config (<project_root>/.remotewatch.yaml)
    5. User config (~/.config/remotewatch/config.yaml or %APPDATA%)

    Args:
        project_root: Project directory for project-level config.
        config_file: Config file given explicitly; must exist.
        overrides: Highest-priority values, usually from the command line.

    Returns:
        Merged Config object.
    """
    configs: list[dict[str, Any]] = []

    for path in get_config_paths(project_root, config_file):
        required = config_file is not None and path == Path(config_file)
        config_data = load_yaml_file(path, required=required)
        if config_data:
            _log.debug("Loaded config from %s", path)
            configs.append(config_data)

    env_config = env_overrides()
    if env_config:
        configs.append(env_config)

    if overrides:
        configs.append(overrides)

    merged = merge_configs(*configs)
    return dict_to_config(merged, cwd=project_root)

"""Configuration management for remotewatch.

Provides cascading YAML-based configuration with:
- User-level config (~/.config/remotewatch/ or %APPDATA%)
- Project-level config (<root>/.remotewatch.yaml)
- An explicit --config file
- Environment variable and command-line overrides (highest priority)

Example usage:
    from remotewatch.config import load_config

    config = load_config(project_root="/path/to/project")
    print(config.server.port)
    print(config.settings.relative_paths)
"""

from remotewatch.config.loader import (
    ConfigError,
    dict_to_config,
    load_config,
)
from remotewatch.config.paths import (
    get_config_paths,
    get_project_config_path,
    get_user_config_path,
)
from remotewatch.config.schema import (
    Config,
    LoggingConfig,
    ServerConfig,
    SettingsConfig,
    WatchConfig,
)

__all__ = [
    # Main API
    "Config",
    "ConfigError",
    "load_config",
    "dict_to_config",
    # Schema types
    "ServerConfig",
    "WatchConfig",
    "SettingsConfig",
    "LoggingConfig",
    # Path utilities
    "get_config_paths",
    "get_user_config_path",
    "get_project_config_path",
]

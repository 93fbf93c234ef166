"""Platform-aware configuration path resolution.

Handles config file locations for:
- Windows: %APPDATA%\\remotewatch\\config.yaml (user)
- Unix: $XDG_CONFIG_HOME/remotewatch/ or ~/.config/remotewatch/ (user)
- Project: <root>/.remotewatch.yaml
"""

from __future__ import annotations

import os
import sys
from pathlib import Path

CONFIG_FILENAME = "config.yaml"
APP_NAME = "remotewatch"
PROJECT_FILENAME = ".remotewatch.yaml"


def get_user_config_path() -> Path | None:
    """Get user-level config path.

    Returns:
        Path to user config file, or None if not determinable.
        The file may not exist.
    """
    if sys.platform == "win32":
        app_data = os.environ.get("APPDATA")
        if app_data:
            return Path(app_data) / APP_NAME / CONFIG_FILENAME
        return None

    xdg_config = os.environ.get("XDG_CONFIG_HOME")
    if xdg_config:
        return Path(xdg_config) / APP_NAME / CONFIG_FILENAME

    return Path.home() / ".config" / APP_NAME / CONFIG_FILENAME


def get_project_config_path(project_root: str | Path) -> Path:
    """Get project-level config path (may not exist)."""
    return Path(project_root) / PROJECT_FILENAME


def get_config_paths(
    project_root: str | Path | None = None,
    explicit: str | Path | None = None,
) -> list[Path]:
    """Get all config paths in priority order (lowest to highest).

    Args:
        project_root: Optional project directory for project-level config.
        explicit: Optional config file given on the command line.

    Returns:
        List of config paths in order: user, project, explicit.
    """
    paths: list[Path] = []

    user_path = get_user_config_path()
    if user_path:
        paths.append(user_path)

    if project_root is not None:
        paths.append(get_project_config_path(project_root))

    if explicit is not None:
        paths.append(Path(explicit))

    return paths

"""Client-visible path computation."""

from __future__ import annotations

import os


def rewrite_path(absolute_path: str, base_path: str, use_relative: bool) -> str:
    """Convert an absolute path to the form a client asked for.

    Args:
        absolute_path: Path reported by the watcher.
        base_path: Directory that relative paths are computed against.
        use_relative: When False the path is returned unchanged.

    Returns:
        absolute_path, or absolute_path relative to base_path.

    Raises:
        ValueError: If the platform cannot relate the two paths
            (e.g. different drives on Windows).
    """
    if not use_relative:
        return absolute_path
    return os.path.relpath(absolute_path, base_path)

"""Filesystem change events as seen by the broadcast layer."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class WatchEventKind(str, Enum):
    """Kinds of change emitted by the watcher; values are the wire names."""

    ADDED = "added"
    CHANGED = "changed"
    REMOVED = "removed"
    DIRECTORY_ADDED = "directory-added"
    DIRECTORY_REMOVED = "directory-removed"

    @property
    def carries_contents(self) -> bool:
        """Whether file contents may be attached to this kind of event."""
        return self in (WatchEventKind.ADDED, WatchEventKind.CHANGED)


@dataclass(frozen=True)
class WatchEvent:
    """A single change observed by the watcher."""

    kind: WatchEventKind
    path: str  # absolute

"""Filesystem watcher backed by watchdog.

The watchdog observer runs its own thread. Every filesystem event is
translated into a WatchEvent and handed to the asyncio loop with
call_soon_threadsafe, so listeners always run on the loop thread.
"""

from __future__ import annotations

import asyncio
import fnmatch
import os
from collections.abc import Callable, Iterable, Sequence
from typing import TYPE_CHECKING

from watchdog.events import FileSystemEvent, FileSystemEventHandler, FileSystemMovedEvent
from watchdog.observers import Observer

from remotewatch.core.events import WatchEvent, WatchEventKind
from remotewatch.core.subscriptions import EventSource
from remotewatch.logging import get_logger

if TYPE_CHECKING:
    from watchdog.observers.api import BaseObserver, ObservedWatch

log = get_logger("watcher")


def _fspath(path: str | bytes) -> str:
    return os.path.abspath(os.fsdecode(path))


class _ForwardingHandler(FileSystemEventHandler):
    """Maps watchdog callbacks onto WatchEvents."""

    def __init__(self, watcher: FileWatcher) -> None:
        super().__init__()
        self._watcher = watcher

    def on_created(self, event: FileSystemEvent) -> None:
        kind = WatchEventKind.DIRECTORY_ADDED if event.is_directory else WatchEventKind.ADDED
        self._watcher.dispatch(WatchEvent(kind, _fspath(event.src_path)))

    def on_modified(self, event: FileSystemEvent) -> None:
        # Directory mtime changes accompany every child add/remove
        if event.is_directory:
            return
        self._watcher.dispatch(WatchEvent(WatchEventKind.CHANGED, _fspath(event.src_path)))

    def on_deleted(self, event: FileSystemEvent) -> None:
        kind = WatchEventKind.DIRECTORY_REMOVED if event.is_directory else WatchEventKind.REMOVED
        self._watcher.dispatch(WatchEvent(kind, _fspath(event.src_path)))

    def on_moved(self, event: FileSystemEvent) -> None:
        if event.is_directory:
            removed, added = WatchEventKind.DIRECTORY_REMOVED, WatchEventKind.DIRECTORY_ADDED
        else:
            removed, added = WatchEventKind.REMOVED, WatchEventKind.ADDED
        self._watcher.dispatch(WatchEvent(removed, _fspath(event.src_path)))
        if isinstance(event, FileSystemMovedEvent):
            self._watcher.dispatch(WatchEvent(added, _fspath(event.dest_path)))


class FileWatcher(EventSource):
    """Watches files and directories, emitting one event name per WatchEventKind.

    Listeners receive the WatchEvent:

        watcher = FileWatcher(ignored=["**/node_modules/**"])
        watcher.on("changed", lambda event: print(event.path))
        watcher.start()
        watcher.add(["src"])

    Args:
        ignored: fnmatch patterns matched against absolute paths, or plain
            paths whose whole subtree is ignored.
        ignore_initial: When False, add() emits "added" / "directory-added"
            for everything that already exists under the new paths.
        recursive: Watch directories recursively.
        observer_factory: Builds the watchdog observer (e.g. PollingObserver).
    """

    def __init__(
        self,
        ignored: Iterable[str] = (),
        ignore_initial: bool = True,
        recursive: bool = True,
        observer_factory: Callable[[], BaseObserver] = Observer,
    ) -> None:
        super().__init__()
        self._ignored = tuple(ignored)
        self._ignore_initial = ignore_initial
        self._recursive = recursive
        self._observer = observer_factory()
        self._handler = _ForwardingHandler(self)
        self._loop: asyncio.AbstractEventLoop | None = None

        # Watched roots: absolute path -> True for directories
        self._roots: dict[str, bool] = {}
        # Observer schedules: (dir, recursive) -> watch
        self._scheduled: dict[tuple[str, bool], ObservedWatch] = {}

    @property
    def ignored(self) -> tuple[str, ...]:
        return self._ignored

    @property
    def watched_paths(self) -> list[str]:
        return list(self._roots)

    def is_running(self) -> bool:
        return self._observer.is_alive()

    def start(self, loop: asyncio.AbstractEventLoop | None = None) -> None:
        """Start the observer thread and bind to the event loop."""
        self._loop = loop or asyncio.get_running_loop()
        if not self._observer.is_alive():
            self._observer.start()
            log.debug("Observer started")

    def close(self, timeout: float = 5.0) -> None:
        """Stop the observer thread; listeners stay installed."""
        if self._observer.is_alive():
            self._observer.stop()
            self._observer.join(timeout)
            log.debug("Observer stopped")

    def is_ignored(self, path: str) -> bool:
        for pattern in self._ignored:
            if fnmatch.fnmatch(path, pattern):
                return True
            prefix = os.path.abspath(pattern)
            if path == prefix or path.startswith(prefix.rstrip(os.sep) + os.sep):
                return True
        return False

    def add(self, paths: Sequence[str]) -> None:
        """Start watching paths (files or directories)."""
        for raw in paths:
            path = os.path.abspath(raw)
            if path in self._roots:
                continue
            if self.is_ignored(path):
                log.debug("Not watching ignored path %s", path)
                continue
            if not os.path.exists(path):
                log.warning("Cannot watch %s: no such file or directory", path)
                continue

            is_dir = os.path.isdir(path)
            covered = self._is_watched(path) and (self._recursive or not is_dir)
            self._roots[path] = is_dir
            try:
                self._sync_schedules()
            except Exception:
                del self._roots[path]
                raise
            log.info("Watching %s", path)

            # An enclosing root has already reported everything below it
            if not self._ignore_initial and not covered:
                self._emit_initial(path, is_dir)

    def unwatch(self, paths: Sequence[str]) -> None:
        """Stop watching paths previously passed to add()."""
        removed = False
        for raw in paths:
            path = os.path.abspath(raw)
            if self._roots.pop(path, None) is None:
                continue
            removed = True
            log.info("Stopped watching %s", path)
        if removed:
            self._sync_schedules()

    def dispatch(self, event: WatchEvent) -> None:
        """Hand an event to the loop thread. Safe to call from any thread."""
        loop = self._loop
        if loop is None or loop.is_closed():
            log.debug("Dropping %s %s: no event loop", event.kind.value, event.path)
            return
        try:
            loop.call_soon_threadsafe(self._emit_event, event)
        except RuntimeError:
            # Loop closed between the check and the call
            log.debug("Dropping %s %s: event loop closed", event.kind.value, event.path)

    def _emit_event(self, event: WatchEvent) -> None:
        if not self._is_watched(event.path) or self.is_ignored(event.path):
            return
        self.emit(event.kind.value, event)

    def _is_watched(self, path: str) -> bool:
        for root, is_dir in self._roots.items():
            if path == root:
                return True
            if not is_dir:
                continue
            if self._recursive:
                if _is_under(path, root):
                    return True
            elif os.path.dirname(path) == root:
                return True
        return False

    def _emit_initial(self, path: str, is_dir: bool) -> None:
        if not is_dir:
            self.dispatch(WatchEvent(WatchEventKind.ADDED, path))
            return

        self.dispatch(WatchEvent(WatchEventKind.DIRECTORY_ADDED, path))
        for dirpath, dirnames, filenames in os.walk(path):
            dirnames[:] = [d for d in sorted(dirnames) if not self.is_ignored(os.path.join(dirpath, d))]
            for name in dirnames:
                self.dispatch(WatchEvent(WatchEventKind.DIRECTORY_ADDED, os.path.join(dirpath, name)))
            for name in sorted(filenames):
                self.dispatch(WatchEvent(WatchEventKind.ADDED, os.path.join(dirpath, name)))
            if not self._recursive:
                break

    def _wanted_schedules(self) -> set[tuple[str, bool]]:
        """Observer schedules needed to cover every root exactly once."""
        wanted = {
            (root, self._recursive) if is_dir else (os.path.dirname(root), False)
            for root, is_dir in self._roots.items()
        }
        recursive_dirs = [directory for directory, recursive in wanted if recursive]

        def covered(key: tuple[str, bool]) -> bool:
            directory = key[0]
            for top in recursive_dirs:
                if key == (top, True):
                    continue
                if directory == top or _is_under(directory, top):
                    return True
            return False

        return {key for key in wanted if not covered(key)}

    def _sync_schedules(self) -> None:
        wanted = self._wanted_schedules()

        for key in sorted(wanted - self._scheduled.keys()):
            directory, recursive = key
            self._scheduled[key] = self._observer.schedule(
                self._handler, directory, recursive=recursive
            )
            log.debug("Scheduled %s (recursive=%s)", directory, recursive)

        for key in sorted(self._scheduled.keys() - wanted):
            watch = self._scheduled.pop(key)
            try:
                self._observer.unschedule(watch)
            except KeyError:
                log.debug("Watch for %s was already removed", key[0])
            else:
                log.debug("Unscheduled %s", key[0])


def _is_under(path: str, directory: str) -> bool:
    return path.startswith(directory.rstrip(os.sep) + os.sep)

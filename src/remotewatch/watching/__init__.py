"""File watching for remotewatch.

Wraps a watchdog observer and reports added / changed / removed files and
directories as WatchEvents on the asyncio loop.
"""

from remotewatch.watching.watcher import FileWatcher

__all__ = [
    "FileWatcher",
]

"""remotewatch: broadcast filesystem changes to WebSocket clients.

Built for hot module replacement: a browser runtime or build tool connects,
optionally negotiates relative paths and file contents, and is notified as
files are added, changed or removed.

Example:
    import asyncio

    from remotewatch import serve
    from remotewatch.config import load_config

    asyncio.run(serve(load_config(), ["src"]))
"""

__version__ = "0.2.0"

from remotewatch.core import (  # noqa: E402
    ClientSettings,
    EffectiveSettings,
    WatchEvent,
    WatchEventKind,
    rewrite_path,
)
from remotewatch.runner import create_server, serve  # noqa: E402
from remotewatch.server import ServerStateError, WatchServer  # noqa: E402

__all__ = [
    "ClientSettings",
    "EffectiveSettings",
    "ServerStateError",
    "WatchEvent",
    "WatchEventKind",
    "WatchServer",
    "create_server",
    "rewrite_path",
    "serve",
    "__version__",
]

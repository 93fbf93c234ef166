"""Wiring of config, watcher, websocket transport and WatchServer."""

from __future__ import annotations

import os
from collections.abc import Sequence

from remotewatch.config.schema import Config
from remotewatch.core.settings import EffectiveSettings
from remotewatch.logging import get_logger
from remotewatch.server import WatchServer
from remotewatch.transport.app import create_app
from remotewatch.transport.websocket import WebSocketServer
from remotewatch.watching.watcher import FileWatcher

log = get_logger("runner")


def create_server(
    paths: Sequence[str] | None = None,
    config: Config | None = None,
    ws_server: WebSocketServer | None = None,
    watcher: FileWatcher | None = None,
) -> WatchServer:
    """Build a WatchServer from config, creating missing collaborators.

    Paths default to config.watch.paths, then to the current directory.
    Nothing is started: the caller starts the watcher on a running loop,
    calls run(), and serves create_app(ws_server) itself. serve() does all
    of that.
    """
    config = config or Config()
    watch_paths = list(paths or config.watch.paths or [os.getcwd()])

    if ws_server is None:
        ws_server = WebSocketServer()
    if watcher is None:
        watcher = FileWatcher(
            ignored=config.watch.ignored,
            ignore_initial=config.watch.ignore_initial,
            recursive=config.watch.recursive,
        )

    return WatchServer(
        watch_paths,
        ws_server,
        watcher,
        defaults=EffectiveSettings.from_config(config.settings),
        logger=get_logger("server"),
    )


async def serve(config: Config, paths: Sequence[str] | None = None) -> None:
    """Run the websocket server and the watcher until uvicorn exits."""
    import uvicorn

    ws_server = WebSocketServer()
    watcher = FileWatcher(
        ignored=config.watch.ignored,
        ignore_initial=config.watch.ignore_initial,
        recursive=config.watch.recursive,
    )
    server = create_server(paths, config, ws_server=ws_server, watcher=watcher)

    app = create_app(
        ws_server,
        config.server.path,
        status=lambda: {"watching": server.paths, "clients": len(server.registry)},
    )
    uv_server = uvicorn.Server(
        uvicorn.Config(
            app,
            host=config.server.host,
            port=config.server.port,
            log_level="warning",
            access_log=False,
        )
    )

    watcher.start()
    server.run()
    log.info(
        "Listening on ws://%s:%d%s",
        config.server.host,
        config.server.port,
        config.server.path,
    )

    try:
        await uv_server.serve()
    finally:
        if server.is_running:
            server.stop()
        await ws_server.close_all()
        await server.drain()
        watcher.close()
        log.info("Shut down")

"""Tests for wiring a WatchServer from config."""

from __future__ import annotations

import os
from pathlib import Path

import pytest

from remotewatch.config.schema import Config, SettingsConfig, WatchConfig
from remotewatch.runner import create_server
from remotewatch.transport.websocket import WebSocketServer
from remotewatch.watching.watcher import FileWatcher
from tests.utils import FakeWatcher


class TestCreateServer:
    """Tests for create_server."""

    def test_explicit_paths(self) -> None:
        server = create_server(["src"], Config(), ws_server=WebSocketServer(), watcher=FakeWatcher())
        assert server.paths == ["src"]
        assert not server.is_running

    def test_paths_from_config(self) -> None:
        config = Config(watch=WatchConfig(paths=("lib", "src")))
        server = create_server(config=config, watcher=FakeWatcher())
        assert server.paths == ["lib", "src"]

    def test_defaults_to_cwd(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.chdir(tmp_path)
        server = create_server(watcher=FakeWatcher())
        assert server.paths == [os.getcwd()]

    def test_settings_from_config(self) -> None:
        config = Config(
            settings=SettingsConfig(base_path="/src", relative_paths=True, with_contents=True)
        )
        server = create_server(["src"], config, watcher=FakeWatcher())
        assert server.settings.base_path == "/src"
        assert server.settings.relative_paths is True
        assert server.settings.with_contents is True

    def test_builds_collaborators(self) -> None:
        config = Config(watch=WatchConfig(ignored=("*.log",)))
        server = create_server(["src"], config)
        assert isinstance(server.connection_server, WebSocketServer)
        assert isinstance(server.watcher, FileWatcher)
        assert server.watcher.ignored == ("*.log",)

    def test_nothing_started(self, tmp_path: Path) -> None:
        """The caller starts the watcher and the server."""
        server = create_server([str(tmp_path)], Config())
        assert not server.is_running
        assert not server.watcher.is_running()
        assert server.watcher.watched_paths == []
        assert server.connection_server.connection_count == 0

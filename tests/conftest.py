"""Root pytest configuration for all tests."""

from __future__ import annotations

import logging

import pytest

from remotewatch.core.settings import EffectiveSettings
from remotewatch.server import WatchServer
from tests.utils import FakeConnectionServer, FakeWatcher

pytest_plugins = ("pytest_asyncio",)


@pytest.fixture
def defaults() -> EffectiveSettings:
    """Process defaults: absolute paths, no contents."""
    return EffectiveSettings(base_path="/base", relative_paths=False, with_contents=False)


@pytest.fixture
def connection_server() -> FakeConnectionServer:
    return FakeConnectionServer()


@pytest.fixture
def watcher() -> FakeWatcher:
    return FakeWatcher()


@pytest.fixture
def test_logger() -> logging.Logger:
    """Logger captured by caplog under the remotewatch namespace."""
    return logging.getLogger("remotewatch.test")


@pytest.fixture
def server(
    connection_server: FakeConnectionServer,
    watcher: FakeWatcher,
    defaults: EffectiveSettings,
    test_logger: logging.Logger,
) -> WatchServer:
    """A WatchServer bound to fake collaborators (not yet running)."""
    return WatchServer(
        ["some/path1", "some/path2"],
        connection_server,
        watcher,
        defaults=defaults,
        logger=test_logger,
    )


@pytest.fixture(autouse=True)
def isolated_config_env(
    tmp_path_factory: pytest.TempPathFactory, monkeypatch: pytest.MonkeyPatch
) -> None:
    """Keep the developer's own config and environment out of every test."""
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path_factory.mktemp("xdg")))
    for name in ("REMOTEWATCH_HOST", "REMOTEWATCH_PORT", "REMOTEWATCH_LOG"):
        monkeypatch.delenv(name, raising=False)

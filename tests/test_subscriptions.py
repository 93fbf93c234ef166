"""Tests for EventSource and Subscription handles."""

from __future__ import annotations

import logging

import pytest

from remotewatch.core.subscriptions import EventSource


class TestSubscription:
    """Tests for installing and cancelling listeners."""

    def test_emit_calls_listener(self) -> None:
        source = EventSource()
        received: list[tuple] = []
        source.on("ping", lambda *args: received.append(args))

        assert source.emit("ping", 1, "two") == 1
        assert received == [(1, "two")]

    def test_cancel_removes_listener(self) -> None:
        """A cancelled listener is no longer counted or called."""
        source = EventSource()
        calls: list[int] = []
        subscription = source.on("ping", lambda: calls.append(1))

        subscription.cancel()
        source.emit("ping")

        assert calls == []
        assert source.listener_count("ping") == 0
        assert not subscription.active

    def test_cancel_is_idempotent(self) -> None:
        source = EventSource()
        subscription = source.on("ping", lambda: None)
        subscription.cancel()
        subscription.cancel()
        assert source.listener_count("ping") == 0

    def test_same_callback_twice_gets_two_handles(self) -> None:
        """Cancelling one registration leaves the other in place."""
        source = EventSource()
        calls: list[int] = []

        def listener() -> None:
            calls.append(1)

        first = source.on("ping", listener)
        source.on("ping", listener)
        first.cancel()
        source.emit("ping")

        assert calls == [1]
        assert source.listener_count("ping") == 1

    def test_remove_all_listeners(self) -> None:
        source = EventSource()
        source.on("a", lambda: None)
        source.on("b", lambda: None)
        source.remove_all_listeners()
        assert source.listener_count("a") == 0
        assert source.listener_count("b") == 0

    def test_emit_without_listeners(self) -> None:
        assert EventSource().emit("nothing") == 0


class TestEmitSafety:
    """Tests for emitting while listeners change."""

    def test_cancel_during_emit_skips_later_listener(self) -> None:
        """A listener cancelled by an earlier one is not called."""
        source = EventSource()
        calls: list[str] = []
        second = None

        def first() -> None:
            calls.append("first")
            second.cancel()

        source.on("ping", first)
        second = source.on("ping", lambda: calls.append("second"))

        source.emit("ping")

        assert calls == ["first"]

    def test_subscribe_during_emit_takes_effect_next_time(self) -> None:
        source = EventSource()
        calls: list[str] = []

        def first() -> None:
            calls.append("first")
            source.on("ping", lambda: calls.append("late"))

        source.on("ping", first)
        source.emit("ping")
        assert calls == ["first"]

        source.emit("ping")
        assert calls == ["first", "first", "late"]

    def test_failing_listener_is_logged(self, caplog: pytest.LogCaptureFixture) -> None:
        """One listener raising does not stop the others."""
        source = EventSource()
        calls: list[str] = []

        def broken() -> None:
            raise RuntimeError("boom")

        source.on("ping", broken)
        source.on("ping", lambda: calls.append("ok"))

        with caplog.at_level(logging.ERROR, logger="remotewatch.events"):
            source.emit("ping")

        assert calls == ["ok"]
        assert "Listener for 'ping' failed" in caplog.text

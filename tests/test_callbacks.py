"""Tests for the table event registry."""

from __future__ import annotations

import asyncio

import pytest

from datagrid.callbacks import EventRegistry, TableEvent


class TestRegistration:
    """Tests for register/unregister."""

    def test_register_known_event(self):
        """Known events and the wildcard can be registered."""
        registry = EventRegistry("t")
        assert registry.register(TableEvent.STATE_CHANGED, lambda data: None)
        assert registry.register("columns-changed", lambda data: None)
        assert registry.register("*", lambda data: None)
        assert registry.has_handlers("state-changed")

    def test_register_invalid_event(self, caplog):
        """Unknown event names are rejected with a warning."""
        registry = EventRegistry("t")
        assert not registry.register("grid:refresh", lambda data: None)
        assert "Invalid event type" in caplog.text
        assert not registry.has_handlers()

    def test_unregister_specific_handler(self):
        """Only the given handler is removed."""
        registry = EventRegistry("t")

        def first(data):
            pass

        def second(data):
            pass

        registry.register("state-changed", first)
        registry.register("state-changed", second)
        assert registry.unregister("state-changed", first)
        assert not registry.unregister("state-changed", first)
        assert registry.has_handlers("state-changed")

    def test_unregister_all(self):
        """Without arguments every handler goes."""
        registry = EventRegistry("t")
        registry.register("state-changed", lambda data: None)
        assert registry.unregister()
        assert not registry.unregister()
        assert not registry.has_handlers()

    def test_unregister_event(self):
        """Without a handler every handler of the event goes."""
        registry = EventRegistry("t")
        registry.register("style-changed", lambda data: None)
        assert registry.unregister(TableEvent.STYLE_CHANGED)
        assert not registry.unregister("style-changed")


class TestDispatch:
    """Tests for dispatch."""

    def test_exact_then_wildcard(self):
        """Exact handlers run before wildcard handlers."""
        registry = EventRegistry("t")
        calls = []
        registry.register("*", lambda data: calls.append("wildcard"))
        registry.register("state-changed", lambda data: calls.append("exact"))
        assert registry.dispatch(TableEvent.STATE_CHANGED, {})
        assert calls == ["exact", "wildcard"]

    def test_handler_arity(self):
        """Handlers receive as many arguments as they accept."""
        registry = EventRegistry("orders")
        received = []
        registry.register("export-started", lambda data: received.append((data,)))
        registry.register("export-started", lambda data, event: received.append((data, event)))
        registry.register(
            "export-started",
            lambda data, event, table: received.append((data, event, table)),
        )
        registry.dispatch("export-started", {"format": "csv"})
        assert received == [
            ({"format": "csv"},),
            ({"format": "csv"}, "export-started"),
            ({"format": "csv"}, "export-started", "orders"),
        ]

    def test_no_handlers(self):
        """Dispatching with no handlers reports False."""
        assert not EventRegistry("t").dispatch("state-changed", {})

    def test_invalid_dispatch(self):
        """The wildcard and unknown names cannot be dispatched."""
        registry = EventRegistry("t")
        registry.register("*", lambda data: None)
        assert not registry.dispatch("*", {})
        assert not registry.dispatch("nope", {})

    def test_failing_handler_is_isolated(self, caplog):
        """A raising handler is logged and later handlers still run."""
        registry = EventRegistry("t")
        calls = []

        def broken(data):
            raise RuntimeError("handler exploded")

        registry.register("state-changed", broken)
        registry.register("state-changed", lambda data: calls.append(data))
        assert registry.dispatch("state-changed", 1)
        assert calls == [1]
        assert "handler exploded" in caplog.text

    def test_async_handler_without_loop(self):
        """Coroutine handlers run to completion when no loop is running."""
        registry = EventRegistry("t")
        calls = []

        async def handler(data):
            calls.append(data)

        registry.register("state-changed", handler)
        assert registry.dispatch("state-changed", "x")
        assert calls == ["x"]

    @pytest.mark.asyncio
    async def test_async_handler_on_running_loop(self):
        """Coroutine handlers are scheduled on the running loop."""
        registry = EventRegistry("t")
        done = asyncio.Event()

        async def handler(data):
            done.set()

        registry.register("state-changed", handler)
        assert registry.dispatch("state-changed", {})
        await asyncio.wait_for(done.wait(), timeout=1)

    def test_clear(self):
        """clear() drops everything."""
        registry = EventRegistry("t")
        registry.register("*", lambda data: None)
        registry.clear()
        assert not registry.has_handlers("state-changed")

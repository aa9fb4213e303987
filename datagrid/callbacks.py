"""Event registry for datagrid table notifications."""

from __future__ import annotations

import asyncio
import inspect

from collections.abc import Awaitable, Callable
from enum import Enum
from typing import Any

from .log import debug, log_callback_error, warn


# Type alias for callback functions (sync or async)
CallbackFunc = Callable[..., None] | Callable[..., Awaitable[None]]

WILDCARD = "*"


class TableEvent(str, Enum):
    """Events published by a table."""

    STATE_CHANGED = "state-changed"
    COLUMNS_CHANGED = "columns-changed"
    STYLE_CHANGED = "style-changed"
    SELECTION_CHANGED = "selection-changed"
    EXPORT_STARTED = "export-started"
    EXPORT_COMPLETED = "export-completed"
    EXPORT_FAILED = "export-failed"


def _event_name(event_type: TableEvent | str) -> str | None:
    if isinstance(event_type, TableEvent):
        return event_type.value
    if event_type == WILDCARD:
        return WILDCARD
    try:
        return TableEvent(event_type).value
    except ValueError:
        return None


class EventRegistry:
    """Registry of event handlers for one table.

    Handlers are called synchronously in registration order, exact-event
    handlers before wildcard (``"*"``) handlers. A handler may accept
    ``(data)``, ``(data, event_type)`` or ``(data, event_type, table_id)``.
    Exceptions raised by handlers are logged and never reach the caller
    that triggered the event.
    """

    def __init__(self, table_id: str = "") -> None:
        """Initialize the registry.

        Parameters
        ----------
        table_id : str
            Identifier of the owning table, used in log messages and
            passed to three-argument handlers.
        """
        self.table_id = table_id
        self._callbacks: dict[str, list[CallbackFunc]] = {}

    def register(self, event_type: TableEvent | str, handler: CallbackFunc) -> bool:
        """Register an event handler.

        Parameters
        ----------
        event_type : TableEvent or str
            The event type, or ``"*"`` for every event.
        handler : CallbackFunc
            The callback function.

        Returns
        -------
        bool
            True if registered successfully, False otherwise.
        """
        name = _event_name(event_type)
        if name is None:
            warn(f"Invalid event type '{event_type}' for table '{self.table_id}'")
            return False

        self._callbacks.setdefault(name, []).append(handler)
        debug(f"Registered handler for '{name}' on table '{self.table_id}'")
        return True

    def unregister(
        self,
        event_type: TableEvent | str | None = None,
        handler: CallbackFunc | None = None,
    ) -> bool:
        """Unregister event handler(s).

        Parameters
        ----------
        event_type : TableEvent, str or None, optional
            The event type (None to unregister everything).
        handler : CallbackFunc or None, optional
            Specific handler to remove (None to remove all for event_type).

        Returns
        -------
        bool
            True if any handlers were removed, False otherwise.
        """
        if event_type is None:
            removed = bool(self._callbacks)
            self._callbacks.clear()
            return removed

        name = _event_name(event_type)
        if name is None or name not in self._callbacks:
            return False

        if handler is None:
            del self._callbacks[name]
            debug(f"Unregistered all handlers for '{name}' on table '{self.table_id}'")
            return True

        try:
            self._callbacks[name].remove(handler)
        except ValueError:
            return False
        return True

    def has_handlers(self, event_type: TableEvent | str | None = None) -> bool:
        """Check whether any handler would receive ``event_type``."""
        if event_type is None:
            return any(self._callbacks.values())
        name = _event_name(event_type)
        return bool(self._callbacks.get(name or "", [])) or bool(
            self._callbacks.get(WILDCARD, [])
        )

    def _invoke_handler(self, handler: CallbackFunc, data: Any, event_type: str) -> bool:
        """Invoke a single handler with the number of arguments it accepts.

        Coroutine handlers are scheduled on the running event loop, or run
        to completion when no loop is running.
        """
        try:
            sig = inspect.signature(handler)
            num_params = len(
                [p for p in sig.parameters.values() if p.default is inspect.Parameter.empty]
            )
            args: tuple[Any, ...]
            if num_params >= 3:
                args = (data, event_type, self.table_id)
            elif num_params == 2:
                args = (data, event_type)
            else:
                args = (data,)

            if inspect.iscoroutinefunction(handler):
                return self._invoke_async_handler(handler, args, event_type)

            handler(*args)
            return True
        except Exception as e:
            log_callback_error(event_type, self.table_id, e)
            return False

    def _invoke_async_handler(
        self, handler: CallbackFunc, args: tuple[Any, ...], event_type: str
    ) -> bool:
        async def run_async() -> None:
            try:
                await handler(*args)  # type: ignore[misc]
            except Exception as e:
                log_callback_error(event_type, self.table_id, e)

        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            asyncio.run(run_async())
            return True
        loop.create_task(run_async())
        return True

    def dispatch(self, event_type: TableEvent | str, data: Any = None) -> bool:
        """Dispatch an event to registered handlers.

        Parameters
        ----------
        event_type : TableEvent or str
            The event type.
        data : Any
            The event payload.

        Returns
        -------
        bool
            True if any handlers were called, False otherwise.
        """
        name = _event_name(event_type)
        if name is None or name == WILDCARD:
            warn(f"Cannot dispatch invalid event type '{event_type}'")
            return False

        handlers = list(self._callbacks.get(name, []))
        handlers.extend(self._callbacks.get(WILDCARD, []))

        handlers_called = False
        for handler in handlers:
            if self._invoke_handler(handler, data, name):
                handlers_called = True
        return handlers_called

    def clear(self) -> None:
        """Remove every handler."""
        self._callbacks.clear()
        debug(f"Cleared all handlers on table '{self.table_id}'")

"""datagrid exception hierarchy.

All datagrid-specific exceptions inherit from DataGridException, enabling
catch-all handling while supporting specific error types. Only export
failures are expected to reach an end user; the rest are recovered
internally and logged.
"""

from __future__ import annotations

from typing import Any


class DataGridException(Exception):
    """Base exception for all datagrid errors."""

    def __init__(self, message: str, **context: Any) -> None:
        """Initialize datagrid exception.

        Parameters
        ----------
        message : str
            Human-readable error message.
        **context : Any
            Additional context (table_id, key, format, etc.).
        """
        super().__init__(message)
        self.message = message
        self.context = context

    def __str__(self) -> str:
        """Format exception with context."""
        if self.context:
            ctx = ", ".join(f"{k}={v!r}" for k, v in self.context.items())
            return f"{self.message} ({ctx})"
        return self.message


class ConfigurationError(DataGridException):
    """Invalid table or column configuration.

    Raised for caller mistakes such as duplicate column keys or a
    non-positive page size. Corrupt persisted settings never raise this;
    they fall back to the live schema.
    """


class StoreError(DataGridException):
    """A key-value store operation failed.

    Raised by store backends. The column configuration store catches it
    so that persistence stays a best-effort side effect.
    """

    def __init__(self, message: str, key: str | None = None, **context: Any) -> None:
        """Initialize store error.

        Parameters
        ----------
        message : str
            Human-readable error message.
        key : str, optional
            The storage key involved.
        **context : Any
            Additional context.
        """
        super().__init__(message, key=key, **context)
        self.key = key


class CellRenderError(DataGridException):
    """A column's render function raised for a specific row.

    Never propagated out of an export; the cell degrades to its raw value.
    """

    def __init__(
        self,
        message: str,
        column: str,
        row_id: Any = None,
        **context: Any,
    ) -> None:
        """Initialize cell render error.

        Parameters
        ----------
        message : str
            Human-readable error message.
        column : str
            The column key whose renderer failed.
        row_id : Any, optional
            Identifier of the row being rendered.
        **context : Any
            Additional context.
        """
        super().__init__(message, column=column, row_id=row_id, **context)
        self.column = column
        self.row_id = row_id


class ExportError(DataGridException):
    """An export could not be encoded.

    This is the one failure surfaced to the caller as an actionable error.
    """

    def __init__(self, message: str, export_format: str | None = None, **context: Any) -> None:
        """Initialize export error.

        Parameters
        ----------
        message : str
            Human-readable error message.
        export_format : str, optional
            The target format (csv, excel, word, pdf, html, print).
        **context : Any
            Additional context.
        """
        super().__init__(message, export_format=export_format, **context)
        self.export_format = export_format


class UnsupportedFormatError(ExportError):
    """The requested export format has no registered encoder."""


class ExportCancelledError(ExportError):
    """An in-flight export was abandoned because a newer one was requested."""

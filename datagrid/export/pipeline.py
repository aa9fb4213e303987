"""Encode payloads and run exports off the event loop."""

from __future__ import annotations

import asyncio
import io
import zipfile

from collections.abc import Sequence

from ..exceptions import ExportCancelledError, ExportError
from ..log import debug, exception
from .encoders import get_encoder
from .options import ExportOptions, ExportResult, format_filename
from .payload import ExportPayload


def encode(
    payload: ExportPayload,
    export_format: str,
    options: ExportOptions | None = None,
) -> ExportResult:
    """Encode a payload into one format.

    Parameters
    ----------
    payload : ExportPayload
        The export snapshot.
    export_format : str
        A registered format name (csv, excel, word, pdf, html, print).
    options : ExportOptions, optional
        Header, footer and page options.

    Returns
    -------
    ExportResult
        The encoded bytes with filename and media type.

    Raises
    ------
    UnsupportedFormatError
        If the format is unknown.
    ExportError
        If the encoder fails.
    """
    spec = get_encoder(export_format)
    options = options or ExportOptions()
    try:
        content = spec.encode(payload, options)
    except Exception as e:
        exception(f"Export to '{export_format}' failed")
        raise ExportError(
            f"Could not encode export: {e}",
            export_format=export_format,
        ) from e

    filename = options.filename or format_filename("report", spec.extension, options.date_range)
    debug(f"Encoded {len(payload.rows)} rows as '{export_format}' ({len(content)} bytes)")
    return ExportResult(
        export_format=export_format,
        filename=filename,
        media_type=spec.media_type,
        content=content,
    )


def bundle_zip(results: Sequence[ExportResult], filename: str = "export.zip") -> ExportResult:
    """Bundle several encoded exports into one zip archive.

    Duplicate filenames get a numeric suffix so no entry is overwritten.
    """
    buffer = io.BytesIO()
    used: set[str] = set()
    with zipfile.ZipFile(buffer, "w", compression=zipfile.ZIP_DEFLATED) as archive:
        for result in results:
            name = result.filename
            stem, dot, ext = name.rpartition(".")
            if not dot:
                stem, ext = name, ""
            counter = 1
            while name in used:
                name = f"{stem}_{counter}.{ext}" if ext else f"{stem}_{counter}"
                counter += 1
            used.add(name)
            archive.writestr(name, result.content)
    return ExportResult(
        export_format="zip",
        filename=filename,
        media_type="application/zip",
        content=buffer.getvalue(),
    )


class ExportController:
    """Runs one export at a time in a worker thread.

    Starting a new export abandons the one in flight: its ``export`` call
    raises ``ExportCancelledError`` and whatever the worker thread
    produces is discarded.
    """

    def __init__(self) -> None:
        self._current: asyncio.Future[ExportResult] | None = None
        self._superseded: set[asyncio.Future[ExportResult]] = set()

    @property
    def busy(self) -> bool:
        return self._current is not None and not self._current.done()

    def cancel(self) -> bool:
        """Abandon the in-flight export, if any."""
        current = self._current
        if current is None or current.done():
            return False
        self._superseded.add(current)
        current.cancel()
        debug("Cancelled in-flight export")
        return True

    async def export(
        self,
        payload: ExportPayload,
        export_format: str,
        options: ExportOptions | None = None,
    ) -> ExportResult:
        """Encode ``payload`` without blocking the event loop.

        Raises
        ------
        ExportCancelledError
            If a newer export replaced this one before it finished.
        UnsupportedFormatError
            If the format is unknown.
        ExportError
            If the encoder fails.
        """
        get_encoder(export_format)
        self.cancel()

        task: asyncio.Future[ExportResult] = asyncio.ensure_future(
            asyncio.to_thread(encode, payload, export_format, options)
        )
        self._current = task
        try:
            return await task
        except asyncio.CancelledError as e:
            if task in self._superseded:
                raise ExportCancelledError(
                    "Export was superseded by a newer request",
                    export_format=export_format,
                ) from e
            raise
        finally:
            self._superseded.discard(task)
            if self._current is task:
                self._current = None

"""Export adapter pipeline.

``prepare_export`` snapshots the table into an ``ExportPayload``;
``encode`` turns a payload into csv, excel, word, pdf, html or print
output; ``ExportController`` runs encoding in a worker thread for async
callers.

Usage:
    from datagrid.export import ExportOptions, encode, prepare_export

    payload = prepare_export(rows, columns, scope="all", metadata={"title": "Orders"})
    result = encode(payload, "excel", ExportOptions(title="Orders"))
    result.save("exports/")
"""

from __future__ import annotations

from .encoders import (
    EncoderSpec,
    available_formats,
    get_encoder,
    register_encoder,
)
from .images import EmbeddedImage, load_image
from .lowering import HtmlLowering, RunLowering, TextLowering, TextRun
from .options import DateRange, ExportOptions, ExportResult, Letterhead, format_filename
from .payload import (
    ExportCell,
    ExportMetadata,
    ExportPayload,
    compute_alignments,
    export_columns,
    prepare_export,
    select_scope_rows,
)
from .pipeline import ExportController, bundle_zip, encode


__all__ = [
    "DateRange",
    "EmbeddedImage",
    "EncoderSpec",
    "ExportCell",
    "ExportController",
    "ExportMetadata",
    "ExportOptions",
    "ExportPayload",
    "ExportResult",
    "HtmlLowering",
    "Letterhead",
    "RunLowering",
    "TextLowering",
    "TextRun",
    "available_formats",
    "bundle_zip",
    "compute_alignments",
    "encode",
    "export_columns",
    "format_filename",
    "get_encoder",
    "load_image",
    "prepare_export",
    "register_encoder",
    "select_scope_rows",
]

"""Excel (xlsx) encoder built on openpyxl."""

from __future__ import annotations

import io

from typing import TYPE_CHECKING, Any

from openpyxl import Workbook
from openpyxl.styles import Alignment, Border, Font, PatternFill, Side
from openpyxl.utils import get_column_letter

from ...cells import stringify
from .base import EncoderSpec, hex_rgb


if TYPE_CHECKING:
    from openpyxl.worksheet.worksheet import Worksheet

    from ..options import ExportOptions
    from ..payload import ExportCell, ExportPayload


COLUMN_WIDTH = 15
HEADER_ROW_HEIGHT = 25


def _cell_value(cell: ExportCell) -> Any:
    """Numbers stay numeric when the cell shows the plain value."""
    raw = cell.raw
    if (
        isinstance(raw, (int, float))
        and not isinstance(raw, bool)
        and cell.text == stringify(raw)
    ):
        return raw
    return cell.text


def _write_banner(ws: Worksheet, row: int, width: int, value: str, font: Font) -> int:
    ws.cell(row=row, column=1, value=value)
    ws.cell(row=row, column=1).font = font
    ws.cell(row=row, column=1).alignment = Alignment(horizontal="center")
    if width > 1:
        ws.merge_cells(start_row=row, start_column=1, end_row=row, end_column=width)
    return row + 1


def _write_header_block(
    ws: Worksheet, payload: ExportPayload, options: ExportOptions, width: int
) -> int:
    row = 1
    letterhead = options.letterhead
    if letterhead is not None:
        if letterhead.title:
            row = _write_banner(ws, row, width, letterhead.title, Font(size=16, bold=True))
        if letterhead.subtitle:
            row = _write_banner(ws, row, width, letterhead.subtitle, Font(size=12))
        contact = letterhead.contact_lines()
        if contact:
            row = _write_banner(ws, row, width, " | ".join(contact), Font(size=10))

    title = options.title or payload.metadata.title
    if title:
        row = _write_banner(ws, row, width, title, Font(size=14, bold=True))
    if options.description:
        row = _write_banner(ws, row, width, options.description, Font())
    if options.date_range is not None:
        row = _write_banner(ws, row, width, options.date_range.label(), Font())
    return row + 1


def encode_excel(payload: ExportPayload, options: ExportOptions) -> bytes:
    """Encode the payload as an xlsx workbook with a single "Report" sheet.

    Layout: optional header block, a bold colored header row, zebra data
    rows aligned per column, and an optional italic footer.
    """
    wb = Workbook()
    ws = wb.active
    ws.title = "Report"
    width = len(payload.columns)

    header_font = Font(bold=True, color="FFFFFF")
    header_fill = PatternFill(
        start_color=hex_rgb(options.header_color),
        end_color=hex_rgb(options.header_color),
        fill_type="solid",
    )
    zebra_fill = PatternFill(
        start_color=hex_rgb(options.zebra_color),
        end_color=hex_rgb(options.zebra_color),
        fill_type="solid",
    )
    thin_border = Border(
        left=Side(style="thin"),
        right=Side(style="thin"),
        top=Side(style="thin"),
        bottom=Side(style="thin"),
    )
    alignments = [
        Alignment(horizontal=align, vertical="center") for align in payload.column_alignments
    ]

    row = _write_header_block(ws, payload, options, width) if options.include_header else 1

    for col_idx, label in enumerate(payload.columns, start=1):
        cell = ws.cell(row=row, column=col_idx, value=label)
        cell.font = header_font
        cell.fill = header_fill
        cell.border = thin_border
        cell.alignment = alignments[col_idx - 1]
    ws.row_dimensions[row].height = HEADER_ROW_HEIGHT
    row += 1

    for row_idx, export_row in enumerate(payload.rows):
        for col_idx, export_cell in enumerate(export_row, start=1):
            cell = ws.cell(row=row, column=col_idx, value=_cell_value(export_cell))
            cell.border = thin_border
            cell.alignment = alignments[col_idx - 1]
            if row_idx % 2 == 1:
                cell.fill = zebra_fill
        row += 1

    for col_idx in range(1, width + 1):
        ws.column_dimensions[get_column_letter(col_idx)].width = COLUMN_WIDTH

    if options.include_footer:
        row += 1
        for line in options.footer_lines(payload.metadata.generated_at):
            row = _write_banner(ws, row, width, line, Font(italic=True))

    buffer = io.BytesIO()
    wb.save(buffer)
    return buffer.getvalue()


EXCEL_ENCODER = EncoderSpec(
    name="excel",
    extension="xlsx",
    media_type="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    encode=encode_excel,
)

"""CSV encoder."""

from __future__ import annotations

import csv
import io

from typing import TYPE_CHECKING

from .base import EncoderSpec


if TYPE_CHECKING:
    from ..options import ExportOptions
    from ..payload import ExportPayload


BOM = "\ufeff"


def encode_csv(payload: ExportPayload, options: ExportOptions) -> bytes:
    """Encode the payload as UTF-8 CSV.

    Cells use their text lowering. The optional header block (letterhead,
    title, period) and footer are written as single-cell rows separated
    from the table by a blank line.
    """
    buffer = io.StringIO(newline="")
    writer = csv.writer(buffer, lineterminator="\n")

    if options.include_header:
        for line in options.header_lines(payload.metadata.title):
            writer.writerow([line])
        writer.writerow([])

    writer.writerow(payload.columns)
    writer.writerows(payload.text_rows())

    if options.include_footer:
        writer.writerow([])
        for line in options.footer_lines(payload.metadata.generated_at):
            writer.writerow([line])

    text = buffer.getvalue()
    if options.csv_bom:
        text = BOM + text
    return text.encode("utf-8")


CSV_ENCODER = EncoderSpec(
    name="csv",
    extension="csv",
    media_type="text/csv;charset=utf-8",
    encode=encode_csv,
)

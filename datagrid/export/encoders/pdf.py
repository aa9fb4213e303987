"""PDF encoder built on reportlab platypus."""

from __future__ import annotations

import html
import io

from typing import TYPE_CHECKING

from reportlab.lib import colors
from reportlab.lib.enums import TA_CENTER, TA_LEFT, TA_RIGHT
from reportlab.lib.pagesizes import A3, A4, landscape, legal, letter, portrait
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import cm
from reportlab.platypus import Image, Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from ..lowering import RunLowering, TextRun, runs_to_reportlab_markup
from .base import EncoderSpec


if TYPE_CHECKING:
    from reportlab.pdfgen.canvas import Canvas

    from ..options import ExportOptions
    from ..payload import ExportPayload


PAGE_SIZES = {"A4": A4, "A3": A3, "letter": letter, "legal": legal}
MARGIN = 1 * cm

_ALIGN = {"left": TA_LEFT, "center": TA_CENTER, "right": TA_RIGHT}
_TABLE_ALIGN = {"left": "LEFT", "center": "CENTER", "right": "RIGHT"}


def _page_size(options: ExportOptions) -> tuple[float, float]:
    size = PAGE_SIZES[options.paper_size]
    return landscape(size) if options.orientation == "landscape" else portrait(size)


def _cell_styles(base: ParagraphStyle) -> dict[str, ParagraphStyle]:
    return {
        align: ParagraphStyle(f"Cell-{align}", parent=base, fontSize=8, leading=10, alignment=value)
        for align, value in _ALIGN.items()
    }


def _cell_content(runs: list[TextRun], style: ParagraphStyle, align: str):
    """A single Paragraph, or a list of flowables when the cell holds images."""
    if not any(run.image is not None for run in runs):
        return Paragraph(runs_to_reportlab_markup(runs), style)

    flowables: list = []
    pending: list[TextRun] = []

    def flush() -> None:
        if "".join(run.text for run in pending).strip():
            flowables.append(Paragraph(runs_to_reportlab_markup(pending), style))
        pending.clear()

    for run in runs:
        if run.image is None:
            pending.append(run)
            continue
        flush()
        picture = run.image
        flowables.append(
            Image(
                picture.stream(),
                width=picture.width_pt,
                height=picture.height_pt,
                hAlign=_TABLE_ALIGN[align],
            )
        )
    flush()
    return flowables


def _header_flowables(
    payload: ExportPayload, options: ExportOptions, styles
) -> list:
    title_style = ParagraphStyle("ReportTitle", parent=styles["Title"], fontSize=16)
    centered = ParagraphStyle("Centered", parent=styles["Normal"], alignment=TA_CENTER)
    story: list = []

    letterhead = options.letterhead
    if letterhead is not None:
        if letterhead.title:
            story.append(Paragraph(html.escape(letterhead.title), title_style))
        if letterhead.subtitle:
            story.append(Paragraph(html.escape(letterhead.subtitle), centered))
        contact = letterhead.contact_lines()
        if contact:
            story.append(Paragraph(html.escape(" | ".join(contact)), centered))

    title = options.title or payload.metadata.title
    if title:
        story.append(Paragraph(html.escape(title), styles["Heading2"]))
    if options.description:
        story.append(Paragraph(html.escape(options.description), centered))
    if options.date_range is not None:
        story.append(Paragraph(html.escape(options.date_range.label()), centered))
    story.append(Spacer(1, 12))
    return story


def encode_pdf(payload: ExportPayload, options: ExportOptions) -> bytes:
    """Encode the payload as a PDF table.

    Cells are ``Paragraph`` flowables so long values wrap; badge colors
    survive as ``<font color>`` markup and locally readable images are
    drawn bounded to ``options.image_max_size``. The header row repeats
    on every page.
    """
    buffer = io.BytesIO()
    pagesize = _page_size(options)
    doc = SimpleDocTemplate(
        buffer,
        pagesize=pagesize,
        leftMargin=MARGIN,
        rightMargin=MARGIN,
        topMargin=MARGIN,
        bottomMargin=MARGIN,
        title=options.title or payload.metadata.title,
    )
    styles = getSampleStyleSheet()
    cell_styles = _cell_styles(styles["Normal"])
    header_style = ParagraphStyle(
        "HeaderCell",
        parent=styles["Normal"],
        fontName="Helvetica-Bold",
        fontSize=8,
        leading=10,
        textColor=colors.white,
    )

    story: list = []
    if options.include_header:
        story.extend(_header_flowables(payload, options, styles))

    width = len(payload.columns)
    if width:
        alignments = payload.column_alignments
        data = [
            [
                Paragraph(
                    html.escape(label),
                    ParagraphStyle(
                        f"HeaderCell-{index}", parent=header_style, alignment=_ALIGN[alignments[index]]
                    ),
                )
                for index, label in enumerate(payload.columns)
            ]
        ]
        lowering = RunLowering(image_max_size=options.image_max_size)
        for export_row in payload.rows:
            data.append(
                [
                    _cell_content(
                        lowering.visit(cell.node),
                        cell_styles[alignments[index]],
                        alignments[index],
                    )
                    for index, cell in enumerate(export_row)
                ]
            )

        available = pagesize[0] - 2 * MARGIN
        table = Table(data, colWidths=[available / width] * width, repeatRows=1)
        commands = [
            ("BACKGROUND", (0, 0), (-1, 0), colors.HexColor(options.header_color)),
            ("GRID", (0, 0), (-1, -1), 0.5, colors.HexColor("#DDDDDD")),
            ("VALIGN", (0, 0), (-1, -1), "MIDDLE"),
        ]
        if payload.rows:
            commands.append(
                (
                    "ROWBACKGROUNDS",
                    (0, 1),
                    (-1, -1),
                    [colors.white, colors.HexColor(options.zebra_color)],
                )
            )
        commands.extend(
            ("ALIGN", (index, 0), (index, -1), _TABLE_ALIGN[align])
            for index, align in enumerate(alignments)
        )
        table.setStyle(TableStyle(commands))
        story.append(table)
    else:
        story.append(Paragraph("No columns to export.", styles["Normal"]))

    if options.include_footer:
        story.append(Spacer(1, 18))
        footer_style = ParagraphStyle("Footer", parent=styles["Italic"], fontSize=8)
        story.extend(
            Paragraph(html.escape(line), footer_style)
            for line in options.footer_lines(payload.metadata.generated_at)
        )

    def _draw_page_number(canvas: Canvas, document: SimpleDocTemplate) -> None:
        canvas.saveState()
        canvas.setFont("Helvetica", 8)
        canvas.drawCentredString(pagesize[0] / 2, MARGIN / 2, f"Page {document.page}")
        canvas.restoreState()

    if options.include_page_numbers:
        doc.build(story, onFirstPage=_draw_page_number, onLaterPages=_draw_page_number)
    else:
        doc.build(story)
    return buffer.getvalue()


PDF_ENCODER = EncoderSpec(
    name="pdf",
    extension="pdf",
    media_type="application/pdf",
    encode=encode_pdf,
)

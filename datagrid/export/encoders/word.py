"""Word (docx) encoder built on python-docx."""

from __future__ import annotations

import io

from typing import TYPE_CHECKING

from docx import Document
from docx.enum.section import WD_ORIENT
from docx.enum.table import WD_TABLE_ALIGNMENT
from docx.enum.text import WD_ALIGN_PARAGRAPH
from docx.oxml import OxmlElement
from docx.oxml.ns import qn
from docx.image.exceptions import UnrecognizedImageError
from docx.shared import Mm, Pt, RGBColor

from ...log import debug
from ..lowering import RunLowering, TextRun
from .base import EncoderSpec, hex_rgb


if TYPE_CHECKING:
    from docx.document import Document as DocumentObject

    from ..options import ExportOptions
    from ..payload import ExportPayload


PAPER_SIZES_MM: dict[str, tuple[float, float]] = {
    "A4": (210, 297),
    "A3": (297, 420),
    "letter": (215.9, 279.4),
    "legal": (215.9, 355.6),
}

_PARAGRAPH_ALIGN = {
    "left": WD_ALIGN_PARAGRAPH.LEFT,
    "center": WD_ALIGN_PARAGRAPH.CENTER,
    "right": WD_ALIGN_PARAGRAPH.RIGHT,
}


def _set_cell_shading(cell, color: str) -> None:
    """Set cell background color."""
    shading_elm = OxmlElement("w:shd")
    shading_elm.set(qn("w:val"), "clear")
    shading_elm.set(qn("w:fill"), hex_rgb(color))
    cell._tc.get_or_add_tcPr().append(shading_elm)  # pylint: disable=protected-access


def _add_page_number(paragraph) -> None:
    """Append a PAGE field to a paragraph."""
    run = paragraph.add_run()
    begin = OxmlElement("w:fldChar")
    begin.set(qn("w:fldCharType"), "begin")
    instr = OxmlElement("w:instrText")
    instr.text = "PAGE"
    separate = OxmlElement("w:fldChar")
    separate.set(qn("w:fldCharType"), "separate")
    end = OxmlElement("w:fldChar")
    end.set(qn("w:fldCharType"), "end")
    for element in (begin, instr, separate, end):
        run._r.append(element)  # pylint: disable=protected-access


def _add_picture(paragraph, text_run: TextRun) -> bool:
    """Embed an image run as an inline picture; False if docx rejects it."""
    picture = text_run.image
    try:
        paragraph.add_run().add_picture(
            picture.stream(), width=Pt(picture.width_pt), height=Pt(picture.height_pt)
        )
    except UnrecognizedImageError as e:
        debug(f"Word export could not embed image: {e}")
        return False
    return True


def _setup_page(doc: DocumentObject, options: ExportOptions) -> None:
    section = doc.sections[0]
    width, height = PAPER_SIZES_MM[options.paper_size]
    if options.orientation == "landscape":
        section.orientation = WD_ORIENT.LANDSCAPE
        width, height = height, width
    section.page_width = Mm(width)
    section.page_height = Mm(height)


def _centered(doc: DocumentObject, text: str, size: int | None = None, bold: bool = False) -> None:
    paragraph = doc.add_paragraph()
    paragraph.alignment = WD_ALIGN_PARAGRAPH.CENTER
    run = paragraph.add_run(text)
    run.bold = bold
    if size is not None:
        run.font.size = Pt(size)


def _write_header_block(doc: DocumentObject, payload: ExportPayload, options: ExportOptions) -> None:
    letterhead = options.letterhead
    if letterhead is not None:
        if letterhead.title:
            _centered(doc, letterhead.title, size=18, bold=True)
        if letterhead.subtitle:
            _centered(doc, letterhead.subtitle, size=12)
        contact = letterhead.contact_lines()
        if contact:
            _centered(doc, " | ".join(contact), size=9)

    title = options.title or payload.metadata.title
    if title:
        _centered(doc, title, size=14, bold=True)
    if options.description:
        _centered(doc, options.description)
    if options.date_range is not None:
        _centered(doc, options.date_range.label())


def encode_word(payload: ExportPayload, options: ExportOptions) -> bytes:
    """Encode the payload as a docx document holding one table.

    Badge runs keep their palette color and are bolded. Images that can be
    read locally are embedded as inline pictures bounded to
    ``options.image_max_size``; the rest reduce to their alt text.
    """
    doc = Document()
    _setup_page(doc, options)

    if options.include_header:
        _write_header_block(doc, payload, options)

    width = len(payload.columns)
    if width:
        table = doc.add_table(rows=1, cols=width)
        table.style = "Table Grid"
        table.alignment = WD_TABLE_ALIGNMENT.CENTER

        header_cells = table.rows[0].cells
        for index, label in enumerate(payload.columns):
            cell = header_cells[index]
            paragraph = cell.paragraphs[0]
            paragraph.alignment = _PARAGRAPH_ALIGN[payload.column_alignments[index]]
            run = paragraph.add_run(label)
            run.bold = True
            run.font.color.rgb = RGBColor.from_string("FFFFFF")
            _set_cell_shading(cell, options.header_color)

        lowering = RunLowering(image_max_size=options.image_max_size)
        for row_idx, export_row in enumerate(payload.rows):
            row_cells = table.add_row().cells
            for col_idx, export_cell in enumerate(export_row):
                cell = row_cells[col_idx]
                paragraph = cell.paragraphs[0]
                paragraph.alignment = _PARAGRAPH_ALIGN[payload.column_alignments[col_idx]]
                for text_run in lowering.visit(export_cell.node):
                    if text_run.image is not None and _add_picture(paragraph, text_run):
                        continue
                    run = paragraph.add_run(text_run.text)
                    run.bold = text_run.bold
                    if text_run.color:
                        run.font.color.rgb = RGBColor.from_string(hex_rgb(text_run.color))
                if row_idx % 2 == 1:
                    _set_cell_shading(cell, options.zebra_color)
    else:
        doc.add_paragraph("No columns to export.")

    if options.include_footer:
        doc.add_paragraph()
        for line in options.footer_lines(payload.metadata.generated_at):
            paragraph = doc.add_paragraph()
            run = paragraph.add_run(line)
            run.italic = True
            run.font.size = Pt(9)

    if options.include_page_numbers:
        footer_paragraph = doc.sections[0].footer.paragraphs[0]
        footer_paragraph.alignment = WD_ALIGN_PARAGRAPH.CENTER
        _add_page_number(footer_paragraph)

    buffer = io.BytesIO()
    doc.save(buffer)
    return buffer.getvalue()


WORD_ENCODER = EncoderSpec(
    name="word",
    extension="docx",
    media_type="application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    encode=encode_word,
)

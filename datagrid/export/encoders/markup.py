"""HTML and print encoders.

Both produce a standalone UTF-8 document whose cells use the html
lowering. The ``html`` flavour carries on-screen print controls (paper
size, orientation, print button); the ``print`` flavour opens the print
dialog as soon as it loads.
"""

from __future__ import annotations

import html

from typing import TYPE_CHECKING

from .base import EncoderSpec


if TYPE_CHECKING:
    from ..options import ExportOptions
    from ..payload import ExportPayload


_PAPER_CSS = {"A4": "A4", "A3": "A3", "letter": "letter", "legal": "legal"}

_PRINT_SCRIPT = """<script>
window.addEventListener("load", function () { window.print(); });
</script>"""

_CONTROLS_SCRIPT = """<script>
function datagridApplyPage() {
  var size = document.getElementById("paperSizeSelect").value;
  var orientation = document.getElementById("paperOrientationSelect").value;
  document.getElementById("datagrid-page-style").textContent =
    "@media print { @page { size: " + size + " " + orientation + "; margin: 1cm; } }";
}
function datagridPrint() { datagridApplyPage(); window.print(); }
</script>"""


def _stylesheet(options: ExportOptions) -> str:
    header = html.escape(options.header_color, quote=True)
    zebra = html.escape(options.zebra_color, quote=True)
    paper = _PAPER_CSS[options.paper_size]
    return (
        "<style>"
        "body { font-family: Arial, sans-serif; margin: 20px; }"
        ".print-controls { position: fixed; top: 10px; right: 10px; z-index: 1000; "
        "background: white; padding: 10px; border: 1px solid #ddd; border-radius: 5px; "
        "box-shadow: 0 2px 5px rgba(0,0,0,0.2); }"
        ".print-controls select, .print-controls button { margin: 5px; padding: 8px 12px; "
        "font-size: 14px; border: 1px solid #ccc; border-radius: 4px; cursor: pointer; }"
        f".print-controls button {{ background: {header}; color: white; border: none; }}"
        f"h1 {{ text-align: center; color: {header}; }}"
        "h2 { text-align: center; color: #666; }"
        ".header-line { text-align: center; font-size: 12px; color: #666; }"
        "table { width: 100%; border-collapse: collapse; margin: 20px 0; }"
        f"th {{ background-color: {header}; color: white; padding: 10px; border: 1px solid #ddd; }}"
        "td { padding: 8px; border: 1px solid #ddd; }"
        f"tr:nth-child(even) {{ background-color: {zebra}; }}"
        ".footer { text-align: center; margin-top: 30px; font-size: 12px; color: #666; }"
        "@media print { "
        f"@page {{ size: {paper} {options.orientation}; margin: 1cm; }} "
        "body { margin: 0; } .print-controls { display: none; } }"
        "</style>"
        '<style id="datagrid-page-style"></style>'
    )


def _print_controls(options: ExportOptions) -> str:
    def option(value: str, label: str, current: str) -> str:
        selected = " selected" if value == current else ""
        return f'<option value="{value}"{selected}>{label}</option>'

    sizes = "".join(
        option(value, value if value.startswith("A") else value.title(), options.paper_size)
        for value in _PAPER_CSS
    )
    orientations = "".join(
        option(value, value.title(), options.orientation) for value in ("portrait", "landscape")
    )
    return (
        '<div class="print-controls">'
        f'<select id="paperSizeSelect" onchange="datagridApplyPage()">{sizes}</select>'
        f'<select id="paperOrientationSelect" onchange="datagridApplyPage()">{orientations}</select>'
        '<button type="button" id="btnPrint" onclick="datagridPrint()">Print</button>'
        "</div>"
    )


def _header_block(payload: ExportPayload, options: ExportOptions) -> str:
    parts: list[str] = []
    letterhead = options.letterhead
    if letterhead is not None:
        if letterhead.logo_url:
            src = html.escape(letterhead.logo_url, quote=True)
            parts.append(
                f'<div style="text-align: center;"><img src="{src}" alt="" '
                'style="max-height: 60px;" /></div>'
            )
        if letterhead.title:
            parts.append(f"<h1>{html.escape(letterhead.title)}</h1>")
        if letterhead.subtitle:
            parts.append(f"<h2>{html.escape(letterhead.subtitle)}</h2>")
        contact = letterhead.contact_lines()
        if contact:
            parts.append(f'<p class="header-line">{html.escape(" | ".join(contact))}</p>')

    title = options.title or payload.metadata.title
    if title:
        parts.append(f"<h2>{html.escape(title)}</h2>")
    if options.description:
        parts.append(f'<p style="text-align: center;">{html.escape(options.description)}</p>')
    if options.date_range is not None:
        parts.append(f'<p style="text-align: center;">{html.escape(options.date_range.label())}</p>')
    return "".join(parts)


def _table(payload: ExportPayload) -> str:
    alignments = payload.column_alignments
    head = "".join(
        f'<th style="text-align: {alignments[index]};">{html.escape(label)}</th>'
        for index, label in enumerate(payload.columns)
    )
    body = "".join(
        "<tr>"
        + "".join(
            f'<td style="text-align: {alignments[index]};">{cell.html}</td>'
            for index, cell in enumerate(row)
        )
        + "</tr>"
        for row in payload.rows
    )
    return f"<table><thead><tr>{head}</tr></thead><tbody>{body}</tbody></table>"


def render_document(payload: ExportPayload, options: ExportOptions, print_mode: bool = False) -> str:
    """Build the standalone HTML document.

    Parameters
    ----------
    payload : ExportPayload
        The export snapshot.
    options : ExportOptions
        Header, footer and page options.
    print_mode : bool
        Open the print dialog on load instead of showing print controls.

    Returns
    -------
    str
        The HTML document.
    """
    title = html.escape(options.title or payload.metadata.title or "Report")
    parts = [
        "<!DOCTYPE html>",
        '<html><head><meta charset="UTF-8">',
        f"<title>{title}</title>",
        _stylesheet(options),
        "</head><body>",
    ]
    if not print_mode and options.show_print_controls:
        parts.append(_print_controls(options))
    if options.include_header:
        parts.append(_header_block(payload, options))
    parts.append(_table(payload))
    if options.include_footer:
        lines = options.footer_lines(payload.metadata.generated_at)
        parts.append(
            '<div class="footer">'
            + "".join(f"<p>{html.escape(line)}</p>" for line in lines)
            + "</div>"
        )
    if print_mode:
        parts.append(_PRINT_SCRIPT)
    elif options.show_print_controls:
        parts.append(_CONTROLS_SCRIPT)
    parts.append("</body></html>")
    return "".join(parts)


def encode_html(payload: ExportPayload, options: ExportOptions) -> bytes:
    return render_document(payload, options).encode("utf-8")


def encode_print(payload: ExportPayload, options: ExportOptions) -> bytes:
    return render_document(payload, options, print_mode=True).encode("utf-8")


HTML_ENCODER = EncoderSpec(
    name="html",
    extension="html",
    media_type="text/html;charset=utf-8",
    encode=encode_html,
)

PRINT_ENCODER = EncoderSpec(
    name="print",
    extension="html",
    media_type="text/html;charset=utf-8",
    encode=encode_print,
)

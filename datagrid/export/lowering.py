"""Lower cell node trees into each target format's representation.

Three visitors share the cell node traversal:

- HtmlLowering: markup for html/print documents
- TextLowering: plain text for csv and spreadsheet cells
- RunLowering: styled text runs, and embeddable images, for word and pdf tables
"""

from __future__ import annotations

import html

from dataclasses import dataclass
from typing import Any

from ..cells import IMAGE_PLACEHOLDER, Badge, CellVisitor, Group, Image, Opaque, Text
from .images import EmbeddedImage, load_image


DEFAULT_IMAGE_MAX_SIZE = 40

BADGE_STYLE = (
    "display: inline-block; padding: 2px 8px; background-color: {color}; "
    "color: white; border-radius: 4px; font-size: 12px; font-weight: 500;"
)
IMAGE_STYLE = "max-width: {size}px; max-height: {size}px; border-radius: 4px;"


class HtmlLowering(CellVisitor):
    """Render a node tree as an HTML fragment.

    Text is escaped, badges become colored ``<span>`` elements and images
    become size-bounded ``<img>`` tags. An image without a source shows
    its alt text.
    """

    def __init__(self, image_max_size: int = DEFAULT_IMAGE_MAX_SIZE) -> None:
        self.image_max_size = image_max_size

    def visit_text(self, node: Text) -> str:
        return html.escape(node.text)

    def visit_badge(self, node: Badge) -> str:
        style = BADGE_STYLE.format(color=node.hex_color)
        return f'<span style="{style}">{html.escape(node.text)}</span>'

    def visit_group(self, node: Group) -> str:
        return " ".join(self.visit(child) for child in node.children)

    def visit_image(self, node: Image) -> str:
        if not node.src:
            return html.escape(node.alt or IMAGE_PLACEHOLDER)
        style = IMAGE_STYLE.format(size=self.image_max_size)
        src = html.escape(node.src, quote=True)
        alt = html.escape(node.alt, quote=True)
        return f'<img src="{src}" alt="{alt}" style="{style}" />'

    def visit_opaque(self, node: Opaque) -> str:
        return html.escape(node.fallback_text)

    def visit_unknown(self, node: Any) -> str:
        return html.escape(super().visit_unknown(node))


class TextLowering(CellVisitor):
    """Render a node tree as plain text."""

    def visit_text(self, node: Text) -> str:
        return node.text

    def visit_badge(self, node: Badge) -> str:
        return node.text

    def visit_group(self, node: Group) -> str:
        return " ".join(self.visit(child) for child in node.children)

    def visit_image(self, node: Image) -> str:
        return node.alt or IMAGE_PLACEHOLDER

    def visit_opaque(self, node: Opaque) -> str:
        return node.fallback_text


@dataclass(frozen=True)
class TextRun:
    """A span of text with optional emphasis.

    Attributes
    ----------
    text : str
        The run text.
    color : str or None
        Foreground color as ``#rrggbb``.
    bold : bool
        Whether the run is bold.
    image : EmbeddedImage or None
        Picture to embed in place of ``text``; ``text`` holds the alt text.
    """

    text: str
    color: str | None = None
    bold: bool = False
    image: EmbeddedImage | None = None


class RunLowering(CellVisitor):
    """Flatten a node tree into text runs.

    Badges keep their palette color as the run color. Images whose source
    can be read locally become image runs bounded to ``image_max_size``;
    the rest reduce to their alt text. Adjacent runs from a group are
    separated by a space.
    """

    def __init__(self, image_max_size: int = DEFAULT_IMAGE_MAX_SIZE) -> None:
        self.image_max_size = image_max_size

    def visit_text(self, node: Text) -> list[TextRun]:
        return [TextRun(node.text)] if node.text else []

    def visit_badge(self, node: Badge) -> list[TextRun]:
        return [TextRun(node.text, color=node.hex_color, bold=True)]

    def visit_group(self, node: Group) -> list[TextRun]:
        runs: list[TextRun] = []
        for child in node.children:
            child_runs = self.visit(child)
            if not child_runs:
                continue
            if runs:
                runs.append(TextRun(" "))
            runs.extend(child_runs)
        return runs

    def visit_image(self, node: Image) -> list[TextRun]:
        alt = node.alt or IMAGE_PLACEHOLDER
        embedded = load_image(node.src, self.image_max_size)
        return [TextRun(alt, image=embedded)]

    def visit_opaque(self, node: Opaque) -> list[TextRun]:
        return [TextRun(node.fallback_text)] if node.fallback_text else []

    def visit_unknown(self, node: Any) -> list[TextRun]:
        return [TextRun(super().visit_unknown(node))]


def runs_to_reportlab_markup(runs: list[TextRun]) -> str:
    """Convert text runs into reportlab ``Paragraph`` mini-markup.

    Image runs contribute their alt text; callers that embed pictures
    split them out first.
    """
    parts = []
    for run in runs:
        text = html.escape(run.text, quote=False)
        if run.bold:
            text = f"<b>{text}</b>"
        if run.color:
            text = f'<font color="{run.color}">{text}</font>'
        parts.append(text)
    return "".join(parts)

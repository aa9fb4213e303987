"""Build the format-independent export payload.

The payload is an immutable snapshot: it holds the exported column labels,
their alignment, and one ``ExportCell`` per row and column carrying the
raw value plus its html and text lowerings. Every encoder consumes the
same payload.
"""

from __future__ import annotations

import copy

from collections.abc import Hashable, Iterable, Mapping, Sequence
from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from ..cells import coerce_cell, serialize_value, stringify
from ..engine import paginate
from ..exceptions import CellRenderError
from ..log import debug, warn
from ..models import Align, ColumnDef, ExportScope, GridModel
from .lowering import DEFAULT_IMAGE_MAX_SIZE, HtmlLowering, TextLowering


DEFAULT_ACTIONS_KEY = "actions"
EXPORT_SCOPES: tuple[ExportScope, ...] = ("all", "current-page", "selected")


class ExportCell(BaseModel):
    """One exported cell.

    ``node`` keeps the rendered cell tree for encoders that style runs
    (word, pdf); it is not part of the serialized payload.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    html: str = ""
    text: str = ""
    raw: Any = None
    node: Any = Field(default=None, exclude=True, repr=False)
    degraded: bool = Field(default=False, exclude=True)

    def to_dict(self) -> dict[str, Any]:
        return {"html": self.html, "text": self.text, "raw": self.raw}


class ExportMetadata(GridModel):
    """Payload metadata. ``current_page`` and ``page_size`` are set only
    for the ``current-page`` scope."""

    model_config = ConfigDict(populate_by_name=True, extra="allow", frozen=True)

    title: str = "Report"
    generated_at: str = Field(alias="generatedAt")
    scope: ExportScope = "all"
    total_records: int = Field(default=0, alias="totalRecords")
    exported_records: int = Field(default=0, alias="exportedRecords")
    current_page: int | None = Field(default=None, alias="currentPage")
    page_size: int | None = Field(default=None, alias="pageSize")
    scope_fallback: bool | None = Field(default=None, alias="scopeFallback")
    degraded_cells: int = Field(default=0, alias="degradedCells")


class ExportPayload(BaseModel):
    """Snapshot handed to encoders."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    columns: tuple[str, ...]
    column_keys: tuple[str, ...] = Field(default=(), alias="columnKeys")
    column_alignments: tuple[Align, ...] = Field(alias="columnAlignments")
    rows: tuple[tuple[ExportCell, ...], ...]
    metadata: ExportMetadata

    def to_dict(self) -> dict[str, Any]:
        """Serializable form with camelCase keys."""
        return {
            "columns": list(self.columns),
            "columnAlignments": list(self.column_alignments),
            "rows": [[cell.to_dict() for cell in row] for row in self.rows],
            "metadata": self.metadata.to_dict(),
        }

    def text_rows(self) -> list[list[str]]:
        return [[cell.text for cell in row] for row in self.rows]


def export_columns(
    columns: Sequence[ColumnDef],
    actions_key: str = DEFAULT_ACTIONS_KEY,
) -> list[ColumnDef]:
    """Columns that take part in an export: not hidden, not the actions column."""
    return [c for c in columns if not c.hidden and c.key != actions_key]


def compute_alignments(
    columns: Sequence[ColumnDef],
    actions_key: str = DEFAULT_ACTIONS_KEY,
) -> list[Align]:
    """Alignment of each exported column.

    The first column is left-aligned, the last right-aligned and every
    column in between centered. An actions column keeps its own ``align``
    (right by default). A single column is left-aligned.
    """
    last = len(columns) - 1
    alignments: list[Align] = []
    for index, column in enumerate(columns):
        if column.key == actions_key:
            alignments.append(column.align or "right")
        elif index == 0:
            alignments.append("left")
        elif index == last:
            alignments.append("right")
        else:
            alignments.append("center")
    return alignments


def select_scope_rows(
    rows: Sequence[dict[str, Any]],
    scope: ExportScope,
    *,
    page: int = 1,
    page_size: int | None = None,
    selection: Iterable[Hashable] | None = None,
    row_id_key: str = "id",
) -> tuple[list[dict[str, Any]], bool]:
    """Pick the rows an export scope covers.

    Parameters
    ----------
    rows : sequence of dict
        The filtered and sorted rows, ignoring pagination.
    scope : str
        ``"all"``, ``"current-page"`` or ``"selected"``.
    page, page_size : int
        Current pagination; a missing page size means one page.
    selection : iterable, optional
        Selected row ids. Without it the ``selected`` scope falls back to
        the current page.
    row_id_key : str
        Row identifier key.

    Returns
    -------
    tuple of (list of dict, bool)
        The rows, and whether the ``selected`` scope fell back.
    """
    if scope == "all":
        return list(rows), False

    window = paginate(rows, page, page_size or 0)
    if scope == "current-page":
        return window.page_rows, False

    if scope == "selected":
        if selection is None:
            warn("Export scope 'selected' without a selection; exporting the current page")
            return window.page_rows, True
        selected = set(selection)
        return [row for row in rows if row.get(row_id_key) in selected], False

    raise ValueError(f"Unknown export scope '{scope}'")


def _snapshot(value: Any) -> Any:
    if isinstance(value, (dict, list, set, tuple)):
        return copy.deepcopy(value)
    return serialize_value(value)


class _CellRenderer:
    """Renders cells for one export and counts degraded ones."""

    def __init__(self, image_max_size: int, row_id_key: str) -> None:
        self.html = HtmlLowering(image_max_size=image_max_size)
        self.text = TextLowering()
        self.row_id_key = row_id_key
        self.degraded = 0

    def render(self, column: ColumnDef, row: dict[str, Any]) -> ExportCell:
        value = row.get(column.key)
        raw = _snapshot(value)
        try:
            node = column.render(value, row) if column.render is not None else value
            node = coerce_cell(node)
            return ExportCell(
                html=self.html.visit(node),
                text=self.text.visit(node),
                raw=raw,
                node=node,
            )
        except Exception as e:  # pylint: disable=broad-except
            error = CellRenderError(str(e), column=column.key, row_id=row.get(self.row_id_key))
            warn(f"Cell render failed, exporting raw value: {error}")
            self.degraded += 1
            fallback = stringify(value)
            return ExportCell(
                html=self.html.visit_unknown(fallback),
                text=fallback,
                raw=raw,
                node=fallback,
                degraded=True,
            )


def prepare_export(
    rows: Sequence[dict[str, Any]],
    columns: Sequence[ColumnDef],
    scope: ExportScope = "all",
    metadata: Mapping[str, Any] | None = None,
    *,
    page: int = 1,
    page_size: int | None = None,
    selection: Iterable[Hashable] | None = None,
    row_id_key: str = "id",
    actions_key: str = DEFAULT_ACTIONS_KEY,
    image_max_size: int = DEFAULT_IMAGE_MAX_SIZE,
) -> ExportPayload:
    """Build an export payload from the current table state.

    Parameters
    ----------
    rows : sequence of dict
        Filtered and sorted rows, ignoring pagination.
    columns : sequence of ColumnDef
        Columns in display order, including hidden ones.
    scope : str
        ``"all"``, ``"current-page"`` or ``"selected"``.
    metadata : mapping, optional
        Extra metadata; ``title`` sets the report title.
    page, page_size : int
        Current pagination.
    selection : iterable, optional
        Selected row ids for the ``selected`` scope.
    row_id_key : str
        Row identifier key.
    actions_key : str
        Key of the UI-only actions column, which is never exported.
    image_max_size : int
        Pixel bound for images in markup output.

    Returns
    -------
    ExportPayload
        The frozen payload.
    """
    if scope not in EXPORT_SCOPES:
        raise ValueError(f"Unknown export scope '{scope}'")

    included = export_columns(columns, actions_key)
    scope_rows, fell_back = select_scope_rows(
        rows,
        scope,
        page=page,
        page_size=page_size,
        selection=selection,
        row_id_key=row_id_key,
    )

    renderer = _CellRenderer(image_max_size=image_max_size, row_id_key=row_id_key)
    export_rows = tuple(
        tuple(renderer.render(column, row) for column in included) for row in scope_rows
    )

    extra = dict(metadata or {})
    meta: dict[str, Any] = {
        **extra,
        "title": extra.get("title") or "Report",
        "generated_at": extra.get("generated_at") or datetime.now().isoformat(),
        "scope": scope,
        "total_records": len(rows),
        "exported_records": len(export_rows),
        "degraded_cells": renderer.degraded,
    }
    if scope == "current-page":
        window = paginate(rows, page, page_size or 0)
        meta["current_page"] = window.page
        meta["page_size"] = page_size or len(rows)
    if fell_back:
        meta["scope_fallback"] = True

    debug(
        f"Prepared '{scope}' export: {len(export_rows)}/{len(rows)} rows, "
        f"{len(included)} columns, {renderer.degraded} degraded cells"
    )
    return ExportPayload(
        columns=tuple(column.label for column in included),
        column_keys=tuple(column.key for column in included),
        column_alignments=tuple(compute_alignments(included, actions_key)),
        rows=export_rows,
        metadata=ExportMetadata(**meta),
    )

"""DataTable: one table's state, customization, selection and export.

The facade owns a ``DataState``, a ``ColumnConfigStore`` binding, a
``SelectionTracker`` and an ``EventRegistry``. Every change is published
as a ``TableEvent`` so that a UI layer can re-render.

Usage:
    from datagrid import DataTable

    table = DataTable("orders", columns=[{"key": "id"}, {"key": "amount"}], rows=rows)
    table.on("state-changed", lambda state: print(state["totalCount"]))
    table.search("ada")
    table.sort("amount")
    result = table.export("csv", scope="current-page")
"""

from __future__ import annotations

from collections.abc import Hashable, Mapping, Sequence
from concurrent.futures import Executor
from typing import Any

from .callbacks import CallbackFunc, EventRegistry, TableEvent
from .columns import (
    ColumnConfigStore,
    move_column,
    reorder,
    set_background,
    set_hidden,
)
from .columns import visible_columns as _visible_columns
from .config import DataGridSettings, get_settings
from .contrast import contrast_color, hover_color
from .engine import DataState, PageWindow
from .exceptions import ConfigurationError, ExportCancelledError, ExportError
from .export import (
    ExportController,
    ExportOptions,
    ExportPayload,
    ExportResult,
    encode,
    prepare_export,
)
from .log import debug
from .models import (
    ColumnDef,
    ExportScope,
    SelectionStatus,
    SortDirection,
    SortState,
    TableStyle,
    build_column_defs,
    normalize_rows,
)
from .selection import SelectionTracker
from .state import KeyValueStore, get_key_value_store


class DataTable:
    """A searchable, sortable, paginated and exportable table.

    Parameters
    ----------
    table_id : str
        Stable identifier; persisted settings are keyed by it.
    columns : sequence of ColumnDef or dict, optional
        Column schema. When omitted, columns are generated from the data.
    rows : Any, optional
        A list of dicts, dict of lists, or pandas DataFrame.
    store : KeyValueStore, optional
        Persistence for column settings; the configured store by default.
    settings : DataGridSettings, optional
        Configuration; the global settings by default.
    page_size : int, optional
        Rows per page; ``table.default_page_size`` by default.
    executor : concurrent.futures.Executor, optional
        Runs persistence writes in the background.
    """

    def __init__(
        self,
        table_id: str,
        columns: Sequence[ColumnDef | dict[str, Any]] | None = None,
        rows: Any = None,
        store: KeyValueStore | None = None,
        settings: DataGridSettings | None = None,
        *,
        page_size: int | None = None,
        executor: Executor | None = None,
    ) -> None:
        if not table_id:
            raise ConfigurationError("DataTable requires a non-empty table_id")

        self.table_id = table_id
        self.settings = settings or get_settings()
        table_settings = self.settings.table
        self.row_id_key = table_settings.row_id_key
        self.actions_key = table_settings.actions_key

        data = normalize_rows(rows)
        self._live_columns = self._build_schema(columns, data.columns, data.column_types)

        self.events = EventRegistry(table_id)
        self.column_store = ColumnConfigStore(
            store if store is not None else get_key_value_store(),
            namespace=self.settings.storage.namespace,
            executor=executor,
        )
        self._columns = self.column_store.load(table_id, self._live_columns)
        self._style = self.column_store.load_style(table_id)

        self.selection = SelectionTracker(on_change=self._on_selection_change)
        try:
            self.state = DataState(
                data.rows,
                columns=self._columns,
                page_size=(
                    page_size if page_size is not None else table_settings.default_page_size
                ),
                on_change=self._on_state_change,
            )
        except ValueError as e:
            raise ConfigurationError(str(e), table_id=table_id) from e
        self._controller = ExportController()
        debug(f"Created table '{table_id}' with {len(self._columns)} columns")

    @staticmethod
    def _build_schema(
        columns: Sequence[ColumnDef | dict[str, Any]] | None,
        data_columns: list[str],
        column_types: dict[str, str],
    ) -> list[ColumnDef]:
        if not columns:
            return build_column_defs(data_columns, column_types=column_types)
        definitions = [c if isinstance(c, ColumnDef) else ColumnDef(**c) for c in columns]
        keys = [d.key for d in definitions]
        duplicates = sorted({key for key in keys if keys.count(key) > 1})
        if duplicates:
            raise ConfigurationError("Duplicate column keys", keys=duplicates)
        return definitions

    # --- Event plumbing ---

    def on(self, event_type: TableEvent | str, handler: CallbackFunc) -> bool:
        """Register a handler for a table event (or ``"*"``)."""
        return self.events.register(event_type, handler)

    def off(
        self,
        event_type: TableEvent | str | None = None,
        handler: CallbackFunc | None = None,
    ) -> bool:
        """Remove handlers registered with ``on``."""
        return self.events.unregister(event_type, handler)

    def _on_state_change(self, state: DataState) -> None:
        self.events.dispatch(TableEvent.STATE_CHANGED, state.snapshot())

    def _on_selection_change(self, selected: frozenset[Hashable]) -> None:
        self.events.dispatch(TableEvent.SELECTION_CHANGED, {"selected": list(selected)})

    # --- Read access ---

    @property
    def columns(self) -> list[ColumnDef]:
        """Columns in display order, hidden ones included."""
        return list(self._columns)

    @property
    def visible_columns(self) -> list[ColumnDef]:
        return _visible_columns(self._columns)

    @property
    def style(self) -> TableStyle:
        return self._style

    @property
    def page(self) -> PageWindow:
        return self.state.page_window

    @property
    def page_rows(self) -> list[dict[str, Any]]:
        return self.state.page_rows

    @property
    def page_row_ids(self) -> list[Any]:
        return self.state.page_window.row_ids(self.row_id_key)

    @property
    def sort_state(self) -> SortState:
        return self.state.sort

    def header_colors(self) -> dict[str, str | None]:
        """Header background with matching text and hover colors."""
        background = self._style.header_background_color or None
        return {
            "background": background,
            "color": contrast_color(background),
            "hover": hover_color(background),
        }

    def column_colors(self, key: str) -> dict[str, str | None]:
        """Background, contrasting text and hover colors of one column."""
        column = next((c for c in self._columns if c.key == key), None)
        background = column.background_color if column is not None else None
        return {
            "background": background,
            "color": contrast_color(background),
            "hover": hover_color(background),
        }

    # --- Data state ---

    def set_rows(self, rows: Any) -> None:
        """Replace the data. The column schema is kept."""
        self.state.set_rows(normalize_rows(rows).rows)

    def search(self, query: str | None) -> None:
        self.state.set_search(query)

    def filter(self, filters: Mapping[str, Any] | None) -> None:
        self.state.set_filters(filters)

    def clear_filters(self) -> None:
        self.state.clear_filters()

    def sort(self, column: str, direction: SortDirection | None = None) -> SortState:
        """Advance the tri-state sort on ``column``, or set ``direction`` directly."""
        if direction is None:
            return self.state.toggle_sort(column)
        self.state.set_sort(column, direction)
        return self.state.sort

    def go_to_page(self, page: int) -> int:
        return self.state.set_page(page)

    def set_page_size(self, page_size: int) -> None:
        self.state.set_page_size(page_size)

    # --- Column customization ---

    def _apply_columns(self, columns: list[ColumnDef]) -> None:
        self._columns = columns
        self.state.set_columns(columns)
        self.column_store.save(self.table_id, columns)
        self.events.dispatch(
            TableEvent.COLUMNS_CHANGED,
            {"columns": [column.to_dict() for column in columns]},
        )

    def reorder_columns(self, keys: Sequence[str]) -> None:
        self._apply_columns(reorder(self._columns, keys))

    def move_column(self, from_index: int, to_index: int) -> None:
        self._apply_columns(move_column(self._columns, from_index, to_index))

    def toggle_column(self, key: str, hidden: bool | None = None) -> None:
        """Flip (or set) the visibility of a column."""
        column = next((c for c in self._columns if c.key == key), None)
        if column is None:
            debug(f"Ignoring visibility change for unknown column '{key}'")
            return
        self._apply_columns(
            set_hidden(self._columns, key, not column.hidden if hidden is None else hidden)
        )

    def set_column_background(self, key: str, color: str | None) -> None:
        self._apply_columns(set_background(self._columns, key, color))

    def set_style(
        self,
        show_vertical_borders: bool | None = None,
        header_background_color: str | None = None,
    ) -> TableStyle:
        """Update the table style; arguments left as None are unchanged."""
        update: dict[str, Any] = {}
        if show_vertical_borders is not None:
            update["show_vertical_borders"] = show_vertical_borders
        if header_background_color is not None:
            update["header_background_color"] = header_background_color
        self._style = self._style.model_copy(update=update)
        self.column_store.save_style(self.table_id, self._style)
        self.events.dispatch(TableEvent.STYLE_CHANGED, self._style.to_dict())
        return self._style

    def reset_columns(self) -> None:
        """Drop every customization and return to the live schema."""
        self.column_store.reset(self.table_id)
        self._columns = [column.model_copy() for column in self._live_columns]
        self._style = TableStyle()
        self.state.set_columns(self._columns)
        self.events.dispatch(
            TableEvent.COLUMNS_CHANGED,
            {"columns": [column.to_dict() for column in self._columns]},
        )
        self.events.dispatch(TableEvent.STYLE_CHANGED, self._style.to_dict())

    # --- Selection ---

    def toggle_row(self, row_id: Hashable) -> bool:
        return self.selection.toggle(row_id)

    def toggle_all_visible(self) -> SelectionStatus:
        return self.selection.toggle_all_visible(self.page_row_ids)

    def selection_status(self) -> SelectionStatus:
        return self.selection.status(self.page_row_ids)

    # --- Export ---

    def prepare_export(self, scope: ExportScope = "all", title: str | None = None) -> ExportPayload:
        """Snapshot the table for export."""
        return prepare_export(
            self.state.visible_rows,
            self._columns,
            scope,
            {"title": title or self.settings.export.default_title},
            page=self.state.current_page,
            page_size=self.state.page_size,
            selection=self.selection.selected,
            row_id_key=self.row_id_key,
            actions_key=self.actions_key,
            image_max_size=self.settings.export.image_max_size,
        )

    def _options(self, options: ExportOptions | None) -> ExportOptions:
        return options or ExportOptions.from_settings(self.settings.export)

    def export(
        self,
        export_format: str,
        scope: ExportScope = "all",
        options: ExportOptions | None = None,
    ) -> ExportResult:
        """Export synchronously.

        Raises
        ------
        ExportError
            If encoding fails; an ``export-failed`` event is published first.
        """
        options = self._options(options)
        payload = self.prepare_export(scope, title=options.title)
        self.events.dispatch(
            TableEvent.EXPORT_STARTED, {"format": export_format, "scope": scope}
        )
        try:
            result = encode(payload, export_format, options)
        except ExportError as e:
            self.events.dispatch(
                TableEvent.EXPORT_FAILED, {"format": export_format, "error": str(e)}
            )
            raise
        self._export_completed(result, payload)
        return result

    async def export_async(
        self,
        export_format: str,
        scope: ExportScope = "all",
        options: ExportOptions | None = None,
    ) -> ExportResult:
        """Export in a worker thread; a newer call cancels this one.

        Raises
        ------
        ExportCancelledError
            If superseded by a newer export.
        ExportError
            If encoding fails.
        """
        options = self._options(options)
        payload = self.prepare_export(scope, title=options.title)
        self.events.dispatch(
            TableEvent.EXPORT_STARTED, {"format": export_format, "scope": scope}
        )
        try:
            result = await self._controller.export(payload, export_format, options)
        except ExportCancelledError:
            raise
        except ExportError as e:
            self.events.dispatch(
                TableEvent.EXPORT_FAILED, {"format": export_format, "error": str(e)}
            )
            raise
        self._export_completed(result, payload)
        return result

    def _export_completed(self, result: ExportResult, payload: ExportPayload) -> None:
        self.events.dispatch(
            TableEvent.EXPORT_COMPLETED,
            {
                "format": result.export_format,
                "filename": result.filename,
                "size": result.size,
                "exportedRecords": payload.metadata.exported_records,
                "degradedCells": payload.metadata.degraded_cells,
            },
        )

"""Persisted column configuration.

Column order, visibility and background color are saved per table under
``{namespace}-columns-{table_id}``; the table style under
``{namespace}-style-{table_id}``. Loading merges the saved settings over
the live schema so that schema changes never discard customization:

- saved columns come first, in saved order
- saved keys missing from the schema are dropped
- schema columns without a saved entry are appended in schema order

Persistence is best-effort. Read failures fall back to the live schema
and write failures are logged, never raised.
"""

from __future__ import annotations

import json

from collections.abc import Sequence
from concurrent.futures import Executor
from typing import Any

from pydantic import ValidationError

from .log import debug, warn
from .models import ColumnDef, ColumnSetting, TableStyle
from .state.base import KeyValueStore


DEFAULT_NAMESPACE = "datagrid"


def settings_from_columns(columns: Sequence[ColumnDef]) -> list[ColumnSetting]:
    """Persistable settings for a column list, ordered by position."""
    return [
        ColumnSetting(
            key=column.key,
            hidden=column.hidden,
            background_color=column.background_color,
            order=index,
        )
        for index, column in enumerate(columns)
    ]


def merge_settings(
    live_columns: Sequence[ColumnDef],
    settings: Sequence[ColumnSetting],
) -> list[ColumnDef]:
    """Apply saved settings to the live schema.

    Parameters
    ----------
    live_columns : sequence of ColumnDef
        The schema supplied by the caller.
    settings : sequence of ColumnSetting
        Saved settings, in any order.

    Returns
    -------
    list[ColumnDef]
        Copies of the live columns, reordered and restyled.
    """
    live_by_key = {column.key: column for column in live_columns}
    merged: list[ColumnDef] = []
    seen: set[str] = set()

    for setting in sorted(settings, key=lambda s: s.order):
        column = live_by_key.get(setting.key)
        if column is None:
            debug(f"Dropping saved setting for unknown column '{setting.key}'")
            continue
        if setting.key in seen:
            continue
        seen.add(setting.key)
        merged.append(
            column.model_copy(
                update={"hidden": setting.hidden, "background_color": setting.background_color}
            )
        )

    for column in live_columns:
        if column.key not in seen:
            debug(f"Appending new column '{column.key}'")
            seen.add(column.key)
            merged.append(column.model_copy())

    return merged


class ColumnConfigStore:
    """Loads and saves column settings and table style through a key-value store.

    Parameters
    ----------
    store : KeyValueStore
        Backing storage.
    namespace : str
        Key prefix shared by every table.
    executor : concurrent.futures.Executor, optional
        When given, writes are submitted to it and not awaited.
    """

    def __init__(
        self,
        store: KeyValueStore,
        namespace: str = DEFAULT_NAMESPACE,
        executor: Executor | None = None,
    ) -> None:
        self.store = store
        self.namespace = namespace
        self.executor = executor

    def columns_key(self, table_id: str) -> str:
        return f"{self.namespace}-columns-{table_id}"

    def style_key(self, table_id: str) -> str:
        return f"{self.namespace}-style-{table_id}"

    # --- Reads ---

    def _read_json(self, key: str) -> Any:
        try:
            raw = self.store.get(key)
        except Exception as e:  # pylint: disable=broad-except
            warn(f"Could not read '{key}': {e}")
            return None
        if raw is None or raw == "":
            return None
        try:
            return json.loads(raw)
        except (TypeError, ValueError) as e:
            warn(f"Ignoring corrupt settings under '{key}': {e}")
            return None

    def load_settings(self, table_id: str) -> list[ColumnSetting] | None:
        """Saved column settings, or None when absent or unreadable."""
        key = self.columns_key(table_id)
        data = self._read_json(key)
        if data is None:
            return None
        if not isinstance(data, list):
            warn(f"Ignoring settings under '{key}': expected a list")
            return None
        try:
            return [ColumnSetting.model_validate(item) for item in data]
        except ValidationError as e:
            warn(f"Ignoring invalid settings under '{key}': {e.error_count()} errors")
            return None

    def load(self, table_id: str, live_columns: Sequence[ColumnDef]) -> list[ColumnDef]:
        """Merge saved settings over ``live_columns``.

        Returns copies of the live columns unchanged when nothing usable
        is saved.
        """
        settings = self.load_settings(table_id)
        if settings is None:
            return [column.model_copy() for column in live_columns]
        return merge_settings(live_columns, settings)

    def load_style(self, table_id: str) -> TableStyle:
        """Saved table style, or the default style."""
        key = self.style_key(table_id)
        data = self._read_json(key)
        if not isinstance(data, dict):
            return TableStyle()
        try:
            return TableStyle.model_validate(data)
        except ValidationError as e:
            warn(f"Ignoring invalid style under '{key}': {e.error_count()} errors")
            return TableStyle()

    # --- Writes ---

    def _write_now(self, key: str, value: str | None) -> None:
        try:
            if value is None:
                self.store.remove(key)
            else:
                self.store.set(key, value)
        except Exception as e:  # pylint: disable=broad-except
            warn(f"Could not persist '{key}': {e}")

    def _write(self, key: str, value: str | None) -> None:
        if self.executor is None:
            self._write_now(key, value)
            return
        try:
            self.executor.submit(self._write_now, key, value)
        except RuntimeError as e:
            warn(f"Could not schedule write of '{key}': {e}")

    def save(self, table_id: str, columns: Sequence[ColumnDef]) -> None:
        """Overwrite the saved settings with the current column list."""
        payload = [setting.to_dict() for setting in settings_from_columns(columns)]
        self._write(self.columns_key(table_id), json.dumps(payload))

    def save_style(self, table_id: str, style: TableStyle) -> None:
        """Overwrite the saved table style."""
        self._write(self.style_key(table_id), json.dumps(style.to_dict()))

    def reset(self, table_id: str) -> None:
        """Forget both column settings and style for a table."""
        self._write(self.columns_key(table_id), None)
        self._write(self.style_key(table_id), None)


# --- Customization helpers ---


def reorder(columns: Sequence[ColumnDef], keys: Sequence[str]) -> list[ColumnDef]:
    """Put columns in the order of ``keys``.

    Unknown keys are ignored; columns not named keep their relative order
    after the named ones.
    """
    by_key = {column.key: column for column in columns}
    result: list[ColumnDef] = []
    seen: set[str] = set()
    for key in keys:
        if key in by_key and key not in seen:
            seen.add(key)
            result.append(by_key[key])
    result.extend(column for column in columns if column.key not in seen)
    return result


def move_column(columns: Sequence[ColumnDef], from_index: int, to_index: int) -> list[ColumnDef]:
    """Move one column, as a drag-and-drop or up/down button would."""
    result = list(columns)
    if not (0 <= from_index < len(result) and 0 <= to_index < len(result)):
        return result
    column = result.pop(from_index)
    result.insert(to_index, column)
    return result


def set_hidden(columns: Sequence[ColumnDef], key: str, hidden: bool) -> list[ColumnDef]:
    """Show or hide the column named ``key``."""
    return [
        column.model_copy(update={"hidden": hidden}) if column.key == key else column
        for column in columns
    ]


def set_background(columns: Sequence[ColumnDef], key: str, color: str | None) -> list[ColumnDef]:
    """Set (or clear, with None or "") a column's background color."""
    value = color or None
    return [
        column.model_copy(update={"background_color": value}) if column.key == key else column
        for column in columns
    ]


def visible_columns(columns: Sequence[ColumnDef]) -> list[ColumnDef]:
    """Columns that are not hidden."""
    return [column for column in columns if not column.hidden]

"""Column, filter, sort and style models plus row normalization.

All models serialize to camelCase (via aliases) so persisted settings and
export payloads use the same key style as the browser-side table they
mirror:

- ColumnDef: column schema entry (key, label, behaviour flags, render)
- FilterDescriptor: drives a filter input; matching lives in the engine
- SortState: tri-state sort (none → asc → desc → none)
- ColumnSetting / TableStyle: persisted customization

Usage:
    from datagrid.models import ColumnDef, build_column_defs, normalize_rows

    table_data = normalize_rows(df)
    columns = build_column_defs(table_data.columns, column_types=table_data.column_types)
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .log import debug, warn


Align = Literal["left", "center", "right"]
SortDirection = Literal["asc", "desc"]
FilterType = Literal["text", "select", "date", "daterange", "number"]
ExportScope = Literal["all", "current-page", "selected"]
SelectionStatus = Literal["none", "partial", "all"]

RenderFunc = Callable[[Any, dict[str, Any]], Any]


class GridModel(BaseModel):
    """Base model with camelCase serialization."""

    model_config = ConfigDict(
        populate_by_name=True,
        extra="allow",
    )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dict with camelCase keys, excluding None values."""
        result: dict[str, Any] = {
            (field_info.alias if field_info.alias else field_name): getattr(self, field_name)
            for field_name, field_info in type(self).model_fields.items()
            if not field_info.exclude and getattr(self, field_name) is not None
        }
        if self.__pydantic_extra__:
            result.update({k: v for k, v in self.__pydantic_extra__.items() if v is not None})
        return result


class ColumnDef(GridModel):
    """Table column definition.

    Use snake_case in Python, serializes to camelCase.

    Example:
        ColumnDef(key="amount", label="Amount", align="right",
                  render=lambda value, row: badge(value, "green"))
    """

    model_config = ConfigDict(
        populate_by_name=True,
        extra="allow",
        arbitrary_types_allowed=True,
    )

    key: str
    label: str = ""
    sortable: bool | None = None  # None means sortable
    searchable: bool | None = None  # None means searchable
    filterable: bool | None = None
    hidden: bool = False
    align: Align | None = None
    background_color: str | None = Field(default=None, alias="backgroundColor")
    render: RenderFunc | None = Field(default=None, exclude=True, repr=False)

    @field_validator("key")
    @classmethod
    def validate_key(cls, v: str) -> str:
        """Keys join schema, settings and rows, so they must be non-empty."""
        if not v or not v.strip():
            raise ValueError("Column key must be a non-empty string")
        return v

    def model_post_init(self, context: Any, /) -> None:
        """Default the label to a title-cased key."""
        if not self.label:
            self.label = self.key.replace("_", " ").title()

    @property
    def is_sortable(self) -> bool:
        return self.sortable is not False

    @property
    def is_searchable(self) -> bool:
        return self.searchable is not False


class FilterOptionItem(GridModel):
    """One choice of a select filter."""

    value: Any
    label: str


class FilterDescriptor(GridModel):
    """Filter input description.

    A ``daterange`` filter stores its bounds under ``{key}_start`` and
    ``{key}_end`` in the active filter set.
    """

    key: str
    label: str = ""
    type: FilterType = "text"
    options: list[FilterOptionItem] | None = None

    @property
    def range_keys(self) -> tuple[str, str]:
        return (f"{self.key}_start", f"{self.key}_end")


class SortState(GridModel):
    """Current sort: a column (or none) and a direction."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    column: str | None = None
    direction: SortDirection = "asc"

    @property
    def is_active(self) -> bool:
        return self.column is not None

    def next_for(self, column: str) -> SortState:
        """Advance the tri-state cycle for a header activation.

        none → asc → desc → none on the same column; a different column
        always starts at asc.
        """
        if self.column != column:
            return SortState(column=column, direction="asc")
        if self.direction == "asc":
            return SortState(column=column, direction="desc")
        return SortState()


class ColumnSetting(GridModel):
    """Persisted per-column customization."""

    key: str
    hidden: bool = False
    background_color: str | None = Field(default=None, alias="backgroundColor")
    order: int = 0

    def to_dict(self) -> dict[str, Any]:
        """Persisted form keeps ``backgroundColor`` even when unset."""
        return self.model_dump(by_alias=True)


class TableStyle(GridModel):
    """Persisted table-wide styling."""

    show_vertical_borders: bool = Field(default=False, alias="showVerticalBorders")
    header_background_color: str = Field(default="", alias="headerBackgroundColor")

    @field_validator("header_background_color", mode="before")
    @classmethod
    def none_to_empty(cls, v: Any) -> Any:
        return "" if v is None else v

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True)


class TableData(BaseModel):
    """Normalized row data from various input formats."""

    rows: list[dict[str, Any]]
    columns: list[str]
    total_rows: int
    # Column type hints ("number", "boolean", "date", "text")
    column_types: dict[str, str] = Field(default_factory=dict)


def _detect_column_types(data: Any) -> dict[str, str]:
    """Detect column types from pandas dtypes."""
    if not hasattr(data, "dtypes"):
        return {}

    column_types: dict[str, str] = {}
    for col, dtype in data.dtypes.items():
        dtype_str = str(dtype)
        col_str = str(col)

        if "datetime64" in dtype_str:
            column_types[col_str] = "date"
        elif dtype_str in {"bool", "boolean"}:
            column_types[col_str] = "boolean"
        elif "int" in dtype_str or "float" in dtype_str:
            column_types[col_str] = "number"
        else:
            column_types[col_str] = "text"

    return column_types


def _infer_column_types_from_values(
    rows: list[dict[str, Any]], columns: list[str]
) -> dict[str, str]:
    """Infer column types from Python values in a list of dicts.

    Only the first 100 rows are sampled.
    """
    if not rows or not columns:
        return {}

    column_types: dict[str, str] = {}
    sample = rows[:100]

    for col in columns:
        values = [row.get(col) for row in sample if row.get(col) is not None]
        if not values:
            continue

        first_val = values[0]
        if isinstance(first_val, bool):
            column_types[col] = "boolean"
        elif isinstance(first_val, (int, float)):
            column_types[col] = "number"
        elif hasattr(first_val, "isoformat"):
            column_types[col] = "date"
        else:
            column_types[col] = "text"

    return column_types


def _reset_meaningful_index(data: Any) -> Any:
    """Turn a named DataFrame index into regular columns."""
    index = getattr(data, "index", None)
    if index is None or not hasattr(index, "names"):
        return data
    if all(name is None for name in index.names):
        return data
    debug(f"Moving index levels {list(index.names)} into columns")
    return data.reset_index()


def normalize_rows(data: Any) -> TableData:
    """Convert various data formats to normalized TableData.

    Handles:
    - pandas DataFrame (named index levels become columns)
    - list of dicts: [{'a': 1}, {'a': 2}]
    - dict of lists: {'a': [1, 2], 'b': [3, 4]}
    - single dict: {'a': 1, 'b': 2}

    Values are kept as-is (no stringification) so the engine can compare
    numbers and dates natively.
    """
    rows: list[dict[str, Any]] = []
    columns: list[str] = []
    column_types: dict[str, str] = {}

    try:
        # pandas DataFrame (duck typing)
        if hasattr(data, "to_dict") and hasattr(data, "columns"):
            data = _reset_meaningful_index(data)
            column_types = _detect_column_types(data)
            rows = data.to_dict(orient="records")
            columns = [str(c) for c in data.columns]
        elif isinstance(data, dict):
            first_value = next(iter(data.values()), None)
            columns = list(data.keys())
            if isinstance(first_value, (list, tuple)):
                num_rows = len(first_value) if first_value else 0
                rows = [{col: data[col][i] for col in columns} for i in range(num_rows)]
            else:
                rows = [dict(data)]
            column_types = _infer_column_types_from_values(rows, columns)
        elif data is None:
            rows = []
        else:
            rows = [dict(row) for row in data]
            if rows:
                columns = list(rows[0].keys())
                column_types = _infer_column_types_from_values(rows, columns)
    except (ValueError, TypeError, IndexError) as e:
        warn(f"Failed to convert data: {e}")
        rows = []
        columns = []
        column_types = {}

    return TableData(
        rows=rows,
        columns=columns,
        total_rows=len(rows),
        column_types=column_types,
    )


def build_column_defs(
    columns: list[str],
    column_defs: list[dict[str, Any] | ColumnDef] | None = None,
    column_types: dict[str, str] | None = None,
) -> list[ColumnDef]:
    """Build column definitions for the given data keys.

    Explicit definitions win and keep their order; any data key they do
    not cover is appended with a generated definition. Number columns
    default to right alignment.

    Parameters
    ----------
    columns : list[str]
        Keys present in the data.
    column_defs : list of dict or ColumnDef, optional
        Explicit definitions.
    column_types : dict[str, str], optional
        Type hints from ``normalize_rows``.

    Returns
    -------
    list[ColumnDef]
        One definition per column key.
    """
    column_types = column_types or {}
    result: list[ColumnDef] = []
    seen: set[str] = set()

    for col_def in column_defs or []:
        definition = col_def if isinstance(col_def, ColumnDef) else ColumnDef(**col_def)
        if definition.key in seen:
            warn(f"Duplicate column key '{definition.key}' ignored")
            continue
        seen.add(definition.key)
        result.append(definition)

    for col in columns:
        if col in seen:
            continue
        seen.add(col)
        definition = ColumnDef(key=col)
        if column_types.get(col) == "number":
            definition.align = "right"
        result.append(definition)

    return result

"""Data state engine: filter, search, sort and paginate an in-memory row set.

Processing order is fixed: filter → search → sort → paginate. The pure
functions can be used on their own; ``DataState`` wraps them in a small
state machine that recomputes eagerly on every change.
"""

from __future__ import annotations

import locale
import math

from collections.abc import Callable, Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from functools import cmp_to_key
from typing import Any

from .log import debug
from .models import ColumnDef, SortDirection, SortState


Row = dict[str, Any]

RANGE_START_SUFFIX = "_start"
RANGE_END_SUFFIX = "_end"


@dataclass(frozen=True)
class ComputeResult:
    """Filtered, searched and sorted rows.

    Attributes
    ----------
    visible_rows : list of dict
        Rows that pass every constraint, in display order.
    total_count : int
        Number of visible rows.
    """

    visible_rows: list[Row]
    total_count: int


@dataclass(frozen=True)
class PageWindow:
    """One page of the visible rows.

    Attributes
    ----------
    page_rows : list of dict
        Rows on the page.
    start_index : int
        Index of the first page row within the visible rows.
    end_index : int
        Index one past the last page row.
    page : int
        The (clamped) 1-based page number.
    total_pages : int
        Number of pages; 0 when there are no rows.
    """

    page_rows: list[Row] = field(default_factory=list)
    start_index: int = 0
    end_index: int = 0
    page: int = 1
    total_pages: int = 0

    @property
    def start_record(self) -> int:
        """1-based number of the first record shown, 0 when empty."""
        return self.start_index + 1 if self.page_rows else 0

    @property
    def end_record(self) -> int:
        """1-based number of the last record shown."""
        return self.end_index

    def row_ids(self, row_id_key: str = "id") -> list[Any]:
        """Identifiers of the page rows."""
        return [row.get(row_id_key) for row in self.page_rows]


# --- Value helpers ---


def _is_null(value: Any) -> bool:
    return value is None or (isinstance(value, float) and math.isnan(value))


def _text(value: Any) -> str:
    return "" if _is_null(value) else str(value)


def _is_blank(value: Any) -> bool:
    """Filter values that mean "no constraint"."""
    return value is None or (isinstance(value, str) and not value.strip())


def _to_datetime(value: Any) -> datetime | None:
    """Parse a date-like value; date-only values map to the start of the day.

    Timezone-aware values are converted to naive UTC so they compare with
    naive ones.
    """
    if _is_null(value):
        return None
    if isinstance(value, datetime):
        result = value
    elif isinstance(value, date):
        result = datetime(value.year, value.month, value.day)
    elif isinstance(value, str):
        candidate = value.strip()
        if not candidate:
            return None
        if candidate.endswith("Z"):
            candidate = candidate[:-1] + "+00:00"
        try:
            result = datetime.fromisoformat(candidate)
        except ValueError:
            return None
    else:
        return None

    if result.tzinfo is not None:
        result = result.astimezone(timezone.utc).replace(tzinfo=None)
    return result


def _range_base(key: str) -> str | None:
    for suffix in (RANGE_START_SUFFIX, RANGE_END_SUFFIX):
        if key.endswith(suffix) and len(key) > len(suffix):
            return key[: -len(suffix)]
    return None


# --- Pure functions ---


def _matches_range(row: Row, base_key: str, filters: Mapping[str, Any]) -> bool:
    start_raw = filters.get(f"{base_key}{RANGE_START_SUFFIX}")
    end_raw = filters.get(f"{base_key}{RANGE_END_SUFFIX}")
    start = None if _is_blank(start_raw) else _to_datetime(start_raw)
    end = None if _is_blank(end_raw) else _to_datetime(end_raw)
    if start is None and end is None:
        return True

    row_date = _to_datetime(row.get(base_key))
    if row_date is None:
        return False
    if start is not None and row_date < start:
        return False
    return not (end is not None and row_date > end)


def apply_filters(rows: Iterable[Row], active_filters: Mapping[str, Any] | None) -> list[Row]:
    """Keep rows that satisfy every active filter.

    Keys ending in ``_start``/``_end`` are inclusive date bounds on the base
    key; any other key is a case-insensitive substring match. Blank filter
    values are ignored. Unparseable bounds are ignored as well.

    Parameters
    ----------
    rows : iterable of dict
        Source rows.
    active_filters : mapping, optional
        Filter key to filter value.

    Returns
    -------
    list of dict
        The matching rows in their original order.
    """
    rows = list(rows)
    if not active_filters:
        return rows

    checks: list[Callable[[Row], bool]] = []
    range_bases: set[str] = set()
    for key, value in active_filters.items():
        if _is_blank(value):
            continue
        base_key = _range_base(key)
        if base_key is not None:
            if base_key not in range_bases:
                range_bases.add(base_key)
                checks.append(
                    lambda row, b=base_key: _matches_range(row, b, active_filters)
                )
            continue
        needle = str(value).lower()
        checks.append(lambda row, k=key, n=needle: n in _text(row.get(k)).lower())

    if not checks:
        return rows
    return [row for row in rows if all(check(row) for check in checks)]


def apply_search(
    rows: Iterable[Row],
    query: str | None,
    columns: Sequence[ColumnDef],
) -> list[Row]:
    """Keep rows where any visible searchable column contains ``query``.

    Matching is a case-insensitive substring test on the stringified
    value. An empty query keeps every row.
    """
    rows = list(rows)
    if not query:
        return rows
    needle = query.lower()
    keys = [column.key for column in columns if column.is_searchable and not column.hidden]
    return [row for row in rows if any(needle in _text(row.get(k)).lower() for k in keys)]


def _collation_key(text: str) -> tuple[str, str]:
    # Case-insensitive first; among case variants lowercase sorts first.
    folded = text.casefold()
    try:
        primary = locale.strxfrm(folded)
    except (OSError, ValueError):
        primary = folded
    return (primary, text.swapcase())


def _locale_compare(a: str, b: str) -> int:
    left, right = _collation_key(a), _collation_key(b)
    return (left > right) - (left < right)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def compare_values(a: Any, b: Any, direction: SortDirection = "asc") -> int:
    """Three-way comparison used by ``apply_sort``.

    Nulls sort last in both directions. Strings compare locale-aware,
    numbers by subtraction, anything else by its string form.
    """
    a_null, b_null = _is_null(a), _is_null(b)
    if a_null and b_null:
        return 0
    if a_null:
        return 1
    if b_null:
        return -1

    if isinstance(a, str) and isinstance(b, str):
        comparison = _locale_compare(a, b)
    elif _is_number(a) and _is_number(b):
        diff = a - b
        comparison = (diff > 0) - (diff < 0)
    else:
        comparison = _locale_compare(str(a), str(b))

    return comparison if direction == "asc" else -comparison


def apply_sort(
    rows: Iterable[Row],
    sort: SortState | None,
    columns: Sequence[ColumnDef] = (),
) -> list[Row]:
    """Stable sort by the active sort column.

    Sorting a column declared non-sortable, or with no active sort, leaves
    the order unchanged.
    """
    rows = list(rows)
    if sort is None or not sort.is_active:
        return rows
    column = next((c for c in columns if c.key == sort.column), None)
    if column is not None and not column.is_sortable:
        debug(f"Ignoring sort on non-sortable column '{sort.column}'")
        return rows

    key = sort.column
    direction = sort.direction
    return sorted(
        rows,
        key=cmp_to_key(lambda x, y: compare_values(x.get(key), y.get(key), direction)),
    )


def compute(
    rows: Iterable[Row],
    search_query: str | None,
    active_filters: Mapping[str, Any] | None,
    sort: SortState | None,
    columns: Sequence[ColumnDef],
) -> ComputeResult:
    """Run filter → search → sort over ``rows``."""
    result = apply_filters(rows, active_filters)
    result = apply_search(result, search_query, columns)
    result = apply_sort(result, sort, columns)
    return ComputeResult(visible_rows=result, total_count=len(result))


def total_pages(count: int, page_size: int) -> int:
    """Number of pages needed for ``count`` rows."""
    if count <= 0:
        return 0
    if page_size <= 0:
        return 1
    return math.ceil(count / page_size)


def clamp_page(page: int, count: int, page_size: int) -> int:
    """Clamp ``page`` into ``[1, total_pages]`` (1 when there are no rows)."""
    pages = total_pages(count, page_size)
    return max(1, min(page, pages)) if pages else 1


def paginate(visible_rows: Sequence[Row], page: int, page_size: int) -> PageWindow:
    """Slice one page out of the visible rows.

    Parameters
    ----------
    visible_rows : sequence of dict
        Rows in display order.
    page : int
        Requested 1-based page; clamped into range.
    page_size : int
        Rows per page. A non-positive size yields a single page holding
        every row.

    Returns
    -------
    PageWindow
        The page rows and their position.
    """
    count = len(visible_rows)
    if page_size <= 0:
        return PageWindow(
            page_rows=list(visible_rows),
            start_index=0,
            end_index=count,
            page=1,
            total_pages=total_pages(count, page_size),
        )

    page = clamp_page(page, count, page_size)
    start = (page - 1) * page_size
    page_rows = list(visible_rows[start : start + page_size])
    return PageWindow(
        page_rows=page_rows,
        start_index=start,
        end_index=start + len(page_rows),
        page=page,
        total_pages=total_pages(count, page_size),
    )


# --- State machine ---


class DataState:
    """Search, filter, sort and pagination state over a row set.

    Every mutation recomputes the visible rows synchronously. Changes to
    the search, filters, sort or page size reset the current page to 1.

    Parameters
    ----------
    rows : iterable of dict, optional
        Initial rows.
    columns : sequence of ColumnDef, optional
        Column schema; supplies the searchable and sortable flags.
    page_size : int
        Rows per page.
    on_change : callable, optional
        Called with the state after every change.
    """

    def __init__(
        self,
        rows: Iterable[Row] | None = None,
        columns: Sequence[ColumnDef] | None = None,
        page_size: int = 25,
        on_change: Callable[[DataState], None] | None = None,
    ) -> None:
        _validate_page_size(page_size)
        self._rows: list[Row] = list(rows or [])
        self._columns: list[ColumnDef] = list(columns or [])
        self._search_query = ""
        self._active_filters: dict[str, Any] = {}
        self._sort = SortState()
        self._page_size = page_size
        self._current_page = 1
        self._result = ComputeResult(visible_rows=[], total_count=0)
        self._window = PageWindow()
        self.on_change = on_change
        self._recompute(notify=False)

    # --- Properties ---

    @property
    def rows(self) -> list[Row]:
        return list(self._rows)

    @property
    def columns(self) -> list[ColumnDef]:
        return list(self._columns)

    @property
    def visible_rows(self) -> list[Row]:
        return list(self._result.visible_rows)

    @property
    def total_count(self) -> int:
        return self._result.total_count

    @property
    def page_window(self) -> PageWindow:
        return self._window

    @property
    def page_rows(self) -> list[Row]:
        return list(self._window.page_rows)

    @property
    def current_page(self) -> int:
        return self._current_page

    @property
    def total_pages(self) -> int:
        return self._window.total_pages

    @property
    def page_size(self) -> int:
        return self._page_size

    @property
    def sort(self) -> SortState:
        return self._sort

    @property
    def search_query(self) -> str:
        return self._search_query

    @property
    def active_filters(self) -> dict[str, Any]:
        return dict(self._active_filters)

    # --- Mutations ---

    def set_rows(self, rows: Iterable[Row]) -> None:
        """Replace the row set, keeping the page when it is still in range."""
        self._rows = list(rows)
        self._recompute()

    def set_columns(self, columns: Sequence[ColumnDef]) -> None:
        """Replace the column schema used for search and sort flags."""
        self._columns = list(columns)
        self._recompute()

    def set_search(self, query: str | None) -> None:
        """Set the free-text search query."""
        self._search_query = query or ""
        self._current_page = 1
        self._recompute()

    def set_filters(self, filters: Mapping[str, Any] | None) -> None:
        """Replace the active filter set."""
        self._active_filters = dict(filters or {})
        self._current_page = 1
        self._recompute()

    def clear_filters(self) -> None:
        """Remove every active filter."""
        self.set_filters({})

    def toggle_sort(self, column: str) -> SortState:
        """Advance the tri-state sort cycle for a header activation.

        Non-sortable columns are ignored and return the unchanged state.
        """
        definition = next((c for c in self._columns if c.key == column), None)
        if definition is not None and not definition.is_sortable:
            debug(f"Column '{column}' is not sortable")
            return self._sort
        self._sort = self._sort.next_for(column)
        self._current_page = 1
        self._recompute()
        return self._sort

    def set_sort(self, column: str | None, direction: SortDirection = "asc") -> None:
        """Set the sort directly; ``column=None`` clears it."""
        self._sort = SortState(column=column, direction=direction)
        self._current_page = 1
        self._recompute()

    def set_page(self, page: int) -> int:
        """Go to a page; out-of-range pages clamp. Returns the actual page."""
        self._current_page = page
        self._recompute()
        return self._current_page

    def set_page_size(self, page_size: int) -> None:
        """Change the number of rows per page.

        Raises
        ------
        ValueError
            If ``page_size`` is not positive.
        """
        _validate_page_size(page_size)
        self._page_size = page_size
        self._current_page = 1
        self._recompute()

    def _recompute(self, notify: bool = True) -> None:
        self._result = compute(
            self._rows,
            self._search_query,
            self._active_filters,
            self._sort,
            self._columns,
        )
        self._window = paginate(self._result.visible_rows, self._current_page, self._page_size)
        self._current_page = self._window.page
        debug(
            f"Recomputed: {self._result.total_count}/{len(self._rows)} rows visible, "
            f"page {self._current_page}/{self._window.total_pages}"
        )
        if notify and self.on_change is not None:
            self.on_change(self)

    def snapshot(self) -> dict[str, Any]:
        """Serializable summary of the current state."""
        return {
            "searchQuery": self._search_query,
            "activeFilters": dict(self._active_filters),
            "sort": self._sort.to_dict(),
            "currentPage": self._current_page,
            "pageSize": self._page_size,
            "totalCount": self._result.total_count,
            "totalPages": self._window.total_pages,
        }


def _validate_page_size(page_size: int) -> None:
    if isinstance(page_size, bool) or not isinstance(page_size, int) or page_size <= 0:
        raise ValueError(f"Page size must be a positive integer, got {page_size!r}")

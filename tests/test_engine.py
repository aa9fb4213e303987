"""Tests for the filter → search → sort → paginate engine."""

from __future__ import annotations

from datetime import date, datetime

import pytest

from datagrid.engine import (
    DataState,
    PageWindow,
    apply_filters,
    apply_search,
    apply_sort,
    clamp_page,
    compare_values,
    compute,
    paginate,
    total_pages,
)
from datagrid.models import ColumnDef, SortState


def _names(rows):
    return [row["name"] for row in rows]


class TestApplyFilters:
    """Tests for apply_filters."""

    def test_case_insensitive_substring(self, people):
        """Text filters match substrings regardless of case."""
        assert _names(apply_filters(people, {"city": "LONDON"})) == ["Ada", "Dee"]
        assert _names(apply_filters(people, {"city": "on"})) == ["Ada", "Cy", "Dee"]

    def test_multiple_filters_are_anded(self, people):
        """Every filter must match."""
        assert _names(apply_filters(people, {"city": "lon", "name": "a"})) == ["Ada"]

    def test_blank_values_are_ignored(self, people):
        """None and empty strings impose no constraint."""
        assert apply_filters(people, {"city": "", "name": None}) == people
        assert apply_filters(people, {}) == people
        assert apply_filters(people, None) == people

    def test_numbers_match_as_text(self, people):
        """Non-string cell values are compared by their text."""
        assert _names(apply_filters(people, {"amount": "42"})) == ["Cy"]

    def test_null_cells_never_match(self, people):
        """A null cell is the empty string."""
        assert "Bo" not in _names(apply_filters(people, {"amount": "0"}))

    def test_date_range_is_inclusive(self, people):
        """Both bounds are inclusive."""
        result = apply_filters(
            people, {"created_start": "2024-01-05", "created_end": "2024-02-10"}
        )
        assert _names(result) == ["Ada", "Bo"]

    def test_open_ended_range(self, people):
        """A single bound constrains one side only."""
        assert _names(apply_filters(people, {"created_start": "2024-02-01"})) == ["Bo", "Cy"]
        assert _names(apply_filters(people, {"created_end": "2024-02-01"})) == ["Ada"]

    def test_range_excludes_rows_without_date(self, people):
        """Rows with no date fail any active bound."""
        assert "Dee" not in _names(apply_filters(people, {"created_start": "2000-01-01"}))

    def test_unparseable_bound_is_ignored(self, people):
        """A bound that is not a date imposes no constraint."""
        assert apply_filters(people, {"created_start": "soon"}) == people

    def test_range_accepts_date_objects_and_utc(self):
        """Native dates and Z-suffixed timestamps compare with ISO bounds."""
        rows = [
            {"name": "a", "when": date(2024, 5, 1)},
            {"name": "b", "when": "2024-05-02T00:00:00Z"},
            {"name": "c", "when": datetime(2024, 6, 1, 12, 0)},
        ]
        result = apply_filters(rows, {"when_start": "2024-05-01", "when_end": "2024-05-31"})
        assert _names(result) == ["a", "b"]

    def test_bare_suffix_key_is_a_text_filter(self):
        """A key named exactly '_start' has no base column."""
        rows = [{"name": "x", "_start": "go"}]
        assert apply_filters(rows, {"_start": "GO"}) == rows

    def test_idempotent(self, people):
        """Filtering twice with the same set changes nothing."""
        filters = {"city": "l", "created_start": "2024-01-01"}
        once = apply_filters(people, filters)
        assert apply_filters(once, filters) == once

    def test_source_rows_untouched(self, people):
        """The input list is not modified."""
        before = list(people)
        apply_filters(people, {"city": "oslo"})
        assert people == before


class TestApplySearch:
    """Tests for apply_search."""

    def test_matches_any_searchable_column(self, people, people_columns):
        """Any searchable column may match."""
        assert _names(apply_search(people, "lis", people_columns)) == ["Cy"]
        assert _names(apply_search(people, "ADA", people_columns)) == ["Ada"]

    def test_non_searchable_columns_are_skipped(self):
        """Columns marked searchable=False never match."""
        rows = [{"id": 7, "name": "x"}]
        columns = [ColumnDef(key="id", searchable=False), ColumnDef(key="name")]
        assert apply_search(rows, "7", columns) == []

    def test_hidden_columns_are_skipped(self, people):
        """A hidden column does not take part in search."""
        columns = [ColumnDef(key="name"), ColumnDef(key="city", hidden=True)]
        assert apply_search(people, "oslo", columns) == []
        assert _names(apply_search(people, "bo", columns)) == ["Bo"]

    def test_empty_query_keeps_everything(self, people, people_columns):
        """No query, no constraint."""
        assert apply_search(people, "", people_columns) == people
        assert apply_search(people, None, people_columns) == people


class TestCompareValues:
    """Tests for compare_values."""

    def test_nulls_last_in_both_directions(self):
        """Nulls always follow non-null values."""
        assert compare_values(None, 1) > 0
        assert compare_values(None, 1, "desc") > 0
        assert compare_values(1, None, "desc") < 0
        assert compare_values(float("nan"), 1) > 0
        assert compare_values(None, None) == 0

    def test_numbers(self):
        """Numbers compare numerically, not as text."""
        assert compare_values(9, 10) < 0
        assert compare_values(9, 10, "desc") > 0
        assert compare_values(2.5, 2.5) == 0

    def test_strings(self):
        """Strings compare alphabetically."""
        assert compare_values("apple", "banana") < 0
        assert compare_values("apple", "banana", "desc") > 0

    def test_strings_ignore_case(self):
        """Case does not split the alphabet; lowercase wins ties."""
        rows = [{"k": word} for word in ["banana", "Zebra", "apple", "Apple"]]
        ascending = apply_sort(rows, SortState(column="k", direction="asc"))
        descending = apply_sort(rows, SortState(column="k", direction="desc"))
        assert [r["k"] for r in ascending] == ["apple", "Apple", "banana", "Zebra"]
        assert [r["k"] for r in descending] == ["Zebra", "banana", "Apple", "apple"]
        assert compare_values("apple", "Apple") < 0

    def test_mixed_types_compare_as_text(self):
        """Mixed types fall back to their string form."""
        assert compare_values(10, "9") < 0


class TestApplySort:
    """Tests for apply_sort."""

    def test_sort_numbers_with_nulls(self, people):
        """Nulls stay last ascending and descending."""
        ascending = apply_sort(people, SortState(column="amount", direction="asc"))
        descending = apply_sort(people, SortState(column="amount", direction="desc"))
        assert _names(ascending) == ["Dee", "Cy", "Ada", "Bo"]
        assert _names(descending) == ["Ada", "Cy", "Dee", "Bo"]

    def test_stable(self):
        """Equal keys keep their original order."""
        rows = [{"k": 1, "n": i} for i in range(5)] + [{"k": 0, "n": 9}]
        result = apply_sort(rows, SortState(column="k"))
        assert [r["n"] for r in result] == [9, 0, 1, 2, 3, 4]

    def test_inactive_sort_keeps_order(self, people):
        """No sort column, no reordering."""
        assert apply_sort(people, SortState()) == people
        assert apply_sort(people, None) == people

    def test_non_sortable_column_ignored(self, people):
        """Sorting a non-sortable column is a no-op."""
        columns = [ColumnDef(key="name", sortable=False)]
        result = apply_sort(people, SortState(column="name", direction="desc"), columns)
        assert result == people


class TestPagination:
    """Tests for total_pages, clamp_page and paginate."""

    def test_total_pages(self):
        """Pages round up; no rows means no pages."""
        assert total_pages(50, 10) == 5
        assert total_pages(51, 10) == 6
        assert total_pages(0, 10) == 0
        assert total_pages(5, 0) == 1

    def test_clamp_page(self):
        """Pages clamp into range; empty sets stay on page 1."""
        assert clamp_page(9, 50, 10) == 5
        assert clamp_page(0, 50, 10) == 1
        assert clamp_page(-3, 50, 10) == 1
        assert clamp_page(4, 0, 10) == 1

    def test_window(self, fifty_rows):
        """Page 2 of size 10 covers rows 11-20."""
        window = paginate(fifty_rows, 2, 10)
        assert [row["id"] for row in window.page_rows] == list(range(11, 21))
        assert (window.start_index, window.end_index) == (10, 20)
        assert (window.start_record, window.end_record) == (11, 20)
        assert window.total_pages == 5

    def test_last_partial_page(self, fifty_rows):
        """The last page may be short."""
        window = paginate(fifty_rows, 6, 9)
        assert window.page == 6
        assert len(window.page_rows) == 5
        assert window.end_index == 50

    @pytest.mark.parametrize("page_size", [1, 3, 7, 10, 25, 50, 60])
    @pytest.mark.parametrize("page", [-1, 1, 2, 5, 100])
    def test_invariants(self, fifty_rows, page, page_size):
        """end-start never exceeds the page size; start follows the page."""
        window = paginate(fifty_rows, page, page_size)
        assert window.end_index - window.start_index <= page_size
        assert window.start_index == (window.page - 1) * page_size
        assert 1 <= window.page <= max(1, window.total_pages)

    def test_empty(self):
        """An empty row set gives an empty first page."""
        window = paginate([], 3, 10)
        assert window == PageWindow(page_rows=[], start_index=0, end_index=0, page=1)
        assert window.start_record == 0

    def test_non_positive_page_size_is_single_page(self, fifty_rows):
        """A page size of zero shows everything."""
        window = paginate(fifty_rows, 3, 0)
        assert len(window.page_rows) == 50
        assert window.page == 1


class TestCompute:
    """Tests for compute ordering."""

    def test_filter_then_search_then_sort(self, people, people_columns):
        """All stages apply, in order."""
        result = compute(
            people,
            "on",
            {"city": "l"},
            SortState(column="name", direction="desc"),
            people_columns,
        )
        assert _names(result.visible_rows) == ["Dee", "Cy", "Ada"]
        assert result.total_count == 3


class TestDataState:
    """Tests for the DataState state machine."""

    def test_initial_state(self, people, people_columns):
        """Everything is visible on page 1."""
        state = DataState(people, people_columns, page_size=2)
        assert state.total_count == 4
        assert state.total_pages == 2
        assert state.current_page == 1
        assert _names(state.page_rows) == ["Ada", "Bo"]

    def test_invalid_page_size(self, people):
        """Page sizes must be positive integers."""
        with pytest.raises(ValueError, match="positive"):
            DataState(people, page_size=0)
        state = DataState(people)
        with pytest.raises(ValueError):
            state.set_page_size(-5)
        assert state.page_size == 25

    def test_changes_reset_page(self, fifty_rows):
        """Search, filter, sort and page size changes go back to page 1."""
        columns = [ColumnDef(key="id"), ColumnDef(key="name"), ColumnDef(key="amount")]
        state = DataState(fifty_rows, columns, page_size=10)

        for change in (
            lambda: state.set_search("Row"),
            lambda: state.set_filters({"name": "Row"}),
            lambda: state.toggle_sort("amount"),
            lambda: state.set_page_size(5),
            lambda: state.set_sort("name", "desc"),
        ):
            state.set_page(3)
            assert state.current_page == 3
            change()
            assert state.current_page == 1

    def test_set_page_clamps(self, fifty_rows):
        """Out-of-range pages clamp."""
        state = DataState(fifty_rows, page_size=10)
        assert state.set_page(99) == 5
        assert state.set_page(0) == 1

    def test_set_rows_keeps_page_in_range(self, fifty_rows):
        """Shrinking the data clamps the current page."""
        state = DataState(fifty_rows, page_size=10)
        state.set_page(5)
        state.set_rows(fifty_rows[:15])
        assert state.current_page == 2

    def test_toggle_sort_cycle(self, people, people_columns):
        """Three activations clear the sort; the second reverses the first."""
        state = DataState(people, people_columns)
        assert state.toggle_sort("name").direction == "asc"
        assert _names(state.visible_rows) == ["Ada", "Bo", "Cy", "Dee"]
        assert state.toggle_sort("name").direction == "desc"
        assert _names(state.visible_rows) == ["Dee", "Cy", "Bo", "Ada"]
        assert not state.toggle_sort("name").is_active
        assert state.visible_rows == people

    def test_toggle_non_sortable(self, people):
        """Non-sortable columns leave the sort unchanged."""
        state = DataState(people, [ColumnDef(key="name", sortable=False)])
        assert not state.toggle_sort("name").is_active

    def test_clear_filters(self, people, people_columns):
        """Clearing filters shows every row again."""
        state = DataState(people, people_columns)
        state.set_filters({"city": "oslo"})
        assert state.total_count == 1
        state.clear_filters()
        assert state.total_count == 4
        assert state.active_filters == {}

    def test_on_change_called_per_mutation(self, people):
        """The change callback fires after every mutation, not on creation."""
        calls = []
        state = DataState(people, on_change=calls.append)
        assert calls == []
        state.set_search("a")
        state.set_page(1)
        assert calls == [state, state]

    def test_snapshot(self, people, people_columns):
        """The snapshot is camelCase and serializable."""
        state = DataState(people, people_columns, page_size=3)
        state.set_search("lon")
        state.toggle_sort("name")
        assert state.snapshot() == {
            "searchQuery": "lon",
            "activeFilters": {},
            "sort": {"column": "name", "direction": "asc"},
            "currentPage": 1,
            "pageSize": 3,
            "totalCount": 2,
            "totalPages": 1,
        }

    def test_end_to_end_nulls_last(self):
        """A null amount sorts after 100 in both directions."""
        rows = [
            {"id": 1, "name": "Ada", "amount": 100},
            {"id": 2, "name": "Bo", "amount": None},
        ]
        state = DataState(rows, [ColumnDef(key="name"), ColumnDef(key="amount")])

        state.toggle_sort("amount")
        assert _names(state.visible_rows) == ["Ada", "Bo"]
        state.toggle_sort("amount")
        assert _names(state.visible_rows) == ["Ada", "Bo"]

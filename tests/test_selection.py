"""Tests for SelectionTracker."""

from __future__ import annotations

from datagrid.selection import SelectionTracker


class TestSelectionTracker:
    """Tests for row selection across pages."""

    def test_toggle(self):
        """Toggling flips membership and reports the new state."""
        tracker = SelectionTracker()
        assert tracker.toggle(1) is True
        assert 1 in tracker
        assert tracker.toggle(1) is False
        assert len(tracker) == 0

    def test_status(self):
        """Header state reflects the visible ids only."""
        tracker = SelectionTracker()
        page = [1, 2, 3]
        assert tracker.status(page) == "none"
        tracker.toggle(2)
        assert tracker.status(page) == "partial"
        tracker.select_all_visible(page)
        assert tracker.status(page) == "all"
        assert tracker.status([]) == "none"

    def test_select_all_is_page_scoped(self):
        """Select-all on one page keeps selections made elsewhere."""
        tracker = SelectionTracker()
        tracker.toggle(42)
        tracker.select_all_visible([1, 2])
        tracker.deselect_all_visible([1, 2])
        assert tracker.selected == frozenset({42})

    def test_toggle_all_visible(self):
        """Toggle-all selects a partial page and clears a full one."""
        tracker = SelectionTracker()
        tracker.toggle(1)
        assert tracker.toggle_all_visible([1, 2]) == "all"
        assert tracker.toggle_all_visible([1, 2]) == "none"
        assert len(tracker) == 0

    def test_on_change(self):
        """Every change reports the new selection."""
        seen = []
        tracker = SelectionTracker(on_change=seen.append)
        tracker.toggle("a")
        tracker.select_all_visible(["b"])
        tracker.clear()
        assert seen == [frozenset({"a"}), frozenset({"a", "b"}), frozenset()]

    def test_selected_is_a_snapshot(self):
        """The exposed selection cannot be mutated."""
        tracker = SelectionTracker()
        tracker.toggle(1)
        snapshot = tracker.selected
        tracker.toggle(2)
        assert snapshot == frozenset({1})
        assert tracker.is_selected(2)

"""Row selection across pages."""

from __future__ import annotations

from collections.abc import Callable, Hashable, Iterable

from .models import SelectionStatus


class SelectionTracker:
    """Set of selected row ids.

    "Select all" acts only on the ids passed in (normally the current
    page), and deselecting removes exactly those ids, so selections made
    on other pages survive.

    Parameters
    ----------
    on_change : callable, optional
        Called with the new selection (a frozenset) after every change.
    """

    def __init__(
        self,
        on_change: Callable[[frozenset[Hashable]], None] | None = None,
    ) -> None:
        self._selected: set[Hashable] = set()
        self.on_change = on_change

    def __len__(self) -> int:
        return len(self._selected)

    def __contains__(self, row_id: object) -> bool:
        return row_id in self._selected

    @property
    def selected(self) -> frozenset[Hashable]:
        return frozenset(self._selected)

    def _notify(self) -> None:
        if self.on_change is not None:
            self.on_change(self.selected)

    def is_selected(self, row_id: Hashable) -> bool:
        return row_id in self._selected

    def toggle(self, row_id: Hashable) -> bool:
        """Flip one row. Returns whether it is now selected."""
        if row_id in self._selected:
            self._selected.discard(row_id)
            now_selected = False
        else:
            self._selected.add(row_id)
            now_selected = True
        self._notify()
        return now_selected

    def select_all_visible(self, visible_ids: Iterable[Hashable]) -> None:
        self._selected.update(visible_ids)
        self._notify()

    def deselect_all_visible(self, visible_ids: Iterable[Hashable]) -> None:
        self._selected.difference_update(visible_ids)
        self._notify()

    def status(self, visible_ids: Iterable[Hashable]) -> SelectionStatus:
        """Header checkbox state for the visible ids.

        Returns
        -------
        str
            ``"all"`` when every visible id is selected, ``"partial"`` when
            some are, otherwise ``"none"`` (also for an empty page).
        """
        ids = list(visible_ids)
        if not ids:
            return "none"
        count = sum(1 for row_id in ids if row_id in self._selected)
        if count == 0:
            return "none"
        if count == len(ids):
            return "all"
        return "partial"

    def toggle_all_visible(self, visible_ids: Iterable[Hashable]) -> SelectionStatus:
        """Select every visible id, or deselect them all if already selected."""
        ids = list(visible_ids)
        if self.status(ids) == "all":
            self.deselect_all_visible(ids)
        else:
            self.select_all_visible(ids)
        return self.status(ids)

    def clear(self) -> None:
        self._selected.clear()
        self._notify()

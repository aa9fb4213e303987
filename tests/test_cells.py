"""Tests for cell nodes, value serialization and the visitor."""

from __future__ import annotations

from datetime import date, datetime, timedelta

import pytest

from pydantic import ValidationError

from datagrid.cells import (
    BADGE_PALETTE,
    Badge,
    CellVisitor,
    Group,
    Image,
    Opaque,
    Text,
    badge,
    cell_from_dict,
    coerce_cell,
    group,
    image,
    is_cell_node,
    opaque,
    serialize_value,
    stringify,
    text,
)


class TestConstructors:
    """Tests for the node constructor helpers."""

    def test_text_stringifies(self):
        """text() accepts any value."""
        assert text(5) == Text(text="5")
        assert text(None) == Text(text="")

    def test_badge_palette_color(self):
        """Named badge colors map to the fixed palette."""
        node = badge("Paid", "green")
        assert node.text == "Paid"
        assert node.hex_color == BADGE_PALETTE["green"]

    def test_badge_unknown_color_falls_back_to_gray(self):
        """Unknown colors render gray."""
        assert badge("x", "chartreuse").hex_color == BADGE_PALETTE["gray"]
        assert badge("x", "").color == "gray"

    def test_group_coerces_children(self):
        """Plain values inside a group become text nodes."""
        node = group("INV-1", badge("paid", "green"), 3)
        assert isinstance(node, Group)
        assert node.children[0] == Text(text="INV-1")
        assert isinstance(node.children[1], Badge)
        assert node.children[2] == Text(text="3")

    def test_image_and_opaque(self):
        """Image keeps src and alt; opaque keeps its fallback text."""
        assert image("/a.png", "Avatar") == Image(src="/a.png", alt="Avatar")
        assert opaque(12) == Opaque(fallback_text="12")

    def test_nodes_are_frozen(self):
        """Nodes cannot be mutated after construction."""
        node = text("a")
        with pytest.raises(ValidationError):
            node.text = "b"  # type: ignore[misc]


class TestSerializeValue:
    """Tests for serialize_value and stringify."""

    def test_none_and_nan(self):
        """None and NaN both become None."""
        assert serialize_value(None) is None
        assert serialize_value(float("nan")) is None
        assert stringify(float("nan")) == ""

    def test_dates_are_iso(self):
        """Dates and datetimes serialize as ISO 8601."""
        assert serialize_value(date(2024, 1, 5)) == "2024-01-05"
        assert serialize_value(datetime(2024, 1, 5, 9, 30)) == "2024-01-05T09:30:00"

    def test_timedelta(self):
        """Durations serialize as [Nd ]HH:MM:SS."""
        assert serialize_value(timedelta(hours=2, minutes=5)) == "02:05:00"
        assert serialize_value(timedelta(days=1, hours=2)) == "1d 02:00:00"

    def test_plain_values_pass_through(self):
        """Ints, strings and containers are unchanged."""
        assert serialize_value(3) == 3
        assert serialize_value("x") == "x"
        assert serialize_value([1, 2]) == [1, 2]

    def test_numpy_scalars(self):
        """numpy scalars become Python natives."""
        np = pytest.importorskip("numpy")
        value = serialize_value(np.int64(7))
        assert value == 7
        assert type(value) is int


class TestCoerceCell:
    """Tests for coerce_cell."""

    def test_nodes_pass_through(self):
        """Existing nodes are returned as-is."""
        node = badge("a")
        assert coerce_cell(node) is node

    def test_scalars(self):
        """None, bools and scalars become text."""
        assert coerce_cell(None) == Text(text="")
        assert coerce_cell(True) == Text(text="Yes")
        assert coerce_cell(False) == Text(text="No")
        assert coerce_cell(1.5) == Text(text="1.5")
        assert coerce_cell(date(2024, 2, 1)) == Text(text="2024-02-01")

    def test_list_becomes_group(self):
        """Lists and tuples become groups."""
        node = coerce_cell(["a", badge("b")])
        assert isinstance(node, Group)
        assert len(node.children) == 2

    def test_dict_with_kind(self):
        """JSON-style dicts are validated into nodes."""
        node = coerce_cell({"kind": "badge", "text": "Late", "color": "red"})
        assert node == Badge(text="Late", color="red")

    def test_invalid_dict_is_returned_unchanged(self):
        """A dict with an unknown kind is left for the visitor to degrade."""
        value = {"kind": "chart", "points": [1, 2]}
        assert coerce_cell(value) is value

    def test_unknown_object_is_returned_unchanged(self):
        """Arbitrary objects are not nodes."""
        marker = object()
        assert coerce_cell(marker) is marker
        assert not is_cell_node(marker)


class TestCellFromDict:
    """Tests for cell_from_dict."""

    def test_nested_group(self):
        """Nested structures round-trip through dicts."""
        node = cell_from_dict(
            {
                "kind": "group",
                "children": [
                    {"kind": "text", "text": "A-1"},
                    {"kind": "image", "src": "/x.png", "alt": "X"},
                ],
            }
        )
        assert node == Group(children=[Text(text="A-1"), Image(src="/x.png", alt="X")])

    def test_invalid_kind_raises(self):
        """Unknown kinds are rejected."""
        with pytest.raises(ValidationError):
            cell_from_dict({"kind": "video"})


class _KindVisitor(CellVisitor):
    def visit_text(self, node):
        return "text"

    def visit_badge(self, node):
        return "badge"

    def visit_group(self, node):
        return [self.visit(child) for child in node.children]

    def visit_image(self, node):
        return "image"

    def visit_opaque(self, node):
        return "opaque"


class TestCellVisitor:
    """Tests for CellVisitor dispatch."""

    def test_dispatch_by_kind(self):
        """Each node kind reaches its own handler."""
        visitor = _KindVisitor()
        tree = group("a", badge("b"), image("/c.png"), opaque("d"))
        assert visitor.visit(tree) == ["text", "badge", "image", "opaque"]

    def test_plain_values_are_coerced(self):
        """Values that coerce to nodes are dispatched too."""
        assert _KindVisitor().visit(42) == "text"

    def test_unknown_values_use_str(self):
        """Values that are not nodes fall back to str()."""

        class Widget:
            def __str__(self):
                return "widget"

        assert _KindVisitor().visit(Widget()) == "widget"

    def test_unknown_value_with_broken_str(self):
        """A failing __str__ still yields a placeholder."""

        class Broken:
            def __str__(self):
                raise RuntimeError("boom")

        assert _KindVisitor().visit(Broken()) == "<Broken>"

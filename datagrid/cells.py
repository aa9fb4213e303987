"""Serializable cell representation.

A column's ``render`` function returns a tree of cell nodes instead of live
UI objects, so the export pipeline can walk it headlessly:

- Text: literal text
- Badge: short text on a named color
- Group: inline sequence of child nodes
- Image: image reference with alt text
- Opaque: anything else, reduced to a fallback text

Usage:
    from datagrid.cells import badge, group, text

    def render_status(value, row):
        return group(text(row["code"]), badge(value, "green" if value == "paid" else "red"))
"""

from __future__ import annotations

from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError


BadgeColor = Literal["blue", "green", "red", "yellow", "orange", "purple", "cyan", "gray"]

#: Fixed badge palette used by markup-capable export formats.
BADGE_PALETTE: dict[str, str] = {
    "blue": "#228be6",
    "green": "#51cf66",
    "red": "#fa5252",
    "yellow": "#fab005",
    "orange": "#fd7e14",
    "purple": "#9775fa",
    "cyan": "#3bc9db",
    "gray": "#868e96",
}

DEFAULT_BADGE_COLOR = "gray"
IMAGE_PLACEHOLDER = "[Image]"


class CellModel(BaseModel):
    """Base model for cell nodes."""

    model_config = ConfigDict(frozen=True, extra="forbid")


class Text(CellModel):
    """Plain text."""

    kind: Literal["text"] = "text"
    text: str = ""


class Badge(CellModel):
    """Colored badge. Unknown colors fall back to gray when lowered."""

    kind: Literal["badge"] = "badge"
    text: str = ""
    color: str = DEFAULT_BADGE_COLOR

    @property
    def hex_color(self) -> str:
        """Palette color for this badge."""
        return BADGE_PALETTE.get(self.color, BADGE_PALETTE[DEFAULT_BADGE_COLOR])


class Group(CellModel):
    """Inline sequence of nodes, lowered space-joined."""

    kind: Literal["group"] = "group"
    children: list[CellNode] = Field(default_factory=list)


class Image(CellModel):
    """Image reference (avatar, logo, thumbnail)."""

    kind: Literal["image"] = "image"
    src: str = ""
    alt: str = ""


class Opaque(CellModel):
    """Node with no structured meaning; only its fallback text is exported."""

    kind: Literal["opaque"] = "opaque"
    fallback_text: str = ""


CellNode = Annotated[
    Union[Text, Badge, Group, Image, Opaque],  # noqa: UP007
    Field(discriminator="kind"),
]

Group.model_rebuild()

_CELL_ADAPTER: TypeAdapter[Any] = TypeAdapter(CellNode)

NODE_TYPES = (Text, Badge, Group, Image, Opaque)


# --- Constructors ---


def text(value: Any) -> Text:
    """Build a text node from any value."""
    return Text(text=stringify(value))


def badge(value: Any, color: str = DEFAULT_BADGE_COLOR) -> Badge:
    """Build a badge node."""
    return Badge(text=stringify(value), color=color or DEFAULT_BADGE_COLOR)


def group(*children: Any) -> Group:
    """Build a group node; plain values are coerced to nodes."""
    return Group(children=[coerce_cell(child) for child in children])


def image(src: str, alt: str = "") -> Image:
    """Build an image node."""
    return Image(src=src or "", alt=alt or "")


def opaque(fallback_text: Any = "") -> Opaque:
    """Build an opaque node."""
    return Opaque(fallback_text=stringify(fallback_text))


# --- Value handling ---


# pylint: disable=too-many-return-statements
def serialize_value(value: Any) -> Any:  # noqa: PLR0911
    """Convert a single value to a JSON-compatible scalar.

    Handles:
    - pandas Timestamp / datetime / date → ISO 8601 string
    - pandas Timedelta / timedelta → "[Nd ]HH:MM:SS"
    - numpy scalar types → Python native
    - NaN/NaT → None
    """
    if value is None:
        return None

    if isinstance(value, float) and value != value:  # noqa: PLR0124
        return None

    try:
        import pandas as pd  # type: ignore[import-untyped]

        if pd.api.types.is_scalar(value) and pd.isna(value):
            return None
    except (ImportError, TypeError, ValueError):
        pass

    # pandas Timedelta - check BEFORE isoformat (Timedelta has isoformat too)
    if hasattr(value, "total_seconds") and hasattr(value, "components"):
        components = value.components
        if components.days:
            return f"{components.days}d {components.hours:02d}:{components.minutes:02d}:{components.seconds:02d}"
        return f"{components.hours:02d}:{components.minutes:02d}:{components.seconds:02d}"

    if hasattr(value, "total_seconds") and hasattr(value, "days"):
        total_secs = int(value.total_seconds())
        hours, remainder = divmod(total_secs, 3600)
        minutes, seconds = divmod(remainder, 60)
        if value.days:
            return f"{value.days}d {hours % 24:02d}:{minutes:02d}:{seconds:02d}"
        return f"{hours:02d}:{minutes:02d}:{seconds:02d}"

    if hasattr(value, "isoformat"):
        return value.isoformat()

    # numpy scalar types → Python native
    if hasattr(value, "item") and not isinstance(value, (list, tuple, dict)):
        try:
            return value.item()
        except (AttributeError, TypeError, ValueError):
            pass

    return value


def stringify(value: Any) -> str:
    """Text form of a raw value. ``None`` and NaN become an empty string."""
    serialized = serialize_value(value)
    if serialized is None:
        return ""
    return str(serialized)


def is_cell_node(value: Any) -> bool:
    """Check whether a value is one of the cell node models."""
    return isinstance(value, NODE_TYPES)


def coerce_cell(value: Any) -> Any:
    """Normalize a render result into a cell node.

    - nodes pass through
    - None → empty text, bool → "Yes"/"No"
    - str/int/float/dates → text
    - list/tuple → group
    - dict with a ``kind`` → validated node

    Anything else is returned unchanged; lowering degrades it to ``str()``.
    """
    if is_cell_node(value):
        return value
    if value is None:
        return Text(text="")
    if isinstance(value, bool):
        return Text(text="Yes" if value else "No")
    if isinstance(value, (list, tuple)):
        return Group(children=[coerce_cell(child) for child in value])
    if isinstance(value, dict) and "kind" in value:
        try:
            return _CELL_ADAPTER.validate_python(value)
        except ValidationError:
            return value
    if isinstance(value, (str, int, float)) or hasattr(value, "isoformat"):
        return Text(text=stringify(value))
    return value


def cell_from_dict(data: dict[str, Any]) -> Any:
    """Validate a JSON-style dict into a cell node."""
    return _CELL_ADAPTER.validate_python(data)


class CellVisitor:
    """Walks a cell node tree, dispatching on node kind.

    Subclasses implement one ``visit_<kind>`` method per node type.
    Values that are not nodes go to ``visit_unknown``, which must not raise.
    """

    def visit(self, node: Any) -> Any:
        """Dispatch a node to its handler."""
        node = coerce_cell(node)
        if isinstance(node, Text):
            return self.visit_text(node)
        if isinstance(node, Badge):
            return self.visit_badge(node)
        if isinstance(node, Group):
            return self.visit_group(node)
        if isinstance(node, Image):
            return self.visit_image(node)
        if isinstance(node, Opaque):
            return self.visit_opaque(node)
        return self.visit_unknown(node)

    def visit_text(self, node: Text) -> Any:
        raise NotImplementedError

    def visit_badge(self, node: Badge) -> Any:
        raise NotImplementedError

    def visit_group(self, node: Group) -> Any:
        raise NotImplementedError

    def visit_image(self, node: Image) -> Any:
        raise NotImplementedError

    def visit_opaque(self, node: Opaque) -> Any:
        raise NotImplementedError

    def visit_unknown(self, node: Any) -> Any:
        try:
            return str(node)
        except Exception:  # pylint: disable=broad-except
            return f"<{type(node).__name__}>"

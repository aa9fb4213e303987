"""Color helpers for header and column background colors."""

from __future__ import annotations


LUMINANCE_THRESHOLD = 0.5
DARKEN_FACTOR = 0.9
LIGHTEN_FACTOR = 1.15


def _parse_hex(color: str | None) -> tuple[int, int, int] | None:
    """Parse a 3- or 6-digit hex color into an RGB tuple.

    Returns None for anything that is not a valid hex color.
    """
    if not color or not isinstance(color, str):
        return None
    value = color.strip().lstrip("#")
    if len(value) == 3:
        value = "".join(ch * 2 for ch in value)
    if len(value) != 6:
        return None
    try:
        return (int(value[0:2], 16), int(value[2:4], 16), int(value[4:6], 16))
    except ValueError:
        return None


def luminance(color: str | None) -> float | None:
    """Relative luminance of a hex color in [0, 1].

    Uses the weighted sum ``0.299 r + 0.587 g + 0.114 b`` over channels
    normalized to [0, 1].
    """
    rgb = _parse_hex(color)
    if rgb is None:
        return None
    r, g, b = (channel / 255 for channel in rgb)
    return 0.299 * r + 0.587 * g + 0.114 * b


def contrast_color(color: str | None) -> str | None:
    """Pick black or white text for a background color.

    Parameters
    ----------
    color : str or None
        Background color as ``#rgb`` or ``#rrggbb``.

    Returns
    -------
    str or None
        ``"#000000"`` for light backgrounds, ``"#ffffff"`` for dark ones,
        or None when no valid color was given.
    """
    lum = luminance(color)
    if lum is None:
        return None
    return "#000000" if lum > LUMINANCE_THRESHOLD else "#ffffff"


def _clamp(value: float) -> int:
    return max(0, min(255, round(value)))


def hover_color(color: str | None) -> str | None:
    """Derive a hover shade from a background color.

    Light colors are darkened by ``DARKEN_FACTOR``, dark colors lightened by
    ``LIGHTEN_FACTOR``; each channel is clamped to [0, 255].

    Parameters
    ----------
    color : str or None
        Background color as ``#rgb`` or ``#rrggbb``.

    Returns
    -------
    str or None
        The hover color as ``#rrggbb``, or None for invalid input.
    """
    rgb = _parse_hex(color)
    if rgb is None:
        return None
    lum = luminance(color)
    factor = DARKEN_FACTOR if lum is not None and lum > LUMINANCE_THRESHOLD else LIGHTEN_FACTOR
    r, g, b = (_clamp(channel * factor) for channel in rgb)
    return f"#{r:02x}{g:02x}{b:02x}"

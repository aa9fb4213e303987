"""Resolve image cell sources for formats that embed pictures.

Word and PDF exports embed the image bytes instead of linking to them.
Only sources readable without network access are embedded: ``data:``
URIs, ``file://`` URLs and local paths. Anything else falls back to the
image's alt text.
"""

from __future__ import annotations

import base64
import binascii
import io

from dataclasses import dataclass
from pathlib import Path
from urllib.parse import unquote_to_bytes, urlparse
from urllib.request import url2pathname

from reportlab.lib.utils import ImageReader

from ..log import debug


# Screen pixels to typographic points (96 dpi to 72 dpi).
PX_TO_PT = 0.75


@dataclass(frozen=True)
class EmbeddedImage:
    """Image bytes with a display size in pixels."""

    data: bytes
    width: float
    height: float

    @property
    def width_pt(self) -> float:
        return self.width * PX_TO_PT

    @property
    def height_pt(self) -> float:
        return self.height * PX_TO_PT

    def stream(self) -> io.BytesIO:
        return io.BytesIO(self.data)


def _decode_data_uri(src: str) -> bytes | None:
    header, sep, body = src[len("data:") :].partition(",")
    if not sep:
        return None
    if header.endswith(";base64"):
        try:
            return base64.b64decode(body, validate=True)
        except (binascii.Error, ValueError):
            return None
    return unquote_to_bytes(body)


def resolve_image_source(src: str) -> bytes | None:
    """Read the bytes behind an image source, or None if not resolvable."""
    src = (src or "").strip()
    if not src:
        return None
    if src.startswith("data:"):
        return _decode_data_uri(src)

    parsed = urlparse(src)
    if parsed.scheme == "file":
        path = Path(url2pathname(parsed.path))
    elif parsed.scheme and len(parsed.scheme) > 1:
        debug(f"Not embedding remote image '{src}'")
        return None
    else:
        path = Path(src)

    try:
        return path.read_bytes() if path.is_file() else None
    except OSError as e:
        debug(f"Could not read image '{src}': {e}")
        return None


def fit_size(width: float, height: float, max_size: float) -> tuple[float, float]:
    """Scale ``width`` x ``height`` down to fit a ``max_size`` square.

    Aspect ratio is kept and images are never enlarged.
    """
    if width <= 0 or height <= 0:
        return (max_size, max_size)
    scale = min(1.0, max_size / width, max_size / height)
    return (width * scale, height * scale)


def load_image(src: str, max_size: int) -> EmbeddedImage | None:
    """Resolve and measure an image, bounded to ``max_size`` pixels.

    Returns None when the source cannot be read or is not an image.
    """
    data = resolve_image_source(src)
    if data is None:
        return None
    try:
        width, height = ImageReader(io.BytesIO(data)).getSize()
    except Exception as e:  # pylint: disable=broad-except
        debug(f"Unreadable image data for '{src[:60]}': {e}")
        return None
    width, height = fit_size(width, height, max_size)
    return EmbeddedImage(data=data, width=width, height=height)

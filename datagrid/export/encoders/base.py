"""Encoder description shared by the format modules."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING


if TYPE_CHECKING:
    from ..options import ExportOptions
    from ..payload import ExportPayload


EncodeFunc = Callable[["ExportPayload", "ExportOptions"], bytes]


@dataclass(frozen=True)
class EncoderSpec:
    """A registered export format.

    Attributes
    ----------
    name : str
        Format name used by callers ("csv", "excel", ...).
    extension : str
        File extension without the dot.
    media_type : str
        MIME type of the encoded content.
    encode : EncodeFunc
        Turns a payload into bytes.
    """

    name: str
    extension: str
    media_type: str
    encode: EncodeFunc


def hex_rgb(color: str) -> str:
    """``#4472c4`` → ``4472C4`` as expected by the office formats."""
    value = color.strip().lstrip("#").upper()
    if len(value) == 3:
        value = "".join(ch * 2 for ch in value)
    return value

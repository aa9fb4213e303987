"""Export format registry.

Each format module exposes an ``EncoderSpec``; the registry maps format
names to them. Additional formats can be registered at runtime.
"""

from __future__ import annotations

from ...exceptions import UnsupportedFormatError
from ...log import debug
from .base import EncodeFunc, EncoderSpec
from .delimited import CSV_ENCODER, encode_csv
from .excel import EXCEL_ENCODER, encode_excel
from .markup import HTML_ENCODER, PRINT_ENCODER, encode_html, encode_print, render_document
from .pdf import PDF_ENCODER, encode_pdf
from .word import WORD_ENCODER, encode_word


_REGISTRY: dict[str, EncoderSpec] = {
    spec.name: spec
    for spec in (
        CSV_ENCODER,
        EXCEL_ENCODER,
        WORD_ENCODER,
        PDF_ENCODER,
        HTML_ENCODER,
        PRINT_ENCODER,
    )
}


def register_encoder(spec: EncoderSpec) -> None:
    """Register (or replace) an export format."""
    _REGISTRY[spec.name] = spec
    debug(f"Registered export format '{spec.name}'")


def get_encoder(export_format: str) -> EncoderSpec:
    """Look up a format.

    Raises
    ------
    UnsupportedFormatError
        If no encoder is registered under ``export_format``.
    """
    spec = _REGISTRY.get(export_format)
    if spec is None:
        raise UnsupportedFormatError(
            f"Unsupported export format '{export_format}'",
            export_format=export_format,
            available=sorted(_REGISTRY),
        )
    return spec


def available_formats() -> list[str]:
    return list(_REGISTRY)


__all__ = [
    "CSV_ENCODER",
    "EXCEL_ENCODER",
    "HTML_ENCODER",
    "PDF_ENCODER",
    "PRINT_ENCODER",
    "WORD_ENCODER",
    "EncodeFunc",
    "EncoderSpec",
    "available_formats",
    "encode_csv",
    "encode_excel",
    "encode_html",
    "encode_pdf",
    "encode_print",
    "encode_word",
    "get_encoder",
    "register_encoder",
    "render_document",
]

"""Export options, letterhead and result models."""

from __future__ import annotations

from datetime import date
from pathlib import Path
from typing import TYPE_CHECKING, Any, Literal

from pydantic import BaseModel, ConfigDict, Field


if TYPE_CHECKING:
    from ..config import ExportSettings


PaperSize = Literal["A4", "A3", "letter", "legal"]
Orientation = Literal["portrait", "landscape"]


class DateRange(BaseModel):
    """Reporting period shown in headers and filenames."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    start: str = Field(alias="from")
    end: str = Field(alias="to")

    def label(self) -> str:
        return f"Period: {self.start} to {self.end}"


class Letterhead(BaseModel):
    """Company details printed in export headers and footers."""

    model_config = ConfigDict(frozen=True)

    title: str | None = None
    subtitle: str | None = None
    logo_url: str | None = None
    address: str | None = None
    phone: str | None = None
    email: str | None = None
    website: str | None = None
    tax_number: str | None = None

    def contact_lines(self) -> list[str]:
        """Labelled contact details, in print order."""
        lines = []
        if self.address:
            lines.append(self.address)
        if self.phone:
            lines.append(f"Phone: {self.phone}")
        if self.email:
            lines.append(f"Email: {self.email}")
        if self.website:
            lines.append(f"Website: {self.website}")
        if self.tax_number:
            lines.append(f"Tax Number: {self.tax_number}")
        return lines


class ExportOptions(BaseModel):
    """Options shared by every encoder.

    Encoders ignore the options that do not apply to them (``csv_bom``
    outside csv, ``paper_size`` for spreadsheets).
    """

    model_config = ConfigDict(frozen=True)

    title: str | None = None
    description: str | None = None
    filename: str | None = None
    include_header: bool = True
    include_footer: bool = True
    include_page_numbers: bool = True
    date_range: DateRange | None = None
    paper_size: PaperSize = "A4"
    orientation: Orientation = "portrait"
    letterhead: Letterhead | None = None
    header_color: str = "#4472C4"
    zebra_color: str = "#F2F2F2"
    csv_bom: bool = True
    show_print_controls: bool = True
    image_max_size: int = Field(default=40, ge=1)

    @classmethod
    def from_settings(cls, settings: ExportSettings | None = None, **overrides: Any) -> ExportOptions:
        """Build options from the configured export defaults."""
        if settings is None:
            from ..config import get_settings

            settings = get_settings().export
        values: dict[str, Any] = {
            "include_header": settings.include_header,
            "include_footer": settings.include_footer,
            "include_page_numbers": settings.include_page_numbers,
            "paper_size": settings.paper_size,
            "orientation": settings.orientation,
            "header_color": settings.header_color,
            "zebra_color": settings.zebra_color,
            "csv_bom": settings.csv_bom,
            "image_max_size": settings.image_max_size,
        }
        values.update(overrides)
        return cls(**values)

    def header_lines(self, payload_title: str | None = None) -> list[str]:
        """Text lines of the header block (letterhead, title, period)."""
        lines: list[str] = []
        if self.letterhead is not None:
            if self.letterhead.title:
                lines.append(self.letterhead.title)
            if self.letterhead.subtitle:
                lines.append(self.letterhead.subtitle)
            lines.extend(self.letterhead.contact_lines())
        title = self.title or payload_title
        if title:
            lines.append(title)
        if self.description:
            lines.append(self.description)
        if self.date_range is not None:
            lines.append(self.date_range.label())
        return lines

    def footer_lines(self, generated_at: str) -> list[str]:
        lines = [f"Generated: {generated_at}"]
        if self.letterhead is not None and self.letterhead.title:
            lines.append(f"Company: {self.letterhead.title}")
        return lines


class ExportResult(BaseModel):
    """Encoded export ready to be saved or sent."""

    model_config = ConfigDict(frozen=True)

    export_format: str
    filename: str
    media_type: str
    content: bytes

    @property
    def size(self) -> int:
        return len(self.content)

    def save(self, path: str | Path | None = None) -> Path:
        """Write the content to ``path`` (a file or directory) and return it."""
        target = Path(path) if path is not None else Path(self.filename)
        if target.is_dir():
            target = target / self.filename
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(self.content)
        return target


def format_filename(
    base_name: str,
    extension: str,
    date_range: DateRange | None = None,
    today: date | None = None,
) -> str:
    """Build ``{base}[_{from}_{to}]_{YYYY-MM-DD}.{ext}``."""
    stamp = (today or date.today()).isoformat()
    period = f"_{date_range.start}_{date_range.end}" if date_range is not None else ""
    return f"{base_name}{period}_{stamp}.{extension}"

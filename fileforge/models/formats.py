"""Target formats and MIME-type constants.

``TargetFormat`` enumerates every format a client may request.  It inherits
from ``(str, Enum)`` so members compare and hash equal to their plain string
value: ``"pdf" in {TargetFormat.PDF}`` is ``True``.  Request validation relies
on this, because the raw form field is a plain string that may not name any
member at all.
"""

from __future__ import annotations

from enum import Enum


class TargetFormat(str, Enum):  # noqa: UP042 (StrEnum requires Python 3.11+)
    """Formats a conversion request may target."""

    JPG = "jpg"
    PNG = "png"
    WEBP = "webp"
    GIF = "gif"
    BMP = "bmp"
    PDF = "pdf"
    DOCX = "docx"
    TXT = "txt"
    CSV = "csv"


WORD_MIME_TYPES = frozenset(
    {
        "application/msword",
        "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    }
)
EXCEL_MIME_TYPES = frozenset(
    {
        "application/vnd.ms-excel",
        "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    }
)
PDF_MIME_TYPE = "application/pdf"
PLAIN_TEXT_MIME_TYPE = "text/plain"

# Response Content-Type per requested format.
FORMAT_MIME_TYPES: dict[TargetFormat, str] = {
    TargetFormat.JPG: "image/jpeg",
    TargetFormat.PNG: "image/png",
    TargetFormat.WEBP: "image/webp",
    TargetFormat.GIF: "image/gif",
    TargetFormat.BMP: "image/bmp",
    TargetFormat.PDF: PDF_MIME_TYPE,
    TargetFormat.TXT: "text/plain;charset=utf-8",
    TargetFormat.CSV: "text/csv;charset=utf-8",
    TargetFormat.DOCX: "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
}

# Pillow encoder names for the opt-in image re-encoding path.
PILLOW_FORMATS: dict[TargetFormat, str] = {
    TargetFormat.JPG: "JPEG",
    TargetFormat.PNG: "PNG",
    TargetFormat.WEBP: "WEBP",
    TargetFormat.GIF: "GIF",
    TargetFormat.BMP: "BMP",
}


def format_mime_type(target_format: str) -> str:
    """Return the response MIME type for *target_format*.

    Unknown formats resolve to ``application/octet-stream``.
    """
    try:
        return FORMAT_MIME_TYPES[TargetFormat(target_format)]
    except ValueError:
        return "application/octet-stream"

"""MIME classification: which target formats a source type may convert to.

Pure functions, no state.  Matching is case-sensitive on the MIME string.

    Source family                         Allowed targets
    ------------------------------------  ------------------------------
    image/*                               jpg png webp gif bmp pdf
    application/pdf                       jpg png txt
    Word (msword, OOXML wordprocessing)   pdf txt
    Excel / spreadsheet                   pdf csv
    PowerPoint / presentation             pdf jpg
    text/plain                            pdf
    anything else                         (none)
"""

from __future__ import annotations

from fileforge.models.formats import (
    EXCEL_MIME_TYPES,
    PDF_MIME_TYPE,
    PLAIN_TEXT_MIME_TYPE,
    WORD_MIME_TYPES,
    TargetFormat,
)

_IMAGE_TARGETS = (
    TargetFormat.JPG,
    TargetFormat.PNG,
    TargetFormat.WEBP,
    TargetFormat.GIF,
    TargetFormat.BMP,
    TargetFormat.PDF,
)
_PDF_TARGETS = (TargetFormat.JPG, TargetFormat.PNG, TargetFormat.TXT)
_WORD_TARGETS = (TargetFormat.PDF, TargetFormat.TXT)
_SPREADSHEET_TARGETS = (TargetFormat.PDF, TargetFormat.CSV)
_PRESENTATION_TARGETS = (TargetFormat.PDF, TargetFormat.JPG)
_TEXT_TARGETS = (TargetFormat.PDF,)


def is_image_mime(mime_type: str) -> bool:
    return mime_type.startswith("image/")


def is_word_mime(mime_type: str) -> bool:
    """``application/msword`` or any OOXML wordprocessing type (document, template)."""
    return mime_type in WORD_MIME_TYPES or "officedocument.wordprocessingml" in mime_type


def is_spreadsheet_mime(mime_type: str) -> bool:
    return mime_type in EXCEL_MIME_TYPES or "excel" in mime_type or "spreadsheet" in mime_type


def is_presentation_mime(mime_type: str) -> bool:
    return "powerpoint" in mime_type or "presentation" in mime_type


def allowed_targets(mime_type: str) -> tuple[TargetFormat, ...]:
    """Return the formats *mime_type* may be converted to, in display order.

    Total: unrecognised types yield an empty tuple rather than an error.
    """
    if is_image_mime(mime_type):
        return _IMAGE_TARGETS
    if mime_type == PDF_MIME_TYPE:
        return _PDF_TARGETS
    if is_word_mime(mime_type):
        return _WORD_TARGETS
    if is_spreadsheet_mime(mime_type):
        return _SPREADSHEET_TARGETS
    if is_presentation_mime(mime_type):
        return _PRESENTATION_TARGETS
    if mime_type == PLAIN_TEXT_MIME_TYPE:
        return _TEXT_TARGETS
    return ()


def is_conversion_supported(mime_type: str, target_format: str) -> bool:
    """``True`` if *target_format* is in :func:`allowed_targets` for *mime_type*."""
    return target_format in allowed_targets(mime_type)

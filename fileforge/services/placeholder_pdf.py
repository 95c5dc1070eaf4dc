"""Placeholder PDF synthesis for degraded-mode conversions.

When no real conversion path exists (or the remote service fails) the
client still receives a structurally valid single-page PDF.  Its text
states the original file name, declared type and the conversion time.
Content fidelity to the source is not attempted.

The document is assembled object by object and the cross-reference table
is computed from the actual byte offsets, so strict readers accept it
without falling back to recovery scanning.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Callable

import structlog

from fileforge.utils.logging import get_logger

_logger: structlog.BoundLogger = get_logger(__name__)

_PAGE_WIDTH = 612
_PAGE_HEIGHT = 792
_MARGIN = 72
_FONT_SIZE = 12
_LEADING = 16


def _escape_pdf_text(text: str) -> bytes:
    """Encode *text* as the body of a PDF literal string.

    Line breaks are flattened and characters outside WinAnsi become ``?``.
    """
    flat = " ".join(text.splitlines())
    escaped = flat.replace("\\", "\\\\").replace("(", "\\(").replace(")", "\\)")
    return escaped.encode("cp1252", errors="replace")


def _pdf_text_string(text: str) -> bytes:
    """Encode *text* as a PDF text string for metadata.

    WinAnsi text becomes a literal string; anything else becomes a
    UTF-16BE hex string with a byte order mark so the exact value survives.
    """
    flat = " ".join(text.splitlines())
    try:
        flat.encode("cp1252")
    except UnicodeEncodeError:
        return b"<FEFF" + flat.encode("utf-16-be").hex().upper().encode("ascii") + b">"
    return b"(" + _escape_pdf_text(flat) + b")"


class PlaceholderPdfSynthesizer:
    """Builds the fixed-layout placeholder document.

    Parameters
    ----------
    clock:
        Returns the "converted on" timestamp.  Defaults to UTC now; tests
        inject a fixed clock.
    """

    def __init__(self, clock: Callable[[], datetime] | None = None) -> None:
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    def synthesize(self, original_type: str, original_name: str) -> bytes:
        """Return the placeholder PDF bytes.  Never raises."""
        now = self._clock()
        lines = [
            "PDF Conversion",
            "--------------",
            f"Original file: {original_name}",
            f"Original type: {original_type or 'unknown'}",
            f"Converted on: {now.isoformat()}",
            "",
            "This is a placeholder document.",
            "The original content could not be converted.",
        ]

        content = self._content_stream(lines)
        creation = now.astimezone(timezone.utc).strftime("D:%Y%m%d%H%M%SZ").encode("ascii")

        objects: list[bytes] = [
            b"<< /Type /Catalog /Pages 2 0 R >>",
            b"<< /Type /Pages /Kids [3 0 R] /Count 1 >>",
            (
                b"<< /Type /Page /Parent 2 0 R "
                + f"/MediaBox [0 0 {_PAGE_WIDTH} {_PAGE_HEIGHT}] ".encode("ascii")
                + b"/Resources << /Font << /F1 5 0 R >> >> /Contents 4 0 R >>"
            ),
            (
                f"<< /Length {len(content)} >>\nstream\n".encode("ascii")
                + content
                + b"\nendstream"
            ),
            b"<< /Type /Font /Subtype /Type1 /BaseFont /Helvetica /Encoding /WinAnsiEncoding >>",
            (
                b"<< /Title "
                + _pdf_text_string(f"Placeholder for {original_name}")
                + b" /Producer (fileforge) /CreationDate ("
                + creation
                + b") >>"
            ),
        ]

        document = self._assemble(objects)
        _logger.debug(
            "placeholder_pdf_synthesized",
            original_name=original_name,
            original_type=original_type,
            size=len(document),
        )
        return document

    @staticmethod
    def _content_stream(lines: list[str]) -> bytes:
        parts = [
            b"BT",
            f"/F1 {_FONT_SIZE} Tf".encode("ascii"),
            f"{_LEADING} TL".encode("ascii"),
            f"{_MARGIN} {_PAGE_HEIGHT - _MARGIN} Td".encode("ascii"),
        ]
        for index, line in enumerate(lines):
            if index:
                parts.append(b"T*")
            parts.append(b"(" + _escape_pdf_text(line) + b") Tj")
        parts.append(b"ET")
        return b"\n".join(parts)

    @staticmethod
    def _assemble(objects: list[bytes]) -> bytes:
        """Serialise numbered objects, then the xref table and trailer."""
        out = bytearray(b"%PDF-1.4\n%\xe2\xe3\xcf\xd3\n")
        offsets: list[int] = []
        for number, body in enumerate(objects, start=1):
            offsets.append(len(out))
            out += f"{number} 0 obj\n".encode("ascii") + body + b"\nendobj\n"

        xref_offset = len(out)
        size = len(objects) + 1
        out += f"xref\n0 {size}\n".encode("ascii")
        out += b"0000000000 65535 f \n"
        for offset in offsets:
            out += f"{offset:010d} 00000 n \n".encode("ascii")

        # Info dictionary is always the last object.
        out += (
            f"trailer\n<< /Size {size} /Root 1 0 R /Info {len(objects)} 0 R >>\n"
            f"startxref\n{xref_offset}\n%%EOF\n"
        ).encode("ascii")
        return bytes(out)

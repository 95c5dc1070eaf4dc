"""File-name, MIME and size helpers shared by the API, client and CLI."""

from __future__ import annotations

import re
import unicodedata
from urllib.parse import quote, unquote

_EXTENSION_RE = re.compile(r"\.[^/.]+$")
_FILENAME_STAR_RE = re.compile(r"filename\*\s*=\s*([^']*)'[^']*'([^;]+)", re.IGNORECASE)
_FILENAME_RE = re.compile(r'filename\s*=\s*(?:"((?:[^"\\]|\\.)*)"|([^;\s]+))', re.IGNORECASE)

_SIZE_UNITS = ("Bytes", "KB", "MB", "GB", "TB")

_EXTENSION_MIME_TYPES: dict[str, str] = {
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
    "png": "image/png",
    "gif": "image/gif",
    "webp": "image/webp",
    "bmp": "image/bmp",
    "pdf": "application/pdf",
    "doc": "application/msword",
    "docx": "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    "xls": "application/vnd.ms-excel",
    "xlsx": "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    "ppt": "application/vnd.ms-powerpoint",
    "pptx": "application/vnd.openxmlformats-officedocument.presentationml.presentation",
    "txt": "text/plain",
    "csv": "text/csv",
    "svg": "image/svg+xml",
}


def get_file_extension(file_name: str) -> str:
    """Return the lower-cased extension of *file_name* without the dot.

    Returns ``""`` when the name has no extension.
    """
    match = _EXTENSION_RE.search(file_name)
    if not match:
        return ""
    return match.group(0)[1:].lower()


def strip_extension(file_name: str) -> str:
    """Remove exactly one trailing extension, whatever its case."""
    return _EXTENSION_RE.sub("", file_name)


def converted_file_name(file_name: str, target_format: str) -> str:
    """``report.DOCX`` + ``pdf`` → ``report.pdf``."""
    return f"{strip_extension(file_name)}.{target_format}"


def mime_type_from_extension(extension: str) -> str:
    """Map a file extension (with or without dot) to a MIME type."""
    return _EXTENSION_MIME_TYPES.get(extension.lower().lstrip("."), "application/octet-stream")


def format_bytes(num_bytes: int, decimals: int = 2) -> str:
    """Format a byte count for humans: ``1536`` → ``"1.5 KB"``."""
    if num_bytes <= 0:
        return "0 Bytes"

    i = 0
    value = float(num_bytes)
    while value >= 1024 and i < len(_SIZE_UNITS) - 1:
        value /= 1024
        i += 1
    value = round(value, decimals)
    # Trailing zeros dropped: 1.50 -> 1.5, 2.00 -> 2
    text = f"{value:.{decimals}f}".rstrip("0").rstrip(".") if decimals > 0 else f"{value:.0f}"
    return f"{text} {_SIZE_UNITS[i]}"


def build_content_disposition(file_name: str) -> str:
    """Build an ``attachment`` Content-Disposition header value.

    ASCII names produce exactly ``attachment; filename="<name>"``.  Other
    names get an ASCII fallback plus an RFC 5987 ``filename*`` parameter,
    since HTTP header values must be latin-1 encodable.
    """
    escaped = file_name.replace("\\", "\\\\").replace('"', '\\"')
    if file_name.isascii():
        return f'attachment; filename="{escaped}"'

    fallback = unicodedata.normalize("NFKD", file_name).encode("ascii", "ignore").decode("ascii")
    fallback = fallback.replace("\\", "\\\\").replace('"', '\\"') or "download"
    return f"attachment; filename=\"{fallback}\"; filename*=UTF-8''{quote(file_name, safe='')}"


def parse_content_disposition(header: str | None) -> str | None:
    """Extract the file name from a Content-Disposition value.

    ``filename*`` wins over ``filename`` when both are present.  Returns
    ``None`` when the header is missing or names no file.
    """
    if not header:
        return None

    star = _FILENAME_STAR_RE.search(header)
    if star:
        charset = star.group(1) or "utf-8"
        try:
            return unquote(star.group(2).strip(), encoding=charset)
        except LookupError:
            return unquote(star.group(2).strip())

    plain = _FILENAME_RE.search(header)
    if plain:
        if plain.group(1) is not None:
            return re.sub(r"\\(.)", r"\1", plain.group(1))
        return plain.group(2)
    return None

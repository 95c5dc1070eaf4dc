"""In-process conversion strategies: text extraction and image re-encoding.

Neither strategy talks to the network.  Text extraction only reproduces
content for ``text/*`` sources; other sources receive a short notice.
Image re-encoding is opt-in (``IMAGE_TRANSCODE_ENABLED``); without it the
image strategy is a byte-for-byte passthrough.
"""

from __future__ import annotations

import io

import structlog

from fileforge.models.formats import PILLOW_FORMATS, TargetFormat
from fileforge.utils.logging import get_logger

_logger: structlog.BoundLogger = get_logger(__name__)

# Encoders that cannot store an alpha channel or palette.
_RGB_ONLY_FORMATS = frozenset({TargetFormat.JPG, TargetFormat.BMP})


def extract_text(data: bytes, mime_type: str) -> bytes:
    """Return UTF-8 text beginning with ``Converted from: <mime>``.

    For ``text/*`` sources the original content follows verbatim.
    """
    text = f"Converted from: {mime_type}\n\n"
    if mime_type.startswith("text/"):
        text += data.decode("utf-8", errors="replace")
    else:
        text += "This file has been converted to text format.\n"
        text += "Text content is only reproduced for plain-text sources."
    return text.encode("utf-8")


def transcode_image(data: bytes, target_format: str) -> bytes:
    """Re-encode image bytes into *target_format* with Pillow.

    Returns the original bytes unchanged if decoding or encoding fails,
    so a bad image degrades to the passthrough behaviour.
    """
    from PIL import Image, UnidentifiedImageError

    pillow_format = PILLOW_FORMATS.get(TargetFormat(target_format))
    if pillow_format is None:
        return data

    try:
        img = Image.open(io.BytesIO(data))
        img.load()
        if target_format in _RGB_ONLY_FORMATS and img.mode not in ("RGB", "L"):
            img = img.convert("RGB")
        buf = io.BytesIO()
        img.save(buf, format=pillow_format)
    except (UnidentifiedImageError, OSError, ValueError) as exc:
        _logger.warning("image_transcode_failed", target_format=target_format, error=str(exc))
        return data

    _logger.info(
        "image_transcoded",
        target_format=target_format,
        original_bytes=len(data),
        new_bytes=buf.tell(),
    )
    return buf.getvalue()

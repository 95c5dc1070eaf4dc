"""Conversion strategy selection.

``STRATEGY_TABLE`` is an ordered list of ``(predicate, strategy)`` rules.
The first predicate that matches ``(mime_type, target_format)`` wins, so the
list order *is* the priority order:

    1. Word source → pdf          EXTERNAL_JOB
    2. image source → non-pdf     IMAGE_PASSTHROUGH
    3. → txt                      TEXT_EXTRACTION
    4. → pdf (any other source)   PLACEHOLDER_PDF
    5. otherwise                  ECHO

Selection assumes the pair already passed :func:`allowed_targets`.
"""

from __future__ import annotations

from typing import Callable

from fileforge.models.conversion import ConversionStrategy
from fileforge.models.formats import TargetFormat
from fileforge.services.mime_classifier import is_image_mime, is_word_mime

StrategyPredicate = Callable[[str, str], bool]


def _word_to_pdf(mime_type: str, target_format: str) -> bool:
    return is_word_mime(mime_type) and target_format == TargetFormat.PDF


def _image_to_raster(mime_type: str, target_format: str) -> bool:
    return is_image_mime(mime_type) and target_format != TargetFormat.PDF


def _to_text(mime_type: str, target_format: str) -> bool:
    return target_format == TargetFormat.TXT


def _to_pdf(mime_type: str, target_format: str) -> bool:
    return target_format == TargetFormat.PDF


def _always(mime_type: str, target_format: str) -> bool:
    return True


STRATEGY_TABLE: tuple[tuple[StrategyPredicate, ConversionStrategy], ...] = (
    (_word_to_pdf, ConversionStrategy.EXTERNAL_JOB),
    (_image_to_raster, ConversionStrategy.IMAGE_PASSTHROUGH),
    (_to_text, ConversionStrategy.TEXT_EXTRACTION),
    (_to_pdf, ConversionStrategy.PLACEHOLDER_PDF),
    (_always, ConversionStrategy.ECHO),
)


def select_strategy(mime_type: str, target_format: str) -> ConversionStrategy:
    """Return the first strategy in ``STRATEGY_TABLE`` whose predicate matches."""
    for predicate, strategy in STRATEGY_TABLE:
        if predicate(mime_type, target_format):
            return strategy
    # Unreachable while the table ends with _always.
    return ConversionStrategy.ECHO

"""Conversion services: classification, strategy selection and execution."""

from fileforge.services.conversion_service import ConversionService
from fileforge.services.mime_classifier import allowed_targets, is_conversion_supported
from fileforge.services.placeholder_pdf import PlaceholderPdfSynthesizer
from fileforge.services.strategy_selector import STRATEGY_TABLE, select_strategy

__all__ = [
    "STRATEGY_TABLE",
    "ConversionService",
    "PlaceholderPdfSynthesizer",
    "allowed_targets",
    "is_conversion_supported",
    "select_strategy",
]

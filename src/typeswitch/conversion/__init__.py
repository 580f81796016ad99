"""Conversion engine and utilities for typeswitch."""

from typeswitch.conversion.engine import (
    ConversionEngine,
    ConversionOptions,
    ConversionPreview,
    ConversionReport,
)
from typeswitch.conversion.taxonomy import TaxonomyPlan

__all__ = [
    "ConversionEngine",
    "ConversionOptions",
    "ConversionPreview",
    "ConversionReport",
    "TaxonomyPlan",
]

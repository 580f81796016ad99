"""typeswitch - Bulk WordPress post type conversion."""

from typeswitch.conversion import (
    ConversionEngine,
    ConversionOptions,
    ConversionPreview,
    ConversionReport,
    TaxonomyPlan,
)
from typeswitch.core import Record, RecordOutcome, RecordResult, TypeDefinition
from typeswitch.errors import Cancelled, InvalidArgument, StoreUnavailable, TypeSwitchError

__version__ = "0.1.0"

__all__ = [
    "Cancelled",
    "ConversionEngine",
    "ConversionOptions",
    "ConversionPreview",
    "ConversionReport",
    "InvalidArgument",
    "Record",
    "RecordOutcome",
    "RecordResult",
    "StoreUnavailable",
    "TaxonomyPlan",
    "TypeDefinition",
    "TypeSwitchError",
]

"""Core module for typeswitch."""

from typeswitch.core.types import (
    NO_LIMIT,
    STATUS_ANY,
    Record,
    RecordOutcome,
    RecordResult,
    TypeDefinition,
)

__all__ = [
    "NO_LIMIT",
    "STATUS_ANY",
    "Record",
    "RecordOutcome",
    "RecordResult",
    "TypeDefinition",
]

"""Core type definitions for typeswitch."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

STATUS_ANY = "any"  # Status filter that matches every record
NO_LIMIT = -1  # Limit sentinel for an unbounded selection


class RecordOutcome(Enum):
    """What happened to a single record during a conversion run."""

    CONVERTED = "converted"
    WOULD_CONVERT = "would_convert"  # Dry run only
    FAILED = "failed"


@dataclass
class Record:
    """A persisted content item (a WordPress post of any type)."""

    id: int
    type: str
    status: str = "publish"
    title: str = ""
    # taxonomy name -> term slugs
    taxonomy_relationships: dict[str, set[str]] = field(default_factory=dict)

    def taxonomies(self) -> set[str]:
        """Return the taxonomies this record has at least one term in."""
        return {tax for tax, terms in self.taxonomy_relationships.items() if terms}


@dataclass(frozen=True)
class TypeDefinition:
    """A registered post type and the taxonomies it supports."""

    name: str
    supported_taxonomies: frozenset[str] = frozenset()
    label: str = ""
    description: str = ""


@dataclass
class RecordResult:
    """Per-record entry in a conversion report."""

    record_id: int
    title: str
    outcome: RecordOutcome
    removed_taxonomies: tuple[str, ...] = ()

    def to_row(self) -> dict[str, object]:
        """Flatten for tabular export."""
        return {
            "record_id": self.record_id,
            "title": self.title,
            "outcome": self.outcome.value,
            "removed_taxonomies": ",".join(self.removed_taxonomies),
        }

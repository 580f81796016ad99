"""Taxonomy classification between two post types."""

from __future__ import annotations

from dataclasses import dataclass

from typeswitch.core.types import TypeDefinition


@dataclass(frozen=True)
class TaxonomyPlan:
    """How taxonomy relationships fare when records move between two types.

    Shared taxonomies are legal for both types and pass through untouched.
    Relationships in source-only taxonomies are deleted from every converted
    record. Target-only taxonomies start out empty.
    """

    from_type: str
    to_type: str
    shared: tuple[str, ...] = ()
    source_only: tuple[str, ...] = ()
    target_only: tuple[str, ...] = ()

    @classmethod
    def between(cls, source: TypeDefinition, target: TypeDefinition) -> TaxonomyPlan:
        src = source.supported_taxonomies
        dst = target.supported_taxonomies
        return cls(
            from_type=source.name,
            to_type=target.name,
            shared=tuple(sorted(src & dst)),
            source_only=tuple(sorted(src - dst)),
            target_only=tuple(sorted(dst - src)),
        )

    @property
    def has_removals(self) -> bool:
        return bool(self.source_only)

    def describe(self) -> list[str]:
        """Human-readable analysis lines, one per non-empty group."""
        lines = ["Taxonomy Analysis:"]
        if self.shared:
            lines.append(f"  Shared taxonomies (will be preserved): {', '.join(self.shared)}")
        if self.source_only:
            lines.append(
                f"  Taxonomies only in source (will be removed): {', '.join(self.source_only)}"
            )
        if self.target_only:
            lines.append(
                f"  Taxonomies only in target (will be empty): {', '.join(self.target_only)}"
            )
        return lines

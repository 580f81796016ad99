"""Conversion engine that switches records from one post type to another."""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime

from typeswitch.conversion.taxonomy import TaxonomyPlan
from typeswitch.core.types import NO_LIMIT, STATUS_ANY, Record, RecordOutcome, RecordResult
from typeswitch.errors import Cancelled, InvalidArgument
from typeswitch.stores.base import CacheInvalidator, NullInvalidator, RecordStore, TypeRegistry

logger = logging.getLogger(__name__)


@dataclass
class ConversionOptions:
    """Options for a conversion run."""

    # Selection
    status_filter: str = STATUS_ANY
    limit: int | None = NO_LIMIT  # Negative or None means no cap

    # Behaviour
    dry_run: bool = False
    migrate_taxonomies: bool = False
    confirmed: bool = False  # Skip the confirmation callback


@dataclass(frozen=True)
class ConversionPreview:
    """What a run is about to do, handed to the confirmation callback."""

    from_type: str
    to_type: str
    total_selected: int
    status_filter: str
    taxonomy_plan: TaxonomyPlan | None = None


@dataclass
class ConversionReport:
    """Result of a conversion run."""

    from_type: str
    to_type: str
    dry_run: bool
    total_selected: int = 0
    converted_count: int = 0  # In a dry run: records that would convert
    error_count: int = 0

    taxonomy_plan: TaxonomyPlan | None = None
    results: list[RecordResult] = field(default_factory=list)

    # Timing
    start_time: datetime = field(default_factory=datetime.now)
    end_time: datetime | None = None
    duration_seconds: float = 0.0

    # Audit
    audit_log: list[str] = field(default_factory=list)

    @property
    def no_changes_made(self) -> bool:
        return self.dry_run or self.converted_count == 0

    def log(self, message: str) -> None:
        """Add an audit log entry."""
        timestamp = datetime.now().isoformat()
        self.audit_log.append(f"[{timestamp}] {message}")
        logger.info(message)

    def finalize(self) -> None:
        """Finalize the report with timing."""
        self.end_time = datetime.now()
        self.duration_seconds = (self.end_time - self.start_time).total_seconds()

    def summary(self) -> str:
        """One line telling converted and failed counts apart."""
        if self.dry_run:
            return f"Dry run complete. Would convert {self.converted_count} post(s) (no changes made)"
        line = f"Converted {self.converted_count} post(s) from '{self.from_type}' to '{self.to_type}'"
        if self.error_count:
            line += f"; failed {self.error_count}"
        return line


class ConversionEngine:
    """Switches records from one post type to another.

    Handles the complete pipeline:
    1. Validate the source/target pair against the registry
    2. Snapshot matching records in id order
    3. Classify taxonomies (optional)
    4. Confirm, unless confirmed up front or dry running
    5. Update each record's type, pruning source-only taxonomies
    6. Invalidate record caches and rewrite rules
    """

    def __init__(
        self,
        store: RecordStore,
        registry: TypeRegistry,
        invalidator: CacheInvalidator | None = None,
        confirm: Callable[[ConversionPreview], bool] | None = None,
        on_progress: Callable[[int, int], None] | None = None,
        on_preview: Callable[[ConversionPreview], None] | None = None,
    ) -> None:
        """Initialize conversion engine.

        Args:
            store: Record store to read and mutate.
            registry: Registered post types.
            invalidator: Cache and routing invalidation; no-op if omitted.
            confirm: Asked before mutating when the run is not pre-confirmed.
            on_progress: Called with (completed, total) after each record.
            on_preview: Called once with the preview of a non-empty selection,
                before confirmation.
        """
        self.store = store
        self.registry = registry
        self.invalidator = invalidator or NullInvalidator()
        self.confirm = confirm
        self.on_progress = on_progress
        self.on_preview = on_preview

    def validate(self, from_type: str, to_type: str) -> None:
        """Reject a source/target pair before anything is touched.

        Raises:
            InvalidArgument: For missing, unregistered or identical types.
        """
        if not from_type or not to_type:
            raise InvalidArgument("Both --from and --to post types are required")
        if not self.registry.exists(from_type):
            raise InvalidArgument(f"Source post type '{from_type}' does not exist")
        if not self.registry.exists(to_type):
            raise InvalidArgument(f"Target post type '{to_type}' does not exist")
        if from_type == to_type:
            raise InvalidArgument("Source and target post types cannot be the same")

    def taxonomy_plan(self, from_type: str, to_type: str) -> TaxonomyPlan:
        """Classify taxonomies shared by, or unique to, each type."""
        self.validate(from_type, to_type)
        return TaxonomyPlan.between(self.registry.get(from_type), self.registry.get(to_type))

    def select(self, from_type: str, options: ConversionOptions) -> tuple[Record, ...]:
        """Take the ordered snapshot of records to convert."""
        limit = NO_LIMIT if options.limit is None else options.limit
        if limit == 0:
            raise InvalidArgument("Limit must be a positive number, or -1 for no limit")
        records = self.store.select(from_type, options.status_filter or STATUS_ANY, limit)
        return tuple(sorted(records, key=lambda r: r.id))

    def convert(
        self,
        from_type: str,
        to_type: str,
        options: ConversionOptions | None = None,
    ) -> ConversionReport:
        """Convert every matching record from ``from_type`` to ``to_type``.

        Args:
            from_type: Source post type.
            to_type: Target post type.
            options: Conversion options.

        Returns:
            ConversionReport with counts and per-record results.

        Raises:
            InvalidArgument: If the request is rejected before any work.
            Cancelled: If confirmation was required and declined.
        """
        options = options or ConversionOptions()
        self.validate(from_type, to_type)

        report = ConversionReport(from_type=from_type, to_type=to_type, dry_run=options.dry_run)
        snapshot = self.select(from_type, options)
        report.total_selected = len(snapshot)

        if not snapshot:
            report.log(f"No posts found with type '{from_type}'")
            report.finalize()
            return report

        report.log(f"Found {report.total_selected} post(s) to convert from '{from_type}' to '{to_type}'")

        if options.migrate_taxonomies:
            report.taxonomy_plan = TaxonomyPlan.between(
                self.registry.get(from_type), self.registry.get(to_type)
            )

        preview = ConversionPreview(
            from_type=from_type,
            to_type=to_type,
            total_selected=report.total_selected,
            status_filter=options.status_filter,
            taxonomy_plan=report.taxonomy_plan,
        )
        if self.on_preview is not None:
            self.on_preview(preview)

        if not options.dry_run and not options.confirmed:
            if self.confirm is None or not self.confirm(preview):
                raise Cancelled("Operation cancelled")

        if options.dry_run:
            report.log("DRY RUN MODE - No changes will be made")

        converted_ids: list[int] = []
        for completed, record in enumerate(snapshot, start=1):
            result = self._convert_record(record, to_type, options, report.taxonomy_plan)
            report.results.append(result)
            if result.outcome is RecordOutcome.FAILED:
                report.error_count += 1
            else:
                report.converted_count += 1
                if result.outcome is RecordOutcome.CONVERTED:
                    converted_ids.append(record.id)
            if self.on_progress is not None:
                self.on_progress(completed, report.total_selected)

        if converted_ids:
            for record_id in converted_ids:
                self.invalidator.invalidate_record(record_id)
            self.invalidator.invalidate_routes()
            report.log(f"Invalidated caches for {len(converted_ids)} post(s) and flushed rewrite rules")

        report.log(report.summary())
        report.finalize()
        return report

    def _convert_record(
        self,
        record: Record,
        to_type: str,
        options: ConversionOptions,
        plan: TaxonomyPlan | None,
    ) -> RecordResult:
        """Convert one record. A failed type update is reported, not raised."""
        if options.dry_run:
            logger.debug("Would convert: %s (ID: %s)", record.title, record.id)
            return RecordResult(record.id, record.title, RecordOutcome.WOULD_CONVERT)

        if not self.store.update_type(record.id, to_type):
            logger.warning("Failed to convert post ID: %s", record.id)
            return RecordResult(record.id, record.title, RecordOutcome.FAILED)

        removed: tuple[str, ...] = ()
        if options.migrate_taxonomies and plan is not None:
            for taxonomy in plan.source_only:
                self.store.delete_relationship(record.id, taxonomy)
            removed = tuple(t for t in plan.source_only if t in record.taxonomies())

        return RecordResult(record.id, record.title, RecordOutcome.CONVERTED, removed)

"""In-memory record store."""

from __future__ import annotations

import copy
import logging
from collections.abc import Iterable

from typeswitch.core.types import STATUS_ANY, Record

logger = logging.getLogger(__name__)


class InMemoryRecordStore:
    """Dict-backed store for headless runs and tests.

    Also acts as its own cache invalidator, recording every call so callers
    can inspect what was invalidated.
    """

    def __init__(self, records: Iterable[Record] = ()) -> None:
        self._records: dict[int, Record] = {}
        self.invalidated_records: list[int] = []
        self.route_flushes = 0
        for record in records:
            self.add(record)

    @property
    def name(self) -> str:
        """Return the store name."""
        return "memory"

    def add(self, record: Record) -> None:
        """Insert or replace a record."""
        self._records[record.id] = record

    def get(self, record_id: int) -> Record:
        """Return the stored record. Raises KeyError if missing."""
        return self._records[record_id]

    def snapshot(self) -> dict[int, Record]:
        """Deep copy of every record, for before/after comparisons."""
        return copy.deepcopy(self._records)

    def select(self, post_type: str, status: str, limit: int) -> list[Record]:
        matches = [
            r
            for r in sorted(self._records.values(), key=lambda r: r.id)
            if r.type == post_type and (status == STATUS_ANY or r.status == status)
        ]
        if limit is not None and limit >= 0:
            matches = matches[:limit]
        return [copy.deepcopy(r) for r in matches]

    def update_type(self, record_id: int, new_type: str) -> bool:
        record = self._records.get(record_id)
        if record is None:
            logger.warning("Record %s not found", record_id)
            return False
        record.type = new_type
        return True

    def delete_relationship(self, record_id: int, taxonomy: str) -> None:
        record = self._records.get(record_id)
        if record is not None:
            record.taxonomy_relationships.pop(taxonomy, None)

    def invalidate_record(self, record_id: int) -> None:
        self.invalidated_records.append(record_id)

    def invalidate_routes(self) -> None:
        self.route_flushes += 1

"""Collaborator interfaces consumed by the conversion engine."""

from __future__ import annotations

import logging
from abc import abstractmethod
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from typeswitch.core.types import Record, TypeDefinition

logger = logging.getLogger(__name__)


@runtime_checkable
class RecordStore(Protocol):
    """Narrow interface over the persistent record store.

    Implementations only need to guarantee that a single ``update_type`` call
    is atomic. No locking is expected across calls.
    """

    @abstractmethod
    def select(self, post_type: str, status: str, limit: int) -> list[Record]:
        """Return records of ``post_type`` ordered by ascending id.

        Args:
            post_type: Post type to match exactly.
            status: Status to match exactly, or ``"any"`` for no filtering.
            limit: Maximum number of records, negative for no cap.

        Returns:
            Materialised list of matching records.
        """
        ...

    @abstractmethod
    def update_type(self, record_id: int, new_type: str) -> bool:
        """Change the post type of one record.

        Returns:
            True on success, False if the record could not be updated.
        """
        ...

    @abstractmethod
    def delete_relationship(self, record_id: int, taxonomy: str) -> None:
        """Remove every term of ``taxonomy`` from the record."""
        ...


@runtime_checkable
class TypeRegistry(Protocol):
    """Read-only lookup of registered post types."""

    @abstractmethod
    def exists(self, name: str) -> bool:
        """Return True if ``name`` is a registered post type."""
        ...

    @abstractmethod
    def supported_taxonomies(self, name: str) -> frozenset[str]:
        """Return the taxonomies registered for post type ``name``."""
        ...

    @abstractmethod
    def get(self, name: str) -> TypeDefinition:
        """Return the full definition of post type ``name``."""
        ...

    @abstractmethod
    def list_types(self) -> list[TypeDefinition]:
        """Return every registered post type."""
        ...


@runtime_checkable
class CacheInvalidator(Protocol):
    """Cache and rewrite-rule invalidation. Calls must be idempotent."""

    def invalidate_record(self, record_id: int) -> None:
        """Drop cached lookups for one record."""
        ...

    def invalidate_routes(self) -> None:
        """Drop the URL routing table derived from post type registrations."""
        ...


class NullInvalidator:
    """Invalidator for stores that keep no caches."""

    def invalidate_record(self, record_id: int) -> None:
        logger.debug("No cache to invalidate for record %s", record_id)

    def invalidate_routes(self) -> None:
        logger.debug("No routing table to invalidate")

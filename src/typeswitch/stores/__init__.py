"""Record store implementations for typeswitch."""

from typeswitch.stores.base import CacheInvalidator, NullInvalidator, RecordStore, TypeRegistry
from typeswitch.stores.duckdb_store import DuckDBRecordStore
from typeswitch.stores.memory import InMemoryRecordStore
from typeswitch.stores.wpcli import WPCLIRecordStore, WPCLIRunner, WPCLITypeRegistry

__all__ = [
    "CacheInvalidator",
    "DuckDBRecordStore",
    "InMemoryRecordStore",
    "NullInvalidator",
    "RecordStore",
    "TypeRegistry",
    "WPCLIRecordStore",
    "WPCLIRunner",
    "WPCLITypeRegistry",
]

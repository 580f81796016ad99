"""Pytest configuration and fixtures."""

from pathlib import Path

import pytest

from typeswitch.core.types import Record, TypeDefinition
from typeswitch.registry.loader import StaticTypeRegistry
from typeswitch.stores.memory import InMemoryRecordStore


@pytest.fixture
def registry_file() -> Path:
    """Return path to the bundled post type registry."""
    return Path(__file__).parent.parent / "schemas" / "post_types.yaml"


@pytest.fixture
def registry() -> StaticTypeRegistry:
    """Registry with a built-in type, a custom type and a bare type."""
    return StaticTypeRegistry(
        [
            TypeDefinition("post", frozenset({"category", "post_tag"}), label="Posts"),
            TypeDefinition("article", frozenset({"category"}), label="Articles"),
            TypeDefinition("page", frozenset(), label="Pages"),
        ]
    )


@pytest.fixture
def sample_records() -> list[Record]:
    """Five posts: two categorised, three tagged 'promo' with no category."""
    return [
        Record(1, "post", "publish", "Hello world", {"category": {"tech"}}),
        Record(2, "post", "draft", "Release notes", {"category": {"tech"}}),
        Record(3, "post", "publish", "Spring sale", {"category": set(), "post_tag": {"promo"}}),
        Record(4, "post", "publish", "Summer sale", {"category": set(), "post_tag": {"promo"}}),
        Record(5, "post", "draft", "Winter sale", {"category": set(), "post_tag": {"promo"}}),
    ]


@pytest.fixture
def memory_store(sample_records: list[Record]) -> InMemoryRecordStore:
    """In-memory store seeded with the sample posts and one page."""
    store = InMemoryRecordStore(sample_records)
    store.add(Record(10, "page", "publish", "About"))
    return store

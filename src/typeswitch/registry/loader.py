"""YAML post type registry."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml

from typeswitch.core.types import TypeDefinition
from typeswitch.errors import ConfigError


def _parse_taxonomies(value: Any) -> frozenset[str]:
    """Parse a taxonomy list from YAML value."""
    if not value:
        return frozenset()
    if isinstance(value, str):
        return frozenset(t.strip() for t in value.split(",") if t.strip())
    return frozenset(str(t) for t in value)


class YamlTypeRegistry:
    """Loads post type definitions from a YAML file.

    Example file:
    ```yaml
    post_types:
      post:
        label: Posts
        taxonomies: [category, post_tag, post_format]
      article:
        label: Articles
        taxonomies: [category]
    ```
    """

    def __init__(self, path: str | Path) -> None:
        """Initialize registry.

        Args:
            path: YAML file holding a ``post_types`` mapping.
        """
        self.path = Path(path)
        self._cache: dict[str, TypeDefinition] | None = None

    def _definitions(self) -> dict[str, TypeDefinition]:
        """Load and cache every definition in the file.

        Raises:
            FileNotFoundError: If the registry file doesn't exist.
            ConfigError: If the file has no ``post_types`` mapping.
        """
        if self._cache is not None:
            return self._cache

        if not self.path.exists():
            raise FileNotFoundError(f"Post type registry not found: {self.path}")

        with open(self.path) as f:
            data = yaml.safe_load(f) or {}

        post_types = data.get("post_types") if isinstance(data, dict) else None
        if not isinstance(post_types, dict):
            raise ConfigError(f"{self.path}: expected a 'post_types' mapping")

        definitions = {}
        for name, type_data in post_types.items():
            type_data = type_data or {}
            if not isinstance(type_data, dict):
                raise ConfigError(f"{self.path}: post type '{name}' must be a mapping")
            definitions[str(name)] = TypeDefinition(
                name=str(name),
                supported_taxonomies=_parse_taxonomies(type_data.get("taxonomies")),
                label=type_data.get("label", ""),
                description=type_data.get("description", ""),
            )

        self._cache = definitions
        return definitions

    def exists(self, name: str) -> bool:
        return name in self._definitions()

    def supported_taxonomies(self, name: str) -> frozenset[str]:
        return self.get(name).supported_taxonomies

    def get(self, name: str) -> TypeDefinition:
        """Return a definition. Raises KeyError for unknown types."""
        return self._definitions()[name]

    def list_types(self) -> list[TypeDefinition]:
        return [self._definitions()[name] for name in sorted(self._definitions())]

    def clear_cache(self) -> None:
        """Force the file to be re-read on next access."""
        self._cache = None


class StaticTypeRegistry:
    """Registry over an explicit list of definitions."""

    def __init__(self, definitions: list[TypeDefinition]) -> None:
        self._definitions = {d.name: d for d in definitions}

    def exists(self, name: str) -> bool:
        return name in self._definitions

    def supported_taxonomies(self, name: str) -> frozenset[str]:
        return self._definitions[name].supported_taxonomies

    def get(self, name: str) -> TypeDefinition:
        return self._definitions[name]

    def list_types(self) -> list[TypeDefinition]:
        return [self._definitions[name] for name in sorted(self._definitions)]

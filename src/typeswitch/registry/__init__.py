"""Post type registries for typeswitch."""

from typeswitch.registry.loader import StaticTypeRegistry, YamlTypeRegistry

__all__ = [
    "StaticTypeRegistry",
    "YamlTypeRegistry",
]

"""Settings loaded from typeswitch.yaml, env vars, and CLI flags.

Loading order: defaults → YAML file → env vars → CLI flags.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any

import yaml

from typeswitch.errors import ConfigError

logger = logging.getLogger(__name__)

CONFIG_FILENAME = "typeswitch.yaml"
BACKENDS = ("wpcli", "duckdb")

# env var -> setting name
ENV_VARS = {
    "TYPESWITCH_BACKEND": "backend",
    "TYPESWITCH_WP_PATH": "wp_path",
    "TYPESWITCH_WP_BINARY": "wp_binary",
    "TYPESWITCH_DATABASE": "database",
    "TYPESWITCH_REGISTRY": "registry_file",
    "WP_TIMEOUT": "wp_timeout",
}


def default_registry_file() -> Path:
    """Get default post type registry file."""
    # Look for the registry relative to the package
    package_file = Path(__file__).parent.parent.parent / "schemas" / "post_types.yaml"
    if package_file.exists():
        return package_file
    return Path.cwd() / "schemas" / "post_types.yaml"


@dataclass(frozen=True)
class Settings:
    """Resolved runtime settings."""

    backend: str = "wpcli"
    wp_path: str = "."
    wp_binary: str = "wp"
    wp_timeout: int = 600
    database: str = ":memory:"
    registry_file: str | None = None

    def merged(self, **overrides: Any) -> Settings:
        """Return a copy with every non-None override applied."""
        values = {k: v for k, v in overrides.items() if v is not None}
        settings = replace(self, **_coerce(values))
        _check(settings)
        return settings


def _coerce(values: dict[str, Any]) -> dict[str, Any]:
    known = {f.name for f in fields(Settings)}
    unknown = sorted(set(values) - known)
    if unknown:
        raise ConfigError(f"Unknown setting(s): {', '.join(unknown)}")
    out = dict(values)
    if "wp_timeout" in out:
        try:
            out["wp_timeout"] = int(out["wp_timeout"])
        except (TypeError, ValueError) as e:
            raise ConfigError(f"wp_timeout must be an integer, got {out['wp_timeout']!r}") from e
    for key in ("wp_path", "database", "registry_file"):
        if key in out:
            out[key] = str(out[key])
    return out


def _check(settings: Settings) -> None:
    if settings.backend not in BACKENDS:
        raise ConfigError(
            f"Unknown backend '{settings.backend}' (expected one of: {', '.join(BACKENDS)})"
        )


def load_settings(config_file: str | Path | None = None) -> Settings:
    """Resolve settings from a YAML file and the environment.

    Args:
        config_file: Explicit YAML file. When omitted, ``typeswitch.yaml`` in
            the current directory is used if present.

    Raises:
        ConfigError: If the file is unreadable or holds unknown keys.
    """
    settings = Settings()

    path = Path(config_file) if config_file else Path.cwd() / CONFIG_FILENAME
    if config_file and not path.exists():
        raise ConfigError(f"Config file not found: {path}")
    if path.exists():
        try:
            with open(path) as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML in {path}: {e}") from e
        if not isinstance(data, dict):
            raise ConfigError(f"{path}: expected a mapping of settings")
        logger.debug("Loaded settings from %s", path)
        settings = settings.merged(**data)

    env_values = {name: os.environ[var] for var, name in ENV_VARS.items() if var in os.environ}
    if env_values:
        settings = settings.merged(**env_values)

    return settings

"""Live WordPress store and registry driven through WP-CLI.

All WP-CLI access goes through ``WPCLIRunner``; callers pass bare
subcommand arguments and never build ``--path`` or output flags themselves.
Every call logs one PASS/FAIL line.
"""

from __future__ import annotations

import json
import logging
import os
import re
import subprocess
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from typeswitch.core.types import STATUS_ANY, Record, TypeDefinition
from typeswitch.errors import StoreUnavailable

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 600  # seconds

# sanitize_key() output, at most 20 characters
POST_TYPE_KEY_RE = re.compile(r"^[a-z0-9_-]{1,20}$")

ANSI_RE = re.compile(r"\x1B\[[0-?]*[ -/]*[@-~]")
NOISE_PREFIXES = (
    "PHP Warning:", "PHP Notice:", "PHP Deprecated:", "PHP Fatal error:",
    "Warning:", "Notice:", "Deprecated:",
)


def _drop_noise_lines(text: str) -> list[str]:
    lines = [ln.strip() for ln in ANSI_RE.sub("", text).splitlines()]
    return [ln for ln in lines if ln and not ln.startswith(NOISE_PREFIXES)]


def _extract_json(text: str) -> Any | None:
    """Parse the first JSON container found in WP-CLI output."""
    cleaned = "\n".join(_drop_noise_lines(text))
    if not cleaned:
        return None
    starts = [i for i in (cleaned.find("["), cleaned.find("{")) if i >= 0]
    if not starts:
        return None
    try:
        return json.loads(cleaned[min(starts):])
    except json.JSONDecodeError:
        logger.debug("Unparseable WP-CLI output: %s", cleaned[:200])
        return None


@dataclass
class WPResult:
    """Outcome of one WP-CLI invocation."""

    ok: bool
    stdout: str
    stderr: str
    returncode: int

    def json(self) -> Any | None:
        return _extract_json(self.stdout)


class WPCLIRunner:
    """Runs ``wp`` against one WordPress installation."""

    def __init__(
        self,
        path: str | Path,
        wp_binary: str = "wp",
        timeout: int = DEFAULT_TIMEOUT,
    ) -> None:
        self.path = Path(path)
        self.wp_binary = wp_binary
        self.timeout = timeout

    def _argv(self, args: list[str]) -> list[str]:
        parts = [self.wp_binary, f"--path={self.path}", *args]
        for flag in ("--no-color", "--quiet"):
            if flag not in parts:
                parts.append(flag)
        return parts

    def run(self, *args: str) -> WPResult:
        """Run a WP-CLI subcommand.

        Raises:
            StoreUnavailable: If the ``wp`` binary cannot be executed.
        """
        argv = self._argv(list(args))
        display = "wp " + " ".join(args)
        env = os.environ.copy()
        env.setdefault("WP_CLI_DISABLE_AUTO_CHECK_UPDATE", "1")

        t0 = time.monotonic()
        try:
            proc = subprocess.run(
                argv,
                text=True,
                capture_output=True,
                timeout=self.timeout,
                env=env,
                encoding="utf-8",
                errors="replace",
            )
        except subprocess.TimeoutExpired:
            dt = time.monotonic() - t0
            logger.error("%s timeout after %.1fs", display, dt)
            return WPResult(False, "", f"timeout after {dt:.1f}s", 124)
        except OSError as e:
            raise StoreUnavailable(f"Cannot run {self.wp_binary}: {e}") from e

        dt = time.monotonic() - t0
        ok = proc.returncode == 0
        if ok:
            logger.debug("PASS: %s (%.1fs)", display, dt)
        else:
            logger.error(
                "FAIL: %s exit=%s\nSTDERR: %s",
                display,
                proc.returncode,
                "\n".join(_drop_noise_lines(proc.stderr or "")),
            )
        return WPResult(ok, proc.stdout or "", proc.stderr or "", proc.returncode)

    def run_json(self, *args: str) -> Any:
        """Run a read command with ``--format=json`` and return the parsed output.

        Raises:
            StoreUnavailable: If the command fails or prints no JSON.
        """
        parts = list(args)
        if not any(p.startswith("--format=") for p in parts):
            parts.append("--format=json")
        result = self.run(*parts)
        data = result.json() if result.ok else None
        if data is None:
            raise StoreUnavailable(f"wp {' '.join(args)} failed: {result.stderr.strip()}")
        return data


class WPCLIRecordStore:
    """Record store that edits a live site through WP-CLI.

    Term relationships are not loaded by ``select``; the engine only needs
    ids and titles from the snapshot.
    """

    def __init__(self, runner: WPCLIRunner) -> None:
        self.runner = runner

    @property
    def name(self) -> str:
        """Return the store name."""
        return "wpcli"

    def select(self, post_type: str, status: str, limit: int) -> list[Record]:
        rows = self.runner.run_json(
            "post",
            "list",
            f"--post_type={post_type}",
            f"--post_status={status or STATUS_ANY}",
            f"--posts_per_page={limit if limit is not None and limit >= 0 else -1}",
            "--orderby=ID",
            "--order=ASC",
            "--fields=ID,post_title,post_status",
        )
        records = [
            Record(
                id=int(row["ID"]),
                type=post_type,
                status=row.get("post_status", ""),
                title=row.get("post_title", ""),
            )
            for row in rows
        ]
        return sorted(records, key=lambda r: r.id)

    def update_type(self, record_id: int, new_type: str) -> bool:
        # set_post_type() writes the single column and cleans the post cache;
        # wp post update would run wp_insert_post and its default terms.
        if not POST_TYPE_KEY_RE.match(new_type):
            logger.warning("Refusing invalid post type key %r", new_type)
            return False
        code = (
            f"echo false === set_post_type({int(record_id)}, '{new_type}') ? 'failed' : 'ok';"
        )
        result = self.runner.run("eval", code)
        return result.ok and result.stdout.strip().endswith("ok")

    def delete_relationship(self, record_id: int, taxonomy: str) -> None:
        result = self.runner.run("post", "term", "remove", str(record_id), taxonomy, "--all")
        if not result.ok:
            logger.warning("Could not remove %s terms from post %s", taxonomy, record_id)

    def invalidate_record(self, record_id: int) -> None:
        self.runner.run("cache", "delete", str(record_id), "posts")

    def invalidate_routes(self) -> None:
        self.runner.run("rewrite", "flush")


class WPCLITypeRegistry:
    """Post type registry read from a live site.

    Taxonomies come from ``wp taxonomy list --object_type``, which reflects
    every ``register_taxonomy`` call for the type, not just the post type's
    own ``taxonomies`` argument.
    """

    def __init__(self, runner: WPCLIRunner) -> None:
        self.runner = runner
        self._cache: dict[str, TypeDefinition | None] = {}

    def _taxonomies(self, name: str) -> frozenset[str]:
        names = self.runner.run_json(
            "taxonomy", "list", f"--object_type={name}", "--field=name"
        )
        return frozenset(str(n) for n in names)

    def _load(self, name: str) -> TypeDefinition | None:
        if name in self._cache:
            return self._cache[name]
        result = self.runner.run("post-type", "get", name, "--format=json")
        data = result.json() if result.ok else None
        definition = None
        if isinstance(data, dict):
            definition = _definition_from_row(name, data, self._taxonomies(name))
        self._cache[name] = definition
        return definition

    def exists(self, name: str) -> bool:
        return bool(name) and self._load(name) is not None

    def supported_taxonomies(self, name: str) -> frozenset[str]:
        return self.get(name).supported_taxonomies

    def get(self, name: str) -> TypeDefinition:
        definition = self._load(name)
        if definition is None:
            raise KeyError(name)
        return definition

    def list_types(self) -> list[TypeDefinition]:
        rows = self.runner.run_json("post-type", "list", "--fields=name,label,description")
        definitions = []
        for row in rows:
            definition = _definition_from_row(row["name"], row, self._taxonomies(row["name"]))
            self._cache[definition.name] = definition
            definitions.append(definition)
        return definitions


def _definition_from_row(
    name: str, row: dict[str, Any], taxonomies: frozenset[str]
) -> TypeDefinition:
    return TypeDefinition(
        name=name,
        supported_taxonomies=taxonomies,
        label=str(row.get("label") or ""),
        description=str(row.get("description") or ""),
    )

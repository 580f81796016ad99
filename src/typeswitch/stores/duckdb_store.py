"""DuckDB record store over WordPress-shaped tables."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import duckdb

from typeswitch.core.types import STATUS_ANY, Record
from typeswitch.errors import StoreUnavailable

logger = logging.getLogger(__name__)

SCHEMA_SQL = (
    """
    CREATE TABLE IF NOT EXISTS wp_posts (
        ID BIGINT PRIMARY KEY,
        post_title VARCHAR DEFAULT '',
        post_type VARCHAR NOT NULL,
        post_status VARCHAR NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS wp_terms (
        term_id BIGINT,
        name VARCHAR,
        slug VARCHAR
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS wp_term_taxonomy (
        term_taxonomy_id BIGINT,
        term_id BIGINT,
        taxonomy VARCHAR,
        count BIGINT DEFAULT 0
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS wp_term_relationships (
        object_id BIGINT,
        term_taxonomy_id BIGINT
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS wp_options (
        option_name VARCHAR,
        option_value VARCHAR
    )
    """,
)

REWRITE_RULES_OPTION = "rewrite_rules"


def _placeholders(values: list[Any]) -> str:
    return ", ".join("?" for _ in values)


class DuckDBRecordStore:
    """Record store backed by a DuckDB database.

    The table layout mirrors the parts of the WordPress schema that a post
    type switch touches, so an exported site database can be converted
    offline. Best for: previewing conversions, tests, offline migrations.
    """

    def __init__(self, database: str | Path = ":memory:") -> None:
        """Open the database.

        Args:
            database: Path to a DuckDB database file, or ":memory:".

        Raises:
            StoreUnavailable: If the database cannot be opened.
        """
        try:
            self._conn = duckdb.connect(str(database))
        except duckdb.Error as e:
            raise StoreUnavailable(f"Cannot open database {database}: {e}") from e

    @property
    def name(self) -> str:
        """Return the store name."""
        return "duckdb"

    @property
    def connection(self) -> duckdb.DuckDBPyConnection:
        """Return the DuckDB connection."""
        return self._conn

    def create_schema(self) -> None:
        """Create the WordPress tables if they do not exist."""
        for statement in SCHEMA_SQL:
            self._conn.execute(statement)

    def add_record(self, record: Record) -> None:
        """Insert a post and its term relationships.

        Terms are created on demand and their counts kept in step, the way
        WordPress maintains ``wp_term_taxonomy.count``.
        """
        self._conn.execute(
            "INSERT INTO wp_posts VALUES (?, ?, ?, ?)",
            [record.id, record.title, record.type, record.status],
        )
        for taxonomy, slugs in sorted(record.taxonomy_relationships.items()):
            for slug in sorted(slugs):
                tt_id = self._ensure_term(taxonomy, slug)
                self._conn.execute(
                    "INSERT INTO wp_term_relationships VALUES (?, ?)", [record.id, tt_id]
                )
                self._conn.execute(
                    "UPDATE wp_term_taxonomy SET count = count + 1 WHERE term_taxonomy_id = ?",
                    [tt_id],
                )

    def _ensure_term(self, taxonomy: str, slug: str) -> int:
        row = self._conn.execute(
            """
            SELECT tt.term_taxonomy_id
            FROM wp_term_taxonomy tt
            JOIN wp_terms t ON t.term_id = tt.term_id
            WHERE tt.taxonomy = ? AND t.slug = ?
            """,
            [taxonomy, slug],
        ).fetchone()
        if row:
            return int(row[0])

        term_id = self._next_id("wp_terms", "term_id")
        tt_id = self._next_id("wp_term_taxonomy", "term_taxonomy_id")
        self._conn.execute("INSERT INTO wp_terms VALUES (?, ?, ?)", [term_id, slug, slug])
        self._conn.execute(
            "INSERT INTO wp_term_taxonomy VALUES (?, ?, ?, 0)", [tt_id, term_id, taxonomy]
        )
        return tt_id

    def _next_id(self, table: str, column: str) -> int:
        row = self._conn.execute(f"SELECT coalesce(max({column}), 0) + 1 FROM {table}").fetchone()
        return int(row[0]) if row else 1

    def set_option(self, name: str, value: str) -> None:
        """Write a row to ``wp_options``."""
        self._conn.execute("DELETE FROM wp_options WHERE option_name = ?", [name])
        self._conn.execute("INSERT INTO wp_options VALUES (?, ?)", [name, value])

    def get_option(self, name: str) -> str | None:
        """Read a row from ``wp_options``."""
        row = self._conn.execute(
            "SELECT option_value FROM wp_options WHERE option_name = ?", [name]
        ).fetchone()
        return row[0] if row else None

    def term_count(self, taxonomy: str, slug: str) -> int:
        """Return the cached usage count of a term."""
        row = self._conn.execute(
            """
            SELECT tt.count
            FROM wp_term_taxonomy tt
            JOIN wp_terms t ON t.term_id = tt.term_id
            WHERE tt.taxonomy = ? AND t.slug = ?
            """,
            [taxonomy, slug],
        ).fetchone()
        return int(row[0]) if row else 0

    def get(self, record_id: int) -> Record:
        """Load a single record with its relationships.

        Raises:
            KeyError: If no post has this id.
        """
        row = self._conn.execute(
            "SELECT ID, post_title, post_type, post_status FROM wp_posts WHERE ID = ?",
            [record_id],
        ).fetchone()
        if row is None:
            raise KeyError(record_id)
        record = Record(id=int(row[0]), title=row[1] or "", type=row[2], status=row[3])
        record.taxonomy_relationships = self._relationships([record.id]).get(record.id, {})
        return record

    def _relationships(self, record_ids: list[int]) -> dict[int, dict[str, set[str]]]:
        if not record_ids:
            return {}
        rows = self._conn.execute(
            f"""
            SELECT r.object_id, tt.taxonomy, t.slug
            FROM wp_term_relationships r
            JOIN wp_term_taxonomy tt ON tt.term_taxonomy_id = r.term_taxonomy_id
            JOIN wp_terms t ON t.term_id = tt.term_id
            WHERE r.object_id IN ({_placeholders(record_ids)})
            """,
            record_ids,
        ).fetchall()
        relationships: dict[int, dict[str, set[str]]] = {}
        for object_id, taxonomy, slug in rows:
            relationships.setdefault(int(object_id), {}).setdefault(taxonomy, set()).add(slug)
        return relationships

    def select(self, post_type: str, status: str, limit: int) -> list[Record]:
        query = "SELECT ID, post_title, post_type, post_status FROM wp_posts WHERE post_type = ?"
        params: list[Any] = [post_type]
        if status != STATUS_ANY:
            query += " AND post_status = ?"
            params.append(status)
        query += " ORDER BY ID"
        if limit is not None and limit >= 0:
            query += f" LIMIT {int(limit)}"

        try:
            rows = self._conn.execute(query, params).fetchall()
        except duckdb.Error as e:
            raise StoreUnavailable(f"Cannot query posts: {e}") from e

        records = [
            Record(id=int(row[0]), title=row[1] or "", type=row[2], status=row[3])
            for row in rows
        ]
        relationships = self._relationships([r.id for r in records])
        for record in records:
            record.taxonomy_relationships = relationships.get(record.id, {})
        return records

    def update_type(self, record_id: int, new_type: str) -> bool:
        try:
            row = self._conn.execute(
                "SELECT count(*) FROM wp_posts WHERE ID = ?", [record_id]
            ).fetchone()
            if not row or row[0] == 0:
                logger.warning("Post %s not found", record_id)
                return False
            self._conn.execute(
                "UPDATE wp_posts SET post_type = ? WHERE ID = ?", [new_type, record_id]
            )
        except duckdb.Error as e:
            logger.warning("Updating post %s failed: %s", record_id, e)
            return False
        return True

    def delete_relationship(self, record_id: int, taxonomy: str) -> None:
        rows = self._conn.execute(
            """
            SELECT r.term_taxonomy_id
            FROM wp_term_relationships r
            JOIN wp_term_taxonomy tt ON tt.term_taxonomy_id = r.term_taxonomy_id
            WHERE r.object_id = ? AND tt.taxonomy = ?
            """,
            [record_id, taxonomy],
        ).fetchall()
        tt_ids = [int(row[0]) for row in rows]
        if not tt_ids:
            return

        self._conn.execute("BEGIN TRANSACTION")
        try:
            self._conn.execute(
                f"DELETE FROM wp_term_relationships "
                f"WHERE object_id = ? AND term_taxonomy_id IN ({_placeholders(tt_ids)})",
                [record_id, *tt_ids],
            )
            self._conn.execute(
                f"UPDATE wp_term_taxonomy SET count = greatest(count - 1, 0) "
                f"WHERE term_taxonomy_id IN ({_placeholders(tt_ids)})",
                tt_ids,
            )
        except duckdb.Error:
            self._conn.execute("ROLLBACK")
            raise
        self._conn.execute("COMMIT")
        logger.debug("Removed %d %s term(s) from post %s", len(tt_ids), taxonomy, record_id)

    def invalidate_record(self, record_id: int) -> None:
        # No object cache sits in front of a bare database.
        logger.debug("Nothing cached for post %s", record_id)

    def invalidate_routes(self) -> None:
        # WordPress rebuilds rewrite rules when the option is missing.
        self._conn.execute("DELETE FROM wp_options WHERE option_name = ?", [REWRITE_RULES_OPTION])

    def close(self) -> None:
        """Close the DuckDB connection."""
        self._conn.close()

    def __enter__(self) -> DuckDBRecordStore:
        """Context manager entry."""
        return self

    def __exit__(self, *args: Any) -> None:
        """Context manager exit."""
        self.close()

"""Integration tests for CLI tool."""

from pathlib import Path

import pyarrow.parquet as pq
import pytest
from click.testing import CliRunner

from typeswitch.cli import cli
from typeswitch.core.types import Record
from typeswitch.stores.duckdb_store import REWRITE_RULES_OPTION, DuckDBRecordStore

REGISTRY_YAML = """
post_types:
  post:
    taxonomies: [category, post_tag]
  article:
    label: Articles
    taxonomies: [category]
  page:
    taxonomies: []
"""


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture
def site(tmp_path: Path, sample_records: list[Record]) -> list[str]:
    """A seeded DuckDB site and the global options pointing at it."""
    registry = tmp_path / "post_types.yaml"
    registry.write_text(REGISTRY_YAML)
    database = tmp_path / "site.duckdb"
    with DuckDBRecordStore(database) as store:
        store.create_schema()
        for record in sample_records:
            store.add_record(record)
        store.set_option(REWRITE_RULES_OPTION, "a:0:{}")
    return ["--backend", "duckdb", "--database", str(database), "--registry", str(registry)]


def post_types(site: list[str]) -> dict[int, str]:
    with DuckDBRecordStore(site[3]) as store:
        rows = store.connection.execute("SELECT ID, post_type FROM wp_posts ORDER BY ID").fetchall()
    return {int(i): t for i, t in rows}


class TestCLI:
    """Test CLI commands."""

    def test_cli_version(self, runner: CliRunner) -> None:
        """Test --version flag."""
        result = runner.invoke(cli, ["--version"])
        assert result.exit_code == 0
        assert "0.1.0" in result.output

    def test_cli_help(self, runner: CliRunner) -> None:
        """Test --help flag."""
        result = runner.invoke(cli, ["--help"])
        assert result.exit_code == 0
        assert "convert" in result.output
        assert "list-types" in result.output

    def test_list_types(self, runner: CliRunner, site: list[str]) -> None:
        result = runner.invoke(cli, [*site, "list-types"])
        assert result.exit_code == 0
        assert "article (Articles): category" in result.output
        assert "page: (none)" in result.output

    def test_show_taxonomies(self, runner: CliRunner, site: list[str]) -> None:
        result = runner.invoke(cli, [*site, "show-taxonomies", "--from", "post", "--to", "article"])
        assert result.exit_code == 0
        assert "Shared taxonomies (will be preserved): category" in result.output
        assert "Taxonomies only in source (will be removed): post_tag" in result.output

    def test_convert_with_yes(self, runner: CliRunner, site: list[str]) -> None:
        result = runner.invoke(
            cli, [*site, "convert", "--from=post", "--to=article", "--include-taxonomies", "--yes"]
        )

        assert result.exit_code == 0, result.output
        assert "Found 5 post(s) to convert from 'post' to 'article'" in result.output
        assert "Taxonomy Analysis:" in result.output
        assert "Converted 5 post(s) from 'post' to 'article'" in result.output
        assert "Clearing caches...\nFlushing rewrite rules...\nSuccess: Rewrite rules flushed" in result.output
        assert set(post_types(site).values()) == {"article"}
        with DuckDBRecordStore(site[3]) as store:
            assert store.get(3).taxonomy_relationships == {}
            assert store.get(1).taxonomy_relationships == {"category": {"tech"}}
            assert store.get_option(REWRITE_RULES_OPTION) is None

    def test_convert_dry_run(self, runner: CliRunner, site: list[str]) -> None:
        result = runner.invoke(cli, [*site, "convert", "--from=post", "--to=article", "--dry-run"])

        assert result.exit_code == 0
        assert "DRY RUN MODE - No changes will be made" in result.output
        assert "Would convert 5 post(s)" in result.output
        assert "Clearing caches..." not in result.output
        assert "No changes made." in result.output
        assert set(post_types(site).values()) == {"post"}

    def test_convert_prompt_accepted(self, runner: CliRunner, site: list[str]) -> None:
        result = runner.invoke(
            cli, [*site, "convert", "--from=post", "--to=article", "--status=draft"], input="y\n"
        )

        assert result.exit_code == 0, result.output
        assert "Are you sure you want to continue?" in result.output
        assert post_types(site) == {1: "post", 2: "article", 3: "post", 4: "post", 5: "article"}

    def test_convert_prompt_declined(self, runner: CliRunner, site: list[str]) -> None:
        result = runner.invoke(cli, [*site, "convert", "--from=post", "--to=article"], input="n\n")

        assert result.exit_code == 1
        assert "Operation cancelled" in result.output
        assert set(post_types(site).values()) == {"post"}

    def test_convert_limit(self, runner: CliRunner, site: list[str]) -> None:
        result = runner.invoke(
            cli, [*site, "convert", "--from=post", "--to=page", "--limit=2", "--yes"]
        )
        assert result.exit_code == 0
        assert post_types(site) == {1: "page", 2: "page", 3: "post", 4: "post", 5: "post"}

    def test_convert_nothing_found(self, runner: CliRunner, site: list[str]) -> None:
        result = runner.invoke(
            cli, [*site, "convert", "--from=page", "--to=article", "--status=publish"]
        )
        assert result.exit_code == 0
        assert "No posts found with type 'page' and status 'publish'" in result.output

    def test_convert_twice(self, runner: CliRunner, site: list[str]) -> None:
        args = [*site, "convert", "--from=post", "--to=article", "--yes"]
        assert runner.invoke(cli, args).exit_code == 0
        result = runner.invoke(cli, args)
        assert result.exit_code == 0
        assert "No posts found with type 'post'" in result.output

    def test_convert_writes_report(
        self, runner: CliRunner, site: list[str], tmp_path: Path
    ) -> None:
        report = tmp_path / "out.parquet"
        result = runner.invoke(
            cli, [*site, "convert", "--from=post", "--to=article", "--yes", "--report", str(report)]
        )

        assert result.exit_code == 0
        assert f"Report written to {report}" in result.output
        assert pq.read_table(report).num_rows == 5


class TestCLIEdgeCases:
    """Test CLI edge cases and error handling."""

    def test_same_type(self, runner: CliRunner, site: list[str]) -> None:
        result = runner.invoke(cli, [*site, "convert", "--from=post", "--to=post", "--yes"])
        assert result.exit_code == 1
        assert "cannot be the same" in result.output

    def test_unknown_type(self, runner: CliRunner, site: list[str]) -> None:
        result = runner.invoke(cli, [*site, "convert", "--from=post", "--to=product", "--yes"])
        assert result.exit_code == 1
        assert "Target post type 'product' does not exist" in result.output
        assert set(post_types(site).values()) == {"post"}

    def test_missing_to(self, runner: CliRunner, site: list[str]) -> None:
        result = runner.invoke(cli, [*site, "convert", "--from=post"])
        assert result.exit_code != 0
        assert "--to" in result.output

    def test_zero_limit(self, runner: CliRunner, site: list[str]) -> None:
        result = runner.invoke(
            cli, [*site, "convert", "--from=post", "--to=article", "--limit=0", "--yes"]
        )
        assert result.exit_code == 1
        assert "Limit" in result.output

    def test_bad_config_file(self, runner: CliRunner, tmp_path: Path) -> None:
        config = tmp_path / "typeswitch.yaml"
        config.write_text("backend: oracle\n")
        result = runner.invoke(cli, ["--config", str(config), "list-types"])
        assert result.exit_code == 1
        assert "Unknown backend" in result.output

    def test_malformed_registry(self, runner: CliRunner, site: list[str], tmp_path: Path) -> None:
        registry = tmp_path / "broken.yaml"
        registry.write_text("foo: 1\n")
        options = [*site[:-1], str(registry)]

        for command in (
            ["convert", "--from=post", "--to=page", "--yes"],
            ["show-taxonomies", "--from=post", "--to=page"],
            ["list-types"],
        ):
            result = runner.invoke(cli, [*options, *command])
            assert result.exit_code == 1, command
            assert isinstance(result.exception, SystemExit)
            assert "expected a 'post_types' mapping" in result.output
        assert set(post_types(site).values()) == {"post"}

    def test_failed_record_warned_once(
        self,
        runner: CliRunner,
        site: list[str],
        monkeypatch: pytest.MonkeyPatch,
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        original = DuckDBRecordStore.update_type

        def update_type(self: DuckDBRecordStore, record_id: int, new_type: str) -> bool:
            if record_id == 2:
                return False
            return original(self, record_id, new_type)

        monkeypatch.setattr(DuckDBRecordStore, "update_type", update_type)
        result = runner.invoke(cli, [*site, "convert", "--from=post", "--to=article", "--yes"])

        assert result.exit_code == 0, result.output
        warnings = [r for r in caplog.records if "Failed to convert post ID" in r.getMessage()]
        assert [r.getMessage() for r in warnings] == ["Failed to convert post ID: 2"]
        assert "Warning: Failed to convert post ID" not in result.output
        assert "Converted 4 post(s) from 'post' to 'article'" in result.output
        assert "Failed to convert 1 post(s)" in result.output
        assert post_types(site)[2] == "post"

"""Command-line interface for typeswitch."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import click

from typeswitch.config import BACKENDS, Settings, default_registry_file, load_settings
from typeswitch.conversion.engine import ConversionEngine, ConversionOptions, ConversionPreview
from typeswitch.conversion.taxonomy import TaxonomyPlan
from typeswitch.core.types import NO_LIMIT, STATUS_ANY
from typeswitch.errors import TypeSwitchError
from typeswitch.registry.loader import YamlTypeRegistry
from typeswitch.report import write_report
from typeswitch.stores.base import CacheInvalidator, RecordStore, TypeRegistry
from typeswitch.stores.duckdb_store import DuckDBRecordStore
from typeswitch.stores.wpcli import WPCLIRecordStore, WPCLIRunner, WPCLITypeRegistry


def open_backend(
    ctx: click.Context, settings: Settings
) -> tuple[RecordStore, TypeRegistry, CacheInvalidator]:
    """Build the store, registry and invalidator for the configured backend."""
    if settings.backend == "duckdb":
        store = DuckDBRecordStore(settings.database)
        ctx.call_on_close(store.close)
        registry: TypeRegistry = YamlTypeRegistry(
            settings.registry_file or default_registry_file()
        )
        return store, registry, store

    runner = WPCLIRunner(settings.wp_path, settings.wp_binary, settings.wp_timeout)
    wp_store = WPCLIRecordStore(runner)
    if settings.registry_file:
        registry = YamlTypeRegistry(settings.registry_file)
    else:
        registry = WPCLITypeRegistry(runner)
    return wp_store, registry, wp_store


def echo_taxonomy_plan(plan: TaxonomyPlan) -> None:
    click.echo()
    for line in plan.describe():
        click.echo(line)
    click.echo()


class ProgressReporter:
    """Drives a click progress bar from the engine's progress callback."""

    def __init__(self, label: str) -> None:
        self.label = label
        self._bar: Any = None

    def __call__(self, completed: int, total: int) -> None:
        if self._bar is None:
            self._bar = click.progressbar(length=total, label=self.label)
        self._bar.update(1)
        if completed >= total:
            self._bar.render_finish()
            self._bar = None


@click.group()
@click.version_option(version="0.1.0")
@click.option(
    "--config",
    "config_file",
    type=click.Path(path_type=Path),
    default=None,
    help="Settings file (default: ./typeswitch.yaml if present)",
)
@click.option("--backend", type=click.Choice(BACKENDS), default=None, help="Record store backend")
@click.option("--path", "wp_path", default=None, help="WordPress install path (wpcli backend)")
@click.option("--database", default=None, help="DuckDB database file (duckdb backend)")
@click.option(
    "--registry",
    "registry_file",
    type=click.Path(path_type=Path),
    default=None,
    help="Post type registry YAML file",
)
@click.option("--debug", is_flag=True, help="Show debug logging")
@click.pass_context
def cli(
    ctx: click.Context,
    config_file: Path | None,
    backend: str | None,
    wp_path: str | None,
    database: str | None,
    registry_file: Path | None,
    debug: bool,
) -> None:
    """typeswitch - Bulk WordPress post type conversion."""
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    ctx.ensure_object(dict)
    try:
        settings = load_settings(config_file).merged(
            backend=backend,
            wp_path=wp_path,
            database=database,
            registry_file=registry_file,
        )
    except TypeSwitchError as e:
        raise click.ClickException(str(e)) from e
    ctx.obj["settings"] = settings


@cli.command()
@click.option("--from", "from_type", required=True, help="The source post type")
@click.option("--to", "to_type", required=True, help="The target post type")
@click.option(
    "--status",
    default=STATUS_ANY,
    show_default=True,
    help="Only convert posts with this status",
)
@click.option(
    "--limit",
    type=int,
    default=NO_LIMIT,
    show_default=True,
    help="Limit the number of posts to convert (-1 for no limit)",
)
@click.option("--dry-run", is_flag=True, help="Preview what would be changed without making changes")
@click.option(
    "--include-taxonomies",
    is_flag=True,
    help="Remove terms in taxonomies the target post type does not support",
)
@click.option("--yes", "-y", is_flag=True, help="Skip confirmation prompt")
@click.option(
    "--report",
    "report_file",
    type=click.Path(path_type=Path),
    default=None,
    help="Write per-post results (.parquet, .csv or .json)",
)
@click.pass_context
def convert(
    ctx: click.Context,
    from_type: str,
    to_type: str,
    status: str,
    limit: int,
    dry_run: bool,
    include_taxonomies: bool,
    yes: bool,
    report_file: Path | None,
) -> None:
    """Convert posts from one post type to another.

    Examples:

        typeswitch convert --from=post --to=article

        typeswitch convert --from=post --to=news --dry-run

        typeswitch convert --from=post --to=resource --status=publish

        typeswitch --backend duckdb --database site.duckdb convert --from=post --to=product --include-taxonomies
    """
    settings: Settings = ctx.obj["settings"]

    def show_preview(preview: ConversionPreview) -> None:
        click.echo(
            f"Found {preview.total_selected} post(s) to convert "
            f"from '{preview.from_type}' to '{preview.to_type}'"
        )
        if preview.taxonomy_plan is not None:
            echo_taxonomy_plan(preview.taxonomy_plan)
        if dry_run:
            click.echo()
            click.echo("DRY RUN MODE - No changes will be made")
            click.echo()

    def confirm(preview: ConversionPreview) -> bool:
        click.secho(
            "Warning: This will permanently change the post type of the selected posts.",
            fg="yellow",
            err=True,
        )
        return click.confirm("Are you sure you want to continue?", default=False)

    try:
        store, registry, invalidator = open_backend(ctx, settings)
        engine = ConversionEngine(
            store,
            registry,
            invalidator=invalidator,
            confirm=confirm,
            on_progress=ProgressReporter("Converting posts"),
            on_preview=show_preview,
        )
        report = engine.convert(
            from_type,
            to_type,
            ConversionOptions(
                status_filter=status,
                limit=limit,
                dry_run=dry_run,
                migrate_taxonomies=include_taxonomies,
                confirmed=yes,
            ),
        )
    except (TypeSwitchError, FileNotFoundError) as e:
        raise click.ClickException(str(e)) from e

    if report.total_selected == 0:
        suffix = f" and status '{status}'" if status != STATUS_ANY else ""
        click.echo(f"Success: No posts found with type '{from_type}'{suffix}")
        return

    click.echo()
    if report.dry_run:
        click.echo(f"Success: Dry run complete. Would convert {report.converted_count} post(s)")
        click.echo("No changes made.")
    else:
        click.echo(
            f"Success: Converted {report.converted_count} post(s) "
            f"from '{from_type}' to '{to_type}'"
        )
        if report.error_count:
            click.secho(
                f"Warning: Failed to convert {report.error_count} post(s)", fg="yellow", err=True
            )
        if report.converted_count:
            click.echo("Clearing caches...")
            click.echo("Flushing rewrite rules...")
            click.echo("Success: Rewrite rules flushed")

    if report_file:
        write_report(report, report_file)
        click.echo(f"Report written to {report_file}")


@cli.command("list-types")
@click.pass_context
def list_types(ctx: click.Context) -> None:
    """List registered post types and their taxonomies."""
    try:
        _, registry, _ = open_backend(ctx, ctx.obj["settings"])
        definitions = registry.list_types()
    except (TypeSwitchError, FileNotFoundError) as e:
        raise click.ClickException(str(e)) from e

    click.echo("Registered post types:")
    click.echo()
    for definition in definitions:
        taxonomies = ", ".join(sorted(definition.supported_taxonomies)) or "(none)"
        label = f" ({definition.label})" if definition.label else ""
        click.echo(f"  - {definition.name}{label}: {taxonomies}")


@cli.command("show-taxonomies")
@click.option("--from", "from_type", required=True, help="The source post type")
@click.option("--to", "to_type", required=True, help="The target post type")
@click.pass_context
def show_taxonomies(ctx: click.Context, from_type: str, to_type: str) -> None:
    """Show which taxonomies survive a conversion.

    Example:

        typeswitch show-taxonomies --from=post --to=page
    """
    try:
        store, registry, _ = open_backend(ctx, ctx.obj["settings"])
        plan = ConversionEngine(store, registry).taxonomy_plan(from_type, to_type)
    except (TypeSwitchError, FileNotFoundError) as e:
        raise click.ClickException(str(e)) from e

    for line in plan.describe():
        click.echo(line)


def main() -> None:
    """Entry point for CLI."""
    cli()


if __name__ == "__main__":
    main()

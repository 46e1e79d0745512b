"""
Command-line interface for docmigrate.
"""

import asyncio
import signal
import sys
from functools import wraps
from pathlib import Path
from typing import List, Optional

import click
import yaml
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from . import __version__
from .config import DocMigrateConfig
from .exceptions import ConfigurationError, DocMigrateError
from .logging_setup import configure_logging


console = Console()

STATUS_STYLES = {
    "succeeded": "green",
    "failed": "red",
    "skipped": "yellow",
}


def handle_errors(func):
    """Decorator to handle errors gracefully in CLI commands."""
    @wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except DocMigrateError as e:
            console.print(f"[red]Error:[/red] {escape(str(e))}")
            sys.exit(1)
        except KeyboardInterrupt:
            console.print("\n[yellow]Interrupted by user[/yellow]")
            sys.exit(130)
    return wrapper


def _load_config(path: str, debug: bool = False) -> DocMigrateConfig:
    config = DocMigrateConfig.from_yaml(path)
    configure_logging(config.logging, debug=debug or config.debug)
    return config


def _load_pair(config: DocMigrateConfig):
    from .schema.model import select_snapshots

    if not config.snapshots:
        raise ConfigurationError("No schema snapshots configured")
    return select_snapshots(config.load_snapshots())


@click.group()
@click.version_option(__version__)
@click.option(
    "--debug", is_flag=True, help="Enable debug mode"
)
@click.pass_context
def main(ctx, debug):
    """docmigrate: schema reconciliation for document stores."""
    ctx.ensure_object(dict)
    ctx.obj["debug"] = debug


@main.command()
@click.option(
    "--output",
    "-o",
    type=click.Path(),
    default="docmigrate.yaml",
    help="Output configuration file path",
)
@handle_errors
def init(output: str):
    """Write a starter configuration and two example snapshots."""
    if Path(output).exists():
        if not click.confirm(f"Configuration file {output} already exists. Overwrite?"):
            return

    schema_dir = Path(output).resolve().parent / "schema"
    schema_dir.mkdir(parents=True, exist_ok=True)
    old_path = schema_dir / "old.yaml"
    new_path = schema_dir / "new.yaml"

    for path, document in ((old_path, _example_old_snapshot()), (new_path, _example_new_snapshot())):
        with open(path, "w", encoding="utf-8") as f:
            yaml.dump(document, f, default_flow_style=False, sort_keys=False)

    config = DocMigrateConfig(snapshots=["schema/old.yaml", "schema/new.yaml"])
    config.to_yaml(output)

    console.print(f"[green]✓[/green] Configuration file created: {output}")
    console.print(f"[green]✓[/green] Example snapshots: {old_path.name}, {new_path.name}")
    console.print("\n[yellow]Next steps:[/yellow]")
    console.print("1. Point store.uri and store.database at your MongoDB deployment")
    console.print("2. Describe your current models in schema/old.yaml")
    console.print("3. Describe your target models in schema/new.yaml")
    console.print(f"4. Run: docmigrate plan -c {output}")


@main.command()
@click.option(
    "--config",
    "-c",
    type=click.Path(exists=True),
    required=True,
    help="Configuration file path",
)
@click.pass_context
@handle_errors
def validate_config(ctx, config: str):
    """Validate configuration and snapshot files."""
    console.print(f"Validating configuration: {config}")

    docmigrate_config = _load_config(config, ctx.obj.get("debug", False))
    docmigrate_config.validate_config()
    snapshots = docmigrate_config.load_snapshots()

    console.print("[green]✓[/green] Configuration is valid")
    _display_config_summary(docmigrate_config, snapshots)


@main.command()
@click.option(
    "--config",
    "-c",
    type=click.Path(exists=True),
    required=True,
    help="Configuration file path",
)
@click.option(
    "--json", "as_json", is_flag=True, help="Print the plan as JSON"
)
@click.pass_context
@handle_errors
def plan(ctx, config: str, as_json: bool):
    """Show the operations needed to migrate from the old to the new schema."""
    from .schema.planner import ReconciliationPlanner

    docmigrate_config = _load_config(config, ctx.obj.get("debug", False))
    old, new = _load_pair(docmigrate_config)
    change_plan = ReconciliationPlanner().plan(old, new)

    if as_json:
        console.print_json(data=change_plan.to_dict())
        return

    console.print(f"[blue]Change plan[/blue] {change_plan.old_label} -> {change_plan.new_label}")
    if change_plan.is_empty:
        console.print("[green]✓[/green] Schemas are in sync, nothing to do")
        return

    _display_operations(
        "Planned operations",
        [(op, None) for op in change_plan.operations],
    )
    if change_plan.has_destructive_operations:
        console.print("[yellow]Plan contains destructive operations[/yellow]")


@main.command()
@click.option(
    "--config",
    "-c",
    type=click.Path(exists=True),
    required=True,
    help="Configuration file path",
)
@click.option(
    "--dry-run",
    is_flag=True,
    help="Show what would be done without making changes",
)
@click.option(
    "--concurrency",
    type=click.IntRange(min=1),
    help="Collections reconciled concurrently (overrides config)",
)
@click.option(
    "--store",
    "backend",
    type=click.Choice(["mongodb", "memory"]),
    help="Store backend (overrides config)",
)
@click.option(
    "--json", "as_json", is_flag=True, help="Print the result as JSON"
)
@click.pass_context
@handle_errors
def migrate(
    ctx,
    config: str,
    dry_run: bool,
    concurrency: Optional[int],
    backend: Optional[str],
    as_json: bool,
):
    """Reconcile the document store with the new schema."""
    from .schema.reconciler import SchemaReconciler
    from .store.factory import create_store

    docmigrate_config = _load_config(config, ctx.obj.get("debug", False))
    old, new = _load_pair(docmigrate_config)

    settings = docmigrate_config.migration.model_copy()
    if dry_run:
        settings.dry_run = True
    if concurrency:
        settings.concurrency_limit = concurrency

    connection = docmigrate_config.store
    if backend:
        connection = connection.model_copy(update={"backend": backend})

    if settings.dry_run:
        console.print("[yellow]Dry run mode - no changes will be made[/yellow]")

    async def run_migration():
        store = None if settings.dry_run else create_store(connection)
        reconciler = SchemaReconciler(store, settings)
        loop = asyncio.get_running_loop()
        interrupt_handled = _cancel_on_interrupt(loop, reconciler)
        try:
            return await reconciler.reconcile(old, new)
        finally:
            if interrupt_handled:
                loop.remove_signal_handler(signal.SIGINT)
            if store is not None:
                await store.close()

    result = asyncio.run(run_migration())

    if as_json:
        console.print_json(data=result.to_dict())
    else:
        _display_result(result)

    if not result.is_success:
        sys.exit(1)


@main.command()
@click.option(
    "--config",
    "-c",
    type=click.Path(exists=True),
    required=True,
    help="Configuration file path",
)
@click.pass_context
@handle_errors
def test_connection(ctx, config: str):
    """Test the document store connection."""
    from .store.mongo import MongoDocumentStore

    docmigrate_config = _load_config(config, ctx.obj.get("debug", False))
    connection = docmigrate_config.store
    console.print(f"[blue]Testing connection to {connection.backend} store...[/blue]")

    if connection.backend == "memory":
        console.print("  ✅ [green]In-memory store is always available[/green]")
        return

    async def run_connection_test():
        store = MongoDocumentStore(connection)
        try:
            return await store.test_connection()
        finally:
            await store.close()

    status = asyncio.run(run_connection_test())
    if status.get("status") == "connected":
        console.print("  ✅ [green]Connected successfully[/green]")
        console.print(f"     Database: {status.get('database')}")
        console.print(f"     MongoDB version: {status.get('version')}")
    else:
        console.print(f"  ❌ [red]Connection failed: {escape(str(status.get('error')))}[/red]")
        sys.exit(1)


def _cancel_on_interrupt(loop: asyncio.AbstractEventLoop, reconciler) -> bool:
    """Turn Ctrl-C into a cooperative cancel of the running migration."""
    def request_cancel():
        console.print("\n[yellow]Interrupted, finishing operations in flight...[/yellow]")
        reconciler.cancel()

    try:
        loop.add_signal_handler(signal.SIGINT, request_cancel)
    except (NotImplementedError, RuntimeError):
        # No loop signal support here (Windows, non-main thread); Ctrl-C
        # then surfaces as KeyboardInterrupt.
        return False
    return True


def _example_old_snapshot() -> dict:
    return {
        "role": "old",
        "version": "1",
        "models": [
            {
                "name": "Player",
                "fields": [
                    {"name": "name", "type": "str", "index": True},
                    {"name": "level", "type": "int"},
                    {"name": "gold", "type": "int"},
                    {"name": "nickname", "type": "str"},
                ],
            }
        ],
    }


def _example_new_snapshot() -> dict:
    return {
        "role": "new",
        "version": "2",
        "models": [
            {
                "name": "Player",
                "fields": [
                    {"name": "name", "type": "str"},
                    {"name": "level", "type": "int", "index": True, "default": 1},
                    {"name": "gold", "type": "int", "default": 0},
                ],
            }
        ],
    }


def _display_config_summary(config: DocMigrateConfig, snapshots) -> None:
    """Display a summary of the configuration."""
    console.print("\n[blue]Configuration Summary[/blue]")

    store_table = Table(title="Store")
    store_table.add_column("Backend", style="cyan")
    store_table.add_column("Database", style="green")
    store_table.add_column("Concurrency", style="yellow")
    store_table.add_column("Dry Run", style="magenta")
    store_table.add_row(
        config.store.backend,
        config.store.database,
        str(config.migration.concurrency_limit),
        str(config.migration.dry_run),
    )
    console.print(store_table)

    snapshot_table = Table(title="Snapshots")
    snapshot_table.add_column("Role", style="cyan")
    snapshot_table.add_column("Version", style="magenta")
    snapshot_table.add_column("Models", style="green")
    snapshot_table.add_column("Source", style="yellow")
    for snapshot in snapshots:
        snapshot_table.add_row(
            snapshot.role.value,
            snapshot.version or "-",
            ", ".join(snapshot.type_names) or "-",
            Path(snapshot.source).name if snapshot.source else "-",
        )
    console.print(snapshot_table)


def _display_operations(title: str, rows: List[tuple]) -> None:
    table = Table(title=title)
    table.add_column("Phase", style="cyan")
    table.add_column("Operation", style="magenta")
    table.add_column("Collection", style="green")
    table.add_column("Field")
    show_status = any(outcome is not None for _, outcome in rows)
    if show_status:
        table.add_column("Status")
        table.add_column("Detail")

    for op, outcome in rows:
        row = [op.phase.value, op.kind.value, op.collection, op.field or "-"]
        if show_status:
            style = STATUS_STYLES.get(outcome.status.value, "")
            detail = ""
            if outcome.error is not None:
                detail = str(outcome.error)
            elif outcome.reason:
                detail = outcome.reason
            elif outcome.documents_affected is not None:
                detail = f"{outcome.documents_affected} documents"
            row.extend([f"[{style}]{outcome.status.value}[/{style}]", escape(detail)])
        table.add_row(*row)

    console.print(table)


def _display_result(result) -> None:
    from .schema.reconciler import ReconciliationStatus

    if result.status == ReconciliationStatus.DRY_RUN:
        if result.plan.is_empty:
            console.print("[green]✓[/green] Schemas are in sync, nothing to do")
        else:
            _display_operations("Planned operations", [(op, None) for op in result.plan.operations])
        return

    if result.outcomes:
        _display_operations("Migration results", [(o.operation, o) for o in result.outcomes])

    if result.skipped_phases:
        phases = ", ".join(p.value for p in result.skipped_phases)
        console.print(f"[yellow]Skipped phases:[/yellow] {phases}")

    summary = (
        f"{result.succeeded} succeeded, {result.failed} failed, {result.skipped} skipped "
        f"in {result.execution_time_ms:.1f}ms"
    )
    if result.is_success:
        console.print(f"[green]✓ Migration {result.status.value}[/green]: {summary}")
    else:
        console.print(f"[red]✗ Migration {result.status.value}[/red]: {summary}")


if __name__ == "__main__":
    main()

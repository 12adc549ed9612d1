# schemashift/schemashift/cli/main.py
"""
Command Line Interface for schemashift.

Every migration command needs a database URL and a schema reference of the
form ``package.module:attribute``. The attribute is either a ``Schema`` or a
callable returning one. Both can be given as options or through the
``SCHEMASHIFT_DATABASE_URL`` and ``SCHEMASHIFT_SCHEMA`` environment
variables.
"""

import asyncio
import importlib
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional, TypeVar

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table
from rich import print as rprint

from ..version import get_build_info
from ..exceptions import SchemaShiftError, ConfigurationError
from ..database.adapters import AdapterRegistry
from ..database.migrations import MigrationConfig, MigrationWorker, Schema, Version

T = TypeVar("T")

app = typer.Typer(
    name="schemashift",
    help="Versioned schema migrations for SQL databases",
    add_completion=False
)
console = Console()


@dataclass
class CLIState:
    """Options shared by every command."""
    database_url: Optional[str] = None
    schema_ref: Optional[str] = None
    table: str = "schema_migrations"


@app.callback()
def main(
    ctx: typer.Context,
    database_url: Optional[str] = typer.Option(
        None, "--database-url", "-d",
        envvar="SCHEMASHIFT_DATABASE_URL",
        help="Database URL, e.g. sqlite:///app.db or postgresql://user@host/db"
    ),
    schema: Optional[str] = typer.Option(
        None, "--schema", "-s",
        envvar="SCHEMASHIFT_SCHEMA",
        help="Schema to migrate, as package.module:attribute"
    ),
    table: str = typer.Option(
        "schema_migrations", "--table",
        envvar="SCHEMASHIFT_TABLE",
        help="Name of the migrations table"
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging")
):
    """Versioned schema migrations for SQL databases."""
    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(asctime)s %(name)s %(levelname)s %(message)s")
    ctx.obj = CLIState(database_url=database_url, schema_ref=schema, table=table)


def load_schema(reference: str) -> Schema:
    """Import the schema named by ``package.module:attribute``."""
    module_name, _, attribute = reference.partition(":")
    if not module_name or not attribute:
        raise ConfigurationError(f"schema reference must look like module:attribute, got '{reference}'")

    try:
        module = importlib.import_module(module_name)
    except ImportError as e:
        raise ConfigurationError(f"cannot import schema module '{module_name}': {e}") from e

    try:
        schema = getattr(module, attribute)
    except AttributeError as e:
        raise ConfigurationError(f"module '{module_name}' has no attribute '{attribute}'") from e

    if callable(schema) and not isinstance(schema, Schema):
        schema = schema()
    if not isinstance(schema, Schema):
        raise ConfigurationError(f"'{reference}' is not a Schema")
    return schema


def _print_step(message: str) -> None:
    rprint(f"[green]{escape(message)}[/green]")


async def _execute(state: CLIState, operation: Callable[[MigrationWorker], Awaitable[T]]) -> T:
    if not state.database_url:
        raise ConfigurationError("no database URL given, use --database-url or SCHEMASHIFT_DATABASE_URL")
    if not state.schema_ref:
        raise ConfigurationError("no schema given, use --schema or SCHEMASHIFT_SCHEMA")

    schema = load_schema(state.schema_ref)
    config = MigrationConfig(migrations_table=state.table)
    async with AdapterRegistry.create_adapter_from_url(state.database_url) as adapter:
        worker = MigrationWorker(adapter, schema, config=config, log_func=_print_step)
        return await operation(worker)


def _run(ctx: typer.Context, operation: Callable[[MigrationWorker], Awaitable[T]]) -> T:
    try:
        return asyncio.run(_execute(ctx.obj, operation))
    except (SchemaShiftError, ValueError) as e:
        rprint(f"❌ [red]{escape(str(e))}[/red]")
        raise typer.Exit(1)


def _versions_table(versions, title: str) -> Table:
    table = Table(title=title)
    table.add_column("Version", style="cyan", justify="right")
    table.add_column("Applied", style="green")
    table.add_column("Failed")
    table.add_column("Locked")
    table.add_column("Up")
    table.add_column("Down")

    for version in versions:
        table.add_row(
            str(version.id),
            version.applied_at.isoformat(timespec="seconds") if version.applied_at else "-",
            "[red]yes[/red]" if version.failed else "",
            "[yellow]yes[/yellow]" if version.locked else "",
            escape(version.up.strip()),
            escape(version.down.strip())
        )
    return table


@app.command()
def up(ctx: typer.Context):
    """Migrate up to the latest version."""
    _run(ctx, lambda worker: worker.up())


@app.command()
def down(ctx: typer.Context):
    """Migrate down to the first locked version, or all the way down."""
    _run(ctx, lambda worker: worker.down())


@app.command()
def goto(
    ctx: typer.Context,
    version_id: int = typer.Argument(..., help="Target version, 0 for all the way down")
):
    """Migrate up or down to a version."""
    _run(ctx, lambda worker: worker.goto(version_id))


@app.command()
def version(
    ctx: typer.Context,
    version_id: int = typer.Argument(..., help="Version to show")
):
    """Show one version."""
    result: Version = _run(ctx, lambda worker: worker.version(version_id))
    console.print(_versions_table([result], f"Version {version_id}"))


@app.command()
def versions(ctx: typer.Context):
    """List all versions."""
    result = _run(ctx, lambda worker: worker.versions())
    if not result:
        rprint("[yellow]No versions defined[/yellow]")
        return
    console.print(_versions_table(result, "Schema Versions"))


@app.command()
def force(
    ctx: typer.Context,
    version_id: int = typer.Argument(..., help="Version to force the database to")
):
    """Force the database to a version without running migrations."""
    _run(ctx, lambda worker: worker.force(version_id))


@app.command()
def lock(
    ctx: typer.Context,
    version_id: int = typer.Argument(..., help="Applied version to lock")
):
    """Lock a version so down migrations cannot pass it."""
    _run(ctx, lambda worker: worker.lock(version_id))


@app.command()
def unlock(
    ctx: typer.Context,
    version_id: int = typer.Argument(..., help="Version to unlock")
):
    """Unlock a version."""
    _run(ctx, lambda worker: worker.unlock(version_id))


@app.command()
def info():
    """Show schemashift version information."""
    build_info = get_build_info()

    table = Table(title="schemashift")
    table.add_column("Key", style="cyan")
    table.add_column("Value", style="green")
    table.add_row("Version", build_info["version"])
    table.add_row("Python", build_info["python_version"])
    table.add_row("Python compatible", "yes" if build_info["python_compatible"] else "no")
    table.add_row("Minimum Python", build_info["min_python"])
    table.add_row("Engines", ", ".join(e.value for e in AdapterRegistry.list_registered_engines()))
    console.print(table)


if __name__ == "__main__":
    app()

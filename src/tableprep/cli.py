"""
Command-line interface for tableprep.
"""

import asyncio
import sys
import time
from functools import wraps
from pathlib import Path
from typing import List, Optional, Tuple

import click
import pymysql
from rich.console import Console
from rich.table import Table

from . import __version__
from .config import ConnectionSettings, TableprepConfig, configure_logging
from .exceptions import TableprepError
from .manager import DatabaseManager
from .schema.models import ColumnSpec, TableSpec
from .schema.reconciler import ReconciliationResult, ReconciliationStatus


console = Console()


def handle_errors(func):
    """Decorator to handle errors gracefully in CLI commands."""
    @wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except TableprepError as e:
            console.print(f"[red]Error:[/red] {e}")
            sys.exit(1)
        except pymysql.err.MySQLError as e:
            console.print(f"[red]Database error:[/red] {e}")
            sys.exit(1)
        except KeyboardInterrupt:
            console.print("\n[yellow]Interrupted by user[/yellow]")
            sys.exit(0)
        except Exception as e:
            console.print(f"[red]Unexpected error:[/red] {e}")
            if "--debug" in sys.argv:
                import traceback
                traceback.print_exc()
            sys.exit(1)
    return wrapper


config_option = click.option(
    "--config",
    "-c",
    type=click.Path(exists=True),
    default=None,
    help="Configuration file path (defaults to TABLEPREP_* environment variables)",
)


@click.group()
@click.version_option(__version__)
@click.option(
    "--debug", is_flag=True, help="Enable debug mode"
)
@click.pass_context
def main(ctx, debug):
    """tableprep: convention-driven MySQL schema manager."""
    ctx.ensure_object(dict)
    ctx.obj["debug"] = debug


@main.command()
@click.option(
    "--output",
    "-o",
    type=click.Path(),
    default="tableprep.yaml",
    help="Output configuration file path",
)
@handle_errors
def init(output: str):
    """Write a starter configuration file."""
    if Path(output).exists():
        if not click.confirm(f"Configuration file {output} already exists. Overwrite?"):
            return

    _create_default_config().to_yaml(output)
    console.print(f"[green]✓[/green] Configuration file created: {output}")
    console.print("\n[yellow]Next steps:[/yellow]")
    console.print("1. Edit the connection settings and declared tables")
    console.print(f"2. Run: tableprep test-connection -c {output}")
    console.print(f"3. Run: tableprep sync -c {output}")


@main.command()
@config_option
@click.pass_context
@handle_errors
def test_connection(ctx, config: Optional[str]):
    """Connect to the database and report server details."""
    cfg = _load_config(ctx, config)
    console.print("[blue]Testing connection...[/blue]")

    async def run_connection_test():
        async with DatabaseManager(cfg.connection) as db:
            start_time = time.time()
            row = (await db.query("SELECT VERSION() AS version, DATABASE() AS db")).first()
            response_time = (time.time() - start_time) * 1000
            stats = db.pool.get_stats()

        console.print(f"  ✅ [green]Connected successfully[/green] ({response_time:.1f}ms)")
        console.print(f"     Server version: {row['version']}")
        console.print(f"     Database: {row['db']}")
        console.print(f"     Pool: {stats['size']} open, max {stats['maxsize']}")

    asyncio.run(run_connection_test())


@main.command()
@config_option
@click.pass_context
@handle_errors
def tables(ctx, config: Optional[str]):
    """List tables in the database."""
    cfg = _load_config(ctx, config)

    async def run_list():
        async with DatabaseManager(cfg.connection) as db:
            return await db.list_tables()

    names = asyncio.run(run_list())

    table = Table(title=f"Tables in {cfg.connection.database}")
    table.add_column("Table", style="cyan")
    for name in names:
        table.add_row(name)
    console.print(table)


@main.command()
@click.argument("table_name")
@config_option
@click.pass_context
@handle_errors
def columns(ctx, table_name: str, config: Optional[str]):
    """List the columns of TABLE_NAME."""
    cfg = _load_config(ctx, config)

    async def run_list():
        async with DatabaseManager(cfg.connection) as db:
            if not await db.table_exists(table_name):
                return None
            return await db.list_columns(table_name)

    names = asyncio.run(run_list())
    if names is None:
        console.print(f"[red]Table {table_name} does not exist[/red]")
        sys.exit(1)

    table = Table(title=f"Columns of {table_name}")
    table.add_column("#", style="magenta", justify="right")
    table.add_column("Column", style="cyan")
    for position, name in enumerate(names, start=1):
        table.add_row(str(position), name)
    console.print(table)


def _parse_columns(ctx, param, values: Tuple[str, ...]) -> List[ColumnSpec]:
    parsed = []
    for value in values:
        name, sep, column_type = value.partition(":")
        if not sep or not name.strip() or not column_type.strip():
            raise click.BadParameter(f"expected NAME:TYPE, got {value!r}")
        parsed.append(ColumnSpec(name=name.strip(), type=column_type.strip()))
    return parsed


@main.command()
@click.argument("table_name")
@click.option(
    "--column",
    "-C",
    "column_specs",
    multiple=True,
    required=True,
    callback=_parse_columns,
    help="Column as NAME:TYPE, e.g. 'info:TEXT NOT NULL' (repeatable)",
)
@config_option
@click.pass_context
@handle_errors
def init_table(ctx, table_name: str, column_specs: List[ColumnSpec], config: Optional[str]):
    """Create TABLE_NAME or add the columns it is missing."""
    cfg = _load_config(ctx, config)

    async def run_init():
        async with DatabaseManager(cfg.connection) as db:
            return await db.initialize_table(table_name, column_specs)

    _display_result(asyncio.run(run_init()))


@main.command()
@click.argument("table_names", nargs=-1)
@config_option
@click.pass_context
@handle_errors
def sync(ctx, table_names: Tuple[str, ...], config: Optional[str]):
    """Reconcile the tables declared in the configuration.

    With TABLE_NAMES, only those declared tables are reconciled.
    """
    cfg = _load_config(ctx, config)

    if table_names:
        specs = [cfg.get_table(name) for name in table_names]
    else:
        specs = cfg.tables

    if not specs:
        console.print("[yellow]No tables declared in configuration[/yellow]")
        return

    async def run_sync():
        async with DatabaseManager(cfg.connection) as db:
            return await db.reconciler.initialize_tables(specs)

    for result in asyncio.run(run_sync()):
        _display_result(result)


@main.command()
@config_option
@click.option("--yes", is_flag=True, help="Do not ask for confirmation")
@click.pass_context
@handle_errors
def truncate(ctx, config: Optional[str], yes: bool):
    """Delete all rows from every table, keeping the tables."""
    cfg = _load_config(ctx, config)

    if not yes and not click.confirm(
        f"Truncate ALL tables in {cfg.connection.database}?"
    ):
        return

    async def run_truncate():
        async with DatabaseManager(cfg.connection) as db:
            return await db.truncate_all_tables()

    truncated = asyncio.run(run_truncate())
    console.print(f"[green]✓[/green] Truncated {len(truncated)} tables")


def _load_config(ctx, path: Optional[str]) -> TableprepConfig:
    """Load configuration and set up logging for a command."""
    cfg = TableprepConfig.from_yaml(path) if path else TableprepConfig.from_env()
    debug = bool(ctx.obj and ctx.obj.get("debug"))
    configure_logging(cfg.logging, debug=debug)
    return cfg


def _display_result(result: ReconciliationResult) -> None:
    if result.status == ReconciliationStatus.UNCHANGED:
        console.print(f"[green]✓[/green] {result.table}: up to date")
        return

    console.print(
        f"[green]✓[/green] {result.table}: {result.status.value} "
        f"({result.execution_time_ms:.1f}ms)"
    )

    table = Table(title=f"Columns added to {result.table}")
    table.add_column("Column", style="cyan")
    table.add_column("Type", style="green")
    for column in result.columns_added:
        table.add_row(column.name, column.type)
    console.print(table)

    if result.trigger_installed:
        console.print(f"  Installed trigger {result.table}_trigger")


def _create_default_config() -> TableprepConfig:
    """Create a default configuration with an example table."""
    return TableprepConfig(
        connection=ConnectionSettings(
            host="${MYSQL_HOST}",
            user="${MYSQL_USER}",
            password="${MYSQL_PASSWORD}",
            database="${MYSQL_DATABASE}",
        ),
        tables=[
            TableSpec(
                name="products",
                columns=[
                    ColumnSpec(
                        name="id",
                        type="BIGINT UNSIGNED NOT NULL PRIMARY KEY AUTO_INCREMENT",
                    ),
                    ColumnSpec(name="info", type="TEXT NOT NULL"),
                ],
            ),
        ],
    )


if __name__ == "__main__":
    main()

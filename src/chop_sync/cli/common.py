"""Helpers shared by the CLI command modules."""

import argparse
import asyncio
import logging
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager
from pathlib import Path

from pydantic import BaseModel
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from chop_sync.adapters.base import DatabaseClient
from chop_sync.backup.models import ImportResult
from chop_sync.config.loader import load_config
from chop_sync.config.models import SyncConfig
from chop_sync.errors import SyncError
from chop_sync.factory import ProfileNotFoundError, get_adapter
from chop_sync.remote.auth import FileSessionStore

console = Console()
err_console = Console(stderr=True)

# Failures reported as a one-line message instead of a traceback
EXPECTED_ERRORS = (SyncError, ProfileNotFoundError, FileNotFoundError, ValueError)


def setup_logging(verbose: bool = False) -> None:
    """Route library logging through rich on stderr."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=err_console, show_path=False)],
    )


def load_cli_config(args: argparse.Namespace) -> SyncConfig:
    config_path = getattr(args, "config", None)
    return load_config(Path(config_path) if config_path else None)


@asynccontextmanager
async def open_store(
    args: argparse.Namespace,
) -> AsyncIterator[tuple[SyncConfig, DatabaseClient]]:
    """Load config and open the profile's row store; closes it on exit."""
    config = load_cli_config(args)
    adapter = await get_adapter(
        profile_name=getattr(args, "profile", None),
        env_prefix=getattr(args, "env_prefix", ""),
        config=config,
    )
    try:
        yield config, adapter
    finally:
        await adapter.close()


def session_store_for(config: SyncConfig) -> FileSessionStore:
    return FileSessionStore(config.google.token_path)


def run_command(
    args: argparse.Namespace,
    impl: Callable[[argparse.Namespace], Awaitable[int]],
) -> int:
    """Run an async command implementation, reporting expected failures.

    Returns:
        The implementation's exit code, or 1 on an expected failure.
    """
    try:
        return asyncio.run(impl(args))
    except EXPECTED_ERRORS as e:
        report_error(args, e)
        return 1


def report_error(args: argparse.Namespace, error: Exception) -> None:
    if getattr(args, "json", False):
        console.print_json(data={"error": str(error)})
    else:
        console.print(f"[bold red]x[/bold red] {escape(str(error))}")


def print_json(model: BaseModel) -> None:
    """Print *model* as camelCase JSON."""
    console.print_json(model.model_dump_json(by_alias=True))


def print_import_result(result: ImportResult, title: str = "Import Results") -> None:
    """Per-table imported/skipped counts followed by any row errors."""
    table = Table(title=title, show_header=True, header_style="bold")
    table.add_column("Table", style="dim")
    table.add_column("Imported", justify="right", style="green")
    table.add_column("Skipped", justify="right", style="yellow")

    for name, count in result.imported.items():
        skipped = result.skipped.get(name, 0)
        table.add_row(name, str(count), str(skipped) if skipped else "-")

    console.print(table)

    if result.errors:
        console.print(f"\n[yellow]{len(result.errors)} errors:[/yellow]")
        for error in result.errors:
            console.print(f"  - {escape(error)}")

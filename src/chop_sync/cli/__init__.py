"""CLI for the tracker's backup and Google Drive sync engine.

Usage:
    chop-sync status
    chop-sync credentials set --client-id 123.apps.googleusercontent.com --client-secret s3cr3t
    chop-sync auth-url
    chop-sync authorize --code 4/0Ab...
    chop-sync sync
    chop-sync export
    chop-sync preview
    chop-sync import --merge
    chop-sync --json sync
    CHOP_DB_PROFILE=server chop-sync --env-prefix CHOP_ check

Commands:
    status       - Show whether Google Drive sync is configured and connected
    export       - Push a snapshot of the store to Google Drive
    preview      - Show the row counts of the Google Drive backup
    import       - Import the Google Drive backup (replace unless --merge)
    sync         - Pull (merge) the Google Drive backup, then push local data
    credentials  - Show, set or clear the Google OAuth app credentials
    auth-url     - Print the Google consent URL
    authorize    - Exchange an authorization code for a saved session
    logout       - Forget the saved session
    backup       - Export the store to a local snapshot file
    restore      - Import a local snapshot file
    validate     - Validate a local snapshot file
    check        - Compare the live schema with the table registry
    profiles     - List database profiles
"""

import argparse
import sys

from rich.prompt import Confirm
from rich.table import Table

from chop_sync.backup.registry import TRACKER_SCHEMA
from chop_sync.cli import backup as backup_commands
from chop_sync.cli.common import (
    console,
    load_cli_config,
    open_store,
    print_import_result,
    print_json,
    report_error,
    run_command,
    session_store_for,
    setup_logging,
)
from chop_sync.errors import NotConfiguredError
from chop_sync.factory import ProfileNotFoundError, get_active_profile_name
from chop_sync.remote.auth import (
    authorization_url,
    delete_app_credentials,
    exchange_code,
    resolve_app_credentials,
    save_app_credentials,
)
from chop_sync.schema.comparator import check_schema
from chop_sync.sync import (
    get_status,
    open_remote,
    preview_import,
    run_export,
    run_import,
    run_sync,
)


# ============================================================================
# Async command implementations
# ============================================================================


async def _async_status(args: argparse.Namespace) -> int:
    async with open_store(args) as (config, adapter):
        status = await get_status(
            adapter, config.google, session_store_for(config), args.env_prefix
        )

    if args.json:
        print_json(status)
        return 0

    table = Table(title="Google Drive Sync", show_header=False)
    table.add_column("Key", style="dim")
    table.add_column("Value")

    table.add_row("Configured", "[green]yes[/green]" if status.configured else "[red]no[/red]")
    table.add_row("Connected", "[green]yes[/green]" if status.connected else "[yellow]no[/yellow]")
    if status.message:
        table.add_row("Message", status.message)
    if status.user:
        table.add_row("Account", f"{status.user.name or ''} <{status.user.email or '?'}>")
    if status.last_backup:
        table.add_row(
            "Last backup",
            f"{status.last_backup.modified_time} ({status.last_backup.size or '?'} bytes)",
        )
    elif status.connected:
        table.add_row("Last backup", "[dim]none[/dim]")

    console.print(table)
    return 0


async def _async_export(args: argparse.Namespace) -> int:
    async with open_store(args) as (config, adapter):
        session_store = session_store_for(config)
        remote = await open_remote(adapter, config.google, session_store, args.env_prefix)
        result = await run_export(adapter, remote, session_store)

    if args.json:
        print_json(result)
    else:
        console.print(f"[bold green]v[/bold green] {result.message}")
        console.print(f"  File: [cyan]{result.file.id}[/cyan] ({result.file.size or '?'} bytes)")
    return 0


async def _async_preview(args: argparse.Namespace) -> int:
    async with open_store(args) as (config, adapter):
        session_store = session_store_for(config)
        remote = await open_remote(adapter, config.google, session_store, args.env_prefix)
        preview = await preview_import(remote, session_store)

    if args.json:
        print_json(preview)
        return 0

    table = Table(
        title=f"Backup from {preview.exported_at} (v{preview.version})",
        show_header=True,
        header_style="bold",
    )
    table.add_column("Table", style="dim")
    table.add_column("Rows", justify="right")
    for name, count in preview.table_counts.items():
        table.add_row(name, str(count))
    console.print(table)
    return 0


async def _async_import(args: argparse.Namespace) -> int:
    if not args.merge and not args.yes:
        console.print(
            "[bold yellow]WARNING:[/bold yellow] all local rows will be replaced "
            "by the Google Drive backup!"
        )
        if not Confirm.ask("Continue?", default=False):
            console.print("Cancelled.")
            return 0

    async with open_store(args) as (config, adapter):
        session_store = session_store_for(config)
        remote = await open_remote(adapter, config.google, session_store, args.env_prefix)
        outcome = await run_import(adapter, remote, merge=args.merge, session_store=session_store)

    if args.json:
        print_json(outcome)
    else:
        print_import_result(outcome, title=f"Import ({'merge' if args.merge else 'replace'})")
        mark = "[bold green]v[/bold green]" if outcome.success else "[bold red]x[/bold red]"
        console.print(f"{mark} {outcome.message} (backup from {outcome.backup_date})")
    return 0 if outcome.success else 1


async def _async_sync(args: argparse.Namespace) -> int:
    async with open_store(args) as (config, adapter):
        session_store = session_store_for(config)
        remote = await open_remote(adapter, config.google, session_store, args.env_prefix)
        result = await run_sync(adapter, remote, session_store)

    if args.json:
        print_json(result)
        return 0

    if result.pull_result is not None:
        print_import_result(result.pull_result, title="Pulled from backup")
        if not result.pulled:
            console.print("[yellow]Pull failed; local data was pushed anyway.[/yellow]")
    console.print(f"[bold green]v[/bold green] {result.message}")
    return 0


async def _async_credentials(args: argparse.Namespace) -> int:
    async with open_store(args) as (config, adapter):
        session_store = session_store_for(config)

        if args.action == "set":
            app = await save_app_credentials(
                adapter,
                args.client_id,
                args.client_secret,
                args.redirect_uri,
                session_store=session_store,
            )
            console.print(
                f"[bold green]v[/bold green] Credentials saved for "
                f"[cyan]{app.masked_client_id}[/cyan]. "
                "Run [cyan]chop-sync auth-url[/cyan] to connect."
            )
            return 0

        if args.action == "clear":
            await delete_app_credentials(adapter, session_store)
            console.print("[bold green]v[/bold green] Credentials removed.")
            return 0

        app = await resolve_app_credentials(adapter, config.google, args.env_prefix)

    info = {
        "configured": app is not None,
        "source": app.source if app else "none",
        "clientId": app.masked_client_id if app else None,
        "redirectUri": app.redirect_uri if app else config.google.redirect_uri,
    }
    if args.json:
        console.print_json(data=info)
        return 0

    table = Table(title="Google OAuth Credentials", show_header=False)
    table.add_column("Key", style="dim")
    table.add_column("Value")
    for key, value in info.items():
        table.add_row(key, str(value) if value is not None else "[dim]-[/dim]")
    console.print(table)
    return 0


async def _async_auth_url(args: argparse.Namespace) -> int:
    async with open_store(args) as (config, adapter):
        app = await resolve_app_credentials(adapter, config.google, args.env_prefix)

    if app is None:
        raise NotConfiguredError("Google OAuth credentials not configured")

    url = authorization_url(app)
    if args.json:
        console.print_json(data={"authUrl": url})
    else:
        console.print("Open this URL, approve access, then run:")
        console.print("  [cyan]chop-sync authorize --code <code>[/cyan]\n")
        console.print(url, soft_wrap=True)
    return 0


async def _async_authorize(args: argparse.Namespace) -> int:
    async with open_store(args) as (config, adapter):
        app = await resolve_app_credentials(adapter, config.google, args.env_prefix)

    if app is None:
        raise NotConfiguredError("Google OAuth credentials not configured")

    session = await exchange_code(app, args.code)
    session_store_for(config).save(session)
    console.print("[bold green]v[/bold green] Connected to Google Drive.")
    return 0


async def _async_check(args: argparse.Namespace) -> int:
    async with open_store(args) as (_config, adapter):
        actual = await adapter.get_column_names(TRACKER_SCHEMA.table_names)

    result = check_schema(actual, TRACKER_SCHEMA)
    if args.json:
        print_json(result)
    elif result.valid:
        console.print(f"[bold green]v[/bold green] {result.format_report()}")
    else:
        console.print(f"[bold red]x[/bold red] {result.format_report()}")
    return 0 if result.valid else 1


# ============================================================================
# Command wrappers
# ============================================================================


def cmd_status(args: argparse.Namespace) -> int:
    """Show sync configuration and connection state."""
    return run_command(args, _async_status)


def cmd_export(args: argparse.Namespace) -> int:
    """Push a snapshot to Google Drive."""
    return run_command(args, _async_export)


def cmd_preview(args: argparse.Namespace) -> int:
    """Show what an import would bring in."""
    return run_command(args, _async_preview)


def cmd_import(args: argparse.Namespace) -> int:
    """Import the Google Drive backup."""
    return run_command(args, _async_import)


def cmd_sync(args: argparse.Namespace) -> int:
    """Pull then push."""
    return run_command(args, _async_sync)


def cmd_credentials(args: argparse.Namespace) -> int:
    """Show, set or clear the OAuth app credentials."""
    return run_command(args, _async_credentials)


def cmd_auth_url(args: argparse.Namespace) -> int:
    """Print the Google consent URL."""
    return run_command(args, _async_auth_url)


def cmd_authorize(args: argparse.Namespace) -> int:
    """Exchange an authorization code for a saved session."""
    return run_command(args, _async_authorize)


def cmd_check(args: argparse.Namespace) -> int:
    """Compare the live schema with the table registry."""
    return run_command(args, _async_check)


def cmd_logout(args: argparse.Namespace) -> int:
    """Forget the saved session.  Reads only the local config."""
    try:
        config = load_cli_config(args)
    except (FileNotFoundError, ValueError) as e:
        report_error(args, e)
        return 1

    session_store_for(config).clear()
    console.print("[bold green]v[/bold green] Disconnected from Google Drive.")
    return 0


def cmd_profiles(args: argparse.Namespace) -> int:
    """List database profiles from chop-sync.toml.

    Reads only local TOML config -- no database calls.

    Returns:
        0 on success, 1 if chop-sync.toml not found.
    """
    try:
        config = load_cli_config(args)
    except (FileNotFoundError, ValueError) as e:
        report_error(args, e)
        return 1

    try:
        current = args.profile or get_active_profile_name(args.env_prefix, config)
    except ProfileNotFoundError:
        current = None

    table = Table(title="Database Profiles", show_header=True, header_style="bold")
    table.add_column("", width=2)
    table.add_column("Profile")
    table.add_column("Description")

    for name, profile in config.profiles.items():
        marker = "[bold green]*[/bold green]" if name == current else " "
        table.add_row(
            marker,
            f"[bold cyan]{name}[/bold cyan]" if name == current else name,
            profile.description or "",
        )

    console.print(table)

    if current:
        console.print("\n[bold green]*[/bold green] = active profile")

    return 0


# ============================================================================
# Main entry point
# ============================================================================


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser with every command registered."""
    parser = argparse.ArgumentParser(
        prog="chop-sync",
        description="Backup, import and Google Drive sync for the intern tracker",
    )

    parser.add_argument(
        "--env-prefix",
        default="",
        help=(
            "Prefix for environment variable lookup "
            "(e.g., --env-prefix CHOP_ reads CHOP_DB_PROFILE)"
        ),
    )
    parser.add_argument("--profile", "-p", help="Database profile from chop-sync.toml")
    parser.add_argument("--config", "-c", help="Path to chop-sync.toml")
    parser.add_argument("--json", action="store_true", help="Print results as JSON")
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")

    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser(
        "status", help="Show whether Google Drive sync is configured and connected"
    ).set_defaults(func=cmd_status)

    subparsers.add_parser(
        "export", help="Push a snapshot of the store to Google Drive"
    ).set_defaults(func=cmd_export)

    subparsers.add_parser(
        "preview", help="Show the row counts of the Google Drive backup"
    ).set_defaults(func=cmd_preview)

    p_import = subparsers.add_parser(
        "import", help="Import the Google Drive backup (replace unless --merge)"
    )
    p_import.add_argument(
        "--merge",
        action="store_true",
        help="Upsert rows instead of replacing all local data",
    )
    p_import.add_argument(
        "--yes", "-y",
        action="store_true",
        help="Skip confirmation prompt",
    )
    p_import.set_defaults(func=cmd_import)

    subparsers.add_parser(
        "sync", help="Pull (merge) the Google Drive backup, then push local data"
    ).set_defaults(func=cmd_sync)

    p_credentials = subparsers.add_parser(
        "credentials", help="Show, set or clear the Google OAuth app credentials"
    )
    p_credentials.add_argument("action", choices=["show", "set", "clear"])
    p_credentials.add_argument("--client-id", help="OAuth client id (for 'set')")
    p_credentials.add_argument("--client-secret", help="OAuth client secret (for 'set')")
    p_credentials.add_argument("--redirect-uri", help="OAuth redirect URI (for 'set')")
    p_credentials.set_defaults(func=cmd_credentials)

    subparsers.add_parser(
        "auth-url", help="Print the Google consent URL"
    ).set_defaults(func=cmd_auth_url)

    p_authorize = subparsers.add_parser(
        "authorize", help="Exchange an authorization code for a saved session"
    )
    p_authorize.add_argument("--code", required=True, help="Code from the consent redirect")
    p_authorize.set_defaults(func=cmd_authorize)

    subparsers.add_parser(
        "logout", help="Forget the saved Google session"
    ).set_defaults(func=cmd_logout)

    subparsers.add_parser(
        "check", help="Compare the live schema with the table registry"
    ).set_defaults(func=cmd_check)

    subparsers.add_parser(
        "profiles", help="List database profiles"
    ).set_defaults(func=cmd_profiles)

    backup_commands.register(subparsers)

    return parser


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point.

    Returns:
        Exit code (0 for success, non-zero for errors).
    """
    args = build_parser().parse_args(argv)
    setup_logging(args.verbose)
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())

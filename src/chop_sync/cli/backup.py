"""Local snapshot file commands: backup, restore, validate.

Usage:
    chop-sync backup
    chop-sync backup --output backups/before-upgrade.json
    chop-sync restore backups/backup-2025-06-01-0930.json --merge
    chop-sync restore backups/backup-2025-06-01-0930.json --yes
    chop-sync validate backups/backup-2025-06-01-0930.json
"""

import argparse
import json

from rich.markup import escape
from rich.prompt import Confirm

from chop_sync.backup import export_all, import_all, read_snapshot, validate_snapshot, write_snapshot
from chop_sync.cli.common import console, open_store, print_import_result, print_json, run_command


async def _async_backup(args: argparse.Namespace) -> int:
    async with open_store(args) as (_config, adapter):
        doc = await export_all(adapter)

    backup_path = write_snapshot(doc, output_path=args.output)
    total = sum(len(rows) for rows in doc.tables.values())

    if args.json:
        console.print_json(data={"path": backup_path, "exportedAt": doc.exported_at, "rows": total})
    else:
        console.print(
            f"[bold green]v[/bold green] Backup written to [cyan]{backup_path}[/cyan] "
            f"({total} rows)"
        )
    return 0


async def _async_restore(args: argparse.Namespace) -> int:
    doc = read_snapshot(args.backup_path)

    if not args.merge and not args.yes:
        console.print(f"This will restore data from: [cyan]{args.backup_path}[/cyan]")
        console.print("  [bold yellow]WARNING:[/bold yellow] all local rows will be replaced!")
        if not Confirm.ask("Continue?", default=False):
            console.print("Cancelled.")
            return 0

    async with open_store(args) as (_config, adapter):
        result = await import_all(adapter, doc, merge=args.merge)

    if args.json:
        print_json(result)
    else:
        print_import_result(result, title=f"Restore ({'merge' if args.merge else 'replace'})")
        if result.success:
            console.print("[bold green]v[/bold green] Restore complete.")
        else:
            console.print("[bold red]x[/bold red] Restore failed; nothing was changed.")
    return 0 if result.success else 1


def cmd_backup(args: argparse.Namespace) -> int:
    """Export the store to a local snapshot file."""
    return run_command(args, _async_backup)


def cmd_restore(args: argparse.Namespace) -> int:
    """Import a local snapshot file (replace unless --merge)."""
    return run_command(args, _async_restore)


def cmd_validate(args: argparse.Namespace) -> int:
    """Check a local snapshot file without touching the store.

    Returns:
        0 if the file is a usable snapshot, 1 otherwise.
    """
    try:
        with open(args.backup_path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        report = {"valid": False, "errors": [f"Cannot read file: {e}"], "warnings": []}
    else:
        report = validate_snapshot(data)

    if args.json:
        console.print_json(data=report)
        return 0 if report["valid"] else 1

    console.print(f"Validating: [cyan]{args.backup_path}[/cyan]")

    if report["errors"]:
        console.print(f"\n[red]Found {len(report['errors'])} errors:[/red]")
        for error in report["errors"]:
            console.print(f"  - {escape(error)}")

    if report["warnings"]:
        console.print(f"\n[yellow]Found {len(report['warnings'])} warnings:[/yellow]")
        for warning in report["warnings"]:
            console.print(f"  - {escape(warning)}")

    if report["valid"]:
        suffix = " (with warnings)" if report["warnings"] else ""
        console.print(f"\n[bold green]v[/bold green] Snapshot is valid{suffix}")
        return 0

    console.print("\n[bold red]x[/bold red] Snapshot is invalid")
    return 1


def register(subparsers: argparse._SubParsersAction) -> None:
    """Add the backup/restore/validate commands to the main parser."""
    p_backup = subparsers.add_parser("backup", help="Export the store to a local snapshot file")
    p_backup.add_argument(
        "--output", "-o",
        help="Output file path (default: backups/backup-{timestamp}.json)",
    )
    p_backup.set_defaults(func=cmd_backup)

    p_restore = subparsers.add_parser("restore", help="Import a local snapshot file")
    p_restore.add_argument("backup_path", help="Path to snapshot JSON file")
    p_restore.add_argument(
        "--merge",
        action="store_true",
        help="Upsert rows instead of replacing all local data",
    )
    p_restore.add_argument(
        "--yes", "-y",
        action="store_true",
        help="Skip confirmation prompt",
    )
    p_restore.set_defaults(func=cmd_restore)

    p_validate = subparsers.add_parser("validate", help="Validate a local snapshot file")
    p_validate.add_argument("backup_path", help="Path to snapshot JSON file")
    p_validate.set_defaults(func=cmd_validate)

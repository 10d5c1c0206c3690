"""Local snapshot files: write, read and validate.

Snapshots are stored as the same JSON document that is uploaded to Drive,
so a local file can be restored exactly like a remote backup.

Usage:
    from chop_sync.backup.files import read_snapshot, validate_snapshot, write_snapshot

    path = write_snapshot(doc)                  # ./backups/backup-<timestamp>.json
    report = validate_snapshot(json.loads(Path(path).read_text()))
    doc = read_snapshot(path)
"""

import json
from datetime import datetime
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from chop_sync.backup.models import SNAPSHOT_VERSION, BackupSchema, SnapshotDocument
from chop_sync.backup.registry import TRACKER_SCHEMA


def write_snapshot(doc: SnapshotDocument, output_path: str | None = None) -> str:
    """Write *doc* to a JSON file.

    Args:
        doc: Snapshot to write.
        output_path: Path to save the file.  When ``None``, generates a
            timestamped path under ``./backups/``.

    Returns:
        Path of the written file.
    """
    if output_path is None:
        backups_dir = Path.cwd() / "backups"
        backups_dir.mkdir(exist_ok=True)
        timestamp = datetime.now().strftime("%Y-%m-%d-%H%M")
        output_path = str(backups_dir / f"backup-{timestamp}.json")

    output_path_obj = Path(output_path)
    output_path_obj.parent.mkdir(parents=True, exist_ok=True)
    output_path_obj.write_text(doc.to_json(), encoding="utf-8")

    return output_path


def read_snapshot(backup_path: str) -> SnapshotDocument:
    """Load a snapshot file.

    Raises:
        FileNotFoundError: If the file does not exist.
        ValueError: If the file is not JSON or not a snapshot document.
    """
    with open(backup_path, "r", encoding="utf-8") as f:
        try:
            data = json.load(f)
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid JSON: {e}") from e

    try:
        return SnapshotDocument.model_validate(data)
    except ValidationError as e:
        raise ValueError(f"Not a snapshot document: {e}") from e


def validate_snapshot(data: Any, schema: BackupSchema = TRACKER_SCHEMA) -> dict:
    """Check a decoded snapshot for format problems.

    Errors make the snapshot unusable (no ``tables`` mapping, wrong version).
    Warnings describe what an import will quietly skip: registered tables
    that are missing or not lists, and tables the registry doesn't know.

    Args:
        data: Decoded JSON document.
        schema: Table registry to compare against.

    Returns:
        Dict with ``valid`` (bool), ``errors`` (list[str]) and
        ``warnings`` (list[str]).

    Example:
        >>> validate_snapshot({"exportedAt": "x", "version": "1.0", "tables": {}})["valid"]
        True
    """
    errors: list[str] = []
    warnings: list[str] = []

    if not isinstance(data, dict):
        errors.append("Snapshot must be a JSON object")
        return {"valid": False, "errors": errors, "warnings": warnings}

    tables = data.get("tables")
    if not isinstance(tables, dict):
        errors.append("Invalid backup format: missing tables")
        return {"valid": False, "errors": errors, "warnings": warnings}

    if "exportedAt" not in data:
        warnings.append("Missing field: exportedAt")

    version = data.get("version")
    if version != SNAPSHOT_VERSION:
        errors.append(
            f"Unsupported backup version '{version}' (expected '{SNAPSHOT_VERSION}')"
        )

    for table_name in schema.table_names:
        if table_name not in tables:
            warnings.append(f"Missing table: {table_name}")
        elif not isinstance(tables[table_name], list):
            warnings.append(f"Table {table_name} is not a list of rows")

    for table_name in sorted(set(tables) - set(schema.table_names)):
        warnings.append(f"Unknown table (ignored on import): {table_name}")

    return {"valid": not errors, "errors": errors, "warnings": warnings}

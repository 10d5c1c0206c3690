"""Snapshot export, import and local snapshot files.

The table structure is declared by a ``BackupSchema`` registry;
``TRACKER_SCHEMA`` is the canonical dependency-ordered list of tracker tables.

Usage:
    from chop_sync.backup import export_all, import_all, TRACKER_SCHEMA
    from chop_sync.backup import read_snapshot, write_snapshot, validate_snapshot
"""

from chop_sync.backup.exporter import export_all
from chop_sync.backup.files import read_snapshot, validate_snapshot, write_snapshot
from chop_sync.backup.importer import import_all
from chop_sync.backup.models import (
    SNAPSHOT_VERSION,
    BackupSchema,
    ImportResult,
    SnapshotDocument,
    TableDef,
)
from chop_sync.backup.registry import TRACKER_SCHEMA

__all__ = [
    "BackupSchema",
    "TableDef",
    "SnapshotDocument",
    "ImportResult",
    "SNAPSHOT_VERSION",
    "TRACKER_SCHEMA",
    "export_all",
    "import_all",
    "read_snapshot",
    "write_snapshot",
    "validate_snapshot",
]

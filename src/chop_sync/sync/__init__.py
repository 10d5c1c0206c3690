"""Sync operations between the row store and the remote backup.

Usage:
    from chop_sync.sync import run_export, run_sync, preview_import, run_import
"""

from chop_sync.sync.models import (
    ExportResult,
    ImportOutcome,
    PullResult,
    PushResult,
    SnapshotPreview,
    SyncResult,
    SyncStatus,
)
from chop_sync.sync.orchestrator import (
    get_status,
    open_remote,
    preview_import,
    run_export,
    run_import,
    run_sync,
)

__all__ = [
    "ExportResult",
    "ImportOutcome",
    "PullResult",
    "PushResult",
    "SnapshotPreview",
    "SyncResult",
    "SyncStatus",
    "get_status",
    "open_remote",
    "preview_import",
    "run_export",
    "run_import",
    "run_sync",
]

"""chop-sync: snapshot backup, import and Google Drive sync for the tracker.

Exports every tracker table into one JSON snapshot, imports snapshots back
under a replace or merge policy, and keeps a single backup object in the
account's Google Drive app-data folder in sync with the local store.

Usage:
    from chop_sync import get_adapter, export_all, import_all
    from chop_sync import open_remote, run_sync, FileSessionStore
"""

__version__ = "0.1.0"

# Adapters
from chop_sync.adapters import AsyncSQLAdapter, DatabaseClient, Transaction

# Backup
from chop_sync.backup import (
    TRACKER_SCHEMA,
    BackupSchema,
    ImportResult,
    SnapshotDocument,
    TableDef,
    export_all,
    import_all,
)

# Config
from chop_sync.config import DatabaseProfile, GoogleSettings, SyncConfig, load_config

# Errors
from chop_sync.errors import (
    NoBackupFoundError,
    NotConfiguredError,
    NotConnectedError,
    SessionExpiredError,
    SyncError,
)

# Factory
from chop_sync.factory import ProfileNotFoundError, get_adapter, resolve_url

# Remote
from chop_sync.remote import DriveBackupStore, FileSessionStore

# Schema
from chop_sync.schema import check_schema

# Sync
from chop_sync.sync import (
    get_status,
    open_remote,
    preview_import,
    run_export,
    run_import,
    run_sync,
)

__all__ = [
    # Adapters
    "AsyncSQLAdapter",
    "DatabaseClient",
    "Transaction",
    # Backup
    "TRACKER_SCHEMA",
    "BackupSchema",
    "ImportResult",
    "SnapshotDocument",
    "TableDef",
    "export_all",
    "import_all",
    # Config
    "DatabaseProfile",
    "GoogleSettings",
    "SyncConfig",
    "load_config",
    # Errors
    "NoBackupFoundError",
    "NotConfiguredError",
    "NotConnectedError",
    "SessionExpiredError",
    "SyncError",
    # Factory
    "ProfileNotFoundError",
    "get_adapter",
    "resolve_url",
    # Remote
    "DriveBackupStore",
    "FileSessionStore",
    # Schema
    "check_schema",
    # Sync
    "get_status",
    "open_remote",
    "preview_import",
    "run_export",
    "run_import",
    "run_sync",
]

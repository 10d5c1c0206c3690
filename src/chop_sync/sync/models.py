"""Result models of the sync operations.

All models serialize with camelCase keys (``model_dump(by_alias=True)``),
the shape the web client of the tracker expects.
"""

from pydantic import Field

from chop_sync.backup.models import CamelModel, ImportResult
from chop_sync.remote.base import RemoteFile, UserInfo


class ExportResult(CamelModel):
    """Outcome of pushing a fresh snapshot to the remote."""

    success: bool = True
    message: str = "Data exported to Google Drive"
    file: RemoteFile
    exported_at: str


class PullResult(ImportResult):
    """Pull phase of a sync: the merge import of the remote backup."""

    backup_date: str | None = None


class PushResult(CamelModel):
    """Push phase of a sync: the upload of the post-merge snapshot."""

    file: RemoteFile
    exported_at: str


class SyncResult(CamelModel):
    """Outcome of a bidirectional sync (pull then push)."""

    success: bool = True
    message: str = ""
    pulled: bool = False
    pushed: bool = False
    pull_result: PullResult | None = None
    push_result: PushResult | None = None
    backup_existed: bool = False


class SnapshotPreview(CamelModel):
    """Row counts of the remote backup, without importing it."""

    exported_at: str | None = None
    version: str
    table_counts: dict[str, int] = Field(default_factory=dict)


class ImportOutcome(ImportResult):
    """One-shot import of the remote backup."""

    message: str = ""
    backup_date: str | None = None


class SyncStatus(CamelModel):
    """Connection state.  ``user`` and ``last_backup`` are best-effort."""

    configured: bool
    connected: bool
    message: str | None = None
    user: UserInfo | None = None
    last_backup: RemoteFile | None = None

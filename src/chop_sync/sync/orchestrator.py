"""Sync orchestrator: export, preview, import and bidirectional sync.

Every operation takes the row store adapter, a ``BlobStore`` and optionally
the ``SessionStore``.  When the remote rejects the session, the session is
cleared and ``SessionExpiredError`` is raised, so the next status check
reports "not connected" cleanly.  Nothing is retried.

Usage:
    from chop_sync.sync import open_remote, run_sync

    remote = await open_remote(adapter, config.google, session_store)
    result = await run_sync(adapter, remote, session_store)
    print(result.message)
"""

import logging
from collections.abc import AsyncIterator, Awaitable
from contextlib import asynccontextmanager
from typing import TypeVar

from chop_sync.adapters.base import DatabaseClient
from chop_sync.backup.exporter import export_all
from chop_sync.backup.importer import import_all
from chop_sync.config.models import GoogleSettings
from chop_sync.errors import (
    AuthenticationError,
    CorruptBackupError,
    NoBackupFoundError,
    NotConfiguredError,
    NotConnectedError,
    SessionExpiredError,
)
from chop_sync.remote.auth import resolve_app_credentials
from chop_sync.remote.base import BlobStore, SessionStore
from chop_sync.remote.drive import DriveBackupStore, connect_drive
from chop_sync.sync.models import (
    ExportResult,
    ImportOutcome,
    PullResult,
    PushResult,
    SnapshotPreview,
    SyncResult,
    SyncStatus,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

NOT_CONFIGURED_MESSAGE = "Google OAuth credentials not configured"
NOT_CONNECTED_MESSAGE = "Not connected to Google Drive"
SESSION_EXPIRED_MESSAGE = "Session expired, please reconnect"


@asynccontextmanager
async def _session_guard(session_store: SessionStore | None) -> AsyncIterator[None]:
    """Turn a rejected session into ``SessionExpiredError``, clearing it."""
    try:
        yield
    except AuthenticationError as e:
        logger.warning("Remote rejected the session: %s", e)
        if session_store is not None:
            session_store.clear()
        raise SessionExpiredError(SESSION_EXPIRED_MESSAGE) from e


async def run_export(
    adapter: DatabaseClient,
    remote: BlobStore,
    session_store: SessionStore | None = None,
) -> ExportResult:
    """Snapshot the store and upload it, replacing the remote backup."""
    async with _session_guard(session_store):
        doc = await export_all(adapter)
        meta = await remote.upload(doc)

    return ExportResult(file=meta, exported_at=doc.exported_at)


async def run_sync(
    adapter: DatabaseClient,
    remote: BlobStore,
    session_store: SessionStore | None = None,
) -> SyncResult:
    """Pull the remote backup with the merge policy, then push local state.

    Pull phase: a missing backup skips the import (``backup_existed`` stays
    ``False``).  An import that fails, or a remote backup that can't be
    decoded, leaves ``pulled=False`` with a failed ``pull_result`` but does
    not stop the sync.

    Push phase: always runs, exporting after the merge so the remote ends up
    holding the union of pulled and local rows.

    Returns:
        ``SyncResult`` describing both phases.
    """
    result = SyncResult()

    async with _session_guard(session_store):
        logger.info("Sync: checking for existing backup")
        try:
            existing = await remote.download()
        except CorruptBackupError as e:
            logger.warning("Sync: remote backup unreadable, pushing local data: %s", e)
            existing = None
            result.backup_existed = True
            result.pull_result = PullResult(success=False, errors=[str(e)])

        if existing is not None:
            result.backup_existed = True
            logger.info("Sync: pulling backup dated %s", existing.exported_at)
            imported = await import_all(adapter, existing, merge=True)
            result.pulled = imported.success
            result.pull_result = PullResult(
                success=imported.success,
                imported=imported.imported,
                skipped=imported.skipped,
                errors=imported.errors,
                backup_date=existing.exported_at,
            )

        logger.info("Sync: pushing local changes")
        doc = await export_all(adapter)
        meta = await remote.upload(doc)
        result.pushed = True
        result.push_result = PushResult(file=meta, exported_at=doc.exported_at)

    result.message = (
        "Synced: pulled changes from backup, then pushed local changes"
        if result.backup_existed
        else "Synced: created new backup with local data"
    )
    return result


async def preview_import(
    remote: BlobStore,
    session_store: SessionStore | None = None,
) -> SnapshotPreview:
    """Row count per table of the remote backup (entries that aren't lists count 0).

    Raises:
        NoBackupFoundError: If the remote holds no backup.
    """
    async with _session_guard(session_store):
        doc = await remote.download()

    if doc is None:
        raise NoBackupFoundError("No backup found in Google Drive")

    return SnapshotPreview(
        exported_at=doc.exported_at,
        version=doc.version,
        table_counts={
            name: len(rows) if isinstance(rows, list) else 0
            for name, rows in doc.tables.items()
        },
    )


async def run_import(
    adapter: DatabaseClient,
    remote: BlobStore,
    merge: bool = False,
    session_store: SessionStore | None = None,
) -> ImportOutcome:
    """Import the remote backup once, replacing local data unless *merge*.

    Raises:
        NoBackupFoundError: If the remote holds no backup.
    """
    async with _session_guard(session_store):
        doc = await remote.download()

    if doc is None:
        raise NoBackupFoundError("No backup found in Google Drive")

    result = await import_all(adapter, doc, merge=merge)
    logger.info(
        "Import from backup dated %s: %s",
        doc.exported_at,
        "success" if result.success else "failed",
    )
    return ImportOutcome(
        **result.model_dump(),
        message=(
            "Data imported from Google Drive"
            if result.success
            else "Import completed with errors"
        ),
        backup_date=doc.exported_at,
    )


async def open_remote(
    adapter: DatabaseClient,
    settings: GoogleSettings,
    session_store: SessionStore,
    env_prefix: str = "",
) -> DriveBackupStore:
    """Connect to Drive with the configured app and the saved session.

    Raises:
        NotConfiguredError: If no OAuth app credentials are configured.
        NotConnectedError: If there is no usable saved session.
    """
    app = await resolve_app_credentials(adapter, settings, env_prefix)
    if app is None:
        raise NotConfiguredError(NOT_CONFIGURED_MESSAGE)

    session = session_store.load()
    if session is None:
        raise NotConnectedError(NOT_CONNECTED_MESSAGE)

    return connect_drive(app, session, settings)


async def get_status(
    adapter: DatabaseClient,
    settings: GoogleSettings,
    session_store: SessionStore,
    env_prefix: str = "",
) -> SyncStatus:
    """Report whether sync is configured and connected.

    ``user`` and ``last_backup`` are fetched best-effort: a failure is
    logged and leaves the field ``None``.
    """
    try:
        remote = await open_remote(adapter, settings, session_store, env_prefix)
    except NotConfiguredError as e:
        return SyncStatus(configured=False, connected=False, message=str(e))
    except NotConnectedError as e:
        return SyncStatus(configured=True, connected=False, message=str(e))

    return SyncStatus(
        configured=True,
        connected=True,
        user=await _best_effort(remote.user_info(), "user info"),
        last_backup=await _best_effort(remote.find(), "backup file"),
    )


async def _best_effort(call: Awaitable[T], what: str) -> T | None:
    """Await *call*; any failure is logged and becomes ``None``."""
    try:
        return await call
    except Exception as e:
        logger.warning("Could not get %s: %s", what, e)
        return None

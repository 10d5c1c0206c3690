"""Snapshot exporter: serialize every registered table into one document."""

import logging
from datetime import datetime, timezone

from chop_sync.adapters.base import DatabaseClient
from chop_sync.backup.models import SNAPSHOT_VERSION, BackupSchema, SnapshotDocument
from chop_sync.backup.registry import TRACKER_SCHEMA

logger = logging.getLogger(__name__)


async def export_all(
    adapter: DatabaseClient,
    schema: BackupSchema = TRACKER_SCHEMA,
) -> SnapshotDocument:
    """Read every row of every table in *schema* into a ``SnapshotDocument``.

    Tables are read in schema order with a full-table select (no filtering,
    no pagination).  A table that cannot be read is logged and recorded as an
    empty list, so the document always carries every registered table and one
    broken table never aborts the export.

    Args:
        adapter: Row store implementing ``DatabaseClient``.
        schema: Ordered table registry.  Defaults to the tracker tables.

    Returns:
        ``SnapshotDocument`` stamped with the current UTC time and the
        current format version.

    Example:
        doc = await export_all(adapter)
        doc.tables["interns"]  # [{"id": 1, "name": "Ada", ...}, ...]
    """
    tables: dict[str, list[dict]] = {}

    for table_def in schema.tables:
        try:
            rows = await adapter.select(table_def.name)
        except Exception as e:
            logger.error("Error exporting table %s: %s", table_def.name, e)
            rows = []
        tables[table_def.name] = rows
        logger.debug("Exported %s: %d rows", table_def.name, len(rows))

    doc = SnapshotDocument(
        exported_at=datetime.now(timezone.utc).isoformat(),
        version=SNAPSHOT_VERSION,
        tables=tables,
    )
    logger.info(
        "Export complete: %s",
        ", ".join(f"{name}: {len(rows)}" for name, rows in tables.items()),
    )
    return doc

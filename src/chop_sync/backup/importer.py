"""Snapshot importer: write a ``SnapshotDocument`` back into the row store.

The whole import is one transaction.  Inside it, every row is written
independently: a row that violates a constraint is recorded in
``ImportResult.errors`` and skipped, and the import carries on.  Only a
failure of the transaction itself (for example at commit) rolls back
everything and reports ``success=False``.

Columns are narrowed to the ones the live table actually has, so snapshots
from schema-older or schema-newer deployments import as far as they can.

Usage:
    from chop_sync.backup.importer import import_all

    result = await import_all(adapter, doc, merge=True)
    if result.errors:
        ...
"""

import logging
from typing import Any

from chop_sync.adapters.base import DatabaseClient, Transaction
from chop_sync.backup.models import BackupSchema, ImportResult, SnapshotDocument, TableDef
from chop_sync.backup.registry import TRACKER_SCHEMA

logger = logging.getLogger(__name__)


async def import_all(
    adapter: DatabaseClient,
    doc: SnapshotDocument | dict[str, Any],
    merge: bool = False,
    schema: BackupSchema = TRACKER_SCHEMA,
) -> ImportResult:
    """Import a snapshot under the replace or merge policy.

    Replace (``merge=False``): every registered table is cleared in reverse
    order first (children before parents; a table that can't be cleared is
    ignored), then rows are inserted in forward order.

    Merge (``merge=True``): nothing is cleared; each row is upserted on the
    table's primary key, overwriting a local row with the same id.

    Tables missing from the document, or whose entry is not a list, are
    skipped and do not appear in ``imported``/``skipped``.  Tables in the
    document that are not registered in *schema* are ignored.

    Args:
        adapter: Row store implementing ``DatabaseClient``.
        doc: Snapshot to import (model or its decoded JSON mapping).
        merge: ``True`` for merge policy, ``False`` for replace.
        schema: Ordered table registry.  Defaults to the tracker tables.

    Returns:
        ``ImportResult`` with per-table counts and every error message.
    """
    result = ImportResult()

    tables = _document_tables(doc)
    if tables is None:
        result.success = False
        result.errors.append("Invalid backup format: missing tables")
        return result

    try:
        async with adapter.transaction() as tx:
            if not merge:
                await _clear_tables(tx, schema)

            for table_def in schema.tables:
                await _import_table(tx, table_def, tables.get(table_def.name), merge, result)
    except Exception as e:
        logger.error("Import transaction failed: %s", e)
        result.success = False
        result.errors.append(f"Transaction failed: {e}")

    return result


def _document_tables(doc: SnapshotDocument | dict[str, Any]) -> dict[str, Any] | None:
    if isinstance(doc, SnapshotDocument):
        return doc.tables
    tables = doc.get("tables") if isinstance(doc, dict) else None
    return tables if isinstance(tables, dict) else None


async def _clear_tables(tx: Transaction, schema: BackupSchema) -> None:
    """Delete all rows, children before parents."""
    for table_def in reversed(schema.tables):
        try:
            await tx.delete_all(table_def.name)
            logger.debug("Cleared table: %s", table_def.name)
        except Exception as e:
            # Table might not exist yet
            logger.debug("Could not clear table %s: %s", table_def.name, e)


async def _import_table(
    tx: Transaction,
    table_def: TableDef,
    rows: Any,
    merge: bool,
    result: ImportResult,
) -> None:
    """Import the rows of a single table, updating *result* in place."""
    table_name = table_def.name

    if not isinstance(rows, list):
        logger.debug("Skipping %s: no data in backup", table_name)
        return

    result.imported[table_name] = 0
    result.skipped[table_name] = 0

    valid_columns = await tx.columns_of(table_name)
    if not valid_columns:
        logger.warning("Skipping %s: table does not exist in database", table_name)
        result.errors.append(f"Table {table_name} does not exist in database")
        return

    for row in rows:
        if not isinstance(row, dict):
            result.skipped[table_name] += 1
            result.errors.append(f"Error importing {table_name} row: not an object")
            continue

        # Only columns that exist in the current schema, in row order
        data = {col: row[col] for col in row if col in valid_columns}
        if not data:
            result.skipped[table_name] += 1
            continue

        try:
            if merge:
                await tx.upsert(table_name, data, pk=table_def.pk)
            else:
                await tx.insert(table_name, data)
            result.imported[table_name] += 1
        except Exception as e:
            logger.warning("Error importing row into %s: %s", table_name, e)
            result.errors.append(f"Error importing {table_name} row: {e}")
            result.skipped[table_name] += 1

    logger.info(
        "Imported %d rows into %s, skipped %d",
        result.imported[table_name],
        table_name,
        result.skipped[table_name],
    )

"""Live schema introspection over an open SQLAlchemy async connection.

Uses SQLAlchemy's runtime inspection (``sqlalchemy.inspect``) so the same
code answers for SQLite (``PRAGMA table_info``) and PostgreSQL
(``information_schema``).  The introspector runs on the caller's connection,
so inside an import transaction it sees exactly what that transaction sees.

Usage:
    async with engine.begin() as conn:
        introspector = SchemaIntrospector(conn)
        columns = await introspector.columns_of("tasks")
"""

import logging

from sqlalchemy import inspect
from sqlalchemy.ext.asyncio import AsyncConnection

logger = logging.getLogger(__name__)


class SchemaIntrospector:
    """Reads table and column metadata from a live store."""

    def __init__(self, conn: AsyncConnection) -> None:
        self._conn = conn

    async def columns_of(self, table: str) -> list[str]:
        """Return the current column names of *table* in ordinal order.

        A missing table is an expected outcome and yields ``[]``.  Any other
        metadata failure is logged and also yields ``[]``: schema drift
        between a backup and the current deployment must not abort the
        caller.  The lookup runs inside a SAVEPOINT so a failed metadata
        query leaves an enclosing transaction usable.
        """
        try:
            async with self._conn.begin_nested():
                return await self._conn.run_sync(_column_names, table)
        except Exception as e:
            logger.warning("Could not read columns for %s: %s", table, e)
            return []

    async def unique_keys(self, table: str) -> list[tuple[str, ...]]:
        """Column tuples of every unique constraint and unique index of *table*.

        The primary key is not included.  Failures are logged and yield
        ``[]``, like ``columns_of``.
        """
        try:
            async with self._conn.begin_nested():
                return await self._conn.run_sync(_unique_keys, table)
        except Exception as e:
            logger.warning("Could not read unique keys for %s: %s", table, e)
            return []

    async def get_column_names(self, tables: list[str]) -> dict[str, set[str]]:
        """Column sets for the given tables (tables that don't exist are omitted).

        Lightweight alternative to full introspection when you only need to
        check whether expected columns exist.
        """
        result: dict[str, set[str]] = {}
        existing = set(await self._conn.run_sync(_table_names))
        for table in tables:
            if table not in existing:
                continue
            result[table] = set(await self.columns_of(table))
        return result


def _column_names(sync_conn, table: str) -> list[str]:
    if not inspect(sync_conn).has_table(table):
        return []
    return [col["name"] for col in inspect(sync_conn).get_columns(table)]


def _unique_keys(sync_conn, table: str) -> list[tuple[str, ...]]:
    insp = inspect(sync_conn)
    if not insp.has_table(table):
        return []

    keys = {tuple(uc["column_names"]) for uc in insp.get_unique_constraints(table)}
    for index in insp.get_indexes(table):
        # Expression indexes report None for their computed columns
        if index.get("unique") and None not in index["column_names"]:
            keys.add(tuple(index["column_names"]))
    return sorted(key for key in keys if key)


def _table_names(sync_conn) -> list[str]:
    return inspect(sync_conn).get_table_names()

"""Row store protocol definitions.

``DatabaseClient`` is the generic row store the exporter, importer and
orchestrator talk to.  ``Transaction`` is the handle yielded by
``DatabaseClient.transaction()``: every write issued through it belongs to
one all-or-nothing unit, while each individual write is isolated so that a
failed row can be skipped without poisoning the rest of the transaction.

All methods are ``async def`` -- the library is async-first.

Usage:
    from chop_sync.adapters.base import DatabaseClient

    async def copy_settings(client: DatabaseClient) -> None:
        rows = await client.select("settings")
        async with client.transaction() as tx:
            for row in rows:
                await tx.upsert("settings", row, pk="key")
"""

from contextlib import AbstractAsyncContextManager
from typing import Any, Protocol


class Transaction(Protocol):
    """Write handle scoped to a single store transaction."""

    async def columns_of(self, table: str) -> list[str]:
        """Live column names of *table* in ordinal order, ``[]`` if absent."""
        ...

    async def delete_all(self, table: str) -> None:
        """Delete every row of *table*.

        Raises:
            Exception: If the table does not exist.  The transaction stays
                usable after the failure.
        """
        ...

    async def insert(self, table: str, row: dict[str, Any]) -> None:
        """Insert one row.  Raises on constraint violation; the transaction
        stays usable after the failure."""
        ...

    async def upsert(self, table: str, row: dict[str, Any], pk: str) -> None:
        """Insert one row, overwriting the existing row with the same *pk*.

        Local rows that hold the same values on another unique key under a
        different *pk* are deleted first, so the incoming row always lands.
        """
        ...


class DatabaseClient(Protocol):
    """Row store interface that all adapters must implement.

    All methods are async -- callers must ``await`` every operation.
    """

    async def select(
        self,
        table: str,
        columns: list[str] | None = None,
        filters: dict[str, Any] | None = None,
        order_by: str | None = None,
    ) -> list[dict]:
        """Select rows from table.

        Args:
            table: Table name.
            columns: Column names to return.  ``None`` selects every column.
            filters: Optional dict of field=value filters (all must match via AND).
            order_by: Optional column name to sort by.

        Returns:
            List of dicts, one per row, with JSON-compatible values.  Empty
            list if no matches.

        Example:
            rows = await client.select(
                "settings",
                ["value"],
                filters={"key": "intern_traits"},
            )
        """
        ...

    async def upsert(self, table: str, data: dict[str, Any], pk: str = "id") -> None:
        """Insert a row or overwrite the row with the same primary key.

        Runs in its own transaction.
        """
        ...

    async def delete(self, table: str, filters: dict[str, Any]) -> None:
        """Delete rows matching all *filters*.  Runs in its own transaction."""
        ...

    async def columns_of(self, table: str) -> list[str]:
        """Live column names of *table*, ``[]`` if the table does not exist."""
        ...

    async def get_column_names(self, tables: list[str]) -> dict[str, set[str]]:
        """Live column sets for every table in *tables* that exists."""
        ...

    def transaction(self) -> AbstractAsyncContextManager[Transaction]:
        """Open one atomic transaction.

        Commits when the block exits normally; rolls back everything written
        inside the block when it raises (the exception propagates).

        Example:
            async with client.transaction() as tx:
                await tx.delete_all("tasks")
                await tx.insert("tasks", {"id": 1, "title": "Onboarding"})
        """
        ...

    async def close(self) -> None:
        """Close database connection and clean up resources."""
        ...

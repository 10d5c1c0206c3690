"""Row store adapters package.

Provides the ``DatabaseClient`` / ``Transaction`` Protocols and the async
SQLAlchemy implementation used for both SQLite and PostgreSQL stores.

Usage:
    from chop_sync.adapters import DatabaseClient, AsyncSQLAdapter
"""

from chop_sync.adapters.base import DatabaseClient, Transaction
from chop_sync.adapters.sql import AsyncSQLAdapter

__all__ = [
    "DatabaseClient",
    "Transaction",
    "AsyncSQLAdapter",
]

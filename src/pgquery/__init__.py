"""Query helpers for PostgreSQL.

SQL strings and plain dicts in, rows (dicts) out. Not an ORM.

Basic usage::

    from pgquery import Database, DatabaseConfig

    db = Database(DatabaseConfig(database="music"))

    albums = await db.query("SELECT * FROM albums WHERE artist_id = $1", 47)
    album = await db.query_one("SELECT * FROM albums WHERE id = $1", 3)

    await db.insert({"table": "artists", "fields": {"name": "Nico"}, "returnValue": "id"})
    await db.update({"table": "artists", "fields": {"name": "Nico"}, "where": {"id": 38}})

    tx = await db.begin_transaction()
    await tx.query("DELETE FROM albums WHERE artist_id = $1", 47)
    await tx.commit()

Requires ``asyncpg``::

    pip install pgquery
"""

from pgquery._flatten import flat_array
from pgquery.builder import BuiltStatement, Statement, build_insert, build_statement, build_update
from pgquery.config import DatabaseConfig
from pgquery.database import Database
from pgquery.errors import (
    ConnectionError,
    DriverNotInstalledError,
    InvalidQueryType,
    PgQueryError,
    StatementError,
    TransactionStateError,
)
from pgquery.executor import QueryExecutor
from pgquery.pool import AsyncpgProvider, ConnectionProvider
from pgquery.requests import Request, RequestKind, coerce_request
from pgquery.transaction import Transaction, TransactionState

__all__ = [
    "AsyncpgProvider",
    "BuiltStatement",
    "ConnectionError",
    "ConnectionProvider",
    "Database",
    "DatabaseConfig",
    "DriverNotInstalledError",
    "InvalidQueryType",
    "PgQueryError",
    "QueryExecutor",
    "Request",
    "RequestKind",
    "Statement",
    "StatementError",
    "Transaction",
    "TransactionState",
    "TransactionStateError",
    "build_insert",
    "build_statement",
    "build_update",
    "coerce_request",
    "flat_array",
]

"""Database facade.

``Database`` ties together a connection provider, a ``QueryExecutor`` and
transaction handles. It is an ordinary object: construct it, pass it to
whoever needs it, close it when done. There is no module-level pool.

Usage::

    db = Database(DatabaseConfig(database="music"))

    albums = await db.query("SELECT * FROM albums WHERE artist_id = $1", 47)
    album = await db.query_one("SELECT * FROM albums WHERE id = $1", [3])

    rows = await db.insert({
        "table": "albums",
        "fields": {"title": "Blue", "sort_order": "auto"},
        "returnValue": "id",
    })
    await db.update({
        "table": "albums",
        "fields": {"meta": {"label": "Reprise"}},   # merged into the jsonb column
        "where": {"id": rows[0]["id"]},
    })

    tx = await db.begin_transaction()
    await tx.query("UPDATE albums SET sort_order = sort_order + 1")
    await tx.commit()

    await db.disconnect()

The constructor also takes the loose option names of a plain dict::

    db = Database({"username": "app", "host": "db.internal", "ssl": True})
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import replace
from typing import Any

from pgquery.builder import Statement
from pgquery.config import DatabaseConfig
from pgquery.executor import QueryExecutor, Row
from pgquery.pool import AsyncpgProvider, ConnectionProvider
from pgquery.transaction import Transaction


class Database:
    """Query helpers over a pooled PostgreSQL connection provider.

    ``provider`` replaces the default ``asyncpg`` pool, e.g. with
    ``pgquery.testing.FakeProvider`` in tests. ``echo=True`` prints every
    statement with its timing to stderr.
    """

    __slots__ = ("_config", "_echo", "_executor", "_initialized", "_provider")

    def __init__(
        self,
        config: DatabaseConfig | Mapping[str, Any] | None = None,
        /,
        *,
        provider: ConnectionProvider | None = None,
        echo: bool = False,
        **options: Any,
    ) -> None:
        if config is None:
            config = DatabaseConfig.from_mapping(options)
        elif isinstance(config, Mapping):
            config = DatabaseConfig.from_mapping({**config, **options})
        elif options:
            config = replace(config, **options)
        self._config = config
        self._provider = provider if provider is not None else AsyncpgProvider(config)
        self._echo = echo
        self._executor = QueryExecutor(self._provider, echo=echo)
        self._initialized = False

    @property
    def config(self) -> DatabaseConfig:
        return self._config

    @property
    def pool(self) -> ConnectionProvider:
        """The connection provider queries borrow from."""
        return self._provider

    # -- Lifecycle --

    async def connect(self) -> None:
        """Open the pool.

        The provider opens it on first use anyway. Call explicitly to fail
        fast at startup.
        """
        if self._initialized:
            return
        connect = getattr(self._provider, "connect", None)
        if connect is not None:
            await connect()
        self._initialized = True

    async def disconnect(self) -> None:
        """Close all pooled connections."""
        self._initialized = False
        await self._provider.close()

    async def __aenter__(self) -> Database:
        await self.connect()
        return self

    async def __aexit__(self, *_: Any) -> None:
        await self.disconnect()

    # -- Public query API --

    async def query(self, request: Any, /, *params: Any) -> list[Any]:
        """Run a SQL string with params, a statement descriptor, or a task list.

        ::

            await db.query("SELECT * FROM genres WHERE artist_id = $1 AND mood = $2", 47, "sad")
            await db.query("SELECT * FROM genres WHERE artist_id = $1 AND mood = $2", [47, "sad"])

            albums, genres = await db.query([
                ["SELECT * FROM albums WHERE artist_id = $1", 47],
                ["SELECT * FROM genres WHERE artist_id = $1", [47]],
            ])
        """
        return await self._executor.query(request, *params)

    async def query_one(self, request: Any, /, *params: Any) -> Any:
        """First row of ``query()``, or ``None`` when nothing matched."""
        return await self._executor.query_one(request, *params)

    async def insert(self, statement: Statement | Mapping[str, Any]) -> list[Row]:
        return await self._executor.insert(statement)

    async def update(self, statement: Statement | Mapping[str, Any]) -> list[Row]:
        return await self._executor.update(statement)

    async def query_insert(self, statement: Statement | Mapping[str, Any]) -> Row | None:
        """Deprecated: use ``insert()``."""
        return await self._executor.query_insert(statement)

    async def query_update(self, statement: Statement | Mapping[str, Any]) -> Row | None:
        """Deprecated: use ``update()``."""
        return await self._executor.query_update(statement)

    # -- Transactions --

    async def begin_transaction(self) -> Transaction:
        """Check out a connection, issue ``BEGIN`` and return the handle."""
        return await Transaction.begin(self._provider, echo=self._echo)

    transaction = begin_transaction

"""Connection provider seam.

pgquery never manages sockets itself. It borrows connections from a
provider that exposes ``acquire``/``release`` and connections that expose
``execute``. ``AsyncpgProvider`` is the production provider, backed by an
``asyncpg`` pool; ``pgquery.testing.FakeProvider`` is an in-memory double.

Connections are exclusively owned between ``acquire`` and ``release``.
``checkout`` pairs the two so every exit path releases exactly once.
"""

from __future__ import annotations

import json
import logging
from collections.abc import AsyncIterator, Sequence
from contextlib import asynccontextmanager
from typing import Any, Protocol, runtime_checkable

import anyio

from pgquery.config import DatabaseConfig
from pgquery.errors import ConnectionError, DriverNotInstalledError, PgQueryError

logger = logging.getLogger("pgquery.pool")


@runtime_checkable
class Connection(Protocol):
    """A checked-out database connection."""

    async def execute(self, sql: str, params: Sequence[Any]) -> list[dict[str, Any]]: ...


@runtime_checkable
class ConnectionProvider(Protocol):
    """Anything that lends out connections."""

    async def acquire(self) -> Connection: ...

    async def release(self, conn: Connection) -> None: ...

    async def close(self) -> None: ...


async def acquire(provider: ConnectionProvider) -> Connection:
    """Acquire a connection, raising ``ConnectionError`` on failure."""
    try:
        return await provider.acquire()
    except PgQueryError:
        raise
    except Exception as exc:
        logger.error("Could not acquire a database connection: %s", exc)
        raise ConnectionError(str(exc)) from exc


@asynccontextmanager
async def checkout(provider: ConnectionProvider) -> AsyncIterator[Connection]:
    """Acquire a connection for the duration of the block, then release it."""
    conn = await acquire(provider)
    try:
        yield conn
    finally:
        await provider.release(conn)


# =============================================================================
# asyncpg
# =============================================================================


async def init_connection(raw: Any) -> None:
    """Encode and decode json/jsonb columns as Python objects."""
    for type_name in ("json", "jsonb"):
        await raw.set_type_codec(
            type_name, encoder=json.dumps, decoder=json.loads, schema="pg_catalog"
        )


class AsyncpgConnection:
    """Adapts an ``asyncpg`` connection to the ``Connection`` protocol."""

    __slots__ = ("raw",)

    def __init__(self, raw: Any) -> None:
        self.raw = raw

    async def execute(self, sql: str, params: Sequence[Any]) -> list[dict[str, Any]]:
        records = await self.raw.fetch(sql, *params)
        return [dict(record) for record in records or ()]


class AsyncpgProvider:
    """Connection provider backed by ``asyncpg.create_pool``.

    The pool is created on ``connect()``, or lazily on first ``acquire()``.
    """

    __slots__ = ("_config", "_lock", "_pool")

    def __init__(self, config: DatabaseConfig | None = None) -> None:
        self._config = config or DatabaseConfig()
        self._lock: anyio.Lock | None = None  # Created lazily, needs a running loop
        self._pool: Any = None

    @property
    def config(self) -> DatabaseConfig:
        return self._config

    async def connect(self) -> None:
        if self._pool is not None:
            return
        if self._lock is None:
            self._lock = anyio.Lock()
        async with self._lock:
            if self._pool is None:
                await self._create_pool()

    async def _create_pool(self) -> None:
        try:
            import asyncpg
        except ImportError:
            msg = (
                "pgquery requires 'asyncpg' for PostgreSQL databases. "
                "Install it with: pip install asyncpg"
            )
            raise DriverNotInstalledError(msg) from None

        try:
            self._pool = await asyncpg.create_pool(
                **self._config.connect_kwargs(), init=init_connection
            )
        except Exception as exc:
            logger.error("Could not create pool for %s: %s", self._config.dsn, exc)
            raise ConnectionError(str(exc)) from exc

    async def acquire(self) -> AsyncpgConnection:
        if self._pool is None:
            await self.connect()
        raw = await self._pool.acquire()
        return AsyncpgConnection(raw)

    async def release(self, conn: Connection) -> None:
        if self._pool is None:
            return
        raw = conn.raw if isinstance(conn, AsyncpgConnection) else conn
        await self._pool.release(raw)

    async def close(self) -> None:
        if self._pool is None:
            return
        pool, self._pool = self._pool, None
        await pool.close()

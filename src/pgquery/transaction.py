"""Transaction handle.

A ``Transaction`` owns one connection from ``BEGIN`` until ``COMMIT`` or
``ROLLBACK``. Every ``query()`` in between runs on that connection, in
order. The connection goes back to the provider exactly once, when the
transaction ends; afterwards every call raises ``TransactionStateError``.

Statement errors inside ``query()`` do not roll back on their own. The
caller decides: call ``rollback()``, or use the handle as an async context
manager, which commits on clean exit and rolls back on exception.

Usage::

    tx = await db.begin_transaction()
    try:
        artist = await tx.query_one(
            {"table": "artists", "fields": {"name": "Nico"}, "returnValue": "id"}
        )
        await tx.query(
            "INSERT INTO albums (artist_id, title) VALUES ($1, $2)", artist["id"], "Chelsea Girl"
        )
        await tx.commit()
    except Exception:
        await tx.rollback()
        raise

    async with await db.begin_transaction() as tx:
        await tx.query("DELETE FROM albums WHERE artist_id = $1", 47)

A handle must be driven by one caller at a time; there is no locking.
"""

from __future__ import annotations

import contextlib
import logging
from enum import Enum
from typing import Any

from pgquery.builder import BuiltStatement
from pgquery.errors import StatementError, TransactionStateError
from pgquery.executor import first_row, run_built, run_tasks
from pgquery.pool import Connection, ConnectionProvider, acquire
from pgquery.requests import RequestKind, coerce_request

logger = logging.getLogger("pgquery.transaction")


class TransactionState(Enum):
    CREATED = "created"
    ACTIVE = "active"
    ENDED = "ended"


class Transaction:
    """One connection, bounded by BEGIN and COMMIT/ROLLBACK."""

    __slots__ = ("_conn", "_echo", "_provider", "_state")

    def __init__(self, provider: ConnectionProvider, *, echo: bool = False) -> None:
        self._provider = provider
        self._echo = echo
        self._conn: Connection | None = None
        self._state = TransactionState.CREATED

    @classmethod
    async def begin(cls, provider: ConnectionProvider, *, echo: bool = False) -> Transaction:
        """Acquire a connection, issue ``BEGIN``, and return the active handle."""
        tx = cls(provider, echo=echo)
        await tx._begin()
        return tx

    @property
    def state(self) -> TransactionState:
        return self._state

    @property
    def active(self) -> bool:
        return self._state is TransactionState.ACTIVE

    # -- Lifecycle --

    async def _begin(self) -> None:
        if self._state is not TransactionState.CREATED:
            msg = f"Cannot begin a transaction that is {self._state.value}"
            raise TransactionStateError(msg)

        conn = await acquire(self._provider)
        try:
            await run_built(conn, BuiltStatement("BEGIN", ()), echo=self._echo)
        except BaseException as exc:
            self._state = TransactionState.ENDED
            if isinstance(exc, StatementError):
                logger.error("Transaction BEGIN failed: %s", exc)
            await self._provider.release(conn)
            raise
        self._conn = conn
        self._state = TransactionState.ACTIVE

    async def commit(self) -> None:
        """Issue ``COMMIT`` and release the connection."""
        await self._end("COMMIT")

    async def rollback(self) -> None:
        """Issue ``ROLLBACK`` and release the connection."""
        await self._end("ROLLBACK")

    async def _end(self, command: str) -> None:
        conn = self._require_active(command.lower())
        # Ended before the statement runs; release happens only below.
        self._conn = None
        self._state = TransactionState.ENDED
        try:
            await run_built(conn, BuiltStatement(command, ()), echo=self._echo)
        except StatementError as exc:
            logger.error("Transaction %s failed: %s", command, exc)
            raise
        finally:
            await self._provider.release(conn)

    # -- Queries --

    async def query(self, request: Any, /, *params: Any) -> list[Any]:
        """Run a request on the transaction's connection.

        Same shapes as ``Database.query()``: SQL string with params, a
        statement descriptor, or a list of tasks run in order.
        """
        conn = self._require_active("query")
        req = coerce_request(request, *params)
        if req.kind is RequestKind.BATCH:
            return await run_tasks(conn, req.tasks, echo=self._echo)
        (task,) = req.as_tasks()
        return await run_built(conn, task.build(), echo=self._echo)

    async def query_one(self, request: Any, /, *params: Any) -> Any:
        """Like ``query()`` but returns only the first row, or ``None``."""
        return first_row(await self.query(request, *params))

    def _require_active(self, operation: str) -> Connection:
        if self._state is not TransactionState.ACTIVE or self._conn is None:
            msg = f"Cannot {operation}: transaction is {self._state.value}"
            raise TransactionStateError(msg)
        return self._conn

    # -- Context manager --

    async def __aenter__(self) -> Transaction:
        if self._state is TransactionState.CREATED:
            await self._begin()
        return self

    async def __aexit__(self, exc_type: Any, *_: Any) -> None:
        if not self.active:
            return
        if exc_type is None:
            await self.commit()
            return
        # Rollback failures are logged by _end; the original exception wins.
        with contextlib.suppress(StatementError):
            await self.rollback()

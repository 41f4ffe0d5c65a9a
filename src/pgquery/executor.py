"""Query execution against a connection provider.

One call, one connection: a single statement or a whole batch borrows a
connection, runs strictly in order, and releases it exactly once on every
exit path.

Usage::

    executor = QueryExecutor(provider)

    albums = await executor.query("SELECT * FROM albums WHERE artist_id = $1", 47)
    album = await executor.query_one("SELECT * FROM albums WHERE id = $1", 3)

    # Batch: one connection, tasks run in order, results in task order
    albums, genres = await executor.query([
        ["SELECT * FROM albums WHERE artist_id = $1", 47],
        ["SELECT * FROM genres WHERE artist_id = $1 AND mood = $2", [47, "sad"]],
    ])

    # Statement descriptors
    rows = await executor.insert({"table": "artists", "fields": {"name": "Nico"},
                                  "returnValue": "id"})
"""

from __future__ import annotations

import sys
import time
import warnings
from collections.abc import Mapping, Sequence
from typing import Any, TypeAlias

from pgquery.builder import BuiltStatement, Statement, as_statement
from pgquery.errors import InvalidQueryType, PgQueryError, StatementError
from pgquery.pool import Connection, ConnectionProvider, checkout
from pgquery.requests import RequestKind, Task, coerce_request

Row: TypeAlias = dict[str, Any]


def log_query(sql: str, params: Sequence[Any], elapsed: float) -> None:
    """Echo a statement and its timing to stderr."""
    ms = elapsed * 1000
    param_str = f"  params={tuple(params)!r}" if params else ""
    print(f"[pgquery] {ms:6.1f}ms  {sql}{param_str}", file=sys.stderr)


def first_row(rows: Sequence[Any]) -> Any:
    """Element 0 of ``rows``, or ``None`` when there is none."""
    return rows[0] if rows else None


async def run_built(
    conn: Connection,
    built: BuiltStatement,
    *,
    echo: bool = False,
    index: int | None = None,
    results: Sequence[Any] = (),
) -> list[Row]:
    """Run one built statement on ``conn`` and return its rows (never ``None``)."""
    t0 = time.perf_counter()
    try:
        rows = await conn.execute(built.sql, built.values)
    except PgQueryError:
        raise
    except Exception as exc:
        raise StatementError(built.sql, exc, index=index, results=results) from exc
    finally:
        if echo:
            log_query(built.sql, built.values, time.perf_counter() - t0)
    return list(rows) if rows else []


async def run_tasks(conn: Connection, tasks: Sequence[Task], *, echo: bool = False) -> list[Any]:
    """Run ``tasks`` one after another on ``conn``.

    Each task starts only after the previous one finished, since later
    statements may use what earlier ones wrote. The first failure stops the
    batch; the raised ``StatementError`` carries the results so far.

    A statement task that returns exactly one row yields that row instead of
    a one-element list. Raw SQL tasks always yield a list.
    """
    results: list[Any] = []
    for index, task in enumerate(tasks):
        rows = await run_built(conn, task.build(), echo=echo, index=index, results=results)
        if task.is_statement and len(rows) == 1:
            results.append(rows[0])
        else:
            results.append(rows)
    return results


def _require_statement(obj: Any, operation: str) -> Statement:
    if not isinstance(obj, (Statement, Mapping)):
        msg = f"Invalid parameters for {operation}(): {type(obj).__name__}"
        raise InvalidQueryType(msg)
    return as_statement(obj)


class QueryExecutor:
    """Runs requests on connections borrowed from a provider.

    The executor holds no connection between calls. Concurrent callers each
    get their own connection from the provider.
    """

    __slots__ = ("_echo", "_provider")

    def __init__(self, provider: ConnectionProvider, *, echo: bool = False) -> None:
        self._provider = provider
        self._echo = echo

    @property
    def provider(self) -> ConnectionProvider:
        return self._provider

    # -- Primitive modes --

    async def execute(self, sql: str, /, *params: Any) -> list[Row]:
        """Run one SQL string with flattened ``params`` and return its rows."""
        if not isinstance(sql, str):
            msg = f"execute() needs a SQL string, got {type(sql).__name__}"
            raise InvalidQueryType(msg)
        (task,) = coerce_request(sql, *params).as_tasks()
        return await self._run_task(task)

    async def execute_statement(self, statement: Statement | Mapping[str, Any]) -> list[Row]:
        """Build and run one INSERT/UPDATE. Always returns a list of rows."""
        return await self._run_task(Task(statement=as_statement(statement)))

    async def execute_batch(self, tasks: Sequence[Any]) -> list[Any]:
        """Run a list of tasks in order on a single connection."""
        request = coerce_request(tasks)
        if request.kind is not RequestKind.BATCH:
            msg = f"execute_batch() needs a list of tasks, got {type(tasks).__name__}"
            raise InvalidQueryType(msg)
        async with checkout(self._provider) as conn:
            return await run_tasks(conn, request.tasks, echo=self._echo)

    # -- Public query API --

    async def query(self, request: Any, /, *params: Any) -> list[Any]:
        """Run a SQL string, a statement descriptor, or a list of tasks.

        Returns rows for a SQL string or a descriptor, and one result per
        task, in task order, for a list.
        """
        req = coerce_request(request, *params)
        if req.kind is RequestKind.BATCH:
            return await self.execute_batch(req)
        (task,) = req.as_tasks()
        return await self._run_task(task)

    async def query_one(self, request: Any, /, *params: Any) -> Any:
        """Like ``query()`` but returns only the first row, or ``None``."""
        return first_row(await self.query(request, *params))

    async def insert(self, statement: Statement | Mapping[str, Any]) -> list[Row]:
        stmt = _require_statement(statement, "insert")
        if stmt.is_update:
            msg = f"insert() on {stmt.table!r} got a 'where'; use update()"
            raise InvalidQueryType(msg)
        return await self.execute_statement(stmt)

    async def update(self, statement: Statement | Mapping[str, Any]) -> list[Row]:
        stmt = _require_statement(statement, "update")
        if not stmt.is_update:
            msg = f"update() on {stmt.table!r} needs a non-empty 'where'"
            raise InvalidQueryType(msg)
        return await self.execute_statement(stmt)

    async def query_insert(self, statement: Statement | Mapping[str, Any]) -> Row | None:
        """Deprecated: use ``insert()``. Returns the first row only."""
        warnings.warn(
            "query_insert() is deprecated, use insert() instead",
            DeprecationWarning,
            stacklevel=2,
        )
        return first_row(await self.execute_statement(_require_statement(statement, "query_insert")))

    async def query_update(self, statement: Statement | Mapping[str, Any]) -> Row | None:
        """Deprecated: use ``update()``. Returns the first row only."""
        warnings.warn(
            "query_update() is deprecated, use update() instead",
            DeprecationWarning,
            stacklevel=2,
        )
        return first_row(await self.execute_statement(_require_statement(statement, "query_update")))

    async def _run_task(self, task: Task) -> list[Row]:
        built = task.build()
        async with checkout(self._provider) as conn:
            return await run_built(conn, built, echo=self._echo)

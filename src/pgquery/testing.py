"""In-memory connection provider for tests.

Records every statement and every acquire/release, and returns scripted
rows or errors. No database needed::

    from pgquery import Database
    from pgquery.testing import FakeProvider

    provider = FakeProvider()
    provider.respond("SELECT * FROM albums", rows=[{"id": 1, "title": "Blue"}])
    provider.respond("INSERT INTO broken", error=RuntimeError("boom"))

    db = Database(provider=provider)
    assert await db.query_one("SELECT * FROM albums WHERE id = $1", 1) == {"id": 1, "title": "Blue"}
    assert provider.executed[-1] == ("SELECT * FROM albums WHERE id = $1", (1,))
    assert provider.released == 1

Responses match on SQL prefix; the most recently added match wins.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from typing import Any, TypeAlias

Matcher: TypeAlias = str | Callable[[str], bool]


@dataclass(slots=True)
class _Response:
    matcher: Matcher
    rows: list[dict[str, Any]] | None
    error: BaseException | None

    def matches(self, sql: str) -> bool:
        if callable(self.matcher):
            return self.matcher(sql)
        return sql.startswith(self.matcher)


class FakeConnection:
    """A connection that records statements on its provider."""

    __slots__ = ("_provider", "id")

    def __init__(self, provider: FakeProvider, conn_id: int) -> None:
        self._provider = provider
        self.id = conn_id

    async def execute(self, sql: str, params: Sequence[Any]) -> list[dict[str, Any]]:
        self._provider.executed.append((sql, tuple(params)))
        self._provider.connection_log.append(self.id)
        for response in reversed(self._provider.responses):
            if response.matches(sql):
                if response.error is not None:
                    raise response.error
                return [dict(row) for row in response.rows or ()]
        return []


@dataclass(slots=True)
class FakeProvider:
    """Connection provider double with acquire/release accounting."""

    acquire_error: BaseException | None = None
    acquired: int = 0
    released: int = 0
    closed: bool = False
    connected: bool = False
    executed: list[tuple[str, tuple[Any, ...]]] = field(default_factory=list)
    connection_log: list[int] = field(default_factory=list)
    responses: list[_Response] = field(default_factory=list)
    _checked_out: set[int] = field(default_factory=set)

    def respond(
        self,
        matcher: Matcher,
        *,
        rows: Sequence[dict[str, Any]] | None = None,
        error: BaseException | None = None,
    ) -> None:
        """Script the result for statements matching ``matcher``."""
        self.responses.append(_Response(matcher, list(rows or ()), error))

    @property
    def statements(self) -> list[str]:
        return [sql for sql, _ in self.executed]

    @property
    def checked_out(self) -> int:
        return len(self._checked_out)

    async def connect(self) -> None:
        self.connected = True

    async def acquire(self) -> FakeConnection:
        if self.acquire_error is not None:
            raise self.acquire_error
        self.acquired += 1
        conn = FakeConnection(self, self.acquired)
        self._checked_out.add(conn.id)
        return conn

    async def release(self, conn: FakeConnection) -> None:
        if conn.id not in self._checked_out:
            msg = f"Connection {conn.id} released twice or never acquired"
            raise RuntimeError(msg)
        self._checked_out.discard(conn.id)
        self.released += 1

    async def close(self) -> None:
        self.closed = True

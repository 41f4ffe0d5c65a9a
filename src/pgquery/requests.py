"""Request kinds accepted by ``query()``.

Callers hand ``query()`` a SQL string, a statement descriptor, or a list of
tasks. ``coerce_request`` classifies the argument once, at the call
boundary, into a ``Request`` tagged with its ``RequestKind``; everything
downstream dispatches on the tag instead of re-inspecting types.

Anything that is none of the three shapes raises ``InvalidQueryType``
before a connection is acquired.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from enum import Enum
from typing import Any

from pgquery._flatten import flat_array
from pgquery.builder import BuiltStatement, Statement, as_statement, build_statement
from pgquery.errors import InvalidQueryType


class RequestKind(Enum):
    RAW = "raw"
    STATEMENT = "statement"
    BATCH = "batch"


@dataclass(frozen=True, slots=True)
class Task:
    """One step of a batch: raw SQL with params, or a Statement."""

    sql: str | None = None
    params: tuple[Any, ...] = ()
    statement: Statement | None = None

    @property
    def is_statement(self) -> bool:
        return self.statement is not None

    def build(self) -> BuiltStatement:
        if self.statement is not None:
            return build_statement(self.statement)
        return BuiltStatement(self.sql or "", tuple(flat_array(self.params)))


@dataclass(frozen=True, slots=True)
class Request:
    """A classified call to ``query()``."""

    kind: RequestKind
    sql: str | None = None
    params: tuple[Any, ...] = ()
    statement: Statement | None = None
    tasks: tuple[Task, ...] = ()

    def as_tasks(self) -> tuple[Task, ...]:
        """Express any request kind as a sequence of tasks."""
        if self.kind is RequestKind.BATCH:
            return self.tasks
        if self.kind is RequestKind.STATEMENT:
            return (Task(statement=self.statement),)
        return (Task(sql=self.sql, params=self.params),)


def _is_descriptor(obj: Any) -> bool:
    return isinstance(obj, (Statement, Mapping))


def coerce_task(item: Any) -> Task:
    """Classify one batch entry: ``(sql, *params)`` or a statement descriptor."""
    if _is_descriptor(item):
        return Task(statement=as_statement(item))
    if isinstance(item, str):
        return Task(sql=item)
    if isinstance(item, Sequence) and item and isinstance(item[0], str):
        return Task(sql=item[0], params=tuple(flat_array(*item[1:])))
    msg = f"Invalid batch task: {item!r}"
    raise InvalidQueryType(msg)


def coerce_request(obj: Any, *params: Any) -> Request:
    """Classify the first argument of ``query()``.

    Usage::

        coerce_request("SELECT * FROM albums WHERE artist_id = $1", 47)
        coerce_request({"table": "albums", "fields": {"title": "Blue"}})
        coerce_request([
            ["SELECT * FROM albums WHERE artist_id = $1", 47],
            ["SELECT * FROM genres WHERE artist_id = $1 AND mood = $2", [47, "sad"]],
        ])
    """
    if isinstance(obj, Request):
        return obj
    if isinstance(obj, str):
        return Request(RequestKind.RAW, sql=obj, params=tuple(flat_array(*params)))
    if _is_descriptor(obj):
        return Request(RequestKind.STATEMENT, statement=as_statement(obj))
    if isinstance(obj, (list, tuple)):
        return Request(RequestKind.BATCH, tasks=tuple(coerce_task(item) for item in obj))
    msg = f"Invalid query type: {type(obj).__name__}"
    raise InvalidQueryType(msg)

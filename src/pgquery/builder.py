"""INSERT/UPDATE statement builder.

Turns a declarative ``Statement`` into parameterized SQL with numbered
``$n`` placeholders. Pure functions, no I/O.

Usage::

    from pgquery.builder import Statement, build_statement

    built = build_statement(
        Statement("artists", {"first_name": "Mister"}, where={"id": 38}, return_value="*")
    )
    built.sql     # "UPDATE artists SET first_name = $1 WHERE id = $2 RETURNING *"
    built.values  # ("Mister", 38)

Identifiers (table, column names, where keys, ``return_value``) are
interpolated as given and must come from trusted code. Values are always
bound as parameters.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from pgquery.errors import InvalidQueryType

# Column/value pair that asks the database for the next sort position.
SORT_ORDER_FIELD = "sort_order"
SORT_ORDER_AUTO = "auto"


@dataclass(frozen=True, slots=True)
class Statement:
    """Declarative INSERT (no ``where``) or UPDATE (with ``where``)."""

    table: str
    fields: Mapping[str, Any]
    where: Mapping[str, Any] | None = None
    return_value: str | None = None

    @property
    def is_update(self) -> bool:
        return bool(self.where)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> Statement:
        """Build a Statement from a plain ``{table, fields, where?, returnValue?}`` dict.

        ``return_value`` is accepted as an alias of ``returnValue``.
        """
        try:
            table = data["table"]
            fields = data["fields"]
        except KeyError as exc:
            msg = f"Statement descriptor is missing {exc.args[0]!r}"
            raise InvalidQueryType(msg) from None
        return_value = data.get("returnValue", data.get("return_value"))
        return cls(table, fields, where=data.get("where"), return_value=return_value)


@dataclass(frozen=True, slots=True)
class BuiltStatement:
    """SQL text plus its bind values, one value per ``$n`` placeholder."""

    sql: str
    values: tuple[Any, ...]


def as_statement(obj: Statement | Mapping[str, Any]) -> Statement:
    """Return ``obj`` as a validated Statement."""
    statement = obj if isinstance(obj, Statement) else Statement.from_mapping(obj)
    if not isinstance(statement.fields, Mapping) or not statement.fields:
        msg = f"Statement for {statement.table!r} needs at least one field"
        raise InvalidQueryType(msg)
    return statement


def _is_auto_sort_order(field: str, value: Any) -> bool:
    return field == SORT_ORDER_FIELD and isinstance(value, str) and value == SORT_ORDER_AUTO


def _returning(statement: Statement) -> str:
    if statement.return_value:
        return f" RETURNING {statement.return_value}"
    return ""


def build_insert(obj: Statement | Mapping[str, Any]) -> BuiltStatement:
    """Build ``INSERT INTO table (cols) VALUES ($1, ...)``.

    A ``sort_order`` field set to ``"auto"`` becomes a subquery selecting
    the next free position in the table and binds no value.
    """
    statement = as_statement(obj)
    columns: list[str] = []
    placeholders: list[str] = []
    values: list[Any] = []

    for field, value in statement.fields.items():
        columns.append(field)
        if _is_auto_sort_order(field, value):
            placeholders.append(
                f"(SELECT COALESCE(MAX({SORT_ORDER_FIELD}), 0) + 1 FROM {statement.table})"
            )
        else:
            values.append(value)
            placeholders.append(f"${len(values)}")

    sql = (
        f"INSERT INTO {statement.table} ({', '.join(columns)}) "
        f"VALUES ({', '.join(placeholders)}){_returning(statement)}"
    )
    return BuiltStatement(sql, tuple(values))


def build_update(obj: Statement | Mapping[str, Any]) -> BuiltStatement:
    """Build ``UPDATE table SET col = $1 ... WHERE key = $n AND ...``.

    Non-empty mapping values are appended to the stored column with ``||``
    (JSONB merge) instead of replacing it.
    """
    statement = as_statement(obj)
    if not statement.where:
        msg = f"UPDATE on {statement.table!r} needs a non-empty 'where'"
        raise InvalidQueryType(msg)

    values: list[Any] = []
    assignments: list[str] = []
    for field, value in statement.fields.items():
        values.append(value)
        if isinstance(value, Mapping) and value:
            assignments.append(f"{field} = {field} || ${len(values)}")
        else:
            assignments.append(f"{field} = ${len(values)}")

    conditions: list[str] = []
    for key, value in statement.where.items():
        values.append(value)
        conditions.append(f"{key} = ${len(values)}")

    sql = (
        f"UPDATE {statement.table} SET {', '.join(assignments)} "
        f"WHERE {' AND '.join(conditions)}{_returning(statement)}"
    )
    return BuiltStatement(sql, tuple(values))


def build_statement(obj: Statement | Mapping[str, Any]) -> BuiltStatement:
    """Build an UPDATE when the statement has ``where``, otherwise an INSERT."""
    statement = as_statement(obj)
    if statement.is_update:
        return build_update(statement)
    return build_insert(statement)

"""pgquery error hierarchy.

Every error raised by the package derives from ``PgQueryError`` so callers
can catch one type. Driver exceptions are never swallowed: they travel on
``__cause__`` (and ``.cause``) of the error that wraps them.
"""

from collections.abc import Sequence
from typing import Any


class PgQueryError(Exception):
    """Base for all pgquery errors."""


class DriverNotInstalledError(PgQueryError):
    """Raised when the required database driver is not installed."""


class InvalidQueryType(PgQueryError, TypeError):  # noqa: N818
    """Raised when a call's argument shape is not a query pgquery understands.

    Detected before the pool is touched.
    """


class ConnectionError(PgQueryError):  # noqa: A001 — intentional shadow of builtin
    """Raised when a connection cannot be acquired from the pool."""


class StatementError(PgQueryError):
    """Raised when the driver reports an error for a statement.

    Attributes:
        sql: The statement that failed.
        cause: The unmodified driver exception.
        index: Position of the failing task within a batch, else ``None``.
        results: Results of the batch tasks that completed before the failure.
    """

    def __init__(
        self,
        sql: str,
        cause: BaseException,
        *,
        index: int | None = None,
        results: Sequence[Any] = (),
    ) -> None:
        super().__init__(str(cause))
        self.sql = sql
        self.cause = cause
        self.index = index
        self.results = list(results)


class TransactionStateError(PgQueryError):
    """Raised when a transaction handle is used after it has ended."""

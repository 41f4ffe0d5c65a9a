"""Tests for the pgquery error hierarchy."""

import builtins

import pgquery
from pgquery.errors import (
    ConnectionError,
    DriverNotInstalledError,
    InvalidQueryType,
    PgQueryError,
    StatementError,
    TransactionStateError,
)


class TestHierarchy:
    def test_all_inherit_from_base(self) -> None:
        for cls in (
            ConnectionError,
            DriverNotInstalledError,
            InvalidQueryType,
            StatementError,
            TransactionStateError,
        ):
            assert issubclass(cls, PgQueryError)

    def test_invalid_query_type_is_type_error(self) -> None:
        assert issubclass(InvalidQueryType, TypeError)

    def test_connection_error_is_not_builtin(self) -> None:
        assert ConnectionError is not builtins.ConnectionError


class TestStatementError:
    def test_carries_cause_and_partial_results(self) -> None:
        cause = RuntimeError("duplicate key value")
        error = StatementError("INSERT INTO t VALUES ($1)", cause, index=2, results=[[], {"id": 1}])
        assert str(error) == "duplicate key value"
        assert error.cause is cause
        assert error.index == 2
        assert error.results == [[], {"id": 1}]

    def test_defaults(self) -> None:
        error = StatementError("SELECT 1", RuntimeError("x"))
        assert error.index is None
        assert error.results == []


class TestExports:
    def test_all_public_exports(self) -> None:
        expected = {
            "AsyncpgProvider", "BuiltStatement", "ConnectionError", "ConnectionProvider",
            "Database", "DatabaseConfig", "DriverNotInstalledError", "InvalidQueryType",
            "PgQueryError", "QueryExecutor", "Request", "RequestKind", "Statement",
            "StatementError", "Transaction", "TransactionState", "TransactionStateError",
            "build_insert", "build_statement", "build_update", "coerce_request", "flat_array",
        }
        assert set(pgquery.__all__) == expected
        for name in expected:
            assert hasattr(pgquery, name)

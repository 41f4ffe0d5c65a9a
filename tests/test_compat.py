"""Tests for the callback adapter."""

import pytest

from pgquery.compat import with_callback
from pgquery.errors import StatementError


class TestWithCallback:
    async def test_success(self, db, provider) -> None:
        provider.respond("SELECT", rows=[{"id": 1}])
        calls = []
        rows = await with_callback(db.query("SELECT 1"), lambda err, res: calls.append((err, res)))
        assert rows == [{"id": 1}]
        assert calls == [(None, [{"id": 1}])]

    async def test_error_is_reported_and_raised(self, db, provider) -> None:
        provider.respond("SELECT", error=RuntimeError("boom"))
        calls = []
        with pytest.raises(StatementError):
            await with_callback(db.query("SELECT 1"), lambda err, res: calls.append((err, res)))
        (err, res), = calls
        assert isinstance(err, StatementError)
        assert res is None

    async def test_async_callback(self, db) -> None:
        seen = []

        async def on_result(err, res) -> None:
            seen.append(res)

        await with_callback(db.query_one("SELECT 1"), on_result)
        assert seen == [None]

    async def test_without_callback(self, db) -> None:
        assert await with_callback(db.query("SELECT 1")) == []

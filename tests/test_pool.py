"""Tests for pgquery.pool: the asyncpg-backed provider and checkout()."""

import sys

import pytest

from pgquery import AsyncpgProvider, DatabaseConfig
from pgquery.errors import ConnectionError, DriverNotInstalledError
from pgquery.pool import AsyncpgConnection, Connection, ConnectionProvider, checkout
from pgquery.testing import FakeProvider


class _Record(dict):
    """Stand-in for asyncpg.Record (mapping-like)."""


class _RawConnection:
    def __init__(self) -> None:
        self.calls: list[tuple[str, tuple]] = []
        self.codecs: dict[str, dict] = {}

    async def set_type_codec(self, name: str, **kwargs) -> None:
        self.codecs[name] = kwargs

    async def fetch(self, sql: str, *params):
        self.calls.append((sql, params))
        return [_Record(id=1, name="Nico")]


class _RawPool:
    def __init__(self) -> None:
        self.raw = _RawConnection()
        self.released: list[_RawConnection] = []
        self.closed = False

    async def acquire(self) -> _RawConnection:
        return self.raw

    async def release(self, conn: _RawConnection) -> None:
        self.released.append(conn)

    async def close(self) -> None:
        self.closed = True


@pytest.fixture
def raw_pool(monkeypatch) -> _RawPool:
    import asyncpg

    pool = _RawPool()
    calls: list[dict] = []

    async def create_pool(**kwargs):
        calls.append(kwargs)
        return pool

    monkeypatch.setattr(asyncpg, "create_pool", create_pool)
    pool.create_calls = calls  # type: ignore[attr-defined]
    return pool


# =============================================================================
# asyncpg adapter
# =============================================================================


class TestAsyncpgProvider:
    async def test_connect_passes_config(self, raw_pool) -> None:
        provider = AsyncpgProvider(DatabaseConfig(database="music", max_size=3))
        await provider.connect()
        await provider.connect()
        assert len(raw_pool.create_calls) == 1
        assert raw_pool.create_calls[0]["database"] == "music"
        assert raw_pool.create_calls[0]["max_size"] == 3

    async def test_init_registers_json_codecs(self, raw_pool) -> None:
        await AsyncpgProvider().connect()
        init = raw_pool.create_calls[0]["init"]
        raw = _RawConnection()
        await init(raw)
        assert set(raw.codecs) == {"json", "jsonb"}
        for codec in raw.codecs.values():
            assert codec["schema"] == "pg_catalog"
            assert codec["encoder"]({"label": "Verve"}) == '{"label": "Verve"}'
            assert codec["decoder"]('{"a": [1, 2]}') == {"a": [1, 2]}

    async def test_acquire_connects_lazily(self, raw_pool) -> None:
        provider = AsyncpgProvider()
        conn = await provider.acquire()
        assert isinstance(conn, AsyncpgConnection)
        assert len(raw_pool.create_calls) == 1

    async def test_execute_spreads_params_and_returns_dicts(self, raw_pool) -> None:
        provider = AsyncpgProvider()
        conn = await provider.acquire()
        rows = await conn.execute("SELECT * FROM artists WHERE id = $1 AND x = $2", (1, "a"))
        assert rows == [{"id": 1, "name": "Nico"}]
        assert type(rows[0]) is dict
        assert raw_pool.raw.calls == [("SELECT * FROM artists WHERE id = $1 AND x = $2", (1, "a"))]

    async def test_release_returns_raw_connection(self, raw_pool) -> None:
        provider = AsyncpgProvider()
        conn = await provider.acquire()
        await provider.release(conn)
        assert raw_pool.released == [raw_pool.raw]

    async def test_close(self, raw_pool) -> None:
        provider = AsyncpgProvider()
        await provider.connect()
        await provider.close()
        await provider.close()
        assert raw_pool.closed

    async def test_pool_creation_failure(self, monkeypatch) -> None:
        import asyncpg

        async def create_pool(**kwargs):
            raise OSError("connection refused")

        monkeypatch.setattr(asyncpg, "create_pool", create_pool)
        with pytest.raises(ConnectionError, match="connection refused"):
            await AsyncpgProvider().connect()

    async def test_missing_driver(self, monkeypatch) -> None:
        monkeypatch.setitem(sys.modules, "asyncpg", None)
        with pytest.raises(DriverNotInstalledError, match="pip install asyncpg"):
            await AsyncpgProvider().connect()

    def test_satisfies_protocols(self) -> None:
        assert isinstance(AsyncpgProvider(), ConnectionProvider)
        assert isinstance(AsyncpgConnection(object()), Connection)


# =============================================================================
# checkout()
# =============================================================================


class TestCheckout:
    async def test_releases_on_success(self) -> None:
        provider = FakeProvider()
        async with checkout(provider) as conn:
            await conn.execute("SELECT 1", ())
            assert provider.checked_out == 1
        assert provider.released == 1

    async def test_releases_on_error(self) -> None:
        provider = FakeProvider()

        async def _fail() -> None:
            async with checkout(provider):
                msg = "deliberate"
                raise ValueError(msg)

        with pytest.raises(ValueError, match="deliberate"):
            await _fail()
        assert provider.released == 1
        assert provider.checked_out == 0

    async def test_acquire_error_wrapped(self) -> None:
        provider = FakeProvider(acquire_error=TimeoutError("pool exhausted"))
        with pytest.raises(ConnectionError, match="pool exhausted") as exc_info:
            async with checkout(provider):
                pass  # pragma: no cover
        assert isinstance(exc_info.value.__cause__, TimeoutError)

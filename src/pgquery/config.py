"""Connection configuration.

DatabaseConfig is a frozen dataclass: immutable after creation, no
string-key dict lookups once built.
"""

from __future__ import annotations

import ssl as _ssl
from collections.abc import Mapping
from dataclasses import dataclass, fields
from typing import Any
from urllib.parse import quote


@dataclass(frozen=True, slots=True)
class DatabaseConfig:
    """PostgreSQL connection settings. All fields have defaults::

        config = DatabaseConfig(database="music", ssl=True)
    """

    username: str = "postgres"
    password: str = ""
    host: str = "127.0.0.1"
    port: int = 5432
    database: str = "postgres"
    ssl: bool = False  # True accepts any server certificate

    # Pool sizing
    min_size: int = 1
    max_size: int = 10

    @classmethod
    def from_mapping(cls, options: Mapping[str, Any] | None = None) -> DatabaseConfig:
        """Build a config from loose options.

        ``user`` is accepted as an alias of ``username``. Missing or falsy
        values fall back to the defaults. Unknown keys are ignored.
        """
        options = dict(options or {})
        if not options.get("username") and options.get("user"):
            options["username"] = options["user"]
        known = {f.name for f in fields(cls)}
        values = {k: v for k, v in options.items() if k in known and (v or v is False)}
        if "ssl" in values:
            values["ssl"] = values["ssl"] is True
        return cls(**values)

    @property
    def dsn(self) -> str:
        """``postgresql://`` URL for this config (password omitted when empty)."""
        auth = quote(self.username, safe="")
        if self.password:
            auth += ":" + quote(self.password, safe="")
        return f"postgresql://{auth}@{self.host}:{self.port}/{self.database}"

    def ssl_context(self) -> _ssl.SSLContext | None:
        """TLS context that encrypts without verifying the server, or ``None``."""
        if not self.ssl:
            return None
        context = _ssl.create_default_context()
        context.check_hostname = False
        context.verify_mode = _ssl.CERT_NONE
        return context

    def connect_kwargs(self) -> dict[str, Any]:
        """Keyword arguments for ``asyncpg.create_pool``."""
        kwargs: dict[str, Any] = {
            "user": self.username,
            "password": self.password or None,
            "host": self.host,
            "port": self.port,
            "database": self.database,
            "min_size": self.min_size,
            "max_size": self.max_size,
        }
        context = self.ssl_context()
        if context is not None:
            kwargs["ssl"] = context
        return kwargs

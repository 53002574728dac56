from __future__ import annotations

from typing import Any, Optional
from urllib.parse import urlparse

from strata.base.session import BaseSession
from strata.exception import ConfigurationError

from .dialect import SQLiteDialect

try:
    import aiosqlite

    AIOSQLITE_ENABLED = True
except ModuleNotFoundError:
    AIOSQLITE_ENABLED = False


class SQLiteSession(BaseSession):
    """Session on a SQLite database

    The connection is opened in driver autocommit mode, so the only
    transactions are the ones begun explicitly through the session.
    """

    scheme = "sqlite"
    schemes = ("sqlite",)
    dialect_class = SQLiteDialect

    def __init__(self, db_path: str, **kwargs: Any):
        self._db_path = db_path
        super().__init__(**kwargs)

    @classmethod
    def from_dsn(cls, dsn: str, **options: Any) -> SQLiteSession:
        """Create a session from ``sqlite:///relative.db``,
        ``sqlite:////absolute.db`` or ``sqlite:///:memory:``"""
        path = urlparse(dsn).path
        return cls(path[1:] if path.startswith("/") else path, **options)

    @property
    def db_path(self) -> str:
        return self._db_path

    def _setup(self):
        if not AIOSQLITE_ENABLED:
            raise ConfigurationError(
                "SQLite driver not found. Try reinstalling strata: "
                "pip install strata[sqlite]"
            )

    def _populate_dsn(self):
        self._dsn = f"{self.scheme}:///{self._db_path}"
        self._full_dsn = self._dsn

    async def _connect(self):
        self._connection = await aiosqlite.connect(
            self._db_path, isolation_level=None
        )
        self._connection.row_factory = aiosqlite.Row

    async def _disconnect(self):
        await self._connection.close()

    async def _execute(self, sql: str, params: Optional[Any] = None):
        return await self._connection.execute(sql, params or ())

    def in_transaction(self) -> bool:
        if not self.is_open:
            return False
        return self._connection.in_transaction

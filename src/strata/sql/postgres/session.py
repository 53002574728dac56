from __future__ import annotations

import logging
from typing import Any, Optional

from strata.base.session import BaseSession
from strata.exception import ConfigurationError

from .dialect import PostgresDialect

try:
    from psycopg.pq import TransactionStatus
    from psycopg_pool import AsyncConnectionPool

    POSTGRES_ENABLED = True
except ModuleNotFoundError:
    POSTGRES_ENABLED = False

logger = logging.getLogger(__name__)


class PostgresSession(BaseSession):
    """Session on a Postgres database

    The session borrows one connection from a ``psycopg_pool`` pool for as
    long as it is open and switches it to autocommit, so ``BEGIN`` and
    ``COMMIT`` are only ever sent by the session itself. Pass ``pool`` to
    share a pool between sessions; otherwise the session creates and owns
    one.
    """

    scheme = "postgres"
    schemes = ("postgres", "postgresql")
    dialect_class = PostgresDialect

    def __init__(
        self,
        dsn: Optional[str] = None,
        *,
        pool: Optional[AsyncConnectionPool] = None,
        **kwargs: Any,
    ):
        self._pool = pool
        self._owns_pool = pool is None
        self._restore_autocommit = False
        super().__init__(dsn, **kwargs)

    def _setup(self):
        if not POSTGRES_ENABLED:
            raise ConfigurationError(
                "Postgres driver not found. Try reinstalling strata: "
                "pip install strata[postgres]"
            )
        if self._pool is None:
            self._pool = AsyncConnectionPool(
                self.full_dsn,
                min_size=self.min_size,
                max_size=self.max_size,
                open=False,
            )

    @property
    def pool(self) -> Optional[AsyncConnectionPool]:
        return self._pool

    async def _connect(self):
        if self._owns_pool:
            # a closed pool cannot be reopened
            if self._pool is None:
                self._setup()
            await self._pool.open()
        connection = await self._pool.getconn()
        self._restore_autocommit = not connection.autocommit
        await connection.set_autocommit(True)
        self._connection = connection

    async def _disconnect(self):
        connection = self._connection
        if self._restore_autocommit and not self.in_transaction():
            await connection.set_autocommit(False)
        elif self.in_transaction():
            logger.warning(
                "Returning %s to the pool inside a transaction", self
            )
        await self._pool.putconn(connection)
        if self._owns_pool:
            await self._pool.close()
            self._pool = None

    async def _execute(self, sql: str, params: Optional[Any] = None):
        return await self._connection.execute(sql, params)

    def in_transaction(self) -> bool:
        if not self.is_open:
            return False
        return self._connection.info.transaction_status in (
            TransactionStatus.INTRANS,
            TransactionStatus.INERROR,
        )

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from strata.transaction.interfaces import IsolationValue, isolation_phrase

if TYPE_CHECKING:
    from strata.base.session import BaseSession

logger = logging.getLogger(__name__)


class BaseDialect:
    """Savepoint and isolation level statements for one database engine.

    A dialect is bound to a session and runs every statement it builds
    through :meth:`BaseSession.execute`, so failures surface as
    :class:`~strata.exception.ExecutionError` untouched.

    Subclasses change the SQL by overriding the ``*_sql`` builders. Engines
    that cannot create savepoints at all set ``savepoint_support = False``.
    """

    savepoint_support = True

    def __init__(self, session: BaseSession) -> None:
        self.session = session

    def __str__(self) -> str:
        return f"<{self.__class__.__name__} {self.session}>"

    def supports_savepoint(self) -> bool:
        """Whether nested transactions can be emulated with savepoints"""
        return self.savepoint_support and self.session.enable_savepoint

    def create_savepoint_sql(self, name: str) -> str:
        return f"SAVEPOINT {name}"

    def release_savepoint_sql(self, name: str) -> str:
        return f"RELEASE SAVEPOINT {name}"

    def rollback_savepoint_sql(self, name: str) -> str:
        return f"ROLLBACK TO SAVEPOINT {name}"

    def isolation_level_sql(self, level: IsolationValue) -> str:
        return f"SET TRANSACTION ISOLATION LEVEL {isolation_phrase(level)}"

    async def create_savepoint(self, name: str) -> None:
        logger.debug("Creating savepoint %s", name)
        await self.session.execute(self.create_savepoint_sql(name))

    async def release_savepoint(self, name: str) -> None:
        logger.debug("Releasing savepoint %s", name)
        await self.session.execute(self.release_savepoint_sql(name))

    async def rollback_savepoint(self, name: str) -> None:
        logger.debug("Rolling back to savepoint %s", name)
        await self.session.execute(self.rollback_savepoint_sql(name))

    async def set_transaction_isolation_level(
        self, level: IsolationValue
    ) -> None:
        sql = self.isolation_level_sql(level)
        logger.debug("Setting isolation level: %s", sql)
        await self.session.execute(sql)

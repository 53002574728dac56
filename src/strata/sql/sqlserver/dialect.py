import logging

from strata.base.dialect import BaseDialect

logger = logging.getLogger(__name__)


class SQLServerDialect(BaseDialect):
    """Savepoint statements for SQL Server"""

    def create_savepoint_sql(self, name: str) -> str:
        return f"SAVE TRANSACTION {name}"

    def rollback_savepoint_sql(self, name: str) -> str:
        return f"ROLLBACK TRANSACTION {name}"

    async def release_savepoint(self, name: str) -> None:
        # SQL Server savepoints live until the outer transaction ends
        logger.debug("SQL Server does not release savepoints, kept %s", name)

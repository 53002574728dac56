from strata.base.dialect import BaseDialect
from strata.exception import UnsupportedOperationError
from strata.transaction.interfaces import (
    IsolationLevel,
    IsolationValue,
    isolation_phrase,
)


class SQLiteDialect(BaseDialect):
    """Savepoint statements for SQLite

    SQLite has no ``SET TRANSACTION`` statement. The two levels it can
    express are mapped onto the ``read_uncommitted`` pragma, which applies to
    the whole connection rather than a single transaction.
    """

    def isolation_level_sql(self, level: IsolationValue) -> str:
        phrase = isolation_phrase(level)
        if phrase == IsolationLevel.SERIALIZABLE.value:
            return "PRAGMA read_uncommitted = False"
        if phrase == IsolationLevel.READ_UNCOMMITTED.value:
            return "PRAGMA read_uncommitted = True"
        raise UnsupportedOperationError(
            f"SQLite only supports transaction isolation levels "
            f"{IsolationLevel.READ_UNCOMMITTED.value} and "
            f"{IsolationLevel.SERIALIZABLE.value}, got {phrase!r}"
        )

from importlib.metadata import version

from .base.dialect import BaseDialect
from .base.session import BaseSession
from .connection import connect
from .exception import (
    ConfigurationError,
    ExecutionError,
    StrataError,
    TransactionStateError,
    UnsupportedOperationError,
)
from .sql.mysql.dialect import MysqlDialect
from .sql.postgres.dialect import PostgresDialect
from .sql.postgres.session import PostgresSession
from .sql.sqlite.dialect import SQLiteDialect
from .sql.sqlite.session import SQLiteSession
from .sql.sqlserver.dialect import SQLServerDialect
from .transaction import IsolationLevel, NestedTransaction, RawIsolationLevel

__version__ = version("strata")

__all__ = (
    "connect",
    "BaseDialect",
    "BaseSession",
    "NestedTransaction",
    "IsolationLevel",
    "RawIsolationLevel",
    "MysqlDialect",
    "PostgresDialect",
    "SQLiteDialect",
    "SQLServerDialect",
    "PostgresSession",
    "SQLiteSession",
    "StrataError",
    "ConfigurationError",
    "ExecutionError",
    "TransactionStateError",
    "UnsupportedOperationError",
)

from dataclasses import dataclass
from enum import Enum
from typing import Union


class IsolationLevel(Enum):
    """SQL transaction isolation levels"""

    READ_UNCOMMITTED = "READ UNCOMMITTED"
    READ_COMMITTED = "READ COMMITTED"
    REPEATABLE_READ = "REPEATABLE READ"
    SERIALIZABLE = "SERIALIZABLE"


@dataclass(frozen=True)
class RawIsolationLevel:
    """Engine specific isolation phrase, passed to the database verbatim.

    Use this when the engine accepts something other than the four standard
    levels after ``SET TRANSACTION ISOLATION LEVEL``, for example
    ``RawIsolationLevel("SNAPSHOT")`` on SQL Server.
    """

    value: str

    def __str__(self) -> str:
        return self.value


IsolationValue = Union[IsolationLevel, RawIsolationLevel, str]


def isolation_phrase(level: IsolationValue) -> str:
    """Render an isolation value as the SQL phrase it stands for"""
    if isinstance(level, (IsolationLevel, RawIsolationLevel)):
        return level.value
    return level
